"""Entry point for the ifiltercmd console script.

The module installs an exception hook that records uncaught errors through
the ``ifiltercmd`` logger and delegates argument handling and extraction to
:mod:`services.cli`.
"""

from __future__ import annotations

import sys
from types import TracebackType
from typing import Sequence

from constants import EXIT_FAILURE, USAGE
from filter_reader import (
    FilterError,
    FilterReader,
    FilterTimeoutError,
    UnsupportedFormatError,
    supported_extensions,
)
from logging_utils import configure_logging, logger
from reader_options import FilterReaderOptions, OptionsBuilder, ReaderTimeout
from services.cli import CLIOptions, parse_arguments, run_cli
from services.cli import main as cli_main


def handle_uncaught_exception(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_traceback: TracebackType | None,
) -> None:
    """Log uncaught exceptions and exit with the failure code."""

    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logger.critical(
        "Uncaught exception",
        exc_info=(exc_type, exc_value, exc_traceback),
    )
    print(f"A critical error has occurred: {exc_value}", file=sys.stderr)
    sys.exit(EXIT_FAILURE)


def main(argv: Sequence[str] | None = None) -> int:
    """Console script entry point."""

    sys.excepthook = handle_uncaught_exception
    return cli_main(argv)


__all__ = [
    "CLIOptions",
    "FilterError",
    "FilterReader",
    "FilterReaderOptions",
    "FilterTimeoutError",
    "OptionsBuilder",
    "ReaderTimeout",
    "USAGE",
    "UnsupportedFormatError",
    "configure_logging",
    "handle_uncaught_exception",
    "logger",
    "main",
    "parse_arguments",
    "run_cli",
    "supported_extensions",
]


if __name__ == "__main__":
    sys.exit(main())
