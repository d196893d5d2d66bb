"""Command-line interface for ifiltercmd."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol, Sequence, Tuple

from constants import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_SUCCESS, PROGRAM_NAME, USAGE
from logging_utils import CONSOLE_FORMAT, configure_logging, logger
from reader_options import FilterReaderOptions, OptionsBuilder, ReaderTimeout
from services.extractor_service import BatchSummary, ExtractorService
from services.file_resolver import InputNotFoundError, resolve_inputs

_BOOLEAN_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("c", "cleanup_characters"),
    ("e", "disable_embedded_content"),
    ("p", "include_properties"),
    ("m", "read_into_memory"),
)

# Flag name -> (OptionsBuilder setter, value). Bare and '+' forms enable.
_TOGGLES: Dict[str, Tuple[str, bool]] = {
    f"{letter}{suffix}": (setter, suffix != "-")
    for letter, setter in _BOOLEAN_OPTIONS
    for suffix in ("", "+", "-")
}

_TIMEOUT_MODES: Dict[str, ReaderTimeout] = {
    "te": ReaderTimeout.TIMEOUT_WITH_EXCEPTION,
    "ti": ReaderTimeout.TIMEOUT_ONLY,
}

_VALUE_OPTIONS: Tuple[str, ...] = ("te", "ti", "o", "w", "l")

_FLAG_OPTIONS: Tuple[str, ...] = ("M", "v", "?")


class UsageError(Exception):
    """Raised when the command line cannot be turned into an invocation."""


class HelpRequested(Exception):
    """Raised when ``-?`` asks for the usage text."""


class ExtractorServiceProtocol(Protocol):
    """Protocol describing the methods used by the CLI runner."""

    def extract_file(self, input_path: Path, output_path: Optional[Path] = None) -> int:
        """Extract one file, raising on failure."""

    def extract_batch(self, input_paths: Sequence[Path]) -> BatchSummary:
        """Extract several files, tolerating per-file failures."""


@dataclass(frozen=True)
class CLIOptions:
    """Typed representation of CLI arguments for easier testing."""

    input_spec: str
    output_path: Optional[Path]
    multiple_files: bool
    reader_options: FilterReaderOptions
    log_level: str = "WARNING"
    log_file: Optional[Path] = None


def _is_known_option(name: str) -> bool:
    return name in _TOGGLES or name in _VALUE_OPTIONS or name in _FLAG_OPTIONS


def _is_option(token: str) -> bool:
    """Return whether ``token`` should be read as an option.

    A leading ``/`` only marks an option when the rest is a known option
    name, so absolute POSIX paths stay positional.
    """

    if token.startswith("-"):
        return True
    if token.startswith("/"):
        return len(token) < 2 or _is_known_option(token[1:])
    return False


def _parse_timeout(value: str) -> int:
    try:
        timeout = int(value)
    except ValueError:
        raise UsageError(f"Invalid timeout value {value}") from None
    if timeout < 0:
        raise UsageError(f"Invalid timeout value {value}")
    return timeout


def parse_arguments(argv: Sequence[str]) -> CLIOptions:
    """Parse raw command-line tokens into a :class:`CLIOptions`.

    Raises :class:`UsageError` for malformed input and :class:`HelpRequested`
    for ``-?``. Repeated options overwrite earlier ones.
    """

    tokens = list(argv)
    builder = OptionsBuilder()
    input_spec: Optional[str] = None
    output_path: Optional[Path] = None
    multiple_files = False
    log_level = "WARNING"
    log_file: Optional[Path] = None

    index = 0
    while index < len(tokens):
        token = tokens[index]

        if not _is_option(token):
            if input_spec:
                raise UsageError(
                    "Only one input file allowed! Found more than one. "
                    f"First one: {input_spec}, next: {token}"
                )
            input_spec = token
            index += 1
            continue

        if len(token) < 2:
            raise UsageError("Option missing after - or /")

        name = token[1:]
        if name in _TOGGLES:
            setter, enabled = _TOGGLES[name]
            getattr(builder, setter)(enabled)
        elif name == "M":
            multiple_files = True
        elif name == "v":
            log_level = "DEBUG"
        elif name == "?":
            raise HelpRequested()
        elif name in _VALUE_OPTIONS:
            if index + 1 >= len(tokens):
                raise UsageError(f"Expecting another argument after option {token}")
            index += 1
            value = tokens[index]
            if name in _TIMEOUT_MODES:
                builder.timeout(_TIMEOUT_MODES[name], _parse_timeout(value))
            elif name == "o":
                output_path = Path(value)
            elif name == "w":
                builder.word_break_separator(value)
            else:
                log_file = Path(value)
        else:
            raise UsageError(f"Unknown option {token}")
        index += 1

    if not input_spec:
        raise UsageError("No input file provided")

    return CLIOptions(
        input_spec=input_spec,
        output_path=output_path,
        multiple_files=multiple_files,
        reader_options=builder.build(),
        log_level=log_level,
        log_file=log_file,
    )


def _configure_cli_logging(options: CLIOptions) -> None:
    level = getattr(logging, options.log_level.upper(), logging.WARNING)
    configure_logging(
        level=level,
        handler=logging.StreamHandler(stream=sys.stderr),
        fmt=CONSOLE_FORMAT,
    )
    if options.log_file is not None:
        configure_logging(
            level=level,
            log_file=str(options.log_file),
            replace_handlers=False,
        )


def run_cli(
    options: CLIOptions,
    *,
    service_factory: Callable[[FilterReaderOptions], ExtractorServiceProtocol] = ExtractorService,
    configure_logger_handler: bool = True,
) -> int:
    """Execute the extraction and return an exit code.

    Raises :class:`InputNotFoundError` when the single input file is missing.
    """

    if configure_logger_handler:
        _configure_cli_logging(options)
    else:
        logger.setLevel(getattr(logging, options.log_level.upper(), logging.WARNING))

    input_paths = resolve_inputs(options.input_spec, options.multiple_files)
    service = service_factory(options.reader_options)

    if options.multiple_files:
        if options.output_path is not None:
            logger.warning(
                "Ignoring output file %s in multiple file mode", options.output_path
            )
        service.extract_batch(input_paths)
        return EXIT_SUCCESS

    try:
        service.extract_file(input_paths[0], options.output_path)
    except Exception as exc:
        logger.error("Exception call in %s: %s", PROGRAM_NAME, exc)
        return EXIT_FAILURE
    return EXIT_SUCCESS


def _print_usage_error(message: str) -> None:
    print(message, file=sys.stderr)
    print(USAGE, file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point used by ``python -m services.cli``."""

    arguments = sys.argv[1:] if argv is None else argv
    try:
        options = parse_arguments(arguments)
    except HelpRequested:
        print(USAGE)
        return EXIT_SUCCESS
    except UsageError as exc:
        _print_usage_error(str(exc))
        return EXIT_FAILURE

    try:
        return run_cli(options)
    except InputNotFoundError as exc:
        _print_usage_error(str(exc))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Extraction interrupted by user")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
