"""Service layer abstractions for ifiltercmd."""

from .cli import CLIOptions, HelpRequested, UsageError
from .cli import main as cli_main
from .cli import parse_arguments, run_cli
from .extractor_service import BatchSummary, ExtractorService, OutputOverwritesInputError
from .file_resolver import InputNotFoundError, resolve_inputs

__all__ = [
    "BatchSummary",
    "CLIOptions",
    "ExtractorService",
    "HelpRequested",
    "InputNotFoundError",
    "OutputOverwritesInputError",
    "UsageError",
    "cli_main",
    "parse_arguments",
    "resolve_inputs",
    "run_cli",
]
