"""Turn the input argument into the list of files to extract."""

from __future__ import annotations

import glob
import os
from pathlib import Path
from typing import List

from logging_utils import logger


class InputNotFoundError(FileNotFoundError):
    """Raised when the single input file does not exist."""


def resolve_single(input_spec: str) -> List[Path]:
    """Treat ``input_spec`` as a literal path that must name an existing file."""

    path = Path(input_spec)
    if not path.is_file():
        raise InputNotFoundError(f"The input file '{input_spec}' does not exist")
    return [path]


def resolve_pattern(pattern: str, *, root: str | Path | None = None) -> List[Path]:
    """Expand ``pattern`` against ``root`` (default: the working directory).

    Only regular files are returned, sorted so batches run in a stable order.
    An empty result is not an error.
    """

    base = Path(root) if root is not None else None
    matches = sorted(glob.glob(pattern, root_dir=base))
    resolved: List[Path] = []
    for match in matches:
        candidate = base / match if base is not None else Path(match)
        if os.path.isfile(candidate):
            resolved.append(candidate)
    logger.debug("Pattern %s matched %s files", pattern, len(resolved))
    return resolved


def resolve_inputs(input_spec: str, multiple_files: bool) -> List[Path]:
    """Resolve ``input_spec`` as a pattern or as a single path."""

    if multiple_files:
        return resolve_pattern(input_spec)
    return resolve_single(input_spec)


__all__ = ["InputNotFoundError", "resolve_inputs", "resolve_pattern", "resolve_single"]
