"""Copy extracted lines from a filter reader to their destination."""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Callable, Iterable, Iterator, List, Optional, Tuple

from constants import MULTI_FILE_OUTPUT_SUFFIX, PROGRAM_NAME
from filter_reader import FilterReader
from logging_utils import logger
from reader_options import FilterReaderOptions

ReaderFactory = Callable[[Path, FilterReaderOptions], FilterReader]


class OutputOverwritesInputError(ValueError):
    """Raised when the output path names the input file itself."""


@dataclass
class BatchSummary:
    """Outcome of a multiple-file run."""

    processed: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.failed)


def output_path_for(input_path: Path) -> Path:
    """Return the text file written beside ``input_path`` in multiple-file mode."""

    return Path(f"{input_path}{MULTI_FILE_OUTPUT_SUFFIX}")


def copy_lines(lines: Iterable[str], destination: IO[str]) -> int:
    """Write each line followed by a line terminator and return the count."""

    written = 0
    for line in lines:
        destination.write(f"{line}\n")
        written += 1
    return written


@contextmanager
def open_destination(output_path: Optional[Path]) -> Iterator[IO[str]]:
    """Yield the output file, or standard output when no path is given.

    Standard output is flushed but never closed.
    """

    if output_path is None:
        try:
            yield sys.stdout
        finally:
            sys.stdout.flush()
        return
    with open(output_path, "w", encoding="utf-8") as handle:
        yield handle


class ExtractorService:
    """Run extraction for one file or a batch of files."""

    def __init__(
        self,
        options: Optional[FilterReaderOptions] = None,
        *,
        reader_factory: ReaderFactory = FilterReader,
    ) -> None:
        self.options = options or FilterReaderOptions()
        self._reader_factory = reader_factory

    def extract_file(self, input_path: Path, output_path: Optional[Path] = None) -> int:
        """Extract ``input_path`` into ``output_path`` and return the line count.

        The reader is opened before the destination so that a document that
        cannot be filtered never truncates an existing output file. Errors
        propagate to the caller.
        """

        if (
            output_path is not None
            and output_path.exists()
            and input_path.exists()
            and os.path.samefile(input_path, output_path)
        ):
            raise OutputOverwritesInputError(
                f"Output file {output_path} is the input file {input_path}"
            )

        with self._reader_factory(input_path, self.options) as reader:
            with open_destination(output_path) as destination:
                written = copy_lines(reader, destination)
        logger.info(
            "Extracted %s lines from %s to %s",
            written,
            input_path,
            output_path or "<stdout>",
        )
        return written

    def extract_batch(self, input_paths: Iterable[Path]) -> BatchSummary:
        """Extract every path into ``<path>.txt``, continuing past failures."""

        summary = BatchSummary()
        for input_path in input_paths:
            try:
                self.extract_file(input_path, output_path_for(input_path))
            except Exception as exc:
                logger.error(
                    "Exception call in %s for file: %s: %s", PROGRAM_NAME, input_path, exc
                )
                summary.failed.append((input_path, str(exc)))
                continue
            summary.processed.append(input_path)

        logger.info(
            "Processed %s of %s files (%s failed)",
            len(summary.processed),
            summary.total,
            len(summary.failed),
        )
        return summary


__all__ = [
    "BatchSummary",
    "ExtractorService",
    "OutputOverwritesInputError",
    "copy_lines",
    "open_destination",
    "output_path_for",
]
