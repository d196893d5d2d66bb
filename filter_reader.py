"""Streaming text extraction from documents of varying formats."""

from __future__ import annotations

import email
import email.policy
import io
import time
import zipfile
from contextlib import closing
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import IO, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import docx
import psutil
from docx.table import Table
from pypdf import PdfReader

from constants import (
    CLEANUP_TRANSLATIONS,
    MAX_EMBEDDED_DEPTH,
    TEXT_EXTENSIONS,
    WORD_BREAK_CHARACTERS,
)
from logging_utils import logger
from reader_options import FilterReaderOptions, ReaderTimeout

Property = Tuple[str, str]


class FilterError(RuntimeError):
    """Raised when a document cannot be opened or filtered."""


class UnsupportedFormatError(FilterError):
    """Raised when no filter is registered for a file extension."""


class FilterTimeoutError(FilterError):
    """Raised when extraction exceeds a timeout that demands an exception."""


class _TimeoutElapsed(Exception):
    """Internal signal used to stop a reader quietly after its timeout."""


@dataclass(frozen=True)
class EmbeddedItem:
    """A nested document such as an e-mail attachment or archive member."""

    name: str
    data: bytes


class FilteredDocument:
    """An opened document that yields properties, text and nested items."""

    def properties(self) -> Iterable[Property]:
        return ()

    def text_chunks(self) -> Iterator[str]:
        raise NotImplementedError

    def embedded_items(self) -> Iterable[EmbeddedItem]:
        return ()


class TextDocument(FilteredDocument):
    """Plain UTF-8 text; undecodable bytes are replaced."""

    def __init__(self, source: IO[bytes]) -> None:
        self._source = source

    def text_chunks(self) -> Iterator[str]:
        wrapper = io.TextIOWrapper(
            self._source, encoding="utf-8-sig", errors="replace"
        )
        try:
            yield from wrapper
        finally:
            # Leave the underlying stream to its owner.
            wrapper.detach()


class PdfDocument(FilteredDocument):
    """PDF pages, document information and file attachments via pypdf."""

    def __init__(self, source: IO[bytes]) -> None:
        self._reader = PdfReader(source)

    def properties(self) -> Iterable[Property]:
        metadata = self._reader.metadata
        if not metadata:
            return []
        collected: List[Property] = []
        for key, value in metadata.items():
            text = str(value).strip()
            if text:
                collected.append((str(key).lstrip("/"), text))
        return collected

    def text_chunks(self) -> Iterator[str]:
        for page in self._reader.pages:
            yield page.extract_text() or ""

    def embedded_items(self) -> Iterable[EmbeddedItem]:
        for name, payloads in self._reader.attachments.items():
            for payload in payloads:
                yield EmbeddedItem(name=name, data=payload)


class DocxDocument(FilteredDocument):
    """Word paragraphs, table cells and core properties via python-docx."""

    _CORE_PROPERTIES: Tuple[str, ...] = (
        "title",
        "subject",
        "author",
        "keywords",
        "category",
        "comments",
        "last_modified_by",
        "created",
        "modified",
    )

    def __init__(self, source: IO[bytes]) -> None:
        self._document = docx.Document(source)

    def properties(self) -> Iterable[Property]:
        core = self._document.core_properties
        collected: List[Property] = []
        for attribute in self._CORE_PROPERTIES:
            value = getattr(core, attribute, None)
            if value is None or value == "":
                continue
            text = value.isoformat() if hasattr(value, "isoformat") else str(value)
            collected.append((attribute.replace("_", " ").title(), text))
        return collected

    def text_chunks(self) -> Iterator[str]:
        # Paragraphs and tables in body order.
        for block in self._document.iter_inner_content():
            if isinstance(block, Table):
                for row in block.rows:
                    yield "\t".join(cell.text for cell in row.cells) + "\n"
            else:
                yield f"{block.text}\n"


class EmailDocument(FilteredDocument):
    """RFC 822 messages; attachments are treated as embedded content."""

    _HEADERS: Tuple[str, ...] = ("From", "To", "Cc", "Subject", "Date")

    def __init__(self, source: IO[bytes]) -> None:
        self._message = email.message_from_binary_file(
            source, policy=email.policy.default
        )

    def properties(self) -> Iterable[Property]:
        return [
            (header, str(self._message[header]))
            for header in self._HEADERS
            if self._message[header] is not None
        ]

    def text_chunks(self) -> Iterator[str]:
        body = self._message.get_body(preferencelist=("plain", "html"))
        if body is None:
            return
        yield body.get_content()

    def embedded_items(self) -> Iterable[EmbeddedItem]:
        for index, part in enumerate(self._message.iter_attachments(), start=1):
            name = part.get_filename() or f"attachment-{index}"
            if part.get_content_type() == "message/rfc822":
                nested = part.get_content()
                if not isinstance(nested, EmailMessage):
                    continue
                if not name.lower().endswith(".eml"):
                    name = f"{name}.eml"
                yield EmbeddedItem(name=name, data=nested.as_bytes())
                continue
            payload = part.get_payload(decode=True)
            if payload:
                yield EmbeddedItem(name=name, data=payload)


class ZipDocument(FilteredDocument):
    """Zip archives have no text of their own; members are embedded content."""

    def __init__(self, source: IO[bytes]) -> None:
        self._archive = zipfile.ZipFile(source)

    def text_chunks(self) -> Iterator[str]:
        yield from ()

    def embedded_items(self) -> Iterable[EmbeddedItem]:
        for info in self._archive.infolist():
            if info.is_dir():
                continue
            yield EmbeddedItem(name=info.filename, data=self._archive.read(info))


DocumentFactory = Callable[[IO[bytes]], FilteredDocument]

_FILTERS: Dict[str, DocumentFactory] = {}


def _normalise_extension(extension: str) -> str:
    token = extension.strip().lower()
    if token and not token.startswith("."):
        token = f".{token}"
    return token


def register_filter(extensions: Iterable[str], factory: DocumentFactory) -> None:
    """Register ``factory`` for every extension in ``extensions``."""

    for extension in extensions:
        _FILTERS[_normalise_extension(extension)] = factory


def get_filter(extension: str) -> DocumentFactory:
    """Return the document factory registered for ``extension``."""

    token = _normalise_extension(extension)
    try:
        return _FILTERS[token]
    except KeyError:
        raise UnsupportedFormatError(
            f"No filter registered for extension '{token or '(none)'}'"
        ) from None


def supported_extensions() -> Tuple[str, ...]:
    """Return the registered extensions in sorted order."""

    return tuple(sorted(_FILTERS))


register_filter(TEXT_EXTENSIONS, TextDocument)
register_filter([".pdf"], PdfDocument)
register_filter([".docx"], DocxDocument)
register_filter([".eml"], EmailDocument)
register_filter([".zip"], ZipDocument)


def _build_translation_table(options: FilterReaderOptions) -> Dict[int, str]:
    mapping: Dict[str, str] = {}
    if options.do_cleanup_characters:
        mapping.update(CLEANUP_TRANSLATIONS)
    if options.word_break_separator is not None:
        for character in WORD_BREAK_CHARACTERS:
            mapping[character] = options.word_break_separator
    return str.maketrans(mapping)


class FilterReader:
    """Read the text of a document line by line.

    The document is opened and negotiated with a filter when the reader is
    created, so unsupported or unreadable files fail before any output is
    produced. Lines are then produced lazily by :meth:`read_line` or by
    iterating the reader. Use the reader as a context manager to release the
    underlying file handle.
    """

    def __init__(
        self,
        path: str | Path,
        options: Optional[FilterReaderOptions] = None,
        *,
        extension: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.path = Path(path)
        self.options = options or FilterReaderOptions()
        self._clock = clock
        self._translation = _build_translation_table(self.options)
        self._closed = False

        factory = get_filter(extension or self.path.suffix)
        self._source = self._open_source()
        try:
            document = factory(self._source)
        except Exception as exc:
            self._source.close()
            raise FilterError(f"Unable to open {self.path}: {exc}") from exc

        timeout = self.options.timeout_seconds
        self._deadline = None if timeout is None else self._clock() + timeout
        self._lines = self._iter_lines(document)
        logger.debug("Opened %s with %s", self.path, type(document).__name__)

    def _open_source(self) -> IO[bytes]:
        """Open the input from disk, or buffer it in memory when requested."""

        if self.options.read_into_memory:
            size = self.path.stat().st_size
            available = psutil.virtual_memory().available
            if size <= available:
                try:
                    return io.BytesIO(self.path.read_bytes())
                except MemoryError:
                    logger.warning(
                        "Unable to buffer %s in memory; streaming from disk", self.path
                    )
            else:
                logger.warning(
                    "%s (%s bytes) exceeds available memory (%s bytes); streaming from disk",
                    self.path,
                    size,
                    available,
                )
        return open(self.path, "rb")

    def _check_deadline(self) -> None:
        if self._deadline is None or self._clock() < self._deadline:
            return
        if self.options.reader_timeout is ReaderTimeout.TIMEOUT_WITH_EXCEPTION:
            raise FilterTimeoutError(
                f"Timeout of {self.options.timeout_ms} ms elapsed while reading {self.path}"
            )
        raise _TimeoutElapsed()

    def _iter_chunks(self, document: FilteredDocument, depth: int) -> Iterator[str]:
        if self.options.include_properties:
            for name, value in document.properties():
                yield f"{name}: {value}\n"

        with closing(document.text_chunks()) as chunks:
            for chunk in chunks:
                self._check_deadline()
                yield chunk

        if self.options.disable_embedded_content:
            return

        for item in document.embedded_items():
            self._check_deadline()
            if depth >= MAX_EMBEDDED_DEPTH:
                logger.debug("Skipping %s: nested deeper than %s", item.name, depth)
                continue
            try:
                factory = get_filter(Path(item.name).suffix)
            except UnsupportedFormatError:
                logger.debug("Skipping embedded item without filter: %s", item.name)
                continue
            try:
                nested = factory(io.BytesIO(item.data))
            except Exception as exc:
                logger.warning("Unable to open embedded item %s: %s", item.name, exc)
                continue
            yield "\n"
            yield from self._iter_chunks(nested, depth + 1)

    def _iter_lines(self, document: FilteredDocument) -> Iterator[str]:
        try:
            for chunk in self._iter_chunks(document, depth=0):
                text = chunk.replace("\r\n", "\n")
                yield from text.translate(self._translation).splitlines()
        except _TimeoutElapsed:
            logger.warning(
                "Timeout of %s ms elapsed while reading %s; output is truncated",
                self.options.timeout_ms,
                self.path,
            )

    def read_line(self) -> Optional[str]:
        """Return the next line without its terminator, or ``None`` at the end."""

        if self._closed:
            raise ValueError("I/O operation on closed reader")
        return next(self._lines, None)

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self.read_line()
            if line is None:
                return
            yield line

    def close(self) -> None:
        """Release the underlying file handle. Calling twice is harmless."""

        if self._closed:
            return
        self._closed = True
        self._lines.close()
        self._source.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "FilterReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "EmbeddedItem",
    "FilterError",
    "FilterReader",
    "FilterTimeoutError",
    "FilteredDocument",
    "UnsupportedFormatError",
    "get_filter",
    "register_filter",
    "supported_extensions",
]
