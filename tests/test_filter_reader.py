"""Tests for the document filter layer."""

from __future__ import annotations

import gc
import io
import logging
import sys
import zipfile
from email.message import EmailMessage
from pathlib import Path
from types import SimpleNamespace
from typing import Iterator

import docx
import pytest
from pypdf import PdfWriter

import filter_reader
from filter_reader import (
    FilteredDocument,
    FilterError,
    FilterReader,
    FilterTimeoutError,
    UnsupportedFormatError,
    get_filter,
    supported_extensions,
)
from reader_options import FilterReaderOptions, ReaderTimeout


class StepClock:
    """Clock that advances one second on every reading."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        current = self.now
        self.now += 1.0
        return current


def _read_all(path: Path, options: FilterReaderOptions | None = None, **kwargs) -> list[str]:
    with FilterReader(path, options, **kwargs) as reader:
        return list(reader)


@pytest.fixture()
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "notes.txt"
    path.write_bytes(b"alpha\r\nbeta\r\n\r\ngamma\n")
    return path


@pytest.fixture()
def docx_file(tmp_path: Path) -> Path:
    document = docx.Document()
    document.core_properties.title = "Quarterly Report"
    document.core_properties.author = "Finance"
    document.add_paragraph("First paragraph")
    document.add_paragraph("")
    document.add_paragraph("Second paragraph")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "A1"
    table.rows[0].cells[1].text = "B1"
    path = tmp_path / "report.docx"
    document.save(str(path))
    return path


@pytest.fixture()
def pdf_file(tmp_path: Path) -> Path:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.add_metadata({"/Title": "Quarterly", "/Author": "Finance"})
    writer.add_attachment("attached.txt", b"attached line\n")
    path = tmp_path / "report.pdf"
    with open(path, "wb") as handle:
        writer.write(handle)
    return path


@pytest.fixture()
def eml_file(tmp_path: Path) -> Path:
    message = EmailMessage()
    message["From"] = "alice@example.com"
    message["To"] = "bob@example.com"
    message["Subject"] = "Status"
    message.set_content("Body line 1\nBody line 2\n")
    message.add_attachment(
        b"attached text\n",
        maintype="application",
        subtype="octet-stream",
        filename="notes.txt",
    )
    message.add_attachment(
        b"\x89PNG\r\n", maintype="image", subtype="png", filename="image.png"
    )
    path = tmp_path / "status.eml"
    path.write_bytes(message.as_bytes())
    return path


@pytest.fixture()
def zip_file(tmp_path: Path) -> Path:
    path = tmp_path / "bundle.zip"
    with zipfile.ZipFile(path, "w") as archive:
        archive.writestr("a.txt", "from a\n")
        archive.writestr("b.bin", b"\x00\x01")
        archive.writestr("inner/c.txt", "from c\n")
    return path


def test_text_lines_keep_order_and_blank_lines(text_file: Path) -> None:
    assert _read_all(text_file) == ["alpha", "beta", "", "gamma"]


def test_read_line_returns_none_at_end(text_file: Path) -> None:
    with FilterReader(text_file) as reader:
        lines = [reader.read_line() for _ in range(4)]
        assert reader.read_line() is None
        assert reader.read_line() is None

    assert lines == ["alpha", "beta", "", "gamma"]


def test_empty_file_yields_no_lines(tmp_path: Path) -> None:
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")

    assert _read_all(path) == []


def test_reading_closed_reader_fails(text_file: Path) -> None:
    reader = FilterReader(text_file)
    reader.close()
    reader.close()

    assert reader.closed is True
    with pytest.raises(ValueError):
        reader.read_line()


def test_unsupported_extension_fails_on_open(tmp_path: Path) -> None:
    path = tmp_path / "drawing.xyz"
    path.write_bytes(b"data")

    with pytest.raises(UnsupportedFormatError, match=".xyz"):
        FilterReader(path)


def test_extension_override_selects_filter(tmp_path: Path) -> None:
    path = tmp_path / "drawing.xyz"
    path.write_bytes(b"plain words\n")

    assert _read_all(path, extension="txt") == ["plain words"]


def test_corrupt_document_raises_filter_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")

    with pytest.raises(FilterError, match="broken.pdf"):
        FilterReader(path)


def test_missing_file_raises_os_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FilterReader(tmp_path / "missing.txt")


def test_cleanup_translates_typographic_characters(tmp_path: Path) -> None:
    path = tmp_path / "quotes.txt"
    original = "It\u2019s \u201cquoted\u201d \u2013 done\u2026"
    path.write_text(original, encoding="utf-8")

    cleaned = _read_all(path)
    untouched = _read_all(path, FilterReaderOptions(do_cleanup_characters=False))

    assert cleaned == ["It's \"quoted\" - done..."]
    assert untouched == [original]


def test_word_break_separator_replaces_soft_hyphens(tmp_path: Path) -> None:
    path = tmp_path / "breaks.txt"
    path.write_text("extra\u00adordinary", encoding="utf-8")

    separated = _read_all(path, FilterReaderOptions(word_break_separator="-"))
    untouched = _read_all(path)

    assert separated == ["extra-ordinary"]
    assert untouched == ["extra\u00adordinary"]


def test_docx_body_tables_and_properties(docx_file: Path) -> None:
    body = _read_all(docx_file)
    with_properties = _read_all(docx_file, FilterReaderOptions(include_properties=True))

    assert body == ["First paragraph", "", "Second paragraph", "A1\tB1"]
    assert "Title: Quarterly Report" in with_properties
    assert "Author: Finance" in with_properties
    assert with_properties[-4:] == body


def test_docx_tables_keep_body_order(tmp_path: Path) -> None:
    document = docx.Document()
    document.add_paragraph("Before table")
    table = document.add_table(rows=2, cols=2)
    table.rows[0].cells[0].text = "Name"
    table.rows[0].cells[1].text = "Total"
    table.rows[1].cells[0].text = "East"
    table.rows[1].cells[1].text = "12"
    document.add_paragraph("After table")
    path = tmp_path / "ordered.docx"
    document.save(str(path))

    assert _read_all(path) == ["Before table", "Name\tTotal", "East\t12", "After table"]


def test_pdf_attachments_are_embedded_content(pdf_file: Path) -> None:
    assert _read_all(pdf_file) == ["", "attached line"]
    assert _read_all(pdf_file, FilterReaderOptions(disable_embedded_content=True)) == []


def test_pdf_properties(pdf_file: Path) -> None:
    lines = _read_all(
        pdf_file,
        FilterReaderOptions(include_properties=True, disable_embedded_content=True),
    )

    assert "Title: Quarterly" in lines
    assert "Author: Finance" in lines


def test_email_body_headers_and_attachments(eml_file: Path) -> None:
    lines = _read_all(eml_file, FilterReaderOptions(include_properties=True))

    assert lines == [
        "From: alice@example.com",
        "To: bob@example.com",
        "Subject: Status",
        "Body line 1",
        "Body line 2",
        "",
        "attached text",
    ]


def test_email_without_embedded_content(eml_file: Path) -> None:
    lines = _read_all(eml_file, FilterReaderOptions(disable_embedded_content=True))

    assert lines == ["Body line 1", "Body line 2"]


def test_zip_members_skip_unsupported_entries(zip_file: Path) -> None:
    assert _read_all(zip_file) == ["", "from a", "", "from c"]


def test_embedded_depth_is_bounded(zip_file: Path, monkeypatch) -> None:
    monkeypatch.setattr(filter_reader, "MAX_EMBEDDED_DEPTH", 0)

    assert _read_all(zip_file) == []


def test_read_into_memory_buffers_source(text_file: Path) -> None:
    with FilterReader(text_file, FilterReaderOptions(read_into_memory=True)) as reader:
        assert isinstance(reader._source, io.BytesIO)
        assert list(reader) == ["alpha", "beta", "", "gamma"]


def test_read_into_memory_falls_back_when_memory_is_short(
    text_file: Path, monkeypatch, debug_caplog
) -> None:
    monkeypatch.setattr(
        filter_reader.psutil, "virtual_memory", lambda: SimpleNamespace(available=1)
    )

    with FilterReader(text_file, FilterReaderOptions(read_into_memory=True)) as reader:
        assert not isinstance(reader._source, io.BytesIO)
        assert list(reader) == ["alpha", "beta", "", "gamma"]

    assert any("streaming from disk" in m for m in debug_caplog.messages)


def test_timeout_only_truncates_quietly(text_file: Path, debug_caplog) -> None:
    options = FilterReaderOptions(
        reader_timeout=ReaderTimeout.TIMEOUT_ONLY, timeout_ms=2500
    )

    lines = _read_all(text_file, options, clock=StepClock())

    assert lines == ["alpha", "beta"]
    assert any("output is truncated" in m for m in debug_caplog.messages)
    assert all(record.levelno < logging.ERROR for record in debug_caplog.records)


def test_timeout_with_exception_raises(text_file: Path) -> None:
    options = FilterReaderOptions(
        reader_timeout=ReaderTimeout.TIMEOUT_WITH_EXCEPTION, timeout_ms=2500
    )

    with FilterReader(text_file, options, clock=StepClock()) as reader:
        assert reader.read_line() == "alpha"
        assert reader.read_line() == "beta"
        with pytest.raises(FilterTimeoutError):
            reader.read_line()


def _timeout_message(path: Path, options: FilterReaderOptions) -> str | None:
    try:
        _read_all(path, options, clock=StepClock())
    except FilterTimeoutError as exc:
        return str(exc)
    return None


def test_timeout_with_exception_releases_text_stream(tmp_path: Path, monkeypatch) -> None:
    unraisable: list[object] = []
    monkeypatch.setattr(sys, "unraisablehook", unraisable.append)
    path = tmp_path / "long.txt"
    path.write_text("".join(f"line {n}\n" for n in range(500)), encoding="utf-8")
    options = FilterReaderOptions(
        reader_timeout=ReaderTimeout.TIMEOUT_WITH_EXCEPTION, timeout_ms=3000
    )

    message = _timeout_message(path, options)
    gc.collect()

    assert message is not None and "long.txt" in message
    assert unraisable == []


def test_no_timeout_ignores_clock(text_file: Path) -> None:
    assert _read_all(text_file, clock=StepClock()) == ["alpha", "beta", "", "gamma"]


def test_registered_filter_is_used(tmp_path: Path, monkeypatch) -> None:
    class UpperDocument(FilteredDocument):
        def __init__(self, source) -> None:
            self._text = source.read().decode("ascii")

        def text_chunks(self) -> Iterator[str]:
            yield self._text.upper()

    monkeypatch.setitem(filter_reader._FILTERS, ".shout", UpperDocument)
    path = tmp_path / "loud.shout"
    path.write_bytes(b"quiet\n")

    assert get_filter("SHOUT") is UpperDocument
    assert _read_all(path) == ["QUIET"]


def test_supported_extensions_cover_builtin_filters() -> None:
    extensions = supported_extensions()

    for extension in (".txt", ".pdf", ".docx", ".eml", ".zip"):
        assert extension in extensions
