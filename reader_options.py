"""Extraction options handed to :class:`filter_reader.FilterReader`."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from logging_utils import logger


class OptionsValidationError(ValueError):
    """Raised when extraction options fail validation."""


class ReaderTimeout(enum.Enum):
    """How a reader reacts once its timeout has elapsed."""

    NONE = "none"
    TIMEOUT_ONLY = "timeout_only"
    TIMEOUT_WITH_EXCEPTION = "timeout_with_exception"


@dataclass(frozen=True)
class FilterReaderOptions:
    """Typed, immutable extraction options with validation helpers."""

    disable_embedded_content: bool = False
    include_properties: bool = False
    read_into_memory: bool = False
    reader_timeout: ReaderTimeout = ReaderTimeout.NONE
    timeout_ms: Optional[int] = None
    do_cleanup_characters: bool = True
    word_break_separator: Optional[str] = None

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Validate option combinations and raise if invalid."""

        if self.timeout_ms is not None and self.timeout_ms < 0:
            raise OptionsValidationError("timeout_ms must not be negative")
        if self.reader_timeout is not ReaderTimeout.NONE and self.timeout_ms is None:
            raise OptionsValidationError(
                f"reader_timeout {self.reader_timeout.value} requires timeout_ms"
            )

    @property
    def timeout_seconds(self) -> Optional[float]:
        """Return the effective timeout in seconds, ``None`` when disabled."""

        if self.reader_timeout is ReaderTimeout.NONE or self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000.0

    def as_dict(self) -> Dict[str, Any]:
        """Return a loggable representation of the options."""

        return {
            "disable_embedded_content": self.disable_embedded_content,
            "include_properties": self.include_properties,
            "read_into_memory": self.read_into_memory,
            "reader_timeout": self.reader_timeout.value,
            "timeout_ms": self.timeout_ms,
            "do_cleanup_characters": self.do_cleanup_characters,
            "word_break_separator": self.word_break_separator,
        }


class OptionsBuilder:
    """Collect option values one flag at a time, then freeze them.

    Every setter overwrites the previous value so that the last occurrence of
    a repeated command-line flag wins.
    """

    def __init__(self, base: Optional[FilterReaderOptions] = None) -> None:
        defaults = base or FilterReaderOptions()
        self._values: Dict[str, Any] = defaults.as_dict()
        self._values["reader_timeout"] = defaults.reader_timeout

    def disable_embedded_content(self, enabled: bool) -> "OptionsBuilder":
        self._values["disable_embedded_content"] = enabled
        return self

    def include_properties(self, enabled: bool) -> "OptionsBuilder":
        self._values["include_properties"] = enabled
        return self

    def read_into_memory(self, enabled: bool) -> "OptionsBuilder":
        self._values["read_into_memory"] = enabled
        return self

    def cleanup_characters(self, enabled: bool) -> "OptionsBuilder":
        self._values["do_cleanup_characters"] = enabled
        return self

    def word_break_separator(self, separator: Optional[str]) -> "OptionsBuilder":
        self._values["word_break_separator"] = separator
        return self

    def timeout(self, mode: ReaderTimeout, timeout_ms: int) -> "OptionsBuilder":
        """Set the timeout mode and its duration together."""

        if timeout_ms < 0:
            raise OptionsValidationError("timeout_ms must not be negative")
        self._values["reader_timeout"] = mode
        self._values["timeout_ms"] = timeout_ms
        return self

    def build(self) -> FilterReaderOptions:
        """Freeze the collected values into a validated options instance."""

        options = FilterReaderOptions(**self._values)
        logger.debug("Extraction options: %s", options.as_dict())
        return options


__all__ = [
    "FilterReaderOptions",
    "OptionsBuilder",
    "OptionsValidationError",
    "ReaderTimeout",
]
