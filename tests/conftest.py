"""Shared fixtures for the ifiltercmd test-suite."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from logging_utils import logger


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[None]:
    """Undo handler changes made by CLI runs so ``caplog`` keeps working."""

    original_handlers = list(logger.handlers)
    original_propagate = logger.propagate
    original_level = logger.level
    try:
        yield
    finally:
        for handler in logger.handlers:
            if handler not in original_handlers:
                handler.close()
        logger.handlers[:] = original_handlers
        logger.propagate = original_propagate
        logger.setLevel(original_level)


@pytest.fixture()
def debug_caplog(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Capture everything the ``ifiltercmd`` logger emits."""

    caplog.set_level(logging.DEBUG, logger="ifiltercmd")
    return caplog
