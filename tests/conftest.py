from __future__ import annotations

import logging
from typing import Iterator

import pytest

from delegen.stores import InMemoryStorage


@pytest.fixture
def storage() -> InMemoryStorage:
    """Provide an empty in-memory storage target."""
    return InMemoryStorage()


@pytest.fixture(autouse=True)
def _reset_delegen_logger() -> Iterator[None]:
    """Drop handlers installed by configure_logging so they do not outlive a test."""
    yield
    logger = logging.getLogger("delegen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
