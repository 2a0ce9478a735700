"""Shared pytest fixtures."""

from __future__ import annotations

from typing import Iterator

import pytest

from logging_utils import Logger
from security import SecurityValidator


@pytest.fixture(autouse=True)
def _reset_process_state() -> Iterator[None]:
    """Logger sink and registered secrets are process-wide; isolate each test."""
    yield
    Logger.close()
    SecurityValidator.clear_secrets()
