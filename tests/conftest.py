"""Shared fixtures for kuberollback tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from structlog.testing import capture_logs

from tests.factories import FakeBackend


@pytest.fixture(autouse=True)
def captured_logs() -> Iterator[list[dict[str, object]]]:
    """Capture structlog output instead of printing it."""
    with capture_logs() as logs:
        yield logs


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
