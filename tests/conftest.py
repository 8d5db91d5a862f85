"""
Pytest configuration and fixtures for tests.

This module provides:
- A fake WebSocket connection standing in for the Tuteliq server
- A connector fixture that hands it to the session under test
"""

from __future__ import annotations

from typing import Any

import pytest

from tests.fakes import FakeWebSocket


@pytest.fixture
def fake_ws() -> FakeWebSocket:
    return FakeWebSocket()


@pytest.fixture
def connector(fake_ws: FakeWebSocket):
    """Connector returning ``fake_ws``; records each call in ``.calls``."""
    calls: list[tuple[str, dict[str, Any]]] = []

    async def _connect(url: str, **kwargs: Any) -> FakeWebSocket:
        calls.append((url, kwargs))
        return fake_ws

    _connect.calls = calls  # type: ignore[attr-defined]
    return _connect
