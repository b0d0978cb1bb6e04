# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest configuration and shared fixtures for Wharf tests."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import pytest

from wharf.daemon.engine_client import EngineClient

Handler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def engine_error(status: int, message: str) -> httpx.Response:
    """An engine-style error response."""
    return httpx.Response(status, json={"message": message})


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Handler):
        self.requests: list[httpx.Request] = []

        async def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        super().__init__(record)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def make_engine() -> Callable[[Handler], tuple[EngineClient, RecordingTransport]]:
    """Build an engine client backed by a request handler."""
    def _make(handler: Handler) -> tuple[EngineClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        return EngineClient(transport=transport), transport
    return _make
