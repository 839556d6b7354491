# ruff: noqa: D100,D101,D102,D103,D105,D107,INP001
from __future__ import annotations

import asyncio
import copy
import inspect
from typing import Any, Callable

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers used across the suite."""

    if not config.pluginmanager.hasplugin("pytest_asyncio"):
        config.addinivalue_line(
            "markers", "asyncio: mark test as requiring asyncio event loop support."
        )


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async tests when pytest-asyncio is unavailable."""

    if pyfuncitem.config.pluginmanager.hasplugin("pytest_asyncio"):
        return None

    testfunction = pyfuncitem.obj
    if not inspect.iscoroutinefunction(testfunction):
        return None

    marker = pyfuncitem.get_closest_marker("asyncio")
    if marker is None:
        return None

    with asyncio.Runner(debug=False) as runner:
        runner.run(testfunction(**pyfuncitem.funcargs))
    return True


class MockResponse:
    """Minimal stand-in for ``aiohttp.ClientResponse`` used as a context manager."""

    def __init__(
        self,
        status: int,
        text_data: str | Callable[[], str] = "",
        *,
        headers: dict[str, str] | None = None,
        text_exc: Exception | None = None,
    ) -> None:
        self.status = status
        self._text = text_data
        self._text_exc = text_exc
        self.headers = headers or {}
        self.text_calls = 0

    async def __aenter__(self) -> MockResponse:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def text(self) -> str:
        self.text_calls += 1
        if self._text_exc is not None:
            raise self._text_exc
        return self._text() if callable(self._text) else self._text


class FakeSession:
    """Queue-backed replacement for ``aiohttp.ClientSession.request``."""

    def __init__(self) -> None:
        self._request_queue: list[Any] = []
        self.request_calls: list[tuple[str, str, dict[str, Any]]] = []

    def queue_request(self, *responses: Any) -> None:
        self._request_queue.extend(responses)

    def request(self, method: str, url: str, *args: Any, **kwargs: Any) -> Any:
        kwargs.pop("timeout", None)
        self.request_calls.append((method, url, copy.deepcopy(kwargs)))
        if not self._request_queue:
            raise AssertionError("Unexpected request call with no queued response")
        result = self._request_queue.pop(0)
        if callable(result):
            result = result()
        if isinstance(result, Exception):
            raise result
        return result


LOGIN_OK = '{"rdt": ["https://myfox.me/home/1234", 0]}'
CODE_OK = '{"code": "OK"}'
CODE_KO = '{"code": "KO", "msg": [["Scenario unavailable", "error"]]}'
CREDENTIALS = {"username": "someone@example.com", "password": "s3cret"}
OPTIONS = {"myfox_site_ids": [1234]}
HOME_PAGE = """
<html><head><title>Myfox - Home</title></head>
<body>
  <div id="userPanel"><span class="site"><a href="/home/1234">My House</a></span></div>
  <div id="masterStatus"><a href="#"><span class="icon icon-alarm-partial"></span></a></div>
</body></html>
"""
