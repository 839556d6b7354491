from __future__ import annotations

import asyncio
import logging

import aiohttp
import pytest

import myfox_wrapper.transport as transport_module
from myfox_wrapper.errors import ParseError, RemoteCallError
from myfox_wrapper.options import PortalSettings
from myfox_wrapper.parsers import CodeActionParser, LoginParser
from myfox_wrapper.transport import HtmlTransport, clean_set_cookie

from conftest import CODE_KO, CODE_OK, LOGIN_OK, FakeSession, MockResponse

NOT_FOUND_PAGE = (
    "<html><head><title>Myfox - Page not found</title></head><body></body></html>"
)


class CookieBox:
    def __init__(self, cookie: str | None = None) -> None:
        self.cookie = cookie

    def get_cookie(self) -> str | None:
        return self.cookie

    def set_cookie(self, cookie: str) -> None:
        self.cookie = cookie


def test_clean_set_cookie() -> None:
    assert (
        clean_set_cookie("PHPSESSID=abc123; expires=Thu, 01-Jan-2030; path=/")
        == "PHPSESSID=abc123"
    )
    assert clean_set_cookie(" a=b ") == "a=b"


def test_get_returns_text_and_sends_query() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(200, "<html>hi</html>"))
        transport = HtmlTransport(session)

        body = await transport.request("get", "/home/1", query_params={"_": 42})

        assert body == "<html>hi</html>"
        method, url, kwargs = session.request_calls[0]
        assert method == "GET"
        assert url == "https://myfox.me/home/1"
        assert kwargs["params"] == {"_": 42}
        assert kwargs["data"] is None
        assert kwargs["allow_redirects"] is False
        assert "Content-Type" not in kwargs["headers"]

    asyncio.run(_run())


def test_post_is_form_encoded_and_parsed() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(200, LOGIN_OK))
        transport = HtmlTransport(session, PortalSettings(base_url="https://example.test/"))

        parser = await transport.request(
            "POST", "/login", LoginParser(), payload={"username": "a@b.c", "password": "p w"}
        )

        assert isinstance(parser, LoginParser)
        assert parser.site_id == "1234"
        _, url, kwargs = session.request_calls[0]
        assert url == "https://example.test/login"
        assert kwargs["data"] == "username=a%40b.c&password=p+w"
        assert kwargs["headers"]["Content-Type"].startswith(
            "application/x-www-form-urlencoded"
        )

    asyncio.run(_run())


def test_cookie_round_trip() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(
            MockResponse(
                200, CODE_OK, headers={"Set-Cookie": "PHPSESSID=xyz; path=/; HttpOnly"}
            ),
            MockResponse(200, CODE_OK),
        )
        box = CookieBox()
        transport = HtmlTransport(session, cookie_hook=box)

        await transport.request("GET", "/a")
        await transport.request("GET", "/b", headers={"X-Test": "1"})

        assert box.cookie == "PHPSESSID=xyz"
        assert "Cookie" not in session.request_calls[0][2]["headers"]
        second_headers = session.request_calls[1][2]["headers"]
        assert second_headers["Cookie"] == "PHPSESSID=xyz"
        assert second_headers["X-Test"] == "1"

    asyncio.run(_run())


@pytest.mark.parametrize("status", [400, 403, 404, 500, 503])
def test_error_status_raises_with_status(status: int) -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(status, "oops"))
        transport = HtmlTransport(session)

        with pytest.raises(RemoteCallError) as err:
            await transport.request("GET", "/a")
        assert err.value.status == status

    asyncio.run(_run())


def test_forbidden_redirect_maps_to_403() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(302, "", headers={"Location": "/"}))
        transport = HtmlTransport(session)

        with pytest.raises(RemoteCallError) as err:
            await transport.request("GET", "/home/1")
        assert err.value.status == 403

    asyncio.run(_run())


def test_other_redirect_returns_body() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(302, "", headers={"Location": "/home/1"}))
        transport = HtmlTransport(session)

        assert await transport.request("GET", "/") == ""

    asyncio.run(_run())


def test_page_not_found_with_200_maps_to_404() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(200, NOT_FOUND_PAGE))
        transport = HtmlTransport(session)

        with pytest.raises(RemoteCallError) as err:
            await transport.request("GET", "/widget/1/scenario/on/9")
        assert err.value.status == 404

    asyncio.run(_run())


def test_code_ko_with_200_maps_to_400_with_message() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(200, CODE_KO))
        transport = HtmlTransport(session)

        with pytest.raises(RemoteCallError, match="Scenario unavailable") as err:
            await transport.request("GET", "/widget/1/scenario/on/9", CodeActionParser())
        assert err.value.status == 400

    asyncio.run(_run())


def test_parser_errors_propagate() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(200, "{not json"))
        transport = HtmlTransport(session)

        with pytest.raises(ParseError) as err:
            await transport.request("GET", "/a", CodeActionParser())
        assert err.value.status == 500

    asyncio.run(_run())


def test_client_errors_are_logged_redacted_and_reraised(
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(aiohttp.ClientError("password=hunter2 failed"))
        transport = HtmlTransport(session)

        with caplog.at_level(logging.ERROR):
            with pytest.raises(aiohttp.ClientError):
                await transport.request("GET", "/a")

        assert "hunter2" not in caplog.text
        assert "password=***" in caplog.text

    asyncio.run(_run())


def test_unreadable_body_is_replaced() -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(
            MockResponse(500, "", text_exc=aiohttp.ClientPayloadError("gzip"))
        )
        transport = HtmlTransport(session)

        with pytest.raises(RemoteCallError) as err:
            await transport.request("GET", "/a")
        assert err.value.status == 500

    asyncio.run(_run())


def test_body_preview_is_redacted(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    async def _run() -> None:
        monkeypatch.setattr(transport_module, "TRANSPORT_LOG_PREVIEW", True)
        session = FakeSession()
        session.queue_request(MockResponse(200, "hello someone@example.com"))
        transport = HtmlTransport(session)

        with caplog.at_level(logging.DEBUG, logger="myfox_wrapper.transport"):
            await transport.request("GET", "/a")

        assert "someone@example.com" not in caplog.text
        assert "***@***" in caplog.text

    asyncio.run(_run())


@pytest.mark.parametrize("body", ['{"msg": "oops"}', '{"code": 5}'])
def test_malformed_code_body_raises_parse_error(body: str) -> None:
    async def _run() -> None:
        session = FakeSession()
        session.queue_request(MockResponse(200, body), MockResponse(200, body))
        transport = HtmlTransport(session)

        with pytest.raises(ParseError) as err:
            await transport.request("GET", "/widget/1/scenario/on/9", CodeActionParser())
        assert err.value.status == 500
        assert await transport.request("GET", "/raw") == body

    asyncio.run(_run())
