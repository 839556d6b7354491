"""HTTP transport towards the Myfox HTML portal."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
from typing import Any, Protocol
from urllib.parse import urlencode

import aiohttp

from .const import STATUS_FORBIDDEN
from .errors import RemoteCallError
from .options import PortalSettings
from .parsers import ResponseParser, check_false_errors
from .sanitize import preview, redact_text

_LOGGER = logging.getLogger(__name__)

# Toggle to preview bodies in debug logs (redacted). Leave False by default.
TRANSPORT_LOG_PREVIEW = False

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
_REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class CookieHook(Protocol):
    """Hand-off point for the session cookie kept between calls."""

    def get_cookie(self) -> str | None:
        """Return the cookie to send, if any."""

    def set_cookie(self, cookie: str) -> None:
        """Remember the cookie received from the portal."""


def clean_set_cookie(value: str) -> str:
    """Return the ``name=value`` part of a ``Set-Cookie`` header."""

    return value.split(";", 1)[0].strip()


class HtmlTransport:
    """Thin async HTTP helper for the portal pages and widgets."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        settings: PortalSettings | None = None,
        *,
        cookie_hook: CookieHook | None = None,
    ) -> None:
        """Store the shared aiohttp session and portal settings."""

        self._session = session
        self._settings = settings or PortalSettings()
        self._base_url = self._settings.base_url.rstrip("/")
        self._cookie_hook = cookie_hook

    @property
    def settings(self) -> PortalSettings:
        """Return the portal settings."""

        return self._settings

    def _build_headers(
        self, headers: Mapping[str, str] | None, has_body: bool
    ) -> dict[str, str]:
        """Merge default, cookie and caller headers."""

        merged: dict[str, str] = {}
        if has_body:
            merged["Content-Type"] = "application/x-www-form-urlencoded; charset=UTF-8"
        merged.update(self._settings.headers)
        if self._cookie_hook is not None:
            cookie = self._cookie_hook.get_cookie()
            if cookie:
                merged["Cookie"] = cookie
        if headers:
            merged.update(headers)
        return merged

    async def request(
        self,
        method: str,
        path: str,
        parser: ResponseParser | None = None,
        payload: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        query_params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Perform a portal request.

        Return the closed ``parser`` when one is given, otherwise the body text.
        HTTP errors, the forbidden redirect and error pages served with a 200
        status raise ``RemoteCallError`` with the matching status.
        """

        method = method.upper()
        data: str | None = None
        if payload and method in _BODY_METHODS:
            data = urlencode(payload)
        request_headers = self._build_headers(headers, data is not None)
        url = path if path.startswith("http") else f"{self._base_url}{path}"
        _LOGGER.debug("HTTP %s %s", method, redact_text(url))

        try:
            async with self._session.request(
                method,
                url,
                params=dict(query_params) if query_params else None,
                data=data,
                headers=request_headers,
                allow_redirects=False,
                timeout=aiohttp.ClientTimeout(total=self._settings.timeout),
            ) as resp:
                ctype = resp.headers.get("Content-Type", "")
                try:
                    body_text = await resp.text()
                except (aiohttp.ClientError, UnicodeDecodeError):
                    body_text = "<no body>"

                if resp.status >= 400:
                    _LOGGER.error(
                        "HTTP error %s %s -> %s; body=%s",
                        method,
                        redact_text(url),
                        resp.status,
                        preview(body_text),
                    )
                    raise RemoteCallError(
                        "Error status code returned by Myfox.", status=resp.status
                    )

                if resp.status in _REDIRECT_STATUSES:
                    location = resp.headers.get("Location", "")
                    if location == self._settings.redirect_forbidden:
                        _LOGGER.debug("HTTP %s -> forbidden redirect", redact_text(url))
                        raise RemoteCallError(
                            "Myfox redirected to / because of forbidden access.",
                            status=STATUS_FORBIDDEN,
                        )

                set_cookie = resp.headers.get("Set-Cookie")
                if set_cookie and self._cookie_hook is not None:
                    self._cookie_hook.set_cookie(clean_set_cookie(set_cookie))

                if TRANSPORT_LOG_PREVIEW:
                    _LOGGER.debug(
                        "HTTP %s -> %s, ctype=%s, body[0:200]=%r",
                        redact_text(url),
                        resp.status,
                        ctype,
                        preview(body_text),
                    )
                else:
                    _LOGGER.debug(
                        "HTTP %s -> %s, ctype=%s", redact_text(url), resp.status, ctype
                    )
        except RemoteCallError:
            raise
        except asyncio.CancelledError:
            raise
        except (aiohttp.ClientError, TimeoutError) as err:
            _LOGGER.error(
                "Request %s %s failed (sanitized): %s",
                method,
                redact_text(url),
                redact_text(str(err)),
            )
            raise

        check_false_errors(body_text)
        if parser is None:
            return body_text
        parser.feed(body_text)
        return parser.close()


__all__ = ["CookieHook", "HtmlTransport", "TRANSPORT_LOG_PREVIEW", "clean_set_cookie"]
