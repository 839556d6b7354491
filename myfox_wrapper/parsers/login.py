"""Parser for the login form answer."""

from __future__ import annotations

from typing import Any

from ..errors import ParseError
from .base import ResponseParser, decode_json_model
from .models import LoginResponse


class LoginParser(ResponseParser):
    """Read ``{"rdt": ["https://myfox.me/home/<siteId>", 0]}``.

    A ``{"code": "KO"}`` answer leaves ``site_id`` empty and sets ``refused``.
    """

    def __init__(self) -> None:
        """Initialise without a site."""

        super().__init__()
        self.redirect: str | None = None
        self.site_id: str | None = None
        self.refused = False
        self.message: str | None = None

    def parse(self, body: str) -> None:
        response = decode_json_model(body, LoginResponse)
        url = response.redirect_url()
        if url is None:
            if response.code == "KO":
                self.refused = True
                self.message = response.message()
                return
            raise ParseError("Login answer carries neither a redirect nor a code")
        site_id = url.rstrip("/").rsplit("/", 1)[-1]
        if not site_id:
            raise ParseError("Login redirect does not name a site")
        self.redirect = url
        self.site_id = site_id

    def result(self) -> dict[str, Any]:
        return {"redirect": self.redirect, "site_id": self.site_id}


__all__ = ["LoginParser"]
