"""Detection of portal errors returned with a 200 status."""

from __future__ import annotations

import json

from bs4 import BeautifulSoup
from pydantic import ValidationError

from ..const import STATUS_BAD_REQUEST, STATUS_NOT_FOUND
from ..errors import RemoteCallError
from .models import CodeResponse

_NOT_FOUND_MARKER = "Page not found"


def check_not_found(body: str) -> None:
    """Raise a 404 error when ``body`` is the portal "page not found" page."""

    if "<title" not in body.lower():
        return
    soup = BeautifulSoup(body, "html.parser")
    title = soup.select_one("head title")
    if title is not None and _NOT_FOUND_MARKER in title.get_text():
        raise RemoteCallError(
            "Page not found case returned by Myfox.", status=STATUS_NOT_FOUND
        )


def check_code_ko(body: str) -> None:
    """Raise a 400 error when ``body`` is a JSON ``{"code": "KO"}`` answer."""

    stripped = body.lstrip()
    if not stripped.startswith("{"):
        return
    try:
        raw = json.loads(stripped)
    except ValueError:
        return
    if not isinstance(raw, dict):
        return
    try:
        response = CodeResponse.model_validate(raw)
    except ValidationError:
        # Not a code answer; the response parser reports malformed bodies.
        return
    if response.code == "KO":
        message = response.message() or "Code KO returned by Myfox."
        raise RemoteCallError(message, status=STATUS_BAD_REQUEST)


def check_false_errors(body: str) -> None:
    """Turn 200 answers that describe an error into ``RemoteCallError``."""

    check_not_found(body)
    check_code_ko(body)


__all__ = ["check_code_ko", "check_false_errors", "check_not_found"]
