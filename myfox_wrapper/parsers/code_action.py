"""Parser for widget actions answering with an OK/KO code."""

from __future__ import annotations

from typing import Any

from ..errors import ParseError
from .base import ResponseParser, decode_json_model
from .models import CodeResponse

_STATUSES = {"OK": "ok", "KO": "ko"}


class CodeActionParser(ResponseParser):
    """Read ``{"code": "OK"|"KO"}`` into ``status`` (``'ok'`` / ``'ko'``)."""

    def __init__(self) -> None:
        """Initialise without a status."""

        super().__init__()
        self.status: str | None = None
        self.message: str | None = None

    def parse(self, body: str) -> None:
        response = decode_json_model(body, CodeResponse)
        status = _STATUSES.get(response.code or "")
        if status is None:
            raise ParseError(f"Unknown code returned by Myfox: {response.code!r}")
        self.status = status
        self.message = response.message()

    def result(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"status": self.status}
        if self.message is not None:
            payload["message"] = self.message
        return payload


__all__ = ["CodeActionParser"]
