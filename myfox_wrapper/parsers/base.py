"""Response parser base classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
import json
import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import ParseError
from ..sanitize import preview

_LOGGER = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ResponseParser(ABC):
    """Sink for a response body exposing parsed fields as attributes.

    The transport feeds decoded text chunks then calls ``close``; malformed
    input raises ``ParseError``.
    """

    def __init__(self) -> None:
        """Initialise an empty buffer."""

        self._chunks: list[str] = []
        self.done = False

    def feed(self, chunk: str) -> None:
        """Buffer a decoded body chunk."""

        if self.done:
            raise ParseError("Parser already closed")
        self._chunks.append(chunk)

    def close(self) -> ResponseParser:
        """Parse the buffered body and return ``self``."""

        body = "".join(self._chunks)
        self._chunks.clear()
        self.parse(body)
        self.done = True
        return self

    @abstractmethod
    def parse(self, body: str) -> None:
        """Extract fields from the complete ``body``."""

    def result(self) -> Any:
        """Return the value handed back to callers of the wrapper."""

        return self


def decode_json_model(body: str, model: type[ModelT]) -> ModelT:
    """Return ``body`` validated as ``model`` or raise ``ParseError``."""

    try:
        raw = json.loads(body)
    except ValueError as err:
        _LOGGER.debug("Invalid JSON body: %s", preview(body))
        raise ParseError(f"Invalid JSON returned by Myfox: {err}") from err
    if not isinstance(raw, dict):
        raise ParseError(f"Unexpected JSON shape returned by Myfox: {type(raw).__name__}")
    try:
        return model.model_validate(raw)
    except ValidationError as err:
        raise ParseError(f"Unexpected JSON format returned by Myfox: {err}") from err


__all__ = ["ResponseParser", "decode_json_model"]
