"""Pydantic models for JSON bodies returned by the Myfox portal."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class CodeResponse(BaseModel):
    """``{"code": "OK"}`` or ``{"code": "KO", "msg": [[text, level], ...]}``."""

    model_config = ConfigDict(extra="allow")

    code: str | None = None
    msg: list[Any] | None = None

    @field_validator("code", mode="before")
    @classmethod
    def _upper_code(cls, value: Any) -> Any:
        """Normalise the code casing."""

        if isinstance(value, str):
            return value.strip().upper()
        return value

    def message(self) -> str | None:
        """Return the first portal message when present."""

        if not self.msg:
            return None
        first = self.msg[0]
        if isinstance(first, list) and first:
            return str(first[0])
        return str(first)


class LoginResponse(CodeResponse):
    """Login answer: a redirect target (``rdt``) on success or a KO code."""

    rdt: list[Any] | None = None

    def redirect_url(self) -> str | None:
        """Return the redirect URL of a successful login."""

        if not self.rdt:
            return None
        target = self.rdt[0]
        return target if isinstance(target, str) and target else None


__all__ = ["CodeResponse", "LoginResponse"]
