"""Response parsers for the Myfox portal."""
from __future__ import annotations

from .base import ResponseParser, decode_json_model
from .code_action import CodeActionParser
from .false_errors import check_false_errors
from .home import HomeParser
from .login import LoginParser

__all__ = [
    "CodeActionParser",
    "HomeParser",
    "LoginParser",
    "ResponseParser",
    "check_false_errors",
    "decode_json_model",
]
