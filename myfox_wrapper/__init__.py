"""Async client wrapper for the Myfox home automation web portal."""
from __future__ import annotations

from .capabilities import UNSUPPORTED, WrapperApiProto
from .common import CommonApi, Session
from .errors import (
    AlarmPasswordError,
    AuthenticationError,
    ForbiddenSiteError,
    InvalidActionError,
    InvalidOptionsError,
    MyfoxError,
    ParseError,
    RemoteCallError,
    UnsupportedOperationError,
)
from .html_api import HtmlApi
from .macro import MacroListenerRegistry
from .options import (
    AccountCredentials,
    PortalSettings,
    WrapperOptions,
    build_credentials,
    build_options,
)
from .persistent_state import PersistentState, StateStore
from .rest_api import RestApi
from .wrapper import MyfoxWrapper, create_wrapper

__all__ = [
    "AccountCredentials",
    "AlarmPasswordError",
    "AuthenticationError",
    "CommonApi",
    "ForbiddenSiteError",
    "HtmlApi",
    "InvalidActionError",
    "InvalidOptionsError",
    "MacroListenerRegistry",
    "MyfoxError",
    "MyfoxWrapper",
    "ParseError",
    "PersistentState",
    "PortalSettings",
    "RemoteCallError",
    "RestApi",
    "Session",
    "StateStore",
    "UNSUPPORTED",
    "UnsupportedOperationError",
    "WrapperApiProto",
    "WrapperOptions",
    "build_credentials",
    "build_options",
    "create_wrapper",
]
