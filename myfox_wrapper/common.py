"""Authenticated call orchestration and macro engine shared by wrapper variants."""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Callable, Coroutine, Mapping, Sequence
import copy
from dataclasses import dataclass, field, replace
import logging
from time import monotonic as time_mod
from typing import Any

import aiohttp
import voluptuous as vol

from .const import MACRO_DELAYED, MACRO_FINISHED, MACRO_PROGRESS, STATUS_FORBIDDEN
from .errors import (
    AuthenticationError,
    ForbiddenSiteError,
    MyfoxError,
    RemoteCallError,
)
from .macro import (
    Action,
    CompletionCallback,
    MacroListener,
    MacroListenerRegistry,
    new_macro_id,
    validate_action,
)
from .options import (
    AccountCredentials,
    WrapperOptions,
    build_credentials,
    build_options,
)
from .parsers import ResponseParser
from .persistent_state import StateListener, StateStore
from .sanitize import mask_identifier

_LOGGER = logging.getLogger(__name__)

_COOKIE_KEY = "cookie"


@dataclass(frozen=True, slots=True)
class Session:
    """Authenticated context; replaced as a whole on successful authentication.

    ``cookie_jar`` is owned by the transport and keeps its identity across
    replacements.
    """

    authenticated_until: float = 0.0
    authenticated_data: Any = None
    authenticated_site_id: str | None = None
    cookie_jar: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ActionDomain:
    """How one family of actions is validated, sent and reflected in state."""

    name: str
    schema: vol.Schema
    method: str
    step_name: str
    build_path: Callable[[Action], str]
    build_query: Callable[[Action], Mapping[str, Any] | None] | None = None
    parser_factory: Callable[[], ResponseParser] | None = None
    state_label: str | None = None
    apply_effect: Callable[[Any, Action], Any] | None = None


class CommonApi(ABC):
    """Session handling, retry-bounded authentication and macro sequencing."""

    def __init__(
        self,
        options: Mapping[str, Any] | WrapperOptions | None = None,
        credentials: Mapping[str, Any] | AccountCredentials | None = None,
        *,
        states: StateStore | None = None,
        macro_listeners: MacroListenerRegistry | None = None,
    ) -> None:
        """Validate configuration and create an empty session."""

        self.options = build_options(options)
        self.credentials = build_credentials(credentials)
        self.states = states if states is not None else StateStore()
        self.macro_listeners = (
            macro_listeners if macro_listeners is not None else MacroListenerRegistry()
        )
        self.session = Session()
        self._tasks: set[asyncio.Task[Any]] = set()

    # ----------------- Session -----------------

    def is_maybe_authenticated(self) -> bool:
        """Return ``True`` while the last authentication is assumed valid."""

        return self.session.authenticated_until > time_mod()

    def get_cookie(self) -> str | None:
        """Return the portal cookie kept with the session."""

        return self.session.cookie_jar.get(_COOKIE_KEY)

    def set_cookie(self, cookie: str) -> None:
        """Keep the portal cookie for the next calls."""

        self.session.cookie_jar[_COOKIE_KEY] = cookie

    @abstractmethod
    async def authenticate(self, auth_data: Any) -> tuple[Any, str | None]:
        """Authenticate against the portal.

        ``auth_data`` comes from the previous authentication (or ``None``).
        Return ``(new_auth_data, site_id)``; raise on failure.
        """

    @abstractmethod
    async def call_distant(
        self,
        path: str,
        method: str,
        parser: ResponseParser | None = None,
        query_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Perform the remote call with the current session.

        Do not use directly; ``call_api`` adds the authentication layer.
        """

    async def call_api(
        self,
        path: str,
        method: str,
        parser: ResponseParser | None = None,
        query_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Call a remote operation, authenticating first when needed.

        A call made on a session assumed valid that is answered with a 403 is
        retried once after a forced authentication. The retried call is never
        retried again.
        """

        request = (path, method, parser, query_params, headers, payload)
        if not self.options.auto_authentication:
            return await self._invoke(*request)

        credits = self.options.auto_auth_retry_credits
        if not self.is_maybe_authenticated():
            await self._authenticate_with_retries(credits)
            return await self._invoke(*request)

        try:
            return await self._invoke(*request)
        except MyfoxError as err:
            if err.status != STATUS_FORBIDDEN:
                raise
            _LOGGER.info("Session rejected by Myfox (%s); authenticating again", err)

        await self._authenticate_with_retries(credits)
        return await self._invoke(*request)

    async def _invoke(
        self,
        path: str,
        method: str,
        parser: ResponseParser | None,
        query_params: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        payload: Mapping[str, Any] | None,
    ) -> Any:
        """Run ``call_distant`` converting transport failures to ``RemoteCallError``."""

        try:
            return await self.call_distant(
                path, method, parser, query_params, headers, payload
            )
        except (aiohttp.ClientError, TimeoutError) as err:
            raise RemoteCallError(str(err) or type(err).__name__) from err

    async def _authenticate_with_retries(self, retry_credits: int) -> None:
        """Authenticate, retrying up to ``retry_credits`` more times."""

        attempt = 0
        while True:
            attempt += 1
            try:
                auth_data, site_id = await self.authenticate(
                    self.session.authenticated_data
                )
            except ForbiddenSiteError:
                raise
            except (MyfoxError, aiohttp.ClientError, TimeoutError) as err:
                if retry_credits > 0:
                    retry_credits -= 1
                    _LOGGER.warning(
                        "Authentication attempt %s failed: %s (%s retries left)",
                        attempt,
                        err,
                        retry_credits,
                    )
                    continue
                _LOGGER.error(
                    "Authentication failed after %s attempt(s): %s", attempt, err
                )
                raise AuthenticationError(
                    f"Authentication failed after {attempt} attempt(s): {err}"
                ) from err
            break

        self.session = replace(
            self.session,
            authenticated_until=time_mod() + self.options.auth_validity,
            authenticated_data=auth_data,
            authenticated_site_id=site_id,
        )
        _LOGGER.info(
            "Authenticated on site %s for %ss",
            mask_identifier(site_id),
            self.options.auth_validity,
        )

    # ----------------- Listeners -----------------

    def add_state_listener(self, label: str, listener: StateListener) -> bool:
        """Register ``listener`` on the ``label`` persistent state channel."""

        return self.states.add_listener(label, listener)

    def add_macro_listener(self, listener: MacroListener) -> bool:
        """Register a macro progress listener."""

        return self.macro_listeners.add_macro_listener(listener)

    def remove_macro_listener(self, listener: MacroListener) -> bool:
        """Unregister a macro progress listener."""

        return self.macro_listeners.remove_macro_listener(listener)

    def notify_macro_listeners(
        self, err: Exception | None, payload: Mapping[str, Any] | None
    ) -> None:
        """Broadcast a macro event to the registered listeners."""

        self.macro_listeners.notify_macro_listeners(err, payload)

    # ----------------- Macro engine -----------------

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop, keeping a reference to it."""

        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        """Forget a finished background task, logging its failure."""

        self._tasks.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.error("Macro task failed: %s", err, exc_info=err)

    def _deliver(
        self,
        callback: CompletionCallback,
        err: Exception | None,
        payload: dict[str, Any] | None,
    ) -> None:
        """Invoke a completion callback; its failures never stop the macro."""

        try:
            callback(err, payload)
        except Exception:
            _LOGGER.exception("Macro callback %r failed", callback)

    def _start_macro(
        self,
        domain: ActionDomain,
        first: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any,
        next_actions: Sequence[Mapping[str, Any] | Action],
    ) -> asyncio.Task[Any]:
        """Validate every action then schedule the first step."""

        action = validate_action(domain.schema, first)
        queued = [validate_action(domain.schema, item) for item in next_actions]
        # Raise before the step coroutine exists when no loop is running.
        asyncio.get_running_loop()

        if action.delay > 0 or queued:
            if macro_id is None:
                macro_id = new_macro_id()
        else:
            macro_id = None

        step = getattr(self, domain.step_name)
        return self._spawn(step(action, callback, macro_id, *queued))

    async def _run_action_step(
        self,
        domain: ActionDomain,
        action: Mapping[str, Any] | Action,
        callback: CompletionCallback,
        macro_id: Any,
        next_actions: Sequence[Mapping[str, Any] | Action],
    ) -> None:
        """Execute (or delay) one macro step and chain the next one."""

        action = validate_action(domain.schema, action)
        next_actions = [validate_action(domain.schema, item) for item in next_actions]
        remaining = len(next_actions)
        if action.delay > 0:
            self._spawn(self._run_delayed_step(domain, action, macro_id, next_actions))
            self._deliver(
                callback,
                None,
                {"id": macro_id, "state": MACRO_DELAYED, "remaining": remaining},
            )
            return

        parser = domain.parser_factory() if domain.parser_factory else None
        query = domain.build_query(action) if domain.build_query else None
        try:
            result = await self.call_api(
                domain.build_path(action), domain.method, parser, query
            )
        except MyfoxError as err:
            _LOGGER.error(
                "%s action %s failed (macro %s): %s",
                domain.name,
                action.action,
                macro_id,
                err,
            )
            self._deliver(callback, err, None)
            return

        self._apply_action_effect(domain, action)
        data = result.result() if isinstance(result, ResponseParser) else result
        self._deliver(
            callback,
            None,
            {
                "id": macro_id,
                "data": data,
                "state": MACRO_PROGRESS if next_actions else MACRO_FINISHED,
                "remaining": remaining,
            },
        )

        if next_actions:
            step = getattr(self, domain.step_name)
            self._spawn(
                step(
                    next_actions[0],
                    self.notify_macro_listeners,
                    macro_id,
                    *next_actions[1:],
                )
            )

    async def _run_delayed_step(
        self,
        domain: ActionDomain,
        action: Action,
        macro_id: Any,
        next_actions: Sequence[Action],
    ) -> None:
        """Wait for the step delay then execute it, reporting to listeners."""

        await asyncio.sleep(action.delay / 1000)
        step = getattr(self, domain.step_name)
        await step(
            replace(action, delay=0), self.notify_macro_listeners, macro_id, *next_actions
        )

    def _apply_action_effect(self, domain: ActionDomain, action: Action) -> None:
        """Push the state implied by a successful action (copy-on-write)."""

        if domain.state_label is None or domain.apply_effect is None:
            return
        current = copy.deepcopy(self.states.value(domain.state_label, {}))
        updated = domain.apply_effect(current, action)
        if updated is not None:
            self.states.push(domain.state_label, updated)


__all__ = ["ActionDomain", "CommonApi", "Session"]
