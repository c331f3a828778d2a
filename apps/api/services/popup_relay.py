"""
Cross-window auth relay between an embedded view and its parent.

The embedded side (``PopupRelay``) asks the parent to drive sign-in,
sign-out, or to hand over a token. Every request installs its own one-shot
listener and timer on the channel and is correlated by ``request_id``;
nothing is multiplexed through a shared listener.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Set, Tuple, Union

from services.context_detection import ExecutionContext
from services.errors import RelayClosedError, RelayError, RelayTimeoutError, RelayUnavailableError

logger = logging.getLogger(__name__)

SIGNIN_REQUEST = "auth:signin-request"
SIGNOUT_REQUEST = "auth:signout-request"
TOKEN_REQUEST = "auth:token-request"
TOKEN_RESPONSE = "auth:token-response"
AUTH_READY = "auth:ready"
AUTH_ERROR = "auth:error"
CHANNEL_CLOSED = "relay:closed"

RESPONSE_TYPES = {
    SIGNIN_REQUEST: AUTH_READY,
    SIGNOUT_REQUEST: AUTH_READY,
    TOKEN_REQUEST: TOKEN_RESPONSE,
}

ANY_ORIGIN = "*"


def build_envelope(message_type: str, request_id: Optional[str] = None, **payload: Any) -> Dict[str, Any]:
    envelope: Dict[str, Any] = {
        "type": message_type,
        "timestamp": int(time.time() * 1000),
    }
    if request_id:
        envelope["request_id"] = request_id
    envelope.update(payload)
    return envelope


def origin_allowed(origin: Optional[str], allowed: Iterable[str]) -> bool:
    allowed = list(allowed)
    if ANY_ORIGIN in allowed:
        return True
    return bool(origin) and origin in allowed


# ==================== Channels ====================

@dataclass
class MessageEvent:
    data: Any
    origin: str
    reply_to: Optional["MessageChannel"] = None


Listener = Callable[[MessageEvent], None]


class MessageChannel(ABC):
    """One end of a cross-window channel, modeled on window message events."""

    def __init__(self, origin: str):
        self.origin = origin
        self.closed = False
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, event: MessageEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Relay listener failed")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.dispatch(MessageEvent(data={"type": CHANNEL_CLOSED}, origin=self.origin))

    @abstractmethod
    async def post_message(self, data: Dict[str, Any], target_origin: str = ANY_ORIGIN) -> None:
        """Deliver ``data`` to the other end if its origin matches ``target_origin``."""


class InProcessChannel(MessageChannel):
    """Channel endpoint paired with a peer in the same event loop."""

    def __init__(self, origin: str):
        super().__init__(origin)
        self._peer: Optional[InProcessChannel] = None

    @classmethod
    def pair(cls, child_origin: str, parent_origin: str) -> Tuple["InProcessChannel", "InProcessChannel"]:
        child = cls(child_origin)
        parent = cls(parent_origin)
        child._peer = parent
        parent._peer = child
        return child, parent

    async def post_message(self, data: Dict[str, Any], target_origin: str = ANY_ORIGIN) -> None:
        peer = self._peer
        if self.closed or peer is None or peer.closed:
            raise RelayClosedError("Channel is closed.")
        if target_origin != ANY_ORIGIN and target_origin != peer.origin:
            logger.debug("Dropped message for %s; peer origin is %s", target_origin, peer.origin)
            return
        payload = json.loads(json.dumps(data))
        loop = asyncio.get_running_loop()
        loop.call_soon(peer.dispatch, MessageEvent(data=payload, origin=self.origin, reply_to=peer))

    def close(self) -> None:
        peer = self._peer
        super().close()
        if peer is not None and not peer.closed:
            peer.close()


# ==================== Request state machine ====================

class RequestState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"
    RESOLVED = "resolved"
    TIMED_OUT = "timed_out"
    CLOSED = "closed"


class RelayRequest:
    """One outstanding relay request with its own listener and timer."""

    def __init__(
        self,
        channel: MessageChannel,
        message_type: str,
        timeout: float,
        *,
        target_origin: str = ANY_ORIGIN,
        accept_origins: Optional[Iterable[str]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ):
        if message_type not in RESPONSE_TYPES:
            raise ValueError(f"Unsupported relay request type: {message_type}")
        self.channel = channel
        self.message_type = message_type
        self.response_type = RESPONSE_TYPES[message_type]
        self.timeout = float(timeout)
        self.target_origin = target_origin
        self.accept_origins = list(accept_origins) if accept_origins is not None else [ANY_ORIGIN]
        self.payload = payload or {}
        self.request_id = uuid.uuid4().hex
        self.state = RequestState.IDLE
        self._future: Optional[asyncio.Future] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    async def send(self) -> Dict[str, Any]:
        if self.state != RequestState.IDLE:
            raise RuntimeError(f"Relay request {self.request_id} already sent.")

        loop = asyncio.get_running_loop()
        self._future = loop.create_future()
        self.channel.add_listener(self._on_message)
        self._timer = loop.call_later(self.timeout, self._on_timeout)
        self.state = RequestState.AWAITING_RESPONSE

        envelope = build_envelope(self.message_type, self.request_id, **self.payload)
        try:
            await self.channel.post_message(envelope, self.target_origin)
        except Exception as exc:
            self._settle(RequestState.CLOSED, exc=exc)

        try:
            return await self._future
        except asyncio.CancelledError:
            self.cancel()
            raise

    def cancel(self) -> None:
        if self.state == RequestState.AWAITING_RESPONSE:
            self._finish(RequestState.CLOSED)
            if self._future is not None and not self._future.done():
                self._future.cancel()

    def _on_message(self, event: MessageEvent) -> None:
        if self.state != RequestState.AWAITING_RESPONSE:
            return
        data = event.data
        if not isinstance(data, dict):
            return
        message_type = data.get("type")
        if message_type == CHANNEL_CLOSED:
            self._settle(RequestState.CLOSED, exc=RelayClosedError("Channel closed before a response arrived."))
            return
        if message_type not in (self.response_type, AUTH_ERROR):
            return
        if data.get("request_id") != self.request_id:
            return
        if not origin_allowed(event.origin, self.accept_origins):
            logger.warning("Ignored %s from unexpected origin %s", message_type, event.origin)
            return

        if message_type == AUTH_ERROR:
            self._settle(RequestState.RESOLVED, exc=RelayError(str(data.get("message") or "Parent rejected request.")))
        else:
            self._settle(RequestState.RESOLVED, result=data)

    def _on_timeout(self) -> None:
        if self.state != RequestState.AWAITING_RESPONSE:
            return
        logger.warning("Relay %s (%s) timed out after %ss", self.message_type, self.request_id, self.timeout)
        self._settle(
            RequestState.TIMED_OUT,
            exc=RelayTimeoutError(self.message_type, self.request_id, self.timeout),
        )

    def _settle(
        self,
        state: RequestState,
        *,
        result: Optional[Dict[str, Any]] = None,
        exc: Optional[BaseException] = None,
    ) -> None:
        if self.state != RequestState.AWAITING_RESPONSE:
            return
        self._finish(state)
        future = self._future
        if future is None or future.done():
            return
        if exc is not None:
            future.set_exception(exc)
        else:
            future.set_result(result or {})

    def _finish(self, state: RequestState) -> None:
        self.state = state
        self.channel.remove_listener(self._on_message)
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


# ==================== Embedded side ====================

ReadyHook = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


class PopupRelay:
    """Embedded-view client that asks the parent window to run auth flows."""

    def __init__(
        self,
        channel: MessageChannel,
        *,
        parent_origin: str = ANY_ORIGIN,
        context: ExecutionContext = ExecutionContext.IFRAME,
        signin_timeout: float = 300.0,
        signout_timeout: float = 5.0,
        token_timeout: float = 5.0,
        on_ready: Optional[ReadyHook] = None,
    ):
        self.channel = channel
        self.parent_origin = parent_origin
        self.context = context
        self.signin_timeout = signin_timeout
        self.signout_timeout = signout_timeout
        self.token_timeout = token_timeout
        self.on_ready = on_ready
        self._pending: Set[RelayRequest] = set()

    @classmethod
    def from_settings(cls, channel: MessageChannel, config, **kwargs: Any) -> "PopupRelay":
        kwargs.setdefault("signin_timeout", config.POPUP_SIGNIN_TIMEOUT_SECONDS)
        kwargs.setdefault("signout_timeout", config.POPUP_SIGNOUT_TIMEOUT_SECONDS)
        kwargs.setdefault("token_timeout", config.POPUP_TOKEN_TIMEOUT_SECONDS)
        return cls(channel, **kwargs)

    def outstanding(self) -> int:
        return len(self._pending)

    async def request_sign_in(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        response = await self._request(SIGNIN_REQUEST, self.signin_timeout if timeout is None else timeout)
        await self._notify_ready(response)
        return response

    async def request_sign_out(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        response = await self._request(SIGNOUT_REQUEST, self.signout_timeout if timeout is None else timeout)
        await self._notify_ready(response)
        return response

    async def request_token(self, timeout: Optional[float] = None) -> Optional[str]:
        response = await self._request(TOKEN_REQUEST, self.token_timeout if timeout is None else timeout)
        return response.get("token") or None

    def cancel_all(self) -> None:
        """Drop every outstanding request, e.g. when the view unmounts."""
        for request in list(self._pending):
            request.cancel()

    async def _request(self, message_type: str, timeout: float) -> Dict[str, Any]:
        if self.context != ExecutionContext.IFRAME:
            raise RelayUnavailableError("Popup relay is only used from an embedded view.")
        accept = [self.parent_origin] if self.parent_origin != ANY_ORIGIN else [ANY_ORIGIN]
        request = RelayRequest(
            self.channel,
            message_type,
            timeout,
            target_origin=self.parent_origin,
            accept_origins=accept,
        )
        self._pending.add(request)
        try:
            return await request.send()
        finally:
            self._pending.discard(request)

    async def _notify_ready(self, response: Dict[str, Any]) -> None:
        if self.on_ready is None:
            return
        result = self.on_ready(response)
        if inspect.isawaitable(result):
            await result


# ==================== Parent side ====================

class ParentAuthActions(Protocol):
    async def sign_in(self) -> None: ...

    async def sign_out(self) -> None: ...

    async def get_token(self) -> Optional[str]: ...


class ParentAuthHandler:
    """Parent-window dispatcher for requests coming from embedded views."""

    def __init__(
        self,
        actions: ParentAuthActions,
        allowed_origins: Iterable[str],
        *,
        trusted_demo: bool = False,
    ):
        self.actions = actions
        self.allowed_origins = [str(origin).strip() for origin in allowed_origins if str(origin).strip()]
        if ANY_ORIGIN in self.allowed_origins and not trusted_demo:
            raise ValueError("Wildcard relay origins are only allowed in trusted demo contexts.")
        self.trusted_demo = trusted_demo
        self._tasks: Set[asyncio.Task] = set()
        self._channels: List[MessageChannel] = []

    def attach(self, channel: MessageChannel) -> None:
        channel.add_listener(self._on_message)
        self._channels.append(channel)

    def detach(self) -> None:
        for channel in self._channels:
            channel.remove_listener(self._on_message)
        self._channels.clear()
        for task in list(self._tasks):
            task.cancel()

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_message(self, event: MessageEvent) -> None:
        data = event.data
        if not isinstance(data, dict) or data.get("type") not in RESPONSE_TYPES:
            return
        task = asyncio.get_running_loop().create_task(self.handle(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def handle(self, event: MessageEvent) -> Optional[Dict[str, Any]]:
        data = event.data if isinstance(event.data, dict) else {}
        message_type = data.get("type")
        if message_type not in RESPONSE_TYPES:
            return None
        if not origin_allowed(event.origin, self.allowed_origins):
            logger.warning("Rejected %s from origin %s", message_type, event.origin)
            return None

        request_id = data.get("request_id")
        try:
            if message_type == SIGNIN_REQUEST:
                await self.actions.sign_in()
                reply = build_envelope(AUTH_READY, request_id, flow="signin")
            elif message_type == SIGNOUT_REQUEST:
                await self.actions.sign_out()
                reply = build_envelope(AUTH_READY, request_id, flow="signout")
            else:
                token = await self.actions.get_token()
                reply = build_envelope(TOKEN_RESPONSE, request_id, token=token)
        except RelayError as exc:
            reply = build_envelope(AUTH_ERROR, request_id, message=str(exc), request_type=message_type)

        if event.reply_to is not None:
            target = ANY_ORIGIN if self.trusted_demo else event.origin
            await event.reply_to.post_message(reply, target)
        return reply
