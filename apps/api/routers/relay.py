"""
WebSocket endpoint where the API plays the parent window for an embedded client.

The client sends the same ``auth:*`` envelopes it would post to a parent
window and receives replies correlated by ``request_id``.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from config import is_demo_mode, settings
from routers.auth_scope import DEMO_SESSION_COOKIE, build_auth_facade
from services.auth_facade import AuthFacade
from services.errors import AuthProviderError, RelayClosedError, RelayError
from services.popup_relay import (
    ANY_ORIGIN,
    MessageChannel,
    MessageEvent,
    ParentAuthHandler,
    origin_allowed,
)

router = APIRouter()
logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008


class WebSocketChannel(MessageChannel):
    """Channel endpoint backed by one accepted WebSocket."""

    def __init__(self, websocket: WebSocket, peer_origin: str, origin: str = "server"):
        super().__init__(origin)
        self.websocket = websocket
        self.peer_origin = peer_origin

    async def post_message(self, data: Dict[str, Any], target_origin: str = ANY_ORIGIN) -> None:
        if self.closed:
            raise RelayClosedError("Channel is closed.")
        if target_origin != ANY_ORIGIN and target_origin != self.peer_origin:
            logger.debug("Dropped message for %s; peer origin is %s", target_origin, self.peer_origin)
            return
        await self.websocket.send_text(json.dumps(data))

    async def run(self) -> None:
        """Dispatch incoming messages until the client disconnects."""
        while True:
            try:
                raw = await self.websocket.receive_text()
            except WebSocketDisconnect:
                break
            try:
                data = json.loads(raw)
            except ValueError:
                logger.debug("Ignored non-JSON relay frame")
                continue
            self.dispatch(MessageEvent(data=data, origin=self.peer_origin, reply_to=self))


class ServerAuthActions:
    """Parent-side auth actions backed by the connection's auth facade."""

    def __init__(self, facade: Optional[AuthFacade]):
        self.facade = facade

    async def sign_in(self) -> None:
        if self.facade is None or not self.facade.is_signed_in:
            raise RelayError("Sign-in has to complete in the parent window.")

    async def sign_out(self) -> None:
        if self.facade is None:
            return
        try:
            await self.facade.sign_out()
        except AuthProviderError as exc:
            raise RelayError(str(exc.detail.get("message"))) from exc

    async def get_token(self) -> Optional[str]:
        if self.facade is None:
            return None
        try:
            return await self.facade.get_token()
        except AuthProviderError as exc:
            raise RelayError(str(exc.detail.get("message"))) from exc


def _socket_token(websocket: WebSocket) -> Optional[str]:
    header = websocket.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return websocket.query_params.get("token") or None


def _socket_facade(websocket: WebSocket) -> Optional[AuthFacade]:
    demo_key = websocket.cookies.get(DEMO_SESSION_COOKIE) or uuid.uuid4().hex
    try:
        return build_auth_facade(websocket, _socket_token(websocket), lambda: demo_key)
    except AuthProviderError:
        # Anonymous clients can still ask for sign-in; they get an auth:error back.
        return None


@router.websocket("/ws")
async def relay_socket(websocket: WebSocket):
    origin = websocket.headers.get("origin") or ""
    if not origin_allowed(origin, settings.PARENT_ORIGINS):
        logger.warning("Rejected relay connection from origin %s", origin or "<none>")
        await websocket.close(code=POLICY_VIOLATION)
        return

    try:
        handler = ParentAuthHandler(
            ServerAuthActions(_socket_facade(websocket)),
            settings.PARENT_ORIGINS,
            trusted_demo=is_demo_mode(settings),
        )
    except ValueError as exc:
        logger.error("Relay handler refused configuration: %s", exc)
        await websocket.close(code=POLICY_VIOLATION)
        return

    await websocket.accept()
    channel = WebSocketChannel(websocket, origin)
    handler.attach(channel)
    try:
        await channel.run()
    finally:
        handler.detach()
        channel.close()
