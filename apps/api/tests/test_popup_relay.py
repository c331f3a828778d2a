import asyncio

import pytest

from services.context_detection import ExecutionContext
from services.errors import RelayClosedError, RelayError, RelayTimeoutError, RelayUnavailableError
from services.popup_relay import (
    AUTH_READY,
    TOKEN_REQUEST,
    TOKEN_RESPONSE,
    InProcessChannel,
    MessageEvent,
    ParentAuthHandler,
    PopupRelay,
    RelayRequest,
    RequestState,
    build_envelope,
)


CHILD_ORIGIN = "https://embedded.example"
PARENT_ORIGIN = "https://parent.example"


class FakeParentActions:
    def __init__(self, token="parent-token", delay=0.0, fail_sign_in=False):
        self.token = token
        self.delay = delay
        self.fail_sign_in = fail_sign_in
        self.calls = []
        self._issued = 0

    async def sign_in(self):
        self.calls.append("sign_in")
        if self.fail_sign_in:
            raise RelayError("User closed the sign-in popup.")

    async def sign_out(self):
        self.calls.append("sign_out")

    async def get_token(self):
        self.calls.append("get_token")
        self._issued += 1
        issued = self._issued
        if self.delay:
            await asyncio.sleep(self.delay)
        return f"{self.token}-{issued}"


def _relay_pair(actions=None, allowed=(CHILD_ORIGIN,), **relay_kwargs):
    child, parent = InProcessChannel.pair(CHILD_ORIGIN, PARENT_ORIGIN)
    handler = None
    if actions is not None:
        handler = ParentAuthHandler(actions, allowed)
        handler.attach(parent)
    relay = PopupRelay(child, parent_origin=PARENT_ORIGIN, **relay_kwargs)
    return relay, child, parent, handler


@pytest.mark.asyncio
async def test_token_request_round_trip_cleans_up_listener():
    actions = FakeParentActions()
    relay, child, _parent, handler = _relay_pair(actions)

    token = await relay.request_token(timeout=1.0)

    assert token == "parent-token-1"
    assert child.listener_count() == 0
    assert relay.outstanding() == 0
    await handler.drain()


@pytest.mark.asyncio
async def test_sign_in_triggers_ready_hook():
    ready = []
    relay, child, _parent, _handler = _relay_pair(FakeParentActions(), on_ready=ready.append)

    response = await relay.request_sign_in(timeout=1.0)

    assert response["type"] == AUTH_READY
    assert response["flow"] == "signin"
    assert ready == [response]
    assert child.listener_count() == 0


@pytest.mark.asyncio
async def test_timeout_rejects_once_and_leaves_no_listener():
    relay, child, _parent, _handler = _relay_pair(actions=None)

    with pytest.raises(RelayTimeoutError) as exc_info:
        await relay.request_token(timeout=0.05)

    assert exc_info.value.message_type == TOKEN_REQUEST
    assert child.listener_count() == 0
    assert relay.outstanding() == 0


@pytest.mark.asyncio
async def test_explicit_zero_timeout_is_not_replaced_by_default():
    relay, child, _parent, _handler = _relay_pair(actions=None, token_timeout=30.0)

    with pytest.raises(RelayTimeoutError) as exc_info:
        await asyncio.wait_for(relay.request_token(timeout=0), timeout=1.0)

    assert exc_info.value.timeout == 0
    assert child.listener_count() == 0


@pytest.mark.asyncio
async def test_late_response_after_timeout_is_ignored():
    child, parent = InProcessChannel.pair(CHILD_ORIGIN, PARENT_ORIGIN)
    request = RelayRequest(child, TOKEN_REQUEST, 0.05, target_origin=PARENT_ORIGIN, accept_origins=[PARENT_ORIGIN])

    with pytest.raises(RelayTimeoutError):
        await request.send()
    assert request.state == RequestState.TIMED_OUT

    await parent.post_message(build_envelope(TOKEN_RESPONSE, request.request_id, token="late"), CHILD_ORIGIN)
    await asyncio.sleep(0.01)

    assert request.state == RequestState.TIMED_OUT
    assert child.listener_count() == 0


@pytest.mark.asyncio
async def test_concurrent_requests_resolve_independently():
    actions = FakeParentActions(delay=0.02)
    relay, child, _parent, handler = _relay_pair(actions)

    tokens = await asyncio.gather(relay.request_token(timeout=1.0), relay.request_token(timeout=1.0))

    assert sorted(tokens) == ["parent-token-1", "parent-token-2"]
    assert actions.calls == ["get_token", "get_token"]
    assert child.listener_count() == 0
    await handler.drain()


@pytest.mark.asyncio
async def test_parent_drops_messages_from_unlisted_origins():
    actions = FakeParentActions()
    relay, child, _parent, handler = _relay_pair(actions, allowed=["https://trusted.example"])

    with pytest.raises(RelayTimeoutError):
        await relay.request_token(timeout=0.05)

    await handler.drain()
    assert actions.calls == []
    assert child.listener_count() == 0

    reply = await handler.handle(
        MessageEvent(data=build_envelope(TOKEN_REQUEST, "abc"), origin="https://evil.example")
    )
    assert reply is None


def test_wildcard_parent_origins_need_trusted_demo():
    with pytest.raises(ValueError):
        ParentAuthHandler(FakeParentActions(), ["*"])
    handler = ParentAuthHandler(FakeParentActions(), ["*"], trusted_demo=True)
    assert handler.trusted_demo is True


@pytest.mark.asyncio
async def test_parent_failure_comes_back_as_relay_error():
    relay, child, _parent, _handler = _relay_pair(FakeParentActions(fail_sign_in=True))

    with pytest.raises(RelayError) as exc_info:
        await relay.request_sign_in(timeout=1.0)

    assert "closed the sign-in popup" in str(exc_info.value)
    assert child.listener_count() == 0


@pytest.mark.asyncio
async def test_channel_close_rejects_pending_request():
    relay, child, parent, _handler = _relay_pair(actions=None)

    pending = asyncio.ensure_future(relay.request_token(timeout=5.0))
    await asyncio.sleep(0.01)
    parent.close()

    with pytest.raises(RelayClosedError):
        await pending
    assert child.listener_count() == 0


@pytest.mark.asyncio
async def test_relay_is_unavailable_outside_iframe():
    child, _parent = InProcessChannel.pair(CHILD_ORIGIN, PARENT_ORIGIN)
    relay = PopupRelay(child, parent_origin=PARENT_ORIGIN, context=ExecutionContext.STANDALONE)

    with pytest.raises(RelayUnavailableError):
        await relay.request_sign_out()
    assert child.listener_count() == 0


@pytest.mark.asyncio
async def test_cancel_all_drops_outstanding_requests():
    relay, child, _parent, _handler = _relay_pair(actions=None)

    pending = asyncio.ensure_future(relay.request_token(timeout=5.0))
    await asyncio.sleep(0.01)
    assert relay.outstanding() == 1

    relay.cancel_all()
    with pytest.raises(asyncio.CancelledError):
        await pending
    assert child.listener_count() == 0
