"""Execution-context classification for embedded, popup and standalone views."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional
from urllib.parse import urlparse

from fastapi.requests import HTTPConnection


class ExecutionContext(str, Enum):
    STANDALONE = "standalone"
    IFRAME = "iframe"
    POPUP = "popup"


@dataclass(frozen=True)
class BrowsingEnvironment:
    """Snapshot of the browsing-context globals a view can observe.

    ``parent_location_readable`` is False when reading the parent's location
    raised, which only happens for a cross-origin parent.
    """

    has_window: bool = True
    has_opener: bool = False
    parent_is_self: bool = True
    parent_location_readable: bool = True


SERVER_ENVIRONMENT = BrowsingEnvironment(has_window=False)

_FRAME_FETCH_DESTINATIONS = {"iframe", "frame"}
_TRUTHY = {"1", "true", "yes", "on"}


def classify_context(env: Optional[BrowsingEnvironment]) -> ExecutionContext:
    """Classify a browsing environment; no window means server-side rendering."""
    if env is None or not env.has_window:
        return ExecutionContext.STANDALONE
    if env.has_opener:
        return ExecutionContext.POPUP
    if not env.parent_is_self or not env.parent_location_readable:
        return ExecutionContext.IFRAME
    return ExecutionContext.STANDALONE


def is_cross_origin_embedded(env: Optional[BrowsingEnvironment]) -> bool:
    if env is None or not env.has_window:
        return False
    return not env.parent_location_readable


def should_use_mock_identity(context: ExecutionContext, force_demo: bool = False) -> bool:
    return force_demo or context == ExecutionContext.IFRAME


def _flag(value: Optional[str]) -> bool:
    return str(value or "").strip().lower() in _TRUTHY


def _referrer_is_embedder(referrer: Optional[str], embed_hosts: Iterable[str]) -> bool:
    if not referrer:
        return False
    host = (urlparse(referrer).hostname or "").lower()
    if not host:
        return False
    for candidate in embed_hosts:
        candidate = str(candidate or "").strip().lower()
        if not candidate:
            continue
        if candidate.startswith("*."):
            if host.endswith(candidate[1:]):
                return True
        elif host == candidate:
            return True
    return False


def environment_from_request(request: HTTPConnection, config) -> BrowsingEnvironment:
    """Derive the browsing environment from request signals.

    A request whose origin differs from the embedder is treated as unable to
    read its parent's location.
    """
    headers = request.headers
    params = request.query_params

    has_opener = _flag(headers.get("x-window-opener")) or _flag(params.get("popup"))

    fetch_dest = (headers.get("sec-fetch-dest") or "").strip().lower()
    embedded = (
        fetch_dest in _FRAME_FETCH_DESTINATIONS
        or _flag(headers.get("x-iframe-mode"))
        or _flag(params.get("iframe"))
        or bool(config.IFRAME_MODE)
    )
    cross_origin = _referrer_is_embedder(headers.get("referer"), config.EMBED_REFERRER_HOSTS)
    if cross_origin:
        embedded = True

    return BrowsingEnvironment(
        has_window=True,
        has_opener=has_opener,
        parent_is_self=not embedded,
        parent_location_readable=not cross_origin,
    )


def detect_request_context(request: HTTPConnection, config) -> ExecutionContext:
    return classify_context(environment_from_request(request, config))
