"""Response headers that control which origins may embed the app."""

from __future__ import annotations

from typing import Iterable, List

from fastapi import FastAPI, Request

from services.errors import ConfigurationError


def normalize_frame_ancestors(origins: Iterable[str]) -> List[str]:
    normalized: List[str] = []
    for origin in origins:
        value = str(origin or "").strip()
        if value and value not in normalized:
            normalized.append(value)
    return normalized or ["'self'"]


def build_frame_ancestors(origins: Iterable[str]) -> str:
    return "frame-ancestors " + " ".join(normalize_frame_ancestors(origins))


def validate_frame_ancestors(origins: Iterable[str], production: bool) -> None:
    if production and "*" in normalize_frame_ancestors(origins):
        raise ConfigurationError("frame-ancestors allow-list may not contain '*' in production.")


def embedding_headers(config) -> List[tuple]:
    headers = [("Content-Security-Policy", build_frame_ancestors(config.FRAME_ANCESTORS))]
    if config.SEND_X_FRAME_OPTIONS:
        headers.append(("X-Frame-Options", "SAMEORIGIN"))
    coep = (config.CROSS_ORIGIN_EMBEDDER_POLICY or "").strip()
    if coep:
        headers.append(("Cross-Origin-Embedder-Policy", coep))
    return headers


def setup_embedding_headers(app: FastAPI, config) -> None:
    """Attach the embedding headers to every HTTP response."""
    validate_frame_ancestors(config.FRAME_ANCESTORS, config.APP_ENV == "production")

    @app.middleware("http")
    async def add_embedding_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in embedding_headers(config):
            if name not in response.headers:
                response.headers[name] = value
        return response
