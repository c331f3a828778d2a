"""
Creator Idea Planner - FastAPI Backend
Main application entry point with health check and API routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, validate_startup_settings
from database import engine, Base
from middleware.embedding import build_frame_ancestors, setup_embedding_headers
import models  # noqa: F401
from routers import (
    health,
    auth,
    youtube,
    content_ideas,
    trending_topics,
    competitor,
    insights,
    billing,
    premium,
    demo,
    relay,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Creator Idea Planner API...")
    validate_startup_settings()
    print(f"🔐 Auth mode: {settings.APP_MODE} (force demo: {settings.FORCE_DEMO_MODE})")
    print(f"🖼️ {build_frame_ancestors(settings.FRAME_ANCESTORS)}")
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")
    yield
    # Shutdown
    await engine.dispose()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Creator Idea Planner API",
    description="Plan YouTube content: ideas, trending topics, competitors and insights",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Embedding headers (frame-ancestors, X-Frame-Options, COEP)
setup_embedding_headers(app, settings)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": {"code": "internal_error", "message": "Internal server error"}},
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(youtube.router, prefix="/youtube", tags=["YouTube"])
app.include_router(content_ideas.router, prefix="/content-ideas", tags=["Content Ideas"])
app.include_router(trending_topics.router, prefix="/trending-topics", tags=["Trending Topics"])
app.include_router(competitor.router, prefix="/competitors", tags=["Competitor"])
app.include_router(insights.router, tags=["Insights"])
app.include_router(billing.router, prefix="/billing", tags=["Billing"])
app.include_router(premium.router, prefix="/premium", tags=["Premium"])
app.include_router(demo.router, prefix="/demo", tags=["Demo"])
app.include_router(relay.router, prefix="/relay", tags=["Relay"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Creator Idea Planner API",
        "version": "0.1.0",
        "status": "running",
        "mode": settings.APP_MODE,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)
