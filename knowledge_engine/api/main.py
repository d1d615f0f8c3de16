"""
FastAPI application for the knowledge engine.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .deps import build_engine
from .routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine on startup; drop it on shutdown."""
    engine, store_kind = build_engine()
    app.state.engine = engine
    app.state.store_kind = store_kind
    yield
    app.state.engine = None


app = FastAPI(
    title="Knowledge Engine API",
    description="Retrieval and prompt augmentation over an owner's private documents",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.include_router(router)
