"""
FastAPI application factory for the part identifier.

Routes:
- /api/* -> REST API
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from inference.backend import InferenceUnavailable
from runtime.context import RuntimeContext

from .routes import api


def create_app(ctx: RuntimeContext, preload_model: bool = True) -> FastAPI:
    """Create the FastAPI app around an already wired runtime context."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if preload_model:
            try:
                await ctx.classifier.get()
            except InferenceUnavailable as e:
                # Detection endpoints answer 503 until a later load succeeds.
                logging.error(f"Classifier failed to initialize: {e}")
        yield
        await ctx.close()

    app = FastAPI(
        title="Jaw Crusher Part Identifier",
        version="0.1.0",
        description="Identifies jaw crusher components in uploaded images and live camera frames",
        lifespan=lifespan,
    )
    app.state.ctx = ctx

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    return app
