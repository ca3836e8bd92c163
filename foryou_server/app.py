"""
For You feed API: FastAPI app factory.

Use: uvicorn foryou_server.app:app
Or:  from foryou_server import create_app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import register_routes
from .state import get_state

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def _lifespan(app: FastAPI):
    state = app.dependency_overrides.get(get_state, get_state)()
    logger.info("For You feed API starting...")
    logger.info("[startup] Data source: %s", type(state.data_source).__name__)
    logger.info("[startup] Scoring model: %s", type(state.orchestrator.model).__name__)
    yield
    logger.info("For You feed API shutting down")


def create_app() -> FastAPI:
    """Build FastAPI app with CORS, routes, and startup."""
    app = FastAPI(
        title="For You Feed API",
        description="Personalized timeline and notification ranking",
        version=API_VERSION,
        lifespan=_lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_routes(app)
    return app


app = create_app()
