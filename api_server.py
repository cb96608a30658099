from __future__ import annotations  # FastAPI server exposing interview sessions

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
from config import COMPLETION_KEY, bind_model, is_bound, resolve_route, settings
from llm_gateway import completion_fn
from observability import configure_logging
from storage.migrate import migrate

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the API app, prepare the database and bind the chat model."""

    configure_logging(settings)
    migrate()
    if not is_bound(COMPLETION_KEY):
        route = resolve_route(settings)
        bind_model(COMPLETION_KEY, completion_fn(route))
        logger.info("Bound chat completion route=%s model=%s", route.name, route.model)

    application = FastAPI(title="Mock Interview API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)

    @application.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return application


app = create_app()
