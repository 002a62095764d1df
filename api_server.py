from __future__ import annotations  # FastAPI server exposing interview sessions

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agents.content_service import bind_gateway_models
from api.routes import candidates_router, router
from config import load_config
from config.settings import settings
from storage.migrate import migrate

logger = logging.getLogger(__name__)


def _bind_remote_models(config_path: Path) -> bool:  # Bind LLM-backed content service when configured
    if not config_path.exists():
        logger.info("no app config at %s; remote content disabled, local fallbacks only", config_path)
        return False
    bind_gateway_models(load_config(config_path))
    logger.info("bound remote content models from %s", config_path)
    return True


def create_app() -> FastAPI:  # Build the API application
    migrate(settings.DB_PATH)
    _bind_remote_models(Path(settings.APP_CONFIG_PATH))
    application = FastAPI(title="Interview Session API")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    application.include_router(candidates_router)
    return application


app = create_app()
