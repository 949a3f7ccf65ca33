from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.analytics.mastery import build_level_bands
from src.api.router import api_router
from src.core.config import get_cors_origins, get_settings
from src.core.errors import AppError, app_error_handler, validation_error_handler
from src.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    # A malformed LEVEL_BANDS table fails app creation.
    level_bands = build_level_bands(settings.level_bands)

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router, prefix=settings.api_prefix)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    logger.info(
        "%s ready (environment=%s, level bands=%s)",
        settings.app_name,
        settings.environment,
        ", ".join(band.label for band in level_bands),
    )
    return app


app = create_app()
