"""
FastAPI application entry point for the campus backend.
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus.config import Settings, get_settings
from campus.dependencies import ServiceContext, build_services
from campus.errors import CampusError, campus_error_handler
from campus.routes import router


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[ServiceContext] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Campus Backend", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(CampusError, campus_error_handler)
    app.state.settings = settings
    app.state.services = services or build_services(settings)
    app.include_router(router, prefix=settings.api_prefix)
    return app
