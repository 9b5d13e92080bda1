"""Middleware registration."""

from fastapi import FastAPI

from dojoxp.config import Settings
from dojoxp.middleware.error_handler import setup_error_handlers
from dojoxp.middleware.logging import setup_logging
from dojoxp.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and request-id propagation."""
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)
