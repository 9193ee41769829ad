"""
Application entry point.

Run with the ASGI factory so nothing touches the data file at import time:

    uvicorn main:create_app --factory
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from api import create_router
from config import Settings, load_settings
from services import BookingStore
from storage import JsonFileStorage


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    # The store is seeded once from disk; every later change is written back by the API.
    storage = JsonFileStorage(settings.data_file)
    store = BookingStore.initialize(storage.load())

    app = FastAPI(title=settings.app_title, version="1.0.0")
    app.state.store = store
    app.state.storage = storage
    app.include_router(create_router(store, storage))
    return app
