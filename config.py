from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, field_validator

ENV_PREFIX = "ROOM_BOOKING_"


class Settings(BaseModel):
    app_title: str = "Meeting Room Booking API"
    # JSON file the reservations are kept in
    data_file: Path = Path("data/reservations.json")
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def must_be_known_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {v}")
        return level


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from ROOM_BOOKING_* environment variables.
    Unset variables keep their defaults.
    """
    env = os.environ if environ is None else environ
    values = {}
    for field in Settings.model_fields:
        key = ENV_PREFIX + field.upper()
        if key in env:
            values[field] = env[key]
    return Settings(**values)
