from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

# strptime alone accepts unpadded "9:5" and "2024-6-1"
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_TIME_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}")


class Room(str, Enum):
    EDELLWEIS = "Ruang Edellweis"
    ZOOM_CEMPAKA = "Ruang Zoom Cempaka"


# -----------------------------
# Shared time helpers
# -----------------------------
def parse_date(value: str) -> date:
    """Parse a calendar day written as YYYY-MM-DD."""
    value = value.strip()
    if not _DATE_PATTERN.fullmatch(value):
        raise ValueError(f"date must be written as YYYY-MM-DD: {value!r}")
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_time(value: str) -> time:
    """
    Parse a wall-clock time written as HH:MM.
    Reservations are minute precision, so seconds are not accepted.
    """
    value = value.strip()
    if not _TIME_PATTERN.fullmatch(value):
        raise ValueError(f"time must be written as HH:MM: {value!r}")
    return datetime.strptime(value, TIME_FORMAT).time()


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def format_time(t: time) -> str:
    return t.strftime(TIME_FORMAT)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    Half-open interval overlap: [start, end)
    Overlap iff a_start < b_end AND b_start < a_end.
    Back-to-back is allowed (end == other.start is NOT overlap).
    """
    return a_start < b_end and b_start < a_end


class InvalidIntervalError(ValueError):
    pass


@dataclass(frozen=True, order=True)
class TimeInterval:
    # Field order is the sort order: (day, start, end).
    day: date
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidIntervalError(
                f"interval end {format_time(self.end)} must be after start {format_time(self.start)}"
            )

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.day, self.start)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.day, self.end)

    def overlaps(self, other: TimeInterval) -> bool:
        return intervals_overlap(self.starts_at, self.ends_at, other.starts_at, other.ends_at)


# -----------------------------
# Domain model
# -----------------------------
@dataclass(frozen=True)
class Reservation:
    reservation_id: str
    title: str
    room: Room
    day: date
    start_time: time
    end_time: time

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.day, self.start_time, self.end_time)


# -----------------------------
# API / persistence models (transport layer)
# -----------------------------
class NewReservation(BaseModel):
    """
    A candidate reservation as submitted by a client.
    Every field is optional here: completeness and format are judged by
    the booking store so that a missing title and a clashing slot are
    reported through the same error taxonomy.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    room: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")


class ReservationRecord(BaseModel):
    """Lossless text form of a Reservation, shared by the HTTP API and the data file."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    room: Room
    date: str
    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_legacy_numeric_id(cls, v):
        # Older data files stored millisecond timestamps as ids.
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("title")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be blank")
        return v

    @field_validator("date")
    @classmethod
    def must_be_calendar_day(cls, v: str) -> str:
        parse_date(v)
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def must_be_wall_clock_time(cls, v: str) -> str:
        parse_time(v)
        return v

    @classmethod
    def from_domain(cls, reservation: Reservation) -> ReservationRecord:
        return cls(
            id=reservation.reservation_id,
            title=reservation.title,
            room=reservation.room,
            date=format_date(reservation.day),
            start_time=format_time(reservation.start_time),
            end_time=format_time(reservation.end_time),
        )

    def to_domain(self) -> Reservation:
        reservation = Reservation(
            reservation_id=self.id,
            title=self.title,
            room=self.room,
            day=parse_date(self.date),
            start_time=parse_time(self.start_time),
            end_time=parse_time(self.end_time),
        )
        # Rejects an inverted or empty slot.
        TimeInterval(reservation.day, reservation.start_time, reservation.end_time)
        return reservation
