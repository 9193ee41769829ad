from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from models import NewReservation, Reservation, Room, parse_date, parse_time
from repository import InMemoryReservationRepository


class BookingError(Exception):
    """Base class for domain/service errors."""


class IncompleteFieldsError(BookingError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"missing required fields: {', '.join(self.missing)}")


class InvalidFieldError(BookingError):
    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"invalid value for {field}: {value!r}")


class InvalidTimeRangeError(BookingError):
    pass


class RoomConflictError(BookingError):
    def __init__(self, conflicts: Sequence[Reservation]) -> None:
        self.conflicts = list(conflicts)
        titles = ", ".join(f"'{r.title}' ({r.reservation_id})" for r in self.conflicts)
        super().__init__(f"room is already booked by {titles}")


class ReservationNotFoundError(BookingError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"reservation not found: {reservation_id}")


# Checked in this order; error messages list missing fields the same way.
REQUIRED_FIELDS = ("title", "room", "date", "start_time", "end_time")


def new_reservation_id() -> str:
    return f"rsv_{uuid4().hex}"


class BookingStore:
    """
    Sole authority over the reservation collection.

    Admission validates the candidate, then checks for overlaps and inserts
    in a single repository call so no other writer can slip in between.
    The store never logs or prompts; callers map BookingError subclasses
    to whatever the user should see and persist snapshot() after changes.
    """

    def __init__(
        self,
        repo: Optional[InMemoryReservationRepository] = None,
        id_factory: Callable[[], str] = new_reservation_id,
    ) -> None:
        self._repo = repo if repo is not None else InMemoryReservationRepository()
        self._new_id = id_factory

    @classmethod
    def initialize(cls, snapshot: Iterable[Reservation], **kwargs) -> BookingStore:
        store = cls(**kwargs)
        store.load(snapshot)
        return store

    def load(self, snapshot: Iterable[Reservation]) -> None:
        self._repo.load(snapshot)

    def add(self, candidate: NewReservation) -> Reservation:
        # Rule: every field is filled in
        missing = [
            name for name in REQUIRED_FIELDS
            if not (getattr(candidate, name) or "").strip()
        ]
        if missing:
            raise IncompleteFieldsError(missing)

        room = self._parse_room(candidate.room)
        day = self._parse_field("date", candidate.date, parse_date)
        start = self._parse_field("start_time", candidate.start_time, parse_time)
        end = self._parse_field("end_time", candidate.end_time, parse_time)

        # Rule: end strictly after start
        if end <= start:
            raise InvalidTimeRangeError(
                f"end time {candidate.end_time} must be after start time {candidate.start_time}"
            )

        # Rule: no overlap with existing reservations in the same room
        reservation = Reservation(
            reservation_id=self._new_id(),
            title=candidate.title.strip(),
            room=room,
            day=day,
            start_time=start,
            end_time=end,
        )
        conflicts = self._repo.insert_if_no_conflict(reservation)
        if conflicts:
            raise RoomConflictError(conflicts)

        return reservation

    def remove(self, reservation_id: str) -> Reservation:
        removed = self._repo.delete(reservation_id)
        if removed is None:
            raise ReservationNotFoundError(reservation_id)
        return removed

    def get(self, reservation_id: str) -> Reservation:
        reservation = self._repo.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id)
        return reservation

    def list_by_room(self, room: Room) -> List[Reservation]:
        items = self._repo.list_by_room(room)
        # list.sort is stable, so identical intervals keep insertion order
        items.sort(key=lambda r: r.interval)
        return items

    def list_all(self) -> Dict[Room, List[Reservation]]:
        return {room: self.list_by_room(room) for room in Room}

    def snapshot(self) -> List[Reservation]:
        return self._repo.get_all()

    @staticmethod
    def _parse_room(value: str) -> Room:
        try:
            return Room(value.strip())
        except ValueError:
            raise InvalidFieldError("room", value)

    @staticmethod
    def _parse_field(name: str, value: str, parse: Callable[[str], Any]) -> Any:
        try:
            return parse(value)
        except ValueError:
            raise InvalidFieldError(name, value)
