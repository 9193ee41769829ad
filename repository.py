from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, List, Optional

from models import Reservation, Room


class InMemoryReservationRepository:
    def __init__(self) -> None:
        # dicts keep insertion order, which keeps snapshots deterministic
        self._items: Dict[str, Reservation] = {}
        self._lock = Lock()

    def load(self, reservations: Iterable[Reservation]) -> None:
        """
        Replace the contents with a persisted collection, as-is.
        Historical conflicts are not re-checked.
        """
        items: Dict[str, Reservation] = {}
        for reservation in reservations:
            if reservation.reservation_id in items:
                raise ValueError(f"duplicate reservation id: {reservation.reservation_id}")
            items[reservation.reservation_id] = reservation

        with self._lock:
            self._items = items

    def get(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            return self._items.get(reservation_id)

    def get_all(self) -> List[Reservation]:
        with self._lock:
            return list(self._items.values())

    def list_by_room(self, room: Room) -> List[Reservation]:
        with self._lock:
            return [r for r in self._items.values() if r.room == room]

    def insert_if_no_conflict(self, reservation: Reservation) -> List[Reservation]:
        """
        Atomically checks the room for overlapping reservations and inserts
        the new one if there are none.
        Returns the conflicting reservations; an empty list means inserted.
        """
        candidate = reservation.interval
        with self._lock:
            if reservation.reservation_id in self._items:
                raise ValueError(f"duplicate reservation id: {reservation.reservation_id}")

            conflicts = [
                existing
                for existing in self._items.values()
                if existing.room == reservation.room and candidate.overlaps(existing.interval)
            ]
            if conflicts:
                return conflicts

            self._items[reservation.reservation_id] = reservation
            return []

    def delete(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            return self._items.pop(reservation_id, None)
