from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, List

from fastapi import APIRouter, HTTPException, Path, status

from models import NewReservation, ReservationRecord, Room
from services import (
    BookingStore,
    IncompleteFieldsError,
    InvalidFieldError,
    InvalidTimeRangeError,
    ReservationNotFoundError,
    RoomConflictError,
)
from storage import JsonFileStorage

logger = logging.getLogger(__name__)

FIELD_LABELS = {
    "title": "title",
    "room": "room",
    "date": "date",
    "start_time": "start time",
    "end_time": "end time",
}


def create_router(store: BookingStore, storage: JsonFileStorage) -> APIRouter:
    router = APIRouter()
    # Serialises mutate-then-save so snapshots reach the file in order.
    write_lock = Lock()

    @router.get("/rooms", response_model=List[str])
    def list_rooms() -> List[str]:
        return [room.value for room in Room]

    @router.post("/reservations", response_model=ReservationRecord, status_code=status.HTTP_201_CREATED)
    def create_reservation(payload: NewReservation) -> ReservationRecord:
        try:
            with write_lock:
                reservation = store.add(payload)
                storage.save(store.snapshot())
        except IncompleteFieldsError as exc:
            missing = ", ".join(FIELD_LABELS[name] for name in exc.missing)
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail=f"Validation error: please fill in all fields (missing: {missing}).",
            )
        except InvalidFieldError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail=f"Validation error: invalid {FIELD_LABELS[exc.field]} {exc.value!r}.",
            )
        except InvalidTimeRangeError:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail="Validation error: end time must be after start time.",
            )
        except RoomConflictError as exc:
            blocking = ", ".join(
                f"'{r.title}' ({r.start_time:%H:%M}-{r.end_time:%H:%M})" for r in exc.conflicts
            )
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Schedule conflict: this room is already booked at that time by {blocking}.",
            )

        logger.info(
            "Reserved %s on %s %s-%s as %s",
            reservation.room.value,
            reservation.day,
            reservation.start_time,
            reservation.end_time,
            reservation.reservation_id,
        )
        return ReservationRecord.from_domain(reservation)

    @router.get("/reservations", response_model=Dict[str, List[ReservationRecord]])
    def list_reservations() -> Dict[str, List[ReservationRecord]]:
        return {
            room.value: [ReservationRecord.from_domain(r) for r in items]
            for room, items in store.list_all().items()
        }

    @router.get("/reservations/{reservation_id}", response_model=ReservationRecord)
    def get_reservation(reservation_id: str = Path(..., min_length=1)) -> ReservationRecord:
        try:
            return ReservationRecord.from_domain(store.get(reservation_id))
        except ReservationNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reservation not found.",
            )

    @router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_reservation(reservation_id: str = Path(..., min_length=1)) -> None:
        try:
            with write_lock:
                store.remove(reservation_id)
                storage.save(store.snapshot())
        except ReservationNotFoundError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Reservation not found.",
            )
        logger.info("Deleted reservation %s", reservation_id)
        return None

    @router.get("/rooms/{room}/reservations", response_model=List[ReservationRecord])
    def list_reservations_for_room(room: Room) -> List[ReservationRecord]:
        return [ReservationRecord.from_domain(r) for r in store.list_by_room(room)]

    return router
