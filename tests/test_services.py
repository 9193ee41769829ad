from datetime import date, time
from itertools import combinations, count

import pytest

from models import NewReservation, Reservation, Room
from services import (
    BookingStore,
    IncompleteFieldsError,
    InvalidFieldError,
    InvalidTimeRangeError,
    ReservationNotFoundError,
    RoomConflictError,
)


@pytest.fixture
def store():
    ids = count(1)
    return BookingStore(id_factory=lambda: f"rsv_{next(ids)}")


def candidate(title="Standup", room="Ruang Edellweis", date="2024-06-01", start="09:00", end="09:30"):
    return NewReservation(title=title, room=room, date=date, start_time=start, end_time=end)


def assert_no_double_booking(store: BookingStore) -> None:
    for a, b in combinations(store.snapshot(), 2):
        if a.room == b.room:
            assert not a.interval.overlaps(b.interval), (a, b)


def test_add_to_empty_store(store):
    reservation = store.add(candidate())

    assert reservation.reservation_id == "rsv_1"
    assert reservation.title == "Standup"
    assert reservation.room is Room.EDELLWEIS
    assert reservation.day == date(2024, 6, 1)
    assert (reservation.start_time, reservation.end_time) == (time(9, 0), time(9, 30))
    assert store.list_by_room(Room.EDELLWEIS) == [reservation]


def test_overlapping_add_is_rejected_and_store_unchanged(store):
    standup = store.add(candidate())

    with pytest.raises(RoomConflictError) as exc_info:
        store.add(candidate(title="Sync", start="09:15", end="09:45"))

    assert exc_info.value.conflicts == [standup]
    assert "Standup" in str(exc_info.value)
    assert store.snapshot() == [standup]


def test_conflict_reports_every_blocking_reservation(store):
    first = store.add(candidate(title="First", start="09:00", end="10:00"))
    second = store.add(candidate(title="Second", start="10:00", end="11:00"))
    store.add(candidate(title="Elsewhere", room="Ruang Zoom Cempaka", start="09:00", end="11:00"))

    with pytest.raises(RoomConflictError) as exc_info:
        store.add(candidate(title="Long", start="09:30", end="10:30"))

    assert exc_info.value.conflicts == [first, second]


def test_different_rooms_never_conflict(store):
    store.add(candidate())
    review = store.add(candidate(title="Review", room="Ruang Zoom Cempaka", start="09:15", end="09:45"))

    assert len(store.list_by_room(Room.EDELLWEIS)) == 1
    assert store.list_by_room(Room.ZOOM_CEMPAKA) == [review]


def test_back_to_back_reservations_are_accepted(store):
    store.add(candidate(start="09:00", end="10:00"))
    store.add(candidate(title="Retro", start="10:00", end="11:00"))

    assert len(store.list_by_room(Room.EDELLWEIS)) == 2


def test_same_slot_on_another_day_is_accepted(store):
    store.add(candidate())
    store.add(candidate(date="2024-06-02"))

    assert len(store.list_by_room(Room.EDELLWEIS)) == 2


@pytest.mark.parametrize("start, end", [("10:00", "09:00"), ("10:00", "10:00")])
def test_end_not_after_start_is_rejected(store, start, end):
    with pytest.raises(InvalidTimeRangeError):
        store.add(candidate(start=start, end=end))
    assert store.snapshot() == []


def test_missing_fields_are_reported_in_order(store):
    with pytest.raises(IncompleteFieldsError) as exc_info:
        store.add(NewReservation(title="   ", room="Ruang Edellweis", start_time="09:00"))

    assert exc_info.value.missing == ["title", "date", "end_time"]


def test_incomplete_check_runs_before_time_range_check(store):
    with pytest.raises(IncompleteFieldsError):
        store.add(candidate(title="", start="10:00", end="09:00"))


@pytest.mark.parametrize(
    "field, overrides",
    [
        ("room", {"room": "Ruang Mawar"}),
        ("date", {"date": "2024-13-01"}),
        ("start_time", {"start": "9 o'clock"}),
        ("end_time", {"end": "24:00"}),
        ("start_time", {"start": "9:30"}),
        ("date", {"date": "2024-6-1"}),
    ],
)
def test_malformed_fields_are_rejected(store, field, overrides):
    with pytest.raises(InvalidFieldError) as exc_info:
        store.add(candidate(**overrides))
    assert exc_info.value.field == field


def test_title_is_trimmed(store):
    assert store.add(candidate(title="  Standup ")).title == "Standup"


def test_list_by_room_sorts_by_date_and_time(store):
    late = store.add(candidate(title="Late", start="15:00", end="16:00"))
    tomorrow = store.add(candidate(title="Tomorrow", date="2024-06-02", start="08:00", end="08:30"))
    early = store.add(candidate(title="Early", start="08:00", end="09:00"))

    assert store.list_by_room(Room.EDELLWEIS) == [early, late, tomorrow]
    # insertion order is kept for the snapshot
    assert store.snapshot() == [late, tomorrow, early]


def test_list_by_room_returns_a_fresh_list(store):
    store.add(candidate())

    listed = store.list_by_room(Room.EDELLWEIS)
    listed.clear()
    assert len(store.list_by_room(Room.EDELLWEIS)) == 1


def test_list_all_covers_every_room(store):
    standup = store.add(candidate())

    assert store.list_all() == {Room.EDELLWEIS: [standup], Room.ZOOM_CEMPAKA: []}


def test_remove_twice_fails_second_time(store):
    reservation = store.add(candidate())

    assert store.remove(reservation.reservation_id) == reservation
    with pytest.raises(ReservationNotFoundError) as exc_info:
        store.remove(reservation.reservation_id)
    assert exc_info.value.reservation_id == reservation.reservation_id


def test_removed_slot_can_be_booked_again_with_a_new_id(store):
    first = store.add(candidate())
    store.remove(first.reservation_id)

    second = store.add(candidate(title="Rebooked"))
    assert second.reservation_id != first.reservation_id


def test_get(store):
    reservation = store.add(candidate())

    assert store.get(reservation.reservation_id) == reservation
    with pytest.raises(ReservationNotFoundError):
        store.get("rsv_missing")


def test_initialize_trusts_snapshot():
    # Overlapping entries from an old data file are loaded as-is.
    snapshot = [
        Reservation("1", "Old A", Room.EDELLWEIS, date(2024, 6, 1), time(9, 0), time(10, 0)),
        Reservation("2", "Old B", Room.EDELLWEIS, date(2024, 6, 1), time(9, 30), time(10, 30)),
    ]
    store = BookingStore.initialize(snapshot)

    assert store.snapshot() == snapshot
    with pytest.raises(RoomConflictError) as exc_info:
        store.add(candidate(start="10:00", end="10:15"))
    assert [r.reservation_id for r in exc_info.value.conflicts] == ["2"]


def test_initialize_rejects_duplicate_ids():
    reservation = Reservation("1", "Old", Room.EDELLWEIS, date(2024, 6, 1), time(9, 0), time(10, 0))

    with pytest.raises(ValueError):
        BookingStore.initialize([reservation, reservation])


def test_default_ids_are_unique():
    store = BookingStore()
    ids = {
        store.add(candidate(start=f"{hour:02d}:00", end=f"{hour:02d}:30")).reservation_id
        for hour in range(8, 18)
    }
    assert len(ids) == 10
    assert all(i.startswith("rsv_") for i in ids)


def test_no_double_booking_after_mixed_operations(store):
    slots = [
        ("09:00", "10:00"), ("09:30", "10:30"), ("10:00", "11:00"), ("08:00", "12:00"),
        ("11:00", "11:30"), ("10:45", "11:15"), ("07:00", "08:00"),
    ]
    for i, (start, end) in enumerate(slots):
        for room in ("Ruang Edellweis", "Ruang Zoom Cempaka"):
            try:
                added = store.add(candidate(title=f"M{i}", room=room, start=start, end=end))
            except RoomConflictError:
                continue
            if i % 3 == 0:
                store.remove(added.reservation_id)

    assert store.snapshot()
    assert_no_double_booking(store)
