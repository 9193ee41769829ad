from __future__ import annotations

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List

from pydantic import ValidationError

from models import InvalidIntervalError, Reservation, ReservationRecord

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """
    Keeps the reservation collection in a single JSON file.

    The file holds an array of records with the fields
    id, title, room, date, startTime and endTime.
    Neither load() nor save() raises: failures are logged and the
    in-memory store carries on.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Reservation]:
        if not self.path.exists():
            logger.info("No reservation file at %s, starting empty", self.path)
            return []

        try:
            data = self.path.read_bytes()
        except OSError as exc:
            # The file may be fine; leave it where it is.
            logger.error("Could not read reservations from %s: %s", self.path, exc)
            return []

        try:
            raw = json.loads(data.decode("utf-8"))
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
        except ValueError as exc:
            logger.error("Could not parse reservations from %s: %s", self.path, exc)
            self._quarantine()
            return []

        reservations: Dict[str, Reservation] = {}
        for index, item in enumerate(raw):
            try:
                reservation = ReservationRecord.model_validate(item).to_domain()
            except (ValidationError, InvalidIntervalError) as exc:
                logger.warning("Skipping invalid reservation #%d in %s: %s", index, self.path, exc)
                continue
            if reservation.reservation_id in reservations:
                logger.warning(
                    "Skipping duplicate reservation id %s in %s", reservation.reservation_id, self.path
                )
                continue
            reservations[reservation.reservation_id] = reservation

        logger.info("Loaded %d reservations from %s", len(reservations), self.path)
        return list(reservations.values())

    def save(self, snapshot: Iterable[Reservation]) -> None:
        records = [
            ReservationRecord.from_domain(r).model_dump(mode="json", by_alias=True)
            for r in snapshot
        ]
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Could not save reservations to %s: %s", self.path, exc)
            return
        logger.debug("Saved %d reservations to %s", len(records), self.path)

    def _quarantine(self) -> None:
        # Move the unreadable file aside so the next save cannot overwrite it.
        stamp = datetime.now().strftime("%Y%m%d%H%M%S")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            os.replace(self.path, target)
        except OSError as exc:
            logger.error("Could not move unreadable file %s aside: %s", self.path, exc)
            return
        logger.warning("Moved unreadable reservation file to %s", target)
