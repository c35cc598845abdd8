"""Per-occurrence completion state."""

import logging
import re

from carescribe.health_records.database import AppointmentStore, KeyValueStore

logger = logging.getLogger(__name__)

COMPLETED_KEY = "cs_completed_tasks"
APPOINTMENT_PREFIX = re.compile(r"^(apt-|lab-)")


class CompletionTracker:
    """Tracks which generated occurrences have been marked done.

    Appointments and labs carry their own status, so toggling one updates the
    appointment record. Medication and activity occurrences are tracked by
    composite occurrence id, which isolates one instance of a series from the
    rest.
    """

    def __init__(self, kv: KeyValueStore, appointments: AppointmentStore):
        self._kv = kv
        self._appointments = appointments
        self._completed: list[str] = self._load()

    def toggle(self, occurrence_id: str, task_type: str, completed: bool) -> bool:
        """Mark an occurrence done or not done. Returns False on a lookup miss."""
        if task_type in ("appointment", "lab"):
            appointment_id = APPOINTMENT_PREFIX.sub("", occurrence_id, count=1)
            status = "completed" if completed else "upcoming"
            return self._appointments.set_status(appointment_id, status) is not None

        if completed:
            if occurrence_id not in self._completed:
                self._completed = [*self._completed, occurrence_id]
                self._persist()
        elif occurrence_id in self._completed:
            self._completed = [cid for cid in self._completed if cid != occurrence_id]
            self._persist()
        return True

    def is_completed(self, occurrence_id: str) -> bool:
        return occurrence_id in self._completed

    def completed_ids(self) -> set[str]:
        return set(self._completed)

    def _load(self) -> list[str]:
        try:
            raw = self._kv.get_json(COMPLETED_KEY)
        except Exception:
            logger.warning("Could not load completion state", exc_info=True)
            return []
        if not isinstance(raw, list):
            return []
        # keep first occurrence of each id
        return list(dict.fromkeys(str(cid) for cid in raw))

    def _persist(self) -> None:
        try:
            self._kv.set_json(COMPLETED_KEY, self._completed)
        except Exception:
            logger.warning("Could not save completion state", exc_info=True)
