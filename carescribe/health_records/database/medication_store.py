"""Medication records and their recurrence metadata."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from carescribe import dates

from .kv_store import KeyValueStore
from .record_store import Record, RecordStore


@dataclass
class Medication(Record):
    id: str = ""
    name: str = ""
    dosage: str = ""
    frequency: str = "Once daily"  # free-text descriptor, e.g. "twice daily"
    active: bool = True
    frequency_type: str | None = None  # daily, weekly, once
    times: list[str] = field(default_factory=list)  # "HH:MM"
    start_date: str | None = None
    end_date: str | None = None
    selected_days: list[int] = field(default_factory=list)  # Sunday = 0
    skipped_dates: list[str] = field(default_factory=list)
    prescribed_by: str | None = None
    prescribed_date: str | None = None
    appointment_id: str | None = None
    reason: str | None = None

    @property
    def is_recurring(self) -> bool:
        return self.frequency_type != "once"


class MedicationStore(RecordStore):
    """Store for medications."""

    KEY = "cs_medications"
    RECORD_TYPE = Medication
    FIELDS = [
        "name", "dosage", "frequency", "active", "frequency_type", "times",
        "start_date", "end_date", "selected_days", "skipped_dates",
        "prescribed_by", "prescribed_date", "appointment_id", "reason",
    ]

    def __init__(self, kv: KeyValueStore, clock: Callable[[], datetime] = dates.now):
        self._clock = clock
        super().__init__(kv)

    def create(self, record: Medication) -> Medication:
        """Add a medication, defaulting its start to today."""
        now = self._clock()
        record.start_date = record.start_date or dates.to_local_date_string(now)
        record.prescribed_date = record.prescribed_date or now.isoformat()
        return super().create(record)

    def toggle_active(self, medication_id: str) -> Medication | None:
        medication = self.get(medication_id)
        if medication is None:
            return None
        return self.update(medication_id, {"active": not medication.active})

    def skip_date(self, medication_id: str, day: str) -> Medication | None:
        """Remove a single dated instance from the schedule."""
        medication = self.get(medication_id)
        if medication is None:
            return None
        if day in medication.skipped_dates:
            return medication
        return self.update(medication_id, {"skipped_dates": [*medication.skipped_dates, day]})
