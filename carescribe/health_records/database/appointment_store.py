"""Appointment and lab records."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from carescribe import dates

from .kv_store import KeyValueStore
from .record_store import Record, RecordStore

APPOINTMENT_TYPES = ("appointment", "lab")


@dataclass
class Appointment(Record):
    id: str = ""
    date: str | None = None  # ISO timestamp, optional for past visits
    type: str = "appointment"
    doctor: str = "New Provider"
    lab_type: str | None = None
    specialty: str = "General"
    status: str | None = None
    reason: str = ""
    notes: str = ""
    diagnosis: list[str] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    medications: list = field(default_factory=list)
    attached_provider_id: str | None = None  # lab -> ordering appointment
    transcript_ids: list[str] = field(default_factory=list)
    document_ids: list[str] = field(default_factory=list)

    @property
    def is_lab(self) -> bool:
        return self.type == "lab"

    @property
    def scheduled_at(self) -> datetime | None:
        """Appointment time in local time, None when undated."""
        if not self.date:
            return None
        return dates.parse_timestamp(self.date)


def derive_status(date_iso: str | None, now: datetime) -> str:
    """Status implied by the appointment date alone."""
    if not date_iso:
        return "upcoming"
    return "completed" if dates.parse_timestamp(date_iso, now) < now else "upcoming"


class AppointmentStore(RecordStore):
    """Store for appointments and labs."""

    KEY = "cs_appointments"
    RECORD_TYPE = Appointment
    FIELDS = [
        "date", "type", "doctor", "lab_type", "specialty", "status", "reason",
        "notes", "diagnosis", "instructions", "medications",
        "attached_provider_id", "transcript_ids", "document_ids",
    ]

    def __init__(self, kv: KeyValueStore, clock: Callable[[], datetime] = dates.now):
        self._clock = clock
        super().__init__(kv)

    def create(self, record: Appointment) -> Appointment:
        """Add an appointment; a missing status is derived from its date."""
        if record.status == "processing":
            record.status = "upcoming"
        if not record.status:
            record.status = derive_status(record.date, self._clock())
        if record.type not in APPOINTMENT_TYPES:
            record.type = "appointment"
        return super().create(record)

    def set_status(self, appointment_id: str, status: str) -> Appointment | None:
        return self.update(appointment_id, {"status": status})

    def labs_for(self, appointment_id: str) -> list[Appointment]:
        """Labs ordered at the given appointment."""
        return [
            apt for apt in self._records
            if apt.is_lab and apt.attached_provider_id == appointment_id
        ]
