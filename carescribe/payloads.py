"""Validation of add/update event payloads using Pydantic models."""

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

FrequencyType = Literal["daily", "weekly", "once"]
Weekday = Annotated[int, Field(ge=0, le=6)]


def normalize_date(v):
    """Convert MM/DD/YYYY and MM-DD-YYYY to YYYY-MM-DD; leave anything else alone."""
    if not v:
        return None
    v = str(v).strip()
    # MM/DD/YYYY
    match = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", v)
    if match:
        m, d, y = match.groups()
        return f"{y}-{m.zfill(2)}-{d.zfill(2)}"
    # MM-DD-YYYY
    match = re.match(r"^(\d{1,2})-(\d{1,2})-(\d{4})$", v)
    if match:
        m, d, y = match.groups()
        return f"{y}-{m.zfill(2)}-{d.zfill(2)}"
    return v


def normalize_clock(v):
    """Zero-pad "8:00" to "08:00"; reject values that are not a time of day."""
    if not v:
        return None
    match = re.match(r"^(\d{1,2}):(\d{2})(?::\d{2})?$", str(v).strip())
    if not match or int(match.group(1)) > 23 or int(match.group(2)) > 59:
        raise ValueError(f"Invalid time of day: {v!r}")
    return f"{int(match.group(1)):02d}:{match.group(2)}"


class EventPayload(BaseModel):
    """Accepts snake_case or the web client's camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppointmentPayload(EventPayload):
    type: Literal["appointment", "lab"] = "appointment"
    date: str | None = Field(None, description="ISO timestamp of the visit")
    doctor: str | None = Field(None, description="Provider name")
    lab_type: str | None = Field(None, description="Lab test name (labs only)")
    specialty: str | None = None
    status: Literal["upcoming", "completed", "cancelled"] | None = None
    reason: str | None = None
    notes: str | None = None
    diagnosis: list[str] | None = None
    instructions: list[str] | None = None
    medications: list | None = None
    attached_provider_id: str | None = Field(None, description="Ordering appointment for a lab")
    transcript_ids: list[str] | None = None
    document_ids: list[str] | None = None


class MedicationPayload(EventPayload):
    type: Literal["medication"] = "medication"
    name: str = Field(..., min_length=1, description="Medication name")
    dosage: str | None = Field(None, description="e.g. 500mg, 2 tablets")
    frequency: str | None = Field(None, description="e.g. twice daily")
    active: bool | None = None
    frequency_type: FrequencyType | None = None
    times: list[str] | None = Field(None, description="Times of day as HH:MM")
    start_date: str | None = None
    end_date: str | None = None
    selected_days: list[Weekday] | None = Field(None, description="Weekdays, Sunday = 0")
    prescribed_by: str | None = None
    prescribed_date: str | None = None
    appointment_id: str | None = None
    reason: str | None = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, v):
        return normalize_date(v)

    @field_validator("times", mode="before")
    @classmethod
    def normalize_times(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            v = [part for part in v.split(",") if part.strip()]
        return [normalize_clock(t) for t in v]


class ActivityPayload(EventPayload):
    type: Literal["activity"] = "activity"
    title: str = Field(..., min_length=1, description="What the activity is")
    description: str | None = None
    date: str | None = Field(None, description="First day of the activity")
    time: str | None = Field(None, description="Time of day as HH:MM")
    all_day: bool | None = None
    frequency_type: FrequencyType | None = None
    selected_days: list[Weekday] | None = None
    end_date: str | None = None

    @field_validator("date", "end_date", mode="before")
    @classmethod
    def normalize_dates(cls, v):
        return normalize_date(v)

    @field_validator("time", mode="before")
    @classmethod
    def normalize_time(cls, v):
        return normalize_clock(v)


class MedicationUpdate(MedicationPayload):
    name: str | None = None


class ActivityUpdate(ActivityPayload):
    title: str | None = None


CREATE_MODELS = {
    "appointment": AppointmentPayload,
    "lab": AppointmentPayload,
    "medication": MedicationPayload,
    "activity": ActivityPayload,
}

UPDATE_MODELS = {
    "appointment": AppointmentPayload,
    "lab": AppointmentPayload,
    "medication": MedicationUpdate,
    "activity": ActivityUpdate,
}


def event_type_of(payload: dict) -> str:
    event_type = payload.get("type")
    if event_type not in CREATE_MODELS:
        raise ValueError(f"Unknown event type: {event_type!r}")
    return event_type


def parse_new_event(payload: dict) -> tuple[str, dict]:
    """Validate a new event. Returns its type and the fields that were set."""
    event_type = event_type_of(payload)
    model = CREATE_MODELS[event_type].model_validate(payload)
    return event_type, model.model_dump(exclude_none=True)


def parse_event_update(payload: dict) -> tuple[str, dict]:
    """Validate a partial update. Only keys present in the payload are returned."""
    event_type = event_type_of(payload)
    model = UPDATE_MODELS[event_type].model_validate(payload)
    return event_type, model.model_dump(exclude_unset=True)
