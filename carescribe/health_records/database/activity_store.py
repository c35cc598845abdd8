"""Custom activity records (walks, exercises, anything user-defined)."""

from dataclasses import dataclass, field

from .record_store import Record, RecordStore


@dataclass
class CustomEvent(Record):
    id: str = ""
    title: str = ""
    description: str | None = None
    date: str | None = None  # anchor / first day
    time: str | None = None  # "HH:MM"
    all_day: bool = False
    frequency_type: str | None = None  # daily, weekly, once
    selected_days: list[int] = field(default_factory=list)
    end_date: str | None = None
    skipped_dates: list[str] = field(default_factory=list)


class ActivityStore(RecordStore):
    """Store for custom activities."""

    KEY = "cs_custom_events"
    RECORD_TYPE = CustomEvent
    FIELDS = [
        "title", "description", "date", "time", "all_day", "frequency_type",
        "selected_days", "end_date", "skipped_dates",
    ]

    def skip_date(self, event_id: str, day: str) -> CustomEvent | None:
        """Remove a single dated instance from the series."""
        event = self.get(event_id)
        if event is None:
            return None
        if day in event.skipped_dates:
            return event
        return self.update(event_id, {"skipped_dates": [*event.skipped_dates, day]})
