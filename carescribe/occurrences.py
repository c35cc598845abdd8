"""
Occurrence generation for recurring medications and activities.

A recurring definition is expanded into concrete dated occurrences over a
rolling 60-day window starting five days before today. Occurrences are never
stored; they are regenerated from the definitions on every read, so their ids
must be reproducible from the same inputs.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

from carescribe import dates
from carescribe.health_records.database import CustomEvent, Medication

WINDOW_DAYS_BEFORE = 5
WINDOW_DAYS = 60


@dataclass(frozen=True)
class CalendarTask:
    """One dated (and possibly timed) entry on the calendar."""
    id: str
    date: date
    title: str
    type: str  # appointment, lab, medication, activity
    time: str | None = None  # "HH:MM"
    original_id: str | None = None

    @property
    def scheduled_at(self) -> datetime | None:
        """Local datetime of a timed occurrence, None for all-day entries."""
        return dates.at_clock(self.date, self.time)


@dataclass(frozen=True)
class Recurrence:
    """A medication or activity reduced to what generation needs."""
    prefix: str
    source_id: str
    title: str
    type: str
    start: date
    end: date | None = None
    frequency_type: str | None = None
    selected_days: tuple[int, ...] = ()
    times: tuple[str, ...] = ()
    skipped_dates: frozenset[str] = field(default_factory=frozenset)

    def includes(self, day: date) -> bool:
        """Whether the schedule lands on ``day`` (ignoring the window)."""
        if day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        if dates.to_local_date_string(day) in self.skipped_dates:
            return False
        if self.frequency_type == "weekly":
            if self.selected_days:
                return dates.sunday_weekday(day) in self.selected_days
            return dates.sunday_weekday(day) == dates.sunday_weekday(self.start)
        # daily, and anything unrecognised, lands every day
        return True


def occurrence_id(prefix: str, source_id: str, day: date, time: str | None = None) -> str:
    """Composite id: source type, source id, local date and optional time."""
    key = f"{prefix}-{source_id}-{dates.to_local_date_string(day)}"
    if time:
        key += f"-{time}"
    return key


def generation_window(now: datetime) -> list[date]:
    """Calendar days covered by generation: [today - 5, today + 55)."""
    first = now.date() - timedelta(days=WINDOW_DAYS_BEFORE)
    return [first + timedelta(days=offset) for offset in range(WINDOW_DAYS)]


def medication_recurrence(medication: Medication, now: datetime) -> Recurrence:
    times = tuple(t for t in medication.times or [] if dates.parse_clock(t))
    return Recurrence(
        prefix="med",
        source_id=medication.id,
        title=f"{medication.name} {medication.dosage}".strip(),
        type="medication",
        start=dates.parse_local_date(medication.start_date, now),
        end=dates.parse_local_date(medication.end_date, now) if medication.end_date else None,
        frequency_type=medication.frequency_type,
        selected_days=tuple(medication.selected_days or ()),
        times=times,
        skipped_dates=frozenset(medication.skipped_dates or ()),
    )


def activity_recurrence(event: CustomEvent, now: datetime) -> Recurrence:
    timed = event.time and not event.all_day and dates.parse_clock(event.time)
    return Recurrence(
        prefix="act",
        source_id=event.id,
        title=event.title,
        type="activity",
        start=dates.parse_local_date(event.date, now),
        end=dates.parse_local_date(event.end_date, now) if event.end_date else None,
        # Activities without a frequency are one-off entries
        frequency_type=event.frequency_type or "once",
        selected_days=tuple(event.selected_days or ()),
        times=(event.time,) if timed else (),
        skipped_dates=frozenset(event.skipped_dates or ()),
    )


class OccurrenceSeries:
    """Lazy, finite, restartable sequence of occurrences for one definition."""

    def __init__(self, recurrence: Recurrence | None, now: datetime):
        self.recurrence = recurrence
        self.now = now

    def __iter__(self) -> Iterator[CalendarTask]:
        rec = self.recurrence
        if rec is None:
            return

        if rec.frequency_type == "once":
            # One-off entries are emitted even outside the window
            if dates.to_local_date_string(rec.start) not in rec.skipped_dates:
                yield from self._fan_out(rec.start)
            return

        for day in generation_window(self.now):
            if rec.includes(day):
                yield from self._fan_out(day)

    def _fan_out(self, day: date) -> Iterator[CalendarTask]:
        rec = self.recurrence
        if not rec.times:
            yield CalendarTask(
                id=occurrence_id(rec.prefix, rec.source_id, day),
                date=day,
                title=rec.title,
                type=rec.type,
                original_id=rec.source_id,
            )
            return
        for time in rec.times:
            yield CalendarTask(
                id=occurrence_id(rec.prefix, rec.source_id, day, time),
                date=day,
                title=rec.title,
                type=rec.type,
                time=time,
                original_id=rec.source_id,
            )


def expand_medication(medication: Medication, now: datetime) -> OccurrenceSeries:
    """Occurrences of a medication. Inactive medications have none."""
    if not medication.active:
        return OccurrenceSeries(None, now)
    return OccurrenceSeries(medication_recurrence(medication, now), now)


def expand_activity(event: CustomEvent, now: datetime) -> OccurrenceSeries:
    return OccurrenceSeries(activity_recurrence(event, now), now)


def medication_occurrences(medications: Iterable[Medication], now: datetime) -> list[CalendarTask]:
    return [task for med in medications for task in expand_medication(med, now)]


def activity_occurrences(events: Iterable[CustomEvent], now: datetime) -> list[CalendarTask]:
    return [task for event in events for task in expand_activity(event, now)]
