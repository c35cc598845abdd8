"""
Calendar service: the single object the console (or any UI) talks to.

Holds the record stores, the completion tracker, the notification inbox and
the reminder scanner, all sharing one key-value persistence collaborator and
one clock.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from carescribe import dates
from carescribe.completion import CompletionTracker
from carescribe.health_records.database import (
    ActivityStore,
    Appointment,
    AppointmentStore,
    CustomEvent,
    DocumentStore,
    KeyValueStore,
    Medication,
    MedicationStore,
    TranscriptStore,
)
from carescribe.notifications import Notification, NotificationInbox
from carescribe.notifiers import PlatformNotifier, SoundPlayer
from carescribe.occurrences import CalendarTask, activity_occurrences, medication_occurrences
from carescribe.payloads import parse_event_update, parse_new_event
from carescribe.reminders import ReminderScanner, ReminderTarget, collect_targets
from carescribe.tasks import TodayTask, build_calendar_tasks, build_today_tasks

logger = logging.getLogger(__name__)


class CalendarService:
    """Appointments, medications and activities as one calendar."""

    def __init__(
        self,
        kv: KeyValueStore,
        notifier: PlatformNotifier | None = None,
        sound: SoundPlayer | None = None,
        clock: Callable[[], datetime] = dates.now,
        reminder_interval: float | None = None,
    ):
        self._clock = clock
        self.appointments = AppointmentStore(kv, clock)
        self.medications = MedicationStore(kv, clock)
        self.activities = ActivityStore(kv)
        self.transcripts = TranscriptStore(kv)
        self.documents = DocumentStore(kv)
        self.completion = CompletionTracker(kv, self.appointments)
        self.inbox = NotificationInbox(kv)
        self.scanner = ReminderScanner(
            self.reminder_targets,
            self.inbox,
            notifier=notifier,
            sound=sound,
            clock=clock,
            interval=reminder_interval,
        )
        # kind -> (source records, day, generated occurrences)
        self._memo: dict[str, tuple] = {}

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.stop_reminders()

    def now(self) -> datetime:
        return self._clock()

    # Derived views

    def medication_tasks(self, now: datetime | None = None) -> list[CalendarTask]:
        now = now or self._clock()
        return self._memoized("medication", self.medications.records, now, medication_occurrences)

    def activity_tasks(self, now: datetime | None = None) -> list[CalendarTask]:
        now = now or self._clock()
        return self._memoized("activity", self.activities.records, now, activity_occurrences)

    def calendar_tasks(self, now: datetime | None = None) -> list[CalendarTask]:
        """Every entry in the generation window, plus one-off entries outside it."""
        now = now or self._clock()
        return build_calendar_tasks(
            self.appointments.records,
            self.medication_tasks(now),
            self.activity_tasks(now),
        )

    def today_tasks(self, now: datetime | None = None) -> list[TodayTask]:
        now = now or self._clock()
        return build_today_tasks(
            self.appointments.records,
            self.medication_tasks(now),
            self.activity_tasks(now),
            self.completion.completed_ids(),
            now,
        )

    def reminder_targets(self, now: datetime) -> list[ReminderTarget]:
        return collect_targets(
            self.medication_tasks(now),
            self.activity_tasks(now),
            self.appointments.records,
        )

    # CRUD

    def add_event(self, payload: dict) -> Appointment | Medication | CustomEvent:
        """Create an appointment, lab, medication or activity from a typed payload."""
        event_type, data = parse_new_event(payload)

        if event_type in ("appointment", "lab"):
            record = self.appointments.create(Appointment.from_dict(data))
        elif event_type == "medication":
            record = self.medications.create(Medication.from_dict(data))
        else:
            data.setdefault("date", dates.to_local_date_string(self._clock()))
            record = self.activities.create(CustomEvent.from_dict(data))

        logger.info("Added %s %s", event_type, record.id)
        return record

    def update_event(self, event_id: str, payload: dict):
        """Apply a partial update. Returns None when the record does not exist."""
        event_type, data = parse_event_update(payload)

        if event_type in ("appointment", "lab"):
            return self.appointments.update(event_id, data)
        if event_type == "medication":
            return self.medications.update(event_id, data)
        return self.activities.update(event_id, data)

    def delete_event(
        self,
        event_id: str,
        event_type: str,
        delete_series: bool = True,
        instance_date=None,
    ) -> bool:
        """Delete an event, a whole series, or one dated instance of a series.

        Recurring medications that have already started are stopped rather
        than deleted, so past occurrences and their completions stay valid.
        """
        now = self._clock()

        if event_type in ("appointment", "lab"):
            return self._delete_appointment(event_id)

        if event_type == "medication":
            medication = self.medications.get(event_id)
            if medication is None:
                return False
            if not delete_series:
                return self._skip_instance(self.medications, event_id, instance_date, now)

            start = dates.parse_local_date(medication.start_date, now)
            if not medication.is_recurring or start >= now.date():
                return self.medications.delete(event_id)

            yesterday = now.date() - timedelta(days=1)
            if medication.end_date:
                yesterday = min(yesterday, dates.parse_local_date(medication.end_date, now))
            self.medications.update(event_id, {"end_date": dates.to_local_date_string(yesterday)})
            logger.info("Stopped medication %s after %s", event_id, yesterday)
            return True

        if event_type == "activity":
            if delete_series:
                return self.activities.delete(event_id)
            return self._skip_instance(self.activities, event_id, instance_date, now)

        raise ValueError(f"Unknown event type: {event_type!r}")

    def toggle_task_completion(self, task_id: str, task_type: str, completed: bool) -> bool:
        return self.completion.toggle(task_id, task_type, completed)

    # Notifications

    def notifications(self) -> list[Notification]:
        return self.inbox.list()

    def remove_notification(self, notification_id: str) -> bool:
        return self.inbox.remove(notification_id)

    def clear_notifications(self) -> None:
        self.inbox.clear_all()

    def mark_notification_read(self, notification_id: str) -> bool:
        return self.inbox.mark_read(notification_id)

    def start_reminders(self) -> None:
        self.scanner.start()

    def stop_reminders(self) -> None:
        self.scanner.stop()

    # Private helpers

    def _memoized(self, kind: str, records: tuple, now: datetime, generate) -> list[CalendarTask]:
        cached = self._memo.get(kind)
        if cached and cached[0] is records and cached[1] == now.date():
            return list(cached[2])
        occurrences = generate(records, now)
        self._memo[kind] = (records, now.date(), occurrences)
        return list(occurrences)

    def _delete_appointment(self, appointment_id: str) -> bool:
        if self.appointments.get(appointment_id) is None:
            return False
        removed = self.transcripts.delete_for_appointment(appointment_id)
        detached = self.documents.detach_from_appointment(appointment_id)
        self.appointments.delete(appointment_id)
        logger.info(
            "Deleted appointment %s (%d transcripts removed, %d documents detached)",
            appointment_id, removed, detached,
        )
        return True

    def _skip_instance(self, store, event_id: str, instance_date, now: datetime) -> bool:
        if not instance_date:
            return False
        day = dates.to_local_date_string(dates.parse_local_date(instance_date, now))
        return store.skip_date(event_id, day) is not None
