"""
Reminder scanning.

Once a minute the scanner compares every timed occurrence and upcoming
appointment against the wall clock and fires the reminders whose trigger
window contains the current time. Each firing plays a sound, raises a
platform notification and appends to the inbox; the three are independent
and none of them may stop the scan.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable

from carescribe import config, dates
from carescribe.health_records.database import Appointment
from carescribe.notifications import Notification, NotificationInbox
from carescribe.notifiers import PERMISSION_DEFAULT, PERMISSION_GRANTED, PlatformNotifier, SoundPlayer
from carescribe.occurrences import CalendarTask
from carescribe.tasks import appointment_task_id, appointment_title

logger = logging.getLogger(__name__)

ONE_MINUTE = timedelta(minutes=1)
LEDGER_TTL = timedelta(days=1)


@dataclass(frozen=True)
class ReminderRule:
    """Fire ``title`` when scheduled time minus now is near ``offset``.

    Inclusive rules accept ``offset`` +/- ``tolerance``. The others fire only
    once the moment has arrived, within ``tolerance`` after it.
    """
    key: str
    title: str
    template: str
    offset: timedelta
    tolerance: timedelta = ONE_MINUTE
    inclusive: bool = False

    def matches(self, delta: timedelta) -> bool:
        gap = delta - self.offset
        if self.inclusive:
            return abs(gap) <= self.tolerance
        return -self.tolerance < gap <= timedelta(0)

    def message(self, subject: str) -> str:
        return self.template.format(title=subject)


MEDICATION_RULES = (
    ReminderRule("now", "Medication Reminder", "Time to take: {title}", timedelta(0)),
)

ACTIVITY_RULES = (
    ReminderRule("30m", "Upcoming Activity", "{title} in 30 minutes", timedelta(minutes=30), inclusive=True),
    ReminderRule("now", "Activity Reminder", "Starting now: {title}", timedelta(0)),
)

APPOINTMENT_RULES = (
    ReminderRule("24h", "Upcoming Appointment", "{title} tomorrow", timedelta(hours=24),
                  tolerance=timedelta(minutes=6), inclusive=True),
    ReminderRule("1h", "Upcoming Appointment", "{title} in 1 hour", timedelta(hours=1)),
    ReminderRule("now", "Appointment Reminder", "{title} starting now", timedelta(0)),
)


@dataclass(frozen=True)
class ReminderTarget:
    """Something with a scheduled time and the rules that apply to it."""
    id: str
    title: str
    scheduled_at: datetime
    rules: tuple[ReminderRule, ...]


def collect_targets(
    medication_tasks: Iterable[CalendarTask],
    activity_tasks: Iterable[CalendarTask],
    appointments: Iterable[Appointment],
) -> list[ReminderTarget]:
    """Timed medications and activities, plus dated open appointments."""
    targets = []

    for task in medication_tasks:
        if task.scheduled_at is None:
            continue
        targets.append(ReminderTarget(task.id, task.title, task.scheduled_at, MEDICATION_RULES))

    # Timeless activity occurrences are all-day entries
    for task in activity_tasks:
        if task.scheduled_at is None:
            continue
        targets.append(ReminderTarget(task.id, task.title, task.scheduled_at, ACTIVITY_RULES))

    for apt in appointments:
        if not apt.date or apt.status in ("completed", "cancelled"):
            continue
        when = apt.scheduled_at
        target_id = f"{appointment_task_id(apt)}-{when:%Y-%m-%d-%H:%M}"
        targets.append(ReminderTarget(target_id, appointment_title(apt), when, APPOINTMENT_RULES))

    return targets


class ReminderScanner:
    """Periodic reminder scan with at-most-once delivery per reminder."""

    def __init__(
        self,
        targets: Callable[[datetime], Iterable[ReminderTarget]],
        inbox: NotificationInbox,
        notifier: PlatformNotifier | None = None,
        sound: SoundPlayer | None = None,
        clock: Callable[[], datetime] = dates.now,
        interval: float | None = None,
    ):
        self._targets = targets
        self._inbox = inbox
        self._notifier = notifier
        self._sound = sound
        self._clock = clock
        self.interval = interval or config.REMINDER_INTERVAL_SECONDS

        # reminder id | day | hour | minute -> time it fired
        self._ledger: dict[str, datetime] = {}
        # reminder id -> time it fired, for the rest of the session
        self._fired: dict[str, datetime] = {}
        self._lock = threading.Lock()
        self._permission_checked = False
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Begin scanning at the top of the next minute, then every interval."""
        if self.running:
            return
        self.ensure_permission()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="reminder-scanner", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5) -> None:
        """Cancel the periodic scan and wait for the thread to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Reminder scanner did not stop within %ss", timeout)
                return
            self._thread = None

    def ensure_permission(self) -> None:
        """Check platform permission once, requesting it if undetermined."""
        if self._permission_checked or self._notifier is None:
            return
        self._permission_checked = True
        try:
            if self._notifier.permission == PERMISSION_DEFAULT:
                self._notifier.request_permission()
        except Exception:
            logger.warning("Notification permission request failed", exc_info=True)

    def scan(self, now: datetime | None = None) -> list[Notification]:
        """Run one pass. Returns the notifications it created."""
        now = now or self._clock()
        self.ensure_permission()
        self._prune_ledger(now)

        try:
            targets = list(self._targets(now))
        except Exception:
            logger.warning("Could not collect reminder targets", exc_info=True)
            return []

        fired = []
        for target in targets:
            delta = target.scheduled_at - now
            for rule in target.rules:
                reminder_id = f"{target.id}-{rule.key}"
                try:
                    if not rule.matches(delta):
                        continue
                    notification = self._fire(reminder_id, rule.title, rule.message(target.title), now)
                except Exception:
                    logger.warning("Reminder %s failed", reminder_id, exc_info=True)
                    continue
                if notification is not None:
                    fired.append(notification)
        return fired

    # Private helpers

    def _fire(self, reminder_id: str, title: str, message: str, now: datetime) -> Notification | None:
        key = f"{reminder_id}|{now:%Y-%m-%d}|{now:%H}|{now:%M}"
        with self._lock:
            if key in self._ledger or reminder_id in self._fired or self._inbox.has(reminder_id):
                return None
            self._ledger[key] = now
            self._fired[reminder_id] = now

        self._play_sound()
        self._push(title, message)
        notification = self._inbox.add(reminder_id, title, message, now)
        if notification is not None:
            logger.info("Fired %s: %s", title, message)
        return notification

    def _play_sound(self) -> None:
        if self._sound is None:
            return
        try:
            self._sound.play()
        except Exception:
            logger.warning("Notification sound failed", exc_info=True)

    def _push(self, title: str, message: str) -> None:
        if self._notifier is None or self._notifier.permission != PERMISSION_GRANTED:
            return
        try:
            self._notifier.notify(title, message)
        except Exception:
            logger.warning("Platform notification failed", exc_info=True)

    def _prune_ledger(self, now: datetime) -> None:
        with self._lock:
            self._ledger = {k: t for k, t in self._ledger.items() if now - t < LEDGER_TTL}
            self._fired = {k: t for k, t in self._fired.items() if now - t < LEDGER_TTL}

    def _run(self) -> None:
        current = self._clock()
        delay = 60 - current.second - current.microsecond / 1_000_000
        while not self._stop.wait(delay):
            try:
                self.scan()
            except Exception:
                logger.warning("Reminder scan failed", exc_info=True)
            delay = self.interval
