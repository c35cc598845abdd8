"""Tests for reminder rules and the reminder scanner."""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from carescribe.calendar_service import CalendarService
from carescribe.health_records.database import Appointment
from carescribe.notifications import NotificationInbox
from carescribe.notifiers import PERMISSION_DEFAULT, PERMISSION_DENIED, NotificationDeliveryError
from carescribe.reminders import (
    ACTIVITY_RULES,
    APPOINTMENT_RULES,
    MEDICATION_RULES,
    ReminderScanner,
    ReminderTarget,
)

from conftest import NOW


def add_aspirin(service):
    return service.add_event({
        "type": "medication",
        "name": "Aspirin",
        "dosage": "81mg",
        "frequencyType": "daily",
        "times": ["08:00"],
        "startDate": "2026-10-01",
    })


@pytest.fixture
def inbox(kv):
    return NotificationInbox(kv)


def single_target(scheduled_at=datetime(2026, 10, 19, 8, 0)):
    return lambda now: [ReminderTarget("med-m1-2026-10-19-08:00", "Aspirin 81mg", scheduled_at, MEDICATION_RULES)]


class TestReminderRules:
    """Tests for trigger window boundaries."""

    def test_at_time_window_opens_on_time(self):
        """Test at-time rules fire from the scheduled moment until a minute after."""
        rule = MEDICATION_RULES[0]
        assert rule.matches(timedelta(0))
        assert rule.matches(timedelta(seconds=-59))
        assert not rule.matches(timedelta(seconds=1))
        assert not rule.matches(timedelta(seconds=59))
        assert not rule.matches(timedelta(seconds=-60))
        assert not rule.matches(timedelta(seconds=60))

    def test_hour_before_window_opens_on_time(self):
        """Test the one-hour rule waits until exactly an hour remains."""
        rule = APPOINTMENT_RULES[1]
        assert rule.matches(timedelta(hours=1))
        assert rule.matches(timedelta(minutes=59, seconds=1))
        assert not rule.matches(timedelta(hours=1, seconds=1))

    def test_thirty_minute_window_is_inclusive(self):
        """Test the 30-minute activity rule includes its edges."""
        rule = ACTIVITY_RULES[0]
        assert rule.matches(timedelta(minutes=31))
        assert rule.matches(timedelta(minutes=29))
        assert not rule.matches(timedelta(minutes=31, seconds=1))

    def test_day_before_window(self):
        """Test the 24-hour rule accepts six minutes either side."""
        rule = APPOINTMENT_RULES[0]
        assert rule.matches(timedelta(hours=24, minutes=6))
        assert rule.matches(timedelta(hours=23, minutes=54))
        assert not rule.matches(timedelta(hours=24, minutes=6, seconds=1))

    def test_messages(self):
        """Test rule messages include the subject."""
        assert MEDICATION_RULES[0].message("Aspirin 81mg") == "Time to take: Aspirin 81mg"
        assert ACTIVITY_RULES[0].message("Walk") == "Walk in 30 minutes"
        assert APPOINTMENT_RULES[0].message("Dr. Lee") == "Dr. Lee tomorrow"
        assert APPOINTMENT_RULES[2].message("Dr. Lee") == "Dr. Lee starting now"


class TestServiceScan:
    """End-to-end scans over the calendar service."""

    def test_medication_fires_at_time(self, service, notifier, sound):
        """Test a due medication lands in the inbox, rings and pushes."""
        med = add_aspirin(service)
        fired = service.scanner.scan()

        assert [(n.id, n.title, n.message) for n in fired] == [
            (f"med-{med.id}-2026-10-19-08:00-now", "Medication Reminder", "Time to take: Aspirin 81mg"),
        ]
        assert service.notifications() == fired
        sound.play.assert_called_once()
        notifier.notify.assert_called_once_with("Medication Reminder", "Time to take: Aspirin 81mg")

    def test_rescan_next_minute_does_not_refire(self, service):
        """Test the next minute's scan finds nothing new."""
        add_aspirin(service)
        service.scanner.scan(NOW)
        assert service.scanner.scan(datetime(2026, 10, 19, 8, 1, 0)) == []
        assert len(service.notifications()) == 1

    def test_scan_before_dose_is_silent(self, service):
        """Test the scan in the minute before the dose fires nothing, and the on-time scan fires."""
        add_aspirin(service)
        assert service.scanner.scan(datetime(2026, 10, 19, 7, 59, 0, 10000)) == []
        fired = service.scanner.scan(datetime(2026, 10, 19, 8, 0, 0, 10000))
        assert [n.title for n in fired] == ["Medication Reminder"]

    def test_dismissed_reminder_stays_dismissed(self, service, sound):
        """Test removing a reminder while its window is open does not bring it back."""
        service.appointments.create(Appointment(id="x1", date="2026-10-20T08:03:00", doctor="Dr. Lee"))
        fired = service.scanner.scan(datetime(2026, 10, 19, 8, 0, 0))
        assert [n.id for n in fired] == ["apt-x1-2026-10-20-08:03-24h"]

        service.remove_notification("apt-x1-2026-10-20-08:03-24h")
        assert service.scanner.scan(datetime(2026, 10, 19, 8, 1, 0)) == []
        assert service.scanner.scan(datetime(2026, 10, 19, 8, 5, 0)) == []
        assert service.notifications() == []
        sound.play.assert_called_once()

    def test_same_minute_rescan(self, service, notifier):
        """Test two scans in the same minute fire once."""
        add_aspirin(service)
        service.scanner.scan(datetime(2026, 10, 19, 8, 0, 5))
        service.scanner.scan(datetime(2026, 10, 19, 8, 0, 50))
        assert len(service.notifications()) == 1
        assert notifier.notify.call_count == 1

    def test_appointment_day_before(self, service):
        """Test an appointment a day and a minute away fires the day-before reminder."""
        service.appointments.create(Appointment(id="x1", date="2026-10-20T08:01:30", doctor="Dr. Lee"))
        fired = service.scanner.scan()
        assert [(n.id, n.title, n.message) for n in fired] == [
            ("apt-x1-2026-10-20-08:01-24h", "Upcoming Appointment", "Dr. Lee tomorrow"),
        ]

    def test_appointment_hour_before(self, service):
        """Test the one-hour reminder for a lab."""
        service.appointments.create(Appointment(id="x2", type="lab", lab_type="CBC", date="2026-10-19T09:00:30"))
        fired = service.scanner.scan()
        assert [(n.title, n.message) for n in fired] == [("Upcoming Appointment", "CBC in 1 hour")]

    def test_completed_appointment_silent(self, service):
        """Test completed and cancelled appointments never fire."""
        service.appointments.create(Appointment(id="x1", date="2026-10-19T09:00:30", status="completed"))
        service.appointments.create(Appointment(id="x2", date="2026-10-19T08:00:30", status="cancelled"))
        assert service.scanner.scan() == []

    def test_activity_half_hour_before(self, service):
        """Test a timed activity gets the 30-minute reminder."""
        service.add_event({"type": "activity", "title": "Walk", "time": "08:30", "frequencyType": "daily", "date": "2026-10-01"})
        fired = service.scanner.scan()
        assert [(n.title, n.message) for n in fired] == [("Upcoming Activity", "Walk in 30 minutes")]

    def test_all_day_activity_silent(self, service):
        """Test all-day activities are never reminded."""
        service.add_event({
            "type": "activity", "title": "Stretch", "time": "08:00",
            "allDay": True, "frequencyType": "daily", "date": "2026-10-01",
        })
        assert service.scanner.scan() == []

    def test_inactive_medication_silent(self, service):
        """Test paused medications are never reminded."""
        med = add_aspirin(service)
        service.medications.toggle_active(med.id)
        assert service.scanner.scan() == []


class TestScannerFailures:
    """Tests that delivery failures never stop a reminder."""

    def test_sound_and_push_failures_still_record(self, inbox):
        """Test the inbox entry is written when sound and push both fail."""
        sound = MagicMock()
        sound.play.side_effect = RuntimeError("no audio device")
        notifier = MagicMock(permission="granted")
        notifier.notify.side_effect = NotificationDeliveryError("Push request timed out")

        scanner = ReminderScanner(single_target(), inbox, notifier=notifier, sound=sound, clock=lambda: NOW)
        fired = scanner.scan()

        assert len(fired) == 1
        assert inbox.has("med-m1-2026-10-19-08:00-now")

    def test_permission_requested_once(self, inbox):
        """Test undetermined permission is requested on the first scan only."""
        notifier = MagicMock(permission=PERMISSION_DEFAULT)
        scanner = ReminderScanner(lambda now: [], inbox, notifier=notifier, clock=lambda: NOW)
        scanner.scan()
        scanner.scan()
        notifier.request_permission.assert_called_once()

    def test_denied_permission_skips_push(self, inbox):
        """Test no platform notification without permission."""
        notifier = MagicMock(permission=PERMISSION_DENIED)
        scanner = ReminderScanner(single_target(), inbox, notifier=notifier, clock=lambda: NOW)
        assert len(scanner.scan()) == 1
        notifier.notify.assert_not_called()
        notifier.request_permission.assert_not_called()

    def test_target_collection_failure(self, inbox):
        """Test a failing target source is logged and the scan returns empty."""
        def broken(now):
            raise RuntimeError("store unavailable")

        scanner = ReminderScanner(broken, inbox, clock=lambda: NOW)
        assert scanner.scan() == []

    def test_existing_inbox_entry_not_duplicated(self, inbox):
        """Test a reminder already in the inbox is not fired again after restart."""
        inbox.add("med-m1-2026-10-19-08:00-now", "Medication Reminder", "Time to take: Aspirin 81mg", NOW)
        sound = MagicMock()
        scanner = ReminderScanner(single_target(), inbox, sound=sound, clock=lambda: NOW)
        assert scanner.scan() == []
        sound.play.assert_not_called()


class TestScannerLifecycle:
    """Tests for starting and stopping the periodic scan."""

    def test_start_and_stop(self, inbox):
        """Test the background thread starts once and stops promptly."""
        scanner = ReminderScanner(lambda now: [], inbox, clock=lambda: NOW, interval=0.05)
        scanner.start()
        thread = scanner._thread
        scanner.start()
        assert scanner.running
        assert scanner._thread is thread

        scanner.stop()
        assert not scanner.running

    def test_stop_keeps_thread_that_did_not_exit(self, inbox):
        """Test a scanner thread still running after stop is not replaced by a second one."""
        scanner = ReminderScanner(lambda now: [], inbox, clock=lambda: NOW)
        stuck = MagicMock()
        stuck.is_alive.return_value = True
        scanner._thread = stuck

        scanner.stop(timeout=0.01)
        assert scanner._thread is stuck

        scanner.start()
        assert scanner._thread is stuck
        stuck.join.assert_called_once_with(0.01)

    def test_service_context_stops_scanner(self, kv, clock):
        """Test leaving the service context stops reminders."""
        with CalendarService(kv, clock=clock) as service:
            service.start_reminders()
            assert service.scanner.running
        assert not service.scanner.running
