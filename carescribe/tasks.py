"""Calendar and today-checklist views over appointments and occurrences."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from carescribe import dates
from carescribe.health_records.database import Appointment
from carescribe.occurrences import CalendarTask


@dataclass(frozen=True)
class TodayTask:
    """A checklist row for today."""
    id: str
    title: str
    subtitle: str
    due: str
    type: str
    completed: bool
    original_id: str | None = None


def appointment_task_id(appointment: Appointment) -> str:
    return f"{'lab' if appointment.is_lab else 'apt'}-{appointment.id}"


def appointment_title(appointment: Appointment) -> str:
    if appointment.is_lab:
        return appointment.lab_type or "Lab Work"
    return appointment.doctor or "Appointment"


def appointment_tasks(appointments: Iterable[Appointment]) -> list[CalendarTask]:
    """One calendar entry per dated, non-cancelled appointment or lab."""
    tasks = []
    for apt in appointments:
        if apt.status == "cancelled" or not apt.date:
            continue
        when = apt.scheduled_at
        tasks.append(CalendarTask(
            id=appointment_task_id(apt),
            date=when.date(),
            title=appointment_title(apt),
            type="lab" if apt.is_lab else "appointment",
            time=when.strftime("%H:%M"),
            original_id=apt.id,
        ))
    return tasks


def build_calendar_tasks(
    appointments: Iterable[Appointment],
    medication_tasks: Iterable[CalendarTask],
    activity_tasks: Iterable[CalendarTask],
) -> list[CalendarTask]:
    """Union of appointments, medication and activity occurrences, by date."""
    combined = [*appointment_tasks(appointments), *medication_tasks, *activity_tasks]
    return sorted(combined, key=lambda t: (t.date, t.time or ""))


def build_today_tasks(
    appointments: Iterable[Appointment],
    medication_tasks: Iterable[CalendarTask],
    activity_tasks: Iterable[CalendarTask],
    completed_ids: set[str],
    now: datetime,
) -> list[TodayTask]:
    """Today's checklist: appointments, then medications, then activities."""
    today = now.date()

    apts = []
    for apt in appointments:
        if apt.status == "cancelled" or not apt.date:
            continue
        when = apt.scheduled_at
        if when.date() != today:
            continue
        apts.append(TodayTask(
            id=appointment_task_id(apt),
            title=appointment_title(apt),
            subtitle="Lab" if apt.is_lab else (apt.specialty or "Visit"),
            due=dates.format_clock(when),
            type="lab" if apt.is_lab else "appointment",
            completed=apt.status == "completed",
            original_id=apt.id,
        ))

    meds = [
        TodayTask(
            id=task.id,
            title=task.title,
            subtitle="Medication",
            due=task.time or "Any time",
            type="medication",
            completed=task.id in completed_ids,
            original_id=task.original_id,
        )
        for task in medication_tasks
        if task.date == today
    ]

    activities = [
        TodayTask(
            id=task.id,
            title=task.title,
            subtitle="Activity",
            due=task.time or "All day",
            type="activity",
            completed=task.id in completed_ids,
            original_id=task.original_id,
        )
        for task in activity_tasks
        if task.date == today
    ]

    return [*apts, *meds, *activities]
