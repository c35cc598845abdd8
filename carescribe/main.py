"""Interactive console for the CareScribe calendar and reminders."""

import json
import sys
from datetime import timedelta

from pydantic import ValidationError
from rich.markdown import Markdown
from rich.table import Table

from carescribe import config
from carescribe.calendar_service import CalendarService
from carescribe.health_records.database import SQLiteKeyValueStore
from carescribe.log import configure_logging, console
from carescribe.notifiers import ConsoleNotifier, ConsoleSoundPlayer, WebhookNotifier

HELP = """
**Commands**

- `today` - today's checklist
- `calendar [days]` - upcoming entries (default 7 days)
- `meds` - medications on file
- `done <id>` / `undo <id>` - check off a checklist entry
- `add-med <json>` / `add-activity <json>` / `add-appointment <json>`
- `delete <type> <id> [YYYY-MM-DD]` - delete a record, or one dated instance
- `notifications` / `dismiss <id>` / `clear`
- `quit`
"""


def build_service() -> CalendarService:
    """Wire the service to SQLite and the configured notifier."""
    if config.NOTIFY_WEBHOOK_URL:
        notifier = WebhookNotifier(config.NOTIFY_WEBHOOK_URL)
    else:
        notifier = ConsoleNotifier(console)
    sound = ConsoleSoundPlayer(console) if config.NOTIFY_SOUND else None
    return CalendarService(SQLiteKeyValueStore(), notifier=notifier, sound=sound)


def show_today(service: CalendarService) -> None:
    tasks = service.today_tasks()
    if not tasks:
        console.print("[dim]Nothing scheduled today.[/dim]")
        return
    table = Table(title=f"Today, {service.now():%A %B %d}")
    table.add_column("")
    table.add_column("Due")
    table.add_column("Task")
    table.add_column("Type", style="dim")
    table.add_column("Id", style="dim")
    for task in tasks:
        mark = "[green]x[/green]" if task.completed else " "
        table.add_row(mark, task.due, task.title, task.subtitle, task.id)
    console.print(table)


def show_calendar(service: CalendarService, days: int = 7) -> None:
    now = service.now()
    last = now.date() + timedelta(days=days)
    table = Table(title=f"Next {days} days")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Entry")
    table.add_column("Type", style="dim")
    for task in service.calendar_tasks(now):
        if now.date() <= task.date < last:
            table.add_row(f"{task.date:%a %b %d}", task.time or "", task.title, task.type)
    console.print(table)


def show_medications(service: CalendarService) -> None:
    table = Table(title="Medications")
    for column in ("Id", "Name", "Dosage", "Schedule", "Times", "Active"):
        table.add_column(column)
    for med in service.medications.list():
        schedule = med.frequency_type or "daily"
        if med.end_date:
            schedule += f" until {med.end_date}"
        table.add_row(med.id, med.name, med.dosage, schedule, ", ".join(med.times), "yes" if med.active else "no")
    console.print(table)


def show_notifications(service: CalendarService) -> None:
    items = service.notifications()
    if not items:
        console.print("[dim]No notifications.[/dim]")
        return
    for item in items:
        style = "dim" if item.read else "bold"
        console.print(f"[{style}]{item.title}[/{style}] {item.message} [dim]({item.id})[/dim]")
        service.mark_notification_read(item.id)


def find_today_task(service: CalendarService, task_id: str):
    for task in service.today_tasks():
        if task.id == task_id:
            return task
    return None


def handle_command(service: CalendarService, line: str) -> bool:
    """Run one console command. Returns False when the user wants to leave."""
    command, _, rest = line.partition(" ")
    command = command.lower()
    rest = rest.strip()

    if command in ("quit", "exit"):
        return False

    if command == "help":
        console.print(Markdown(HELP))
    elif command == "today":
        show_today(service)
    elif command == "calendar":
        show_calendar(service, int(rest) if rest.isdigit() else 7)
    elif command == "meds":
        show_medications(service)
    elif command in ("done", "undo"):
        task = find_today_task(service, rest)
        if task is None:
            console.print(f"[red]No checklist entry {rest!r} today.[/red]")
        else:
            service.toggle_task_completion(task.id, task.type, command == "done")
            show_today(service)
    elif command in ("add-med", "add-activity", "add-appointment"):
        event_type = {"add-med": "medication", "add-activity": "activity"}.get(command, "appointment")
        payload = json.loads(rest or "{}")
        if not isinstance(payload, dict):
            raise ValueError("Event details must be a JSON object")
        payload.setdefault("type", event_type)
        record = service.add_event(payload)
        console.print(f"Added [bold]{record.id}[/bold]")
    elif command == "delete":
        parts = rest.split()
        if len(parts) < 2:
            console.print("Usage: delete <type> <id> [YYYY-MM-DD]")
        else:
            instance = parts[2] if len(parts) > 2 else None
            deleted = service.delete_event(parts[1], parts[0], delete_series=instance is None, instance_date=instance)
            console.print("Deleted." if deleted else "[red]Nothing to delete.[/red]")
    elif command == "notifications":
        show_notifications(service)
    elif command == "dismiss":
        service.remove_notification(rest)
    elif command == "clear":
        service.clear_notifications()
    else:
        console.print(f"Unknown command {command!r}. Type 'help' for a list.")
    return True


def main():
    """Main console loop."""
    configure_logging()

    console.print("[bold blue]Welcome to CareScribe![/bold blue]")
    console.print("Type 'help' for commands, 'quit' or 'exit' to leave.\n")

    is_tty = sys.stdin.isatty()

    with build_service() as service:
        service.start_reminders()
        show_today(service)

        while True:
            try:
                line = console.input("[bold green]>[/bold green] ").strip()
                # Echo input when stdin is piped (not interactive)
                if not is_tty and line:
                    console.print(f"[dim]{line}[/dim]")
            except (EOFError, KeyboardInterrupt):
                break

            if not line:
                continue

            try:
                if not handle_command(service, line):
                    break
            except (ValidationError, ValueError) as e:
                console.print(f"[bold red]Error:[/bold red] {e}\n")

    console.print("\n[bold blue]Goodbye![/bold blue]")


if __name__ == "__main__":
    main()
