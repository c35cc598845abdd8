"""Sound and platform notification collaborators for fired reminders."""

from typing import Protocol

import requests
from rich.console import Console

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_DEFAULT = "default"


class NotificationDeliveryError(Exception):
    """Raised when a platform notification cannot be delivered."""
    pass


class SoundPlayer(Protocol):
    def play(self) -> None: ...


class PlatformNotifier(Protocol):
    permission: str

    def request_permission(self) -> str: ...

    def notify(self, title: str, message: str) -> None: ...


class ConsoleSoundPlayer:
    """Rings the terminal bell."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def play(self) -> None:
        self.console.bell()


class ConsoleNotifier:
    """Prints reminders to the console. Always permitted."""

    permission = PERMISSION_GRANTED

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def request_permission(self) -> str:
        return self.permission

    def notify(self, title: str, message: str) -> None:
        self.console.print(f"[bold yellow]{title}:[/bold yellow] {message}")


class WebhookNotifier:
    """Pushes reminders as JSON to an HTTP endpoint (ntfy, a phone bridge, ...).

    Permission is undetermined until requested; it is granted only when an
    endpoint URL is configured.
    """

    def __init__(self, url: str | None, timeout: float = 10):
        self.url = url
        self.timeout = timeout
        self.permission = PERMISSION_DEFAULT

    def request_permission(self) -> str:
        self.permission = PERMISSION_GRANTED if self.url else PERMISSION_DENIED
        return self.permission

    def notify(self, title: str, message: str) -> None:
        if not self.url:
            raise NotificationDeliveryError("NOTIFY_WEBHOOK_URL not set")

        payload = {"title": title, "message": message}

        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise NotificationDeliveryError("Push request timed out")
        except requests.exceptions.ConnectionError:
            raise NotificationDeliveryError("Failed to connect to push endpoint")

        if response.status_code in (401, 403):
            raise NotificationDeliveryError("Push endpoint rejected credentials")
        elif response.status_code >= 400:
            raise NotificationDeliveryError(f"Push endpoint error: {response.status_code}")
