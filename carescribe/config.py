"""Runtime configuration loaded from the environment and an optional .env file."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

BASE_DIR = Path(__file__).parent

DB_PATH = Path(os.environ.get("CARESCRIBE_DB_PATH") or BASE_DIR / "carescribe.db")

# IANA zone name, e.g. "America/New_York". Empty means the system local zone.
TIMEZONE = os.environ.get("CARESCRIBE_TIMEZONE", "")

REMINDER_INTERVAL_SECONDS = int(os.environ.get("REMINDER_INTERVAL_SECONDS", "60"))

NOTIFY_WEBHOOK_URL = os.environ.get("NOTIFY_WEBHOOK_URL")
NOTIFY_SOUND = os.environ.get("NOTIFY_SOUND", "1") == "1"

LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING").upper()
