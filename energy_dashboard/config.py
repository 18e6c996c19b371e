import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in {"0", "false", "no", ""}


API_PREFIX = os.getenv("API_PREFIX", "/api/v1").rstrip("/")
APP_TITLE = os.getenv("APP_TITLE", "Meeting Room Energy Dashboard")
APP_TIMEZONE = ZoneInfo(os.getenv("APP_TIMEZONE", "Asia/Jakarta"))
FRONTEND_URL = os.getenv("FRONTEND_URL", "")
SQL_ECHO = _env_flag("SQL_ECHO", "false")

# frontend refresh cadence (milliseconds)
DASHBOARD_POLL_MS = int(os.getenv("DASHBOARD_POLL_MS", "5000"))
PAGE_POLL_MS = int(os.getenv("PAGE_POLL_MS", "10000"))

# monitoring defaults, overridable per install through the settings table
TEMPERATURE_THRESHOLD = float(os.getenv("TEMPERATURE_THRESHOLD", "30"))
POWER_THRESHOLD = float(os.getenv("POWER_THRESHOLD", "3.5"))
STALE_THRESHOLD_MINUTES = int(os.getenv("STALE_THRESHOLD_MINUTES", "60"))

ALERT_WEBHOOK_URL = os.getenv("ALERT_WEBHOOK_URL", "")
MONITOR_TOKEN = os.getenv("MONITOR_TOKEN", "")

LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def now_local() -> datetime:
    # naive datetime in the configured zone so DB timestamps stay consistent
    return datetime.now(APP_TIMEZONE).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(APP_TIMEZONE).replace(tzinfo=None)


def configure_logging(filename: str = "energy_dashboard.log") -> None:
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    LOG_DIR.mkdir(exist_ok=True)
    file_handler = logging.FileHandler(LOG_DIR / filename, encoding="utf-8")
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
