import logging
import os
import threading
import time

from energy_dashboard.config import now_local
from energy_dashboard.database import SessionLocal
from energy_dashboard.monitoring import scan_devices_for_alerts

logger = logging.getLogger(__name__)

_scheduler_thread: threading.Thread | None = None
_thread_lock = threading.Lock()
_alert_state_lock = threading.Lock()

SCHEDULER_ENABLED = os.getenv("ENABLE_ALERT_SCHEDULER", "true").lower() not in {"0", "false", "no"}
SCHEDULER_INTERVAL_MINUTES = max(1, int(os.getenv("ALERT_SCAN_INTERVAL_MINUTES", "5")))
_alert_enabled = SCHEDULER_ENABLED
_last_run: dict = {"started_at": None, "raised": 0}


def run_scan_once() -> int:
    with SessionLocal() as session:
        raised = scan_devices_for_alerts(session)
    with _alert_state_lock:
        _last_run["started_at"] = now_local()
        _last_run["raised"] = len(raised)
    return len(raised)


def _scheduler_loop():
    logger.info(
        "Device alert scheduler started (interval=%s minutes, enabled=%s)",
        SCHEDULER_INTERVAL_MINUTES,
        SCHEDULER_ENABLED,
    )
    interval_seconds = SCHEDULER_INTERVAL_MINUTES * 60
    while True:
        started = time.time()
        try:
            with _alert_state_lock:
                do_run = _alert_enabled
            if do_run:
                run_scan_once()
        except Exception:
            logger.exception("Device alert scheduler iteration failed")
        elapsed = time.time() - started
        sleep_for = max(1, interval_seconds - int(elapsed))
        time.sleep(sleep_for)


def start_alert_scheduler(*, force: bool = False):
    """Spawn a background thread that scans devices and raises alerts."""
    if not SCHEDULER_ENABLED and not force:
        logger.info("Device alert scheduler disabled via ENABLE_ALERT_SCHEDULER")
        return None
    global _scheduler_thread
    with _thread_lock:
        if _scheduler_thread and _scheduler_thread.is_alive():
            return _scheduler_thread
        _scheduler_thread = threading.Thread(
            target=_scheduler_loop,
            name="device-alert-scheduler",
            daemon=True,
        )
        _scheduler_thread.start()
        return _scheduler_thread


def get_alert_scheduler_state() -> dict:
    with _alert_state_lock:
        return {
            "enabled": _alert_enabled,
            "running": bool(_scheduler_thread and _scheduler_thread.is_alive()),
            "interval_minutes": SCHEDULER_INTERVAL_MINUTES,
            "last_run": _last_run["started_at"],
            "last_raised": _last_run["raised"],
        }


def set_alert_scheduler_enabled(enabled: bool) -> None:
    global _alert_enabled
    with _alert_state_lock:
        _alert_enabled = bool(enabled)


__all__ = [
    "run_scan_once",
    "start_alert_scheduler",
    "get_alert_scheduler_state",
    "set_alert_scheduler_enabled",
]
