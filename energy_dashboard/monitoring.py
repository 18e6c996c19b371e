import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from energy_dashboard import config
from energy_dashboard.crud import alerts as alert_crud
from energy_dashboard.crud.settings import typed_setting
from energy_dashboard.models import Alert, Device
from energy_dashboard.notifier import notify_alert_async

logger = logging.getLogger(__name__)


def load_thresholds(db: Session) -> Dict[str, float]:
    return {
        "temperature": float(typed_setting(db, "temperature_threshold", config.TEMPERATURE_THRESHOLD)),
        "power": float(typed_setting(db, "power_threshold", config.POWER_THRESHOLD)),
        "stale_minutes": float(typed_setting(db, "stale_threshold_minutes", config.STALE_THRESHOLD_MINUTES)),
    }


def _candidate_alerts(device: Device, thresholds: Dict[str, float], now: datetime) -> List[Dict[str, Any]]:
    found = []
    if device.last_reading is not None:
        age = now - device.last_reading
        if age >= timedelta(minutes=thresholds["stale_minutes"]):
            found.append(
                {
                    "type": "device_offline",
                    "severity": "high",
                    "title": f"{device.device_name} is offline",
                    "message": f"No readings since {device.last_reading.strftime('%d %b %Y %I:%M %p')}",
                    "metadata": {"last_reading": device.last_reading.isoformat()},
                }
            )
    temp = device.current_temperature
    if temp is not None and temp > thresholds["temperature"]:
        found.append(
            {
                "type": "temperature",
                "severity": "high",
                "title": f"High temperature on {device.device_name}",
                "message": f"Current {temp:.1f}C exceeds limit {thresholds['temperature']:.1f}C",
                "metadata": {"value": temp, "threshold": thresholds["temperature"]},
            }
        )
    power = device.current_power
    if power is not None and power > thresholds["power"]:
        found.append(
            {
                "type": "consumption",
                "severity": "medium",
                "title": f"High consumption on {device.device_name}",
                "message": f"Current {power:.2f} kW exceeds limit {thresholds['power']:.2f} kW",
                "metadata": {"value": power, "threshold": thresholds["power"]},
            }
        )
    return found


def scan_devices_for_alerts(db: Session, now: datetime | None = None, *, notify: bool = True) -> List[Alert]:
    """Compare every device snapshot with the thresholds and raise alerts."""
    now = now or config.now_local()
    thresholds = load_thresholds(db)
    devices = db.query(Device).order_by(Device.id).all()
    logger.info("Running device scan for %s devices | thresholds=%s", len(devices), thresholds)
    raised: List[Alert] = []
    for device in devices:
        for candidate in _candidate_alerts(device, thresholds, now):
            if candidate["type"] == "device_offline" and device.iot_status != "offline":
                device.iot_status = "offline"
                db.commit()
            if alert_crud.has_open_alert(db, device.id, candidate["type"]):
                logger.debug("[scan] open %s alert already exists for device %s", candidate["type"], device.id)
                continue
            alert = alert_crud.create_alert(db, {**candidate, "device_id": device.id, "class_id": device.class_id})
            logger.info("[scan] raised %s alert %s for device %s", alert.type, alert.id, device.id)
            raised.append(alert)
            if notify:
                notify_alert_async(alert)
    return raised
