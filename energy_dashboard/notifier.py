import logging
import threading
import uuid
from typing import Any, Dict, Tuple

import requests

from energy_dashboard import config
from energy_dashboard.models import Alert

logger = logging.getLogger(__name__)

NOTIFY_SEVERITIES = {"critical", "high"}


def send_webhook(payload: Dict[str, Any], url: str | None = None) -> Tuple[int, str]:
    """POST an alert payload to the configured webhook."""
    req_id = str(uuid.uuid4())[:8]
    url = url or config.ALERT_WEBHOOK_URL
    if not url:
        logger.debug("HOOK[%s] no webhook configured; skipping send", req_id)
        return 400, "missing webhook url"
    try:
        logger.info(
            "HOOK[%s] -> POST %s | alert=%s | severity=%s",
            req_id,
            url,
            payload.get("id"),
            payload.get("severity"),
        )
        r = requests.post(url, json=payload, timeout=10)
        logger.info(
            "HOOK[%s] <- status=%s | body=%s",
            req_id,
            r.status_code,
            (r.text[:500] if r.text else ""),
        )
        return r.status_code, r.text
    except requests.RequestException as exc:
        logger.exception("HOOK[%s] send_webhook exception: %s", req_id, exc)
        return 500, str(exc)


def build_alert_payload(alert: Alert) -> Dict[str, Any]:
    created_at = alert.created_at.isoformat() if alert.created_at else None
    return {
        "id": alert.id,
        "device_id": alert.device_id,
        "class_id": alert.class_id,
        "type": alert.type,
        "severity": alert.severity,
        "title": alert.title,
        "message": alert.message,
        "created_at": created_at,
    }


def notify_alert_async(alert: Alert) -> threading.Thread | None:
    if not config.ALERT_WEBHOOK_URL:
        logger.debug("Alert notify skipped: ALERT_WEBHOOK_URL missing")
        return None
    if alert.severity not in NOTIFY_SEVERITIES:
        return None
    # serialise now; the ORM row is detached once the session closes
    payload = build_alert_payload(alert)

    def _worker():
        status, resp = send_webhook(payload)
        if status in (200, 201, 202, 204):
            logger.info("Alert %s forwarded | status=%s", payload["id"], status)
        else:
            logger.error("Alert %s forward failed | status=%s | resp=%s", payload["id"], status, resp[:500])

    thread = threading.Thread(target=_worker, name=f"alert-notify-{alert.id}", daemon=True)
    thread.start()
    return thread
