from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from energy_dashboard import config
from energy_dashboard.database import get_db
from energy_dashboard.errors import Unauthorized, ok
from energy_dashboard.monitoring import load_thresholds, scan_devices_for_alerts
from energy_dashboard.scheduler import (
    get_alert_scheduler_state,
    set_alert_scheduler_enabled,
    start_alert_scheduler,
)

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


def _validate_monitor_token(request: Request) -> None:
    if not config.MONITOR_TOKEN:
        return
    if request.headers.get("x-monitor-token", "") != config.MONITOR_TOKEN:
        raise Unauthorized("Invalid monitor token")


@router.get("/status", dependencies=[Depends(_validate_monitor_token)])
def monitoring_status(db: Session = Depends(get_db)) -> Dict[str, Any]:
    state = get_alert_scheduler_state()
    state["thresholds"] = load_thresholds(db)
    return ok(state)


@router.post("/scan", dependencies=[Depends(_validate_monitor_token)])
def monitoring_scan(db: Session = Depends(get_db)) -> Dict[str, Any]:
    raised = scan_devices_for_alerts(db)
    return ok([alert.to_dict() for alert in raised], f"Scan complete, {len(raised)} alert(s) raised")


@router.post("/toggle", dependencies=[Depends(_validate_monitor_token)])
def monitoring_toggle(enabled: bool = Body(..., embed=True)) -> Dict[str, Any]:
    set_alert_scheduler_enabled(enabled)
    if enabled:
        start_alert_scheduler(force=True)
    return ok({"enabled": get_alert_scheduler_state()["enabled"]})
