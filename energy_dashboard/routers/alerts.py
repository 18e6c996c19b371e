from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from energy_dashboard.crud import alerts as crud
from energy_dashboard.crud.alerts import ALERT_STATUSES, SEVERITIES
from energy_dashboard.database import get_db
from energy_dashboard.errors import ValidationFailed, ok
from energy_dashboard.schemas import AlertIn, AlertUpdateIn

router = APIRouter(prefix="/alerts", tags=["alerts"])


def _parse_bool(value: str | None) -> bool | None:
    if value is None or value == "":
        return None
    return value.strip().lower() in {"1", "true", "yes"}


@router.get("")
def list_alerts(
    type: str | None = Query(None),
    severity: str | None = Query(None),
    status: str | None = Query(None),
    read_status: str | None = Query(None),
    read_status_camel: str | None = Query(None, alias="readStatus"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    filters = {
        "type": type,
        "severity": severity,
        "status": status,
        "read_status": _parse_bool(read_status if read_status is not None else read_status_camel),
    }
    return ok([alert.to_dict() for alert in crud.list_alerts(db, filters)])


@router.get("/device/{device_id}")
def list_alerts_by_device(device_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok([alert.to_dict() for alert in crud.list_by_device(db, device_id)])


@router.get("/class/{class_id}")
def list_alerts_by_class(class_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok([alert.to_dict() for alert in crud.list_by_class(db, class_id)])


@router.get("/count/unread")
def unread_count(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok({"unreadCount": crud.unread_count(db)})


@router.get("/summary/stats")
def alert_summary(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(crud.summary(db))


@router.patch("/read/all")
def mark_all_read(
    type: str | None = Query(None),
    severity: str | None = Query(None),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    updated = crud.mark_all_read(db, {"type": type, "severity": severity})
    return ok({"updated": updated}, "All alerts marked as read")


@router.get("/{alert_id}")
def get_alert(alert_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(crud.require_alert(db, alert_id).to_dict())


@router.post("", status_code=201)
def create_alert(payload: AlertIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if not payload.type or not payload.title or not payload.message or not payload.severity:
        raise ValidationFailed("type, title, message, and severity are required")
    if payload.severity not in SEVERITIES:
        raise ValidationFailed(f"Invalid severity. Must be one of: {', '.join(SEVERITIES)}")
    alert = crud.create_alert(db, payload.model_dump(exclude_unset=True))
    return ok(alert.to_dict(), "Alert created successfully")


@router.put("/{alert_id}")
def update_alert(alert_id: int, payload: AlertUpdateIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if payload.status and payload.status not in ALERT_STATUSES:
        raise ValidationFailed(f"Invalid status. Must be one of: {', '.join(ALERT_STATUSES)}")
    alert = crud.update_alert(db, alert_id, payload.model_dump(exclude_unset=True))
    return ok(alert.to_dict(), "Alert updated successfully")


@router.patch("/{alert_id}/read")
def mark_read(alert_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    crud.mark_read(db, alert_id)
    return ok(message="Alert marked as read")


@router.delete("/{alert_id}")
def delete_alert(alert_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    crud.delete_alert(db, alert_id)
    return ok(message="Alert deleted successfully")
