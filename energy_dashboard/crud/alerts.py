from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from energy_dashboard.config import now_local
from energy_dashboard.errors import NotFound
from energy_dashboard.models import Alert

SEVERITIES = ("critical", "high", "medium", "low", "info")
ALERT_STATUSES = ("active", "acknowledged", "resolved")
LIST_LIMIT = 100
SCOPED_LIMIT = 50


def _apply_filters(query, filters: Dict[str, Any]):
    if filters.get("type"):
        query = query.filter(Alert.type == filters["type"])
    if filters.get("severity"):
        query = query.filter(Alert.severity == filters["severity"])
    if filters.get("status"):
        query = query.filter(Alert.status == filters["status"])
    if filters.get("read_status") is not None:
        query = query.filter(Alert.read_status == filters["read_status"])
    return query


def _newest_first(query, limit: int) -> List[Alert]:
    return query.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit).all()


def list_alerts(db: Session, filters: Dict[str, Any]) -> List[Alert]:
    return _newest_first(_apply_filters(db.query(Alert), filters), LIST_LIMIT)


def list_by_device(db: Session, device_id: int) -> List[Alert]:
    return _newest_first(db.query(Alert).filter(Alert.device_id == device_id), SCOPED_LIMIT)


def list_by_class(db: Session, class_id: int) -> List[Alert]:
    return _newest_first(db.query(Alert).filter(Alert.class_id == class_id), SCOPED_LIMIT)


def require_alert(db: Session, alert_id: int) -> Alert:
    alert = db.get(Alert, alert_id)
    if alert is None:
        raise NotFound("Alert not found")
    return alert


def create_alert(db: Session, fields: Dict[str, Any]) -> Alert:
    fields = dict(fields)
    metadata = fields.pop("metadata", None)
    alert = Alert(**fields, alert_metadata=metadata or {})
    db.add(alert)
    db.commit()
    db.refresh(alert)
    return alert


def update_alert(db: Session, alert_id: int, fields: Dict[str, Any]) -> Alert:
    alert = require_alert(db, alert_id)
    if fields.get("status"):
        alert.status = fields["status"]
        if fields["status"] == "resolved":
            alert.resolved_at = now_local()
    if fields.get("read_status") is not None:
        alert.read_status = fields["read_status"]
    if fields.get("message"):
        alert.message = fields["message"]
    db.commit()
    db.refresh(alert)
    return alert


def mark_read(db: Session, alert_id: int) -> Alert:
    return update_alert(db, alert_id, {"read_status": True})


def mark_all_read(db: Session, filters: Dict[str, Any]) -> int:
    query = _apply_filters(db.query(Alert), {k: filters.get(k) for k in ("type", "severity")})
    updated = query.filter(Alert.read_status.is_(False)).update(
        {Alert.read_status: True}, synchronize_session=False
    )
    db.commit()
    return updated


def delete_alert(db: Session, alert_id: int) -> None:
    alert = require_alert(db, alert_id)
    db.delete(alert)
    db.commit()


def unread_count(db: Session) -> int:
    return db.query(func.count(Alert.id)).filter(Alert.read_status.is_(False)).scalar() or 0


def summary(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Alert.type, Alert.severity, Alert.status, func.count(Alert.id).label("count"))
        .group_by(Alert.type, Alert.severity, Alert.status)
        .order_by(Alert.type, Alert.severity, Alert.status)
        .all()
    )
    return [
        {"type": row.type, "severity": row.severity, "status": row.status, "count": row.count}
        for row in rows
    ]


def has_open_alert(db: Session, device_id: int, alert_type: str) -> bool:
    return (
        db.query(Alert.id)
        .filter(Alert.device_id == device_id, Alert.type == alert_type, Alert.status != "resolved")
        .first()
        is not None
    )
