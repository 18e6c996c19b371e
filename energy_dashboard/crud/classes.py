from typing import Any, Dict, List

from sqlalchemy.orm import Session

from energy_dashboard.errors import NotFound
from energy_dashboard.models import ClassRoom


def list_active(db: Session) -> List[ClassRoom]:
    return (
        db.query(ClassRoom)
        .filter(ClassRoom.status == "active")
        .order_by(ClassRoom.name)
        .all()
    )


def get_class(db: Session, class_id: int) -> ClassRoom | None:
    return db.get(ClassRoom, class_id)


def require_class(db: Session, class_id: int) -> ClassRoom:
    row = get_class(db, class_id)
    if row is None:
        raise NotFound("Class not found")
    return row


def _clean(fields: Dict[str, Any]) -> Dict[str, Any]:
    if fields.get("floor") is not None:
        fields["floor"] = str(fields["floor"])
    return fields


def create_class(db: Session, fields: Dict[str, Any]) -> ClassRoom:
    row = ClassRoom(**_clean(fields))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_class(db: Session, class_id: int, fields: Dict[str, Any]) -> ClassRoom:
    row = require_class(db, class_id)
    for key, value in _clean(fields).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def delete_class(db: Session, class_id: int) -> None:
    row = require_class(db, class_id)
    db.delete(row)
    db.commit()
