from typing import Any, Dict, List

from sqlalchemy.orm import Session

from energy_dashboard.config import now_local
from energy_dashboard.errors import NotFound
from energy_dashboard.models import ClassRoom, Device

DEVICE_STATUSES = ("active", "idle", "offline", "maintenance")


def _joined(db: Session):
    return db.query(Device, ClassRoom.name.label("class_name")).outerjoin(
        ClassRoom, Device.class_id == ClassRoom.id
    )


def _with_class_name(rows) -> List[Dict[str, Any]]:
    out = []
    for device, class_name in rows:
        data = device.to_dict()
        data["class_name"] = class_name
        out.append(data)
    return out


def list_devices(db: Session) -> List[Dict[str, Any]]:
    rows = _joined(db).order_by(ClassRoom.name, Device.device_name).all()
    return _with_class_name(rows)


def list_by_class(db: Session, class_id: int) -> List[Dict[str, Any]]:
    rows = _joined(db).filter(Device.class_id == class_id).order_by(Device.device_name).all()
    return _with_class_name(rows)


def list_by_type(db: Session, device_type: str) -> List[Dict[str, Any]]:
    rows = (
        _joined(db)
        .filter(Device.device_type == device_type)
        .order_by(ClassRoom.name, Device.device_name)
        .all()
    )
    return _with_class_name(rows)


def get_device_detail(db: Session, device_id: int) -> Dict[str, Any] | None:
    row = _joined(db).filter(Device.id == device_id).first()
    return _with_class_name([row])[0] if row else None


def get_device_by_eui(db: Session, device_eui: str) -> Dict[str, Any] | None:
    row = _joined(db).filter(Device.device_eui == device_eui).first()
    return _with_class_name([row])[0] if row else None


def find_by_eui(db: Session, device_eui: str) -> Device | None:
    return db.query(Device).filter(Device.device_eui == device_eui).first()


def require_device(db: Session, device_id: int) -> Device:
    device = db.get(Device, device_id)
    if device is None:
        raise NotFound("Device not found")
    return device


def create_device(db: Session, fields: Dict[str, Any]) -> Device:
    device = Device(**fields)
    db.add(device)
    db.commit()
    db.refresh(device)
    return device


def update_device(db: Session, device_id: int, fields: Dict[str, Any]) -> Device:
    device = require_device(db, device_id)
    for key, value in fields.items():
        setattr(device, key, value)
    db.commit()
    db.refresh(device)
    return device


def update_status(db: Session, device_id: int, status: str) -> Device:
    return update_device(db, device_id, {"status": status})


def update_reading(db: Session, device_id: int, power: float, temperature: float | None) -> Device:
    return update_device(
        db,
        device_id,
        {"current_power": power, "current_temperature": temperature, "last_reading": now_local()},
    )


def delete_device(db: Session, device_id: int) -> None:
    device = require_device(db, device_id)
    db.delete(device)
    db.commit()
