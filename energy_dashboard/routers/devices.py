from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from energy_dashboard.config import now_local
from energy_dashboard.crud import classes as class_crud
from energy_dashboard.crud import consumption as consumption_crud
from energy_dashboard.crud import devices as crud
from energy_dashboard.crud.devices import DEVICE_STATUSES
from energy_dashboard.database import get_db
from energy_dashboard.errors import NotFound, ValidationFailed, ok
from energy_dashboard.models import Device, null_violations
from energy_dashboard.schemas import DeviceIn, DeviceReadingIn, DeviceStatusIn

router = APIRouter(prefix="/devices", tags=["devices"])

# legacy aliases are folded into device_name / device_type
LEGACY_FIELDS = {"name", "type"}


def _attach_today(db: Session, devices: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    today = now_local().date()
    for device in devices:
        device["consumption"] = consumption_crud.daily(db, device["id"], today)
    return devices


def _device_fields(payload: DeviceIn) -> Dict[str, Any]:
    fields = payload.model_dump(exclude_unset=True, exclude=LEGACY_FIELDS | {"device_name", "device_type"})
    name, device_type = payload.resolved_name(), payload.resolved_type()
    if name:
        fields["device_name"] = name
    if device_type:
        fields["device_type"] = device_type
    return fields


def _check_fields(fields: Dict[str, Any]) -> None:
    nulls = null_violations(Device, fields)
    if nulls:
        raise ValidationFailed(f"{', '.join(nulls)} cannot be null")
    if "status" in fields and fields["status"] not in DEVICE_STATUSES:
        raise ValidationFailed(f"Invalid status. Must be one of: {', '.join(DEVICE_STATUSES)}")


@router.get("")
def list_devices(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(_attach_today(db, crud.list_devices(db)))


@router.get("/class/{class_id}")
def list_devices_by_class(class_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(_attach_today(db, crud.list_by_class(db, class_id)))


@router.get("/type/{device_type}")
def list_devices_by_type(device_type: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(crud.list_by_type(db, device_type))


@router.get("/eui/{eui}")
def get_device_by_eui(eui: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    device = crud.get_device_by_eui(db, eui)
    if device is None:
        raise NotFound(f"Device with EUI {eui} not found")
    return ok(_attach_today(db, [device])[0])


@router.get("/{device_id}")
def get_device(device_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    device = crud.get_device_detail(db, device_id)
    if device is None:
        raise NotFound("Device not found")
    return ok(_attach_today(db, [device])[0])


@router.post("", status_code=201)
def create_device(payload: DeviceIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    fields = _device_fields(payload)
    if not payload.class_id or not fields.get("device_name") or not fields.get("device_type") or not payload.power_rating:
        raise ValidationFailed(
            "class_id, name (or device_name), type (or device_type), and power_rating are required"
        )
    _check_fields(fields)
    class_crud.require_class(db, payload.class_id)
    device = crud.create_device(db, fields)
    return ok(device.to_dict(), "Device created successfully")


@router.put("/{device_id}")
def update_device(device_id: int, payload: DeviceIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    fields = _device_fields(payload)
    _check_fields(fields)
    crud.require_device(db, device_id)
    if fields.get("class_id"):
        class_crud.require_class(db, fields["class_id"])
    device = crud.update_device(db, device_id, fields)
    return ok(device.to_dict(), "Device updated successfully")


@router.patch("/{device_id}/status")
def update_device_status(device_id: int, payload: DeviceStatusIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if not payload.status or payload.status not in DEVICE_STATUSES:
        raise ValidationFailed("Invalid status. Must be: active, idle, offline, or maintenance")
    crud.update_status(db, device_id, payload.status)
    return ok({"id": device_id, "status": payload.status}, "Device status updated successfully")


@router.patch("/{device_id}/reading")
def update_device_reading(device_id: int, payload: DeviceReadingIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if payload.power is None:
        raise ValidationFailed("Power reading is required")
    device = crud.update_reading(db, device_id, payload.power, payload.temperature)
    return ok(device.to_dict(), "Device reading updated successfully")


@router.delete("/{device_id}")
def delete_device(device_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    crud.delete_device(db, device_id)
    return ok(message="Device deleted successfully")
