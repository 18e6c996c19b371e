from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from energy_dashboard.crud import settings as crud
from energy_dashboard.database import get_db
from energy_dashboard.errors import NotFound, ValidationFailed, ok
from energy_dashboard.models import SETTING_DATA_TYPES, decode_value, encode_value
from energy_dashboard.schemas import SettingIn, SettingUpdateIn, UserSettingsIn

router = APIRouter(prefix="/settings", tags=["settings"])


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_type(value: Any, data_type: str) -> None:
    if data_type not in SETTING_DATA_TYPES:
        raise ValidationFailed(f"Invalid data_type. Must be one of: {', '.join(SETTING_DATA_TYPES)}")
    try:
        decode_value(encode_value(value), data_type)
    except ValueError:
        raise ValidationFailed(f"Value is not a valid {data_type}")


@router.get("")
def list_settings(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok([row.to_dict() for row in crud.list_settings(db)])


# user routes first so "user" is never read as a setting key
@router.get("/user/{user_id}")
def get_user_settings(user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    row = crud.get_user_settings(db, user_id)
    if row is None:
        raise NotFound("User settings not found")
    return ok(row.to_dict())


@router.put("/user/{user_id}")
def update_user_settings(user_id: int, payload: UserSettingsIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    fields = payload.model_dump(exclude_unset=True)
    if not fields:
        raise ValidationFailed("No settings provided")
    row = crud.upsert_user_settings(db, user_id, fields)
    return ok(row.to_dict(), "User settings updated successfully")


@router.get("/{key}")
def get_setting(key: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(crud.require_setting(db, key).to_dict())


@router.post("", status_code=201)
def set_setting(payload: SettingIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if _is_empty(payload.key) or _is_empty(payload.value):
        raise ValidationFailed("Missing required fields: key and value")
    data_type = payload.data_type or "string"
    _check_type(payload.value, data_type)
    row = crud.set_setting(db, payload.key, payload.value, data_type, payload.description)
    return ok(row.to_dict(), "Setting saved successfully")


@router.put("/{key}")
def update_setting(key: str, payload: SettingUpdateIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if _is_empty(payload.value):
        raise ValidationFailed("Missing required field: value")
    existing = crud.require_setting(db, key)
    data_type = payload.data_type or existing.data_type
    _check_type(payload.value, data_type)
    row = crud.set_setting(db, key, payload.value, data_type, payload.description)
    return ok(row.to_dict(), "Setting updated successfully")


@router.delete("/{key}")
def delete_setting(key: str, db: Session = Depends(get_db)) -> Dict[str, Any]:
    crud.delete_setting(db, key)
    return ok(message="Setting deleted successfully")
