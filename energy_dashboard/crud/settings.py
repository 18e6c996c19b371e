from typing import Any, Dict, List

from sqlalchemy.orm import Session

from energy_dashboard.errors import NotFound
from energy_dashboard.models import Setting, UserSetting, decode_value, encode_value


def list_settings(db: Session) -> List[Setting]:
    return db.query(Setting).order_by(Setting.setting_key).all()


def get_setting(db: Session, key: str) -> Setting | None:
    return db.query(Setting).filter(Setting.setting_key == key).first()


def require_setting(db: Session, key: str) -> Setting:
    row = get_setting(db, key)
    if row is None:
        raise NotFound("Setting not found")
    return row


def set_setting(
    db: Session,
    key: str,
    value: Any,
    data_type: str = "string",
    description: str | None = None,
) -> Setting:
    """Insert or overwrite a setting by key."""
    row = get_setting(db, key)
    if row is None:
        row = Setting(setting_key=key)
        db.add(row)
    row.setting_value = encode_value(value)
    row.data_type = data_type
    if description is not None:
        row.description = description
    db.commit()
    db.refresh(row)
    return row


def delete_setting(db: Session, key: str) -> None:
    row = require_setting(db, key)
    db.delete(row)
    db.commit()


def typed_setting(db: Session, key: str, default: Any) -> Any:
    row = get_setting(db, key)
    if row is None or row.setting_value in (None, ""):
        return default
    try:
        value = decode_value(row.setting_value, row.data_type)
    except ValueError:
        return default
    return default if value is None else value


def get_user_settings(db: Session, user_id: int) -> UserSetting | None:
    return db.query(UserSetting).filter(UserSetting.user_id == user_id).first()


def upsert_user_settings(db: Session, user_id: int, fields: Dict[str, Any]) -> UserSetting:
    row = get_user_settings(db, user_id)
    if row is None:
        row = UserSetting(user_id=user_id)
        db.add(row)
    for key, value in fields.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row
