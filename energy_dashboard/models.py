import json
from typing import Any, Dict, List

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)

from energy_dashboard.config import now_local
from energy_dashboard.database import Base


SETTING_DATA_TYPES = ("string", "number", "boolean", "json")
TRUTHY = {"1", "true", "yes", "on"}


def _row_to_dict(row: Base, exclude: frozenset[str] = frozenset()) -> Dict[str, Any]:
    return {
        col.key: getattr(row, col.key)
        for col in row.__mapper__.column_attrs
        if col.key not in exclude
    }


def null_violations(model: type, fields: Dict[str, Any]) -> List[str]:
    """Names in fields set to None whose column is NOT NULL."""
    columns = model.__table__.columns
    return sorted(
        key for key, value in fields.items()
        if value is None and key in columns and not columns[key].nullable
    )


def encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def decode_value(raw: str | None, data_type: str) -> Any:
    """Turn a stored setting string back into its declared type."""
    if raw is None:
        return None
    if data_type == "number":
        number = float(raw)
        return int(number) if number.is_integer() and "." not in raw else number
    if data_type == "boolean":
        return raw.strip().lower() in TRUTHY
    if data_type == "json":
        return json.loads(raw)
    return raw


class ClassRoom(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    building = Column(String(100), nullable=True)
    floor = Column(String(50), nullable=True)
    area = Column(Float, nullable=True)  # square metres
    capacity = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="active", server_default="active")
    created_at = Column(DateTime, nullable=False, default=now_local)
    updated_at = Column(DateTime, nullable=False, default=now_local, onupdate=now_local)

    def to_dict(self) -> Dict[str, Any]:
        return _row_to_dict(self)


class Device(Base):
    __tablename__ = "devices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    device_name = Column(String(100), nullable=False)
    device_type = Column(String(20), nullable=False, index=True)  # AC, LAMP, ...
    device_eui = Column(String(64), nullable=True, unique=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    power_rating = Column(Float, nullable=False)  # rated watts
    efficiency_rating = Column(String(10), nullable=True)
    current_power = Column(Float, nullable=False, default=0, server_default="0")
    current_temperature = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, default="active", server_default="active")
    iot_status = Column(String(20), nullable=True)
    application_type = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    # write-only: never returned by the API
    device_secret = Column(String(255), nullable=True)
    installation_date = Column(Date, nullable=True)
    warranty_expiry = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    last_reading = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_local)
    updated_at = Column(DateTime, nullable=False, default=now_local, onupdate=now_local)

    def to_dict(self) -> Dict[str, Any]:
        return _row_to_dict(self, exclude={"device_secret"})


class DeviceConsumption(Base):
    __tablename__ = "device_consumption"
    __table_args__ = (
        UniqueConstraint("device_id", "consumption_date", "hour_start", name="uq_device_consumption_hour"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.id", ondelete="CASCADE"), nullable=False, index=True)
    consumption = Column(Float, nullable=False)  # kWh within the hour
    consumption_date = Column(Date, nullable=False, index=True)
    hour_start = Column(Time, nullable=False)
    hour_end = Column(Time, nullable=False)
    temperature = Column(Float, nullable=True)
    humidity = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_local)

    def to_dict(self) -> Dict[str, Any]:
        return _row_to_dict(self)


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.id", ondelete="SET NULL"), nullable=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    severity = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="active", server_default="active")
    read_status = Column(Boolean, nullable=False, default=False, server_default="0")
    # "metadata" is reserved on declarative classes
    alert_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_local, index=True)
    resolved_at = Column(DateTime, nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        data = _row_to_dict(self, exclude={"alert_metadata"})
        data["metadata"] = self.alert_metadata or {}
        return data


class Setting(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    setting_key = Column(String(100), nullable=False, unique=True)
    setting_value = Column(Text, nullable=True)
    data_type = Column(String(20), nullable=False, default="string", server_default="string")
    description = Column(String(255), nullable=True)
    updated_at = Column(DateTime, nullable=False, default=now_local, onupdate=now_local)

    def to_dict(self) -> Dict[str, Any]:
        data = _row_to_dict(self)
        try:
            data["typed_value"] = decode_value(self.setting_value, self.data_type)
        except ValueError:
            data["typed_value"] = None
        return data


class UserSetting(Base):
    __tablename__ = "user_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True)
    timezone = Column(String(64), nullable=True)
    language = Column(String(10), nullable=True)
    theme = Column(String(20), nullable=True)
    email_notifications = Column(Boolean, nullable=True)
    sms_notifications = Column(Boolean, nullable=True)
    push_notifications = Column(Boolean, nullable=True)
    alert_severity = Column(String(20), nullable=True)
    consumption_threshold = Column(Float, nullable=True)
    temperature_threshold = Column(Float, nullable=True)
    cost_threshold = Column(Float, nullable=True)
    two_factor = Column(Boolean, nullable=True)
    session_timeout = Column(Integer, nullable=True)  # minutes
    auto_logout = Column(Boolean, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=now_local, onupdate=now_local)

    def to_dict(self) -> Dict[str, Any]:
        return _row_to_dict(self)
