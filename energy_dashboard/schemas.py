from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field

# Request bodies keep every field optional; handlers decide what is required
# so a missing field answers 400 with a readable message.


class ClassIn(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    building: Optional[str] = None
    floor: Optional[Union[str, int]] = None
    area: Optional[float] = None
    capacity: Optional[int] = None
    status: Optional[str] = None


class DeviceIn(BaseModel):
    class_id: Optional[int] = None
    # IoT field names win over the legacy ones
    device_name: Optional[str] = None
    name: Optional[str] = None
    device_type: Optional[str] = None
    type: Optional[str] = None
    device_eui: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    power_rating: Optional[float] = None
    efficiency_rating: Optional[str] = None
    current_power: Optional[float] = None
    current_temperature: Optional[float] = None
    status: Optional[str] = None
    iot_status: Optional[str] = None
    application_type: Optional[str] = None
    location: Optional[str] = None
    device_secret: Optional[str] = None
    installation_date: Optional[date] = None
    warranty_expiry: Optional[date] = None
    notes: Optional[str] = None

    def resolved_name(self) -> Optional[str]:
        return self.device_name or self.name

    def resolved_type(self) -> Optional[str]:
        return self.device_type or self.type


class DeviceStatusIn(BaseModel):
    status: Optional[str] = None


class DeviceReadingIn(BaseModel):
    power: Optional[float] = None
    temperature: Optional[float] = None


class ReadingIn(BaseModel):
    device_id: Optional[int] = None
    device_eui: Optional[str] = None
    consumption: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    timestamp: Optional[datetime] = None
    # explicit hour window, used instead of the timestamp when given
    consumption_date: Optional[date] = None
    hour_start: Optional[time] = None
    hour_end: Optional[time] = None
    notes: Optional[str] = None
    device_name: Optional[str] = None
    device_type: Optional[str] = None


class BulkReadingsIn(BaseModel):
    data: Optional[List[Any]] = None
    consumptionData: Optional[List[Any]] = None

    def readings(self) -> List[Any]:
        return self.data if self.data is not None else (self.consumptionData or [])


class AlertIn(BaseModel):
    device_id: Optional[int] = None
    class_id: Optional[int] = None
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    severity: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AlertUpdateIn(BaseModel):
    status: Optional[str] = None
    read_status: Optional[bool] = None
    message: Optional[str] = None


class SettingIn(BaseModel):
    key: Optional[str] = None
    value: Any = None
    data_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("data_type", "dataType"))
    description: Optional[str] = None


class SettingUpdateIn(BaseModel):
    value: Any = None
    data_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("data_type", "dataType"))
    description: Optional[str] = None


class UserSettingsIn(BaseModel):
    timezone: Optional[str] = None
    language: Optional[str] = None
    theme: Optional[str] = None
    email_notifications: Optional[bool] = None
    sms_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    alert_severity: Optional[str] = None
    consumption_threshold: Optional[float] = None
    temperature_threshold: Optional[float] = None
    cost_threshold: Optional[float] = None
    two_factor: Optional[bool] = None
    session_timeout: Optional[int] = None
    auto_logout: Optional[bool] = None
