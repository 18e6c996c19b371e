import calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Tuple

from sqlalchemy import func, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from energy_dashboard.config import now_local, to_local
from energy_dashboard.crud.devices import find_by_eui
from energy_dashboard.errors import ApiError, NotFound, ValidationFailed
from energy_dashboard.models import Device, DeviceConsumption
from energy_dashboard.schemas import ReadingIn

logger = logging.getLogger(__name__)

UPSERT_KEY = ("device_id", "consumption_date", "hour_start")


def _num(value: Any, digits: int = 3) -> float | None:
    if value is None:
        return None
    return round(float(value), digits)


def hour_window(ts: datetime) -> Tuple[date, time, time]:
    """Date plus top-of-hour and end-of-hour for a reading timestamp."""
    start = ts.replace(minute=0, second=0, microsecond=0)
    end = start + timedelta(hours=1)
    return start.date(), start.time(), end.time()


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


# --- queries -----------------------------------------------------------------

def list_for_device(db: Session, device_id: int, day: date) -> List[DeviceConsumption]:
    return (
        db.query(DeviceConsumption)
        .filter(DeviceConsumption.device_id == device_id, DeviceConsumption.consumption_date == day)
        .order_by(DeviceConsumption.hour_start)
        .all()
    )


def daily(db: Session, device_id: int, day: date) -> List[Dict[str, Any]]:
    return [
        {
            "hour": row.hour_start.strftime("%H:%M"),
            "power": _num(row.consumption),
            "temperature": row.temperature,
            "humidity": row.humidity,
        }
        for row in list_for_device(db, device_id, day)
    ]


def monthly(db: Session, device_id: int, year: int, month: int) -> List[Dict[str, Any]]:
    start, end = month_bounds(year, month)
    rows = (
        db.query(
            DeviceConsumption.consumption_date.label("date"),
            func.sum(DeviceConsumption.consumption).label("total_consumption"),
            func.avg(DeviceConsumption.temperature).label("avg_temperature"),
            func.max(DeviceConsumption.consumption).label("peak_consumption"),
        )
        .filter(
            DeviceConsumption.device_id == device_id,
            DeviceConsumption.consumption_date.between(start, end),
        )
        .group_by(DeviceConsumption.consumption_date)
        .order_by(DeviceConsumption.consumption_date)
        .all()
    )
    return [
        {
            "date": row.date,
            "total_consumption": _num(row.total_consumption),
            "avg_temperature": _num(row.avg_temperature, 1),
            "peak_consumption": _num(row.peak_consumption),
        }
        for row in rows
    ]


def list_for_class(db: Session, class_id: int, start: date, end: date) -> List[Dict[str, Any]]:
    rows = (
        db.query(DeviceConsumption, Device.device_name, Device.device_type)
        .join(Device, DeviceConsumption.device_id == Device.id)
        .filter(Device.class_id == class_id, DeviceConsumption.consumption_date.between(start, end))
        .order_by(DeviceConsumption.consumption_date, DeviceConsumption.hour_start)
        .all()
    )
    out = []
    for row, device_name, device_type in rows:
        data = row.to_dict()
        data["device_name"] = device_name
        data["device_type"] = device_type
        out.append(data)
    return out


def total_by_class(db: Session, class_id: int, start: date, end: date) -> List[Dict[str, Any]]:
    total = func.sum(DeviceConsumption.consumption).label("total_consumption")
    rows = (
        db.query(
            Device.id,
            Device.device_name,
            Device.device_type,
            total,
            func.avg(DeviceConsumption.consumption).label("avg_consumption"),
            func.max(DeviceConsumption.consumption).label("peak_consumption"),
            func.count(DeviceConsumption.id).label("readings_count"),
        )
        .join(Device, DeviceConsumption.device_id == Device.id)
        .filter(Device.class_id == class_id, DeviceConsumption.consumption_date.between(start, end))
        .group_by(Device.id, Device.device_name, Device.device_type)
        .order_by(total.desc())
        .all()
    )
    return [
        {
            "id": row.id,
            "device_name": row.device_name,
            "device_type": row.device_type,
            "total_consumption": _num(row.total_consumption),
            "avg_consumption": _num(row.avg_consumption),
            "peak_consumption": _num(row.peak_consumption),
            "readings_count": row.readings_count,
        }
        for row in rows
    ]


def _pivot_key(device_type: str | None) -> str:
    key = (device_type or "other").lower()
    # keep "time" and the "<type>_temperature" columns unambiguous
    if key == "time" or key.endswith("_temperature"):
        return f"type_{key}"
    return key


def hourly_by_type(db: Session, class_id: int, day: date) -> List[Dict[str, Any]]:
    """Hourly totals for a class pivoted by device type: {time, ac, lamp, ...}."""
    type_key = func.lower(Device.device_type)
    rows = (
        db.query(
            DeviceConsumption.hour_start,
            type_key.label("type_key"),
            func.sum(DeviceConsumption.consumption).label("total_consumption"),
            func.avg(DeviceConsumption.temperature).label("avg_temperature"),
        )
        .join(Device, DeviceConsumption.device_id == Device.id)
        .filter(Device.class_id == class_id, DeviceConsumption.consumption_date == day)
        .group_by(DeviceConsumption.hour_start, type_key)
        .order_by(DeviceConsumption.hour_start)
        .all()
    )
    buckets: Dict[time, Dict[str, Any]] = {}
    for row in rows:
        bucket = buckets.setdefault(row.hour_start, {"time": row.hour_start.strftime("%H:%M")})
        key = _pivot_key(row.type_key)
        bucket[key] = _num(row.total_consumption)
        if row.avg_temperature is not None:
            bucket[f"{key}_temperature"] = _num(row.avg_temperature, 1)
    return list(buckets.values())


def delete_consumption(db: Session, consumption_id: int) -> None:
    row = db.get(DeviceConsumption, consumption_id)
    if row is None:
        raise NotFound("Consumption record not found")
    db.delete(row)
    db.commit()


# --- ingestion ---------------------------------------------------------------

def _upsert_statement(dialect: str, values: Dict[str, Any]):
    table = DeviceConsumption.__table__
    if dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(**values)
        return stmt.on_duplicate_key_update(
            consumption=stmt.inserted.consumption,
            temperature=func.coalesce(stmt.inserted.temperature, table.c.temperature),
            humidity=func.coalesce(stmt.inserted.humidity, table.c.humidity),
        )
    if dialect in ("sqlite", "postgresql"):
        insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=list(UPSERT_KEY),
            set_={
                "consumption": stmt.excluded.consumption,
                "temperature": func.coalesce(stmt.excluded.temperature, table.c.temperature),
                "humidity": func.coalesce(stmt.excluded.humidity, table.c.humidity),
            },
        )
    raise ApiError(f"Upsert not supported for dialect {dialect}")


def resolve_device(db: Session, device_id: int | None, device_eui: str | None) -> Device:
    if device_id is not None:
        device = db.get(Device, device_id)
        if device is None:
            raise NotFound(f"Device {device_id} not found")
        return device
    device = find_by_eui(db, device_eui)
    if device is None:
        raise NotFound(f"Device with EUI {device_eui} not found")
    return device


def ingest_reading(db: Session, reading: ReadingIn) -> Dict[str, Any]:
    """Record one hourly reading and refresh the device snapshot.

    Temperature and humidity only overwrite stored values when present. The
    consumption upsert and the snapshot update are committed separately.
    """
    if reading.consumption is None:
        raise ValidationFailed("Consumption value is required")
    if reading.device_id is None and not reading.device_eui:
        raise ValidationFailed("Either device_id or device_eui is required")

    device = resolve_device(db, reading.device_id, reading.device_eui)
    record_time = to_local(reading.timestamp) if reading.timestamp else now_local()
    if reading.consumption_date and reading.hour_start:
        consumption_date, hour_start = reading.consumption_date, reading.hour_start
        hour_end = reading.hour_end or hour_window(datetime.combine(consumption_date, hour_start))[2]
    else:
        consumption_date, hour_start, hour_end = hour_window(record_time)

    values = {
        "device_id": device.id,
        "consumption": reading.consumption,
        "consumption_date": consumption_date,
        "hour_start": hour_start,
        "hour_end": hour_end,
        "temperature": reading.temperature,
        "humidity": reading.humidity,
        "notes": reading.notes,
        "created_at": now_local(),
    }
    db.execute(_upsert_statement(db.get_bind().dialect.name, values))
    db.commit()

    snapshot: Dict[str, Any] = {
        "last_reading": now_local(),
        "current_power": reading.consumption,
        "iot_status": "online",
    }
    if reading.temperature is not None:
        snapshot["current_temperature"] = reading.temperature
    db.execute(update(Device).where(Device.id == device.id).values(**snapshot))
    db.commit()

    logger.info(
        "[ingest] device=%s eui=%s date=%s hour=%s consumption=%s",
        device.id,
        device.device_eui,
        consumption_date,
        hour_start,
        reading.consumption,
    )
    return {
        "device_id": device.id,
        "device_name": reading.device_name or device.device_name,
        "device_type": reading.device_type or device.device_type,
        "consumption": reading.consumption,
        "temperature": reading.temperature,
        "humidity": reading.humidity,
        "timestamp": record_time,
        "consumption_date": consumption_date,
        "hour_start": hour_start,
        "hour_end": hour_end,
    }


def ingest_bulk(db: Session, items: List[Any]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Ingest each item on its own; returns (results, errors)."""
    results: List[Dict[str, Any]] = []
    errors: List[Dict[str, Any]] = []
    for item in items:
        try:
            if not isinstance(item, dict):
                raise ValidationFailed("Each item must be an object")
            reading = ReadingIn.model_validate(item)
            recorded = ingest_reading(db, reading)
        except ApiError as exc:
            errors.append({"item": item, "error": exc.message})
            continue
        except ValueError as exc:
            # pydantic.ValidationError is a ValueError
            errors.append({"item": item, "error": str(exc)})
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("[ingest] bulk item failed | item=%s | err=%s", item, exc)
            errors.append({"item": item, "error": str(exc)})
            continue
        results.append(
            {
                "device_id": recorded["device_id"],
                "consumption": recorded["consumption"],
                "timestamp": recorded["timestamp"],
                "status": "success",
            }
        )
    return results, errors
