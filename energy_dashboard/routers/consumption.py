from datetime import MAXYEAR, MINYEAR, date
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from energy_dashboard.crud import consumption as crud
from energy_dashboard.database import get_db
from energy_dashboard.errors import ValidationFailed, envelope_response, ok
from energy_dashboard.schemas import BulkReadingsIn, ReadingIn

router = APIRouter(prefix="/consumption", tags=["consumption"])


def _parse_date(value: str | None, message: str) -> date:
    if not value:
        raise ValidationFailed(message)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationFailed(f"Invalid date '{value}', expected YYYY-MM-DD")


def _parse_range(start: str | None, end: str | None) -> Tuple[date, date]:
    message = "startDate and endDate query parameters are required (YYYY-MM-DD)"
    if not start or not end:
        raise ValidationFailed(message)
    return _parse_date(start, message), _parse_date(end, message)


def _parse_year_month(year: str | None, month: str | None) -> Tuple[int, int]:
    """Accept ?year=2024&month=3 or ?month=2024-03."""
    if not year and month and "-" in month:
        year, month = month.split("-", 1)
    if not year or not month:
        raise ValidationFailed("year and month query parameters are required (or month in YYYY-MM format)")
    try:
        year_num, month_num = int(year), int(month)
    except ValueError:
        raise ValidationFailed("year and month must be numeric")
    if not 1 <= month_num <= 12:
        raise ValidationFailed("month must be between 1 and 12")
    if not MINYEAR <= year_num <= MAXYEAR:
        raise ValidationFailed(f"year must be between {MINYEAR} and {MAXYEAR}")
    return year_num, month_num


@router.get("/device/{device_id}")
def list_device_consumption(
    device_id: int,
    date_str: str | None = Query(None, alias="date", description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    day = _parse_date(date_str, "Date query parameter is required (YYYY-MM-DD)")
    return ok([row.to_dict() for row in crud.list_for_device(db, device_id, day)])


@router.get("/class/{class_id}")
def list_class_consumption(
    class_id: int,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    start, end = _parse_range(start_date, end_date)
    return ok(crud.list_for_class(db, class_id, start, end))


@router.get("/daily/{device_id}")
def daily_consumption(
    device_id: int,
    date_str: str | None = Query(None, alias="date", description="YYYY-MM-DD"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    day = _parse_date(date_str, "Date query parameter is required (YYYY-MM-DD)")
    return ok(crud.daily(db, device_id, day))


@router.get("/monthly/{device_id}")
def monthly_consumption(
    device_id: int,
    year: str | None = Query(None),
    month: str | None = Query(None, description="1-12 or YYYY-MM"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    year_num, month_num = _parse_year_month(year, month)
    return ok(crud.monthly(db, device_id, year_num, month_num))


@router.get("/total/class/{class_id}")
def total_by_class(
    class_id: int,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    start, end = _parse_range(start_date, end_date)
    return ok(crud.total_by_class(db, class_id, start, end))


@router.get("/hourly/class/{class_id}")
def hourly_by_class(
    class_id: int,
    date_str: str | None = Query(None, alias="date"),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    day = _parse_date(date_str, "date query parameter is required")
    return ok(crud.hourly_by_type(db, class_id, day))


@router.post("", status_code=201)
def create_consumption(payload: ReadingIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    recorded = crud.ingest_reading(db, payload)
    return ok(recorded, "Real-time consumption data recorded successfully")


@router.post("/bulk")
def create_consumption_bulk(payload: BulkReadingsIn, db: Session = Depends(get_db)):
    items = payload.readings()
    if not items:
        raise ValidationFailed("data must be a non-empty array")
    results, errors = crud.ingest_bulk(db, items)
    message = f"Processed {len(results)} records"
    if errors:
        message += f", {len(errors)} failed"
    body: Dict[str, Any] = {"success": not errors, "message": message, "data": results}
    if errors:
        body["errors"] = errors
    # per-item failures live in "errors", the batch itself was accepted
    return envelope_response(201, body)


@router.delete("/{consumption_id}")
def delete_consumption(consumption_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    crud.delete_consumption(db, consumption_id)
    return ok(message="Consumption data deleted successfully")
