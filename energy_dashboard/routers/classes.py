from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from energy_dashboard.crud import classes as crud
from energy_dashboard.database import get_db
from energy_dashboard.errors import ValidationFailed, ok
from energy_dashboard.models import ClassRoom, null_violations
from energy_dashboard.schemas import ClassIn

router = APIRouter(prefix="/classes", tags=["classes"])


def _reject_nulls(fields: Dict[str, Any]) -> None:
    nulls = null_violations(ClassRoom, fields)
    if nulls:
        raise ValidationFailed(f"{', '.join(nulls)} cannot be null")


@router.get("")
def list_classes(db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok([row.to_dict() for row in crud.list_active(db)])


@router.get("/{class_id}")
def get_class(class_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    return ok(crud.require_class(db, class_id).to_dict())


@router.post("", status_code=201)
def create_class(payload: ClassIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    if not payload.name:
        raise ValidationFailed("Name is required")
    fields = payload.model_dump(exclude_unset=True)
    _reject_nulls(fields)
    row = crud.create_class(db, fields)
    return ok(row.to_dict(), "Class created successfully")


@router.put("/{class_id}")
def update_class(class_id: int, payload: ClassIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    fields = payload.model_dump(exclude_unset=True)
    if "name" in fields and not fields["name"]:
        raise ValidationFailed("Name cannot be empty")
    _reject_nulls(fields)
    row = crud.update_class(db, class_id, fields)
    return ok(row.to_dict(), "Class updated successfully")


@router.delete("/{class_id}")
def delete_class(class_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    crud.delete_class(db, class_id)
    return ok(message="Class deleted successfully")
