from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from energy_dashboard import config
from energy_dashboard.crud import classes as class_crud
from energy_dashboard.database import get_db

router = APIRouter(include_in_schema=False)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _page_context(db: Session, active: str, poll_ms: int) -> Dict[str, Any]:
    return {
        "active": active,
        "api_prefix": config.API_PREFIX,
        "poll_ms": poll_ms,
        "app_title": config.APP_TITLE,
        "classes": [row.to_dict() for row in class_crud.list_active(db)],
        "today": config.now_local().date().isoformat(),
    }


@router.get("/")
def root():
    return RedirectResponse(url="/dashboard", status_code=302)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "dashboard.html", _page_context(db, "dashboard", config.DASHBOARD_POLL_MS)
    )


@router.get("/devices", response_class=HTMLResponse)
def devices_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    return templates.TemplateResponse(request, "devices.html", _page_context(db, "devices", config.PAGE_POLL_MS))


@router.get("/alerts", response_class=HTMLResponse)
def alerts_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    return templates.TemplateResponse(request, "alerts.html", _page_context(db, "alerts", config.PAGE_POLL_MS))


@router.get("/analytics", response_class=HTMLResponse)
def analytics_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    context = _page_context(db, "analytics", config.PAGE_POLL_MS)
    context["month"] = config.now_local().strftime("%Y-%m")
    return templates.TemplateResponse(request, "analytics.html", context)


@router.get("/settings", response_class=HTMLResponse)
def settings_page(request: Request, db: Session = Depends(get_db)) -> HTMLResponse:
    # no polling here, edits would be clobbered
    return templates.TemplateResponse(request, "settings.html", _page_context(db, "settings", 0))
