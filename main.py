import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from energy_dashboard.config import API_PREFIX, APP_TITLE, FRONTEND_URL, configure_logging, now_local
from energy_dashboard.database import init_db
from energy_dashboard.errors import register_error_handlers
from energy_dashboard.routers import alerts, classes, consumption, devices, monitoring, pages, settings
from energy_dashboard.scheduler import start_alert_scheduler

configure_logging()
logger = logging.getLogger("energy_dashboard")

STATIC_DIR = Path(__file__).resolve().parent / "energy_dashboard" / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    start_alert_scheduler()
    logger.info("%s started, API under %s", APP_TITLE, API_PREFIX)
    yield


app = FastAPI(title=APP_TITLE, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL] if FRONTEND_URL else ["*"],
    allow_credentials=bool(FRONTEND_URL),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


register_error_handlers(app)

# Serve static assets
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# Routes
for module in (classes, devices, consumption, alerts, settings, monitoring):
    app.include_router(module.router, prefix=API_PREFIX)
app.include_router(pages.router)


@app.get("/health")
def health():
    return {
        "success": True,
        "status": "OK",
        "timestamp": now_local().isoformat(),
        "message": "Energy dashboard API is running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=3003,
        reload=False,
    )
