"""
Backfill dummy hourly consumption for devices between two datetimes.

Usage:
  python -m scripts.backfill_dummy --start 2025-08-01 --end 2025-08-07 --step-hours 1 --devices 1 2

Defaults:
  start: seven days ago, 00:00
  end: now
  step: 1 hour
  devices: every device with status other than maintenance
"""

from __future__ import annotations

import argparse
import logging
import random
from datetime import datetime, timedelta

from energy_dashboard.config import configure_logging, now_local
from energy_dashboard.crud.consumption import ingest_reading
from energy_dashboard.database import SessionLocal, init_db
from energy_dashboard.errors import ApiError
from energy_dashboard.models import Device
from energy_dashboard.schemas import ReadingIn

logger = logging.getLogger("energy_dashboard.backfill")

# rough duty cycle per device type, office hours vs night
DUTY_CYCLE = {
    "AC": (0.75, 0.05),
    "LAMP": (0.9, 0.02),
}


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value)


def dummy_reading(device: Device, ts: datetime) -> ReadingIn:
    day_duty, night_duty = DUTY_CYCLE.get((device.device_type or "").upper(), (0.5, 0.05))
    duty = day_duty if 7 <= ts.hour < 19 and ts.weekday() < 5 else night_duty
    rated_kw = (device.power_rating or 0) / 1000
    consumption = round(max(0.0, rated_kw * duty * random.uniform(0.85, 1.15)), 3)
    temperature = None
    if (device.device_type or "").upper() == "AC":
        temperature = round(random.uniform(22.0, 26.0) if duty > 0.5 else random.uniform(27.0, 30.0), 1)
    return ReadingIn(
        device_id=device.id,
        consumption=consumption,
        temperature=temperature,
        humidity=round(random.uniform(45, 70), 1),
        timestamp=ts,
        notes="backfill",
    )


def main():
    parser = argparse.ArgumentParser(description="Backfill dummy hourly readings for devices.")
    parser.add_argument("--start", type=parse_dt, default=None, help="ISO datetime start (default 7 days ago)")
    parser.add_argument("--end", type=parse_dt, default=None, help="ISO datetime end (default now)")
    parser.add_argument("--step-hours", type=int, default=1, help="Step in hours (default 1)")
    parser.add_argument(
        "--devices",
        nargs="*",
        type=int,
        default=None,
        help="Optional list of device ids. If omitted, all non-maintenance devices run.",
    )
    args = parser.parse_args()

    configure_logging("backfill.log")
    init_db()

    end = args.end or now_local()
    start = args.start or (end - timedelta(days=7)).replace(hour=0, minute=0, second=0, microsecond=0)
    step = timedelta(hours=max(1, args.step_hours))

    total_attempts = 0
    total_inserted = 0
    with SessionLocal() as session:
        query = session.query(Device).filter(Device.status != "maintenance")
        if args.devices:
            query = query.filter(Device.id.in_(args.devices))
        devices = query.order_by(Device.id).all()
        if not devices:
            logger.warning("No devices matched, nothing to backfill")
            return

        ts = start
        while ts <= end:
            for device in devices:
                total_attempts += 1
                try:
                    ingest_reading(session, dummy_reading(device, ts))
                    total_inserted += 1
                except ApiError as exc:
                    logger.warning("Skipped device %s at %s: %s", device.id, ts, exc.message)
            ts += step

    print(f"Backfill complete: attempted={total_attempts}, inserted={total_inserted}, start={start}, end={end}, step_hours={args.step_hours}")


if __name__ == "__main__":
    main()
