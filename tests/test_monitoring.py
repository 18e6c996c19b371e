from datetime import datetime, timedelta

import pytest

from conftest import API

from energy_dashboard import config, notifier, scheduler
from energy_dashboard.crud.settings import set_setting
from energy_dashboard.models import Alert, Device
from energy_dashboard.monitoring import load_thresholds, scan_devices_for_alerts

NOW = datetime(2024, 3, 5, 12, 0, 0)


def test_thresholds_default_to_config(db):
    assert load_thresholds(db) == {
        "temperature": config.TEMPERATURE_THRESHOLD,
        "power": config.POWER_THRESHOLD,
        "stale_minutes": float(config.STALE_THRESHOLD_MINUTES),
    }


def test_thresholds_read_from_settings(db):
    set_setting(db, "temperature_threshold", 27, "number")
    assert load_thresholds(db)["temperature"] == 27.0


def test_scan_raises_temperature_and_power_alerts(db, make_device):
    device = make_device(current_temperature=35, current_power=5, last_reading=NOW)
    raised = scan_devices_for_alerts(db, now=NOW, notify=False)
    assert sorted((a.type, a.severity) for a in raised) == [("consumption", "medium"), ("temperature", "high")]
    assert all(a.device_id == device.id and a.class_id == device.class_id for a in raised)


def test_scan_does_not_duplicate_open_alerts(db, make_device):
    make_device(current_temperature=35, last_reading=NOW)
    assert len(scan_devices_for_alerts(db, now=NOW, notify=False)) == 1
    assert scan_devices_for_alerts(db, now=NOW, notify=False) == []

    alert = db.query(Alert).one()
    alert.status = "resolved"
    db.commit()
    assert len(scan_devices_for_alerts(db, now=NOW, notify=False)) == 1


def test_scan_marks_stale_devices_offline(db, make_device):
    device = make_device(iot_status="online", last_reading=NOW - timedelta(hours=2))
    raised = scan_devices_for_alerts(db, now=NOW, notify=False)
    assert [a.type for a in raised] == ["device_offline"]
    db.expire_all()
    assert db.get(Device, device.id).iot_status == "offline"


def test_scan_respects_setting_threshold(db, make_device):
    set_setting(db, "temperature_threshold", 40, "number")
    make_device(current_temperature=35, last_reading=NOW)
    assert scan_devices_for_alerts(db, now=NOW, notify=False) == []


class _FakeResponse:
    status_code = 200
    text = "ok"


def test_high_alerts_are_forwarded_to_webhook(db, monkeypatch):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json, timeout))
        return _FakeResponse()

    monkeypatch.setattr(config, "ALERT_WEBHOOK_URL", "http://hooks.test/alerts")
    monkeypatch.setattr(notifier.requests, "post", fake_post)

    alert = Alert(type="temperature", title="Hot", message="Too warm", severity="high")
    db.add(alert)
    db.commit()
    thread = notifier.notify_alert_async(alert)
    thread.join(timeout=5)

    [(url, payload, timeout)] = calls
    assert url == "http://hooks.test/alerts"
    assert payload["id"] == alert.id
    assert payload["severity"] == "high"
    assert timeout == 10


def test_low_severity_alerts_are_not_forwarded(db, monkeypatch):
    monkeypatch.setattr(config, "ALERT_WEBHOOK_URL", "http://hooks.test/alerts")
    alert = Alert(type="consumption", title="Busy", message="High load", severity="medium")
    assert notifier.notify_alert_async(alert) is None


def test_webhook_skipped_without_url(monkeypatch):
    monkeypatch.setattr(config, "ALERT_WEBHOOK_URL", "")
    assert notifier.send_webhook({"id": 1}) == (400, "missing webhook url")


def test_scan_endpoint(client, make_device):
    make_device(current_temperature=50, last_reading=config.now_local())
    res = client.post(f"{API}/monitoring/scan")
    assert res.status_code == 200
    assert [a["type"] for a in res.json()["data"]] == ["temperature"]
    assert client.get(f"{API}/alerts/count/unread").json()["data"]["unreadCount"] == 1


def test_status_endpoint(client):
    res = client.get(f"{API}/monitoring/status")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["enabled"] is False
    assert data["interval_minutes"] == scheduler.SCHEDULER_INTERVAL_MINUTES
    assert data["thresholds"]["power"] == config.POWER_THRESHOLD


@pytest.fixture()
def restore_scheduler_flag():
    before = scheduler.get_alert_scheduler_state()["enabled"]
    yield
    scheduler.set_alert_scheduler_enabled(before)


def test_toggle_endpoint(client, restore_scheduler_flag):
    res = client.post(f"{API}/monitoring/toggle", json={"enabled": False})
    assert res.status_code == 200
    assert res.json()["data"] == {"enabled": False}


def test_monitor_token_guard(client, monkeypatch):
    monkeypatch.setattr(config, "MONITOR_TOKEN", "secret")
    denied = client.get(f"{API}/monitoring/status")
    assert denied.status_code == 401
    assert denied.json() == {"success": False, "message": "Invalid monitor token"}
    allowed = client.get(f"{API}/monitoring/status", headers={"x-monitor-token": "secret"})
    assert allowed.status_code == 200
