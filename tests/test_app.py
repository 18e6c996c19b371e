from conftest import API


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "OK"
    assert body["timestamp"]


def test_unknown_route_uses_envelope(client):
    res = client.get(f"{API}/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Route not found"}


def test_path_type_errors_are_bad_requests(client):
    res = client.get(f"{API}/classes/abc")
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_malformed_json_is_bad_request(client):
    res = client.post(f"{API}/classes", content="{not json", headers={"Content-Type": "application/json"})
    assert res.status_code == 400


def test_root_redirects_to_dashboard(client):
    res = client.get("/", follow_redirects=False)
    assert res.status_code == 302
    assert res.headers["location"] == "/dashboard"


def test_pages_render(client, room):
    for path in ("/dashboard", "/devices", "/alerts", "/analytics", "/settings"):
        res = client.get(path)
        assert res.status_code == 200, path
        assert "text/html" in res.headers["content-type"]
        assert 'data-api-prefix="/api/v1"' in res.text

    assert "Meeting Room A" in client.get("/dashboard").text
    assert 'data-poll-ms="5000"' in client.get("/dashboard").text
    assert 'data-poll-ms="10000"' in client.get("/alerts").text


def test_static_assets_served(client):
    res = client.get("/static/js/polling.js")
    assert res.status_code == 200
    assert "startPolling" in res.text


def test_unexpected_errors_use_envelope(client, monkeypatch):
    from fastapi.testclient import TestClient

    from energy_dashboard.routers import consumption as consumption_router
    from main import app

    def explode(*args, **kwargs):
        raise RuntimeError("aggregation exploded")

    monkeypatch.setattr(consumption_router.crud, "monthly", explode)
    # the fixture already installed the session override on the app
    lenient = TestClient(app, raise_server_exceptions=False)
    res = lenient.get(f"{API}/consumption/monthly/1", params={"month": "2024-03"})
    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "aggregation exploded"}
