import pytest

from conftest import API


@pytest.mark.parametrize("value", ["", "   ", None])
def test_create_setting_requires_value(client, value):
    res = client.post(f"{API}/settings", json={"key": "site_name", "value": value})
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_create_setting_requires_key(client):
    assert client.post(f"{API}/settings", json={"value": "x"}).status_code == 400


def test_setting_typed_values(client):
    res = client.post(f"{API}/settings", json={"key": "temperature_threshold", "value": 28.5, "data_type": "number"})
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["setting_value"] == "28.5"
    assert data["typed_value"] == 28.5

    flag = client.post(f"{API}/settings", json={"key": "alerts_enabled", "value": True, "dataType": "boolean"})
    assert flag.json()["data"]["setting_value"] == "true"
    assert flag.json()["data"]["typed_value"] is True

    blob = client.post(f"{API}/settings", json={"key": "tariff", "value": {"peak": 1444.7}, "data_type": "json"})
    assert blob.json()["data"]["typed_value"] == {"peak": 1444.7}


def test_setting_rejects_bad_type(client):
    assert client.post(f"{API}/settings", json={"key": "k", "value": "1", "data_type": "date"}).status_code == 400
    assert client.post(f"{API}/settings", json={"key": "k", "value": "abc", "data_type": "number"}).status_code == 400


def test_post_overwrites_existing_key(client):
    client.post(f"{API}/settings", json={"key": "site_name", "value": "HQ", "description": "Display name"})
    client.post(f"{API}/settings", json={"key": "site_name", "value": "Branch"})
    rows = client.get(f"{API}/settings").json()["data"]
    assert len(rows) == 1
    assert rows[0]["setting_value"] == "Branch"
    assert rows[0]["description"] == "Display name"


def test_get_update_delete_setting(client):
    assert client.get(f"{API}/settings/missing").status_code == 404
    client.post(f"{API}/settings", json={"key": "power_threshold", "value": 3, "data_type": "number"})

    res = client.put(f"{API}/settings/power_threshold", json={"value": 4.5})
    assert res.status_code == 200
    assert res.json()["data"]["typed_value"] == 4.5
    assert res.json()["data"]["data_type"] == "number"

    assert client.put(f"{API}/settings/power_threshold", json={"value": ""}).status_code == 400
    assert client.put(f"{API}/settings/nope", json={"value": "1"}).status_code == 404

    assert client.delete(f"{API}/settings/power_threshold").status_code == 200
    assert client.delete(f"{API}/settings/power_threshold").status_code == 404


def test_user_settings(client):
    missing = client.get(f"{API}/settings/user/7")
    assert missing.status_code == 404
    assert missing.json()["message"] == "User settings not found"

    assert client.put(f"{API}/settings/user/7", json={}).status_code == 400

    res = client.put(f"{API}/settings/user/7", json={"theme": "dark", "email_notifications": True})
    assert res.status_code == 200
    client.put(f"{API}/settings/user/7", json={"language": "id"})

    data = client.get(f"{API}/settings/user/7").json()["data"]
    assert data["user_id"] == 7
    assert data["theme"] == "dark"
    assert data["language"] == "id"
    assert data["email_notifications"] is True
