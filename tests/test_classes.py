from conftest import API


def test_create_class_casts_floor_to_string(client):
    res = client.post(f"{API}/classes", json={"name": "Board Room", "floor": 3, "capacity": 10})
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Class created successfully"
    assert body["data"]["name"] == "Board Room"
    assert body["data"]["floor"] == "3"
    assert body["data"]["status"] == "active"


def test_create_class_requires_name(client):
    res = client.post(f"{API}/classes", json={"location": "Lobby"})
    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "Name is required"}


def test_list_only_returns_active_classes(client, room):
    client.post(f"{API}/classes", json={"name": "Old Room", "status": "inactive"})
    res = client.get(f"{API}/classes")
    assert res.status_code == 200
    names = [row["name"] for row in res.json()["data"]]
    assert names == ["Meeting Room A"]


def test_update_class(client, room):
    res = client.put(f"{API}/classes/{room.id}", json={"capacity": 20})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["capacity"] == 20
    assert data["name"] == "Meeting Room A"


def test_update_class_rejects_blank_name(client, room):
    res = client.put(f"{API}/classes/{room.id}", json={"name": ""})
    assert res.status_code == 400


def test_get_and_delete_missing_class(client):
    assert client.get(f"{API}/classes/999").json() == {"success": False, "message": "Class not found"}
    res = client.delete(f"{API}/classes/999")
    assert res.status_code == 404
    assert res.json()["message"] == "Class not found"


def test_delete_class(client, room):
    res = client.delete(f"{API}/classes/{room.id}")
    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Class deleted successfully"}
    assert client.get(f"{API}/classes/{room.id}").status_code == 404


def test_update_class_rejects_null_for_required_column(client, room):
    res = client.put(f"{API}/classes/{room.id}", json={"status": None})
    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "status cannot be null"}
    assert client.get(f"{API}/classes/{room.id}").json()["data"]["status"] == "active"


def test_update_class_allows_null_for_optional_column(client, room):
    res = client.put(f"{API}/classes/{room.id}", json={"location": None})
    assert res.status_code == 200
    assert res.json()["data"]["location"] is None


def test_create_class_rejects_null_status(client):
    res = client.post(f"{API}/classes", json={"name": "Annex", "status": None})
    assert res.status_code == 400
