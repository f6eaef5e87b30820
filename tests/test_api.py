"""Tests for HTTP and WebSocket endpoints."""

from fastapi.testclient import TestClient

from nutrition_log.api.app import create_app
from tests.conftest import InMemoryEntryRepository, make_entry

JUNE_FIRST_NOON = 1717243200000


def _item(name: str, **overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "name": name,
        "calories": 100,
        "protein": 10,
        "carbs": 12,
        "fat": 2,
        "timestamp": JUNE_FIRST_NOON,
    }
    payload.update(overrides)
    return payload


def test_health(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/health").json() == {"status": "ok"}


def test_add_and_list_entries(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/users/user-1/entries",
        json={"items": [_item("Eggs"), _item("Toast", portion="2 slices")]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["complete"] is True
    assert [entry["id"] for entry in body["added"]] == ["entry-1", "entry-2"]
    assert body["added"][0]["portion"] == "1 serving"

    listed = client.get("/users/user-1/entries").json()["entries"]
    assert [entry["name"] for entry in listed] == ["Eggs", "Toast"]


def test_partial_batch_returns_multi_status(
    container, entry_repository: InMemoryEntryRepository
) -> None:
    entry_repository.fail_names.add("Toast")
    client = TestClient(create_app(container))

    response = client.post(
        "/users/user-1/entries",
        json={"items": [_item("Eggs"), _item("Toast"), _item("Coffee")]},
    )

    assert response.status_code == 207
    body = response.json()
    assert body["complete"] is False
    assert [entry["name"] for entry in body["added"]] == ["Eggs", "Coffee"]
    assert body["failed"][0]["index"] == 1
    assert body["failed"][0]["name"] == "Toast"


def test_negative_macros_rejected(container) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/users/user-1/entries", json={"items": [_item("Bad", fat=-1)]}
    )

    assert response.status_code == 422


def test_remove_entry_including_unknown_id(
    container, entry_repository: InMemoryEntryRepository
) -> None:
    entry_repository.entries["user-1"] = [make_entry("a"), make_entry("b")]
    client = TestClient(create_app(container))

    assert client.delete("/users/user-1/entries/a").status_code == 204
    assert client.delete("/users/user-1/entries/missing").status_code == 204

    listed = client.get("/users/user-1/entries").json()["entries"]
    assert [entry["id"] for entry in listed] == ["b"]


def test_entries_filtered_by_day(
    container, entry_repository: InMemoryEntryRepository
) -> None:
    entry_repository.entries["user-1"] = [
        make_entry("june-1", timestamp=JUNE_FIRST_NOON),
        make_entry("june-2", timestamp=JUNE_FIRST_NOON + 86_400_000),
        make_entry("legacy", timestamp=None),
    ]
    client = TestClient(create_app(container))

    response = client.get("/users/user-1/entries", params={"day": "2024-06-02"})

    assert [entry["id"] for entry in response.json()["entries"]] == [
        "june-2",
        "legacy",
    ]


def test_unknown_timezone_rejected(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(
        "/users/user-1/entries", params={"day": "2024-06-02", "tz": "Mars/Base"}
    )

    assert response.status_code == 400


def test_day_macros_with_goal_progress(
    container, entry_repository: InMemoryEntryRepository
) -> None:
    entry_repository.entries["user-1"] = [
        make_entry("a", calories=500, protein=30, carbs=50, fat=10),
        make_entry("b", calories=500, protein=45, carbs=75, fat=20),
    ]
    container.profile_store.update("user-1", {"macroGoals": {"calories": 2500}})
    client = TestClient(create_app(container))

    body = client.get("/users/user-1/macros", params={"day": "2024-06-01"}).json()

    assert body["totals"] == {"calories": 1000, "protein": 75, "carbs": 125, "fat": 30}
    assert body["goals"]["calories"] == 2500
    progress = {item["macro"]: item for item in body["progress"]}
    assert progress["calories"]["remaining"] == 1500
    assert progress["protein"]["percent"] == 50.0


def test_trend_is_gap_free(
    container, entry_repository: InMemoryEntryRepository
) -> None:
    entry_repository.entries["user-1"] = [make_entry("a", calories=900)]
    client = TestClient(create_app(container))

    body = client.get(
        "/users/user-1/trend", params={"start": "2024-05-31", "end": "2024-06-02"}
    ).json()

    assert [day["totals"]["calories"] for day in body["daily"]] == [0, 900, 0]
    assert body["summary"]["days"] == 3
    assert body["summary"]["average"]["calories"] == 300


def test_trend_rejects_reversed_range(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(
        "/users/user-1/trend", params={"start": "2024-06-02", "end": "2024-06-01"}
    )

    assert response.status_code == 400


def test_profile_not_found_then_merged(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/users/user-1/profile").status_code == 404

    client.patch("/users/user-1/profile", json={"macroGoals": {"protein": 170}})
    client.patch("/users/user-1/profile", json={"timezone": "Europe/Berlin"})
    body = client.get("/users/user-1/profile").json()

    assert body["timezone"] == "Europe/Berlin"
    assert body["macroGoals"] == {
        "calories": 2000,
        "protein": 170,
        "carbs": 250,
        "fat": 65,
    }


def test_storage_failure_returns_dismissible_error(
    container, entry_repository: InMemoryEntryRepository
) -> None:
    entry_repository.fail_reads = True
    client = TestClient(create_app(container))

    response = client.get("/users/user-1/entries")

    assert response.status_code == 503
    assert response.json()["dismissible"] is True


def test_admin_clear_requires_token_and_confirmation(container) -> None:
    container.profile_store.update("user-1", {"timezone": "UTC"})
    client = TestClient(create_app(container))

    assert client.post("/admin/clear", json={"confirm": True}).status_code == 401
    unconfirmed = client.post(
        "/admin/clear", json={}, headers={"X-Admin-Token": "admin-token"}
    )
    assert unconfirmed.status_code == 400
    assert container.profile_store.get("user-1") is not None

    cleared = client.post(
        "/admin/clear",
        json={"confirm": True},
        headers={"X-Admin-Token": "admin-token"},
    )
    assert cleared.status_code == 200
    assert client.get("/users/user-1/profile").status_code == 404


def test_entry_stream_pushes_snapshots(container) -> None:
    with TestClient(create_app(container)) as client:
        with client.websocket_connect("/users/user-1/entries/stream") as websocket:
            assert websocket.receive_json() == {"entries": []}

            client.post("/users/user-1/entries", json={"items": [_item("Eggs")]})
            pushed = websocket.receive_json()
            assert [entry["name"] for entry in pushed["entries"]] == ["Eggs"]

            client.delete("/users/user-1/entries/entry-1")
            assert websocket.receive_json() == {"entries": []}
