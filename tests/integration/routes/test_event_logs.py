import pytest

ADMIN_HEADERS = {"X-User-Id": "ops-1", "X-User-Role": "admin"}


@pytest.fixture
def logged(event_log) -> None:
    event_log.error("settlement", "PMS reservation failed", {"booking_id": "b1"})
    event_log.info("checkout", "Checkout session created")


@pytest.mark.integration
def test_admin_lists_entries(api_client, logged) -> None:
    response = api_client.get("/event-logs", params={"level": "error"}, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    (entry,) = response.json()
    assert entry["source"] == "settlement"
    assert entry["metadata"] == {"booking_id": "b1"}
    assert entry["acknowledged"] is False


@pytest.mark.integration
def test_non_admin_is_forbidden(api_client, logged) -> None:
    response = api_client.get("/event-logs", headers={"X-User-Id": "owner-1"})

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "forbidden"


@pytest.mark.integration
def test_acknowledge_entries(api_client, logged) -> None:
    entries = api_client.get("/event-logs", headers=ADMIN_HEADERS).json()

    response = api_client.post(
        "/event-logs/acknowledge",
        json={"ids": [e["id"] for e in entries]},
        headers=ADMIN_HEADERS,
    )

    assert response.json() == {"acknowledged": 2}
    pending = api_client.get(
        "/event-logs", params={"acknowledged": "false"}, headers=ADMIN_HEADERS
    ).json()
    assert pending == []
