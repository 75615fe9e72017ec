import tempfile
import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fairplay.api import create_app
from fairplay.models import Platform
from tests.import_helpers import build_services, free_limiters, make_games, make_settings, mock_adapter

TOKEN = "test-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}


@pytest.fixture()
def client():
    settings = make_settings(Path(tempfile.mkdtemp()), api_token=TOKEN)
    limiters = free_limiters()
    adapters = {
        Platform.CHESS_COM: mock_adapter(
            settings,
            limiters,
            [*make_games(3, username="alice"), *make_games(2, username="carol")],
        ),
        Platform.LICHESS: mock_adapter(
            settings,
            limiters,
            make_games(4, username="bob", platform=Platform.LICHESS),
            platform=Platform.LICHESS,
        ),
    }
    app = create_app(
        settings,
        services_factory=lambda active: build_services(active, adapters, limiters),
    )
    with TestClient(app) as test_client:
        yield test_client


def test_health_is_unauthenticated(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_requires_auth_for_import(client) -> None:
    response = client.post("/api/import", json={"platform": "chess_com", "username": "alice"})
    assert response.status_code == 401
    response = client.get("/api/import/status", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401


def test_allows_api_key_header(client) -> None:
    response = client.get("/api/rate-limits", headers={"X-API-Key": TOKEN})
    assert response.status_code == 200


def test_import_returns_counts(client) -> None:
    response = client.post(
        "/api/import",
        json={"platform": "chess_com", "username": "alice", "limit": 10},
        headers=AUTH,
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["platform"] == "chess_com"
    assert payload["imported"] == 3
    assert payload["total_fetched"] == 3
    assert payload["duplicates"] == 0
    assert payload["errors"] == []

    again = client.post(
        "/api/import",
        json={"platform": "chess.com", "username": "ALICE", "limit": 10},
        headers=AUTH,
    ).json()
    assert again["imported"] == 0
    assert again["duplicates"] == 3


@pytest.mark.parametrize(
    "body",
    [
        {"platform": "chess_com", "username": "alice", "limit": 500},
        {"platform": "chess_com", "username": "alice", "limit": 0},
        {"platform": "fics", "username": "alice"},
        {"platform": "chess_com", "username": ""},
        {"platform": "chess_com", "username": "alice", "limit": "many"},
    ],
)
def test_invalid_import_requests_return_400(client, body) -> None:
    response = client.post("/api/import", json=body, headers=AUTH)
    assert response.status_code == 400
    assert "detail" in response.json()


def test_batch_import_reports_each_target(client) -> None:
    response = client.post(
        "/api/import/batch",
        json={
            "targets": [
                {"platform": "chess_com", "username": "alice"},
                {"platform": "fics", "username": "nobody"},
                {"platform": "lichess", "username": "bob"},
            ],
            "limit": 10,
        },
        headers=AUTH,
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["total_imported"] == 7
    assert [result["username"] for result in payload["results"]] == ["alice", "nobody", "bob"]
    assert payload["results"][1]["errors"][0].startswith("Import failed")


def test_batch_import_rejects_out_of_range_limit(client) -> None:
    response = client.post(
        "/api/import/batch",
        json={"targets": [{"platform": "lichess", "username": "bob"}], "limit": 101},
        headers=AUTH,
    )
    assert response.status_code == 400


def test_background_job_lifecycle(client) -> None:
    response = client.post(
        "/api/jobs",
        json={"targets": [{"platform": "chess_com", "username": "carol"}], "limit": 5},
        headers=AUTH,
    )
    assert response.status_code == 202
    job_id = response.json()["job_id"]

    deadline = time.monotonic() + 5
    job = {}
    while time.monotonic() < deadline:
        job = client.get(f"/api/jobs/{job_id}", headers=AUTH).json()
        if job["status"] in {"completed", "failed"}:
            break
        time.sleep(0.02)

    assert job["status"] == "completed"
    assert job["result"]["total_imported"] == 2
    listed = client.get("/api/jobs", headers=AUTH).json()["jobs"]
    assert [item["job_id"] for item in listed] == [job_id]


def test_unknown_job_returns_404(client) -> None:
    response = client.get("/api/jobs/does-not-exist", headers=AUTH)
    assert response.status_code == 404


def test_import_status_lists_cursors(client) -> None:
    client.post(
        "/api/import",
        json={"platform": "lichess", "username": "bob", "limit": 10},
        headers=AUTH,
    )

    cursors = client.get("/api/import/status", headers=AUTH).json()["cursors"]
    assert len(cursors) == 1
    assert cursors[0]["platform"] == "lichess"
    assert cursors[0]["username"] == "bob"
    assert cursors[0]["total_imported_count"] == 4

    filtered = client.get("/api/import/status?platform=chess_com", headers=AUTH).json()
    assert filtered["cursors"] == []


def test_rate_limits_expose_limiter_state(client) -> None:
    client.post(
        "/api/import",
        json={"platform": "lichess", "username": "bob", "limit": 10},
        headers=AUTH,
    )

    limiters = client.get("/api/rate-limits", headers=AUTH).json()["limiters"]
    by_platform = {item["platform"]: item for item in limiters}
    assert set(by_platform) == {"chess_com", "lichess"}
    assert by_platform["lichess"]["requests_made"] == 1
    assert by_platform["lichess"]["max_concurrency"] == 2
    assert by_platform["chess_com"]["byte_ceiling_enforced"] is False
