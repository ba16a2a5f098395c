"""Integration tests for the HTTP API.

Covers caller identity handling, coordinator error mapping and the
register / request / assign / complete / restore flow over HTTP.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backup_coordinator.app import create_app
from backup_coordinator.core.config import Settings
from backup_coordinator.core.context import BlockCounter

from conftest import OWNER


@pytest_asyncio.fixture
async def test_client(coordinator, session_factory):
    """Provide AsyncClient with the test coordinator injected into app.state."""
    app = create_app(Settings(APP_ENV="test", OWNER_IDENTITY=OWNER))  # type: ignore[call-arg]
    app.state.coordinator = coordinator
    app.state.block_counter = BlockCounter()
    app.state.session_factory = session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def as_caller(identity: str) -> dict[str, str]:
    return {"X-Caller-Identity": identity}


@pytest.mark.asyncio
async def test_health(test_client):
    response = await test_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_mutation_without_caller_is_rejected(test_client):
    response = await test_client.post("/api/nodes", json={"capacity": 1000})

    assert response.status_code == 401

    lookup = await test_client.get("/api/nodes/N")
    assert lookup.status_code == 404


@pytest.mark.asyncio
async def test_backup_flow_over_http(test_client):
    response = await test_client.post("/api/nodes", json={"capacity": 1000}, headers=as_caller("N"))
    assert response.status_code == 201
    node = response.json()
    assert node["reputation_score"] == 100
    assert node["active"] is True
    assert node["registered_at_block"] == 1

    response = await test_client.post(
        "/api/backups",
        json={"file_hash": "hash123", "file_size": 500, "priority": 2, "required_replicas": 3,
              "reward": 10},
        headers=as_caller("alice"),
    )
    assert response.status_code == 201
    assert response.json() == {"backup_id": 1}

    response = await test_client.post(
        "/api/backups/1/assignments", json={"node_id": "N"}, headers=as_caller("coordinator")
    )
    assert response.status_code == 201
    assert response.json()["status"] == "assigned"

    request = (await test_client.get("/api/backups/1")).json()
    assert request["status"] == "in-progress"

    response = await test_client.post(
        "/api/backups/1/completion", json={"backup_hash": "hash123"}, headers=as_caller("N")
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["completed_at_block"] == 4

    location = (await test_client.get("/api/locations/hash123/N")).json()
    assert location["backup_id"] == 1
    assert location["verified"] is True

    node = (await test_client.get("/api/nodes/N")).json()
    assert node["used_capacity"] == 500

    response = await test_client.post(
        "/api/locations/hash123/verification", json={"verified": False}, headers=as_caller("N")
    )
    assert response.status_code == 200
    assert response.json()["verified"] is False
    assert response.json()["last_verified_block"] == 5


@pytest.mark.asyncio
async def test_restore_flow_over_http(test_client):
    response = await test_client.post(
        "/api/restores",
        json={"file_hash": "hash123", "preferred_node": "N", "reward": 5},
        headers=as_caller("alice"),
    )
    assert response.status_code == 201
    assert response.json()["id"] == 1
    assert response.json()["selected_node"] == "N"
    assert response.json()["status"] == "pending"

    response = await test_client.post("/api/restores/1/completion", headers=as_caller("mallory"))
    assert response.status_code == 403
    assert response.json()["error"]["kind"] == "unauthorized"

    response = await test_client.post("/api/restores/1/completion", headers=as_caller("N"))
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = await test_client.post("/api/restores/1/completion", headers=as_caller("N"))
    assert response.status_code == 409
    assert response.json()["error"]["kind"] == "invalid-status"

    next_id = (await test_client.get("/api/restores/next-id")).json()
    assert next_id == {"next_id": 2}


@pytest.mark.asyncio
async def test_coordinator_errors_mapped_to_status_codes(test_client):
    await test_client.post("/api/nodes", json={"capacity": 100}, headers=as_caller("N"))

    duplicate = await test_client.post("/api/nodes", json={"capacity": 100}, headers=as_caller("N"))
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["kind"] == "already-exists"
    assert duplicate.json()["error"]["code"] == 102

    missing = await test_client.post(
        "/api/backups/99/assignments", json={"node_id": "N"}, headers=as_caller("coordinator")
    )
    assert missing.status_code == 404
    assert missing.json()["error"]["kind"] == "not-found"

    await test_client.post(
        "/api/backups",
        json={"file_hash": "big", "file_size": 500, "priority": 1, "required_replicas": 1},
        headers=as_caller("alice"),
    )
    too_big = await test_client.post(
        "/api/backups/1/assignments", json={"node_id": "N"}, headers=as_caller("coordinator")
    )
    assert too_big.status_code == 409
    assert too_big.json()["error"]["kind"] == "insufficient-capacity"

    bad_priority = await test_client.post(
        "/api/backups",
        json={"file_hash": "x", "file_size": 1, "priority": 9, "required_replicas": 1},
        headers=as_caller("alice"),
    )
    assert bad_priority.status_code == 409
    assert bad_priority.json()["error"]["kind"] == "invalid-status"


@pytest.mark.asyncio
async def test_admin_min_replicas(test_client):
    assert (await test_client.get("/api/admin/min-backup-replicas")).json() == {"value": 3}

    rejected = await test_client.put(
        "/api/admin/min-backup-replicas", json={"value": 5}, headers=as_caller("mallory")
    )
    assert rejected.status_code == 403

    accepted = await test_client.put(
        "/api/admin/min-backup-replicas", json={"value": 5}, headers=as_caller(OWNER)
    )
    assert accepted.status_code == 200
    assert (await test_client.get("/api/admin/min-backup-replicas")).json() == {"value": 5}


@pytest.mark.asyncio
async def test_node_active_toggle(test_client):
    await test_client.post("/api/nodes", json={"capacity": 100}, headers=as_caller("N"))

    response = await test_client.put(
        "/api/nodes/me/active", json={"active": False}, headers=as_caller("N")
    )
    assert response.status_code == 200

    assert (await test_client.get("/api/nodes/N/active")).json() == {"node_id": "N", "active": False}
    assert (await test_client.get("/api/nodes/ghost/active")).json()["active"] is False
