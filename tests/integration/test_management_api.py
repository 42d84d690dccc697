"""Integration tests for flow management and node catalog endpoints."""
from unittest.mock import patch

import pytest

from flowhub.storage import ExecutionStatus, get_execution_store


@pytest.fixture
def mock_delay():
    with patch("flowhub.api.routes.management.run_flow_execution") as mocked:
        yield mocked.delay


def _create(client, **fields):
    payload = {"name": "Orders", "endpoint_slug": "orders", **fields}
    response = client.post("/v1/flows", json=payload)
    assert response.status_code == 200
    return response.json()


def test_create_flow_hides_secrets(client):
    data = _create(client, variables={"REGION": "eu"}, secrets={"API_KEY": "k-1", "TOKEN": "t"})

    assert data["endpoint_slug"] == "orders"
    assert data["deployment_status"] == "draft"
    assert data["variables"] == {"REGION": "eu"}
    assert data["secret_names"] == ["API_KEY", "TOKEN"]
    assert "secrets" not in data
    assert "k-1" not in str(data)


def test_update_flow(client):
    created = _create(client)

    response = client.post("/v1/flows", json={
        "id": created["id"], "name": "Orders v2", "endpoint_slug": "orders",
        "is_deployed": True, "deployment_status": "deployed",
    })

    assert response.status_code == 200
    assert response.json()["name"] == "Orders v2"
    assert client.get(f"/v1/flows/{created['id']}").json()["is_deployed"] is True


def test_update_unknown_flow(client):
    response = client.post("/v1/flows", json={"id": "ghost", "name": "x", "endpoint_slug": "x"})

    assert response.status_code == 404


def test_slug_conflict(client):
    _create(client)

    response = client.post("/v1/flows", json={"name": "Other", "endpoint_slug": "orders"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Endpoint slug already in use: orders"


def test_get_unknown_flow(client):
    assert client.get("/v1/flows/ghost").status_code == 404


def test_publish_versions(client, simple_flow):
    flow_id = _create(client)["id"]

    first = client.post(f"/v1/flows/{flow_id}/versions", json=simple_flow)
    second = client.post(f"/v1/flows/{flow_id}/versions", json={**simple_flow, "publish": False})

    assert first.status_code == 201
    assert first.json()["version"] == 1
    assert second.json()["version"] == 2
    assert second.json()["is_published"] is False


def test_publish_rejects_cycle(client):
    flow_id = _create(client)["id"]

    response = client.post(f"/v1/flows/{flow_id}/versions", json={
        "nodes": [{"id": "a", "data": {"type": "logger"}}, {"id": "b", "data": {"type": "logger"}}],
        "edges": [{"source": "a", "target": "b"}, {"source": "b", "target": "a"}],
    })

    assert response.status_code == 422
    assert response.json()["detail"].startswith("Invalid flow:")


def test_publish_unknown_flow(client, simple_flow):
    assert client.post("/v1/flows/ghost/versions", json=simple_flow).status_code == 404


def test_queue_execution(client, deploy_flow, simple_flow, mock_delay):
    project = deploy_flow(simple_flow)

    response = client.post("/v1/flows/echo/executions", json={
        "method": "put", "body": {"name": "Ada"}, "headers": {"X-Source": "test"},
    })

    assert response.status_code == 202
    data = response.json()
    assert data["status"] == "queued"
    assert data["flow_id"] == project.id
    assert data["flow_version"] == 1
    mock_delay.assert_called_once_with(data["execution_id"])

    record = get_execution_store().get(data["execution_id"])
    assert record.status == ExecutionStatus.QUEUED
    assert record.request == {
        "method": "PUT", "headers": {"x-source": "test"}, "body": {"name": "Ada"}, "query": {},
    }


def test_queue_execution_unknown_slug(client, mock_delay):
    response = client.post("/v1/flows/ghost/executions", json={})

    assert response.status_code == 404
    mock_delay.assert_not_called()


def test_list_and_get_executions(client, deploy_flow, simple_flow):
    project = deploy_flow(simple_flow)
    client.post("/flows/echo", json={"name": "Ada"})
    client.post("/flows/echo", json={"name": "Grace"})

    listed = client.get(f"/v1/flows/{project.id}/executions", params={"limit": 1}).json()

    assert len(listed) == 1
    assert listed[0]["response"] == {"received": "Grace"}

    detail = client.get(f"/v1/executions/{listed[0]['execution_id']}").json()
    assert detail["status"] == "success"
    assert detail["status_code"] == 201
    assert detail["logs"][0]["message"] == "Executing Webhook"


def test_get_unknown_execution(client):
    response = client.get("/v1/executions/ghost")

    assert response.status_code == 404
    assert response.json()["detail"] == "Execution not found"


def test_list_nodes(client):
    types = [d["node_type"] for d in client.get("/v1/nodes").json()]

    assert "webhook-trigger" in types
    assert "shopify" in types


def test_get_node(client):
    data = client.get("/v1/nodes/trello").json()

    assert data["proxy_name"] == "trello-proxy"
    assert client.get("/v1/nodes/teleporter").status_code == 404


def test_dynamic_inputs(client):
    response = client.post("/v1/nodes/clockodo/inputs", json={"inputs": {"action": "createUser"}})

    names = [f["name"] for f in response.json()]
    assert names == ["email", "apiKey", "action", "name", "userEmail", "role", "teamsId"]
