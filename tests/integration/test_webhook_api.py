"""Integration tests for the flow webhook endpoint."""
import hashlib
import hmac
import json
from unittest.mock import patch

from flowhub.api.routes.flows import client_ip, parse_body
from flowhub.storage import (
    ExecutionStatus,
    ExecutionStore,
    FlowProject,
    StoreError,
    get_execution_store,
    get_flow_store,
    get_monitoring_store,
)


def _sign(body, secret):
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_endpoint(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "flowhub"


def test_webhook_runs_published_flow(client, deploy_flow, simple_flow):
    """The response node shapes status, body and headers."""
    project = deploy_flow(simple_flow)

    response = client.post("/flows/echo", json={"name": "Ada"}, headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.2"})

    assert response.status_code == 201
    assert response.json() == {"received": "Ada"}
    assert response.headers["x-flow"] == "simple"
    execution_id = response.headers["x-execution-id"]

    record = get_execution_store().get(execution_id)
    assert record.status == ExecutionStatus.SUCCESS
    assert record.flow_id == project.id
    assert record.flow_version == 1
    assert record.response == {"received": "Ada"}

    analytics = get_monitoring_store().list_analytics(project.id)
    assert analytics[0].status_code == 201
    assert analytics[0].ip_address == "10.0.0.1"
    assert analytics[0].method == "POST"


def test_response_node_without_body(client, deploy_flow):
    deploy_flow({
        "nodes": [
            {"id": "trigger", "data": {"type": "webhook-trigger"}},
            {"id": "reply", "data": {"type": "response", "inputs": {"statusCode": 202}}},
        ],
        "edges": [{"source": "trigger", "target": "reply"}],
    })

    response = client.post("/flows/echo", json={})

    assert response.status_code == 202
    assert response.json() == {}


def test_record_update_failure_keeps_flow_response(client, deploy_flow, simple_flow):
    project = deploy_flow(simple_flow)

    with patch.object(ExecutionStore, "complete", side_effect=StoreError("redis down")):
        response = client.post("/flows/echo", json={"name": "Ada"})

    assert response.status_code == 201
    assert response.json() == {"received": "Ada"}
    assert get_monitoring_store().list_analytics(project.id)[0].status_code == 201


def test_record_create_failure_keeps_flow_response(client, deploy_flow, simple_flow):
    deploy_flow(simple_flow)

    with patch.object(ExecutionStore, "create", side_effect=StoreError("redis down")):
        response = client.post("/flows/echo", json={"name": "Grace"})

    assert response.status_code == 201
    assert response.json() == {"received": "Grace"}
    execution_id = response.headers["x-execution-id"]
    assert execution_id
    assert get_execution_store().get(execution_id) is None


def test_flow_without_response_node(client, deploy_flow):
    deploy_flow({"nodes": [{"id": "trigger", "data": {"type": "webhook-trigger"}}], "edges": []})

    response = client.get("/flows/echo", params={"q": "1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Flow executed successfully"
    assert body["executionId"] == response.headers["x-execution-id"]


def test_failing_flow_returns_500_and_monitoring_rows(client, deploy_flow):
    project = deploy_flow({
        "nodes": [
            {"id": "trigger", "data": {"type": "webhook-trigger"}},
            {"id": "widget", "data": {"type": "mystery-widget", "label": "Widget"}},
        ],
        "edges": [{"source": "trigger", "target": "widget"}],
    })

    response = client.post("/flows/echo", json={})

    assert response.status_code == 500
    assert response.json()["success"] is False
    rows = get_monitoring_store().list_rows(project.id)
    assert any(row.level == "error" and row.node_id == "widget" for row in rows)


def test_unknown_slug(client):
    response = client.post("/flows/missing", json={})

    assert response.status_code == 404
    assert response.json() == {"error": "Flow not found"}


def test_not_deployed(client, deploy_flow, simple_flow):
    deploy_flow(simple_flow, is_deployed=False)

    response = client.post("/flows/echo", json={})

    assert response.status_code == 503
    assert response.json()["error"] == "Flow is not deployed"


def test_no_published_version(client, fake_redis):
    get_flow_store().save_project(
        FlowProject(name="Empty", endpoint_slug="empty", is_deployed=True, deployment_status="deployed")
    )

    response = client.post("/flows/empty", json={})

    assert response.status_code == 404
    assert response.json()["error"] == "No published flow version found"


def test_api_key_required(client, deploy_flow, simple_flow):
    deploy_flow(simple_flow, secrets={"API_KEY": "k-1"})

    missing = client.post("/flows/echo", json={})
    wrong = client.post("/flows/echo", json={}, headers={"X-API-Key": "nope"})
    right = client.post("/flows/echo", json={"name": "Ada"}, headers={"X-API-Key": "k-1"})

    assert missing.status_code == 401
    assert missing.json() == {"error": "Missing API key", "details": "Include X-API-Key header"}
    assert wrong.json() == {"error": "Invalid API key"}
    assert right.status_code == 201


def test_secrets_reach_flow_env(client, deploy_flow):
    deploy_flow({
        "nodes": [
            {"id": "trigger", "data": {"type": "webhook-trigger"}},
            {"id": "reply", "data": {"type": "response", "inputs": {"body": {"region": "{{env.REGION}}"}}}},
        ],
        "edges": [{"source": "trigger", "target": "reply"}],
    }, variables={"REGION": "eu"})

    response = client.post("/flows/echo", json={})

    assert response.json() == {"region": "eu"}


def test_provider_signature(client, deploy_flow, simple_flow):
    deploy_flow(simple_flow, signature_provider="github", external_webhook_secret="gh-secret")
    body = json.dumps({"name": "Ada"})

    rejected = client.post(
        "/flows/echo", content=body, headers={"X-Hub-Signature-256": "sha256=" + _sign(body, "other")},
    )
    accepted = client.post(
        "/flows/echo", content=body, headers={"X-Hub-Signature-256": "sha256=" + _sign(body, "gh-secret")},
    )

    assert rejected.status_code == 401
    assert rejected.json() == {
        "error": "Signature verification failed",
        "details": "Signature mismatch",
        "provider": "github",
    }
    assert accepted.status_code == 201


def test_internal_signature(client, deploy_flow, simple_flow):
    deploy_flow(simple_flow, webhook_secret="internal")
    body = json.dumps({"name": "Ada"})

    unsigned = client.post("/flows/echo", content=body)
    bad = client.post("/flows/echo", content=body, headers={"X-Webhook-Signature": "deadbeef"})
    good = client.post("/flows/echo", content=body, headers={"X-Webhook-Signature": _sign(body, "internal")})

    assert unsigned.status_code == 201
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid internal webhook signature"}
    assert good.status_code == 201


def test_parse_body():
    assert parse_body("") == {}
    assert parse_body('{"a": 1}') == {"a": 1}
    assert parse_body("name=Ada") == {"raw": "name=Ada"}


def test_client_ip():
    assert client_ip({"x-forwarded-for": " 1.2.3.4 , 5.6.7.8"}) == "1.2.3.4"
    assert client_ip({"x-real-ip": "9.9.9.9"}) == "9.9.9.9"
    assert client_ip({}) == "0.0.0.0"
