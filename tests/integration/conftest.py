"""Fixtures for API integration tests."""
import pytest
from fastapi.testclient import TestClient

from flowhub.storage import FlowProject, get_flow_store


@pytest.fixture
def client(fake_redis):
    from flowhub.api.main import app

    return TestClient(app)


@pytest.fixture
def deploy_flow(fake_redis):
    """Store a deployed project plus a published version of ``flow``."""

    def deploy(flow, slug="echo", **project_fields):
        store = get_flow_store()
        fields = {"is_deployed": True, "deployment_status": "deployed", **project_fields}
        project = store.save_project(FlowProject(name=slug.title(), endpoint_slug=slug, **fields))
        store.publish_version(project.id, flow["nodes"], flow.get("edges", []))
        return project

    return deploy
