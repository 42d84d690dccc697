"""Redis-backed store for flow projects and their versions."""
import uuid
from typing import Any

import redis
from pydantic import BaseModel, Field

from flowhub.observability import get_logger
from flowhub.storage.base import StoreError, get_redis_client, redis_errors, utc_now

logger = get_logger(__name__)

API_KEY_SECRET = "API_KEY"


class FlowProject(BaseModel):
    """A deployable flow with its webhook settings and environment."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Project ID")
    name: str = Field(..., description="Display name")
    endpoint_slug: str = Field(..., description="Path segment under /flows/")
    user_id: str | None = Field(default=None, description="Owner")
    is_deployed: bool = Field(default=False)
    deployment_status: str = Field(default="draft", description="'draft' or 'deployed'")

    webhook_secret: str | None = Field(
        default=None,
        description="Secret for the internal X-Webhook-Signature header",
    )
    signature_provider: str | None = Field(
        default=None,
        description="github, stripe, shopify, slack, webflow, custom or none",
    )
    signature_header_name: str | None = Field(default=None, description="Header for the custom provider")
    signature_algorithm: str | None = Field(default=None, description="Hash for the custom provider")
    external_webhook_secret: str | None = Field(default=None, description="Provider signing secret")
    signature_timestamp_tolerance: int | None = Field(default=None, description="Seconds")

    variables: dict[str, Any] = Field(default_factory=dict, description="Plain flow variables")
    secrets: dict[str, str] = Field(default_factory=dict, description="Secret flow variables")

    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)

    @property
    def accepts_requests(self) -> bool:
        return self.is_deployed and self.deployment_status == "deployed"


class FlowVersion(BaseModel):
    """A numbered snapshot of a flow graph."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    flow_project_id: str
    version: int
    is_published: bool = False
    nodes: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[dict[str, Any]] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now)

    def definition(self) -> dict[str, Any]:
        return {"nodes": self.nodes, "edges": self.edges}


class FlowStore:
    """Projects by id and slug; versions per project."""

    def __init__(self, redis_client: redis.Redis | None = None):
        self.redis_client = redis_client if redis_client is not None else get_redis_client()
        self._project_prefix = "flow:project:"
        self._slug_prefix = "flow:slug:"
        self._version_prefix = "flow:version:"
        self._versions_prefix = "flow:versions:"

    def _project_key(self, project_id: str) -> str:
        return f"{self._project_prefix}{project_id}"

    def _slug_key(self, slug: str) -> str:
        return f"{self._slug_prefix}{slug}"

    def _version_key(self, project_id: str, version: int) -> str:
        return f"{self._version_prefix}{project_id}:{version}"

    def _versions_key(self, project_id: str) -> str:
        return f"{self._versions_prefix}{project_id}"

    # ==== Projects ====

    def save_project(self, project: FlowProject) -> FlowProject:
        """
        Create or replace a project.

        Raises:
            StoreError: If another project already owns the slug
        """
        with redis_errors("save_project"):
            owner = self.redis_client.get(self._slug_key(project.endpoint_slug))
            if owner and owner != project.id:
                raise StoreError(f"Endpoint slug already in use: {project.endpoint_slug}")

            previous = self.get_project(project.id)
            if previous and previous.endpoint_slug != project.endpoint_slug:
                self.redis_client.delete(self._slug_key(previous.endpoint_slug))

            project.updated_at = utc_now()
            self.redis_client.set(self._project_key(project.id), project.model_dump_json())
            self.redis_client.set(self._slug_key(project.endpoint_slug), project.id)

        logger.info(
            "Flow project saved",
            extra={"flow_id": project.id, "slug": project.endpoint_slug},
        )
        return project

    def get_project(self, project_id: str) -> FlowProject | None:
        data = self.redis_client.get(self._project_key(project_id))
        if data is None:
            return None
        return FlowProject.model_validate_json(data)

    def get_project_by_slug(self, slug: str) -> FlowProject | None:
        project_id = self.redis_client.get(self._slug_key(slug))
        if project_id is None:
            return None
        return self.get_project(project_id)

    def get_env(self, project_id: str) -> dict[str, Any]:
        """Variables overlaid with secrets; a secret wins on a name clash."""
        project = self.get_project(project_id)
        if project is None:
            return {}
        return {**project.variables, **project.secrets}

    def get_api_key(self, project_id: str) -> str | None:
        """The ``API_KEY`` secret that callers must send as X-API-Key."""
        project = self.get_project(project_id)
        if project is None:
            return None
        return project.secrets.get(API_KEY_SECRET) or None

    # ==== Versions ====

    def publish_version(
        self,
        project_id: str,
        nodes: list[dict[str, Any]],
        edges: list[dict[str, Any]],
        publish: bool = True,
    ) -> FlowVersion:
        """
        Store the next version of a project's graph.

        Raises:
            StoreError: If the project does not exist
        """
        if self.get_project(project_id) is None:
            raise StoreError(f"Flow project not found: {project_id}")

        with redis_errors("publish_version"):
            number = len(self.redis_client.lrange(self._versions_key(project_id), 0, -1)) + 1
            version = FlowVersion(
                flow_project_id=project_id,
                version=number,
                is_published=publish,
                nodes=nodes,
                edges=edges,
            )
            self.redis_client.set(self._version_key(project_id, number), version.model_dump_json())
            self.redis_client.rpush(self._versions_key(project_id), str(number))

        logger.info(
            "Flow version stored",
            extra={"flow_id": project_id, "version": number, "published": publish},
        )
        return version

    def get_version(self, project_id: str, version: int) -> FlowVersion | None:
        data = self.redis_client.get(self._version_key(project_id, version))
        if data is None:
            return None
        return FlowVersion.model_validate_json(data)

    def list_versions(self, project_id: str) -> list[FlowVersion]:
        numbers = self.redis_client.lrange(self._versions_key(project_id), 0, -1)
        versions = [self.get_version(project_id, int(n)) for n in numbers]
        return [v for v in versions if v is not None]

    def get_published_version(self, project_id: str) -> FlowVersion | None:
        """Highest-numbered published version."""
        published = [v for v in self.list_versions(project_id) if v.is_published]
        if not published:
            return None
        return max(published, key=lambda v: v.version)


def get_flow_store() -> FlowStore:
    """Get or create flow store instance."""
    return FlowStore()
