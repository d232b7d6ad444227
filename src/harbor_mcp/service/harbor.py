"""Harbor registry operations.

Provides high-level operations behind every tool:
- Listing, fetching, creating and deleting projects
- Listing and deleting repositories
- Listing tags and deleting a tag (resolved to its artifact digest)
- Listing charts and chart versions, deleting a chart version

Each operation validates its inputs before touching the registry, calls the
registry client, maps the payload into entities, and translates failures
into the service error taxonomy.
"""

import re
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from harbor_mcp.client.base import RegistryClient, RegistryClientError
from harbor_mcp.core.mapper import (
    chart_repository_path,
    map_artifact,
    map_chart_version,
    map_charts,
    map_project,
    map_repository,
)
from harbor_mcp.entities import (
    Artifact,
    Chart,
    ChartVersion,
    DeleteResult,
    Project,
    ProjectMetadata,
    Repository,
)
from harbor_mcp.observability.logging import get_logger
from harbor_mcp.service.errors import (
    HarborServiceError,
    InvalidParameterError,
    ResourceNotFoundError,
)

logger = get_logger(__name__)

_NUMERIC_ID = re.compile(r"[+-]?[0-9]+")


def validate_required(value: Any, name: str) -> str:
    """Return ``value`` if it is a non-empty string.

    Raises:
        InvalidParameterError: If the value is missing, not a string, or blank
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidParameterError(f"{name} is required")
    return value


def resolve_project_identifier(project_id: str) -> tuple[int | str, bool]:
    """Decide whether a project identifier is a numeric id or a name.

    The rule is purely syntactic: a base-10 integer is an id. A project
    whose name consists only of digits is therefore always treated as an id.

    Returns:
        Tuple of (identifier, is_name)
    """
    if _NUMERIC_ID.fullmatch(project_id):
        return int(project_id), False
    return project_id, True


@contextmanager
def _translate_errors(message: str) -> Iterator[None]:
    """Wrap unexpected failures with an operation-level message.

    Validation and not-found failures pass through untouched. A registry
    404 becomes a not-found failure, covering resources removed between a
    listing and the follow-up call.
    """
    try:
        yield
    except HarborServiceError:
        raise
    except Exception as e:
        if isinstance(e, RegistryClientError) and e.status_code == 404:
            logger.info("harbor_resource_missing", operation=message, error=e.message)
            raise ResourceNotFoundError(f"{message}: {e}", original_error=e) from e
        logger.error("harbor_operation_failed", operation=message, error=str(e))
        raise HarborServiceError(f"{message}: {e}", original_error=e) from e


class HarborService:
    """Service exposing one method per registry action.

    Holds only a reference to the registry client; every call is
    independent.
    """

    def __init__(self, client: RegistryClient):
        """Initialize the service.

        Args:
            client: Registry client used for every remote call
        """
        self.client = client

    # Projects

    async def list_projects(self) -> list[Project]:
        with _translate_errors("Failed to get projects"):
            raw_projects = await self.client.list_projects()
            return [map_project(p) for p in raw_projects or []]

    async def get_project(self, project_id: str) -> Project:
        """Fetch one project by numeric id or name.

        Raises:
            InvalidParameterError: If project_id is empty
            ResourceNotFoundError: If the project does not exist
            HarborServiceError: If the registry call fails
        """
        validate_required(project_id, "projectId")
        identifier, is_name = resolve_project_identifier(project_id)

        with _translate_errors(f"Failed to get project {project_id}"):
            if is_name:
                raw = await self.client.get_project(identifier, True)
            else:
                raw = await self.client.get_project(identifier)
            if not raw:
                raise ResourceNotFoundError(f"Project {project_id} not found")
            return map_project(raw)

    async def create_project(
        self,
        project_name: str,
        metadata: Optional[ProjectMetadata | dict[str, Any]] = None,
    ) -> Project:
        """Create a project and return it as stored by the registry.

        The creation response carries only the new id, so the project is
        fetched again by that id.

        Raises:
            InvalidParameterError: If project_name is empty
            HarborServiceError: If creation fails or returns no id
        """
        validate_required(project_name, "project_name")
        if isinstance(metadata, ProjectMetadata):
            metadata = metadata.model_dump(exclude_none=True)

        logger.info("project_create_started", project_name=project_name)

        with _translate_errors("Failed to create project"):
            if metadata:
                project_id = await self.client.create_project(project_name, metadata)
            else:
                project_id = await self.client.create_project(project_name)

        if project_id is None:
            raise HarborServiceError("Failed to create project: No project ID returned")

        with _translate_errors(f"Failed to get project {project_id}"):
            raw = await self.client.get_project(project_id)
            if not raw:
                raise ResourceNotFoundError(f"Project {project_id} not found after creation")
            project = map_project(raw)

        logger.info("project_created", project_name=project.name, project_id=project.project_id)
        return project

    async def delete_project(self, project_id: str) -> DeleteResult:
        validate_required(project_id, "projectId")
        identifier, is_name = resolve_project_identifier(project_id)

        with _translate_errors(f"Failed to delete project {project_id}"):
            if is_name:
                await self.client.delete_project(identifier, True)
            else:
                await self.client.delete_project(identifier)

        logger.info("project_deleted", project=project_id)
        return DeleteResult(message=f"Project {project_id} deleted successfully")

    # Repositories

    async def list_repositories(self, project_id: str) -> list[Repository]:
        validate_required(project_id, "projectId")

        with _translate_errors(f"Failed to get repositories for project {project_id}"):
            raw_repositories = await self.client.list_repositories(project_id)
            return [map_repository(r) for r in raw_repositories or []]

    async def delete_repository(self, project_id: str, repository_name: str) -> DeleteResult:
        validate_required(project_id, "projectId")
        validate_required(repository_name, "repositoryName")
        full_name = f"{project_id}/{repository_name}"

        with _translate_errors(f"Failed to delete repository {full_name}"):
            await self.client.delete_repository(full_name)

        logger.info("repository_deleted", repository=full_name)
        return DeleteResult(message=f"Repository {full_name} deleted successfully")

    # Tags

    async def list_tags(self, project_id: str, repository_name: str) -> list[Artifact]:
        """List artifacts of a repository with their full tag metadata."""
        validate_required(project_id, "projectId")
        validate_required(repository_name, "repositoryName")

        with _translate_errors(f"Failed to get tags for {project_id}/{repository_name}"):
            raw_artifacts = await self.client.list_artifacts(project_id, repository_name)
            return [map_artifact(a) for a in raw_artifacts or []]

    async def delete_tag(self, project_id: str, repository_name: str, tag: str) -> DeleteResult:
        """Delete the artifact carrying ``tag``.

        Deleting by digest removes the artifact together with any other tags
        it carries.

        Raises:
            ResourceNotFoundError: If no artifact in the repository has the tag
        """
        validate_required(project_id, "projectId")
        validate_required(repository_name, "repositoryName")
        validate_required(tag, "tag")

        with _translate_errors(f"Failed to delete tag {tag}"):
            digest = await self._resolve_digest(
                project_id,
                repository_name,
                tag,
                not_found=f"Tag {tag} not found in repository {repository_name}",
            )
            await self.client.delete_artifact(project_id, repository_name, digest)

        logger.info("tag_deleted", project=project_id, repository=repository_name, tag=tag, digest=digest)
        return DeleteResult(message=f"Tag {tag} deleted successfully")

    # Charts

    async def list_charts(self, project_id: str) -> list[Chart]:
        validate_required(project_id, "projectId")

        with _translate_errors(f"Failed to get charts for project {project_id}"):
            raw_repositories = await self.client.list_repositories(project_id)
            return map_charts(raw_repositories or [])

    async def list_chart_versions(self, project_id: str, chart_name: str) -> list[ChartVersion]:
        validate_required(project_id, "projectId")
        validate_required(chart_name, "chartName")

        with _translate_errors(f"Failed to get versions of chart {chart_name}"):
            raw_artifacts = await self.client.list_artifacts(
                project_id, chart_repository_path(chart_name)
            )
            return [map_chart_version(a) for a in raw_artifacts or []]

    async def delete_chart_version(
        self, project_id: str, chart_name: str, version: str
    ) -> DeleteResult:
        """Delete one version of a chart.

        Raises:
            ResourceNotFoundError: If the chart has no artifact tagged ``version``
        """
        validate_required(project_id, "projectId")
        validate_required(chart_name, "chartName")
        validate_required(version, "version")
        repository_path = chart_repository_path(chart_name)

        with _translate_errors(f"Failed to delete version {version} of chart {chart_name}"):
            digest = await self._resolve_digest(
                project_id,
                repository_path,
                version,
                not_found=f"Chart version {version} not found for chart {chart_name}",
            )
            await self.client.delete_artifact(project_id, repository_path, digest)

        logger.info("chart_version_deleted", project=project_id, chart=chart_name, version=version, digest=digest)
        return DeleteResult(message=f"Chart {chart_name} version {version} deleted successfully")

    async def _resolve_digest(
        self,
        project_id: str,
        repository_name: str,
        tag: str,
        not_found: str,
    ) -> str:
        """Find the digest of the artifact tagged ``tag`` by listing the repository."""
        raw_artifacts = await self.client.list_artifacts(project_id, repository_name)
        for artifact in map(map_artifact, raw_artifacts or []):
            if artifact.has_tag(tag):
                return artifact.digest
        raise ResourceNotFoundError(not_found)
