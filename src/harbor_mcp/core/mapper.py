"""Mapping of raw registry payloads into entities.

The registry returns loosely shaped JSON objects. These helpers pick the
fields the tools expose, fill defaults, and derive the chart view from
repository names. They never call the network.
"""

from typing import Any, Iterable, Optional

from harbor_mcp.entities import (
    Artifact,
    ArtifactTag,
    Chart,
    ChartVersion,
    Project,
    Repository,
)

# Repositories holding Helm charts are named "<project>/charts/<chart>"
CHART_PATH_MARKER = "/charts/"
CHART_REPOSITORY_PREFIX = "charts/"


def map_project(raw: dict[str, Any]) -> Project:
    return Project(
        name=raw["name"],
        project_id=raw["project_id"],
        creation_time=raw.get("creation_time"),
        update_time=raw.get("update_time"),
    )


def map_repository(raw: dict[str, Any]) -> Repository:
    return Repository(
        name=raw["name"],
        artifact_count=raw.get("artifact_count"),
        creation_time=raw.get("creation_time"),
        update_time=raw.get("update_time"),
    )


def map_artifact_tag(raw: dict[str, Any]) -> ArtifactTag:
    return ArtifactTag(
        id=raw.get("id"),
        name=raw["name"],
        push_time=raw.get("push_time"),
        pull_time=raw.get("pull_time"),
        immutable=raw.get("immutable"),
        repository_id=raw.get("repository_id"),
        artifact_id=raw.get("artifact_id"),
        signed=raw.get("signed"),
    )


def map_artifact(raw: dict[str, Any]) -> Artifact:
    """Map an artifact, keeping every tag with its metadata."""
    return Artifact(
        digest=raw["digest"],
        tags=[map_artifact_tag(tag) for tag in raw.get("tags") or []],
        size=raw.get("size"),
        push_time=raw.get("push_time"),
        pull_time=raw.get("pull_time"),
        type=raw.get("type"),
        project_id=raw.get("project_id"),
        repository_id=raw.get("repository_id"),
        id=raw.get("id"),
    )


def is_chart_repository(repository_name: Optional[str]) -> bool:
    return bool(repository_name) and CHART_PATH_MARKER in repository_name


def chart_name_from_repository(repository_name: str) -> str:
    """Display name of a chart: the last path segment of its repository."""
    return repository_name.rstrip("/").split("/")[-1]


def chart_repository_path(chart_name: str) -> str:
    """Repository path (relative to the project) holding a chart's versions."""
    return f"{CHART_REPOSITORY_PREFIX}{chart_name}"


def map_chart(raw_repository: dict[str, Any]) -> Chart:
    """Map a chart repository to a chart.

    The latest version is left empty; resolving it would need one artifact
    listing per chart.
    """
    return Chart(
        name=chart_name_from_repository(raw_repository["name"]),
        total_versions=raw_repository.get("artifact_count") or 0,
        latest_version="",
        created=raw_repository.get("creation_time"),
        updated=raw_repository.get("update_time"),
    )


def map_charts(raw_repositories: Iterable[dict[str, Any]]) -> list[Chart]:
    """Filter a repository listing down to charts."""
    return [
        map_chart(repo)
        for repo in raw_repositories
        if is_chart_repository(repo.get("name"))
    ]


def map_chart_version(raw_artifact: dict[str, Any]) -> ChartVersion:
    """Map an artifact of a chart repository to a single chart version.

    The version is the artifact's first tag name.
    """
    tags = raw_artifact.get("tags") or []
    version = tags[0].get("name", "") if tags else ""
    push_time = raw_artifact.get("push_time")
    return ChartVersion(
        name=raw_artifact["digest"],
        version=version or "",
        created=push_time,
        updated=raw_artifact.get("update_time") or push_time,
    )

