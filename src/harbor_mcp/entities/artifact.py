"""Artifact entities - content-addressed objects and their tags."""

from pydantic import BaseModel, ConfigDict, Field


class ArtifactTag(BaseModel):
    """A human-readable label attached to an artifact."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    name: str
    push_time: str | None = None
    pull_time: str | None = None
    immutable: bool | None = None
    repository_id: int | None = None
    artifact_id: int | None = None
    signed: bool | None = None


class Artifact(BaseModel):
    """An artifact identified by digest, optionally carrying several tags."""

    model_config = ConfigDict(frozen=True)

    digest: str = Field(..., description="Content hash, the stable deletion target")
    tags: list[ArtifactTag] = Field(default_factory=list)
    size: int | None = None
    push_time: str | None = None
    pull_time: str | None = None
    type: str | None = None
    project_id: int | None = None
    repository_id: int | None = None
    id: int | None = None

    def tag_names(self) -> list[str]:
        """Names of all tags on this artifact, in registry order."""
        return [tag.name for tag in self.tags]

    def has_tag(self, name: str) -> bool:
        return name in self.tag_names()
