"""Repository entity - a named collection of artifacts within a project."""

from pydantic import BaseModel, ConfigDict, Field


class Repository(BaseModel):
    """A repository in a project.

    The name is fully qualified (``project/repository``) as reported by the
    registry.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Fully qualified repository name")
    artifact_count: int | None = None
    creation_time: str | None = None
    update_time: str | None = None
