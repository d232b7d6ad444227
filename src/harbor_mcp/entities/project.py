"""Project entities - top-level registry namespaces."""

from pydantic import BaseModel, ConfigDict, Field


class ProjectMetadata(BaseModel):
    """Optional project settings forwarded verbatim on creation.

    Harbor expects string values ("true"/"false") for the boolean flags.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    public: str | None = None
    enable_content_trust: str | None = None
    prevent_vul: str | None = None
    severity: str | None = None
    auto_scan: str | None = None


class Project(BaseModel):
    """A registry project, identified by numeric id or by name."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Project name")
    project_id: int = Field(..., description="Numeric project id")
    creation_time: str | None = None
    update_time: str | None = None
