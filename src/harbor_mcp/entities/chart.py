"""Chart entities - a derived view over repositories named ``*/charts/<name>``.

Charts are not a distinct registry resource. They are computed from the
repository listing on every request and never stored.
"""

from pydantic import BaseModel, ConfigDict, Field


class Chart(BaseModel):
    """A Helm chart, derived from a chart repository."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Last path segment of the repository name")
    total_versions: int = 0
    latest_version: str = ""
    created: str | None = None
    updated: str | None = None


class ChartVersion(BaseModel):
    """A single chart version, i.e. an artifact narrowed to one tag."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Artifact digest")
    version: str = ""
    created: str | None = None
    updated: str | None = None
