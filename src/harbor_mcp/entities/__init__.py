"""Entities - Value records for registry resources.

This module contains immutable records built from registry responses:
- Project / ProjectMetadata: Top-level namespaces
- Repository: Named artifact collections within a project
- Artifact / ArtifactTag: Content-addressed objects and their labels
- Chart / ChartVersion: Derived view over chart repositories
- DeleteResult: Confirmation of a delete operation
"""

from harbor_mcp.entities.artifact import Artifact, ArtifactTag
from harbor_mcp.entities.chart import Chart, ChartVersion
from harbor_mcp.entities.project import Project, ProjectMetadata
from harbor_mcp.entities.repository import Repository
from harbor_mcp.entities.result import DeleteResult

__all__ = [
    "Artifact",
    "ArtifactTag",
    "Chart",
    "ChartVersion",
    "DeleteResult",
    "Project",
    "ProjectMetadata",
    "Repository",
]
