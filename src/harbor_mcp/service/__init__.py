"""Service layer - Registry operations behind the tools.

This module contains:
- HarborService: One method per supported registry action
- Error taxonomy: HarborServiceError, InvalidParameterError, ResourceNotFoundError
"""

from harbor_mcp.service.errors import (
    HarborServiceError,
    InvalidParameterError,
    ResourceNotFoundError,
)
from harbor_mcp.service.harbor import HarborService, resolve_project_identifier

__all__ = [
    "HarborService",
    "HarborServiceError",
    "InvalidParameterError",
    "ResourceNotFoundError",
    "resolve_project_identifier",
]
