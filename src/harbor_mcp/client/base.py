"""Abstract interface for registry clients.

Why this exists:
- Keeps the service layer independent of the HTTP library
- Enables testing the service with a mock client
- Provides a stable interface if the registry API version changes

How to extend:
1. Subclass RegistryClient
2. Implement all abstract methods, returning raw JSON-like dicts
3. Raise RegistryClientError for transport or HTTP failures
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    """Connection settings for a registry client."""

    url: str
    username: str
    password: str
    verify_tls: bool = True
    timeout: float = Field(default=30.0, gt=0)
    page_size: int = Field(default=100, gt=0)


class RegistryClient(ABC):
    """Abstract interface for the registry REST API.

    Methods return raw payloads; mapping into entities belongs to the
    service layer.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    @abstractmethod
    async def list_projects(self) -> list[dict[str, Any]]:
        """Return every project visible to the configured user."""
        pass

    @abstractmethod
    async def get_project(
        self, project: int | str, is_name: bool = False
    ) -> Optional[dict[str, Any]]:
        """Fetch one project by id or name.

        Returns:
            The project, or None if it does not exist
        """
        pass

    @abstractmethod
    async def create_project(
        self, project_name: str, metadata: Optional[dict[str, Any]] = None
    ) -> Optional[int]:
        """Create a project.

        Returns:
            Id of the created project, or None if the registry did not report one
        """
        pass

    @abstractmethod
    async def delete_project(self, project: int | str, is_name: bool = False) -> None:
        pass

    @abstractmethod
    async def list_repositories(self, project_name: str) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def delete_repository(self, full_name: str) -> None:
        """Delete a repository given as ``project/repository``."""
        pass

    @abstractmethod
    async def list_artifacts(
        self, project_name: str, repository_name: str
    ) -> list[dict[str, Any]]:
        """Return every artifact of a repository, including tag details."""
        pass

    @abstractmethod
    async def delete_artifact(
        self, project_name: str, repository_name: str, reference: str
    ) -> None:
        """Delete an artifact by tag or digest."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass


class RegistryClientError(Exception):
    """Raised when a registry request fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        super().__init__(self.message)
