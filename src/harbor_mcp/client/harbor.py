"""Harbor REST API client using httpx.

Talks to the Harbor v2.0 API with HTTP basic authentication.

Notes on the API:
- Collections are paginated; every listing here walks all pages
- Projects are addressed by id or by name; names need the
  ``X-Is-Resource-Name`` header
- Repository names containing ``/`` must be URL-encoded twice in paths
- Project creation answers 201 with the new id only in the ``Location`` header
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog

from harbor_mcp.client.base import ClientConfig, RegistryClient, RegistryClientError

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/v2.0"


def _encode_project(project: int | str) -> str:
    return quote(str(project), safe="")


def _encode_repository(repository_name: str) -> str:
    return quote(quote(repository_name, safe=""), safe="")


def _name_header(is_name: bool) -> dict[str, str]:
    return {"X-Is-Resource-Name": "true" if is_name else "false"}


def _project_id_from_location(location: Optional[str]) -> Optional[int]:
    """Extract the trailing numeric id from a Location header."""
    if not location:
        return None
    last_segment = location.rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(last_segment)
    except ValueError:
        return None


class HarborClient(RegistryClient):
    """Registry client for the Harbor v2.0 REST API.

    Example:
        config = ClientConfig(
            url="https://harbor.example.com",
            username="admin",
            password="secret",
        )
        client = HarborClient(config)
        projects = await client.list_projects()
        await client.close()
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the Harbor client.

        Args:
            config: Connection settings
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(config)

        base_url = config.url.rstrip("/")
        if not base_url.endswith(API_PREFIX):
            base_url = f"{base_url}{API_PREFIX}"
        self.base_url = base_url

        if not config.verify_tls:
            logger.warning("tls_verification_disabled", url=self.base_url)

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=httpx.BasicAuth(config.username, config.password),
            headers={"Accept": "application/json"},
            timeout=config.timeout,
            verify=config.verify_tls,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> Optional[httpx.Response]:
        try:
            logger.debug("harbor_request", method=method, path=path)
            response = await self.client.request(method, path, **kwargs)
            if allow_not_found and response.status_code == 404:
                return None
            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            raise RegistryClientError(
                message=f"Harbor API error: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise RegistryClientError(
                message=f"Harbor request failed: {method} {path}: {e}",
                original_error=e,
            ) from e

    async def _get_all(self, path: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Walk every page of a collection endpoint."""
        page_size = self.config.page_size
        items: list[dict[str, Any]] = []
        page = 1

        while True:
            query = {**(params or {}), "page": page, "page_size": page_size}
            response = await self._request("GET", path, params=query)
            batch = response.json() or []
            if not isinstance(batch, list):
                raise RegistryClientError(
                    message=f"Harbor API error: expected a list from {path}, got {type(batch).__name__}",
                    status_code=response.status_code,
                )
            items.extend(batch)
            if len(batch) < page_size:
                break
            page += 1

        logger.debug("harbor_collection_fetched", path=path, count=len(items), pages=page)
        return items

    async def list_projects(self) -> list[dict[str, Any]]:
        return await self._get_all("/projects")

    async def get_project(
        self, project: int | str, is_name: bool = False
    ) -> Optional[dict[str, Any]]:
        response = await self._request(
            "GET",
            f"/projects/{_encode_project(project)}",
            allow_not_found=True,
            headers=_name_header(is_name),
        )
        if response is None:
            return None
        return response.json() or None

    async def create_project(
        self, project_name: str, metadata: Optional[dict[str, Any]] = None
    ) -> Optional[int]:
        payload: dict[str, Any] = {"project_name": project_name}
        if metadata:
            payload["metadata"] = metadata

        response = await self._request("POST", "/projects", json=payload)
        project_id = _project_id_from_location(response.headers.get("Location"))

        logger.info("harbor_project_created", project_name=project_name, project_id=project_id)
        return project_id

    async def delete_project(self, project: int | str, is_name: bool = False) -> None:
        await self._request(
            "DELETE",
            f"/projects/{_encode_project(project)}",
            headers=_name_header(is_name),
        )

    async def list_repositories(self, project_name: str) -> list[dict[str, Any]]:
        return await self._get_all(f"/projects/{_encode_project(project_name)}/repositories")

    async def delete_repository(self, full_name: str) -> None:
        project_name, sep, repository_name = full_name.partition("/")
        if not sep or not repository_name:
            raise RegistryClientError(
                message=f"Repository name must be 'project/repository', got '{full_name}'"
            )
        await self._request(
            "DELETE",
            f"/projects/{_encode_project(project_name)}"
            f"/repositories/{_encode_repository(repository_name)}",
        )

    async def list_artifacts(
        self, project_name: str, repository_name: str
    ) -> list[dict[str, Any]]:
        return await self._get_all(
            f"/projects/{_encode_project(project_name)}"
            f"/repositories/{_encode_repository(repository_name)}/artifacts",
            params={"with_tag": "true"},
        )

    async def delete_artifact(
        self, project_name: str, repository_name: str, reference: str
    ) -> None:
        await self._request(
            "DELETE",
            f"/projects/{_encode_project(project_name)}"
            f"/repositories/{_encode_repository(repository_name)}"
            f"/artifacts/{quote(reference, safe=':')}",
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
