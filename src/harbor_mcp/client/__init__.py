"""Registry client abstractions and the Harbor implementation."""

from harbor_mcp.client.base import ClientConfig, RegistryClient, RegistryClientError
from harbor_mcp.client.harbor import HarborClient


def create_registry_client(config) -> RegistryClient:
    """Build a registry client from application configuration.

    Args:
        config: AppConfig with url, credentials and connection options

    Returns:
        Initialized Harbor client
    """
    client_config = ClientConfig(
        url=config.url,
        username=config.username,
        password=config.password,
        verify_tls=not config.insecure,
        timeout=config.timeout,
        page_size=config.page_size,
    )
    return HarborClient(client_config)


__all__ = [
    "ClientConfig",
    "HarborClient",
    "RegistryClient",
    "RegistryClientError",
    "create_registry_client",
]
