"""Aembit Cloud API client library.

Architecture:
- client.py: HTTP client with tenant addressing and bearer authentication
- resources.py: Per-collection CRUD, disable and list operations
- identity.py: Workload identity token exchange
- exceptions.py: Typed exceptions for error handling

Usage:
    from aembit_provider.core.aembit import AembitClient, ResourceService

    client = AembitClient("abc123", token="eyJ...")
    trust_providers = ResourceService(client, "trust-providers")
    dto = trust_providers.get("7c1f...")
"""
from .client import (
    AembitClient,
    REQUEST_TIMEOUT,
    DEFAULT_STACK_DOMAIN,
)
from .exceptions import (
    AembitError,
    AembitAPIError,
    AembitNotFoundError,
    AembitAuthenticationError,
)
from .resources import (
    ResourceService,
    AgentControllerService,
    API_PREFIX,
)
from .identity import (
    WorkloadIdentityAuth,
    parse_client_id,
    is_token_valid,
)

__all__ = [
    # Client
    "AembitClient",
    "REQUEST_TIMEOUT",
    "DEFAULT_STACK_DOMAIN",

    # Exceptions
    "AembitError",
    "AembitAPIError",
    "AembitNotFoundError",
    "AembitAuthenticationError",

    # Services
    "ResourceService",
    "AgentControllerService",
    "API_PREFIX",

    # Identity
    "WorkloadIdentityAuth",
    "parse_client_id",
    "is_token_valid",
]
