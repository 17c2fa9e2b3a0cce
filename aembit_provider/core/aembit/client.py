"""Low-level HTTP client for the Aembit Cloud API.

Handles tenant addressing, bearer authentication, and HTTP operations.
"""
from __future__ import annotations
import logging
from typing import Optional, Dict, Any

import requests

from .exceptions import AembitAPIError, AembitNotFoundError

REQUEST_TIMEOUT = 5
DEFAULT_STACK_DOMAIN = "useast2.aembit.io"

logger = logging.getLogger(__name__)


class AembitClient:
    """HTTP client for the Aembit Cloud API.

    Features:
    - Tenant-scoped base URL (https://<tenant>.api.<stack domain>)
    - Centralized error handling (404 is reported as AembitNotFoundError)
    - Token can be replaced at runtime (workload identity exchange)

    Usage:
        client = AembitClient("abc123", token="eyJ...")
        response = client.get("/api/v1/trust-providers")
    """

    def __init__(
        self,
        tenant: str,
        token: Optional[str] = None,
        stack_domain: str = DEFAULT_STACK_DOMAIN,
        base_url: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize Aembit client.

        Args:
            tenant: Aembit tenant identifier
            token: Bearer token for the Aembit API
            stack_domain: Aembit stack domain (defaults to useast2.aembit.io)
            base_url: Explicit API base URL (overrides tenant/stack addressing)
            timeout: Per-request timeout in seconds
        """
        self.tenant = tenant
        self.stack_domain = stack_domain
        self.base_url = (base_url or f"https://{tenant}.api.{stack_domain}").rstrip("/")
        self.timeout = timeout
        self._token: Optional[str] = token

    @classmethod
    def from_config(cls, config) -> "AembitClient":
        """Build a client from a ProviderConfig."""
        return cls(
            config.tenant_id,
            token=config.token,
            stack_domain=config.stack_domain,
            base_url=config.api_base_url or None,
            timeout=config.request_timeout,
        )

    def set_token(self, token: str) -> None:
        """Replace the bearer token used for subsequent requests."""
        self._token = token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        if not self._token:
            raise AembitAPIError(401, "Not authenticated - configure an Aembit API token first", self.base_url)
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request.

        Args:
            path: API endpoint path (e.g., "/api/v1/roles")
            params: Query parameters
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            AembitNotFoundError: On HTTP 404
            AembitAPIError: On any other HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.get(url, params=params, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute POST request with a JSON payload."""
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.post(url, json=json, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def put(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute PUT request with a JSON payload."""
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.put(url, json=json, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def patch(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute PATCH request with an optional JSON payload."""
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.patch(url, json=json, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def delete(self, path: str, **kwargs) -> requests.Response:
        """Execute DELETE request."""
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))

        resp = requests.delete(url, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Args:
            resp: Response object to check

        Raises:
            AembitNotFoundError: If the entity does not exist
            AembitAPIError: If response status indicates any other error
        """
        if resp.status_code == 404:
            raise AembitNotFoundError(resp.status_code, resp.text, resp.url)
        if resp.status_code >= 400:
            logger.debug("Aembit API error %s on %s", resp.status_code, resp.url)
            raise AembitAPIError(resp.status_code, resp.text, resp.url)
