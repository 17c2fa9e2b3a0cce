"""Aembit entity CRUD operations.

Every Aembit entity kind is exposed under the same REST shape, so a single
service class parameterised by the collection path covers all of them.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import requests

from .client import AembitClient

API_PREFIX = "/api/v1"

logger = logging.getLogger(__name__)


def _json_body(resp: requests.Response) -> Optional[Any]:
    """Decode a JSON response body, tolerating empty 2xx responses."""
    if not resp.content:
        return None
    return resp.json()


class ResourceService:
    """Service for one collection of Aembit entities (e.g. trust-providers)."""

    def __init__(self, client: AembitClient, path: str):
        """Initialize resource service.

        Args:
            client: Authenticated Aembit client
            path: Collection path below /api/v1 (e.g. "trust-providers")
        """
        self.client = client
        self.path = path.strip("/")

    @property
    def collection_url(self) -> str:
        return f"{API_PREFIX}/{self.path}"

    def _entity_url(self, external_id: str) -> str:
        return f"{self.collection_url}/{external_id}"

    def create(self, dto: Dict[str, Any]) -> Dict[str, Any]:
        """Create an entity and return the server representation."""
        resp = self.client.post(self.collection_url, json=dto)
        created = _json_body(resp) or {}
        logger.info("[%s] Created entity %s", self.path, created.get("externalId"))
        return created

    def get(self, external_id: str) -> Dict[str, Any]:
        """Fetch one entity by external ID.

        Raises:
            AembitNotFoundError: If the entity no longer exists
        """
        resp = self.client.get(self._entity_url(external_id))
        return _json_body(resp) or {}

    def update(self, dto: Dict[str, Any]) -> Dict[str, Any]:
        """Replace an entity; the DTO must carry its externalId."""
        resp = self.client.put(self.collection_url, json=dto)
        logger.info("[%s] Updated entity %s", self.path, dto.get("externalId"))
        return _json_body(resp) or {}

    def delete(self, external_id: str) -> Optional[Dict[str, Any]]:
        """Delete an entity by external ID."""
        resp = self.client.delete(self._entity_url(external_id))
        logger.info("[%s] Deleted entity %s", self.path, external_id)
        return _json_body(resp)

    def disable(self, external_id: str) -> Optional[Dict[str, Any]]:
        """Mark an entity inactive."""
        resp = self.client.patch(f"{self._entity_url(external_id)}/disable")
        logger.info("[%s] Disabled entity %s", self.path, external_id)
        return _json_body(resp)

    def list(self) -> List[Dict[str, Any]]:
        """Return every entity in the collection."""
        resp = self.client.get(self.collection_url)
        body = _json_body(resp)
        if isinstance(body, dict):
            # Paged responses wrap the entities
            body = body.get("items") or body.get(self.path) or []
        return body or []


class AgentControllerService(ResourceService):
    """Agent controller collection with device-code registration."""

    def __init__(self, client: AembitClient):
        super().__init__(client, "agent-controllers")

    def get_device_code(self, external_id: str) -> str:
        """Generate a one-time device code used to register an agent controller."""
        resp = self.client.post(f"{self._entity_url(external_id)}/device-code")
        body = _json_body(resp) or {}
        return body.get("device_code") or body.get("deviceCode") or ""
