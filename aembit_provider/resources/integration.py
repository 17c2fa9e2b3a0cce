"""Integration resource: connection to a third-party posture service.

Access conditions evaluate posture through an integration. The integration
type is a plain field; the OAuth client credentials Aembit uses to call the
service travel in ``integrationJSON``. Aembit never returns the client
secret, so it is carried over from the prior model when reading.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from aembit_provider.core.entity import EntityRecord, EntityTransformer
from aembit_provider.core.exceptions import ValidationError

INTEGRATION_TYPES = ("WizIntegrationApi", "CrowdStrike")


@dataclass
class IntegrationOAuthClientCredentials:
    token_url: str = ""
    client_id: str = ""
    client_secret: Optional[str] = None
    audience: str = ""


@dataclass
class Integration(EntityRecord):
    type: str = ""
    endpoint: str = ""
    sync_frequency: int = 0
    oauth_client_credentials: Optional[IntegrationOAuthClientCredentials] = None


class IntegrationTransformer(EntityTransformer):
    """Bidirectional transformer for integrations."""

    kind = "integration"
    model = Integration

    def validate(self, model: Integration) -> None:
        super().validate(model)
        if model.type not in INTEGRATION_TYPES:
            raise ValidationError(
                self.kind, f"type must be one of {', '.join(INTEGRATION_TYPES)}, got '{model.type}'")
        if model.oauth_client_credentials is None:
            raise ValidationError(self.kind, "oauth_client_credentials is required")

    def body_to_dto(self, model: Integration, dto: Dict[str, Any]) -> None:
        dto["type"] = model.type
        dto["endpoint"] = model.endpoint
        dto["syncFrequencySeconds"] = model.sync_frequency
        credentials = model.oauth_client_credentials
        dto["integrationJSON"] = {
            "tokenUrl": credentials.token_url,
            "clientId": credentials.client_id,
            "clientSecret": credentials.client_secret or "",
            "audience": credentials.audience,
        }

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[Integration],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        raw = dto.get("integrationJSON") or {}
        credentials = IntegrationOAuthClientCredentials(
            token_url=raw.get("tokenUrl", ""),
            client_id=raw.get("clientId", ""),
            client_secret=raw.get("clientSecret") or None,
            audience=raw.get("audience", ""),
        )
        if not credentials.client_secret and prior is not None and prior.oauth_client_credentials is not None:
            credentials = replace(credentials, client_secret=prior.oauth_client_credentials.client_secret)
        return {
            "type": dto.get("type", ""),
            "endpoint": dto.get("endpoint", ""),
            "sync_frequency": int(dto.get("syncFrequencySeconds") or 0),
            "oauth_client_credentials": credentials,
        }

    def coerce_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        block = data.get("oauth_client_credentials")
        if isinstance(block, Mapping):
            data["oauth_client_credentials"] = IntegrationOAuthClientCredentials(**block)
        return data
