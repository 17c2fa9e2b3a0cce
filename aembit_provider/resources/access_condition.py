"""Access condition resource: posture checks evaluated through an integration.

The condition set depends on the integration behind it (Wiz or CrowdStrike).
Both share one flat ``conditions`` object on the wire; the integration type
reported by Aembit tells them apart.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from aembit_provider.core.entity import EntityRecord, EntityTransformer
from aembit_provider.core.exceptions import ConversionError
from aembit_provider.core.variants import Variant, VariantRegistry

logger = logging.getLogger(__name__)


@dataclass
class WizConditions:
    max_last_seen: int = 0
    container_cluster_connected: bool = False


@dataclass
class CrowdStrikeConditions:
    max_last_seen: int = 0
    match_hostname: bool = False
    match_serial_number: bool = False
    prevent_rfm: bool = False


AccessConditionConfig = Union[WizConditions, CrowdStrikeConditions]


@dataclass
class AccessCondition(EntityRecord):
    integration_id: Optional[str] = None
    config: Optional[AccessConditionConfig] = None


ACCESS_CONDITION_VARIANTS = VariantRegistry("access_condition", [
    Variant("wiz_conditions", "WizIntegrationApi", WizConditions),
    Variant("crowdstrike_conditions", "CrowdStrike", CrowdStrikeConditions),
])


class AccessConditionTransformer(EntityTransformer):
    """Bidirectional transformer for access conditions."""

    kind = "access_condition"
    model = AccessCondition
    registry = ACCESS_CONDITION_VARIANTS

    def body_to_dto(self, model: AccessCondition, dto: Dict[str, Any]) -> None:
        config = model.config
        dto["integrationID"] = model.integration_id or ""
        dto["integration"] = {
            "externalId": model.integration_id or "",
            "type": self.registry.discriminator_for(config),
        }
        conditions: Dict[str, Any] = {"maxLastSeen": config.max_last_seen}
        if isinstance(config, WizConditions):
            conditions["containerClusterConnected"] = config.container_cluster_connected
        else:
            conditions["matchHostname"] = config.match_hostname
            conditions["matchSerialNumber"] = config.match_serial_number
            conditions["preventRestrictedFunctionalityMode"] = config.prevent_rfm
        dto["conditions"] = conditions

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[AccessCondition],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        integration = dto.get("integration") or {}
        integration_id = dto.get("integrationID") or integration.get("externalId") or None

        discriminator = integration.get("type")
        variant = self.registry.variant_for(discriminator)
        if variant is None:
            if discriminator:
                logger.warning("[%s] Unknown integration type '%s'", self.kind, discriminator)
            return {"integration_id": integration_id, "config": None}

        conditions = dto.get("conditions")
        if conditions is None:
            conditions = {}
        if not isinstance(conditions, Mapping):
            if tolerate:
                return {"integration_id": integration_id, "config": None}
            raise ConversionError(self.kind, discriminator, "conditions must be an object")

        max_last_seen = int(conditions.get("maxLastSeen") or 0)
        if variant.config_type is WizConditions:
            config: AccessConditionConfig = WizConditions(
                max_last_seen=max_last_seen,
                container_cluster_connected=bool(conditions.get("containerClusterConnected")),
            )
        else:
            config = CrowdStrikeConditions(
                max_last_seen=max_last_seen,
                match_hostname=bool(conditions.get("matchHostname")),
                match_serial_number=bool(conditions.get("matchSerialNumber")),
                prevent_rfm=bool(conditions.get("preventRestrictedFunctionalityMode")),
            )
        return {"integration_id": integration_id, "config": config}
