"""Access policy resource: binds a client workload to a server workload.

Policies reference other entities by external identifier. Aembit accepts
bare identifiers on write but may answer with nested entity objects, so
references are read from either shape.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from aembit_provider.core.entity import EntityRecord, EntityTransformer
from aembit_provider.core.exceptions import ValidationError


@dataclass
class AccessPolicy(EntityRecord):
    client_workload: str = ""
    server_workload: str = ""
    credential_provider: Optional[str] = None
    trust_providers: List[str] = field(default_factory=list)
    access_conditions: List[str] = field(default_factory=list)


def _reference(value: Any) -> Optional[str]:
    """Return the external identifier of a bare or nested entity reference."""
    if isinstance(value, Mapping):
        value = value.get("externalId")
    return value or None


class AccessPolicyTransformer(EntityTransformer):
    """Bidirectional transformer for access policies."""

    kind = "access_policy"
    model = AccessPolicy
    # Policies are identified by their workloads
    name_required = False

    def validate(self, model: AccessPolicy) -> None:
        super().validate(model)
        missing = [name for name in ("client_workload", "server_workload") if not getattr(model, name)]
        if missing:
            raise ValidationError(self.kind, f"{' and '.join(missing)} required")

    def body_to_dto(self, model: AccessPolicy, dto: Dict[str, Any]) -> None:
        dto["clientWorkload"] = model.client_workload
        dto["serverWorkload"] = model.server_workload
        dto["credentialProvider"] = model.credential_provider or ""
        dto["trustProviders"] = list(model.trust_providers)
        dto["accessConditions"] = list(model.access_conditions)

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[AccessPolicy],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        return {
            "client_workload": _reference(dto.get("clientWorkload")) or "",
            "server_workload": _reference(dto.get("serverWorkload")) or "",
            "credential_provider": _reference(dto.get("credentialProvider")),
            "trust_providers": [_reference(ref) for ref in dto.get("trustProviders") or [] if _reference(ref)],
            "access_conditions": [_reference(ref) for ref in dto.get("accessConditions") or [] if _reference(ref)],
        }

    def coerce_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        for name in ("trust_providers", "access_conditions"):
            data[name] = list(data.get(name) or [])
        return data
