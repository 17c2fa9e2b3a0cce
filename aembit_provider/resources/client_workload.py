"""Client workload resource: a workload that requests access, and how to recognise it."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from aembit_provider.core.entity import EntityRecord, EntityTransformer
from aembit_provider.core.exceptions import ValidationError

IDENTITY_TYPES = (
    "aembitClientId",
    "awsEcsTaskFamily",
    "gcpIdentityToken",
    "githubIdTokenSubject",
    "githubIdTokenRepository",
    "hostname",
    "k8sNamespace",
    "k8sPodNamePrefix",
    "k8sPodName",
    "k8sServiceAccountName",
    "k8sServiceAccountUID",
    "processName",
    "processUserName",
    "sourceIPAddress",
    "terraformIdTokenOrganizationId",
    "terraformIdTokenProjectId",
    "terraformIdTokenWorkspaceId",
)


@dataclass
class ClientWorkloadIdentity:
    """One identification rule, e.g. ``k8sNamespace`` = ``payments``."""
    type: str = ""
    value: str = ""


@dataclass
class ClientWorkload(EntityRecord):
    identities: List[ClientWorkloadIdentity] = field(default_factory=list)
    type: Optional[str] = None


class ClientWorkloadTransformer(EntityTransformer):
    """Bidirectional transformer for client workloads."""

    kind = "client_workload"
    model = ClientWorkload

    def validate(self, model: ClientWorkload) -> None:
        super().validate(model)
        if not model.identities:
            raise ValidationError(self.kind, "at least one identity is required")
        for identity in model.identities:
            if identity.type not in IDENTITY_TYPES:
                raise ValidationError(self.kind, f"unsupported identity type {identity.type!r}")

    def body_to_dto(self, model: ClientWorkload, dto: Dict[str, Any]) -> None:
        dto["identities"] = [{"type": i.type, "value": i.value} for i in model.identities]
        if model.type:
            dto["type"] = model.type

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[ClientWorkload],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        identities = [
            ClientWorkloadIdentity(type=entry.get("type", ""), value=entry.get("value", ""))
            for entry in dto.get("identities") or []
        ]
        return {"identities": identities, "type": dto.get("type") or None}

    def coerce_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        data["identities"] = [
            entry if isinstance(entry, ClientWorkloadIdentity) else ClientWorkloadIdentity(**entry)
            for entry in data.get("identities") or []
        ]
        return data
