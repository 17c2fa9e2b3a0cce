"""Agent controller resource."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from aembit_provider.core.entity import EntityRecord, EntityTransformer


@dataclass
class AgentController(EntityRecord):
    # Trust provider used to attest the controller; device codes are used otherwise
    trust_provider_id: Optional[str] = None


class AgentControllerTransformer(EntityTransformer):
    kind = "agent_controller"
    model = AgentController

    def body_to_dto(self, model: AgentController, dto: Dict[str, Any]) -> None:
        dto["trustProviderId"] = model.trust_provider_id or ""

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[AgentController],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        return {"trust_provider_id": dto.get("trustProviderId") or None}
