"""Server workload resource: the service a client workload is granted access to.

The service endpoint is nested on the wire under ``serviceEndpoint``. Its
``externalId`` and numeric ``id`` are assigned by Aembit.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from aembit_provider.core.entity import EntityRecord, EntityTransformer
from aembit_provider.core.exceptions import ValidationError


@dataclass
class ServiceEndpoint:
    host: str = ""
    port: int = 0
    app_protocol: str = ""
    transport_protocol: str = "TCP"
    requested_port: int = 0
    requested_tls: bool = False
    tls: bool = False
    tls_verification: str = "full"
    # Assigned by Aembit
    external_id: Optional[str] = None
    id: Optional[int] = None


_ENDPOINT_FIELDS = (
    ("host", "host"),
    ("port", "port"),
    ("app_protocol", "appProtocol"),
    ("transport_protocol", "transportProtocol"),
    ("requested_port", "requestedPort"),
    ("requested_tls", "requestedTls"),
    ("tls", "tls"),
    ("tls_verification", "tlsVerification"),
)


def service_endpoint_to_dto(endpoint: ServiceEndpoint) -> Dict[str, Any]:
    dto = {wire: getattr(endpoint, name) for name, wire in _ENDPOINT_FIELDS}
    if endpoint.external_id:
        dto["externalId"] = endpoint.external_id
    if endpoint.id is not None:
        dto["id"] = endpoint.id
    return dto


def service_endpoint_from_dto(dto: Mapping[str, Any]) -> ServiceEndpoint:
    values = {name: dto[wire] for name, wire in _ENDPOINT_FIELDS if wire in dto}
    return ServiceEndpoint(external_id=dto.get("externalId") or None, id=dto.get("id"), **values)


@dataclass
class ServerWorkload(EntityRecord):
    service_endpoint: Optional[ServiceEndpoint] = None
    type: Optional[str] = None


class ServerWorkloadTransformer(EntityTransformer):
    """Bidirectional transformer for server workloads."""

    kind = "server_workload"
    model = ServerWorkload

    def validate(self, model: ServerWorkload) -> None:
        super().validate(model)
        if model.service_endpoint is None:
            raise ValidationError(self.kind, "service_endpoint is required")

    def body_to_dto(self, model: ServerWorkload, dto: Dict[str, Any]) -> None:
        dto["serviceEndpoint"] = service_endpoint_to_dto(model.service_endpoint)
        if model.type:
            dto["type"] = model.type

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[ServerWorkload],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        endpoint = dto.get("serviceEndpoint")
        return {
            "service_endpoint": service_endpoint_from_dto(endpoint) if endpoint else None,
            "type": dto.get("type") or None,
        }

    def coerce_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        block = data.get("service_endpoint")
        if isinstance(block, Mapping):
            data["service_endpoint"] = ServiceEndpoint(**block)
        return data
