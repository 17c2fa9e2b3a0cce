"""Role resource: named permission sets for Aembit tenant users.

Permissions travel as a list of ``{"name", "read", "write"}`` entries keyed
by the display name of the entity kind they guard. Event and log kinds only
support read access.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from aembit_provider.core.entity import EntityRecord, EntityTransformer


@dataclass
class RolePermission:
    read: bool = False
    write: bool = False


@dataclass
class ReadOnlyPermission:
    read: bool = False


@dataclass
class Role(EntityRecord):
    access_policies: Optional[RolePermission] = None
    client_workloads: Optional[RolePermission] = None
    trust_providers: Optional[RolePermission] = None
    access_conditions: Optional[RolePermission] = None
    integrations: Optional[RolePermission] = None
    credential_providers: Optional[RolePermission] = None
    server_workloads: Optional[RolePermission] = None
    agent_controllers: Optional[RolePermission] = None
    access_authorization_events: Optional[ReadOnlyPermission] = None
    audit_logs: Optional[ReadOnlyPermission] = None
    workload_events: Optional[ReadOnlyPermission] = None
    users: Optional[RolePermission] = None
    roles: Optional[RolePermission] = None
    log_streams: Optional[RolePermission] = None
    identity_providers: Optional[RolePermission] = None


# (model field, wire name, read only) in wire order
ROLE_PERMISSIONS: Tuple[Tuple[str, str, bool], ...] = (
    ("access_policies", "Access Policies", False),
    ("client_workloads", "Client Workloads", False),
    ("trust_providers", "Trust Providers", False),
    ("access_conditions", "Access Conditions", False),
    ("integrations", "Integrations", False),
    ("credential_providers", "Credential Providers", False),
    ("server_workloads", "Server Workloads", False),
    ("agent_controllers", "Agent Controllers", False),
    ("access_authorization_events", "Access Authorization Events", True),
    ("audit_logs", "Audit Logs", True),
    ("workload_events", "Workload Events", True),
    ("users", "Users", False),
    ("roles", "Roles", False),
    ("log_streams", "Log Streams", False),
    ("identity_providers", "Identity Providers", False),
)

_BY_WIRE_NAME = {name: (field_name, read_only) for field_name, name, read_only in ROLE_PERMISSIONS}


class RoleTransformer(EntityTransformer):
    """Bidirectional transformer for roles."""

    kind = "role"
    model = Role

    def body_to_dto(self, model: Role, dto: Dict[str, Any]) -> None:
        permissions: List[Dict[str, Any]] = []
        for field_name, name, read_only in ROLE_PERMISSIONS:
            permission = getattr(model, field_name)
            if permission is None:
                continue
            entry = {"name": name, "read": bool(permission.read)}
            entry["write"] = False if read_only else bool(permission.write)
            permissions.append(entry)
        dto["permissions"] = permissions

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[Role],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for entry in dto.get("permissions") or []:
            match = _BY_WIRE_NAME.get(entry.get("name"))
            if match is None:
                # Permission kinds this provider does not model
                continue
            field_name, read_only = match
            if read_only:
                values[field_name] = ReadOnlyPermission(read=bool(entry.get("read")))
            else:
                values[field_name] = RolePermission(
                    read=bool(entry.get("read")),
                    write=bool(entry.get("write")),
                )
        return values

    def coerce_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        for field_name, _, read_only in ROLE_PERMISSIONS:
            block = data.get(field_name)
            if isinstance(block, Mapping):
                data[field_name] = ReadOnlyPermission(**block) if read_only else RolePermission(**block)
        return data
