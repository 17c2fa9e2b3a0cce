"""Provider wiring: one ResourceController per Aembit resource kind.

Architecture:
    load_settings() ──> ProviderConfig ──> Provider
                                            ├──> AembitClient (token or workload identity)
                                            └──> ResourceController per kind
                                                 (ResourceService + transformer + DeletePolicy)

Usage:
    provider = Provider(load_settings())
    roles = provider.controller("role")
    role = roles.create(Role(name="Auditors", audit_logs=ReadOnlyPermission(read=True)))
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from aembit_provider.config.settings import ProviderConfig
from aembit_provider.core.aembit import (
    AembitAuthenticationError,
    AembitClient,
    AgentControllerService,
    ResourceService,
    WorkloadIdentityAuth,
)
from aembit_provider.core.controller import DeletePolicy, ResourceController
from aembit_provider.core.entity import EntityTransformer
from aembit_provider.core.exceptions import ConfigurationError
from aembit_provider.resources import (
    AccessConditionTransformer,
    AccessPolicyTransformer,
    AgentControllerTransformer,
    ClientWorkloadTransformer,
    CredentialProviderTransformer,
    IntegrationTransformer,
    RoleTransformer,
    ServerWorkloadTransformer,
    TrustProviderTransformer,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceKind:
    """Static description of one resource kind.

    Attributes:
        name: Resource kind name (e.g. "trust_provider")
        path: Collection path below /api/v1
        transformer: Factory building the kind's transformer from the config
        delete_policy: Behaviour of delete on an active entity
    """
    name: str
    path: str
    transformer: Callable[[ProviderConfig], EntityTransformer]
    delete_policy: DeletePolicy


RESOURCE_KINDS: Tuple[ResourceKind, ...] = (
    ResourceKind("trust_provider", "trust-providers",
                 lambda config: TrustProviderTransformer(), DeletePolicy.DISABLE_FIRST),
    ResourceKind("credential_provider", "credential-providers",
                 lambda config: CredentialProviderTransformer(config.tenant_id, config.stack_domain),
                 DeletePolicy.DISABLE_FIRST),
    ResourceKind("access_condition", "access-conditions",
                 lambda config: AccessConditionTransformer(), DeletePolicy.DISABLE_FIRST),
    ResourceKind("role", "roles",
                 lambda config: RoleTransformer(), DeletePolicy.DISABLE_FIRST),
    ResourceKind("integration", "integrations",
                 lambda config: IntegrationTransformer(), DeletePolicy.REJECT_WHILE_ACTIVE),
    ResourceKind("agent_controller", "agent-controllers",
                 lambda config: AgentControllerTransformer(), DeletePolicy.DISABLE_FIRST),
    ResourceKind("client_workload", "client-workloads",
                 lambda config: ClientWorkloadTransformer(), DeletePolicy.DISABLE_FIRST),
    ResourceKind("server_workload", "server-workloads",
                 lambda config: ServerWorkloadTransformer(), DeletePolicy.REJECT_WHILE_ACTIVE),
    ResourceKind("access_policy", "access-policies",
                 lambda config: AccessPolicyTransformer(), DeletePolicy.REJECT_WHILE_ACTIVE),
)

KINDS_BY_NAME: Dict[str, ResourceKind] = {kind.name: kind for kind in RESOURCE_KINDS}


class Provider:
    """Entry point wiring the Aembit client to every resource controller."""

    def __init__(
        self,
        config: ProviderConfig,
        client: Optional[AembitClient] = None,
        identity: Optional[WorkloadIdentityAuth] = None,
    ):
        """Initialize provider.

        Args:
            config: Loaded provider settings
            client: Pre-built client (tests); built from ``config`` otherwise
            identity: Workload identity exchanger; built from ``config.client_id`` when set
        """
        self.config = config
        self.client = client or AembitClient.from_config(config)
        if identity is None and config.uses_workload_identity:
            identity = WorkloadIdentityAuth(config.client_id, config.stack_domain, config.request_timeout)
        self.identity = identity
        self._controllers: Dict[str, ResourceController] = {}

        if self.identity is not None:
            self.authenticate()

    def authenticate(self) -> None:
        """Swap the configured token for a workload identity token when possible.

        A failed exchange is logged and the configured token is kept.

        Raises:
            ConfigurationError: If the exchange fails and no token is configured
        """
        try:
            self.client.set_token(self.identity.get_token())
            logger.info("[provider] Using workload identity token for tenant %s", self.config.tenant_id)
        except AembitAuthenticationError as exc:
            logger.warning("[provider] Workload identity exchange failed: %s", exc)
            if not self.client.is_authenticated:
                raise ConfigurationError(
                    f"Unable to obtain an Aembit token via AEMBIT_CLIENT_ID and no AEMBIT_TOKEN is set: {exc}"
                ) from exc

    def controller(self, kind: str) -> ResourceController:
        """Return the (cached) controller for a resource kind.

        Raises:
            KeyError: If the kind is unknown
        """
        if kind not in self._controllers:
            resource_kind = KINDS_BY_NAME[kind]
            if kind == "agent_controller":
                service: ResourceService = AgentControllerService(self.client)
            else:
                service = ResourceService(self.client, resource_kind.path)
            self._controllers[kind] = ResourceController(
                service,
                resource_kind.transformer(self.config),
                delete_policy=resource_kind.delete_policy,
                strict_conversion=self.config.strict_conversion,
            )
        return self._controllers[kind]

    @property
    def controllers(self) -> Dict[str, ResourceController]:
        return {kind.name: self.controller(kind.name) for kind in RESOURCE_KINDS}

    def get_device_code(self, agent_controller_id: str) -> str:
        """Generate a registration device code for an agent controller."""
        service = self.controller("agent_controller").service
        return service.get_device_code(agent_controller_id)
