"""Trust provider resource: workload attestation configuration.

Each variant is sent to Aembit as a ``provider`` discriminator plus a list of
``matchRules`` (attribute/value pairs). Only populated fields become rules;
empty fields are left out of the list entirely.

Example:
    >>> dto = TrustProviderTransformer().model_to_dto(TrustProvider(
    ...     name="azure", config=AzureMetadata(sku="Standard_B1s", subscription_id="sub-123")))
    >>> dto["matchRules"]
    [{'attribute': 'AzureSku', 'value': 'Standard_B1s'}, {'attribute': 'AzureSubscriptionId', 'value': 'sub-123'}]
"""
from __future__ import annotations
import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from aembit_provider.core.entity import EntityRecord, EntityTransformer, non_empty
from aembit_provider.core.exceptions import ConversionError, ValidationError
from aembit_provider.core.variants import Variant, VariantRegistry

logger = logging.getLogger(__name__)


@dataclass
class AzureMetadata:
    sku: Optional[str] = None
    vm_id: Optional[str] = None
    subscription_id: Optional[str] = None


@dataclass
class AwsEcsRole:
    account_id: Optional[str] = None
    assumed_role: Optional[str] = None
    role_arn: Optional[str] = None
    username: Optional[str] = None


@dataclass
class AwsMetadata:
    certificate: Optional[str] = None
    account_id: Optional[str] = None
    architecture: Optional[str] = None
    availability_zone: Optional[str] = None
    billing_products: Optional[str] = None
    image_id: Optional[str] = None
    instance_id: Optional[str] = None
    instance_type: Optional[str] = None
    kernel_id: Optional[str] = None
    marketplace_product_codes: Optional[str] = None
    pending_time: Optional[str] = None
    private_ip: Optional[str] = None
    ramdisk_id: Optional[str] = None
    region: Optional[str] = None
    version: Optional[str] = None


@dataclass
class GcpIdentity:
    email: Optional[str] = None


@dataclass
class GitHubAction:
    actor: Optional[str] = None
    repository: Optional[str] = None
    workflow: Optional[str] = None


@dataclass
class Kerberos:
    agent_controller_ids: List[str] = field(default_factory=list)
    principal: Optional[str] = None
    realm: Optional[str] = None
    source_ip: Optional[str] = None

    @classmethod
    def from_block(cls, block: Mapping[str, Any]) -> "Kerberos":
        data = dict(block)
        data["agent_controller_ids"] = list(data.get("agent_controller_ids") or [])
        return cls(**data)


@dataclass
class KubernetesServiceAccount:
    issuer: Optional[str] = None
    namespace: Optional[str] = None
    pod_name: Optional[str] = None
    service_account_name: Optional[str] = None
    subject: Optional[str] = None
    oidc_endpoint: Optional[str] = None
    public_key: Optional[str] = None


@dataclass
class TerraformWorkspace:
    organization_id: Optional[str] = None
    project_id: Optional[str] = None
    workspace_id: Optional[str] = None


TrustProviderConfig = Union[
    AzureMetadata, AwsEcsRole, AwsMetadata, GcpIdentity,
    GitHubAction, Kerberos, KubernetesServiceAccount, TerraformWorkspace,
]


@dataclass
class TrustProvider(EntityRecord):
    config: Optional[TrustProviderConfig] = None


TRUST_PROVIDER_VARIANTS = VariantRegistry("trust_provider", [
    Variant("azure_metadata", "AzureMetadataService", AzureMetadata),
    Variant("aws_ecs_role", "AWSECSRole", AwsEcsRole),
    Variant("aws_metadata", "AWSMetadataService", AwsMetadata),
    Variant("gcp_identity", "GcpIdentityToken", GcpIdentity),
    Variant("github_action", "GitHubIdentityToken", GitHubAction),
    Variant("kerberos", "Kerberos", Kerberos),
    Variant("kubernetes_service_account", "KubernetesServiceAccount", KubernetesServiceAccount),
    Variant("terraform_workspace", "TerraformIdentityToken", TerraformWorkspace),
])

# (model field, match rule attribute) in wire order
MATCH_RULES: Dict[type, Tuple[Tuple[str, str], ...]] = {
    AzureMetadata: (
        ("sku", "AzureSku"),
        ("vm_id", "AzureVmId"),
        ("subscription_id", "AzureSubscriptionId"),
    ),
    AwsEcsRole: (
        ("account_id", "AwsAccountId"),
        ("assumed_role", "AwsAssumedRole"),
        ("role_arn", "AwsRoleARN"),
        ("username", "AwsUsername"),
    ),
    AwsMetadata: (
        ("account_id", "AwsAccountId"),
        ("architecture", "AwsArchitecture"),
        ("availability_zone", "AwsAvailabilityZone"),
        ("billing_products", "AwsBillingProducts"),
        ("image_id", "AwsImageId"),
        ("instance_id", "AwsInstanceId"),
        ("instance_type", "AwsInstanceType"),
        ("kernel_id", "AwsKernelId"),
        ("marketplace_product_codes", "AwsMarketplaceProductCodes"),
        ("pending_time", "AwsPendingTime"),
        ("private_ip", "AwsPrivateIp"),
        ("ramdisk_id", "AwsRamdiskId"),
        ("region", "AwsRegion"),
        ("version", "AwsVersion"),
    ),
    GcpIdentity: (
        ("email", "Email"),
    ),
    GitHubAction: (
        ("actor", "GithubActor"),
        ("repository", "GithubRepository"),
        ("workflow", "GithubWorkflow"),
    ),
    Kerberos: (
        ("principal", "Principal"),
        ("realm", "Realm"),
        ("source_ip", "SourceIp"),
    ),
    KubernetesServiceAccount: (
        ("issuer", "KubernetesIss"),
        ("namespace", "KubernetesIoNamespace"),
        ("pod_name", "KubernetesIoPodName"),
        ("service_account_name", "KubernetesIoServiceAccountName"),
        ("subject", "KubernetesSub"),
    ),
    TerraformWorkspace: (
        ("organization_id", "TerraformOrganizationId"),
        ("project_id", "TerraformProjectId"),
        ("workspace_id", "TerraformWorkspaceId"),
    ),
}


def match_rules_to_dto(config: Any) -> List[Dict[str, str]]:
    """Emit one rule per populated field; empty fields produce no rule."""
    rules = []
    for field_name, attribute in MATCH_RULES[type(config)]:
        value = getattr(config, field_name)
        if value:
            rules.append({"attribute": attribute, "value": value})
    return rules


def match_rules_from_dto(config_type: type, rules: Optional[List[Mapping[str, Any]]]) -> Dict[str, str]:
    """Map wire rules back to field values; unknown attributes are ignored."""
    by_attribute = {attribute: field_name for field_name, attribute in MATCH_RULES[config_type]}
    values = {}
    for rule in rules or []:
        field_name = by_attribute.get(rule.get("attribute"))
        if field_name:
            values[field_name] = rule.get("value")
    return values


def _encode_pem(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def _decode_pem(value: str) -> str:
    return base64.b64decode(value, validate=True).decode("utf-8")


class TrustProviderTransformer(EntityTransformer):
    """Bidirectional transformer for trust providers."""

    kind = "trust_provider"
    model = TrustProvider
    registry = TRUST_PROVIDER_VARIANTS

    def validate(self, model: TrustProvider) -> None:
        super().validate(model)
        if isinstance(model.config, Kerberos) and not model.config.agent_controller_ids:
            raise ValidationError(self.kind, "kerberos requires at least one agent controller id", ("kerberos",))

    def body_to_dto(self, model: TrustProvider, dto: Dict[str, Any]) -> None:
        config = model.config
        dto["provider"] = self.registry.discriminator_for(config)
        dto["matchRules"] = match_rules_to_dto(config)

        if isinstance(config, AwsMetadata) and config.certificate:
            dto["certificate"] = _encode_pem(config.certificate)
            dto["pemType"] = "Certificate"
        elif isinstance(config, KubernetesServiceAccount):
            if config.public_key:
                dto["certificate"] = _encode_pem(config.public_key)
                dto["pemType"] = "PublicKey"
            if config.oidc_endpoint:
                dto["oidcUrl"] = config.oidc_endpoint
        elif isinstance(config, Kerberos):
            dto["agentControllerIds"] = list(config.agent_controller_ids)

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[TrustProvider],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        discriminator = dto.get("provider")
        variant = self.registry.variant_for(discriminator)
        if variant is None:
            if discriminator:
                logger.warning("[%s] Unknown provider type '%s'", self.kind, discriminator)
            return {"config": None}

        values: Dict[str, Any] = match_rules_from_dto(variant.config_type, dto.get("matchRules"))
        certificate = dto.get("certificate") or ""
        try:
            if variant.config_type is AwsMetadata:
                values["certificate"] = non_empty(_decode_pem(certificate))
            elif variant.config_type is KubernetesServiceAccount:
                if certificate:
                    values["public_key"] = _decode_pem(certificate)
                else:
                    values["oidc_endpoint"] = non_empty(dto.get("oidcUrl"))
        except (binascii.Error, UnicodeDecodeError) as exc:
            if tolerate:
                return {"config": None}
            raise ConversionError(self.kind, discriminator, f"certificate is not valid base64 PEM: {exc}")

        if variant.config_type is Kerberos:
            values["agent_controller_ids"] = list(dto.get("agentControllerIds") or [])

        return {"config": variant.config_type(**values)}
