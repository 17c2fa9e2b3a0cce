"""Resource kinds: one model and one transformer per Aembit entity kind.

Each module defines the kind's dataclass model (extending EntityRecord), its
variant dataclasses where the kind is polymorphic, and an EntityTransformer
subclass mapping the model to and from the Aembit wire DTO.
"""
from .access_condition import (
    AccessCondition,
    AccessConditionTransformer,
    CrowdStrikeConditions,
    WizConditions,
)
from .access_policy import AccessPolicy, AccessPolicyTransformer
from .agent_controller import AgentController, AgentControllerTransformer
from .client_workload import ClientWorkload, ClientWorkloadIdentity, ClientWorkloadTransformer
from .credential_provider import (
    AembitAccessToken,
    ApiKey,
    AwsSts,
    CredentialProvider,
    CredentialProviderTransformer,
    GoogleWorkloadIdentity,
    OAuthClientCredentials,
    SnowflakeJwt,
    UsernamePassword,
    VaultClientToken,
    VaultCustomClaim,
)
from .integration import Integration, IntegrationOAuthClientCredentials, IntegrationTransformer
from .role import ReadOnlyPermission, Role, RolePermission, RoleTransformer
from .server_workload import ServerWorkload, ServiceEndpoint, ServerWorkloadTransformer
from .trust_provider import (
    AwsEcsRole,
    AwsMetadata,
    AzureMetadata,
    GcpIdentity,
    GitHubAction,
    Kerberos,
    KubernetesServiceAccount,
    TerraformWorkspace,
    TrustProvider,
    TrustProviderTransformer,
)

__all__ = [
    # Trust providers
    "TrustProvider",
    "TrustProviderTransformer",
    "AzureMetadata",
    "AwsEcsRole",
    "AwsMetadata",
    "GcpIdentity",
    "GitHubAction",
    "Kerberos",
    "KubernetesServiceAccount",
    "TerraformWorkspace",

    # Credential providers
    "CredentialProvider",
    "CredentialProviderTransformer",
    "AembitAccessToken",
    "ApiKey",
    "AwsSts",
    "GoogleWorkloadIdentity",
    "SnowflakeJwt",
    "OAuthClientCredentials",
    "UsernamePassword",
    "VaultClientToken",
    "VaultCustomClaim",

    # Access conditions and integrations
    "AccessCondition",
    "AccessConditionTransformer",
    "WizConditions",
    "CrowdStrikeConditions",
    "Integration",
    "IntegrationOAuthClientCredentials",
    "IntegrationTransformer",

    # Roles
    "Role",
    "RolePermission",
    "ReadOnlyPermission",
    "RoleTransformer",

    # Workloads, controllers and policies
    "AgentController",
    "AgentControllerTransformer",
    "ClientWorkload",
    "ClientWorkloadIdentity",
    "ClientWorkloadTransformer",
    "ServerWorkload",
    "ServiceEndpoint",
    "ServerWorkloadTransformer",
    "AccessPolicy",
    "AccessPolicyTransformer",
]
