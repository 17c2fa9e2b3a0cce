"""Credential provider resource: how Aembit obtains credentials for a workload.

The variant is named by the DTO ``type`` and its settings travel as a JSON
document serialised into the ``providerDetail`` string. Aembit vaults API
keys, client secrets and passwords and never returns them, so those fields
are carried over from the prior model when reading.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from aembit_provider.core.aembit.client import DEFAULT_STACK_DOMAIN
from aembit_provider.core.entity import EntityRecord, EntityTransformer
from aembit_provider.core.exceptions import ConversionError, ValidationError
from aembit_provider.core.variants import Variant, VariantRegistry

logger = logging.getLogger(__name__)

AWS_STS_AUDIENCE = "sts.amazonaws.com"

VAULT_VALUE_TYPES = ("literal", "dynamic")
VAULT_FORWARDING_MODES = ("", "unconditional", "conditional")


@dataclass
class AembitAccessToken:
    role: Optional[str] = None
    lifetime: int = 0
    # Computed from the tenant
    audience: Optional[str] = None


@dataclass
class ApiKey:
    api_key: Optional[str] = None


@dataclass
class AwsSts:
    role_arn: Optional[str] = None
    lifetime: int = 3600
    # Computed from the tenant
    oidc_issuer: Optional[str] = None
    token_audience: Optional[str] = None


@dataclass
class GoogleWorkloadIdentity:
    audience: Optional[str] = None
    service_account: Optional[str] = None
    lifetime: int = 3600
    # Computed from the tenant
    oidc_issuer: Optional[str] = None


@dataclass
class SnowflakeJwt:
    account_id: Optional[str] = None
    username: Optional[str] = None
    # Computed from the key Aembit generated
    alter_user_command: Optional[str] = None


@dataclass
class OAuthClientCredentials:
    token_url: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    scopes: Optional[str] = None


@dataclass
class UsernamePassword:
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class VaultCustomClaim:
    key: str = ""
    value: str = ""
    value_type: str = "literal"


@dataclass
class VaultClientToken:
    subject: str = ""
    subject_type: str = "literal"
    custom_claims: List[VaultCustomClaim] = field(default_factory=list)
    lifetime: int = 0
    vault_host: str = ""
    vault_tls: bool = True
    vault_port: int = 8200
    vault_namespace: str = ""
    vault_role: str = ""
    vault_path: str = ""
    vault_forwarding: str = ""

    @classmethod
    def from_block(cls, block: Mapping[str, Any]) -> "VaultClientToken":
        data = dict(block)
        data["custom_claims"] = [
            claim if isinstance(claim, VaultCustomClaim) else VaultCustomClaim(**claim)
            for claim in data.get("custom_claims") or []
        ]
        return cls(**data)


CredentialProviderConfig = Union[
    AembitAccessToken, ApiKey, AwsSts, GoogleWorkloadIdentity, SnowflakeJwt,
    OAuthClientCredentials, UsernamePassword, VaultClientToken,
]


@dataclass
class CredentialProvider(EntityRecord):
    config: Optional[CredentialProviderConfig] = None


CREDENTIAL_PROVIDER_VARIANTS = VariantRegistry("credential_provider", [
    Variant("aembit_access_token", "aembit-access-token", AembitAccessToken),
    Variant("api_key", "apikey", ApiKey, secret_fields=("api_key",)),
    Variant("aws_sts", "aws-sts-oidc", AwsSts),
    Variant("google_workload_identity", "gcp-identity-federation", GoogleWorkloadIdentity),
    Variant("snowflake_jwt", "signed-jwt", SnowflakeJwt),
    Variant("oauth_client_credentials", "oauth-client-credential", OAuthClientCredentials,
            secret_fields=("client_secret",)),
    Variant("username_password", "username-password", UsernamePassword, secret_fields=("password",)),
    Variant("vault_client_token", "vaultClientToken", VaultClientToken),
])


def snowflake_alter_user_command(username: str, key_content: str) -> str:
    """Build the Snowflake statement that registers Aembit's public key for a user."""
    key = key_content.replace("\n", "")
    key = key.replace("-----BEGIN PUBLIC KEY-----", "", 1)
    key = key.replace("-----END PUBLIC KEY-----", "", 1)
    return f"ALTER USER {username} SET RSA_PUBLIC_KEY='{key}'"


class CredentialProviderTransformer(EntityTransformer):
    """Bidirectional transformer for credential providers.

    Several variants embed tenant-specific URLs, so the transformer is bound
    to a tenant and stack domain.
    """

    kind = "credential_provider"
    model = CredentialProvider
    registry = CREDENTIAL_PROVIDER_VARIANTS

    def __init__(self, tenant_id: str = "", stack_domain: str = DEFAULT_STACK_DOMAIN):
        self.tenant_id = tenant_id
        self.stack_domain = stack_domain

    @property
    def api_audience(self) -> str:
        return f"{self.tenant_id}.api.{self.stack_domain}"

    @property
    def oidc_issuer(self) -> str:
        return f"https://{self.tenant_id}.id.{self.stack_domain}"

    def validate(self, model: CredentialProvider) -> None:
        super().validate(model)
        config = model.config
        if isinstance(config, VaultClientToken):
            self._check_choice("subject_type", config.subject_type, VAULT_VALUE_TYPES)
            for claim in config.custom_claims:
                self._check_choice("custom_claims.value_type", claim.value_type, VAULT_VALUE_TYPES)
            self._check_choice("vault_forwarding", config.vault_forwarding, VAULT_FORWARDING_MODES)

    def _check_choice(self, attribute: str, value: str, choices: Tuple[str, ...]) -> None:
        if value not in choices:
            raise ValidationError(
                self.kind,
                f"vault_client_token.{attribute} must be one of {', '.join(map(repr, choices))}, got {value!r}",
                ("vault_client_token",),
            )

    # ── Model → DTO ───────────────────────────────────────────────────────

    def body_to_dto(self, model: CredentialProvider, dto: Dict[str, Any]) -> None:
        config = model.config
        dto["type"] = self.registry.discriminator_for(config)
        dto["providerDetail"] = json.dumps(self.detail_to_dto(config))

    def detail_to_dto(self, config: CredentialProviderConfig) -> Dict[str, Any]:
        """Build the providerDetail document for one variant."""
        if isinstance(config, AembitAccessToken):
            return {"audience": self.api_audience, "roleId": config.role, "lifetime": config.lifetime}
        if isinstance(config, ApiKey):
            return {"apiKey": config.api_key}
        if isinstance(config, AwsSts):
            return {"roleArn": config.role_arn, "lifetime": config.lifetime}
        if isinstance(config, GoogleWorkloadIdentity):
            return {
                "audience": config.audience,
                "serviceAccount": config.service_account,
                "lifetime": config.lifetime,
            }
        if isinstance(config, SnowflakeJwt):
            subject = f"{config.account_id}.{config.username}"
            return {
                "tokenConfiguration": "snowflake",
                "algorithmType": "RS256",
                "issuer": subject + ".SHA256:{sha256(publicKey)}",
                "subject": subject,
                "lifetime": 1,
            }
        if isinstance(config, OAuthClientCredentials):
            return {
                "tokenUrl": config.token_url,
                "clientId": config.client_id,
                "clientSecret": config.client_secret,
                "scope": config.scopes,
                "credentialStyle": "authHeader",
            }
        if isinstance(config, UsernamePassword):
            return {"username": config.username, "password": config.password}
        if isinstance(config, VaultClientToken):
            return {
                "jwtConfig": {
                    "issuer": self.oidc_issuer + "/",
                    "subject": config.subject,
                    "subjectType": config.subject_type,
                    "lifetime": config.lifetime,
                    "customClaims": [
                        {"key": claim.key, "value": claim.value, "valueType": claim.value_type}
                        for claim in config.custom_claims
                    ],
                },
                "vaultCluster": {
                    "vaultHost": config.vault_host,
                    "port": config.vault_port,
                    "tls": config.vault_tls,
                    "namespace": config.vault_namespace,
                    "role": config.vault_role,
                    "authenticationPath": config.vault_path,
                    "forwardingConfig": config.vault_forwarding,
                },
            }
        raise TypeError(f"unsupported credential provider config {type(config).__name__}")

    # ── DTO → Model ───────────────────────────────────────────────────────

    def body_from_dto(
        self,
        dto: Mapping[str, Any],
        prior: Optional[CredentialProvider],
        tolerate: bool = False,
    ) -> Dict[str, Any]:
        discriminator = dto.get("type")
        variant = self.registry.variant_for(discriminator)
        if variant is None:
            if discriminator:
                logger.warning("[%s] Unknown credential provider type '%s'", self.kind, discriminator)
            return {"config": None}

        try:
            detail = self._parse_detail(dto.get("providerDetail"))
            config = self.detail_from_dto(variant.config_type, detail)
        except (ValueError, TypeError, KeyError, AttributeError, IndexError) as exc:
            if tolerate:
                return {"config": None}
            raise ConversionError(self.kind, discriminator, f"invalid providerDetail: {exc}")

        prior_config = prior.config if prior is not None else None
        return {"config": self.registry.preserve_secrets(config, prior_config)}

    @staticmethod
    def _parse_detail(raw: Any) -> Dict[str, Any]:
        if raw is None or raw == "":
            return {}
        if isinstance(raw, Mapping):
            return dict(raw)
        detail = json.loads(raw)
        if not isinstance(detail, dict):
            raise ValueError("providerDetail must be a JSON object")
        return detail

    def detail_from_dto(self, config_type: type, detail: Mapping[str, Any]) -> CredentialProviderConfig:
        """Build one variant from a parsed providerDetail document."""
        if config_type is AembitAccessToken:
            return AembitAccessToken(
                role=detail.get("roleId"),
                lifetime=int(detail.get("lifetime") or 0),
                audience=detail.get("audience"),
            )
        if config_type is ApiKey:
            # Never returned by Aembit; filled from prior state
            return ApiKey(api_key=detail.get("apiKey") or None)
        if config_type is AwsSts:
            return AwsSts(
                role_arn=detail.get("roleArn"),
                lifetime=int(detail.get("lifetime") or 0),
                oidc_issuer=self.oidc_issuer,
                token_audience=AWS_STS_AUDIENCE,
            )
        if config_type is GoogleWorkloadIdentity:
            return GoogleWorkloadIdentity(
                audience=detail.get("audience"),
                service_account=detail.get("serviceAccount"),
                lifetime=int(detail.get("lifetime") or 0),
                oidc_issuer=self.oidc_issuer,
            )
        if config_type is SnowflakeJwt:
            account_id, username = (detail.get("subject") or "").split(".", 1)
            key_content = detail.get("keyContent") or ""
            return SnowflakeJwt(
                account_id=account_id,
                username=username,
                alter_user_command=snowflake_alter_user_command(username, key_content) if key_content else None,
            )
        if config_type is OAuthClientCredentials:
            return OAuthClientCredentials(
                token_url=detail.get("tokenUrl"),
                client_id=detail.get("clientId"),
                client_secret=detail.get("clientSecret") or None,
                scopes=detail.get("scope"),
            )
        if config_type is UsernamePassword:
            return UsernamePassword(
                username=detail.get("username"),
                password=detail.get("password") or None,
            )
        if config_type is VaultClientToken:
            jwt_config = detail["jwtConfig"]
            cluster = detail["vaultCluster"]
            return VaultClientToken(
                subject=jwt_config.get("subject", ""),
                subject_type=jwt_config.get("subjectType", "literal"),
                lifetime=int(jwt_config.get("lifetime") or 0),
                custom_claims=[
                    VaultCustomClaim(
                        key=claim.get("key", ""),
                        value=claim.get("value", ""),
                        value_type=claim.get("valueType", "literal"),
                    )
                    for claim in jwt_config.get("customClaims") or []
                ],
                vault_host=cluster.get("vaultHost", ""),
                vault_port=int(cluster.get("port") or 0),
                vault_tls=bool(cluster.get("tls", True)),
                vault_namespace=cluster.get("namespace", ""),
                vault_role=cluster.get("role", ""),
                vault_path=cluster.get("authenticationPath", ""),
                vault_forwarding=cluster.get("forwardingConfig", ""),
            )
        raise TypeError(f"unsupported credential provider config {config_type.__name__}")
