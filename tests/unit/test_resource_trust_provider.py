"""Unit tests for aembit_provider/resources/trust_provider.py"""
import base64

import pytest

from aembit_provider.core.controller import ResourceController
from aembit_provider.core.exceptions import ConversionError, ValidationError
from aembit_provider.resources.trust_provider import (
    AwsMetadata,
    AzureMetadata,
    GitHubAction,
    Kerberos,
    KubernetesServiceAccount,
    TerraformWorkspace,
    TrustProvider,
    TrustProviderTransformer,
)

PEM = "-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n"


@pytest.fixture
def transformer():
    return TrustProviderTransformer()


def test_azure_rules_are_sparse(transformer):
    model = TrustProvider(
        name="azure",
        is_active=True,
        config=AzureMetadata(sku="Standard_B1s", subscription_id="sub-123"),
    )
    dto = transformer.model_to_dto(model)
    assert dto["provider"] == "AzureMetadataService"
    assert dto["matchRules"] == [
        {"attribute": "AzureSku", "value": "Standard_B1s"},
        {"attribute": "AzureSubscriptionId", "value": "sub-123"},
    ]


def test_azure_read_leaves_absent_rule_unset(transformer):
    dto = {
        "externalId": "tp-1",
        "name": "azure",
        "isActive": True,
        "provider": "AzureMetadataService",
        "matchRules": [
            {"attribute": "AzureSku", "value": "Standard_B1s"},
            {"attribute": "AzureSubscriptionId", "value": "sub-123"},
        ],
    }
    model = transformer.dto_to_model(dto)
    assert model.id == "tp-1"
    assert model.config == AzureMetadata(sku="Standard_B1s", vm_id=None, subscription_id="sub-123")


def test_unknown_rule_attributes_are_ignored(transformer):
    dto = {
        "name": "gh",
        "provider": "GitHubIdentityToken",
        "matchRules": [
            {"attribute": "GithubRepository", "value": "org/repo"},
            {"attribute": "GithubRef", "value": "refs/heads/main"},
        ],
    }
    assert transformer.dto_to_model(dto).config == GitHubAction(repository="org/repo")


def test_unknown_provider_leaves_config_unset(transformer):
    model = transformer.dto_to_model({"name": "future", "provider": "QuantumAttestation"})
    assert model.config is None


def test_aws_metadata_certificate_is_base64_encoded(transformer):
    model = TrustProvider(name="aws", config=AwsMetadata(certificate=PEM, region="us-east-2"))
    dto = transformer.model_to_dto(model)
    assert dto["pemType"] == "Certificate"
    assert base64.b64decode(dto["certificate"]).decode() == PEM
    assert dto["matchRules"] == [{"attribute": "AwsRegion", "value": "us-east-2"}]

    assert transformer.dto_to_model(dto).config == model.config


def test_kubernetes_public_key_and_oidc_endpoint(transformer):
    with_key = TrustProvider(name="k8s", config=KubernetesServiceAccount(namespace="payments", public_key="KEY"))
    dto = transformer.model_to_dto(with_key)
    assert dto["pemType"] == "PublicKey"
    assert transformer.dto_to_model(dto).config == with_key.config

    with_oidc = TrustProvider(name="k8s", config=KubernetesServiceAccount(oidc_endpoint="https://oidc.example"))
    dto = transformer.model_to_dto(with_oidc)
    assert dto["oidcUrl"] == "https://oidc.example"
    assert "certificate" not in dto
    assert transformer.dto_to_model(dto).config == with_oidc.config


def test_kerberos_agent_controllers(transformer):
    model = TrustProvider(name="krb", config=Kerberos(agent_controller_ids=["ac-1"], realm="CORP.EXAMPLE"))
    dto = transformer.model_to_dto(model)
    assert dto["agentControllerIds"] == ["ac-1"]
    assert dto["matchRules"] == [{"attribute": "Realm", "value": "CORP.EXAMPLE"}]
    assert transformer.dto_to_model(dto).config == model.config


@pytest.mark.parametrize("agent_controller_ids", [None, []])
def test_kerberos_without_agent_controllers_never_reaches_remote(transformer, mock_service, agent_controller_ids):
    model = transformer.from_state({
        "name": "krb",
        "kerberos": {"agent_controller_ids": agent_controller_ids, "realm": "CORP.EXAMPLE"},
    })
    assert model.config.agent_controller_ids == []

    with pytest.raises(ValidationError, match="agent controller"):
        ResourceController(mock_service, transformer).create(model)
    assert mock_service.mock_calls == []


def test_invalid_certificate_raises_conversion_error(transformer):
    dto = {"name": "aws", "provider": "AWSMetadataService", "certificate": "%%%not-base64%%%"}
    with pytest.raises(ConversionError):
        transformer.dto_to_model(dto)


def test_invalid_certificate_tolerated_when_not_strict(transformer):
    dto = {"name": "aws", "provider": "AWSMetadataService", "certificate": "%%%not-base64%%%"}
    model = transformer.dto_to_model(dto, strict=False)
    assert model.name == "aws"
    assert model.config is None


def test_round_trip_preserves_envelope(transformer):
    model = TrustProvider(
        name="tfc",
        id="tp-9",
        description="Terraform Cloud",
        is_active=False,
        tags={"env": "prod"},
        config=TerraformWorkspace(organization_id="org-1", workspace_id="ws-1"),
    )
    dto = transformer.model_to_dto(model, model.id)
    assert transformer.dto_to_model(dto) == model


def test_validate_requires_variant(transformer):
    with pytest.raises(ValidationError):
        transformer.validate(TrustProvider(name="empty"))


def test_from_state_rejects_two_blocks(transformer):
    state = {
        "name": "both",
        "azure_metadata": {"sku": "Standard_B1s"},
        "gcp_identity": {"email": "svc@example.iam.gserviceaccount.com"},
    }
    with pytest.raises(ValidationError):
        transformer.from_state(state)


def test_state_round_trip(transformer):
    model = TrustProvider(name="azure", tags={"env": "prod"}, config=AzureMetadata(vm_id="vm-1"))
    state = transformer.to_state(model)
    assert state["azure_metadata"] == {"sku": None, "vm_id": "vm-1", "subscription_id": None}
    assert state["kerberos"] is None
    assert transformer.from_state(state) == model


def test_from_state_rejects_unknown_attribute(transformer):
    with pytest.raises(ValidationError, match="unsupported attribute"):
        transformer.from_state({"name": "x", "azure_metadata": {}, "colour": "blue"})
