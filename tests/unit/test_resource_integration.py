"""Unit tests for aembit_provider/resources/integration.py"""
import pytest

from aembit_provider.core.exceptions import ValidationError
from aembit_provider.resources.integration import (
    Integration,
    IntegrationOAuthClientCredentials,
    IntegrationTransformer,
)


@pytest.fixture
def transformer():
    return IntegrationTransformer()


@pytest.fixture
def wiz():
    return Integration(
        name="wiz",
        type="WizIntegrationApi",
        endpoint="https://api.wiz.example/graphql",
        sync_frequency=3600,
        oauth_client_credentials=IntegrationOAuthClientCredentials(
            token_url="https://auth.wiz.example/oauth/token",
            client_id="cid",
            client_secret="shh",
            audience="wiz-api",
        ),
    )


def test_to_dto(transformer, wiz):
    dto = transformer.model_to_dto(wiz)
    assert dto["type"] == "WizIntegrationApi"
    assert dto["syncFrequencySeconds"] == 3600
    assert dto["integrationJSON"] == {
        "tokenUrl": "https://auth.wiz.example/oauth/token",
        "clientId": "cid",
        "clientSecret": "shh",
        "audience": "wiz-api",
    }


def test_client_secret_preserved_from_prior(transformer, wiz):
    dto = transformer.model_to_dto(wiz, "int-1")
    dto["integrationJSON"]["clientSecret"] = ""
    model = transformer.dto_to_model(dto, wiz)
    assert model.id == "int-1"
    assert model.oauth_client_credentials.client_secret == "shh"


def test_validate_rejects_unknown_type(transformer, wiz):
    wiz.type = "Okta"
    with pytest.raises(ValidationError):
        transformer.validate(wiz)


def test_validate_requires_credentials(transformer, wiz):
    wiz.oauth_client_credentials = None
    with pytest.raises(ValidationError):
        transformer.validate(wiz)


def test_state_round_trip(transformer, wiz):
    assert transformer.from_state(transformer.to_state(wiz)) == wiz


def test_round_trip(transformer, wiz):
    wiz.id = "int-1"
    wiz.is_active = True
    assert transformer.dto_to_model(transformer.model_to_dto(wiz, wiz.id), wiz) == wiz
