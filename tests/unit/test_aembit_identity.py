"""Unit tests for workload identity token exchange."""
import json
import time
from unittest.mock import patch

import jwt
import pytest

from aembit_provider.core.aembit.exceptions import AembitAuthenticationError
from aembit_provider.core.aembit.identity import WorkloadIdentityAuth, is_token_valid, parse_client_id

SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"
CLIENT_ID = "aembit:useast2:abc123:identity:github_idtoken:0f5e6c2a-1111-2222-3333-444455556666"


def _token(exp_in: int) -> str:
    return jwt.encode({"sub": "workload", "exp": int(time.time()) + exp_in}, SIGNING_KEY, algorithm="HS256")


def test_parse_client_id():
    assert parse_client_id(CLIENT_ID) == ("abc123", "github_idtoken")


def test_parse_client_id_short_value():
    assert parse_client_id("garbage") == ("", "")


def test_token_valid_when_far_from_expiry():
    assert is_token_valid(_token(3600)) is True


def test_token_invalid_inside_margin():
    assert is_token_valid(_token(30)) is False


@pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_invalid(token):
    assert is_token_valid(token) is False


def test_token_without_exp_is_invalid():
    token = jwt.encode({"sub": "workload"}, SIGNING_KEY, algorithm="HS256")
    assert is_token_valid(token) is False


def test_identity_url_uses_tenant_from_client_id():
    auth = WorkloadIdentityAuth(CLIENT_ID, "useast2.aembit.io")
    assert auth.identity_url == "https://abc123.id.useast2.aembit.io"


def test_github_identity_token(monkeypatch, make_response):
    monkeypatch.setenv("ACTIONS_ID_TOKEN_REQUEST_URL", "https://gh.example/token?x=1")
    monkeypatch.setenv("ACTIONS_ID_TOKEN_REQUEST_TOKEN", "gh-request-token")
    auth = WorkloadIdentityAuth(CLIENT_ID, "useast2.aembit.io")

    with patch("aembit_provider.core.aembit.identity.requests") as mock_requests:
        mock_requests.get.return_value = make_response({"value": "gh-id-token"})
        assert auth.get_identity_token() == "gh-id-token"

    args, kwargs = mock_requests.get.call_args
    assert args[0].startswith("https://gh.example/token?x=1&audience=")
    assert kwargs["headers"]["Authorization"] == "Bearer gh-request-token"


def test_github_identity_token_requires_env():
    auth = WorkloadIdentityAuth(CLIENT_ID, "useast2.aembit.io")
    with pytest.raises(AembitAuthenticationError):
        auth.get_identity_token()


def test_terraform_identity_token_from_env(monkeypatch):
    monkeypatch.setenv("TFC_WORKLOAD_IDENTITY_TOKEN", "tfc-token")
    auth = WorkloadIdentityAuth("aembit:useast2:abc123:identity:terraform_idtoken:1", "useast2.aembit.io")
    assert auth.get_identity_token() == "tfc-token"


def test_unknown_identity_type():
    auth = WorkloadIdentityAuth("aembit:useast2:abc123:identity:azure_idtoken:1", "useast2.aembit.io")
    with pytest.raises(AembitAuthenticationError):
        auth.get_identity_token()


def test_exchange_posts_attestation(make_response):
    auth = WorkloadIdentityAuth(CLIENT_ID, "useast2.aembit.io")
    with patch("aembit_provider.core.aembit.identity.requests") as mock_requests:
        mock_requests.post.return_value = make_response({"access_token": "aembit-token"})
        assert auth.exchange("gh-id-token") == "aembit-token"

    args, kwargs = mock_requests.post.call_args
    assert args[0] == "https://abc123.id.useast2.aembit.io/connect/token"
    data = kwargs["data"]
    assert data["grant_type"] == "client_credentials"
    assert data["client_id"] == CLIENT_ID
    assert json.loads(data["attestation"]) == {
        "version": "1.0.0",
        "github": {"identityToken": "gh-id-token"},
    }


def test_exchange_rejects_error_status(make_response):
    auth = WorkloadIdentityAuth(CLIENT_ID, "useast2.aembit.io")
    with patch("aembit_provider.core.aembit.identity.requests") as mock_requests:
        mock_requests.post.return_value = make_response("denied", status_code=401)
        with pytest.raises(AembitAuthenticationError):
            auth.exchange("gh-id-token")


def test_get_token_reuses_valid_cached_token(monkeypatch):
    auth = WorkloadIdentityAuth(CLIENT_ID, "useast2.aembit.io")
    cached = _token(3600)
    auth._access_token = cached
    monkeypatch.setattr(auth, "exchange", lambda token: pytest.fail("exchange should not run"))
    assert auth.get_token() == cached


def test_get_token_exchanges_when_expired(monkeypatch):
    monkeypatch.setenv("TFC_WORKLOAD_IDENTITY_TOKEN", "tfc-token")
    auth = WorkloadIdentityAuth("aembit:useast2:abc123:identity:terraform_idtoken:1", "useast2.aembit.io")
    auth._access_token = _token(10)
    monkeypatch.setattr(auth, "exchange", lambda token: f"exchanged:{token}")
    assert auth.get_token() == "exchanged:tfc-token"
