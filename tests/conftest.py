"""Pytest shared fixtures for provider tests."""
import json
import pathlib
import sys
from unittest.mock import MagicMock

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from aembit_provider.core.aembit.client import AembitClient
from aembit_provider.core.aembit.resources import ResourceService


# ─────────────────────────────────────────────────────────────────────────────
# Environment Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
_AEMBIT_ENV = (
    "AEMBIT_TENANT_ID",
    "AEMBIT_TOKEN",
    "AEMBIT_STACK_DOMAIN",
    "AEMBIT_CLIENT_ID",
    "AEMBIT_API_BASE_URL",
    "AEMBIT_REQUEST_TIMEOUT",
    "AEMBIT_STRICT_CONVERSION",
    "TFC_WORKLOAD_IDENTITY_TOKEN",
    "ACTIONS_ID_TOKEN_REQUEST_URL",
    "ACTIONS_ID_TOKEN_REQUEST_TOKEN",
)


@pytest.fixture(autouse=True)
def _clean_aembit_env(monkeypatch):
    """Keep a developer's real Aembit credentials out of unit tests."""
    for var in _AEMBIT_ENV:
        monkeypatch.delenv(var, raising=False)


# ─────────────────────────────────────────────────────────────────────────────
# HTTP helpers
# ─────────────────────────────────────────────────────────────────────────────
def _make_response(payload=None, status_code: int = 200, url: str = "https://abc123.api.useast2.aembit.io"):
    """Build a requests.Response-like mock."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.url = url
    if payload is None:
        resp.content = b""
        resp.text = ""
        resp.json.side_effect = ValueError("no body")
    else:
        resp.text = payload if isinstance(payload, str) else json.dumps(payload)
        resp.content = resp.text.encode("utf-8")
        resp.json.return_value = payload
    return resp


@pytest.fixture
def make_response():
    """Factory for requests.Response-like mocks."""
    return _make_response


@pytest.fixture
def mock_client():
    """AembitClient mock whose verbs return empty 200 responses by default."""
    client = MagicMock(spec=AembitClient)
    for verb in ("get", "post", "put", "patch", "delete"):
        getattr(client, verb).return_value = _make_response()
    return client


@pytest.fixture
def mock_service():
    """ResourceService mock recording calls in order via ``mock_calls``."""
    return MagicMock(spec=ResourceService)
