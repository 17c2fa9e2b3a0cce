"""Workload identity authentication for the Aembit Cloud API.

An Aembit client ID has the form
``aembit:<stack>:<tenant>:identity:<identity type>:<uuid>``. The identity type
selects where the platform identity token comes from (GCP metadata server,
GitHub Actions OIDC endpoint, or Terraform Cloud workload identity). That
token is exchanged at the tenant's identity endpoint for an Aembit access
token.
"""
from __future__ import annotations
import json
import logging
import os
import time
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import jwt
import requests

from .client import REQUEST_TIMEOUT
from .exceptions import AembitAuthenticationError

# Tokens expiring within this window are treated as expired
TOKEN_EXPIRY_MARGIN_SECONDS = 60

logger = logging.getLogger(__name__)

_ATTESTATION_KEYS = {
    "gcp_idtoken": "gcp",
    "github_idtoken": "github",
    "terraform_idtoken": "terraform",
}


def parse_client_id(client_id: str) -> Tuple[str, str]:
    """Return (tenant, identity type) encoded in an Aembit client ID.

    Missing segments come back as empty strings.
    """
    parts = client_id.split(":")
    tenant = parts[2] if len(parts) >= 3 else ""
    identity_type = parts[4] if len(parts) >= 5 else ""
    return tenant, identity_type


def is_token_valid(token: Optional[str], margin: int = TOKEN_EXPIRY_MARGIN_SECONDS) -> bool:
    """Check that a JWT is well-formed and not about to expire.

    The signature is not verified: this only decides whether a cached token
    is worth re-using.
    """
    if not token or token.count(".") != 2:
        return False
    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return False
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        return False
    return time.time() < exp - margin


class WorkloadIdentityAuth:
    """Obtain and cache an Aembit API token from the runtime's workload identity.

    Usage:
        auth = WorkloadIdentityAuth(os.environ["AEMBIT_CLIENT_ID"], "useast2.aembit.io")
        client.set_token(auth.get_token())
    """

    def __init__(self, client_id: str, stack_domain: str, timeout: float = REQUEST_TIMEOUT):
        self.client_id = client_id
        self.stack_domain = stack_domain
        self.timeout = timeout
        self.tenant, self.identity_type = parse_client_id(client_id)
        self._identity_token: Optional[str] = None
        self._access_token: Optional[str] = None

    @property
    def identity_url(self) -> str:
        return f"https://{self.tenant}.id.{self.stack_domain}"

    def get_token(self) -> str:
        """Return a valid Aembit access token, exchanging a fresh identity token when needed.

        Raises:
            AembitAuthenticationError: If no identity token can be obtained or exchanged
        """
        if is_token_valid(self._access_token):
            return self._access_token
        identity_token = self.get_identity_token()
        self._access_token = self.exchange(identity_token)
        return self._access_token

    def get_identity_token(self) -> str:
        """Fetch the platform identity token for the configured identity type."""
        if is_token_valid(self._identity_token):
            return self._identity_token

        if self.identity_type == "gcp_idtoken":
            token = self._gcp_identity_token()
        elif self.identity_type == "github_idtoken":
            token = self._github_identity_token()
        elif self.identity_type == "terraform_idtoken":
            token = os.environ.get("TFC_WORKLOAD_IDENTITY_TOKEN", "")
        else:
            raise AembitAuthenticationError(f"No identity token source for client id type '{self.identity_type}'")

        if not token:
            raise AembitAuthenticationError(f"Empty identity token for '{self.identity_type}'")
        self._identity_token = token
        return token

    def _gcp_identity_token(self) -> str:
        url = (
            "http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/identity"
            f"?format=full&audience={quote(self.identity_url, safe='')}"
        )
        try:
            resp = requests.get(url, headers={"Metadata-Flavor": "Google"}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AembitAuthenticationError(f"Failed to fetch GCP ID token: {exc}") from exc
        if resp.status_code != 200:
            raise AembitAuthenticationError(f"Failed to fetch GCP ID token: [{resp.status_code}] {resp.text}")
        return resp.text.strip()

    def _github_identity_token(self) -> str:
        request_url = os.environ.get("ACTIONS_ID_TOKEN_REQUEST_URL", "")
        request_token = os.environ.get("ACTIONS_ID_TOKEN_REQUEST_TOKEN", "")
        if not request_url or not request_token:
            raise AembitAuthenticationError("GitHub Action not configured for id_token access")

        url = f"{request_url}&audience={quote(self.identity_url, safe='')}"
        try:
            resp = requests.get(url, headers={"Authorization": f"Bearer {request_token}"}, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AembitAuthenticationError(f"Failed to fetch GitHub ID token: {exc}") from exc
        if resp.status_code != 200:
            raise AembitAuthenticationError(f"Failed to fetch GitHub ID token: [{resp.status_code}] {resp.text}")
        try:
            value = resp.json().get("value")
        except ValueError as exc:
            raise AembitAuthenticationError("Failed to parse GitHub ID token response") from exc
        if not isinstance(value, str):
            raise AembitAuthenticationError("GitHub ID token response has no 'value'")
        return value

    def exchange(self, identity_token: str) -> str:
        """Exchange an identity token for an Aembit access token (client credentials grant)."""
        attestation_key = _ATTESTATION_KEYS.get(self.identity_type)
        if not attestation_key:
            raise AembitAuthenticationError("Invalid Aembit client id")

        attestation: Dict[str, object] = {
            "version": "1.0.0",
            attestation_key: {"identityToken": identity_token},
        }
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "attestation": json.dumps(attestation),
        }
        url = f"{self.identity_url}/connect/token"
        try:
            resp = requests.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise AembitAuthenticationError(f"Failed to fetch Aembit token: {exc}") from exc
        if resp.status_code != 200:
            raise AembitAuthenticationError(f"Failed to fetch Aembit token: [{resp.status_code}] {resp.text}")
        try:
            token = resp.json()["access_token"]
        except (ValueError, KeyError) as exc:
            raise AembitAuthenticationError("Aembit token response has no access_token") from exc
        logger.info("Obtained Aembit token for tenant %s via %s", self.tenant, self.identity_type)
        return token
