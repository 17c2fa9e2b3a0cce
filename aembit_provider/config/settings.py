"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from aembit_provider.core.aembit.client import DEFAULT_STACK_DOMAIN, REQUEST_TIMEOUT
from aembit_provider.core.aembit.identity import parse_client_id
from aembit_provider.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info("[settings] Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("[settings] Failed to read /run/secrets/%s: %s", secret_name, e)

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _env_bool(var_name: str, default: bool) -> bool:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ProviderConfig:
    """Provider configuration container."""
    tenant_id: str
    token: str = ""
    stack_domain: str = DEFAULT_STACK_DOMAIN

    # Workload identity (aembit:<stack>:<tenant>:identity:<type>:<uuid>)
    client_id: str = ""

    # Explicit API base URL, mostly for tests and private stacks
    api_base_url: str = ""
    request_timeout: float = REQUEST_TIMEOUT

    # Raise on unparseable variant payloads instead of leaving the variant unset
    strict_conversion: bool = True

    @property
    def uses_workload_identity(self) -> bool:
        return bool(self.client_id)


def load_settings(
    tenant_id: Optional[str] = None,
    token: Optional[str] = None,
    stack_domain: Optional[str] = None,
) -> ProviderConfig:
    """Load provider settings from explicit values, /run/secrets and the environment.

    Explicit arguments mirror the provider block in a Terraform configuration
    and take precedence over the environment.

    Raises:
        ConfigurationError: If the tenant cannot be determined, or no token is
            available and workload identity is not configured
    """
    stack_domain = stack_domain or os.environ.get("AEMBIT_STACK_DOMAIN") or DEFAULT_STACK_DOMAIN
    client_id = os.environ.get("AEMBIT_CLIENT_ID", "").strip()

    tenant = tenant_id or os.environ.get("AEMBIT_TENANT_ID", "")
    if client_id:
        client_tenant, _ = parse_client_id(client_id)
        tenant = client_tenant or tenant

    resolved_token = token or _load_secret_from_file("aembit_token", "AEMBIT_TOKEN") or ""

    if not tenant:
        raise ConfigurationError(
            "Missing Aembit tenant. Set the tenant in the provider configuration "
            "or use the AEMBIT_TENANT_ID environment variable."
        )
    if not resolved_token and not client_id:
        raise ConfigurationError(
            "Missing Aembit API access token. Set the token in the provider configuration, "
            "use the AEMBIT_TOKEN environment variable, or configure AEMBIT_CLIENT_ID."
        )

    timeout_raw = os.environ.get("AEMBIT_REQUEST_TIMEOUT", "").strip()
    try:
        request_timeout = float(timeout_raw) if timeout_raw else float(REQUEST_TIMEOUT)
    except ValueError:
        raise ConfigurationError(f"AEMBIT_REQUEST_TIMEOUT must be a number, got {timeout_raw!r}")

    config = ProviderConfig(
        tenant_id=tenant,
        token=resolved_token,
        stack_domain=stack_domain,
        client_id=client_id,
        api_base_url=os.environ.get("AEMBIT_API_BASE_URL", "").strip(),
        request_timeout=request_timeout,
        strict_conversion=_env_bool("AEMBIT_STRICT_CONVERSION", True),
    )
    logger.info(
        "[settings] tenant=%s; stack=%s; token=%s; workload_identity=%s",
        config.tenant_id,
        config.stack_domain,
        "***" if config.token else "EMPTY",
        config.uses_workload_identity,
    )
    return config
