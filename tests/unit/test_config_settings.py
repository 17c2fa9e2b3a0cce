import pytest

from aembit_provider.config import settings
from aembit_provider.config.settings import ProviderConfig, load_settings
from aembit_provider.core.exceptions import ConfigurationError


@pytest.fixture
def no_run_secrets(monkeypatch, tmp_path):
    """Point /run/secrets at an empty temp directory."""
    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return tmp_path


def test_load_settings_from_env(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_TENANT_ID", "abc123")
    monkeypatch.setenv("AEMBIT_TOKEN", "env-token")

    cfg = load_settings()
    assert cfg.tenant_id == "abc123"
    assert cfg.token == "env-token"
    assert cfg.stack_domain == "useast2.aembit.io"
    assert cfg.request_timeout == 5
    assert cfg.strict_conversion is True
    assert cfg.uses_workload_identity is False


def test_explicit_values_take_precedence(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_TENANT_ID", "from-env")
    monkeypatch.setenv("AEMBIT_TOKEN", "env-token")
    monkeypatch.setenv("AEMBIT_STACK_DOMAIN", "eu.aembit.io")

    cfg = load_settings(tenant_id="explicit", token="explicit-token", stack_domain="local.aembit.io")
    assert cfg.tenant_id == "explicit"
    assert cfg.token == "explicit-token"
    assert cfg.stack_domain == "local.aembit.io"


def test_token_reads_from_run_secrets(monkeypatch, no_run_secrets):
    (no_run_secrets / "aembit_token").write_text("file-token\n")
    monkeypatch.setenv("AEMBIT_TENANT_ID", "abc123")
    monkeypatch.setenv("AEMBIT_TOKEN", "env-token")

    assert load_settings().token == "file-token"


def test_missing_tenant_raises(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_TOKEN", "env-token")
    with pytest.raises(ConfigurationError, match="AEMBIT_TENANT_ID"):
        load_settings()


def test_missing_token_raises(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_TENANT_ID", "abc123")
    with pytest.raises(ConfigurationError, match="AEMBIT_TOKEN"):
        load_settings()


def test_client_id_supplies_tenant_and_replaces_token(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_CLIENT_ID", "aembit:useast2:wi-tenant:identity:github_idtoken:1234")

    cfg = load_settings()
    assert cfg.tenant_id == "wi-tenant"
    assert cfg.token == ""
    assert cfg.uses_workload_identity is True


def test_optional_tuning_variables(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_TENANT_ID", "abc123")
    monkeypatch.setenv("AEMBIT_TOKEN", "env-token")
    monkeypatch.setenv("AEMBIT_REQUEST_TIMEOUT", "12.5")
    monkeypatch.setenv("AEMBIT_STRICT_CONVERSION", "false")
    monkeypatch.setenv("AEMBIT_API_BASE_URL", "http://localhost:8080")

    cfg = load_settings()
    assert cfg.request_timeout == 12.5
    assert cfg.strict_conversion is False
    assert cfg.api_base_url == "http://localhost:8080"


def test_invalid_timeout_raises(monkeypatch, no_run_secrets):
    monkeypatch.setenv("AEMBIT_TENANT_ID", "abc123")
    monkeypatch.setenv("AEMBIT_TOKEN", "env-token")
    monkeypatch.setenv("AEMBIT_REQUEST_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError):
        load_settings()


def test_token_is_not_logged(monkeypatch, no_run_secrets, caplog):
    monkeypatch.setenv("AEMBIT_TENANT_ID", "abc123")
    monkeypatch.setenv("AEMBIT_TOKEN", "super-secret-token")
    with caplog.at_level("INFO", logger="aembit_provider.config.settings"):
        load_settings()
    assert "super-secret-token" not in caplog.text
    assert "***" in caplog.text


def test_provider_config_defaults():
    cfg = ProviderConfig(tenant_id="abc123")
    assert cfg.token == ""
    assert cfg.client_id == ""
    assert cfg.uses_workload_identity is False
