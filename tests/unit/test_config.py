"""Unit tests for system_registration.config (env and SSM resolution)."""

from __future__ import annotations

import boto3
import pytest
from moto import mock_aws

from system_registration import config
from system_registration.exceptions import ConfigurationError

_REGION = "eu-west-2"

_ENV_VARS = (
    "USER_SERVICE_URL",
    "TENANT_SERVICE_URL",
    "USER_SERVICE_URL_PARAM",
    "TENANT_SERVICE_URL_PARAM",
    "DOWNSTREAM_TIMEOUT_SECONDS",
    "DELETE_TABLES_ENABLED",
    "SERVICE_NAME",
    "SYS_REGISTRATION_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_REGION", _REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", _REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    config.reset_cache()


def test_env_urls_are_used_and_trailing_slash_stripped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USER_SERVICE_URL", "http://user-manager:3001/")
    monkeypatch.setenv("TENANT_SERVICE_URL", "http://tenant-manager:3003/tenant")

    cfg = config.load_config()

    assert cfg.user_service_url == "http://user-manager:3001"
    assert cfg.tenant_service_url == "http://tenant-manager:3003/tenant"
    assert cfg.system_url == "http://user-manager:3001/system"
    assert cfg.pool_url == "http://user-manager:3001/pool"
    assert cfg.delete_infra_url == "http://user-manager:3001/tenants"
    assert cfg.delete_tables_url == "http://user-manager:3001/tables"


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USER_SERVICE_URL", "http://u")
    monkeypatch.setenv("TENANT_SERVICE_URL", "http://t")

    cfg = config.load_config()

    assert cfg.timeout_seconds == config.DEFAULT_TIMEOUT_SECONDS
    assert cfg.delete_tables_enabled is False
    assert cfg.service_name == "System Registration"
    assert config.service_port() == 3011


def test_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("USER_SERVICE_URL", "http://u")
    monkeypatch.setenv("TENANT_SERVICE_URL", "http://t")
    monkeypatch.setenv("DOWNSTREAM_TIMEOUT_SECONDS", "1.5")
    monkeypatch.setenv("DELETE_TABLES_ENABLED", "TRUE")
    monkeypatch.setenv("SERVICE_NAME", "Sys Reg")
    monkeypatch.setenv("SYS_REGISTRATION_PORT", "8080")

    cfg = config.load_config()

    assert cfg.timeout_seconds == 1.5
    assert cfg.delete_tables_enabled is True
    assert cfg.service_name == "Sys Reg"
    assert config.service_port() == 8080


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_invalid_timeout_rejected(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("USER_SERVICE_URL", "http://u")
    monkeypatch.setenv("TENANT_SERVICE_URL", "http://t")
    monkeypatch.setenv("DOWNSTREAM_TIMEOUT_SECONDS", value)

    with pytest.raises(ConfigurationError):
        config.load_config()


def test_invalid_port_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYS_REGISTRATION_PORT", "http")
    with pytest.raises(ConfigurationError):
        config.service_port()


@mock_aws
def test_urls_fall_back_to_ssm() -> None:
    ssm = boto3.client("ssm", region_name=_REGION)
    ssm.put_parameter(
        Name=config.DEFAULT_USER_SERVICE_URL_PARAM, Value="http://ssm-user/", Type="String"
    )
    ssm.put_parameter(
        Name=config.DEFAULT_TENANT_SERVICE_URL_PARAM, Value="http://ssm-tenant", Type="String"
    )

    cfg = config.load_config()

    assert cfg.user_service_url == "http://ssm-user"
    assert cfg.tenant_service_url == "http://ssm-tenant"


@mock_aws
def test_env_wins_over_ssm(monkeypatch: pytest.MonkeyPatch) -> None:
    ssm = boto3.client("ssm", region_name=_REGION)
    ssm.put_parameter(
        Name=config.DEFAULT_USER_SERVICE_URL_PARAM, Value="http://ssm-user", Type="String"
    )
    ssm.put_parameter(
        Name=config.DEFAULT_TENANT_SERVICE_URL_PARAM, Value="http://ssm-tenant", Type="String"
    )
    monkeypatch.setenv("USER_SERVICE_URL", "http://env-user")

    cfg = config.load_config()

    assert cfg.user_service_url == "http://env-user"
    assert cfg.tenant_service_url == "http://ssm-tenant"


@mock_aws
def test_custom_parameter_names(monkeypatch: pytest.MonkeyPatch) -> None:
    ssm = boto3.client("ssm", region_name=_REGION)
    ssm.put_parameter(Name="/dev/user-url", Value="http://dev-user", Type="String")
    ssm.put_parameter(Name="/dev/tenant-url", Value="http://dev-tenant", Type="String")
    monkeypatch.setenv("USER_SERVICE_URL_PARAM", "/dev/user-url")
    monkeypatch.setenv("TENANT_SERVICE_URL_PARAM", "/dev/tenant-url")

    cfg = config.load_config()

    assert cfg.user_service_url == "http://dev-user"
    assert cfg.tenant_service_url == "http://dev-tenant"


@mock_aws
def test_missing_everywhere_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="User-management"):
        config.load_config()


def test_ssm_failure_is_treated_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenSsm:
        def get_parameters(self, **_kwargs):
            raise RuntimeError("ssm unavailable")

    monkeypatch.setattr(config, "get_ssm", lambda: BrokenSsm())
    monkeypatch.setenv("USER_SERVICE_URL", "http://u")

    with pytest.raises(ConfigurationError, match="Tenant-management"):
        config.load_config()


def test_missing_parameters_are_cached_for_the_ttl(monkeypatch: pytest.MonkeyPatch) -> None:
    class CountingSsm:
        def __init__(self) -> None:
            self.calls = 0

        def get_parameters(self, **_kwargs):
            self.calls += 1
            return {"Parameters": [], "InvalidParameters": _kwargs["Names"]}

    ssm = CountingSsm()
    monkeypatch.setattr(config, "get_ssm", lambda: ssm)

    for _ in range(3):
        with pytest.raises(ConfigurationError):
            config.load_config()

    assert ssm.calls == 1
