"""
system_registration.config — Environment-driven service configuration.

Downstream base URLs come from USER_SERVICE_URL / TENANT_SERVICE_URL.
When unset, they are read from SSM Parameter Store (parameter names from
USER_SERVICE_URL_PARAM / TENANT_SERVICE_URL_PARAM) and cached for 60s.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

import boto3
from aws_lambda_powertools import Logger

from system_registration.exceptions import ConfigurationError

logger = Logger(service="system-registration", child=True)

DEFAULT_SERVICE_NAME = "System Registration"
DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_PORT = 3011
DEFAULT_USER_SERVICE_URL_PARAM = "/platform/config/user-service-url"
DEFAULT_TENANT_SERVICE_URL_PARAM = "/platform/config/tenant-service-url"
_SSM_CACHE_TTL_SECONDS = 60

_TRUE_VALUES = {"1", "true", "yes", "on"}

_ssm_client = None
_ssm_cache: dict[str, str] = {}
_ssm_cache_expiry: float = 0


@dataclass(frozen=True)
class RegistrationConfig:
    user_service_url: str
    tenant_service_url: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    delete_tables_enabled: bool = False
    service_name: str = DEFAULT_SERVICE_NAME

    @property
    def pool_url(self) -> str:
        return f"{self.user_service_url}/pool"

    @property
    def system_url(self) -> str:
        return f"{self.user_service_url}/system"

    @property
    def delete_infra_url(self) -> str:
        return f"{self.user_service_url}/tenants"

    @property
    def delete_tables_url(self) -> str:
        return f"{self.user_service_url}/tables"


def get_ssm():
    global _ssm_client
    if _ssm_client is None:
        region = os.environ.get("AWS_REGION", "eu-west-2")
        _ssm_client = boto3.client("ssm", region_name=region)
    return _ssm_client


def reset_cache() -> None:
    global _ssm_client, _ssm_cache, _ssm_cache_expiry
    _ssm_client = None
    _ssm_cache = {}
    _ssm_cache_expiry = 0


def _ssm_parameters(names: list[str]) -> dict[str, str]:
    """Fetch and cache parameter values from SSM. Missing parameters are omitted."""
    global _ssm_cache, _ssm_cache_expiry
    now = time.time()
    if now < _ssm_cache_expiry:
        return _ssm_cache

    try:
        response: dict[str, Any] = get_ssm().get_parameters(Names=names)
    except Exception:
        logger.exception("Failed to fetch config from SSM", extra={"names": names})
        # Stale values are better than none
        return _ssm_cache

    _ssm_cache = {
        str(p.get("Name")): str(p.get("Value"))
        for p in response.get("Parameters", [])
        if p.get("Name") and p.get("Value")
    }
    _ssm_cache_expiry = now + _SSM_CACHE_TTL_SECONDS
    return _ssm_cache


def _strip(url: str | None) -> str | None:
    if url is None:
        return None
    url = url.strip().rstrip("/")
    return url or None


def _timeout() -> float:
    raw = os.environ.get("DOWNSTREAM_TIMEOUT_SECONDS")
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError("DOWNSTREAM_TIMEOUT_SECONDS must be a number") from exc
    if value <= 0:
        raise ConfigurationError("DOWNSTREAM_TIMEOUT_SECONDS must be positive")
    return value


def _flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUE_VALUES


def service_name() -> str:
    return os.environ.get("SERVICE_NAME", DEFAULT_SERVICE_NAME)


def service_port() -> int:
    raw = os.environ.get("SYS_REGISTRATION_PORT")
    if raw is None or not raw.strip():
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError("SYS_REGISTRATION_PORT must be an integer") from exc


def load_config() -> RegistrationConfig:
    user_url = _strip(os.environ.get("USER_SERVICE_URL"))
    tenant_url = _strip(os.environ.get("TENANT_SERVICE_URL"))

    if user_url is None or tenant_url is None:
        user_param = os.environ.get("USER_SERVICE_URL_PARAM", DEFAULT_USER_SERVICE_URL_PARAM)
        tenant_param = os.environ.get(
            "TENANT_SERVICE_URL_PARAM", DEFAULT_TENANT_SERVICE_URL_PARAM
        )
        params = _ssm_parameters([user_param, tenant_param])
        user_url = user_url or _strip(params.get(user_param))
        tenant_url = tenant_url or _strip(params.get(tenant_param))

    if user_url is None:
        raise ConfigurationError("User-management service URL is not configured")
    if tenant_url is None:
        raise ConfigurationError("Tenant-management service URL is not configured")

    return RegistrationConfig(
        user_service_url=user_url,
        tenant_service_url=tenant_url,
        timeout_seconds=_timeout(),
        delete_tables_enabled=_flag("DELETE_TABLES_ENABLED"),
        service_name=service_name(),
    )
