"""
system_registration.downstream — HTTP clients for the user- and tenant-management services.

Every call carries an explicit timeout and is never retried. Failures are
raised as typed DownstreamError variants:
  - DownstreamTransportError: no response (connection error, timeout)
  - DownstreamNotFound:       user-management reported "User not found"
  - DownstreamRemoteError:    any other non-2xx response
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import requests
from aws_lambda_powertools import Logger

from system_registration.config import RegistrationConfig
from system_registration.exceptions import (
    DownstreamNotFound,
    DownstreamRemoteError,
    DownstreamTransportError,
)

logger = Logger(service="system-registration", child=True)

USER_NOT_FOUND = "User not found"


def _decode(response: Any) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class _DownstreamClient:
    def __init__(self, session: Any, *, timeout: float) -> None:
        self._session = session
        self._timeout = timeout

    def _request(self, method: str, url: str, *, json: Any = None) -> Any:
        logger.debug("Downstream request", extra={"method": method, "url": url})
        try:
            response = self._session.request(method, url, json=json, timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            raise DownstreamTransportError(
                f"{method} {url} failed: {exc}",
                url=url,
            ) from exc

        body = _decode(response)
        logger.debug(
            "Downstream response",
            extra={"method": method, "url": url, "status_code": response.status_code},
        )
        if not 200 <= response.status_code < 300:
            self._raise_for_body(method, url, response.status_code, body)
        return body

    def _raise_for_body(self, method: str, url: str, status_code: int, body: Any) -> None:
        raise DownstreamRemoteError(
            f"{method} {url} returned {status_code}",
            url=url,
            status_code=status_code,
            body=body,
        )


class UserServiceClient(_DownstreamClient):
    """Client for the user-management service."""

    def __init__(self, session: Any, config: RegistrationConfig) -> None:
        super().__init__(session, timeout=config.timeout_seconds)
        self._config = config

    def _raise_for_body(self, method: str, url: str, status_code: int, body: Any) -> None:
        if isinstance(body, dict) and body.get("Error") == USER_NOT_FOUND:
            raise DownstreamNotFound(
                f"{method} {url} returned {status_code}: {USER_NOT_FOUND}",
                url=url,
                status_code=status_code,
                body=body,
            )
        super()._raise_for_body(method, url, status_code, body)

    def get_pool_user(self, user_name: str) -> Any:
        url = f"{self._config.pool_url}/{quote(user_name, safe='')}"
        return self._request("GET", url)

    def register_system(self, payload: dict[str, Any]) -> Any:
        return self._request("POST", self._config.system_url, json=payload)

    def delete_tenants(self) -> Any:
        return self._request("DELETE", self._config.delete_infra_url)

    def delete_tables(self) -> Any:
        return self._request("DELETE", self._config.delete_tables_url)


class TenantServiceClient(_DownstreamClient):
    """Client for the tenant-management service."""

    def __init__(self, session: Any, config: RegistrationConfig) -> None:
        super().__init__(session, timeout=config.timeout_seconds)
        self._config = config

    def save_tenant(self, record: dict[str, Any]) -> Any:
        return self._request("POST", self._config.tenant_service_url, json=record)
