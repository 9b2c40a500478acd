"""
system_registration.handler — System registration REST API Lambda.

Routes:
  POST   /sys/admin   register a system admin tenant
  DELETE /sys/admin   remove all tenant infrastructure
  GET    /sys/health  liveness check (never touches downstream services)

Every response carries permissive CORS headers; OPTIONS on any path is
answered with 200 and an empty body.

Only AdminUserConflict and invalid input are returned to the caller with
their message. Every other create failure is logged and answered with a
generic 500. Destroy failures are answered with a generic 400.
"""

from __future__ import annotations

import base64
import json
from typing import Any
from urllib.parse import parse_qsl

import requests
from aws_lambda_powertools import Logger
from aws_lambda_powertools.logging import correlation_paths

from system_registration.config import load_config, service_name
from system_registration.exceptions import ConfigurationError, RegistrationError
from system_registration.models import TenantRegistration
from system_registration.workflow import (
    ProvisioningWorkflow,
    RegistrationDependencies,
    build_dependencies,
)

logger = Logger(service="system-registration")

ADMIN_PATH = "/sys/admin"
HEALTH_PATH = "/sys/health"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS, PUT, PATCH, DELETE",
    "Access-Control-Allow-Headers": (
        "Content-Type, Origin, X-Amz-Date, Authorization, X-Api-Key, "
        "X-Amz-Security-Token, Access-Control-Allow-Headers, X-Requested-With, "
        "Access-Control-Allow-Origin"
    ),
}

# Connection reuse across warm starts
_session: requests.Session | None = None


def get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _dependencies() -> RegistrationDependencies:
    return build_dependencies(load_config(), get_session())


def _response(status_code: int, body: str, content_type: str | None) -> dict[str, Any]:
    headers = dict(CORS_HEADERS)
    if content_type is not None:
        headers["Content-Type"] = content_type
    return {"statusCode": status_code, "headers": headers, "body": body}


def _json_response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return _response(status_code, json.dumps(body), "application/json")


def _text_response(status_code: int, text: str) -> dict[str, Any]:
    return _response(status_code, text, "text/plain; charset=utf-8")


def _http_method(event: dict[str, Any]) -> str:
    method = event.get("httpMethod")
    if not method:
        method = event.get("requestContext", {}).get("http", {}).get("method")
    return str(method or "").upper()


def _request_path(event: dict[str, Any]) -> str:
    path = event.get("path")
    if not path:
        path = event.get("requestContext", {}).get("http", {}).get("path")
    return str(path or "").rstrip("/")


def _header(event: dict[str, Any], name: str) -> str | None:
    headers = event.get("headers") or {}
    for key, value in headers.items():
        if str(key).lower() == name.lower():
            return str(value)
    return None


def _require_body(event: dict[str, Any]) -> dict[str, Any]:
    raw_body = event.get("body")
    if raw_body is None or raw_body == "":
        raise ValueError("Request body is required")
    if not isinstance(raw_body, str):
        raise ValueError("Request body must be a string")
    if event.get("isBase64Encoded"):
        try:
            raw_body = base64.b64decode(raw_body).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValueError("Request body must be UTF-8 text") from exc
        except ValueError as exc:
            raise ValueError("Malformed base64 body") from exc

    content_type = (_header(event, "Content-Type") or "").lower()
    if content_type.startswith("application/x-www-form-urlencoded"):
        return dict(parse_qsl(raw_body, keep_blank_values=True))

    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError as exc:
        raise ValueError("Malformed JSON body") from exc
    if not isinstance(body, dict):
        raise ValueError("JSON body must be an object")
    return body


def _handle_create(event: dict[str, Any]) -> dict[str, Any]:
    try:
        registration = TenantRegistration.from_body(_require_body(event))
    except ValueError as exc:
        return _json_response(400, {"error": str(exc)})

    logger.append_keys(user_name=registration.user_name)
    try:
        workflow = ProvisioningWorkflow(_dependencies())
        tenant_id = workflow.create_system_admin(registration)
    except RegistrationError as exc:
        if exc.user_facing:
            logger.warning(str(exc), extra={"code": exc.code})
            return _json_response(400, {"error": str(exc)})
        logger.exception("System admin registration failed", extra={"code": exc.code})
        return _text_response(500, "Server Error")
    except ConfigurationError:
        logger.exception("System registration is not configured")
        return _text_response(500, "Server Error")

    return _text_response(200, f"System admin user {tenant_id} registered")


def _handle_destroy() -> dict[str, Any]:
    try:
        ProvisioningWorkflow(_dependencies()).destroy_system()
    except Exception:
        logger.exception("Error removing system")
        return _text_response(400, "Error removing system")
    return _text_response(200, "System Infrastructure & Tables removed")


def _handle_health() -> dict[str, Any]:
    return _json_response(200, {"service": service_name(), "isAlive": True})


@logger.inject_lambda_context(
    correlation_id_path=correlation_paths.API_GATEWAY_REST,
    clear_state=True,
    log_event=False,
)
def lambda_handler(event: dict[str, Any], _context: Any) -> dict[str, Any]:
    method = _http_method(event)
    path = _request_path(event)

    if method == "OPTIONS":
        return _response(200, "", None)

    try:
        if path == HEALTH_PATH:
            if method == "GET":
                return _handle_health()
            return _json_response(405, {"error": "Method not allowed"})

        if path == ADMIN_PATH:
            if method == "POST":
                return _handle_create(event)
            if method == "DELETE":
                return _handle_destroy()
            return _json_response(405, {"error": "Method not allowed"})

        return _json_response(404, {"error": "Not found"})
    except Exception:
        logger.exception("Unhandled system registration handler error")
        return _text_response(500, "Server Error")
