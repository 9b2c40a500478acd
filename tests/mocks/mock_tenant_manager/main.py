"""Mock tenant-management service — FastAPI on :8768.

Endpoints:
    POST /          Store a tenant record keyed by its id.
    GET  /{id}      Return a stored tenant record.
    GET  /health    Service health check.
"""

import logging
import os
from typing import Any

from fastapi import FastAPI, HTTPException, Request

app = FastAPI(title="mock-tenant-manager")

_LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=_LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("mock-tenant-manager")

_TENANTS: dict[str, dict[str, Any]] = {}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/")
async def create_tenant(request: Request) -> dict[str, Any]:
    tenant = await request.json()
    if not tenant.get("id"):
        raise HTTPException(status_code=400, detail="id is required")
    _TENANTS[tenant["id"]] = tenant
    logger.info("Tenant saved | id=%s", tenant["id"])
    return tenant


@app.get("/{tenant_id}")
def get_tenant(tenant_id: str) -> dict[str, Any]:
    tenant = _TENANTS.get(tenant_id)
    if tenant is None:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant
