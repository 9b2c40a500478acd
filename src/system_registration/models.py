"""
system_registration.models — Tenant registration data model.

  TenantRegistration      — caller-supplied registration fields plus the assigned id
  IdentityInfrastructure  — user pool, identity pool, roles and policies returned
                            by the user-management service
  ProvisionedTenant       — the record persisted to the tenant-management service

Wire field names are camelCase (plus the UserPoolId / IdentityPoolId casing
used by the user-management service); attribute names are snake_case.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

TENANT_ID_PREFIX = "SYSADMIN"


class ProvisionedStatus(StrEnum):
    ACTIVE = "Active"


def generate_tenant_id() -> str:
    """Return ``SYSADMIN`` followed by a random UUID4 as 32 hex characters."""
    return TENANT_ID_PREFIX + uuid.uuid4().hex


def _text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class TenantRegistration:
    """Tenant registration request. ``id`` is None until the workflow assigns one."""

    user_name: str
    company_name: str | None = None
    account_name: str | None = None
    owner_name: str | None = None
    tier: str | None = None
    email: str | None = None
    role: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    id: str | None = None

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> TenantRegistration:
        user_name = _text(body.get("userName"))
        if user_name is None or not user_name.strip():
            raise ValueError("userName is required")
        return cls(
            user_name=user_name,
            company_name=_text(body.get("companyName")),
            account_name=_text(body.get("accountName")),
            owner_name=_text(body.get("ownerName")),
            tier=_text(body.get("tier")),
            email=_text(body.get("email")),
            role=_text(body.get("role")),
            first_name=_text(body.get("firstName")),
            last_name=_text(body.get("lastName")),
        )

    def with_id(self, tenant_id: str) -> TenantRegistration:
        return replace(self, id=tenant_id)

    def registration_payload(self) -> dict[str, Any]:
        """Body for the user-management system registration endpoint."""
        return {
            "tenant_id": self.id,
            "companyName": self.company_name,
            "accountName": self.account_name,
            "ownerName": self.owner_name,
            "tier": self.tier,
            "email": self.email,
            "userName": self.user_name,
            "role": self.role,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }


def _nested(data: dict[str, Any], *path: str) -> str:
    node: Any = data
    for part in path:
        if not isinstance(node, dict) or part not in node:
            raise ValueError(f"Registration response is missing {'.'.join(path)}")
        node = node[part]
    if node is None:
        raise ValueError(f"Registration response is missing {'.'.join(path)}")
    return str(node)


@dataclass(frozen=True)
class IdentityInfrastructure:
    user_pool_id: str
    identity_pool_id: str
    system_admin_role: str
    system_support_role: str
    trust_role: str
    system_admin_policy: str
    system_support_policy: str

    @classmethod
    def from_registration_response(cls, data: Any) -> IdentityInfrastructure:
        """Extract infrastructure ids from the nested pool/identityPool/role/policy objects.

        Raises ValueError if any nested object or field is missing.
        """
        if not isinstance(data, dict):
            raise ValueError("Registration response must be a JSON object")
        return cls(
            user_pool_id=_nested(data, "pool", "UserPool", "Id"),
            identity_pool_id=_nested(data, "identityPool", "IdentityPoolId"),
            system_admin_role=_nested(data, "role", "systemAdminRole"),
            system_support_role=_nested(data, "role", "systemSupportRole"),
            trust_role=_nested(data, "role", "trustRole"),
            system_admin_policy=_nested(data, "policy", "systemAdminPolicy"),
            system_support_policy=_nested(data, "policy", "systemSupportPolicy"),
        )


@dataclass(frozen=True)
class ProvisionedTenant:
    registration: TenantRegistration
    infrastructure: IdentityInfrastructure
    status: ProvisionedStatus = ProvisionedStatus.ACTIVE

    def to_record(self) -> dict[str, Any]:
        """Body for the tenant-management service."""
        reg = self.registration
        infra = self.infrastructure
        return {
            "id": reg.id,
            "companyName": reg.company_name,
            "accountName": reg.account_name,
            "ownerName": reg.owner_name,
            "tier": reg.tier,
            "email": reg.email,
            "status": self.status.value,
            "UserPoolId": infra.user_pool_id,
            "IdentityPoolId": infra.identity_pool_id,
            "systemAdminRole": infra.system_admin_role,
            "systemSupportRole": infra.system_support_role,
            "trustRole": infra.trust_role,
            "systemAdminPolicy": infra.system_admin_policy,
            "systemSupportPolicy": infra.system_support_policy,
            "userName": reg.user_name,
        }
