"""
system_registration.workflow — System admin provisioning workflow.

create_system_admin runs three strictly sequential stages:
  1. existence check   (user-management GET /pool/{userName})
  2. registration      (user-management POST /system)
  3. persistence       (tenant-management POST /)

Each stage's failure maps to one RegistrationError subclass. Nothing is
retried and a persistence failure does not roll back stage 2.

destroy_system deletes all tenant infrastructure. Downstream failures are
logged and swallowed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from aws_lambda_powertools import Logger

from system_registration.config import RegistrationConfig
from system_registration.downstream import TenantServiceClient, UserServiceClient
from system_registration.exceptions import (
    AdminUserConflict,
    DownstreamError,
    DownstreamNotFound,
    DownstreamRemoteError,
    DownstreamTransportError,
    PersistenceFailed,
    RegistrationFailed,
    UpstreamError,
    UpstreamUnavailable,
)
from system_registration.models import (
    IdentityInfrastructure,
    ProvisionedTenant,
    TenantRegistration,
    generate_tenant_id,
)

logger = Logger(service="system-registration", child=True)


@dataclass(frozen=True)
class RegistrationDependencies:
    config: RegistrationConfig
    user_service: UserServiceClient
    tenant_service: TenantServiceClient


def build_dependencies(config: RegistrationConfig, session: Any) -> RegistrationDependencies:
    return RegistrationDependencies(
        config=config,
        user_service=UserServiceClient(session, config),
        tenant_service=TenantServiceClient(session, config),
    )


class ProvisioningWorkflow:
    def __init__(
        self,
        deps: RegistrationDependencies,
        *,
        id_factory: Callable[[], str] = generate_tenant_id,
    ) -> None:
        self._deps = deps
        self._id_factory = id_factory

    def create_system_admin(self, registration: TenantRegistration) -> str:
        """Register a new system admin tenant and return its generated id."""
        tenant = registration.with_id(self._id_factory())
        logger.debug("Creating system admin user", extra={"tenant_id": tenant.id})

        self._verify_user_doesnt_exist(tenant)
        provisioned = self._register_tenant_admin(tenant)
        self._save_tenant_data(provisioned)

        logger.info("System admin user registered", extra={"tenant_id": tenant.id})
        return str(tenant.id)

    def destroy_system(self) -> None:
        """Delete user pools, identity pools, roles and policies for all tenants."""
        self._delete_infra()
        if self._deps.config.delete_tables_enabled:
            self._delete_tables()
        logger.debug("System Infrastructure & Tables removed")

    def _verify_user_doesnt_exist(self, tenant: TenantRegistration) -> None:
        user_name = tenant.user_name
        logger.debug("Checking tenant exists", extra={"user_name": user_name})
        try:
            existing = self._deps.user_service.get_pool_user(user_name)
        except DownstreamNotFound:
            return
        except DownstreamRemoteError as exc:
            raise UpstreamError(
                f"Failed to check if tenant {user_name} exists. "
                f"Status: {exc.status_code} Body: {exc.body}",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc
        except DownstreamTransportError as exc:
            raise UpstreamUnavailable(
                f"Failed to check if tenant {user_name} exists. Error: {exc}"
            ) from exc

        if isinstance(existing, dict) and existing.get("userName") == user_name:
            raise AdminUserConflict(user_name)

    def _register_tenant_admin(self, tenant: TenantRegistration) -> ProvisionedTenant:
        logger.debug("Registering tenant admin", extra={"user_name": tenant.user_name})
        try:
            response = self._deps.user_service.register_system(tenant.registration_payload())
            infrastructure = IdentityInfrastructure.from_registration_response(response)
        except (DownstreamError, ValueError) as exc:
            raise RegistrationFailed(f"Error registering new system admin user: {exc}") from exc
        return ProvisionedTenant(registration=tenant, infrastructure=infrastructure)

    def _save_tenant_data(self, tenant: ProvisionedTenant) -> None:
        tenant_id = str(tenant.registration.id)
        logger.info("Saving tenant data", extra={"tenant_id": tenant_id})
        try:
            self._deps.tenant_service.save_tenant(tenant.to_record())
        except DownstreamError as exc:
            raise PersistenceFailed(
                f"Failed to save tenant data. Error: {exc}",
                tenant_id=tenant_id,
            ) from exc

    def _delete_infra(self) -> None:
        try:
            self._deps.user_service.delete_tenants()
        except DownstreamError as exc:
            logger.error("Error Removing Infrastructure", extra={"error": str(exc)})
            return
        logger.info("Removed Infrastructure")

    def _delete_tables(self) -> None:
        try:
            self._deps.user_service.delete_tables()
        except DownstreamError as exc:
            logger.error("Error Removing Tables", extra={"error": str(exc)})
            return
        logger.info("Removed Tables")
