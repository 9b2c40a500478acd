"""
system_registration — System admin tenant registration service.

Orchestrates the user-management and tenant-management services to
provision a system admin tenant, and tears that infrastructure down.
"""

from system_registration.exceptions import (
    AdminUserConflict,
    PersistenceFailed,
    RegistrationError,
    RegistrationFailed,
    UpstreamError,
    UpstreamUnavailable,
)
from system_registration.models import TenantRegistration, generate_tenant_id
from system_registration.workflow import ProvisioningWorkflow, RegistrationDependencies

__all__ = [
    "AdminUserConflict",
    "PersistenceFailed",
    "ProvisioningWorkflow",
    "RegistrationDependencies",
    "RegistrationError",
    "RegistrationFailed",
    "TenantRegistration",
    "UpstreamError",
    "UpstreamUnavailable",
    "generate_tenant_id",
]
