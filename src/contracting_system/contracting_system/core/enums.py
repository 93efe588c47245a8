from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Profile roles. SUPER_ADMIN is the provisioning role."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"
    USER = "user"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class CategoryType(str, Enum):
    PROJECT = "project"
    ADMINISTRATIVE = "administrative"


class WorkerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TemplateType(str, Enum):
    INTRODUCTION = "introduction"
    SCOPE = "scope"
    EXCLUSION = "exclusion"
    FACILITY = "facility"
    TERMS = "terms"


class ProvisioningStep(str, Enum):
    """Saga states, in execution order."""

    AUTH_RESOLVE = "auth_resolve"
    TENANT_CREATE = "tenant_create"
    MAIN_BRANCH_CREATE = "main_branch_create"
    ADDITIONAL_BRANCHES_CREATE = "additional_branches_create"
    TREASURIES_CREATE = "treasuries_create"
    PROFILE_LINK = "profile_link"
    SETTINGS_FINALIZE = "settings_finalize"
    DONE = "done"
