"""Tenant provisioning saga.

Steps run in :class:`ProvisioningStep` order. Each successful step is written
to a :class:`ProvisioningRun` keyed by the principal id, so calling
``provision`` again after a fatal failure resumes at the first unfinished
step instead of creating a second tenant.

Fatal failures return ``ServiceResult.fail`` immediately. Tolerated failures
(additional branches, treasuries, profile link) are logged and collected in
``ServiceResult.warnings``.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..auth.model import Principal
from ..auth.provider import AuthProvider, is_already_registered
from ..core.enums import ProvisioningStep, Role
from ..core.exceptions import AuthenticationError, DomainError, StoreError
from ..core.result import ServiceResult
from ..scope.context import ScopeResolver
from ..settings.service import SystemSettingsService
from ..tenants.repository import TenantRepository
from ..users.model import Profile
from ..users.repository import ProfileRepository
from .model import CreatedBranch, ProvisioningRequest, ProvisioningRun
from .repository import ProvisioningRunRepository

logger = logging.getLogger(__name__)

ALREADY_PROVISIONED = "ALREADY_PROVISIONED"


class ProvisioningFailed(DomainError):
    """A fatal step failure; aborts the run."""

    default_code = "SETUP_FAILED"


class ProvisioningService:
    def __init__(
        self,
        auth: AuthProvider,
        tenants: TenantRepository,
        profiles: ProfileRepository,
        settings: SystemSettingsService,
        runs: ProvisioningRunRepository,
    ):
        self._auth = auth
        self._tenants = tenants
        self._profiles = profiles
        self._settings = settings
        self._runs = runs

    def provision(self, request: ProvisioningRequest, resolver: Optional[ScopeResolver] = None) -> ServiceResult:
        warnings: list[str] = []
        try:
            request.validate()
            principal = self._resolve_principal(request)
            run = self._start_run(principal.id, restart=request.restart)

            if run.is_completed:
                return self._already_provisioned(principal, run.tenant_id, run.main_branch_id, resolver)
            if not run.completed_steps and not request.restart:
                linked = self._linked_profile(principal.id)
                if linked is not None:
                    return self._already_provisioned(principal, linked.tenant_id, linked.branch_id, resolver)

            run = self._save(run.mark(ProvisioningStep.AUTH_RESOLVE), warnings)
            run = self._create_tenant(run, request, warnings)
            run = self._create_main_branch(run, request, warnings)
            run = self._create_additional_branches(run, request, warnings)
            run = self._create_treasuries(run, warnings)
            run, profile = self._link_profile(run, principal, request, warnings)
            run = self._finalize_settings(run, principal, warnings)
        except DomainError as e:
            logger.error("Provisioning failed (%s): %s", e.code, e.message)
            return ServiceResult.from_error(e)

        run = self._save(run.mark(ProvisioningStep.DONE, is_completed=True), warnings)
        if resolver is not None:
            resolver.set_tenant(run.tenant_id)
            resolver.set_branch(run.main_branch_id)

        logger.info(
            "Setup completed: tenant=%s main_branch=%s user=%s (%d warnings)",
            run.tenant_id,
            run.main_branch_id,
            principal.id,
            len(warnings),
        )
        return ServiceResult.ok(
            warnings=warnings,
            tenant_id=run.tenant_id,
            main_branch_id=run.main_branch_id,
            profile=profile.to_dict(),
        )

    # -------- AuthResolve --------
    def _resolve_principal(self, request: ProvisioningRequest) -> Principal:
        try:
            current = self._auth.get_current_principal()
        except DomainError as e:
            logger.warning("Could not read current principal: %s", e.message)
            current = None
        if current is not None:
            logger.info("Using existing authenticated user: %s", current.email)
            return current

        admin = request.admin
        if admin is None or not admin.email or not admin.password or not admin.full_name:
            raise ProvisioningFailed(
                "Admin credentials (email, password and full name) are required for setup.",
                "MISSING_ADMIN_CREDENTIALS",
            )

        try:
            principal = self._auth.register(admin.email, admin.password, {"full_name": admin.full_name})
            logger.info("Created user account: %s", principal.email)
            return principal
        except DomainError as e:
            if not (isinstance(e, AuthenticationError) and is_already_registered(e)):
                raise ProvisioningFailed(f"Failed to create user account: {e.message}", "SIGNUP_FAILED") from e
            logger.info("User already registered, signing in: %s", admin.email)

        try:
            return self._auth.sign_in(admin.email, admin.password)
        except DomainError as e:
            raise ProvisioningFailed(f"Failed to sign in: {e.message}", "SIGNIN_FAILED") from e

    # -------- run cursor --------
    def _start_run(self, principal_id: str, *, restart: bool) -> ProvisioningRun:
        if restart:
            self._runs.delete_run(principal_id)
            logger.info("Restarting provisioning for %s", principal_id)
            return ProvisioningRun(principal_id=principal_id)
        try:
            run = self._runs.get_run(principal_id)
        except StoreError as e:
            if not e.is_missing:
                raise
            run = None
        if run is not None and run.completed_steps:
            logger.info("Resuming provisioning for %s after %s", principal_id, run.completed_steps[-1].value)
        return run or ProvisioningRun(principal_id=principal_id)

    def _save(self, run: ProvisioningRun, warnings: list[str]) -> ProvisioningRun:
        try:
            self._runs.save_run(run)
        except StoreError as e:
            msg = f"Could not record provisioning progress: {e.message}"
            logger.error(msg)
            warnings.append(msg)
        return run

    def _linked_profile(self, principal_id: str) -> Optional[Profile]:
        try:
            profile = self._profiles.get_profile(principal_id)
        except StoreError as e:
            logger.warning("Could not read profile %s: %s", principal_id, e.message)
            return None
        return profile if profile is not None and profile.tenant_id else None

    def _already_provisioned(
        self,
        principal: Principal,
        tenant_id: Optional[str],
        branch_id: Optional[str],
        resolver: Optional[ScopeResolver],
    ) -> ServiceResult:
        logger.info("User %s is already linked to tenant %s; nothing created", principal.id, tenant_id)
        if resolver is not None:
            resolver.set_tenant(tenant_id)
            resolver.set_branch(branch_id)
        try:
            profile = self._profiles.get_profile(principal.id)
        except StoreError:
            profile = None
        return ServiceResult.ok(
            warnings=[f"{ALREADY_PROVISIONED}: pass restart to create a new company"],
            tenant_id=tenant_id,
            main_branch_id=branch_id,
            profile=profile.to_dict() if profile else None,
            already_provisioned=True,
        )

    # -------- TenantCreate / MainBranchCreate (fatal) --------
    def _create_tenant(self, run: ProvisioningRun, request: ProvisioningRequest, warnings: list[str]) -> ProvisioningRun:
        if run.has(ProvisioningStep.TENANT_CREATE):
            return run
        try:
            tenant = self._tenants.create_tenant(name=request.company_name, industry_type=request.industry_type)
        except StoreError as e:
            raise ProvisioningFailed(f"Failed to create tenant: {e.message}", "CREATE_TENANT_FAILED") from e
        logger.info("Tenant created: %s (%s)", tenant.name, tenant.id)
        return self._save(run.mark(ProvisioningStep.TENANT_CREATE, tenant_id=tenant.id), warnings)

    def _create_main_branch(
        self, run: ProvisioningRun, request: ProvisioningRequest, warnings: list[str]
    ) -> ProvisioningRun:
        if run.has(ProvisioningStep.MAIN_BRANCH_CREATE):
            return run
        cfg = request.main_branch
        try:
            branch = self._tenants.create_branch(
                tenant_id=run.tenant_id, name=cfg.name.strip(), currency=cfg.currency, is_main=True
            )
        except StoreError as e:
            raise ProvisioningFailed(
                f'Failed to create branch "{cfg.name}": {e.message}', "CREATE_MAIN_BRANCH_FAILED"
            ) from e
        logger.info("Main branch created: %s (%s, %s)", branch.name, branch.currency, branch.id)
        created = CreatedBranch(branch.id, branch.name, branch.currency, True, request.main_position)
        run = run.with_branch(created)
        return self._save(run.mark(ProvisioningStep.MAIN_BRANCH_CREATE, main_branch_id=branch.id), warnings)

    # -------- AdditionalBranchesCreate / TreasuriesCreate (tolerated) --------
    def _create_additional_branches(
        self, run: ProvisioningRun, request: ProvisioningRequest, warnings: list[str]
    ) -> ProvisioningRun:
        if run.has(ProvisioningStep.ADDITIONAL_BRANCHES_CREATE):
            return run
        for position, cfg in request.additional_branches():
            if run.has_branch_at(position):
                continue
            try:
                branch = self._tenants.create_branch(
                    tenant_id=run.tenant_id, name=cfg.name.strip(), currency=cfg.currency, is_main=False
                )
            except StoreError as e:
                msg = f'Failed to create branch "{cfg.name}": {e.message}'
                logger.warning(msg)
                warnings.append(msg)
                continue
            logger.info("Branch created: %s (%s, %s)", branch.name, branch.currency, branch.id)
            run = self._save(
                run.with_branch(CreatedBranch(branch.id, branch.name, branch.currency, False, position)), warnings
            )
        return self._save(run.mark(ProvisioningStep.ADDITIONAL_BRANCHES_CREATE), warnings)

    def _create_treasuries(self, run: ProvisioningRun, warnings: list[str]) -> ProvisioningRun:
        if run.has(ProvisioningStep.TREASURIES_CREATE):
            return run
        for branch in run.branches:
            if branch.id in run.treasury_branch_ids:
                continue
            try:
                self._tenants.create_treasury(
                    tenant_id=run.tenant_id,
                    branch_id=branch.id,
                    name=f"{branch.name} Safe",
                    currency=branch.currency,
                )
            except StoreError as e:
                msg = f'Failed to create treasury for branch "{branch.name}": {e.message}'
                logger.warning(msg)
                warnings.append(msg)
                continue
            logger.info("Treasury created for branch %s (%s)", branch.name, branch.currency)
            run = self._save(run.with_treasury(branch.id), warnings)
        return self._save(run.mark(ProvisioningStep.TREASURIES_CREATE), warnings)

    # -------- ProfileLink (tolerated) --------
    def _link_profile(
        self,
        run: ProvisioningRun,
        principal: Principal,
        request: ProvisioningRequest,
        warnings: list[str],
    ) -> tuple[ProvisioningRun, Profile]:
        admin_name = (
            (request.admin.full_name if request.admin else None)
            or principal.full_name
            or (principal.email.split("@")[0] if principal.email else None)
            or "Super Admin"
        )
        profile = Profile(
            id=principal.id,
            email=principal.email,
            full_name=admin_name,
            role=Role.SUPER_ADMIN,
            tenant_id=run.tenant_id,
            branch_id=run.main_branch_id,
        )
        try:
            self._profiles.upsert_profile(profile)
            logger.info("User %s linked to tenant %s / branch %s", principal.id, run.tenant_id, run.main_branch_id)
        except StoreError as e:
            msg = f"Failed to link user to branch: {e.message}"
            logger.error(msg)
            warnings.append(msg)

        try:
            self._auth.update_metadata(
                principal.id,
                {
                    "full_name": admin_name,
                    "role": Role.SUPER_ADMIN.value,
                    "tenant_id": run.tenant_id,
                    "branch_id": run.main_branch_id,
                },
            )
        except DomainError as e:
            logger.warning("Error updating user metadata (non-critical): %s", e.message)

        return self._save(run.mark(ProvisioningStep.PROFILE_LINK), warnings), profile

    # -------- SettingsFinalize (fatal) --------
    def _finalize_settings(self, run: ProvisioningRun, principal: Principal, warnings: list[str]) -> ProvisioningRun:
        if run.has(ProvisioningStep.SETTINGS_FINALIZE):
            return run
        result = self._settings.mark_setup_completed(principal.id)
        if not result.success:
            raise ProvisioningFailed(result.error or "Failed to mark setup as completed", result.error_code)
        return self._save(run.mark(ProvisioningStep.SETTINGS_FINALIZE), warnings)
