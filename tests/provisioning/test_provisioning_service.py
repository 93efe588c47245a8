from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from src.contracting_system.contracting_system.auth.model import Principal
from src.contracting_system.contracting_system.auth.provider import ALREADY_REGISTERED_CODE
from src.contracting_system.contracting_system.core.enums import ProvisioningStep, Role
from src.contracting_system.contracting_system.core.exceptions import AuthenticationError, StoreError, ValidationError
from src.contracting_system.contracting_system.provisioning.model import (
    AdminCredentials,
    BranchConfig,
    ProvisioningRequest,
)
from src.contracting_system.contracting_system.provisioning.service import ProvisioningService
from src.contracting_system.contracting_system.scope import ScopeResolver
from src.contracting_system.contracting_system.settings.service import SystemSettingsService
from src.contracting_system.contracting_system.tenants.model import Branch, Tenant, TreasuryAccount


@dataclass
class InMemoryAuth:
    users: dict[str, tuple[str, Principal]] = field(default_factory=dict)
    current: Optional[Principal] = None
    register_error: Optional[AuthenticationError] = None

    def register(self, email, password, metadata=None):
        if self.register_error is not None:
            raise self.register_error
        if email in self.users:
            raise AuthenticationError("User already registered", ALREADY_REGISTERED_CODE)
        principal = Principal(id=str(uuid.uuid4()), email=email, metadata=dict(metadata or {}))
        self.users[email] = (password, principal)
        self.current = principal
        return principal

    def sign_in(self, email, password):
        stored = self.users.get(email)
        if stored is None or stored[0] != password:
            raise AuthenticationError("Invalid login credentials", "invalid_credentials")
        self.current = stored[1]
        return stored[1]

    def get_current_principal(self):
        return self.current

    def update_metadata(self, principal_id, metadata):
        return self.current

    def sign_out(self):
        self.current = None


@dataclass
class InMemoryTenants:
    fail_tenant: bool = False
    fail_branches: set[str] = field(default_factory=set)
    fail_treasuries: set[str] = field(default_factory=set)
    tenants: list[Tenant] = field(default_factory=list)
    branches: list[Branch] = field(default_factory=list)
    treasuries: list[TreasuryAccount] = field(default_factory=list)

    def create_tenant(self, *, name, industry_type):
        if self.fail_tenant:
            raise StoreError("insert into tenants failed")
        tenant = Tenant(id=str(uuid.uuid4()), name=name, industry_type=industry_type)
        self.tenants.append(tenant)
        return tenant

    def create_branch(self, *, tenant_id, name, currency, is_main):
        if name in self.fail_branches:
            raise StoreError("insert into branches failed")
        branch = Branch(id=str(uuid.uuid4()), tenant_id=tenant_id, name=name, currency=currency, is_main=is_main)
        self.branches.append(branch)
        return branch

    def create_treasury(self, *, tenant_id, branch_id, name, currency):
        if name in self.fail_treasuries:
            raise StoreError("insert into treasury_accounts failed")
        account = TreasuryAccount(
            id=str(uuid.uuid4()), tenant_id=tenant_id, branch_id=branch_id, name=name, currency=currency
        )
        self.treasuries.append(account)
        return account


@dataclass
class InMemoryProfiles:
    fail_profile: bool = False
    profiles: dict[str, Any] = field(default_factory=dict)

    def get_profile(self, profile_id):
        return self.profiles.get(profile_id)

    def upsert_profile(self, profile):
        if self.fail_profile:
            raise StoreError("insert into profiles failed")
        self.profiles[profile.id] = profile
        return profile


@dataclass
class InMemorySettings:
    completed: bool = False
    broken: bool = False

    def fetch_setup_flag(self):
        return self.completed

    def get_settings(self):
        return None

    def update_completion(self, *, completed_at, completed_by):
        if self.broken:
            raise StoreError("settings table locked")
        self.completed = True
        return 1

    def upsert_completion(self, *, completed_at, completed_by):
        if self.broken:
            raise StoreError("settings table locked")
        self.completed = True


@dataclass
class InMemoryRuns:
    runs: dict[str, Any] = field(default_factory=dict)

    def get_run(self, principal_id):
        return self.runs.get(principal_id)

    def save_run(self, run):
        self.runs[run.principal_id] = run

    def delete_run(self, principal_id):
        self.runs.pop(principal_id, None)


@dataclass
class World:
    auth: InMemoryAuth
    tenants: InMemoryTenants
    profiles: InMemoryProfiles
    settings: InMemorySettings
    runs: InMemoryRuns
    service: ProvisioningService


def _world(**tenant_kwargs) -> World:
    auth = InMemoryAuth()
    tenants = InMemoryTenants(**tenant_kwargs)
    profiles = InMemoryProfiles()
    settings = InMemorySettings()
    runs = InMemoryRuns()
    service = ProvisioningService(auth, tenants, profiles, SystemSettingsService(settings), runs)
    return World(auth, tenants, profiles, settings, runs, service)


ADMIN = AdminCredentials(email="owner@example.com", password="s3cret-pass", full_name="Owner")


def _request(*names: str, restart: bool = False) -> ProvisioningRequest:
    branches = tuple(BranchConfig(name=n, currency="SAR", is_main=(i == 0)) for i, n in enumerate(names))
    return ProvisioningRequest(
        company_name="Acme Contracting",
        industry_type="engineering",
        branches=branches,
        admin=ADMIN,
        restart=restart,
    )


def test_creates_exactly_one_tenant_and_one_main_branch():
    world = _world()

    result = world.service.provision(_request("Riyadh"))

    assert result.success is True
    assert len(world.tenants.tenants) == 1
    mains = [b for b in world.tenants.branches if b.is_main]
    assert len(mains) == 1
    assert result["tenant_id"] == world.tenants.tenants[0].id
    assert result["main_branch_id"] == mains[0].id
    assert world.settings.completed is True


def test_each_created_branch_gets_one_treasury_and_branch_failures_are_tolerated():
    world = _world(fail_branches={"Dammam"})

    result = world.service.provision(_request("Riyadh", "Jeddah", "Dammam", "Mecca"))

    assert result.success is True
    created = {b.name for b in world.tenants.branches}
    assert created == {"Riyadh", "Jeddah", "Mecca"}
    assert sorted(t.name for t in world.tenants.treasuries) == ["Jeddah Safe", "Mecca Safe", "Riyadh Safe"]
    assert {t.branch_id for t in world.tenants.treasuries} == {b.id for b in world.tenants.branches}
    assert any("Dammam" in w for w in result.warnings)


def test_treasury_failure_is_a_warning_not_a_failure():
    world = _world(fail_treasuries={"Jeddah Safe"})

    result = world.service.provision(_request("Riyadh", "Jeddah"))

    assert result.success is True
    assert [t.name for t in world.tenants.treasuries] == ["Riyadh Safe"]
    assert any("treasury" in w for w in result.warnings)


def test_profile_is_linked_as_super_admin_and_scope_is_seeded():
    world = _world()
    session: dict = {}
    resolver = ScopeResolver(mirror=session)

    result = world.service.provision(_request("Riyadh"), resolver)

    profile = world.profiles.profiles[world.auth.current.id]
    assert profile.role == Role.SUPER_ADMIN
    assert profile.tenant_id == result["tenant_id"]
    assert profile.branch_id == result["main_branch_id"]
    assert resolver.get_tenant() == result["tenant_id"]
    assert resolver.get_branch() == result["main_branch_id"]
    assert session[ScopeResolver.TENANT_KEY] == result["tenant_id"]


def test_invalid_branch_config_creates_nothing():
    world = _world()
    request = ProvisioningRequest(
        company_name="Acme",
        industry_type="engineering",
        branches=(BranchConfig("A", "SAR", True), BranchConfig("B", "SAR", True)),
        admin=ADMIN,
    )

    result = world.service.provision(request)

    assert result.success is False
    assert result.error_code == "INVALID_BRANCH_CONFIG"
    assert world.tenants.tenants == []
    assert world.auth.users == {}


def test_missing_admin_credentials_without_session_is_fatal():
    world = _world()
    request = ProvisioningRequest(
        company_name="Acme", industry_type="engineering", branches=(BranchConfig("Main", "SAR", True),)
    )

    result = world.service.provision(request)

    assert result.success is False
    assert result.error_code == "MISSING_ADMIN_CREDENTIALS"
    assert world.tenants.tenants == []


def test_reinvoking_with_registered_admin_signs_in_instead_of_creating_second_tenant():
    world = _world()
    first = world.service.provision(_request("Riyadh", "Jeddah"))
    world.auth.sign_out()

    second = world.service.provision(_request("Riyadh", "Jeddah"))

    assert first.success is True and second.success is True
    assert second.get("already_provisioned") is True
    assert second["tenant_id"] == first["tenant_id"]
    assert len(world.tenants.tenants) == 1
    assert len(world.tenants.branches) == 2


def test_wrong_password_for_existing_admin_is_signin_failure():
    world = _world()
    world.service.provision(_request("Riyadh"))
    world.auth.sign_out()
    request = ProvisioningRequest(
        company_name="Acme",
        industry_type="engineering",
        branches=(BranchConfig("Main", "SAR", True),),
        admin=AdminCredentials(email=ADMIN.email, password="wrong", full_name="Owner"),
    )

    result = world.service.provision(request)

    assert result.success is False
    assert result.error_code == "SIGNIN_FAILED"


def test_fatal_failure_then_rerun_resumes_without_duplicating_work():
    world = _world()
    world.settings.broken = True

    failed = world.service.provision(_request("Riyadh", "Jeddah"))

    assert failed.success is False
    assert failed.error_code == "MARK_SETUP_COMPLETE_FAILED"
    run = world.runs.runs[world.auth.current.id]
    assert run.has(ProvisioningStep.TREASURIES_CREATE)
    assert not run.is_completed

    world.settings.broken = False
    resumed = world.service.provision(_request("Riyadh", "Jeddah"))

    assert resumed.success is True
    assert resumed["tenant_id"] == world.tenants.tenants[0].id
    assert len(world.tenants.tenants) == 1
    assert len(world.tenants.branches) == 2
    assert len(world.tenants.treasuries) == 2
    assert world.runs.runs[world.auth.current.id].is_completed


def test_tenant_creation_failure_is_fatal_and_resumable():
    world = _world(fail_tenant=True)

    failed = world.service.provision(_request("Riyadh"))

    assert failed.error_code == "CREATE_TENANT_FAILED"
    assert world.tenants.branches == []

    world.tenants.fail_tenant = False
    resumed = world.service.provision(_request("Riyadh"))

    assert resumed.success is True
    assert len(world.tenants.tenants) == 1


def test_main_branch_failure_is_fatal():
    world = _world(fail_branches={"Riyadh"})

    result = world.service.provision(_request("Riyadh", "Jeddah"))

    assert result.success is False
    assert result.error_code == "CREATE_MAIN_BRANCH_FAILED"
    assert world.tenants.treasuries == []


def test_restart_creates_a_new_company():
    world = _world()
    world.service.provision(_request("Riyadh"))

    result = world.service.provision(_request("Cairo", restart=True))

    assert result.success is True
    assert result.get("already_provisioned") is None
    assert len(world.tenants.tenants) == 2


def test_legacy_payload_builds_main_and_numbered_branches():
    request = ProvisioningRequest.from_payload(
        {
            "name": "Acme",
            "mainBranchName": "HQ",
            "numberOfBranches": 3,
            "currency": "EGP",
            "adminData": {"email": "a@b.c", "password": "x", "full_name": "A"},
        }
    )

    assert [(b.name, b.currency, b.is_main) for b in request.branches] == [
        ("HQ", "EGP", True),
        ("Branch 2", "EGP", False),
        ("Branch 3", "EGP", False),
    ]
    assert request.admin == AdminCredentials("a@b.c", "x", "A")


def test_profile_link_failure_is_a_warning_and_setup_still_completes():
    world = _world()
    world.profiles.fail_profile = True

    result = world.service.provision(_request("Riyadh"))

    assert result.success is True
    assert world.profiles.profiles == {}
    assert world.settings.completed is True
    assert any("Failed to link user to branch" in w for w in result.warnings)


def test_registration_failure_other_than_already_registered_is_signup_failure():
    world = _world()
    world.auth.register_error = AuthenticationError("Password should be at least 6 characters", "weak_password")

    result = world.service.provision(_request("Riyadh"))

    assert result.success is False
    assert result.error_code == "SIGNUP_FAILED"
    assert world.tenants.tenants == []


@pytest.mark.parametrize(
    "payload",
    [
        {"numberOfBranches": "two"},
        {"branches": ["Main"]},
        {"additionalBranches": ["Jeddah"]},
    ],
)
def test_malformed_branch_payload_is_invalid_branch_config(payload):
    with pytest.raises(ValidationError) as exc:
        ProvisioningRequest.from_payload(payload)

    assert exc.value.code == "INVALID_BRANCH_CONFIG"
