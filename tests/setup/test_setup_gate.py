from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Optional

import pytest
from flask import Flask

from src.contracting_system.contracting_system.auth.model import Principal
from src.contracting_system.contracting_system.core.enums import Role
from src.contracting_system.contracting_system.core.exceptions import StoreError
from src.contracting_system.contracting_system.setup.controller import register as register_setup
from src.contracting_system.contracting_system.setup.gate import GateAction, SetupGate
from src.contracting_system.contracting_system.users.model import Profile


@dataclass
class ScriptedSettings:
    """Returns/raises the scripted outcomes in order; the last one repeats."""

    outcomes: list = field(default_factory=list)
    calls: int = 0

    def fetch_setup_flag(self) -> bool:
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class ExplodingSettings:
    def fetch_setup_flag(self) -> bool:
        raise AssertionError("completion must not be queried")


def _gate(settings) -> tuple[SetupGate, list[float]]:
    sleeps: list[float] = []
    return SetupGate(settings, retries=3, delay_seconds=0.5, sleep=sleeps.append), sleeps


@pytest.mark.parametrize("role", [Role.ADMIN, Role.MANAGER, Role.ACCOUNTANT, Role.USER])
def test_non_provisioning_roles_are_never_redirected(role):
    gate, _ = _gate(ExplodingSettings())

    assert gate.decide(role, "/dashboard").action == GateAction.RENDER
    assert gate.decide(role, "/setup-wizard").action == GateAction.RENDER


def test_incomplete_system_sends_super_admin_to_wizard():
    gate, _ = _gate(ScriptedSettings([False]))

    decision = gate.decide(Role.SUPER_ADMIN, "/dashboard")

    assert decision.action == GateAction.REDIRECT
    assert decision.location == "/setup-wizard"
    assert gate.decide(Role.SUPER_ADMIN, "/setup-wizard").action == GateAction.RENDER


def test_completed_system_redirects_away_from_setup():
    gate, _ = _gate(ScriptedSettings([True]))

    decision = gate.decide(Role.SUPER_ADMIN, "/setup")

    assert decision.action == GateAction.REDIRECT
    assert decision.location == "/"
    assert gate.decide(None, "/dashboard").action == GateAction.RENDER


def test_transient_errors_are_retried_with_growing_delay():
    settings = ScriptedSettings([StoreError("timeout"), StoreError("timeout"), True])
    gate, sleeps = _gate(settings)

    assert gate.check_completed() is True
    assert settings.calls == 3
    assert sleeps == [0.5, 1.0]


def test_persistent_errors_mean_not_completed_after_three_attempts():
    settings = ScriptedSettings([StoreError("timeout")])
    gate, sleeps = _gate(settings)

    assert gate.check_completed() is False
    assert settings.calls == 3
    assert sleeps == [0.5, 1.0]


@pytest.mark.parametrize("code", [StoreError.NO_ROWS, StoreError.RELATION_MISSING])
def test_missing_row_or_table_is_not_completed_without_retry(code):
    settings = ScriptedSettings([StoreError("missing", code)])
    gate, sleeps = _gate(settings)

    assert gate.check_completed() is False
    assert settings.calls == 1
    assert sleeps == []


@dataclass
class StubAuth:
    principal: Optional[Principal] = None

    def get_current_principal(self):
        return self.principal


@dataclass
class StubProfiles:
    profile: Optional[Profile] = None
    error: Optional[StoreError] = None

    def get_profile(self, profile_id):
        if self.error:
            raise self.error
        return self.profile


def _client(*, completed: bool, profile: Optional[Profile] = None, profile_error: Optional[StoreError] = None):
    app = Flask(__name__)
    app.secret_key = "test"
    principal = Principal(id="u1", email="owner@example.com") if (profile or profile_error) else None
    container = SimpleNamespace(
        auth=StubAuth(principal),
        profiles_repo=StubProfiles(profile, profile_error),
        setup_gate=SetupGate(ScriptedSettings([completed]), sleep=lambda _: None),
        provisioning_service=None,
    )
    register_setup(app, container)

    @app.route("/")
    def home():
        return "home"

    @app.route("/dashboard")
    def dashboard():
        return "dashboard"

    return app.test_client()


def _profile(role: Role) -> Profile:
    return Profile(id="u1", email="owner@example.com", full_name="Owner", role=role)


def test_http_fresh_system_redirects_to_wizard():
    client = _client(completed=False)

    response = client.get("/dashboard")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/setup-wizard")
    assert client.get("/setup-wizard").status_code == 200


def test_http_completed_system_redirects_setup_to_home():
    client = _client(completed=True, profile=_profile(Role.SUPER_ADMIN))

    response = client.get("/setup-wizard")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")


def test_http_regular_user_passes_even_when_setup_incomplete():
    client = _client(completed=False, profile=_profile(Role.MANAGER))

    assert client.get("/dashboard").data == b"dashboard"


def test_http_unresolved_role_renders_placeholder():
    client = _client(completed=False, profile_error=StoreError("connection refused"))

    response = client.get("/dashboard")

    assert response.status_code == 503
    assert response.get_json()["status"] == "checking"


@pytest.mark.parametrize("payload", [{"numberOfBranches": "two"}, {"branches": ["Main"]}, ["Main"]])
def test_http_malformed_wizard_payload_is_bad_request(payload):
    client = _client(completed=False)

    response = client.post("/setup-wizard", json=payload)

    assert response.status_code == 400
    assert response.get_json()["errorCode"] == "INVALID_BRANCH_CONFIG"
