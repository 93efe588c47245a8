from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from ..common.validators import optional_text
from ..core.constants import DEFAULT_COMPANY_NAME, DEFAULT_CURRENCY, DEFAULT_INDUSTRY_TYPE
from ..core.enums import ProvisioningStep
from ..core.exceptions import ValidationError

INVALID_BRANCH_CONFIG = "INVALID_BRANCH_CONFIG"


def _branch_entry(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError("Each branch must be an object with a name and currency", INVALID_BRANCH_CONFIG)
    return value


def _branch_count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"Number of branches must be a whole number: {value}", INVALID_BRANCH_CONFIG)


def _text(d: dict[str, Any], key: str) -> str:
    value = d.get(key)
    return str(value).strip() if value is not None else ""


@dataclass(frozen=True)
class BranchConfig:
    name: str
    currency: str
    is_main: bool = False


@dataclass(frozen=True)
class AdminCredentials:
    email: str
    password: str
    full_name: Optional[str] = None


@dataclass(frozen=True)
class ProvisioningRequest:
    company_name: str
    industry_type: str
    branches: tuple[BranchConfig, ...]
    admin: Optional[AdminCredentials] = None
    restart: bool = False

    @property
    def main_branch(self) -> BranchConfig:
        return next(b for b in self.branches if b.is_main)

    @property
    def main_position(self) -> int:
        return next(i for i, b in enumerate(self.branches) if b.is_main)

    def additional_branches(self) -> list[tuple[int, BranchConfig]]:
        """Non-main branches with their position in ``branches``."""
        return [(i, b) for i, b in enumerate(self.branches) if not b.is_main]

    def validate(self) -> None:
        """Exactly one main branch; every branch named and priced in a currency."""
        mains = [b for b in self.branches if b.is_main]
        if len(mains) != 1:
            raise ValidationError("Exactly one branch must be marked as main branch", INVALID_BRANCH_CONFIG)
        for b in self.branches:
            if not (b.name or "").strip():
                raise ValidationError("Branch name is required for all branches", INVALID_BRANCH_CONFIG)
            if not (b.currency or "").strip():
                raise ValidationError(
                    f'Currency is required for branch "{b.name}". Please select a currency.',
                    INVALID_BRANCH_CONFIG,
                )

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ProvisioningRequest":
        """Build a request from the wizard's form/JSON payload.

        Accepts a ``branches`` list (name/currency/isMain) or the older
        ``mainBranchName`` + ``additionalBranches`` / ``numberOfBranches``
        fields, where every branch shares one ``currency``. Malformed branch
        data raises ``ValidationError`` with ``INVALID_BRANCH_CONFIG``.
        """
        if not isinstance(data, dict):
            raise ValidationError("Setup data must be an object", INVALID_BRANCH_CONFIG)
        company = optional_text(data.get("name") or data.get("companyName")) or DEFAULT_COMPANY_NAME
        industry = optional_text(data.get("industry_type") or data.get("industryType")) or DEFAULT_INDUSTRY_TYPE

        raw_branches = data.get("branches")
        if isinstance(raw_branches, list) and raw_branches:
            branches = tuple(
                BranchConfig(
                    name=_text(b, "name"),
                    currency=_text(b, "currency"),
                    is_main=bool(b.get("isMain", b.get("is_main", False))),
                )
                for b in map(_branch_entry, raw_branches)
            )
        else:
            currency = optional_text(data.get("currency")) or DEFAULT_CURRENCY
            branches_list = [BranchConfig(optional_text(data.get("mainBranchName")) or "Main Branch", currency, True)]
            extra = data.get("additionalBranches")
            if isinstance(extra, list):
                branches_list.extend(BranchConfig(_text(_branch_entry(b), "name"), currency) for b in extra)
            else:
                count = _branch_count(data.get("numberOfBranches"))
                branches_list.extend(BranchConfig(f"Branch {i}", currency) for i in range(2, count + 1))
            branches = tuple(branches_list)

        admin = None
        raw_admin = data.get("adminData") or data.get("admin")
        if isinstance(raw_admin, dict):
            admin = AdminCredentials(
                email=_text(raw_admin, "email"),
                password=str(raw_admin.get("password") or ""),
                full_name=optional_text(raw_admin.get("full_name")),
            )

        return cls(
            company_name=company,
            industry_type=industry,
            branches=branches,
            admin=admin,
            restart=bool(data.get("restart", False)),
        )


@dataclass(frozen=True)
class CreatedBranch:
    id: str
    name: str
    currency: str
    is_main: bool
    position: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "currency": self.currency,
            "is_main": self.is_main,
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CreatedBranch":
        return cls(
            id=d["id"],
            name=d["name"],
            currency=d["currency"],
            is_main=bool(d.get("is_main")),
            position=int(d.get("position", 0)),
        )


@dataclass(frozen=True)
class ProvisioningRun:
    """Persisted step cursor for one principal's provisioning saga."""

    principal_id: str
    tenant_id: Optional[str] = None
    main_branch_id: Optional[str] = None
    branches: tuple[CreatedBranch, ...] = ()
    treasury_branch_ids: tuple[str, ...] = ()
    completed_steps: tuple[ProvisioningStep, ...] = ()
    is_completed: bool = False

    def has(self, step: ProvisioningStep) -> bool:
        return step in self.completed_steps

    def mark(self, step: ProvisioningStep, **changes: Any) -> "ProvisioningRun":
        steps = self.completed_steps if self.has(step) else self.completed_steps + (step,)
        return replace(self, completed_steps=steps, **changes)

    def with_branch(self, branch: CreatedBranch) -> "ProvisioningRun":
        return replace(self, branches=self.branches + (branch,))

    def with_treasury(self, branch_id: str) -> "ProvisioningRun":
        return replace(self, treasury_branch_ids=self.treasury_branch_ids + (branch_id,))

    def has_branch_at(self, position: int) -> bool:
        return any(b.position == position for b in self.branches)

