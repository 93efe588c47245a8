from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import DomainError


@dataclass(frozen=True)
class ServiceResult:
    """Outcome of a mutating operation.

    Public service operations return one of these instead of raising, so
    callers branch on ``success`` and display ``error``.
    """

    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)
    warnings: tuple[str, ...] = ()

    @classmethod
    def ok(cls, warnings: tuple[str, ...] | list[str] = (), **data: Any) -> "ServiceResult":
        return cls(success=True, data=dict(data), warnings=tuple(warnings))

    @classmethod
    def fail(cls, error: str, error_code: str, **data: Any) -> "ServiceResult":
        return cls(success=False, error=error, error_code=error_code, data=dict(data))

    @classmethod
    def from_error(cls, exc: DomainError) -> "ServiceResult":
        return cls.fail(exc.message, exc.code)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            out["error"] = self.error
        if self.error_code is not None:
            out["errorCode"] = self.error_code
        if self.warnings:
            out["warnings"] = list(self.warnings)
        out.update(self.data)
        return out
