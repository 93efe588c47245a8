from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.validators import optional_text, to_float
from ..core.enums import WorkerStatus
from ..core.exceptions import ValidationError
from ..core.result import ServiceResult
from ..database.mysql_base import new_id
from ..scope import Scope, guarded
from .model import Worker
from .repository import WorkerRepository

logger = logging.getLogger(__name__)


def _status(value: Any) -> WorkerStatus:
    try:
        return WorkerStatus(value or WorkerStatus.ACTIVE.value)
    except ValueError:
        raise ValidationError(f"Unknown worker status: {value}")


class WorkerService:
    """Worker registry, scoped to the selected branch."""

    def __init__(self, workers: WorkerRepository):
        self._workers = workers

    @guarded(requires_branch=True)
    def list_workers(self, scope: Scope) -> Sequence[Worker]:
        return self._workers.list_workers(tenant_id=scope.tenant_id, branch_id=scope.branch_id)

    @guarded(requires_branch=True)
    def list_active_workers(self, scope: Scope) -> Sequence[Worker]:
        return self._workers.list_workers(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, status=WorkerStatus.ACTIVE
        )

    @guarded(requires_branch=True, empty=lambda: None)
    def get_worker(self, scope: Scope, worker_id: str) -> Optional[Worker]:
        if not worker_id:
            return None
        return self._workers.get_worker(tenant_id=scope.tenant_id, branch_id=scope.branch_id, worker_id=worker_id)

    @guarded(requires_branch=True, write=True, failure_code="ADD_WORKER_FAILED")
    def add_worker(self, scope: Scope, data: dict[str, Any]) -> ServiceResult:
        name = optional_text(data.get("name"))
        trade = optional_text(data.get("trade"))
        if not name or not trade:
            raise ValidationError("Name and trade are required")

        worker = Worker(
            id=new_id(),
            tenant_id=scope.tenant_id,
            branch_id=scope.branch_id,
            name=name,
            trade=trade,
            default_daily_rate=to_float(data.get("default_daily_rate")),
            phone=optional_text(data.get("phone")),
            status=_status(data.get("status")),
            created_by=optional_text(data.get("created_by")) or "user",
        )
        created = self._workers.create_worker(worker)
        logger.info("Worker added: %s (%s)", created.name, created.trade)
        return ServiceResult.ok(worker=created.to_dict())

    @guarded(requires_branch=True, write=True, failure_code="UPDATE_WORKER_FAILED")
    def update_worker(self, scope: Scope, worker_id: str, updates: dict[str, Any]) -> ServiceResult:
        if not worker_id:
            raise ValidationError("Worker id is required", "INVALID_ID")

        changes: dict[str, Any] = {}
        for key in ("name", "trade"):
            if key in updates:
                value = optional_text(updates[key])
                if not value:
                    raise ValidationError("Name and trade are required")
                changes[key] = value
        if "default_daily_rate" in updates:
            changes["default_daily_rate"] = to_float(updates["default_daily_rate"])
        if "phone" in updates:
            changes["phone"] = optional_text(updates["phone"])
        if "status" in updates:
            changes["status"] = _status(updates["status"])

        worker = self._workers.update_worker(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, worker_id=worker_id, changes=changes
        )
        if worker is None:
            return ServiceResult.fail("Worker not found", "WORKER_NOT_FOUND")
        return ServiceResult.ok(worker=worker.to_dict())

    @guarded(requires_branch=True, write=True, failure_code="DELETE_WORKER_FAILED")
    def delete_worker(self, scope: Scope, worker_id: str) -> ServiceResult:
        if not worker_id:
            raise ValidationError("Worker id is required", "INVALID_ID")
        if not self._workers.delete_worker(tenant_id=scope.tenant_id, branch_id=scope.branch_id, worker_id=worker_id):
            return ServiceResult.fail("Worker not found", "WORKER_NOT_FOUND")
        return ServiceResult.ok()
