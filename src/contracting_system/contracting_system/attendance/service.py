from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Any, Optional, Sequence

from ..categories.service import CategoryService
from ..common.datetime_utils import as_date
from ..common.validators import optional_text, to_float
from ..core.constants import DEFAULT_HOURS_WORKED, DEFAULT_LABOR_CATEGORY, DEFAULT_PAYMENT_FANOUT_WORKERS
from ..core.enums import PaymentStatus
from ..core.exceptions import StoreError, ValidationError
from ..core.result import ServiceResult
from ..database.mysql_base import new_id
from ..payments.service import PaymentService
from ..scope import Scope, guarded
from ..workers.service import WorkerService
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

DUPLICATE_RECORD_MESSAGE = (
    "Attendance records already exist for this date and project. Delete the previous records first."
)


def _labor_category_name(categories: Sequence[Any]) -> str:
    for c in categories:
        if (c.name or "").lower() == "labor" or "عمال" in (c.name_ar or ""):
            return c.name
    return DEFAULT_LABOR_CATEGORY


def labor_payment_notes(worker_name: str, trade: str, work_date: date, hours: float) -> str:
    notes = f"Labor wages - {worker_name} ({trade}) - {work_date.isoformat()}"
    if hours != DEFAULT_HOURS_WORKED:
        notes += f" - {hours:g} hours"
    return notes


class AttendanceService:
    """Daily labor attendance.

    ``create_attendance_records`` inserts the whole batch in one repository
    call, then creates one paid labor-expense payment per costed record.
    Payments run concurrently and each outcome is counted on its own; a
    failed payment never undoes the attendance batch.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        workers: WorkerService,
        categories: CategoryService,
        payments: PaymentService,
        *,
        max_workers: int = DEFAULT_PAYMENT_FANOUT_WORKERS,
    ):
        self._records = records
        self._workers = workers
        self._categories = categories
        self._payments = payments
        self._max_workers = max(1, int(max_workers))

    @guarded(requires_branch=True)
    def list_records(self, scope: Scope) -> Sequence[AttendanceRecord]:
        return self._records.list_records(tenant_id=scope.tenant_id, branch_id=scope.branch_id)

    @guarded(requires_branch=True)
    def list_by_project(self, scope: Scope, project_id: str) -> Sequence[AttendanceRecord]:
        if not project_id:
            return []
        return self._records.list_records(tenant_id=scope.tenant_id, branch_id=scope.branch_id, project_id=project_id)

    @guarded(requires_branch=True)
    def list_by_date_and_project(self, scope: Scope, project_id: str, work_date: date | str) -> Sequence[AttendanceRecord]:
        if not project_id or not work_date:
            return []
        return self._records.list_records(
            tenant_id=scope.tenant_id,
            branch_id=scope.branch_id,
            project_id=project_id,
            work_date=as_date(work_date),
        )

    @guarded(requires_branch=True, empty=lambda: None)
    def get_record(self, scope: Scope, record_id: str) -> Optional[AttendanceRecord]:
        if not record_id:
            return None
        return self._records.get_record(tenant_id=scope.tenant_id, branch_id=scope.branch_id, record_id=record_id)

    @guarded(requires_branch=True, empty=lambda: 0.0)
    def total_labor_cost_by_project(self, scope: Scope, project_id: str) -> float:
        if not project_id:
            return 0.0
        records = self._records.list_records(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, project_id=project_id
        )
        return sum(r.cost for r in records)

    @guarded(requires_branch=True, write=True, failure_code="DELETE_RECORD_FAILED")
    def delete_record(self, scope: Scope, record_id: str) -> ServiceResult:
        """Delete one record. Payments created for it are left alone."""
        if not record_id:
            raise ValidationError("Record id is required", "INVALID_ID")
        if not self._records.delete_record(tenant_id=scope.tenant_id, branch_id=scope.branch_id, record_id=record_id):
            return ServiceResult.fail("Record not found", "RECORD_NOT_FOUND")
        return ServiceResult.ok()

    @guarded(requires_branch=True, write=True, failure_code="CREATE_ATTENDANCE_FAILED")
    def create_attendance_records(self, scope: Scope, data: dict[str, Any]) -> ServiceResult:
        project_id = optional_text(data.get("project_id"))
        if not project_id or not data.get("date"):
            raise ValidationError("Project and date are required")
        work_date = as_date(data["date"])

        worker_ids = [w for w in (data.get("workers") or []) if w]
        if not worker_ids:
            raise ValidationError("Select at least one worker")
        rates = data.get("worker_rates") or {}
        hours_by_worker = data.get("worker_hours") or {}
        if not isinstance(rates, dict) or not isinstance(hours_by_worker, dict):
            raise ValidationError("Worker rates and hours must map worker ids to values")

        existing = self._records.list_records(
            tenant_id=scope.tenant_id, branch_id=scope.branch_id, project_id=project_id, work_date=work_date
        )
        if existing:
            return ServiceResult.fail(DUPLICATE_RECORD_MESSAGE, "DUPLICATE_RECORD")

        category = _labor_category_name(self._categories.list_project_categories(scope))
        notes = optional_text(data.get("notes"))
        created_by = optional_text(data.get("created_by")) or "user"

        batch_id = new_id()
        records: list[AttendanceRecord] = []
        payments: list[dict[str, Any]] = []
        for worker_id in worker_ids:
            worker = self._workers.get_worker(scope, worker_id)
            if worker is None:
                logger.warning("Worker %s not found; skipped", worker_id)
                continue

            rate = to_float(rates.get(worker_id)) or worker.default_daily_rate or 0.0
            hours = to_float(hours_by_worker.get(worker_id)) or DEFAULT_HOURS_WORKED
            record = AttendanceRecord(
                id=new_id(),
                tenant_id=scope.tenant_id,
                branch_id=scope.branch_id,
                worker_id=worker_id,
                project_id=project_id,
                work_date=work_date,
                daily_rate_at_time=rate,
                hours_worked=hours,
                notes=notes,
                created_by=created_by,
                batch_id=batch_id,
            )
            records.append(record)

            if record.cost > 0:
                payments.append(
                    {
                        "is_general_expense": False,
                        "project_id": project_id,
                        "category": category,
                        "amount": record.cost,
                        "due_date": work_date,
                        "paid_date": work_date,
                        "status": PaymentStatus.PAID.value,
                        "payment_method": "cash",
                        "notes": labor_payment_notes(worker.name, worker.trade, work_date, hours),
                        "created_by": created_by,
                    }
                )

        if not records:
            return ServiceResult.fail("No valid workers found", "NO_VALID_WORKERS")

        try:
            inserted = self._records.insert_batch(
                batch_id=batch_id,
                tenant_id=scope.tenant_id,
                branch_id=scope.branch_id,
                project_id=project_id,
                work_date=work_date,
                records=records,
            )
        except StoreError as e:
            if e.code == StoreError.DUPLICATE_KEY:
                return ServiceResult.fail(DUPLICATE_RECORD_MESSAGE, "DUPLICATE_RECORD")
            raise
        logger.info("Attendance batch %s: %d records for project %s on %s", batch_id, len(inserted), project_id, work_date)

        created, failed = self._create_payments(scope, payments)
        if failed:
            logger.warning("Attendance batch %s: %d of %d payments failed", batch_id, failed, len(payments))
        return ServiceResult.ok(
            records=[r.to_dict() for r in inserted],
            payments_created=created,
            payments_failed=failed,
        )

    def _create_payments(self, scope: Scope, payloads: list[dict[str, Any]]) -> tuple[int, int]:
        """Run every payment creation to completion; returns (created, failed)."""
        if not payloads:
            return 0, 0

        created = failed = 0
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(payloads))) as executor:
            futures = {executor.submit(self._payments.create_payment, scope, p): p for p in payloads}
            for future in as_completed(futures):
                payload = futures[future]
                try:
                    result = future.result()
                except Exception:
                    logger.exception("Payment creation raised for %s", payload["notes"])
                    failed += 1
                    continue
                if result.success:
                    created += 1
                else:
                    logger.error("Payment creation failed for %s: %s", payload["notes"], result.error)
                    failed += 1
        return created, failed
