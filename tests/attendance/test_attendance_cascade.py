from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from src.contracting_system.contracting_system.attendance.model import AttendanceRecord
from src.contracting_system.contracting_system.attendance.service import AttendanceService, labor_payment_notes
from src.contracting_system.contracting_system.categories.model import ExpenseCategory
from src.contracting_system.contracting_system.categories.service import CategoryService
from src.contracting_system.contracting_system.core.enums import CategoryType, PaymentStatus
from src.contracting_system.contracting_system.core.exceptions import StoreError
from src.contracting_system.contracting_system.payments.service import PaymentService
from src.contracting_system.contracting_system.scope import Scope
from src.contracting_system.contracting_system.workers.model import Worker
from src.contracting_system.contracting_system.workers.service import WorkerService

TENANT = str(uuid.uuid4())
BRANCH = str(uuid.uuid4())
SCOPE = Scope(tenant_id=TENANT, branch_id=BRANCH)
PROJECT = "project-1"
DAY = date(2025, 3, 2)


@dataclass
class InMemoryRecords:
    records: list[AttendanceRecord] = field(default_factory=list)
    batches: set[tuple] = field(default_factory=set)

    def list_records(self, *, tenant_id, branch_id, project_id=None, work_date=None):
        return [
            r
            for r in self.records
            if r.tenant_id == tenant_id
            and r.branch_id == branch_id
            and (project_id is None or r.project_id == project_id)
            and (work_date is None or r.work_date == work_date)
        ]

    def get_record(self, *, tenant_id, branch_id, record_id):
        return next((r for r in self.list_records(tenant_id=tenant_id, branch_id=branch_id) if r.id == record_id), None)

    def insert_batch(self, *, batch_id, tenant_id, branch_id, project_id, work_date, records):
        key = (tenant_id, branch_id, project_id, work_date)
        if key in self.batches:
            raise StoreError("Duplicate entry for attendance batch", StoreError.DUPLICATE_KEY)
        self.batches.add(key)
        self.records.extend(records)
        return list(records)

    def delete_record(self, *, tenant_id, branch_id, record_id):
        before = len(self.records)
        self.records = [r for r in self.records if r.id != record_id]
        return len(self.records) < before


@dataclass
class InMemoryWorkers:
    workers: dict[str, Worker]

    def list_workers(self, *, tenant_id, branch_id, status=None):
        return list(self.workers.values())

    def get_worker(self, *, tenant_id, branch_id, worker_id):
        worker = self.workers.get(worker_id)
        if worker is None or worker.tenant_id != tenant_id or worker.branch_id != branch_id:
            return None
        return worker


@dataclass
class InMemoryCategories:
    categories: list[ExpenseCategory] = field(default_factory=list)

    def list_categories(self, *, tenant_id, type=None):
        return [c for c in self.categories if type is None or c.type == type]


@dataclass
class InMemoryPayments:
    fail_for: set[str] = field(default_factory=set)
    created: list = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)

    def create_payment(self, payment):
        if any(name in (payment.notes or "") for name in self.fail_for):
            raise StoreError("payments insert rejected")
        with self.lock:
            self.created.append(payment)
        return payment


def _worker(name: str, rate: float, *, branch_id: str = BRANCH) -> Worker:
    return Worker(id=str(uuid.uuid4()), tenant_id=TENANT, branch_id=branch_id, name=name, trade="Mason", default_daily_rate=rate)


@dataclass
class Fixture:
    records: InMemoryRecords
    payments: InMemoryPayments
    workers: list[Worker]
    service: AttendanceService


def _fixture(*workers: Worker, fail_for: Optional[set[str]] = None, categories=()) -> Fixture:
    records = InMemoryRecords()
    payments = InMemoryPayments(fail_for=fail_for or set())
    service = AttendanceService(
        records,
        WorkerService(InMemoryWorkers({w.id: w for w in workers})),
        CategoryService(InMemoryCategories(list(categories))),
        PaymentService(payments),
        max_workers=4,
    )
    return Fixture(records, payments, list(workers), service)


def _payload(workers, **extra):
    return {"project_id": PROJECT, "date": DAY.isoformat(), "workers": [w.id for w in workers], **extra}


def test_partial_payment_failure_is_counted_and_records_are_kept():
    ali, badr, omar = _worker("Ali", 100), _worker("Badr", 120), _worker("Omar", 90)
    fx = _fixture(ali, badr, omar, fail_for={"Badr"})

    result = fx.service.create_attendance_records(SCOPE, _payload(fx.workers))

    assert result.success is True
    assert result["payments_created"] == 2
    assert result["payments_failed"] == 1
    assert len(result["records"]) == 3
    assert len(fx.records.records) == 3
    assert sorted(p.amount for p in fx.payments.created) == [90.0, 100.0]


def test_duplicate_date_and_project_is_rejected_before_any_write():
    ali = _worker("Ali", 100)
    fx = _fixture(ali)
    assert fx.service.create_attendance_records(SCOPE, _payload([ali])).success

    again = fx.service.create_attendance_records(SCOPE, _payload([ali]))

    assert again.success is False
    assert again.error_code == "DUPLICATE_RECORD"
    assert len(fx.records.records) == 1
    assert len(fx.payments.created) == 1


def test_store_uniqueness_violation_maps_to_duplicate_record():
    ali = _worker("Ali", 100)
    fx = _fixture(ali)
    fx.records.batches.add((TENANT, BRANCH, PROJECT, DAY))

    result = fx.service.create_attendance_records(SCOPE, _payload([ali]))

    assert result.error_code == "DUPLICATE_RECORD"
    assert fx.payments.created == []


def test_missing_project_or_workers_is_validation_error():
    fx = _fixture()

    no_project = fx.service.create_attendance_records(SCOPE, {"date": DAY.isoformat(), "workers": ["x"]})
    no_workers = fx.service.create_attendance_records(SCOPE, _payload([]))

    assert no_project.error_code == "VALIDATION_ERROR"
    assert no_workers.error_code == "VALIDATION_ERROR"


def test_unknown_workers_only_gives_no_valid_workers():
    stranger = _worker("Stranger", 100, branch_id=str(uuid.uuid4()))
    fx = _fixture(stranger)

    result = fx.service.create_attendance_records(SCOPE, _payload([stranger]))

    assert result.error_code == "NO_VALID_WORKERS"
    assert fx.records.records == []


def test_rates_hours_and_zero_cost_workers():
    ali, volunteer = _worker("Ali", 100), _worker("Volunteer", 0)
    labor = ExpenseCategory(id="c1", tenant_id=TENANT, name="Wages", type=CategoryType.PROJECT, name_ar="أجور عمال")
    fx = _fixture(ali, volunteer, categories=[labor])

    result = fx.service.create_attendance_records(
        SCOPE,
        _payload(fx.workers, worker_rates={ali.id: "150"}, worker_hours={ali.id: "0.5"}),
    )

    assert result["payments_created"] == 1
    payment = fx.payments.created[0]
    assert payment.amount == 75.0
    assert payment.status == PaymentStatus.PAID
    assert payment.paid_date == DAY
    assert payment.expense_category == "Wages"
    assert payment.notes == "Labor wages - Ali (Mason) - 2025-03-02 - 0.5 hours"
    assert (payment.tenant_id, payment.branch_id) == (TENANT, BRANCH)
    assert payment.payment_number.startswith("PE-")


def test_records_carry_scope_and_shared_batch():
    ali, omar = _worker("Ali", 100), _worker("Omar", 90)
    fx = _fixture(ali, omar)

    fx.service.create_attendance_records(SCOPE, _payload(fx.workers))

    assert {(r.tenant_id, r.branch_id) for r in fx.records.records} == {(TENANT, BRANCH)}
    assert len({r.batch_id for r in fx.records.records}) == 1


def test_without_branch_reads_are_empty_and_writes_rejected():
    ali = _worker("Ali", 100)
    fx = _fixture(ali)
    no_branch = Scope(tenant_id=TENANT)

    assert fx.service.list_records(no_branch) == []
    assert fx.service.total_labor_cost_by_project(no_branch, PROJECT) == 0.0
    result = fx.service.create_attendance_records(no_branch, _payload([ali]))
    assert result.error_code == "NO_BRANCH_ID"
    assert fx.records.records == []


def test_total_labor_cost_sums_rate_times_hours():
    ali, omar = _worker("Ali", 100), _worker("Omar", 90)
    fx = _fixture(ali, omar)
    fx.service.create_attendance_records(SCOPE, _payload(fx.workers, worker_hours={omar.id: 2}))

    assert fx.service.total_labor_cost_by_project(SCOPE, PROJECT) == 280.0


def test_default_notes_omit_full_day_hours():
    assert labor_payment_notes("Ali", "Mason", DAY, 1.0) == "Labor wages - Ali (Mason) - 2025-03-02"


def test_unparseable_dates_give_empty_reads_and_rejected_writes():
    ali = _worker("Ali", 100)
    fx = _fixture(ali)

    listed = fx.service.list_by_date_and_project(SCOPE, PROJECT, "13/01/2026")
    created = fx.service.create_attendance_records(SCOPE, _payload([ali], date="next monday"))

    assert listed == []
    assert created.error_code == "VALIDATION_ERROR"
    assert fx.records.records == [] and fx.payments.created == []


def test_rates_or_hours_that_are_not_mappings_are_validation_errors():
    ali = _worker("Ali", 100)
    fx = _fixture(ali)

    bad_rates = fx.service.create_attendance_records(SCOPE, _payload([ali], worker_rates=[1, 2]))
    bad_hours = fx.service.create_attendance_records(SCOPE, _payload([ali], worker_hours="8"))

    assert bad_rates.error_code == "VALIDATION_ERROR"
    assert bad_hours.error_code == "VALIDATION_ERROR"
    assert fx.payments.created == []
