from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, MutableMapping, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .auth.mysql_auth_provider import MySQLAuthProvider
from .categories.mysql_category_repository import MySQLCategoryRepository
from .categories.service import CategoryService
from .core.constants import (
    DEFAULT_PAYMENT_FANOUT_WORKERS,
    DEFAULT_SETUP_CHECK_DELAY_SECONDS,
    DEFAULT_SETUP_CHECK_RETRIES,
)
from .database.connection import DBConfig, DatabaseConnection
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.service import PaymentService
from .provisioning.mysql_provisioning_repository import MySQLProvisioningRunRepository
from .provisioning.service import ProvisioningService
from .quotations.mysql_quotation_repository import MySQLQuotationDraftRepository, MySQLQuotationTemplateRepository
from .quotations.service import QuotationDraftService, QuotationTemplateService
from .settings.mysql_settings_repository import MySQLSystemSettingsRepository
from .settings.service import SystemSettingsService
from .setup.gate import SetupGate
from .tenants.mysql_tenant_repository import MySQLTenantRepository
from .tenants.service import TenantService
from .users.mysql_profile_repository import MySQLProfileRepository
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.service import WorkerService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    auth: MySQLAuthProvider
    tenants_repo: MySQLTenantRepository
    profiles_repo: MySQLProfileRepository
    settings_repo: MySQLSystemSettingsRepository
    runs_repo: MySQLProvisioningRunRepository

    tenant_service: TenantService
    settings_service: SystemSettingsService
    provisioning_service: ProvisioningService
    setup_gate: SetupGate
    worker_service: WorkerService
    category_service: CategoryService
    payment_service: PaymentService
    attendance_service: AttendanceService
    draft_service: QuotationDraftService
    template_service: QuotationTemplateService


def build_container(
    *,
    db_config: dict,
    session_store: Optional[Callable[[], MutableMapping[str, Any]]] = None,
    setup_check_retries: int = DEFAULT_SETUP_CHECK_RETRIES,
    setup_check_delay_seconds: float = DEFAULT_SETUP_CHECK_DELAY_SECONDS,
    payment_fanout_workers: int = DEFAULT_PAYMENT_FANOUT_WORKERS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    auth = MySQLAuthProvider(conn, session_store=session_store)
    tenants_repo = MySQLTenantRepository(conn)
    profiles_repo = MySQLProfileRepository(conn)
    settings_repo = MySQLSystemSettingsRepository(conn)
    runs_repo = MySQLProvisioningRunRepository(conn)

    settings_service = SystemSettingsService(settings_repo)
    worker_service = WorkerService(MySQLWorkerRepository(conn))
    category_service = CategoryService(MySQLCategoryRepository(conn))
    payment_service = PaymentService(MySQLPaymentRepository(conn))

    return Container(
        conn=conn,
        auth=auth,
        tenants_repo=tenants_repo,
        profiles_repo=profiles_repo,
        settings_repo=settings_repo,
        runs_repo=runs_repo,
        tenant_service=TenantService(tenants_repo),
        settings_service=settings_service,
        provisioning_service=ProvisioningService(auth, tenants_repo, profiles_repo, settings_service, runs_repo),
        setup_gate=SetupGate(
            settings_repo, retries=setup_check_retries, delay_seconds=setup_check_delay_seconds
        ),
        worker_service=worker_service,
        category_service=category_service,
        payment_service=payment_service,
        attendance_service=AttendanceService(
            MySQLAttendanceRepository(conn),
            worker_service,
            category_service,
            payment_service,
            max_workers=payment_fanout_workers,
        ),
        draft_service=QuotationDraftService(MySQLQuotationDraftRepository(conn)),
        template_service=QuotationTemplateService(MySQLQuotationTemplateRepository(conn)),
    )
