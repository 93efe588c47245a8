from __future__ import annotations

import json
from typing import Any, Optional

from ..core.enums import ProvisioningStep
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import CreatedBranch, ProvisioningRun
from .repository import ProvisioningRunRepository


def _json_list(raw: Any) -> list:
    if not raw:
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        raw = json.loads(raw)
    return list(raw)


class MySQLProvisioningRunRepository(ProvisioningRunRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_run(self, principal_id: str) -> Optional[ProvisioningRun]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT principal_id, tenant_id, main_branch_id, branch_ids,
                       treasury_branch_ids, completed_steps, is_completed
                FROM provisioning_runs
                WHERE principal_id=%s
                """,
                (principal_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ProvisioningRun(
                principal_id=r["principal_id"],
                tenant_id=r.get("tenant_id"),
                main_branch_id=r.get("main_branch_id"),
                branches=tuple(CreatedBranch.from_dict(b) for b in _json_list(r.get("branch_ids"))),
                treasury_branch_ids=tuple(_json_list(r.get("treasury_branch_ids"))),
                completed_steps=tuple(ProvisioningStep(s) for s in _json_list(r.get("completed_steps"))),
                is_completed=bool(r["is_completed"]),
            )

    def save_run(self, run: ProvisioningRun) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO provisioning_runs(
                    principal_id, tenant_id, main_branch_id, branch_ids,
                    treasury_branch_ids, completed_steps, is_completed
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    tenant_id=VALUES(tenant_id),
                    main_branch_id=VALUES(main_branch_id),
                    branch_ids=VALUES(branch_ids),
                    treasury_branch_ids=VALUES(treasury_branch_ids),
                    completed_steps=VALUES(completed_steps),
                    is_completed=VALUES(is_completed)
                """,
                (
                    run.principal_id,
                    run.tenant_id,
                    run.main_branch_id,
                    json.dumps([b.to_dict() for b in run.branches]),
                    json.dumps(list(run.treasury_branch_ids)),
                    json.dumps([s.value for s in run.completed_steps]),
                    1 if run.is_completed else 0,
                ),
            )

    def delete_run(self, principal_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM provisioning_runs WHERE principal_id=%s", (principal_id,))
