from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import WorkerStatus
from .model import Worker


class WorkerRepository(Protocol):
    """Every method filters by tenant_id and branch_id."""

    def list_workers(
        self, *, tenant_id: str, branch_id: str, status: Optional[WorkerStatus] = None
    ) -> Sequence[Worker]:
        raise NotImplementedError

    def get_worker(self, *, tenant_id: str, branch_id: str, worker_id: str) -> Optional[Worker]:
        raise NotImplementedError

    def create_worker(self, worker: Worker) -> Worker:
        raise NotImplementedError

    def update_worker(
        self, *, tenant_id: str, branch_id: str, worker_id: str, changes: dict[str, Any]
    ) -> Optional[Worker]:
        """Apply ``changes`` (column -> value); None when no row matched."""

        raise NotImplementedError

    def delete_worker(self, *, tenant_id: str, branch_id: str, worker_id: str) -> bool:
        raise NotImplementedError
