from __future__ import annotations

from typing import Optional, Protocol

from .model import ProvisioningRun


class ProvisioningRunRepository(Protocol):
    def get_run(self, principal_id: str) -> Optional[ProvisioningRun]:
        raise NotImplementedError

    def save_run(self, run: ProvisioningRun) -> None:
        """Insert or replace the cursor keyed by principal id."""

        raise NotImplementedError

    def delete_run(self, principal_id: str) -> None:
        raise NotImplementedError
