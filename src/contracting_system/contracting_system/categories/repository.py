from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import CategoryType
from .model import ExpenseCategory


class CategoryRepository(Protocol):
    """Every method filters by tenant_id."""

    def list_categories(self, *, tenant_id: str, type: Optional[CategoryType] = None) -> Sequence[ExpenseCategory]:
        raise NotImplementedError

    def get_category(self, *, tenant_id: str, category_id: str) -> Optional[ExpenseCategory]:
        raise NotImplementedError

    def find_by_name(
        self, *, tenant_id: str, name: str, type: CategoryType, exclude_id: Optional[str] = None
    ) -> Optional[ExpenseCategory]:
        raise NotImplementedError

    def create_category(self, category: ExpenseCategory) -> ExpenseCategory:
        raise NotImplementedError

    def update_category(
        self, *, tenant_id: str, category_id: str, changes: dict[str, Any]
    ) -> Optional[ExpenseCategory]:
        raise NotImplementedError

    def delete_category(self, *, tenant_id: str, category_id: str) -> bool:
        raise NotImplementedError

    def is_in_use(self, *, tenant_id: str, name: str) -> bool:
        """True when any payment of the tenant references the category name."""

        raise NotImplementedError
