from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.validators import optional_text
from ..core.enums import CategoryType
from ..core.exceptions import ValidationError
from ..core.result import ServiceResult
from ..database.mysql_base import new_id
from ..scope import Scope, guarded
from .model import ExpenseCategory
from .repository import CategoryRepository

logger = logging.getLogger(__name__)


def _category_type(value: Any) -> CategoryType:
    try:
        return CategoryType(value)
    except ValueError:
        raise ValidationError(f"Unknown category type: {value}")


class CategoryService:
    def __init__(self, categories: CategoryRepository):
        self._categories = categories

    @guarded()
    def list_categories(self, scope: Scope, type: Optional[CategoryType | str] = None) -> Sequence[ExpenseCategory]:
        category_type = _category_type(type) if type else None
        return self._categories.list_categories(tenant_id=scope.tenant_id, type=category_type)

    def list_project_categories(self, scope: Scope) -> Sequence[ExpenseCategory]:
        return self.list_categories(scope, CategoryType.PROJECT)

    def list_administrative_categories(self, scope: Scope) -> Sequence[ExpenseCategory]:
        return self.list_categories(scope, CategoryType.ADMINISTRATIVE)

    @guarded(empty=lambda: None)
    def get_category(self, scope: Scope, category_id: str) -> Optional[ExpenseCategory]:
        if not category_id:
            return None
        return self._categories.get_category(tenant_id=scope.tenant_id, category_id=category_id)

    @guarded(write=True, failure_code="ADD_CATEGORY_FAILED")
    def add_category(self, scope: Scope, data: dict[str, Any]) -> ServiceResult:
        name = optional_text(data.get("name"))
        if not name or not data.get("type"):
            raise ValidationError("Category name and type are required")
        category_type = _category_type(data["type"])

        if self._categories.find_by_name(tenant_id=scope.tenant_id, name=name, type=category_type):
            return ServiceResult.fail("This category already exists", "CATEGORY_EXISTS")

        category = ExpenseCategory(
            id=new_id(),
            tenant_id=scope.tenant_id,
            name=name,
            type=category_type,
            name_ar=optional_text(data.get("name_ar")) or name,
            is_system=False,
            created_by=optional_text(data.get("created_by")) or "user",
        )
        created = self._categories.create_category(category)
        logger.info("Category added: %s (%s)", created.name, created.type.value)
        return ServiceResult.ok(category=created.to_dict())

    def _require_editable(self, scope: Scope, category_id: str) -> ExpenseCategory | ServiceResult:
        if not category_id:
            raise ValidationError("Category id is required", "INVALID_ID")
        current = self._categories.get_category(tenant_id=scope.tenant_id, category_id=category_id)
        if current is None:
            return ServiceResult.fail("Category not found", "CATEGORY_NOT_FOUND")
        if current.is_system:
            return ServiceResult.fail("System categories cannot be modified", "SYSTEM_CATEGORY")
        return current

    @guarded(write=True, failure_code="UPDATE_CATEGORY_FAILED")
    def update_category(self, scope: Scope, category_id: str, data: dict[str, Any]) -> ServiceResult:
        current = self._require_editable(scope, category_id)
        if isinstance(current, ServiceResult):
            return current

        changes: dict[str, Any] = {}
        if "name" in data:
            name = optional_text(data["name"])
            if not name:
                raise ValidationError("Category name is required")
            changes["name"] = name
        if "name_ar" in data:
            changes["name_ar"] = optional_text(data["name_ar"])
        if "type" in data:
            changes["type"] = _category_type(data["type"])

        if "name" in changes:
            duplicate = self._categories.find_by_name(
                tenant_id=scope.tenant_id,
                name=changes["name"],
                type=changes.get("type", current.type),
                exclude_id=category_id,
            )
            if duplicate:
                return ServiceResult.fail("This category already exists", "CATEGORY_EXISTS")

        updated = self._categories.update_category(
            tenant_id=scope.tenant_id, category_id=category_id, changes=changes
        )
        if updated is None:
            return ServiceResult.fail("Category not found", "CATEGORY_NOT_FOUND")
        return ServiceResult.ok(category=updated.to_dict())

    @guarded(write=True, failure_code="DELETE_CATEGORY_FAILED")
    def delete_category(self, scope: Scope, category_id: str) -> ServiceResult:
        current = self._require_editable(scope, category_id)
        if isinstance(current, ServiceResult):
            return current

        if self._categories.is_in_use(tenant_id=scope.tenant_id, name=current.name):
            return ServiceResult.fail(
                "Category cannot be deleted because existing expenses use it", "CATEGORY_IN_USE"
            )

        self._categories.delete_category(tenant_id=scope.tenant_id, category_id=category_id)
        logger.info("Category deleted: %s", current.name)
        return ServiceResult.ok()
