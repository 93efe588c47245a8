from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace

from src.contracting_system.contracting_system.categories.model import ExpenseCategory
from src.contracting_system.contracting_system.categories.service import CategoryService
from src.contracting_system.contracting_system.core.enums import CategoryType
from src.contracting_system.contracting_system.scope import Scope

TENANT = str(uuid.uuid4())
SCOPE = Scope(tenant_id=TENANT)


@dataclass
class InMemoryCategories:
    categories: dict[str, ExpenseCategory] = field(default_factory=dict)
    used_names: set[str] = field(default_factory=set)

    def list_categories(self, *, tenant_id, type=None):
        return [c for c in self.categories.values() if c.tenant_id == tenant_id and (type is None or c.type == type)]

    def get_category(self, *, tenant_id, category_id):
        c = self.categories.get(category_id)
        return c if c and c.tenant_id == tenant_id else None

    def find_by_name(self, *, tenant_id, name, type, exclude_id=None):
        return next(
            (
                c
                for c in self.list_categories(tenant_id=tenant_id, type=type)
                if c.name == name and c.id != exclude_id
            ),
            None,
        )

    def create_category(self, category):
        self.categories[category.id] = category
        return category

    def update_category(self, *, tenant_id, category_id, changes):
        current = self.get_category(tenant_id=tenant_id, category_id=category_id)
        if current is None:
            return None
        self.categories[category_id] = replace(current, **changes)
        return self.categories[category_id]

    def delete_category(self, *, tenant_id, category_id):
        return self.categories.pop(category_id, None) is not None

    def is_in_use(self, *, tenant_id, name):
        return name in self.used_names


def _service(*categories: ExpenseCategory) -> tuple[CategoryService, InMemoryCategories]:
    repo = InMemoryCategories({c.id: c for c in categories})
    return CategoryService(repo), repo


def _category(name: str, *, is_system: bool = False) -> ExpenseCategory:
    return ExpenseCategory(id=str(uuid.uuid4()), tenant_id=TENANT, name=name, type=CategoryType.PROJECT, is_system=is_system)


def test_add_category_stamps_tenant_and_rejects_duplicates():
    service, repo = _service()

    first = service.add_category(SCOPE, {"name": "Concrete", "type": "project"})
    second = service.add_category(SCOPE, {"name": "Concrete", "type": "project"})

    assert first.success is True
    assert first["category"]["name_ar"] == "Concrete"
    assert [c.tenant_id for c in repo.categories.values()] == [TENANT]
    assert second.error_code == "CATEGORY_EXISTS"


def test_same_name_in_other_type_is_allowed():
    service, _ = _service(_category("Rent"))

    result = service.add_category(SCOPE, {"name": "Rent", "type": "administrative"})

    assert result.success is True


def test_add_category_requires_name_and_valid_type():
    service, _ = _service()

    assert service.add_category(SCOPE, {"type": "project"}).error_code == "VALIDATION_ERROR"
    assert service.add_category(SCOPE, {"name": "X", "type": "misc"}).error_code == "VALIDATION_ERROR"


def test_system_categories_cannot_be_changed_or_deleted():
    system = _category("Labor", is_system=True)
    service, repo = _service(system)

    assert service.update_category(SCOPE, system.id, {"name": "Workers"}).error_code == "SYSTEM_CATEGORY"
    assert service.delete_category(SCOPE, system.id).error_code == "SYSTEM_CATEGORY"
    assert system.id in repo.categories


def test_rename_to_existing_name_is_rejected():
    steel, concrete = _category("Steel"), _category("Concrete")
    service, _ = _service(steel, concrete)

    assert service.update_category(SCOPE, steel.id, {"name": "Concrete"}).error_code == "CATEGORY_EXISTS"
    assert service.update_category(SCOPE, steel.id, {"name": "Rebar"})["category"]["name"] == "Rebar"


def test_category_in_use_cannot_be_deleted():
    steel = _category("Steel")
    service, repo = _service(steel)
    repo.used_names.add("Steel")

    result = service.delete_category(SCOPE, steel.id)

    assert result.error_code == "CATEGORY_IN_USE"
    assert steel.id in repo.categories


def test_unknown_category_is_not_found():
    service, _ = _service()

    assert service.update_category(SCOPE, "missing", {"name": "X"}).error_code == "CATEGORY_NOT_FOUND"


def test_reads_without_tenant_are_empty():
    service, _ = _service(_category("Steel"))

    assert service.list_categories(Scope()) == []
    assert service.list_project_categories(Scope()) == []
    assert len(service.list_project_categories(SCOPE)) == 1
    assert service.list_administrative_categories(SCOPE) == []
