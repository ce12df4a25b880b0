"""Unit tests for employees/store.py -- EmployeeStore repository methods.

Covers:
- create / get / list round trip and ordering
- email uniqueness on create, replace, and patch (self excluded on updates)
- replace rewrites every field; patch touches only supplied fields
- NotFound for unknown ids, including a second delete
"""

from datetime import date

import pytest

from core.exceptions import NotFound, ValidationError
from employees.store import EMAIL_TAKEN, EmployeeStore


def _bob(**overrides) -> dict:
    fields = {"name": "Bob", "email": "bob@company.com", "phone": None, "birth_date": date(1990, 1, 1)}
    fields.update(overrides)
    return fields


@pytest.fixture
def bob(employee_store: EmployeeStore):
    return employee_store.create_employee(_bob(phone="5550000000"))


class TestCreateAndRead:
    def test_create_assigns_id_and_timestamps(self, employee_store: EmployeeStore) -> None:
        emp = employee_store.create_employee(_bob())
        assert emp.id == 1
        assert emp.name == "Bob"
        assert emp.birth_date == date(1990, 1, 1)
        assert emp.phone is None
        assert emp.created_at and emp.updated_at

    def test_get_returns_stored_record(self, employee_store: EmployeeStore, bob) -> None:
        assert employee_store.get_employee(bob.id) == bob

    def test_list_is_ordered_by_id(self, employee_store: EmployeeStore) -> None:
        employee_store.create_employee(_bob(email="b@company.com", name="B"))
        employee_store.create_employee(_bob(email="a@company.com", name="A"))
        names = [e.name for e in employee_store.list_employees()]
        assert names == ["B", "A"]

    def test_list_empty(self, employee_store: EmployeeStore) -> None:
        assert employee_store.list_employees() == []

    def test_get_unknown_raises_not_found(self, employee_store: EmployeeStore) -> None:
        with pytest.raises(NotFound):
            employee_store.get_employee(42)

    @pytest.mark.parametrize("employee_id", [2**63, -(2**63) - 1, 10**30])
    def test_out_of_range_id_raises_not_found(self, employee_store: EmployeeStore, employee_id: int) -> None:
        with pytest.raises(NotFound):
            employee_store.get_employee(employee_id)
        with pytest.raises(NotFound):
            employee_store.patch_employee(employee_id, {"name": "Ghost"})
        with pytest.raises(NotFound):
            employee_store.delete_employee(employee_id)

    def test_duplicate_email_rejected(self, employee_store: EmployeeStore, bob) -> None:
        with pytest.raises(ValidationError) as excinfo:
            employee_store.create_employee(_bob(name="Other Bob"))
        assert excinfo.value.errors == {"email": [EMAIL_TAKEN]}
        assert employee_store.count() == 1

    def test_missing_required_field_is_a_programming_error(self, employee_store: EmployeeStore) -> None:
        with pytest.raises(ValueError):
            employee_store.create_employee({"name": "No Email", "birth_date": date(1990, 1, 1)})

    def test_unknown_field_rejected(self, employee_store: EmployeeStore) -> None:
        with pytest.raises(ValueError):
            employee_store.create_employee(_bob(salary=1000))


class TestReplace:
    def test_replace_with_own_email_succeeds(self, employee_store: EmployeeStore, bob) -> None:
        updated = employee_store.replace_employee(bob.id, _bob(name="Robert"))
        assert updated.name == "Robert"
        assert updated.email == "bob@company.com"

    def test_replace_with_other_employees_email_fails(self, employee_store: EmployeeStore, bob) -> None:
        alice = employee_store.create_employee(_bob(name="Alice", email="alice@company.com"))
        with pytest.raises(ValidationError):
            employee_store.replace_employee(alice.id, _bob(name="Alice"))
        assert employee_store.get_employee(alice.id).email == "alice@company.com"

    def test_replace_clears_omitted_phone(self, employee_store: EmployeeStore, bob) -> None:
        fields = _bob()
        del fields["phone"]
        assert employee_store.replace_employee(bob.id, fields).phone is None

    def test_replace_unknown_raises_not_found(self, employee_store: EmployeeStore) -> None:
        with pytest.raises(NotFound):
            employee_store.replace_employee(7, _bob())


class TestPatch:
    def test_patch_only_touches_supplied_fields(self, employee_store: EmployeeStore, bob) -> None:
        updated = employee_store.patch_employee(bob.id, {"phone": "5551234567"})
        assert updated.phone == "5551234567"
        assert (updated.name, updated.email, updated.birth_date) == (bob.name, bob.email, bob.birth_date)
        assert updated.created_at == bob.created_at

    def test_patch_own_email_succeeds(self, employee_store: EmployeeStore, bob) -> None:
        assert employee_store.patch_employee(bob.id, {"email": "bob@company.com"}).email == "bob@company.com"

    def test_patch_taken_email_fails_and_leaves_record(self, employee_store: EmployeeStore, bob) -> None:
        employee_store.create_employee(_bob(name="Alice", email="alice@company.com"))
        with pytest.raises(ValidationError):
            employee_store.patch_employee(bob.id, {"email": "alice@company.com", "name": "Changed"})
        assert employee_store.get_employee(bob.id) == bob

    def test_empty_patch_returns_record_unchanged(self, employee_store: EmployeeStore, bob) -> None:
        assert employee_store.patch_employee(bob.id, {}) == bob

    def test_empty_patch_on_unknown_id_raises_not_found(self, employee_store: EmployeeStore) -> None:
        with pytest.raises(NotFound):
            employee_store.patch_employee(99, {})


class TestDelete:
    def test_delete_then_get_is_not_found(self, employee_store: EmployeeStore, bob) -> None:
        employee_store.delete_employee(bob.id)
        with pytest.raises(NotFound):
            employee_store.get_employee(bob.id)

    def test_second_delete_is_not_found(self, employee_store: EmployeeStore, bob) -> None:
        employee_store.delete_employee(bob.id)
        with pytest.raises(NotFound):
            employee_store.delete_employee(bob.id)
        assert employee_store.count() == 0

    def test_deleted_email_can_be_reused(self, employee_store: EmployeeStore, bob) -> None:
        employee_store.delete_employee(bob.id)
        assert employee_store.create_employee(_bob()).email == "bob@company.com"
