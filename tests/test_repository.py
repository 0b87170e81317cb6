import math
from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import ConflictError, NotFoundError, ParameterError
from app.models.appointment import AppointmentStatus
from app.models.customer import CommonStatus, Customer
from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.base import SortOptions, unit_of_work
from app.repositories.customer_repository import CustomerRepository


# =============================================================================
# Pagination
# =============================================================================

@pytest.mark.parametrize("total,limit", [(0, 10), (7, 10), (25, 10), (25, 7), (5, 1)])
def test_find_all_pagination_invariants(db, make_customer, total, limit):
    for _ in range(total):
        make_customer()
    repo = CustomerRepository(db)

    for page in range(1, (math.ceil(total / limit) if total else 1) + 2):
        result = repo.find_all(page=page, limit=limit)
        assert len(result.data) <= limit
        assert result.pagination.total == total
        assert result.pagination.total_pages == math.ceil(total / limit)


def test_find_all_second_page_of_twenty_five(db, make_customer):
    for _ in range(25):
        make_customer()

    result = CustomerRepository(db).find_all(page=2, limit=10)

    assert len(result.data) == 10
    assert result.pagination.page == 2
    assert result.pagination.total == 25
    assert result.pagination.total_pages == 3
    # default sort is name ascending
    assert result.data[0].name == "Customer 11"


def test_find_all_normalizes_bad_page_and_limit(db, make_customer):
    for _ in range(3):
        make_customer()

    result = CustomerRepository(db).find_all(page=0, limit=0)

    assert result.pagination.page == 1
    assert result.pagination.limit == 10
    assert len(result.data) == 3


# =============================================================================
# Criteria & sorting
# =============================================================================

def test_criteria_equality_and_camel_case_fields(db, make_customer):
    make_customer(name="Berlin GmbH", city="Berlin", postal_code="10115")
    make_customer(name="Hamburg AG", city="Hamburg", postal_code="20095")
    repo = CustomerRepository(db)

    assert [c.name for c in repo.find_by_criteria({"city": "Berlin"})] == ["Berlin GmbH"]
    assert [c.name for c in repo.find_by_criteria({"postalCode": "20095"})] == ["Hamburg AG"]


def test_criteria_operators(db, make_customer):
    make_customer(name="Alpha", city="Berlin")
    make_customer(name="Beta", city="Hamburg")
    make_customer(name="Gamma", city=None)
    repo = CustomerRepository(db)

    assert {c.name for c in repo.find_by_criteria({"name": {"contains": "ALP"}})} == {"Alpha"}
    assert {c.name for c in repo.find_by_criteria({"name": {"startsWith": "Be"}})} == {"Beta"}
    assert {c.name for c in repo.find_by_criteria({"city": None})} == {"Gamma"}
    assert {c.name for c in repo.find_by_criteria({"city": ["Berlin", "Hamburg"]})} == {"Alpha", "Beta"}
    assert {c.name for c in repo.find_by_criteria({"city": {"in": []}})} == set()
    assert {c.name for c in repo.find_by_criteria({"name": {"neq": "Alpha"}})} == {"Beta", "Gamma"}


def test_criteria_or_and_search(db, make_customer):
    make_customer(name="Mueller Bau", city="Munich")
    make_customer(name="Schmidt", company="Mueller Holding", city="Berlin")
    make_customer(name="Weber", city="Hamburg")
    repo = CustomerRepository(db)

    either = repo.find_by_criteria({"OR": [{"city": "Munich"}, {"city": "Hamburg"}]})
    assert {c.name for c in either} == {"Mueller Bau", "Weber"}

    found = repo.find_by_criteria({"search": "mueller"})
    assert {c.name for c in found} == {"Mueller Bau", "Schmidt"}

    assert repo.count({"search": "  "}) == 3


def test_unknown_criteria_field_raises_parameter_error(db):
    with pytest.raises(ParameterError) as exc_info:
        CustomerRepository(db).find_by_criteria({"shoeSize": 42})
    assert exc_info.value.status_code == 400


def test_unknown_operator_raises_parameter_error(db):
    with pytest.raises(ParameterError, match="Unknown operator 'in_'"):
        CustomerRepository(db).find_by_criteria({"city": {"in_": []}})


def test_count_by_group(db, make_customer):
    make_customer(status=CommonStatus.ACTIVE, city="Bonn")
    make_customer(status=CommonStatus.ACTIVE, city="Köln")
    make_customer(status=CommonStatus.INACTIVE, city="Bonn")
    repo = CustomerRepository(db)

    assert repo.count_by_group("status") == {"active": 2, "inactive": 1}
    assert repo.count_by_group("status", {"city": "Bonn"}) == {"active": 1, "inactive": 1}


def test_unknown_sort_field_falls_back_to_default(db, make_customer):
    make_customer(name="B")
    make_customer(name="A")

    rows = CustomerRepository(db).find_all(sort=SortOptions("doesNotExist", "desc")).data

    assert [c.name for c in rows] == ["A", "B"]


def test_relation_sort_orders_by_customer_name(db, make_customer):
    zed = make_customer(name="Zed")
    amy = make_customer(name="Amy")
    repo = AppointmentRepository(db)
    when = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)
    repo.create({"title": "First", "appointment_date": when, "customer_id": zed.id})
    repo.create({"title": "Second", "appointment_date": when, "customer_id": amy.id})

    rows = repo.find_all(sort=SortOptions("customerName", "asc")).data

    assert [a.title for a in rows] == ["Second", "First"]


# =============================================================================
# Writes
# =============================================================================

def test_update_missing_id_raises_not_found(db):
    with pytest.raises(NotFoundError):
        CustomerRepository(db).update(999, {"name": "Nobody"})


def test_update_stamps_updated_at(db, make_customer):
    customer = make_customer()
    before = customer.updated_at

    updated = CustomerRepository(db).update(customer.id, {"city": "Köln"})

    assert updated.city == "Köln"
    assert updated.updated_at >= before


def test_delete_returns_false_for_missing_id(db):
    assert CustomerRepository(db).delete(12345) is False


def test_bulk_update_skips_absent_ids(db, make_customer):
    first = make_customer()
    second = make_customer()
    repo = CustomerRepository(db)

    updated = repo.bulk_update([first.id, second.id, 9999], {"status": CommonStatus.INACTIVE})

    assert updated == 2
    assert repo.count({"status": CommonStatus.INACTIVE}) == 2


def test_unique_violation_becomes_conflict(db, make_customer):
    make_customer(email="dup@example.com")

    with pytest.raises(ConflictError) as exc_info:
        make_customer(email="dup@example.com")

    assert exc_info.value.status_code == 409
    assert exc_info.value.context["operation"] == "create"
    assert exc_info.value.context["table"] == "customers"
    # the session stays usable
    assert CustomerRepository(db).count() == 1


def test_delete_by_criteria_requires_criteria(db):
    with pytest.raises(ParameterError):
        CustomerRepository(db).delete_by_criteria({})


# =============================================================================
# Transactions
# =============================================================================

def test_transaction_commits_all_writes(db):
    repo = CustomerRepository(db)

    def work(tx):
        tx.create({"name": "One"})
        tx.create({"name": "Two"})
        return "done"

    assert repo.transaction(work) == "done"
    db.rollback()
    assert repo.count() == 2


def test_transaction_rolls_back_on_error(db):
    repo = CustomerRepository(db)

    def work(tx):
        tx.create({"name": "Ghost"})
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        repo.transaction(work)

    assert repo.count() == 0
    assert db.query(Customer).count() == 0


def test_nested_units_of_work_flatten(db):
    customers = CustomerRepository(db)
    appointments = AppointmentRepository(db)

    with pytest.raises(ValueError):
        with unit_of_work(db):
            customer = customers.create({"name": "Outer"})
            with unit_of_work(db):
                appointments.create(
                    {
                        "title": "Inner",
                        "customer_id": customer.id,
                        "appointment_date": datetime.now(timezone.utc) + timedelta(days=1),
                        "status": AppointmentStatus.PLANNED,
                    }
                )
            raise ValueError("abort outer")

    assert customers.count() == 0
    assert appointments.count() == 0
