import logging
import pytest
from fastapi import status, HTTPException
from datetime import date
from pydantic import ValidationError

from backend.app.models.models import Budget, PeriodType
from backend.app.schemas.budgets import BudgetCreate, BudgetUpdate, BudgetFilter
from backend.app.services.budget_service import (
    create_budget,
    get_budget,
    get_budgets,
    update_budget,
    delete_budget,
    activate_budget,
    deactivate_budget,
    deactivate_expired_budgets,
    find_active_budget_by_category,
    find_overlapping_budgets,
    get_budget_history,
    get_budget_performance,
    get_all_user_ids_with_active_budgets
)


def budget_create(user, **overrides):
    data = dict(
        user_id=user.id,
        category_key="food",
        amount=500000.0,
        period_type=PeriodType.MONTHLY,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 31)
    )
    data.update(overrides)
    return BudgetCreate(**data)


# Service layer tests
def test_create_budget(db_session, test_user):
    """Test creating a budget"""
    budget = create_budget(db_session, budget_create(test_user))

    assert budget.id is not None
    assert budget.user_id == test_user.id
    assert budget.category_key == "food"
    assert budget.amount == 500000.0
    assert budget.period_type == "monthly"
    assert budget.is_active is True


def test_create_budget_unknown_user(db_session, test_user):
    data = budget_create(test_user)
    data.user_id = "missing-user"

    with pytest.raises(HTTPException) as excinfo:
        create_budget(db_session, data)
    assert excinfo.value.status_code == 404


def test_budget_end_must_follow_start(test_user):
    with pytest.raises(ValidationError):
        budget_create(test_user, start_date=date(2025, 1, 31), end_date=date(2025, 1, 31))


def test_budget_amount_must_be_positive(test_user):
    with pytest.raises(ValidationError):
        budget_create(test_user, amount=0)


def test_budget_period_type_is_validated(test_user):
    with pytest.raises(ValidationError):
        budget_create(test_user, period_type="yearly")


def test_overlapping_budget_is_logged_not_rejected(db_session, test_user, caplog):
    first = create_budget(db_session, budget_create(test_user))

    with caplog.at_level(logging.WARNING, logger="backend.app.services.budget_service"):
        second = create_budget(db_session, budget_create(
            test_user, start_date=date(2025, 1, 15), end_date=date(2025, 2, 14)
        ))

    assert second.id is not None
    assert "overlaps 1 active budget" in caplog.text
    assert first.id in caplog.text


def test_find_overlapping_budgets(db_session, test_user, make_budget):
    january = make_budget(test_user)
    make_budget(test_user, start_date=date(2025, 2, 1), end_date=date(2025, 2, 28))
    make_budget(test_user, category_key="transport")
    make_budget(test_user, is_active=False)

    overlapping = find_overlapping_budgets(db_session, test_user.id, "food", date(2025, 1, 31), date(2025, 1, 31))
    assert [b.id for b in overlapping] == [january.id]

    excluded = find_overlapping_budgets(
        db_session, test_user.id, "food", date(2025, 1, 1), date(2025, 1, 31), exclude_id=january.id
    )
    assert excluded == []


def test_get_budgets_with_filters(db_session, test_user, other_user, make_budget):
    make_budget(test_user, amount=100.0)
    make_budget(test_user, amount=300.0, category_key="transport", period_type="weekly",
                start_date=date(2025, 1, 6), end_date=date(2025, 1, 12))
    make_budget(test_user, amount=200.0, is_active=False)
    make_budget(other_user)

    assert len(get_budgets(db_session, test_user.id)) == 3
    assert len(get_budgets(db_session, test_user.id, BudgetFilter(is_active=True))) == 2
    assert [b.amount for b in get_budgets(db_session, test_user.id, BudgetFilter(period_type=PeriodType.WEEKLY))] == [300.0]
    assert len(get_budgets(db_session, test_user.id, BudgetFilter(amount_min=150.0, amount_max=250.0))) == 1
    assert len(get_budgets(db_session, test_user.id, BudgetFilter(start_date_from=date(2025, 1, 2)))) == 1


def test_get_budget_of_other_user(db_session, test_user, other_user, make_budget):
    budget = make_budget(test_user)

    with pytest.raises(HTTPException) as excinfo:
        get_budget(db_session, budget.id, other_user.id)
    assert excinfo.value.status_code == 404


def test_update_budget(db_session, test_user, make_budget):
    budget = make_budget(test_user)

    updated = update_budget(db_session, budget.id, test_user.id, BudgetUpdate(
        amount=600000.0, period_type=PeriodType.WEEKLY
    ))

    assert updated.amount == 600000.0
    assert updated.period_type == "weekly"


def test_update_budget_rejects_inverted_period(db_session, test_user, make_budget):
    budget = make_budget(test_user)

    with pytest.raises(HTTPException) as excinfo:
        update_budget(db_session, budget.id, test_user.id, BudgetUpdate(end_date=date(2024, 12, 1)))
    assert excinfo.value.status_code == 400


def test_delete_budget(db_session, test_user, make_budget):
    budget = make_budget(test_user)

    assert delete_budget(db_session, budget.id, test_user.id) == {"success": True}
    assert db_session.query(Budget).filter(Budget.id == budget.id).first() is None


def test_activate_and_deactivate(db_session, test_user, make_budget):
    budget = make_budget(test_user)

    assert deactivate_budget(db_session, budget.id, test_user.id).is_active is False
    assert activate_budget(db_session, budget.id, test_user.id).is_active is True


def test_find_active_budget_by_category(db_session, test_user, make_budget):
    make_budget(test_user, start_date=date(2024, 12, 1), end_date=date(2024, 12, 31))
    january = make_budget(test_user)

    found = find_active_budget_by_category(db_session, test_user.id, "food", today=date(2025, 1, 10))
    assert found.id == january.id
    assert find_active_budget_by_category(db_session, test_user.id, "food", today=date(2025, 3, 1)) is None


def test_deactivate_expired_budgets_is_idempotent(db_session, test_user, make_budget):
    today = date(2025, 2, 1)
    expired = make_budget(test_user, end_date=date(2025, 1, 31))
    ends_today = make_budget(test_user, start_date=date(2025, 1, 5), end_date=today)

    assert deactivate_expired_budgets(db_session, today) == 1
    db_session.refresh(expired)
    db_session.refresh(ends_today)
    assert expired.is_active is False
    assert ends_today.is_active is True

    assert deactivate_expired_budgets(db_session, today) == 0


def test_budget_history(db_session, test_user, make_budget):
    for month in (1, 2, 3):
        make_budget(test_user, start_date=date(2025, month, 1), end_date=date(2025, month, 28))
    make_budget(test_user, category_key="transport")

    history = get_budget_history(db_session, test_user.id, "food", limit=2)

    assert [b.start_date for b in history] == [date(2025, 3, 1), date(2025, 2, 1)]


def test_budget_performance(db_session, test_user, make_budget, make_transaction):
    make_budget(test_user, amount=100.0, start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
    make_budget(test_user, amount=100.0, start_date=date(2025, 2, 1), end_date=date(2025, 2, 28))
    make_budget(test_user, amount=50.0, category_key="transport")
    make_budget(test_user, amount=100.0, start_date=date(2024, 1, 1), end_date=date(2024, 1, 31))
    make_transaction(test_user, 80.0, date(2025, 1, 10))
    make_transaction(test_user, 150.0, date(2025, 2, 10))

    performance = get_budget_performance(db_session, test_user.id, months=6, today=date(2025, 3, 1))

    assert [p["category_key"] for p in performance] == ["food", "transport"]
    food = performance[0]
    assert food["budget_count"] == 2
    assert food["total_budget"] == 200.0
    assert food["total_spent"] == 230.0
    assert food["success_rate"] == 50.0
    assert food["average_utilization"] == pytest.approx(115.0)


def test_user_ids_with_active_budgets(db_session, test_user, other_user, make_budget):
    make_budget(test_user)
    make_budget(test_user, category_key="transport")
    make_budget(other_user, is_active=False)

    assert get_all_user_ids_with_active_budgets(db_session) == [test_user.id]


# API layer tests
def test_create_budget_endpoint(client, test_user):
    """Test POST /budgets endpoint"""
    response = client.post(
        "/api/v1/budgets/",
        json={
            "user_id": test_user.id,
            "category_key": "food",
            "amount": 500000.0,
            "period_type": "monthly",
            "start_date": "2025-01-01",
            "end_date": "2025-01-31"
        }
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["user_id"] == test_user.id
    assert data["amount"] == 500000.0
    assert data["is_active"] is True


def test_create_budget_endpoint_invalid_period(client, test_user):
    response = client.post(
        "/api/v1/budgets/",
        json={
            "user_id": test_user.id,
            "category_key": "food",
            "amount": 100.0,
            "start_date": "2025-01-31",
            "end_date": "2025-01-01"
        }
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_get_budgets_endpoint(client, test_user, make_budget):
    make_budget(test_user)
    make_budget(test_user, is_active=False)

    response = client.get(f"/api/v1/budgets/?user_id={test_user.id}&is_active=true")

    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()) == 1


def test_update_budget_endpoint(client, test_user, make_budget):
    budget = make_budget(test_user)

    response = client.put(
        f"/api/v1/budgets/{budget.id}?user_id={test_user.id}",
        json={"amount": 700.0}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["amount"] == 700.0


def test_deactivate_budget_endpoint(client, test_user, make_budget):
    budget = make_budget(test_user)

    response = client.post(f"/api/v1/budgets/{budget.id}/deactivate?user_id={test_user.id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_active"] is False


def test_delete_budget_endpoint(client, test_user, make_budget):
    budget = make_budget(test_user)

    response = client.delete(f"/api/v1/budgets/{budget.id}?user_id={test_user.id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["success"] is True


def test_budget_not_found_endpoint(client, test_user):
    response = client.get(f"/api/v1/budgets/nonexistent?user_id={test_user.id}")
    assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.parametrize("field", ["amount", "start_date", "end_date", "period_type", "is_active"])
def test_update_budget_endpoint_rejects_null(client, test_user, make_budget, field):
    budget = make_budget(test_user, amount=500.0)

    response = client.put(
        f"/api/v1/budgets/{budget.id}?user_id={test_user.id}",
        json={field: None}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_budget_update_omitted_fields_are_unset():
    update = BudgetUpdate(amount=700.0)
    assert update.model_dump(exclude_unset=True) == {"amount": 700.0}

    with pytest.raises(ValidationError):
        BudgetUpdate(amount=None)
