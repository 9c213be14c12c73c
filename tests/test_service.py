"""Tests for the request layer used by the UI."""

from __future__ import annotations

from datetime import date

from finance_tracker.service import FinanceService, coerce_amount_sign
from finance_tracker.store import FinanceStore


def _service():
    store = FinanceStore(seed_demo=False)
    user = store.create_user("ana@example.com", "secret", "Ana")
    store.seed_default_categories(user.id)
    return FinanceService(store, user.masked())


def test_coerce_amount_sign() -> None:
    service = _service()
    food = service.store.find_category_by_name(service.user_id, "Food & Dining")
    salary = service.store.find_category_by_name(service.user_id, "Salary")
    assert coerce_amount_sign(25, food) == -25.0
    assert coerce_amount_sign(-25, food) == -25.0
    assert coerce_amount_sign(-25, salary) == 25.0
    assert coerce_amount_sign(-25, None) == 25.0


def test_record_and_edit_transaction_apply_category_sign() -> None:
    service = _service()
    account = service.create_account("Bank")
    food = [c for c in service.categories("expense") if c.name == "Food & Dining"][0]
    salary = [c for c in service.categories("income") if c.name == "Salary"][0]

    txn = service.record_transaction(account.id, food.id, 40, date(2024, 1, 1), "Lunch")
    assert txn.amount == -40.0
    assert service.get_account(account.id).balance == -40.0

    edited = service.edit_transaction(txn.id, amount=40, category_id=salary.id)
    assert edited.amount == 40.0
    assert service.get_account(account.id).balance == 40.0


def test_record_transaction_without_sign_coercion() -> None:
    service = _service()
    account = service.create_account("Bank")
    food = service.categories("expense")[0]
    txn = service.record_transaction(account.id, food.id, 15, date(2024, 1, 1), "Refund", coerce_sign=False)
    assert txn.amount == 15.0


def test_other_users_records_are_invisible() -> None:
    service = _service()
    store = service.store
    other = store.create_user("bo@example.com", "pw", "Bo")
    foreign_account = store.create_account(other.id, "Theirs")
    foreign_category = store.create_category(other.id, "Theirs")
    foreign_txn = store.create_transaction(
        other.id, foreign_account.id, foreign_category.id, -5, date(2024, 1, 1), "x"
    )
    foreign_budget = store.create_budget(other.id, foreign_category.id, 1, 2024, 10)

    assert service.get_account(foreign_account.id) is None
    assert service.update_account(foreign_account.id, name="Mine") is None
    assert service.delete_account(foreign_account.id) is False
    assert service.delete_category(foreign_category.id) is False
    assert service.edit_transaction(foreign_txn.id, amount=1) is None
    assert service.delete_transaction(foreign_txn.id) is False
    assert service.delete_budget(foreign_budget.id) is False
    assert service.account_name(foreign_account.id) == "Unknown Account"
    assert service.category_name(foreign_category.id) == "Uncategorized"
    assert store.get_account(foreign_account.id).name == "Theirs"


def test_views_and_csv_round_through_the_service() -> None:
    service = _service()
    account = service.create_account("Bank")
    food = [c for c in service.categories("expense") if c.name == "Food & Dining"][0]
    service.create_budget(food.id, 1, 2024, 200)
    service.record_transaction(account.id, food.id, 50, date(2024, 1, 10), "Dinner")

    assert service.dashboard().total_expenses == 50.0
    report = service.budget_report(1, 2024)
    assert report.iloc[0]["percentage"] == 25.0
    assert list(service.category_spending()["Category"]) == ["Food & Dining"]
    assert list(service.monthly_trend()["Month"]) == ["2024-01"]
    assert [t.description for t in service.filtered_transactions(kind="expense")] == ["Dinner"]

    exported = service.export_csv()
    assert exported.splitlines()[1].endswith(",2024-01-10,-50,Dinner,Bank,Food & Dining")

    result = service.import_csv("date,amount,description\n2024-01-11,-5,Coffee", account.id)
    assert result.inserted == 1
    assert service.get_account(account.id).balance == -55.0


def test_budget_crud() -> None:
    service = _service()
    food = service.categories("expense")[0]
    budget = service.create_budget(food.id, 2, 2024, 100)
    assert service.budgets() == [budget]
    assert service.update_budget(budget.id, amount=150).amount == 150.0
    assert service.delete_budget(budget.id) is True
    assert service.budgets() == []
