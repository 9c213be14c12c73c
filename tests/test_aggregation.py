"""Tests for finance_tracker.aggregation."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

from finance_tracker import aggregation as agg
from finance_tracker.store import FinanceStore


def _sample_store():
    store = FinanceStore(seed_demo=False)
    user = store.create_user("ana@example.com", "secret", "Ana")
    account = store.create_account(user.id, "Bank")
    salary = store.create_category(user.id, "Salary", type="income")
    food = store.create_category(user.id, "Food", color="#FF5722")
    rent = store.create_category(user.id, "Rent", color="#673AB7")
    return store, user, account, {"salary": salary, "food": food, "rent": rent}


def test_dashboard_totals_ignore_opening_balances() -> None:
    store, user, account, cats = _sample_store()
    store.create_account(user.id, "Savings", type="savings", balance=1000)
    store.create_transaction(user.id, account.id, cats["salary"].id, 2000, date(2024, 1, 1), "pay")
    store.create_transaction(user.id, account.id, cats["food"].id, -150, date(2024, 1, 2), "groceries")
    store.create_transaction(user.id, account.id, cats["rent"].id, -800, date(2024, 1, 3), "rent")

    summary = agg.dashboard_summary(store, user.id)

    assert summary.total_income == 2000.0
    assert summary.total_expenses == 950.0
    assert summary.net_balance == 2050.0
    assert [a.name for a in summary.accounts] == ["Bank", "Savings"]


def test_dashboard_for_user_without_transactions() -> None:
    store, user, _, _ = _sample_store()
    summary = agg.dashboard_summary(store, user.id)
    assert summary.total_income == 0.0
    assert summary.total_expenses == 0.0
    assert summary.net_balance == 0.0
    assert summary.recent_transactions == []


def test_recent_transactions_are_latest_five_by_date() -> None:
    store, user, account, cats = _sample_store()
    for day in [3, 9, 1, 7, 5, 2, 8]:
        store.create_transaction(user.id, account.id, cats["food"].id, -day, date(2024, 2, day), f"d{day}")

    recent = agg.dashboard_summary(store, user.id).recent_transactions

    assert [t.date.day for t in recent] == [9, 8, 7, 5, 3]


def test_recent_transactions_keep_stored_order_for_equal_dates() -> None:
    store, user, account, cats = _sample_store()
    first = store.create_transaction(user.id, account.id, cats["food"].id, -1, date(2024, 2, 1), "first")
    second = store.create_transaction(user.id, account.id, cats["food"].id, -2, date(2024, 2, 1), "second")
    assert agg.recent_transactions([first, second], limit=5) == [first, second]


def test_budget_report_single_budget() -> None:
    store, user, account, cats = _sample_store()
    store.create_budget(user.id, cats["food"].id, 3, 2024, 1000)
    store.create_transaction(user.id, account.id, cats["food"].id, -400, date(2024, 3, 10), "groceries")
    # Outside the period and income are ignored
    store.create_transaction(user.id, account.id, cats["food"].id, -999, date(2024, 4, 1), "april")
    store.create_transaction(user.id, account.id, cats["salary"].id, 5000, date(2024, 3, 1), "pay")

    report = agg.budget_report(store, user.id, 3, 2024)

    assert list(report.columns) == agg.REPORT_COLUMNS
    assert len(report) == 1
    row = report.iloc[0]
    assert row["category_name"] == "Food"
    assert row["budget_amount"] == 1000.0
    assert row["spent_amount"] == 400.0
    assert row["remaining_amount"] == 600.0
    assert row["percentage"] == pytest.approx(40.0)
    assert row["status"] == "Under"


def test_budget_report_over_budget_and_zero_budget() -> None:
    store, user, account, cats = _sample_store()
    store.create_budget(user.id, cats["food"].id, 3, 2024, 100)
    store.create_budget(user.id, cats["rent"].id, 3, 2024, 0)
    store.create_transaction(user.id, account.id, cats["food"].id, -250, date(2024, 3, 10), "feast")
    store.create_transaction(user.id, account.id, cats["rent"].id, -50, date(2024, 3, 11), "fee")

    report = agg.budget_report(store, user.id, 3, 2024).set_index("category_name")

    assert report.loc["Food", "percentage"] == pytest.approx(250.0)
    assert report.loc["Food", "status"] == "Over"
    assert report.loc["Rent", "percentage"] == 0.0
    assert report.loc["Rent", "remaining_amount"] == -50.0


def test_budget_report_includes_unbudgeted_spending() -> None:
    store, user, account, cats = _sample_store()
    store.create_budget(user.id, cats["food"].id, 3, 2024, 1000)
    store.create_transaction(user.id, account.id, cats["food"].id, -100, date(2024, 3, 10), "snacks")
    store.create_transaction(user.id, account.id, cats["rent"].id, -800, date(2024, 3, 1), "rent")

    report = agg.budget_report(store, user.id, 3, 2024)

    assert list(report["category_name"]) == ["Rent", "Food"]
    rent = report.iloc[0]
    assert rent["budget_amount"] == 0.0
    assert rent["spent_amount"] == 800.0
    assert rent["percentage"] == 100.0
    assert rent["status"] == "Unbudgeted"


def test_budget_report_budget_without_spending() -> None:
    store, user, _, cats = _sample_store()
    store.create_budget(user.id, cats["rent"].id, 3, 2024, 900)
    report = agg.budget_report(store, user.id, 3, 2024)
    assert len(report) == 1
    assert report.iloc[0]["spent_amount"] == 0.0
    assert report.iloc[0]["percentage"] == 0.0


def test_budget_report_is_sorted_by_percentage_descending() -> None:
    store, user, account, cats = _sample_store()
    extra = store.create_category(user.id, "Fun")
    store.create_budget(user.id, cats["food"].id, 5, 2024, 100)
    store.create_budget(user.id, cats["rent"].id, 5, 2024, 100)
    store.create_budget(user.id, extra.id, 5, 2024, 100)
    store.create_transaction(user.id, account.id, cats["food"].id, -20, date(2024, 5, 1), "a")
    store.create_transaction(user.id, account.id, cats["rent"].id, -90, date(2024, 5, 1), "b")
    store.create_transaction(user.id, account.id, extra.id, -55, date(2024, 5, 1), "c")

    report = agg.budget_report(store, user.id, 5, 2024)

    assert list(report["category_name"]) == ["Rent", "Fun", "Food"]
    assert report["percentage"].is_monotonic_decreasing


def test_budget_report_empty() -> None:
    store, user, _, _ = _sample_store()
    report = agg.budget_report(store, user.id, 1, 2024)
    assert report.empty
    assert list(report.columns) == agg.REPORT_COLUMNS


def test_category_spending_groups_dangling_as_uncategorized() -> None:
    store, user, account, cats = _sample_store()
    store.create_transaction(user.id, account.id, cats["food"].id, -30, date(2024, 3, 1), "a")
    store.create_transaction(user.id, account.id, cats["food"].id, -20, date(2024, 3, 2), "b")
    store.create_transaction(user.id, account.id, cats["rent"].id, -10, date(2024, 3, 3), "c")
    store.delete_category(cats["rent"].id)

    spending = agg.category_spending(store, user.id)

    assert list(spending["Category"]) == ["Food", "Uncategorized"]
    assert list(spending["Spent"]) == [50.0, 10.0]


def test_category_spending_empty() -> None:
    store, user, _, _ = _sample_store()
    spending = agg.category_spending(store, user.id, 1, 2024)
    assert spending.empty
    assert list(spending.columns) == ["Category", "Spent", "Color"]


def test_monthly_income_vs_spend() -> None:
    store, user, account, cats = _sample_store()
    store.create_transaction(user.id, account.id, cats["salary"].id, 1000, date(2024, 1, 1), "pay")
    store.create_transaction(user.id, account.id, cats["food"].id, -300, date(2024, 1, 15), "food")
    store.create_transaction(user.id, account.id, cats["food"].id, -50, date(2024, 2, 3), "food")

    monthly = agg.monthly_income_vs_spend(store, user.id)

    expected = pd.DataFrame({
        "Month": ["2024-01", "2024-02"],
        "Income": [1000.0, 0.0],
        "Spending": [300.0, 50.0],
        "Savings": [700.0, -50.0],
    })
    pd.testing.assert_frame_equal(monthly, expected)


def test_filter_transactions() -> None:
    store, user, account, cats = _sample_store()
    other = store.create_account(user.id, "Cash", type="cash")
    pay = store.create_transaction(user.id, account.id, cats["salary"].id, 1000, date(2024, 1, 1), "Monthly pay")
    lunch = store.create_transaction(user.id, other.id, cats["food"].id, -12, date(2024, 1, 2), "Lunch")
    dinner = store.create_transaction(user.id, account.id, cats["food"].id, -30, date(2024, 1, 3), "Dinner out")
    everything = store.list_transactions(user.id)

    assert agg.filter_transactions(everything) == [dinner, lunch, pay]
    assert agg.filter_transactions(everything, kind="income") == [pay]
    assert agg.filter_transactions(everything, kind="expense") == [dinner, lunch]
    assert agg.filter_transactions(everything, on_date=date(2024, 1, 2)) == [lunch]
    assert agg.filter_transactions(everything, category_id=cats["food"].id) == [dinner, lunch]
    assert agg.filter_transactions(everything, account_id=other.id) == [lunch]
    assert agg.filter_transactions(everything, search="  OUT ") == [dinner]
    assert agg.filter_transactions(everything, search="   ") == [dinner, lunch, pay]


def test_filter_transactions_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        agg.filter_transactions([], kind="transfer")


def test_filter_stats() -> None:
    store, user, account, cats = _sample_store()
    store.create_transaction(user.id, account.id, cats["salary"].id, 1000, date(2024, 1, 1), "pay")
    store.create_transaction(user.id, account.id, cats["food"].id, -250, date(2024, 1, 2), "food")

    stats = agg.filter_stats(store.list_transactions(user.id))

    assert stats == {"total": 750.0, "income": 1000.0, "expenses": 250.0}
    assert agg.filter_stats([]) == {"total": 0.0, "income": 0.0, "expenses": 0.0}


def test_transactions_frame_labels_kind() -> None:
    store, user, account, cats = _sample_store()
    store.create_transaction(user.id, account.id, cats["salary"].id, 10, date(2024, 1, 1), "in")
    store.create_transaction(user.id, account.id, cats["food"].id, -10, date(2024, 1, 1), "out")
    store.create_transaction(user.id, account.id, cats["food"].id, 0, date(2024, 1, 1), "nothing")

    df = agg.transactions_frame(store.list_transactions(user.id))

    assert list(df["kind"]) == ["income", "expense", "zero"]
    assert pd.api.types.is_datetime64_any_dtype(df["date"])
