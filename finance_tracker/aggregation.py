"""Dashboard and budget calculations over the in-memory records.

All views are recomputed from the store on every call.  Transactions are
loaded into a pandas DataFrame so that the sums and monthly groupings read
the same way as the rest of the analytics code.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from .config import RECENT_TRANSACTIONS_LIMIT
from .models import Account, Transaction
from .store import FinanceStore

TRANSACTION_COLUMNS = ['id', 'user_id', 'account_id', 'category_id', 'amount', 'date', 'description']
REPORT_COLUMNS = [
    'category_id',
    'category_name',
    'category_color',
    'budget_id',
    'budget_amount',
    'spent_amount',
    'remaining_amount',
    'percentage',
    'status',
]


@dataclass
class DashboardSummary:
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_balance: float = 0.0
    accounts: List[Account] = field(default_factory=list)
    recent_transactions: List[Transaction] = field(default_factory=list)


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build a DataFrame of transactions with a parsed ``date`` column.

    A ``kind`` column labels each row ``income``, ``expense`` or ``zero``
    from the sign of its amount.
    """
    rows = [{k: v for k, v in asdict(txn).items() if k in TRANSACTION_COLUMNS} for txn in transactions]
    df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').astype(float)
    df['date'] = pd.to_datetime(df['date'])
    df['kind'] = np.where(df['amount'] > 0, 'income', np.where(df['amount'] < 0, 'expense', 'zero'))
    return df


def recent_transactions(transactions: Iterable[Transaction], limit: int = RECENT_TRANSACTIONS_LIMIT) -> List[Transaction]:
    """Latest transactions by date; equal dates keep their stored order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)[:limit]


def dashboard_summary(store: FinanceStore, user_id: str, recent_limit: int = RECENT_TRANSACTIONS_LIMIT) -> DashboardSummary:
    """Headline totals for the dashboard.

    Income and expenses come from transaction history, while the net
    balance is the sum of the stored account balances.  The two are not
    reconciled: an account opened with a non-zero balance shows up in
    ``net_balance`` only.
    """
    transactions = store.list_transactions(user_id)
    accounts = store.list_accounts(user_id)
    df = transactions_frame(transactions)

    total_income = float(df.loc[df['amount'] > 0, 'amount'].sum())
    total_expenses = float(df.loc[df['amount'] < 0, 'amount'].abs().sum())
    net_balance = float(sum(account.balance for account in accounts))

    return DashboardSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_balance=net_balance,
        accounts=accounts,
        recent_transactions=recent_transactions(transactions, recent_limit),
    )


def _period_expenses(df: pd.DataFrame, month: Optional[int] = None, year: Optional[int] = None) -> pd.DataFrame:
    scoped = df[df['amount'] < 0]
    if month is not None:
        scoped = scoped[scoped['date'].dt.month == month]
    if year is not None:
        scoped = scoped[scoped['date'].dt.year == year]
    return scoped


def budget_report(store: FinanceStore, user_id: str, month: int, year: int) -> pd.DataFrame:
    """Spent vs. budgeted for every expense category in one month.

    Args:
        store: Record store to read from
        user_id: Owner of the categories, budgets and transactions
        month: Calendar month (1-12)
        year: Four-digit year

    Returns:
        DataFrame with ``REPORT_COLUMNS``, sorted by ``percentage``
        descending.  Categories with a budget always appear; categories
        with spending but no budget appear with a zero budget and 100%.
        A zero-amount budget reports 0%.
    """
    df = transactions_frame(store.list_transactions(user_id))
    expenses = _period_expenses(df, month, year)
    spent_by_category = expenses.groupby('category_id')['amount'].sum().abs()

    rows = []
    for category in store.list_categories(user_id):
        if not category.is_expense:
            continue
        budget = store.find_budget(user_id, category.id, month, year)
        spent = float(spent_by_category.get(category.id, 0.0))
        if budget is not None:
            remaining = budget.amount - spent
            percentage = (spent * 100.0 / budget.amount) if budget.amount else 0.0
            rows.append({
                'category_id': category.id,
                'category_name': category.name,
                'category_color': category.color,
                'budget_id': budget.id,
                'budget_amount': budget.amount,
                'spent_amount': spent,
                'remaining_amount': remaining,
                'percentage': percentage,
                'status': 'Over' if remaining < 0 else 'Under',
            })
        elif spent > 0:
            rows.append({
                'category_id': category.id,
                'category_name': category.name,
                'category_color': category.color,
                'budget_id': None,
                'budget_amount': 0.0,
                'spent_amount': spent,
                'remaining_amount': 0.0,
                'percentage': 100.0,
                'status': 'Unbudgeted',
            })

    report = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    if report.empty:
        return report
    return report.sort_values('percentage', ascending=False, kind='stable').reset_index(drop=True)


def category_spending(
    store: FinanceStore,
    user_id: str,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> pd.DataFrame:
    """Total spend per category name, largest first.

    Transactions whose category no longer exists are grouped under
    ``Uncategorized``.
    """
    df = transactions_frame(store.list_transactions(user_id))
    expenses = _period_expenses(df, month, year).copy()
    if expenses.empty:
        return pd.DataFrame(columns=['Category', 'Spent', 'Color'])

    names: Dict[str, str] = {}
    colors: Dict[str, str] = {}
    for category in store.list_categories(user_id):
        names[category.id] = category.name
        colors[category.id] = category.color
    expenses['Category'] = expenses['category_id'].map(names).fillna('Uncategorized')
    expenses['Color'] = expenses['category_id'].map(colors).fillna('#9E9E9E')
    expenses['Spent'] = expenses['amount'].abs()

    grouped = expenses.groupby(['Category', 'Color'], as_index=False)['Spent'].sum()
    return grouped.sort_values('Spent', ascending=False).reset_index(drop=True)[['Category', 'Spent', 'Color']]


def monthly_income_vs_spend(store: FinanceStore, user_id: str) -> pd.DataFrame:
    """Create DataFrame showing monthly income vs spending.

    Returns:
        DataFrame with columns: Month, Income, Spending, Savings
    """
    data = transactions_frame(store.list_transactions(user_id))
    if data.empty:
        return pd.DataFrame(columns=['Month', 'Income', 'Spending', 'Savings'])

    data['Month'] = data['date'].dt.to_period('M')
    income_by_month = data[data['amount'] > 0].groupby('Month')['amount'].sum()
    spending_by_month = data[data['amount'] < 0].groupby('Month')['amount'].sum().abs()

    months = sorted(set(income_by_month.index) | set(spending_by_month.index))
    rows = []
    for month in months:
        income = float(income_by_month.get(month, 0.0))
        spending = float(spending_by_month.get(month, 0.0))
        rows.append({
            'Month': str(month),
            'Income': income,
            'Spending': spending,
            'Savings': income - spending,
        })
    return pd.DataFrame(rows, columns=['Month', 'Income', 'Spending', 'Savings'])


def filter_transactions(
    transactions: Iterable[Transaction],
    *,
    on_date: Optional[date] = None,
    category_id: Optional[str] = None,
    account_id: Optional[str] = None,
    kind: str = 'all',
    search: Optional[str] = None,
) -> List[Transaction]:
    """Filter transactions for the transactions page, newest first.

    ``kind`` is ``all``, ``income`` (amount > 0) or ``expense``
    (amount < 0).  ``search`` matches the description case-insensitively.
    """
    if kind not in {'all', 'income', 'expense'}:
        raise ValueError(f"Unknown transaction kind '{kind}'")

    filtered = list(transactions)
    if on_date is not None:
        filtered = [t for t in filtered if t.date == on_date]
    if category_id:
        filtered = [t for t in filtered if t.category_id == category_id]
    if account_id:
        filtered = [t for t in filtered if t.account_id == account_id]
    if kind == 'income':
        filtered = [t for t in filtered if t.amount > 0]
    elif kind == 'expense':
        filtered = [t for t in filtered if t.amount < 0]
    if search and search.strip():
        needle = search.strip().lower()
        filtered = [t for t in filtered if needle in (t.description or '').lower()]
    return sorted(filtered, key=lambda t: t.date, reverse=True)


def filter_stats(transactions: Iterable[Transaction]) -> Dict[str, float]:
    df = transactions_frame(transactions)
    return {
        'total': float(df['amount'].sum()),
        'income': float(df.loc[df['amount'] > 0, 'amount'].sum()),
        'expenses': float(df.loc[df['amount'] < 0, 'amount'].abs().sum()),
    }
