"""Request layer between the UI and the record store.

:class:`FinanceService` is bound to one store and the logged-in user.  It
fills in the owner id on every create, applies the form convention that
expense amounts are negative and income amounts positive, and exposes the
dashboard, budget and CSV operations as plain synchronous calls.
"""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional

import pandas as pd

from . import aggregation, import_export
from .models import Account, Budget, Category, Transaction, User
from .store import FinanceStore


def coerce_amount_sign(amount: float, category: Optional[Category]) -> float:
    """Negative for expense categories, positive otherwise."""
    magnitude = abs(float(amount))
    if category is not None and category.is_expense:
        return -magnitude
    return magnitude


class FinanceService:
    """Operations available to one logged-in user."""

    def __init__(self, store: FinanceStore, user: User):
        self.store = store
        self.user = user

    @property
    def user_id(self) -> str:
        return self.user.id

    def _owned(self, record: Any) -> Any:
        if record is None or getattr(record, 'user_id', None) != self.user_id:
            return None
        return record

    # Accounts ---------------------------------------------------------

    def accounts(self) -> List[Account]:
        return self.store.list_accounts(self.user_id)

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._owned(self.store.get_account(account_id))

    def create_account(self, name: str, type: str = 'checking', balance: float = 0.0) -> Account:
        return self.store.create_account(self.user_id, name, type=type, balance=balance)

    def update_account(self, account_id: str, **updates: Any) -> Optional[Account]:
        if self.get_account(account_id) is None:
            return None
        return self.store.update_account(account_id, **updates)

    def delete_account(self, account_id: str) -> bool:
        if self.get_account(account_id) is None:
            return False
        return self.store.delete_account(account_id)

    def account_name(self, account_id: str, default: str = 'Unknown Account') -> str:
        account = self.get_account(account_id)
        return account.name if account else default

    # Categories -------------------------------------------------------

    def categories(self, type: Optional[str] = None) -> List[Category]:
        categories = self.store.list_categories(self.user_id)
        if type is not None:
            categories = [c for c in categories if c.type == type]
        return categories

    def get_category(self, category_id: str) -> Optional[Category]:
        return self._owned(self.store.get_category(category_id))

    def create_category(
        self, name: str, type: str = 'expense', color: str = '#9E9E9E', budget_enabled: bool = False
    ) -> Category:
        return self.store.create_category(
            self.user_id, name, type=type, color=color, budget_enabled=budget_enabled
        )

    def update_category(self, category_id: str, **updates: Any) -> Optional[Category]:
        if self.get_category(category_id) is None:
            return None
        return self.store.update_category(category_id, **updates)

    def delete_category(self, category_id: str) -> bool:
        if self.get_category(category_id) is None:
            return False
        return self.store.delete_category(category_id)

    def category_name(self, category_id: str, default: str = 'Uncategorized') -> str:
        category = self.get_category(category_id)
        return category.name if category else default

    # Transactions -----------------------------------------------------

    def transactions(self) -> List[Transaction]:
        return self.store.list_transactions(self.user_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._owned(self.store.get_transaction(transaction_id))

    def record_transaction(
        self,
        account_id: str,
        category_id: str,
        amount: float,
        date: date,
        description: str = '',
        coerce_sign: bool = True,
    ) -> Transaction:
        if coerce_sign:
            amount = coerce_amount_sign(amount, self.get_category(category_id))
        return self.store.create_transaction(
            self.user_id, account_id, category_id, amount, date, description
        )

    def edit_transaction(self, transaction_id: str, coerce_sign: bool = True, **updates: Any) -> Optional[Transaction]:
        current = self.get_transaction(transaction_id)
        if current is None:
            return None
        if coerce_sign and 'amount' in updates:
            category_id = updates.get('category_id', current.category_id)
            updates['amount'] = coerce_amount_sign(updates['amount'], self.get_category(category_id))
        return self.store.update_transaction(transaction_id, **updates)

    def delete_transaction(self, transaction_id: str) -> bool:
        if self.get_transaction(transaction_id) is None:
            return False
        return self.store.delete_transaction(transaction_id)

    def filtered_transactions(self, **filters: Any) -> List[Transaction]:
        return aggregation.filter_transactions(self.transactions(), **filters)

    # Budgets ----------------------------------------------------------

    def budgets(self) -> List[Budget]:
        return self.store.list_budgets(self.user_id)

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        return self._owned(self.store.get_budget(budget_id))

    def create_budget(self, category_id: str, month: int, year: int, amount: float) -> Budget:
        return self.store.create_budget(self.user_id, category_id, month, year, amount)

    def update_budget(self, budget_id: str, **updates: Any) -> Optional[Budget]:
        if self.get_budget(budget_id) is None:
            return None
        return self.store.update_budget(budget_id, **updates)

    def delete_budget(self, budget_id: str) -> bool:
        if self.get_budget(budget_id) is None:
            return False
        return self.store.delete_budget(budget_id)

    # Views ------------------------------------------------------------

    def dashboard(self) -> aggregation.DashboardSummary:
        return aggregation.dashboard_summary(self.store, self.user_id)

    def budget_report(self, month: int, year: int) -> pd.DataFrame:
        return aggregation.budget_report(self.store, self.user_id, month, year)

    def category_spending(self, month: Optional[int] = None, year: Optional[int] = None) -> pd.DataFrame:
        return aggregation.category_spending(self.store, self.user_id, month, year)

    def monthly_trend(self) -> pd.DataFrame:
        return aggregation.monthly_income_vs_spend(self.store, self.user_id)

    # Import / export --------------------------------------------------

    def import_csv(self, text: str, account_id: str) -> import_export.ImportResult:
        return import_export.import_transactions(self.store, self.user_id, text, account_id)

    def export_csv(self) -> str:
        return import_export.generate_csv(self.store, self.transactions())
