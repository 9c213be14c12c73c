"""In-memory record store for users, accounts, categories, transactions and budgets.

A :class:`FinanceStore` is constructed explicitly by the application (one
per UI session) and passed to whatever needs it.  Nothing is written to
disk; a new store starts with only the seeded demo user and its default
categories.

Lookups that miss return ``None`` (or ``False`` for deletes) rather than
raising.  Invalid field values raise ``ValueError``.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from datetime import date, datetime
from typing import Any, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from . import balance
from .config import DEMO_EMAIL, DEMO_NAME, DEMO_PASSWORD, SEED_DEMO_USER
from .models import (
    DEFAULT_CATEGORIES,
    Account,
    Budget,
    Category,
    Transaction,
    User,
    new_id,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

_READONLY_FIELDS = {"id", "created_at"}


class DuplicateBudgetError(ValueError):
    """Raised when a second budget is declared for the same category and period."""


class RecordCollection(Generic[R]):
    """Insertion-ordered collection of one record type, keyed by ``id``."""

    def __init__(self, record_type: Type[R]):
        self.record_type = record_type
        self._records: List[R] = []
        self._field_names = {f.name for f in fields(record_type)}

    def __iter__(self) -> Iterator[R]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def _index_of(self, record_id: str) -> int:
        for idx, record in enumerate(self._records):
            if record.id == record_id:
                return idx
        return -1

    def get(self, record_id: str) -> Optional[R]:
        idx = self._index_of(record_id)
        return self._records[idx] if idx >= 0 else None

    def list_by(self, field_name: str, value: Any) -> List[R]:
        return [record for record in self._records if getattr(record, field_name) == value]

    def list_by_owner(self, owner_id: str) -> List[R]:
        return self.list_by("user_id", owner_id)

    def insert(self, values: Dict[str, Any]) -> R:
        now = datetime.now()
        data = dict(values)
        data["id"] = new_id()
        data["created_at"] = now
        if "updated_at" in self._field_names:
            data["updated_at"] = now
        self._check_fields(data)
        record = self.record_type(**data)
        self._records.append(record)
        return record

    def update(self, record_id: str, updates: Dict[str, Any]) -> Optional[R]:
        idx = self._index_of(record_id)
        if idx < 0:
            return None
        blocked = _READONLY_FIELDS.intersection(updates)
        if blocked:
            raise ValueError(f"Cannot update read-only field(s): {', '.join(sorted(blocked))}")
        self._check_fields(updates)
        changes = dict(updates)
        if "updated_at" in self._field_names:
            changes["updated_at"] = datetime.now()
        record = replace(self._records[idx], **changes)
        self._records[idx] = record
        return record

    def delete(self, record_id: str) -> Optional[R]:
        idx = self._index_of(record_id)
        if idx < 0:
            return None
        return self._records.pop(idx)

    def _check_fields(self, values: Dict[str, Any]) -> None:
        unknown = set(values) - self._field_names
        if unknown:
            raise ValueError(
                f"Unknown field(s) for {self.record_type.__name__}: {', '.join(sorted(unknown))}"
            )


class FinanceStore:
    """All record collections of one session plus the operations on them."""

    def __init__(self, seed_demo: Optional[bool] = None):
        self.users: RecordCollection[User] = RecordCollection(User)
        self.accounts: RecordCollection[Account] = RecordCollection(Account)
        self.categories: RecordCollection[Category] = RecordCollection(Category)
        self.transactions: RecordCollection[Transaction] = RecordCollection(Transaction)
        self.budgets: RecordCollection[Budget] = RecordCollection(Budget)
        if seed_demo is None:
            seed_demo = SEED_DEMO_USER
        if seed_demo:
            self.seed_demo_user()

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed_demo_user(self) -> User:
        existing = self.get_user_by_email(DEMO_EMAIL)
        if existing is not None:
            return existing
        user = self.create_user(DEMO_EMAIL, DEMO_PASSWORD, DEMO_NAME)
        self.seed_default_categories(user.id)
        return user

    def seed_default_categories(self, user_id: str) -> List[Category]:
        return [
            self.create_category(user_id, name, type=kind, color=color, budget_enabled=enabled)
            for name, kind, color, enabled in DEFAULT_CATEGORIES
        ]

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def list_users(self) -> List[User]:
        return list(self.users)

    def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        matches = self.users.list_by("email", email)
        return matches[0] if matches else None

    def create_user(self, email: str, password: str, name: str) -> User:
        user = self.users.insert({"email": email, "password": password, "name": name})
        logger.info("Created user %s", user.email)
        return user

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_accounts(self, user_id: str) -> List[Account]:
        return self.accounts.list_by_owner(user_id)

    def get_account(self, account_id: str) -> Optional[Account]:
        return self.accounts.get(account_id)

    def create_account(self, user_id: str, name: str, type: str = "checking", balance: float = 0.0) -> Account:
        return self.accounts.insert({"user_id": user_id, "name": name, "type": type, "balance": balance})

    def update_account(self, account_id: str, **updates: Any) -> Optional[Account]:
        return self.accounts.update(account_id, updates)

    def delete_account(self, account_id: str) -> bool:
        """Delete an account together with every transaction posted to it."""
        removed = self.accounts.delete(account_id)
        if removed is None:
            return False
        orphans = self.transactions.list_by("account_id", account_id)
        for txn in orphans:
            self.transactions.delete(txn.id)
        logger.info("Deleted account %s and %d transaction(s)", removed.name, len(orphans))
        return True

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self, user_id: str) -> List[Category]:
        return self.categories.list_by_owner(user_id)

    def get_category(self, category_id: str) -> Optional[Category]:
        return self.categories.get(category_id)

    def find_category_by_name(self, user_id: str, name: str) -> Optional[Category]:
        for category in self.list_categories(user_id):
            if category.name == name:
                return category
        return None

    def create_category(
        self,
        user_id: str,
        name: str,
        type: str = "expense",
        color: str = "#9E9E9E",
        budget_enabled: bool = False,
    ) -> Category:
        return self.categories.insert({
            "user_id": user_id,
            "name": name,
            "type": type,
            "color": color,
            "budget_enabled": budget_enabled,
        })

    def update_category(self, category_id: str, **updates: Any) -> Optional[Category]:
        return self.categories.update(category_id, updates)

    def delete_category(self, category_id: str) -> bool:
        """Delete a category and its budgets.

        Transactions keep pointing at the removed id; display code renders
        them as uncategorized.
        """
        removed = self.categories.delete(category_id)
        if removed is None:
            return False
        for budget in self.budgets.list_by("category_id", category_id):
            self.budgets.delete(budget.id)
        return True

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def list_transactions(self, user_id: str) -> List[Transaction]:
        return self.transactions.list_by_owner(user_id)

    def list_account_transactions(self, account_id: str) -> List[Transaction]:
        return self.transactions.list_by("account_id", account_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.transactions.get(transaction_id)

    def create_transaction(
        self,
        user_id: str,
        account_id: str,
        category_id: str,
        amount: float,
        date: date,
        description: str = "",
    ) -> Transaction:
        txn = self.transactions.insert({
            "user_id": user_id,
            "account_id": account_id,
            "category_id": category_id,
            "amount": amount,
            "date": date,
            "description": description,
        })
        balance.apply_created(self.accounts, txn)
        logger.debug("Created transaction %s (%s) on account %s", txn.id, txn.amount, txn.account_id)
        return txn

    def update_transaction(self, transaction_id: str, **updates: Any) -> Optional[Transaction]:
        old = self.transactions.get(transaction_id)
        if old is None:
            return None
        new = self.transactions.update(transaction_id, updates)
        balance.apply_updated(self.accounts, old, new)
        return new

    def delete_transaction(self, transaction_id: str) -> bool:
        removed = self.transactions.delete(transaction_id)
        if removed is None:
            return False
        balance.apply_deleted(self.accounts, removed)
        return True

    # ------------------------------------------------------------------
    # Budgets
    # ------------------------------------------------------------------

    def list_budgets(self, user_id: str) -> List[Budget]:
        return self.budgets.list_by_owner(user_id)

    def list_category_budgets(self, category_id: str) -> List[Budget]:
        return self.budgets.list_by("category_id", category_id)

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        return self.budgets.get(budget_id)

    def find_budget(self, user_id: str, category_id: str, month: int, year: int) -> Optional[Budget]:
        for budget in self.list_budgets(user_id):
            if budget.category_id == category_id and budget.month == month and budget.year == year:
                return budget
        return None

    def create_budget(self, user_id: str, category_id: str, month: int, year: int, amount: float) -> Budget:
        if self.find_budget(user_id, category_id, int(month), int(year)) is not None:
            raise DuplicateBudgetError(
                f"A budget already exists for this category in {int(month):02d}/{int(year)}"
            )
        return self.budgets.insert({
            "user_id": user_id,
            "category_id": category_id,
            "month": month,
            "year": year,
            "amount": amount,
        })

    def update_budget(self, budget_id: str, **updates: Any) -> Optional[Budget]:
        current = self.budgets.get(budget_id)
        if current is None:
            return None
        category_id = updates.get("category_id", current.category_id)
        month = int(updates.get("month", current.month))
        year = int(updates.get("year", current.year))
        clash = self.find_budget(current.user_id, category_id, month, year)
        if clash is not None and clash.id != budget_id:
            raise DuplicateBudgetError(
                f"A budget already exists for this category in {month:02d}/{year}"
            )
        return self.budgets.update(budget_id, updates)

    def delete_budget(self, budget_id: str) -> bool:
        return self.budgets.delete(budget_id) is not None
