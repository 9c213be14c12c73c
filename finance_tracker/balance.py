"""Incremental account balance maintenance.

Balances are never recomputed from history; each transaction mutation
applies its signed delta to the owning account.  An account may also
carry an opening balance set when it was created, so the stored balance
is ``opening + sum(amounts)`` for the transactions that reference it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .models import Account, Transaction

if TYPE_CHECKING:  # pragma: no cover
    from .store import RecordCollection

logger = logging.getLogger(__name__)


def adjust_balance(accounts: "RecordCollection[Account]", account_id: str, delta: float) -> Optional[Account]:
    """Add ``delta`` to an account balance; a missing account is skipped."""
    account = accounts.get(account_id)
    if account is None:
        logger.debug("Skipping balance adjustment of %s for missing account %s", delta, account_id)
        return None
    if not delta:
        return account
    return accounts.update(account_id, {"balance": account.balance + delta})


def apply_created(accounts: "RecordCollection[Account]", transaction: Transaction) -> None:
    adjust_balance(accounts, transaction.account_id, transaction.amount)


def apply_deleted(accounts: "RecordCollection[Account]", transaction: Transaction) -> None:
    adjust_balance(accounts, transaction.account_id, -transaction.amount)


def apply_updated(accounts: "RecordCollection[Account]", old: Transaction, new: Transaction) -> None:
    """Reconcile balances after a transaction edit.

    Moving a transaction to another account reverses it on the old
    account and applies the new amount on the new one.
    """
    if old.account_id != new.account_id:
        apply_deleted(accounts, old)
        apply_created(accounts, new)
    elif new.amount != old.amount:
        adjust_balance(accounts, new.account_id, new.amount - old.amount)
