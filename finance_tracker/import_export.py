"""CSV import and export of transactions.

The text format is deliberately simple: one header row, values split on
commas with no quoting.  Descriptions that contain commas will shift the
following columns, exactly as a naive reader would.

Import is a two step process.  :func:`parse_csv` turns the text into a
DataFrame of candidate rows, leaving invalid dates as ``NaT`` and invalid
amounts as ``NaN``.  :func:`import_transactions` then drops those rows and
creates the rest on the chosen account under a single fallback category.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from .config import FALLBACK_IMPORT_CATEGORY
from .models import Category, Transaction
from .store import FinanceStore

logger = logging.getLogger(__name__)

EXPORT_HEADER = ['id', 'date', 'amount', 'description', 'account', 'category']
IMPORT_COLUMNS = ['date', 'amount', 'description', 'category']
REQUIRED_IMPORT_COLUMNS = ('date', 'amount', 'description')


@dataclass
class ImportResult:
    created: List[Transaction] = field(default_factory=list)
    skipped: int = 0
    category_id: Optional[str] = None

    @property
    def inserted(self) -> int:
        return len(self.created)


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def _format_amount(amount: float) -> str:
    """Render whole amounts without a trailing ``.0``."""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def generate_csv(store: FinanceStore, transactions: Iterable[Transaction]) -> str:
    """Serialize transactions with account and category display names.

    Dangling account or category references are written as empty strings.
    """
    lines = [','.join(EXPORT_HEADER)]
    for txn in transactions:
        account = store.get_account(txn.account_id)
        category = store.get_category(txn.category_id)
        lines.append(','.join([
            txn.id,
            txn.date.isoformat(),
            _format_amount(txn.amount),
            txn.description or '',
            account.name if account else '',
            category.name if category else '',
        ]))
    return '\n'.join(lines)


def export_filename(today: Optional[date] = None) -> str:
    return f"transactions-{(today or date.today()).isoformat()}.csv"


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _cell(values: Sequence[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(values):
        return None
    return values[index]


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


def _to_timestamp(value: Any) -> pd.Timestamp:
    if value is None or (isinstance(value, str) and not value.strip()):
        return pd.NaT
    parsed = pd.to_datetime(value.strip(), errors='coerce')
    if not pd.isna(parsed) and parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed


def parse_csv(text: str) -> pd.DataFrame:
    """Parse CSV text into candidate transaction rows.

    Args:
        text: Raw CSV text whose header contains at least ``date``,
            ``amount`` and ``description``; ``category`` is optional

    Returns:
        DataFrame with columns ``date`` (datetime64, ``NaT`` when
        unparseable), ``amount`` (float, ``NaN`` when non-numeric),
        ``description`` and ``category`` (``None`` when the cell is missing),
        indexed by the 1-based source line of each row.  Timezone offsets
        are dropped and the written wall-clock time is kept.

    Raises:
        ValueError: If a required column is missing from the header
    """
    lines = [
        (number, line.rstrip('\r'))
        for number, line in enumerate((text or '').splitlines(), start=1)
        if line.strip()
    ]
    if not lines:
        return pd.DataFrame(columns=IMPORT_COLUMNS)

    headers = [h.strip().lower() for h in lines[0][1].split(',')]
    missing = [name for name in REQUIRED_IMPORT_COLUMNS if name not in headers]
    if missing:
        raise ValueError(f"CSV header is missing required column(s): {', '.join(missing)}")
    index = {name: headers.index(name) for name in IMPORT_COLUMNS if name in headers}

    records = []
    line_numbers = []
    for number, line in lines[1:]:
        line_numbers.append(number)
        values = line.split(',')
        records.append({
            'date': _to_timestamp(_cell(values, index.get('date'))),
            'amount': _strip(_cell(values, index.get('amount'))),
            'description': _cell(values, index.get('description')),
            'category': _cell(values, index.get('category')),
        })

    df = pd.DataFrame(records, columns=IMPORT_COLUMNS, index=pd.Index(line_numbers, name='line', dtype=int))
    df['date'] = pd.to_datetime(df['date'])
    df['amount'] = pd.to_numeric(df['amount'], errors='coerce').astype(float)
    return df


def fallback_category(categories: Sequence[Category]) -> Optional[Category]:
    """Category used for every imported row."""
    for category in categories:
        if category.name == FALLBACK_IMPORT_CATEGORY:
            return category
    return categories[0] if categories else None


def import_transactions(store: FinanceStore, user_id: str, text: str, account_id: str) -> ImportResult:
    """Create transactions from CSV text on one account.

    The ``category`` column is not resolved; every created transaction is
    filed under :func:`fallback_category`.  Rows with an unparseable date
    or amount, or without a description, are skipped and counted.

    Raises:
        ValueError: For a missing required column, an unknown account or
            when the user has no categories at all
    """
    account = store.get_account(account_id)
    if account is None or account.user_id != user_id:
        raise ValueError(f"Unknown account '{account_id}'")
    category = fallback_category(store.list_categories(user_id))
    if category is None:
        raise ValueError("No category available for imported transactions")

    candidates = parse_csv(text)
    result = ImportResult(category_id=category.id)
    for row in candidates.itertuples():
        if pd.isna(row.date) or pd.isna(row.amount) or pd.isna(row.description):
            logger.warning("Skipping CSV line %d: invalid date, amount or description", row.Index)
            result.skipped += 1
            continue
        result.created.append(store.create_transaction(
            user_id=user_id,
            account_id=account_id,
            category_id=category.id,
            amount=float(row.amount),
            date=row.date.date(),
            description=row.description,
        ))

    logger.info(
        "Imported %d transaction(s) into %s, skipped %d", result.inserted, account.name, result.skipped
    )
    return result
