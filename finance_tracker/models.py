"""Record types held by the finance store.

Every entity is a plain dataclass identified by an opaque string id.
Foreign keys (``user_id``, ``account_id``, ``category_id``) are weak
references resolved by lookup; nothing here enforces that they exist.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Tuple

ACCOUNT_TYPES: Tuple[str, ...] = ("checking", "savings", "credit", "investment", "cash", "other")
CATEGORY_TYPES: Tuple[str, ...] = ("income", "expense")
MASKED_PASSWORD = "********"

# (name, type, color, budget_enabled)
DEFAULT_CATEGORIES: List[Tuple[str, str, str, bool]] = [
    ("Salary", "income", "#4CAF50", True),
    ("Food & Dining", "expense", "#FF5722", True),
    ("Transportation", "expense", "#2196F3", True),
    ("Housing", "expense", "#673AB7", True),
    ("Entertainment", "expense", "#E91E63", False),
    ("Shopping", "expense", "#9C27B0", True),
    ("Utilities", "expense", "#FF9800", True),
    ("Healthcare", "expense", "#00BCD4", True),
    ("Personal Care", "expense", "#795548", False),
    ("Education", "expense", "#607D8B", True),
    ("Gifts & Donations", "expense", "#F44336", False),
    ("Investments", "income", "#4CAF50", True),
    ("Other Income", "income", "#8BC34A", True),
    ("Other Expenses", "expense", "#9E9E9E", False),
]


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class User:
    id: str
    email: str
    password: str
    name: str
    created_at: datetime = field(default_factory=datetime.now)

    def masked(self) -> "User":
        """Copy of the user that is safe to hand to display code."""
        return replace(self, password=MASKED_PASSWORD)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        created = data.get("created_at")
        return cls(
            id=str(data["id"]),
            email=str(data["email"]),
            password=str(data.get("password") or MASKED_PASSWORD),
            name=str(data.get("name") or ""),
            created_at=datetime.fromisoformat(created) if created else datetime.now(),
        )


@dataclass
class Account:
    id: str
    user_id: str
    name: str
    balance: float = 0.0
    type: str = "checking"
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.type not in ACCOUNT_TYPES:
            raise ValueError(f"Unknown account type '{self.type}'")
        self.balance = float(self.balance)


@dataclass
class Category:
    id: str
    user_id: str
    name: str
    type: str = "expense"
    color: str = "#9E9E9E"
    budget_enabled: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.type not in CATEGORY_TYPES:
            raise ValueError(f"Unknown category type '{self.type}'")

    @property
    def is_expense(self) -> bool:
        return self.type == "expense"


@dataclass
class Transaction:
    """A signed money movement: positive is income, negative is expense."""

    id: str
    user_id: str
    account_id: str
    category_id: str
    amount: float
    date: date
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.amount = float(self.amount)
        if isinstance(self.date, datetime):
            self.date = self.date.date()


@dataclass
class Budget:
    id: str
    user_id: str
    category_id: str
    month: int
    year: int
    amount: float
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.month = int(self.month)
        self.year = int(self.year)
        self.amount = float(self.amount)
        if not 1 <= self.month <= 12:
            raise ValueError(f"Budget month must be between 1 and 12, got {self.month}")
        if self.amount < 0:
            raise ValueError("Budget amount cannot be negative")

    @property
    def period(self) -> Tuple[int, int]:
        return (self.year, self.month)
