"""Formatting utilities for currency and record display."""

from __future__ import annotations

import calendar
from typing import Union

from .config import CURRENCY_SYMBOL


def format_currency(amount: Union[float, int], include_sign: bool = True, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format a currency amount with thousands separators.

    Args:
        amount: The amount to format
        include_sign: Whether to include the currency symbol
        symbol: Currency symbol to prefix

    Returns:
        Formatted currency string (e.g., "₹1,234.56" or "-₹20.00")

    Example:
        >>> format_currency(1234.56, symbol="$")
        '$1,234.56'
        >>> format_currency(-20, symbol="$")
        '-$20.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = "-" if amount < 0 else ""
    return f"{prefix}{symbol}{formatted}" if include_sign else f"{prefix}{formatted}"


def format_month(month: int, year: int) -> str:
    """Label for a budget period, e.g. ``January 2024``."""
    return f"{calendar.month_name[month]} {year}"
