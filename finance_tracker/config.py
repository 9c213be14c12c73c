"""Configuration management for the finance tracker.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

# Base project root - assumes this file is in finance_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PROJECT_ROOT / "data"))

# Persisted logins, one file per browser token
SESSION_DIR = Path(
    os.getenv("FINTRACK_SESSION_DIR", DATA_DIR / "sessions")
).resolve()
SESSION_KEY = "financeUser"
SESSION_QUERY_PARAM = "session"

# Demo account seeded into every fresh store
SEED_DEMO_USER = os.getenv("FINTRACK_SEED_DEMO", "1").strip().lower() not in {"0", "false", "no"}
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "password123"
DEMO_NAME = "Demo User"

# Display and aggregation defaults
CURRENCY_SYMBOL = os.getenv("FINTRACK_CURRENCY", "₹")
RECENT_TRANSACTIONS_LIMIT = 5
FALLBACK_IMPORT_CATEGORY = "Other Expenses"

LOG_LEVEL = os.getenv("FINTRACK_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, SESSION_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """Configure root logging once for the app process."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)


def get_session_dir() -> str:
    """Get the session directory as a string."""
    return str(SESSION_DIR)
