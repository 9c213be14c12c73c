"""Top‑level package for the Personal Finance Tracker.

The primary modules are:

* ``store`` – the in-memory record store (users, accounts, categories,
  transactions, budgets)
* ``balance`` – incremental account balance maintenance
* ``aggregation`` – dashboard totals and budget reports
* ``import_export`` – CSV import and export of transactions
* ``auth`` – login, registration and the persisted session
* ``service`` – the request layer used by the UI
* ``app`` – the Streamlit app that ties everything together

To run the app from the command line you can execute:

```bash
streamlit run finance_tracker/app.py
```
"""

from . import aggregation  # noqa: F401  # re-exported for convenience
from . import import_export  # noqa: F401  # re-exported for convenience
from .auth import AuthGate, SessionStorage
from .service import FinanceService
from .store import DuplicateBudgetError, FinanceStore

__all__ = [
    "aggregation",
    "import_export",
    "AuthGate",
    "SessionStorage",
    "FinanceService",
    "FinanceStore",
    "DuplicateBudgetError",
]
