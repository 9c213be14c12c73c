"""Streamlit app for the Personal Finance Tracker.

Run it with::

    streamlit run finance_tracker/app.py

or ``python run_app.py`` from the project root.  Each browser session gets
its own in-memory :class:`FinanceStore`; only the login is remembered
across reloads.
"""

from __future__ import annotations

import calendar
import os
import sys
from datetime import date
from typing import Callable, Dict, List, Optional

import pandas as pd
import streamlit as st

# Support both ``streamlit run finance_tracker/app.py`` (no package) and
# package imports from tests.
if __package__:
    from . import visualization as viz
    from .aggregation import filter_stats
    from .auth import AuthGate, SessionStorage, is_valid_token
    from .config import (
        DEMO_EMAIL,
        DEMO_PASSWORD,
        SEED_DEMO_USER,
        SESSION_QUERY_PARAM,
        configure_logging,
        ensure_data_directories,
    )
    from .formatting import format_currency, format_month
    from .import_export import export_filename
    from .models import ACCOUNT_TYPES, CATEGORY_TYPES, Transaction, new_id
    from .service import FinanceService
    from .store import FinanceStore
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from finance_tracker import visualization as viz  # type: ignore
    from finance_tracker.aggregation import filter_stats  # type: ignore
    from finance_tracker.auth import AuthGate, SessionStorage, is_valid_token  # type: ignore
    from finance_tracker.config import (  # type: ignore
        DEMO_EMAIL,
        DEMO_PASSWORD,
        SEED_DEMO_USER,
        SESSION_QUERY_PARAM,
        configure_logging,
        ensure_data_directories,
    )
    from finance_tracker.formatting import format_currency, format_month  # type: ignore
    from finance_tracker.import_export import export_filename  # type: ignore
    from finance_tracker.models import ACCOUNT_TYPES, CATEGORY_TYPES, Transaction, new_id  # type: ignore
    from finance_tracker.service import FinanceService  # type: ignore
    from finance_tracker.store import FinanceStore  # type: ignore


PAGES = ["Dashboard", "Accounts", "Categories", "Transactions", "Budgets", "Import / Export"]
KIND_LABELS = {"all": "All", "income": "Income", "expense": "Expense"}


def _session_storage() -> SessionStorage:
    """Session file for this browser, keyed by a token in the page URL."""
    params = st.query_params
    token = params.get(SESSION_QUERY_PARAM)
    if not is_valid_token(token):
        token = new_id()
        params[SESSION_QUERY_PARAM] = token
    return SessionStorage(token=token)


def _ensure_state() -> None:
    """Create the per-session store and auth gate on first render."""
    state = st.session_state
    if 'store' not in state:
        state['store'] = FinanceStore()
    if 'auth' not in state:
        auth = AuthGate(state['store'], _session_storage())
        auth.restore()
        state['auth'] = auth
    if 'page' not in state:
        state['page'] = PAGES[0]


def _rerun() -> None:
    rerun = getattr(st, 'rerun', None)
    if callable(rerun):
        rerun()
        return
    experimental = getattr(st, 'experimental_rerun', None)
    if callable(experimental):
        experimental()


def _transactions_table(service: FinanceService, transactions: List[Transaction]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            'Date': txn.date.isoformat(),
            'Description': txn.description,
            'Category': service.category_name(txn.category_id),
            'Account': service.account_name(txn.account_id),
            'Amount': format_currency(txn.amount),
        }
        for txn in transactions
    ], columns=['Date', 'Description', 'Category', 'Account', 'Amount'])


def _transaction_label(service: FinanceService, txn: Transaction) -> str:
    return f"{txn.date.isoformat()} · {txn.description or '(no description)'} · {format_currency(txn.amount)} · {service.account_name(txn.account_id)}"


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def render_login(auth: AuthGate) -> None:
    st.title("💰 Personal Finance Tracker")
    login_tab, register_tab = st.tabs(["Log in", "Register"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email", value=DEMO_EMAIL if SEED_DEMO_USER else "")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Log in")
        if submitted:
            if auth.login(email.strip(), password):
                _rerun()
            else:
                st.error("Invalid email or password.")
        if SEED_DEMO_USER:
            st.caption(f"Demo account: {DEMO_EMAIL} / {DEMO_PASSWORD}")

    with register_tab:
        with st.form("register_form"):
            name = st.text_input("Name")
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Password", type="password", key="register_password")
            submitted = st.form_submit_button("Create account")
        if submitted:
            if not (name.strip() and email.strip() and password):
                st.error("Name, email and password are required.")
            elif auth.register(email.strip(), password, name.strip()):
                _rerun()
            else:
                st.error("An account with this email already exists.")


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


def render_dashboard(service: FinanceService) -> None:
    st.header("📊 Dashboard")
    summary = service.dashboard()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Balance", format_currency(summary.net_balance))
    col2.metric("Income", format_currency(summary.total_income))
    col3.metric("Expenses", format_currency(summary.total_expenses))
    col4.metric("Accounts", len(summary.accounts))

    left, right = st.columns(2)
    with left:
        st.subheader("Recent transactions")
        if summary.recent_transactions:
            st.dataframe(_transactions_table(service, summary.recent_transactions), hide_index=True)
        else:
            st.info("No transactions yet. Add one on the Transactions page or import a CSV.")
    with right:
        st.plotly_chart(viz.create_category_pie_chart(service.category_spending()), key="dashboard_category_pie")

    st.plotly_chart(viz.create_income_expense_chart(service.monthly_trend()), key="dashboard_monthly_chart")


def render_accounts(service: FinanceService) -> None:
    st.header("🏦 Accounts")

    with st.expander("➕ Add account", expanded=not service.accounts()):
        with st.form("add_account_form", clear_on_submit=True):
            name = st.text_input("Account name")
            account_type = st.selectbox("Type", ACCOUNT_TYPES)
            opening = st.number_input("Opening balance", value=0.0, step=100.0)
            submitted = st.form_submit_button("Create account")
        if submitted:
            if not name.strip():
                st.error("Account name is required.")
            else:
                service.create_account(name.strip(), type=account_type, balance=opening)
                _rerun()

    for account in service.accounts():
        with st.expander(f"{account.name} · {account.type} · {format_currency(account.balance)}"):
            with st.form(f"edit_account_{account.id}"):
                name = st.text_input("Name", value=account.name, key=f"account_name_{account.id}")
                account_type = st.selectbox("Type", ACCOUNT_TYPES, index=ACCOUNT_TYPES.index(account.type), key=f"account_type_{account.id}")
                balance = st.number_input("Balance", value=float(account.balance), step=100.0, key=f"account_balance_{account.id}")
                saved = st.form_submit_button("Save")
            if saved:
                service.update_account(account.id, name=name.strip() or account.name, type=account_type, balance=balance)
                _rerun()
            confirm = st.checkbox(
                "I understand this also deletes the account's transactions",
                key=f"confirm_delete_account_{account.id}",
            )
            if st.button("🗑️ Delete account", key=f"delete_account_{account.id}", disabled=not confirm):
                service.delete_account(account.id)
                _rerun()


def render_categories(service: FinanceService) -> None:
    st.header("🏷️ Categories")

    with st.expander("➕ Add category"):
        with st.form("add_category_form", clear_on_submit=True):
            name = st.text_input("Category name")
            category_type = st.selectbox("Type", CATEGORY_TYPES, index=1)
            color = st.color_picker("Color", value="#9E9E9E")
            budget_enabled = st.checkbox("Enable budget tracking for this category")
            submitted = st.form_submit_button("Create category")
        if submitted:
            if not name.strip():
                st.error("Category name is required.")
            else:
                service.create_category(name.strip(), type=category_type, color=color, budget_enabled=budget_enabled)
                _rerun()

    for category_type in CATEGORY_TYPES:
        st.subheader(category_type.title())
        for category in service.categories(type=category_type):
            tracked = " · budgeted" if category.budget_enabled else ""
            with st.expander(f"{category.name}{tracked}"):
                with st.form(f"edit_category_{category.id}"):
                    name = st.text_input("Name", value=category.name, key=f"category_name_{category.id}")
                    new_type = st.selectbox("Type", CATEGORY_TYPES, index=CATEGORY_TYPES.index(category.type), key=f"category_type_{category.id}")
                    color = st.color_picker("Color", value=category.color, key=f"category_color_{category.id}")
                    budget_enabled = st.checkbox("Budget tracking", value=category.budget_enabled, key=f"category_budget_{category.id}")
                    saved = st.form_submit_button("Save")
                if saved:
                    service.update_category(
                        category.id,
                        name=name.strip() or category.name,
                        type=new_type,
                        color=color,
                        budget_enabled=budget_enabled,
                    )
                    _rerun()
                if st.button("🗑️ Delete category", key=f"delete_category_{category.id}"):
                    service.delete_category(category.id)
                    _rerun()


def _transaction_form(
    service: FinanceService,
    key: str,
    current: Optional[Transaction] = None,
) -> Optional[Dict[str, object]]:
    accounts = service.accounts()
    categories = service.categories()
    if not accounts or not categories:
        st.info("Create at least one account and one category first.")
        return None
    account_ids = [a.id for a in accounts]
    category_ids = [c.id for c in categories]
    with st.form(key, clear_on_submit=current is None):
        account_id = st.selectbox(
            "Account",
            account_ids,
            index=account_ids.index(current.account_id) if current and current.account_id in account_ids else 0,
            format_func=service.account_name,
            key=f"{key}_account",
        )
        category_id = st.selectbox(
            "Category",
            category_ids,
            index=category_ids.index(current.category_id) if current and current.category_id in category_ids else 0,
            format_func=service.category_name,
            key=f"{key}_category",
        )
        amount = st.number_input(
            "Amount", min_value=0.0, value=abs(current.amount) if current else 0.0, step=10.0, key=f"{key}_amount"
        )
        txn_date = st.date_input("Date", value=current.date if current else date.today(), key=f"{key}_date")
        description = st.text_input("Description", value=current.description if current else "", key=f"{key}_description")
        submitted = st.form_submit_button("Save" if current else "Add transaction")
    if not submitted:
        return None
    return {
        'account_id': account_id,
        'category_id': category_id,
        'amount': amount,
        'date': txn_date,
        'description': description.strip(),
    }


def render_transactions(service: FinanceService) -> None:
    st.header("💸 Transactions")

    with st.expander("➕ Add transaction"):
        values = _transaction_form(service, "add_transaction_form")
        if values:
            service.record_transaction(**values)
            _rerun()

    st.subheader("Filters")
    col1, col2, col3, col4 = st.columns(4)
    use_date = col1.checkbox("Filter by date", key="filter_use_date")
    on_date = col1.date_input("Date", value=date.today(), disabled=not use_date, key="filter_date")
    category_id = col2.selectbox(
        "Category", [""] + [c.id for c in service.categories()],
        format_func=lambda cid: service.category_name(cid) if cid else "All categories",
        key="filter_category",
    )
    account_id = col3.selectbox(
        "Account", [""] + [a.id for a in service.accounts()],
        format_func=lambda aid: service.account_name(aid) if aid else "All accounts",
        key="filter_account",
    )
    kind = col4.radio("Type", list(KIND_LABELS), format_func=KIND_LABELS.get, horizontal=True, key="filter_kind")
    search = st.text_input("Search descriptions", key="filter_search")

    filtered = service.filtered_transactions(
        on_date=on_date if use_date else None,
        category_id=category_id or None,
        account_id=account_id or None,
        kind=kind,
        search=search,
    )
    stats = filter_stats(filtered)
    s1, s2, s3 = st.columns(3)
    s1.metric("Net", format_currency(stats['total']))
    s2.metric("Income", format_currency(stats['income']))
    s3.metric("Expenses", format_currency(stats['expenses']))

    if not filtered:
        st.info("No transactions match the selected filters.")
        return
    st.dataframe(_transactions_table(service, filtered), hide_index=True)

    st.subheader("Edit or delete")
    selected_id = st.selectbox(
        "Transaction",
        [t.id for t in filtered],
        format_func=lambda tid: _transaction_label(service, service.get_transaction(tid)),
    )
    selected = service.get_transaction(selected_id) if selected_id else None
    if selected is None:
        return
    values = _transaction_form(service, f"edit_transaction_{selected.id}", current=selected)
    if values:
        service.edit_transaction(selected.id, **values)
        _rerun()
    if st.button("🗑️ Delete transaction", key=f"delete_transaction_{selected.id}"):
        service.delete_transaction(selected.id)
        _rerun()


def render_budgets(service: FinanceService) -> None:
    st.header("📋 Budgets")
    today = date.today()
    col1, col2 = st.columns(2)
    month = col1.selectbox("Month", list(range(1, 13)), index=today.month - 1, format_func=lambda m: calendar.month_name[m])
    year = col2.number_input("Year", min_value=1900, max_value=9999, value=today.year, step=1)
    year = int(year)

    expense_categories = service.categories(type="expense")
    budgetable = [c for c in expense_categories if c.budget_enabled] or expense_categories
    with st.expander("➕ Add budget"):
        if not budgetable:
            st.info("Create an expense category first.")
        else:
            with st.form("add_budget_form", clear_on_submit=True):
                category_id = st.selectbox(
                    "Category", [c.id for c in budgetable], format_func=service.category_name
                )
                amount = st.number_input("Budget amount", min_value=0.0, value=0.0, step=100.0)
                submitted = st.form_submit_button(f"Create budget for {format_month(month, year)}")
            if submitted:
                if amount <= 0:
                    st.error("Budget amount must be greater than zero.")
                else:
                    try:
                        service.create_budget(category_id, month, year, amount)
                    except ValueError as exc:
                        st.error(str(exc))
                    else:
                        _rerun()

    report = service.budget_report(month, year)
    st.subheader(f"Budgets for {format_month(month, year)}")
    if report.empty:
        st.info("No budgets or spending for this period.")
        return

    display = report[['category_name', 'budget_amount', 'spent_amount', 'remaining_amount', 'percentage', 'status']].copy()
    display.columns = ['Category', 'Budget', 'Spent', 'Remaining', 'Percent Used', 'Status']
    for column in ['Budget', 'Spent', 'Remaining']:
        display[column] = display[column].map(format_currency)
    display['Percent Used'] = display['Percent Used'].map(lambda p: f"{p:.0f}%")
    st.dataframe(display, hide_index=True)
    st.plotly_chart(viz.create_budget_progress_chart(report), key="budget_progress_chart")

    budget_rows = report[report['budget_id'].notna()]
    if budget_rows.empty:
        return
    st.subheader("Edit or delete")
    budget_id = st.selectbox(
        "Budget",
        budget_rows['budget_id'].tolist(),
        format_func=lambda bid: service.category_name(service.get_budget(bid).category_id),
    )
    budget = service.get_budget(budget_id)
    if budget is None:
        return
    with st.form(f"edit_budget_{budget.id}"):
        amount = st.number_input("Budget amount", min_value=0.0, value=float(budget.amount), step=100.0, key=f"budget_amount_{budget.id}")
        saved = st.form_submit_button("Save")
    if saved:
        if amount <= 0:
            st.error("Budget amount must be greater than zero.")
        else:
            service.update_budget(budget.id, amount=amount)
            _rerun()
    if st.button("🗑️ Delete budget", key=f"delete_budget_{budget.id}"):
        service.delete_budget(budget.id)
        _rerun()


def render_import_export(service: FinanceService) -> None:
    st.header("📂 Import / Export")
    import_col, export_col = st.columns(2)

    with import_col:
        st.subheader("Import")
        st.caption("Header row must contain date, amount and description. Values are split on commas without quoting.")
        accounts = service.accounts()
        if not accounts:
            st.info("Create an account before importing.")
        else:
            account_id = st.selectbox(
                "Destination account", [a.id for a in accounts], format_func=service.account_name
            )
            csv_text = st.text_area(
                "CSV data",
                height=200,
                placeholder="date,amount,description,category\n2024-01-05,1200,Salary,Salary",
            )
            if st.button("Import transactions", disabled=not csv_text.strip()):
                try:
                    result = service.import_csv(csv_text, account_id)
                except ValueError as exc:
                    st.error(f"Error importing transactions: {exc}")
                else:
                    message = f"Imported {result.inserted} transaction(s)"
                    if result.skipped:
                        message += f", skipped {result.skipped} invalid row(s)"
                    st.success(message)

    with export_col:
        st.subheader("Export")
        st.caption(f"{len(service.transactions())} transaction(s) with account and category names.")
        st.download_button(
            "⬇️ Download CSV",
            data=service.export_csv(),
            file_name=export_filename(),
            mime="text/csv",
        )


PAGE_RENDERERS: Dict[str, Callable[[FinanceService], None]] = {
    "Dashboard": render_dashboard,
    "Accounts": render_accounts,
    "Categories": render_categories,
    "Transactions": render_transactions,
    "Budgets": render_budgets,
    "Import / Export": render_import_export,
}


def _render_sidebar(auth: AuthGate) -> str:
    user = auth.require_user()
    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.caption(f"Signed in as {user.name} ({user.email})")
    page = st.sidebar.radio("Navigate", PAGES, key='page')
    if st.sidebar.button("Log out"):
        auth.logout()
        _rerun()
    return page


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Personal Finance Tracker", page_icon="💰", layout="wide")
    configure_logging()
    ensure_data_directories()
    _ensure_state()

    auth: AuthGate = st.session_state['auth']
    if not auth.is_authenticated:
        render_login(auth)
        return

    service = FinanceService(st.session_state['store'], auth.require_user())
    page = _render_sidebar(auth)
    PAGE_RENDERERS.get(page, render_dashboard)(service)


if __name__ == "__main__":
    main()
