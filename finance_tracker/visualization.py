"""Plotly visualisation helpers for the finance tracker.

Each function accepts a DataFrame produced by :mod:`aggregation` and
returns a ``plotly.graph_objects.Figure`` that Streamlit renders via
``st.plotly_chart``.  Empty inputs yield an empty figure titled
"No data to display" instead of raising.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_category_pie_chart(spending: pd.DataFrame, title: Optional[str] = None) -> go.Figure:
    """Pie chart of spending per category.

    Parameters
    ----------
    spending : pandas.DataFrame
        Output of :func:`aggregation.category_spending` with ``Category``,
        ``Spent`` and ``Color`` columns.
    title : str, optional
        Title for the chart.

    Returns
    -------
    plotly.graph_objects.Figure
        Pie chart coloured with each category's colour.
    """
    if spending.empty:
        return _empty_figure()
    color_map = dict(zip(spending["Category"], spending["Color"]))
    fig = px.pie(
        spending,
        names="Category",
        values="Spent",
        color="Category",
        color_discrete_map=color_map,
    )
    fig.update_layout(title=title or "Spending by category")
    return fig


def create_income_expense_chart(monthly: pd.DataFrame, title: Optional[str] = None) -> go.Figure:
    """Grouped monthly income and spending bars with a savings line.

    Parameters
    ----------
    monthly : pandas.DataFrame
        Output of :func:`aggregation.monthly_income_vs_spend`.
    title : str, optional
        Title for the chart.
    """
    if monthly.empty:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Bar(x=monthly["Month"], y=monthly["Income"], name="Income", marker_color="#4CAF50"))
    fig.add_trace(go.Bar(x=monthly["Month"], y=monthly["Spending"], name="Spending", marker_color="#F44336"))
    fig.add_trace(go.Scatter(x=monthly["Month"], y=monthly["Savings"], name="Savings", mode="lines+markers"))
    fig.update_layout(
        title=title or "Income vs spending",
        barmode="group",
        xaxis_title="Month",
        yaxis_title="Amount",
    )
    return fig


def create_budget_progress_chart(report: pd.DataFrame, title: Optional[str] = None) -> go.Figure:
    """Horizontal bars of spent vs. budgeted per category."""
    if report.empty:
        return _empty_figure()
    fig = go.Figure()
    fig.add_trace(go.Bar(
        y=report["category_name"],
        x=report["budget_amount"],
        name="Budget",
        orientation="h",
        marker_color="#B0BEC5",
    ))
    fig.add_trace(go.Bar(
        y=report["category_name"],
        x=report["spent_amount"],
        name="Spent",
        orientation="h",
        marker_color=report["category_color"].tolist(),
    ))
    fig.update_layout(
        title=title or "Budget vs actual",
        barmode="overlay",
        xaxis_title="Amount",
        yaxis=dict(autorange="reversed"),
    )
    return fig
