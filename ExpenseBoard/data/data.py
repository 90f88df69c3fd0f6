"""Aggregation API for expense analysis.

Pure functions deriving filtered views, summary totals and chart series from an expense
collection. None of them mutate their input or read the clock: the reference ``now`` is always
passed in, which keeps results reproducible.

Sums use exact :class:`decimal.Decimal` addition. Rounding to two fraction digits is left to
:mod:`ExpenseBoard.settings.locale` at display time.

The ``*_frame`` helpers convert the results into pandas DataFrames for the Qt models and
chart views.
"""
import dataclasses
import datetime
import decimal
import enum
import logging
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ..core.model import Expense, UserProfile
from ..settings import lib

ZERO = decimal.Decimal(0)
DAY_FORMAT = '%Y-%m-%d'


class DateFilter(enum.StrEnum):
    All = 'all'
    Today = 'today'
    Week = 'week'
    Month = 'month'


@dataclasses.dataclass(frozen=True)
class Totals:
    """Summary figures of the tracker."""
    total: decimal.Decimal = ZERO
    balance: decimal.Decimal = ZERO
    month_to_date_spend: decimal.Decimal = ZERO
    monthly_savings: decimal.Decimal = ZERO
    week_spend: decimal.Decimal = ZERO
    today_spend: decimal.Decimal = ZERO


def start_of_day(now: datetime.datetime) -> datetime.datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(now: datetime.datetime) -> datetime.datetime:
    return start_of_day(now).replace(day=1)


def one_month_before(now: datetime.datetime) -> datetime.datetime:
    """Return midnight of the same day-of-month one calendar month earlier.

    When the earlier month is shorter, the surplus days roll over into the following month,
    e.g. 31 March gives 2 March (or 3 March outside leap years).
    """
    year, month = (now.year - 1, 12) if now.month == 1 else (now.year, now.month - 1)
    return datetime.datetime(year, month, 1) + datetime.timedelta(days=now.day - 1)


def date_threshold(now: datetime.datetime, mode: DateFilter) -> Optional[datetime.datetime]:
    """Return the inclusive lower bound of a date filter, or None for ``all``.

    Raises:
        ValueError: If mode is not a known :class:`DateFilter`.
    """
    mode = DateFilter(mode)
    if mode == DateFilter.All:
        return None
    if mode == DateFilter.Today:
        return start_of_day(now)
    if mode == DateFilter.Week:
        return start_of_day(now) - datetime.timedelta(days=7)
    return one_month_before(now)


def filter_by_date(expenses: Iterable[Expense], now: datetime.datetime, mode: DateFilter) -> List[Expense]:
    """Return the expenses that occurred on or after the filter's threshold.

    Args:
        expenses: Expenses to filter.
        now: Reference instant.
        mode: One of ``all``, ``today``, ``week`` or ``month``.

    Returns:
        List[Expense]: Matching expenses in input order.
    """
    threshold = date_threshold(now, mode)
    if threshold is None:
        return list(expenses)
    return [e for e in expenses if e.occurred_at >= threshold]


def filter_by_category(expenses: Iterable[Expense], category: str) -> List[Expense]:
    """Return the expenses of ``category``; ``'all'`` matches everything."""
    if category == lib.ALL_CATEGORIES:
        return list(expenses)
    return [e for e in expenses if e.category == category]


def sort_by_recency(expenses: Iterable[Expense]) -> List[Expense]:
    """Sort newest first. Expenses with equal sort keys keep their insertion order."""
    return sorted(expenses, key=lambda e: e.sort_key, reverse=True)


def sum_amounts(expenses: Iterable[Expense]) -> decimal.Decimal:
    return sum((e.amount for e in expenses), ZERO)


def compute_totals(expenses: Sequence[Expense], profile: UserProfile, now: datetime.datetime) -> Totals:
    """Compute the summary figures over the whole, unfiltered collection.

    Args:
        expenses: All expenses.
        profile: Supplies the monthly salary.
        now: Reference instant.

    Returns:
        Totals: Exact, unrounded figures.
    """
    total = sum_amounts(expenses)
    month_start = start_of_month(now)
    month_to_date = sum_amounts(e for e in expenses if e.occurred_at >= month_start)

    return Totals(
        total=total,
        balance=profile.salary - total,
        month_to_date_spend=month_to_date,
        monthly_savings=profile.salary - month_to_date,
        week_spend=sum_amounts(filter_by_date(expenses, now, DateFilter.Week)),
        today_spend=sum_amounts(filter_by_date(expenses, now, DateFilter.Today)),
    )


def bucket_by_category(expenses: Iterable[Expense]) -> Dict[str, decimal.Decimal]:
    """Sum amounts per category, in first-seen category order."""
    buckets: Dict[str, decimal.Decimal] = {}
    for e in expenses:
        buckets[e.category] = buckets.get(e.category, ZERO) + e.amount
    return buckets


def bucket_by_day(expenses: Iterable[Expense]) -> Dict[str, decimal.Decimal]:
    """Sum amounts per local calendar day (``YYYY-MM-DD``), in ascending day order."""
    buckets: Dict[str, decimal.Decimal] = {}
    for e in sorted(expenses, key=lambda e: e.sort_key):
        day = e.occurred_at.strftime(DAY_FORMAT)
        buckets[day] = buckets.get(day, ZERO) + e.amount
    return buckets


def list_categories(expenses: Iterable[Expense]) -> List[str]:
    """Return the distinct categories in first-seen order."""
    return list(dict.fromkeys(e.category for e in expenses))


def expenses_frame(expenses: Sequence[Expense]) -> pd.DataFrame:
    """Return a DataFrame of expenses with :data:`lib.EXPENSE_DATA_COLUMNS`, rows in input order.

    The ``amount`` column keeps the Decimal objects.
    """
    if not expenses:
        return pd.DataFrame(columns=lib.EXPENSE_DATA_COLUMNS)
    return pd.DataFrame(
        [
            {
                'id': e.id,
                'date': e.occurred_at,
                'category': e.category,
                'description': e.description,
                'amount': e.amount,
            }
            for e in expenses
        ],
        columns=lib.EXPENSE_DATA_COLUMNS,
    )


def category_frame(buckets: Dict[str, decimal.Decimal]) -> pd.DataFrame:
    """Return a DataFrame of category totals with their share of the overall sum.

    Args:
        buckets: Output of :func:`bucket_by_category`.

    Returns:
        pd.DataFrame: Columns ``category``, ``total`` (float) and ``weight`` (0..1).
    """
    df = pd.DataFrame(
        {'category': list(buckets.keys()), 'total': [float(v) for v in buckets.values()]},
        columns=['category', 'total'],
    )
    overall = df['total'].sum()
    if df.empty or overall <= 0:
        df['weight'] = 0.0
        return df[lib.CATEGORY_DATA_COLUMNS]

    df['weight'] = df['total'] / overall
    logging.debug(f'Category frame built with {len(df)} categories')
    return df[lib.CATEGORY_DATA_COLUMNS]


def trend_frame(buckets: Dict[str, decimal.Decimal]) -> pd.DataFrame:
    """Return a DataFrame of daily totals indexed by position, with a datetime ``day`` column.

    Args:
        buckets: Output of :func:`bucket_by_day`.
    """
    df = pd.DataFrame(
        {'day': list(buckets.keys()), 'total': [float(v) for v in buckets.values()]},
        columns=lib.TREND_DATA_COLUMNS,
    )
    df['day'] = pd.to_datetime(df['day'], format=DAY_FORMAT)
    return df
