"""Tests for ExpenseBoard.data.data, the aggregation functions.

Run:
    python -m unittest tests.test_data
"""
import datetime
import unittest
from decimal import Decimal

from ExpenseBoard.core.model import UserProfile
from ExpenseBoard.data import data
from ExpenseBoard.settings import lib
from tests.base import NOW, make_expense


def at(*args) -> datetime.datetime:
    return datetime.datetime(*args)


class DateThresholdTests(unittest.TestCase):

    def test_all_has_no_threshold(self):
        self.assertIsNone(data.date_threshold(NOW, data.DateFilter.All))

    def test_today_is_start_of_day(self):
        self.assertEqual(data.date_threshold(NOW, 'today'), at(2024, 3, 15))

    def test_week_is_seven_days_before_start_of_day(self):
        self.assertEqual(data.date_threshold(NOW, 'week'), at(2024, 3, 8))

    def test_month_is_same_day_previous_month(self):
        self.assertEqual(data.date_threshold(NOW, 'month'), at(2024, 2, 15))

    def test_month_rolls_over_short_months(self):
        self.assertEqual(data.one_month_before(at(2024, 3, 31, 10, 0)), at(2024, 3, 2))
        self.assertEqual(data.one_month_before(at(2023, 3, 31, 10, 0)), at(2023, 3, 3))
        self.assertEqual(data.one_month_before(at(2024, 5, 31)), at(2024, 5, 1))

    def test_month_wraps_year(self):
        self.assertEqual(data.one_month_before(at(2024, 1, 15, 8, 30)), at(2023, 12, 15))

    def test_unknown_mode_raises(self):
        with self.assertRaises(ValueError):
            data.date_threshold(NOW, 'year')


class FilterTests(unittest.TestCase):

    def setUp(self):
        self.today = make_expense(10, 'Food', at(2024, 3, 15, 9, 0))
        self.midnight = make_expense(1, 'Food', at(2024, 3, 15, 0, 0))
        self.this_week = make_expense(20, 'Transportation', at(2024, 3, 10, 18, 0))
        self.week_edge = make_expense(2, 'Other', at(2024, 3, 8, 0, 0))
        self.this_month = make_expense(30, 'Housing', at(2024, 2, 20, 8, 0))
        self.old = make_expense(40, 'Food', at(2024, 1, 1, 8, 0))
        self.expenses = [self.today, self.midnight, self.this_week, self.week_edge, self.this_month, self.old]

    def test_all_returns_everything(self):
        self.assertEqual(data.filter_by_date(self.expenses, NOW, 'all'), self.expenses)

    def test_today(self):
        self.assertEqual(data.filter_by_date(self.expenses, NOW, 'today'), [self.today, self.midnight])

    def test_week_includes_boundary(self):
        self.assertEqual(
            data.filter_by_date(self.expenses, NOW, 'week'),
            [self.today, self.midnight, self.this_week, self.week_edge]
        )

    def test_month(self):
        self.assertEqual(
            data.filter_by_date(self.expenses, NOW, 'month'),
            [self.today, self.midnight, self.this_week, self.week_edge, self.this_month]
        )

    def test_filters_are_nested_subsets(self):
        today = set(e.id for e in data.filter_by_date(self.expenses, NOW, 'today'))
        week = set(e.id for e in data.filter_by_date(self.expenses, NOW, 'week'))
        month = set(e.id for e in data.filter_by_date(self.expenses, NOW, 'month'))
        everything = set(e.id for e in self.expenses)
        self.assertTrue(today <= week <= month <= everything)

    def test_category_filter(self):
        self.assertEqual(data.filter_by_category(self.expenses, 'Food'), [self.today, self.midnight, self.old])
        self.assertEqual(data.filter_by_category(self.expenses, 'Shopping'), [])

    def test_all_categories_passes_through(self):
        self.assertEqual(data.filter_by_category(self.expenses, lib.ALL_CATEGORIES), self.expenses)

    def test_filters_do_not_mutate_input(self):
        before = list(self.expenses)
        data.filter_by_date(self.expenses, NOW, 'today')
        data.filter_by_category(self.expenses, 'Food')
        data.sort_by_recency(self.expenses)
        self.assertEqual(self.expenses, before)


class SortTests(unittest.TestCase):

    def test_newest_first(self):
        a = make_expense(1, occurred_at=at(2024, 3, 1, 10, 0))
        b = make_expense(2, occurred_at=at(2024, 3, 3, 10, 0))
        c = make_expense(3, occurred_at=at(2024, 3, 2, 10, 0))
        self.assertEqual(data.sort_by_recency([a, b, c]), [b, c, a])

    def test_equal_keys_keep_insertion_order(self):
        first = make_expense(1, 'Food', at(2024, 3, 15, 10, 0), 'first')
        second = make_expense(2, 'Food', at(2024, 3, 15, 10, 0), 'second')
        third = make_expense(3, 'Food', at(2024, 3, 15, 10, 0), 'third')
        expenses = [first, second, third]

        for _ in range(5):
            self.assertEqual(data.sort_by_recency(expenses), [first, second, third])


class TotalsTests(unittest.TestCase):

    def test_salary_scenario(self):
        profile = UserProfile(name='Ann', salary=Decimal(3000))
        expenses = [
            make_expense(500, occurred_at=at(2024, 3, 15, 9, 0)),
            make_expense(1000, occurred_at=at(2024, 3, 15, 10, 0)),
        ]

        totals = data.compute_totals(expenses, profile, NOW)

        self.assertEqual(totals.total, Decimal(1500))
        self.assertEqual(totals.balance, Decimal(1500))
        self.assertEqual(totals.month_to_date_spend, Decimal(1500))
        self.assertEqual(totals.monthly_savings, Decimal(1500))
        self.assertEqual(totals.week_spend, Decimal(1500))
        self.assertEqual(totals.today_spend, Decimal(1500))

    def test_totals_ignore_view_filters(self):
        profile = UserProfile(name='Ann', salary=Decimal(2000))
        expenses = [
            make_expense(100, occurred_at=at(2024, 3, 15, 9, 0)),
            make_expense(200, occurred_at=at(2024, 3, 1, 0, 0)),
            make_expense(300, occurred_at=at(2024, 2, 29, 23, 59)),
        ]

        totals = data.compute_totals(expenses, profile, NOW)

        self.assertEqual(totals.total, Decimal(600))
        self.assertEqual(totals.balance, Decimal(1400))
        self.assertEqual(totals.month_to_date_spend, Decimal(300))
        self.assertEqual(totals.monthly_savings, Decimal(1700))
        self.assertEqual(totals.week_spend, Decimal(100))
        self.assertEqual(totals.today_spend, Decimal(100))

    def test_sums_are_exact(self):
        expenses = [make_expense('0.1'), make_expense('0.2')]
        totals = data.compute_totals(expenses, UserProfile(), NOW)
        self.assertEqual(totals.total, Decimal('0.3'))

    def test_no_rounding_inside_totals(self):
        expenses = [make_expense('10.005'), make_expense('0.001')]
        totals = data.compute_totals(expenses, UserProfile(), NOW)
        self.assertEqual(totals.total, Decimal('10.006'))

    def test_empty_collection(self):
        totals = data.compute_totals([], UserProfile(), NOW)
        self.assertEqual(totals, data.Totals())
        self.assertEqual(totals.total, Decimal(0))
        self.assertEqual(data.bucket_by_category([]), {})
        self.assertEqual(data.bucket_by_day([]), {})


class BucketTests(unittest.TestCase):

    def setUp(self):
        self.expenses = [
            make_expense('12.50', 'Transportation', at(2024, 3, 14, 9, 0)),
            make_expense(20, 'Food', at(2024, 3, 12, 13, 0)),
            make_expense('7.25', 'Transportation', at(2024, 3, 12, 8, 0)),
            make_expense(5, 'Food', at(2024, 3, 14, 20, 0)),
        ]

    def test_category_buckets_first_seen_order(self):
        buckets = data.bucket_by_category(self.expenses)
        self.assertEqual(list(buckets), ['Transportation', 'Food'])
        self.assertEqual(buckets['Transportation'], Decimal('19.75'))
        self.assertEqual(buckets['Food'], Decimal(25))

    def test_category_buckets_have_no_zero_filling(self):
        buckets = data.bucket_by_category(self.expenses)
        self.assertNotIn('Shopping', buckets)

    def test_day_buckets_ascending(self):
        buckets = data.bucket_by_day(self.expenses)
        self.assertEqual(list(buckets), ['2024-03-12', '2024-03-14'])
        self.assertEqual(buckets['2024-03-12'], Decimal('27.25'))
        self.assertEqual(buckets['2024-03-14'], Decimal('17.50'))

    def test_bucket_sums_match_total(self):
        total = data.sum_amounts(self.expenses)
        self.assertEqual(sum(data.bucket_by_category(self.expenses).values()), total)
        self.assertEqual(sum(data.bucket_by_day(self.expenses).values()), total)

    def test_list_categories(self):
        self.assertEqual(data.list_categories(self.expenses), ['Transportation', 'Food'])


class FrameTests(unittest.TestCase):

    def test_expenses_frame_columns(self):
        expenses = [make_expense('9.99', 'Food', NOW, 'Lunch')]
        df = data.expenses_frame(expenses)
        self.assertEqual(list(df.columns), lib.EXPENSE_DATA_COLUMNS)
        self.assertEqual(df.iloc[0]['amount'], Decimal('9.99'))
        self.assertEqual(df.iloc[0]['description'], 'Lunch')

    def test_empty_expenses_frame(self):
        df = data.expenses_frame([])
        self.assertTrue(df.empty)
        self.assertEqual(list(df.columns), lib.EXPENSE_DATA_COLUMNS)

    def test_category_frame_weights(self):
        df = data.category_frame({'Food': Decimal(30), 'Other': Decimal(10)})
        self.assertEqual(list(df.columns), lib.CATEGORY_DATA_COLUMNS)
        self.assertAlmostEqual(df['weight'].sum(), 1.0)
        self.assertAlmostEqual(df.iloc[0]['weight'], 0.75)

    def test_category_frame_zero_total(self):
        df = data.category_frame({'Food': Decimal(0)})
        self.assertEqual(df.iloc[0]['weight'], 0.0)

    def test_trend_frame(self):
        df = data.trend_frame({'2024-03-12': Decimal(5), '2024-03-14': Decimal('2.5')})
        self.assertEqual(list(df.columns), lib.TREND_DATA_COLUMNS)
        self.assertEqual(df['day'].iloc[1], datetime.datetime(2024, 3, 14))
        self.assertEqual(df['total'].tolist(), [5.0, 2.5])
