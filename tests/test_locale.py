"""Tests for ExpenseBoard.settings.locale formatting helpers."""
import datetime
import unittest
from decimal import Decimal

from ExpenseBoard.settings import locale


class CurrencyTests(unittest.TestCase):

    def test_currency_from_locale(self):
        self.assertEqual(locale.get_currency_from_locale('en_US'), 'USD')
        self.assertEqual(locale.get_currency_from_locale('de_DE'), 'EUR')
        self.assertEqual(locale.get_currency_from_locale('en'), 'USD')
        self.assertEqual(locale.get_currency_from_locale('xx_ZZ'), 'USD')

    def test_two_fraction_digits(self):
        self.assertEqual(locale.format_currency_value(1500), '$1,500.00')
        self.assertEqual(locale.format_currency_value(Decimal('25.5')), '$25.50')
        self.assertEqual(locale.format_currency_value(0), '$0.00')

    def test_rounding_happens_at_display(self):
        self.assertEqual(locale.format_currency_value(Decimal('1234.567')), '$1,234.57')

    def test_zero_digit_currency_keeps_two_digits(self):
        self.assertTrue(locale.format_currency_value(1500, 'ja_JP').endswith('1,500.00'))

    def test_other_locale(self):
        text = locale.format_currency_value(10, 'de_DE')
        self.assertIn('€', text)
        self.assertIn('10,00', text)

    def test_unknown_locale_falls_back(self):
        self.assertEqual(locale.format_currency_value(Decimal('12.5'), 'xx_XX'), '12.50')


class DateTimeTests(unittest.TestCase):

    def test_short_format(self):
        text = locale.format_datetime_value(datetime.datetime(2024, 3, 15, 12, 0))
        self.assertIn('3/15/24', text)

    def test_unknown_locale_falls_back(self):
        text = locale.format_datetime_value(datetime.datetime(2024, 3, 15, 9, 5), 'xx_XX')
        self.assertEqual(text, '2024-03-15 09:05')
