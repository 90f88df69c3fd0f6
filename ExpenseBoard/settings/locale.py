"""
Module for formatting decimal and currency values using Babel.

Amounts are always rendered with exactly two fraction digits; rounding happens here and
nowhere else.
"""
import datetime
import decimal
import logging
from typing import Union

from babel import Locale, UnknownLocaleError, dates, numbers

from . import lib

Number = Union[int, float, decimal.Decimal]

CURRENCY_MAP: dict[str, str] = {
    'US': 'USD',
    'GB': 'GBP',
    'DE': 'EUR',
    'FR': 'EUR',
    'IT': 'EUR',
    'ES': 'EUR',
    'NL': 'EUR',
    'JP': 'JPY',
    'CA': 'CAD',
    'AU': 'AUD',
    'IN': 'INR',
    'BR': 'BRL',
    'CN': 'CNY',
    'DK': 'DKK',
    'SE': 'SEK',
    'NO': 'NOK',
    'HU': 'HUF',
    'MX': 'MXN',
}

CURRENCY_FORMAT = '¤#,##0.00'


def get_currency_from_locale(locale: str) -> str:
    """
    Retrieve the default currency code based on the locale's territory.

    Args:
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: Currency code such as 'EUR'. Defaults to 'USD' if the territory is unknown.
    """
    parts = locale.split('_')
    if len(parts) < 2:
        return 'USD'
    return CURRENCY_MAP.get(parts[1], 'USD')


def format_currency_value(value: Number, locale: str = lib.DEFAULT_LOCALE) -> str:
    """
    Format a number as a currency string based on the locale's default currency.

    The fraction digits are always two, regardless of the currency's customary precision.

    Args:
        value: The numeric value to be formatted.
        locale (str): Locale string, e.g. 'fr_FR'.

    Returns:
        str: The formatted currency string, e.g. '$1,500.00'.
    """
    try:
        currency_code = get_currency_from_locale(locale)
        return numbers.format_currency(
            value,
            currency_code,
            format=CURRENCY_FORMAT,
            locale=Locale.parse(locale),
            currency_digits=False,
        )
    except (ValueError, TypeError, UnknownLocaleError) as ex:
        logging.debug(f'Error formatting currency: {ex}')
        return f'{decimal.Decimal(str(value)):.2f}'


def format_datetime_value(value: datetime.datetime, locale: str = lib.DEFAULT_LOCALE) -> str:
    """
    Format a date and time with the locale's short date and short time patterns.

    Args:
        value: The datetime to format.
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: The formatted value, e.g. '1/15/24, 12:30 PM'.
    """
    try:
        return dates.format_datetime(value, format='short', locale=Locale.parse(locale))
    except (ValueError, TypeError, UnknownLocaleError) as ex:
        logging.debug(f'Error formatting date: {ex}')
        return value.strftime('%Y-%m-%d %H:%M')
