"""Domain records and their persisted representation.

This module defines the immutable :class:`Expense` and :class:`UserProfile` records, the
:class:`ExpenseInput` command payload, and helpers that read and write them through a
:class:`~ExpenseBoard.core.store.StoreAPI`.

The persisted layout::

    expenses -> [{"id": "...", "amount": 25.5, "category": "Food",
                  "date": "2024-01-01T12:00", "description": "...", "timestamp": 1704106800000}]
    userInfo -> {"name": "...", "salary": 3000}
    theme    -> "light" | "dark"
"""
import dataclasses
import datetime
import decimal
import json
import logging
import time
from typing import Any, Dict, List, Optional, Union

from ..settings import lib
from ..status import status

DATE_FORMAT = '%Y-%m-%dT%H:%M'
THEMES = ('light', 'dark')

Amount = Union[int, float, str, decimal.Decimal]

_last_id: int = 0


def new_expense_id() -> str:
    """Return a fresh expense id derived from the wall clock in milliseconds.

    Ids are strictly increasing within the process, so two expenses created in the same
    millisecond still receive distinct ids.

    Returns:
        str: The new id.
    """
    global _last_id
    candidate = time.time_ns() // 1_000_000
    if candidate <= _last_id:
        candidate = _last_id + 1
    _last_id = candidate
    return str(candidate)


def to_decimal(value: Amount) -> decimal.Decimal:
    """Convert a user or wire value to a Decimal.

    Floats are converted through their shortest string representation so that ``25.5``
    becomes ``Decimal('25.5')`` rather than its binary expansion.

    Raises:
        ValueError: If the value cannot be interpreted as a number.
    """
    if isinstance(value, bool):
        raise ValueError(f'Not a number: {value!r}')
    if isinstance(value, decimal.Decimal):
        return value
    if isinstance(value, (int, float)):
        return decimal.Decimal(str(value))
    if isinstance(value, str):
        try:
            return decimal.Decimal(value.strip())
        except decimal.InvalidOperation as ex:
            raise ValueError(f'Not a number: {value!r}') from ex
    raise ValueError(f'Not a number: {value!r}')


def decimal_to_json(value: decimal.Decimal) -> Union[int, decimal.Decimal]:
    """Return an integer for integral amounts, otherwise the Decimal itself.

    Decimals are written as exact number tokens by :func:`dumps`.
    """
    if value == value.to_integral_value():
        return int(value)
    return value


def stored_amount(value: Any, field: str) -> decimal.Decimal:
    """Convert a persisted or received number, rejecting non-finite and negative values.

    Raises:
        ValueError: If the value is not a finite, non-negative number.
    """
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f'"{field}" must be a finite number, got {value!r}')
    if amount < 0:
        raise ValueError(f'"{field}" must not be negative, got {value!r}')
    return amount


def truncate_to_minute(value: datetime.datetime) -> datetime.datetime:
    """Drop seconds and microseconds, converting aware datetimes to naive local time."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)


def epoch_millis(value: datetime.datetime) -> int:
    """Return the epoch milliseconds of a naive local datetime."""
    return int(round(value.timestamp() * 1000))


def parse_date(text: str) -> datetime.datetime:
    """Parse a stored ``YYYY-MM-DDTHH:MM`` date, accepting any ISO 8601 variant.

    Raises:
        ValueError: If the text is not a valid date.
    """
    if not isinstance(text, str):
        raise ValueError(f'Date must be a string, got {type(text)}')
    try:
        return datetime.datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        return truncate_to_minute(datetime.datetime.fromisoformat(text))


@dataclasses.dataclass(frozen=True)
class Expense:
    """A single recorded spend event. Immutable once created."""
    id: str
    amount: decimal.Decimal
    category: str
    occurred_at: datetime.datetime
    description: str
    sort_key: int

    @classmethod
    def create(cls, amount: Amount, category: str, occurred_at: datetime.datetime,
               description: str = '', expense_id: Optional[str] = None) -> 'Expense':
        """Create a new expense, deriving its id and sort key.

        Args:
            amount: The spent amount.
            category: Category label.
            occurred_at: When the expense happened; truncated to minute precision.
            description: Free text. Defaults to the category when blank.
            expense_id: Explicit id, otherwise a fresh one is generated.

        Returns:
            Expense: The new record.
        """
        occurred_at = truncate_to_minute(occurred_at)
        description = (description or '').strip() or category
        return cls(
            id=expense_id or new_expense_id(),
            amount=to_decimal(amount),
            category=category,
            occurred_at=occurred_at,
            description=description,
            sort_key=epoch_millis(occurred_at),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'amount': decimal_to_json(self.amount),
            'category': self.category,
            'date': self.occurred_at.strftime(DATE_FORMAT),
            'description': self.description,
            'timestamp': self.sort_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        """Build an expense from its persisted or broadcast dictionary.

        The stored ``timestamp`` is kept as the sort key; it is only derived from the date
        when missing.

        Raises:
            ValueError: If a required field is missing or invalid.
        """
        if not isinstance(data, dict):
            raise ValueError(f'Expense must be a dict, got {type(data)}')

        missing = [k for k in ('id', 'amount', 'category', 'date') if k not in data]
        if missing:
            raise ValueError(f'Expense is missing fields: {missing}')

        occurred_at = parse_date(data['date'])
        category = str(data['category'])

        timestamp = data.get('timestamp')
        if (isinstance(timestamp, bool)
                or not isinstance(timestamp, (int, float, decimal.Decimal))
                or not decimal.Decimal(timestamp).is_finite()):
            sort_key = epoch_millis(occurred_at)
        else:
            sort_key = int(timestamp)

        return cls(
            id=str(data['id']),
            amount=stored_amount(data['amount'], 'amount'),
            category=category,
            occurred_at=occurred_at,
            description=str(data.get('description') or category),
            sort_key=sort_key,
        )


@dataclasses.dataclass(frozen=True)
class UserProfile:
    """The tracked user's display name and monthly salary."""
    name: str = lib.DEFAULT_PROFILE_NAME
    salary: decimal.Decimal = decimal.Decimal(0)

    @property
    def is_configured(self) -> bool:
        """True when the profile has a real name and a positive salary."""
        name = self.name.strip()
        return bool(name) and name != lib.DEFAULT_PROFILE_NAME and self.salary.is_finite() and self.salary > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'salary': decimal_to_json(self.salary),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserProfile':
        """Build a profile from its persisted or broadcast dictionary.

        Raises:
            ValueError: If the dictionary is not a valid profile.
        """
        if not isinstance(data, dict):
            raise ValueError(f'Profile must be a dict, got {type(data)}')
        name = data.get('name', lib.DEFAULT_PROFILE_NAME)
        if not isinstance(name, str):
            raise ValueError(f'Profile name must be a string, got {type(name)}')
        return cls(name=name, salary=stored_amount(data.get('salary', 0), 'salary'))


@dataclasses.dataclass(frozen=True)
class ExpenseInput:
    """Values submitted by the expense form."""
    amount: Amount
    category: str
    occurred_at: datetime.datetime
    description: str = ''


def loads(text: str) -> Any:
    """Decode a JSON document, reading fractional numbers as Decimals."""
    return json.loads(text, parse_float=decimal.Decimal)


def dumps(data: Any) -> str:
    """Encode a JSON document, writing Decimals as exact number tokens.

    Raises:
        ValueError: If the document holds a non-finite number.
        TypeError: If the document holds a value JSON cannot represent.
    """
    if isinstance(data, decimal.Decimal):
        if not data.is_finite():
            raise ValueError(f'Cannot encode non-finite number: {data}')
        return str(data)
    if isinstance(data, dict):
        items = (f'{json.dumps(str(k), ensure_ascii=False)}: {dumps(v)}' for k, v in data.items())
        return '{' + ', '.join(items) + '}'
    if isinstance(data, (list, tuple)):
        return '[' + ', '.join(dumps(v) for v in data) + ']'
    return json.dumps(data, ensure_ascii=False, allow_nan=False)


def read_expenses(store) -> List[Expense]:
    """Load the persisted expense collection.

    Individual records that cannot be decoded are skipped with a warning.

    Returns:
        List[Expense]: The stored expenses, or an empty list when none are stored.

    Raises:
        status.StoreUnavailableException: If the store cannot be read.
        status.MalformedStateException: If the stored document is not a JSON array.
    """
    text = store.get(lib.EXPENSES_KEY)
    if text is None:
        return []

    try:
        data = loads(text)
    except ValueError as ex:
        raise status.MalformedStateException(f'"{lib.EXPENSES_KEY}" is not valid JSON: {ex}') from ex
    if not isinstance(data, list):
        raise status.MalformedStateException(f'"{lib.EXPENSES_KEY}" must be a JSON array.')

    expenses: List[Expense] = []
    for item in data:
        try:
            expenses.append(Expense.from_dict(item))
        except ValueError as ex:
            logging.warning(f'Skipping unreadable expense record: {ex}')
    return expenses


def write_expenses(store, expenses: List[Expense]) -> None:
    """Persist the full expense collection snapshot.

    Raises:
        status.StoreUnavailableException: If the store cannot be written.
    """
    store.set(lib.EXPENSES_KEY, dumps([e.to_dict() for e in expenses]))


def read_profile(store) -> UserProfile:
    """Load the persisted user profile, defaulting when absent.

    Raises:
        status.StoreUnavailableException: If the store cannot be read.
        status.MalformedStateException: If the stored profile cannot be decoded.
    """
    text = store.get(lib.PROFILE_KEY)
    if text is None:
        return UserProfile()
    try:
        return UserProfile.from_dict(loads(text))
    except ValueError as ex:
        raise status.MalformedStateException(f'"{lib.PROFILE_KEY}" could not be decoded: {ex}') from ex


def write_profile(store, profile: UserProfile) -> None:
    store.set(lib.PROFILE_KEY, dumps(profile.to_dict()))


def read_theme(store) -> str:
    """Return the persisted theme, falling back to the default for unknown values."""
    theme = store.get(lib.THEME_KEY)
    if theme is None:
        return lib.DEFAULT_THEME
    if theme not in THEMES:
        # Also accept a JSON encoded string
        try:
            theme = loads(theme)
        except ValueError:
            pass
    if theme not in THEMES:
        logging.warning(f'Unknown theme "{theme}", using "{lib.DEFAULT_THEME}".')
        return lib.DEFAULT_THEME
    return theme


def write_theme(store, theme: str) -> None:
    if theme not in THEMES:
        raise ValueError(f'Invalid theme: {theme}. Must be one of {THEMES}')
    store.set(lib.THEME_KEY, theme)
