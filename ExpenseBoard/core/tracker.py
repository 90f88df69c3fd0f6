"""Tracker controller: the owner of one window's expenses and profile.

Each tracker window creates one :class:`TrackerController`. The controller

- loads the expense collection and the profile from the shared store,
- applies local commands (:meth:`TrackerController.add_expense`,
  :meth:`TrackerController.delete_expense`, :meth:`TrackerController.save_profile`),
  persisting the full snapshot and broadcasting the change,
- applies remote events from the :class:`~ExpenseBoard.core.sync.SyncBus` without
  re-broadcasting them,
- recomputes the derived :class:`RenderState` after every change and emits it through
  :attr:`TrackerController.stateChanged`.

Store failures never discard in-memory state: they are logged, reported through
:attr:`TrackerController.storeWarning`, and the session continues with the in-memory data.
"""
import dataclasses
import datetime
import decimal
import enum
import logging
from typing import Callable, Dict, List, Optional, Tuple

from PySide6 import QtCore

from . import model
from . import sync
from ..data import data
from ..settings import lib
from ..status import status


class Mode(enum.StrEnum):
    """Profile-gated tracker modes."""
    Unconfigured = 'unconfigured'
    Active = 'active'


class Overlay(enum.StrEnum):
    """Visibility of the profile form."""
    Hidden = 'hidden'
    Editing = 'editing'  # form shown above the visible tracker
    Required = 'required'  # form shown alone, tracker hidden


@dataclasses.dataclass(frozen=True)
class RenderState:
    """Everything the presentation layer needs to draw one window."""
    filtered_expenses: Tuple[model.Expense, ...]
    totals: data.Totals
    category_buckets: Dict[str, decimal.Decimal]
    day_buckets: Dict[str, decimal.Decimal]
    categories: Tuple[str, ...]
    profile: model.UserProfile
    mode: Mode
    overlay: Overlay
    date_mode: data.DateFilter
    category: str
    theme: str

    @property
    def tracker_visible(self) -> bool:
        return self.mode == Mode.Active and self.overlay != Overlay.Required

    @property
    def profile_form_visible(self) -> bool:
        return self.overlay != Overlay.Hidden


def validate_amount(value: model.Amount) -> decimal.Decimal:
    """Return the amount as a Decimal, rejecting negative and non-finite values.

    Raises:
        status.ValidationException: If the amount is not a finite, non-negative number.
    """
    try:
        amount = model.to_decimal(value)
    except ValueError:
        raise status.ValidationException(f'Amount "{value}" is not a number.')
    if not amount.is_finite():
        raise status.ValidationException(f'Amount "{value}" is not a finite number.')
    if amount < 0:
        raise status.ValidationException(f'Amount "{value}" must not be negative.')
    return amount


class TrackerController(QtCore.QObject):
    """Owns the expense collection and profile of one tracker window.

    Args:
        store: The shared :class:`~ExpenseBoard.core.store.StoreAPI`.
        bus: The window's :class:`~ExpenseBoard.core.sync.SyncBus`. When None, a bus on the
            default channel is created and owned by the controller.
        clock: Returns the reference "now" used by the aggregations.
        parent: Optional QObject parent.
    """
    stateChanged = QtCore.Signal(object)  # RenderState
    modeChanged = QtCore.Signal(str)
    storeWarning = QtCore.Signal(str)

    def __init__(self, store, bus: Optional[sync.SyncBus] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now,
                 parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        self._store = store
        self._bus = bus if bus is not None else sync.SyncBus(parent=self)
        self._clock = clock

        self._expenses: List[model.Expense] = []
        self._profile: model.UserProfile = model.UserProfile()
        self._theme: str = lib.DEFAULT_THEME

        self._mode: Mode = Mode.Unconfigured
        self._overlay: Overlay = Overlay.Required
        self._date_mode: data.DateFilter = data.DateFilter.All
        self._category: str = lib.ALL_CATEGORIES

        self._load()
        self._bus.subscribe(self.on_remote_event)

    @property
    def expenses(self) -> Tuple[model.Expense, ...]:
        return tuple(self._expenses)

    @property
    def profile(self) -> model.UserProfile:
        return self._profile

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def overlay(self) -> Overlay:
        return self._overlay

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def bus(self) -> sync.SyncBus:
        return self._bus

    @property
    def store(self):
        return self._store

    def _load(self) -> None:
        """Read expenses, profile and theme from the store, falling back to defaults."""
        try:
            self._expenses = self._dedupe(model.read_expenses(self._store))
        except status.MalformedStateException:
            self._expenses = []
        except status.StoreUnavailableException as ex:
            self._expenses = []
            self.storeWarning.emit(ex.message)

        try:
            self._profile = model.read_profile(self._store)
        except status.MalformedStateException:
            self._profile = model.UserProfile()
        except status.StoreUnavailableException as ex:
            self._profile = model.UserProfile()
            self.storeWarning.emit(ex.message)

        try:
            self._theme = model.read_theme(self._store)
        except status.StoreUnavailableException as ex:
            self._theme = lib.DEFAULT_THEME
            self.storeWarning.emit(ex.message)

        self._set_mode(Mode.Active if self._profile.is_configured else Mode.Unconfigured)
        self._overlay = Overlay.Hidden if self._mode == Mode.Active else Overlay.Required
        logging.info(
            f'Loaded {len(self._expenses)} expense(s); profile "{self._profile.name}" ({self._mode})'
        )

    @staticmethod
    def _dedupe(expenses: List[model.Expense]) -> List[model.Expense]:
        """Collapse duplicate ids; the last record wins and keeps the first position."""
        collection: List[model.Expense] = []
        positions: Dict[str, int] = {}
        for expense in expenses:
            if expense.id in positions:
                collection[positions[expense.id]] = expense
                continue
            positions[expense.id] = len(collection)
            collection.append(expense)
        return collection

    def _persist_expenses(self) -> None:
        try:
            model.write_expenses(self._store, self._expenses)
        except status.StoreUnavailableException as ex:
            self.storeWarning.emit(ex.message)

    def _persist_profile(self) -> None:
        try:
            model.write_profile(self._store, self._profile)
        except status.StoreUnavailableException as ex:
            self.storeWarning.emit(ex.message)

    def _set_mode(self, mode: Mode) -> None:
        if mode == self._mode:
            return
        self._mode = mode
        logging.debug(f'Tracker mode changed to {mode}')
        self.modeChanged.emit(mode.value)

    def add_expense(self, expense_input: model.ExpenseInput) -> model.Expense:
        """Validate, store and broadcast a new expense.

        Args:
            expense_input: The submitted values.

        Returns:
            model.Expense: The created expense.

        Raises:
            status.ValidationException: If the amount is negative, non-finite or not a
                number, or the category is blank.
        """
        amount = validate_amount(expense_input.amount)
        category = (expense_input.category or '').strip()
        if not category:
            raise status.ValidationException('Category must not be empty.')
        if not isinstance(expense_input.occurred_at, datetime.datetime):
            raise status.ValidationException('A valid date and time is required.')

        expense = model.Expense.create(
            amount,
            category,
            expense_input.occurred_at,
            description=expense_input.description,
        )
        self._expenses.append(expense)
        logging.debug(f'Added expense {expense.id}: {expense.amount} ({expense.category})')

        self._persist_expenses()
        self._bus.publish(sync.AddEvent(expense))
        self.recompute()
        return expense

    def delete_expense(self, expense_id: str) -> None:
        """Remove an expense by id. Deleting an unknown id leaves the collection unchanged."""
        self._remove(expense_id)
        self._persist_expenses()
        self._bus.publish(sync.DeleteEvent(expense_id))
        self.recompute()

    def _remove(self, expense_id: str) -> None:
        count = len(self._expenses)
        self._expenses = [e for e in self._expenses if e.id != expense_id]
        if len(self._expenses) == count:
            logging.debug(f'Expense {expense_id} not found, nothing to delete.')
        else:
            logging.debug(f'Deleted expense {expense_id}')

    def save_profile(self, name: str, salary: model.Amount) -> model.UserProfile:
        """Validate and replace the profile, activating the tracker.

        Args:
            name: Display name; must not be blank.
            salary: Monthly salary; must be greater than zero.

        Returns:
            model.UserProfile: The saved profile.

        Raises:
            status.ValidationException: If the name is blank or the salary is not positive.
        """
        name = (name or '').strip()
        if not name:
            raise status.ValidationException('Please enter your name.')
        try:
            value = model.to_decimal(salary)
        except ValueError:
            raise status.ValidationException(f'Salary "{salary}" is not a number.')
        if not value.is_finite() or value <= 0:
            raise status.ValidationException('Please enter a valid salary amount.')

        self._profile = model.UserProfile(name=name, salary=value)
        self._persist_profile()
        self._bus.publish(sync.ProfileUpdateEvent(self._profile))

        self._overlay = Overlay.Hidden
        self._set_mode(Mode.Active)
        logging.info(f'Profile saved for "{name}"')
        self.recompute()
        return self._profile

    def edit_profile(self) -> None:
        """Show the profile form. An active tracker stays visible underneath."""
        self._overlay = Overlay.Editing if self._mode == Mode.Active else Overlay.Required
        self.recompute()

    def dismiss_profile(self) -> None:
        """Hide the profile form without saving. Only possible while the tracker is active."""
        if self._mode != Mode.Active:
            return
        self._overlay = Overlay.Hidden
        self.recompute()

    def on_remote_event(self, event: sync.SyncEvent) -> None:
        """Apply an event published by another window. Never re-publishes.

        Args:
            event: The received event.
        """
        logging.debug(f'Applying remote "{event.kind}" event')
        if isinstance(event, sync.AddEvent):
            self._expenses = self._dedupe(self._expenses + [event.expense])
            self._persist_expenses()
        elif isinstance(event, sync.DeleteEvent):
            self._remove(event.id)
            self._persist_expenses()
        elif isinstance(event, sync.ProfileUpdateEvent):
            self._profile = event.profile
            self._persist_profile()
            # Another window changed the identity: ask this one to confirm it
            self._overlay = Overlay.Required
        else:
            raise TypeError(f'Unknown sync event: {event!r}')
        self.recompute()

    def set_filters(self, date_mode: Optional[str] = None, category: Optional[str] = None) -> None:
        """Change the active view filters.

        Args:
            date_mode: One of the :class:`~ExpenseBoard.data.data.DateFilter` values.
            category: A category label or ``'all'``.

        Raises:
            ValueError: If date_mode is not a known filter.
        """
        if date_mode is not None:
            self._date_mode = data.DateFilter(date_mode)
        if category is not None:
            self._category = category or lib.ALL_CATEGORIES
        self.recompute()

    def set_theme(self, theme: str) -> None:
        """Persist the theme for this and future sessions. The theme is not broadcast."""
        if theme not in model.THEMES:
            raise ValueError(f'Invalid theme: {theme}. Must be one of {model.THEMES}')
        self._theme = theme
        try:
            model.write_theme(self._store, theme)
        except status.StoreUnavailableException as ex:
            self.storeWarning.emit(ex.message)

        from ..ui.actions import signals
        signals.themeChanged.emit(theme)
        self.recompute()

    def reload(self) -> RenderState:
        """Discard in-memory state and read it again from the store."""
        self._load()
        return self.recompute()

    def recompute(self) -> RenderState:
        """Derive the render state from the current collection and filters and emit it.

        Returns:
            RenderState: The emitted state.
        """
        now = self._clock()

        filtered = data.filter_by_date(self._expenses, now, self._date_mode)
        filtered = data.filter_by_category(filtered, self._category)
        filtered = data.sort_by_recency(filtered)

        state = RenderState(
            filtered_expenses=tuple(filtered),
            totals=data.compute_totals(self._expenses, self._profile, now),
            category_buckets=data.bucket_by_category(filtered),
            day_buckets=data.bucket_by_day(filtered),
            categories=tuple(data.list_categories(self._expenses)),
            profile=self._profile,
            mode=self._mode,
            overlay=self._overlay,
            date_mode=self._date_mode,
            category=self._category,
            theme=self._theme,
        )
        self.stateChanged.emit(state)
        return state

    def close(self) -> None:
        """Leave the sync bus. The controller no longer receives remote events."""
        self._bus.close()
