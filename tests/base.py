"""Unittest base class for creating a clean test environment."""
import datetime
import logging
import os
import shutil
import tempfile
import unittest
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, List, Optional

from PySide6 import QtWidgets, QtCore

from ExpenseBoard.core.model import Expense, UserProfile
from ExpenseBoard.core.store import StoreAPI
from ExpenseBoard.core.sync import SyncBus
from ExpenseBoard.core.tracker import TrackerController
from ExpenseBoard.settings import lib

NOW = datetime.datetime(2024, 3, 15, 12, 0)


def fixed_clock(now: datetime.datetime = NOW) -> Callable[[], datetime.datetime]:
    return lambda: now


def make_expense(amount, category: str = 'Food', occurred_at: datetime.datetime = NOW,
                 description: str = '', expense_id: Optional[str] = None) -> Expense:
    return Expense.create(amount, category, occurred_at, description=description, expense_id=expense_id)


@contextmanager
def mute_ui_signals():
    from ExpenseBoard.ui.actions import signals
    blocker = QtCore.QSignalBlocker(signals)  # blocks every signal in `signals`
    try:
        yield
    finally:
        blocker.unblock()


def process_events(rounds: int = 3) -> None:
    """Deliver queued sync messages."""
    for _ in range(rounds):
        QtCore.QCoreApplication.processEvents()


class BaseTestCase(unittest.TestCase):
    """Base test case that points the config directory at a temporary folder."""

    config_paths: lib.ConfigPaths
    temp_dir: str
    channel_name: str

    def setUp(self) -> None:
        # Ensure headless Qt
        if 'QT_QPA_PLATFORM' not in os.environ:
            os.environ['QT_QPA_PLATFORM'] = 'offscreen'
            logging.debug('QT_QPA_PLATFORM set to offscreen for headless testing.')

        # Ensure a QApplication is available
        if not QtWidgets.QApplication.instance():
            QtWidgets.QApplication([])  # type: ignore
            logging.debug('QtWidgets.QApplication initialized for tests.')

        self.temp_dir = tempfile.mkdtemp(prefix='expenseboard_test_')
        self._previous_config_dir = os.environ.get(lib.CONFIG_DIR_ENV_KEY)
        os.environ[lib.CONFIG_DIR_ENV_KEY] = str(Path(self.temp_dir) / 'config')
        self.config_paths = lib.ConfigPaths()

        # Keep every test on its own broadcast channel
        self.channel_name = f'test_channel_{uuid.uuid4().hex}'

    def tearDown(self) -> None:
        process_events()

        if self._previous_config_dir is None:
            os.environ.pop(lib.CONFIG_DIR_ENV_KEY, None)
        else:
            os.environ[lib.CONFIG_DIR_ENV_KEY] = self._previous_config_dir

        shutil.rmtree(self.temp_dir, ignore_errors=True)
        logging.debug(f'Removed test directory {self.temp_dir}')

    def make_store(self) -> StoreAPI:
        return StoreAPI(self.config_paths.db_path)

    def make_bus(self) -> SyncBus:
        bus = SyncBus(self.channel_name)
        self.addCleanup(bus.close)
        return bus

    def make_controller(self, store: Optional[StoreAPI] = None,
                        clock: Optional[Callable[[], datetime.datetime]] = None) -> TrackerController:
        controller = TrackerController(
            store or self.make_store(),
            bus=self.make_bus(),
            clock=clock or fixed_clock(),
        )
        self.addCleanup(controller.close)
        return controller

    def make_active_controller(self, store: Optional[StoreAPI] = None, name: str = 'Ann',
                               salary: str = '3000') -> TrackerController:
        """Return a controller whose store already holds a configured profile."""
        store = store or self.make_store()
        from ExpenseBoard.core import model
        model.write_profile(store, UserProfile(name=name, salary=model.to_decimal(salary)))
        return self.make_controller(store)


class SignalRecorder:
    """Collects the arguments of every emission of a signal."""

    def __init__(self, signal) -> None:
        self.calls: List[tuple] = []
        self._signal = signal
        signal.connect(self._record)

    def disconnect(self) -> None:
        self._signal.disconnect(self._record)

    def _record(self, *args) -> None:
        self.calls.append(args)

    @property
    def count(self) -> int:
        return len(self.calls)

    @property
    def last(self):
        return self.calls[-1] if self.calls else None
