"""Settings library for application paths and persisted state layout.

Provides:
    - Store keys and defaults shared by the store, the controller and the UI.
    - The broadcast channel name used to synchronize tracker windows.
    - ConfigPaths: resolution and preparation of the application data directory.
"""
import logging
import os
import pathlib
from typing import List

from PySide6 import QtCore

app_name: str = 'ExpenseBoard'

CONFIG_DIR_ENV_KEY: str = 'EXPENSEBOARD_CONFIG_DIR'

# Keys of the local key-value store
EXPENSES_KEY: str = 'expenses'
PROFILE_KEY: str = 'userInfo'
THEME_KEY: str = 'theme'

CHANNEL_NAME: str = 'expense_tracker_channel'

DEFAULT_PROFILE_NAME: str = 'User'
DEFAULT_THEME: str = 'light'
DEFAULT_LOCALE: str = 'en_US'

ALL_CATEGORIES: str = 'all'
DEFAULT_CATEGORIES: List[str] = [
    'Food',
    'Transportation',
    'Housing',
    'Utilities',
    'Entertainment',
    'Healthcare',
    'Shopping',
    'Other',
]

EXPENSE_DATA_COLUMNS: List[str] = ['id', 'date', 'category', 'description', 'amount']
CATEGORY_DATA_COLUMNS: List[str] = ['category', 'total', 'weight']
TREND_DATA_COLUMNS: List[str] = ['day', 'total']


class ConfigPaths:
    """Manage application file paths and ensure the data directories exist.

    The data directory defaults to the platform's application data location and can be
    redirected with the ``EXPENSEBOARD_CONFIG_DIR`` environment variable.
    """

    def __init__(self) -> None:
        QtCore.QCoreApplication.setApplicationName(app_name)
        QtCore.QCoreApplication.setOrganizationName('')

        override = os.environ.get(CONFIG_DIR_ENV_KEY, '')
        if override:
            config_dir = pathlib.Path(override)
            logging.debug(f'Using config directory from {CONFIG_DIR_ENV_KEY}: {config_dir}')
        else:
            p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
            config_dir = pathlib.Path(p) / 'config'
            logging.debug(f'Using app data directory: {config_dir}')

        self.config_dir: pathlib.Path = config_dir
        self.db_dir: pathlib.Path = self.config_dir / 'db'
        self.db_path: pathlib.Path = self.db_dir / 'store.db'

        self._verify_and_prepare()

    def _verify_and_prepare(self) -> None:
        """Create missing config and db directories."""
        if not self.config_dir.exists():
            logging.debug(f'Creating config directory: {self.config_dir}')
            self.config_dir.mkdir(parents=True, exist_ok=True)

        if not self.db_dir.exists():
            logging.debug(f'Creating db directory: {self.db_dir}')
            self.db_dir.mkdir(parents=True, exist_ok=True)
