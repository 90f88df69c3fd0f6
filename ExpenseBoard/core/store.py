"""
Local SQLite key-value store.

This module provides :class:`StoreAPI`, a synchronous string store with ``get``, ``set`` and
``remove``. Every tracker window in the process (and any other process pointed at the same
file) shares the same store, which makes it the durable source of truth between windows.

Failures are never swallowed here: any SQLite error is raised as
:class:`~ExpenseBoard.status.status.StoreUnavailableException`.
"""
import logging
import pathlib
import sqlite3
from typing import Optional, Union

from ..settings import lib
from ..status import status

TABLE = 'kvstore'


class StoreAPI:
    """Key-value access to the local store database.

    Args:
        db_path: Optional path of the SQLite file. Defaults to the path resolved by
            :class:`~ExpenseBoard.settings.lib.ConfigPaths`.
    """

    def __init__(self, db_path: Optional[Union[str, pathlib.Path]] = None) -> None:
        self.db_path: pathlib.Path = pathlib.Path(db_path) if db_path else lib.ConfigPaths().db_path
        self._initialize_schema_if_needed()

    def _initialize_schema_if_needed(self) -> None:
        """Create the key-value table if it does not exist yet.

        Raises:
            status.StoreUnavailableException: If the database cannot be opened or written.
        """
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = self.connection()
            conn.execute(
                f'CREATE TABLE IF NOT EXISTS {TABLE} ("key" TEXT PRIMARY KEY, "value" TEXT NOT NULL)'
            )
            conn.commit()
            logging.debug(f'Store schema ready at {self.db_path}')
        except (sqlite3.Error, OSError) as e:
            raise status.StoreUnavailableException(f'Could not initialize store: {e}') from e
        finally:
            if conn:
                conn.close()

    def connection(self) -> sqlite3.Connection:
        """Return a new connection to the store database.

        Returns:
            sqlite3.Connection: Database connection object.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.db_path), timeout=2.0)

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``.

        Args:
            key: Store key, e.g. ``'expenses'``.

        Returns:
            The stored string, or None if the key is absent.

        Raises:
            status.StoreUnavailableException: If the store cannot be read.
        """
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = self.connection()
            row = conn.execute(f'SELECT "value" FROM {TABLE} WHERE "key"=?', (key,)).fetchone()
            return row[0] if row else None
        except (sqlite3.Error, OSError) as e:
            raise status.StoreUnavailableException(f'Could not read "{key}": {e}') from e
        finally:
            if conn:
                conn.close()

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        Args:
            key: Store key.
            value: String value to persist.

        Raises:
            TypeError: If value is not a string.
            status.StoreUnavailableException: If the store cannot be written.
        """
        if not isinstance(value, str):
            raise TypeError(f'Store values must be strings, got {type(value)}.')

        conn: Optional[sqlite3.Connection] = None
        try:
            conn = self.connection()
            conn.execute(
                f'INSERT OR REPLACE INTO {TABLE} ("key", "value") VALUES (?, ?)',
                (key, value)
            )
            conn.commit()
            logging.debug(f'Stored "{key}" ({len(value)} characters)')
        except (sqlite3.Error, OSError) as e:
            raise status.StoreUnavailableException(f'Could not write "{key}": {e}') from e
        finally:
            if conn:
                conn.close()

    def remove(self, key: str) -> None:
        """Remove ``key`` from the store. Removing an absent key is a no-op.

        Raises:
            status.StoreUnavailableException: If the store cannot be written.
        """
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = self.connection()
            conn.execute(f'DELETE FROM {TABLE} WHERE "key"=?', (key,))
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise status.StoreUnavailableException(f'Could not remove "{key}": {e}') from e
        finally:
            if conn:
                conn.close()
