"""
ExpenseBoard: local desktop expense tracker with live synchronization between open windows.

This package provides:

- :mod:`ExpenseBoard.core` – Local key-value store, domain records, the broadcast sync bus and the tracker controller.
- :mod:`ExpenseBoard.data` – Aggregation functions (:func:`ExpenseBoard.data.data.compute_totals`,
  :func:`ExpenseBoard.data.data.bucket_by_day`) and the Qt table model and chart views fed by them.
- :mod:`ExpenseBoard.ui` – PySide6 windows and forms; every window is one synchronized tracker instance.
- :mod:`ExpenseBoard.settings` – Application paths, store keys and locale-aware currency formatting.
- :mod:`ExpenseBoard.log` – Logging setup and in-memory log handler.

Use :func:`ExpenseBoard.exec_` to launch the application.
"""
import sys

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('ExpenseBoard requires Python 3.11 or higher.')

__version__ = '0.1.0'
__license__ = 'GPL-3.0'
__description__ = 'ExpenseBoard: local expense tracker with cross-window synchronization.'

from .log import log

log.setup_logging()


def exec_() -> None:
    """Launch the ExpenseBoard GUI application and enter its event loop.

    Initializes the QApplication, opens the first tracker window, and starts the Qt event loop.
    """
    from .ui import app
    from .ui import main
    application = app.Application(sys.argv)
    main.show()

    sys.exit(application.exec())


if __name__ == '__main__':
    exec_()
