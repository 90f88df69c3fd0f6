"""Application-wide Qt signals for ExpenseBoard.

This module provides:
    - Signals: custom Qt signals shared by every tracker window, such as error reporting,
      theme changes and requests to open another window.
"""
import logging

from PySide6 import QtCore


class Signals(QtCore.QObject):
    """Centralized Qt signals for application-wide events."""
    error = QtCore.Signal(str)

    themeChanged = QtCore.Signal(str)

    newWindowRequested = QtCore.Signal()

    def __init__(self):
        super().__init__()
        self._connect_signals()

    def _connect_signals(self):
        @QtCore.Slot(str)
        def theme_changed(theme: str) -> None:
            if not QtCore.QCoreApplication.instance():
                return
            try:
                from . import ui
                ui.apply_theme(theme)
            except RuntimeError as ex:
                logging.debug(f'Error applying theme: {ex}')

        self.themeChanged.connect(theme_changed)

        @QtCore.Slot()
        def new_window_requested() -> None:
            from . import main
            main.show()

        self.newWindowRequested.connect(new_window_requested)


signals = Signals()
