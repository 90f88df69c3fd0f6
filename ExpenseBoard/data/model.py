"""Qt table model listing the filtered expenses of a tracker window."""
import enum
import logging
from typing import Any, Optional, Sequence

import pandas as pd
from PySide6 import QtCore

from . import data
from ..core.model import Expense
from ..settings import lib
from ..settings import locale

IdRole = QtCore.Qt.UserRole + 1
AmountRole = QtCore.Qt.UserRole + 2
CategoryRole = QtCore.Qt.UserRole + 3


class Columns(enum.IntEnum):
    Date = 0
    Category = 1
    Description = 2
    Amount = 3


class ExpenseTableModel(QtCore.QAbstractTableModel):
    """Read-only model over the rows of :func:`ExpenseBoard.data.data.expenses_frame`.

    Rows are kept in the order they are given, which is newest first for the render state.
    """
    header = ['Date', 'Category', 'Description', 'Amount']
    empty_message = 'No expenses found'

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('ExpenseBoardExpenseTableModel')

        self._df: pd.DataFrame = pd.DataFrame(columns=lib.EXPENSE_DATA_COLUMNS)
        self._locale: str = lib.DEFAULT_LOCALE

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._df)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self.header)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None
        row = index.row()
        col = index.column()

        if row < 0 or row >= self.rowCount():
            return None

        record = self._df.iloc[row]

        if role == IdRole:
            return record['id']
        if role == AmountRole:
            return record['amount']
        if role == CategoryRole:
            return record['category']

        if role in (QtCore.Qt.ToolTipRole, QtCore.Qt.StatusTipRole):
            return f'{record["category"]}: {record["description"]}'

        if role == QtCore.Qt.DisplayRole:
            if col == Columns.Date:
                return locale.format_datetime_value(pd.Timestamp(record['date']).to_pydatetime(), self._locale)
            if col == Columns.Category:
                return record['category']
            if col == Columns.Description:
                return record['description']
            if col == Columns.Amount:
                return locale.format_currency_value(record['amount'], self._locale)

        if role == QtCore.Qt.TextAlignmentRole and col == Columns.Amount:
            return QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter

        return None

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation,
                   role: int = QtCore.Qt.DisplayRole) -> Any:
        if role == QtCore.Qt.DisplayRole and orientation == QtCore.Qt.Horizontal:
            return self.header[section]
        return None

    def expense_id(self, row: int) -> Optional[str]:
        """Return the id of the expense shown in ``row``."""
        if row < 0 or row >= self.rowCount():
            return None
        return self._df.iloc[row]['id']

    @QtCore.Slot(object)
    def set_expenses(self, expenses: Sequence[Expense]) -> None:
        """Replace the listed expenses."""
        logging.debug(f'Resetting expense table with {len(expenses)} row(s)')
        self.beginResetModel()
        try:
            self._df = data.expenses_frame(expenses).reset_index(drop=True)
        finally:
            self.endResetModel()

    @QtCore.Slot(object)
    def set_state(self, state) -> None:
        """Show the filtered expenses of a :class:`~ExpenseBoard.core.tracker.RenderState`."""
        self.set_expenses(state.filtered_expenses)

