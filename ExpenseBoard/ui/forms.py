"""Input forms and summary widgets of a tracker window.

Classes:
    ProfileForm: Name and monthly salary entry shown until the profile is configured.
    ExpenseForm: Amount, category, date and description entry for new expenses.
    SummaryCards: Row of cards showing the summary totals as currency.
"""
import datetime
from typing import Dict, Optional

from PySide6 import QtCore, QtWidgets

from . import ui
from ..core.model import ExpenseInput, UserProfile
from ..settings import lib
from ..settings import locale

QT_DATETIME_FORMAT = 'yyyy-MM-dd HH:mm'


class ProfileForm(QtWidgets.QFrame):
    """
    Form for entering the user's name and monthly salary.

    Signals:
        submitted(str, str): Emitted with the entered name and salary text.
        cancelled(): Emitted when the form is dismissed without saving.
    """
    submitted = QtCore.Signal(str, str)
    cancelled = QtCore.Signal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('FormCard')

        self.name_editor: QtWidgets.QLineEdit
        self.salary_editor: QtWidgets.QLineEdit
        self.save_button: QtWidgets.QPushButton
        self.cancel_button: QtWidgets.QPushButton

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        layout = QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        layout.setContentsMargins(o, o, o, o)
        layout.setSpacing(ui.Size.Indicator(2.0))

        title = QtWidgets.QLabel('Your Information', self)
        title.setObjectName('CardValue')
        layout.addWidget(title)

        hint = QtWidgets.QLabel('Enter your name and monthly salary to start tracking expenses.', self)
        hint.setObjectName('Hint')
        hint.setWordWrap(True)
        layout.addWidget(hint)

        form = QtWidgets.QFormLayout()
        self.name_editor = QtWidgets.QLineEdit(self)
        self.name_editor.setPlaceholderText('Name')
        form.addRow('Name', self.name_editor)

        self.salary_editor = QtWidgets.QLineEdit(self)
        self.salary_editor.setPlaceholderText('0.00')
        form.addRow('Monthly Salary', self.salary_editor)
        layout.addLayout(form)

        row = QtWidgets.QHBoxLayout()
        row.addStretch(1)
        self.cancel_button = QtWidgets.QPushButton('Cancel', self)
        row.addWidget(self.cancel_button)
        self.save_button = QtWidgets.QPushButton('Save', self)
        self.save_button.setDefault(True)
        row.addWidget(self.save_button)
        layout.addLayout(row)

    def _connect_signals(self) -> None:
        self.save_button.clicked.connect(self.submit)
        self.salary_editor.returnPressed.connect(self.submit)
        self.cancel_button.clicked.connect(self.cancelled)

    @QtCore.Slot()
    def submit(self) -> None:
        self.submitted.emit(self.name_editor.text(), self.salary_editor.text())

    def set_cancellable(self, value: bool) -> None:
        self.cancel_button.setVisible(value)

    def set_profile(self, profile: UserProfile) -> None:
        """Fill the editors with a configured profile; unconfigured profiles leave them empty."""
        if not profile.is_configured:
            return
        self.name_editor.setText(profile.name)
        self.salary_editor.setText(str(profile.salary))


class ExpenseForm(QtWidgets.QFrame):
    """
    Form for adding a new expense.

    Signals:
        submitted(object): Emitted with an :class:`~ExpenseBoard.core.model.ExpenseInput`.
    """
    submitted = QtCore.Signal(object)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('FormCard')

        self.amount_editor: QtWidgets.QLineEdit
        self.category_editor: QtWidgets.QComboBox
        self.date_editor: QtWidgets.QDateTimeEdit
        self.description_editor: QtWidgets.QLineEdit
        self.add_button: QtWidgets.QPushButton

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        layout = QtWidgets.QHBoxLayout(self)
        o = ui.Size.Margin(0.5)
        layout.setContentsMargins(o, o, o, o)
        layout.setSpacing(ui.Size.Indicator(2.0))

        self.amount_editor = QtWidgets.QLineEdit(self)
        self.amount_editor.setPlaceholderText('Amount')
        layout.addWidget(self.amount_editor, 1)

        self.category_editor = QtWidgets.QComboBox(self)
        self.category_editor.addItems(lib.DEFAULT_CATEGORIES)
        layout.addWidget(self.category_editor, 1)

        self.date_editor = QtWidgets.QDateTimeEdit(self)
        self.date_editor.setCalendarPopup(True)
        self.date_editor.setDisplayFormat(QT_DATETIME_FORMAT)
        layout.addWidget(self.date_editor, 1)

        self.description_editor = QtWidgets.QLineEdit(self)
        self.description_editor.setPlaceholderText('Description (optional)')
        layout.addWidget(self.description_editor, 2)

        self.add_button = QtWidgets.QPushButton('Add Expense', self)
        layout.addWidget(self.add_button)

        self.reset()

    def _connect_signals(self) -> None:
        self.add_button.clicked.connect(self.submit)
        self.amount_editor.returnPressed.connect(self.submit)
        self.description_editor.returnPressed.connect(self.submit)

    def occurred_at(self) -> datetime.datetime:
        return self.date_editor.dateTime().toPython().replace(second=0, microsecond=0)

    @QtCore.Slot()
    def submit(self) -> None:
        self.submitted.emit(ExpenseInput(
            amount=self.amount_editor.text(),
            category=self.category_editor.currentText(),
            occurred_at=self.occurred_at(),
            description=self.description_editor.text(),
        ))

    def reset(self, now: Optional[datetime.datetime] = None) -> None:
        """Clear the editors and set the date to ``now``."""
        now = now or datetime.datetime.now()
        self.amount_editor.clear()
        self.description_editor.clear()
        self.category_editor.setCurrentIndex(0)
        self.date_editor.setDateTime(QtCore.QDateTime(
            QtCore.QDate(now.year, now.month, now.day),
            QtCore.QTime(now.hour, now.minute),
        ))


class SummaryCards(QtWidgets.QWidget):
    """Row of summary cards. Values are formatted with two fraction digits."""

    cards = {
        'total': 'Total Expenses',
        'week_spend': 'This Week',
        'today_spend': 'Today',
        'balance': 'Balance',
        'monthly_savings': 'Monthly Savings',
    }

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self._locale: str = lib.DEFAULT_LOCALE
        self.value_labels: Dict[str, QtWidgets.QLabel] = {}
        self._create_ui()

    def _create_ui(self) -> None:
        layout = QtWidgets.QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(ui.Size.Margin(0.5))

        for key, title in self.cards.items():
            card = QtWidgets.QFrame(self)
            card.setObjectName('SummaryCard')
            card_layout = QtWidgets.QVBoxLayout(card)
            o = ui.Size.Margin(0.7)
            card_layout.setContentsMargins(o, o, o, o)

            title_label = QtWidgets.QLabel(title, card)
            title_label.setObjectName('CardTitle')
            card_layout.addWidget(title_label)

            value_label = QtWidgets.QLabel(locale.format_currency_value(0, self._locale), card)
            value_label.setObjectName('CardValue')
            card_layout.addWidget(value_label)

            self.value_labels[key] = value_label
            layout.addWidget(card, 1)

    def text(self, key: str) -> str:
        return self.value_labels[key].text()

    @QtCore.Slot(object)
    def set_state(self, state) -> None:
        for key, label in self.value_labels.items():
            label.setText(locale.format_currency_value(getattr(state.totals, key), self._locale))
