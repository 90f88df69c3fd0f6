"""Tracker window composition and UI entry points for ExpenseBoard.

This module defines:
    - show(): open a new tracker window on the shared store and sync channel
    - TrackerWindow: main window rendering one tracker controller
"""
import logging
from typing import List, Optional

from PySide6 import QtWidgets, QtCore, QtGui

from . import ui
from .actions import signals
from .forms import ProfileForm, ExpenseForm, SummaryCards
from ..core.store import StoreAPI
from ..core.sync import SyncBus
from ..core.tracker import Mode, Overlay, RenderState, TrackerController
from ..data.data import DateFilter
from ..data.view import ExpenseView, PieChartView, TrendChartView
from ..settings import lib
from ..settings import locale
from ..status import status

windows: List['TrackerWindow'] = []

DATE_FILTER_LABELS = {
    DateFilter.All: 'All Time',
    DateFilter.Today: 'Today',
    DateFilter.Week: 'This Week',
    DateFilter.Month: 'This Month',
}


def show(store: Optional[StoreAPI] = None) -> 'TrackerWindow':
    """Open a new tracker window.

    Every window has its own controller and sync bus; all windows share the store.

    Args:
        store: The store to use. Defaults to the store of the configured data directory.

    Returns:
        TrackerWindow: The new window.
    """
    if store is None:
        store = windows[0].controller.store if windows else StoreAPI()

    controller = TrackerController(store, bus=SyncBus())
    window = TrackerWindow(controller)
    controller.setParent(window)
    windows.append(window)

    try:
        ui.apply_theme(controller.theme)
    except RuntimeError as ex:
        logging.debug(f'Could not apply theme: {ex}')

    window.show()
    logging.info(f'Opened tracker window ({len(windows)} open)')
    return window


class TrackerWindow(QtWidgets.QMainWindow):
    """Main window of a single tracker instance."""

    def __init__(self, controller: TrackerController, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('ExpenseBoardTrackerWindow')
        self.setAttribute(QtCore.Qt.WA_DeleteOnClose, True)

        self.controller: TrackerController = controller

        self.name_label: QtWidgets.QLabel
        self.salary_label: QtWidgets.QLabel
        self.edit_profile_button: QtWidgets.QPushButton
        self.theme_toggle: QtWidgets.QCheckBox
        self.profile_form: ProfileForm
        self.tracker_widget: QtWidgets.QWidget
        self.expense_form: ExpenseForm
        self.summary_cards: SummaryCards
        self.date_filter: QtWidgets.QComboBox
        self.category_filter: QtWidgets.QComboBox
        self.expense_view: ExpenseView
        self.piechart_view: PieChartView
        self.trend_view: TrendChartView

        self._create_ui()
        self._init_actions()
        self._connect_signals()

        self.update_title(self.controller.mode)
        self.controller.recompute()

    def _create_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)
        margin = ui.Size.Margin(1.0)
        layout.setContentsMargins(margin, margin, margin, margin)
        layout.setSpacing(margin * 0.5)
        self.setCentralWidget(central)

        # Header
        header = QtWidgets.QHBoxLayout()
        self.name_label = QtWidgets.QLabel(central)
        self.name_label.setObjectName('CardValue')
        header.addWidget(self.name_label)
        self.salary_label = QtWidgets.QLabel(central)
        self.salary_label.setObjectName('Hint')
        header.addWidget(self.salary_label)
        header.addStretch(1)
        self.edit_profile_button = QtWidgets.QPushButton('Edit Profile', central)
        header.addWidget(self.edit_profile_button)
        self.theme_toggle = QtWidgets.QCheckBox('Dark Mode', central)
        header.addWidget(self.theme_toggle)
        layout.addLayout(header)

        self.profile_form = ProfileForm(parent=central)
        layout.addWidget(self.profile_form)

        # Tracker
        self.tracker_widget = QtWidgets.QWidget(central)
        tracker_layout = QtWidgets.QVBoxLayout(self.tracker_widget)
        tracker_layout.setContentsMargins(0, 0, 0, 0)
        tracker_layout.setSpacing(margin * 0.5)
        layout.addWidget(self.tracker_widget, 1)

        self.expense_form = ExpenseForm(parent=self.tracker_widget)
        tracker_layout.addWidget(self.expense_form)

        self.summary_cards = SummaryCards(parent=self.tracker_widget)
        tracker_layout.addWidget(self.summary_cards)

        filters = QtWidgets.QHBoxLayout()
        self.date_filter = QtWidgets.QComboBox(self.tracker_widget)
        for mode, label in DATE_FILTER_LABELS.items():
            self.date_filter.addItem(label, mode.value)
        filters.addWidget(self.date_filter)
        self.category_filter = QtWidgets.QComboBox(self.tracker_widget)
        self.category_filter.addItem('All Categories', lib.ALL_CATEGORIES)
        filters.addWidget(self.category_filter)
        filters.addStretch(1)
        tracker_layout.addLayout(filters)

        self.expense_view = ExpenseView(parent=self.tracker_widget)
        tracker_layout.addWidget(self.expense_view, 1)

        charts = QtWidgets.QHBoxLayout()
        self.piechart_view = PieChartView(parent=self.tracker_widget)
        charts.addWidget(self.piechart_view, 1)
        self.trend_view = TrendChartView(parent=self.tracker_widget)
        charts.addWidget(self.trend_view, 1)
        tracker_layout.addLayout(charts)

        self.statusBar().setSizeGripEnabled(True)

    def _init_actions(self) -> None:
        action = QtGui.QAction('New Window', self)
        action.setShortcut('Ctrl+N')
        action.setStatusTip('Open another synchronized tracker window')
        action.triggered.connect(signals.newWindowRequested)
        self.addAction(action)

        action = QtGui.QAction('Reload', self)
        action.setShortcut('F5')
        action.setStatusTip('Read the expenses and profile from the store again')
        action.triggered.connect(self.controller.reload)
        self.addAction(action)

    def _connect_signals(self) -> None:
        self.controller.stateChanged.connect(self.render)
        self.controller.modeChanged.connect(self.update_title)
        self.controller.storeWarning.connect(self.show_message)
        signals.error.connect(self.show_message)

        self.profile_form.submitted.connect(self.save_profile)
        self.profile_form.cancelled.connect(self.controller.dismiss_profile)
        self.edit_profile_button.clicked.connect(self.controller.edit_profile)
        self.expense_form.submitted.connect(self.add_expense)
        self.expense_view.deleteRequested.connect(self.controller.delete_expense)

        self.date_filter.currentIndexChanged.connect(
            lambda _: self.controller.set_filters(date_mode=self.date_filter.currentData())
        )
        self.category_filter.currentIndexChanged.connect(
            lambda _: self.controller.set_filters(category=self.category_filter.currentData())
        )
        self.theme_toggle.toggled.connect(
            lambda checked: self.controller.set_theme(ui.Theme.Dark.value if checked else ui.Theme.Light.value)
        )

    @QtCore.Slot(str)
    def update_title(self, mode: str) -> None:
        if mode == Mode.Active:
            self.setWindowTitle(lib.app_name)
        else:
            self.setWindowTitle(f'{lib.app_name} - Profile Setup')

    @QtCore.Slot(str)
    def show_message(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    @QtCore.Slot(str, str)
    def save_profile(self, name: str, salary: str) -> None:
        try:
            self.controller.save_profile(name, salary)
        except status.ValidationException as ex:
            self.show_message(ex.message)
            return
        self.show_message('Profile saved. You can now track your expenses.')

    @QtCore.Slot(object)
    def add_expense(self, expense_input) -> None:
        try:
            self.controller.add_expense(expense_input)
        except status.ValidationException as ex:
            self.show_message(ex.message)
            return
        self.expense_form.reset()

    @QtCore.Slot(object)
    def render(self, state: RenderState) -> None:
        """Update every widget from the render state."""
        self.profile_form.setVisible(state.profile_form_visible)
        self.profile_form.set_cancellable(state.overlay == Overlay.Editing)
        self.profile_form.set_profile(state.profile)
        self.tracker_widget.setVisible(state.tracker_visible)
        self.edit_profile_button.setEnabled(state.tracker_visible)

        self.name_label.setText(f'Welcome, {state.profile.name}')
        self.salary_label.setText(
            f'Monthly salary: {locale.format_currency_value(state.profile.salary)}'
        )

        with QtCore.QSignalBlocker(self.theme_toggle):
            self.theme_toggle.setChecked(state.theme == ui.Theme.Dark)

        self._update_filters(state)

        self.summary_cards.set_state(state)
        self.expense_view.set_state(state)
        self.piechart_view.set_state(state)
        self.trend_view.set_state(state)

    def _update_filters(self, state: RenderState) -> None:
        with QtCore.QSignalBlocker(self.date_filter):
            self.date_filter.setCurrentIndex(max(self.date_filter.findData(state.date_mode.value), 0))

        with QtCore.QSignalBlocker(self.category_filter):
            self.category_filter.clear()
            self.category_filter.addItem('All Categories', lib.ALL_CATEGORIES)
            categories = list(state.categories)
            if state.category != lib.ALL_CATEGORIES and state.category not in categories:
                categories.append(state.category)
            for category in categories:
                self.category_filter.addItem(category, category)
            self.category_filter.setCurrentIndex(max(self.category_filter.findData(state.category), 0))

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(ui.Size.DefaultWidth(1.0), ui.Size.DefaultHeight(1.0))

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.controller.close()
        if self in windows:
            windows.remove(self)
        logging.info(f'Closed tracker window ({len(windows)} open)')
        super().closeEvent(event)
