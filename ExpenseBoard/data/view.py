"""Expense table and chart views.

This module provides:
    - paint decorator: wraps paint helpers with save/restore and error logging
    - ExpenseView: table of the filtered expenses with a delete action and an empty-state message
    - PieChartView: category share pie chart with a legend
    - TrendChartView: filled line chart of daily totals
"""
import dataclasses
import decimal
import logging
import math
from typing import Dict, List, Optional

import pandas as pd
from PySide6 import QtCore, QtGui, QtWidgets

from . import data
from .model import ExpenseTableModel, Columns
from ..settings import lib
from ..settings import locale
from ..ui import ui


def paint(func):
    """Decorator to wrap paint helpers with save/restore + exception log."""

    def wrapper(self, painter: QtGui.QPainter) -> None:
        painter.save()
        try:
            func(self, painter)
        except Exception as ex:
            logging.error(f'{self.__class__.__name__}: error in {func.__name__}', exc_info=ex)
        painter.restore()

    return wrapper


class ExpenseView(QtWidgets.QTableView):
    """Table view listing the filtered expenses, newest first."""
    deleteRequested = QtCore.Signal(str)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('ExpenseBoardExpenseView')

        self.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setShowGrid(False)
        self.setMouseTracking(True)
        self.verticalHeader().setVisible(False)
        self.setContextMenuPolicy(QtCore.Qt.ActionsContextMenu)

        self._init_model()
        self._init_delegates()
        self._init_actions()
        self._init_section_sizing()

    def _init_model(self) -> None:
        self.setModel(ExpenseTableModel(parent=self))

    def _init_delegates(self) -> None:
        self.setItemDelegate(ui.RoundedRowDelegate(parent=self))

    def _init_actions(self) -> None:
        action = QtGui.QAction('Delete Expense', self)
        action.setShortcut(QtGui.QKeySequence(QtGui.QKeySequence.Delete))
        action.setShortcutContext(QtCore.Qt.WidgetWithChildrenShortcut)
        action.setStatusTip('Delete the selected expense')
        action.triggered.connect(self.delete_selected)
        self.addAction(action)

    def _init_section_sizing(self) -> None:
        header = self.horizontalHeader()
        header.setSectionResizeMode(Columns.Date, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Category, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Description, QtWidgets.QHeaderView.Stretch)
        header.setSectionResizeMode(Columns.Amount, QtWidgets.QHeaderView.ResizeToContents)
        self.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))

    def selected_expense_id(self) -> Optional[str]:
        rows = self.selectionModel().selectedRows()
        if not rows:
            return None
        return self.model().expense_id(rows[0].row())

    @QtCore.Slot()
    def delete_selected(self) -> None:
        expense_id = self.selected_expense_id()
        if expense_id is None:
            return
        self.deleteRequested.emit(expense_id)

    @QtCore.Slot(object)
    def set_state(self, state) -> None:
        self.model().set_state(state)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:
        super().paintEvent(event)
        if self.model().rowCount():
            return

        painter = QtGui.QPainter(self.viewport())
        painter.setPen(ui.Color.SecondaryText())
        painter.drawText(self.viewport().rect(), QtCore.Qt.AlignCenter, self.model().empty_message)
        painter.end()


class ChartView(QtWidgets.QWidget):
    """Base widget for the painted charts."""
    empty_message = 'No data'

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self._locale: str = lib.DEFAULT_LOCALE
        self.setMouseTracking(True)
        self.setMinimumHeight(ui.Size.Section(2.0))

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(ui.Size.DefaultWidth(0.5), ui.Size.Section(3.0))

    def is_empty(self) -> bool:
        raise NotImplementedError

    def chart_rect(self) -> QtCore.QRectF:
        o = ui.Size.Margin(1.0)
        return QtCore.QRectF(self.rect()).adjusted(o, o, -o, -o)

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:
        painter = QtGui.QPainter(self)
        painter.setRenderHint(QtGui.QPainter.Antialiasing, True)
        self._draw_background(painter)
        if self.is_empty():
            self._draw_empty(painter)
        else:
            self._draw_chart(painter)
        painter.end()

    @paint
    def _draw_background(self, painter: QtGui.QPainter) -> None:
        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(ui.Color.DarkBackground())
        o = ui.Size.Indicator(2.0)
        painter.drawRoundedRect(self.rect(), o, o)

    @paint
    def _draw_empty(self, painter: QtGui.QPainter) -> None:
        painter.setPen(ui.Color.SecondaryText())
        painter.drawText(self.rect(), QtCore.Qt.AlignCenter, self.empty_message)

    def _draw_chart(self, painter: QtGui.QPainter) -> None:
        raise NotImplementedError


@dataclasses.dataclass
class ChartSlice:
    """A single pie slice; angles are in Qt's 1/16th degree units."""
    category: str
    value: float
    weight: float
    color: QtGui.QColor
    start_qt: int = 0
    span_qt: int = 0


class PieChartView(ChartView):
    """Pie chart of the category totals with a legend on the right."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self._df: pd.DataFrame = pd.DataFrame(columns=lib.CATEGORY_DATA_COLUMNS)
        self._slices: List[ChartSlice] = []

    @property
    def slices(self) -> List[ChartSlice]:
        return self._slices

    def is_empty(self) -> bool:
        return not self._slices

    @QtCore.Slot(object)
    def set_data(self, buckets: Dict[str, decimal.Decimal]) -> None:
        """Rebuild the slices from category buckets."""
        self._df = data.category_frame(buckets)
        self._slices = []

        start = 90 * 16
        for i, row in enumerate(self._df.itertuples(index=False)):
            if row.weight <= 0:
                continue
            span = -int(round(row.weight * 360 * 16))
            self._slices.append(ChartSlice(
                category=row.category,
                value=row.total,
                weight=row.weight,
                color=ui.category_color(i),
                start_qt=start,
                span_qt=span,
            ))
            start += span
        self.update()

    @QtCore.Slot(object)
    def set_state(self, state) -> None:
        self.set_data(state.category_buckets)

    def _pie_rect(self) -> QtCore.QRectF:
        area = self.chart_rect()
        edge = min(area.width() * 0.6, area.height())
        return QtCore.QRectF(area.left(), area.center().y() - edge / 2.0, edge, edge)

    def slice_at(self, pos: QtCore.QPointF) -> int:
        """Return the index of the slice under ``pos``, or -1."""
        rect = self._pie_rect()
        center = rect.center()
        dx = pos.x() - center.x()
        dy = center.y() - pos.y()
        if math.hypot(dx, dy) > rect.width() / 2.0:
            return -1

        angle = math.degrees(math.atan2(dy, dx)) % 360.0
        for index, sl in enumerate(self._slices):
            start = sl.start_qt / 16.0
            end = start + sl.span_qt / 16.0
            # Slices run clockwise from 12 o'clock
            low, high = sorted((start, end))
            for candidate in (angle, angle + 360.0, angle - 360.0):
                if low <= candidate <= high:
                    return index
        return -1

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:
        index = self.slice_at(event.position())
        if index < 0:
            QtWidgets.QToolTip.hideText()
            return
        sl = self._slices[index]
        QtWidgets.QToolTip.showText(
            event.globalPosition().toPoint(),
            f'{sl.category}: {locale.format_currency_value(sl.value, self._locale)}',
            self,
        )

    def _draw_chart(self, painter: QtGui.QPainter) -> None:
        self._draw_slices(painter)
        self._draw_legend(painter)

    @paint
    def _draw_slices(self, painter: QtGui.QPainter) -> None:
        rect = self._pie_rect()
        pen = QtGui.QPen(ui.Color.DarkBackground())
        pen.setWidthF(ui.Size.Separator(1.0))
        painter.setPen(pen)
        for sl in self._slices:
            painter.setBrush(sl.color)
            painter.drawPie(rect, sl.start_qt, sl.span_qt)

    @paint
    def _draw_legend(self, painter: QtGui.QPainter) -> None:
        area = self.chart_rect()
        pie = self._pie_rect()

        font, metrics = ui.get_font(ui.Size.SmallText(1.0))
        painter.setFont(font)

        x = pie.right() + ui.Size.Margin(1.0)
        swatch = ui.Size.Indicator(2.5)
        line = max(metrics.height(), swatch) + ui.Size.Indicator(1.0)
        y = area.center().y() - (line * len(self._slices)) / 2.0

        for sl in self._slices:
            painter.setPen(QtCore.Qt.NoPen)
            painter.setBrush(sl.color)
            painter.drawRoundedRect(QtCore.QRectF(x, y + (line - swatch) / 2.0, swatch, swatch), 2, 2)

            painter.setPen(ui.Color.Text())
            text_rect = QtCore.QRectF(x + swatch * 1.5, y, area.right() - x - swatch * 1.5, line)
            painter.drawText(
                text_rect,
                QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter,
                metrics.elidedText(f'{sl.category} ({sl.weight:.0%})', QtCore.Qt.ElideRight, text_rect.width()),
            )
            y += line


@dataclasses.dataclass
class Geometry:
    """All pixel-space objects bundled in one container."""
    area: QtCore.QRectF = dataclasses.field(default_factory=QtCore.QRectF)
    points: List[QtCore.QPointF] = dataclasses.field(default_factory=list)
    line_path: QtGui.QPainterPath = dataclasses.field(default_factory=QtGui.QPainterPath)
    fill_path: QtGui.QPainterPath = dataclasses.field(default_factory=QtGui.QPainterPath)
    data_max: float = 0.0


class TrendChartView(ChartView):
    """Daily spending line chart; the y axis always starts at zero."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self._df: pd.DataFrame = pd.DataFrame(columns=lib.TREND_DATA_COLUMNS)
        self._geom: Geometry = Geometry()

    @property
    def frame(self) -> pd.DataFrame:
        return self._df

    def is_empty(self) -> bool:
        return self._df.empty

    @QtCore.Slot(object)
    def set_data(self, buckets: Dict[str, decimal.Decimal]) -> None:
        """Rebuild the series from day buckets."""
        self._df = data.trend_frame(buckets)
        self._rebuild_geometry()
        self.update()

    @QtCore.Slot(object)
    def set_state(self, state) -> None:
        self.set_data(state.day_buckets)

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:
        self._rebuild_geometry()
        super().resizeEvent(event)

    def _rebuild_geometry(self) -> None:
        geom = Geometry()
        area = self.chart_rect()
        _, metrics = ui.get_font(ui.Size.SmallText(1.0))
        # Leave room for the axis labels
        geom.area = area.adjusted(0, metrics.height(), 0, -metrics.height() * 1.5)

        if self._df.empty:
            self._geom = geom
            return

        totals = self._df['total'].tolist()
        geom.data_max = max(max(totals), 0.0)
        n = len(totals)

        for i, value in enumerate(totals):
            x = geom.area.center().x() if n == 1 else geom.area.left() + geom.area.width() * i / (n - 1)
            ratio = value / geom.data_max if geom.data_max > 0 else 0.0
            y = geom.area.bottom() - geom.area.height() * ratio
            geom.points.append(QtCore.QPointF(x, y))

        geom.line_path.moveTo(geom.points[0])
        for point in geom.points[1:]:
            geom.line_path.lineTo(point)

        geom.fill_path = QtGui.QPainterPath(geom.line_path)
        geom.fill_path.lineTo(geom.points[-1].x(), geom.area.bottom())
        geom.fill_path.lineTo(geom.points[0].x(), geom.area.bottom())
        geom.fill_path.closeSubpath()

        self._geom = geom

    def _draw_chart(self, painter: QtGui.QPainter) -> None:
        self._draw_grid(painter)
        self._draw_series(painter)
        self._draw_labels(painter)

    @paint
    def _draw_grid(self, painter: QtGui.QPainter) -> None:
        area = self._geom.area
        pen = QtGui.QPen(ui.Color.Grid())
        pen.setCosmetic(True)
        painter.setPen(pen)
        for i in range(5):
            y = area.top() + area.height() * i / 4.0
            painter.drawLine(QtCore.QPointF(area.left(), y), QtCore.QPointF(area.right(), y))

    @paint
    def _draw_series(self, painter: QtGui.QPainter) -> None:
        geom = self._geom
        if not geom.points:
            return

        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(ui.Color.AccentFill())
        painter.drawPath(geom.fill_path)

        pen = QtGui.QPen(ui.Color.Accent())
        pen.setWidthF(ui.Size.Separator(2.0))
        pen.setCapStyle(QtCore.Qt.RoundCap)
        pen.setJoinStyle(QtCore.Qt.RoundJoin)
        painter.setPen(pen)
        painter.setBrush(QtCore.Qt.NoBrush)
        painter.drawPath(geom.line_path)

        painter.setBrush(ui.Color.Accent())
        r = ui.Size.Indicator(0.6)
        for point in geom.points:
            painter.drawEllipse(point, r, r)

    @paint
    def _draw_labels(self, painter: QtGui.QPainter) -> None:
        geom = self._geom
        font, metrics = ui.get_font(ui.Size.SmallText(1.0))
        painter.setFont(font)
        painter.setPen(ui.Color.SecondaryText())

        max_label = locale.format_currency_value(geom.data_max, self._locale)
        painter.drawText(QtCore.QPointF(geom.area.left(), geom.area.top() - metrics.descent()), max_label)

        days = self._df['day'].tolist()
        first = days[0].strftime('%Y-%m-%d')
        last = days[-1].strftime('%Y-%m-%d')
        y = geom.area.bottom() + metrics.height()
        painter.drawText(QtCore.QPointF(geom.area.left(), y), first)
        if len(days) > 1:
            painter.drawText(QtCore.QPointF(geom.area.right() - metrics.horizontalAdvance(last), y), last)
