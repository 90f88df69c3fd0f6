"""UI styling utilities for ExpenseBoard.

This module provides:
    - Theme: supported UI themes (light, dark)
    - Size: standardized size constants and scaling logic
    - Color: standardized color palette for widgets and themes
    - CATEGORY_COLORS: the chart palette assigned to categories in order of appearance
    - apply_theme: expand the style sheet template for a theme and apply it to the application
"""
import enum
import logging
import math
import os
import re
from typing import Optional, Tuple

from PySide6 import QtWidgets, QtGui, QtCore

from ..settings import lib


class Theme(enum.StrEnum):
    Light = 'light'
    Dark = 'dark'


# The theme used to resolve Color values
_theme: str = lib.DEFAULT_THEME


def current_theme() -> str:
    return _theme


class Size(enum.Enum):
    """Enumeration of size values used for UI scaling."""
    SmallText = 11.0
    MediumText = 12.0
    LargeText = 16.0
    Indicator = 4.0
    Separator = 1.0
    Margin = 18.0
    Section = 86.0
    RowHeight = 34.0
    DefaultWidth = 960.0
    DefaultHeight = 720.0

    def __new__(cls, value):
        obj = object.__new__(cls)
        obj._value_ = float(value)
        return obj

    def __call__(self, multiplier=1.0):
        """
        Returns the scaled size value.

        Args:
            multiplier (float): A multiplier to apply to the size.

        Returns:
            int: The scaled size.
        """
        return round(self.value * float(multiplier))

    @property
    def value(self):
        """float: The scaled size value."""
        return self.size(self._value_)

    @classmethod
    def size(cls, value, ui_scale_factor=1.0, dpi=72.0):
        """Scale a value by DPI and UI scale factor."""
        return math.ceil(float(value) * (float(dpi) / 72.0)) * float(ui_scale_factor)


class Color(enum.Enum):
    """Enumeration of colours used across the UI."""

    Transparent = {
        Theme.Light.value: (0, 0, 0, 0),
        Theme.Dark.value: (0, 0, 0, 0),
    }
    VeryDarkBackground = {
        Theme.Light.value: (248, 249, 250),
        Theme.Dark.value: (24, 26, 27),
    }
    DarkBackground = {
        Theme.Light.value: (255, 255, 255),
        Theme.Dark.value: (38, 41, 43),
    }
    Background = {
        Theme.Light.value: (233, 236, 239),
        Theme.Dark.value: (55, 59, 62),
    }
    LightBackground = {
        Theme.Light.value: (206, 212, 218),
        Theme.Dark.value: (80, 85, 90),
    }
    DisabledText = {
        Theme.Light.value: (150, 150, 150),
        Theme.Dark.value: (120, 120, 120),
    }
    SecondaryText = {
        Theme.Light.value: (108, 117, 125),
        Theme.Dark.value: (173, 181, 189),
    }
    Text = {
        Theme.Light.value: (33, 37, 41),
        Theme.Dark.value: (233, 236, 239),
    }
    Grid = {
        Theme.Light.value: (0, 0, 0, 25),
        Theme.Dark.value: (255, 255, 255, 25),
    }
    Accent = {
        Theme.Light.value: (74, 111, 165),
        Theme.Dark.value: (98, 138, 196),
    }
    AccentFill = {
        Theme.Light.value: (74, 111, 165, 50),
        Theme.Dark.value: (98, 138, 196, 50),
    }
    Red = {
        Theme.Light.value: (220, 53, 69),
        Theme.Dark.value: (229, 114, 114),
    }
    Green = {
        Theme.Light.value: (40, 167, 69),
        Theme.Dark.value: (90, 200, 155),
    }

    def __new__(cls, v):
        if not isinstance(v, dict):
            raise ValueError(f'Invalid color value: {v}. Must be a dictionary, got {type(v)}: {v}')
        obj = object.__new__(cls)
        obj._value_ = v
        return obj

    def __call__(self, qss=False):
        """
        Returns a QColor or CSS rgba string for the current theme.

        Args:
            qss (bool): If True, returns a CSS rgba string suitable for QSS.

        Returns:
            QColor or str: A QColor instance if qss=False, otherwise a CSS rgba string.
        """
        theme = _theme if _theme in self._value_ else Theme.Light.value
        color = QtGui.QColor(*self._value_[theme])
        if not qss:
            return color
        return self.rgb(color)

    @staticmethod
    def rgb(color):
        """Returns the CSS rgba string for a QColor."""
        rgb = [str(f) for f in color.getRgb()]
        return f'rgba({",".join(rgb)})'


CATEGORY_COLORS: Tuple[str, ...] = (
    '#FF6384', '#36A2EB', '#FFCE56', '#4BC0C0', '#9966FF',
    '#FF9F40', '#8AC249', '#EA526F', '#23B5D3', '#7E909A',
)


def category_color(index: int) -> QtGui.QColor:
    """Return the chart color of the n-th category, cycling through the palette."""
    return QtGui.QColor(CATEGORY_COLORS[index % len(CATEGORY_COLORS)])


def get_font(size: int, bold: bool = False) -> Tuple[QtGui.QFont, QtGui.QFontMetricsF]:
    """Return the application font at the given pixel size and its metrics."""
    if size <= 0:
        raise RuntimeError(f'Font size must be greater than 0, got {size}')
    font = QtGui.QFont(QtWidgets.QApplication.font())
    font.setPixelSize(size)
    font.setBold(bold)
    return font, QtGui.QFontMetricsF(font)


STYLESHEET = """
QWidget {
    background-color: <VeryDarkBackground>;
    color: <Text>;
    font-size: <MediumText@1.0>px;
}
QFrame#SummaryCard, QFrame#ChartCard, QFrame#FormCard {
    background-color: <DarkBackground>;
    border: <Separator@1.0>px solid <Background>;
    border-radius: <Indicator@2.0>px;
}
QLabel {
    background-color: transparent;
}
QLabel#CardTitle, QLabel#Hint {
    color: <SecondaryText>;
}
QLabel#CardValue {
    font-size: <LargeText@1.2>px;
    font-weight: bold;
}
QLineEdit, QComboBox, QDateTimeEdit, QDoubleSpinBox {
    background-color: <DarkBackground>;
    border: <Separator@1.0>px solid <LightBackground>;
    border-radius: <Indicator@1.0>px;
    padding: <Indicator@1.0>px;
    min-height: <RowHeight@0.7>px;
}
QPushButton {
    background-color: <Accent>;
    color: rgba(255,255,255,255);
    border: none;
    border-radius: <Indicator@1.0>px;
    padding: <Indicator@1.5>px <Margin@0.7>px;
}
QPushButton:disabled {
    background-color: <LightBackground>;
    color: <DisabledText>;
}
QTableView {
    background-color: <DarkBackground>;
    gridline-color: <Transparent>;
    border: none;
}
QHeaderView::section {
    background-color: <Background>;
    color: <SecondaryText>;
    border: none;
    padding: <Indicator@1.0>px;
}
"""


def init_stylesheet(qss: str = STYLESHEET) -> str:
    """Expand the ``<token>`` placeholders of a style sheet template.

    Color tokens are named after :class:`Color` members, size tokens are written as
    ``<Size@multiplier>``, e.g. ``<Margin@0.5>``.

    Returns:
        str: The expanded style sheet.

    Raises:
        KeyError: If the template refers to an unknown token.
    """
    kwargs = {}
    for c in Color:
        kwargs[c.name] = Color.rgb(c())

    for match in re.finditer(r'<(\w+)@([0-9.]+)>', qss):
        name, multiplier = match.groups()
        if name not in Size.__members__:
            raise KeyError(f'Key {name} not found in Size!')
        kwargs[f'{name}@{multiplier}'] = Size[name](float(multiplier))

    for match in re.finditer(r'<(.*?)>', qss):
        key = match.group(1)
        if key not in kwargs:
            raise KeyError(f'Key {key} not found in kwargs!')
        qss = qss.replace(f'<{key}>', str(kwargs[key]))

    return qss


def apply_theme(theme: Optional[str] = None) -> None:
    """Switch the current theme and apply its style sheet to the application.

    Args:
        theme: ``'light'`` or ``'dark'``. Keeps the current theme when None.

    Raises:
        RuntimeError: If no QApplication instance exists.
    """
    global _theme
    if theme is not None:
        _theme = Theme(theme).value

    app = QtWidgets.QApplication.instance()
    if not app:
        raise RuntimeError('apply_theme() must be called after a QApplication is initiated.')

    if os.environ.get('EXPENSEBOARD_DISABLE_STYLESHEET', '').lower() in ['1', 'true', 'yes']:
        logging.warning('Stylesheet disabled by environment variable.')
        return

    qss = init_stylesheet()
    app.setStyleSheet(qss)
    logging.debug(f'Applied "{_theme}" theme')

    for widget in app.topLevelWidgets():
        widget.update()


class RoundedRowDelegate(QtWidgets.QStyledItemDelegate):
    """Delegate that draws rounded-corner backgrounds for selected row cells."""

    def __init__(self, first_column: int = 0, last_column: int = -1,
                 parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)

        self._first_column = first_column
        self._last_column = last_column

    def paint(self, painter: QtGui.QPainter, option: QtWidgets.QStyleOptionViewItem,
              index: QtCore.QModelIndex) -> None:
        """Paint the item with rounded corners if selected or hovered."""
        selected = option.state & QtWidgets.QStyle.State_Selected
        hover = option.state & QtWidgets.QStyle.State_MouseOver

        column = index.column()
        if selected:
            color = Color.Background()
        elif hover:
            color = Color.VeryDarkBackground()
        else:
            color = Color.Transparent()

        painter.save()
        painter.setRenderHint(QtGui.QPainter.Antialiasing)
        painter.setPen(QtCore.Qt.NoPen)
        painter.setBrush(color)

        last_column = index.model().columnCount() + self._last_column

        o = Size.Indicator(1.5)
        rect1 = QtCore.QRect(option.rect)
        rect2 = QtCore.QRect(option.rect)
        half = option.rect.width() // 2

        if column == self._first_column:
            rect1 = rect1.adjusted(0, 0, -half + o, 0)
            painter.drawRoundedRect(rect1, o, o)
            rect2 = rect2.adjusted(half, 0, 0, 0)
            painter.fillRect(rect2, color)
        elif column == last_column:
            rect1 = rect1.adjusted(half, 0, 0, 0)
            painter.drawRoundedRect(rect1, o, o)
            rect2 = rect2.adjusted(0, 0, -half + o, 0)
            painter.fillRect(rect2, color)
        else:
            painter.fillRect(option.rect, color)
        painter.restore()

        super().paint(painter, option, index)
