"""
Settings package: application paths, persisted state layout and locale formatting.

Modules:

- :mod:`ExpenseBoard.settings.lib` – Store keys, defaults and :class:`ExpenseBoard.settings.lib.ConfigPaths`.
- :mod:`ExpenseBoard.settings.locale` – Babel based currency and number formatting.
"""
