"""
User interface package: application setup, theming, forms and tracker windows.

Modules:

- :mod:`ExpenseBoard.ui.app` – Custom QApplication.
- :mod:`ExpenseBoard.ui.ui` – Themes, colours and sizes.
- :mod:`ExpenseBoard.ui.actions` – Application-wide signals.
- :mod:`ExpenseBoard.ui.forms` – Profile and expense entry forms, summary cards.
- :mod:`ExpenseBoard.ui.main` – The tracker window; one window per synchronized instance.
"""
