"""
Core package for ExpenseBoard providing the tracker state and its persistence.

This package includes:

- :mod:`ExpenseBoard.core.store` – Local SQLite key-value store shared by every tracker window.
- :mod:`ExpenseBoard.core.model` – Expense and user profile records and their stored JSON documents.
- :mod:`ExpenseBoard.core.sync` – Broadcast channel and sync bus distributing add, delete and profile events between windows.
- :mod:`ExpenseBoard.core.tracker` – Tracker controller applying local and remote mutations and emitting render state.
"""
