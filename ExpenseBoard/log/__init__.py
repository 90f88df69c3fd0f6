"""
Logging subsystem.

Modules:

- :mod:`ExpenseBoard.log.log` – Root logger setup, Qt message bridge and an in-memory log handler.
"""
