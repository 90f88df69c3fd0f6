"""
ExpenseBoard data package: aggregation, models, and views.

This package provides:

- :mod:`ExpenseBoard.data.data` – Pure aggregation functions filtering, summing and bucketing expenses (via :func:`ExpenseBoard.data.data.compute_totals`, :func:`ExpenseBoard.data.data.bucket_by_category`) and their pandas frames.
- :mod:`ExpenseBoard.data.model` – Qt table model (:class:`ExpenseBoard.data.model.ExpenseTableModel`) listing the filtered expenses.
- :mod:`ExpenseBoard.data.view` – Qt views rendering the expense table, the category pie chart and the daily trend chart.
"""
