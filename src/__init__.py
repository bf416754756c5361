"""
Monthly Ledger - Source Package

A local-first personal finance ledger: income and expense transactions
partitioned by month, recurring monthly charges, per-month budgets and
a crypto portfolio valued with live market prices.

DESIGN PRINCIPLES:
1. A transaction lives in exactly one month partition, the one its date names
2. Recurring rules are materialized lazily, once per rule per visited month
3. Storage is a swappable key-value collaborator
4. Market data is optional; its failures degrade to "no data"
"""

__version__ = "1.0.0"
__author__ = "Monthly Ledger Team"
