"""
Budget Manager - Source Package

Personal budgeting core: accounts, transactions, recurring items,
savings goals and planned expenses, with balance synchronization and
monthly budget projection.

DESIGN PRINCIPLES:
1. Balances change only through the balance synchronizer
2. Every balance effect can be reversed exactly
3. Projections are read-only
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Manager Team"
