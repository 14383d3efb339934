"""
Financial Calculation Engine

Pure calculation modules for the cash counter, weekly ledgers and
inventory batches. Nothing here touches the database or knows which user
the figures belong to.
"""

from fintrak.calculations import parsing, denominations, ledger, cascade, inventory

__all__ = ["parsing", "denominations", "ledger", "cascade", "inventory"]
