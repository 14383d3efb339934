"""
Application services module.
"""

from fintrak.services import financial_data, inventory

__all__ = ["financial_data", "inventory"]
