"""
Cash Denomination Calculations

Counts Australian notes and coins and reduces them to a cash-on-hand total.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from fintrak.calculations.parsing import clamp_count

# Face values in AUD, keyed by the persisted field name
NOTE_VALUES: Dict[str, float] = {
    "notes_100": 100.0,
    "notes_50": 50.0,
    "notes_20": 20.0,
    "notes_10": 10.0,
    "notes_5": 5.0,
}

COIN_VALUES: Dict[str, float] = {
    "coins_2": 2.0,
    "coins_1": 1.0,
    "coins_050": 0.5,
    "coins_020": 0.2,
    "coins_010": 0.1,
    "coins_005": 0.05,
}

DENOMINATION_KEYS = tuple(NOTE_VALUES) + tuple(COIN_VALUES)


@dataclass
class CashDenominations:
    """Quantity held of each note and coin."""

    notes_100: float = 0.0
    notes_50: float = 0.0
    notes_20: float = 0.0
    notes_10: float = 0.0
    notes_5: float = 0.0
    coins_2: float = 0.0
    coins_1: float = 0.0
    coins_050: float = 0.0
    coins_020: float = 0.0
    coins_010: float = 0.0
    coins_005: float = 0.0

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, clamp_count(getattr(self, f.name)))

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CashDenominations":
        """Build from a snapshot dict, ignoring unrelated keys."""
        data = data or {}
        return cls(**{key: data.get(key, 0) for key in DENOMINATION_KEYS})

    def to_dict(self) -> Dict[str, float]:
        return {key: getattr(self, key) for key in DENOMINATION_KEYS}

    def set_count(self, key: str, value: Any) -> float:
        """
        Update one quantity.

        Negative values are clamped to zero and non-numeric values read as
        zero.

        Raises:
            KeyError: If key is not a known denomination
        """
        if key not in DENOMINATION_KEYS:
            raise KeyError(f"Unknown denomination: {key}")
        count = clamp_count(value)
        setattr(self, key, count)
        return count

    @property
    def notes_total(self) -> float:
        return sum(getattr(self, key) * value for key, value in NOTE_VALUES.items())

    @property
    def coins_total(self) -> float:
        return sum(getattr(self, key) * value for key, value in COIN_VALUES.items())

    @property
    def total_cash(self) -> float:
        return self.notes_total + self.coins_total


def calculate_cash_totals(denominations: CashDenominations) -> Dict[str, float]:
    """
    Calculate note, coin and overall cash totals.

    Args:
        denominations: Quantities held

    Returns:
        Dict with notes_total, coins_total and total_cash
    """
    notes_total = denominations.notes_total
    coins_total = denominations.coins_total
    return {
        "notes_total": notes_total,
        "coins_total": coins_total,
        "total_cash": notes_total + coins_total,
    }
