"""
Row Ledger

Ordered list of labelled amounts used for bank accounts, weekly income and
weekly expenses.
"""

import secrets
import string
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from fintrak.calculations.parsing import parse_amount

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 9

BANK_ACCOUNT_LABEL = "Checking Account"
DEFAULT_BANK_ACCOUNTS = ("AMP", "ANZ")

# Quick-add presets offered alongside every week
INCOME_SHORTCUTS: Tuple[Tuple[str, float], ...] = (
    ("Centrelink", 963.53),
    ("Sales", 100.0),
    ("Sales", 200.0),
    ("Sales", 450.0),
    ("D5", 500.0),
)

EXPENSE_SHORTCUTS: Tuple[Tuple[str, float], ...] = (
    ("Restock", 2000.0),
    ("Rent", 1300.0),
    ("Electricity", 50.0),
    ("Phone", 225.0),
    ("Internet", 85.0),
)


def generate_row_id() -> str:
    """Generate a random base-36 row id."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def mapping_entries(value: Any) -> List[Mapping[str, Any]]:
    """Objects from a stored list; anything else in it is skipped."""
    if not isinstance(value, (list, tuple)):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def default_income_label(week_number: int) -> str:
    return "Expected Sales" if week_number == 1 else "Projected Sales"


def default_expense_label(week_number: int) -> str:
    return "Rent Payment" if week_number == 1 else "Utilities"


@dataclass(frozen=True)
class FinancialRow:
    """A single labelled amount."""

    id: str
    label: str
    amount: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FinancialRow":
        return cls(
            id=str(data.get("id") or generate_row_id()),
            label=str(data.get("label") or ""),
            amount=parse_amount(data.get("amount")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "amount": self.amount}


class RowLedger:
    """
    Insertion-ordered collection of FinancialRow.

    Updates and removals that reference an unknown id are ignored so that
    stale handles from the UI never fail.
    """

    EDITABLE_FIELDS = ("label", "amount")

    def __init__(
        self,
        rows: Optional[Iterable[FinancialRow]] = None,
        default_label: str = "",
    ):
        self._rows: List[FinancialRow] = list(rows or [])
        self.default_label = default_label

    @classmethod
    def from_dicts(
        cls,
        rows: Any,
        default_label: str = "",
    ) -> "RowLedger":
        return cls(
            [FinancialRow.from_dict(row) for row in mapping_entries(rows)],
            default_label=default_label,
        )

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [row.to_dict() for row in self._rows]

    @property
    def rows(self) -> List[FinancialRow]:
        return list(self._rows)

    def __iter__(self) -> Iterator[FinancialRow]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, row_id: str) -> Optional[FinancialRow]:
        return next((row for row in self._rows if row.id == row_id), None)

    def _new_id(self) -> str:
        existing = {row.id for row in self._rows}
        row_id = generate_row_id()
        while row_id in existing:
            row_id = generate_row_id()
        return row_id

    def add(self, label: Optional[str] = None, amount: Any = 0) -> FinancialRow:
        """Append a row, falling back to the section's preset label."""
        row = FinancialRow(
            id=self._new_id(),
            label=self.default_label if label is None else label,
            amount=parse_amount(amount),
        )
        self._rows.append(row)
        return row

    def update(self, row_id: str, field: str, value: Any) -> bool:
        """
        Replace the row matching row_id with one field changed.

        Returns:
            True if a row was replaced, False if row_id is unknown

        Raises:
            ValueError: If field is not label or amount
        """
        if field not in self.EDITABLE_FIELDS:
            raise ValueError(f"Field must be one of {self.EDITABLE_FIELDS}, got {field!r}")

        value = parse_amount(value) if field == "amount" else str(value)

        for index, row in enumerate(self._rows):
            if row.id == row_id:
                self._rows[index] = replace(row, **{field: value})
                return True
        return False

    def remove(self, row_id: str) -> bool:
        """Remove the row matching row_id. Returns False if it was absent."""
        remaining = [row for row in self._rows if row.id != row_id]
        removed = len(remaining) != len(self._rows)
        self._rows = remaining
        return removed

    def sum(self) -> float:
        return sum(parse_amount(row.amount) for row in self._rows)

    def ensure_labels(self, labels: Iterable[str]) -> List[FinancialRow]:
        """Append a zero row for each label not already present."""
        added = []
        present = {row.label for row in self._rows}
        for label in labels:
            if label not in present:
                added.append(self.add(label, 0))
                present.add(label)
        return added


def ensure_default_bank_accounts(ledger: RowLedger) -> List[FinancialRow]:
    """Make sure the standard AMP and ANZ accounts are listed."""
    return ledger.ensure_labels(DEFAULT_BANK_ACCOUNTS)
