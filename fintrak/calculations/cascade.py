"""
Week Balance Cascade

Chains weekly ledgers so that each week opens with the previous week's
closing balance.

Week 1 opens with cash on hand plus the bank accounts. Week 2 opens with
week 1's balance. Any number of additional weeks follow, numbered
contiguously from 3.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from fintrak.calculations.ledger import (
    BANK_ACCOUNT_LABEL,
    RowLedger,
    default_expense_label,
    default_income_label,
    generate_row_id,
    mapping_entries,
)
from fintrak.calculations.parsing import parse_amount

FIRST_ADDITIONAL_WEEK = 3


def week_name(week_number: int) -> str:
    return f"Week {week_number}"


@dataclass
class Week:
    """Income and expense ledgers for one week."""

    week_number: int
    income: RowLedger
    expenses: RowLedger
    id: str = field(default_factory=lambda: f"week-{generate_row_id()}")
    name: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = week_name(self.week_number)

    @classmethod
    def empty(cls, week_number: int, week_id: Optional[str] = None) -> "Week":
        week = cls(
            week_number=week_number,
            income=RowLedger(default_label=default_income_label(week_number)),
            expenses=RowLedger(default_label=default_expense_label(week_number)),
        )
        if week_id:
            week.id = week_id
        return week

    def renumber(self, week_number: int):
        self.week_number = week_number
        self.name = week_name(week_number)
        self.income.default_label = default_income_label(week_number)
        self.expenses.default_label = default_expense_label(week_number)

    @property
    def total_income(self) -> float:
        return self.income.sum()

    @property
    def total_expenses(self) -> float:
        return self.expenses.sum()

    @property
    def net(self) -> float:
        return self.total_income - self.total_expenses


@dataclass
class WeekBalance:
    """Calculated figures for one week of the cascade."""

    week_id: str
    week_number: int
    name: str
    starting_balance: float
    total_income: float
    total_expenses: float
    balance: float
    cash_on_hand: Optional[float] = None
    total_bank_balance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_id": self.week_id,
            "week_number": self.week_number,
            "name": self.name,
            "starting_balance": self.starting_balance,
            "total_income": self.total_income,
            "total_expenses": self.total_expenses,
            "balance": self.balance,
            "cash_on_hand": self.cash_on_hand,
            "total_bank_balance": self.total_bank_balance,
        }


def calculate_week1_balance(
    cash_on_hand: float,
    total_bank_balance: float,
    total_income: float,
    total_expenses: float,
) -> float:
    """Cash + bank accounts + income - expenses."""
    return cash_on_hand + total_bank_balance + total_income - total_expenses


def calculate_week_balance(
    starting_balance: float,
    total_income: float,
    total_expenses: float,
) -> float:
    """Previous week's balance + income - expenses."""
    return starting_balance + total_income - total_expenses


class WeekCascade:
    """
    Ordered weeks with a balance chain running from week 1 forward.

    Weeks 1 and 2 always exist. Additional weeks can be appended and
    removed; removal renumbers every later week so numbering stays
    contiguous and each week inherits from its new predecessor.
    """

    def __init__(
        self,
        cash_on_hand: Any = 0.0,
        bank_accounts: Optional[RowLedger] = None,
        weeks: Optional[List[Week]] = None,
    ):
        self.cash_on_hand = parse_amount(cash_on_hand)
        self.bank_accounts = (
            bank_accounts
            if bank_accounts is not None
            else RowLedger(default_label=BANK_ACCOUNT_LABEL)
        )
        self.weeks: List[Week] = list(weeks or [])

        while len(self.weeks) < FIRST_ADDITIONAL_WEEK - 1:
            self.weeks.append(Week.empty(len(self.weeks) + 1))

        self._renumber()

    def _renumber(self):
        for index, week in enumerate(self.weeks):
            week.renumber(index + 1)

    @property
    def additional_weeks(self) -> List[Week]:
        return self.weeks[FIRST_ADDITIONAL_WEEK - 1:]

    def get_week(self, week_number: int) -> Week:
        if week_number < 1 or week_number > len(self.weeks):
            raise IndexError(f"No week {week_number}")
        return self.weeks[week_number - 1]

    def find_week(self, week_id: str) -> Optional[Week]:
        return next((week for week in self.weeks if week.id == week_id), None)

    def add_week(self) -> Week:
        """Append an empty week numbered after the current last week."""
        week = Week.empty(self.weeks[-1].week_number + 1)
        self.weeks.append(week)
        return week

    def remove_week(self, week_id: str) -> bool:
        """
        Remove an additional week and renumber the weeks after it.

        Returns:
            True if a week was removed, False if week_id is unknown

        Raises:
            ValueError: If week_id refers to week 1 or week 2
        """
        week = self.find_week(week_id)
        if week is None:
            return False

        if week.week_number < FIRST_ADDITIONAL_WEEK:
            raise ValueError(f"{week.name} cannot be removed")

        self.weeks = [w for w in self.weeks if w is not week]
        self._renumber()
        return True

    def calculate(self) -> List[WeekBalance]:
        """
        Recompute every week's balance in order.

        Returns:
            One WeekBalance per week, week 1 first
        """
        results: List[WeekBalance] = []
        total_bank_balance = self.bank_accounts.sum()

        for week in self.weeks:
            total_income = week.total_income
            total_expenses = week.total_expenses

            if week.week_number == 1:
                starting_balance = self.cash_on_hand + total_bank_balance
                balance = calculate_week1_balance(
                    self.cash_on_hand,
                    total_bank_balance,
                    total_income,
                    total_expenses,
                )
                results.append(
                    WeekBalance(
                        week_id=week.id,
                        week_number=week.week_number,
                        name=week.name,
                        starting_balance=starting_balance,
                        total_income=total_income,
                        total_expenses=total_expenses,
                        balance=balance,
                        cash_on_hand=self.cash_on_hand,
                        total_bank_balance=total_bank_balance,
                    )
                )
                continue

            starting_balance = results[-1].balance
            results.append(
                WeekBalance(
                    week_id=week.id,
                    week_number=week.week_number,
                    name=week.name,
                    starting_balance=starting_balance,
                    total_income=total_income,
                    total_expenses=total_expenses,
                    balance=calculate_week_balance(
                        starting_balance, total_income, total_expenses
                    ),
                )
            )

        return results

    def balance_of(self, week_number: int) -> float:
        return self.calculate()[week_number - 1].balance

    # === Snapshot conversion ===

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Mapping[str, Any],
        cash_on_hand: Any = 0.0,
    ) -> "WeekCascade":
        """
        Build a cascade from a stored financial-data document.

        Additional weeks are taken in stored order and renumbered from 3.
        Entries that are not objects are skipped. A week whose id is
        missing, belongs to week 1 or 2, or repeats an earlier week's id is
        given a fresh one.
        """
        weeks = [
            Week(
                week_number=1,
                id="week-1",
                income=RowLedger.from_dicts(snapshot.get("week1_income_rows")),
                expenses=RowLedger.from_dicts(snapshot.get("week1_expense_rows")),
            ),
            Week(
                week_number=2,
                id="week-2",
                income=RowLedger.from_dicts(snapshot.get("week2_income_rows")),
                expenses=RowLedger.from_dicts(snapshot.get("week2_expense_rows")),
            ),
        ]

        used_ids = {week.id for week in weeks}
        for index, stored in enumerate(mapping_entries(snapshot.get("additional_weeks"))):
            week_id = str(stored.get("id") or "")
            while not week_id or week_id in used_ids:
                week_id = f"week-{generate_row_id()}"
            used_ids.add(week_id)

            weeks.append(
                Week(
                    week_number=FIRST_ADDITIONAL_WEEK + index,
                    id=week_id,
                    income=RowLedger.from_dicts(stored.get("income_rows")),
                    expenses=RowLedger.from_dicts(stored.get("expense_rows")),
                )
            )

        return cls(
            cash_on_hand=cash_on_hand,
            bank_accounts=RowLedger.from_dicts(
                snapshot.get("bank_account_rows"), default_label=BANK_ACCOUNT_LABEL
            ),
            weeks=weeks,
        )

    def to_snapshot(self) -> Dict[str, Any]:
        """Serialize the ledgers back to the stored document layout."""
        week1, week2 = self.weeks[0], self.weeks[1]
        return {
            "bank_account_rows": self.bank_accounts.to_dicts(),
            "week1_income_rows": week1.income.to_dicts(),
            "week1_expense_rows": week1.expenses.to_dicts(),
            "week2_income_rows": week2.income.to_dicts(),
            "week2_expense_rows": week2.expenses.to_dicts(),
            "additional_weeks": [
                {
                    "id": week.id,
                    "week_number": week.week_number,
                    "name": week.name,
                    "income_rows": week.income.to_dicts(),
                    "expense_rows": week.expenses.to_dicts(),
                }
                for week in self.additional_weeks
            ],
        }
