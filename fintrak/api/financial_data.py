"""
Financial data API endpoints.

The cash count, bank accounts and weekly ledgers travel as one document.
PUT always carries the complete document and replaces what is stored.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from fintrak.auth.dependencies import get_current_user
from fintrak.calculations.ledger import EXPENSE_SHORTCUTS, INCOME_SHORTCUTS
from fintrak.calculations.parsing import clamp_count, parse_amount
from fintrak.db.database import get_db
from fintrak.db.models import User
from fintrak.services import financial_data as service

router = APIRouter()


class FinancialRowSchema(BaseModel):
    """A labelled amount. Rows sent without an id are given one."""

    id: Optional[str] = None
    label: str = ""
    amount: float = 0.0

    @field_validator("amount", mode="before")
    @classmethod
    def parse_row_amount(cls, value: Any) -> float:
        return parse_amount(value)


class AdditionalWeekSchema(BaseModel):
    """Week 3 onwards. Numbers and names are reassigned on save."""

    id: Optional[str] = None
    week_number: Optional[int] = None
    name: Optional[str] = None
    income_rows: List[FinancialRowSchema] = []
    expense_rows: List[FinancialRowSchema] = []


class FinancialDataSnapshot(BaseModel):
    """The whole stored document."""

    # Cash denominations
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

    # Ledgers
    bank_account_rows: List[FinancialRowSchema] = []
    week1_income_rows: List[FinancialRowSchema] = []
    week1_expense_rows: List[FinancialRowSchema] = []
    week2_income_rows: List[FinancialRowSchema] = []
    week2_expense_rows: List[FinancialRowSchema] = []
    additional_weeks: List[AdditionalWeekSchema] = []

    @field_validator(
        "notes_100", "notes_50", "notes_20", "notes_10", "notes_5",
        "coins_2", "coins_1", "coins_050", "coins_020", "coins_010", "coins_005",
        mode="before",
    )
    @classmethod
    def clamp_denomination(cls, value: Any) -> float:
        return clamp_count(value)


class CashTotals(BaseModel):
    notes_total: float
    coins_total: float
    total_cash: float


class WeekBalanceResponse(BaseModel):
    week_id: str
    week_number: int
    name: str
    starting_balance: float
    total_income: float
    total_expenses: float
    balance: float
    cash_on_hand: Optional[float] = None
    total_bank_balance: Optional[float] = None


class SummaryResponse(BaseModel):
    cash: CashTotals
    weeks: List[WeekBalanceResponse]
    closing_balance: float


class ShortcutResponse(BaseModel):
    label: str
    amount: float


class ShortcutsResponse(BaseModel):
    income: List[ShortcutResponse]
    expense: List[ShortcutResponse]


class AddWeekResponse(BaseModel):
    week_id: str
    week_number: int
    name: str
    financial_data: FinancialDataSnapshot


@router.get("", response_model=FinancialDataSnapshot)
async def get_financial_data(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get the stored document, or an empty one if nothing is saved yet."""
    return service.get_snapshot(db, current_user.id)


@router.put("", response_model=FinancialDataSnapshot)
async def replace_financial_data(
    data: FinancialDataSnapshot,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the stored document."""
    return service.save_snapshot(db, current_user.id, data.model_dump())


@router.delete("", response_model=FinancialDataSnapshot)
async def clear_financial_data(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Reset every count and ledger to empty."""
    return service.clear_snapshot(db, current_user.id)


@router.get("/summary", response_model=SummaryResponse)
async def get_financial_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Cash totals and the balance of every week."""
    return service.calculate_summary(service.get_snapshot(db, current_user.id))


@router.get("/shortcuts", response_model=ShortcutsResponse)
async def get_quick_add_shortcuts(current_user: User = Depends(get_current_user)):
    """Preset income and expense rows offered for quick entry."""
    return ShortcutsResponse(
        income=[
            ShortcutResponse(label=label, amount=amount)
            for label, amount in INCOME_SHORTCUTS
        ],
        expense=[
            ShortcutResponse(label=label, amount=amount)
            for label, amount in EXPENSE_SHORTCUTS
        ],
    )


@router.post("/weeks", response_model=AddWeekResponse, status_code=201)
async def add_week(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Append an empty week after the last one."""
    snapshot, week = service.add_week(db, current_user.id)
    return AddWeekResponse(
        week_id=week.id,
        week_number=week.week_number,
        name=week.name,
        financial_data=snapshot,
    )


@router.delete("/weeks/{week_id}", response_model=FinancialDataSnapshot)
async def remove_week(
    week_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove an additional week and renumber the ones after it."""
    try:
        return service.remove_week(db, current_user.id, week_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/bank-accounts/defaults", response_model=FinancialDataSnapshot)
async def ensure_default_bank_accounts(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add the standard bank accounts if they are not listed yet."""
    return service.ensure_bank_accounts(db, current_user.id)
