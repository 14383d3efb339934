"""
Stateless calculation API endpoints.

These endpoints accept inputs and return calculated results without
reading or writing stored data, so the UI can preview figures while a form
is being filled in.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import Any, Optional

from fintrak.api.financial_data import (
    CashTotals,
    FinancialDataSnapshot,
    SummaryResponse,
)
from fintrak.calculations import inventory
from fintrak.calculations.denominations import CashDenominations, calculate_cash_totals
from fintrak.services.financial_data import calculate_summary

router = APIRouter()


class CashInput(BaseModel):
    """Note and coin quantities; anything non-numeric counts as zero."""

    notes_100: Any = 0
    notes_50: Any = 0
    notes_20: Any = 0
    notes_10: Any = 0
    notes_5: Any = 0
    coins_2: Any = 0
    coins_1: Any = 0
    coins_050: Any = 0
    coins_020: Any = 0
    coins_010: Any = 0
    coins_005: Any = 0


@router.post("/cash", response_model=CashTotals)
async def calculate_cash(inputs: CashInput):
    """Total a cash count."""
    denominations = CashDenominations.from_dict(inputs.model_dump())
    return calculate_cash_totals(denominations)


@router.post("/weeks", response_model=SummaryResponse)
async def calculate_weeks(inputs: FinancialDataSnapshot):
    """Run the weekly balance cascade over an unsaved document."""
    return calculate_summary(inputs.model_dump())


class BreakEvenInput(BaseModel):
    """Input for break-even calculation."""

    total_price_paid: float
    number_of_units: int
    projected_sale_cost_per_unit: float = 0.0
    actual_sale_cost_per_unit: float = 0.0
    qty_sold: int = 0


class BreakEvenResponse(BaseModel):
    """Response with break-even and profit figures."""

    unit_cost: float
    units_to_break_even: Optional[int]
    break_even_label: str
    projected_profit_per_unit: float
    actual_profit_per_unit: float
    projected_total_profit: float
    actual_total_profit: float


@router.post("/break-even", response_model=BreakEvenResponse)
async def calculate_break_even(inputs: BreakEvenInput):
    """Preview a batch's economics before it is saved."""
    unit_cost = inventory.calculate_unit_cost(
        inputs.total_price_paid, inputs.number_of_units
    )
    economics = inventory.calculate_batch_economics(
        total_price_paid=inputs.total_price_paid,
        unit_cost=unit_cost,
        projected_sale_cost_per_unit=inputs.projected_sale_cost_per_unit,
        actual_sale_cost_per_unit=inputs.actual_sale_cost_per_unit,
        qty_sold=inputs.qty_sold,
    )

    return BreakEvenResponse(
        unit_cost=economics.unit_cost,
        units_to_break_even=economics.units_to_break_even,
        break_even_label=economics.break_even_label,
        projected_profit_per_unit=economics.projected_profit_per_unit,
        actual_profit_per_unit=economics.actual_profit_per_unit,
        projected_total_profit=economics.projected_total_profit,
        actual_total_profit=economics.actual_total_profit,
    )
