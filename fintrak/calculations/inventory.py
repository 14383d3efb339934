"""
Inventory Batch Economics

Unit cost, break-even and profit figures for a purchased batch, plus the
stock bookkeeping applied when sales are recorded or removed.
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, Optional, Tuple

from fintrak.calculations.parsing import parse_amount

SET_PROJECTED_PRICE = "Set projected price"


class InsufficientStockError(ValueError):
    """Raised when a sale asks for more units than the batch holds."""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Cannot sell {requested} units. Only {available} units in stock."
        )


@dataclass
class SaleLine:
    """The parts of a sales record the calculators need."""

    qty: int
    total_price: float
    amount_paid: float = 0.0


@dataclass
class BatchEconomics:
    """Break-even and profit figures for a batch."""

    unit_cost: float
    projected_sale_price: float
    actual_sale_price: float
    units_to_break_even: Optional[int]
    projected_profit_per_unit: float
    actual_profit_per_unit: float
    projected_total_profit: float
    actual_total_profit: float

    @property
    def break_even_label(self) -> str:
        if self.units_to_break_even is None:
            return SET_PROJECTED_PRICE
        return f"{self.units_to_break_even} units"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["break_even_label"] = self.break_even_label
        return data


@dataclass
class SalesSummary:
    """Revenue, payment and profit totals across a batch's sales."""

    total_revenue: float
    total_paid: float
    total_owing: float
    total_sold: int
    average_price: float
    profit: float
    profit_margin: float


def calculate_unit_cost(total_price_paid: Any, number_of_units: Any) -> float:
    """Purchase price spread across the units bought (0 for no units)."""
    units = parse_amount(number_of_units)
    if units <= 0:
        return 0.0
    return parse_amount(total_price_paid) / units


def calculate_units_to_break_even(
    total_price_paid: Any,
    unit_cost: Any,
    projected_sale_price: Any,
) -> Optional[int]:
    """
    Units to sell at the projected price to recover the purchase price.

    Returns:
        Whole number of units, or None when the projected price does not
        exceed the unit cost and break-even cannot be reached
    """
    margin = parse_amount(projected_sale_price) - parse_amount(unit_cost)
    if margin <= 0:
        return None
    return math.ceil(parse_amount(total_price_paid) / margin)


def calculate_batch_economics(
    total_price_paid: Any,
    unit_cost: Any,
    projected_sale_cost_per_unit: Any,
    actual_sale_cost_per_unit: Any,
    qty_sold: Any,
) -> BatchEconomics:
    """
    Calculate break-even and profit figures for a batch.

    Args:
        total_price_paid: What the whole batch cost
        unit_cost: Stored cost per unit
        projected_sale_cost_per_unit: Planned selling price
        actual_sale_cost_per_unit: Average price achieved so far
        qty_sold: Units sold so far

    Returns:
        BatchEconomics
    """
    unit_cost = parse_amount(unit_cost)
    projected = parse_amount(projected_sale_cost_per_unit)
    actual = parse_amount(actual_sale_cost_per_unit)
    sold = parse_amount(qty_sold)

    projected_profit_per_unit = projected - unit_cost
    actual_profit_per_unit = actual - unit_cost

    return BatchEconomics(
        unit_cost=unit_cost,
        projected_sale_price=projected,
        actual_sale_price=actual,
        units_to_break_even=calculate_units_to_break_even(
            total_price_paid, unit_cost, projected
        ),
        projected_profit_per_unit=projected_profit_per_unit,
        actual_profit_per_unit=actual_profit_per_unit,
        projected_total_profit=projected_profit_per_unit * sold,
        actual_total_profit=actual_profit_per_unit * sold,
    )


def validate_sale_quantity(qty: int, qty_in_stock: int) -> None:
    """
    Check a sale request against the stock on hand.

    Raises:
        ValueError: If qty is not positive
        InsufficientStockError: If qty exceeds qty_in_stock
    """
    if qty <= 0:
        raise ValueError("Quantity must be greater than zero")
    if qty > qty_in_stock:
        raise InsufficientStockError(qty, qty_in_stock)


def apply_sale(qty_in_stock: int, qty_sold: int, qty: int) -> Tuple[int, int]:
    """
    Move qty units from stock to sold.

    Returns:
        (new_qty_in_stock, new_qty_sold)
    """
    validate_sale_quantity(qty, qty_in_stock)
    return qty_in_stock - qty, qty_sold + qty


def reverse_sale(qty_in_stock: int, qty_sold: int, qty: int) -> Tuple[int, int]:
    """Return qty units from sold back to stock."""
    return qty_in_stock + qty, max(0, qty_sold - qty)


def calculate_actual_sale_price(sales: Iterable[SaleLine]) -> float:
    """
    Average price achieved across all sales.

    Recomputed from the full list every time so the result never depends
    on the order sales were added or removed.
    """
    total_revenue = 0.0
    total_qty = 0
    for sale in sales:
        total_revenue += parse_amount(sale.total_price)
        total_qty += int(sale.qty)
    if total_qty <= 0:
        return 0.0
    return total_revenue / total_qty


def calculate_balance_owing(total_price: Any, amount_paid: Any) -> float:
    return parse_amount(total_price) - parse_amount(amount_paid)


def resolve_price_per_unit(price_per_unit: Any, total_price: Any, qty: int) -> float:
    """Use the entered per-unit price, or derive it from the total."""
    price = parse_amount(price_per_unit)
    if price:
        return price
    if qty <= 0:
        return 0.0
    return parse_amount(total_price) / qty


def summarize_sales(sales: Iterable[SaleLine], unit_cost: Any) -> SalesSummary:
    """
    Total up a batch's sales.

    Profit is revenue less cost of goods sold at the stored unit cost;
    margin is profit as a percentage of revenue.
    """
    sales = list(sales)
    total_revenue = sum(parse_amount(s.total_price) for s in sales)
    total_paid = sum(parse_amount(s.amount_paid) for s in sales)
    total_sold = sum(int(s.qty) for s in sales)

    average_price = total_revenue / total_sold if total_sold > 0 else 0.0
    profit = total_revenue - total_sold * parse_amount(unit_cost)
    profit_margin = (profit / total_revenue) * 100 if total_revenue > 0 else 0.0

    return SalesSummary(
        total_revenue=total_revenue,
        total_paid=total_paid,
        total_owing=total_revenue - total_paid,
        total_sold=total_sold,
        average_price=average_price,
        profit=profit,
        profit_margin=profit_margin,
    )
