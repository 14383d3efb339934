"""
Inventory and sales service.

Keeps each batch's stock counts and average achieved price in step with its
sales records. Stock is re-validated here on every sale, not just in the
form that submits it.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from fintrak.calculations.inventory import (
    BatchEconomics,
    SaleLine,
    SalesSummary,
    apply_sale,
    calculate_actual_sale_price,
    calculate_balance_owing,
    calculate_batch_economics,
    calculate_unit_cost,
    resolve_price_per_unit,
    reverse_sale,
    summarize_sales,
)
from fintrak.db.models import InventoryBatch, SalesRecord

logger = logging.getLogger(__name__)

BATCH_EDITABLE_FIELDS = (
    "batch_name",
    "product_name",
    "total_price_paid",
    "number_of_units",
    "projected_sale_cost_per_unit",
    "qty_in_stock",
)


class BatchNotFoundError(LookupError):
    """No batch with that id belongs to the user."""


class SaleNotFoundError(LookupError):
    """No sales record with that id belongs to the user."""


def _check_stock_counts(number_of_units: int, qty_in_stock: int, qty_sold: int):
    if qty_in_stock < 0:
        raise ValueError("Quantity in stock cannot be negative")
    if qty_in_stock + qty_sold > number_of_units:
        raise ValueError(
            f"Stock ({qty_in_stock}) plus sold ({qty_sold}) exceeds "
            f"the {number_of_units} units in the batch"
        )


def _sale_lines(sales: List[SalesRecord]) -> List[SaleLine]:
    return [
        SaleLine(qty=s.qty, total_price=s.total_price, amount_paid=s.amount_paid)
        for s in sales
    ]


# === Batches ===

def list_batches(db: Session, user_id: str) -> List[InventoryBatch]:
    """User's batches, newest first."""
    return (
        db.query(InventoryBatch)
        .filter(InventoryBatch.user_id == user_id)
        .order_by(InventoryBatch.created_at.desc())
        .all()
    )


def get_batch(db: Session, user_id: str, batch_id: str) -> InventoryBatch:
    batch = (
        db.query(InventoryBatch)
        .filter(InventoryBatch.id == batch_id, InventoryBatch.user_id == user_id)
        .first()
    )
    if batch is None:
        raise BatchNotFoundError(f"Batch {batch_id} not found")
    return batch


def create_batch(
    db: Session,
    user_id: str,
    batch_name: str,
    product_name: str,
    total_price_paid: float,
    number_of_units: int,
    projected_sale_cost_per_unit: float = 0.0,
    qty_in_stock: Optional[int] = None,
) -> InventoryBatch:
    """
    Create a batch; unit cost is fixed from the purchase figures.

    Stock defaults to the full number of units bought.

    Raises:
        ValueError: If the stock count does not fit in the batch
    """
    if qty_in_stock is None:
        qty_in_stock = number_of_units
    _check_stock_counts(number_of_units, qty_in_stock, 0)

    batch = InventoryBatch(
        user_id=user_id,
        batch_name=batch_name,
        product_name=product_name,
        total_price_paid=total_price_paid,
        number_of_units=number_of_units,
        unit_cost=calculate_unit_cost(total_price_paid, number_of_units),
        projected_sale_cost_per_unit=projected_sale_cost_per_unit,
        actual_sale_cost_per_unit=0.0,
        qty_in_stock=qty_in_stock,
        qty_sold=0,
    )
    db.add(batch)
    db.commit()
    db.refresh(batch)

    logger.info("Created batch %s (%s) for user %s", batch.id, batch_name, user_id)
    return batch


def update_batch(db: Session, user_id: str, batch_id: str, **changes: Any) -> InventoryBatch:
    """
    Apply edited form fields to a batch.

    Unit cost is recalculated when the purchase price or unit count
    changes. Sold quantity and actual price stay derived from sales.

    Raises:
        BatchNotFoundError: If the batch does not exist
        ValueError: If an unknown field is given or stock no longer fits
    """
    batch = get_batch(db, user_id, batch_id)

    unknown = set(changes) - set(BATCH_EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    number_of_units = changes.get("number_of_units", batch.number_of_units)
    qty_in_stock = changes.get("qty_in_stock", batch.qty_in_stock)
    _check_stock_counts(number_of_units, qty_in_stock, batch.qty_sold)

    for field, value in changes.items():
        setattr(batch, field, value)

    if "total_price_paid" in changes or "number_of_units" in changes:
        batch.unit_cost = calculate_unit_cost(batch.total_price_paid, batch.number_of_units)

    db.commit()
    db.refresh(batch)
    return batch


def delete_batch(db: Session, user_id: str, batch_id: str) -> None:
    """Delete a batch together with its sales records."""
    batch = get_batch(db, user_id, batch_id)
    db.query(SalesRecord).filter(SalesRecord.batch_id == batch.id).delete()
    db.delete(batch)
    db.commit()
    logger.info("Deleted batch %s for user %s", batch_id, user_id)


def get_batch_economics(batch: InventoryBatch) -> BatchEconomics:
    return calculate_batch_economics(
        total_price_paid=batch.total_price_paid,
        unit_cost=batch.unit_cost,
        projected_sale_cost_per_unit=batch.projected_sale_cost_per_unit,
        actual_sale_cost_per_unit=batch.actual_sale_cost_per_unit,
        qty_sold=batch.qty_sold,
    )


def recalculate_actual_sale_price(db: Session, batch: InventoryBatch) -> float:
    """Recompute the batch's average achieved price from all its sales."""
    sales = db.query(SalesRecord).filter(SalesRecord.batch_id == batch.id).all()
    batch.actual_sale_cost_per_unit = calculate_actual_sale_price(_sale_lines(sales))
    return batch.actual_sale_cost_per_unit


# === Sales ===

def list_sales(db: Session, user_id: str, batch_id: str) -> List[SalesRecord]:
    """Sales for one batch, newest first."""
    get_batch(db, user_id, batch_id)
    return (
        db.query(SalesRecord)
        .filter(SalesRecord.batch_id == batch_id, SalesRecord.user_id == user_id)
        .order_by(SalesRecord.created_at.desc())
        .all()
    )


def record_sale(
    db: Session,
    user_id: str,
    batch_id: str,
    qty: int,
    total_price: Optional[float] = None,
    amount_paid: float = 0.0,
    price_per_unit: Optional[float] = None,
    notes: Optional[str] = None,
) -> SalesRecord:
    """
    Record a sale and move its units out of stock.

    The total defaults to qty x price_per_unit; the per-unit price
    defaults to total / qty.

    Raises:
        BatchNotFoundError: If the batch does not exist
        InsufficientStockError: If qty exceeds the stock on hand
        ValueError: If qty is not positive
    """
    batch = get_batch(db, user_id, batch_id)

    try:
        qty_in_stock, qty_sold = apply_sale(batch.qty_in_stock, batch.qty_sold, qty)
    except ValueError as e:
        logger.warning("Rejected sale of %s from batch %s: %s", qty, batch_id, e)
        raise

    if total_price is None:
        total_price = (price_per_unit or 0.0) * qty

    sale = SalesRecord(
        user_id=user_id,
        batch_id=batch.id,
        qty=qty,
        price_per_unit=resolve_price_per_unit(price_per_unit, total_price, qty),
        total_price=total_price,
        amount_paid=amount_paid,
        balance_owing=calculate_balance_owing(total_price, amount_paid),
        notes=notes,
    )
    db.add(sale)

    batch.qty_in_stock = qty_in_stock
    batch.qty_sold = qty_sold
    db.flush()
    recalculate_actual_sale_price(db, batch)

    db.commit()
    db.refresh(sale)

    logger.info("Recorded sale %s of %s units from batch %s", sale.id, qty, batch_id)
    return sale


def get_sale(db: Session, user_id: str, sale_id: str) -> SalesRecord:
    sale = (
        db.query(SalesRecord)
        .filter(SalesRecord.id == sale_id, SalesRecord.user_id == user_id)
        .first()
    )
    if sale is None:
        raise SaleNotFoundError(f"Sale record {sale_id} not found")
    return sale


def delete_sale(db: Session, user_id: str, sale_id: str) -> InventoryBatch:
    """
    Delete a sale and put its units back into stock.

    Returns:
        The batch with its counts and average price recalculated
    """
    sale = get_sale(db, user_id, sale_id)
    batch = get_batch(db, user_id, sale.batch_id)

    batch.qty_in_stock, batch.qty_sold = reverse_sale(
        batch.qty_in_stock, batch.qty_sold, sale.qty
    )
    db.delete(sale)
    db.flush()
    recalculate_actual_sale_price(db, batch)

    db.commit()
    db.refresh(batch)

    logger.info("Deleted sale %s from batch %s", sale_id, batch.id)
    return batch


def get_sales_summary(db: Session, user_id: str, batch_id: str) -> SalesSummary:
    batch = get_batch(db, user_id, batch_id)
    return summarize_sales(_sale_lines(list_sales(db, user_id, batch_id)), batch.unit_cost)
