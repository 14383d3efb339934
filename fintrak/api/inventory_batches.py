"""
Inventory batch API endpoints.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, List
from sqlalchemy.orm import Session

from fintrak.auth.dependencies import get_current_user
from fintrak.db.database import get_db
from fintrak.db.models import InventoryBatch, User
from fintrak.services import inventory as service

router = APIRouter()


class BatchCreate(BaseModel):
    """Schema for creating a batch."""

    batch_name: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    total_price_paid: float = Field(ge=0)
    number_of_units: int = Field(gt=0)
    projected_sale_cost_per_unit: float = Field(default=0.0, ge=0)
    qty_in_stock: Optional[int] = Field(default=None, ge=0)


class BatchUpdate(BaseModel):
    """
    Schema for replacing a batch's editable fields.

    Every field is sent on each edit. Unit cost, sold quantity and actual
    price are derived and cannot be set.
    """

    batch_name: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    total_price_paid: float = Field(ge=0)
    number_of_units: int = Field(gt=0)
    projected_sale_cost_per_unit: float = Field(ge=0)
    qty_in_stock: int = Field(ge=0)


class BatchResponse(BaseModel):
    """Schema for batch response."""

    id: str
    batch_name: str
    product_name: str
    total_price_paid: float
    number_of_units: int
    unit_cost: float
    projected_sale_cost_per_unit: float
    actual_sale_cost_per_unit: float
    qty_in_stock: int
    qty_sold: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BatchListResponse(BaseModel):
    """Response for listing batches."""

    batches: List[BatchResponse]
    total: int


class EconomicsResponse(BaseModel):
    """Break-even and profit figures for a batch."""

    batch_id: str
    unit_cost: float
    projected_sale_price: float
    actual_sale_price: float
    units_to_break_even: Optional[int]
    break_even_label: str
    projected_profit_per_unit: float
    actual_profit_per_unit: float
    projected_total_profit: float
    actual_total_profit: float


def batch_to_response(batch: InventoryBatch) -> BatchResponse:
    """Convert InventoryBatch model to response schema."""
    return BatchResponse(
        id=batch.id,
        batch_name=batch.batch_name,
        product_name=batch.product_name,
        total_price_paid=batch.total_price_paid,
        number_of_units=batch.number_of_units,
        unit_cost=batch.unit_cost,
        projected_sale_cost_per_unit=batch.projected_sale_cost_per_unit or 0.0,
        actual_sale_cost_per_unit=batch.actual_sale_cost_per_unit or 0.0,
        qty_in_stock=batch.qty_in_stock,
        qty_sold=batch.qty_sold or 0,
        created_at=batch.created_at.isoformat() if batch.created_at else None,
        updated_at=batch.updated_at.isoformat() if batch.updated_at else None,
    )


def _get_batch_or_404(db: Session, user_id: str, batch_id: str) -> InventoryBatch:
    try:
        return service.get_batch(db, user_id, batch_id)
    except service.BatchNotFoundError:
        raise HTTPException(status_code=404, detail="Batch not found")


@router.get("", response_model=BatchListResponse)
async def list_batches(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List batches, newest first."""
    batches = service.list_batches(db, current_user.id)
    return BatchListResponse(
        batches=[batch_to_response(b) for b in batches],
        total=len(batches),
    )


@router.post("", response_model=BatchResponse, status_code=201)
async def create_batch(
    batch_data: BatchCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a new batch."""
    try:
        batch = service.create_batch(db, current_user.id, **batch_data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return batch_to_response(batch)


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(
    batch_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a batch by ID."""
    return batch_to_response(_get_batch_or_404(db, current_user.id, batch_id))


@router.put("/{batch_id}", response_model=BatchResponse)
async def update_batch(
    batch_id: str,
    batch_data: BatchUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace a batch's editable fields."""
    _get_batch_or_404(db, current_user.id, batch_id)

    try:
        batch = service.update_batch(
            db, current_user.id, batch_id, **batch_data.model_dump()
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return batch_to_response(batch)


@router.delete("/{batch_id}")
async def delete_batch(
    batch_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a batch and all of its sales records."""
    _get_batch_or_404(db, current_user.id, batch_id)
    service.delete_batch(db, current_user.id, batch_id)

    return {"deleted": True, "id": batch_id}


@router.get("/{batch_id}/economics", response_model=EconomicsResponse)
async def get_batch_economics(
    batch_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Break-even point and projected/actual profit for a batch."""
    batch = _get_batch_or_404(db, current_user.id, batch_id)
    economics = service.get_batch_economics(batch)

    return EconomicsResponse(batch_id=batch.id, **economics.to_dict())
