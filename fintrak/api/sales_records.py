"""
Sales record API endpoints.
"""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, List
from sqlalchemy.orm import Session

from fintrak.api.inventory_batches import BatchResponse, batch_to_response
from fintrak.auth.dependencies import get_current_user
from fintrak.db.database import get_db
from fintrak.db.models import SalesRecord, User
from fintrak.services import inventory as service

router = APIRouter()


class SaleCreate(BaseModel):
    """Schema for recording a sale."""

    batch_id: str
    qty: int
    price_per_unit: Optional[float] = Field(default=None, ge=0)
    total_price: Optional[float] = Field(default=None, ge=0)
    amount_paid: float = Field(default=0.0, ge=0)
    notes: Optional[str] = None


class SaleResponse(BaseModel):
    """Schema for sales record response."""

    id: str
    batch_id: str
    qty: int
    price_per_unit: float
    total_price: float
    amount_paid: float
    balance_owing: float
    notes: Optional[str]
    created_at: Optional[str] = None


class SaleListResponse(BaseModel):
    sales: List[SaleResponse]
    total: int


class SaleDeleteResponse(BaseModel):
    deleted: bool
    id: str
    batch: BatchResponse


class SalesSummaryResponse(BaseModel):
    batch_id: str
    total_revenue: float
    total_paid: float
    total_owing: float
    total_sold: int
    average_price: float
    profit: float
    profit_margin: float


def sale_to_response(sale: SalesRecord) -> SaleResponse:
    return SaleResponse(
        id=sale.id,
        batch_id=sale.batch_id,
        qty=sale.qty,
        price_per_unit=sale.price_per_unit,
        total_price=sale.total_price,
        amount_paid=sale.amount_paid,
        balance_owing=sale.balance_owing,
        notes=sale.notes,
        created_at=sale.created_at.isoformat() if sale.created_at else None,
    )


@router.get("", response_model=SaleListResponse)
async def list_sales(
    batch_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the sales of one batch, newest first."""
    try:
        sales = service.list_sales(db, current_user.id, batch_id)
    except service.BatchNotFoundError:
        raise HTTPException(status_code=404, detail="Batch not found")

    return SaleListResponse(sales=[sale_to_response(s) for s in sales], total=len(sales))


@router.post("", response_model=SaleResponse, status_code=201)
async def create_sale(
    sale_data: SaleCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Record a sale; rejected if the batch does not hold enough stock."""
    try:
        sale = service.record_sale(db, current_user.id, **sale_data.model_dump())
    except service.BatchNotFoundError:
        raise HTTPException(status_code=404, detail="Batch not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return sale_to_response(sale)


@router.get("/summary", response_model=SalesSummaryResponse)
async def get_sales_summary(
    batch_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Revenue, payments and profit across a batch's sales."""
    try:
        summary = service.get_sales_summary(db, current_user.id, batch_id)
    except service.BatchNotFoundError:
        raise HTTPException(status_code=404, detail="Batch not found")

    return SalesSummaryResponse(batch_id=batch_id, **asdict(summary))


@router.delete("/{sale_id}", response_model=SaleDeleteResponse)
async def delete_sale(
    sale_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a sale and return its units to stock."""
    try:
        batch = service.delete_sale(db, current_user.id, sale_id)
    except service.SaleNotFoundError:
        raise HTTPException(status_code=404, detail="Sale record not found")

    return SaleDeleteResponse(deleted=True, id=sale_id, batch=batch_to_response(batch))
