"""
API routes for the financial tracker.
"""

from fastapi import APIRouter

from fintrak.api import (
    auth,
    calculations,
    financial_data,
    inventory_batches,
    sales_records,
)

router = APIRouter()

# Include sub-routers
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(financial_data.router, prefix="/financial-data", tags=["financial-data"])
router.include_router(inventory_batches.router, prefix="/inventory-batches", tags=["inventory"])
router.include_router(sales_records.router, prefix="/sales-records", tags=["sales"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
