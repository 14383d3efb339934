"""
SQLAlchemy ORM models for the financial tracker.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin for creation/update timestamps on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(TimestampMixin, Base):
    """The account that owns a deployment's data."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    financial_data = relationship(
        "FinancialData",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    inventory_batches = relationship(
        "InventoryBatch",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )
    refresh_tokens = relationship(
        "RefreshToken",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )


class FinancialData(TimestampMixin, Base):
    """Cash count, bank accounts and weekly ledgers, one document per user."""

    __tablename__ = "financial_data"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, unique=True)

    # Cash denominations (AUD quantities)
    notes_100 = Column(Float, default=0)
    notes_50 = Column(Float, default=0)
    notes_20 = Column(Float, default=0)
    notes_10 = Column(Float, default=0)
    notes_5 = Column(Float, default=0)
    coins_2 = Column(Float, default=0)
    coins_1 = Column(Float, default=0)
    coins_050 = Column(Float, default=0)
    coins_020 = Column(Float, default=0)
    coins_010 = Column(Float, default=0)
    coins_005 = Column(Float, default=0)

    # Row lists (stored as JSON arrays of {id, label, amount})
    bank_account_rows = Column(JSON, default=list)
    week1_income_rows = Column(JSON, default=list)
    week1_expense_rows = Column(JSON, default=list)
    week2_income_rows = Column(JSON, default=list)
    week2_expense_rows = Column(JSON, default=list)

    # Weeks 3+ (JSON array of {id, week_number, name, income_rows, expense_rows})
    additional_weeks = Column(JSON, default=list)

    user = relationship("User", back_populates="financial_data")


class InventoryBatch(TimestampMixin, Base):
    """A purchased lot of a single product."""

    __tablename__ = "inventory_batches"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    batch_name = Column(String(255), nullable=False)
    product_name = Column(String(255), nullable=False)

    # Purchase
    total_price_paid = Column(Float, nullable=False)
    number_of_units = Column(Integer, nullable=False)
    unit_cost = Column(Float, nullable=False)  # total_price_paid / number_of_units

    # Pricing
    projected_sale_cost_per_unit = Column(Float, default=0, nullable=False)
    actual_sale_cost_per_unit = Column(Float, default=0, nullable=False)

    # Stock
    qty_in_stock = Column(Integer, nullable=False)
    qty_sold = Column(Integer, default=0, nullable=False)

    # Relationships
    user = relationship("User", back_populates="inventory_batches")
    sales_records = relationship(
        "SalesRecord",
        back_populates="batch",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )


class SalesRecord(TimestampMixin, Base):
    """A single sale made out of a batch."""

    __tablename__ = "sales_records"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    batch_id = Column(
        String, ForeignKey("inventory_batches.id"), nullable=False, index=True
    )

    qty = Column(Integer, nullable=False)
    price_per_unit = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)
    amount_paid = Column(Float, nullable=False)
    balance_owing = Column(Float, nullable=False)  # total_price - amount_paid
    notes = Column(Text, nullable=True)

    # Relationships
    batch = relationship("InventoryBatch", back_populates="sales_records")


class RefreshToken(TimestampMixin, Base):
    """Refresh token for JWT authentication."""

    __tablename__ = "refresh_tokens"

    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    token_hash = Column(String(255), nullable=False, index=True)  # Store hash, not token
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="refresh_tokens")
