"""
Financial snapshot service.

Stores the cash count, bank accounts and weekly ledgers as one document per
user and derives the cascade figures from it. Every write replaces the whole
document.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from fintrak.calculations.cascade import Week, WeekCascade
from fintrak.calculations.denominations import (
    DENOMINATION_KEYS,
    CashDenominations,
    calculate_cash_totals,
)
from fintrak.calculations.ledger import ensure_default_bank_accounts
from fintrak.db.models import FinancialData

logger = logging.getLogger(__name__)

ROW_LIST_KEYS = (
    "bank_account_rows",
    "week1_income_rows",
    "week1_expense_rows",
    "week2_income_rows",
    "week2_expense_rows",
    "additional_weeks",
)


def default_snapshot() -> Dict[str, Any]:
    """The empty document served before anything has been saved."""
    snapshot: Dict[str, Any] = {key: 0.0 for key in DENOMINATION_KEYS}
    snapshot.update({key: [] for key in ROW_LIST_KEYS})
    return snapshot


def normalize_snapshot(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Clean a submitted document.

    Clamps denomination counts, parses amounts, gives rows without ids a
    fresh id and renumbers additional weeks contiguously from 3.
    """
    denominations = CashDenominations.from_dict(snapshot)
    cascade = WeekCascade.from_snapshot(snapshot)
    normalized = denominations.to_dict()
    normalized.update(cascade.to_snapshot())
    return normalized


def record_to_snapshot(record: FinancialData) -> Dict[str, Any]:
    snapshot = {key: getattr(record, key) or 0.0 for key in DENOMINATION_KEYS}
    for key in ROW_LIST_KEYS:
        snapshot[key] = list(getattr(record, key) or [])
    return snapshot


def get_record(db: Session, user_id: str) -> Optional[FinancialData]:
    return db.query(FinancialData).filter(FinancialData.user_id == user_id).first()


def get_snapshot(db: Session, user_id: str) -> Dict[str, Any]:
    """Stored document for the user, or the empty default."""
    record = get_record(db, user_id)
    if record is None:
        return default_snapshot()
    return record_to_snapshot(record)


def save_snapshot(db: Session, user_id: str, snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Replace the user's document, creating it on first save.

    Returns:
        The document as stored
    """
    normalized = normalize_snapshot(snapshot)

    record = get_record(db, user_id)
    if record is None:
        record = FinancialData(user_id=user_id)
        db.add(record)
        logger.info("Creating financial data for user %s", user_id)

    for key, value in normalized.items():
        setattr(record, key, value)

    db.commit()
    db.refresh(record)
    return record_to_snapshot(record)


def clear_snapshot(db: Session, user_id: str) -> Dict[str, Any]:
    """Reset the user's document to the empty default."""
    logger.info("Clearing financial data for user %s", user_id)
    return save_snapshot(db, user_id, default_snapshot())


def build_cascade(snapshot: Mapping[str, Any]) -> WeekCascade:
    cash = CashDenominations.from_dict(snapshot)
    return WeekCascade.from_snapshot(snapshot, cash_on_hand=cash.total_cash)


def calculate_summary(snapshot: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Derive cash totals and every week's balance from a document.

    Returns:
        Dict with 'cash' totals, per-week 'weeks' results and the last
        week's 'closing_balance'
    """
    cash = calculate_cash_totals(CashDenominations.from_dict(snapshot))
    weeks = build_cascade(snapshot).calculate()
    return {
        "cash": cash,
        "weeks": [week.to_dict() for week in weeks],
        "closing_balance": weeks[-1].balance,
    }


def add_week(db: Session, user_id: str) -> Tuple[Dict[str, Any], Week]:
    """Append an empty week after the current last week."""
    cascade = build_cascade(get_snapshot(db, user_id))
    week = cascade.add_week()
    snapshot = _save_cascade(db, user_id, cascade)
    logger.info("Added %s for user %s", week.name, user_id)
    return snapshot, week


def remove_week(db: Session, user_id: str, week_id: str) -> Dict[str, Any]:
    """
    Remove an additional week; later weeks are renumbered.

    Unknown week ids leave the document unchanged.

    Raises:
        ValueError: If week_id names week 1 or week 2
    """
    snapshot = get_snapshot(db, user_id)
    cascade = build_cascade(snapshot)
    if not cascade.remove_week(week_id):
        return snapshot
    logger.info("Removed week %s for user %s", week_id, user_id)
    return _save_cascade(db, user_id, cascade)


def ensure_bank_accounts(db: Session, user_id: str) -> Dict[str, Any]:
    """Add the default bank accounts to the document when missing."""
    snapshot = get_snapshot(db, user_id)
    cascade = build_cascade(snapshot)
    if not ensure_default_bank_accounts(cascade.bank_accounts):
        return snapshot
    return _save_cascade(db, user_id, cascade)


def _save_cascade(db: Session, user_id: str, cascade: WeekCascade) -> Dict[str, Any]:
    snapshot = get_snapshot(db, user_id)
    snapshot.update(cascade.to_snapshot())
    return save_snapshot(db, user_id, snapshot)
