# backend/coachbook/services/credits.py
"""
Session credit ledger.

One balance row per student plus an append-only transaction log. The
caller owns the transaction: these helpers flush, they never commit.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models.tables import (
    SessionCreditBalances as DBBalance,
    SessionCreditTransactions as DBTransaction,
)

logger = logging.getLogger(__name__)


def _get_or_create_balance(db: Session, student_id: int) -> DBBalance:
    """Get balance by student_id or create an empty one."""
    balance = db.query(DBBalance).filter(DBBalance.student_id == student_id).first()
    if balance:
        return balance

    balance = DBBalance(student_id=student_id, balance=0)
    db.add(balance)
    db.flush()
    return balance


def _create_transaction(
    db: Session,
    student_id: int,
    tx_type: str,
    amount: int,
    balance_after: int,
    booking_id: Optional[int] = None,
    description: Optional[str] = None,
) -> DBTransaction:
    tx = DBTransaction(
        student_id=student_id,
        type=tx_type,
        amount=amount,
        balance_after=balance_after,
        booking_id=booking_id,
        description=description,
    )
    db.add(tx)
    db.flush()
    return tx


def get_balance(db: Session, student_id: int) -> int:
    balance = db.query(DBBalance).filter(DBBalance.student_id == student_id).first()
    return balance.balance if balance else 0


def add_credits(
    db: Session,
    student_id: int,
    amount: int,
    description: Optional[str] = None,
) -> int:
    """Add purchased credits. Returns the new balance."""
    if amount <= 0:
        raise ValueError("amount must be positive")
    balance = _get_or_create_balance(db, student_id)
    balance.balance += amount
    _create_transaction(db, student_id, "purchase", amount, balance.balance, description=description)
    return balance.balance


def deduct_credit(
    db: Session,
    student_id: int,
    booking_id: int,
    description: Optional[str] = None,
) -> int:
    """
    Use one credit for a booking. Returns the new balance.

    Raises:
        ValueError: Balance below one credit
    """
    balance = _get_or_create_balance(db, student_id)
    if balance.balance < 1:
        raise ValueError("Insufficient session credits")

    balance.balance -= 1
    _create_transaction(db, student_id, "used", 1, balance.balance, booking_id, description)
    logger.info(f"Used 1 credit of student {student_id} for booking {booking_id}")
    return balance.balance


def refund_credit(
    db: Session,
    student_id: int,
    booking_id: int,
    description: Optional[str] = None,
) -> int:
    """Give back the credit used by a booking. Returns the new balance."""
    balance = _get_or_create_balance(db, student_id)
    balance.balance += 1
    _create_transaction(db, student_id, "refund", 1, balance.balance, booking_id, description)
    logger.info(f"Refunded 1 credit to student {student_id} for booking {booking_id}")
    return balance.balance


def forfeit_credit(
    db: Session,
    student_id: int,
    booking_id: int,
    description: Optional[str] = None,
) -> int:
    """
    Record that the credit used by a booking is kept.

    The credit was already deducted at booking time, so the balance does
    not change; only the ledger entry is written.
    """
    balance = _get_or_create_balance(db, student_id)
    _create_transaction(db, student_id, "forfeit", 0, balance.balance, booking_id, description)
    logger.info(f"Forfeited credit of student {student_id} for booking {booking_id}")
    return balance.balance
