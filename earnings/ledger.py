"""
Ledger store: the only code that writes User.balance.

Every balance change is paired with an append-only Transaction row carrying
the balance it produced. Functions here flush but never commit; the calling
operation owns the unit of work and decides when to commit or roll back.
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from flask import current_app, has_app_context

from extensions import db
from logger import ledger_logger
from models import User, Transaction, TransactionKind
from utils import CENTS, to_money, utc_now, money_str
from earnings.errors import InvalidAmount, InsufficientFunds, NotFound


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 500


def _history_limit_default():
    if has_app_context():
        return int(current_app.config.get("TRANSACTION_HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT))
    return DEFAULT_HISTORY_LIMIT


def lock_user(user_id: int) -> User:
    """
    Load the user row with SELECT ... FOR UPDATE.
    populate_existing() makes sure a user already in the identity map is
    refreshed from the locked row instead of reusing a stale balance.
    """
    user = (
        User.query.filter_by(id=user_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not user:
        raise NotFound(f"user {user_id} not found")
    return user


def apply_transaction(user_id: int, kind, amount, description: str = "",
                      reference: Optional[str] = None, now=None) -> Transaction:
    """Apply one signed balance change and append its ledger entry."""
    if not isinstance(kind, TransactionKind):
        kind = TransactionKind(kind)

    value = to_money(amount)
    if value is None or value <= 0:
        raise InvalidAmount(f"ledger amount must be positive, got {amount!r}")

    user = lock_user(user_id)
    current = Decimal(user.balance or 0).quantize(CENTS)
    new_balance = (current + kind.sign * value).quantize(CENTS)

    if new_balance < 0:
        logger.info(f"Rejected {kind.value} of {value} for user {user_id}: balance {current}")
        raise InsufficientFunds(f"balance {current} is less than {value}")

    user.balance = new_balance
    txn = Transaction(
        user_id=user_id,
        kind=kind,
        amount=value,
        balance_after=new_balance,
        description=description or kind.label,
        reference=str(reference) if reference is not None else None,
        created_at=now or utc_now(),
    )
    db.session.add(txn)
    db.session.flush()

    ledger_logger.info(
        f"txn={txn.id} user={user_id} kind={kind.value} amount={kind.sign * value} "
        f"balance_after={new_balance} ref={txn.reference}"
    )
    return txn


def get_balance(user_id: int) -> Decimal:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound(f"user {user_id} not found")
    return Decimal(user.balance or 0).quantize(CENTS)


def list_transactions(user_id: int, limit: Optional[int] = None) -> List[Transaction]:
    """Newest first. A missing or non-positive limit uses the configured default."""
    if not db.session.get(User, user_id):
        raise NotFound(f"user {user_id} not found")

    if limit is None or limit <= 0:
        limit = _history_limit_default()
    limit = min(limit, MAX_HISTORY_LIMIT)

    return (
        Transaction.query.filter_by(user_id=user_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .limit(limit)
        .all()
    )


def ledger_sum(user_id: int) -> Decimal:
    rows = db.session.query(Transaction.kind, Transaction.amount).filter(
        Transaction.user_id == user_id
    )
    total = Decimal("0")
    for kind, amount in rows:
        total += kind.sign * Decimal(amount)
    return total.quantize(CENTS)


def verify_balance(user_id: int) -> Dict:
    """Compare the stored balance with the sum of the user's ledger entries."""
    balance = get_balance(user_id)
    computed = ledger_sum(user_id)
    entries = Transaction.query.filter_by(user_id=user_id).count()
    consistent = balance == computed

    if not consistent:
        ledger_logger.error(
            f"Balance mismatch for user {user_id}: stored={balance} ledger={computed}"
        )

    return {
        "userId": user_id,
        "balance": money_str(balance),
        "ledgerSum": money_str(computed),
        "entries": entries,
        "consistent": consistent,
    }
