"""
Admin-mediated deposits and withdrawals.

Both requests move pending -> approved/paid or pending -> rejected, and a
processed request never changes again. Withdrawals are not escrowed: the
balance is only debited when an admin approves the payout.
"""
import logging
from typing import Dict, List, Optional

from extensions import db
from models import (
    CustomerBankAccount,
    DepositAccount,
    Deposit,
    DepositStatus,
    TransactionKind,
    User,
    Withdrawal,
    WithdrawalStatus,
)
from utils import MAX_AMOUNT, to_money, utc_now
from earnings.errors import (
    InsufficientFunds,
    InvalidAmount,
    InvalidBankDetails,
    InvalidStateTransition,
    NotFound,
    PendingWithdrawalExists,
)
from earnings.ledger import apply_transaction, lock_user
from earnings.unit_of_work import atomic


logger = logging.getLogger(__name__)


def _positive_amount(amount):
    value = to_money(amount)
    if value is None or value <= 0:
        raise InvalidAmount(f"amount must be a positive value below {MAX_AMOUNT}, got {amount!r}")
    return value


def _lock_request(model, request_id):
    record = (
        model.query.filter_by(id=request_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not record:
        raise NotFound(f"{model.__tablename__[:-1]} {request_id} not found")
    return record


def _mark_processed(record, status, admin_id, notes, now):
    record.status = status
    record.processed_by = admin_id
    record.processed_at = now
    if notes:
        record.admin_notes = notes

# ==========================================================
#                  DEPOSITS
# ==========================================================

@atomic()
def request_deposit(user_id: int, amount, proof_ref: Optional[str] = None, now=None) -> Deposit:
    value = _positive_amount(amount)
    if not db.session.get(User, user_id):
        raise NotFound(f"user {user_id} not found")

    deposit = Deposit(
        user_id=user_id,
        amount=value,
        proof_ref=proof_ref,
        status=DepositStatus.PENDING,
        created_at=now or utc_now(),
    )
    db.session.add(deposit)
    db.session.flush()
    logger.info(f"Deposit {deposit.id} of {value} requested by user {user_id}")
    return deposit


@atomic()
def approve_deposit(deposit_id: int, admin_id: Optional[int] = None,
                    notes: Optional[str] = None, now=None) -> Deposit:
    """Credit exactly the amount recorded on the request. No amount is accepted here."""
    now = now or utc_now()
    deposit = _lock_request(Deposit, deposit_id)
    if deposit.status != DepositStatus.PENDING:
        raise InvalidStateTransition(f"deposit {deposit_id} is already {deposit.status.value}")

    apply_transaction(
        deposit.user_id,
        TransactionKind.DEPOSIT,
        deposit.amount,
        description="Deposit approved",
        reference=f"deposit:{deposit.id}",
        now=now,
    )
    _mark_processed(deposit, DepositStatus.APPROVED, admin_id, notes, now)
    logger.info(f"Deposit {deposit.id} approved by admin {admin_id}: +{deposit.amount} to user {deposit.user_id}")
    return deposit


@atomic()
def reject_deposit(deposit_id: int, admin_id: Optional[int] = None,
                   notes: Optional[str] = None, now=None) -> Deposit:
    deposit = _lock_request(Deposit, deposit_id)
    if deposit.status != DepositStatus.PENDING:
        raise InvalidStateTransition(f"deposit {deposit_id} is already {deposit.status.value}")

    _mark_processed(deposit, DepositStatus.REJECTED, admin_id, notes, now or utc_now())
    logger.info(f"Deposit {deposit.id} rejected by admin {admin_id}")
    return deposit

# ==========================================================
#                  WITHDRAWALS
# ==========================================================

@atomic(integrity_error=PendingWithdrawalExists)
def request_withdrawal(user_id: int, amount, now=None) -> Withdrawal:
    value = _positive_amount(amount)
    user = lock_user(user_id)

    pending = Withdrawal.query.filter_by(user_id=user_id, status=WithdrawalStatus.PENDING).first()
    if pending:
        raise PendingWithdrawalExists(f"withdrawal {pending.id} is still pending")
    if value > user.balance:
        raise InsufficientFunds(f"balance {user.balance} is less than {value}")

    withdrawal = Withdrawal(
        user_id=user_id,
        amount=value,
        status=WithdrawalStatus.PENDING,
        created_at=now or utc_now(),
    )
    db.session.add(withdrawal)
    db.session.flush()
    logger.info(f"Withdrawal {withdrawal.id} of {value} requested by user {user_id}")
    return withdrawal


@atomic()
def approve_withdrawal(withdrawal_id: int, admin_id: Optional[int] = None,
                       notes: Optional[str] = None, now=None) -> Withdrawal:
    """
    Debit the recorded amount and mark the request paid.
    If the balance no longer covers it, the request stays pending.
    """
    now = now or utc_now()
    withdrawal = _lock_request(Withdrawal, withdrawal_id)
    if withdrawal.status != WithdrawalStatus.PENDING:
        raise InvalidStateTransition(f"withdrawal {withdrawal_id} is already {withdrawal.status.value}")

    apply_transaction(
        withdrawal.user_id,
        TransactionKind.WITHDRAWAL,
        withdrawal.amount,
        description="Withdrawal paid",
        reference=f"withdrawal:{withdrawal.id}",
        now=now,
    )
    _mark_processed(withdrawal, WithdrawalStatus.PAID, admin_id, notes, now)
    logger.info(f"Withdrawal {withdrawal.id} paid by admin {admin_id}: -{withdrawal.amount} from user {withdrawal.user_id}")
    return withdrawal


@atomic()
def reject_withdrawal(withdrawal_id: int, admin_id: Optional[int] = None,
                      notes: Optional[str] = None, now=None) -> Withdrawal:
    withdrawal = _lock_request(Withdrawal, withdrawal_id)
    if withdrawal.status != WithdrawalStatus.PENDING:
        raise InvalidStateTransition(f"withdrawal {withdrawal_id} is already {withdrawal.status.value}")

    _mark_processed(withdrawal, WithdrawalStatus.REJECTED, admin_id, notes, now or utc_now())
    logger.info(f"Withdrawal {withdrawal.id} rejected by admin {admin_id}")
    return withdrawal

# ==========================================================
#                  LISTINGS
# ==========================================================

def list_pending_deposits() -> List[Deposit]:
    return (
        Deposit.query.filter_by(status=DepositStatus.PENDING)
        .order_by(Deposit.created_at.asc(), Deposit.id.asc())
        .all()
    )


def list_pending_withdrawals() -> List[Withdrawal]:
    return (
        Withdrawal.query.filter_by(status=WithdrawalStatus.PENDING)
        .order_by(Withdrawal.created_at.asc(), Withdrawal.id.asc())
        .all()
    )


def list_user_requests(user_id: int) -> Dict[str, list]:
    deposits = (
        Deposit.query.filter_by(user_id=user_id)
        .order_by(Deposit.created_at.desc(), Deposit.id.desc())
        .all()
    )
    withdrawals = (
        Withdrawal.query.filter_by(user_id=user_id)
        .order_by(Withdrawal.created_at.desc(), Withdrawal.id.desc())
        .all()
    )
    return {"deposits": deposits, "withdrawals": withdrawals}

# ==========================================================
#                  BANK DETAILS
# ==========================================================

@atomic()
def save_bank_account(user_id: int, bank_name: str, account_number: str,
                      account_holder: str) -> CustomerBankAccount:
    bank_name = (bank_name or "").strip()
    account_number = (account_number or "").strip()
    account_holder = (account_holder or "").strip()
    if not bank_name or not account_number or not account_holder:
        raise InvalidBankDetails()
    if not db.session.get(User, user_id):
        raise NotFound(f"user {user_id} not found")

    account = CustomerBankAccount.query.filter_by(user_id=user_id).first()
    if not account:
        account = CustomerBankAccount(user_id=user_id)
        db.session.add(account)

    account.bank_name = bank_name
    account.account_number = account_number
    account.account_holder = account_holder
    account.updated_at = utc_now()
    db.session.flush()
    return account


def get_bank_account(user_id: int) -> Optional[CustomerBankAccount]:
    return CustomerBankAccount.query.filter_by(user_id=user_id).first()


@atomic()
def add_deposit_account(bank_name: str, account_number: str, account_holder: str) -> DepositAccount:
    bank_name = (bank_name or "").strip()
    account_number = (account_number or "").strip()
    account_holder = (account_holder or "").strip()
    if not bank_name or not account_number or not account_holder:
        raise InvalidBankDetails()

    account = DepositAccount(
        bank_name=bank_name,
        account_number=account_number,
        account_holder=account_holder,
    )
    db.session.add(account)
    db.session.flush()
    logger.info(f"Deposit account {account.id} added ({bank_name})")
    return account


def list_deposit_accounts() -> List[DepositAccount]:
    """Active platform accounts a customer can pay a deposit into."""
    return (
        DepositAccount.query
        .filter_by(is_active=True)
        .order_by(DepositAccount.id)
        .all()
    )
