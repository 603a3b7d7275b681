from decimal import Decimal
from typing import List, Optional

from models import Deposit, Transaction, User, UserPackage, Withdrawal
from earnings import ledger, packages, referral, tasks, workflow


class EarningsService:
    """
    Entry point used by the HTTP layer.
    Holds no state between calls; the acting user id is always passed in.
    """

    @staticmethod
    def purchase_package(user_id: int, package_id: int, now=None) -> UserPackage:
        return packages.purchase(user_id, package_id, now=now)

    @staticmethod
    def complete_task(user_id: int, task_id: int, user_package_id: int, now=None) -> Decimal:
        return tasks.complete_task(user_id, task_id, user_package_id, now=now)

    @staticmethod
    def request_deposit(user_id: int, amount, proof_ref: Optional[str] = None, now=None) -> Deposit:
        return workflow.request_deposit(user_id, amount, proof_ref=proof_ref, now=now)

    @staticmethod
    def approve_deposit(deposit_id: int, admin_id: Optional[int] = None,
                        notes: Optional[str] = None, now=None) -> Deposit:
        return workflow.approve_deposit(deposit_id, admin_id=admin_id, notes=notes, now=now)

    @staticmethod
    def reject_deposit(deposit_id: int, admin_id: Optional[int] = None,
                       notes: Optional[str] = None, now=None) -> Deposit:
        return workflow.reject_deposit(deposit_id, admin_id=admin_id, notes=notes, now=now)

    @staticmethod
    def request_withdrawal(user_id: int, amount, now=None) -> Withdrawal:
        return workflow.request_withdrawal(user_id, amount, now=now)

    @staticmethod
    def approve_withdrawal(withdrawal_id: int, admin_id: Optional[int] = None,
                           notes: Optional[str] = None, now=None) -> Withdrawal:
        return workflow.approve_withdrawal(withdrawal_id, admin_id=admin_id, notes=notes, now=now)

    @staticmethod
    def reject_withdrawal(withdrawal_id: int, admin_id: Optional[int] = None,
                          notes: Optional[str] = None, now=None) -> Withdrawal:
        return workflow.reject_withdrawal(withdrawal_id, admin_id=admin_id, notes=notes, now=now)

    @staticmethod
    def register_with_referral(phone: str, password: str, full_name: str = "",
                               referral_code: Optional[str] = None, now=None) -> User:
        return referral.register_with_referral(
            phone, password, full_name=full_name, referral_code=referral_code, now=now
        )

    @staticmethod
    def get_balance(user_id: int) -> Decimal:
        return ledger.get_balance(user_id)

    @staticmethod
    def list_transactions(user_id: int, limit: Optional[int] = None) -> List[Transaction]:
        return ledger.list_transactions(user_id, limit=limit)
