from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Dict

from sqlalchemy import func

from extensions import db
from models import Deposit, DepositStatus, User, UserPackage, Withdrawal, WithdrawalStatus
from utils import CENTS, money_str, utc_now


def _total(column, *criteria) -> Decimal:
    value = db.session.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
    return Decimal(str(value)).quantize(CENTS)


def dashboard_stats(now=None) -> Dict:
    """Figures for the admin dashboard. Amounts are strings, counts are ints."""
    now = now or utc_now()
    day_start = datetime.combine(now.date(), time.min)
    day_end = day_start + timedelta(days=1)

    total_users = User.query.filter(User.is_admin.is_(False)).count()
    new_users_today = User.query.filter(
        User.is_admin.is_(False),
        User.created_at >= day_start,
        User.created_at < day_end,
    ).count()

    total_deposits = _total(Deposit.amount, Deposit.status == DepositStatus.APPROVED)
    total_withdrawals = _total(Withdrawal.amount, Withdrawal.status == WithdrawalStatus.PAID)

    active_packages = UserPackage.query.filter(
        UserPackage.is_active.is_(True),
        UserPackage.expiry_date > now,
    ).count()

    pending_deposits = Deposit.query.filter_by(status=DepositStatus.PENDING).count()
    pending_withdrawals = Withdrawal.query.filter_by(status=WithdrawalStatus.PENDING).count()

    return {
        "totalUsers": total_users,
        "newUsersToday": new_users_today,
        "totalDeposits": money_str(total_deposits),
        "totalWithdrawals": money_str(total_withdrawals),
        "activePackages": active_packages,
        "pendingDeposits": pending_deposits,
        "pendingWithdrawals": pending_withdrawals,
        "totalRevenue": money_str(total_deposits - total_withdrawals),
    }
