"""Row builders for tests. Call them inside an application context."""
import itertools
from datetime import datetime
from decimal import Decimal

from extensions import db
from models import User, TransactionKind
from earnings.catalog import create_package, create_task
from earnings.ledger import apply_transaction
from utils import generate_referral_code


NOW = datetime(2025, 3, 10, 9, 0, 0)
PASSWORD = "secret123"

_phones = itertools.count(1)


def create_user(balance="0.00", is_admin=False, full_name=None, password=PASSWORD):
    """A user whose opening balance, if any, arrives through a deposit ledger entry."""
    n = next(_phones)
    user = User(
        phone=f"+25670{n:07d}",
        full_name=full_name or f"User {n}",
        referral_code=generate_referral_code(),
        balance=Decimal("0.00"),
        is_admin=is_admin,
        created_at=NOW,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    if Decimal(balance) > 0:
        apply_transaction(user.id, TransactionKind.DEPOSIT, balance, description="Opening balance", now=NOW)
        db.session.commit()
    return user


def create_catalog_package(price="50.00", daily_task_cap=3, duration_days=30, tasks=3,
                           reward="2.50", is_active=True, name="Starter"):
    """A package with `tasks` active tasks. Returns (package, [tasks])."""
    package = create_package(
        name=name,
        price=price,
        daily_task_cap=daily_task_cap,
        duration_days=duration_days,
        daily_return=Decimal(reward) * daily_task_cap,
        is_active=is_active,
    )
    created = [create_task(package.id, f"Task {i + 1}", reward) for i in range(tasks)]
    return package, created
