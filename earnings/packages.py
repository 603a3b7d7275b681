"""Package lifecycle: purchase, expiry and listing of user packages."""
import logging
from datetime import timedelta
from typing import List

from extensions import db
from models import Package, UserPackage, TransactionKind
from utils import utc_now
from earnings.errors import NotFound, PackageInactive
from earnings.ledger import apply_transaction, lock_user
from earnings.unit_of_work import atomic


logger = logging.getLogger(__name__)


def is_expired(user_package: UserPackage, now=None) -> bool:
    now = now or utc_now()
    return now >= user_package.expiry_date


def get_owned_user_package(user_id: int, user_package_id: int, lock=False) -> UserPackage:
    """Fetch a user package, treating another user's package as missing."""
    query = UserPackage.query.filter_by(id=user_package_id)
    if lock:
        query = query.with_for_update().populate_existing()
    user_package = query.first()
    if not user_package or user_package.user_id != user_id:
        raise NotFound(f"user package {user_package_id} not found")
    return user_package


@atomic()
def purchase(user_id: int, package_id: int, now=None) -> UserPackage:
    now = now or utc_now()

    lock_user(user_id)
    package = db.session.get(Package, package_id)
    if not package:
        raise NotFound(f"package {package_id} not found")
    if not package.is_active:
        raise PackageInactive(f"package {package.name} is not on sale")

    user_package = UserPackage(
        user_id=user_id,
        package_id=package.id,
        purchase_date=now,
        expiry_date=now + timedelta(days=package.duration_days),
        tasks_completed_today=0,
        last_task_date=None,
        total_earned=0,
        is_active=True,
    )
    db.session.add(user_package)
    db.session.flush()

    apply_transaction(
        user_id,
        TransactionKind.PACKAGE_PURCHASE,
        package.price,
        description=f"Purchased {package.name} package",
        reference=f"user_package:{user_package.id}",
        now=now,
    )

    logger.info(
        f"User {user_id} bought package {package.id} ({package.name}) "
        f"for {package.price}, expires {user_package.expiry_date.isoformat()}"
    )
    return user_package


def list_user_packages(user_id: int, active_only=False, now=None) -> List[UserPackage]:
    """Expired packages are kept so their historical earnings stay visible."""
    now = now or utc_now()
    query = UserPackage.query.filter_by(user_id=user_id)
    if active_only:
        query = query.filter(
            UserPackage.is_active.is_(True),
            UserPackage.expiry_date > now,
        )
    return query.order_by(UserPackage.purchase_date.desc(), UserPackage.id.desc()).all()


@atomic()
def expire_packages(now=None) -> int:
    """Flip is_active off on every package past its expiry. Returns the number updated."""
    now = now or utc_now()
    count = (
        UserPackage.query.filter(
            UserPackage.is_active.is_(True),
            UserPackage.expiry_date <= now,
        )
        .update({UserPackage.is_active: False}, synchronize_session=False)
    )
    if count:
        logger.info(f"Expired {count} user packages as of {now.isoformat()}")
    return count
