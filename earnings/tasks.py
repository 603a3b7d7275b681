"""
Task accrual: credit a task reward at most once per task, user package and
UTC day, and never more than the package's daily task cap.
"""
import logging
from decimal import Decimal

from extensions import db
from models import Task, UserTaskCompletion, TransactionKind
from utils import CENTS, utc_now
from earnings.errors import (
    DailyCapReached,
    DuplicateCompletion,
    NotFound,
    PackageExpired,
    TaskNotEligible,
)
from earnings.ledger import apply_transaction, lock_user
from earnings.packages import get_owned_user_package, is_expired
from earnings.unit_of_work import atomic


logger = logging.getLogger(__name__)


def _find_completion(task_id, user_package_id, day):
    return UserTaskCompletion.query.filter_by(
        task_id=task_id,
        user_package_id=user_package_id,
        completed_on=day,
    ).first()


def effective_count(user_package, today) -> int:
    """The stored counter only counts for the day it was last written."""
    if user_package.last_task_date != today:
        return 0
    return user_package.tasks_completed_today or 0


@atomic(integrity_error=DuplicateCompletion)
def complete_task(user_id: int, task_id: int, user_package_id: int, now=None) -> Decimal:
    now = now or utc_now()
    today = now.date()

    lock_user(user_id)
    task = db.session.get(Task, task_id)
    if not task:
        raise NotFound(f"task {task_id} not found")
    user_package = get_owned_user_package(user_id, user_package_id, lock=True)

    if not user_package.is_active or is_expired(user_package, now):
        raise PackageExpired(f"user package {user_package.id} expired at {user_package.expiry_date.isoformat()}")

    if task.package_id != user_package.package_id or not task.is_active:
        raise TaskNotEligible(f"task {task.id} does not belong to package {user_package.package_id}")

    if _find_completion(task.id, user_package.id, today):
        raise DuplicateCompletion(f"task {task.id} already completed on {today.isoformat()}")

    count = effective_count(user_package, today)
    cap = user_package.package.daily_task_cap
    if count >= cap:
        raise DailyCapReached(f"{count} of {cap} tasks already completed today")

    reward = Decimal(task.reward_amount).quantize(CENTS)

    # the unique constraint settles concurrent completions of the same task
    completion = UserTaskCompletion(
        user_id=user_id,
        task_id=task.id,
        user_package_id=user_package.id,
        completed_at=now,
        completed_on=today,
        reward_earned=reward,
    )
    db.session.add(completion)
    db.session.flush()

    apply_transaction(
        user_id,
        TransactionKind.TASK_REWARD,
        reward,
        description=f"Task reward: {task.title}",
        reference=f"completion:{completion.id}",
        now=now,
    )

    user_package.tasks_completed_today = count + 1
    user_package.last_task_date = today
    user_package.total_earned = (Decimal(user_package.total_earned or 0) + reward).quantize(CENTS)

    logger.info(
        f"User {user_id} completed task {task.id} on user package {user_package.id} "
        f"({count + 1}/{cap}) reward={reward}"
    )
    return reward
