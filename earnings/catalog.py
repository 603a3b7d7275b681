import logging
from typing import Dict, List, Optional

from extensions import db
from models import Package, Task, UserTaskCompletion
from utils import to_money, utc_now
from earnings.errors import InvalidAmount, NotFound
from earnings.packages import get_owned_user_package, is_expired
from earnings.unit_of_work import atomic


logger = logging.getLogger(__name__)


@atomic()
def create_package(name: str, price, daily_task_cap: int, duration_days: int,
                   daily_return=0, is_active=True) -> Package:
    value = to_money(price)
    if value is None or value <= 0:
        raise InvalidAmount(f"package price must be positive, got {price!r}")
    if daily_task_cap is None or int(daily_task_cap) < 0:
        raise InvalidAmount("daily task cap cannot be negative")
    if duration_days is None or int(duration_days) <= 0:
        raise InvalidAmount("duration must be at least one day")

    package = Package(
        name=name.strip(),
        price=value,
        daily_task_cap=int(daily_task_cap),
        daily_return=to_money(daily_return) or 0,
        duration_days=int(duration_days),
        is_active=is_active,
    )
    db.session.add(package)
    db.session.flush()
    logger.info(f"Created package {package.id} ({package.name}) at {value}")
    return package


@atomic()
def create_task(package_id: int, title: str, reward_amount,
                description: Optional[str] = None, is_active=True) -> Task:
    if not db.session.get(Package, package_id):
        raise NotFound(f"package {package_id} not found")

    reward = to_money(reward_amount)
    if reward is None or reward <= 0:
        raise InvalidAmount(f"task reward must be positive, got {reward_amount!r}")

    task = Task(
        package_id=package_id,
        title=title.strip(),
        description=description,
        reward_amount=reward,
        is_active=is_active,
    )
    db.session.add(task)
    db.session.flush()
    return task


def list_active_packages() -> List[Package]:
    return Package.query.filter_by(is_active=True).order_by(Package.price.asc(), Package.id.asc()).all()


def list_available_tasks(user_id: int, user_package_id: int, now=None) -> List[Dict]:
    """Active tasks of the package behind a user package, flagged when already done today."""
    now = now or utc_now()
    user_package = get_owned_user_package(user_id, user_package_id)

    tasks = (
        Task.query.filter_by(package_id=user_package.package_id, is_active=True)
        .order_by(Task.id.asc())
        .all()
    )
    done_today = {
        task_id for (task_id,) in db.session.query(UserTaskCompletion.task_id).filter(
            UserTaskCompletion.user_package_id == user_package.id,
            UserTaskCompletion.completed_on == now.date(),
        )
    }
    expired = not user_package.is_active or is_expired(user_package, now)

    result = []
    for task in tasks:
        item = task.to_dict()
        item["completedToday"] = task.id in done_today
        item["available"] = not expired and task.id not in done_today
        result.append(item)
    return result
