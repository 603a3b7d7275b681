"""
Tests for task accrual.

Covers:
1. Reward credit and counter updates
2. Once per task, user package and day
3. Daily cap and the next-day reset
4. Expiry, eligibility and ownership checks
5. Losing a concurrent completion race
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from extensions import db
from models import Transaction, TransactionKind, UserPackage, UserTaskCompletion
from earnings.catalog import create_task
from earnings.errors import (
    DailyCapReached,
    DuplicateCompletion,
    NotFound,
    PackageExpired,
    TaskNotEligible,
)
from earnings.ledger import get_balance, ledger_sum
from earnings.packages import purchase
from earnings.tasks import complete_task
from tests.factories import NOW, create_catalog_package, create_user


@pytest.fixture
def owned(ctx):
    """A user who bought a 3-task, cap-2 package and has 0.00 left."""
    user = create_user(balance="50.00")
    package, tasks = create_catalog_package(price="50.00", daily_task_cap=2, tasks=3, reward="2.50")
    user_package = purchase(user.id, package.id, now=NOW)
    return user, package, tasks, user_package


class TestCompleteTask:

    def test_completion_credits_reward(self, owned):
        user, _, tasks, user_package = owned

        reward = complete_task(user.id, tasks[0].id, user_package.id, now=NOW)

        assert reward == Decimal("2.50")
        assert get_balance(user.id) == Decimal("2.50")

        refreshed = db.session.get(UserPackage, user_package.id)
        assert refreshed.tasks_completed_today == 1
        assert refreshed.last_task_date == NOW.date()
        assert refreshed.total_earned == Decimal("2.50")

        completion = UserTaskCompletion.query.one()
        assert completion.completed_on == NOW.date()
        assert completion.reward_earned == Decimal("2.50")

        txn = Transaction.query.filter_by(user_id=user.id, kind=TransactionKind.TASK_REWARD).one()
        assert txn.reference == f"completion:{completion.id}"

    def test_same_task_twice_same_day(self, owned):
        user, _, tasks, user_package = owned
        complete_task(user.id, tasks[0].id, user_package.id, now=NOW)

        with pytest.raises(DuplicateCompletion):
            complete_task(user.id, tasks[0].id, user_package.id, now=NOW + timedelta(hours=3))

        assert get_balance(user.id) == Decimal("2.50")
        assert UserTaskCompletion.query.count() == 1

    def test_daily_cap_then_next_day_reset(self, owned):
        user, _, tasks, user_package = owned
        complete_task(user.id, tasks[0].id, user_package.id, now=NOW)
        complete_task(user.id, tasks[1].id, user_package.id, now=NOW)

        with pytest.raises(DailyCapReached):
            complete_task(user.id, tasks[2].id, user_package.id, now=NOW)
        assert get_balance(user.id) == Decimal("5.00")

        tomorrow = NOW + timedelta(days=1)
        complete_task(user.id, tasks[2].id, user_package.id, now=tomorrow)

        refreshed = db.session.get(UserPackage, user_package.id)
        assert refreshed.tasks_completed_today == 1
        assert refreshed.last_task_date == tomorrow.date()
        assert get_balance(user.id) == Decimal("7.50")

    def test_same_task_allowed_again_next_day(self, owned):
        user, _, tasks, user_package = owned
        complete_task(user.id, tasks[0].id, user_package.id, now=NOW)

        complete_task(user.id, tasks[0].id, user_package.id, now=NOW + timedelta(days=1))

        assert UserTaskCompletion.query.count() == 2

    def test_expired_package_refused_under_cap(self, owned):
        user, _, tasks, user_package = owned
        after_expiry = user_package.expiry_date + timedelta(seconds=1)

        with pytest.raises(PackageExpired):
            complete_task(user.id, tasks[0].id, user_package.id, now=after_expiry)

        with pytest.raises(PackageExpired):
            complete_task(user.id, tasks[0].id, user_package.id, now=user_package.expiry_date)
        assert get_balance(user.id) == Decimal("0.00")

    def test_deactivated_user_package_counts_as_expired(self, owned):
        user, _, tasks, user_package = owned
        db.session.get(UserPackage, user_package.id).is_active = False
        db.session.commit()

        with pytest.raises(PackageExpired):
            complete_task(user.id, tasks[0].id, user_package.id, now=NOW)

    def test_task_from_another_package(self, owned):
        user, _, _, user_package = owned
        _, other_tasks = create_catalog_package(price="10.00", name="Other", tasks=1)

        with pytest.raises(TaskNotEligible):
            complete_task(user.id, other_tasks[0].id, user_package.id, now=NOW)

    def test_inactive_task(self, owned):
        user, package, _, user_package = owned
        retired = create_task(package.id, "Retired", "1.00", is_active=False)

        with pytest.raises(TaskNotEligible):
            complete_task(user.id, retired.id, user_package.id, now=NOW)

    def test_someone_elses_user_package(self, owned):
        _, _, tasks, user_package = owned
        intruder = create_user()

        with pytest.raises(NotFound):
            complete_task(intruder.id, tasks[0].id, user_package.id, now=NOW)

    def test_unknown_ids(self, owned):
        user, _, tasks, user_package = owned

        with pytest.raises(NotFound):
            complete_task(user.id, 9999, user_package.id, now=NOW)
        with pytest.raises(NotFound):
            complete_task(user.id, tasks[0].id, 9999, now=NOW)
        with pytest.raises(NotFound):
            complete_task(9999, tasks[0].id, user_package.id, now=NOW)

    def test_zero_cap_package_never_accrues(self, ctx):
        user = create_user(balance="20.00")
        package, tasks = create_catalog_package(price="20.00", daily_task_cap=0, tasks=1)
        user_package = purchase(user.id, package.id, now=NOW)

        with pytest.raises(DailyCapReached):
            complete_task(user.id, tasks[0].id, user_package.id, now=NOW)


class TestCompletionRace:
    """The unique constraint decides when the duplicate pre-check is bypassed."""

    def test_losing_insert_reports_duplicate_without_credit(self, owned, monkeypatch):
        user, _, tasks, user_package = owned
        complete_task(user.id, tasks[0].id, user_package.id, now=NOW)

        # simulate a concurrent request that passed the pre-check before the first commit
        monkeypatch.setattr("earnings.tasks._find_completion", lambda *args: None)

        with pytest.raises(DuplicateCompletion):
            complete_task(user.id, tasks[0].id, user_package.id, now=NOW)

        assert get_balance(user.id) == Decimal("2.50")
        assert UserTaskCompletion.query.count() == 1
        assert db.session.get(UserPackage, user_package.id).tasks_completed_today == 1


class TestLedgerInvariant:

    def test_balance_matches_ledger_after_mixed_activity(self, owned):
        user, _, tasks, user_package = owned
        complete_task(user.id, tasks[0].id, user_package.id, now=NOW)
        with pytest.raises(DuplicateCompletion):
            complete_task(user.id, tasks[0].id, user_package.id, now=NOW)
        complete_task(user.id, tasks[1].id, user_package.id, now=NOW)
        with pytest.raises(DailyCapReached):
            complete_task(user.id, tasks[2].id, user_package.id, now=NOW)

        assert get_balance(user.id) == ledger_sum(user.id) == Decimal("5.00")
