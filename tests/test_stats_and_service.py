from datetime import timedelta
from decimal import Decimal

import pytest

from models import TransactionKind, User
from earnings import EarningsService
from earnings.errors import DailyCapReached, InsufficientFunds
from earnings.ledger import ledger_sum
from earnings.stats import dashboard_stats
from tests.factories import NOW, create_catalog_package, create_user


class TestDashboardStats:

    def test_counts_and_totals(self, ctx):
        create_user(is_admin=True)
        alice = create_user()
        bob = create_user()
        package, _ = create_catalog_package(price="50.00", duration_days=1)

        deposit = EarningsService.request_deposit(alice.id, "100.00")
        EarningsService.approve_deposit(deposit.id)
        EarningsService.request_deposit(bob.id, "20.00")
        EarningsService.purchase_package(alice.id, package.id, now=NOW)
        withdrawal = EarningsService.request_withdrawal(alice.id, "30.00")
        EarningsService.approve_withdrawal(withdrawal.id)
        EarningsService.request_withdrawal(alice.id, "5.00")

        stats = dashboard_stats(now=NOW)

        assert stats["totalUsers"] == 2
        assert stats["newUsersToday"] == 2
        assert stats["totalDeposits"] == "100.00"
        assert stats["totalWithdrawals"] == "30.00"
        assert stats["totalRevenue"] == "70.00"
        assert stats["activePackages"] == 1
        assert stats["pendingDeposits"] == 1
        assert stats["pendingWithdrawals"] == 1

        later = dashboard_stats(now=NOW + timedelta(days=2))
        assert later["activePackages"] == 0
        assert later["newUsersToday"] == 0


class TestEarningsService:
    """The facade runs the whole customer journey with explicit user ids."""

    def test_customer_journey_keeps_ledger_consistent(self, ctx):
        referrer = create_user()
        user = EarningsService.register_with_referral(
            "+256709990001", "secret123", "Grace", referral_code=referrer.referral_code, now=NOW
        )
        package, tasks = create_catalog_package(price="50.00", daily_task_cap=1, tasks=2, reward="4.00")

        with pytest.raises(InsufficientFunds):
            EarningsService.purchase_package(user.id, package.id, now=NOW)

        deposit = EarningsService.request_deposit(user.id, "60.00", now=NOW)
        EarningsService.approve_deposit(deposit.id, now=NOW)
        user_package = EarningsService.purchase_package(user.id, package.id, now=NOW)

        assert EarningsService.complete_task(user.id, tasks[0].id, user_package.id, now=NOW) == Decimal("4.00")
        with pytest.raises(DailyCapReached):
            EarningsService.complete_task(user.id, tasks[1].id, user_package.id, now=NOW)

        withdrawal = EarningsService.request_withdrawal(user.id, "14.00", now=NOW)
        EarningsService.approve_withdrawal(withdrawal.id, now=NOW)

        assert EarningsService.get_balance(user.id) == Decimal("0.00")
        kinds = [t.kind for t in EarningsService.list_transactions(user.id)]
        assert sorted(k.value for k in kinds) == sorted([
            TransactionKind.DEPOSIT.value,
            TransactionKind.PACKAGE_PURCHASE.value,
            TransactionKind.TASK_REWARD.value,
            TransactionKind.WITHDRAWAL.value,
        ])

        for account in User.query.all():
            assert EarningsService.get_balance(account.id) == ledger_sum(account.id)
        assert EarningsService.get_balance(referrer.id) == Decimal("10.00")

    def test_rejections_through_the_facade(self, ctx):
        user = create_user(balance="10.00")
        deposit = EarningsService.request_deposit(user.id, "50.00")
        EarningsService.reject_deposit(deposit.id, notes="duplicate")
        withdrawal = EarningsService.request_withdrawal(user.id, "10.00")
        EarningsService.reject_withdrawal(withdrawal.id)

        assert EarningsService.get_balance(user.id) == Decimal("10.00")
