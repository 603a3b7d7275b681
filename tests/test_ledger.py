"""
Tests for the ledger store.

Covers:
1. Signed balance changes per transaction kind
2. Rejections (non-positive amount, overdraft, unknown user)
3. Transaction history ordering and limits
4. Balance verification against the ledger sum
"""
from decimal import Decimal

import pytest

from extensions import db
from models import Transaction, TransactionKind, User
from earnings.errors import InsufficientFunds, InvalidAmount, NotFound
from earnings.ledger import (
    MAX_HISTORY_LIMIT,
    apply_transaction,
    get_balance,
    ledger_sum,
    list_transactions,
    verify_balance,
)
from tests.factories import NOW, create_user


class TestTransactionKinds:
    """The kind decides the sign; amounts are always stored positive."""

    def test_credit_kinds(self):
        for kind in (TransactionKind.DEPOSIT, TransactionKind.TASK_REWARD, TransactionKind.REFERRAL_BONUS):
            assert kind.sign == 1
            assert kind.is_credit

    def test_debit_kinds(self):
        for kind in (TransactionKind.WITHDRAWAL, TransactionKind.PACKAGE_PURCHASE):
            assert kind.sign == -1
            assert not kind.is_credit

    def test_every_kind_has_a_label(self):
        assert TransactionKind.PACKAGE_PURCHASE.label == "Package purchase"
        assert all(kind.label for kind in TransactionKind)


class TestApplyTransaction:

    def test_credit_increases_balance(self, ctx):
        user = create_user()

        txn = apply_transaction(user.id, TransactionKind.DEPOSIT, Decimal("100.00"), "Deposit", now=NOW)
        db.session.commit()

        assert get_balance(user.id) == Decimal("100.00")
        assert txn.amount == Decimal("100.00")
        assert txn.balance_after == Decimal("100.00")
        assert txn.created_at == NOW

    def test_debit_decreases_balance(self, ctx):
        user = create_user(balance="100.00")

        txn = apply_transaction(user.id, TransactionKind.WITHDRAWAL, "40.25", "Payout")
        db.session.commit()

        assert get_balance(user.id) == Decimal("59.75")
        assert txn.amount == Decimal("40.25")
        assert txn.signed_amount == Decimal("-40.25")
        assert txn.balance_after == Decimal("59.75")

    def test_debit_to_exactly_zero_is_allowed(self, ctx):
        user = create_user(balance="30.00")

        apply_transaction(user.id, TransactionKind.PACKAGE_PURCHASE, "30.00")
        db.session.commit()

        assert get_balance(user.id) == Decimal("0.00")

    def test_overdraft_rejected_without_changes(self, ctx):
        user = create_user(balance="30.00")
        entries_before = Transaction.query.filter_by(user_id=user.id).count()

        with pytest.raises(InsufficientFunds):
            apply_transaction(user.id, TransactionKind.PACKAGE_PURCHASE, "50.00")
        db.session.rollback()

        assert get_balance(user.id) == Decimal("30.00")
        assert Transaction.query.filter_by(user_id=user.id).count() == entries_before

    @pytest.mark.parametrize("amount", ["0", "-5.00", "abc", None])
    def test_non_positive_or_invalid_amount_rejected(self, ctx, amount):
        user = create_user()

        with pytest.raises(InvalidAmount):
            apply_transaction(user.id, TransactionKind.DEPOSIT, amount)

    def test_unknown_user(self, ctx):
        with pytest.raises(NotFound):
            apply_transaction(9999, TransactionKind.DEPOSIT, "10.00")

    def test_kind_accepts_raw_value(self, ctx):
        user = create_user()

        txn = apply_transaction(user.id, "task_reward", "1.50")
        db.session.commit()

        assert txn.kind is TransactionKind.TASK_REWARD
        assert get_balance(user.id) == Decimal("1.50")

    def test_description_defaults_to_label(self, ctx):
        user = create_user()

        txn = apply_transaction(user.id, TransactionKind.REFERRAL_BONUS, "10.00")

        assert txn.description == "Referral bonus"


class TestBalanceQueries:

    def test_get_balance_unknown_user(self, ctx):
        with pytest.raises(NotFound):
            get_balance(424242)

    def test_history_newest_first(self, ctx):
        user = create_user()
        first = apply_transaction(user.id, TransactionKind.DEPOSIT, "10.00", now=NOW)
        second = apply_transaction(user.id, TransactionKind.DEPOSIT, "20.00", now=NOW)
        db.session.commit()

        history = list_transactions(user.id)

        assert [t.id for t in history] == [second.id, first.id]

    def test_history_limit(self, ctx):
        user = create_user()
        for _ in range(5):
            apply_transaction(user.id, TransactionKind.TASK_REWARD, "1.00", now=NOW)
        db.session.commit()

        assert len(list_transactions(user.id, limit=2)) == 2
        # non-positive limits fall back to the configured default
        assert len(list_transactions(user.id, limit=0)) == 5
        assert len(list_transactions(user.id, limit=-3)) == 5

    def test_history_limit_is_capped(self, ctx, monkeypatch):
        user = create_user()
        for _ in range(4):
            apply_transaction(user.id, TransactionKind.TASK_REWARD, "1.00", now=NOW)
        db.session.commit()
        monkeypatch.setattr("earnings.ledger.MAX_HISTORY_LIMIT", 3)

        assert len(list_transactions(user.id, limit=1000)) == 3

    def test_default_cap_value(self):
        assert MAX_HISTORY_LIMIT == 500

    def test_history_unknown_user(self, ctx):
        with pytest.raises(NotFound):
            list_transactions(777)


class TestVerifyBalance:

    def test_balance_equals_ledger_sum(self, ctx):
        user = create_user(balance="100.00")
        apply_transaction(user.id, TransactionKind.PACKAGE_PURCHASE, "50.00")
        apply_transaction(user.id, TransactionKind.TASK_REWARD, "2.50")
        apply_transaction(user.id, TransactionKind.WITHDRAWAL, "12.50")
        db.session.commit()

        report = verify_balance(user.id)

        assert ledger_sum(user.id) == Decimal("40.00")
        assert report["consistent"] is True
        assert report["balance"] == "40.00"
        assert report["ledgerSum"] == "40.00"
        assert report["entries"] == 4

    def test_detects_balance_written_outside_the_ledger(self, ctx):
        user = create_user(balance="100.00")
        db.session.get(User, user.id).balance = Decimal("150.00")
        db.session.commit()

        report = verify_balance(user.id)

        assert report["consistent"] is False
        assert report["ledgerSum"] == "100.00"
