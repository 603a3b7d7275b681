# models.py - Flask-SQLAlchemy models for the earnings engine
import enum
from flask_login import UserMixin
from sqlalchemy import UniqueConstraint, Index, CheckConstraint, text
from werkzeug.security import check_password_hash, generate_password_hash
from extensions import db
from utils import utc_now, money_str


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

# ===========================================================
# ENUM DEFINITIONS
# ===========================================================

class TransactionKind(enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PACKAGE_PURCHASE = "package_purchase"
    TASK_REWARD = "task_reward"
    REFERRAL_BONUS = "referral_bonus"

    @property
    def sign(self):
        return TRANSACTION_KIND_TABLE[self][0]

    @property
    def label(self):
        return TRANSACTION_KIND_TABLE[self][1]

    @property
    def is_credit(self):
        return self.sign > 0


# kind -> (sign applied to the balance, display label)
TRANSACTION_KIND_TABLE = {
    TransactionKind.DEPOSIT: (1, "Deposit"),
    TransactionKind.WITHDRAWAL: (-1, "Withdrawal"),
    TransactionKind.PACKAGE_PURCHASE: (-1, "Package purchase"),
    TransactionKind.TASK_REWARD: (1, "Task reward"),
    TransactionKind.REFERRAL_BONUS: (1, "Referral bonus"),
}


class DepositStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WithdrawalStatus(enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"


# ===========================================================
# BASE MIXIN FOR COMMON FIELDS
# ===========================================================

class BaseMixin:
    """Provides a created_at timestamp (naive UTC) to inheriting models."""
    created_at = db.Column(db.DateTime, default=utc_now, nullable=False)

# ===========================================================
# USER MODELS
# ===========================================================

class User(UserMixin, db.Model, BaseMixin):
    """Core user entity. The balance column is only ever written by earnings.ledger."""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(20), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=False, default="")
    password_hash = db.Column(db.String(255), nullable=False)
    balance = db.Column(db.Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    referral_code = db.Column(db.String(20), unique=True, nullable=False)
    referred_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    referrer = db.relationship('User', remote_side=[id], foreign_keys=[referred_by])
    packages = db.relationship('UserPackage', back_populates='user', lazy='dynamic')

    __table_args__ = (
        CheckConstraint('balance >= 0', name='ck_users_balance_non_negative'),
    )

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "phone": self.phone,
            "fullName": self.full_name,
            "balance": money_str(self.balance),
            "referralCode": self.referral_code,
            "referredBy": self.referred_by,
            "isAdmin": self.is_admin,
            "memberSince": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.id} {self.phone}>"


class CustomerBankAccount(db.Model):
    """Where a customer wants withdrawals paid; shown to admins, never touches the ledger."""
    __tablename__ = 'customer_bank_accounts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    bank_name = db.Column(db.String(120), nullable=False)
    account_number = db.Column(db.String(64), nullable=False)
    account_holder = db.Column(db.String(150), nullable=False)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)

    def to_dict(self):
        return {
            "bankName": self.bank_name,
            "accountNumber": self.account_number,
            "accountHolder": self.account_holder,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class DepositAccount(db.Model, BaseMixin):
    """Platform bank account customers pay deposits into; listed on the wallet screen."""
    __tablename__ = 'deposit_accounts'

    id = db.Column(db.Integer, primary_key=True)
    bank_name = db.Column(db.String(120), nullable=False)
    account_number = db.Column(db.String(64), nullable=False)
    account_holder = db.Column(db.String(150), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {
            "id": self.id,
            "bankName": self.bank_name,
            "accountNumber": self.account_number,
            "accountHolder": self.account_holder,
        }


# ===========================================================
# PACKAGE CATALOG & USER PACKAGES
# ===========================================================

class Package(db.Model, BaseMixin):
    __tablename__ = 'packages'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Numeric(18, 2), nullable=False)
    daily_task_cap = db.Column(db.Integer, nullable=False)
    daily_return = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    duration_days = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    tasks = db.relationship('Task', back_populates='package', lazy='dynamic')

    __table_args__ = (
        CheckConstraint('price > 0', name='ck_packages_price_positive'),
        CheckConstraint('daily_task_cap >= 0', name='ck_packages_task_cap'),
        CheckConstraint('duration_days > 0', name='ck_packages_duration'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": money_str(self.price),
            "dailyTaskCap": self.daily_task_cap,
            "dailyReturn": money_str(self.daily_return),
            "durationDays": self.duration_days,
            "isActive": self.is_active,
        }


class UserPackage(db.Model):
    """One purchase of a catalog package, with its own expiry and daily task counter."""
    __tablename__ = 'user_packages'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    package_id = db.Column(db.Integer, db.ForeignKey('packages.id'), nullable=False, index=True)
    purchase_date = db.Column(db.DateTime, nullable=False, default=utc_now)
    expiry_date = db.Column(db.DateTime, nullable=False)
    tasks_completed_today = db.Column(db.Integer, nullable=False, default=0)
    last_task_date = db.Column(db.Date, nullable=True)
    total_earned = db.Column(db.Numeric(18, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    user = db.relationship('User', back_populates='packages')
    package = db.relationship('Package')

    __table_args__ = (
        Index('idx_user_packages_user_active', 'user_id', 'is_active'),
        Index('idx_user_packages_expiry', 'expiry_date'),
    )

    def to_dict(self, now=None):
        now = now or utc_now()
        return {
            "id": self.id,
            "packageId": self.package_id,
            "name": self.package.name if self.package else None,
            "purchaseDate": self.purchase_date.isoformat(),
            "expiryDate": self.expiry_date.isoformat(),
            "tasksCompletedToday": self.tasks_completed_today if self.last_task_date == now.date() else 0,
            "dailyTaskCap": self.package.daily_task_cap if self.package else None,
            "lastTaskDate": self.last_task_date.isoformat() if self.last_task_date else None,
            "totalEarned": money_str(self.total_earned),
            "isActive": self.is_active and now < self.expiry_date,
            "daysRemaining": max((self.expiry_date - now).days, 0),
        }

# ===========================================================
# TASKS
# ===========================================================

class Task(db.Model, BaseMixin):
    __tablename__ = 'tasks'

    id = db.Column(db.Integer, primary_key=True)
    package_id = db.Column(db.Integer, db.ForeignKey('packages.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    reward_amount = db.Column(db.Numeric(18, 2), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    package = db.relationship('Package', back_populates='tasks')

    __table_args__ = (
        CheckConstraint('reward_amount > 0', name='ck_tasks_reward_positive'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "packageId": self.package_id,
            "title": self.title,
            "description": self.description,
            "rewardAmount": money_str(self.reward_amount),
            "isActive": self.is_active,
        }


class UserTaskCompletion(db.Model):
    """Append-only. At most one row per (task, user package, UTC day)."""
    __tablename__ = 'user_task_completions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    task_id = db.Column(db.Integer, db.ForeignKey('tasks.id'), nullable=False)
    user_package_id = db.Column(db.Integer, db.ForeignKey('user_packages.id', ondelete='CASCADE'), nullable=False)
    completed_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    completed_on = db.Column(db.Date, nullable=False)
    reward_earned = db.Column(db.Numeric(18, 2), nullable=False)

    task = db.relationship('Task')

    __table_args__ = (
        UniqueConstraint('task_id', 'user_package_id', 'completed_on', name='uq_task_completion_per_day'),
    )

# ===========================================================
# LEDGER
# ===========================================================

class Transaction(db.Model, BaseMixin):
    """Append-only ledger entry. `amount` is positive; the kind decides the sign."""
    __tablename__ = 'transactions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    kind = db.Column(
        db.Enum(TransactionKind, name='transaction_kind', values_callable=_enum_values),
        nullable=False,
    )
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    balance_after = db.Column(db.Numeric(18, 2), nullable=False)
    description = db.Column(db.String(255), nullable=False, default="")
    reference = db.Column(db.String(120), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
        Index('idx_transactions_user_created', 'user_id', 'created_at'),
    )

    @property
    def signed_amount(self):
        return self.amount * self.kind.sign

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.kind.value,
            "label": self.kind.label,
            "amount": money_str(self.amount),
            "signedAmount": money_str(self.signed_amount),
            "balanceAfter": money_str(self.balance_after),
            "description": self.description,
            "reference": self.reference,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

# ===========================================================
# DEPOSITS & WITHDRAWALS
# ===========================================================

class Deposit(db.Model, BaseMixin):
    __tablename__ = 'deposits'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    proof_ref = db.Column(db.String(255), nullable=True)
    status = db.Column(
        db.Enum(DepositStatus, name='deposit_status', values_callable=_enum_values),
        nullable=False,
        default=DepositStatus.PENDING,
    )
    admin_notes = db.Column(db.Text)
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    processed_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_deposits_amount_positive'),
        Index('idx_deposits_status', 'status'),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": money_str(self.amount),
            "proofRef": self.proof_ref,
            "status": self.status.value,
            "adminNotes": self.admin_notes,
            "processedBy": self.processed_by,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class Withdrawal(db.Model, BaseMixin):
    __tablename__ = 'withdrawals'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Numeric(18, 2), nullable=False)
    status = db.Column(
        db.Enum(WithdrawalStatus, name='withdrawal_status', values_callable=_enum_values),
        nullable=False,
        default=WithdrawalStatus.PENDING,
    )
    admin_notes = db.Column(db.Text)
    processed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    processed_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', foreign_keys=[user_id])

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_withdrawals_amount_positive'),
        # one pending withdrawal per user, enforced by the database as well
        Index(
            'uq_withdrawals_one_pending_per_user', 'user_id',
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": money_str(self.amount),
            "status": self.status.value,
            "adminNotes": self.admin_notes,
            "processedBy": self.processed_by,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

# ===========================================================
# REFERRALS
# ===========================================================

class Referral(db.Model, BaseMixin):
    __tablename__ = 'referrals'

    id = db.Column(db.Integer, primary_key=True)
    referrer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    referred_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    bonus_amount = db.Column(db.Numeric(18, 2), nullable=False)

    referrer = db.relationship('User', foreign_keys=[referrer_id])
    referred = db.relationship('User', foreign_keys=[referred_id])

    def to_dict(self):
        return {
            "id": self.id,
            "referrerId": self.referrer_id,
            "referredId": self.referred_id,
            "referredName": self.referred.full_name if self.referred else None,
            "referredPhone": self.referred.phone if self.referred else None,
            "bonusAmount": money_str(self.bonus_amount),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
