import logging
from decimal import Decimal
from typing import Dict, List, Optional

from flask import current_app, has_app_context

from extensions import db
from models import User, Referral, TransactionKind
from utils import CENTS, generate_referral_code, money_str, to_money, utc_now, validate_phone
from earnings.errors import InvalidRegistration, NotFound, PhoneAlreadyRegistered
from earnings.ledger import apply_transaction, lock_user
from earnings.unit_of_work import atomic


logger = logging.getLogger(__name__)

REFERRAL_BONUS_AMOUNT = Decimal("10.00")
MIN_PASSWORD_LENGTH = 6


def referral_bonus_amount() -> Decimal:
    if has_app_context():
        configured = to_money(current_app.config.get("REFERRAL_BONUS_AMOUNT"))
        if configured is not None and configured > 0:
            return configured
    return REFERRAL_BONUS_AMOUNT


def _code_taken(code):
    return User.query.filter_by(referral_code=code).first() is not None


def issue_referral(referrer_id: int, referred_id: int, now=None) -> Referral:
    """
    Record that `referrer_id` brought in `referred_id` and credit the bonus.

    At most one Referral exists per referred user: a repeated call returns
    the existing row and credits nothing. Runs inside the caller's
    transaction and does not commit.
    """
    existing = Referral.query.filter_by(referred_id=referred_id).first()
    if existing:
        logger.info(f"Referral for user {referred_id} already recorded (id={existing.id})")
        return existing

    if referrer_id == referred_id:
        raise InvalidRegistration("cannot use your own referral code")

    referred = db.session.get(User, referred_id)
    if not referred:
        raise NotFound(f"user {referred_id} not found")
    lock_user(referrer_id)

    bonus = referral_bonus_amount()
    referral = Referral(
        referrer_id=referrer_id,
        referred_id=referred_id,
        bonus_amount=bonus,
        created_at=now or utc_now(),
    )
    db.session.add(referral)
    db.session.flush()

    apply_transaction(
        referrer_id,
        TransactionKind.REFERRAL_BONUS,
        bonus,
        description=f"Referral bonus for inviting {referred.full_name or referred.phone}",
        reference=str(referred_id),
        now=now,
    )
    logger.info(f"Referral bonus {bonus} credited to user {referrer_id} for user {referred_id}")
    return referral


@atomic(integrity_error=PhoneAlreadyRegistered, constraint="phone")
def register_with_referral(phone: str, password: str, full_name: str = "",
                           referral_code: Optional[str] = None, now=None) -> User:
    now = now or utc_now()
    phone = (phone or "").strip()
    full_name = (full_name or "").strip()
    code = (referral_code or "").strip().upper()

    if not validate_phone(phone):
        raise InvalidRegistration("invalid phone number")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidRegistration(f"password must be at least {MIN_PASSWORD_LENGTH} characters")

    if User.query.filter_by(phone=phone).first():
        raise PhoneAlreadyRegistered(f"phone {phone} already registered")

    referrer = None
    if code:
        referrer = User.query.filter_by(referral_code=code).first()
        if not referrer:
            logger.warning(f"Unknown referral code {code} used by {phone}, registering without referrer")

    user = User(
        phone=phone,
        full_name=full_name,
        balance=Decimal("0.00"),
        referral_code=generate_referral_code(exists=_code_taken),
        referred_by=referrer.id if referrer else None,
        is_admin=False,
        created_at=now,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.flush()

    if referrer:
        issue_referral(referrer.id, user.id, now=now)

    logger.info(f"Registered user {user.id} ({phone}) referred_by={user.referred_by}")
    return user


def list_referrals(user_id: int) -> List[Referral]:
    return (
        Referral.query.filter_by(referrer_id=user_id)
        .order_by(Referral.created_at.desc(), Referral.id.desc())
        .all()
    )


def referral_summary(user_id: int) -> Dict:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound(f"user {user_id} not found")

    referrals = list_referrals(user_id)
    total = sum((Decimal(r.bonus_amount) for r in referrals), Decimal("0")).quantize(CENTS)
    return {
        "referralCode": user.referral_code,
        "totalReferrals": len(referrals),
        "totalBonus": money_str(total),
        "bonusPerReferral": money_str(referral_bonus_amount()),
        "referrals": [r.to_dict() for r in referrals],
    }
