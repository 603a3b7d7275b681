import re
import secrets
import string
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


CENTS = Decimal("0.01")
# Numeric(18, 2) holds 16 integer digits
MAX_AMOUNT = Decimal("1e16")
REFERRAL_CODE_PREFIX = "REF"
REFERRAL_CODE_LENGTH = 6


def utc_now():
    """Naive UTC timestamp; every DateTime column in models.py stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def validate_phone(phone):
    return re.match(r'^\+?\d{9,15}$', phone or "") is not None


def to_money(value):
    """
    Convert user input (str, int, float, Decimal) to a Decimal rounded to cents.
    Returns None when the value cannot be read as a number or does not fit a
    Numeric(18, 2) column.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            return None
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if abs(amount) >= MAX_AMOUNT:
        return None
    return amount


def generate_referral_code(exists=None, attempts=10):
    """
    Build a referral code like REFX7K2QP.
    `exists` is a callable used to skip codes already taken.
    """
    chars = string.ascii_uppercase + string.digits
    code = None
    for _ in range(attempts):
        code = REFERRAL_CODE_PREFIX + ''.join(secrets.choice(chars) for _ in range(REFERRAL_CODE_LENGTH))
        if exists is None or not exists(code):
            return code
    return code


def money_str(value):
    """Serialize a Decimal for JSON responses without float rounding."""
    if value is None:
        return "0.00"
    return str(Decimal(value).quantize(CENTS))
