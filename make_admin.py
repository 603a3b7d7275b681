# make_admin.py
# Usage: python make_admin.py <phone> [password]
#   Promotes an existing user to admin, or creates one when the phone is unknown.

import sys

from sqlalchemy.exc import IntegrityError

from app import create_app
from extensions import db
from models import User
from utils import generate_referral_code, validate_phone


def _code_taken(code):
    return User.query.filter_by(referral_code=code).first() is not None


def make_admin(phone, password=None):
    user = User.query.filter_by(phone=phone).first()

    if user:
        print(f"Found user id={user.id}, phone={user.phone}. Promoting to admin...")
    else:
        if not password:
            raise SystemExit("No user with that phone; pass a password to create one.")
        print(f"No user with phone {phone} found, creating a new admin user.")
        try:
            user = User(
                phone=phone,
                full_name="Administrator",
                referral_code=generate_referral_code(exists=_code_taken),
                balance=0,
                is_admin=False,
            )
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            print(f"Created user id={user.id} with phone={phone}.")
        except IntegrityError as e:
            db.session.rollback()
            print("IntegrityError while creating user (maybe phone already exists):", e)
            user = User.query.filter_by(phone=phone).first()
            if not user:
                raise RuntimeError("Failed to create or find user after IntegrityError.") from e

    user.is_admin = True
    db.session.commit()
    print(f"User (id={user.id}, phone={phone}) is now admin.")
    return user


def main(argv):
    if len(argv) < 2 or not validate_phone(argv[1]):
        raise SystemExit("Usage: python make_admin.py <phone> [password]")
    phone = argv[1]
    password = argv[2] if len(argv) > 2 else None

    app = create_app()
    with app.app_context():
        make_admin(phone, password)


if __name__ == "__main__":
    main(sys.argv)
