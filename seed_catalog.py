# seed_catalog.py
# Usage: python seed_catalog.py [bank_name account_number account_holder]
#   Creates the starter package catalog with its daily tasks. Packages that
#   already exist (by name) are left alone, so the script can be re-run.
#   With three extra arguments it also registers a platform deposit account
#   unless one with the same account number exists.

import sys
from decimal import Decimal

from app import create_app
from models import DepositAccount, Package
from earnings.catalog import create_package, create_task
from earnings.workflow import add_deposit_account


CATALOG = [
    {
        "name": "Starter",
        "price": Decimal("50.00"),
        "daily_task_cap": 2,
        "daily_return": Decimal("2.00"),
        "duration_days": 30,
        "tasks": [
            ("Watch product video", Decimal("1.00")),
            ("Rate a product", Decimal("1.00")),
        ],
    },
    {
        "name": "Silver",
        "price": Decimal("200.00"),
        "daily_task_cap": 4,
        "daily_return": Decimal("9.00"),
        "duration_days": 45,
        "tasks": [
            ("Watch product video", Decimal("2.25")),
            ("Rate a product", Decimal("2.25")),
            ("Share a promotion", Decimal("2.25")),
            ("Complete a survey", Decimal("2.25")),
        ],
    },
    {
        "name": "Gold",
        "price": Decimal("500.00"),
        "daily_task_cap": 5,
        "daily_return": Decimal("25.00"),
        "duration_days": 60,
        "tasks": [
            ("Watch product video", Decimal("5.00")),
            ("Rate a product", Decimal("5.00")),
            ("Share a promotion", Decimal("5.00")),
            ("Complete a survey", Decimal("5.00")),
            ("Write a review", Decimal("5.00")),
        ],
    },
]


def seed_catalog(catalog=CATALOG):
    created = 0
    for entry in catalog:
        if Package.query.filter_by(name=entry["name"]).first():
            print(f"Package {entry['name']} already exists, skipping.")
            continue

        package = create_package(
            name=entry["name"],
            price=entry["price"],
            daily_task_cap=entry["daily_task_cap"],
            duration_days=entry["duration_days"],
            daily_return=entry["daily_return"],
        )
        for title, reward in entry["tasks"]:
            create_task(package.id, title, reward)
        created += 1
        print(f"Created package {package.name} with {len(entry['tasks'])} tasks.")
    return created


def seed_deposit_account(bank_name, account_number, account_holder):
    existing = DepositAccount.query.filter_by(account_number=account_number).first()
    if existing:
        print(f"Deposit account {account_number} already exists, skipping.")
        return existing
    account = add_deposit_account(bank_name, account_number, account_holder)
    print(f"Added deposit account {account.bank_name} {account.account_number}.")
    return account


def main(argv):
    if len(argv) not in (1, 4):
        raise SystemExit("Usage: python seed_catalog.py [bank_name account_number account_holder]")

    app = create_app()
    with app.app_context():
        seed_catalog()
        if len(argv) == 4:
            seed_deposit_account(*argv[1:])


if __name__ == "__main__":
    main(sys.argv)
