from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from earnings import EarningsError, EarningsService
from earnings.referral import referral_summary
from earnings.workflow import get_bank_account, save_bank_account
from blueprints.responses import customer_error, server_error
from utils import money_str


bp = Blueprint('profile', __name__, url_prefix="")

# ----------------------------------------------------------------------------------
# USER DATA FOR THE DASHBOARD
# ----------------------------------------------------------------------------------
@bp.route("/api/me", methods=["GET"])
@login_required
def me():
    return jsonify(current_user.to_dict()), 200


@bp.route("/api/balance", methods=["GET"])
@login_required
def balance():
    try:
        amount = EarningsService.get_balance(current_user.id)
    except EarningsError as e:
        return customer_error(e)
    return jsonify({"balance": money_str(amount)}), 200


@bp.route("/api/transactions", methods=["GET"])
@login_required
def transactions():
    limit = request.args.get("limit", type=int)
    try:
        entries = EarningsService.list_transactions(current_user.id, limit=limit)
    except EarningsError as e:
        return customer_error(e)
    return jsonify({"transactions": [t.to_dict() for t in entries]}), 200


@bp.route("/api/referrals", methods=["GET"])
@login_required
def referrals():
    try:
        return jsonify(referral_summary(current_user.id)), 200
    except EarningsError as e:
        return customer_error(e)

#=======================================================================================
#      BANK DETAILS FOR WITHDRAWALS
#=======================================================================================
@bp.route("/api/bank-account", methods=["GET"])
@login_required
def bank_account():
    account = get_bank_account(current_user.id)
    return jsonify({"bankAccount": account.to_dict() if account else None}), 200


@bp.route("/api/bank-account", methods=["PUT"])
@login_required
def update_bank_account():
    data = request.get_json(silent=True) or {}
    try:
        account = save_bank_account(
            current_user.id,
            bank_name=data.get("bankName"),
            account_number=data.get("accountNumber"),
            account_holder=data.get("accountHolder"),
        )
    except EarningsError as e:
        return customer_error(e)
    except SQLAlchemyError as e:
        return server_error("saving bank details", e)

    current_app.logger.info(f"User {current_user.id} updated bank details")
    return jsonify({"status": "success", "bankAccount": account.to_dict()}), 200
