from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from earnings import EarningsError, EarningsService
from earnings.workflow import list_deposit_accounts, list_user_requests
from blueprints.responses import customer_error, server_error


bp = Blueprint("wallet", __name__, url_prefix="")


@bp.route("/api/deposits", methods=["POST"])
@login_required
def create_deposit():
    """Record a pending deposit. The balance moves only once an admin approves it."""
    data = request.get_json(silent=True) or {}
    try:
        deposit = EarningsService.request_deposit(
            current_user.id,
            data.get("amount"),
            proof_ref=data.get("proofRef"),
        )
    except EarningsError as e:
        return customer_error(e)
    except SQLAlchemyError as e:
        return server_error("creating deposit", e)

    current_app.logger.info(f"[DEPOSIT] user {current_user.id} requested deposit {deposit.id}")
    return jsonify({
        "status": "success",
        "message": "Deposit submitted for review",
        "deposit": deposit.to_dict(),
    }), 201


@bp.route("/api/withdrawals", methods=["POST"])
@login_required
def create_withdrawal():
    data = request.get_json(silent=True) or {}
    try:
        withdrawal = EarningsService.request_withdrawal(current_user.id, data.get("amount"))
    except EarningsError as e:
        return customer_error(e)
    except SQLAlchemyError as e:
        return server_error("creating withdrawal", e)

    current_app.logger.info(f"[WITHDRAW] user {current_user.id} requested withdrawal {withdrawal.id}")
    return jsonify({
        "status": "success",
        "message": "Withdrawal request submitted",
        "withdrawal": withdrawal.to_dict(),
    }), 201


@bp.route("/api/requests", methods=["GET"])
@login_required
def my_requests():
    requests_ = list_user_requests(current_user.id)
    return jsonify({
        "deposits": [d.to_dict() for d in requests_["deposits"]],
        "withdrawals": [w.to_dict() for w in requests_["withdrawals"]],
    }), 200


@bp.route("/api/deposit-accounts", methods=["GET"])
@login_required
def deposit_accounts():
    """Bank accounts to pay into before submitting a deposit."""
    return jsonify({
        "accounts": [a.to_dict() for a in list_deposit_accounts()],
    }), 200
