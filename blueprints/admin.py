#======================================================================================
#
# ADMIN API: dashboard figures, deposit and withdrawal review, ledger checks
#
#=======================================================================================
from functools import wraps

from flask import Blueprint, abort, current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from earnings import EarningsError, EarningsService
from earnings.ledger import verify_balance
from earnings.stats import dashboard_stats
from earnings.workflow import get_bank_account, list_pending_deposits, list_pending_withdrawals
from blueprints.responses import admin_error, server_error


def admin_required(f):
    """
    Decorator to restrict access to admin-only routes.
    - 401 when nobody is logged in.
    - 403 when the logged-in user is not an admin.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)
        if not current_user.is_admin:
            abort(403)
        return f(*args, **kwargs)

    return decorated_function


admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def _notes():
    data = request.get_json(silent=True) or {}
    if "amount" in data:
        # the recorded request amount is authoritative
        current_app.logger.warning(
            f"[ADMIN] admin {current_user.id} sent amount={data.get('amount')!r} on {request.path}; ignored"
        )
    return data.get("notes")


def _with_user(record):
    item = record.to_dict()
    item["userPhone"] = record.user.phone if record.user else None
    item["userName"] = record.user.full_name if record.user else None
    return item


@admin_bp.route("/data", methods=["GET"])
@admin_required
def admin_data():
    return jsonify(dashboard_stats()), 200

#======================================================================================
# DEPOSITS
#======================================================================================
@admin_bp.route("/deposits", methods=["GET"])
@admin_required
def pending_deposits():
    return jsonify({"deposits": [_with_user(d) for d in list_pending_deposits()]}), 200


@admin_bp.route("/deposits/<int:deposit_id>/approve", methods=["POST"])
@admin_required
def approve_deposit(deposit_id):
    notes = _notes()
    try:
        deposit = EarningsService.approve_deposit(deposit_id, admin_id=current_user.id, notes=notes)
    except EarningsError as e:
        return admin_error(e)
    except SQLAlchemyError as e:
        return server_error(f"approving deposit {deposit_id}", e)

    current_app.logger.info(f"[ADMIN] deposit {deposit_id} approved by {current_user.id}")
    return jsonify({"status": "success", "deposit": deposit.to_dict()}), 200


@admin_bp.route("/deposits/<int:deposit_id>/reject", methods=["POST"])
@admin_required
def reject_deposit(deposit_id):
    notes = _notes()
    try:
        deposit = EarningsService.reject_deposit(deposit_id, admin_id=current_user.id, notes=notes)
    except EarningsError as e:
        return admin_error(e)
    except SQLAlchemyError as e:
        return server_error(f"rejecting deposit {deposit_id}", e)

    current_app.logger.info(f"[ADMIN] deposit {deposit_id} rejected by {current_user.id}")
    return jsonify({"status": "success", "deposit": deposit.to_dict()}), 200

#======================================================================================
# WITHDRAWALS
#======================================================================================
@admin_bp.route("/withdrawals", methods=["GET"])
@admin_required
def pending_withdrawals():
    items = []
    for withdrawal in list_pending_withdrawals():
        item = _with_user(withdrawal)
        account = get_bank_account(withdrawal.user_id)
        item["bankAccount"] = account.to_dict() if account else None
        items.append(item)
    return jsonify({"withdrawals": items}), 200


@admin_bp.route("/withdrawals/<int:withdrawal_id>/approve", methods=["POST"])
@admin_required
def approve_withdrawal(withdrawal_id):
    notes = _notes()
    try:
        withdrawal = EarningsService.approve_withdrawal(withdrawal_id, admin_id=current_user.id, notes=notes)
    except EarningsError as e:
        return admin_error(e)
    except SQLAlchemyError as e:
        return server_error(f"approving withdrawal {withdrawal_id}", e)

    current_app.logger.info(f"[ADMIN] withdrawal {withdrawal_id} paid by {current_user.id}")
    return jsonify({"status": "success", "withdrawal": withdrawal.to_dict()}), 200


@admin_bp.route("/withdrawals/<int:withdrawal_id>/reject", methods=["POST"])
@admin_required
def reject_withdrawal(withdrawal_id):
    notes = _notes()
    try:
        withdrawal = EarningsService.reject_withdrawal(withdrawal_id, admin_id=current_user.id, notes=notes)
    except EarningsError as e:
        return admin_error(e)
    except SQLAlchemyError as e:
        return server_error(f"rejecting withdrawal {withdrawal_id}", e)

    current_app.logger.info(f"[ADMIN] withdrawal {withdrawal_id} rejected by {current_user.id}")
    return jsonify({"status": "success", "withdrawal": withdrawal.to_dict()}), 200

#======================================================================================
# LEDGER VERIFICATION
#======================================================================================
@admin_bp.route("/users/<int:user_id>/ledger", methods=["GET"])
@admin_required
def user_ledger(user_id):
    limit = request.args.get("limit", type=int)
    try:
        report = verify_balance(user_id)
        report["transactions"] = [
            t.to_dict() for t in EarningsService.list_transactions(user_id, limit=limit)
        ]
    except EarningsError as e:
        return admin_error(e)
    return jsonify(report), 200
