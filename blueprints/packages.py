from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from earnings import EarningsError, EarningsService
from earnings.catalog import list_active_packages, list_available_tasks
from earnings.packages import list_user_packages
from blueprints.responses import customer_error, server_error
from utils import money_str, utc_now


bp = Blueprint("packages", __name__, url_prefix="")

#==========================================================================
# PACKAGE CATALOG & PURCHASE
#==========================================================================
@bp.route("/api/packages", methods=["GET"])
@login_required
def catalog():
    return jsonify({"packages": [p.to_dict() for p in list_active_packages()]}), 200


@bp.route("/api/packages/<int:package_id>/purchase", methods=["POST"])
@login_required
def purchase(package_id):
    user_id = current_user.id
    try:
        user_package = EarningsService.purchase_package(user_id, package_id)
        balance = EarningsService.get_balance(user_id)
    except EarningsError as e:
        current_app.logger.info(f"[PURCHASE] user {user_id} package {package_id} refused: {e.code}")
        return customer_error(e)
    except SQLAlchemyError as e:
        return server_error(f"purchasing package {package_id}", e)

    return jsonify({
        "status": "success",
        "message": "Package purchased successfully",
        "userPackage": user_package.to_dict(),
        "balance": money_str(balance),
    }), 201


@bp.route("/api/my-packages", methods=["GET"])
@login_required
def my_packages():
    active_only = request.args.get("active", "").lower() in ("1", "true", "yes")
    now = utc_now()
    owned = list_user_packages(current_user.id, active_only=active_only, now=now)
    return jsonify({"packages": [up.to_dict(now=now) for up in owned]}), 200

#==========================================================================
# DAILY TASKS
#==========================================================================
@bp.route("/api/my-packages/<int:user_package_id>/tasks", methods=["GET"])
@login_required
def package_tasks(user_package_id):
    try:
        tasks = list_available_tasks(current_user.id, user_package_id)
    except EarningsError as e:
        return customer_error(e)
    return jsonify({"tasks": tasks}), 200


@bp.route("/api/my-packages/<int:user_package_id>/tasks/<int:task_id>/complete", methods=["POST"])
@login_required
def complete_task(user_package_id, task_id):
    user_id = current_user.id
    try:
        reward = EarningsService.complete_task(user_id, task_id, user_package_id)
        balance = EarningsService.get_balance(user_id)
    except EarningsError as e:
        current_app.logger.info(f"[TASK] user {user_id} task {task_id} refused: {e.code}")
        return customer_error(e)
    except SQLAlchemyError as e:
        return server_error(f"completing task {task_id}", e)

    return jsonify({
        "status": "success",
        "reward": money_str(reward),
        "balance": money_str(balance),
    }), 200
