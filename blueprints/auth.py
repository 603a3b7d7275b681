from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError

from models import User
from earnings import EarningsError, EarningsService
from blueprints.responses import customer_error, server_error


bp = Blueprint("auth", __name__, url_prefix="")

#===========================================================================
#      SIGN UP ROUTE.
#==============================================================================
@bp.route("/api/register", methods=["POST"])
def register():
    """
    Create a new user. A valid referral code credits the referrer's bonus
    in the same database transaction; an unknown code is ignored.
    """
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Invalid or missing JSON body"}), 400

    try:
        user = EarningsService.register_with_referral(
            phone=data.get("phone", ""),
            password=data.get("password", ""),
            full_name=data.get("fullName", ""),
            referral_code=data.get("referralCode"),
        )
    except EarningsError as e:
        return customer_error(e)
    except SQLAlchemyError as e:
        return server_error("registering user", e)

    login_user(user)
    current_app.logger.info(f"[REGISTER] user {user.id} signed up, referred_by={user.referred_by}")
    return jsonify({
        "status": "success",
        "message": "Signup successful",
        "user": user.to_dict(),
    }), 201

#===========================================================================
#      LOGIN / LOGOUT
#==============================================================================
@bp.route("/api/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    phone = (data.get("phone") or "").strip()
    password = data.get("password") or ""

    if not phone or not password:
        return jsonify({"error": "Phone and password are required"}), 400

    user = User.query.filter_by(phone=phone).first()
    if not user or not user.check_password(password):
        current_app.logger.info(f"[LOGIN] failed login for {phone}")
        return jsonify({"error": "Invalid phone or password"}), 401

    login_user(user, remember=bool(data.get("remember")))
    return jsonify({"status": "success", "user": user.to_dict()}), 200


@bp.route("/api/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"status": "success"}), 200


@bp.route("/session", methods=["GET"])
def session_info():
    if not current_user.is_authenticated:
        return jsonify({"authenticated": False, "user": None}), 200
    return jsonify({"authenticated": True, "user": current_user.to_dict()}), 200
