from flask import current_app, jsonify

from extensions import db


def customer_error(e):
    """Plain message for the customer screens, e.g. "insufficient balance"."""
    return jsonify({"error": e.public_message}), e.status_code


def admin_error(e):
    """Raw error kind plus detail for the admin screens."""
    return jsonify(e.to_dict()), e.status_code


def server_error(action, e):
    db.session.rollback()
    current_app.logger.exception(f"Database error while {action}: {e}")
    return jsonify({"error": "Internal server error"}), 500
