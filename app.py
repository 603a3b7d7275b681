import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from extensions import db, init_extensions, login_manager
from models import User
from utils import utc_now


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get("SECRET_KEY") and not app.config.get("TESTING"):
        raise ValueError("SECRET_KEY must be set in the environment")

    if not app.debug and not app.testing:
        app.config.update(
            SESSION_COOKIE_SECURE=True,
            SESSION_COOKIE_HTTPONLY=True,
            REMEMBER_COOKIE_SECURE=True,
            REMEMBER_COOKIE_HTTPONLY=True,
        )

    setup_logging(app)

    # ------------------------------------------------------------------------------------------
    # Local SQLite needs its folder
    # ------------------------------------------------------------------------------------------
    database_uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if database_uri.startswith("sqlite:///"):
        sqlite_dir = os.path.dirname(database_uri[len("sqlite:///"):])
        if sqlite_dir:
            os.makedirs(sqlite_dir, exist_ok=True)

    init_extensions(app)
    register_blueprints(app)
    register_error_handlers(app)

    # ------------------------------------------------------------------------------------------
    # Flask-Login hooks
    # ------------------------------------------------------------------------------------------
    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Unauthorized"}), 401

    @app.route("/healthz")
    def healthz():
        try:
            db.session.execute(text("SELECT 1"))
            database = "ok"
        except SQLAlchemyError as e:
            app.logger.error(f"Health check database error: {e}")
            db.session.rollback()
            database = "unavailable"
        status = 200 if database == "ok" else 503
        return jsonify({
            "status": "ok" if status == 200 else "degraded",
            "database": database,
            "timestamp": utc_now().isoformat(),
        }), status

    return app


def setup_logging(app):
    """File + console logging for app.logger"""
    log_dir = app.config.get("LOG_DIR", "logs")
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=1024 * 1024,
        backupCount=10,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    ))
    file_handler.setLevel(logging.INFO)

    app.logger.handlers.clear()
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)
    app.logger.propagate = False

    if app.debug:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.DEBUG)
        app.logger.addHandler(console_handler)

    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def register_blueprints(app):
    """Register all blueprints"""
    from blueprints.auth import bp as auth_bp
    from blueprints.profile import bp as profile_bp
    from blueprints.packages import bp as packages_bp
    from blueprints.wallet import bp as wallet_bp
    from blueprints.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(packages_bp)
    app.register_blueprint(wallet_bp)
    app.register_blueprint(admin_bp)


def register_error_handlers(app):
    @app.errorhandler(401)
    def unauthorized(e):
        return jsonify({"error": "Unauthorized"}), 401

    @app.errorhandler(403)
    def forbidden(e):
        return jsonify({"error": "Forbidden"}), 403

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        app.logger.error(f"Unhandled server error: {e}")
        return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    app = create_app()
    port = int(os.environ.get("PORT", 5000))
    app.run(debug=app.config.get("DEBUG", False), host="0.0.0.0", port=port)
