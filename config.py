# ==========================================================================================================
# -------------- Configuration file for the Earnings Flask application ------------------------------------
# ==========================================================================================================
import os
from decimal import Decimal
from dotenv import load_dotenv


if os.environ.get("FLASK_ENV") != "production":
    load_dotenv()

basedir = os.path.abspath(os.path.dirname(__file__))


def normalize_database_url(url):
    """Render/Heroku hand out postgres:// URLs; SQLAlchemy wants a driver name."""
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+pg8000://", 1)
    if url and url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+pg8000://", 1)
    return url


class Config:
    """Base configuration class for Flask app (used in all environments)."""

    SECRET_KEY = os.getenv("SECRET_KEY")

    FLASK_ENV = os.getenv("FLASK_ENV", "production")
    DEBUG = os.getenv("DEBUG", "False").lower() in ("true", "1", "t")
    TESTING = False

    _database_url = os.getenv("DATABASE_URL")
    if not _database_url:
        _database_url = f"sqlite:///{os.path.join(basedir, 'instance', 'earnings.db')}"

    SQLALCHEMY_DATABASE_URI = normalize_database_url(_database_url)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }
    if SQLALCHEMY_DATABASE_URI.startswith("postgresql"):
        SQLALCHEMY_ENGINE_OPTIONS.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 30,
        })

    # Engine settings
    REFERRAL_BONUS_AMOUNT = Decimal(os.getenv("REFERRAL_BONUS_AMOUNT", "10.00"))
    TRANSACTION_HISTORY_LIMIT = int(os.getenv("TRANSACTION_HISTORY_LIMIT", "50"))

    LOG_DIR = os.getenv("LOG_DIR", "logs")


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    REFERRAL_BONUS_AMOUNT = Decimal("10.00")
