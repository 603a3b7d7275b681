import logging
import os
from logging.handlers import RotatingFileHandler

import pytest

from app import create_app
from config import Config, TestConfig, normalize_database_url
from logger import ledger_logger, setup_logger
from utils import generate_referral_code, to_money, validate_phone


class TestDatabaseUrl:

    def test_heroku_style_url_gets_driver(self):
        assert normalize_database_url("postgres://u:p@db:5432/app") == "postgresql+pg8000://u:p@db:5432/app"

    def test_plain_postgresql_url_gets_driver(self):
        assert normalize_database_url("postgresql://u:p@db/app") == "postgresql+pg8000://u:p@db/app"

    def test_other_urls_untouched(self):
        assert normalize_database_url("sqlite:///tmp/x.db") == "sqlite:///tmp/x.db"
        assert normalize_database_url("postgresql+pg8000://db/app") == "postgresql+pg8000://db/app"


class TestCreateApp:

    def test_secret_key_required_outside_testing(self, tmp_path):
        class NoSecret(Config):
            SECRET_KEY = None
            SQLALCHEMY_DATABASE_URI = "sqlite://"
            SQLALCHEMY_ENGINE_OPTIONS = {}
            LOG_DIR = str(tmp_path)

        with pytest.raises(ValueError):
            create_app(NoSecret)

    def test_testing_config(self, app):
        assert app.testing
        assert app.config["SQLALCHEMY_DATABASE_URI"] == TestConfig.SQLALCHEMY_DATABASE_URI


class TestHelpers:

    def test_to_money(self):
        assert str(to_money("10")) == "10.00"
        assert str(to_money(2.005)) == "2.01"
        assert to_money("nan") is None
        assert to_money(True) is None
        assert to_money("") is None

    def test_to_money_rejects_out_of_range(self):
        assert to_money("1e27") is None
        assert to_money("10000000000000000") is None
        assert to_money("-1e16") is None
        assert str(to_money("9999999999999999.99")) == "9999999999999999.99"

    def test_validate_phone(self):
        assert validate_phone("+256700000001")
        assert validate_phone("0789621299")
        assert not validate_phone("07896")
        assert not validate_phone(None)

    def test_referral_code_skips_taken_codes(self):
        taken = set()
        first = generate_referral_code(exists=taken.__contains__)
        taken.add(first)

        second = generate_referral_code(exists=taken.__contains__)

        assert first.startswith("REF") and len(first) == 9
        assert second != first


class TestLogging:

    def test_setup_logger_writes_rotating_file(self, tmp_path):
        logger = setup_logger("earnings.test_setup", log_dir=str(tmp_path))
        try:
            handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
            assert len(handlers) == 1
            assert handlers[0].baseFilename == os.path.join(str(tmp_path), "earnings.test_setup.log")

            logger.info("ledger check")
            handlers[0].flush()
            with open(handlers[0].baseFilename, encoding="utf-8") as f:
                assert "ledger check" in f.read()

            assert setup_logger("earnings.test_setup", log_dir=str(tmp_path)).handlers == logger.handlers
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_ledger_logger_is_the_global_logger(self):
        assert ledger_logger is logging.getLogger("ledger")
        assert any(isinstance(h, RotatingFileHandler) for h in ledger_logger.handlers)

    def test_app_logger_writes_under_log_dir(self, app, tmp_path):
        handlers = [h for h in app.logger.handlers if isinstance(h, RotatingFileHandler)]

        assert len(handlers) == 1
        assert handlers[0].baseFilename == os.path.join(str(tmp_path), "logs", "app.log")
