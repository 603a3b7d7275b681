import pytest

from app import create_app
from config import TestConfig
from extensions import db


@pytest.fixture
def app(tmp_path):
    class _TestConfig(TestConfig):
        LOG_DIR = str(tmp_path / "logs")

    app = create_app(_TestConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """An application context for calling the engine directly."""
    with app.app_context():
        yield app
        db.session.rollback()


@pytest.fixture
def client(app):
    return app.test_client()
