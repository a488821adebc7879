import pytest

from medmonitor import create_app
from medmonitor.config import TestingConfig
from medmonitor.models import db
from medmonitor.services.inventory_store import seed_counters


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        seed_counters(initial=5)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()
