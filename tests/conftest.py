"""
Pytest fixtures for the admin API.

Every test gets a fresh app on in-memory SQLite with Redis disabled (events
are dispatched in-process) and mail suppressed. The default admin and
representative are seeded; the sample catalog is not.
"""
from decimal import Decimal

import pytest
from flask import g

from shop_admin.app import create_app
from shop_admin.config import Config
from shop_admin.extensions import db
from shop_admin.models import Category, Product
from shop_admin.realtime import realtime_events
from shop_admin.services import seed_service

ADMIN = ("admin", "admin123")
REP = ("temsilci", "temsilci123")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    DB_SYNC = True
    SEED_ON_STARTUP = False
    REDIS_URL = ""
    SOCKETIO_ASYNC_MODE = "threading"
    ADMIN_USERNAME, ADMIN_PASSWORD = ADMIN
    REP_USERNAME, REP_PASSWORD = REP
    REP_FULL_NAME = "Musteri Temsilcisi"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "shop@test.local"
    ORDER_NOTIFY_EMAIL = "owner@test.local"
    ORDER_NUMBER_PREFIX = "ZYT"


@pytest.fixture
def app():
    app = create_app(TestConfig)

    # requests reuse the fixture's app context, so g outlives a single request
    @app.teardown_request
    def _forget_user(exc):
        g.pop("_login_user", None)

    with app.app_context():
        seed_service.seed_admin()
        seed_service.seed_representative()
        seed_service.seed_settings()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def login(client, username, password):
    r = client.post("/api/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()["accessToken"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client):
    return login(client, *ADMIN)


@pytest.fixture
def rep_token(client):
    return login(client, *REP)


@pytest.fixture
def admin_headers(admin_token):
    return bearer(admin_token)


@pytest.fixture
def rep_headers(rep_token):
    return bearer(rep_token)


@pytest.fixture
def events():
    """Collect (event, data) tuples emitted during the test."""
    received = []
    unsubscribe = realtime_events.on_event(lambda event, data: received.append((event, data)))
    yield received
    unsubscribe()


@pytest.fixture
def category(app):
    c = Category(name="Sizma Zeytinyagi", slug="sizma-zeytinyagi", display_order=1)
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture
def make_product(app):
    def _make(sku="OIL-1L", stock=10, price="100.00", variants=None, **kwargs):
        product = Product(
            name=kwargs.pop("name", f"Product {sku}"),
            slug=kwargs.pop("slug", sku.lower()),
            sku=sku,
            price=Decimal(price),
            stock=stock if not variants else sum(v["stock"] for v in variants),
            has_variants=bool(variants),
            variants=variants or [],
            **kwargs,
        )
        db.session.add(product)
        db.session.commit()
        return product

    return _make
