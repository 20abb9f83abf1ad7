from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from hundred_days import create_app
from hundred_days.context import build_context
from hundred_days.extensions import db
from hundred_days.models import Subscription, User


class FakeClock:
    """Callable clock the app reads through ``CLOCK``."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, now):
        self.now = now
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 18, 12, 0))


@pytest.fixture
def app(clock):
    app = create_app("testing")
    app.config["CLOCK"] = clock
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email="runner@example.com", password="correct-horse", **kwargs):
    user = User(email=email, display_name=kwargs.pop("display_name", "Runner"), **kwargs)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def make_pro(user, clock):
    subscription = Subscription(
        user_id=user.id,
        product_id="com.KhamariThompson.100Days.monthly",
        original_transaction_id=f"txn-{user.id}",
        status="active",
        purchased_at=clock() - timedelta(days=1),
        expires_at=clock() + timedelta(days=30),
    )
    db.session.add(subscription)
    db.session.commit()
    return subscription


@pytest.fixture
def user(app):
    return make_user()


@pytest.fixture
def pro_user(app, clock):
    user = make_user(email="pro@example.com", display_name="Pro Runner")
    make_pro(user, clock)
    return user


def headers_for(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user):
    return headers_for(user)


@pytest.fixture
def pro_headers(pro_user):
    return headers_for(pro_user)


@pytest.fixture
def ctx(app, user):
    return build_context(user)


@pytest.fixture
def pro_ctx(app, pro_user):
    return build_context(pro_user)


@pytest.fixture
def events(app):
    """Every event published during the test, in order."""
    received = []
    app.extensions["event_bus"].subscribe("*", received.append)
    return received
