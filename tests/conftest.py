from __future__ import annotations

import sys
from pathlib import Path

import pytest
from werkzeug.security import generate_password_hash

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from ucrif import create_app
from ucrif.core.config import Config
from ucrif.core.extensions import db
from ucrif.core.models import Membership, Organization, User, seed_demo_data
from ucrif.core.paths import RecordContext, TenantScope, UserScope


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    RECORD_SCOPE = "tenant"


class UserScopeConfig(TestConfig):
    RECORD_SCOPE = "user"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        seed_demo_data(db.session)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def user_scope_app():
    app = create_app(UserScopeConfig)
    with app.app_context():
        db.create_all()
        seed_demo_data(db.session)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_admin(client):
    def _login():
        return client.post(
            "/auth/login",
            data={"email": "admin@ucrif.local", "password": "admin123"},
        )

    return _login


@pytest.fixture
def login_operator(client):
    def _login():
        return client.post(
            "/auth/login",
            data={"email": "operario@ucrif.local", "password": "operario123"},
        )

    return _login


@pytest.fixture
def ctx(app):
    admin = User.query.filter_by(email="admin@ucrif.local").first()
    return RecordContext(tenant_id="UCRIF", user_id=str(admin.id), scope=TenantScope())


@pytest.fixture
def anonymous_ctx(app):
    return RecordContext(tenant_id="UCRIF", user_id=None, scope=TenantScope())


@pytest.fixture
def user_scope_ctx(app):
    admin = User.query.filter_by(email="admin@ucrif.local").first()
    return RecordContext(tenant_id="UCRIF", user_id=str(admin.id), scope=UserScope())


@pytest.fixture
def second_org_login(app, client):
    with app.app_context():
        org2 = Organization(name="Org Two", code="ORG2")
        user2 = User(
            email="org2@example.com",
            full_name="User Org2",
            password_hash=generate_password_hash("org2pass"),
        )
        db.session.add_all([org2, user2])
        db.session.flush()
        db.session.add(Membership(user_id=user2.id, org_id=org2.id, role="admin"))
        db.session.commit()

    def _login():
        return client.post(
            "/auth/login",
            data={"email": "org2@example.com", "password": "org2pass"},
        )

    return _login
