"""
Pytest configuration and fixtures for Yelp Camp tests.
"""

import pytest

from yelp_camp.app import create_app
from yelp_camp.auth import register_user
from yelp_camp.context import get_runtime
from yelp_camp.models import Campground, Review, db

USER_PASSWORD = "correct horse battery staple"


@pytest.fixture
def make_app(tmp_path):
    """Factory building isolated apps, each on its own SQLite file."""
    created = []

    def _make(**overrides):
        config = {
            "testing": True,
            "app_env": "test",
            "db_url": f"sqlite:///{tmp_path / f'test_{len(created)}.db'}",
            "secret": "test-secret-key",
            "log_level": "WARNING",
        }
        config.update(overrides)
        test_app = create_app(config)
        created.append(test_app)
        return test_app

    yield _make

    for test_app in created:
        with test_app.app_context():
            db.session.remove()
            db.drop_all()
        get_runtime(test_app).close()


@pytest.fixture
def test_app(make_app):
    """Default test application."""
    return make_app()


@pytest.fixture
def client(test_app):  # pylint: disable=redefined-outer-name
    """Create a test client for the Flask application."""
    return test_app.test_client()


@pytest.fixture
def create_user(test_app):  # pylint: disable=redefined-outer-name
    """Helper fixture registering accounts directly in the database."""

    def _create(username="camper", email=None, password=USER_PASSWORD):
        with test_app.app_context():
            user = register_user(username, email or f"{username}@example.com", password)
            return {"id": user.id, "username": username, "password": password}

    return _create


@pytest.fixture
def user(create_user):  # pylint: disable=redefined-outer-name
    """A registered account."""
    return create_user()


@pytest.fixture
def login():
    """Helper fixture logging a client in through the login form."""

    def _login(test_client, account):
        return test_client.post(
            "/login",
            data={"username": account["username"], "password": account["password"]},
        )

    return _login


@pytest.fixture
def auth_client(client, user, login):  # pylint: disable=redefined-outer-name
    """Test client logged in as ``user``."""
    login(client, user)
    return client


@pytest.fixture
def campground(test_app, user):  # pylint: disable=redefined-outer-name
    """A campground written by ``user``; returns its id."""
    with test_app.app_context():
        record = Campground(
            title="Misty Hollow",
            price=18.0,
            description="Shady sites by the creek",
            location="Bend, Oregon",
            image="https://images.example.com/misty.jpg",
            author_id=user["id"],
        )
        db.session.add(record)
        db.session.commit()
        return record.id


@pytest.fixture
def review(test_app, user, campground):  # pylint: disable=redefined-outer-name
    """A review of ``campground`` written by ``user``; returns its id."""
    with test_app.app_context():
        record = Review(
            body="Great stars at night",
            rating=5,
            author_id=user["id"],
            campground_id=campground,
        )
        db.session.add(record)
        db.session.commit()
        return record.id
