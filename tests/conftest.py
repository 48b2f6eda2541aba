"""Pytest configuration and fixtures for the consumer registry tests."""

import os
import tempfile
from unittest import mock

import pytest

# Set test environment variables BEFORE any imports from src
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_USERNAME"] = "seed_admin"
os.environ["TEST_CONSUMER_KEY"] = ""

# Create a temp file for the database
_temp_db_fd, _temp_db_path = tempfile.mkstemp(suffix=".db")
os.close(_temp_db_fd)
os.environ["DATABASE_PATH"] = _temp_db_path


@pytest.fixture(scope="function", autouse=True)
def setup_database():
    """Set up a fresh database for each test."""
    from src.models import ConsumerRecord, User, db

    MODELS = [User, ConsumerRecord]

    # Reinitialize db to our test path
    db.init(_temp_db_path)

    # Connect and create tables
    if not db.is_closed():
        db.close()
    db.connect()

    # Drop and recreate tables for each test
    db.drop_tables(MODELS, safe=True)
    db.create_tables(MODELS)

    yield db

    # Cleanup
    db.drop_tables(MODELS, safe=True)
    if not db.is_closed():
        db.close()


@pytest.fixture(scope="function")
def database(setup_database):
    """Alias for setup_database fixture."""
    return setup_database


@pytest.fixture(scope="function")
def client(setup_database):
    """Create a Flask test client with fresh database."""
    from src.server import app

    app.config["TESTING"] = True

    with app.test_client() as test_client, app.app_context():
        yield test_client


@pytest.fixture
def test_user(setup_database):
    """Create a regular (non-admin) user."""
    from src.models import User

    user = User(username="fixture_testuser")
    user.set_password("testpass")
    user.save()
    return user


@pytest.fixture
def admin_user(setup_database):
    """Create an administrator."""
    from src.models import User

    user = User(username="fixture_admin", is_admin=True)
    user.set_password("adminpass")
    user.save()
    return user


@pytest.fixture
def store(setup_database):
    """Database-backed consumer store."""
    from src.models import ConsumerStore

    return ConsumerStore()


@pytest.fixture
def test_consumer(store):
    """Register a consumer with a callback URL."""
    from src.consumer import ConsumerBuilder, SignatureMethod

    consumer = (
        ConsumerBuilder("fixture-consumer")
        .name("Fixture Consumer")
        .secret("fixture-secret")
        .callback("http://localhost:8080/callback")
        .signature_method(SignatureMethod.HMAC_SHA1)
        .build()
    )
    store.add(consumer)
    return consumer


@pytest.fixture
def authenticated_client(client, test_user):
    """Flask test client logged in as a regular user."""
    with client.session_transaction() as sess:
        sess["user_id"] = test_user.id
    return client


@pytest.fixture
def admin_client(client, admin_user):
    """Flask test client logged in as an administrator."""
    with client.session_transaction() as sess:
        sess["user_id"] = admin_user.id
    return client


@pytest.fixture
def allow_all():
    """Authorization checker double granting the administer capability."""
    checker = mock.Mock()
    checker.has_administer_capability.return_value = True
    return checker


@pytest.fixture
def deny_all():
    """Authorization checker double refusing the administer capability."""
    checker = mock.Mock()
    checker.has_administer_capability.return_value = False
    return checker


@pytest.fixture
def empty_store():
    """Consumer store double with no registered consumers."""
    consumer_store = mock.Mock()
    consumer_store.lookup.return_value = None
    return consumer_store
