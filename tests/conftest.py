"""
Shared pytest fixtures for the Device Lab test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - upload_dir: Per-test upload folder
    - user / device / browser / pairing: Pre-created catalog rows
"""

import pytest

from devicelab import create_app
from devicelab.models import db as _db
from devicelab.models.catalog import Browser, BrowserDevice, Device
from devicelab.models.user import User


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def upload_dir(app, tmp_path):
    """Point UPLOAD_FOLDER at a per-test directory."""
    original = app.config["UPLOAD_FOLDER"]
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")
    yield tmp_path / "uploads"
    app.config["UPLOAD_FOLDER"] = original


# ── ORM factories (bypass the API to set arbitrary states) ───────────────


def make_user(email="tester@example.com", name="Tester"):
    user = User(email=email, name=name)
    _db.session.add(user)
    _db.session.commit()
    return user


def make_device(name="Samsung Galaxy S24", type="MOBILE", is_active=True, **kwargs):
    device = Device(name=name, type=type, is_active=is_active, **kwargs)
    _db.session.add(device)
    _db.session.commit()
    return device


def make_browser(name="Chrome", version="120", is_active=True, **kwargs):
    browser = Browser(name=name, version=version, is_active=is_active, **kwargs)
    _db.session.add(browser)
    _db.session.commit()
    return browser


def make_pairing(device, browser, is_active=True):
    pairing = BrowserDevice(device_id=device.id, browser_id=browser.id, is_active=is_active)
    _db.session.add(pairing)
    _db.session.commit()
    return pairing


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def user():
    return make_user()


@pytest.fixture()
def device():
    return make_device()


@pytest.fixture()
def browser():
    return make_browser()


@pytest.fixture()
def pairing(device, browser):
    return make_pairing(device, browser)
