import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from postboard.infra.db import init_db, make_engine, make_sessionmaker

SECRET = "test-secret"

VALID_SIGNUP = {"username": "abc", "email": "a@b.com", "password": "Passw0rd"}

# Smallest valid PNG header is enough: uploads are stored, not decoded.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


@pytest.fixture(autouse=True)
def secret_key(monkeypatch):
    monkeypatch.setenv("POSTBOARD_SECRET_KEY", SECRET)
    return SECRET


@pytest.fixture()
def db_session(tmp_path: Path):
    """SQLAlchemy session on a throwaway SQLite file."""
    engine = make_engine(f"sqlite:///{tmp_path / 'unit.db'}")
    init_db(engine)
    SessionLocal = make_sessionmaker(engine)
    with SessionLocal() as db:
        yield db
    engine.dispose()


@pytest.fixture()
def app_module(tmp_path: Path, monkeypatch):
    """Reload the app against a temporary data directory."""
    monkeypatch.setenv("POSTBOARD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("POSTBOARD_UPLOADS_DIR", raising=False)
    monkeypatch.delenv("POSTBOARD_DATABASE_URL", raising=False)

    import postboard.app as app_module
    importlib.reload(app_module)
    yield app_module
    app_module.engine.dispose()


@pytest.fixture()
def client(app_module):
    return TestClient(app_module.app)


@pytest.fixture()
def signup(client):
    """POST /signup without following the redirect."""
    def _signup(**overrides):
        data = {**VALID_SIGNUP, **overrides}
        return client.post("/signup", data=data, follow_redirects=False)

    return _signup
