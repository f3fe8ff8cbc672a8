import os
import tempfile

# Muss vor dem Import von main gesetzt sein
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="shiftboard-uploads-"))
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SEED_DATA"] = "false"
# fester Test-Key, damit das SQL-Backend Notizen wirklich verschlüsselt
os.environ.setdefault("DB_ENCRYPTION_KEY", "Z_-cGCmcCorOQYjwadUtOF_2Zeeu7U2a4pjW4EzKTGw=")

import pytest
from fastapi.testclient import TestClient

import config
from main import app
from dependencies import limiter
from storage import MemStorage, build_storage, seed_storage

BASE_URL = "http://localhost:8000"  # Host muss zur TrustedHostMiddleware passen


@pytest.fixture()
def storage():
    """Frischer, mit Startdaten befüllter In-Memory-Speicher pro Test.

    IDs nach dem Seeding: admin=1, employee=2, Aufgaben 3-5
    ("Stock coffee supplies" = 4), Nachricht 6.
    """
    s = MemStorage()
    seed_storage(s)
    return s


@pytest.fixture(params=["memory", "sql"])
def empty_storage(request, tmp_path):
    """Leerer Speicher, einmal je Backend (SQL auf einer temporären SQLite-Datei)."""
    if request.param == "memory":
        return MemStorage()
    return build_storage("sql", f"sqlite:///{tmp_path / 'test.db'}")


@pytest.fixture()
def make_client(storage):
    app.state.storage = storage
    limiter.reset()
    limiter.enabled = False
    clients = []

    def _make():
        c = TestClient(app, base_url=BASE_URL)
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.close()
    limiter.enabled = True


@pytest.fixture()
def client(make_client):
    """Nicht angemeldeter Client."""
    return make_client()


def _login(c, username, password):
    res = c.post("/api/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return c


@pytest.fixture()
def admin_client(make_client):
    return _login(make_client(), config.ADMIN_USERNAME, config.ADMIN_PASSWORD)


@pytest.fixture()
def employee_client(make_client):
    return _login(make_client(), config.EMPLOYEE_USERNAME, config.EMPLOYEE_PASSWORD)


@pytest.fixture()
def login_as(make_client):
    """Meldet einen beliebigen Benutzer mit eigenem Client an."""
    def _login_as(username, password):
        return _login(make_client(), username, password)
    return _login_as
