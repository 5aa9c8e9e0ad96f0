from __future__ import annotations

import sys
from datetime import date
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from travel_orders.api import create_app
from travel_orders.config import Settings
from travel_orders.database import Database
from travel_orders.repositories import SQLiteUserRepository

TODAY = date(2026, 3, 1)
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "travel_orders.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(database_path=tmp_path / "travel_orders.sqlite3")


@pytest.fixture()
def admin(database: Database):
    users = SQLiteUserRepository(database)
    return users.create({"name": "Admin", "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture()
def client(database: Database, settings: Settings, today: date):
    app = create_app(database=database, settings=settings, today=lambda: today)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers(client: TestClient, admin) -> Dict[str, str]:
    response = client.post("/authenticate", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_credentials() -> Dict[str, str]:
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
