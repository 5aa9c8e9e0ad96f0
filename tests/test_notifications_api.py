"""End-to-end tests for the notification endpoints."""

from __future__ import annotations

import tempfile
import unittest
from datetime import date
from pathlib import Path

from fastapi.testclient import TestClient

from travel_orders.api import create_app
from travel_orders.config import Settings
from travel_orders.database import Database
from travel_orders.repositories import SQLiteUserRepository


class NotificationApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tempdir = tempfile.TemporaryDirectory()
        db_path = Path(self._tempdir.name) / "notifications.sqlite3"
        self.database = Database(db_path)
        self.database.initialize()
        users = SQLiteUserRepository(self.database)
        self.admin = users.create({"name": "Admin", "email": "admin@example.com", "password": "admin-password"})
        self.traveller = users.create(
            {"name": "Carla", "email": "carla@example.com", "password": "carla-password"}
        )
        app = create_app(
            database=self.database,
            settings=Settings(database_path=db_path),
            today=lambda: date(2026, 3, 1),
        )
        self.client = TestClient(app)
        token = self.client.post(
            "/authenticate",
            json={"email": "admin@example.com", "password": "admin-password"},
        ).json()["data"]["token"]
        self.headers = {"Authorization": f"Bearer {token}"}

    def tearDown(self) -> None:
        self.client.close()
        self._tempdir.cleanup()

    def _notify(self, user_id: int, message: str) -> dict:
        response = self.client.post(
            "/v1/notifications",
            json={"user_id": user_id, "message": message},
            headers=self.headers,
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def test_notification_lifecycle(self) -> None:
        created = self._notify(self.traveller.id, "Your trip to Paris was approved")
        self.assertEqual(created["user_id"], self.traveller.id)
        self.assertEqual(created["message"], "Your trip to Paris was approved")

        fetched = self.client.get(f"/v1/notifications/{created['id']}", headers=self.headers)
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json()["message"], "Notification retrieved successfully")
        self.assertEqual(fetched.json()["data"], created)

        listing = self.client.get("/v1/notifications", headers=self.headers)
        self.assertEqual(listing.json()["message"], "Notifications retrieved successfully")
        self.assertEqual([item["id"] for item in listing.json()["data"]], [created["id"]])

        deleted = self.client.delete(f"/v1/notifications/{created['id']}", headers=self.headers)
        self.assertEqual(
            deleted.json(),
            {
                "success": True,
                "message": "Notification deleted successfully",
                "data": None,
                "status_code": 200,
            },
        )

        missing = self.client.get(f"/v1/notifications/{created['id']}", headers=self.headers)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["message"], "Notification not found")

    def test_notifications_for_one_user(self) -> None:
        mine = self._notify(self.traveller.id, "Boarding starts at 10:00")
        self._notify(self.admin.id, "Weekly report is ready")

        response = self.client.post(
            "/v1/showUserNotifications",
            json={"user_id": self.traveller.id},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "User notifications retrieved successfully")
        self.assertEqual(response.json()["data"], [mine])

    def test_create_notification_validates_fields(self) -> None:
        empty = self.client.post("/v1/notifications", json={}, headers=self.headers)
        self.assertEqual(empty.status_code, 422)
        self.assertEqual(
            empty.json()["errors"],
            {
                "user_id": ["The user_id field is required."],
                "message": ["The message field is required."],
            },
        )

        unknown = self.client.post(
            "/v1/notifications",
            json={"user_id": self.traveller.id + 100, "message": "Hello"},
            headers=self.headers,
        )
        self.assertEqual(unknown.status_code, 422)
        self.assertEqual(unknown.json()["errors"], {"user_id": ["The selected user_id is invalid."]})

    def test_show_user_notifications_rejects_unknown_user(self) -> None:
        response = self.client.post(
            "/v1/showUserNotifications",
            json={"user_id": 404},
            headers=self.headers,
        )

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["errors"], {"user_id": ["The selected user_id is invalid."]})

    def test_huge_identifiers(self) -> None:
        huge = 10**20

        missing = self.client.get(f"/v1/notifications/{huge}", headers=self.headers)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["message"], "Notification not found")

        by_user = self.client.post(
            "/v1/showUserNotifications",
            json={"user_id": huge},
            headers=self.headers,
        )
        self.assertEqual(by_user.status_code, 422)
        self.assertEqual(by_user.json()["errors"], {"user_id": ["The selected user_id is invalid."]})

    def test_notifications_require_token(self) -> None:
        response = self.client.get("/v1/notifications")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Unauthenticated")


if __name__ == "__main__":
    unittest.main()
