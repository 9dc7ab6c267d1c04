import unittest
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from backend.app import create_app
from backend.db import InMemoryParticipantRepository
from backend.dependencies import get_lifecycle
from backend.lifecycle import ParticipantLifecycle
from shared.graduation_steps import GRADUATION_STEP_IDS

INTAKE = {
    "first_name": "Jordan",
    "last_name": "Reyes",
    "gender": "Male",
    "released_from": "County Jail",
    "release_date": "2026-01-15",
    "date_of_birth": "03/10/1990",
    "participant_number": "A12345",
    "phone_number": "555-0100",
}

ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Name": "Pat Admin", "X-Actor-Role": "admin"}
MENTOR = {"X-Actor-Id": "mentor-1", "X-Actor-Name": "Mo Mentor", "X-Actor-Role": "mentor"}


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.repository = InMemoryParticipantRepository()
        self.lifecycle = ParticipantLifecycle(
            self.repository,
            clock=lambda: datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc),
        )
        self.lifecycle.start()
        app = create_app()
        app.dependency_overrides[get_lifecycle] = lambda: self.lifecycle
        self.client = TestClient(app)

    def tearDown(self):
        self.lifecycle.stop()

    def _create(self) -> str:
        response = self.client.post("/api/participants", json=INTAKE)
        self.assertEqual(response.status_code, 201)
        return response.json()["participant"]["id"]

    def test_create_and_get_participant(self):
        participant_id = self._create()
        response = self.client.get(f"/api/participants/{participant_id}")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["graduation_progress"], 0)
        participant = payload["participant"]
        self.assertEqual(participant["status"], "pending_bridge")
        self.assertEqual(participant["firstName"], "Jordan")
        self.assertEqual(len(participant["history"]), 1)

    def test_invalid_intake_returns_400(self):
        response = self.client.post(
            "/api/participants", json={**INTAKE, "phone_number": None}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "InvalidInputError")
        self.assertEqual(self.repository.documents, {})

    def test_unknown_participant_returns_404(self):
        self.assertEqual(self.client.get("/api/participants/nope").status_code, 404)
        response = self.client.post(
            "/api/participants/nope/notes", json={"content": "hi"}, headers=MENTOR
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "ParticipantNotFoundError")

    def test_status_change_and_listing(self):
        participant_id = self._create()
        response = self.client.post(
            f"/api/participants/{participant_id}/status",
            json={"status": "bridge_contacted", "reason": "Reached"},
            headers=MENTOR,
        )
        self.assertEqual(response.status_code, 200)
        history = response.json()["participant"]["history"]
        self.assertEqual(history[-1]["description"], "Status changed to Bridge Contacted")
        self.assertEqual(history[-1]["createdByName"], "Mo Mentor")

        listing = self.client.get(
            "/api/participants", params={"status": "bridge_contacted"}
        ).json()
        self.assertEqual(listing["count"], 1)
        empty = self.client.get("/api/participants", params={"status": "graduated"}).json()
        self.assertEqual(empty["count"], 0)

    def test_graduation_flow(self):
        participant_id = self._create()
        not_ready = self.client.post(
            f"/api/participants/{participant_id}/graduation-approval",
            json={"notes": "Proud"},
            headers=ADMIN,
        )
        self.assertEqual(not_ready.status_code, 409)

        check_in = self.client.post(
            f"/api/participants/{participant_id}/monthly-check-in",
            json={
                "check_in_date": "2026-03-02",
                "accomplishments_since_last_check_in": "Job",
                "challenges_faced": "None",
                "notable_changes": "Housing",
                "completed_steps": GRADUATION_STEP_IDS,
            },
            headers=MENTOR,
        )
        self.assertEqual(check_in.status_code, 200)
        self.assertEqual(check_in.json()["graduation_progress"], 100)

        forbidden = self.client.post(
            f"/api/participants/{participant_id}/graduation-approval",
            json={},
            headers=MENTOR,
        )
        self.assertEqual(forbidden.status_code, 403)

        approved = self.client.post(
            f"/api/participants/{participant_id}/graduation-approval",
            json={"notes": "Proud"},
            headers=ADMIN,
        )
        self.assertEqual(approved.status_code, 200)
        participant = approved.json()["participant"]
        self.assertEqual(participant["status"], "graduated")
        self.assertEqual(participant["graduationApproval"]["approvedBy"], "admin-1")

    def test_delete_requires_admin(self):
        participant_id = self._create()
        denied = self.client.delete(f"/api/participants/{participant_id}", headers=MENTOR)
        self.assertEqual(denied.status_code, 403)
        deleted = self.client.delete(f"/api/participants/{participant_id}", headers=ADMIN)
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(deleted.json()["status"], "deleted")
        self.assertEqual(self.client.get(f"/api/participants/{participant_id}").status_code, 404)

    def test_duplicates_lookup(self):
        participant_id = self._create()
        response = self.client.get(
            "/api/participants/duplicates", params={"phone": " 555-0100 "}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            [p["id"] for p in response.json()["participants"]], [participant_id]
        )

    def test_mentor_assignment_and_initial_contact(self):
        participant_id = self._create()
        moved = self.client.post(
            f"/api/participants/{participant_id}/mentorship", headers=MENTOR
        )
        self.assertEqual(moved.json()["participant"]["status"], "pending_mentor")
        assigned = self.client.post(
            f"/api/participants/{participant_id}/assignments/mentor",
            json={"mentor_id": "mentor-1"},
            headers=ADMIN,
        )
        self.assertEqual(
            assigned.json()["participant"]["status"], "initial_contact_pending"
        )
        contact = self.client.post(
            f"/api/participants/{participant_id}/initial-contact",
            json={"contact_date": "2026-03-02", "contact_outcome": "successful"},
            headers=MENTOR,
        )
        self.assertEqual(contact.status_code, 200)
        self.assertEqual(contact.json()["participant"]["status"], "active_mentorship")

    def test_graduation_steps_catalog(self):
        response = self.client.get("/api/graduation-steps")
        self.assertEqual(response.status_code, 200)
        steps = response.json()["steps"]
        self.assertEqual(len(steps), 10)
        self.assertEqual(steps[0]["id"], "step_1")


class UnconfiguredStoreApiTests(unittest.TestCase):
    def test_writes_return_503(self):
        lifecycle = ParticipantLifecycle(None)
        app = create_app()
        app.dependency_overrides[get_lifecycle] = lambda: lifecycle
        client = TestClient(app)
        self.assertEqual(client.get("/api/participants").json()["count"], 0)
        response = client.post("/api/participants", json=INTAKE)
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["error"], "StoreUnavailableError")


if __name__ == "__main__":
    unittest.main()
