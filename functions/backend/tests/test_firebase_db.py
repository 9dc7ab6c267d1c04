import unittest
from types import SimpleNamespace
from unittest import mock

from firebase_admin import exceptions

from backend.errors import ParticipantNotFoundError, StoreUnavailableError
from backend.firebase_db import FirebaseParticipantRepository
from shared.participant import HistoryEntry
from shared.types import HistoryType, ParticipantStatus

DOC = {
    "id": "p1",
    "participantNumber": "A1",
    "firstName": "Jordan",
    "lastName": "Reyes",
    "dateOfBirth": "1990-03-10",
    "age": 35,
    "gender": "Male",
    "releaseDate": "2026-01-15",
    "timeOut": 46,
    "releasedFrom": "County Jail",
    "status": "pending_bridge",
    "submittedAt": "2026-03-02T15:00:00.000+00:00",
    "history": {
        "history_1": {
            "id": "history_1",
            "type": "form_submitted",
            "description": "Participant added",
            "createdAt": "2026-03-02T15:00:00.000+00:00",
        }
    },
}


class FirebaseParticipantRepositoryTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch("backend.firebase_db.db.reference")
        self.reference = patcher.start()
        self.addCleanup(patcher.stop)
        self.root = mock.MagicMock()
        self.reference.return_value = self.root
        self.repo = FirebaseParticipantRepository("", app=object())

    def test_get_reads_child_document(self):
        self.root.child.return_value.get.return_value = DOC
        participant = self.repo.get("p1")
        self.root.child.assert_called_with("p1")
        self.assertEqual(participant.status, ParticipantStatus.PENDING_BRIDGE)
        self.assertEqual(participant.history[0].description, "Participant added")

    def test_apply_sends_one_multi_path_update(self):
        child = self.root.child.return_value
        child.child.return_value.get.return_value = "p1"
        entry = HistoryEntry(
            id="history_2",
            type=HistoryType.STATUS_CHANGE,
            description="Status changed to Graduated",
            created_at="2026-03-03T10:00:00.000+00:00",
        )
        self.repo.apply(
            "p1",
            {"status": ParticipantStatus.GRADUATED, "assigned_mentor": None},
            history=entry,
        )
        child.update.assert_called_once()
        paths = child.update.call_args.args[0]
        self.assertEqual(paths["status"], "graduated")
        self.assertIsNone(paths["assignedMentor"])
        self.assertEqual(paths["history/history_2"]["description"], "Status changed to Graduated")

    def test_apply_on_missing_participant(self):
        child = self.root.child.return_value
        child.child.return_value.get.return_value = None
        with self.assertRaises(ParticipantNotFoundError):
            self.repo.apply("p1", {"status": ParticipantStatus.GRADUATED})
        child.update.assert_not_called()

    def test_firebase_errors_become_store_unavailable(self):
        self.root.child.return_value.set.side_effect = exceptions.UnavailableError("down")
        participant = mock.MagicMock(id="p1")
        with mock.patch(
            "backend.firebase_db.participant_to_document", return_value={"id": "p1"}
        ):
            with self.assertRaises(StoreUnavailableError):
                self.repo.create(participant)

    def test_subscribe_applies_put_and_patch_events(self):
        registration = mock.MagicMock()
        self.root.listen.return_value = registration
        snapshots = []
        unsubscribe = self.repo.subscribe(snapshots.append)
        on_event = self.root.listen.call_args.args[0]

        on_event(SimpleNamespace(event_type="put", path="/", data={"p1": DOC}))
        self.assertEqual([p.id for p in snapshots[-1]], ["p1"])

        on_event(
            SimpleNamespace(
                event_type="patch", path="/p1", data={"status": "bridge_contacted"}
            )
        )
        self.assertEqual(snapshots[-1][0].status, ParticipantStatus.BRIDGE_CONTACTED)

        on_event(SimpleNamespace(event_type="put", path="/p1", data=None))
        self.assertEqual(snapshots[-1], [])

        unsubscribe()
        registration.close.assert_called_once()

    def test_patch_appends_to_array_shaped_history(self):
        self.root.listen.return_value = mock.MagicMock()
        snapshots = []
        self.repo.subscribe(snapshots.append)
        on_event = self.root.listen.call_args.args[0]

        older = dict(
            DOC["history"]["history_1"],
            id="history_0",
            createdAt="2026-03-01T09:00:00.000+00:00",
        )
        legacy = dict(DOC, history=[older, DOC["history"]["history_1"]])
        on_event(SimpleNamespace(event_type="put", path="/", data={"p1": legacy}))
        self.assertEqual(len(snapshots[-1][0].history), 2)

        on_event(
            SimpleNamespace(
                event_type="patch",
                path="/p1",
                data={
                    "history/history_3": {
                        "id": "history_3",
                        "type": "note_added",
                        "description": "Note added",
                        "createdAt": "2026-03-03T10:00:00.000+00:00",
                    }
                },
            )
        )
        history = snapshots[-1][0].history
        self.assertEqual(
            [entry.id for entry in history], ["history_0", "history_1", "history_3"]
        )


if __name__ == "__main__":
    unittest.main()
