import unittest

from backend.db import SqlParticipantRepository
from backend.errors import ParticipantNotFoundError
from shared.participant import HistoryEntry, Note, Participant
from shared.types import HistoryType, ParticipantStatus


def make_participant(participant_id: str) -> Participant:
    return Participant(
        id=participant_id,
        participant_number="A1",
        first_name="Jordan",
        last_name="Reyes",
        date_of_birth="1990-03-10",
        age=35,
        gender="Male",
        release_date="2026-01-15",
        time_out=46,
        released_from="County Jail",
        status=ParticipantStatus.PENDING_BRIDGE,
        submitted_at="2026-03-02T15:00:00.000+00:00",
        phone_number="555-0100",
        extra_fields={"shoeSize": "10"},
        history=[
            HistoryEntry(
                id="history_1",
                type=HistoryType.FORM_SUBMITTED,
                description="Participant added",
                created_at="2026-03-02T15:00:00.000+00:00",
            )
        ],
    )


class SqlParticipantRepositoryTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL repository.
    """

    def setUp(self):
        self.db = SqlParticipantRepository("sqlite+pysqlite:///:memory:")

    def test_create_and_get(self):
        self.db.create(make_participant("p1"))
        fetched = self.db.get("p1")
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.status, ParticipantStatus.PENDING_BRIDGE)
        self.assertEqual(fetched.extra_fields, {"shoeSize": "10"})
        self.assertEqual([h.id for h in fetched.history], ["history_1"])
        self.assertIsNone(self.db.get("missing"))

    def test_apply_updates_fields_and_appends(self):
        self.db.create(make_participant("p1"))
        entry = HistoryEntry(
            id="history_2",
            type=HistoryType.NOTE_ADDED,
            description="Note added",
            created_at="2026-03-03T10:00:00.000+00:00",
            details="hello",
            metadata={"noteId": "note_1"},
        )
        note = Note(
            id="note_1",
            content="hello",
            created_by="u1",
            created_by_name="Ana",
            created_at="2026-03-03T10:00:00.000+00:00",
        )
        self.db.apply(
            "p1",
            {"status": ParticipantStatus.BRIDGE_CONTACTED, "phone_number": None},
            history=entry,
            note=note,
        )
        fetched = self.db.get("p1")
        self.assertEqual(fetched.status, ParticipantStatus.BRIDGE_CONTACTED)
        self.assertIsNone(fetched.phone_number)
        self.assertEqual([h.id for h in fetched.history], ["history_1", "history_2"])
        self.assertEqual(fetched.history[1].metadata, {"noteId": "note_1"})
        self.assertEqual([n.content for n in fetched.notes], ["hello"])

    def test_entry_ids_are_scoped_per_participant(self):
        self.db.create(make_participant("p1"))
        self.db.create(make_participant("p2"))
        for participant_id in ("p1", "p2"):
            self.db.apply(
                participant_id,
                {"status": ParticipantStatus.BRIDGE_CONTACTED},
                history=HistoryEntry(
                    id="history_2",
                    type=HistoryType.NOTE_ADDED,
                    description=f"Note added for {participant_id}",
                    created_at="2026-03-03T10:00:00.000+00:00",
                ),
                note=Note(
                    id="note_1",
                    content=f"note for {participant_id}",
                    created_by="u1",
                    created_by_name="Ana",
                    created_at="2026-03-03T10:00:00.000+00:00",
                ),
            )
        for participant_id in ("p1", "p2"):
            fetched = self.db.get(participant_id)
            self.assertEqual([h.id for h in fetched.history], ["history_1", "history_2"])
            self.assertEqual(
                fetched.history[1].description, f"Note added for {participant_id}"
            )
            self.assertEqual([n.content for n in fetched.notes], [f"note for {participant_id}"])

    def test_apply_on_missing_participant(self):
        with self.assertRaises(ParticipantNotFoundError):
            self.db.apply("missing", {"status": ParticipantStatus.GRADUATED})

    def test_delete_removes_children(self):
        self.db.create(make_participant("p1"))
        self.db.create(make_participant("p2"))
        self.db.delete("p1")
        self.assertIsNone(self.db.get("p1"))
        self.assertEqual([p.id for p in self.db.list()], ["p2"])

    def test_subscribe_receives_changes(self):
        snapshots = []
        unsubscribe = self.db.subscribe(snapshots.append)
        self.assertEqual(snapshots, [[]])
        self.db.create(make_participant("p1"))
        self.assertEqual([p.id for p in snapshots[-1]], ["p1"])
        unsubscribe()
        self.db.create(make_participant("p2"))
        self.assertEqual(len(snapshots), 2)


if __name__ == "__main__":
    unittest.main()
