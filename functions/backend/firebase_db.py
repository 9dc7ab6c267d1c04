"""
Firebase Realtime Database adapter for the participant repository.

Documents live at `participants/{id}`. History entries and notes are child
maps keyed by entry id, so appends go out as a single multi-path `update`
instead of rewriting whole arrays.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import firebase_admin
from firebase_admin import credentials, db, exceptions

from backend.db import SnapshotCallback, Unsubscribe, set_path
from backend.errors import ParticipantNotFoundError, StoreUnavailableError
from shared.constants import PARTICIPANTS_PATH
from shared.participant import (
    HistoryEntry,
    Note,
    Participant,
    change_to_paths,
    participant_from_document,
    participant_to_document,
)

logger = logging.getLogger(__name__)


def initialize_firebase_app(
    database_url: str, credentials_path: Optional[str] = None
) -> firebase_admin.App:
    """Returns the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        credential = (
            credentials.Certificate(credentials_path)
            if credentials_path
            else credentials.ApplicationDefault()
        )
        return firebase_admin.initialize_app(credential, {"databaseURL": database_url})


@contextmanager
def _store_call(action: str) -> Iterator[None]:
    try:
        yield
    except exceptions.FirebaseError as e:
        logger.error("Realtime Database %s failed: %s", action, e)
        raise StoreUnavailableError(f"Failed to {action}: {e}") from e


def _materialize(tree: Dict[str, Any]) -> List[Participant]:
    participants: List[Participant] = []
    for participant_id, doc in tree.items():
        if not isinstance(doc, dict):
            continue
        try:
            participants.append(participant_from_document(doc))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping unreadable participant %s: %s", participant_id, e)
    return participants


class FirebaseParticipantRepository:
    def __init__(
        self,
        database_url: str,
        credentials_path: Optional[str] = None,
        path: str = PARTICIPANTS_PATH,
        app: Optional[firebase_admin.App] = None,
    ):
        if not database_url and app is None:
            raise ValueError(
                "FIREBASE_DATABASE_URL is required for FirebaseParticipantRepository"
            )
        self.app = app or initialize_firebase_app(database_url, credentials_path)
        self.ref = db.reference(path, app=self.app)

    def get(self, participant_id: str) -> Optional[Participant]:
        with _store_call("read participant"):
            doc = self.ref.child(participant_id).get()
        return participant_from_document(doc) if doc else None

    def list(self) -> List[Participant]:
        with _store_call("read participants"):
            tree = self.ref.get()
        return _materialize(tree or {})

    def create(self, participant: Participant) -> None:
        with _store_call("write participant"):
            self.ref.child(participant.id).set(participant_to_document(participant))

    def apply(
        self,
        participant_id: str,
        fields: Dict[str, Any],
        *,
        history: Optional[HistoryEntry] = None,
        note: Optional[Note] = None,
    ) -> None:
        paths = change_to_paths(fields, history=history, note=note)
        if not paths:
            return
        with _store_call("update participant"):
            # An update on a missing child would create a partial document.
            if self.ref.child(participant_id).child("id").get() is None:
                raise ParticipantNotFoundError(participant_id)
            self.ref.child(participant_id).update(paths)

    def delete(self, participant_id: str) -> None:
        with _store_call("delete participant"):
            self.ref.child(participant_id).delete()

    def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        """
        Streams changes under the participants root, keeps a local copy of
        the tree, and calls `callback` with the materialized collection after
        each event.
        """
        tree: Dict[str, Any] = {}
        lock = threading.Lock()

        def on_event(event: db.Event) -> None:
            with lock:
                if event.event_type == "put":
                    if event.path in ("", "/"):
                        tree.clear()
                        if isinstance(event.data, dict):
                            tree.update(event.data)
                    else:
                        set_path(tree, event.path, event.data)
                elif event.event_type == "patch":
                    for key, value in (event.data or {}).items():
                        set_path(tree, f"{event.path.rstrip('/')}/{key}", value)
                else:
                    return
                participants = _materialize(tree)
            callback(participants)

        with _store_call("listen to participants"):
            registration = self.ref.listen(on_event)
        return registration.close
