"""
Participant repository abstraction: SQL, in-memory, and (in firebase_db) the
Realtime Database adapter.

Every write is either a full-document create, a delete, or one atomic
multi-path change whose history/note appends are keyed inserts.
"""

from __future__ import annotations

import copy
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from sqlalchemy import JSON, Column, Float, ForeignKey, String, create_engine, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend.errors import ParticipantNotFoundError, StoreUnavailableError
from shared.participant import (
    HistoryEntry,
    Note,
    Participant,
    change_to_paths,
    history_entry_to_document,
    note_to_document,
    participant_from_document,
    participant_to_document,
)

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[Participant]], None]
Unsubscribe = Callable[[], None]


class ParticipantRepository(Protocol):
    """Interface for participant storage."""

    def get(self, participant_id: str) -> Optional[Participant]:
        ...

    def list(self) -> List[Participant]:
        ...

    def create(self, participant: Participant) -> None:
        ...

    def apply(
        self,
        participant_id: str,
        fields: Dict[str, Any],
        *,
        history: Optional[HistoryEntry] = None,
        note: Optional[Note] = None,
    ) -> None:
        """
        Atomically updates `fields` (None clears a field) and appends the
        optional history entry and note.
        """
        ...

    def delete(self, participant_id: str) -> None:
        ...

    def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        """Calls `callback` with the full collection now and after every change."""
        ...


def keyed_entries(entries: List[Any]) -> Dict[str, Any]:
    """Re-keys an array-shaped history/notes list by entry id (index as fallback)."""
    keyed: Dict[str, Any] = {}
    for index, entry in enumerate(entries):
        if entry is None:
            continue
        key = entry.get("id") if isinstance(entry, dict) else None
        keyed[str(key or index)] = entry
    return keyed


def set_path(tree: Dict[str, Any], path: str, value: Any) -> None:
    """Sets (or, for None, removes) a slash-separated path inside a nested dict."""
    keys = [key for key in path.split("/") if key]
    if not keys:
        raise ValueError("Cannot set the root path")
    node = tree
    for key in keys[:-1]:
        child = node.get(key)
        if isinstance(child, list):
            child = keyed_entries(child)
            node[key] = child
        if not isinstance(child, dict):
            if value is None:
                return
            child = {}
            node[key] = child
        node = child
    if value is None:
        node.pop(keys[-1], None)
    else:
        node[keys[-1]] = value


class _Listeners:
    def __init__(self):
        self._callbacks: List[SnapshotCallback] = []
        self._lock = threading.Lock()

    def add(self, callback: SnapshotCallback) -> Unsubscribe:
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def notify(self, participants: List[Participant]) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback(participants)


class InMemoryParticipantRepository:
    """Simple in-memory store for development and tests."""

    def __init__(self):
        self.documents: Dict[str, dict] = {}
        self._lock = threading.RLock()
        self._listeners = _Listeners()

    def get(self, participant_id: str) -> Optional[Participant]:
        with self._lock:
            doc = self.documents.get(participant_id)
            return participant_from_document(doc) if doc else None

    def list(self) -> List[Participant]:
        with self._lock:
            return [participant_from_document(doc) for doc in self.documents.values()]

    def create(self, participant: Participant) -> None:
        with self._lock:
            self.documents[participant.id] = participant_to_document(participant)
        self._notify()

    def apply(
        self,
        participant_id: str,
        fields: Dict[str, Any],
        *,
        history: Optional[HistoryEntry] = None,
        note: Optional[Note] = None,
    ) -> None:
        paths = change_to_paths(fields, history=history, note=note)
        with self._lock:
            doc = self.documents.get(participant_id)
            if doc is None:
                raise ParticipantNotFoundError(participant_id)
            updated = copy.deepcopy(doc)
            for path, value in paths.items():
                set_path(updated, path, copy.deepcopy(value))
            self.documents[participant_id] = updated
        self._notify()

    def delete(self, participant_id: str) -> None:
        with self._lock:
            self.documents.pop(participant_id, None)
        self._notify()

    def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        unsubscribe = self._listeners.add(callback)
        callback(self.list())
        return unsubscribe

    def _notify(self) -> None:
        self._listeners.notify(self.list())


class SqlParticipantRepository:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    History entries and notes live in their own tables, so an append is a row
    insert in the same transaction as the field update. Subscribers are
    notified in-process after each commit.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlParticipantRepository")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)
        self._listeners = _Listeners()

    def _assemble(
        self,
        row: "ParticipantRow",
        history_rows: List["HistoryRow"],
        note_rows: List["NoteRow"],
    ) -> Participant:
        doc = dict(row.data)
        doc["history"] = {h.id: h.data for h in history_rows}
        doc["notes"] = {n.id: n.data for n in note_rows}
        return participant_from_document(doc)

    def get(self, participant_id: str) -> Optional[Participant]:
        with self._session() as session:
            row = session.get(ParticipantRow, participant_id)
            if not row:
                return None
            history_rows = session.scalars(
                select(HistoryRow).where(HistoryRow.participant_id == participant_id)
            ).all()
            note_rows = session.scalars(
                select(NoteRow).where(NoteRow.participant_id == participant_id)
            ).all()
            return self._assemble(row, list(history_rows), list(note_rows))

    def list(self) -> List[Participant]:
        with self._session() as session:
            rows = session.scalars(
                select(ParticipantRow).order_by(ParticipantRow.created_at.asc())
            ).all()
            history: Dict[str, List[HistoryRow]] = {}
            for entry in session.scalars(select(HistoryRow)).all():
                history.setdefault(entry.participant_id, []).append(entry)
            notes: Dict[str, List[NoteRow]] = {}
            for note in session.scalars(select(NoteRow)).all():
                notes.setdefault(note.participant_id, []).append(note)
            return [
                self._assemble(row, history.get(row.id, []), notes.get(row.id, []))
                for row in rows
            ]

    def create(self, participant: Participant) -> None:
        doc = participant_to_document(participant)
        history_docs = doc.pop("history")
        note_docs = doc.pop("notes")
        now = time.time()
        with self._session() as session:
            session.add(
                ParticipantRow(
                    id=participant.id,
                    status=participant.status.value,
                    data=doc,
                    created_at=now,
                    updated_at=now,
                )
            )
            # Flush the parent first so the child foreign keys resolve.
            session.flush()
            for entry_id, entry_doc in history_docs.items():
                session.add(self._history_row(participant.id, entry_id, entry_doc))
            for note_id, note_doc in note_docs.items():
                session.add(self._note_row(participant.id, note_id, note_doc))
            session.commit()
        self._notify()

    def apply(
        self,
        participant_id: str,
        fields: Dict[str, Any],
        *,
        history: Optional[HistoryEntry] = None,
        note: Optional[Note] = None,
    ) -> None:
        paths = change_to_paths(fields)
        with self._session() as session:
            row = session.get(ParticipantRow, participant_id)
            if not row:
                raise ParticipantNotFoundError(participant_id)
            data = copy.deepcopy(row.data)
            for path, value in paths.items():
                set_path(data, path, value)
            # Reassign so SQLAlchemy detects the JSON change.
            row.data = data
            row.status = data.get("status", row.status)
            row.updated_at = time.time()
            if history is not None:
                session.add(
                    self._history_row(
                        participant_id, history.id, history_entry_to_document(history)
                    )
                )
            if note is not None:
                session.add(
                    self._note_row(participant_id, note.id, note_to_document(note))
                )
            session.commit()
        self._notify()

    def delete(self, participant_id: str) -> None:
        with self._session() as session:
            session.execute(
                delete(HistoryRow).where(HistoryRow.participant_id == participant_id)
            )
            session.execute(
                delete(NoteRow).where(NoteRow.participant_id == participant_id)
            )
            session.execute(
                delete(ParticipantRow).where(ParticipantRow.id == participant_id)
            )
            session.commit()
        self._notify()

    def subscribe(self, callback: SnapshotCallback) -> Unsubscribe:
        unsubscribe = self._listeners.add(callback)
        callback(self.list())
        return unsubscribe

    def _session(self) -> "_GuardedSession":
        return _GuardedSession(self.Session)

    def _notify(self) -> None:
        self._listeners.notify(self.list())

    @staticmethod
    def _history_row(participant_id: str, entry_id: str, doc: dict) -> "HistoryRow":
        return HistoryRow(
            id=entry_id,
            participant_id=participant_id,
            created_at=doc.get("createdAt", ""),
            data=doc,
        )

    @staticmethod
    def _note_row(participant_id: str, note_id: str, doc: dict) -> "NoteRow":
        return NoteRow(
            id=note_id,
            participant_id=participant_id,
            created_at=doc.get("createdAt", ""),
            data=doc,
        )


class _GuardedSession:
    """Session context that rolls back and reports driver errors as StoreUnavailableError."""

    def __init__(self, session_factory: sessionmaker):
        self._session = session_factory()

    def __enter__(self) -> Session:
        return self._session

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc is not None:
                self._session.rollback()
        finally:
            self._session.close()
        if isinstance(exc, SQLAlchemyError):
            logger.error("Participant store error: %s", exc)
            raise StoreUnavailableError(f"Participant store error: {exc}") from exc
        return False


Base = declarative_base()


class ParticipantRow(Base):
    __tablename__ = "participants"

    id = Column(String, primary_key=True)
    status = Column(String, nullable=False, index=True)
    data = Column("document", JSON, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class HistoryRow(Base):
    __tablename__ = "participant_history"

    # Entry ids are only unique within one participant.
    participant_id = Column(
        String, ForeignKey("participants.id"), primary_key=True, index=True
    )
    id = Column(String, primary_key=True)
    created_at = Column(String, nullable=False)
    data = Column("entry", JSON, nullable=False)


class NoteRow(Base):
    __tablename__ = "participant_notes"

    # Entry ids are only unique within one participant.
    participant_id = Column(
        String, ForeignKey("participants.id"), primary_key=True, index=True
    )
    id = Column(String, primary_key=True)
    created_at = Column(String, nullable=False)
    data = Column("note", JSON, nullable=False)
