"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from backend.config import get_settings
from backend.db import (
    InMemoryParticipantRepository,
    ParticipantRepository,
    SqlParticipantRepository,
)
from backend.lifecycle import ParticipantLifecycle

logger = logging.getLogger(__name__)

_repository: ParticipantRepository | None = None
_lifecycle: ParticipantLifecycle | None = None


def get_repository() -> ParticipantRepository | None:
    """
    Return a singleton participant store so every request sees the same data.

    None means no store is configured; mutations then fail with a
    store-unavailable error while reads return an empty collection.
    """
    global _repository
    if _repository:
        return _repository

    settings = get_settings()
    if settings.use_in_memory_backends:
        _repository = InMemoryParticipantRepository()
    elif settings.firebase_database_url:
        # Imported lazily so the SQL and in-memory paths don't need credentials.
        from backend.firebase_db import FirebaseParticipantRepository

        _repository = FirebaseParticipantRepository(
            settings.firebase_database_url,
            credentials_path=settings.firebase_credentials_path,
            path=settings.participants_path,
        )
    elif settings.database_url:
        _repository = SqlParticipantRepository(settings.database_url)
    else:
        logger.warning(
            "No participant store configured; set FIREBASE_DATABASE_URL or DATABASE_URL"
        )
    return _repository


def get_lifecycle() -> ParticipantLifecycle:
    """
    Return the singleton lifecycle service with its listener started.
    """
    global _lifecycle
    if _lifecycle:
        return _lifecycle

    _lifecycle = ParticipantLifecycle(get_repository())
    _lifecycle.start()
    return _lifecycle

