# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any, Dict, List, Optional

from dacite import Config, from_dict

from shared.json_utils import convert_keys, drop_none, snake_to_camel
from shared.types import HistoryType, ParticipantStatus

_DACITE_CONFIG = Config(check_types=False, cast=[ParticipantStatus, HistoryType])


@dataclass(frozen=True)
class Note:
    id: str
    content: str
    created_by: str
    created_by_name: str
    created_at: str  # ISO timestamp


@dataclass(frozen=True)
class HistoryEntry:
    """One immutable audit-log record of a lifecycle event."""

    id: str
    type: HistoryType
    description: str
    created_at: str  # ISO timestamp
    details: Optional[str] = None
    created_by: Optional[str] = None
    created_by_name: Optional[str] = None
    # Stored verbatim (camelCase keys), never key-converted.
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class GraduationApproval:
    participant_id: str
    approved_by: str  # Admin user ID
    approved_by_name: str
    approval_date: str
    notes: Optional[str] = None


@dataclass
class Participant:
    id: str
    participant_number: str
    first_name: str
    last_name: str
    date_of_birth: str  # ISO date
    age: int
    gender: str
    release_date: str  # ISO date
    time_out: int  # Days since release, computed at intake
    released_from: str
    status: ParticipantStatus
    submitted_at: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    intake_type: Optional[str] = None

    # Weak references to user IDs.
    assigned_bridge_team_member: Optional[str] = None
    assigned_mentor_leader: Optional[str] = None
    assigned_mentor: Optional[str] = None

    moved_to_bridge_at: Optional[str] = None
    moved_to_mentorship_at: Optional[str] = None
    assigned_to_mentor_at: Optional[str] = None
    initial_contact_due: Optional[str] = None
    initial_contact_completed_at: Optional[str] = None
    graduated_at: Optional[str] = None
    moved_to_unable_to_contact_at: Optional[str] = None

    next_weekly_update_due: Optional[str] = None
    next_monthly_check_in_due: Optional[str] = None
    next_monthly_report_due: Optional[str] = None
    last_weekly_update_at: Optional[str] = None
    last_monthly_check_in_at: Optional[str] = None
    last_monthly_report_at: Optional[str] = None

    number_of_contact_attempts: int = 0
    first_attempt_date: Optional[str] = None
    last_attempt_date: Optional[str] = None

    completed_graduation_steps: List[str] = field(default_factory=list)
    graduation_approval: Optional[GraduationApproval] = None

    # Answers to custom intake questions, keyed by question id.
    extra_fields: Dict[str, str] = field(default_factory=dict)

    notes: List[Note] = field(default_factory=list)
    history: List[HistoryEntry] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# Fields holding nested documents that are not key-converted as a whole.
_NESTED_FIELDS = ("history", "notes", "extra_fields")


def to_json_value(value: Any) -> Any:
    """Converts a single field value into its stored (camelCase) form."""
    if is_dataclass(value):
        return convert_keys(drop_none(asdict(value)), "snake_to_camel")
    return value


def history_entry_to_document(entry: HistoryEntry) -> dict:
    data = asdict(entry)
    metadata = data.pop("metadata")
    doc = convert_keys(drop_none(data), "snake_to_camel")
    if metadata:
        doc["metadata"] = drop_none(metadata)
    return doc


def note_to_document(note: Note) -> dict:
    return convert_keys(asdict(note), "snake_to_camel")


def history_entry_from_document(doc: dict) -> HistoryEntry:
    data = dict(doc)
    metadata = data.pop("metadata", None)
    data = convert_keys(data, "camel_to_snake")
    data["metadata"] = metadata
    return from_dict(data_class=HistoryEntry, data=data, config=_DACITE_CONFIG)


def note_from_document(doc: dict) -> Note:
    return from_dict(
        data_class=Note,
        data=convert_keys(doc, "camel_to_snake"),
        config=_DACITE_CONFIG,
    )


def _entries(value: Any) -> List[dict]:
    # Keyed maps are the current layout; plain arrays come from older records.
    if not value:
        return []
    if isinstance(value, dict):
        return [entry for entry in value.values() if entry]
    return [entry for entry in value if entry]


def participant_to_document(participant: Participant) -> dict:
    """
    Serializes a participant into the stored document shape.

    History and notes are written as maps keyed by entry id so that later
    appends can be keyed inserts instead of whole-array rewrites.
    """
    data = asdict(participant)
    for name in _NESTED_FIELDS:
        data.pop(name)
    doc = convert_keys(drop_none(data), "snake_to_camel")
    if participant.extra_fields:
        doc["extraFields"] = dict(participant.extra_fields)
    doc["history"] = {
        entry.id: history_entry_to_document(entry) for entry in participant.history
    }
    doc["notes"] = {note.id: note_to_document(note) for note in participant.notes}
    return doc


def participant_from_document(doc: dict) -> Participant:
    data = dict(doc)
    history_docs = _entries(data.pop("history", None))
    note_docs = _entries(data.pop("notes", None))
    extra_fields = data.pop("extraFields", None) or {}

    participant = from_dict(
        data_class=Participant,
        data=convert_keys(data, "camel_to_snake"),
        config=_DACITE_CONFIG,
    )
    participant.extra_fields = dict(extra_fields)
    participant.history = sorted(
        (history_entry_from_document(d) for d in history_docs),
        key=lambda entry: (entry.created_at, entry.id),
    )
    participant.notes = sorted(
        (note_from_document(d) for d in note_docs),
        key=lambda note: (note.created_at, note.id),
    )
    return participant


def participant_to_json(participant: Participant) -> dict:
    """Document shape with history and notes as ordered lists, for API output."""
    doc = participant_to_document(participant)
    doc["history"] = [history_entry_to_document(e) for e in participant.history]
    doc["notes"] = [note_to_document(n) for n in participant.notes]
    doc["extraFields"] = dict(participant.extra_fields)
    return doc


def change_to_paths(
    fields: Dict[str, Any],
    history: Optional[HistoryEntry] = None,
    note: Optional[Note] = None,
) -> Dict[str, Any]:
    """
    Flattens one logical change into multi-path update keys.

    `fields` uses dataclass field names; a None value clears the field.
    """
    paths: Dict[str, Any] = {}
    for name, value in fields.items():
        paths[snake_to_camel(name)] = to_json_value(value)
    if history is not None:
        paths[f"history/{history.id}"] = history_entry_to_document(history)
    if note is not None:
        paths[f"notes/{note.id}"] = note_to_document(note)
    return paths
