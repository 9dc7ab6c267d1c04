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

from enum import StrEnum
from typing import Dict, FrozenSet


class ParticipantStatus(StrEnum):
    PENDING_BRIDGE = "pending_bridge"
    BRIDGE_CONTACTED = "bridge_contacted"
    BRIDGE_ATTEMPTED = "bridge_attempted"
    BRIDGE_UNABLE = "bridge_unable"
    PENDING_MENTOR = "pending_mentor"
    ASSIGNED_MENTOR = "assigned_mentor"
    INITIAL_CONTACT_PENDING = "initial_contact_pending"
    MENTOR_ATTEMPTED = "mentor_attempted"
    MENTOR_UNABLE = "mentor_unable"
    ACTIVE_MENTORSHIP = "active_mentorship"
    UNABLE_TO_CONTACT = "unable_to_contact"
    GRADUATED = "graduated"
    CEASED_CONTACT = "ceased_contact"


class HistoryType(StrEnum):
    STATUS_CHANGE = "status_change"
    CONTACT_ATTEMPT = "contact_attempt"
    NOTE_ADDED = "note_added"
    FORM_SUBMITTED = "form_submitted"
    ASSIGNMENT_CHANGE = "assignment_change"


class UserRole(StrEnum):
    ADMIN = "admin"
    BRIDGE_TEAM = "bridge_team"
    BRIDGE_TEAM_LEADER = "bridge_team_leader"
    MENTORSHIP_LEADER = "mentorship_leader"
    MENTOR = "mentor"
    VOLUNTEER = "volunteer"
    VOLUNTEER_SUPPORT = "volunteer_support"
    BOARD_MEMBER = "board_member"


class ContactOutcome(StrEnum):
    SUCCESSFUL = "successful"
    ATTEMPTED = "attempted"
    UNABLE = "unable"


class ContactAttemptType(StrEnum):
    LEFT_VOICEMAIL = "left_voicemail"
    UNABLE_TO_LEAVE_VOICEMAIL = "unable_to_leave_voicemail"
    NO_ANSWER = "no_answer"


STATUS_LABELS: Dict[ParticipantStatus, str] = {
    ParticipantStatus.PENDING_BRIDGE: "Pending Bridge",
    ParticipantStatus.BRIDGE_CONTACTED: "Bridge Contacted",
    ParticipantStatus.BRIDGE_ATTEMPTED: "Bridge Attempted",
    ParticipantStatus.BRIDGE_UNABLE: "Bridge Unable",
    ParticipantStatus.PENDING_MENTOR: "Awaiting Mentor",
    ParticipantStatus.ASSIGNED_MENTOR: "Assigned Mentor",
    ParticipantStatus.INITIAL_CONTACT_PENDING: "Initial Contact Pending",
    ParticipantStatus.MENTOR_ATTEMPTED: "Mentor Attempted",
    ParticipantStatus.MENTOR_UNABLE: "Mentor Unable",
    ParticipantStatus.ACTIVE_MENTORSHIP: "Active Mentorship",
    ParticipantStatus.UNABLE_TO_CONTACT: "Unable to Contact",
    ParticipantStatus.GRADUATED: "Graduated",
    ParticipantStatus.CEASED_CONTACT: "Ceased Contact",
}

BRIDGE_TEAM_STATUSES: FrozenSet[ParticipantStatus] = frozenset(
    {
        ParticipantStatus.PENDING_BRIDGE,
        ParticipantStatus.BRIDGE_CONTACTED,
        ParticipantStatus.BRIDGE_ATTEMPTED,
        ParticipantStatus.BRIDGE_UNABLE,
    }
)

# Statuses in which a recorded contact belongs to the assigned mentor rather
# than the Bridge Team.
MENTOR_CONTACT_STATUSES: FrozenSet[ParticipantStatus] = frozenset(
    {
        ParticipantStatus.INITIAL_CONTACT_PENDING,
        ParticipantStatus.MENTOR_ATTEMPTED,
        ParticipantStatus.MENTOR_UNABLE,
        ParticipantStatus.ACTIVE_MENTORSHIP,
    }
)

_SIDE_EXITS = frozenset(
    {ParticipantStatus.UNABLE_TO_CONTACT, ParticipantStatus.CEASED_CONTACT}
)

# The moves the workflow offers operators. Anything else is still accepted as
# an operator correction, but gets flagged in the audit trail.
CONVENTIONAL_TRANSITIONS: Dict[ParticipantStatus, FrozenSet[ParticipantStatus]] = {
    ParticipantStatus.PENDING_BRIDGE: frozenset(
        {
            ParticipantStatus.BRIDGE_CONTACTED,
            ParticipantStatus.BRIDGE_ATTEMPTED,
            ParticipantStatus.BRIDGE_UNABLE,
            ParticipantStatus.PENDING_MENTOR,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.BRIDGE_CONTACTED: frozenset(
        {ParticipantStatus.PENDING_MENTOR, ParticipantStatus.PENDING_BRIDGE}
    )
    | _SIDE_EXITS,
    ParticipantStatus.BRIDGE_ATTEMPTED: frozenset(
        {
            ParticipantStatus.PENDING_BRIDGE,
            ParticipantStatus.BRIDGE_CONTACTED,
            ParticipantStatus.BRIDGE_UNABLE,
            ParticipantStatus.PENDING_MENTOR,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.BRIDGE_UNABLE: frozenset(
        {ParticipantStatus.PENDING_BRIDGE, ParticipantStatus.PENDING_MENTOR}
    )
    | _SIDE_EXITS,
    ParticipantStatus.PENDING_MENTOR: frozenset(
        {
            ParticipantStatus.ASSIGNED_MENTOR,
            ParticipantStatus.INITIAL_CONTACT_PENDING,
            ParticipantStatus.PENDING_BRIDGE,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.ASSIGNED_MENTOR: frozenset(
        {
            ParticipantStatus.INITIAL_CONTACT_PENDING,
            ParticipantStatus.PENDING_BRIDGE,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.INITIAL_CONTACT_PENDING: frozenset(
        {
            ParticipantStatus.MENTOR_ATTEMPTED,
            ParticipantStatus.MENTOR_UNABLE,
            ParticipantStatus.ACTIVE_MENTORSHIP,
            ParticipantStatus.PENDING_BRIDGE,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.MENTOR_ATTEMPTED: frozenset(
        {
            ParticipantStatus.INITIAL_CONTACT_PENDING,
            ParticipantStatus.MENTOR_UNABLE,
            ParticipantStatus.ACTIVE_MENTORSHIP,
            ParticipantStatus.PENDING_BRIDGE,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.MENTOR_UNABLE: frozenset(
        {
            ParticipantStatus.INITIAL_CONTACT_PENDING,
            ParticipantStatus.PENDING_BRIDGE,
        }
    )
    | _SIDE_EXITS,
    ParticipantStatus.ACTIVE_MENTORSHIP: frozenset(
        {ParticipantStatus.GRADUATED, ParticipantStatus.PENDING_BRIDGE}
    )
    | _SIDE_EXITS,
    ParticipantStatus.UNABLE_TO_CONTACT: frozenset(
        {ParticipantStatus.PENDING_BRIDGE, ParticipantStatus.CEASED_CONTACT}
    ),
    ParticipantStatus.GRADUATED: frozenset(),
    ParticipantStatus.CEASED_CONTACT: frozenset(),
}


def status_label(status: str) -> str:
    """Human-readable label for a status, falling back to the raw value."""
    try:
        return STATUS_LABELS[ParticipantStatus(status)]
    except ValueError:
        return str(status)


def is_conventional_transition(current: str, target: str) -> bool:
    if current == target:
        return True
    allowed = CONVENTIONAL_TRANSITIONS.get(ParticipantStatus(current), frozenset())
    return ParticipantStatus(target) in allowed
