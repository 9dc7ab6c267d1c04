"""
Participant lifecycle: intake, status transitions, and the audit trail.

Every mutating operation validates its input, reads the current record, and
issues exactly one repository write. That write carries the field changes
together with the single history entry describing them, so the history log
stays a complete record of what happened to the participant.

Reads are served from a local collection kept current by a repository
subscription (see `start`).
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from backend.db import ParticipantRepository, Unsubscribe
from backend.errors import (
    GraduationNotReadyError,
    InvalidInputError,
    NotAuthorizedError,
    ParticipantNotFoundError,
    PreconditionError,
    StoreUnavailableError,
)
from backend.intake import (
    calculate_age,
    calculate_time_out,
    parse_date,
    participant_number_for,
    validate_intake,
)
from shared.constants import (
    INITIAL_CONTACT_WINDOW_DAYS,
    MAX_NOTE_LENGTH,
    MONTHLY_CHECK_IN_INTERVAL_DAYS,
    MONTHLY_REPORT_INTERVAL_DAYS,
    UNABLE_TO_CONTACT_ATTEMPTS,
    UNABLE_TO_CONTACT_MIN_DAYS,
    WEEKLY_UPDATE_INTERVAL_DAYS,
)
from shared.forms import (
    BridgeContactForm,
    InitialContactForm,
    IntakeData,
    MonthlyCheckInForm,
    MonthlyReportForm,
    WeeklyUpdateForm,
)
from shared.graduation_steps import (
    GRADUATION_STEPS,
    calculate_graduation_progress,
    get_graduation_step_by_id,
    is_ready_for_graduation,
    normalize_steps,
    unknown_steps,
)
from shared.participant import GraduationApproval, HistoryEntry, Note, Participant
from shared.types import (
    BRIDGE_TEAM_STATUSES,
    MENTOR_CONTACT_STATUSES,
    ContactAttemptType,
    ContactOutcome,
    HistoryType,
    ParticipantStatus,
    UserRole,
    is_conventional_transition,
    status_label,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ParticipantLifecycle",
    "calculate_graduation_progress",
    "is_ready_for_graduation",
]

Clock = Callable[[], datetime]
ActorRole = Union[str, Iterable[str], None]

# Statuses the Bridge Team works from its queue.
_BRIDGE_QUEUE = (
    ParticipantStatus.PENDING_BRIDGE,
    ParticipantStatus.BRIDGE_ATTEMPTED,
    ParticipantStatus.BRIDGE_CONTACTED,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def new_id(prefix: str) -> str:
    # The nanosecond component keeps ids from one process in creation order.
    return f"{prefix}_{time.time_ns()}_{uuid.uuid4().hex[:8]}"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_admin(actor_role: ActorRole) -> bool:
    if actor_role is None:
        return False
    roles = [actor_role] if isinstance(actor_role, str) else list(actor_role)
    return UserRole.ADMIN in roles


def _require_text(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise InvalidInputError(f"{field_name} must not be empty.", [field_name])
    return text


def _clean(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def _contact_outcome(value: str, field_name: str) -> ContactOutcome:
    try:
        return ContactOutcome(value)
    except ValueError:
        raise InvalidInputError(
            f"Unknown contact outcome: {value}", [field_name]
        ) from None


def _attempt_type(value: Optional[str]) -> Optional[str]:
    text = _clean(value)
    if text is None:
        return None
    try:
        return ContactAttemptType(text).value
    except ValueError:
        raise InvalidInputError(
            f"Unknown contact attempt type: {value}", ["attempt_type"]
        ) from None


def _compact(metadata: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in metadata.items() if value is not None}


class ParticipantLifecycle:
    """Owns participant records, their status machine and history log."""

    def __init__(
        self,
        repository: Optional[ParticipantRepository],
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self._clock = clock or _utc_now
        self._participants: Dict[str, Participant] = {}
        self._lock = threading.Lock()
        self._unsubscribe: Optional[Unsubscribe] = None

    # ------------------------------------------------------------------
    # Live collection

    def start(self) -> None:
        """Subscribes to the store; the local collection follows every change."""
        if self._unsubscribe is not None:
            logger.info("Participant listener already running, skipping")
            return
        if self.repository is None:
            logger.warning("Participant store not configured, using empty collection")
            return
        try:
            self._unsubscribe = self.repository.subscribe(self._on_snapshot)
        except StoreUnavailableError as e:
            logger.error("Could not start participant listener: %s", e)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_snapshot(self, participants: List[Participant]) -> None:
        with self._lock:
            self._participants = {p.id: p for p in participants}
        logger.debug("Loaded %d participants", len(participants))

    @property
    def participants(self) -> List[Participant]:
        with self._lock:
            items = list(self._participants.values())
        return sorted(items, key=lambda p: (p.submitted_at, p.id))

    # ------------------------------------------------------------------
    # Helpers

    def _store(self) -> ParticipantRepository:
        if self.repository is None:
            raise StoreUnavailableError(
                "Participant store is not configured. "
                "Set FIREBASE_DATABASE_URL or DATABASE_URL."
            )
        return self.repository

    def _load(self, participant_id: str) -> tuple[ParticipantRepository, Participant]:
        store = self._store()
        participant = store.get(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return store, participant

    def _entry(
        self,
        entry_type: HistoryType,
        description: str,
        now: datetime,
        *,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
        details: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> HistoryEntry:
        return HistoryEntry(
            id=new_id("history"),
            type=entry_type,
            description=description,
            created_at=_iso(now),
            details=details,
            created_by=actor_id,
            created_by_name=actor_name,
            metadata=_compact(metadata or {}) or None,
        )

    def _commit(
        self,
        store: ParticipantRepository,
        participant_id: str,
        fields: Dict[str, Any],
        entry: Optional[HistoryEntry],
        note: Optional[Note] = None,
    ) -> Participant:
        store.apply(participant_id, fields, history=entry, note=note)
        updated = store.get(participant_id)
        if updated is None:
            raise ParticipantNotFoundError(participant_id)
        return updated

    # ------------------------------------------------------------------
    # Intake

    def add_participant(self, intake: IntakeData) -> Participant:
        now = self._clock()
        today = now.date()
        dob, release = validate_intake(intake, today)
        store = self._store()

        timestamp = _iso(now)
        participant = Participant(
            id=new_id("participant"),
            participant_number=participant_number_for(intake),
            first_name=intake.first_name.strip(),
            last_name=intake.last_name.strip(),
            date_of_birth=dob.isoformat(),
            age=calculate_age(dob, today),
            gender=intake.gender.strip(),
            release_date=release.isoformat(),
            time_out=calculate_time_out(release, today),
            released_from=intake.released_from.strip(),
            status=ParticipantStatus.PENDING_BRIDGE,
            submitted_at=timestamp,
            phone_number=_clean(intake.phone_number),
            email=_clean(intake.email),
            intake_type=intake.intake_type,
            moved_to_bridge_at=timestamp,
            extra_fields={str(k): str(v) for k, v in intake.extra_fields.items()},
        )
        participant.history.append(
            self._entry(
                HistoryType.FORM_SUBMITTED,
                "Participant added",
                now,
                metadata={"intakeType": intake.intake_type},
            )
        )
        store.create(participant)
        logger.info(
            "Added participant %s (%s, #%s)",
            participant.id,
            participant.full_name,
            participant.participant_number,
        )
        return participant

    # ------------------------------------------------------------------
    # Status machine

    def update_participant_status(
        self,
        participant_id: str,
        new_status: str,
        actor_id: str,
        actor_name: str,
        reason: Optional[str] = None,
    ) -> Participant:
        """
        Moves a participant to any status. Operators may correct mistakes, so
        only graduation is gated; moves outside the usual workflow are logged
        and flagged in the history metadata.
        """
        try:
            target = ParticipantStatus(new_status)
        except ValueError:
            raise InvalidInputError(f"Unknown status: {new_status}", ["status"]) from None

        store, participant = self._load(participant_id)
        now = self._clock()
        fields: Dict[str, Any] = {"status": target}

        if target == ParticipantStatus.GRADUATED:
            if not is_ready_for_graduation(participant.completed_graduation_steps):
                raise GraduationNotReadyError(
                    participant_id,
                    len(participant.completed_graduation_steps),
                    len(GRADUATION_STEPS),
                )
            fields["graduated_at"] = _iso(now)
        elif target == ParticipantStatus.ACTIVE_MENTORSHIP:
            if not participant.next_weekly_update_due:
                fields["next_weekly_update_due"] = _iso(
                    now + timedelta(days=WEEKLY_UPDATE_INTERVAL_DAYS)
                )
            if not participant.next_monthly_check_in_due:
                fields["next_monthly_check_in_due"] = _iso(
                    now + timedelta(days=MONTHLY_CHECK_IN_INTERVAL_DAYS)
                )
        elif target == ParticipantStatus.PENDING_BRIDGE:
            fields["assigned_mentor"] = None
            if participant.status != ParticipantStatus.PENDING_BRIDGE:
                fields["moved_to_bridge_at"] = _iso(now)
        elif target == ParticipantStatus.UNABLE_TO_CONTACT:
            fields["moved_to_unable_to_contact_at"] = _iso(now)

        conventional = is_conventional_transition(participant.status, target)
        if not conventional:
            logger.warning(
                "Unconventional status change for %s: %s -> %s by %s",
                participant_id,
                participant.status,
                target,
                actor_id,
            )

        entry = self._entry(
            HistoryType.STATUS_CHANGE,
            f"Status changed to {status_label(target)}",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            details=_clean(reason),
            metadata={
                "fromStatus": participant.status.value,
                "toStatus": target.value,
                "conventional": conventional,
            },
        )
        updated = self._commit(store, participant_id, fields, entry)
        logger.info(
            "Participant %s status %s -> %s", participant_id, participant.status, target
        )
        return updated

    def move_to_mentorship(
        self, participant_id: str, actor_id: str, actor_name: str
    ) -> Participant:
        """Hands a participant from the Bridge Team to the mentor-assignment queue."""
        store, participant = self._load(participant_id)
        if participant.status not in BRIDGE_TEAM_STATUSES:
            raise PreconditionError(
                f"Participant {participant_id} is not in a Bridge Team status "
                f"({participant.status})"
            )
        now = self._clock()
        fields = {
            "status": ParticipantStatus.PENDING_MENTOR,
            "moved_to_mentorship_at": _iso(now),
            "assigned_bridge_team_member": actor_id,
        }
        entry = self._entry(
            HistoryType.STATUS_CHANGE,
            "Moved to mentorship assignment queue",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={
                "fromStatus": participant.status.value,
                "toStatus": ParticipantStatus.PENDING_MENTOR.value,
            },
        )
        return self._commit(store, participant_id, fields, entry)

    def bulk_move_to_mentorship(
        self, participant_ids: Iterable[str], actor_id: str, actor_name: str
    ) -> List[Participant]:
        moved = []
        for participant_id in participant_ids:
            try:
                moved.append(self.move_to_mentorship(participant_id, actor_id, actor_name))
            except (ParticipantNotFoundError, PreconditionError) as e:
                logger.warning("Skipping %s in bulk move: %s", participant_id, e)
        logger.info("Bulk move complete: %d participants moved", len(moved))
        return moved

    # ------------------------------------------------------------------
    # Assignments

    def _assign(
        self,
        participant_id: str,
        field_name: str,
        user_id: str,
        description: str,
        actor_id: str,
        actor_name: str,
    ) -> Participant:
        user_id = _require_text(user_id, field_name)
        store, participant = self._load(participant_id)
        now = self._clock()
        entry = self._entry(
            HistoryType.ASSIGNMENT_CHANGE,
            description,
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={
                "field": field_name,
                "previous": getattr(participant, field_name),
                "assigned": user_id,
            },
        )
        return self._commit(store, participant_id, {field_name: user_id}, entry)

    def assign_to_bridge_team(
        self, participant_id: str, user_id: str, actor_id: str, actor_name: str
    ) -> Participant:
        return self._assign(
            participant_id,
            "assigned_bridge_team_member",
            user_id,
            "Assigned to Bridge Team member",
            actor_id,
            actor_name,
        )

    def assign_to_mentor_leader(
        self, participant_id: str, user_id: str, actor_id: str, actor_name: str
    ) -> Participant:
        return self._assign(
            participant_id,
            "assigned_mentor_leader",
            user_id,
            "Assigned to Mentorship Leader",
            actor_id,
            actor_name,
        )

    def assign_to_mentor(
        self, participant_id: str, mentor_id: str, leader_id: str, leader_name: str
    ) -> Participant:
        mentor_id = _require_text(mentor_id, "mentor_id")
        store, participant = self._load(participant_id)
        now = self._clock()
        fields = {
            "assigned_mentor": mentor_id,
            "assigned_to_mentor_at": _iso(now),
            "next_monthly_report_due": _iso(
                now + timedelta(days=MONTHLY_REPORT_INTERVAL_DAYS)
            ),
            "initial_contact_due": _iso(
                now + timedelta(days=INITIAL_CONTACT_WINDOW_DAYS)
            ),
            "status": ParticipantStatus.INITIAL_CONTACT_PENDING,
            "number_of_contact_attempts": 0,
            "first_attempt_date": None,
            "last_attempt_date": None,
        }
        entry = self._entry(
            HistoryType.ASSIGNMENT_CHANGE,
            f"Assigned to mentor - initial contact due in {INITIAL_CONTACT_WINDOW_DAYS} days",
            now,
            actor_id=leader_id,
            actor_name=leader_name,
            metadata={
                "mentorId": mentor_id,
                "previousMentor": participant.assigned_mentor,
                "fromStatus": participant.status.value,
                "toStatus": ParticipantStatus.INITIAL_CONTACT_PENDING.value,
            },
        )
        return self._commit(store, participant_id, fields, entry)

    def bulk_assign_to_mentor(
        self,
        participant_ids: Iterable[str],
        mentor_id: str,
        leader_id: str,
        leader_name: str,
    ) -> List[Participant]:
        assigned = []
        for participant_id in participant_ids:
            participant = self._store().get(participant_id)
            if participant is None or participant.status != ParticipantStatus.PENDING_MENTOR:
                logger.warning(
                    "Skipping %s in bulk assignment: not pending mentor assignment",
                    participant_id,
                )
                continue
            assigned.append(
                self.assign_to_mentor(participant_id, mentor_id, leader_id, leader_name)
            )
        return assigned

    # ------------------------------------------------------------------
    # Contact forms

    def record_bridge_contact(
        self, form: BridgeContactForm, actor_id: str, actor_name: str
    ) -> Participant:
        outcome = _contact_outcome(form.outcome_type, "outcome_type")
        attempt_type = _attempt_type(form.attempt_type)
        _require_text(form.contact_date, "contact_date")
        contact_method = _require_text(form.contact_method, "contact_method")
        store, participant = self._load(form.participant_id)
        now = self._clock()

        fields: Dict[str, Any] = {"assigned_bridge_team_member": actor_id}
        if outcome == ContactOutcome.SUCCESSFUL:
            fields["status"] = ParticipantStatus.PENDING_MENTOR
            fields["moved_to_mentorship_at"] = _iso(now)
            entry_type = HistoryType.STATUS_CHANGE
            description = (
                "Bridge Team successfully contacted - moved to mentorship assignment queue"
            )
        else:
            fields["status"] = (
                ParticipantStatus.BRIDGE_ATTEMPTED
                if outcome == ContactOutcome.ATTEMPTED
                else ParticipantStatus.BRIDGE_UNABLE
            )
            entry_type = HistoryType.CONTACT_ATTEMPT
            description = f"Contact {outcome.value}: {contact_method}"

        entry = self._entry(
            entry_type,
            description,
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            details=_clean(form.contact_notes),
            metadata={
                "contactDate": form.contact_date,
                "contactMethod": contact_method,
                "outcomeType": outcome.value,
                "attemptType": attempt_type,
                "unableReason": _clean(form.unable_reason),
                "fromStatus": participant.status.value,
                "toStatus": fields["status"].value,
            },
        )
        return self._commit(store, form.participant_id, fields, entry)

    def _days_since(self, value: Optional[str], now: datetime) -> int:
        started = parse_date(value, today=now.date())
        if started is None:
            return 0
        return (now.date() - started).days

    def record_initial_contact(
        self, form: InitialContactForm, actor_id: str, actor_name: str
    ) -> Participant:
        """
        Records the outcome of a first-contact attempt.

        The context (mentor or Bridge Team) follows from the current status.
        A third or later failed attempt made at least 30 days after the first
        one moves the participant to unable_to_contact.
        """
        outcome = _contact_outcome(form.contact_outcome, "contact_outcome")
        attempt_type = _attempt_type(form.attempt_type)
        contact_date = _require_text(form.contact_date, "contact_date")
        store, participant = self._load(form.participant_id)
        now = self._clock()
        mentor_context = participant.status in MENTOR_CONTACT_STATUSES
        who = "Mentor" if mentor_context else "Bridge Team"
        attempts = participant.number_of_contact_attempts + 1
        first_attempt = participant.first_attempt_date or contact_date

        fields: Dict[str, Any] = {
            "number_of_contact_attempts": attempts,
            "last_attempt_date": contact_date,
        }

        if outcome == ContactOutcome.ATTEMPTED:
            target = (
                ParticipantStatus.MENTOR_ATTEMPTED
                if mentor_context
                else ParticipantStatus.BRIDGE_ATTEMPTED
            )
            if (
                attempts >= UNABLE_TO_CONTACT_ATTEMPTS
                and self._days_since(first_attempt, now) >= UNABLE_TO_CONTACT_MIN_DAYS
            ):
                target = ParticipantStatus.UNABLE_TO_CONTACT
                fields["moved_to_unable_to_contact_at"] = _iso(now)
            fields["first_attempt_date"] = first_attempt
            entry = self._entry(
                HistoryType.CONTACT_ATTEMPT,
                f"{who} contact attempt recorded",
                now,
                actor_id=actor_id,
                actor_name=actor_name,
                details=_clean(form.attempt_notes),
                metadata={
                    "contactDate": contact_date,
                    "attemptType": attempt_type,
                    "attemptNotes": _clean(form.attempt_notes),
                    "attemptNumber": attempts,
                    "toStatus": target.value,
                },
            )
        elif outcome == ContactOutcome.UNABLE:
            target = (
                ParticipantStatus.MENTOR_UNABLE
                if mentor_context
                else ParticipantStatus.BRIDGE_UNABLE
            )
            fields["first_attempt_date"] = first_attempt
            entry = self._entry(
                HistoryType.CONTACT_ATTEMPT,
                f"{who} unable to contact participant",
                now,
                actor_id=actor_id,
                actor_name=actor_name,
                details=_clean(form.unable_reason),
                metadata={
                    "contactDate": contact_date,
                    "unableReason": _clean(form.unable_reason),
                    "toStatus": target.value,
                },
            )
        else:
            target = ParticipantStatus.ACTIVE_MENTORSHIP
            next_weekly = _iso(now + timedelta(days=WEEKLY_UPDATE_INTERVAL_DAYS))
            next_monthly = _iso(now + timedelta(days=MONTHLY_CHECK_IN_INTERVAL_DAYS))
            fields.update(
                {
                    "initial_contact_completed_at": _iso(now),
                    "next_weekly_update_due": next_weekly,
                    "next_monthly_check_in_due": next_monthly,
                }
            )
            entry = self._entry(
                HistoryType.FORM_SUBMITTED,
                "Initial contact form completed - weekly updates and monthly check-ins scheduled",
                now,
                actor_id=actor_id,
                actor_name=actor_name,
                details=_clean(form.additional_notes),
                metadata={
                    "contactDate": contact_date,
                    "contactOutcome": outcome.value,
                    "mentorshipOffered": form.mentorship_offered,
                    "livingSituation": form.living_situation,
                    "livingSituationDetail": form.living_situation_detail,
                    "employmentStatus": form.employment_status,
                    "clothingNeeds": form.clothing_needs,
                    "openInvitationToCall": form.open_invitation_to_call,
                    "prayerOffered": form.prayer_offered,
                    "guidanceNeeded": form.guidance_needed,
                    "guidanceNotes": _clean(form.guidance_notes),
                    "nextWeeklyUpdateDue": next_weekly,
                    "nextMonthlyCheckInDue": next_monthly,
                },
            )

        fields["status"] = target
        return self._commit(store, form.participant_id, fields, entry)

    # ------------------------------------------------------------------
    # Mentorship follow-up forms

    def record_weekly_update(
        self, form: WeeklyUpdateForm, actor_id: str, actor_name: str
    ) -> Participant:
        progress = _require_text(form.progress_update, "progress_update")
        store, _ = self._load(form.participant_id)
        now = self._clock()
        fields = {
            "last_weekly_update_at": _iso(now),
            "next_weekly_update_due": _iso(
                now + timedelta(days=WEEKLY_UPDATE_INTERVAL_DAYS)
            ),
        }
        entry = self._entry(
            HistoryType.FORM_SUBMITTED,
            "Weekly update form completed",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={
                "updateDate": form.update_date,
                "contactThisWeek": form.contact_this_week,
                "contactMethod": form.contact_method,
                "progressUpdate": progress,
                "challengesThisWeek": _clean(form.challenges_this_week),
                "supportNeeded": _clean(form.support_needed),
            },
        )
        return self._commit(store, form.participant_id, fields, entry)

    def record_monthly_check_in(
        self, form: MonthlyCheckInForm, actor_id: str, actor_name: str
    ) -> Participant:
        """
        Records a monthly check-in. `form.completed_steps` replaces the
        participant's completed graduation steps; steps left out are
        un-completed and listed in the history entry.
        """
        accomplishments = _require_text(
            form.accomplishments_since_last_check_in,
            "accomplishments_since_last_check_in",
        )
        challenges = _require_text(form.challenges_faced, "challenges_faced")
        notable_changes = _require_text(form.notable_changes, "notable_changes")
        unknown = unknown_steps(form.completed_steps)
        if unknown:
            raise InvalidInputError(
                f"Unknown graduation steps: {', '.join(unknown)}", ["completed_steps"]
            )
        steps = normalize_steps(form.completed_steps)

        store, participant = self._load(form.participant_id)
        now = self._clock()
        removed = [
            step for step in participant.completed_graduation_steps if step not in steps
        ]
        if removed:
            logger.warning(
                "Monthly check-in for %s un-completes steps %s",
                form.participant_id,
                removed,
            )

        fields = {
            "completed_graduation_steps": steps,
            "last_monthly_check_in_at": _iso(now),
            "next_monthly_check_in_due": _iso(
                now + timedelta(days=MONTHLY_CHECK_IN_INTERVAL_DAYS)
            ),
        }
        entry = self._entry(
            HistoryType.FORM_SUBMITTED,
            "Monthly check-in form completed",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={
                "checkInDate": form.check_in_date,
                "accomplishmentsSinceLastCheckIn": accomplishments,
                "challengesFaced": challenges,
                "completedSteps": steps,
                "notableChanges": notable_changes,
                "additionalNotes": _clean(form.additional_notes),
                "removedSteps": removed or None,
                "progress": calculate_graduation_progress(steps),
            },
        )
        return self._commit(store, form.participant_id, fields, entry)

    def submit_monthly_report(
        self, form: MonthlyReportForm, actor_id: str, actor_name: str
    ) -> Participant:
        updates = _require_text(form.updates, "updates")
        _require_text(form.report_date, "report_date")
        store, _ = self._load(form.participant_id)
        now = self._clock()
        fields = {
            "last_monthly_report_at": _iso(now),
            "next_monthly_report_due": _iso(
                now + timedelta(days=MONTHLY_REPORT_INTERVAL_DAYS)
            ),
        }
        entry = self._entry(
            HistoryType.FORM_SUBMITTED,
            "Monthly report submitted",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={"reportDate": form.report_date, "updates": updates},
        )
        return self._commit(store, form.participant_id, fields, entry)

    # ------------------------------------------------------------------
    # Graduation

    def add_completed_graduation_step(
        self,
        participant_id: str,
        step_id: str,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> Participant:
        if unknown_steps([step_id]):
            raise InvalidInputError(
                f"Unknown graduation step: {step_id}", ["step_id"]
            )
        store, participant = self._load(participant_id)
        if step_id in participant.completed_graduation_steps:
            return participant
        steps = normalize_steps([*participant.completed_graduation_steps, step_id])
        entry = self._entry(
            HistoryType.FORM_SUBMITTED,
            f"Graduation step completed: {get_graduation_step_by_id(step_id).title}",
            self._clock(),
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={
                "stepId": step_id,
                "progress": calculate_graduation_progress(steps),
            },
        )
        return self._commit(
            store, participant_id, {"completed_graduation_steps": steps}, entry
        )

    def approve_graduation(
        self,
        participant_id: str,
        approval: GraduationApproval,
        actor_role: ActorRole,
    ) -> Participant:
        if not _is_admin(actor_role):
            raise NotAuthorizedError("Only administrators can approve graduation.")
        store, participant = self._load(participant_id)
        if participant.graduation_approval is not None:
            raise PreconditionError(
                f"Graduation for participant {participant_id} was already approved"
            )
        if not is_ready_for_graduation(participant.completed_graduation_steps):
            raise GraduationNotReadyError(
                participant_id,
                len(participant.completed_graduation_steps),
                len(GRADUATION_STEPS),
            )

        now = self._clock()
        approval = replace(
            approval,
            participant_id=participant_id,
            approval_date=approval.approval_date or _iso(now),
        )
        fields = {
            "status": ParticipantStatus.GRADUATED,
            "graduation_approval": approval,
            "graduated_at": _iso(now),
        }
        entry = self._entry(
            HistoryType.STATUS_CHANGE,
            "Graduated from mentorship program",
            now,
            actor_id=approval.approved_by,
            actor_name=approval.approved_by_name,
            details=_clean(approval.notes),
            metadata={
                "fromStatus": participant.status.value,
                "toStatus": ParticipantStatus.GRADUATED.value,
            },
        )
        updated = self._commit(store, participant_id, fields, entry)
        logger.info(
            "Participant %s graduated, approved by %s", participant_id, approval.approved_by
        )
        return updated

    # ------------------------------------------------------------------
    # Notes and contact details

    def add_note(
        self, participant_id: str, content: str, actor_id: str, actor_name: str
    ) -> Participant:
        text = _require_text(content, "content")
        if len(text) > MAX_NOTE_LENGTH:
            raise InvalidInputError(
                f"Notes are limited to {MAX_NOTE_LENGTH} characters.", ["content"]
            )
        store, _ = self._load(participant_id)
        now = self._clock()
        note = Note(
            id=new_id("note"),
            content=text,
            created_by=actor_id,
            created_by_name=actor_name,
            created_at=_iso(now),
        )
        entry = self._entry(
            HistoryType.NOTE_ADDED,
            "Note added",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            details=text,
            metadata={"noteId": note.id},
        )
        updated = self._commit(store, participant_id, {}, entry, note=note)
        logger.info("Note added to participant %s", participant_id)
        return updated

    def update_contact_info(
        self,
        participant_id: str,
        actor_id: str,
        actor_name: str,
        phone_number: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Participant:
        """
        Updates phone and/or email. None leaves a value unchanged and an empty
        string clears it; at least one contact method must remain.
        """
        store, participant = self._load(participant_id)
        phone = participant.phone_number if phone_number is None else _clean(phone_number)
        mail = participant.email if email is None else _clean(email)
        if not phone and not mail:
            raise InvalidInputError(
                "Please provide at least one contact method (email or phone number).",
                ["phone_number", "email"],
            )
        now = self._clock()
        entry = self._entry(
            HistoryType.FORM_SUBMITTED,
            "Contact information updated",
            now,
            actor_id=actor_id,
            actor_name=actor_name,
            metadata={"phoneNumber": phone, "email": mail},
        )
        return self._commit(
            store, participant_id, {"phone_number": phone, "email": mail}, entry
        )

    # ------------------------------------------------------------------
    # Deletion

    def delete_participant(self, participant_id: str, actor_role: ActorRole) -> None:
        """Permanently removes a participant with all notes and history."""
        if not _is_admin(actor_role):
            raise NotAuthorizedError("Only administrators can delete participants.")
        store, participant = self._load(participant_id)
        logger.warning(
            "Deleting participant %s (%s, #%s, status %s)",
            participant_id,
            participant.full_name,
            participant.participant_number,
            participant.status,
        )
        store.delete(participant_id)

    # ------------------------------------------------------------------
    # Queries over the live collection

    def get_participant_by_id(self, participant_id: str) -> Optional[Participant]:
        with self._lock:
            return self._participants.get(participant_id)

    def list_participants(self) -> List[Participant]:
        return self.participants

    def get_participants_by_status(self, status: str) -> List[Participant]:
        return [p for p in self.participants if p.status == status]

    def get_participants_for_bridge_team(self) -> List[Participant]:
        return [p for p in self.participants if p.status in _BRIDGE_QUEUE]

    def get_participants_for_mentor_leader(self) -> List[Participant]:
        return self.get_participants_by_status(ParticipantStatus.PENDING_MENTOR)

    def get_participants_for_mentor(self, mentor_id: str) -> List[Participant]:
        return [p for p in self.participants if p.assigned_mentor == mentor_id]

    def get_participants_with_overdue_updates(
        self, mentor_id: Optional[str] = None
    ) -> List[Participant]:
        now = self._clock()

        def overdue(value: Optional[str]) -> bool:
            due = _parse_timestamp(value)
            return due is not None and due < now

        return [
            p
            for p in self.participants
            if p.status == ParticipantStatus.ACTIVE_MENTORSHIP
            and (mentor_id is None or p.assigned_mentor == mentor_id)
            and (overdue(p.next_weekly_update_due) or overdue(p.next_monthly_check_in_due))
        ]

    def find_duplicates_by_phone(self, phone_number: Optional[str]) -> List[Participant]:
        return self._find_duplicates("phone_number", phone_number)

    def find_duplicates_by_email(self, email: Optional[str]) -> List[Participant]:
        return self._find_duplicates("email", email)

    def _find_duplicates(self, field_name: str, value: Optional[str]) -> List[Participant]:
        if not value or not value.strip():
            return []
        normalized = value.strip().lower()
        return [
            p
            for p in self.participants
            if getattr(p, field_name)
            and getattr(p, field_name).strip().lower() == normalized
        ]
