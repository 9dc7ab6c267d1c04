"""
HTTP routes for the participant lifecycle API.

Lifecycle errors propagate to the exception handler in `backend.app`, which
maps each error class to its HTTP status.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from backend.dependencies import get_lifecycle
from backend.lifecycle import ParticipantLifecycle
from backend.schemas import (
    Actor,
    BridgeContactRequest,
    ContactInfoRequest,
    GraduationApprovalRequest,
    GraduationStepResponse,
    GraduationStepsResponse,
    InitialContactRequest,
    IntakeRequest,
    MentorAssignmentRequest,
    MonthlyCheckInRequest,
    MonthlyReportRequest,
    NoteRequest,
    ParticipantListResponse,
    ParticipantResponse,
    StatusChangeRequest,
    StatusResponse,
    WeeklyUpdateRequest,
)
from shared.forms import (
    BridgeContactForm,
    InitialContactForm,
    IntakeData,
    MonthlyCheckInForm,
    MonthlyReportForm,
    WeeklyUpdateForm,
)
from shared.graduation_steps import GRADUATION_STEPS, calculate_graduation_progress
from shared.participant import GraduationApproval, Participant, participant_to_json

logger = logging.getLogger(__name__)

router = APIRouter()


def get_actor(
    x_actor_id: str = Header("anonymous"),
    x_actor_name: str = Header("Unknown"),
    x_actor_role: Optional[str] = Header(None),
) -> Actor:
    roles = [role.strip() for role in (x_actor_role or "").split(",") if role.strip()]
    return Actor(id=x_actor_id, name=x_actor_name, roles=roles)


def _participant_response(participant: Participant) -> ParticipantResponse:
    return ParticipantResponse(
        participant=participant_to_json(participant),
        graduation_progress=calculate_graduation_progress(
            participant.completed_graduation_steps
        ),
    )


def _list_response(participants: list[Participant]) -> ParticipantListResponse:
    return ParticipantListResponse(
        participants=[participant_to_json(p) for p in participants],
        count=len(participants),
    )


@router.post("/participants", response_model=ParticipantResponse, status_code=201)
def add_participant(
    payload: IntakeRequest,
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    participant = lifecycle.add_participant(IntakeData(**payload.model_dump()))
    return _participant_response(participant)


@router.get("/participants", response_model=ParticipantListResponse)
def list_participants(
    status: Optional[str] = Query(None),
    mentor_id: Optional[str] = Query(None),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    if status:
        participants = lifecycle.get_participants_by_status(status)
    else:
        participants = lifecycle.list_participants()
    if mentor_id:
        participants = [p for p in participants if p.assigned_mentor == mentor_id]
    return _list_response(participants)


@router.get("/participants/duplicates", response_model=ParticipantListResponse)
def find_duplicates(
    phone: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    matches = {p.id: p for p in lifecycle.find_duplicates_by_phone(phone)}
    for p in lifecycle.find_duplicates_by_email(email):
        matches.setdefault(p.id, p)
    return _list_response(list(matches.values()))


@router.get("/participants/overdue", response_model=ParticipantListResponse)
def overdue_participants(
    mentor_id: Optional[str] = Query(None),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    return _list_response(lifecycle.get_participants_with_overdue_updates(mentor_id))


@router.get("/participants/{participant_id}", response_model=ParticipantResponse)
def get_participant(
    participant_id: str, lifecycle: ParticipantLifecycle = Depends(get_lifecycle)
):
    participant = lifecycle.get_participant_by_id(participant_id)
    if not participant:
        raise HTTPException(status_code=404, detail="Participant not found")
    return _participant_response(participant)


@router.delete("/participants/{participant_id}", response_model=StatusResponse)
def delete_participant(
    participant_id: str,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    lifecycle.delete_participant(participant_id, actor.roles)
    return StatusResponse(status="deleted")


@router.post("/participants/{participant_id}/status", response_model=ParticipantResponse)
def update_status(
    participant_id: str,
    payload: StatusChangeRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    participant = lifecycle.update_participant_status(
        participant_id, payload.status, actor.id, actor.name, reason=payload.reason
    )
    return _participant_response(participant)


@router.post("/participants/{participant_id}/notes", response_model=ParticipantResponse)
def add_note(
    participant_id: str,
    payload: NoteRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    participant = lifecycle.add_note(participant_id, payload.content, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/contact-info", response_model=ParticipantResponse
)
def update_contact_info(
    participant_id: str,
    payload: ContactInfoRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    participant = lifecycle.update_contact_info(
        participant_id,
        actor.id,
        actor.name,
        phone_number=payload.phone_number,
        email=payload.email,
    )
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/monthly-check-in", response_model=ParticipantResponse
)
def record_monthly_check_in(
    participant_id: str,
    payload: MonthlyCheckInRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    form = MonthlyCheckInForm(participant_id=participant_id, **payload.model_dump())
    participant = lifecycle.record_monthly_check_in(form, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/graduation-approval",
    response_model=ParticipantResponse,
)
def approve_graduation(
    participant_id: str,
    payload: GraduationApprovalRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    approval = GraduationApproval(
        participant_id=participant_id,
        approved_by=actor.id,
        approved_by_name=actor.name,
        approval_date=payload.approval_date or "",
        notes=payload.notes,
    )
    participant = lifecycle.approve_graduation(participant_id, approval, actor.roles)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/bridge-contact", response_model=ParticipantResponse
)
def record_bridge_contact(
    participant_id: str,
    payload: BridgeContactRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    form = BridgeContactForm(participant_id=participant_id, **payload.model_dump())
    participant = lifecycle.record_bridge_contact(form, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/initial-contact", response_model=ParticipantResponse
)
def record_initial_contact(
    participant_id: str,
    payload: InitialContactRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    form = InitialContactForm(participant_id=participant_id, **payload.model_dump())
    participant = lifecycle.record_initial_contact(form, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/weekly-update", response_model=ParticipantResponse
)
def record_weekly_update(
    participant_id: str,
    payload: WeeklyUpdateRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    form = WeeklyUpdateForm(participant_id=participant_id, **payload.model_dump())
    participant = lifecycle.record_weekly_update(form, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/monthly-report", response_model=ParticipantResponse
)
def submit_monthly_report(
    participant_id: str,
    payload: MonthlyReportRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    form = MonthlyReportForm(participant_id=participant_id, **payload.model_dump())
    participant = lifecycle.submit_monthly_report(form, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/mentorship", response_model=ParticipantResponse
)
def move_to_mentorship(
    participant_id: str,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    participant = lifecycle.move_to_mentorship(participant_id, actor.id, actor.name)
    return _participant_response(participant)


@router.post(
    "/participants/{participant_id}/assignments/mentor",
    response_model=ParticipantResponse,
)
def assign_to_mentor(
    participant_id: str,
    payload: MentorAssignmentRequest,
    actor: Actor = Depends(get_actor),
    lifecycle: ParticipantLifecycle = Depends(get_lifecycle),
):
    participant = lifecycle.assign_to_mentor(
        participant_id, payload.mentor_id, actor.id, actor.name
    )
    return _participant_response(participant)


@router.get("/graduation-steps", response_model=GraduationStepsResponse)
def list_graduation_steps():
    return GraduationStepsResponse(
        steps=[
            GraduationStepResponse(
                id=step.id,
                title=step.title,
                description=step.description,
                order=step.order,
            )
            for step in GRADUATION_STEPS
        ]
    )
