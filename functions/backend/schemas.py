"""
Pydantic schemas for the participant lifecycle API.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from shared.constants import MAX_FORM_TEXT_LENGTH, MAX_NAME_LENGTH, MAX_NOTE_LENGTH


class IntakeRequest(BaseModel):
    first_name: str = Field(..., max_length=MAX_NAME_LENGTH)
    last_name: str = Field(..., max_length=MAX_NAME_LENGTH)
    gender: str
    released_from: str = Field(..., max_length=MAX_NAME_LENGTH)
    release_date: str
    date_of_birth: str
    participant_number: str = ""
    participant_number_not_available: bool = False
    phone_number: Optional[str] = None
    email: Optional[str] = None
    intake_type: Optional[str] = None
    extra_fields: Dict[str, str] = Field(default_factory=dict)


class StatusChangeRequest(BaseModel):
    status: str
    reason: Optional[str] = Field(default=None, max_length=MAX_FORM_TEXT_LENGTH)


class NoteRequest(BaseModel):
    content: str = Field(..., max_length=MAX_NOTE_LENGTH)


class ContactInfoRequest(BaseModel):
    phone_number: Optional[str] = None
    email: Optional[str] = None


class MonthlyCheckInRequest(BaseModel):
    check_in_date: str
    accomplishments_since_last_check_in: str = Field(
        ..., max_length=MAX_FORM_TEXT_LENGTH
    )
    challenges_faced: str = Field(..., max_length=MAX_FORM_TEXT_LENGTH)
    notable_changes: str = Field(..., max_length=MAX_FORM_TEXT_LENGTH)
    completed_steps: List[str] = Field(default_factory=list)
    additional_notes: Optional[str] = Field(default=None, max_length=MAX_FORM_TEXT_LENGTH)


class GraduationApprovalRequest(BaseModel):
    approval_date: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=MAX_FORM_TEXT_LENGTH)


class BridgeContactRequest(BaseModel):
    contact_date: str
    contact_method: str
    contact_notes: str = Field(default="", max_length=MAX_FORM_TEXT_LENGTH)
    outcome_type: str
    attempt_type: Optional[str] = None
    unable_reason: Optional[str] = None


class InitialContactRequest(BaseModel):
    contact_date: str
    contact_outcome: str
    attempt_type: Optional[str] = None
    attempt_notes: Optional[str] = Field(default=None, max_length=MAX_FORM_TEXT_LENGTH)
    unable_reason: Optional[str] = None
    mentorship_offered: Optional[str] = None
    living_situation: Optional[str] = None
    living_situation_detail: Optional[str] = None
    employment_status: Optional[str] = None
    clothing_needs: Optional[str] = None
    open_invitation_to_call: bool = False
    prayer_offered: bool = False
    additional_notes: Optional[str] = Field(
        default=None, max_length=MAX_FORM_TEXT_LENGTH
    )
    guidance_needed: bool = False
    guidance_notes: Optional[str] = None


class WeeklyUpdateRequest(BaseModel):
    update_date: str
    contact_this_week: bool
    progress_update: str = Field(..., max_length=MAX_FORM_TEXT_LENGTH)
    challenges_this_week: str = Field(default="", max_length=MAX_FORM_TEXT_LENGTH)
    contact_method: Optional[str] = None
    support_needed: Optional[str] = None


class MonthlyReportRequest(BaseModel):
    report_date: str
    updates: str = Field(..., max_length=MAX_FORM_TEXT_LENGTH)


class MentorAssignmentRequest(BaseModel):
    mentor_id: str


class ParticipantResponse(BaseModel):
    participant: dict
    graduation_progress: int


class ParticipantListResponse(BaseModel):
    participants: List[dict]
    count: int


class GraduationStepResponse(BaseModel):
    id: str
    title: str
    description: str
    order: int


class GraduationStepsResponse(BaseModel):
    steps: List[GraduationStepResponse]


class StatusResponse(BaseModel):
    status: str


class Actor(BaseModel):
    """Caller identity, taken from the X-Actor-* request headers."""

    id: str
    name: str
    roles: List[str] = Field(default_factory=list)
