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

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class IntakeData:
    """Intake submission, from the public form or manual entry."""

    first_name: str
    last_name: str
    gender: str
    released_from: str
    release_date: str  # ISO-8601 or MM/DD/YYYY
    date_of_birth: str  # ISO-8601 or MM/DD/YYYY
    participant_number: str = ""
    participant_number_not_available: bool = False
    phone_number: Optional[str] = None
    email: Optional[str] = None
    intake_type: Optional[str] = None
    # Answers to custom questions configured on the intake form.
    extra_fields: Dict[str, str] = field(default_factory=dict)


@dataclass
class MonthlyCheckInForm:
    participant_id: str
    check_in_date: str
    accomplishments_since_last_check_in: str
    challenges_faced: str
    notable_changes: str
    # The full set of completed step ids, not just the newly completed ones.
    completed_steps: List[str] = field(default_factory=list)
    additional_notes: Optional[str] = None


@dataclass
class BridgeContactForm:
    participant_id: str
    contact_date: str
    contact_method: str  # phone, email, text, in-person
    contact_notes: str
    outcome_type: str  # successful | attempted | unable
    attempt_type: Optional[str] = None
    unable_reason: Optional[str] = None


@dataclass
class InitialContactForm:
    """Mentor's (or Bridge Team's) first-contact form."""

    participant_id: str
    contact_date: str
    contact_outcome: str  # successful | attempted | unable
    attempt_type: Optional[str] = None
    attempt_notes: Optional[str] = None
    unable_reason: Optional[str] = None
    mentorship_offered: Optional[str] = None
    living_situation: Optional[str] = None
    living_situation_detail: Optional[str] = None
    employment_status: Optional[str] = None
    clothing_needs: Optional[str] = None
    open_invitation_to_call: bool = False
    prayer_offered: bool = False
    additional_notes: Optional[str] = None
    guidance_needed: bool = False
    guidance_notes: Optional[str] = None


@dataclass
class WeeklyUpdateForm:
    participant_id: str
    update_date: str
    contact_this_week: bool
    progress_update: str
    challenges_this_week: str = ""
    contact_method: Optional[str] = None
    support_needed: Optional[str] = None


@dataclass
class MonthlyReportForm:
    participant_id: str
    report_date: str
    updates: str
