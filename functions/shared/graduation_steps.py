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

from dataclasses import dataclass
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class GraduationStep:
    id: str
    title: str
    description: str
    order: int


# The 10 milestones a mentee completes to graduate from the program.
GRADUATION_STEPS: List[GraduationStep] = [
    GraduationStep(
        id="step_1",
        title="Complete Initial Contact with Mentor",
        description="Successfully complete initial meeting and establish communication with assigned mentor",
        order=1,
    ),
    GraduationStep(
        id="step_2",
        title="Establish Clear Goals",
        description="Work with mentor to define specific, measurable goals for the mentorship period",
        order=2,
    ),
    GraduationStep(
        id="step_3",
        title="Attend Weekly Check-ins",
        description="Maintain regular weekly communication with mentor for at least 4 consecutive weeks",
        order=3,
    ),
    GraduationStep(
        id="step_4",
        title="Complete Job Readiness Training",
        description="Participate in job readiness workshops or training sessions",
        order=4,
    ),
    GraduationStep(
        id="step_5",
        title="Develop Resume and Cover Letter",
        description="Create professional resume and cover letter with mentor guidance",
        order=5,
    ),
    GraduationStep(
        id="step_6",
        title="Complete Job Applications",
        description="Submit at least 5 job applications or pursue employment opportunities",
        order=6,
    ),
    GraduationStep(
        id="step_7",
        title="Establish Stable Housing",
        description="Secure and maintain stable housing arrangement",
        order=7,
    ),
    GraduationStep(
        id="step_8",
        title="Build Support Network",
        description="Establish connections with community resources and support systems",
        order=8,
    ),
    GraduationStep(
        id="step_9",
        title="Demonstrate Progress Toward Goals",
        description="Show measurable progress on established goals over 3+ months",
        order=9,
    ),
    GraduationStep(
        id="step_10",
        title="Complete Final Evaluation",
        description="Successfully complete final evaluation with mentor and program administrator",
        order=10,
    ),
]

GRADUATION_STEP_IDS: List[str] = [step.id for step in GRADUATION_STEPS]


def get_graduation_step_by_id(step_id: str) -> Optional[GraduationStep]:
    for step in GRADUATION_STEPS:
        if step.id == step_id:
            return step
    return None


def calculate_graduation_progress(completed_steps: List[str]) -> int:
    """Percentage of the catalog completed, rounded to a whole number."""
    if not completed_steps:
        return 0
    return round(len(completed_steps) / len(GRADUATION_STEPS) * 100)


def is_ready_for_graduation(completed_steps: List[str]) -> bool:
    return len(completed_steps) == len(GRADUATION_STEPS)


def unknown_steps(step_ids: Iterable[str]) -> List[str]:
    return [step_id for step_id in step_ids if step_id not in GRADUATION_STEP_IDS]


def normalize_steps(step_ids: Iterable[str]) -> List[str]:
    """
    Collapses duplicates and returns the steps in catalog order.

    Unknown ids are dropped; callers that must reject them check
    `unknown_steps` first.
    """
    wanted = set(step_ids)
    return [step_id for step_id in GRADUATION_STEP_IDS if step_id in wanted]
