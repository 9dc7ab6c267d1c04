"""
Intake validation and the values derived once at intake (age, time out).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from backend.errors import InvalidInputError
from shared.constants import PARTICIPANT_NUMBER_NOT_AVAILABLE
from shared.forms import IntakeData


def parse_date(value: Optional[str], today: Optional[date] = None) -> Optional[date]:
    """
    Parses an ISO-8601 date/timestamp or a MM/DD/YYYY string.

    Returns None for anything unparseable, including years before 1900 or
    after the current year.
    """
    if not value or not value.strip():
        return None
    text = value.strip()
    today = today or date.today()

    parsed: Optional[date] = None
    if "/" in text:
        parts = text.split("/")
        if len(parts) != 3:
            return None
        try:
            month, day, year = (int(part) for part in parts)
            parsed = date(year, month, day)
        except ValueError:
            return None
    else:
        try:
            parsed = datetime.fromisoformat(text).date()
        except ValueError:
            return None

    if parsed.year < 1900 or parsed.year > today.year:
        return None
    return parsed


def calculate_age(date_of_birth: date, today: date) -> int:
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def calculate_time_out(release_date: date, today: date) -> int:
    """Whole days between release and today."""
    return abs((today - release_date).days)


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


def validate_intake(intake: IntakeData, today: date) -> tuple[date, date]:
    """
    Checks required fields and dates; returns (date_of_birth, release_date).

    Raises InvalidInputError listing every offending field.
    """
    missing = [
        name
        for name in (
            "first_name",
            "last_name",
            "gender",
            "released_from",
            "date_of_birth",
            "release_date",
        )
        if _blank(getattr(intake, name))
    ]
    if not intake.participant_number_not_available and _blank(
        intake.participant_number
    ):
        missing.append("participant_number")
    if missing:
        raise InvalidInputError("Please fill in all required fields.", missing)

    if _blank(intake.phone_number) and _blank(intake.email):
        raise InvalidInputError(
            "Please provide at least one contact method (email or phone number).",
            ["phone_number", "email"],
        )

    dob = parse_date(intake.date_of_birth, today)
    if dob is None:
        raise InvalidInputError(
            "Please enter a valid date of birth.", ["date_of_birth"]
        )
    release = parse_date(intake.release_date, today)
    if release is None:
        raise InvalidInputError("Please enter a valid release date.", ["release_date"])
    return dob, release


def participant_number_for(intake: IntakeData) -> str:
    if intake.participant_number_not_available:
        return PARTICIPANT_NUMBER_NOT_AVAILABLE
    return intake.participant_number.strip()
