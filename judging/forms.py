"""Checks run on coordinator input before it is sent to the backend.

Each ``validate_*`` function raises ValidationError with a message fit to show
the coordinator, and returns the cleaned request body otherwise.
"""

import math
from typing import Any

from judging.errors import ValidationError
from judging.models import (
    AWARD_TYPES,
    DEFAULT_MAX_SCORE,
    EVENT_STATUSES,
    GENDERS,
    Criterion,
    Judge,
    Participant,
)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _positive(value: Any, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.")
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{label} must be greater than zero.")
    return number


def validate_event(form: dict) -> dict[str, Any]:
    for key in ("title", "date"):
        if _blank(form.get(key)):
            raise ValidationError(f"Please fill in the event {key}.")
    status = str(form.get("status") or "draft").lower()
    if status not in EVENT_STATUSES:
        raise ValidationError(f"Unknown event status: {form.get('status')}.")
    body = {
        "title": form["title"].strip(),
        "description": form.get("description") or "",
        "date": form["date"],
        "status": status,
        "location": form.get("location") or "",
    }
    if not _blank(form.get("max_participants")):
        try:
            body["max_participants"] = int(form["max_participants"])
        except (TypeError, ValueError):
            raise ValidationError("Maximum participants must be a whole number.")
    return body


def validate_category(form: dict) -> dict[str, Any]:
    """Check the category form (criteria are edited separately)."""
    for key in ("name", "description", "max_score", "weight", "gender", "award_type"):
        if _blank(form.get(key)):
            raise ValidationError("Please fill in all required fields.")
    gender = str(form["gender"]).lower()
    if gender not in GENDERS:
        raise ValidationError(f"Unknown gender: {form['gender']}.")
    award_type = str(form["award_type"]).lower()
    if award_type not in AWARD_TYPES:
        raise ValidationError(f"Unknown award type: {form['award_type']}.")
    return {
        "name": form["name"].strip(),
        "description": form["description"].strip(),
        "max_score": _positive(form.get("max_score", DEFAULT_MAX_SCORE), "Max score"),
        "weight": _positive(form["weight"], "Weight"),
        "status": str(form.get("status") or "open").lower(),
        "gender": gender,
        "award_type": award_type,
    }


def add_criterion(criteria: list[Criterion], name: str, percentage: Any,
                  description: str = "", criterion_id: str | None = None) -> list[Criterion]:
    """Return a new criteria list with one more criterion.

    The running total may not go above 100%.
    """
    if _blank(name):
        raise ValidationError("Criterion name and percentage are required.")
    try:
        percentage = float(percentage)
    except (TypeError, ValueError):
        raise ValidationError("Criterion name and percentage are required.")
    if percentage <= 0:
        raise ValidationError("Criterion name and percentage are required.")
    total = sum(c.percentage for c in criteria)
    if total + percentage > 100 + 1e-9:
        raise ValidationError("Total percentage cannot exceed 100%.")
    new = Criterion(
        id=criterion_id or f"new-{len(criteria) + 1}",
        name=name.strip(),
        percentage=percentage,
        description=description,
    )
    return [*criteria, new]


def validate_criteria(criteria: list[Criterion]) -> list[dict[str, Any]]:
    """Criteria may only be saved when they total exactly 100%."""
    total = sum(c.percentage for c in criteria)
    if not math.isclose(total, 100.0, abs_tol=1e-9):
        raise ValidationError(
            f"Total percentage must equal exactly 100% (currently {total:g}%)."
        )
    return [
        {"name": c.name, "description": c.description, "percentage": c.percentage}
        for c in criteria
    ]


def next_contestant_number(participants: list[Participant]) -> int:
    return max((p.contestant_number or 0 for p in participants), default=0) + 1


def validate_participant(form: dict, existing: list[Participant],
                         editing: str | None = None) -> dict[str, Any]:
    """Check a participant form.

    Args:
        form: Submitted fields
        existing: Participants already registered for the event
        editing: Id of the participant being edited, if any; its own number
            does not count as taken
    """
    if _blank(form.get("name")) or _blank(form.get("contestant_number")):
        raise ValidationError("Please fill in the name and contestant number.")
    try:
        number = int(form["contestant_number"])
    except (TypeError, ValueError):
        raise ValidationError("Contestant number must be a whole number.")
    if any(p.contestant_number == number and p.id != editing for p in existing):
        raise ValidationError(f"Contestant number {number} is already assigned.")
    return {
        "name": form["name"].strip(),
        "contestant_number": number,
        "email": form.get("email") or "",
        "gender": str(form.get("gender") or "").lower(),
        "origin": form.get("origin") or "",
        "entry": form.get("entry") or "",
    }


def validate_judge(form: dict, existing: list[Judge],
                   editing: str | None = None) -> dict[str, Any]:
    if _blank(form.get("name")) or _blank(form.get("email")):
        raise ValidationError("Please fill in the judge's name and email.")
    email = form["email"].strip()
    if any(j.email.lower() == email.lower() and j.id != editing for j in existing):
        raise ValidationError("A judge with this email address already exists.")
    return {
        "name": form["name"].strip(),
        "email": email,
        "specialization": form.get("specialization") or "",
    }
