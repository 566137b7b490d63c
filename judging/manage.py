"""
Coordinator management: events, participants, judges and award categories.

Every operation validates its input locally with judging.forms first, so a
ValidationError is raised before anything is written to the backend. Edits
start from the record's current values and apply only the given changes.
"""

import logging
from typing import Any

from judging.client import JudgingClient
from judging.errors import NotFoundError, ValidationError
from judging.forms import (
    add_criterion,
    next_contestant_number,
    validate_category,
    validate_criteria,
    validate_event,
    validate_judge,
    validate_participant,
)
from judging.models import CATEGORY_STATUSES, Category, Criterion, Event, Judge, Participant

logger = logging.getLogger(__name__)

# Rubric given to a new category when none is specified
DEFAULT_CRITERIA = [
    ("Beauty", 40.0, "Overall physical beauty and appeal"),
    ("Elegance", 35.0, "Grace and sophistication in presentation"),
    ("Stage Presence", 25.0, "Confidence and charisma on stage"),
]


def _merge(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    return {**current, **{k: v for k, v in changes.items() if v is not None}}


def build_criteria(entries: list[tuple]) -> list[Criterion]:
    """Build a rubric one criterion at a time, as the criteria editor does."""
    criteria: list[Criterion] = []
    for entry in entries:
        name, percentage, *rest = entry
        criteria = add_criterion(criteria, name, percentage, description=rest[0] if rest else "")
    return criteria


# Events


async def add_event(client: JudgingClient, form: dict[str, Any]) -> Event:
    event = await client.create_event(validate_event(form))
    logger.info(f"Created event {event.id} ({event.title})")
    return event


async def edit_event(client: JudgingClient, event_id: str, changes: dict[str, Any]) -> Event:
    current = await client.get_event(event_id)
    body = validate_event(_merge(current.to_dict(), changes))
    return await client.update_event(event_id, body)


async def remove_event(client: JudgingClient, event_id: str) -> None:
    await client.delete_event(event_id)
    logger.info(f"Deleted event {event_id}")


# Participants


async def add_participant(client: JudgingClient, event_id: str, form: dict[str, Any]) -> Participant:
    """Register a participant; without a contestant number the next free one is used."""
    existing = await client.list_participants(event_id)
    if form.get("contestant_number") in (None, ""):
        form = {**form, "contestant_number": next_contestant_number(existing)}
    body = validate_participant(form, existing)
    return await client.create_participant(event_id, body)


async def edit_participant(client: JudgingClient, event_id: str, participant_id: str,
                           changes: dict[str, Any]) -> Participant:
    existing = await client.list_participants(event_id)
    current = next((p for p in existing if p.id == str(participant_id)), None)
    if current is None:
        raise NotFoundError(f"Participant {participant_id} was not found.")
    body = validate_participant(_merge(current.to_dict(), changes), existing,
                                editing=current.id)
    return await client.update_participant(event_id, current.id, body)


async def remove_participant(client: JudgingClient, event_id: str, participant_id: str) -> None:
    await client.delete_participant(event_id, participant_id)


# Judges


async def add_judge(client: JudgingClient, event_id: str, form: dict[str, Any]) -> Judge:
    existing = await client.list_judges(event_id)
    body = validate_judge(form, existing)
    return await client.create_judge(event_id, body)


async def edit_judge(client: JudgingClient, event_id: str, judge_id: str,
                     changes: dict[str, Any]) -> Judge:
    existing = await client.list_judges(event_id)
    current = next((j for j in existing if j.id == str(judge_id)), None)
    if current is None:
        raise NotFoundError(f"Judge {judge_id} was not found.")
    body = validate_judge(_merge(current.to_dict(), changes), existing, editing=current.id)
    return await client.update_judge(event_id, current.id, body)


async def remove_judge(client: JudgingClient, event_id: str, judge_id: str) -> None:
    await client.delete_judge(event_id, judge_id)


# Award categories


async def add_category(client: JudgingClient, event_id: str, form: dict[str, Any],
                       criteria: list[tuple[str, Any]] | None = None) -> Category:
    """Create an award category together with its rubric.

    Args:
        form: Category fields
        criteria: (name, percentage) pairs; the default rubric if omitted

    Raises:
        ValidationError: If a field is missing or the criteria do not
            total exactly 100%
    """
    body = validate_category(form)
    body["criteria"] = validate_criteria(build_criteria(criteria or DEFAULT_CRITERIA))
    category = await client.create_category(event_id, body)
    logger.info(f"Created category {category.id} ({category.name}) in event {event_id}")
    return category


async def set_category_status(client: JudgingClient, event_id: str, category_id: str,
                              status: str) -> Category:
    """Open or close an award for voting."""
    status = status.strip().lower()
    if status not in CATEGORY_STATUSES:
        raise ValidationError(f"Unknown award status: {status}.")
    current = await client.get_category(event_id, category_id)
    return await client.update_category(
        event_id, category_id, {**current.to_dict(), "status": status}
    )


async def set_criteria(client: JudgingClient, event_id: str, category_id: str,
                       criteria: list[tuple[str, Any]]) -> Category:
    rubric = validate_criteria(build_criteria(criteria))
    current = await client.get_category(event_id, category_id)
    return await client.update_category(
        event_id, category_id, {**current.to_dict(), "criteria": rubric}
    )


async def remove_category(client: JudgingClient, event_id: str, category_id: str) -> None:
    await client.delete_category(event_id, category_id)
