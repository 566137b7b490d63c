"""
Judging Response Models

Pydantic models for events, contestants, judges, award categories and votes.

Ids are normalised to strings (the backend mixes integer and string ids) and
the gender/status vocabularies are lower-cased by validators, so every
record compares directly however it was built. ``from_dict`` and
``parse_list`` turn a backend payload into records and report shape
mismatches as ContractError.
"""

import math
from datetime import datetime, time, timezone
from functools import cache
from typing import Any, Literal, Self, get_args

from pydantic import BaseModel, Field, TypeAdapter, ValidationInfo, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from judging.errors import ContractError

Gender = Literal["male", "female", "everyone"]
CategoryStatus = Literal["open", "closed"]
AwardType = Literal["major", "minor"]
EventStatus = Literal["draft", "upcoming", "open", "closed"]

GENDERS = get_args(Gender)
CATEGORY_STATUSES = get_args(CategoryStatus)
AWARD_TYPES = get_args(AwardType)
EVENT_STATUSES = get_args(EventStatus)

DEFAULT_MAX_SCORE = 100.0


def ref_id(value: Any) -> str | None:
    """Return the id of a reference that is either a nested object or a bare id."""
    if isinstance(value, dict):
        value = value.get("id")
    if value is None or value == "":
        return None
    return str(value)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 timestamp or date; naive values are taken as UTC.

    A bare date means the end of that day, so an event dated 2025-05-30
    can still be judged on the 30th.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as e:
            raise ContractError(f"Invalid date/time: {value!r}") from e
        if "T" not in text and " " not in text:
            parsed = datetime.combine(parsed.date(), time.max)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def describe_errors(kind: str, error: PydanticValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in e['loc']) or 'value'}: {e['msg']}"
        for e in error.errors()
    )
    return f"Invalid {kind}: {details}"


class Record(BaseModel):
    """Base for backend records."""

    model_config = {"populate_by_name": True}

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ContractError(describe_errors(cls.__name__, e)) from e

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def _blank_to_default(cls: type[BaseModel], value: Any, info: ValidationInfo) -> Any:
    if value is None or value == "":
        return cls.model_fields[info.field_name].get_default(call_default_factory=True)
    return value


class Criterion(Record):
    """One percentage-weighted aspect of a category's scoring rubric."""

    id: str
    name: str
    description: str = ""
    percentage: float = Field(ge=0, le=100, allow_inf_nan=False)

    @field_validator("id", mode="before")
    @classmethod
    def normalise_id(cls, value: Any) -> str | None:
        return ref_id(value)

    @field_validator("description", mode="before")
    @classmethod
    def blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return _blank_to_default(cls, value, info)


class Category(Record):
    """An award judged with its own criteria, weight and gender eligibility.

    Attributes:
        id: Category id
        name: Award name, e.g. "Best in Talent"
        max_score: Score a perfect 10 on every criterion is worth
        weight: Multiplier applied to this category in the overall ranking
        status: "open" or "closed"
        gender: "male", "female" or "everyone"
        award_type: "major" or "minor"
        criteria: Rubric, in display order
    """

    id: str
    name: str
    description: str = ""
    max_score: float = Field(DEFAULT_MAX_SCORE, gt=0, allow_inf_nan=False)
    weight: float = Field(1.0, gt=0, allow_inf_nan=False)
    status: CategoryStatus = "open"
    gender: Gender = "everyone"
    award_type: AwardType = "major"
    criteria: list[Criterion] = []

    @field_validator("id", mode="before")
    @classmethod
    def normalise_id(cls, value: Any) -> str | None:
        return ref_id(value)

    @field_validator("status", "gender", "award_type", mode="before")
    @classmethod
    def lower_case(cls, value: Any, info: ValidationInfo) -> Any:
        value = _blank_to_default(cls, value, info)
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("description", "criteria", mode="before")
    @classmethod
    def blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return _blank_to_default(cls, value, info)

    @property
    def criteria_total(self) -> float:
        return sum(c.percentage for c in self.criteria)

    @property
    def is_valid(self) -> bool:
        """True when the criteria percentages add up to exactly 100."""
        return bool(self.criteria) and math.isclose(
            self.criteria_total, 100.0, abs_tol=1e-9
        )

    @property
    def is_open(self) -> bool:
        return self.status == "open"


class Participant(Record):
    """A contestant registered for an event."""

    id: str
    name: str
    contestant_number: int | None = None
    gender: str = ""
    origin: str = ""
    entry: str = ""
    image: str = ""
    email: str = ""
    event_id: str | None = Field(None, alias="event")
    registration_date: str | None = None

    @field_validator("id", "event_id", mode="before")
    @classmethod
    def normalise_id(cls, value: Any) -> str | None:
        return ref_id(value)

    @field_validator("gender", mode="before")
    @classmethod
    def lower_case(cls, value: Any) -> Any:
        return str(value or "").strip().lower()

    @field_validator("contestant_number", "origin", "entry", "image", "email", mode="before")
    @classmethod
    def blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return _blank_to_default(cls, value, info)


class Judge(Record):
    """A judge; the access code is their only credential."""

    id: str
    name: str
    email: str = ""
    specialization: str = ""
    access_code: str = ""
    event_id: str | None = Field(None, alias="event")

    @field_validator("id", "event_id", mode="before")
    @classmethod
    def normalise_id(cls, value: Any) -> str | None:
        return ref_id(value)

    @field_validator("email", "specialization", "access_code", mode="before")
    @classmethod
    def blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return _blank_to_default(cls, value, info)


class Event(Record):
    """A judged event. Its date doubles as the judging deadline."""

    id: str
    title: str
    date: str | None = None
    status: EventStatus = "upcoming"
    description: str = ""
    location: str = ""
    max_participants: int | None = None
    coordinator_id: str | None = Field(None, alias="coordinator")

    @field_validator("id", "coordinator_id", mode="before")
    @classmethod
    def normalise_id(cls, value: Any) -> str | None:
        return ref_id(value)

    @field_validator("status", mode="before")
    @classmethod
    def lower_case(cls, value: Any, info: ValidationInfo) -> Any:
        value = _blank_to_default(cls, value, info)
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("description", "location", mode="before")
    @classmethod
    def blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return _blank_to_default(cls, value, info)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str | None) -> str | None:
        parse_datetime(value)
        return value or None

    @property
    def deadline(self) -> datetime | None:
        return parse_datetime(self.date)


def _vote_ref(data: dict, name: str) -> str | None:
    # Judge dashboard votes use camelCase ids and put the participant's
    # *name* under "participant", so the explicit id key wins.
    camel = f"{name}Id"
    if data.get(camel) is not None:
        return ref_id(data[camel])
    value = data.get(name)
    if isinstance(value, dict) or name != "participant":
        return ref_id(value)
    return None if "participantId" in data else ref_id(value)


class Vote(Record):
    """One judge's score for one participant in one category.

    Attributes:
        score: Category score already weighted by the criteria and scaled to
            the category's max_score
        criteria_scores: Raw 1-10 scores keyed by criterion name, if sent back
    """

    id: str | None = None
    judge_id: str | None = Field(None, serialization_alias="judge")
    participant_id: str | None = Field(None, serialization_alias="participant")
    category_id: str | None = Field(None, serialization_alias="category")
    event_id: str | None = Field(None, serialization_alias="event")
    score: float = Field(allow_inf_nan=False)
    comments: str = ""
    submitted_at: str | None = None
    criteria_scores: dict[str, int] = {}

    @model_validator(mode="before")
    @classmethod
    def flatten_refs(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name in ("judge", "participant", "category", "event"):
            key = f"{name}_id"
            if key not in data:
                data[key] = _vote_ref(data, name)
            data.pop(name, None)
            data.pop(f"{name}Id", None)
        if "submittedAt" in data:
            data.setdefault("submitted_at", data.pop("submittedAt"))
        if "criteriaScores" in data:
            data.setdefault("criteria_scores", data.pop("criteriaScores"))
        return data

    @field_validator("id", "judge_id", "participant_id", "category_id", "event_id", mode="before")
    @classmethod
    def normalise_id(cls, value: Any) -> str | None:
        return ref_id(value)

    @field_validator("comments", "criteria_scores", mode="before")
    @classmethod
    def blank_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        return _blank_to_default(cls, value, info)


@cache
def _list_adapter(cls: type[Record]) -> TypeAdapter:
    return TypeAdapter(list[cls])


def parse_list(cls: type[Record], data: Any, kind: str) -> list:
    """Parse a JSON list of records of type ``cls``."""
    if not isinstance(data, list):
        raise ContractError(f"Expected a list of {kind}, got {type(data).__name__}")
    try:
        return _list_adapter(cls).validate_python(data)
    except PydanticValidationError as e:
        raise ContractError(describe_errors(kind, e)) from e


class EventSnapshot(Record):
    """Every collection a results view needs, fetched together."""

    event: Event
    participants: list[Participant] = []
    judges: list[Judge] = []
    categories: list[Category] = []
    votes: list[Vote] = []
