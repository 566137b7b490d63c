"""Judge-side scoring workflow for one category."""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Self

from judging.errors import (
    AlreadyVotedError,
    CategoryClosedError,
    DeadlineExceededError,
    ValidationError,
)
from judging.models import Category, Event, Judge, Participant, Vote

MIN_SCORE = 1
MAX_SCORE = 10

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_score(value: Any) -> int:
    """Parse a raw score input the way a number field does, 0 when unparseable.

    Leading digits are enough ("8.5" and "8 points" give 8).
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    match = _LEADING_INT.match(str(value)) if value is not None else None
    return int(match.group(1)) if match else 0


def clamp_score(value: Any) -> int:
    """Clamp a raw input to 1-10.

    Parsing happens first, so an unparseable value becomes 0 and is then
    clamped up to 1, exactly like an explicit 0.
    """
    return max(MIN_SCORE, min(MAX_SCORE, parse_score(value)))


def is_eligible(category: Category, participant: Participant) -> bool:
    """True if the participant may be scored in the category."""
    gender = category.gender.lower()
    return gender == "everyone" or gender == participant.gender.lower()


def eligible_participants(category: Category, participants: list[Participant]) -> list[Participant]:
    return [p for p in participants if is_eligible(category, p)]


def search_participants(participants: list[Participant], term: str) -> list[Participant]:
    """Case-insensitive name search; an empty term matches everyone."""
    term = term.strip().lower()
    return [p for p in participants if term in p.name.lower()]


def has_voted(votes: list[Vote], judge_id: str, category_id: str) -> bool:
    return any(v.judge_id == judge_id and v.category_id == category_id for v in votes)


def check_deadline(event: Event, now: datetime) -> None:
    deadline = event.deadline
    if deadline is not None and now > deadline:
        raise DeadlineExceededError(
            f"The judging deadline for {event.title} has passed."
        )


@dataclass
class VoteSubmission:
    """One vote as sent to the backend in a batch submission."""
    participant_id: str
    participant_name: str
    score: float
    criteria_scores: dict[str, int]
    submitted_at: datetime
    comments: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "participantId": self.participant_id,
            "score": self.score,
            "comments": self.comments,
            "submittedAt": self.submitted_at.isoformat(),
            "participant": self.participant_name,
            "criteriaScores": self.criteria_scores,
        }


@dataclass
class VotingSession:
    """In-progress scores of one judge for one category.

    Scores map participant id -> criterion id -> integer score. A score of 0
    means "not entered yet"; every entered score is between 1 and 10.

    Use ``VotingSession.open`` rather than the constructor: it applies the
    status, validity, deadline and already-judged checks.
    """
    judge: Judge
    event: Event
    category: Category
    participants: list[Participant]
    scores: dict[str, dict[str, int]] = field(default_factory=dict)
    clock: Callable[[], datetime] = utcnow
    discarded: bool = False

    def __post_init__(self):
        for participant in self.participants:
            row = self.scores.setdefault(participant.id, {})
            for criterion in self.category.criteria:
                row.setdefault(criterion.id, 0)

    @classmethod
    def open(
        cls,
        judge: Judge,
        event: Event,
        category: Category,
        participants: list[Participant],
        vote_history: list[Vote],
        clock: Callable[[], datetime] = utcnow,
    ) -> Self:
        """Start scoring a category.

        Args:
            judge: The logged-in judge
            event: The event the category belongs to
            category: The category to score
            participants: All participants of the event; only eligible ones
                are kept
            vote_history: Votes already recorded for this judge

        Raises:
            CategoryClosedError: If the category is not open
            ValidationError: If the category's criteria do not total 100%
            DeadlineExceededError: If the event date has passed
            AlreadyVotedError: If the judge already scored this category
        """
        if not category.is_open:
            raise CategoryClosedError(f"{category.name} is not open for judging.")
        if not category.is_valid:
            raise ValidationError(
                f"The criteria of {category.name} add up to "
                f"{category.criteria_total:g}%, not 100%."
            )
        check_deadline(event, clock())
        if has_voted(vote_history, judge.id, category.id):
            raise AlreadyVotedError(
                f"You have already submitted scores for {category.name}."
            )
        return cls(
            judge=judge,
            event=event,
            category=category,
            participants=eligible_participants(category, participants),
            clock=clock,
        )

    def _participant(self, participant_id: str) -> Participant:
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        raise ValidationError(
            f"Participant {participant_id} is not part of this session.",
            participant=participant_id,
        )

    def set_score(self, participant_id: str, criterion_id: str, raw_value: Any) -> int:
        """Record a criterion score and return the clamped value stored."""
        self._participant(participant_id)
        if not any(c.id == criterion_id for c in self.category.criteria):
            raise ValidationError(
                f"Criterion {criterion_id} does not belong to {self.category.name}.",
                participant=participant_id,
                criterion=criterion_id,
            )
        score = clamp_score(raw_value)
        self.scores[participant_id][criterion_id] = score
        return score

    def get_score(self, participant_id: str, criterion_id: str) -> int:
        return self.scores.get(participant_id, {}).get(criterion_id, 0)

    def weighted_score(self, participant_id: str) -> float:
        """Category score for a participant, scaled to the category's max_score."""
        total = 0.0
        for criterion in self.category.criteria:
            raw = self.get_score(participant_id, criterion.id)
            total += (raw / 10) * (criterion.percentage / 100) * self.category.max_score
        return total

    def missing_scores(self) -> list[tuple[Participant, str]]:
        """(participant, criterion name) pairs that have no score yet."""
        missing = []
        for participant in self.participants:
            for criterion in self.category.criteria:
                if self.get_score(participant.id, criterion.id) <= 0:
                    missing.append((participant, criterion.name))
        return missing

    def discard(self) -> None:
        self.scores.clear()
        self.discarded = True

    def build_submission(self) -> list[VoteSubmission]:
        """Build the votes for every eligible participant, or none at all.

        Raises:
            DeadlineExceededError: If the event date has passed; the session's
                scores are discarded
            ValidationError: On the first participant/criterion left unscored
        """
        if self.discarded:
            raise ValidationError("This scoring session has been discarded.")
        now = self.clock()
        try:
            check_deadline(self.event, now)
        except DeadlineExceededError:
            self.discard()
            raise

        for participant in self.participants:
            for criterion in self.category.criteria:
                if self.get_score(participant.id, criterion.id) <= 0:
                    raise ValidationError(
                        f"Please enter a score for {criterion.name} for {participant.name}.",
                        participant=participant.id,
                        criterion=criterion.id,
                    )

        return [
            VoteSubmission(
                participant_id=participant.id,
                participant_name=participant.name,
                score=self.weighted_score(participant.id),
                criteria_scores={
                    c.name: self.get_score(participant.id, c.id)
                    for c in self.category.criteria
                },
                submitted_at=now,
            )
            for participant in self.participants
        ]

    def payload(self) -> dict[str, Any]:
        """Request body for the batch vote endpoint."""
        return {"votes": [v.to_dict() for v in self.build_submission()]}
