"""Client core for a pageant-style event judging platform."""

from .aggregate import ScoreAggregator
from .errors import (
    AlreadyVotedError,
    CategoryClosedError,
    ContractError,
    DeadlineExceededError,
    JudgingError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from .models import Category, Criterion, Event, EventSnapshot, Judge, Participant, Vote
from .voting import VotingSession

__all__ = [
    "ScoreAggregator",
    "VotingSession",
    "Category",
    "Criterion",
    "Event",
    "EventSnapshot",
    "Judge",
    "Participant",
    "Vote",
    "AlreadyVotedError",
    "CategoryClosedError",
    "ContractError",
    "DeadlineExceededError",
    "JudgingError",
    "NotFoundError",
    "RemoteError",
    "ValidationError",
]
