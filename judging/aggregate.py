"""Score aggregation: per-category rankings and the weighted overall ranking.

Averages are kept at full precision; rounding is left to whoever displays
them, so that two close scores can never swap places because of it.

Participants are considered in the order their first vote appears in the
vote list, and sorting is stable, so equal averages keep that order. Ranks
are sequential (1, 2, 3, ...) even for equal averages.
"""

from dataclasses import dataclass, field
from typing import Any

from judging.models import Category, Participant, Vote


@dataclass
class Standing:
    """A participant's result within one category.

    Attributes:
        participant: The participant
        total_score: Sum of the vote scores received in the category
        average_score: total_score / vote_count
        vote_count: Number of votes received in the category
        rank: 1-indexed position in the category ranking
    """
    participant: Participant
    total_score: float
    average_score: float
    vote_count: int
    rank: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "participant": self.participant.to_dict(),
            "total_score": self.total_score,
            "average_score": self.average_score,
            "vote_count": self.vote_count,
            "rank": self.rank,
        }


@dataclass
class CategoryResult:
    """Ranking of one category.

    total_votes counts every vote cast in the category, including votes for
    participants that are not part of the ranking.
    """
    category: Category
    results: list[Standing]
    total_votes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.to_dict(),
            "results": [s.to_dict() for s in self.results],
            "total_votes": self.total_votes,
        }


@dataclass
class CategoryScore:
    """One category's contribution to a participant's overall result."""
    category: Category
    average_score: float
    weighted_score: float
    vote_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.name,
            "average_score": self.average_score,
            "weighted_score": self.weighted_score,
            "vote_count": self.vote_count,
        }


@dataclass
class OverallStanding:
    """A participant's weighted result across every category they were scored in."""
    participant: Participant
    overall_average: float
    total_votes: int
    category_scores: list[CategoryScore] = field(default_factory=list)
    rank: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "participant": self.participant.to_dict(),
            "overall_average": self.overall_average,
            "total_votes": self.total_votes,
            "category_scores": [c.to_dict() for c in self.category_scores],
            "rank": self.rank,
        }


@dataclass
class EventStats:
    participants: int
    judges: int
    categories: int
    votes: int
    participants_with_votes: int

    @property
    def total_possible_votes(self) -> int:
        """One vote per judge, participant and category."""
        return self.participants * self.judges * self.categories

    def to_dict(self) -> dict[str, Any]:
        return {
            "participants": self.participants,
            "judges": self.judges,
            "categories": self.categories,
            "votes": self.votes,
            "participants_with_votes": self.participants_with_votes,
            "total_possible_votes": self.total_possible_votes,
        }


def assign_ranks(standings: list, key: str) -> list:
    """Sort standings by ``key`` (highest first) and number them from 1.

    The sort is stable, so standings with equal values keep their input
    order, and each still gets its own rank.
    """
    ordered = sorted(standings, key=lambda s: getattr(s, key), reverse=True)
    for position, standing in enumerate(ordered):
        standing.rank = position + 1
    return ordered


class ScoreAggregator:
    """Computes rankings from one consistent snapshot of votes.

    Votes that reference a participant or category missing from the given
    collections are ignored rather than reported: the backend data may be
    briefly inconsistent while an event is being edited.
    """

    def __init__(self, votes: list[Vote], participants: list[Participant],
                 categories: list[Category]):
        self.votes = list(votes)
        self.participants = list(participants)
        self.categories = list(categories)
        self._participants_by_id = {p.id: p for p in self.participants}

    def _ranked_participants(self, votes: list[Vote]) -> list[Participant]:
        """Known participants with at least one vote, in order of first vote."""
        seen: dict[str, Participant] = {}
        for vote in votes:
            participant = self._participants_by_id.get(vote.participant_id)
            if participant is not None and participant.id not in seen:
                seen[participant.id] = participant
        return list(seen.values())

    def category_results(self, category: Category) -> CategoryResult:
        category_votes = [v for v in self.votes if v.category_id == category.id]

        standings = []
        for participant in self._ranked_participants(category_votes):
            scores = [v.score for v in category_votes if v.participant_id == participant.id]
            total = sum(scores)
            standings.append(Standing(
                participant=participant,
                total_score=total,
                average_score=total / len(scores),
                vote_count=len(scores),
            ))

        return CategoryResult(
            category=category,
            results=assign_ranks(standings, "average_score"),
            total_votes=len(category_votes),
        )

    def all_category_results(self) -> list[CategoryResult]:
        return [self.category_results(category) for category in self.categories]

    def overall_results(self, categories: list[Category] | None = None) -> list[OverallStanding]:
        """Rank participants by their weighted average across categories.

        For each category a participant received votes in, the category
        average is multiplied by the category weight; the overall average is
        the sum of those products divided by the sum of the weights used.
        Participants with no votes in any of the categories are left out.
        """
        if categories is None:
            categories = self.categories
        category_ids = {c.id for c in categories}
        relevant = [v for v in self.votes if v.category_id in category_ids]

        standings = []
        for participant in self._ranked_participants(relevant):
            total_weighted = 0.0
            total_weight = 0.0
            total_votes = 0
            category_scores = []

            for category in categories:
                scores = [
                    v.score for v in relevant
                    if v.category_id == category.id and v.participant_id == participant.id
                ]
                if not scores:
                    continue
                average = sum(scores) / len(scores)
                weighted = average * category.weight
                total_weighted += weighted
                total_weight += category.weight
                total_votes += len(scores)
                category_scores.append(CategoryScore(
                    category=category,
                    average_score=average,
                    weighted_score=weighted,
                    vote_count=len(scores),
                ))

            if not category_scores:
                continue

            standings.append(OverallStanding(
                participant=participant,
                overall_average=total_weighted / total_weight if total_weight else 0.0,
                total_votes=total_votes,
                category_scores=category_scores,
            ))

        return assign_ranks(standings, "overall_average")

    def stats(self, judges: int = 0) -> EventStats:
        return EventStats(
            participants=len(self.participants),
            judges=judges,
            categories=len(self.categories),
            votes=len(self.votes),
            participants_with_votes=len(self.overall_results()),
        )
