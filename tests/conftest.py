"""Shared test helpers."""

from judging.models import Category, Criterion, Event, Participant, Vote


def make_participants(*names: str, genders: dict[str, str] | None = None) -> list[Participant]:
    """Participants with ids equal to their names, numbered in order."""
    genders = genders or {}
    return [
        Participant(id=name, name=name, contestant_number=i, gender=genders.get(name, "female"))
        for i, name in enumerate(names, start=1)
    ]


def make_category(cid: str, weight: float = 1.0, max_score: float = 100.0,
                  criteria: dict[str, float] | None = None, **kwargs) -> Category:
    """Category with criteria given as {name: percentage}; criterion ids are the names."""
    if criteria is None:
        criteria = {"Overall": 100}
    return Category(
        id=cid,
        name=kwargs.pop("name", cid),
        weight=weight,
        max_score=max_score,
        criteria=[Criterion(id=n, name=n, percentage=float(p)) for n, p in criteria.items()],
        **kwargs,
    )


def make_votes(table: dict[str, dict[str, list[float]]], judge_prefix: str = "J") -> list[Vote]:
    """Build votes from {category_id: {participant_id: [score, ...]}}.

    The n-th score for a participant comes from judge "J<n>". Votes are
    emitted in table order, which fixes the order participants first appear.
    """
    votes = []
    for category_id, by_participant in table.items():
        for participant_id, scores in by_participant.items():
            for n, score in enumerate(scores, start=1):
                votes.append(Vote(
                    id=str(len(votes) + 1),
                    judge_id=f"{judge_prefix}{n}",
                    participant_id=participant_id,
                    category_id=category_id,
                    score=score,
                ))
    return votes


def make_event(date: str | None = "2030-05-30T20:00:00+00:00", status: str = "open") -> Event:
    return Event(id="1", title="Gala Night", date=date, status=status)


def standing_names(standings) -> list[str]:
    """Participant names of a ranking, in rank order."""
    return [s.participant.name for s in standings]
