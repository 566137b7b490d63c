"""Data loading for the console's pages.

A page fetches every collection it needs concurrently and only builds its
view once all of them have arrived. A page that is closed before its fetches
finish drops the result instead of updating its state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from judging.aggregate import CategoryResult, EventStats, OverallStanding, ScoreAggregator
from judging.auth import current_coordinator, current_judge
from judging.client import JudgingClient
from judging.errors import JudgingError, NotFoundError, RemoteError
from judging.models import Category, Event, EventSnapshot, Judge, Vote
from judging.voting import VotingSession, utcnow

logger = logging.getLogger(__name__)

COORDINATOR_LOGIN = "/login"
JUDGE_LOGIN = "/judge-login"
COORDINATOR_HOME = "/coordinator-dashboard"
JUDGE_HOME = "/judge-dashboard"


@dataclass
class PageState:
    """What a page shows.

    Attributes:
        status: "loading", "ready", "error" or "not_found"
        data: The loaded view, once ready
        error: Message to show for "error" and "not_found"
        redirect: Login route to send the user to, if the failure needs one
        back: Parent route offered from a "not found" page
    """
    status: str = "loading"
    data: Any = None
    error: str | None = None
    redirect: str | None = None
    back: str | None = None


class Page:
    """Base class for a page that loads once when opened."""

    login_route = COORDINATOR_LOGIN
    parent_route = COORDINATOR_HOME

    def __init__(self):
        self.state = PageState()
        self.closed = False
        self._task: asyncio.Task | None = None

    async def fetch(self) -> Any:
        raise NotImplementedError

    async def load(self) -> PageState:
        try:
            state = PageState(status="ready", data=await self.fetch())
        except NotFoundError as e:
            state = PageState(status="not_found", error=str(e), back=self.parent_route)
        except RemoteError as e:
            state = PageState(
                status="error",
                error=str(e),
                redirect=self.login_route if e.requires_login else None,
            )
        except JudgingError as e:
            state = PageState(status="error", error=str(e))

        if self.closed:
            logger.debug(f"{type(self).__name__} closed before loading finished")
            return self.state
        self.state = state
        return state

    def open(self) -> asyncio.Task:
        """Start loading in the background (needs a running event loop)."""
        self._task = asyncio.create_task(self.load())
        return self._task

    def close(self) -> None:
        self.closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


# Coordinator pages


async def fetch_event_snapshot(client: JudgingClient, event_id: str) -> EventSnapshot:
    event, participants, judges, votes, categories = await asyncio.gather(
        client.get_event(event_id),
        client.list_participants(event_id),
        client.list_judges(event_id),
        client.list_event_votes(event_id),
        client.list_categories(event_id),
    )
    logger.info(
        f"Loaded event {event.id}: {len(participants)} participants, "
        f"{len(judges)} judges, {len(categories)} categories, {len(votes)} votes"
    )
    return EventSnapshot(
        event=event,
        participants=participants,
        judges=judges,
        categories=categories,
        votes=votes,
    )


@dataclass
class EventResults:
    event: Event
    categories: list[CategoryResult]
    overall: list[OverallStanding]
    stats: EventStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "overall": [o.to_dict() for o in self.overall],
            "stats": self.stats.to_dict(),
        }


def compute_event_results(snapshot: EventSnapshot) -> EventResults:
    aggregator = ScoreAggregator(snapshot.votes, snapshot.participants, snapshot.categories)
    return EventResults(
        event=snapshot.event,
        categories=aggregator.all_category_results(),
        overall=aggregator.overall_results(),
        stats=aggregator.stats(judges=len(snapshot.judges)),
    )


class ResultsPage(Page):
    def __init__(self, client: JudgingClient, event_id: str):
        super().__init__()
        self.client = client
        self.event_id = event_id

    async def fetch(self) -> EventResults:
        return compute_event_results(await fetch_event_snapshot(self.client, self.event_id))


def filter_votes(votes: list[Vote], judge: str | None = None,
                 participant: str | None = None, category: str | None = None) -> list[Vote]:
    """Votes matching every given id; ids are compared as strings."""
    if judge:
        votes = [v for v in votes if v.judge_id == str(judge)]
    if participant:
        votes = [v for v in votes if v.participant_id == str(participant)]
    if category:
        votes = [v for v in votes if v.category_id == str(category)]
    return list(votes)


def score_band(score: float) -> str:
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 60:
        return "fair"
    return "low"


@dataclass
class VoteListing:
    snapshot: EventSnapshot
    votes: list[Vote]


class VotesPage(Page):
    def __init__(self, client: JudgingClient, event_id: str, **filters: str | None):
        super().__init__()
        self.client = client
        self.event_id = event_id
        self.filters = filters

    async def fetch(self) -> VoteListing:
        snapshot = await fetch_event_snapshot(self.client, self.event_id)
        return VoteListing(snapshot=snapshot, votes=filter_votes(snapshot.votes, **self.filters))


@dataclass
class EventSummary:
    event: Event
    stats: EventStats


@dataclass
class CoordinatorDashboard:
    """The logged-in coordinator's own events, each with its statistics."""
    coordinator: dict[str, Any]
    events: list[EventSummary]

    def by_status(self, status: str) -> list[EventSummary]:
        return [s for s in self.events if s.event.status == status]


async def fetch_event_stats(client: JudgingClient, event_id: str) -> EventStats:
    participants, judges, votes, categories = await asyncio.gather(
        client.list_participants(event_id),
        client.list_judges(event_id),
        client.list_event_votes(event_id),
        client.list_categories(event_id),
    )
    return ScoreAggregator(votes, participants, categories).stats(judges=len(judges))


def _logged_in_coordinator(client: JudgingClient) -> dict[str, Any]:
    coordinator = current_coordinator(client.store)
    if coordinator is None:
        raise RemoteError("User not found. Please log in.", requires_login=True)
    return coordinator


class DashboardPage(Page):
    def __init__(self, client: JudgingClient):
        super().__init__()
        self.client = client

    async def fetch(self) -> CoordinatorDashboard:
        coordinator = _logged_in_coordinator(self.client)
        owner = str(coordinator["id"])
        events = [e for e in await self.client.list_events() if e.coordinator_id == owner]
        stats = await asyncio.gather(*(fetch_event_stats(self.client, e.id) for e in events))
        logger.info(f"Loaded {len(events)} events for coordinator {owner}")
        return CoordinatorDashboard(
            coordinator=coordinator,
            events=[EventSummary(event=e, stats=s) for e, s in zip(events, stats)],
        )


# Judge pages


@dataclass
class JudgeProgress:
    submitted: int
    required: int

    @property
    def percent(self) -> int:
        if not self.required:
            return 0
        return round(self.submitted / self.required * 100)


@dataclass
class AwardsOverview:
    """The categories a judge can score, split by award type."""
    judge: Judge
    event: Event
    categories: list[Category]
    votes: list[Vote] = field(default_factory=list)
    participants: int = 0

    @property
    def major(self) -> list[Category]:
        return [c for c in self.categories if c.award_type == "major"]

    @property
    def minor(self) -> list[Category]:
        return [c for c in self.categories if c.award_type == "minor"]

    @property
    def open_count(self) -> int:
        return sum(1 for c in self.categories if c.is_open)

    @property
    def progress(self) -> JudgeProgress:
        return JudgeProgress(
            submitted=len(self.votes),
            required=self.participants * len(self.categories),
        )

    def is_judged(self, category: Category) -> bool:
        return any(v.category_id == category.id for v in self.votes)

    def search(self, term: str) -> list[Category]:
        term = term.strip().lower()
        return [c for c in self.categories if term in c.name.lower()]


def _logged_in_judge(client: JudgingClient) -> Judge:
    judge = current_judge(client.store)
    if judge is None:
        raise RemoteError("User not found. Please log in.", requires_login=True)
    return judge


def _own_votes(votes: list[Vote], judge: Judge) -> list[Vote]:
    # The dashboard only returns the judge's own votes, some without a judge id.
    return [v if v.judge_id else v.model_copy(update={"judge_id": judge.id}) for v in votes]


class AwardsPage(Page):
    login_route = JUDGE_LOGIN
    parent_route = JUDGE_HOME

    def __init__(self, client: JudgingClient):
        super().__init__()
        self.client = client

    async def fetch(self) -> AwardsOverview:
        judge = _logged_in_judge(self.client)
        event, categories, dashboard = await asyncio.gather(
            self.client.get_event(judge.event_id),
            self.client.list_categories(judge.event_id),
            self.client.judge_dashboard(),
        )
        return AwardsOverview(
            judge=judge,
            event=event,
            categories=categories,
            votes=_own_votes(dashboard["votes"], judge),
            participants=len(dashboard["participants"]),
        )


async def open_voting_session(
    client: JudgingClient,
    event_id: str,
    category_id: str,
    clock: Callable[[], datetime] = utcnow,
) -> VotingSession:
    """Load a category and start the logged-in judge's scoring session.

    Raises the VotingSession.open errors, plus RemoteError/NotFoundError
    from the fetches.
    """
    judge = _logged_in_judge(client)
    event, category, dashboard = await asyncio.gather(
        client.get_event(event_id),
        client.get_category(event_id, category_id),
        client.judge_dashboard(),
    )
    participants = [
        p for p in dashboard["participants"] if p.event_id in (None, str(event_id))
    ]
    return VotingSession.open(
        judge=judge,
        event=event,
        category=category,
        participants=participants,
        vote_history=_own_votes(dashboard["votes"], judge),
        clock=clock,
    )


async def submit_voting_session(client: JudgingClient, session: VotingSession) -> dict[str, Any]:
    """Validate a session locally, then send its votes in one batch."""
    payload = session.payload()
    return await client.submit_votes(session.event.id, session.category.id, payload)
