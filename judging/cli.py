#!/usr/bin/env python3
"""
Command-line console for the judging backend.

Usage:
    judging results 12                      # Rankings for event 12
    judging results --snapshot event.json   # Rankings from a saved snapshot
    judging results 12 --category Talent    # One category only
    judging votes 12 --judge 4              # Votes of judge 4 in event 12
    judging register coordinator@example.com --name "Coco"
    judging login coordinator@example.com   # Coordinator login (password prompted)
    judging events list                     # The coordinator's events with stats
    judging events add --title Gala --date 2025-05-30
    judging participants add 12 --name "Ana Cruz" --gender female
    judging judges add 12 --name "Judy" --email judy@example.com
    judging categories add 12 --name "Best in Talent" --description Talent \\
        --weight 2 --criterion Beauty=40 --criterion Elegance=35 --criterion "Stage Presence=25"
    judging categories status 12 5 closed   # Close an award for voting
    judging judge-login AB12CD              # Judge login with an access code
    judging progress                        # Logged-in judge's progress
    judging score 12 5                      # Score an award (prompts per criterion)
    judging score 12 5 --scores scores.json
    judging logout
"""

import argparse
import asyncio
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Any

from judging import manage
from judging.auth import login_coordinator, login_judge, logout, register_coordinator
from judging.client import JudgingClient
from judging.config import Settings, settings as default_settings
from judging.errors import ContractError, JudgingError, ValidationError
from judging.models import EventSnapshot
from judging.session import FileSessionStore, SessionStore
from judging.views import (
    AwardsPage,
    DashboardPage,
    EventResults,
    Page,
    ResultsPage,
    VotesPage,
    compute_event_results,
    open_voting_session,
    score_band,
    submit_voting_session,
)
from judging.voting import VotingSession, search_participants

logger = logging.getLogger(__name__)


def fmt(score: float) -> str:
    """Scores are shown with one decimal; they are never rounded before ranking."""
    return f"{score:.1f}"


def print_results(results: EventResults, category_name: str | None = None) -> None:
    print(f"\n{results.event.title}")
    stats = results.stats
    print(
        f"{stats.participants} participants, {stats.judges} judges, "
        f"{stats.categories} categories, {stats.votes} votes "
        f"({stats.participants_with_votes} participants scored)"
    )

    for category_result in results.categories:
        category = category_result.category
        if category_name and category.name.lower() != category_name.lower():
            continue
        print(f"\n== {category.name} (weight {category.weight:g}, "
              f"{category_result.total_votes} votes)")
        if not category_result.results:
            print("   No votes yet.")
        for standing in category_result.results:
            print(
                f"{standing.rank:>3}. #{standing.participant.contestant_number or '-'} "
                f"{standing.participant.name:<30} {fmt(standing.average_score):>6} "
                f"({standing.vote_count} votes)"
            )

    if category_name:
        return

    print("\n== Overall")
    if not results.overall:
        print("   No votes yet.")
    for standing in results.overall:
        breakdown = ", ".join(
            f"{c.category.name} {fmt(c.average_score)}" for c in standing.category_scores
        )
        print(
            f"{standing.rank:>3}. {standing.participant.name:<30} "
            f"{fmt(standing.overall_average):>6}  [{breakdown}]"
        )


def parse_criterion(text: str) -> tuple[str, str]:
    """Split a NAME=PERCENTAGE command-line criterion."""
    name, sep, percentage = text.rpartition("=")
    if not sep:
        raise ValidationError(f"Criteria are given as NAME=PERCENTAGE, got {text!r}.")
    return name.strip(), percentage.strip()


def load_scores(path: str) -> dict[str, dict[str, Any]]:
    """Read {participant id: {criterion name: score}} from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ContractError(f"Could not read scores {path}: {e}") from e
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ContractError(f"Scores in {path} must map participant ids to criterion scores.")
    return {str(k): v for k, v in data.items()}


def enter_scores(session: VotingSession, table: dict[str, dict[str, Any]] | None = None) -> None:
    """Fill a session from a score table, or by asking for every score.

    Blank answers and entries missing from the table are left unscored.
    """
    for participant in session.participants:
        row = (table or {}).get(participant.id, {})
        for criterion in session.category.criteria:
            if table is not None:
                raw = row.get(criterion.name, row.get(criterion.id))
            else:
                raw = input(f"#{participant.contestant_number or '-'} {participant.name} - "
                            f"{criterion.name} ({criterion.percentage:g}%) [1-10]: ").strip()
            if raw is not None and raw != "":
                session.set_score(participant.id, criterion.id, raw)


async def run_page(page: Page):
    state = await page.load()
    if state.status == "ready":
        return state.data
    if state.redirect:
        raise JudgingError(f"{state.error} Please log in again.")
    raise JudgingError(state.error or "Failed to load data. Please try again.")


async def run_events(args: argparse.Namespace, client: JudgingClient) -> None:
    if args.action == "list":
        dashboard = await run_page(DashboardPage(client))
        print(f"Events of {dashboard.coordinator.get('name') or dashboard.coordinator.get('email')}")
        if not dashboard.events:
            print("   No events yet.")
        for summary in dashboard.events:
            event, stats = summary.event, summary.stats
            print(
                f"{event.id:>4}  {event.title:<30} {event.status:<9} {event.date or '-':<25} "
                f"{stats.participants} participants, {stats.judges} judges, "
                f"{stats.categories} categories, "
                f"{stats.votes}/{stats.total_possible_votes} votes"
            )
        return

    fields = {
        "title": args.title,
        "date": args.date,
        "status": args.status,
        "description": args.description,
        "location": args.location,
        "max_participants": args.max_participants,
    } if args.action in ("add", "edit") else {}

    if args.action == "add":
        event = await manage.add_event(client, fields)
        print(f"Created event {event.id}: {event.title}")
    elif args.action == "edit":
        event = await manage.edit_event(client, args.event_id, fields)
        print(f"Updated event {event.id}: {event.title} ({event.status})")
    elif args.action == "remove":
        await manage.remove_event(client, args.event_id)
        print(f"Deleted event {args.event_id}")


async def run_participants(args: argparse.Namespace, client: JudgingClient) -> None:
    if args.action == "list":
        participants = await client.list_participants(args.event_id)
        for participant in search_participants(participants, args.search or ""):
            print(
                f"{participant.id:>4}  #{participant.contestant_number or '-':<4} "
                f"{participant.name:<30} {participant.gender or '-':<8} {participant.origin}"
            )
        return

    fields = {
        "name": args.name,
        "contestant_number": args.number,
        "gender": args.gender,
        "email": args.email,
        "origin": args.origin,
        "entry": args.entry,
    } if args.action in ("add", "edit") else {}

    if args.action == "add":
        participant = await manage.add_participant(client, args.event_id, fields)
        print(f"Added #{participant.contestant_number} {participant.name} (id {participant.id})")
    elif args.action == "edit":
        participant = await manage.edit_participant(client, args.event_id, args.id, fields)
        print(f"Updated #{participant.contestant_number} {participant.name}")
    elif args.action == "remove":
        await manage.remove_participant(client, args.event_id, args.id)
        print(f"Removed participant {args.id}")


async def run_judges(args: argparse.Namespace, client: JudgingClient) -> None:
    if args.action == "list":
        for judge in await client.list_judges(args.event_id):
            print(f"{judge.id:>4}  {judge.name:<25} {judge.email:<30} {judge.access_code}")
        return

    fields = {
        "name": args.name,
        "email": args.email,
        "specialization": args.specialization,
    } if args.action in ("add", "edit") else {}

    if args.action == "add":
        judge = await manage.add_judge(client, args.event_id, fields)
        print(f"Added judge {judge.name}; access code {judge.access_code or '(pending)'}")
    elif args.action == "edit":
        judge = await manage.edit_judge(client, args.event_id, args.id, fields)
        print(f"Updated judge {judge.name}")
    elif args.action == "remove":
        await manage.remove_judge(client, args.event_id, args.id)
        print(f"Removed judge {args.id}")


async def run_categories(args: argparse.Namespace, client: JudgingClient) -> None:
    if args.action == "list":
        for category in await client.list_categories(args.event_id):
            state = "ok" if category.is_valid else f"criteria {category.criteria_total:g}%"
            print(
                f"{category.id:>4}  {category.name:<30} {category.award_type:<6} "
                f"{category.gender:<9} {category.status:<7} weight {category.weight:g}  {state}"
            )
        return

    criteria = [parse_criterion(c) for c in (getattr(args, "criterion", None) or [])]

    if args.action == "add":
        category = await manage.add_category(client, args.event_id, {
            "name": args.name,
            "description": args.description,
            "max_score": args.max_score,
            "weight": args.weight,
            "gender": args.gender,
            "award_type": args.award_type,
        }, criteria or None)
        print(f"Created award {category.id}: {category.name} "
              f"({len(category.criteria)} criteria)")
    elif args.action == "status":
        category = await manage.set_category_status(client, args.event_id, args.id, args.status)
        print(f"{category.name} is now {category.status} for voting.")
    elif args.action == "criteria":
        category = await manage.set_criteria(client, args.event_id, args.id, criteria)
        print(f"Updated criteria of {category.name}")
    elif args.action == "remove":
        await manage.remove_category(client, args.event_id, args.id)
        print(f"Deleted award {args.id}")


async def run_score(args: argparse.Namespace, client: JudgingClient) -> None:
    session = await open_voting_session(client, args.event_id, args.category_id)
    print(f"{session.category.name}: {len(session.participants)} participants, "
          f"{len(session.category.criteria)} criteria")
    enter_scores(session, load_scores(args.scores) if args.scores else None)
    await submit_voting_session(client, session)
    for participant in session.participants:
        print(f"  {participant.name:<30} {fmt(session.weighted_score(participant.id)):>6}")
    print(f"Submitted {len(session.participants)} votes for {session.category.name}.")


async def run(args: argparse.Namespace, client: JudgingClient, store: SessionStore) -> int:
    if args.command == "results":
        if args.snapshot:
            try:
                data = json.loads(Path(args.snapshot).read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise ContractError(f"Could not read snapshot {args.snapshot}: {e}") from e
            results = compute_event_results(EventSnapshot.from_dict(data))
        elif args.event_id:
            results = await run_page(ResultsPage(client, args.event_id))
        else:
            raise JudgingError("Give an event id or --snapshot FILE.")
        if args.json:
            print(json.dumps(results.to_dict(), indent=2))
        else:
            print_results(results, args.category)

    elif args.command == "votes":
        listing = await run_page(VotesPage(
            client, args.event_id,
            judge=args.judge, participant=args.participant, category=args.category,
        ))
        names = {p.id: p.name for p in listing.snapshot.participants}
        judges = {j.id: j.name for j in listing.snapshot.judges}
        categories = {c.id: c.name for c in listing.snapshot.categories}
        for vote in listing.votes:
            print(
                f"{judges.get(vote.judge_id, vote.judge_id):<20} "
                f"{names.get(vote.participant_id, vote.participant_id):<25} "
                f"{categories.get(vote.category_id, vote.category_id):<20} "
                f"{fmt(vote.score):>6} {score_band(vote.score)}"
            )
        print(f"\n{len(listing.votes)} of {len(listing.snapshot.votes)} votes")

    elif args.command == "register":
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        await register_coordinator(client, args.name, args.email, password, confirm)
        print(f"Welcome, {args.name}! Please log in to continue.")

    elif args.command == "login":
        password = getpass.getpass("Password: ")
        profile = await login_coordinator(client, store, args.email, password)
        print(f"Welcome, {profile.get('name') or args.email}!")

    elif args.command == "events":
        await run_events(args, client)

    elif args.command == "participants":
        await run_participants(args, client)

    elif args.command == "judges":
        await run_judges(args, client)

    elif args.command == "categories":
        await run_categories(args, client)

    elif args.command == "judge-login":
        result = await login_judge(client, store, args.access_code)
        print(f"Welcome, {result.judge.name}! {result.event.title}: {result.message}")
        return 0 if result.granted else 1

    elif args.command == "progress":
        overview = await run_page(AwardsPage(client))
        progress = overview.progress
        print(f"{overview.event.title} - {overview.judge.name}")
        print(f"{progress.submitted} of {progress.required} votes submitted ({progress.percent}%)")
        for label, awards in (("Major awards", overview.major), ("Minor awards", overview.minor)):
            print(f"\n{label}:")
            for award in awards:
                state = "judged" if overview.is_judged(award) else award.status
                print(f"  {award.id:>4}  {award.name} ({award.gender}) - {state}")

    elif args.command == "score":
        await run_score(args, client)

    elif args.command == "logout":
        logout(store)
        print("Logged out.")

    return 0


def _add_event_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--title", required=required)
    parser.add_argument("--date", required=required, help="ISO date or date/time")
    parser.add_argument("--status", help="draft, upcoming, open or closed")
    parser.add_argument("--description")
    parser.add_argument("--location")
    parser.add_argument("--max-participants", type=int)


def _add_participant_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--name", required=required)
    parser.add_argument("--number", help="Contestant number (default: next free number)")
    parser.add_argument("--gender")
    parser.add_argument("--email")
    parser.add_argument("--origin")
    parser.add_argument("--entry")


def _add_judge_fields(parser: argparse.ArgumentParser, required: bool) -> None:
    parser.add_argument("--name", required=required)
    parser.add_argument("--email", required=required)
    parser.add_argument("--specialization")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="judging",
        description="Console for the pageant judging backend",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--api-url", help="Override the API URL")
    sub = parser.add_subparsers(dest="command", required=True)

    results = sub.add_parser("results", help="Show category and overall rankings")
    results.add_argument("event_id", nargs="?", help="Event id")
    results.add_argument("--snapshot", help="Read event data from a JSON snapshot file")
    results.add_argument("--category", help="Only show this category")
    results.add_argument("--json", action="store_true", help="Print results as JSON")

    votes = sub.add_parser("votes", help="List an event's votes")
    votes.add_argument("event_id", help="Event id")
    votes.add_argument("--judge", help="Only votes by this judge id")
    votes.add_argument("--participant", help="Only votes for this participant id")
    votes.add_argument("--category", help="Only votes in this category id")

    register = sub.add_parser("register", help="Create a coordinator account")
    register.add_argument("email")
    register.add_argument("--name", required=True)

    login = sub.add_parser("login", help="Coordinator login")
    login.add_argument("email")

    events = sub.add_parser("events", help="Manage the coordinator's events")
    events_sub = events.add_subparsers(dest="action", required=True)
    events_sub.add_parser("list", help="Own events with statistics")
    _add_event_fields(events_sub.add_parser("add", help="Create an event"), required=True)
    edit = events_sub.add_parser("edit", help="Change an event")
    edit.add_argument("event_id")
    _add_event_fields(edit, required=False)
    events_sub.add_parser("remove", help="Delete an event").add_argument("event_id")

    participants = sub.add_parser("participants", help="Manage an event's participants")
    participants_sub = participants.add_subparsers(dest="action", required=True)
    listing = participants_sub.add_parser("list")
    listing.add_argument("event_id")
    listing.add_argument("--search", help="Only names containing this text")
    add = participants_sub.add_parser("add")
    add.add_argument("event_id")
    _add_participant_fields(add, required=True)
    edit = participants_sub.add_parser("edit")
    edit.add_argument("event_id")
    edit.add_argument("id")
    _add_participant_fields(edit, required=False)
    remove = participants_sub.add_parser("remove")
    remove.add_argument("event_id")
    remove.add_argument("id")

    judges = sub.add_parser("judges", help="Manage an event's judges")
    judges_sub = judges.add_subparsers(dest="action", required=True)
    judges_sub.add_parser("list").add_argument("event_id")
    add = judges_sub.add_parser("add")
    add.add_argument("event_id")
    _add_judge_fields(add, required=True)
    edit = judges_sub.add_parser("edit")
    edit.add_argument("event_id")
    edit.add_argument("id")
    _add_judge_fields(edit, required=False)
    remove = judges_sub.add_parser("remove")
    remove.add_argument("event_id")
    remove.add_argument("id")

    categories = sub.add_parser("categories", help="Manage an event's award categories")
    categories_sub = categories.add_subparsers(dest="action", required=True)
    categories_sub.add_parser("list").add_argument("event_id")
    add = categories_sub.add_parser("add")
    add.add_argument("event_id")
    add.add_argument("--name", required=True)
    add.add_argument("--description", required=True)
    add.add_argument("--weight", required=True)
    add.add_argument("--max-score", default="100")
    add.add_argument("--gender", default="everyone", help="male, female or everyone")
    add.add_argument("--award-type", default="major", help="major or minor")
    add.add_argument("--criterion", action="append",
                     help="NAME=PERCENTAGE, repeated; totals must be 100")
    status = categories_sub.add_parser("status", help="Open or close an award for voting")
    status.add_argument("event_id")
    status.add_argument("id")
    status.add_argument("status", choices=["open", "closed"])
    criteria = categories_sub.add_parser("criteria", help="Replace an award's criteria")
    criteria.add_argument("event_id")
    criteria.add_argument("id")
    criteria.add_argument("--criterion", action="append", required=True,
                          help="NAME=PERCENTAGE, repeated; totals must be 100")
    remove = categories_sub.add_parser("remove")
    remove.add_argument("event_id")
    remove.add_argument("id")

    judge_login = sub.add_parser("judge-login", help="Judge login with an access code")
    judge_login.add_argument("access_code")

    sub.add_parser("progress", help="Judging progress of the logged-in judge")

    score = sub.add_parser("score", help="Score an award as the logged-in judge")
    score.add_argument("event_id")
    score.add_argument("category_id")
    score.add_argument("--scores", help="JSON file of {participant id: {criterion: score}}")

    sub.add_parser("logout", help="Forget the stored login")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings: Settings = default_settings
    if args.api_url:
        settings = settings.model_copy(update={"API_URL": args.api_url})
    store = FileSessionStore(settings.SESSION_FILE)
    client = JudgingClient(store=store, settings=settings)

    try:
        return asyncio.run(run(args, client, store))
    except JudgingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
