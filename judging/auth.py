"""Login and logout flows for judges and coordinators."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from judging.client import JudgingClient
from judging.errors import ContractError, JudgingError, ValidationError
from judging.models import Event, Judge
from judging.session import (
    ACCESS_TOKEN_KEY,
    COORDINATOR_KEY,
    JUDGE_KEY,
    REFRESH_TOKEN_KEY,
    SessionStore,
    clear_session,
)

logger = logging.getLogger(__name__)

ACCESS_MESSAGES = {
    "open": "Access granted.",
    "upcoming": "This event has not opened for judging yet.",
}
CLOSED_MESSAGE = "Judging for this event is closed."


@dataclass
class JudgeLogin:
    """Outcome of a judge login.

    granted is True only for an open event; the session is stored either way
    so the judge can see the event details.
    """
    judge: Judge
    event: Event
    granted: bool
    message: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def login_judge(client: JudgingClient, store: SessionStore, access_code: str) -> JudgeLogin:
    """Log a judge in with their access code.

    Any failure clears whatever session was stored before re-raising.
    """
    try:
        data = await client.judge_login(access_code)
        if not isinstance(data, dict) or not data.get("access_token"):
            raise ContractError("Login response did not include an access token.")
        judge_data = data.get("judge") or {}
        if not isinstance(judge_data, dict) or not judge_data.get("event"):
            raise ContractError("Event ID not found in judge data.")
        judge = Judge.from_dict(judge_data)

        store.set(ACCESS_TOKEN_KEY, data["access_token"])
        store.set(REFRESH_TOKEN_KEY, data.get("refresh_token"))
        event = await client.get_event(judge.event_id)
        store.set(JUDGE_KEY, {**judge_data, "role": "judge", "loginTime": _now()})
    except JudgingError:
        clear_session(store)
        raise

    granted = event.status == "open"
    logger.info(f"Judge {judge.name} logged in for event {event.id} ({event.status})")
    return JudgeLogin(
        judge=judge,
        event=event,
        granted=granted,
        message=ACCESS_MESSAGES.get(event.status, CLOSED_MESSAGE),
    )


async def login_coordinator(client: JudgingClient, store: SessionStore,
                            email: str, password: str) -> dict:
    """Log a coordinator in and return their stored profile."""
    try:
        data = await client.coordinator_login(email, password)
        if not isinstance(data, dict) or not data.get("access"):
            raise ContractError("Login response did not include an access token.")
    except JudgingError:
        clear_session(store)
        raise

    profile = {"role": "coordinator", **(data.get("user") or {}), "loginTime": _now()}
    store.set(ACCESS_TOKEN_KEY, data["access"])
    store.set(REFRESH_TOKEN_KEY, data.get("refresh"))
    store.set(COORDINATOR_KEY, profile)
    logger.info(f"Coordinator {email} logged in")
    return profile


def current_judge(store: SessionStore) -> Judge | None:
    data = store.get(JUDGE_KEY)
    if not isinstance(data, dict) or data.get("role") != "judge":
        return None
    try:
        return Judge.from_dict(data)
    except ContractError:
        return None


def logout(store: SessionStore) -> None:
    store.clear()


async def register_coordinator(client: JudgingClient, name: str, email: str,
                               password: str, confirm_password: str) -> dict:
    """Create a coordinator account. Nothing is stored; the new coordinator logs in next."""
    if not name.strip() or not email.strip() or not password:
        raise ValidationError("Please fill in your name, email and password.")
    if password != confirm_password:
        raise ValidationError("Passwords do not match. Please try again.")
    data = await client.register_coordinator(name.strip(), email.strip(), password)
    logger.info(f"Registered coordinator {email}")
    return data or {}


def current_coordinator(store: SessionStore) -> dict | None:
    """The logged-in coordinator's profile, if a coordinator is logged in."""
    data = store.get(COORDINATOR_KEY)
    if not isinstance(data, dict) or data.get("role") != "coordinator" or data.get("id") is None:
        return None
    return data
