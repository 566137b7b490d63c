"""
Judging API Client

Async HTTP client for the event-judging REST backend.
Every call returns parsed records from judging.models; every failure is
raised as a JudgingError subclass.
"""

import logging
from typing import Any

import httpx

from judging.config import Settings, settings as default_settings
from judging.errors import ContractError, NotFoundError, RemoteError
from judging.models import Category, Event, Judge, Participant, Vote, parse_list
from judging.session import ACCESS_TOKEN_KEY, MemorySessionStore, SessionStore

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again."

DEFAULT_HEADERS = {
    "accept": "application/json",
}


def error_message(response: httpx.Response, fallback: str = GENERIC_ERROR) -> str:
    """Human-readable message from an error response, if the backend sent one."""
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
        # Field errors come back as {"email": ["... already exists."]}
        for value in data.values():
            if isinstance(value, list) and value and isinstance(value[0], str):
                return value[0]
    return fallback


class JudgingClient:
    """
    Client for the judging backend.

    The bearer token is read from the session store on every request, so a
    login performed through the same store is picked up immediately.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            store: Where the access token lives; an empty in-memory store
                by default
            settings: API URL and timeout; the environment's settings by default
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.store = store if store is not None else MemorySessionStore()
        self.settings = settings or default_settings
        self.base_url = self.settings.API_URL.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.REQUEST_TIMEOUT,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        authenticated: bool = True,
        fallback: str = GENERIC_ERROR,
    ) -> Any:
        """
        Make a request to the API.

        Args:
            method: HTTP method
            endpoint: Path below the API URL, e.g. '/events/3/'
            json: Request body
            authenticated: Send the stored bearer token
            fallback: Message used when the backend gives none

        Returns:
            Decoded JSON body, or None for an empty response

        Raises:
            RemoteError: On transport failures and error responses
            NotFoundError: On 404
        """
        headers = dict(DEFAULT_HEADERS)
        if authenticated:
            token = self.store.get(ACCESS_TOKEN_KEY)
            if not token:
                raise RemoteError("No authentication token found.", requires_login=True)
            headers["authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{method} {url}")

        try:
            async with self._client() as client:
                response = await client.request(method, url, headers=headers, json=json)
        except httpx.RequestError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise RemoteError(f"Could not reach the server: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(error_message(response, "The requested item was not found."))

        if response.status_code >= 400:
            message = error_message(response, fallback)
            logger.error(f"{method} {url} returned {response.status_code}: {message}")
            raise RemoteError(
                message,
                status_code=response.status_code,
                requires_login=response.status_code in (401, 403),
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(f"The server sent an invalid response: {e}") from e

    # Authentication

    async def judge_login(self, access_code: str) -> dict[str, Any]:
        """Exchange an access code for tokens and the judge's profile."""
        return await self._request(
            "POST",
            "/events/judges/login/",
            json={"access_code": access_code.strip().upper()},
            authenticated=False,
            fallback="Invalid access code.",
        )

    async def register_coordinator(self, name: str, email: str, password: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/coordinators/register/",
            json={
                "email": email,
                "name": name,
                "department": "Event Management",
                "password": password,
            },
            authenticated=False,
            fallback="Registration failed. Please try again.",
        )

    async def coordinator_login(self, email: str, password: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/coordinators/login/",
            json={"email": email, "password": password},
            authenticated=False,
            fallback="Login failed. Please check your credentials.",
        )

    # Events

    async def list_events(self) -> list[Event]:
        return parse_list(Event, await self._request("GET", "/events/"), "events")

    async def get_event(self, event_id: str) -> Event:
        return Event.from_dict(await self._request("GET", f"/events/{event_id}/"))

    async def create_event(self, body: dict[str, Any]) -> Event:
        return Event.from_dict(await self._request("POST", "/events/", json=body))

    async def update_event(self, event_id: str, body: dict[str, Any]) -> Event:
        return Event.from_dict(
            await self._request("PUT", f"/events/{event_id}/update/", json=body)
        )

    async def delete_event(self, event_id: str) -> None:
        await self._request("DELETE", f"/events/{event_id}/delete/")

    # Participants

    async def list_participants(self, event_id: str) -> list[Participant]:
        data = await self._request("GET", f"/events/{event_id}/participants/")
        return parse_list(Participant, data, "participants")

    async def create_participant(self, event_id: str, body: dict[str, Any]) -> Participant:
        return Participant.from_dict(
            await self._request("POST", f"/events/{event_id}/participants/", json=body)
        )

    async def update_participant(
        self, event_id: str, participant_id: str, body: dict[str, Any]
    ) -> Participant:
        return Participant.from_dict(await self._request(
            "PUT", f"/events/{event_id}/participants/{participant_id}/", json=body
        ))

    async def delete_participant(self, event_id: str, participant_id: str) -> None:
        await self._request("DELETE", f"/events/{event_id}/participants/{participant_id}/")

    # Judges

    async def list_judges(self, event_id: str) -> list[Judge]:
        return parse_list(
            Judge, await self._request("GET", f"/events/{event_id}/judges/"), "judges"
        )

    async def create_judge(self, event_id: str, body: dict[str, Any]) -> Judge:
        return Judge.from_dict(
            await self._request("POST", f"/events/{event_id}/judges/", json=body)
        )

    async def update_judge(self, event_id: str, judge_id: str, body: dict[str, Any]) -> Judge:
        return Judge.from_dict(
            await self._request("PUT", f"/events/{event_id}/judges/{judge_id}/", json=body)
        )

    async def delete_judge(self, event_id: str, judge_id: str) -> None:
        await self._request("DELETE", f"/events/{event_id}/judges/{judge_id}/")

    # Categories

    async def list_categories(self, event_id: str) -> list[Category]:
        data = await self._request("GET", f"/events/{event_id}/categories/")
        return parse_list(Category, data, "categories")

    async def get_category(self, event_id: str, category_id: str) -> Category:
        return Category.from_dict(
            await self._request("GET", f"/events/{event_id}/categories/{category_id}/")
        )

    async def create_category(self, event_id: str, body: dict[str, Any]) -> Category:
        return Category.from_dict(
            await self._request("POST", f"/events/{event_id}/categories/", json=body)
        )

    async def update_category(
        self, event_id: str, category_id: str, body: dict[str, Any]
    ) -> Category:
        return Category.from_dict(await self._request(
            "PUT", f"/events/{event_id}/categories/{category_id}/", json=body
        ))

    async def delete_category(self, event_id: str, category_id: str) -> None:
        await self._request("DELETE", f"/events/{event_id}/categories/{category_id}/")

    # Votes

    async def list_event_votes(self, event_id: str) -> list[Vote]:
        """All votes of an event (coordinator only)."""
        data = await self._request("GET", f"/events/coordinator/{event_id}/votes/")
        return parse_list(Vote, data, "votes")

    async def judge_dashboard(self) -> dict[str, Any]:
        """
        Fetch the logged-in judge's dashboard.

        Returns:
            Dict with 'participants', 'categories' and 'votes' lists of
            parsed records, plus the raw 'event' entry if present
        """
        data = await self._request("GET", "/events/judges/dashboard/") or {}
        if not isinstance(data, dict):
            raise ContractError(f"Expected a dashboard object, got {type(data).__name__}")
        return {
            "event": data.get("event"),
            "participants": parse_list(Participant, data.get("participants") or [], "participants"),
            "categories": parse_list(Category, data.get("categories") or [], "categories"),
            "votes": parse_list(Vote, data.get("votes") or [], "votes"),
        }

    async def submit_votes(
        self, event_id: str, category_id: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Submit a batch of votes for one category; returns the backend's echo."""
        logger.info(
            f"Submitting {len(payload.get('votes', []))} votes for category {category_id}"
        )
        return await self._request(
            "POST",
            f"/events/{event_id}/categories/{category_id}/vote/",
            json=payload,
            fallback="Failed to submit scores. Please try again.",
        )
