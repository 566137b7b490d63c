"""An in-memory stand-in for the judging backend, served through httpx.MockTransport."""

import json

import httpx

from judging.config import Settings
from judging.client import JudgingClient
from judging.session import ACCESS_TOKEN_KEY, MemorySessionStore

API_URL = "http://api.test/api"

EVENT = {
    "id": 1, "title": "Gala Night", "date": "2030-05-30T20:00:00Z",
    "status": "open", "location": "Manila", "max_participants": 10,
    "coordinator": {"id": 5, "name": "Coco"},
}
OTHER_EVENT = {"id": 2, "title": "Spring Fair", "status": "draft", "coordinator": {"id": 6}}
COORDINATOR = {"id": 5, "name": "Coco", "email": "coco@example.com", "role": "coordinator"}
PARTICIPANTS = [
    {"id": 1, "name": "Ana", "contestant_number": 1, "gender": "Female", "event": {"id": 1}},
    {"id": 2, "name": "Ben", "contestant_number": 2, "gender": "male", "event": {"id": 1}},
    {"id": 3, "name": "Cara", "contestant_number": 3, "gender": "FEMALE", "event": {"id": 1}},
]
JUDGES = [
    {"id": 7, "name": "Judge Judy", "email": "judy@example.com", "access_code": "AB12CD", "event": 1},
    {"id": 8, "name": "Judge Dee", "email": "dee@example.com", "access_code": "EF34GH", "event": 1},
]
CATEGORIES = [
    {
        "id": 10, "name": "Best in Talent", "max_score": 100, "weight": 2,
        "status": "open", "gender": "everyone", "award_type": "major",
        "criteria": [
            {"id": 1, "name": "Beauty", "percentage": 40},
            {"id": 2, "name": "Elegance", "percentage": 35},
            {"id": 3, "name": "Stage Presence", "percentage": 25},
        ],
    },
    {
        "id": 11, "name": "Best in Gown", "max_score": 100, "weight": 1,
        "status": "open", "gender": "Female", "award_type": "minor",
        "criteria": [{"id": 4, "name": "Poise", "percentage": 100}],
    },
]
VOTES = [
    {"id": 1, "judge": {"id": 7}, "participant": {"id": 1}, "category": {"id": 10}, "score": 80},
    {"id": 2, "judge": {"id": 8}, "participant": {"id": 1}, "category": {"id": 10}, "score": 90},
    {"id": 3, "judge": {"id": 7}, "participant": {"id": 2}, "category": {"id": 10}, "score": 70},
    {"id": 4, "judge": {"id": 7}, "participant": {"id": 3}, "category": {"id": 11}, "score": 95},
]


class FakeAPI:
    """Routes requests to canned responses and records what was sent.

    routes maps (method, path below the API URL) to either a (status, body)
    tuple or a callable taking the request and returning one.
    """

    def __init__(self, routes: dict | None = None, token: str | None = "secret"):
        self.routes = {
            ("GET", "/events/"): (200, [EVENT, OTHER_EVENT]),
            ("GET", "/events/1/"): (200, EVENT),
            ("GET", "/events/1/participants/"): (200, PARTICIPANTS),
            ("GET", "/events/1/judges/"): (200, JUDGES),
            ("GET", "/events/1/categories/"): (200, CATEGORIES),
            ("GET", "/events/1/categories/10/"): (200, CATEGORIES[0]),
            ("GET", "/events/coordinator/1/votes/"): (200, VOTES),
            ("GET", "/events/judges/dashboard/"): (200, {
                "participants": PARTICIPANTS,
                "categories": CATEGORIES,
                "votes": [],
            }),
        }
        self.routes.update(routes or {})
        self.requests: list[httpx.Request] = []
        self.store = MemorySessionStore({ACCESS_TOKEN_KEY: token} if token else {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        if callable(route):
            route = route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def client(self) -> JudgingClient:
        return JudgingClient(
            store=self.store,
            settings=Settings(API_URL=API_URL),
            transport=httpx.MockTransport(self.handler),
        )

    def sent_json(self, index: int = -1):
        return json.loads(self.requests[index].content)
