"""Tests for the async API client."""

import asyncio

import httpx
import pytest
from tests.fake_api import FakeAPI

from judging.config import Settings
from judging.client import JudgingClient, error_message
from judging.errors import ContractError, NotFoundError, RemoteError
from judging.session import MemorySessionStore


class TestRequests:
    def test_bearer_token_sent(self):
        api = FakeAPI()
        asyncio.run(api.client().get_event("1"))
        assert api.requests[0].headers["authorization"] == "Bearer secret"

    def test_missing_token(self):
        api = FakeAPI(token=None)
        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(api.client().get_event("1"))
        assert exc_info.value.requires_login
        assert api.requests == []

    def test_parses_records(self):
        api = FakeAPI()
        categories = asyncio.run(api.client().list_categories("1"))
        assert [c.name for c in categories] == ["Best in Talent", "Best in Gown"]
        assert categories[1].gender == "female"

    def test_not_found(self):
        api = FakeAPI()
        with pytest.raises(NotFoundError, match="Not found"):
            asyncio.run(api.client().get_event("99"))

    def test_backend_message_used_verbatim(self):
        api = FakeAPI({("GET", "/events/1/"): (400, {"error": "Event is archived."})})
        with pytest.raises(RemoteError, match="Event is archived.") as exc_info:
            asyncio.run(api.client().get_event("1"))
        assert exc_info.value.status_code == 400
        assert not exc_info.value.requires_login

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failures_require_login(self, status):
        api = FakeAPI({("GET", "/events/1/"): (status, {"detail": "Token expired"})})
        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(api.client().get_event("1"))
        assert exc_info.value.requires_login

    def test_generic_fallback(self):
        api = FakeAPI({("GET", "/events/1/"): (500, ["boom"])})
        with pytest.raises(RemoteError, match="Something went wrong"):
            asyncio.run(api.client().get_event("1"))

    def test_transport_error(self):
        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = MemorySessionStore({"accessToken": "t"})
        client = JudgingClient(
            store=store,
            settings=Settings(API_URL="http://api.test/api"),
            transport=httpx.MockTransport(fail),
        )
        with pytest.raises(RemoteError, match="Could not reach the server"):
            asyncio.run(client.list_events())

    def test_shape_mismatch(self):
        api = FakeAPI({("GET", "/events/1/participants/"): (200, {"results": []})})
        with pytest.raises(ContractError):
            asyncio.run(api.client().list_participants("1"))

    def test_delete_returns_none(self):
        api = FakeAPI({("DELETE", "/events/1/judges/8/"): (204, None)})
        assert asyncio.run(api.client().delete_judge("1", "8")) is None
        assert api.requests[0].method == "DELETE"


class TestEndpoints:
    def test_judge_login_upper_cases_code(self):
        api = FakeAPI({("POST", "/events/judges/login/"): (200, {"access_token": "a"})}, token=None)
        asyncio.run(api.client().judge_login(" ab12cd "))
        assert api.sent_json() == {"access_code": "AB12CD"}
        assert "authorization" not in api.requests[0].headers

    def test_submit_votes(self):
        api = FakeAPI({("POST", "/events/1/categories/10/vote/"): (201, {"votes": []})})
        payload = {"votes": [{"participantId": "1", "score": 81.0}]}
        asyncio.run(api.client().submit_votes("1", "10", payload))
        assert api.sent_json() == payload

    def test_judge_dashboard(self):
        api = FakeAPI()
        dashboard = asyncio.run(api.client().judge_dashboard())
        assert len(dashboard["participants"]) == 3
        assert dashboard["votes"] == []

    def test_register_coordinator(self):
        api = FakeAPI({("POST", "/coordinators/register/"): (201, {"id": 9})}, token=None)
        asyncio.run(api.client().register_coordinator("Coco", "coco@example.com", "pw"))
        assert api.sent_json() == {
            "email": "coco@example.com", "name": "Coco",
            "department": "Event Management", "password": "pw",
        }
        assert "authorization" not in api.requests[0].headers

    def test_event_update_and_delete_paths(self):
        api = FakeAPI({
            ("PUT", "/events/1/update/"): (200, {"id": 1, "title": "Gala", "status": "closed"}),
            ("DELETE", "/events/1/delete/"): (204, None),
        })
        client = api.client()
        event = asyncio.run(client.update_event("1", {"status": "closed"}))
        assert event.status == "closed"
        asyncio.run(client.delete_event("1"))
        assert [r.url.path for r in api.requests] == ["/api/events/1/update/", "/api/events/1/delete/"]

    def test_dashboard_must_be_an_object(self):
        api = FakeAPI({("GET", "/events/judges/dashboard/"): (200, [])})
        with pytest.raises(ContractError):
            asyncio.run(api.client().judge_dashboard())

    def test_invalid_record_is_contract_error(self):
        bad = {"id": 10, "name": "Talent", "weight": 0}
        api = FakeAPI({("GET", "/events/1/categories/10/"): (200, bad)})
        with pytest.raises(ContractError, match="weight"):
            asyncio.run(api.client().get_category("1", "10"))

    def test_create_participant(self):
        created = {"id": 4, "name": "Dana", "contestant_number": 4}
        api = FakeAPI({("POST", "/events/1/participants/"): (201, created)})
        participant = asyncio.run(api.client().create_participant("1", {"name": "Dana"}))
        assert participant.id == "4"


class TestErrorMessage:
    def test_prefers_error_key(self):
        response = httpx.Response(400, json={"error": "Nope", "detail": "Other"})
        assert error_message(response) == "Nope"

    def test_non_json(self):
        response = httpx.Response(502, text="<html>Bad gateway</html>")
        assert error_message(response, "fallback") == "fallback"

    def test_field_errors(self):
        response = httpx.Response(400, json={"email": ["coordinator with this email already exists."]})
        assert error_message(response) == "coordinator with this email already exists."
