"""Tests for coordinator management of events, participants, judges and awards."""

import asyncio
import json

import pytest
from tests.fake_api import FakeAPI

from judging import manage
from judging.errors import NotFoundError, ValidationError


def echo(new_id=99):
    """A route answering with the sent body plus an id."""
    return lambda request: (200, {"id": new_id, **json.loads(request.content)})


def saved_category(new_id=99):
    """Like echo, but numbering new criteria the way the backend does."""
    def route(request):
        body = json.loads(request.content)
        body["criteria"] = [{"id": i, **c} for i, c in enumerate(body["criteria"], start=1)]
        return 200, {"id": new_id, **body}
    return route


class TestEvents:
    def test_edit_keeps_unchanged_fields(self):
        api = FakeAPI({("PUT", "/events/1/update/"): echo(1)})
        event = asyncio.run(manage.edit_event(api.client(), "1", {"status": "Closed", "title": None}))
        assert event.status == "closed"
        sent = api.sent_json()
        assert sent["title"] == "Gala Night"
        assert sent["location"] == "Manila"
        assert api.requests[-1].url.path == "/api/events/1/update/"

    def test_add_needs_a_date(self):
        api = FakeAPI()
        with pytest.raises(ValidationError, match="date"):
            asyncio.run(manage.add_event(api.client(), {"title": "Gala"}))
        assert api.requests == []


class TestParticipants:
    def test_next_free_number(self):
        api = FakeAPI({("POST", "/events/1/participants/"): echo()})
        participant = asyncio.run(manage.add_participant(
            api.client(), "1", {"name": " Dana ", "gender": "Female"},
        ))
        assert participant.contestant_number == 4
        assert api.sent_json() == {
            "name": "Dana", "contestant_number": 4, "email": "",
            "gender": "female", "origin": "", "entry": "",
        }

    def test_taken_number_sends_nothing(self):
        api = FakeAPI()
        with pytest.raises(ValidationError, match="already assigned"):
            asyncio.run(manage.add_participant(
                api.client(), "1", {"name": "Dana", "contestant_number": "2"},
            ))
        assert [r.method for r in api.requests] == ["GET"]

    def test_edit_keeps_own_number(self):
        api = FakeAPI({("PUT", "/events/1/participants/2/"): echo(2)})
        participant = asyncio.run(manage.edit_participant(
            api.client(), "1", "2", {"origin": "Cebu", "contestant_number": None},
        ))
        assert participant.origin == "Cebu"
        sent = api.sent_json()
        assert sent["contestant_number"] == 2
        assert sent["name"] == "Ben"

    def test_edit_unknown(self):
        with pytest.raises(NotFoundError):
            asyncio.run(manage.edit_participant(FakeAPI().client(), "1", "42", {}))


class TestJudges:
    def test_duplicate_email(self):
        api = FakeAPI()
        with pytest.raises(ValidationError, match="already exists"):
            asyncio.run(manage.add_judge(
                api.client(), "1", {"name": "Judy Two", "email": "JUDY@example.com"},
            ))
        assert [r.method for r in api.requests] == ["GET"]

    def test_edit_may_keep_own_email(self):
        api = FakeAPI({("PUT", "/events/1/judges/7/"): echo(7)})
        judge = asyncio.run(manage.edit_judge(api.client(), "1", "7", {"specialization": "Talent"}))
        assert judge.specialization == "Talent"
        assert api.sent_json()["email"] == "judy@example.com"


CATEGORY_FORM = {
    "name": "Best in Swimsuit",
    "description": "Swimsuit round",
    "max_score": "100",
    "weight": "1.5",
    "gender": "Everyone",
    "award_type": "major",
}


class TestCategories:
    def test_default_criteria(self):
        api = FakeAPI({("POST", "/events/1/categories/"): saved_category()})
        category = asyncio.run(manage.add_category(api.client(), "1", CATEGORY_FORM))
        assert category.is_valid
        sent = api.sent_json()
        assert sent["weight"] == 1.5
        assert [(c["name"], c["percentage"]) for c in sent["criteria"]] == [
            ("Beauty", 40.0), ("Elegance", 35.0), ("Stage Presence", 25.0),
        ]

    def test_criteria_must_total_100(self):
        api = FakeAPI()
        with pytest.raises(ValidationError, match="exactly 100%"):
            asyncio.run(manage.add_category(
                api.client(), "1", CATEGORY_FORM, [("Poise", "60"), ("Wit", "30")],
            ))
        assert api.requests == []

    @pytest.mark.parametrize("weight", ["0", "-1"])
    def test_weight_must_be_positive(self, weight):
        api = FakeAPI()
        with pytest.raises(ValidationError, match="greater than zero"):
            asyncio.run(manage.add_category(api.client(), "1", {**CATEGORY_FORM, "weight": weight}))
        assert api.requests == []

    def test_close_sends_whole_category(self):
        api = FakeAPI({("PUT", "/events/1/categories/10/"): saved_category(10)})
        category = asyncio.run(manage.set_category_status(api.client(), "1", "10", "CLOSED"))
        assert not category.is_open
        sent = api.sent_json()
        assert sent["status"] == "closed"
        assert sent["name"] == "Best in Talent"
        assert len(sent["criteria"]) == 3

    def test_unknown_status(self):
        api = FakeAPI()
        with pytest.raises(ValidationError, match="Unknown award status"):
            asyncio.run(manage.set_category_status(api.client(), "1", "10", "paused"))
        assert api.requests == []

    def test_replace_criteria(self):
        api = FakeAPI({("PUT", "/events/1/categories/10/"): saved_category(10)})
        category = asyncio.run(manage.set_criteria(
            api.client(), "1", "10", [("Talent", "70"), ("Poise", "30")],
        ))
        assert [c.name for c in category.criteria] == ["Talent", "Poise"]
