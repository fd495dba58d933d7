"""
Tests for the domain services: venues, hazards, RAWs and notifications.
"""

import pytest

from safeops.core.exceptions import (
    ConfigurationError,
    ConstraintError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from safeops.models.enums import Likelihood, Role, Severity
from safeops.schemas.raw import RAWUpdate
from safeops.services import HazardService


def _hazard(venue_id, category, severity, likelihood, **extra):
    return {"venue_id": venue_id, "hazard_category": category, "severity": severity, "likelihood": likelihood, **extra}


class TestVenueService:
    async def test_create_defaults(self, container, officer) -> None:
        venue = await container.venues.create({"name": "Depot", "created_by": officer["id"]})
        assert venue["status"] == "safe"
        assert venue["critical_issues_count"] == 0
        assert venue["address"] is None

    async def test_name_is_required(self, container) -> None:
        with pytest.raises(ValidationError):
            await container.venues.create({"address": "nowhere"})

    async def test_get_all_most_recently_updated_first(self, container) -> None:
        a = await container.venues.create({"name": "A"})
        b = await container.venues.create({"name": "B"})
        assert [v["id"] for v in await container.venues.get_all()] == [b["id"], a["id"]]

        await container.venues.update(a["id"], {"address": "moved"})
        assert [v["id"] for v in await container.venues.get_all()] == [a["id"], b["id"]]

    async def test_search(self, container) -> None:
        await container.venues.create({"name": "Harbour Hall", "postal_code": "4000"})
        await container.venues.create({"name": "Civic Centre", "address": "2 harbour Road"})
        await container.venues.create({"name": "Depot"})

        assert {v["name"] for v in await container.venues.search("HARBOUR")} == {"Harbour Hall", "Civic Centre"}
        assert [v["name"] for v in await container.venues.search("4000")] == ["Harbour Hall"]
        assert len(await container.venues.search("   ")) == 3

    async def test_get_by_id_missing(self, container) -> None:
        assert await container.venues.get_by_id(404) is None

    async def test_update_missing(self, container) -> None:
        with pytest.raises(NotFoundError):
            await container.venues.update(404, {"name": "x"})

    async def test_update_rejects_unknown_fields(self, container, venue) -> None:
        with pytest.raises(ValidationError):
            await container.venues.update(venue["id"], {"critical_issues_count": 9})


class TestVenueHazards:
    async def test_hazards_sorted_by_rpn(self, container, venue) -> None:
        low = await container.venues.add_hazard(_hazard(venue["id"], "Trip", Severity.LOW, Likelihood.MEDIUM))
        high = await container.venues.add_hazard(_hazard(venue["id"], "Fire", Severity.HIGH, Likelihood.HIGH))
        assert low["rpn"] == 2
        assert high["rpn"] == 9
        assert [h["id"] for h in await container.venues.get_hazards(venue["id"])] == [high["id"], low["id"]]

    async def test_hazard_without_category(self, container, venue) -> None:
        hazard = await container.venues.add_hazard({"venue_id": venue["id"], "severity": "high", "likelihood": "medium"})
        assert hazard["hazard_category"] is None
        assert hazard["rpn"] == 6
        assert [h["id"] for h in await container.venues.get_hazards(venue["id"])] == [hazard["id"]]

    async def test_open_hazard_raises_venue_to_warning(self, container, venue) -> None:
        await container.venues.add_hazard(_hazard(venue["id"], "Trip", "medium", "low"))
        refreshed = await container.venues.get_by_id(venue["id"])
        assert refreshed["status"] == "warning"
        assert refreshed["critical_issues_count"] == 0

    async def test_critical_hazards_counted_until_resolved(self, container, venue) -> None:
        hazard = await container.venues.add_hazard(_hazard(venue["id"], "Gas", "critical", "low"))
        await container.venues.add_hazard(_hazard(venue["id"], "Gas 2", "critical", "medium", status="pending"))
        refreshed = await container.venues.get_by_id(venue["id"])
        assert refreshed["status"] == "critical"
        assert refreshed["critical_issues_count"] == 2

        await container.hazards.set_venue_hazard_status(hazard["id"], "resolved")
        refreshed = await container.venues.get_by_id(venue["id"])
        assert refreshed["critical_issues_count"] == 1

    async def test_resolving_everything_makes_venue_safe(self, container, venue) -> None:
        hazard = await container.venues.add_hazard(_hazard(venue["id"], "Trip", "low", "low"))
        await container.hazards.set_venue_hazard_status(hazard["id"], "resolved")
        assert (await container.venues.get_by_id(venue["id"]))["status"] == "safe"

    async def test_restricted_venue_stays_restricted(self, container, venue) -> None:
        await container.venues.update(venue["id"], {"status": "restricted"})
        await container.venues.add_hazard(_hazard(venue["id"], "Gas", "critical", "high"))
        refreshed = await container.venues.get_by_id(venue["id"])
        assert refreshed["status"] == "restricted"
        assert refreshed["critical_issues_count"] == 1

        lifted = await container.venues.update(venue["id"], {"status": "safe"})
        assert lifted["status"] == "critical"

    async def test_rpn_recomputed_on_edit(self, container, venue) -> None:
        hazard = await container.venues.add_hazard(_hazard(venue["id"], "Trip", "low", "low"))
        edited = await container.hazards.update_venue_hazard(hazard["id"], {"likelihood": "very_high"})
        assert edited["rpn"] == 4
        assert edited["severity"] == "low"

    async def test_missing_scale(self, gateway, venue) -> None:
        hazards = HazardService(gateway, None)
        with pytest.raises(ConfigurationError):
            await hazards.create_venue_hazard(_hazard(venue["id"], "Trip", "low", "low"))
        assert await hazards.list_venue_hazards(venue["id"]) == []

    async def test_edit_missing_hazard(self, container) -> None:
        with pytest.raises(NotFoundError):
            await container.hazards.update_venue_hazard(404, {"severity": "high"})


class TestRAWService:
    async def test_create_defaults_to_draft_medium(self, container, officer, venue) -> None:
        raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"]})
        assert raw["status"] == "draft"
        assert raw["risk_level"] == "medium"
        assert raw["submitted_at"] is None
        assert raw["event_title"] is None

    async def test_create_only_as_draft(self, container, officer, venue) -> None:
        with pytest.raises(ValidationError):
            await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"], "status": "approved"})

    async def test_create_for_unknown_venue(self, container, officer) -> None:
        with pytest.raises(ConstraintError):
            await container.raws.create({"user_id": officer["id"], "venue_id": 404})

    async def test_get_all_flattens_venue_name(self, container, officer, approver, venue) -> None:
        mine = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"], "event_title": "Gala"})
        await container.raws.create({"user_id": approver["id"], "venue_id": venue["id"]})

        everything = await container.raws.get_all()
        assert len(everything) == 2
        only_mine = await container.raws.get_all(officer["id"])
        assert [r["id"] for r in only_mine] == [mine["id"]]
        assert only_mine[0]["venue_name"] == "Harbour Hall"
        assert "venues" not in only_mine[0]

    async def test_get_by_id_with_hazards(self, container, officer, venue) -> None:
        raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"]})
        await container.raws.add_hazard({"raw_id": raw["id"], "hazard_description": "Slip",
                                         "severity": "low", "likelihood": "medium"})
        await container.raws.add_hazard({"raw_id": raw["id"], "hazard_description": "Crush",
                                         "severity": "critical", "likelihood": "high",
                                         "control_measures": "Marshals"})

        full = await container.raws.get_by_id(raw["id"])
        assert full["venue_name"] == "Harbour Hall"
        assert [h["hazard_description"] for h in full["hazards"]] == ["Crush", "Slip"]
        assert full["hazards"][0]["rpn"] == 12
        assert await container.raws.get_by_id(404) is None

    async def test_update_leaves_other_fields(self, container, officer, venue) -> None:
        raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"], "event_title": "Gala"})
        updated = await container.raws.update(raw["id"], RAWUpdate(risk_level="high"))
        assert updated["risk_level"] == "high"
        assert updated["event_title"] == "Gala"
        assert updated["status"] == "draft"

    async def test_update_cannot_touch_lifecycle(self, container, officer, venue) -> None:
        raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"]})
        with pytest.raises(ValidationError):
            await container.raws.update(raw["id"], {"status": "approved"})

    async def test_delete(self, container, officer, venue) -> None:
        raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"]})
        await container.raws.delete(raw["id"])
        assert await container.raws.get_by_id(raw["id"]) is None
        # deleting again is silent
        await container.raws.delete(raw["id"])

    async def test_delete_with_hazards_is_refused(self, container, officer, venue) -> None:
        raw = await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"]})
        await container.raws.add_hazard({"raw_id": raw["id"], "hazard_description": "Slip",
                                         "severity": "low", "likelihood": "low"})
        with pytest.raises(ConstraintError):
            await container.raws.delete(raw["id"])
        assert await container.raws.get_by_id(raw["id"]) is not None


class TestRAWLifecycle:
    async def _draft(self, container, officer, venue):
        return await container.raws.create({"user_id": officer["id"], "venue_id": venue["id"], "event_title": "Gala"})

    async def test_submit(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        submitted = await container.raws.submit(raw["id"], officer["id"])
        assert submitted["status"] == "submitted"
        assert submitted["submitted_at"] is not None

        mine = await container.notifications.list_for_user(officer["id"])
        assert [(n["type"], n["related_id"]) for n in mine] == [("raw_submitted", raw["id"])]
        assert mine[0]["is_read"] is False
        queued = await container.notifications.list_for_user(approver["id"])
        assert [n["type"] for n in queued] == ["raw_submitted"]

    async def test_resubmission_keeps_first_timestamp(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        first = await container.raws.submit(raw["id"], officer["id"])
        await container.raws.request_changes(raw["id"], approver["id"], "Add exits")
        again = await container.raws.submit(raw["id"], officer["id"])
        assert again["status"] == "submitted"
        assert again["submitted_at"] == first["submitted_at"]

    async def test_approve(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        await container.raws.submit(raw["id"], officer["id"])
        approved = await container.raws.approve(raw["id"], approver["id"])
        assert approved["status"] == "approved"
        assert approved["approver_id"] == approver["id"]
        assert approved["approved_at"] is not None
        types = [n["type"] for n in await container.notifications.list_for_user(officer["id"])]
        assert types == ["raw_approved", "raw_submitted"]

    async def test_reject(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        await container.raws.submit(raw["id"], officer["id"])
        rejected = await container.raws.reject(raw["id"], approver["id"], "Too risky")
        assert rejected["status"] == "rejected"
        assert rejected["approver_id"] == approver["id"]
        assert rejected["approver_comments"] == "Too risky"
        latest = (await container.notifications.list_for_user(officer["id"]))[0]
        assert latest["type"] == "raw_rejected"
        assert latest["message"] == "Too risky"

    async def test_review_needs_comments(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        await container.raws.submit(raw["id"], officer["id"])
        with pytest.raises(ValidationError):
            await container.raws.reject(raw["id"], approver["id"], "  ")
        assert (await container.raws.get_by_id(raw["id"]))["status"] == "submitted"

    async def test_cannot_approve_a_draft(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        with pytest.raises(InvalidTransitionError) as info:
            await container.raws.approve(raw["id"], approver["id"])
        assert info.value.current == "draft"
        assert info.value.target == "approved"

    async def test_cannot_submit_twice(self, container, officer, venue) -> None:
        raw = await self._draft(container, officer, venue)
        await container.raws.submit(raw["id"], officer["id"])
        with pytest.raises(InvalidTransitionError):
            await container.raws.submit(raw["id"], officer["id"])

    async def test_cannot_review_twice(self, container, officer, approver, venue) -> None:
        raw = await self._draft(container, officer, venue)
        await container.raws.submit(raw["id"], officer["id"])
        await container.raws.approve(raw["id"], approver["id"])
        with pytest.raises(InvalidTransitionError):
            await container.raws.reject(raw["id"], approver["id"], "changed my mind")

    async def test_transition_on_missing_raw(self, container, officer) -> None:
        with pytest.raises(NotFoundError):
            await container.raws.submit(404, officer["id"])


class TestNotificationService:
    async def test_notify_role_skips_excluded(self, container, officer, approver) -> None:
        second = await container.auth.sign_up("second@example.com", "password123", "Jo Second", Role.APPROVER)
        rows = await container.notifications.notify_role(Role.APPROVER, "t", "m", "raw_submitted", 1,
                                                         exclude=[second["id"]])
        assert [r["user_id"] for r in rows] == [approver["id"]]

    async def test_notify_role_without_users(self, container) -> None:
        assert await container.notifications.notify_role(Role.ADMIN, "t", "m", "raw_submitted") == []

    async def test_mark_read(self, container, officer, approver) -> None:
        note = await container.notifications.notify(officer["id"], "t", "m", "raw_approved", 3)
        with pytest.raises(NotFoundError):
            await container.notifications.mark_read(note["id"], user_id=approver["id"])
        read = await container.notifications.mark_read(note["id"], user_id=officer["id"])
        assert read["is_read"] is True
        assert await container.notifications.list_for_user(officer["id"], unread_only=True) == []
