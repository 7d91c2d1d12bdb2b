"""
Folio Backend — Content Lifecycle Tests
=========================================

What:  DRAFT → PUBLISHED transitions and the publish_date invariant.
"""

from datetime import datetime, timedelta, timezone

import pytest

from folio.exceptions import ValidationError
from folio.models.reflection import ReflectionStatus
from folio.services import lifecycle

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
EARLIER = NOW - timedelta(days=3)


class TestInitialState:
    def test_defaults_to_draft_without_date(self):
        assert lifecycle.initial_state() == (ReflectionStatus.DRAFT, None)

    def test_draft_keeps_planned_date(self):
        status, publish_date = lifecycle.initial_state(ReflectionStatus.DRAFT, EARLIER, now=NOW)
        assert status == ReflectionStatus.DRAFT
        assert publish_date == EARLIER

    def test_published_without_date_is_stamped(self):
        status, publish_date = lifecycle.initial_state(ReflectionStatus.PUBLISHED, now=NOW)
        assert status == ReflectionStatus.PUBLISHED
        assert publish_date == NOW

    def test_published_keeps_supplied_date(self):
        _, publish_date = lifecycle.initial_state(ReflectionStatus.PUBLISHED, EARLIER, now=NOW)
        assert publish_date == EARLIER

    def test_published_default_now_is_utc(self):
        _, publish_date = lifecycle.initial_state(ReflectionStatus.PUBLISHED)
        assert publish_date is not None
        assert publish_date.tzinfo is not None


class TestPublish:
    def test_sets_status_and_date(self):
        values = lifecycle.publish_values(now=NOW)
        assert values == {"status": "PUBLISHED", "publish_date": NOW}

    def test_publishing_twice_restamps(self):
        first = lifecycle.publish_values(now=EARLIER)
        second = lifecycle.publish_values(now=NOW)
        assert first["publish_date"] != second["publish_date"]


class TestUpdateValues:
    def test_content_only_update_changes_nothing(self):
        assert lifecycle.update_values("DRAFT") == {}
        assert lifecycle.update_values("PUBLISHED") == {}

    def test_published_cannot_revert_to_draft(self):
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.update_values("PUBLISHED", requested_status=ReflectionStatus.DRAFT)
        assert exc_info.value.field == "status"

    def test_draft_to_draft_is_noop(self):
        assert lifecycle.update_values("DRAFT", requested_status=ReflectionStatus.DRAFT) == {}

    def test_draft_to_published_stamps_now(self):
        values = lifecycle.update_values("DRAFT", requested_status=ReflectionStatus.PUBLISHED, now=NOW)
        assert values == {"status": "PUBLISHED", "publish_date": NOW}

    def test_draft_to_published_prefers_requested_date(self):
        values = lifecycle.update_values(
            "DRAFT",
            requested_status=ReflectionStatus.PUBLISHED,
            requested_publish_date=EARLIER,
            now=NOW,
        )
        assert values["publish_date"] == EARLIER

    def test_draft_to_published_keeps_planned_date(self):
        values = lifecycle.update_values(
            "DRAFT",
            requested_status=ReflectionStatus.PUBLISHED,
            current_publish_date=EARLIER,
            now=NOW,
        )
        assert values["publish_date"] == EARLIER

    def test_published_to_published_keeps_date(self):
        assert lifecycle.update_values("PUBLISHED", requested_status=ReflectionStatus.PUBLISHED) == {}

    def test_explicit_date_written(self):
        values = lifecycle.update_values("PUBLISHED", requested_publish_date=EARLIER)
        assert values == {"publish_date": EARLIER}
