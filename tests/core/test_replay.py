"""
Tests for core.replay — projection rebuild from the ledger.
"""

import uuid

import pytest

from core.ledger import EventTypeRegistry, InMemoryLedger
from core.replay import (
    ProjectionProtocol,
    ReplayApplyError,
    ReplayChainBrokenError,
    rebuild_projection,
)

CREATED = "allowance.fund.created.v1"
REJECTED = "allowance.fund.create.rejected"


class CountingProjection:
    projection_name = "counting"
    event_types = (CREATED,)

    def __init__(self):
        self.totals = {}
        self.truncated = 0

    def truncate(self):
        self.truncated += 1
        self.totals.clear()

    def apply(self, event_type, payload):
        self.totals[payload["project_id"]] = payload["total_amount"]


def append(ledger, event_type, **payload):
    result = ledger.persist_event(event_data={
        "event_id": uuid.uuid4(),
        "event_type": event_type,
        "payload": payload,
    })
    assert result.accepted
    return result


@pytest.fixture
def ledger():
    registry = EventTypeRegistry()
    registry.register(CREATED)
    registry.register(REJECTED)
    return InMemoryLedger(registry=registry)


class TestRebuild:
    def test_projection_satisfies_protocol(self):
        assert isinstance(CountingProjection(), ProjectionProtocol)

    def test_rebuild_replays_in_order(self, ledger):
        append(ledger, CREATED, project_id="proj1", total_amount=100)
        append(ledger, CREATED, project_id="proj2", total_amount=200)

        projection = CountingProjection()
        result = rebuild_projection(projection, ledger)

        assert result.events_applied == 2
        assert result.chain_verified
        assert result.projection_name == "counting"
        assert projection.totals == {"proj1": 100, "proj2": 200}

    def test_rejection_events_are_skipped(self, ledger):
        append(ledger, CREATED, project_id="proj1", total_amount=100)
        append(ledger, REJECTED, project_id="proj1", total_amount=5)

        projection = CountingProjection()
        assert rebuild_projection(projection, ledger).events_applied == 1
        assert projection.totals == {"proj1": 100}

    def test_rebuild_discards_previous_state(self, ledger):
        append(ledger, CREATED, project_id="proj1", total_amount=100)
        projection = CountingProjection()
        projection.totals["stale"] = 1

        rebuild_projection(projection, ledger)
        assert "stale" not in projection.totals
        assert projection.truncated == 1

    def test_rebuild_is_repeatable(self, ledger):
        append(ledger, CREATED, project_id="proj1", total_amount=100)
        projection = CountingProjection()
        rebuild_projection(projection, ledger)
        first = dict(projection.totals)
        rebuild_projection(projection, ledger)
        assert projection.totals == first


class TestRebuildFailures:
    def test_broken_chain_leaves_projection_untouched(self, ledger):
        append(ledger, CREATED, project_id="proj1", total_amount=100)
        ledger._entries[0]["payload"]["total_amount"] = 1
        projection = CountingProjection()
        projection.totals["kept"] = 7

        with pytest.raises(ReplayChainBrokenError) as exc_info:
            rebuild_projection(projection, ledger)

        assert exc_info.value.projection_name == "counting"
        assert projection.totals == {"kept": 7}
        assert projection.truncated == 0

    def test_apply_failure_is_wrapped(self, ledger):
        append(ledger, CREATED, project_id="proj1")

        with pytest.raises(ReplayApplyError) as exc_info:
            rebuild_projection(CountingProjection(), ledger)

        assert exc_info.value.height == 1
        assert exc_info.value.event_type == CREATED
