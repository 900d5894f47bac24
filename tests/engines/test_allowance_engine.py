"""TIR Allowance Ledger tests."""

import uuid
from datetime import datetime, timezone

import pytest

from core.bootstrap import build_registries
from core.commands.base import Command
from core.config import RegistryConfig
from core.identity import Principal
from core.time import FixedClock

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
LANDLORD = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"
TENANT = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def kw(caller=LANDLORD):
    return dict(
        caller=caller,
        command_id=uuid.uuid4(),
        correlation_id=uuid.uuid4(),
        issued_at=NOW,
    )


def registries(**flags):
    return build_registries(
        RegistryConfig.for_administrator(ADMIN, **flags),
        clock=FixedClock(NOW),
    )


def funded(total=10000, **flags):
    regs = registries(**flags)
    assert regs.allowances.create_allowance("proj1", TENANT, total, LANDLORD).is_accepted
    return regs


def completed_milestone(regs, milestone_id="m1", amount=2000):
    allowances = regs.allowances
    assert allowances.add_milestone("proj1", milestone_id, "Demolition", amount, LANDLORD).is_accepted
    assert allowances.complete_milestone("proj1", milestone_id, TENANT).is_accepted


def allowance(regs, project_id="proj1"):
    return regs.allowances.get_allowance(project_id).value


def raw_command(command_type, payload, actor_id=LANDLORD):
    return Command(
        command_id=uuid.uuid4(),
        command_type=command_type,
        actor_id=actor_id,
        payload=payload,
        issued_at=NOW,
        correlation_id=uuid.uuid4(),
        source_engine="allowance",
    )


class TestAllowanceCommands:
    def test_create_request_to_command(self):
        from engines.allowance.commands import AllowanceCreateRequest

        cmd = AllowanceCreateRequest("proj1", TENANT, 10000).to_command(**kw())
        assert cmd.command_type == "allowance.fund.create.request"
        assert cmd.payload == {"project_id": "proj1", "tenant": TENANT, "total_amount": 10000}

    @pytest.mark.parametrize("amount", [-1, 1.5, True, "100"])
    def test_invalid_total_rejected(self, amount):
        from engines.allowance.commands import AllowanceCreateRequest

        with pytest.raises(ValueError, match="total_amount"):
            AllowanceCreateRequest("proj1", TENANT, amount)

    def test_invalid_milestone_amount_rejected(self):
        from engines.allowance.commands import MilestoneAddRequest

        with pytest.raises(ValueError, match="amount"):
            MilestoneAddRequest("proj1", "m1", "Demolition", -5)

    def test_release_request_to_command(self):
        from engines.allowance.commands import FundsReleaseRequest

        cmd = FundsReleaseRequest("proj1", "m1").to_command(**kw())
        assert cmd.command_type == "allowance.milestone.release.request"


class TestAllowanceLifecycle:
    def test_create(self):
        regs = funded()
        record = allowance(regs)
        assert record.landlord == Principal(LANDLORD)
        assert record.tenant == Principal(TENANT)
        assert (record.total_amount, record.released_amount, record.remaining_amount) == (10000, 0, 10000)
        assert record.status.value == "active"
        assert record.is_balanced

    def test_create_twice_rejected(self):
        regs = funded()
        assert regs.allowances.create_allowance("proj1", TENANT, 5, LANDLORD).as_legacy() == {"err": 401}
        assert allowance(regs).total_amount == 10000

    def test_zero_allowance_accepted(self):
        regs = funded(total=0)
        assert allowance(regs).remaining_amount == 0

    def test_end_to_end_release(self):
        regs = funded()
        completed_milestone(regs)

        assert regs.allowances.release_funds("proj1", "m1", LANDLORD).as_legacy() == {"ok": True}
        record = allowance(regs)
        assert record.released_amount == 2000
        assert record.remaining_amount == 8000
        assert record.is_balanced
        assert regs.allowances.get_milestone("proj1", "m1").value.paid is True

    def test_close_by_landlord(self):
        regs = funded()
        assert regs.allowances.close_allowance("proj1", LANDLORD).is_accepted
        assert allowance(regs).status.value == "closed"
        assert not allowance(regs).is_active


class TestAddMilestone:
    def test_add(self):
        regs = funded()
        assert regs.allowances.add_milestone("proj1", "m1", "Demolition", 2000, LANDLORD).is_accepted
        milestone = regs.allowances.get_milestone("proj1", "m1").value
        assert milestone.amount == 2000
        assert (milestone.completed, milestone.paid) == (False, False)
        assert allowance(regs).remaining_amount == 10000

    def test_blank_description_accepted(self):
        regs = funded()
        assert regs.allowances.add_milestone("proj1", "m1", "", 10, LANDLORD).is_accepted
        assert regs.allowances.get_milestone("proj1", "m1").value.description == ""

    def test_missing_allowance(self):
        regs = registries()
        assert regs.allowances.add_milestone("proj1", "m1", "Demolition", 1, LANDLORD).as_legacy() == {"err": 402}

    def test_tenant_cannot_add(self):
        regs = funded()
        assert regs.allowances.add_milestone("proj1", "m1", "Demolition", 1, TENANT).as_legacy() == {"err": 403}

    def test_duplicate_milestone(self):
        regs = funded()
        regs.allowances.add_milestone("proj1", "m1", "Demolition", 1, LANDLORD)
        assert regs.allowances.add_milestone("proj1", "m1", "Other", 1, LANDLORD).as_legacy() == {"err": 404}

    def test_exceeds_remaining(self):
        regs = funded()
        result = regs.allowances.add_milestone("proj1", "m1", "Demolition", 10001, LANDLORD)
        assert result.as_legacy() == {"err": 405}
        assert not regs.allowances.get_milestone("proj1", "m1").is_found

    def test_exact_remaining_accepted(self):
        regs = funded()
        assert regs.allowances.add_milestone("proj1", "m1", "Everything", 10000, LANDLORD).is_accepted

    def test_overcommit_accepted_by_default(self):
        regs = funded()
        assert regs.allowances.add_milestone("proj1", "m1", "Walls", 8000, LANDLORD).is_accepted
        assert regs.allowances.add_milestone("proj1", "m2", "Floors", 8000, LANDLORD).is_accepted

    def test_overcommit_rejected_with_reserved_capacity(self):
        regs = funded(reserve_milestone_capacity=True)
        assert regs.allowances.add_milestone("proj1", "m1", "Walls", 8000, LANDLORD).is_accepted
        assert regs.allowances.add_milestone("proj1", "m2", "Floors", 8000, LANDLORD).as_legacy() == {"err": 405}
        assert regs.allowances.add_milestone("proj1", "m3", "Paint", 2000, LANDLORD).is_accepted

    def test_reserved_capacity_frees_up_after_release(self):
        regs = funded(reserve_milestone_capacity=True)
        completed_milestone(regs, "m1", 8000)
        regs.allowances.release_funds("proj1", "m1", LANDLORD)
        # 2000 remaining, nothing unpaid.
        assert regs.allowances.add_milestone("proj1", "m2", "Paint", 2000, LANDLORD).is_accepted

    def test_negative_amount_through_bus(self):
        regs = funded()
        result = regs.command_bus.handle(raw_command(
            "allowance.milestone.add.request",
            {"project_id": "proj1", "milestone_id": "m1", "description": "x", "amount": -1},
        ))
        assert result.is_rejected
        assert result.reason.code == "INVALID_AMOUNT"
        assert result.reason.kind.value == "INVALID_INPUT"
        assert result.as_legacy() == {"err": "INVALID_AMOUNT"}


class TestCompleteMilestone:
    def test_tenant_completes(self):
        regs = funded()
        completed_milestone(regs)
        assert regs.allowances.get_milestone("proj1", "m1").value.completed is True

    def test_landlord_cannot_complete(self):
        regs = funded()
        regs.allowances.add_milestone("proj1", "m1", "Demolition", 2000, LANDLORD)
        assert regs.allowances.complete_milestone("proj1", "m1", LANDLORD).as_legacy() == {"err": 407}

    def test_missing_milestone(self):
        regs = funded()
        assert regs.allowances.complete_milestone("proj1", "m9", TENANT).as_legacy() == {"err": 406}

    def test_missing_allowance(self):
        regs = registries()
        assert regs.allowances.complete_milestone("proj1", "m1", TENANT).as_legacy() == {"err": 402}

    def test_complete_twice(self):
        regs = funded()
        completed_milestone(regs)
        result = regs.allowances.complete_milestone("proj1", "m1", TENANT)
        assert result.as_legacy() == {"err": 408}
        assert result.reason.code == "MILESTONE_ALREADY_COMPLETED"


class TestReleaseFunds:
    def test_release_before_completion(self):
        regs = funded()
        regs.allowances.add_milestone("proj1", "m1", "Demolition", 2000, LANDLORD)
        result = regs.allowances.release_funds("proj1", "m1", LANDLORD)
        assert result.as_legacy() == {"err": 409}
        assert result.reason.code == "MILESTONE_NOT_COMPLETED"
        assert allowance(regs).released_amount == 0

    def test_release_twice(self):
        regs = funded()
        completed_milestone(regs)
        regs.allowances.release_funds("proj1", "m1", LANDLORD)

        result = regs.allowances.release_funds("proj1", "m1", LANDLORD)
        assert result.as_legacy() == {"err": 410}
        assert result.reason.code == "MILESTONE_ALREADY_PAID"
        assert allowance(regs).released_amount == 2000
        assert allowance(regs).remaining_amount == 8000

    def test_tenant_cannot_release(self):
        regs = funded()
        completed_milestone(regs)
        assert regs.allowances.release_funds("proj1", "m1", TENANT).as_legacy() == {"err": 403}
        assert regs.allowances.get_milestone("proj1", "m1").value.paid is False

    def test_missing_milestone(self):
        regs = funded()
        assert regs.allowances.release_funds("proj1", "m9", LANDLORD).as_legacy() == {"err": 406}

    def test_release_amount_recorded_in_event(self):
        regs = funded()
        completed_milestone(regs, amount=1234)
        regs.allowances.release_funds("proj1", "m1", LANDLORD)

        (entry,) = regs.ledger.entries(event_types=["allowance.milestone.released.v1"])
        assert entry["payload"]["amount"] == 1234

    def test_overcommitted_release_keeps_conservation(self):
        regs = funded()
        completed_milestone(regs, "m1", 8000)
        completed_milestone(regs, "m2", 8000)
        regs.allowances.release_funds("proj1", "m1", LANDLORD)
        regs.allowances.release_funds("proj1", "m2", LANDLORD)

        record = allowance(regs)
        assert record.released_amount == 16000
        assert record.remaining_amount == -6000
        assert record.is_balanced


class TestClosure:
    def test_tenant_cannot_close(self):
        regs = funded()
        assert regs.allowances.close_allowance("proj1", TENANT).as_legacy() == {"err": 403}

    def test_close_missing(self):
        regs = registries()
        assert regs.allowances.close_allowance("proj1", LANDLORD).as_legacy() == {"err": 402}

    def test_closure_is_advisory_by_default(self):
        regs = funded()
        regs.allowances.close_allowance("proj1", LANDLORD)
        assert regs.allowances.add_milestone("proj1", "m1", "Demolition", 2000, LANDLORD).is_accepted
        assert regs.allowances.complete_milestone("proj1", "m1", TENANT).is_accepted

    def test_closure_enforced_when_configured(self):
        regs = funded(enforce_allowance_closure=True)
        regs.allowances.add_milestone("proj1", "m1", "Demolition", 2000, LANDLORD)
        regs.allowances.close_allowance("proj1", LANDLORD)

        assert regs.allowances.add_milestone("proj1", "m2", "Paint", 1, LANDLORD).as_legacy() == {"err": 411}
        assert regs.allowances.complete_milestone("proj1", "m1", TENANT).as_legacy() == {"err": 411}

    def test_release_after_closure_allowed(self):
        regs = funded(enforce_allowance_closure=True)
        completed_milestone(regs)
        regs.allowances.close_allowance("proj1", LANDLORD)
        assert regs.allowances.release_funds("proj1", "m1", LANDLORD).is_accepted



def paid_milestone(regs):
    completed_milestone(regs)
    assert regs.allowances.release_funds("proj1", "m1", LANDLORD).is_accepted


def closed_allowance(regs):
    paid_milestone(regs)
    assert regs.allowances.close_allowance("proj1", LANDLORD).is_accepted


class TestRolesOnFinishedEntities:
    @pytest.mark.parametrize("setup", [completed_milestone, paid_milestone, closed_allowance])
    @pytest.mark.parametrize("caller", [TENANT, ADMIN])
    def test_only_landlord_releases(self, setup, caller):
        regs = funded()
        setup(regs)
        assert regs.allowances.release_funds("proj1", "m1", caller).as_legacy() == {"err": 403}

    @pytest.mark.parametrize("setup", [completed_milestone, paid_milestone, closed_allowance])
    @pytest.mark.parametrize("caller", [LANDLORD, ADMIN])
    def test_only_tenant_completes(self, setup, caller):
        regs = funded()
        setup(regs)
        assert regs.allowances.complete_milestone("proj1", "m1", caller).as_legacy() == {"err": 407}

    @pytest.mark.parametrize("setup", [paid_milestone, closed_allowance])
    @pytest.mark.parametrize("caller", [TENANT, ADMIN])
    def test_only_landlord_closes(self, setup, caller):
        regs = funded()
        setup(regs)
        height = regs.ledger.height

        assert regs.allowances.close_allowance("proj1", caller).as_legacy() == {"err": 403}
        assert regs.ledger.height == height + 1
        assert allowance(regs).released_amount == 2000


class TestAllowanceReads:
    def test_unknown_reads_not_found(self):
        regs = registries()
        assert regs.allowances.get_allowance("nope").reason.legacy_code == 402
        assert regs.allowances.get_milestone("nope", "m1").reason.legacy_code == 406

    def test_unpaid_total(self):
        regs = funded()
        completed_milestone(regs, "m1", 1000)
        regs.allowances.add_milestone("proj1", "m2", "Paint", 500, LANDLORD)
        regs.allowances.release_funds("proj1", "m1", LANDLORD)

        store = regs.allowances.projection_store
        assert store.unpaid_milestone_total("proj1") == 500
        assert [m.milestone_id for m in store.milestones_for("proj1")] == ["m1", "m2"]

    def test_lock_key_is_project(self):
        from engines.allowance.commands import FundsReleaseRequest

        regs = registries()
        cmd = FundsReleaseRequest("proj1", "m1").to_command(**kw())
        assert regs.allowances.lock_key(cmd) == ("allowance", "proj1")

    def test_rebuild_matches_live_state(self):
        regs = funded()
        completed_milestone(regs, "m1", 3000)
        regs.allowances.add_milestone("proj1", "m2", "Paint", 500, LANDLORD)
        regs.allowances.release_funds("proj1", "m1", LANDLORD)
        regs.allowances.close_allowance("proj1", LANDLORD)
        live = regs.allowances.projection_store.snapshot()

        regs.allowances.rebuild(regs.ledger)
        assert regs.allowances.projection_store.snapshot() == live
