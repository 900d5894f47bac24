"""TIR Project Registry tests."""

import uuid
from datetime import datetime, timezone

import pytest

from core.bootstrap import build_registries
from core.config import RegistryConfig
from core.identity import Principal
from core.time import FixedClock

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
LANDLORD = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"
TENANT = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
OUTSIDER = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def kw(caller=TENANT):
    return dict(
        caller=caller,
        command_id=uuid.uuid4(),
        correlation_id=uuid.uuid4(),
        issued_at=NOW,
    )


@pytest.fixture
def regs():
    return build_registries(RegistryConfig.for_administrator(ADMIN), clock=FixedClock(NOW))


@pytest.fixture
def project(regs):
    result = regs.projects.create_project(
        "proj1", "prop1", LANDLORD, "Open-plan office fit-out", 1000, 2000, TENANT
    )
    assert result.is_accepted
    return regs


@pytest.fixture
def approved_modification(project):
    project.projects.add_modification("proj1", "mod1", "Move partition wall", TENANT)
    project.projects.approve_modification("proj1", "mod1", LANDLORD)
    return project


class TestProjectCommands:
    def test_create_request_to_command(self):
        from engines.project.commands import ProjectCreateRequest

        cmd = ProjectCreateRequest(
            "proj1", "prop1", LANDLORD, "Fit-out", 1000, 2000
        ).to_command(**kw())
        assert cmd.command_type == "project.scope.create.request"
        assert cmd.payload["landlord"] == LANDLORD
        assert cmd.actor_id == TENANT

    @pytest.mark.parametrize("start,end", [(-1, 10), (1, "2"), (True, 10)])
    def test_dates_must_be_non_negative_integers(self, start, end):
        from engines.project.commands import ProjectCreateRequest

        with pytest.raises(ValueError, match="_date"):
            ProjectCreateRequest("proj1", "prop1", LANDLORD, "Fit-out", start, end)

    def test_landlord_coerced_to_principal(self):
        from engines.project.commands import ProjectCreateRequest

        request = ProjectCreateRequest("proj1", "prop1", LANDLORD, "Fit-out", 1, 2)
        assert request.landlord == Principal(LANDLORD)


class TestProjectPolicies:
    @pytest.mark.parametrize("caller,allowed", [(TENANT, True), (LANDLORD, True), (OUTSIDER, False)])
    def test_party_policy_compares_principals(self, regs, project, caller, allowed):
        from engines.project.commands import ModificationCompleteRequest
        from engines.project.policies import caller_must_be_party_policy

        cmd = ModificationCompleteRequest("proj1", "mod1").to_command(**kw(caller))
        rejection = caller_must_be_party_policy(cmd, project_lookup=regs.projects.projection_store.get_project)
        assert (rejection is None) is allowed

    def test_landlord_policy_ignores_unknown_project(self, regs):
        from engines.project.commands import ProjectApproveRequest
        from engines.project.policies import caller_must_be_landlord_policy

        cmd = ProjectApproveRequest("nope").to_command(**kw(OUTSIDER))
        assert caller_must_be_landlord_policy(cmd, project_lookup=regs.projects.projection_store.get_project) is None


class TestProjectRegistry:
    def test_create_records_pending_project(self, project):
        record = project.projects.get_project("proj1").value
        assert record.tenant == Principal(TENANT)
        assert record.landlord == Principal(LANDLORD)
        assert record.property_id == "prop1"
        assert record.status.value == "pending"
        assert record.approved is False
        assert (record.start_date, record.end_date) == (1000, 2000)

    def test_create_twice_rejected(self, project):
        result = project.projects.create_project("proj1", "prop2", LANDLORD, "Again", 1, 2, TENANT)
        assert result.as_legacy() == {"err": 201}
        assert project.projects.get_project("proj1").value.property_id == "prop1"

    def test_approve_by_landlord(self, project):
        assert project.projects.approve_project("proj1", LANDLORD).is_accepted
        record = project.projects.get_project("proj1").value
        assert record.approved is True
        assert record.status.value == "approved"

    def test_approve_by_tenant_rejected(self, project):
        assert project.projects.approve_project("proj1", TENANT).as_legacy() == {"err": 203}
        assert project.projects.get_project("proj1").value.approved is False

    def test_approve_missing_project(self, regs):
        assert regs.projects.approve_project("nope", LANDLORD).as_legacy() == {"err": 202}

    def test_add_modification_by_tenant(self, project):
        assert project.projects.add_modification("proj1", "mod1", "Move wall", TENANT).is_accepted
        modification = project.projects.get_modification("proj1", "mod1").value
        assert modification.description == "Move wall"
        assert modification.approved is False
        assert modification.completed is False

    def test_add_modification_before_project_approval(self, project):
        assert project.projects.get_project("proj1").value.approved is False
        assert project.projects.add_modification("proj1", "mod1", "Move wall", TENANT).is_accepted

    def test_add_modification_by_landlord_rejected(self, project):
        assert project.projects.add_modification("proj1", "mod1", "Move wall", LANDLORD).as_legacy() == {"err": 204}

    def test_add_modification_twice_rejected(self, project):
        project.projects.add_modification("proj1", "mod1", "Move wall", TENANT)
        assert project.projects.add_modification("proj1", "mod1", "Other", TENANT).as_legacy() == {"err": 205}

    def test_add_modification_missing_project(self, regs):
        assert regs.projects.add_modification("nope", "mod1", "Move wall", TENANT).as_legacy() == {"err": 202}

    def test_approve_modification_by_landlord(self, approved_modification):
        assert approved_modification.projects.get_modification("proj1", "mod1").value.approved is True

    def test_approve_modification_by_tenant_rejected(self, project):
        project.projects.add_modification("proj1", "mod1", "Move wall", TENANT)
        assert project.projects.approve_modification("proj1", "mod1", TENANT).as_legacy() == {"err": 203}

    def test_approve_missing_modification(self, project):
        assert project.projects.approve_modification("proj1", "nope", LANDLORD).as_legacy() == {"err": 206}

    @pytest.mark.parametrize("caller", [TENANT, LANDLORD])
    def test_complete_modification_by_either_party(self, approved_modification, caller):
        result = approved_modification.projects.complete_modification("proj1", "mod1", caller)
        assert result.is_accepted
        assert approved_modification.projects.get_modification("proj1", "mod1").value.completed is True

    def test_complete_modification_by_outsider_rejected(self, approved_modification):
        result = approved_modification.projects.complete_modification("proj1", "mod1", OUTSIDER)
        assert result.as_legacy() == {"err": 207}

    def test_complete_unapproved_modification_rejected(self, project):
        project.projects.add_modification("proj1", "mod1", "Move wall", TENANT)
        assert project.projects.complete_modification("proj1", "mod1", TENANT).as_legacy() == {"err": 208}

    def test_complete_twice_rejected(self, approved_modification):
        approved_modification.projects.complete_modification("proj1", "mod1", TENANT)
        result = approved_modification.projects.complete_modification("proj1", "mod1", LANDLORD)
        assert result.as_legacy() == {"err": 209}
        assert result.reason.code == "MODIFICATION_ALREADY_COMPLETED"

    def test_complete_missing_modification(self, project):
        assert project.projects.complete_modification("proj1", "nope", TENANT).as_legacy() == {"err": 206}

    @pytest.mark.parametrize("caller", [TENANT, OUTSIDER, ADMIN])
    def test_approved_project_still_landlord_only(self, project, caller):
        project.projects.approve_project("proj1", LANDLORD)
        assert project.projects.approve_project("proj1", caller).as_legacy() == {"err": 203}

    @pytest.mark.parametrize("caller", [TENANT, OUTSIDER])
    def test_approved_modification_still_landlord_only(self, approved_modification, caller):
        result = approved_modification.projects.approve_modification("proj1", "mod1", caller)
        assert result.as_legacy() == {"err": 203}

    @pytest.mark.parametrize("caller", [OUTSIDER, ADMIN])
    def test_completed_modification_still_party_only(self, approved_modification, caller):
        approved_modification.projects.complete_modification("proj1", "mod1", TENANT)
        result = approved_modification.projects.complete_modification("proj1", "mod1", caller)
        assert result.as_legacy() == {"err": 207}

    def test_unknown_reads_not_found(self, regs):
        assert regs.projects.get_project("nope").reason.legacy_code == 202
        assert regs.projects.get_modification("nope", "mod1").reason.legacy_code == 206


class TestProjectLedger:
    def test_unauthorized_approval_leaves_history_only(self, project):
        height = project.ledger.height
        project.projects.approve_project("proj1", TENANT)

        assert project.ledger.height == height + 1
        entry = project.ledger.entries()[-1]
        assert entry["event_type"] == "project.scope.approve.rejected"
        assert entry["payload"]["rejection"]["code"] == "NOT_LANDLORD"

    def test_rebuild_matches_live_state(self, approved_modification):
        regs = approved_modification
        regs.projects.approve_project("proj1", LANDLORD)
        regs.projects.complete_modification("proj1", "mod1", TENANT)
        regs.projects.add_modification("proj1", "mod2", "New lighting", TENANT)
        live = regs.projects.projection_store.snapshot()

        regs.projects.rebuild(regs.ledger)
        assert regs.projects.projection_store.snapshot() == live
