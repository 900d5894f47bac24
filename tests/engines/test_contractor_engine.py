"""TIR Contractor Registry tests."""

import uuid
from datetime import datetime, timezone

import pytest

from core.bootstrap import build_registries
from core.config import RegistryConfig
from core.time import FixedClock

ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
LANDLORD = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"
CONTRACTOR = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
NOW = datetime(2026, 2, 21, 9, 0, 0, tzinfo=timezone.utc)


def kw(caller=CONTRACTOR):
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


def verified_and_assigned(regs, contractor_id="c", project_id="proj1"):
    regs.contractors.register(contractor_id, "ABC", ["plumbing"], "LIC1", CONTRACTOR)
    regs.contractors.verify(contractor_id, True, ADMIN)
    regs.contractors.assign(contractor_id, project_id, LANDLORD)


class TestContractorCommands:
    def test_register_request_to_command(self):
        from engines.contractor.commands import ContractorRegisterRequest

        cmd = ContractorRegisterRequest(
            "c", "ABC Construction", ["plumbing", "electrical"], "LIC123"
        ).to_command(**kw())
        assert cmd.command_type == "contractor.profile.register.request"
        assert cmd.payload["specialties"] == ["electrical", "plumbing"]

    def test_specialties_string_rejected(self):
        from engines.contractor.commands import ContractorRegisterRequest

        with pytest.raises(ValueError, match="specialties"):
            ContractorRegisterRequest("c", "ABC", "plumbing", "LIC1")

    def test_empty_specialty_rejected(self):
        from engines.contractor.commands import ContractorRegisterRequest

        with pytest.raises(ValueError, match="specialty"):
            ContractorRegisterRequest("c", "ABC", ["plumbing", ""], "LIC1")

    def test_insurance_flag_must_be_bool(self):
        from engines.contractor.commands import ContractorVerifyRequest

        with pytest.raises(ValueError, match="insurance_verified"):
            ContractorVerifyRequest("c", "yes")

    @pytest.mark.parametrize("rating", [True, 4.5, "4"])
    def test_rating_must_be_integer(self, rating):
        from engines.contractor.commands import AssignmentCompleteRequest

        with pytest.raises(ValueError, match="rating"):
            AssignmentCompleteRequest("c", "proj1", rating)


class TestSmoothedRating:
    def test_first_rating_taken_as_is(self):
        from engines.contractor.services import smoothed_rating

        assert smoothed_rating(0, 4) == 4

    def test_later_ratings_average_and_floor(self):
        from engines.contractor.services import smoothed_rating

        assert smoothed_rating(4, 3) == 3
        assert smoothed_rating(5, 2) == 3
        assert smoothed_rating(3, 5) == 4


class TestContractorRegistry:
    def test_register_creates_unverified_profile(self):
        regs = registries()
        assert regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR).is_accepted

        contractor = regs.contractors.get_contractor("c").value
        assert contractor.name == "ABC"
        assert contractor.specialties == frozenset({"plumbing"})
        assert contractor.verified is False
        assert contractor.insurance_verified is False
        assert contractor.rating == 0
        assert str(contractor.registrant) == CONTRACTOR

    def test_register_twice_rejected(self):
        regs = registries()
        regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR)
        assert regs.contractors.register("c", "XYZ", [], "LIC2", LANDLORD).as_legacy() == {"err": 301}

    def test_verify_by_administrator(self):
        regs = registries()
        regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR)
        assert regs.contractors.verify("c", True, ADMIN).is_accepted

        contractor = regs.contractors.get_contractor("c").value
        assert contractor.verified is True
        assert contractor.insurance_verified is True
        assert regs.contractors.is_contractor_verified("c").value is True

    def test_verify_records_insurance_flag(self):
        regs = registries()
        regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR)
        regs.contractors.verify("c", False, ADMIN)

        contractor = regs.contractors.get_contractor("c").value
        assert contractor.verified is True
        assert contractor.insurance_verified is False

    def test_verify_by_non_administrator_rejected(self):
        regs = registries()
        regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR)
        assert regs.contractors.verify("c", True, CONTRACTOR).as_legacy() == {"err": 303}
        assert regs.contractors.is_contractor_verified("c").value is False

    @pytest.mark.parametrize("caller", [CONTRACTOR, LANDLORD])
    def test_verified_contractor_still_admin_only(self, caller):
        regs = registries()
        verified_and_assigned(regs)
        regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD)

        assert regs.contractors.verify("c", False, caller).as_legacy() == {"err": 303}
        assert regs.contractors.get_contractor("c").value.insurance_verified is True

    def test_verify_unknown_contractor(self):
        regs = registries()
        assert regs.contractors.verify("nope", True, ADMIN).as_legacy() == {"err": 302}

    def test_assign_unverified_rejected(self):
        regs = registries()
        regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR)
        assert regs.contractors.assign("c", "proj1", LANDLORD).as_legacy() == {"err": 304}
        assert not regs.contractors.get_assignment("c", "proj1").is_found

    def test_assign_unknown_contractor(self):
        regs = registries()
        assert regs.contractors.assign("nope", "proj1", LANDLORD).as_legacy() == {"err": 302}

    def test_assign_twice_rejected(self):
        regs = registries()
        verified_and_assigned(regs)
        assert regs.contractors.assign("c", "proj1", LANDLORD).as_legacy() == {"err": 305}

    def test_same_contractor_on_two_projects(self):
        regs = registries()
        verified_and_assigned(regs)
        assert regs.contractors.assign("c", "proj2", LANDLORD).is_accepted

    def test_complete_assignment_sets_ratings(self):
        regs = registries()
        verified_and_assigned(regs)
        assert regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD).is_accepted

        assignment = regs.contractors.get_assignment("c", "proj1").value
        assert assignment.completed is True
        assert assignment.performance_rating == 4
        assert regs.contractors.get_contractor("c").value.rating == 4

    def test_second_completion_averages_rating(self):
        regs = registries()
        verified_and_assigned(regs)
        regs.contractors.assign("c", "proj2", LANDLORD)
        regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD)
        regs.contractors.complete_assignment("c", "proj2", 2, LANDLORD)

        assert regs.contractors.get_contractor("c").value.rating == 3

    def test_complete_unassigned_rejected(self):
        regs = registries()
        regs.contractors.register("c", "ABC", ["plumbing"], "LIC1", CONTRACTOR)
        assert regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD).as_legacy() == {"err": 306}

    def test_complete_twice_rejected(self):
        regs = registries()
        verified_and_assigned(regs)
        regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD)

        assert regs.contractors.complete_assignment("c", "proj1", 1, LANDLORD).as_legacy() == {"err": 308}
        assert regs.contractors.get_contractor("c").value.rating == 4

    @pytest.mark.parametrize("rating", [0, 1, 5, 6])
    def test_rejected_second_completion_keeps_rating(self, rating):
        regs = registries()
        verified_and_assigned(regs)
        regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD)

        result = regs.contractors.complete_assignment("c", "proj1", rating, LANDLORD)
        assert result.as_legacy() == {"err": 308}
        assert regs.contractors.get_contractor("c").value.rating == 4
        assert regs.contractors.get_assignment("c", "proj1").value.performance_rating == 4

    @pytest.mark.parametrize("rating", [6, -1, 100])
    def test_rating_out_of_range_rejected(self, rating):
        regs = registries()
        verified_and_assigned(regs)

        result = regs.contractors.complete_assignment("c", "proj1", rating, LANDLORD)
        assert result.as_legacy() == {"err": 309}
        assert regs.contractors.get_assignment("c", "proj1").value.completed is False

    def test_max_rating_is_configurable(self):
        regs = registries(max_rating=10)
        verified_and_assigned(regs)
        assert regs.contractors.complete_assignment("c", "proj1", 9, LANDLORD).is_accepted

    def test_zero_rating_accepted(self):
        regs = registries()
        verified_and_assigned(regs)
        assert regs.contractors.complete_assignment("c", "proj1", 0, LANDLORD).is_accepted
        assert regs.contractors.get_assignment("c", "proj1").value.performance_rating == 0

    def test_unknown_reads_not_found(self):
        regs = registries()
        assert regs.contractors.get_contractor("nope").reason.legacy_code == 302
        assert regs.contractors.get_assignment("nope", "proj1").reason.legacy_code == 306
        assert not regs.contractors.is_contractor_verified("nope").is_found


class TestContractorLedger:
    def test_completion_event_carries_computed_rating(self):
        regs = registries()
        verified_and_assigned(regs)
        regs.contractors.complete_assignment("c", "proj1", 4, LANDLORD)

        entry = regs.ledger.entries(event_types=["contractor.assignment.completed.v1"])[0]
        assert entry["payload"]["performance_rating"] == 4
        assert entry["payload"]["contractor_rating"] == 4

    def test_lock_key_is_contractor(self):
        regs = registries()
        from engines.contractor.commands import AssignmentCreateRequest

        cmd = AssignmentCreateRequest("c", "proj1").to_command(**kw(LANDLORD))
        assert regs.contractors.lock_key(cmd) == ("contractor", "c")

    def test_rebuild_matches_live_state(self):
        regs = registries()
        verified_and_assigned(regs)
        regs.contractors.assign("c", "proj2", LANDLORD)
        regs.contractors.complete_assignment("c", "proj1", 5, LANDLORD)
        regs.contractors.complete_assignment("c", "proj2", 2, LANDLORD)
        live = regs.contractors.projection_store.snapshot()

        regs.contractors.rebuild(regs.ledger)

        assert regs.contractors.projection_store.snapshot() == live
        assert regs.contractors.get_contractor("c").value.rating == 3
