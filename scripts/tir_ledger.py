"""
Ledger tool for the TIR registries.

Usage:
    TIR_ADMINISTRATOR=ST1... python -m scripts.tir_ledger demo --output ledger.jsonl
    python -m scripts.tir_ledger --administrator ST1... verify ledger.jsonl

Settings come from the TIR_* environment variables (see core.config).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone

from core.bootstrap import SystemBootstrapError, build_registries
from core.config import ConfigError, RegistryConfig, load_config
from core.config.settings import ENV_ADMINISTRATOR
from core.ledger import InMemoryLedger, LedgerIntegrityError
from core.replay import ReplayError
from core.time import SteppingClock


DEMO_LANDLORD = "ST3AM1A56AK2C1XAFJ4115ZSV26EB49BVQ10MGCS0"
DEMO_TENANT = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
DEMO_CONTRACTOR = "ST2JHG361ZXG51QTKY2NQCVBPPRRE2KZB1HR05NNC"
DEMO_START = datetime(2026, 1, 5, 9, 0, 0, tzinfo=timezone.utc)


def _print_case(label: str, result) -> None:
    print(f"[{label}] {json.dumps(result.as_legacy(), sort_keys=True)}")


def resolve_config(administrator: str | None) -> RegistryConfig:
    """TIR_* environment settings, with --administrator taking precedence."""
    environ = dict(os.environ)
    if administrator:
        environ[ENV_ADMINISTRATOR] = administrator
    return load_config(environ)


def run_demo(output: str, config: RegistryConfig) -> int:
    registries = build_registries(config, clock=SteppingClock(DEMO_START))

    allowance = registries.allowances
    _print_case("create-allowance", allowance.create_allowance("proj1", DEMO_TENANT, 10000, DEMO_LANDLORD))
    _print_case("add-milestone", allowance.add_milestone("proj1", "m1", "Demolition", 2000, DEMO_LANDLORD))
    _print_case("complete-milestone", allowance.complete_milestone("proj1", "m1", DEMO_TENANT))
    _print_case("release-funds", allowance.release_funds("proj1", "m1", DEMO_LANDLORD))
    _print_case("release-funds-again", allowance.release_funds("proj1", "m1", DEMO_LANDLORD))

    contractors = registries.contractors
    _print_case("register-contractor", contractors.register("c", "ABC", ["plumbing"], "LIC1", DEMO_CONTRACTOR))
    _print_case("verify-contractor", contractors.verify("c", True, config.administrator))
    _print_case("assign-contractor", contractors.assign("c", "proj1", DEMO_LANDLORD))
    _print_case("complete-assignment", contractors.complete_assignment("c", "proj1", 4, DEMO_LANDLORD))

    count = registries.ledger.export_jsonl(output)
    print(f"wrote {count} entries to {output}")
    return 0


def run_verify(path: str, config: RegistryConfig) -> int:
    try:
        ledger = InMemoryLedger.load_jsonl(path)
        registries = build_registries(config, ledger=ledger)
        rebuilds = registries.rebuild_all()
    except (OSError, LedgerIntegrityError, SystemBootstrapError, ReplayError) as exc:
        print(json.dumps({"chain_verified": False, "error": str(exc)}, indent=2))
        return 1

    allowances = [
        {
            "project_id": record.project_id,
            "total_amount": record.total_amount,
            "released_amount": record.released_amount,
            "remaining_amount": record.remaining_amount,
            "status": record.status.value,
            "balanced": record.is_balanced,
        }
        for record in registries.allowances.projection_store.list_allowances()
    ]
    summary = {
        "chain_verified": True,
        "entries": ledger.height,
        "tip_hash": ledger.tip_hash,
        "projections": {r.projection_name: r.events_applied for r in rebuilds},
        "allowances": allowances,
    }
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 0 if all(a["balanced"] for a in allowances) else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect and exercise the TIR ledger.")
    parser.add_argument(
        "--administrator",
        default=None,
        help=f"Administrator principal address (overrides {ENV_ADMINISTRATOR}).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    demo = subparsers.add_parser("demo", help="Run the end-to-end scenarios and export the ledger.")
    demo.add_argument("--output", required=True, help="Path of the JSON-lines export.")

    verify = subparsers.add_parser("verify", help="Verify an export and rebuild projections from it.")
    verify.add_argument("path", help="Path of a JSON-lines export.")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        config = resolve_config(args.administrator)
    except ConfigError as exc:
        print(f"tir-ledger: configuration error: {exc}", file=sys.stderr)
        return 2

    if args.command == "demo":
        return run_demo(args.output, config)
    return run_verify(args.path, config)


if __name__ == "__main__":
    sys.exit(main())
