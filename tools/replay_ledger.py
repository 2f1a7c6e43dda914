#!/usr/bin/env python3
"""
Replay a YAML ledger scenario against an in-memory custody.

Scenario format::

    config:                      # optional LedgerConfig fields
      base_asset: LEVR
      reward_window: 604800
    custody:
      fee_bps: {WETH: 0}
      mint:
        - [alice, LEVR, 1000]
        - [treasury, WETH, 5000]
    steps:
      - {at: 0, op: deposit, participant: alice, amount: 1000}
      - {at: 0, op: deliver, from: treasury, asset: WETH, amount: 5000}
      - {at: 0, op: accrue_rewards, asset: WETH}
      - {at: 604800, op: claim, participant: alice, assets: [WETH]}

`deliver` moves funds from a holder into custody (a collaborator sending
rewards); every other op is a ledger command. Prints a JSON report.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import yaml

from stakeledger.core.config import config_from_mapping
from stakeledger.core.errors import LedgerError
from stakeledger.integration.commands import command_from_mapping, step
from stakeledger.integration.ledger import StakingLedger
from stakeledger.state.custody import InMemoryCustody


class ScenarioClock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


def _build_custody(section: Mapping[str, Any]) -> InMemoryCustody:
    custody = InMemoryCustody(fee_bps=section.get("fee_bps") or {})
    for holder, asset, amount in section.get("mint") or []:
        custody.mint(str(holder), str(asset), int(amount))
    return custody


def run_scenario(scenario: Mapping[str, Any], *, strict: bool = False) -> Dict[str, Any]:
    config = config_from_mapping(scenario.get("config") or {})
    custody = _build_custody(scenario.get("custody") or {})
    clock = ScenarioClock()
    ledger = StakingLedger(custody, config=config, clock=clock)

    results: List[Dict[str, Any]] = []
    for i, raw in enumerate(scenario.get("steps") or []):
        entry = dict(raw)
        at = int(entry.pop("at", clock.now))
        if at < clock.now:
            raise ValueError(f"step {i}: time moves backwards ({at} < {clock.now})")
        clock.now = at
        if entry.get("op") == "deliver":
            try:
                delivered = custody.send(
                    str(entry["asset"]), str(entry["from"]), custody.account, int(entry["amount"])
                )
            except LedgerError as exc:
                results.append({"step": i, "op": "deliver", "ok": False, "effects": None, "error": str(exc)})
                if strict:
                    break
                continue
            results.append({"step": i, "op": "deliver", "ok": True, "effects": {"delivered": delivered}, "error": None})
            continue
        result = step(ledger, command_from_mapping(entry))
        results.append(
            {"step": i, "op": entry.get("op"), "ok": result.ok, "effects": result.effects, "error": result.error}
        )
        if strict and not result.ok:
            break

    state = ledger.state
    participants = sorted(set(state.participants) | {pid for (pid, _), _ in state.debts.items()})
    return {
        "now": clock.now,
        "state_root": ledger.state_root(),
        "total_deposited": ledger.total_deposited(),
        "steps": results,
        "participants": {
            pid: {
                "balance": ledger.balance_of(pid),
                "voting_power": ledger.voting_power(pid),
                "claimable": {asset: ledger.claimable(pid, asset) for asset in sorted(state.streams)},
            }
            for pid in participants
        },
        "custody": dict(sorted(custody.balances().items())),
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay a staking ledger scenario")
    parser.add_argument("scenario", type=Path, help="YAML scenario file")
    parser.add_argument("--strict", action="store_true", help="Stop at the first rejected step")
    parser.add_argument("--log-events", action="store_true", help="Print ledger events to stderr")
    args = parser.parse_args()

    if args.log_events:
        logging.basicConfig(level=logging.INFO, stream=sys.stderr, format="%(message)s")

    scenario = yaml.safe_load(args.scenario.read_text(encoding="utf-8")) or {}
    report = run_scenario(scenario, strict=args.strict)
    print(json.dumps(report, indent=2, sort_keys=True))
    if any(not r["ok"] for r in report["steps"]):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
