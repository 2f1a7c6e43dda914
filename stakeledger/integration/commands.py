"""
Tagged command dispatch for the staking ledger.

Commands are plain data (`LedgerCommand(tag, args)`), which makes them easy to
queue, log and replay. `step()` returns a `LedgerStepResult`; validation and
state-insufficiency errors become rejected results. Invariant violations are
fatal and always propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Literal, Mapping, Optional

from ..core.errors import LedgerError, LedgerInvariantError
from .ledger import StakingLedger


CommandTag = Literal["deposit", "withdraw", "credit_reward", "accrue_rewards", "claim", "archive_stream"]


@dataclass(frozen=True)
class LedgerCommand:
    tag: CommandTag
    args: Mapping[str, Any]


@dataclass(frozen=True)
class LedgerStepResult:
    ok: bool
    effects: Optional[Mapping[str, Any]] = None
    error: Optional[str] = None
    code: Optional[str] = None


class InvalidCommandError(LedgerError):
    code = "InvalidCommand"


def _arg_str(args: Mapping[str, Any], name: str) -> str:
    v = args.get(name)
    if not isinstance(v, str) or not v:
        raise InvalidCommandError(f"invalid param {name}")
    return v


def _arg_int(args: Mapping[str, Any], name: str) -> int:
    v = args.get(name)
    if not isinstance(v, int) or isinstance(v, bool):
        raise InvalidCommandError(f"invalid param {name}")
    return v


def _opt_str(args: Mapping[str, Any], name: str) -> Optional[str]:
    if args.get(name) is None:
        return None
    return _arg_str(args, name)


def _deposit(ledger: StakingLedger, args: Mapping[str, Any]) -> Dict[str, Any]:
    participant = _arg_str(args, "participant")
    received = ledger.deposit(participant, _arg_int(args, "amount"))
    return {"received": received, "balance": ledger.balance_of(participant)}


def _withdraw(ledger: StakingLedger, args: Mapping[str, Any]) -> Dict[str, Any]:
    participant = _arg_str(args, "participant")
    power = ledger.withdraw(participant, _arg_int(args, "amount"), _opt_str(args, "recipient"))
    return {"voting_power": power, "balance": ledger.balance_of(participant)}


def _credit_reward(ledger: StakingLedger, args: Mapping[str, Any]) -> Dict[str, Any]:
    asset = _arg_str(args, "asset")
    amount = _arg_int(args, "amount")
    ledger.credit_new_reward(asset, amount)
    return {"credited": amount}


def _accrue_rewards(ledger: StakingLedger, args: Mapping[str, Any]) -> Dict[str, Any]:
    return {"credited": ledger.accrue_rewards(_arg_str(args, "asset"))}


def _claim(ledger: StakingLedger, args: Mapping[str, Any]) -> Dict[str, Any]:
    assets = args.get("assets", [])
    if not isinstance(assets, (list, tuple)) or not all(isinstance(a, str) and a for a in assets):
        raise InvalidCommandError("invalid param assets")
    payouts = ledger.claim(_arg_str(args, "participant"), assets, _opt_str(args, "recipient"))
    return {"payouts": payouts}


def _archive_stream(ledger: StakingLedger, args: Mapping[str, Any]) -> Dict[str, Any]:
    asset = _arg_str(args, "asset")
    ledger.archive_stream(asset)
    return {"archived": asset}


_HANDLERS: Dict[str, Callable[[StakingLedger, Mapping[str, Any]], Dict[str, Any]]] = {
    "deposit": _deposit,
    "withdraw": _withdraw,
    "credit_reward": _credit_reward,
    "accrue_rewards": _accrue_rewards,
    "claim": _claim,
    "archive_stream": _archive_stream,
}


def command_from_mapping(obj: Mapping[str, Any]) -> LedgerCommand:
    """Build a command from ``{"op": <tag>, **args}``."""
    if not isinstance(obj, Mapping):
        raise InvalidCommandError("command must be a mapping")
    tag = obj.get("op")
    if tag not in _HANDLERS:
        raise InvalidCommandError(f"unknown action: {tag}")
    return LedgerCommand(tag=tag, args={k: v for k, v in obj.items() if k != "op"})


def step_or_raise(ledger: StakingLedger, cmd: LedgerCommand) -> Mapping[str, Any]:
    """Execute a command, raising the typed `LedgerError` on rejection."""
    handler = _HANDLERS.get(cmd.tag)
    if handler is None:
        raise InvalidCommandError(f"unknown action: {cmd.tag}")
    return handler(ledger, cmd.args)


def step(ledger: StakingLedger, cmd: LedgerCommand) -> LedgerStepResult:
    """Execute a command against `ledger`."""
    try:
        return LedgerStepResult(ok=True, effects=step_or_raise(ledger, cmd))
    except LedgerInvariantError:
        raise
    except LedgerError as exc:
        return LedgerStepResult(ok=False, error=str(exc), code=exc.code)
