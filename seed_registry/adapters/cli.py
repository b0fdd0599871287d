"""
CLI Adapter - Command-line interface.

Thin wrapper over SeedRegistry. State lives in a JSON snapshot file that
is loaded before each command and saved after each state change.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from seed_registry.registry import (
    CallContext,
    ConfigError,
    InMemoryAuthoritySet,
    InMemoryLedger,
    RegistryConfig,
    Result,
    SeedRegistry,
    SnapshotError,
)

logger = logging.getLogger(__name__)

DEFAULT_STATE = "seed-registry.json"


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = _build_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=getattr(logging, parsed.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed.command is None:
        parser.print_help()
        return 0

    if parsed.command == "version":
        from seed_registry import __version__
        print(f"seed-registry {__version__}")
        return 0

    try:
        config = _load_config(parsed.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    state = Path(parsed.state)

    if parsed.command == "init":
        return _cmd_init(state, config, parsed.force)

    if not state.exists():
        print(f"Error: State file not found: {state} (run 'init' first)", file=sys.stderr)
        return 2

    try:
        registry = SeedRegistry.load_snapshot(
            state,
            verifier=InMemoryAuthoritySet(config.authorities),
            ledger=InMemoryLedger(),
            config=config,
        )
    except SnapshotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    handlers = {
        "set-authority": _cmd_set_authority,
        "set-fee": _cmd_set_fee,
        "register": _cmd_register,
        "update": _cmd_update,
        "show": _cmd_show,
        "count": _cmd_count,
        "exists": _cmd_exists,
        "journal": _cmd_journal,
    }
    return handlers[parsed.command](registry, state, parsed)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seed-registry",
        description="Authority-gated registry of seed varieties",
    )
    parser.add_argument("--state", default=DEFAULT_STATE, help=f"State file (default: {DEFAULT_STATE})")
    parser.add_argument("--config", help="Config file (.yaml/.yml/.json); defaults to SEED_REGISTRY_* env")
    parser.add_argument(
        "--log-level",
        default="warning",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (default: warning)",
    )

    # Shared call context for state-changing commands
    call = argparse.ArgumentParser(add_help=False)
    call.add_argument("--caller", required=True, help="Principal making the call")
    call.add_argument("--block-height", type=int, default=0, help="Logical time of the call")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    init_parser = subparsers.add_parser("init", help="Create an empty registry state file")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing state file")

    authority_parser = subparsers.add_parser("set-authority", parents=[call], help="Set the fee recipient (once)")
    authority_parser.add_argument("principal", help="Authority principal")

    fee_parser = subparsers.add_parser("set-fee", parents=[call], help="Change the registration fee")
    fee_parser.add_argument("amount", type=int, help="New fee")

    register_parser = subparsers.add_parser("register", parents=[call], help="Register a variety")
    register_parser.add_argument("--hash", required=True, dest="seed_hash", help="32-byte hash as hex")
    register_parser.add_argument("--title", required=True)
    register_parser.add_argument("--description", default="")
    register_parser.add_argument("--origin", default="")
    register_parser.add_argument("--category", required=True, help="vegetable, fruit, grain or herb")
    register_parser.add_argument("--climate", required=True, help="tropical, temperate, arid or cold")
    register_parser.add_argument("--yield", type=int, required=True, dest="yield_potential")
    register_parser.add_argument("--trait", action="append", default=[], dest="traits", help="Repeatable")
    register_parser.add_argument("--resistance", default="")
    register_parser.add_argument("--maturity-days", type=int, required=True)
    register_parser.add_argument("--location", default="")

    update_parser = subparsers.add_parser("update", parents=[call], help="Update title and description")
    update_parser.add_argument("variety_id", type=int)
    update_parser.add_argument("--title", required=True)
    update_parser.add_argument("--description", default="")

    show_parser = subparsers.add_parser("show", help="Show a variety by id")
    show_parser.add_argument("variety_id", type=int)

    subparsers.add_parser("count", help="Number of registered varieties")

    exists_parser = subparsers.add_parser("exists", help="Check whether a hash is registered")
    exists_parser.add_argument("seed_hash", help="32-byte hash as hex")

    journal_parser = subparsers.add_parser("journal", help="List journaled decisions")
    journal_parser.add_argument("--actor")
    journal_parser.add_argument("--action")
    journal_parser.add_argument("--decision", choices=["allowed", "denied"])

    subparsers.add_parser("version", help="Show version")

    return parser


def _load_config(path: str | None) -> RegistryConfig:
    if path:
        return RegistryConfig.from_file(path)
    return RegistryConfig.from_env()


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _emit_result(result: Result) -> int:
    _emit({"ok": result.ok, "value": result.value})
    return 0 if result.ok else 1


def _parse_hash(value: str) -> bytes | None:
    try:
        return bytes.fromhex(value)
    except ValueError:
        print(f"Error: Hash is not valid hex: {value}", file=sys.stderr)
        return None


def _ctx(args: argparse.Namespace) -> CallContext:
    return CallContext(caller=args.caller, block_height=args.block_height)


def _cmd_init(state: Path, config: RegistryConfig, force: bool) -> int:
    """Create a fresh state file."""
    if state.exists() and not force:
        print(f"Error: {state} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    registry = SeedRegistry(InMemoryAuthoritySet(config.authorities), InMemoryLedger(), config)
    registry.save_snapshot(state)
    print(f"Initialized registry at {state}")
    return 0


def _commit(registry: SeedRegistry, state: Path, result: Result) -> int:
    # Denials are journaled too, so the state is saved either way
    registry.save_snapshot(state)
    return _emit_result(result)


def _cmd_set_authority(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    return _commit(registry, state, registry.set_authority_contract(_ctx(args), args.principal))


def _cmd_set_fee(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    return _commit(registry, state, registry.set_registration_fee(_ctx(args), args.amount))


def _cmd_register(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    seed_hash = _parse_hash(args.seed_hash)
    if seed_hash is None:
        return 2
    result = registry.register_variety(
        _ctx(args),
        seed_hash,
        args.title,
        args.description,
        args.origin,
        args.category,
        args.climate,
        args.yield_potential,
        args.traits,
        args.resistance,
        args.maturity_days,
        args.location,
    )
    return _commit(registry, state, result)


def _cmd_update(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    result = registry.update_variety(_ctx(args), args.variety_id, args.title, args.description)
    return _commit(registry, state, result)


def _cmd_show(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    variety = registry.get_variety(args.variety_id)
    if variety is None:
        print(f"Error: Variety {args.variety_id} not found", file=sys.stderr)
        return 1
    payload = variety.to_dict()
    update = registry.get_variety_update(args.variety_id)
    payload["last_update"] = update.to_dict() if update else None
    _emit(payload)
    return 0


def _cmd_count(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    return _emit_result(registry.get_variety_count())


def _cmd_exists(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    seed_hash = _parse_hash(args.seed_hash)
    if seed_hash is None:
        return 2
    result = registry.check_variety_existence(seed_hash)
    _emit({"ok": result.ok, "value": result.value})
    return 0


def _cmd_journal(registry: SeedRegistry, state: Path, args: argparse.Namespace) -> int:
    entries = registry.journal.query(actor=args.actor, action=args.action, decision=args.decision)
    _emit([e.to_dict() for e in entries])
    return 0


if __name__ == "__main__":
    sys.exit(main())
