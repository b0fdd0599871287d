"""
Seed Registry - The single authority over variety records.

All meaningful state change goes through this class:

    1. Caller submits an operation with a CallContext
    2. SeedRegistry validates fields and registry invariants, in order
    3. Collaborators are consulted (authority oracle, then ledger)
    4. State is committed, or left untouched on any failure
    5. The decision is journaled either way

Every operation runs under one registry-wide lock, start to finish.
Validation and commit never interleave across callers.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Sequence

from .collaborators import AuthorityVerifier, ValueTransfer
from .config import RegistryConfig
from .errors import ErrorCode, SnapshotError
from .journal import Journal, JournalEntry
from .rules import REGISTRATION_RULES, first_violation, list_rules, valid_update
from .store import VarietyStore
from .transitions import (
    UPDATE_FAILURE_REASONS,
    CallContext,
    RegistrationRequest,
    RegistryAction,
    Result,
)
from .varieties import Category, Climate, Principal, Variety, VarietyUpdate

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SeedRegistry:
    """
    Registry of seed varieties, content-addressed by a 32-byte hash.

    Usage:
        registry = SeedRegistry(
            verifier=InMemoryAuthoritySet({"ST1TEST"}),
            ledger=InMemoryLedger(),
        )
        registry.set_authority_contract(CallContext("ST1TEST"), "ST2TEST")

        result = registry.register_variety(
            CallContext("ST1TEST", block_height=10),
            seed_hash, "Tomato Heritage", "Red juicy tomatoes", "Italy",
            "vegetable", "temperate", 500, ["drought-resistant"],
            "pest-resistant", 90, "Farm A",
        )
        if result.ok:
            variety = registry.get_variety(result.value)
        else:
            log.info("Denied with code %s", result.value)
    """

    def __init__(
        self,
        verifier: AuthorityVerifier,
        ledger: ValueTransfer,
        config: RegistryConfig | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self._verifier = verifier
        self._ledger = ledger
        self._lock = threading.RLock()

        self._next_variety_id = 0
        self._max_varieties = self.config.max_varieties
        self._registration_fee = self.config.registration_fee
        self._authority_contract: Principal | None = None

        self._store = VarietyStore()
        self._updates: dict[int, VarietyUpdate] = {}
        self._journal = Journal()

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def journal(self) -> Journal:
        """Access to the decision journal."""
        return self._journal

    @property
    def authority_contract(self) -> Principal | None:
        with self._lock:
            return self._authority_contract

    @property
    def registration_fee(self) -> int:
        with self._lock:
            return self._registration_fee

    @property
    def max_varieties(self) -> int:
        with self._lock:
            return self._max_varieties

    # =========================================================================
    # Authority configuration
    # =========================================================================

    def set_authority_contract(self, ctx: CallContext, principal: Principal) -> Result:
        """
        Set the fee recipient. Succeeds exactly once.

        The burn principal is refused outright, and once an authority is
        set every later call fails and leaves it in place.
        """
        with self._lock:
            if not isinstance(principal, str) or not principal:
                return self._deny(ctx, RegistryAction.SET_AUTHORITY, None, Result.failure(),
                                  "authority must be a non-empty principal")
            if principal == self.config.burn_principal:
                return self._deny(ctx, RegistryAction.SET_AUTHORITY, None, Result.failure(),
                                  "burn principal cannot be the authority")
            if self._authority_contract is not None:
                return self._deny(ctx, RegistryAction.SET_AUTHORITY, None, Result.failure(),
                                  "authority already set")

            self._authority_contract = principal
            logger.info("Authority contract set to %s by %s", principal, ctx.caller)
            return self._allow(ctx, RegistryAction.SET_AUTHORITY, None, Result.success(True),
                               {"authority": principal})

    def set_registration_fee(self, ctx: CallContext, amount: int) -> Result:
        """
        Change the registration fee.

        Requires an authority to exist. By default any caller may then
        change the fee; with strict_fee_authority the caller must be
        that authority.
        """
        with self._lock:
            if self._authority_contract is None:
                return self._deny(ctx, RegistryAction.SET_FEE, None, Result.failure(),
                                  "no authority configured")
            if self.config.strict_fee_authority and ctx.caller != self._authority_contract:
                return self._deny(ctx, RegistryAction.SET_FEE, None, Result.failure(),
                                  "caller is not the authority")
            if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
                return self._deny(ctx, RegistryAction.SET_FEE, None, Result.failure(),
                                  "fee must be a non-negative integer")

            previous = self._registration_fee
            self._registration_fee = amount
            logger.info("Registration fee changed from %d to %d by %s", previous, amount, ctx.caller)
            return self._allow(ctx, RegistryAction.SET_FEE, None, Result.success(True),
                               {"previous": previous, "fee": amount})

    # =========================================================================
    # Registration
    # =========================================================================

    def register_variety(
        self,
        ctx: CallContext,
        seed_hash: bytes,
        title: str,
        description: str,
        origin: str,
        category: Category | str,
        climate: Climate | str,
        yield_potential: int,
        traits: Sequence[str],
        resistance: str,
        maturity_days: int,
        location: str,
    ) -> Result:
        """Register a new variety. See register() for the check order."""
        request = RegistrationRequest(
            hash=seed_hash,
            title=title,
            description=description,
            origin=origin,
            category=category,
            climate=climate,
            yield_potential=yield_potential,
            traits=traits,
            resistance=resistance,
            maturity_days=maturity_days,
            location=location,
        )
        return self.register(ctx, request)

    def register(self, ctx: CallContext, request: RegistrationRequest) -> Result:
        """
        Register a new variety from a request.

        Checks, first failure wins:
            capacity (114), field rules (101-118), caller is a verified
            authority (100), hash unused (106), authority configured (109)

        Then the fee moves from the caller to the authority. A failed
        transfer returns the ledger's code and nothing is stored.

        Returns:
            Result(ok=True, value=<new id>) or Result(ok=False, value=<code>)
        """
        with self._lock:
            code = self._check_registration(ctx, request)
            if code is not None:
                return self._deny(ctx, RegistryAction.REGISTER, None, Result.failure(code),
                                  code.name.lower(), request.to_metadata())

            fee = self._registration_fee
            authority = self._authority_contract
            transfer = self._ledger.transfer(fee, ctx.caller, authority)
            if not transfer.ok:
                return self._deny(ctx, RegistryAction.REGISTER, None, Result.failure(transfer.value),
                                  "fee transfer failed", request.to_metadata())

            variety_id = self._next_variety_id
            variety = Variety(
                hash=bytes(request.hash),
                title=request.title,
                description=request.description,
                origin=request.origin,
                category=Category(request.category),
                climate=Climate(request.climate),
                yield_potential=request.yield_potential,
                traits=tuple(request.traits),
                resistance=request.resistance,
                maturity_days=request.maturity_days,
                location=request.location,
                timestamp=ctx.block_height,
                creator=ctx.caller,
                status=True,
            )
            self._store.insert(variety_id, variety)
            self._next_variety_id += 1

            logger.info(
                "Registered variety %d (%s) for %s, fee %d to %s",
                variety_id, variety.hash.hex(), ctx.caller, fee, authority,
            )
            metadata = request.to_metadata()
            metadata["fee"] = fee
            return self._allow(ctx, RegistryAction.REGISTER, variety_id,
                               Result.success(variety_id), metadata)

    def _check_registration(
        self,
        ctx: CallContext,
        request: RegistrationRequest,
    ) -> ErrorCode | None:
        if self._next_variety_id >= self._max_varieties:
            return ErrorCode.MAX_VARIETIES_EXCEEDED

        code = first_violation(request, REGISTRATION_RULES)
        if code is not None:
            return code

        if not self._verifier.is_verified_authority(ctx.caller):
            return ErrorCode.NOT_AUTHORIZED
        if self._store.contains_hash(request.hash):
            return ErrorCode.VARIETY_ALREADY_EXISTS
        if self._authority_contract is None:
            return ErrorCode.AUTHORITY_NOT_VERIFIED
        return None

    # =========================================================================
    # Update
    # =========================================================================

    def update_variety(
        self,
        ctx: CallContext,
        variety_id: int,
        new_title: str,
        new_description: str,
    ) -> Result:
        """
        Replace a variety's title and description.

        Only the creator may update. Failures are generic
        (Result(ok=False, value=False)); the journal keeps the reason.
        Every field other than title, description and timestamp is kept
        as it was.
        """
        with self._lock:
            current = self._store.get(variety_id)
            reason: ErrorCode | None = None
            if current is None:
                reason = ErrorCode.VARIETY_NOT_FOUND
            elif current.creator != ctx.caller:
                reason = ErrorCode.NOT_AUTHORIZED
            elif not valid_update(new_title, new_description):
                reason = ErrorCode.INVALID_UPDATE_PARAM

            if reason is not None:
                return self._deny(ctx, RegistryAction.UPDATE, variety_id, Result.failure(),
                                  UPDATE_FAILURE_REASONS[reason], code=reason)

            self._store.replace(
                variety_id,
                current.with_update(new_title, new_description, ctx.block_height),
            )
            self._updates[variety_id] = VarietyUpdate(
                update_title=new_title,
                update_description=new_description,
                update_timestamp=ctx.block_height,
                updater=ctx.caller,
            )

            logger.info("Updated variety %d by %s", variety_id, ctx.caller)
            return self._allow(ctx, RegistryAction.UPDATE, variety_id, Result.success(True),
                               {"title": new_title})

    # =========================================================================
    # Queries
    # =========================================================================

    def get_variety(self, variety_id: int) -> Variety | None:
        """The record at variety_id, or None."""
        with self._lock:
            return self._store.get(variety_id)

    def get_variety_update(self, variety_id: int) -> VarietyUpdate | None:
        """The latest update applied to variety_id, or None."""
        with self._lock:
            return self._updates.get(variety_id)

    def get_variety_id_by_hash(self, seed_hash: bytes) -> int | None:
        with self._lock:
            return self._store.id_for_hash(seed_hash)

    def get_variety_count(self) -> Result:
        """Number of ids issued so far."""
        with self._lock:
            return Result.success(self._next_variety_id)

    def check_variety_existence(self, seed_hash: bytes) -> Result:
        """Whether seed_hash is registered."""
        with self._lock:
            return Result.success(self._store.contains_hash(seed_hash))

    def list_rules(self) -> list[dict[str, Any]]:
        """Field rules applied at registration, in evaluation order."""
        return list_rules()

    # =========================================================================
    # Snapshot / restore
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """
        JSON-safe copy of the full registry state.

        Hashes are hex encoded. The result round-trips through
        from_snapshot().
        """
        with self._lock:
            return {
                "version": SNAPSHOT_VERSION,
                "next_variety_id": self._next_variety_id,
                "max_varieties": self._max_varieties,
                "registration_fee": self._registration_fee,
                "authority_contract": self._authority_contract,
                "varieties": {str(vid): v.to_dict() for vid, v in self._store},
                "variety_updates": {str(vid): u.to_dict() for vid, u in sorted(self._updates.items())},
                "journal": [e.to_dict() for e in self._journal.all()],
            }

    @classmethod
    def from_snapshot(
        cls,
        data: dict[str, Any],
        verifier: AuthorityVerifier,
        ledger: ValueTransfer,
        config: RegistryConfig | None = None,
    ) -> SeedRegistry:
        """
        Rebuild a registry from snapshot().

        Restored records must pass the registration field rules, restored
        updates the update rules, and the authority must not be the burn
        principal.

        Raises:
            SnapshotError: if the snapshot is malformed or inconsistent
        """
        if not isinstance(data, dict):
            raise SnapshotError(f"expected a mapping, got {type(data).__name__}")
        if data.get("version") != SNAPSHOT_VERSION:
            raise SnapshotError(f"unsupported version {data.get('version')!r}")

        varieties = _section(data, "varieties", dict)
        variety_updates = _section(data, "variety_updates", dict)
        journal = _section(data, "journal", list)

        try:
            records = {int(k): Variety.from_dict(v) for k, v in varieties.items()}
            updates = {int(k): VarietyUpdate.from_dict(v) for k, v in variety_updates.items()}
            entries = [JournalEntry.from_dict(e) for e in journal]
            next_id = int(data["next_variety_id"])
            max_varieties = int(data["max_varieties"])
            fee = int(data["registration_fee"])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SnapshotError(str(e)) from e

        for variety_id, variety in records.items():
            code = first_violation(RegistrationRequest.from_variety(variety), REGISTRATION_RULES)
            if code is not None:
                raise SnapshotError(f"record fails {code.name.lower()}", variety_id=variety_id)
        for variety_id, update in updates.items():
            if not valid_update(update.update_title, update.update_description):
                raise SnapshotError("update has an invalid title or description", variety_id=variety_id)

        store = VarietyStore.from_records(records)
        if next_id != len(store):
            raise SnapshotError(f"next_variety_id {next_id} does not match {len(store)} records")
        if max_varieties <= 0 or next_id > max_varieties:
            raise SnapshotError(f"{next_id} records exceed max_varieties {max_varieties}")
        if fee < 0:
            raise SnapshotError(f"registration_fee {fee} is negative")
        orphans = sorted(set(updates) - set(records))
        if orphans:
            raise SnapshotError("updates reference unknown varieties", variety_id=orphans[0])

        registry = cls(verifier=verifier, ledger=ledger, config=config)

        authority = data.get("authority_contract")
        if authority is not None:
            if not isinstance(authority, str) or not authority:
                raise SnapshotError(f"authority_contract must be a principal, got {authority!r}")
            if authority == registry.config.burn_principal:
                raise SnapshotError("authority_contract is the burn principal")

        registry._store = store
        registry._updates = updates
        registry._journal = Journal(entries)
        registry._next_variety_id = next_id
        registry._max_varieties = max_varieties
        registry._registration_fee = fee
        registry._authority_contract = authority
        return registry

    def save_snapshot(self, path: str | Path) -> None:
        """
        Write snapshot() to a JSON file.

        The file is swapped in with os.replace, so a failed save leaves
        the previous file as it was.
        """
        path = Path(path)
        content = json.dumps(self.snapshot(), indent=2)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise
        logger.debug("Saved registry snapshot to %s", path)

    @classmethod
    def load_snapshot(
        cls,
        path: str | Path,
        verifier: AuthorityVerifier,
        ledger: ValueTransfer,
        config: RegistryConfig | None = None,
    ) -> SeedRegistry:
        """
        Load a registry from a JSON snapshot file.

        Raises:
            SnapshotError: if the file is unreadable, not valid JSON or
                fails to restore
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise SnapshotError(f"cannot read {path}: {e}") from e
        except ValueError as e:
            raise SnapshotError(f"{path} is not valid JSON: {e}") from e
        return cls.from_snapshot(data, verifier, ledger, config)

    # =========================================================================
    # Journal helpers
    # =========================================================================

    def _allow(
        self,
        ctx: CallContext,
        action: RegistryAction,
        target: int | None,
        result: Result,
        metadata: dict[str, Any] | None = None,
    ) -> Result:
        self._journal.record(JournalEntry(
            actor=ctx.caller,
            action=action.value,
            decision="allowed",
            block_height=ctx.block_height,
            target=target,
            metadata=metadata or {},
            request_id=ctx.request_id,
        ))
        return result

    def _deny(
        self,
        ctx: CallContext,
        action: RegistryAction,
        target: int | None,
        result: Result,
        reason: str,
        metadata: dict[str, Any] | None = None,
        code: ErrorCode | None = None,
    ) -> Result:
        if code is None:
            code = result.error
        logger.debug("Denied %s by %s: %s (code %s)", action.value, ctx.caller, reason, code)
        self._journal.record(JournalEntry(
            actor=ctx.caller,
            action=action.value,
            decision="denied",
            block_height=ctx.block_height,
            target=target,
            code=int(code) if code is not None else None,
            reason=reason,
            metadata=metadata or {},
            request_id=ctx.request_id,
        ))
        return result


def _section(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key, kind())
    if not isinstance(value, kind):
        raise SnapshotError(f"{key} must be a {kind.__name__}, got {type(value).__name__}")
    return value
