"""
Collaborators - The capabilities the registry is handed, not what it owns.

The registry depends on two narrow contracts:
    AuthorityVerifier   "is principal P allowed to register varieties?"
    ValueTransfer       "move N from A to B", succeeding or failing at once

Both are synchronous. No timeouts, no retries: a failure aborts the
operation that triggered it.

The in-memory implementations here back the tests and the CLI. A host
that runs on a real ledger supplies its own objects with the same
methods.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable, Protocol, runtime_checkable

from .errors import TransferCode
from .transitions import Result
from .varieties import Principal

logger = logging.getLogger(__name__)


@runtime_checkable
class AuthorityVerifier(Protocol):
    """Answers whether a principal may register varieties."""

    def is_verified_authority(self, principal: Principal) -> bool:
        """Return True if principal is currently authorized."""
        ...


@runtime_checkable
class ValueTransfer(Protocol):
    """Moves value between principals on the host ledger."""

    def transfer(self, amount: int, sender: Principal, recipient: Principal) -> Result:
        """
        Move amount from sender to recipient.

        Returns:
            Result(ok=True, value=True) on success, or
            Result(ok=False, value=<TransferCode>) on failure
        """
        ...


class InMemoryAuthoritySet:
    """
    AuthorityVerifier backed by a plain set of principals.

    Answers are read live on every call; the registry never caches them.
    """

    def __init__(self, authorities: Iterable[Principal] = ()) -> None:
        self._authorities: set[Principal] = set(authorities)
        self._lock = threading.Lock()

    def is_verified_authority(self, principal: Principal) -> bool:
        with self._lock:
            return principal in self._authorities

    def grant(self, principal: Principal) -> None:
        with self._lock:
            self._authorities.add(principal)
        logger.info("Granted registration authority to %s", principal)

    def revoke(self, principal: Principal) -> None:
        with self._lock:
            self._authorities.discard(principal)
        logger.info("Revoked registration authority from %s", principal)

    def clear(self) -> None:
        with self._lock:
            self._authorities.clear()

    def __contains__(self, principal: object) -> bool:
        with self._lock:
            return principal in self._authorities

    def __iter__(self):
        with self._lock:
            return iter(sorted(self._authorities))


@dataclass(frozen=True)
class Transfer:
    """A completed value transfer."""
    amount: int
    sender: Principal
    recipient: Principal

    def to_dict(self) -> dict[str, object]:
        return {"amount": self.amount, "sender": self.sender, "recipient": self.recipient}


class InMemoryLedger:
    """
    ValueTransfer that records every completed transfer.

    Without balances the ledger only keeps the record of transfers,
    which is all the registry needs to be observed. With balances it
    also enforces them and fails with INSUFFICIENT_BALANCE.

    Example:
        ledger = InMemoryLedger(balances={"ST1": 1_000})
        ledger.transfer(500, "ST1", "ST2")   # ok
        ledger.transfer(900, "ST1", "ST2")   # INSUFFICIENT_BALANCE
        ledger.transfers                      # [Transfer(500, "ST1", "ST2")]
    """

    def __init__(self, balances: dict[Principal, int] | None = None) -> None:
        self._balances = dict(balances) if balances is not None else None
        self._transfers: list[Transfer] = []
        self._lock = threading.Lock()

    @property
    def tracks_balances(self) -> bool:
        return self._balances is not None

    @property
    def transfers(self) -> list[Transfer]:
        """Completed transfers, oldest first."""
        with self._lock:
            return list(self._transfers)

    def balance_of(self, principal: Principal) -> int | None:
        """Current balance, or None if balances are not tracked."""
        with self._lock:
            if self._balances is None:
                return None
            return self._balances.get(principal, 0)

    def transfer(self, amount: int, sender: Principal, recipient: Principal) -> Result:
        if amount < 0:
            return self._reject(TransferCode.INVALID_AMOUNT, amount, sender, recipient)
        if sender == recipient:
            return self._reject(TransferCode.SAME_SENDER_RECIPIENT, amount, sender, recipient)

        with self._lock:
            if self._balances is not None:
                available = self._balances.get(sender, 0)
                if available < amount:
                    return self._reject(TransferCode.INSUFFICIENT_BALANCE, amount, sender, recipient)
                self._balances[sender] = available - amount
                self._balances[recipient] = self._balances.get(recipient, 0) + amount
            self._transfers.append(Transfer(amount, sender, recipient))

        logger.debug("Transferred %d from %s to %s", amount, sender, recipient)
        return Result.success(True)

    def _reject(
        self,
        code: TransferCode,
        amount: int,
        sender: Principal,
        recipient: Principal,
    ) -> Result:
        logger.warning(
            "Transfer of %d from %s to %s failed: %s",
            amount, sender, recipient, code.name,
        )
        return Result.failure(code)
