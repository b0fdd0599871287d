"""
Registry Transitions - Call context, requests and results.

Every state-changing call carries an explicit CallContext:
    - caller: the identity the ledger attributes the call to
    - block_height: the logical clock at the time of the call

Every call returns a Result:
    - Result(ok=True, value=<payload>)     id, bool or count
    - Result(ok=False, value=<code>)       ErrorCode / TransferCode
    - Result(ok=False, value=False)        generic failure
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence
from uuid import uuid4

from .errors import ErrorCode
from .varieties import Category, Climate, Principal, Variety

# Longest string copied from a request into the journal
MAX_JOURNAL_TEXT = 100


class RegistryAction(Enum):
    """State transitions the registry mediates."""
    SET_AUTHORITY = "set_authority"
    SET_FEE = "set_fee"
    REGISTER = "register"
    UPDATE = "update"


@dataclass(frozen=True)
class CallContext:
    """
    Who is calling, and when.

    Passed explicitly into each registry operation rather than read from
    ambient state, so tests can drive any caller at any height.
    """
    caller: Principal
    block_height: int = 0
    request_id: str = field(default_factory=lambda: str(uuid4()))


@dataclass(frozen=True)
class Result:
    """
    Outcome of a registry operation.

    Failures are values, not exceptions. On failure `value` is either a
    numeric code or False for operations that only report a generic
    failure.
    """
    ok: bool
    value: Any

    @classmethod
    def success(cls, value: Any = True) -> Result:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, value: Any = False) -> Result:
        if isinstance(value, Enum):
            value = int(value.value)
        return cls(ok=False, value=value)

    @property
    def error(self) -> int | None:
        """The numeric failure code, if this is a coded failure."""
        if self.ok or isinstance(self.value, bool):
            return None
        return self.value

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True)
class RegistrationRequest:
    """
    The metadata a caller submits to register a variety.

    Values are kept exactly as submitted; nothing is validated or
    coerced here. Validation happens inside the registry, in a fixed
    order, so the first failing field decides the error code.
    """
    hash: bytes
    title: str
    description: str
    origin: str
    category: Category | str
    climate: Climate | str
    yield_potential: int
    traits: Sequence[str]
    resistance: str
    maturity_days: int
    location: str

    @classmethod
    def from_variety(cls, variety: Variety) -> RegistrationRequest:
        """The request that would have produced this record."""
        return cls(
            hash=variety.hash,
            title=variety.title,
            description=variety.description,
            origin=variety.origin,
            category=variety.category,
            climate=variety.climate,
            yield_potential=variety.yield_potential,
            traits=variety.traits,
            resistance=variety.resistance,
            maturity_days=variety.maturity_days,
            location=variety.location,
        )

    def to_metadata(self) -> dict[str, Any]:
        """
        Journal-friendly summary of the request.

        Values may be unvalidated, so each is rendered as a capped string
        that always serializes to JSON.
        """
        seed_hash = self.hash
        if isinstance(seed_hash, (bytes, bytearray)):
            seed_hash = bytes(seed_hash).hex()
        return {
            "hash": journal_text(seed_hash),
            "title": journal_text(self.title),
            "category": journal_text(self.category),
            "climate": journal_text(self.climate),
        }


def journal_text(value: Any, limit: int = MAX_JOURNAL_TEXT) -> str:
    """Render a submitted value as a JSON-safe string of at most limit chars."""
    if isinstance(value, Enum):
        value = value.value
    text = value if isinstance(value, str) else repr(value)
    if len(text) > limit:
        text = text[:limit] + "..."
    return text


# Internal reasons behind a generic update failure, recorded in the journal
UPDATE_FAILURE_REASONS: dict[ErrorCode, str] = {
    ErrorCode.VARIETY_NOT_FOUND: "variety not found",
    ErrorCode.NOT_AUTHORIZED: "caller is not the creator",
    ErrorCode.INVALID_UPDATE_PARAM: "invalid title or description",
}
