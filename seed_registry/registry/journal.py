"""
Decision Journal - Append-only record of every registry decision.

Each call that can change state leaves a JournalEntry, whether it was
allowed or denied. Entries are immutable once recorded.

The journal is the audit trail. VarietyUpdate only keeps the latest
update per variety; the journal keeps all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4


@dataclass(frozen=True)
class JournalEntry:
    """Record of one registry decision."""
    actor: str
    action: str
    decision: str  # "allowed" or "denied"
    block_height: int
    target: int | None = None
    code: int | None = None
    reason: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    request_id: str = ""  # CallContext.request_id of the call
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "request_id": self.request_id,
            "actor": self.actor,
            "action": self.action,
            "decision": self.decision,
            "block_height": self.block_height,
            "target": self.target,
            "code": self.code,
            "reason": self.reason,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEntry:
        return cls(
            id=data["id"],
            request_id=data.get("request_id", ""),
            actor=data["actor"],
            action=data["action"],
            decision=data["decision"],
            block_height=int(data["block_height"]),
            target=data.get("target"),
            code=data.get("code"),
            reason=data.get("reason", ""),
            metadata=dict(data.get("metadata", {})),
        )


class Journal:
    """
    Storage for journal entries.

    Entries are:
    - Immutable once recorded
    - Kept in decision order
    - Queryable by actor, action, target, decision and request id
    """

    def __init__(self, entries: list[JournalEntry] | None = None) -> None:
        self._entries: list[JournalEntry] = list(entries or [])

    def record(self, entry: JournalEntry) -> None:
        self._entries.append(entry)

    def query(
        self,
        actor: str | None = None,
        action: str | None = None,
        target: int | None = None,
        decision: str | None = None,
        request_id: str | None = None,
    ) -> list[JournalEntry]:
        """Query entries by criteria."""
        results = self._entries

        if actor:
            results = [e for e in results if e.actor == actor]
        if action:
            results = [e for e in results if e.action == action]
        if target is not None:
            results = [e for e in results if e.target == target]
        if decision:
            results = [e for e in results if e.decision == decision]
        if request_id:
            results = [e for e in results if e.request_id == request_id]

        return list(results)

    def all(self) -> list[JournalEntry]:
        return list(self._entries)

    def count(self) -> int:
        return len(self._entries)
