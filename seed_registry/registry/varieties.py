"""
Variety Records - The data held by the registry.

A Variety is created once by registration and never deleted. Only its
title, description and timestamp can change afterwards, and only
through an explicit update by its creator.

Serialized form (snapshot/JSON):
    {
        "hash": "<64 hex chars>",
        "title": str,
        ...
        "category": "vegetable" | "fruit" | "grain" | "herb",
        "climate": "tropical" | "temperate" | "arid" | "cold",
        "traits": [str, ...],
    }
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

# Identity of a caller, creator or fee recipient (a ledger principal)
Principal = str

HASH_LENGTH = 32


class Category(str, Enum):
    """Crop category of a variety."""
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    GRAIN = "grain"
    HERB = "herb"


class Climate(str, Enum):
    """Climate zone a variety is suited to."""
    TROPICAL = "tropical"
    TEMPERATE = "temperate"
    ARID = "arid"
    COLD = "cold"


@dataclass(frozen=True)
class Variety:
    """
    A registered seed variety.

    Records are immutable values. An update produces a new Variety via
    with_update() and the store swaps it in, so a record handed out by
    the registry never changes underneath its holder.
    """
    hash: bytes
    title: str
    description: str
    origin: str
    category: Category
    climate: Climate
    yield_potential: int
    traits: tuple[str, ...]
    resistance: str
    maturity_days: int
    location: str
    timestamp: int
    creator: Principal
    status: bool = True

    def with_update(self, title: str, description: str, timestamp: int) -> Variety:
        """Return a copy with new title, description and timestamp."""
        return replace(self, title=title, description=description, timestamp=timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash.hex(),
            "title": self.title,
            "description": self.description,
            "origin": self.origin,
            "category": self.category.value,
            "climate": self.climate.value,
            "yield_potential": self.yield_potential,
            "traits": list(self.traits),
            "resistance": self.resistance,
            "maturity_days": self.maturity_days,
            "location": self.location,
            "timestamp": self.timestamp,
            "creator": self.creator,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Variety:
        """
        Build a Variety from its serialized form.

        Raises:
            KeyError: if a field is missing
            ValueError: if the hash is not hex or an enum value is unknown
        """
        return cls(
            hash=bytes.fromhex(data["hash"]),
            title=data["title"],
            description=data["description"],
            origin=data["origin"],
            category=Category(data["category"]),
            climate=Climate(data["climate"]),
            yield_potential=int(data["yield_potential"]),
            traits=tuple(data.get("traits", [])),
            resistance=data["resistance"],
            maturity_days=int(data["maturity_days"]),
            location=data["location"],
            timestamp=int(data["timestamp"]),
            creator=data["creator"],
            status=bool(data.get("status", True)),
        )


@dataclass(frozen=True)
class VarietyUpdate:
    """
    The latest update applied to a variety.

    Only one is kept per variety id; each successful update replaces the
    previous one. The full history of decisions lives in the Journal.
    """
    update_title: str
    update_description: str
    update_timestamp: int
    updater: Principal

    def to_dict(self) -> dict[str, Any]:
        return {
            "update_title": self.update_title,
            "update_description": self.update_description,
            "update_timestamp": self.update_timestamp,
            "updater": self.updater,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VarietyUpdate:
        return cls(
            update_title=data["update_title"],
            update_description=data["update_description"],
            update_timestamp=int(data["update_timestamp"]),
            updater=data["updater"],
        )
