"""
Field Rules - Validation applied to registration and update requests.

Registration checks run in a fixed order and the first failure wins,
so the order of REGISTRATION_RULES is part of the public contract:

    hash -> title -> description -> origin -> category -> climate
    -> yield_potential -> traits -> resistance -> maturity_days -> location

Capacity runs before all of these, and the caller / duplicate-hash /
authority checks run after them; those need registry state and live in
SeedRegistry itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from .errors import ErrorCode
from .transitions import RegistrationRequest
from .varieties import HASH_LENGTH, Category, Climate

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_ORIGIN_LENGTH = 100
MAX_RESISTANCE_LENGTH = 100
MAX_LOCATION_LENGTH = 100
MAX_TRAITS = 10
MAX_MATURITY_DAYS = 365


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class BaseRule(ABC):
    """A single check on one request field."""
    field_name: str
    code: ErrorCode

    @property
    def id(self) -> str:
        return f"variety.{self.field_name}"

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @abstractmethod
    def holds(self, value: Any) -> bool:
        ...

    def check(self, request: RegistrationRequest) -> ErrorCode | None:
        """Return this rule's code if the request violates it."""
        if self.holds(getattr(request, self.field_name)):
            return None
        return self.code


@dataclass(frozen=True)
class HashRule(BaseRule):
    length: int = HASH_LENGTH

    @property
    def description(self) -> str:
        return f"{self.field_name} must be exactly {self.length} bytes"

    def holds(self, value: Any) -> bool:
        return isinstance(value, (bytes, bytearray)) and len(value) == self.length


@dataclass(frozen=True)
class TextRule(BaseRule):
    max_length: int = 100
    required: bool = False

    @property
    def description(self) -> str:
        lower = 1 if self.required else 0
        return f"{self.field_name} must be {lower}..{self.max_length} characters"

    def holds(self, value: Any) -> bool:
        if not isinstance(value, str):
            return False
        if self.required and not value:
            return False
        return len(value) <= self.max_length


@dataclass(frozen=True)
class ChoiceRule(BaseRule):
    choices: type[Enum] = Category

    @property
    def description(self) -> str:
        allowed = ", ".join(member.value for member in self.choices)
        return f"{self.field_name} must be one of: {allowed}"

    def holds(self, value: Any) -> bool:
        try:
            self.choices(value)
        except (ValueError, TypeError):
            return False
        return True


@dataclass(frozen=True)
class RangeRule(BaseRule):
    """Integer strictly above zero and, if given, at most `maximum`."""
    maximum: int | None = None

    @property
    def description(self) -> str:
        if self.maximum is None:
            return f"{self.field_name} must be a positive integer"
        return f"{self.field_name} must be in 1..{self.maximum}"

    def holds(self, value: Any) -> bool:
        if not _is_int(value) or value <= 0:
            return False
        return self.maximum is None or value <= self.maximum


@dataclass(frozen=True)
class ListRule(BaseRule):
    max_items: int = MAX_TRAITS

    @property
    def description(self) -> str:
        return f"{self.field_name} may hold at most {self.max_items} strings"

    def holds(self, value: Any) -> bool:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            return False
        return len(value) <= self.max_items and all(isinstance(item, str) for item in value)


REGISTRATION_RULES: tuple[BaseRule, ...] = (
    HashRule("hash", ErrorCode.INVALID_HASH),
    TextRule("title", ErrorCode.INVALID_TITLE, max_length=MAX_TITLE_LENGTH, required=True),
    TextRule("description", ErrorCode.INVALID_DESCRIPTION, max_length=MAX_DESCRIPTION_LENGTH),
    TextRule("origin", ErrorCode.INVALID_ORIGIN, max_length=MAX_ORIGIN_LENGTH),
    ChoiceRule("category", ErrorCode.INVALID_CATEGORY, choices=Category),
    ChoiceRule("climate", ErrorCode.INVALID_CLIMATE, choices=Climate),
    RangeRule("yield_potential", ErrorCode.INVALID_YIELD),
    ListRule("traits", ErrorCode.INVALID_TRAITS),
    TextRule("resistance", ErrorCode.INVALID_RESISTANCE, max_length=MAX_RESISTANCE_LENGTH),
    RangeRule("maturity_days", ErrorCode.INVALID_MATURITY, maximum=MAX_MATURITY_DAYS),
    TextRule("location", ErrorCode.INVALID_LOCATION, max_length=MAX_LOCATION_LENGTH),
)


def first_violation(
    request: RegistrationRequest,
    rules: Sequence[BaseRule] = REGISTRATION_RULES,
) -> ErrorCode | None:
    """Run rules in order and return the first failing code."""
    for rule in rules:
        code = rule.check(request)
        if code is not None:
            return code
    return None


def valid_update(title: Any, description: Any) -> bool:
    """Whether a new title/description pair is acceptable for an update."""
    return (
        isinstance(title, str)
        and 0 < len(title) <= MAX_TITLE_LENGTH
        and isinstance(description, str)
        and len(description) <= MAX_DESCRIPTION_LENGTH
    )


def list_rules() -> list[dict[str, Any]]:
    """Describe the registration rules in evaluation order."""
    return [
        {
            "id": rule.id,
            "description": rule.description,
            "code": int(rule.code),
        }
        for rule in REGISTRATION_RULES
    ]
