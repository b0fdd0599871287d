"""
Registry Test Fixtures - Shared infrastructure for registry tests.

Provides:
    - Isolated registry instances with in-memory collaborators
    - A known-valid variety that tests vary one field at a time
    - State fingerprints for "nothing changed" assertions
    - Concurrency helpers
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable

import pytest

from seed_registry.registry import (
    CallContext,
    InMemoryAuthoritySet,
    InMemoryLedger,
    RegistryConfig,
    Result,
    SeedRegistry,
)

DEFAULT_CALLER = "ST1TEST"
AUTHORITY = "ST2TEST"


def seed_hash(fill: int, length: int = 32) -> bytes:
    """A hash of `length` bytes all set to `fill`."""
    return bytes([fill]) * length


def valid_fields(**overrides: Any) -> dict[str, Any]:
    """Keyword arguments for a registration that passes every field rule."""
    fields = {
        "seed_hash": seed_hash(1),
        "title": "Tomato Heritage",
        "description": "Red juicy tomatoes",
        "origin": "Italy",
        "category": "vegetable",
        "climate": "temperate",
        "yield_potential": 500,
        "traits": ["drought-resistant"],
        "resistance": "pest-resistant",
        "maturity_days": 90,
        "location": "Farm A",
    }
    fields.update(overrides)
    return fields


# =============================================================================
# Test Harness
# =============================================================================

@dataclass
class RegistryTestHarness:
    """
    Test harness for registry tests.

    Provides:
    - An isolated registry wired to an authority set and ledger
    - Registration with sensible defaults
    - A fingerprint of observable state
    """

    authorities: set[str] = field(default_factory=lambda: {DEFAULT_CALLER})
    config: RegistryConfig = field(default_factory=RegistryConfig)

    verifier: InMemoryAuthoritySet = field(init=False)
    ledger: InMemoryLedger = field(init=False)
    registry: SeedRegistry = field(init=False)

    def __post_init__(self) -> None:
        self.verifier = InMemoryAuthoritySet(self.authorities)
        self.ledger = InMemoryLedger()
        self.registry = SeedRegistry(self.verifier, self.ledger, self.config)

    def ctx(self, caller: str = DEFAULT_CALLER, block_height: int = 0) -> CallContext:
        return CallContext(caller=caller, block_height=block_height)

    def configure_authority(self, principal: str = AUTHORITY) -> Result:
        return self.registry.set_authority_contract(self.ctx(), principal)

    def register(
        self,
        caller: str = DEFAULT_CALLER,
        block_height: int = 0,
        **overrides: Any,
    ) -> Result:
        """Register a valid variety, with any fields overridden."""
        return self.registry.register_variety(
            self.ctx(caller, block_height),
            **valid_fields(**overrides),
        )

    def fingerprint(self) -> dict[str, Any]:
        """Observable state, minus the journal, for before/after comparison."""
        state = self.registry.snapshot()
        state.pop("journal")
        state["transfers"] = [t.to_dict() for t in self.ledger.transfers]
        return state


# =============================================================================
# Concurrency Helpers
# =============================================================================

def parallel(
    operations: list[Callable[[], Any]],
    max_workers: int = 8,
) -> list[Any]:
    """
    Execute operations in parallel and collect results.

    Returns results in the same order as operations.
    """
    results: list[Any] = [None] * len(operations)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(op): i
            for i, op in enumerate(operations)
        }

        for future in as_completed(futures):
            idx = futures[future]
            try:
                results[idx] = future.result()
            except Exception as e:
                results[idx] = e

    return results


def exactly_one(results: list[Any]) -> bool:
    """Check that exactly one result succeeded."""
    return sum(1 for r in results if isinstance(r, Result) and r.ok) == 1


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def harness() -> RegistryTestHarness:
    """An isolated harness with no authority configured."""
    return RegistryTestHarness()


@pytest.fixture
def configured(harness: RegistryTestHarness) -> RegistryTestHarness:
    """A harness whose registry already has AUTHORITY set."""
    assert harness.configure_authority().ok
    return harness


@pytest.fixture
def registry(harness: RegistryTestHarness) -> SeedRegistry:
    return harness.registry


@pytest.fixture
def registered(configured: RegistryTestHarness) -> RegistryTestHarness:
    """A configured harness with one variety (id 0) owned by DEFAULT_CALLER."""
    result = configured.register(block_height=5)
    assert result.ok and result.value == 0
    return configured
