"""
Seed Registry - Authority-gated registry of seed varieties.

Each variety is content-addressed by a 32-byte hash. Registration is
open only to callers an external authority oracle vouches for, and
costs a fee paid to the configured authority.

Public API (stable):
    SeedRegistry        - The registry. All state changes go through it.
    CallContext         - Caller identity and block height for one call.
    Result              - Returned by every operation; failures are values.
    ErrorCode           - Stable numeric codes (100-118).
    RegistryConfig      - Capacity, fee and authority settings.
    InMemoryAuthoritySet, InMemoryLedger
                        - In-process collaborators for tests and the CLI.

Example:
    from seed_registry import (
        CallContext, InMemoryAuthoritySet, InMemoryLedger, SeedRegistry,
    )

    ledger = InMemoryLedger()
    registry = SeedRegistry(InMemoryAuthoritySet({"ST1TEST"}), ledger)
    registry.set_authority_contract(CallContext("ST1TEST"), "ST2TEST")

    result = registry.register_variety(
        CallContext("ST1TEST"), bytes(32), "Tomato Heritage", "", "Italy",
        "vegetable", "temperate", 500, [], "", 90, "Farm A",
    )
    assert result.ok and result.value == 0
    assert ledger.transfers[0].amount == 500
"""

from seed_registry.registry import (
    BURN_PRINCIPAL,
    RegistryConfig,
    AuthorityVerifier,
    CallContext,
    Category,
    Climate,
    ConfigError,
    ErrorCode,
    InMemoryAuthoritySet,
    InMemoryLedger,
    Journal,
    JournalEntry,
    RegistrationRequest,
    Result,
    SeedRegistry,
    SeedRegistryError,
    SnapshotError,
    Transfer,
    TransferCode,
    ValueTransfer,
    Variety,
    VarietyUpdate,
)

__version__ = "1.0.0"

__all__ = [
    "SeedRegistry",
    "CallContext",
    "RegistrationRequest",
    "Result",
    "Variety",
    "VarietyUpdate",
    "Category",
    "Climate",
    "RegistryConfig",
    "BURN_PRINCIPAL",
    "AuthorityVerifier",
    "ValueTransfer",
    "InMemoryAuthoritySet",
    "InMemoryLedger",
    "Transfer",
    "Journal",
    "JournalEntry",
    "ErrorCode",
    "TransferCode",
    "SeedRegistryError",
    "ConfigError",
    "SnapshotError",
    "__version__",
]
