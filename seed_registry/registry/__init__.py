"""
Seed Registry Module - Authority-gated variety registration

This module holds the registry state machine:
- Field validation with stable, ordered error codes
- Duplicate-hash rejection through a co-maintained hash index
- Fee transfer to the configured authority on registration
- Creator-only updates of title and description
- A journal of every allowed and denied decision

External capabilities are injected, never owned:
- AuthorityVerifier: "is this caller allowed to register?"
- ValueTransfer: moves the registration fee on the host ledger

Architecture:
    ┌──────────────────────────────────────────────┐
    │                 SeedRegistry                 │
    │  - one lock around every operation           │
    │  - field rules, then state checks            │
    │  - VarietyStore (id -> record, hash -> id)   │
    │  - Journal (append-only decisions)           │
    └───────────┬──────────────────────┬───────────┘
                │                      │
                ▼                      ▼
        AuthorityVerifier        ValueTransfer
"""

from .config import BURN_PRINCIPAL, RegistryConfig
from .collaborators import (
    AuthorityVerifier,
    InMemoryAuthoritySet,
    InMemoryLedger,
    Transfer,
    ValueTransfer,
)
from .errors import (
    ConfigError,
    ErrorCode,
    SeedRegistryError,
    SnapshotError,
    TransferCode,
)
from .journal import Journal, JournalEntry
from .registry import SeedRegistry
from .rules import REGISTRATION_RULES, first_violation, list_rules
from .store import VarietyStore
from .transitions import CallContext, RegistrationRequest, RegistryAction, Result
from .varieties import HASH_LENGTH, Category, Climate, Principal, Variety, VarietyUpdate

__all__ = [
    # Registry
    "SeedRegistry",
    "VarietyStore",
    "RegistryConfig",
    "BURN_PRINCIPAL",
    # Records
    "Variety",
    "VarietyUpdate",
    "Category",
    "Climate",
    "Principal",
    "HASH_LENGTH",
    # Calls
    "CallContext",
    "RegistrationRequest",
    "RegistryAction",
    "Result",
    # Rules
    "REGISTRATION_RULES",
    "first_violation",
    "list_rules",
    # Collaborators
    "AuthorityVerifier",
    "ValueTransfer",
    "InMemoryAuthoritySet",
    "InMemoryLedger",
    "Transfer",
    # Journal
    "Journal",
    "JournalEntry",
    # Errors
    "ErrorCode",
    "TransferCode",
    "SeedRegistryError",
    "ConfigError",
    "SnapshotError",
]
