"""
Adapters module - I/O surfaces.

Adapters are thin wrappers that forward to SeedRegistry.
They hold no registry logic - only I/O.
"""

from seed_registry.adapters.cli import main

__all__ = ["main"]
