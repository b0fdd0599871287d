"""
Registry configuration.

Defaults match the deployed registry: 10,000 varieties at a fee of 500.
Settings can come from a YAML/JSON file, from SEED_REGISTRY_* environment
variables, or straight from the constructor.

Example config.yaml:
    max_varieties: 10000
    registration_fee: 500
    strict_fee_authority: false
    authorities:
      - ST1TEST
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# The ledger's null principal; fees sent here are unrecoverable
BURN_PRINCIPAL = "SP000000000000000000002Q6VF78"

ENV_PREFIX = "SEED_REGISTRY_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class RegistryConfig:
    """Seed registry configuration."""
    max_varieties: int = 10000
    registration_fee: int = 500
    burn_principal: str = BURN_PRINCIPAL

    # Require the fee setter to be the configured authority
    strict_fee_authority: bool = False

    # Principals the in-memory verifier accepts (CLI and tests)
    authorities: list[str] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.max_varieties, bool) or not isinstance(self.max_varieties, int):
            raise ConfigError("max_varieties must be an integer", field_name="max_varieties")
        if self.max_varieties <= 0:
            raise ConfigError(
                f"max_varieties must be positive, got {self.max_varieties}",
                field_name="max_varieties",
            )
        if isinstance(self.registration_fee, bool) or not isinstance(self.registration_fee, int):
            raise ConfigError("registration_fee must be an integer", field_name="registration_fee")
        if self.registration_fee < 0:
            raise ConfigError(
                f"registration_fee must not be negative, got {self.registration_fee}",
                field_name="registration_fee",
            )
        if not self.burn_principal:
            raise ConfigError("burn_principal must be non-empty", field_name="burn_principal")
        if not isinstance(self.authorities, (list, tuple)):
            raise ConfigError(
                f"authorities must be a list of principals, got {type(self.authorities).__name__}",
                field_name="authorities",
            )
        self.authorities = [str(a) for a in self.authorities]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RegistryConfig:
        """
        Build a config from a mapping, rejecting unknown keys.

        Raises:
            ConfigError: on unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown config keys: {', '.join(unknown)}",
                details={"unknown": unknown},
            )
        return cls(**dict(data))

    @classmethod
    def from_file(cls, path: str | Path) -> RegistryConfig:
        """
        Load config from a .yaml/.yml or .json file.

        Raises:
            ConfigError: if the file is unreadable or malformed
        """
        path = Path(path)

        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif path.suffix == ".json":
                    data = json.load(f)
                else:
                    raise ConfigError(f"Unsupported config format: {path.suffix}")
        except OSError as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Malformed config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a mapping")

        logger.debug("Loaded registry config from %s", path)
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RegistryConfig:
        """
        Build config from SEED_REGISTRY_* environment variables.

        SEED_REGISTRY_CONFIG names a file to start from; the remaining
        variables override single settings:
            SEED_REGISTRY_MAX_VARIETIES
            SEED_REGISTRY_REGISTRATION_FEE
            SEED_REGISTRY_STRICT_FEE_AUTHORITY
            SEED_REGISTRY_AUTHORITIES          comma-separated
        """
        env = os.environ if environ is None else environ

        config_path = env.get(f"{ENV_PREFIX}CONFIG")
        data = cls.from_file(config_path).to_dict() if config_path else {}

        try:
            if f"{ENV_PREFIX}MAX_VARIETIES" in env:
                data["max_varieties"] = int(env[f"{ENV_PREFIX}MAX_VARIETIES"])
            if f"{ENV_PREFIX}REGISTRATION_FEE" in env:
                data["registration_fee"] = int(env[f"{ENV_PREFIX}REGISTRATION_FEE"])
        except ValueError as e:
            raise ConfigError(f"Invalid integer in environment: {e}") from e

        if f"{ENV_PREFIX}STRICT_FEE_AUTHORITY" in env:
            flag = env[f"{ENV_PREFIX}STRICT_FEE_AUTHORITY"].strip().lower()
            data["strict_fee_authority"] = flag in _TRUE_VALUES
        if f"{ENV_PREFIX}AUTHORITIES" in env:
            raw = env[f"{ENV_PREFIX}AUTHORITIES"]
            data["authorities"] = [a.strip() for a in raw.split(",") if a.strip()]

        return cls.from_dict(data)
