"""
StakePoll TOML Configuration Loader

Loads every section of config.toml with environment variable overrides.

Environment variable mapping:
    [contract] denom    → STAKEPOLL_DENOM
    [contract] owner    → STAKEPOLL_OWNER
    [contract] address  → STAKEPOLL_CONTRACT_ADDRESS
    [store] backend     → STAKEPOLL_STORE_BACKEND
    [store.sqlite] path → STAKEPOLL_DB_PATH
    [logging] level     → STAKEPOLL_LOG_LEVEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import VALID_ADDRESS_PATTERN, VOTING_TOKEN

logger = logging.getLogger(__name__)

STORE_BACKENDS = ("memory", "sqlite")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ContractSectionConfig:
    """[contract] section."""
    denom: str = VOTING_TOKEN
    owner: str = "owner"
    address: str = "stakepollcontract"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractSectionConfig":
        return cls(
            denom=data.get("denom", VOTING_TOKEN),
            owner=data.get("owner", "owner"),
            address=data.get("address", "stakepollcontract"),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("STAKEPOLL_DENOM"):
            self.denom = v
        if v := os.environ.get("STAKEPOLL_OWNER"):
            self.owner = v
        if v := os.environ.get("STAKEPOLL_CONTRACT_ADDRESS"):
            self.address = v


# -- Store --------------------------------------------------------------

@dataclass
class SQLiteConfig:
    """[store.sqlite]."""
    path: str = "data/stakepoll.db"
    wal_mode: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SQLiteConfig":
        return cls(
            path=data.get("path", "data/stakepoll.db"),
            wal_mode=data.get("wal_mode", True),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("STAKEPOLL_DB_PATH"):
            self.path = v


@dataclass
class StoreConfig:
    """[store] section."""
    backend: str = "memory"
    sqlite: SQLiteConfig = field(default_factory=SQLiteConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoreConfig":
        return cls(
            backend=data.get("backend", "memory"),
            sqlite=SQLiteConfig.from_dict(data.get("sqlite", {})),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("STAKEPOLL_STORE_BACKEND"):
            self.backend = v
        self.sqlite.apply_env()


# -- Logging ------------------------------------------------------------

@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(level=str(data.get("level", "INFO")).upper())

    def apply_env(self) -> None:
        if v := os.environ.get("STAKEPOLL_LOG_LEVEL"):
            self.level = v.upper()


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class StakePollConfig:
    """
    Unified configuration.

    Loads every section of config.toml and applies environment variable
    overrides.
    """
    contract: ContractSectionConfig = field(default_factory=ContractSectionConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StakePollConfig":
        """Create StakePollConfig from a parsed TOML dict."""
        return cls(
            contract=ContractSectionConfig.from_dict(data.get("contract", {})),
            store=StoreConfig.from_dict(data.get("store", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "StakePollConfig":
        """
        Load configuration from a TOML file.

        Args:
            config_path: Path to config.toml

        Returns:
            StakePollConfig instance (defaults if the file does not exist)
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        with open(path, "rb") as f:
            raw = tomli.load(f)

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        self.contract.apply_env()
        self.store.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Returns:
            True if all valid

        Raises:
            ValueError: on invalid config
        """
        if not self.contract.denom:
            raise ValueError("contract.denom must not be empty")
        for name in ("owner", "address"):
            value = getattr(self.contract, name)
            if not VALID_ADDRESS_PATTERN.match(value):
                raise ValueError(f"Invalid contract.{name}: {value!r}")
        if self.store.backend not in STORE_BACKENDS:
            raise ValueError(f"Unsupported store backend: {self.store.backend}")
        if self.store.backend == "sqlite" and not self.store.sqlite.path:
            raise ValueError("store.sqlite.path must be set for the sqlite backend")
        if self.logging.level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.logging.level}")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "contract": {
                "denom": self.contract.denom,
                "owner": self.contract.owner,
                "address": self.contract.address,
            },
            "store": {
                "backend": self.store.backend,
                "sqlite": {
                    "path": self.store.sqlite.path,
                    "wal_mode": self.store.sqlite.wal_mode,
                },
            },
            "logging": {
                "level": self.logging.level,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> StakePollConfig:
    """
    Load configuration.

    Resolution order:
        1. Explicit *path* argument
        2. STAKEPOLL_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("STAKEPOLL_CONFIG", "config.toml")

    return StakePollConfig.from_file(path)
