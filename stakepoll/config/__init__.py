"""
StakePoll Configuration

Loads config.toml at startup. Environment variables override TOML values.
"""

from .loader import (
    ContractSectionConfig,
    LoggingConfig,
    SQLiteConfig,
    StakePollConfig,
    StoreConfig,
    load_config,
)

__all__ = [
    "ContractSectionConfig",
    "LoggingConfig",
    "SQLiteConfig",
    "StakePollConfig",
    "StoreConfig",
    "load_config",
]
