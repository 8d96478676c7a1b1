"""Config module exports."""

from contractscan.config.loader import load_config
from contractscan.config.models import (
    BuilderConfig,
    ClassifierConfig,
    ContractScanConfig,
    DeclarationsConfig,
    EngineConfig,
    LoggingConfig,
    ParsingConfig,
    ResolverConfig,
)

__all__ = [
    "load_config",
    "ContractScanConfig",
    "BuilderConfig",
    "ClassifierConfig",
    "DeclarationsConfig",
    "EngineConfig",
    "LoggingConfig",
    "ParsingConfig",
    "ResolverConfig",
]
