"""ContractScan - schema inference for API contracts in JS/TS codebases."""

from contractscan.config import ContractScanConfig, load_config
from contractscan.core import ConfigError, ContractScanError, SchemaParseError, configure_logging
from contractscan.inference import (
    ContractBinding,
    FieldDescriptor,
    ResolutionEngine,
    SchemaDefinition,
    SchemaMap,
)

__version__ = "0.1.0"

__all__ = [
    "ResolutionEngine",
    "ContractBinding",
    "FieldDescriptor",
    "SchemaDefinition",
    "SchemaMap",
    "ContractScanConfig",
    "load_config",
    "configure_logging",
    "ContractScanError",
    "ConfigError",
    "SchemaParseError",
]
