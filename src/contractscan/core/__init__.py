"""Core module exports."""

from contractscan.core.errors import (
    ConfigError,
    ContractScanError,
    ErrorCode,
    SchemaParseError,
)
from contractscan.core.logging import (
    clear_scan_id,
    configure_logging,
    get_logger,
    get_scan_id,
    set_scan_id,
)

__all__ = [
    # Errors
    "ContractScanError",
    "ConfigError",
    "ErrorCode",
    "SchemaParseError",
    # Logging
    "clear_scan_id",
    "configure_logging",
    "get_logger",
    "get_scan_id",
    "set_scan_id",
]
