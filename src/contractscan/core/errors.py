"""ContractScan error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse

Only ``ConfigError`` is expected to reach callers. Parse errors are raised by
the tree-sitter front end and recovered by the engine (the file yields an
empty schema map).
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    PARSE_UNSUPPORTED_LANGUAGE = 3001
    PARSE_GRAMMAR_UNAVAILABLE = 3002
    PARSE_SYNTAX_ERROR = 3003


@dataclass(frozen=True, slots=True)
class ContractScanError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ContractScanError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class SchemaParseError(ContractScanError):
    """A source file could not be turned into a usable syntax tree."""

    @classmethod
    def unsupported_language(cls, path: str) -> "SchemaParseError":
        return cls(
            code=ErrorCode.PARSE_UNSUPPORTED_LANGUAGE,
            message=f"Unsupported file extension: {path}",
            details={"path": path},
        )

    @classmethod
    def grammar_unavailable(cls, language: str) -> "SchemaParseError":
        return cls(
            code=ErrorCode.PARSE_GRAMMAR_UNAVAILABLE,
            message=f"Language not available: {language}",
            details={"language": language},
        )

    @classmethod
    def syntax_error(cls, path: str, error_count: int, total_nodes: int) -> "SchemaParseError":
        return cls(
            code=ErrorCode.PARSE_SYNTAX_ERROR,
            message=f"Syntax errors in {path}: {error_count} of {total_nodes} nodes",
            details={"path": path, "error_count": error_count, "total_nodes": total_nodes},
        )

