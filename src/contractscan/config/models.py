"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CONTRACTSCAN__SECTION__KEY)
3. Repo YAML (.contractscan/config.yaml)
4. Global YAML (~/.config/contractscan/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    CONTRACTSCAN__<SECTION>__<KEY>=<VALUE>

Examples:
    CONTRACTSCAN__LOGGING__LEVEL=DEBUG
    CONTRACTSCAN__BUILDER__ROOT_NAME=v
    CONTRACTSCAN__ENGINE__MAX_WORKERS=8
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CONTRACTSCAN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every resolution step.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ParsingConfig(BaseModel):
    """Tree-sitter front end configuration.

    Env vars:
        CONTRACTSCAN__PARSING__MAX_ERROR_RATIO: Tolerated share of error nodes
    """

    max_error_ratio: float = Field(
        default=0.0,
        description="Share of ERROR/missing nodes tolerated before a file counts as "
        "unparseable. 0.0 rejects any syntax error; 1.0 accepts every tree.",
    )

    @field_validator("max_error_ratio")
    @classmethod
    def validate_ratio(cls, v: float) -> float:
        if not (0.0 <= v <= 1.0):
            raise ValueError(f"max_error_ratio must be within 0.0-1.0, got {v}")
        return v


class BuilderConfig(BaseModel):
    """Validation-builder recognition.

    Env vars:
        CONTRACTSCAN__BUILDER__ROOT_NAME: Namespace identifier of the builder library
    """

    root_name: str = Field(
        default="z",
        description="Identifier every builder chain starts from (z.object(...)).",
    )
    schema_constructors: list[str] = Field(
        default_factory=lambda: ["object", "enum", "array"],
        description="Constructors that produce a top-level schema.",
    )
    optional_markers: list[str] = Field(
        default_factory=lambda: ["optional", "nullable", "nullish"],
        description="Chain methods that make a field optional.",
    )
    constraint_methods: list[str] = Field(
        default_factory=lambda: ["min", "max", "email", "url", "uuid", "length"],
        description="Chain methods recorded as validation constraints.",
    )
    validation_calls: list[str] = Field(
        default_factory=lambda: ["parse", "safeParse", "parseAsync", "safeParseAsync"],
        description="Methods whose invocation on an identifier marks it as a validated schema.",
    )


class DeclarationsConfig(BaseModel):
    """Interface / type alias / enum extraction."""

    max_type_length: int = Field(
        default=30,
        description="Annotated type text is truncated to this many characters.",
    )


class ResolverConfig(BaseModel):
    """Import resolution configuration.

    ``aliases`` maps an import prefix to the directories (relative to the
    project root) it stands for. ``fallback_candidates`` are tried for
    specifiers that are neither relative nor aliased; ``{dir}`` is the
    importing file's directory, ``{root}`` the project root and ``{name}``
    the requested schema name.
    """

    aliases: dict[str, list[str]] = Field(
        default_factory=lambda: {"@/": ["src", "."], "~/": ["src", "."]},
    )
    extensions: list[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx", ".mts", ".mjs"],
    )
    index_names: list[str] = Field(default_factory=lambda: ["index"])
    fallback_candidates: list[str] = Field(
        default_factory=lambda: [
            "{dir}/schemas/{name}.ts",
            "{dir}/schemas.ts",
            "{root}/src/schemas/{name}.ts",
            "{root}/lib/schemas/{name}.ts",
        ],
    )

    @field_validator("extensions")
    @classmethod
    def validate_extensions(cls, v: list[str]) -> list[str]:
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]


class ClassifierConfig(BaseModel):
    """Contract role heuristics. Keywords match case-insensitively."""

    query_keywords: list[str] = Field(default_factory=lambda: ["query", "search", "params"])
    response_keywords: list[str] = Field(
        default_factory=lambda: ["response", "output", "result"]
    )
    request_keywords: list[str] = Field(
        default_factory=lambda: ["body", "request", "input", "create", "update"]
    )
    inbound_hints: list[str] = Field(
        default_factory=lambda: [
            "req.body",
            "request.body",
            "req.json()",
            "request.json()",
            "request.formData()",
            "ctx.request.body",
        ],
        description="Substrings that indicate the file reads an inbound payload.",
    )


class EngineConfig(BaseModel):
    """Engine execution configuration.

    Env vars:
        CONTRACTSCAN__ENGINE__MAX_WORKERS: Threads used by scan_many
    """

    max_workers: int = Field(
        default=4,
        description="Parallel file scans. Tree-sitter parsers are held per thread.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class ContractScanConfig(BaseModel):
    """Root configuration for ContractScan."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    builder: BuilderConfig = Field(default_factory=BuilderConfig)
    declarations: DeclarationsConfig = Field(default_factory=DeclarationsConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
