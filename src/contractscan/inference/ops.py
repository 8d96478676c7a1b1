"""High-level orchestration of schema inference.

This module implements the ResolutionEngine - the entry point for all
schema operations. It owns the state of one resolution run:

- cache: absolute path -> SchemaMap, shared by all threads, write-once
- in-flight set: paths being resolved by the current thread (cycle guard)
- stats: parse / cache / cycle counters

Per-file flow:
parse -> builder + declaration extraction -> usage sites -> imports
-> resolve imported-but-not-local validated names (recursively, cached)
"""

from __future__ import annotations

import contextvars
import os
import threading
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from contractscan.config.models import ContractScanConfig
from contractscan.core.errors import SchemaParseError
from contractscan.core.logging import clear_scan_id, get_logger, get_scan_id, set_scan_id
from contractscan.inference._internal.adapters.builder import BuilderSchemaParser
from contractscan.inference._internal.adapters.declarations import (
    DECLARATION_TYPES,
    DeclarationAdapter,
)
from contractscan.inference._internal.adapters.sdl import parse_sdl
from contractscan.inference._internal.chain import decompose
from contractscan.inference._internal.parsing import ParseResult, TreeSitterParser, node_text
from contractscan.inference._internal.resolution import (
    InFlightSet,
    ResolutionCache,
    absolute_path,
    candidate_paths,
)
from contractscan.inference._internal.walker import iter_nodes
from contractscan.inference.classifier import ContractRoleClassifier
from contractscan.inference.models import ContractBinding, SchemaDefinition, SchemaMap

log = structlog.get_logger(__name__)

SDL_EXTENSIONS = frozenset({".graphql", ".gql", ".graphqls"})


@dataclass
class ResolutionStats:
    """Statistics from one resolution run."""

    files_parsed: int = 0
    parse_failures: int = 0
    cache_hits: int = 0
    cycles_broken: int = 0
    unresolved: int = 0
    parse_counts: Counter[str] = field(default_factory=Counter)


class ResolutionEngine:
    """Schema inference over (content, path) inputs with cross-file resolution.

    One engine is one resolution run: its cache lives as long as the engine,
    so files edited between runs need a fresh engine.

    Usage::

        engine = ResolutionEngine(project_root=repo)
        schema_map = engine.scan_file(source, "src/app/api/users/route.ts")
        binding = engine.bind_contracts(source, "src/app/api/users/route.ts")
    """

    def __init__(
        self,
        config: ContractScanConfig | None = None,
        project_root: str | Path | None = None,
        parser: TreeSitterParser | None = None,
    ) -> None:
        self._config = config or ContractScanConfig()
        self._project_root = absolute_path(project_root or Path.cwd())
        self._parser = parser or TreeSitterParser(
            max_error_ratio=self._config.parsing.max_error_ratio
        )
        self._builder = BuilderSchemaParser(self._config.builder)
        self._declarations = DeclarationAdapter(self._config.declarations)
        self._classifier = ContractRoleClassifier(self._config.classifier)
        self._validation_calls = frozenset(self._config.builder.validation_calls)

        self._cache = ResolutionCache()
        self._in_flight = InFlightSet()
        self._stats = ResolutionStats()
        self._stats_lock = threading.Lock()

    @property
    def project_root(self) -> str:
        return self._project_root

    @property
    def cache(self) -> ResolutionCache:
        return self._cache

    @property
    def stats(self) -> ResolutionStats:
        return self._stats

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def scan_file(self, content: str, path: str | Path) -> SchemaMap:
        """Extract every schema declared in, or resolved into, one source file.

        The given content is always parsed; the result is cached for later
        imports of the same path unless an entry already exists.
        """
        abs_path = absolute_path(path)
        self._in_flight.add(abs_path)
        try:
            schema_map = self._derive(content, abs_path)
        finally:
            self._in_flight.discard(abs_path)
        self._cache.put_if_absent(abs_path, schema_map)
        return schema_map

    def scan_sdl(self, content: str, path: str | Path) -> SchemaMap:
        """Extract object, input and enum types from GraphQL SDL text."""
        abs_path = absolute_path(path)
        self._count_parse(abs_path)
        schema_map = parse_sdl(content, abs_path)
        if not schema_map and content.strip():
            log.debug("sdl_without_types", path=abs_path)
        return schema_map

    def scan_many(self, files: Iterable[tuple[str | Path, str]]) -> dict[str, SchemaMap]:
        """Scan ``(path, content)`` pairs in parallel.

        SDL files (``.graphql``/``.gql``) go through the SDL adapter, the
        rest through ``scan_file``. Results are keyed by absolute path in
        input order.

        A scan id is set for the duration of the call when none is active.
        """
        items = [(absolute_path(p), content) for p, content in files]
        owns_scan_id = get_scan_id() is None
        if owns_scan_id:
            set_scan_id()

        results: dict[str, SchemaMap] = {}
        try:
            with ThreadPoolExecutor(
                max_workers=self._config.engine.max_workers,
                thread_name_prefix="contractscan-scan",
            ) as executor:
                futures = [
                    (
                        path,
                        # Each task gets its own context copy so the scan id follows it
                        executor.submit(
                            contextvars.copy_context().run, self._scan_any, content, path
                        ),
                    )
                    for path, content in items
                ]
                for path, future in futures:
                    results[path] = future.result()

            get_logger("scan").info(
                "scan_many_complete",
                files=len(items),
                files_parsed=self._stats.files_parsed,
                cache_hits=self._stats.cache_hits,
                parse_failures=self._stats.parse_failures,
            )
        finally:
            if owns_scan_id:
                clear_scan_id()
        return results

    def resolve_schema(
        self, name: str, module_path: str, from_file: str | Path
    ) -> SchemaDefinition | None:
        """Find the schema ``name`` exported by ``module_path`` as seen from ``from_file``.

        ``name`` is the exported name (``"default"`` for default imports).
        Returns None when no candidate file defines it, including when the
        only definition sits on a path already being resolved (a cycle).
        """
        from_abs = absolute_path(from_file)
        schema = self._resolve(name, module_path, from_abs)
        if schema is None:
            self._bump("unresolved")
            log.debug("import_unresolved", name=name, module=module_path, from_file=from_abs)
        return schema

    def bind_contracts(self, content: str, path: str | Path) -> ContractBinding:
        """Scan a route file and bind its schemas to request/response/query roles."""
        schema_map = self.scan_file(content, path)
        return self._classifier.classify(schema_map, content)

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _scan_any(self, content: str, path: str) -> SchemaMap:
        if Path(path).suffix.lower() in SDL_EXTENSIONS:
            return self.scan_sdl(content, path)
        return self.scan_file(content, path)

    def _derive(self, content: str, abs_path: str) -> SchemaMap:
        """Build the SchemaMap of one file. Caller holds ``abs_path`` in flight."""
        self._count_parse(abs_path)
        try:
            result = self._parser.parse(Path(abs_path), content.encode("utf-8"))
        except SchemaParseError as e:
            self._bump("parse_failures")
            log.debug("schema_parse_failed", path=abs_path, error=e.error_name, reason=e.message)
            return SchemaMap.empty(abs_path)

        schemas: dict[str, SchemaDefinition] = {}
        validated: set[str] = set()
        self._collect_local(result, schemas, validated)

        imports = self._parser.extract_imports(result)
        exports = self._parser.extract_exports(result, imports)

        default_export = exports.default_export
        if exports.default_value is not None:
            schema = self._builder.parse_schema(exports.default_value, name="default")
            if schema is not None:
                schemas["default"] = schema
                default_export = "default"

        for binding in imports:
            if binding.is_type_only or binding.local_name in schemas:
                continue
            if binding.local_name not in validated:
                continue
            resolved = self.resolve_schema(binding.exported_name, binding.module_path, abs_path)
            if resolved is not None:
                schemas[binding.local_name] = resolved

        return SchemaMap.build(
            abs_path,
            schemas,
            reexports=exports.reexports,
            default_export=default_export,
            validated_names=validated,
        )

    def _collect_local(
        self,
        result: ParseResult,
        schemas: dict[str, SchemaDefinition],
        validated: set[str],
    ) -> None:
        """Builder declarations, type declarations and validation usage sites."""
        declarations_allowed = result.has_type_declarations

        for node in iter_nodes(result.root_node):
            node_type = node.type
            if node_type == "variable_declarator":
                name_node = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
                if name_node is None or name_node.type != "identifier" or value is None:
                    continue
                name = node_text(name_node)
                schema = self._builder.parse_schema(value, name=name)
                if schema is not None:
                    schemas[name] = schema
            elif declarations_allowed and node_type in DECLARATION_TYPES:
                parsed = self._declarations.parse_declaration(node)
                if parsed is not None:
                    # A builder schema of the same name takes precedence
                    schemas.setdefault(parsed[0], parsed[1])
            elif node_type == "call_expression":
                chain = decompose(node)
                if chain.root is not None and chain.methods and chain.last in self._validation_calls:
                    validated.add(chain.root)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _resolve(self, name: str, module_path: str, from_file: str) -> SchemaDefinition | None:
        candidates = candidate_paths(
            module_path, from_file, name, self._project_root, self._config.resolver
        )
        for candidate in candidates:
            path = str(candidate)
            if path in self._in_flight:
                self._bump("cycles_broken")
                self._in_flight.note_cycle(path)
                log.debug("resolution_cycle", path=path, name=name, from_file=from_file)
                continue
            # Unstattable candidates (ENAMETOOLONG, EACCES) count as missing
            if not os.path.isfile(path):
                continue

            self._in_flight.add(path)
            try:
                schema_map = self._load(path)
                if schema_map is None:
                    continue
                schema = schema_map.get(name)
                if schema is None:
                    schema = self._follow_reexports(schema_map, name)
            finally:
                self._in_flight.discard(path)

            if schema is not None:
                return schema
        return None

    def _load(self, path: str) -> SchemaMap | None:
        """Cached SchemaMap of ``path``, derived from disk on first use.

        A map cut short by a cycle is returned but not cached.
        """
        cached = self._cache.get(path)
        if cached is not None:
            self._bump("cache_hits")
            log.debug("schema_cache_hit", path=path)
            return cached
        try:
            content = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.debug("schema_read_failed", path=path, error=str(e))
            return None
        with self._in_flight.deriving(path) as derivation:
            schema_map = self._derive(content, path)
        if derivation.cut_short:
            log.debug("schema_cache_skipped", path=path, reason="cycle")
            return schema_map
        return self._cache.put_if_absent(path, schema_map)

    def _follow_reexports(self, schema_map: SchemaMap, name: str) -> SchemaDefinition | None:
        for reexport in schema_map.reexports:
            source_name = reexport.forwards(name)
            if source_name is None:
                continue
            schema = self._resolve(source_name, reexport.module_path, schema_map.path)
            if schema is not None:
                return schema
        return None

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def _count_parse(self, path: str) -> None:
        with self._stats_lock:
            self._stats.files_parsed += 1
            self._stats.parse_counts[path] += 1

    def _bump(self, counter: str, amount: int = 1) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + amount)

    def stats_dict(self) -> dict[str, Any]:
        with self._stats_lock:
            return {
                "files_parsed": self._stats.files_parsed,
                "parse_failures": self._stats.parse_failures,
                "cache_hits": self._stats.cache_hits,
                "cycles_broken": self._stats.cycles_broken,
                "unresolved": self._stats.unresolved,
                "cached_files": len(self._cache),
            }
