"""Import specifier -> file path candidates, plus the resolution state.

Candidate generation covers the three conventions found in JS/TS projects:

- relative specifiers (``./schemas/user``) against the importing file's
  directory, with source extensions and ``index`` files;
- alias prefixes (``@/schemas/user``) against configured root directories;
- anything else falls back to conventional schema locations.

``ResolutionCache`` and ``InFlightSet`` are the only shared mutable state of
a resolution run. The cache is shared by all threads and written once per
key; the in-flight set is per thread, since it describes one resolution
chain and a concurrent scan of the same file is not a cycle.

A map derived while a cycle was broken on a file higher up the chain is
missing that file's schemas; ``Derivation.cut_short`` flags it so the engine
can leave it out of the cache.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from contractscan.config.models import ResolverConfig
from contractscan.inference.models import SchemaMap

# Explicit ESM-style extensions that usually point at a TypeScript source
_COMPILED_TO_SOURCE: dict[str, tuple[str, ...]] = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
}


def absolute_path(path: str | Path) -> str:
    """Normalized absolute path string used as the cache / in-flight key."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def is_relative_specifier(module_path: str) -> bool:
    return module_path == "." or module_path == ".." or module_path.startswith(("./", "../"))


def _expand(base: Path, config: ResolverConfig) -> list[Path]:
    """File candidates for an extensionless (or ESM-style) module base path."""
    candidates: list[Path] = []
    suffix = base.suffix.lower()
    if suffix in config.extensions:
        candidates.append(base)
        for replacement in _COMPILED_TO_SOURCE.get(suffix, ()):
            candidates.append(base.with_suffix(replacement))
    candidates.extend(Path(f"{base}{ext}") for ext in config.extensions)
    candidates.extend(
        base / f"{index}{ext}" for index in config.index_names for ext in config.extensions
    )
    return candidates


def candidate_paths(
    module_path: str,
    from_file: str | Path,
    name: str,
    project_root: str | Path,
    config: ResolverConfig,
) -> list[Path]:
    """Ordered, de-duplicated absolute file paths that may define ``module_path``.

    Args:
        module_path: Import specifier as written (``./user``, ``@/schemas``).
        from_file: File containing the import.
        name: Requested schema name (used by fallback templates).
        project_root: Root that aliases and fallbacks resolve against.
        config: Resolver configuration.

    Examples:
        >>> [p.name for p in candidate_paths("./user", "/app/api/route.ts", "U", "/app", cfg)][:2]
        ['user.ts', 'user.tsx']
    """
    from_dir = Path(absolute_path(from_file)).parent
    root = Path(absolute_path(project_root))
    candidates: list[Path] = []

    if is_relative_specifier(module_path):
        candidates.extend(_expand(from_dir / module_path, config))
    else:
        matched_alias = False
        for prefix, roots in config.aliases.items():
            if not module_path.startswith(prefix):
                continue
            matched_alias = True
            relative = module_path[len(prefix) :]
            for root_dir in roots:
                candidates.extend(_expand(root / root_dir / relative, config))
        if not matched_alias:
            for template in config.fallback_candidates:
                candidates.append(
                    Path(template.format(dir=from_dir, root=root, name=name))
                )

    seen: set[str] = set()
    unique: list[Path] = []
    for candidate in candidates:
        key = absolute_path(candidate)
        if key not in seen:
            seen.add(key)
            unique.append(Path(key))
    return unique


class ResolutionCache:
    """Absolute path -> SchemaMap, write-once per key.

    Derivation is deterministic, so two threads racing on the same key at
    worst duplicate work; the first stored map wins.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SchemaMap] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> SchemaMap | None:
        with self._lock:
            return self._entries.get(path)

    def put_if_absent(self, path: str, schema_map: SchemaMap) -> SchemaMap:
        """Store ``schema_map`` unless the key exists; return the stored entry."""
        with self._lock:
            return self._entries.setdefault(path, schema_map)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass
class Derivation:
    """Cycle record of one file derivation at ``depth`` in the chain."""

    depth: int
    cycle_floor: int | None = None  # Shallowest in-flight path hit as a cycle

    @property
    def cut_short(self) -> bool:
        return self.cycle_floor is not None and self.cycle_floor < self.depth


@dataclass
class _Chain:
    depths: dict[str, int] = field(default_factory=dict)
    cycle_floor: int | None = None


def _lower(a: int | None, b: int | None) -> int | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


class InFlightSet:
    """Paths currently being resolved by the calling thread, in chain order."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _chain(self) -> _Chain:
        chain: _Chain | None = getattr(self._local, "chain", None)
        if chain is None:
            chain = _Chain()
            self._local.chain = chain
        return chain

    def add(self, path: str) -> None:
        depths = self._chain().depths
        depths.setdefault(path, len(depths))

    def discard(self, path: str) -> None:
        chain = self._chain()
        chain.depths.pop(path, None)
        if not chain.depths:
            chain.cycle_floor = None

    def note_cycle(self, path: str) -> None:
        """Record that resolution ran into ``path`` while it was in flight."""
        chain = self._chain()
        chain.cycle_floor = _lower(chain.cycle_floor, chain.depths.get(path))

    @contextmanager
    def deriving(self, path: str) -> Iterator[Derivation]:
        """Track the cycles broken while deriving the in-flight ``path``."""
        chain = self._chain()
        derivation = Derivation(depth=chain.depths.get(path, len(chain.depths)))
        outer_floor = chain.cycle_floor
        chain.cycle_floor = None
        try:
            yield derivation
        finally:
            derivation.cycle_floor = chain.cycle_floor
            chain.cycle_floor = _lower(outer_floor, chain.cycle_floor)

    def __contains__(self, path: object) -> bool:
        return path in self._chain().depths

    def __len__(self) -> int:
        return len(self._chain().depths)
