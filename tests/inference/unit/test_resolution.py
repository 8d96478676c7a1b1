"""Unit tests for import candidate generation and resolution state."""

from __future__ import annotations

import os
import threading
from pathlib import Path

import pytest

from contractscan.config.models import ResolverConfig
from contractscan.inference._internal.resolution import (
    InFlightSet,
    ResolutionCache,
    absolute_path,
    candidate_paths,
    is_relative_specifier,
)
from contractscan.inference.models import SchemaMap

ROOT = "/app"
ROUTE = "/app/src/app/api/users/route.ts"


def _candidates(module_path: str, config: ResolverConfig | None = None) -> list[str]:
    paths = candidate_paths(module_path, ROUTE, "UserSchema", ROOT, config or ResolverConfig())
    return [p.as_posix() for p in paths]


class TestRelativeSpecifiers:
    """``./`` and ``../`` imports."""

    @pytest.mark.parametrize(
        ("specifier", "expected"),
        [
            ("./schema", True),
            ("../schemas/user", True),
            (".", True),
            ("..", True),
            ("@/schemas/user", False),
            ("zod", False),
            (".hidden", False),
        ],
    )
    def test_is_relative(self, specifier: str, expected: bool) -> None:
        assert is_relative_specifier(specifier) is expected

    def test_extensions_then_index(self) -> None:
        candidates = _candidates("./schema")

        assert candidates[:6] == [
            "/app/src/app/api/users/schema.ts",
            "/app/src/app/api/users/schema.tsx",
            "/app/src/app/api/users/schema.js",
            "/app/src/app/api/users/schema.jsx",
            "/app/src/app/api/users/schema.mts",
            "/app/src/app/api/users/schema.mjs",
        ]
        assert candidates[6] == "/app/src/app/api/users/schema/index.ts"

    def test_parent_segments_normalized(self) -> None:
        candidates = _candidates("../../../schemas/user")

        assert candidates[0] == "/app/src/schemas/user.ts"

    def test_esm_js_extension_retried_as_ts(self) -> None:
        """``import { A } from "./a.js"`` usually means ``a.ts``."""
        candidates = _candidates("./user.js")

        assert candidates[:3] == [
            "/app/src/app/api/users/user.js",
            "/app/src/app/api/users/user.ts",
            "/app/src/app/api/users/user.tsx",
        ]

    def test_dotted_name_gets_extensions(self) -> None:
        """``user.schema`` is a base name, not an extension."""
        assert _candidates("./user.schema")[0] == "/app/src/app/api/users/user.schema.ts"


class TestAliasSpecifiers:
    """Configured prefixes."""

    def test_alias_roots_in_order(self) -> None:
        candidates = _candidates("@/schemas/user")

        assert candidates[0] == "/app/src/schemas/user.ts"
        first_root_dot = candidates.index("/app/schemas/user.ts")
        assert first_root_dot > candidates.index("/app/src/schemas/user/index.ts")

    def test_tilde_alias(self) -> None:
        assert _candidates("~/lib/schemas")[0] == "/app/src/lib/schemas.ts"

    def test_custom_alias(self) -> None:
        config = ResolverConfig(aliases={"#shared/": ["packages/shared/src"]})

        candidates = _candidates("#shared/user", config)

        assert candidates[0] == "/app/packages/shared/src/user.ts"

    def test_duplicates_removed(self) -> None:
        config = ResolverConfig(aliases={"@/": ["src", "src/."]})

        candidates = _candidates("@/user", config)

        assert len(candidates) == len(set(candidates))


class TestFallbackCandidates:
    """Bare specifiers fall back to conventional schema locations."""

    def test_default_templates(self) -> None:
        assert _candidates("shared-schemas") == [
            "/app/src/app/api/users/schemas/UserSchema.ts",
            "/app/src/app/api/users/schemas.ts",
            "/app/src/schemas/UserSchema.ts",
            "/app/lib/schemas/UserSchema.ts",
        ]

    def test_no_templates(self) -> None:
        assert _candidates("zod", ResolverConfig(fallback_candidates=[])) == []


class TestAbsolutePath:
    def test_normalizes(self) -> None:
        assert absolute_path("/app/src/../lib/./a.ts") == "/app/lib/a.ts"

    def test_relative_made_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

        assert absolute_path("a.ts") == os.path.join(os.getcwd(), "a.ts")


class TestResolutionCache:
    """Write-once cache semantics."""

    def test_first_write_wins(self) -> None:
        cache = ResolutionCache()
        first = SchemaMap.empty("/app/a.ts")
        second = SchemaMap.empty("/app/a.ts")

        stored = cache.put_if_absent("/app/a.ts", first)
        again = cache.put_if_absent("/app/a.ts", second)

        assert stored is first
        assert again is first
        assert cache.get("/app/a.ts") is first
        assert len(cache) == 1

    def test_missing_key(self) -> None:
        cache = ResolutionCache()

        assert cache.get("/app/a.ts") is None
        assert "/app/a.ts" not in cache

    def test_clear(self) -> None:
        cache = ResolutionCache()
        cache.put_if_absent("/app/a.ts", SchemaMap.empty("/app/a.ts"))

        cache.clear()

        assert len(cache) == 0


class TestInFlightSet:
    """Per-thread cycle guard."""

    def test_add_and_discard(self) -> None:
        in_flight = InFlightSet()

        in_flight.add("/app/a.ts")
        assert "/app/a.ts" in in_flight

        in_flight.discard("/app/a.ts")
        assert "/app/a.ts" not in in_flight
        assert len(in_flight) == 0

    def test_other_threads_do_not_see_entries(self) -> None:
        """A concurrent scan of the same file is not a cycle."""
        in_flight = InFlightSet()
        in_flight.add("/app/a.ts")
        seen: list[bool] = []

        thread = threading.Thread(target=lambda: seen.append("/app/a.ts" in in_flight))
        thread.start()
        thread.join()

        assert seen == [False]
        assert "/app/a.ts" in in_flight

    def test_cycle_to_outer_path_cuts_derivation_short(self) -> None:
        in_flight = InFlightSet()
        in_flight.add("/app/b.ts")
        in_flight.add("/app/a.ts")

        with in_flight.deriving("/app/a.ts") as derivation:
            in_flight.note_cycle("/app/b.ts")

        assert derivation.cut_short

    def test_self_cycle_keeps_derivation_whole(self) -> None:
        in_flight = InFlightSet()
        in_flight.add("/app/b.ts")
        in_flight.add("/app/a.ts")

        with in_flight.deriving("/app/a.ts") as derivation:
            in_flight.note_cycle("/app/a.ts")

        assert not derivation.cut_short

    def test_cycle_propagates_to_enclosing_derivation(self) -> None:
        """A cycle seen by an inner file also marks every file above its target."""
        in_flight = InFlightSet()
        in_flight.add("/app/root.ts")
        in_flight.add("/app/b.ts")

        with in_flight.deriving("/app/b.ts") as outer:
            in_flight.add("/app/a.ts")
            with in_flight.deriving("/app/a.ts") as inner:
                in_flight.note_cycle("/app/root.ts")
            in_flight.discard("/app/a.ts")

        assert inner.cut_short
        assert outer.cut_short

    def test_chain_reset_when_empty(self) -> None:
        in_flight = InFlightSet()
        in_flight.add("/app/a.ts")
        in_flight.note_cycle("/app/a.ts")
        in_flight.discard("/app/a.ts")
        in_flight.add("/app/c.ts")

        with in_flight.deriving("/app/c.ts") as derivation:
            pass

        assert derivation.cycle_floor is None
