"""Unit tests for the tree-sitter front end: languages, syntax errors, imports, exports."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from contractscan.core.errors import ErrorCode, SchemaParseError
from contractscan.inference._internal.parsing import (
    PACKS,
    TreeSitterParser,
    get_pack_for_ext,
)
from contractscan.inference.models import ImportBinding, ReExport


class TestPacks:
    """Extension -> language lookup."""

    @pytest.mark.parametrize(
        ("ext", "language"),
        [
            (".ts", "typescript"),
            ("mts", "typescript"),
            (".tsx", "tsx"),
            (".js", "javascript"),
            (".JSX", "javascript"),
            (".cjs", "javascript"),
        ],
    )
    def test_lookup(self, ext: str, language: str) -> None:
        pack = get_pack_for_ext(ext)

        assert pack is not None
        assert pack.name == language

    def test_unknown(self) -> None:
        assert get_pack_for_ext(".py") is None

    @pytest.mark.parametrize(
        ("name", "typed"), [("typescript", True), ("tsx", True), ("javascript", False)]
    )
    def test_type_declaration_flag(self, name: str, typed: bool) -> None:
        assert PACKS[name].has_type_declarations is typed


class TestParse:
    """Parsing and the syntax error gate."""

    @pytest.mark.parametrize(
        ("filename", "language", "typed"),
        [
            ("a.ts", "typescript", True),
            ("a.tsx", "tsx", True),
            ("a.js", "javascript", False),
        ],
    )
    def test_language_detection(
        self, parse_snippet: Any, filename: str, language: str, typed: bool
    ) -> None:
        result = parse_snippet("const a = 1;\n", filename)

        assert result.language == language
        assert result.has_type_declarations is typed
        assert result.error_count == 0
        assert result.total_nodes > 0

    def test_tsx_accepts_jsx(self, parse_snippet: Any) -> None:
        result = parse_snippet("export const A = () => <div>hi</div>;\n", "a.tsx")

        assert result.error_count == 0

    def test_reads_file_when_no_content(self, parser: TreeSitterParser, tmp_path: Path) -> None:
        path = tmp_path / "a.ts"
        path.write_text("export const a = 1;\n")

        result = parser.parse(path)

        assert result.source == b"export const a = 1;\n"

    def test_unsupported_extension(self, parser: TreeSitterParser, tmp_path: Path) -> None:
        with pytest.raises(SchemaParseError) as exc_info:
            parser.parse(tmp_path / "schema.py", b"x = 1\n")

        assert exc_info.value.code == ErrorCode.PARSE_UNSUPPORTED_LANGUAGE

    def test_syntax_error_rejected_by_default(self, parse_snippet: Any) -> None:
        with pytest.raises(SchemaParseError) as exc_info:
            parse_snippet("const User = z.object({ name: z.string( ;\n")

        assert exc_info.value.code == ErrorCode.PARSE_SYNTAX_ERROR
        assert exc_info.value.details["error_count"] >= 1

    def test_error_ratio_threshold(self, tmp_path: Path) -> None:
        """A tolerant parser returns the partial tree."""
        parser = TreeSitterParser(max_error_ratio=1.0)

        result = parser.parse(tmp_path / "a.ts", b"const User = z.object({ name: z.string( ;\n")

        assert result.error_count >= 1
        assert 0.0 < result.error_ratio <= 1.0


class TestExtractImports:
    """ES imports and destructured require calls."""

    SOURCE = """
import { z } from "zod";
import { UserSchema, OrderSchema as Order } from "./schemas";
import Account from "@/schemas/account";
import type { Profile } from "./types";
import { type Settings, Theme } from "./settings";
import * as all from "./all";
import "./side-effect";
const { LegacySchema, Old: Renamed } = require("./legacy");
const config = require("./config");
"""

    @pytest.fixture
    def imports(self, parser: TreeSitterParser, parse_snippet: Any) -> dict[str, ImportBinding]:
        result = parse_snippet(self.SOURCE)
        return {b.local_name: b for b in parser.extract_imports(result)}

    def test_bound_names(self, imports: dict[str, ImportBinding]) -> None:
        assert set(imports) == {
            "z",
            "UserSchema",
            "Order",
            "Account",
            "Profile",
            "Settings",
            "Theme",
            "LegacySchema",
            "Renamed",
        }

    def test_named_import(self, imports: dict[str, ImportBinding]) -> None:
        binding = imports["UserSchema"]

        assert binding.module_path == "./schemas"
        assert binding.exported_name == "UserSchema"
        assert not binding.is_default_import

    def test_aliased_import(self, imports: dict[str, ImportBinding]) -> None:
        binding = imports["Order"]

        assert binding.imported_name == "OrderSchema"
        assert binding.exported_name == "OrderSchema"

    def test_default_import(self, imports: dict[str, ImportBinding]) -> None:
        binding = imports["Account"]

        assert binding.is_default_import
        assert binding.exported_name == "default"
        assert binding.module_path == "@/schemas/account"

    def test_type_only(self, imports: dict[str, ImportBinding]) -> None:
        assert imports["Profile"].is_type_only
        assert imports["Settings"].is_type_only
        assert not imports["Theme"].is_type_only

    def test_require_destructuring(self, imports: dict[str, ImportBinding]) -> None:
        assert imports["LegacySchema"].module_path == "./legacy"
        assert imports["Renamed"].exported_name == "Old"


class TestExtractExports:
    """Re-exports and default exports."""

    def test_reexports(self, parser: TreeSitterParser, parse_snippet: Any) -> None:
        source = """
export * from "./user";
export * as orders from "./orders";
export { OrderSchema as Order, ItemSchema } from "./order";
"""
        result = parse_snippet(source)

        facts = parser.extract_exports(result, parser.extract_imports(result))

        assert facts.reexports == [
            ReExport(module_path="./user"),
            ReExport(module_path="./order", exported_name="Order", source_name="OrderSchema"),
            ReExport(module_path="./order", exported_name="ItemSchema", source_name="ItemSchema"),
        ]

    def test_export_of_imported_binding(
        self, parser: TreeSitterParser, parse_snippet: Any
    ) -> None:
        source = """
import { UserSchema as User } from "./user";
const Local = 1;
export { User, Local as Other };
"""
        result = parse_snippet(source)

        facts = parser.extract_exports(result, parser.extract_imports(result))

        assert facts.reexports == [
            ReExport(module_path="./user", exported_name="User", source_name="UserSchema")
        ]

    def test_default_export_of_local(self, parser: TreeSitterParser, parse_snippet: Any) -> None:
        result = parse_snippet("const UserSchema = z.object({});\nexport default UserSchema;\n")

        facts = parser.extract_exports(result, parser.extract_imports(result))

        assert facts.default_export == "UserSchema"
        assert facts.default_value is None

    def test_default_export_of_imported(
        self, parser: TreeSitterParser, parse_snippet: Any
    ) -> None:
        result = parse_snippet('import { UserSchema } from "./user";\nexport default UserSchema;\n')

        facts = parser.extract_exports(result, parser.extract_imports(result))

        assert facts.default_export is None
        assert facts.reexports == [
            ReExport(module_path="./user", exported_name="default", source_name="UserSchema")
        ]

    def test_default_export_expression(
        self, parser: TreeSitterParser, parse_snippet: Any
    ) -> None:
        result = parse_snippet("export default z.object({ id: z.string() });\n")

        facts = parser.extract_exports(result, parser.extract_imports(result))

        assert facts.default_value is not None
        assert facts.default_value.type == "call_expression"


class TestReExportForwarding:
    """Which names a re-export forwards."""

    def test_star_forwards_all_but_default(self) -> None:
        star = ReExport(module_path="./user")

        assert star.forwards("UserSchema") == "UserSchema"
        assert star.forwards("default") is None

    def test_named_forwards_alias(self) -> None:
        named = ReExport(module_path="./order", exported_name="Order", source_name="OrderSchema")

        assert named.forwards("Order") == "OrderSchema"
        assert named.forwards("OrderSchema") is None
