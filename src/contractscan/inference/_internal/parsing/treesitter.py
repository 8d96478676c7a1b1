"""Tree-sitter parsing for schema extraction.

This module provides Tree-sitter parsing for:
- Language detection and grammar loading (JavaScript, TypeScript, TSX)
- Syntax error accounting (error-node ratio gate for ParseFailure)
- Import extraction (ES imports and destructured ``require`` calls)
- Export extraction (re-exports, ``export { imported }``, default export)

Tree-sitter never refuses input: a broken file still yields a tree with
ERROR nodes. ``parse`` turns an error ratio above the configured threshold
into ``SchemaParseError`` so the engine can treat the file as unparseable.
"""

from __future__ import annotations

import importlib
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tree_sitter

from contractscan.core.errors import SchemaParseError
from contractscan.inference._internal.parsing.packs import (
    PACKS,
    LanguagePack,
    get_pack_for_ext,
)
from contractscan.inference.models import ImportBinding, ReExport


@dataclass
class ParseResult:
    """Result of parsing a file (the ParsedUnit of one engine invocation)."""

    tree: Any  # Tree-sitter Tree (not serializable)
    language: str
    path: str  # Absolute path
    source: bytes
    error_count: int
    total_nodes: int
    root_node: Any  # Tree-sitter Node

    @property
    def error_ratio(self) -> float:
        if self.total_nodes == 0:
            return 0.0
        return self.error_count / self.total_nodes

    @property
    def has_type_declarations(self) -> bool:
        return PACKS[self.language].has_type_declarations


@dataclass
class ExportFacts:
    """Export statements of one file that matter for schema lookup."""

    reexports: list[ReExport] = field(default_factory=list)
    default_export: str | None = None  # Local name exported as default
    default_value: Any = None  # Expression node of ``export default <expr>``


def node_text(node: Any) -> str:
    """Decode a node's source text ("" for missing nodes)."""
    if node is None or not node.text:
        return ""
    return str(node.text.decode("utf-8", errors="replace"))


def string_value(node: Any) -> str | None:
    """Unquoted content of a ``string`` node, None for anything else."""
    if node is None or node.type != "string":
        return None
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        return text[1:-1]
    return text


class TreeSitterParser:
    """
    Tree-sitter parser for schema extraction.

    Grammars are loaded once and shared; ``tree_sitter.Parser`` objects are
    not thread-safe, so each thread gets its own.

    Usage::

        parser = TreeSitterParser()
        result = parser.parse(Path("src/app/api/users/route.ts"), content)
        imports = parser.extract_imports(result)
        exports = parser.extract_exports(result, imports)
    """

    def __init__(self, max_error_ratio: float = 0.0) -> None:
        self._max_error_ratio = max_error_ratio
        self._languages: dict[str, Any] = {}
        self._languages_lock = threading.Lock()
        self._local = threading.local()

    def _get_language(self, pack: LanguagePack) -> Any:
        """Get or load a Tree-sitter language using its pack metadata."""
        with self._languages_lock:
            if pack.name in self._languages:
                return self._languages[pack.name]
            try:
                mod = importlib.import_module(pack.grammar_module)
                lang_fn = getattr(mod, pack.language_func)
                lang = tree_sitter.Language(lang_fn())
            except (ImportError, AttributeError) as err:
                raise SchemaParseError.grammar_unavailable(pack.name) from err
            self._languages[pack.name] = lang
            return lang

    def _get_parser(self) -> Any:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = tree_sitter.Parser()
            self._local.parser = parser
        return parser

    def parse(self, path: Path, content: bytes | None = None) -> ParseResult:
        """
        Parse a file with Tree-sitter.

        Args:
            path: Path to file (used for language detection)
            content: File content as bytes. If None, reads from path.

        Returns:
            ParseResult with tree, language, and error info.

        Raises:
            SchemaParseError: Unsupported extension, missing grammar, or more
                syntax errors than ``max_error_ratio`` allows.
        """
        pack = get_pack_for_ext(path.suffix)
        if pack is None:
            raise SchemaParseError.unsupported_language(str(path))

        if content is None:
            content = path.read_bytes()

        parser = self._get_parser()
        parser.language = self._get_language(pack)
        tree = parser.parse(content)

        # Count errors and total nodes
        error_count = 0
        total_nodes = 0
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
            stack.extend(node.children)

        result = ParseResult(
            tree=tree,
            language=pack.name,
            path=str(path),
            source=content,
            error_count=error_count,
            total_nodes=total_nodes,
            root_node=tree.root_node,
        )
        if error_count and result.error_ratio > self._max_error_ratio:
            raise SchemaParseError.syntax_error(str(path), error_count, total_nodes)
        return result

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def extract_imports(self, result: ParseResult) -> list[ImportBinding]:
        """Extract import bindings from top-level statements.

        Covers default, named (with aliases) and ``type``-only ES imports plus
        ``const { A, B: C } = require("./x")`` destructuring. Namespace
        imports bind no individual schema name and are skipped.
        """
        imports: list[ImportBinding] = []
        for node in result.root_node.children:
            if node.type == "import_statement":
                imports.extend(self._process_import_statement(node))
            elif node.type in ("lexical_declaration", "variable_declaration"):
                imports.extend(self._process_require_declaration(node))
        return imports

    def _process_import_statement(self, node: Any) -> list[ImportBinding]:
        source = string_value(node.child_by_field_name("source"))
        if source is None:
            return []
        type_only = any(child.type == "type" for child in node.children)

        imports: list[ImportBinding] = []
        for child in node.children:
            if child.type != "import_clause":
                continue
            for clause_child in child.children:
                if clause_child.type == "identifier":
                    name = node_text(clause_child)
                    imports.append(
                        ImportBinding(
                            local_name=name,
                            module_path=source,
                            is_default_import=True,
                            imported_name="default",
                            is_type_only=type_only,
                        )
                    )
                elif clause_child.type == "named_imports":
                    for spec in clause_child.children:
                        if spec.type != "import_specifier":
                            continue
                        name_node = spec.child_by_field_name("name")
                        alias_node = spec.child_by_field_name("alias")
                        name = node_text(name_node)
                        if not name:
                            continue
                        alias = node_text(alias_node) or None
                        imports.append(
                            ImportBinding(
                                local_name=alias or name,
                                module_path=source,
                                is_default_import=name == "default",
                                imported_name=name,
                                is_type_only=type_only
                                or any(c.type == "type" for c in spec.children),
                            )
                        )
        return imports

    def _process_require_declaration(self, node: Any) -> list[ImportBinding]:
        imports: list[ImportBinding] = []
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            value = declarator.child_by_field_name("value")
            if value is None or value.type != "call_expression":
                continue
            func_node = value.child_by_field_name("function")
            if func_node is None or node_text(func_node) != "require":
                continue
            args_node = value.child_by_field_name("arguments")
            source = None
            if args_node is not None:
                source = next(
                    (string_value(a) for a in args_node.named_children if a.type == "string"),
                    None,
                )
            pattern = declarator.child_by_field_name("name")
            if source is None or pattern is None or pattern.type != "object_pattern":
                continue
            for prop in pattern.named_children:
                if prop.type == "shorthand_property_identifier_pattern":
                    name = node_text(prop)
                    imports.append(ImportBinding(name, source, imported_name=name))
                elif prop.type == "pair_pattern":
                    key = node_text(prop.child_by_field_name("key"))
                    local = prop.child_by_field_name("value")
                    if key and local is not None and local.type == "identifier":
                        imports.append(ImportBinding(node_text(local), source, imported_name=key))
        return imports

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def extract_exports(
        self, result: ParseResult, imports: list[ImportBinding] | None = None
    ) -> ExportFacts:
        """Extract re-exports and the default export of a file.

        ``imports`` lets ``export { Imported }`` (no ``from`` clause) forward
        to the module the name was imported from.
        """
        by_local = {imp.local_name: imp for imp in imports or ()}
        facts = ExportFacts()

        for node in result.root_node.children:
            if node.type != "export_statement":
                continue
            source = string_value(node.child_by_field_name("source"))
            children = node.children
            is_default = any(child.type == "default" for child in children)

            if source is not None:
                if any(child.type == "*" for child in children) and not any(
                    child.type == "namespace_export" for child in children
                ):
                    facts.reexports.append(ReExport(module_path=source))
                for name, alias in self._export_specifiers(node):
                    facts.reexports.append(
                        ReExport(module_path=source, exported_name=alias or name, source_name=name)
                    )
                continue

            if is_default:
                value = node.child_by_field_name("value")
                if value is not None and value.type == "identifier":
                    name = node_text(value)
                    binding = by_local.get(name)
                    if binding is not None:
                        facts.reexports.append(
                            ReExport(
                                module_path=binding.module_path,
                                exported_name="default",
                                source_name=binding.exported_name,
                            )
                        )
                    else:
                        facts.default_export = name
                elif value is not None:
                    facts.default_value = value
                continue

            for name, alias in self._export_specifiers(node):
                binding = by_local.get(name)
                if binding is not None:
                    facts.reexports.append(
                        ReExport(
                            module_path=binding.module_path,
                            exported_name=alias or name,
                            source_name=binding.exported_name,
                        )
                    )
        return facts

    @staticmethod
    def _export_specifiers(node: Any) -> list[tuple[str, str | None]]:
        specifiers: list[tuple[str, str | None]] = []
        for child in node.children:
            if child.type != "export_clause":
                continue
            for spec in child.children:
                if spec.type != "export_specifier":
                    continue
                name = node_text(spec.child_by_field_name("name"))
                alias = node_text(spec.child_by_field_name("alias")) or None
                if name:
                    specifiers.append((name, alias))
        return specifiers
