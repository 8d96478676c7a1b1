"""Shared fixtures for inference tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from contractscan.inference._internal.parsing import ParseResult, TreeSitterParser, node_text
from contractscan.inference._internal.walker import find_all

ParseSnippet = Callable[..., ParseResult]


@pytest.fixture
def parser() -> TreeSitterParser:
    """Create a TreeSitterParser instance."""
    return TreeSitterParser()


@pytest.fixture
def parse_snippet(parser: TreeSitterParser, tmp_path: Path) -> ParseSnippet:
    """Parse source text as if it lived in ``tmp_path/<filename>``."""

    def _parse(content: str, filename: str = "snippet.ts") -> ParseResult:
        return parser.parse(tmp_path / filename, content.encode("utf-8"))

    return _parse


@pytest.fixture
def declared_value(parse_snippet: ParseSnippet) -> Callable[[str, str], Any]:
    """Value node of ``const <name> = <value>`` in a TypeScript snippet."""

    def _value(content: str, name: str) -> Any:
        result = parse_snippet(content)
        for declarator in find_all(result.root_node, {"variable_declarator"}):
            if node_text(declarator.child_by_field_name("name")) == name:
                return declarator.child_by_field_name("value")
        raise AssertionError(f"no declarator named {name}")

    return _value


@pytest.fixture
def project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a small source tree under ``tmp_path`` and return the root."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        return tmp_path

    return _write
