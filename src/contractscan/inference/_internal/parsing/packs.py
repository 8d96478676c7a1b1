"""LanguagePack registry for the source languages schemas are read from.

Every supported language has exactly ONE LanguagePack holding its grammar
module and file detection. The PACKS registry is the canonical
lookup: ``PACKS["typescript"]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LanguagePack:
    """Tree-sitter configuration for a single language."""

    name: str  # Canonical language name ("typescript", "tsx", ...)
    grammar_module: str  # Python import ("tree_sitter_typescript")
    # Non-standard function name (e.g. "language_typescript", "language_tsx")
    language_func: str = "language"
    extensions: frozenset[str] = field(default_factory=frozenset)
    # Whether interface / type alias / enum declarations can appear
    has_type_declarations: bool = False


JAVASCRIPT_PACK = LanguagePack(
    name="javascript",
    grammar_module="tree_sitter_javascript",
    extensions=frozenset({"js", "jsx", "mjs", "cjs"}),
)

TYPESCRIPT_PACK = LanguagePack(
    name="typescript",
    grammar_module="tree_sitter_typescript",
    language_func="language_typescript",
    extensions=frozenset({"ts", "mts", "cts"}),
    has_type_declarations=True,
)

TSX_PACK = LanguagePack(
    name="tsx",
    grammar_module="tree_sitter_typescript",
    language_func="language_tsx",
    extensions=frozenset({"tsx"}),
    has_type_declarations=True,
)

PACKS: dict[str, LanguagePack] = {
    pack.name: pack for pack in (JAVASCRIPT_PACK, TYPESCRIPT_PACK, TSX_PACK)
}

_EXT_INDEX: dict[str, LanguagePack] = {
    ext: pack for pack in PACKS.values() for ext in pack.extensions
}


def get_pack_for_ext(ext: str) -> LanguagePack | None:
    """Look up a pack by file extension (with or without leading dot)."""
    return _EXT_INDEX.get(ext.lower().lstrip("."))
