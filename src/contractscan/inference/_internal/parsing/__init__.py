"""Tree-sitter parsing front end for JavaScript / TypeScript sources."""

from contractscan.inference._internal.parsing.packs import (
    PACKS,
    LanguagePack,
    get_pack_for_ext,
)
from contractscan.inference._internal.parsing.treesitter import (
    ExportFacts,
    ParseResult,
    TreeSitterParser,
    node_text,
    string_value,
)

__all__ = [
    "TreeSitterParser",
    "ParseResult",
    "ExportFacts",
    "LanguagePack",
    "PACKS",
    "get_pack_for_ext",
    "node_text",
    "string_value",
]
