"""Per-formalism schema adapters (builder chains, declarations, SDL)."""

from contractscan.inference._internal.adapters.builder import BuilderSchemaParser
from contractscan.inference._internal.adapters.declarations import DeclarationAdapter
from contractscan.inference._internal.adapters.sdl import parse_sdl

__all__ = ["BuilderSchemaParser", "DeclarationAdapter", "parse_sdl"]
