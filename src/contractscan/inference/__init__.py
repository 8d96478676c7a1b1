"""Inference module - schema extraction and cross-file resolution.

This module provides:
- Builder chain, type declaration and GraphQL SDL extraction
- Import resolution with a per-run schema cache and cycle guard
- Request / response / query role binding for route files

Public API is in `contractscan.inference.ops`:
- ResolutionEngine: High-level orchestration
- ResolutionStats: Run counters

Internal implementations are in `contractscan.inference._internal/`.
"""

from contractscan.inference.classifier import ContractRoleClassifier
from contractscan.inference.models import (
    ContractBinding,
    ContractRole,
    FieldDescriptor,
    ImportBinding,
    ReExport,
    SchemaDefinition,
    SchemaMap,
    SourceKind,
)
from contractscan.inference.ops import ResolutionEngine, ResolutionStats

__all__ = [
    "ResolutionEngine",
    "ResolutionStats",
    "ContractRoleClassifier",
    "ContractBinding",
    "ContractRole",
    "FieldDescriptor",
    "ImportBinding",
    "ReExport",
    "SchemaDefinition",
    "SchemaMap",
    "SourceKind",
]
