"""Unified schema model shared by every adapter.

Builder chains, type declarations and SDL definitions all produce the same
records, so downstream code never needs to know which formalism a schema
came from beyond ``SchemaDefinition.source_kind``.

All records are frozen: a ``SchemaMap`` stored in the resolution cache is a
snapshot that concurrent readers can share.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

SourceKind = Literal["builder", "declaration", "sdl"]
ContractRole = Literal["request", "response", "query"]


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One field of a schema, recursively.

    ``nested`` is only set when ``type_label`` is ``"object"``; array item
    types are folded into the label (``"string[]"``).
    """

    name: str
    type_label: str
    is_optional: bool = False
    validations: tuple[str, ...] = ()
    default_value: str | None = None  # JSON literal text
    nested: tuple[FieldDescriptor, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type_label,
            "is_optional": self.is_optional,
        }
        if self.validations:
            data["validations"] = list(self.validations)
        if self.default_value is not None:
            data["default"] = self.default_value
        if self.nested:
            data["nested"] = [f.to_dict() for f in self.nested]
        return data


@dataclass(frozen=True, slots=True)
class SchemaDefinition:
    """A schema extracted from any of the three formalisms."""

    source_kind: SourceKind
    fields: tuple[FieldDescriptor, ...]
    name: str | None = None
    is_required: bool = True
    extends: tuple[str, ...] = ()  # Interface heritage, fields not inlined

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldDescriptor | None:
        return next((f for f in self.fields if f.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "source": self.source_kind,
            "fields": [f.to_dict() for f in self.fields],
            "is_required": self.is_required,
        }
        if self.name is not None:
            data["name"] = self.name
        if self.extends:
            data["extends"] = list(self.extends)
        return data


@dataclass(frozen=True, slots=True)
class ImportBinding:
    """A name bound by an import statement.

    ``local_name`` is what the importing file uses; ``imported_name`` is the
    name exported by the target module (``"default"`` for default imports).
    """

    local_name: str
    module_path: str
    is_default_import: bool = False
    imported_name: str | None = None
    is_type_only: bool = False

    @property
    def exported_name(self) -> str:
        if self.is_default_import:
            return "default"
        return self.imported_name or self.local_name


@dataclass(frozen=True, slots=True)
class ReExport:
    """An ``export ... from`` (or ``export { imported }``) forwarding.

    ``exported_name`` of ``None`` means ``export * from``: any name is
    forwarded under its own name.
    """

    module_path: str
    exported_name: str | None = None
    source_name: str | None = None

    def forwards(self, name: str) -> str | None:
        """Return the name to look up in ``module_path``, or None if not forwarded."""
        if self.exported_name is None:
            return None if name == "default" else name
        if self.exported_name == name:
            return self.source_name or name
        return None


@dataclass(frozen=True)
class SchemaMap:
    """Schemas declared or resolved in one file, in declaration order."""

    path: str
    schemas: MappingProxyType[str, SchemaDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    reexports: tuple[ReExport, ...] = ()
    default_export: str | None = None
    validated_names: frozenset[str] = frozenset()

    @classmethod
    def build(
        cls,
        path: str,
        schemas: dict[str, SchemaDefinition],
        reexports: list[ReExport] | None = None,
        default_export: str | None = None,
        validated_names: set[str] | None = None,
    ) -> SchemaMap:
        return cls(
            path=path,
            schemas=MappingProxyType(dict(schemas)),
            reexports=tuple(reexports or ()),
            default_export=default_export,
            validated_names=frozenset(validated_names or ()),
        )

    @classmethod
    def empty(cls, path: str) -> SchemaMap:
        return cls(path=path)

    def get(self, name: str) -> SchemaDefinition | None:
        if name == "default" and self.default_export is not None:
            return self.schemas.get(self.default_export)
        return self.schemas.get(name)

    def names(self) -> list[str]:
        return list(self.schemas)

    def __contains__(self, name: object) -> bool:
        return name in self.schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self.schemas)

    def __len__(self) -> int:
        return len(self.schemas)

    def to_dict(self) -> dict[str, Any]:
        return {name: schema.to_dict() for name, schema in self.schemas.items()}


@dataclass(frozen=True, slots=True)
class ContractBinding:
    """Request/response/query schemas bound to one API route file."""

    request_schema: SchemaDefinition | None = None
    response_schema: SchemaDefinition | None = None
    query_schema: SchemaDefinition | None = None

    def get(self, role: ContractRole) -> SchemaDefinition | None:
        if role == "request":
            return self.request_schema
        if role == "response":
            return self.response_schema
        return self.query_schema

    @property
    def is_empty(self) -> bool:
        return self.request_schema is None and self.response_schema is None and (
            self.query_schema is None
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.request_schema is not None:
            data["request"] = self.request_schema.to_dict()
        if self.response_schema is not None:
            data["response"] = self.response_schema.to_dict()
        if self.query_schema is not None:
            data["query"] = self.query_schema.to_dict()
        return data
