"""Static type declaration extraction (interfaces, type aliases, enums).

Members are enumerated directly; the annotated type is kept as display text.
Interface heritage (``extends A, B``) is recorded by name; inherited fields
are not inlined.
Only object-shaped aliases (``type X = { ... }``) carry fields, so unions,
utility types and ``z.infer<...>`` aliases are skipped.
"""

from __future__ import annotations

from typing import Any

from contractscan.config.models import DeclarationsConfig
from contractscan.inference._internal.parsing.treesitter import node_text
from contractscan.inference.models import FieldDescriptor, SchemaDefinition

DECLARATION_TYPES = frozenset(
    {"interface_declaration", "type_alias_declaration", "enum_declaration"}
)

_OBJECT_BODY_TYPES = frozenset({"interface_body", "object_type"})
_MEMBER_NAME_TYPES = frozenset({"property_identifier", "identifier", "number"})


class DeclarationAdapter:
    """Turns declaration nodes into ``SchemaDefinition(source_kind="declaration")``."""

    def __init__(self, config: DeclarationsConfig | None = None) -> None:
        self._max_length = (config or DeclarationsConfig()).max_type_length

    def parse_declaration(self, node: Any) -> tuple[str, SchemaDefinition] | None:
        """Return ``(name, schema)`` for a declaration node, None if it has no fields."""
        if node is None or node.type not in DECLARATION_TYPES:
            return None
        name = node_text(node.child_by_field_name("name"))
        if not name:
            return None

        extends: tuple[str, ...] = ()
        if node.type == "enum_declaration":
            fields = self._enum_members(node.child_by_field_name("body"))
        elif node.type == "interface_declaration":
            fields = self._object_members(node.child_by_field_name("body"))
            extends = _heritage(node)
        else:
            value = node.child_by_field_name("value")
            if value is None or value.type not in _OBJECT_BODY_TYPES:
                return None
            fields = self._object_members(value)

        return name, SchemaDefinition(
            source_kind="declaration", fields=fields, name=name, extends=extends
        )

    def _object_members(self, body: Any) -> tuple[FieldDescriptor, ...]:
        if body is None:
            return ()
        fields: list[FieldDescriptor] = []
        for member in body.named_children:
            if member.type != "property_signature":
                continue
            name = _member_name(member.child_by_field_name("name"))
            if name is None:
                continue
            fields.append(
                FieldDescriptor(
                    name=name,
                    type_label=self._type_label(member.child_by_field_name("type")),
                    is_optional=any(child.type == "?" for child in member.children),
                )
            )
        return tuple(fields)

    @staticmethod
    def _enum_members(body: Any) -> tuple[FieldDescriptor, ...]:
        if body is None:
            return ()
        fields: list[FieldDescriptor] = []
        for member in body.named_children:
            target = member.child_by_field_name("name") if member.type == "enum_assignment" else member
            name = _member_name(target)
            if name is not None:
                fields.append(FieldDescriptor(name=name, type_label="enum"))
        return tuple(fields)

    def _type_label(self, annotation: Any) -> str:
        if annotation is None:
            return "any"
        type_node = annotation.named_children[0] if annotation.named_children else None
        text = " ".join(node_text(type_node).split())
        return text[: self._max_length] if text else "any"


def _member_name(node: Any) -> str | None:
    if node is None:
        return None
    if node.type in _MEMBER_NAME_TYPES:
        return node_text(node)
    if node.type == "string":
        text = node_text(node)
        return text[1:-1] if len(text) >= 2 else None
    return None


def _heritage(node: Any) -> tuple[str, ...]:
    """Type names listed in an interface's ``extends`` clause."""
    for child in node.children:
        if child.type == "extends_type_clause":
            return tuple(" ".join(node_text(t).split()) for t in child.named_children)
    return ()
