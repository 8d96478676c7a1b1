"""GraphQL SDL extraction.

Parsed with graphql-core, not the tree walker. Object, input and enum type
definitions become ``SchemaDefinition(source_kind="sdl")``; the root
operation types are operations, not data shapes, and are skipped.
"""

from __future__ import annotations

import structlog
from graphql import GraphQLError, parse
from graphql.language import (
    DocumentNode,
    EnumTypeDefinitionNode,
    FieldDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputValueDefinitionNode,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    SchemaDefinitionNode,
    TypeNode,
)

from contractscan.inference.models import FieldDescriptor, SchemaDefinition, SchemaMap

log = structlog.get_logger(__name__)

DEFAULT_ROOT_TYPES = frozenset({"Query", "Mutation", "Subscription"})

SCALAR_LABELS: dict[str, str] = {
    "String": "string",
    "Int": "number",
    "Float": "number",
    "Boolean": "boolean",
    "ID": "string",
}


def parse_sdl(content: str, path: str) -> SchemaMap:
    """Parse SDL text into a SchemaMap; a syntax error yields an empty map."""
    try:
        document = parse(content, no_location=True)
    except GraphQLError as e:
        log.debug("sdl_parse_failed", path=path, error=e.message)
        return SchemaMap.empty(path)
    return SchemaMap.build(path, extract_definitions(document))


def extract_definitions(document: DocumentNode) -> dict[str, SchemaDefinition]:
    root_types = _root_operation_types(document)
    schemas: dict[str, SchemaDefinition] = {}

    for definition in document.definitions:
        if isinstance(definition, ObjectTypeDefinitionNode):
            fields = tuple(_field_definition(f) for f in definition.fields or ())
        elif isinstance(definition, InputObjectTypeDefinitionNode):
            fields = tuple(_input_value(f) for f in definition.fields or ())
        elif isinstance(definition, EnumTypeDefinitionNode):
            fields = tuple(
                FieldDescriptor(name=value.name.value, type_label="enum")
                for value in definition.values or ()
            )
        else:
            continue

        name = definition.name.value
        if name in root_types:
            continue
        schemas[name] = SchemaDefinition(source_kind="sdl", fields=fields, name=name)

    return schemas


def _root_operation_types(document: DocumentNode) -> frozenset[str]:
    """Default root names plus any renamed via a ``schema { query: X }`` block."""
    names = set(DEFAULT_ROOT_TYPES)
    for definition in document.definitions:
        if isinstance(definition, SchemaDefinitionNode):
            names.update(op.type.name.value for op in definition.operation_types)
    return frozenset(names)


def _field_definition(field: FieldDefinitionNode) -> FieldDescriptor:
    type_label, is_optional = type_info(field.type)
    validations: tuple[str, ...] = ()
    if field.arguments:
        validations = (f"args: {len(field.arguments)}",)
    return FieldDescriptor(
        name=field.name.value,
        type_label=type_label,
        is_optional=is_optional,
        validations=validations,
    )


def _input_value(field: InputValueDefinitionNode) -> FieldDescriptor:
    type_label, is_optional = type_info(field.type)
    return FieldDescriptor(name=field.name.value, type_label=type_label, is_optional=is_optional)


def type_info(type_node: TypeNode) -> tuple[str, bool]:
    """Display label and optionality of a type reference.

    Optionality is the inverse of the non-null wrapper: ``String!`` is
    required, ``String`` optional. Lists become ``"<item>[]"``.
    """
    if isinstance(type_node, NonNullTypeNode):
        label, _ = type_info(type_node.type)
        return label, False
    if isinstance(type_node, ListTypeNode):
        label, _ = type_info(type_node.type)
        return f"{label}[]", True
    if isinstance(type_node, NamedTypeNode):
        name = type_node.name.value
        return SCALAR_LABELS.get(name, name), True
    return "unknown", True
