"""Validation-builder (Zod-style) schema extraction.

Recognizes fluent chains rooted at the builder namespace::

    const CreateUser = z.object({
      email: z.string().email().max(255, "Too long"),
      role: z.enum(["admin", "member"]).default("member"),
      tags: z.array(z.string()).optional(),
    })

and turns them into ``SchemaDefinition(source_kind="builder")``. Recognition
is best effort: any shape that does not match degrades to omitting that one
field (or returning None for the whole schema); nothing here raises.
"""

from __future__ import annotations

import json
from typing import Any

from contractscan.config.models import BuilderConfig
from contractscan.inference._internal.chain import (
    CallChain,
    call_arguments,
    decompose,
    iter_calls,
    last_method,
)
from contractscan.inference._internal.parsing.treesitter import node_text, string_value
from contractscan.inference.models import FieldDescriptor, SchemaDefinition

# Builder constructor -> display type
PRIMITIVE_LABELS: dict[str, str] = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "date": "Date",
    "bigint": "bigint",
    "undefined": "undefined",
    "null": "null",
    "any": "any",
    "unknown": "unknown",
    "never": "never",
    "void": "void",
}

# Sub-namespaces that prefix the real constructor (z.coerce.number())
_NAMESPACE_PREFIXES = frozenset({"coerce"})

_MISSING = object()


def literal_value(node: Any) -> Any:
    """Python value of a literal expression node, ``_MISSING`` otherwise."""
    if node is None:
        return _MISSING
    kind = node.type
    if kind == "string":
        return _decode_string(node)
    if kind == "number":
        return _parse_number(node_text(node))
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "null":
        return None
    if kind == "template_string":
        if any(c.type == "template_substitution" for c in node.named_children):
            return _MISSING
        return node_text(node)[1:-1]
    if kind == "unary_expression":
        operator = node.child_by_field_name("operator")
        argument = node.child_by_field_name("argument")
        if node_text(operator) == "-" and argument is not None and argument.type == "number":
            value = _parse_number(node_text(argument))
            return _MISSING if value is _MISSING else -value
    return _MISSING


def _decode_string(node: Any) -> str:
    parts: list[str] = []
    for child in node.named_children:
        if child.type == "string_fragment":
            parts.append(node_text(child))
        elif child.type == "escape_sequence":
            parts.append(_decode_escape(node_text(child)))
    return "".join(parts)


def _decode_escape(text: str) -> str:
    try:
        return str(json.loads(f'"{text}"'))
    except ValueError:
        return text[1:]


def _parse_number(text: str) -> Any:
    text = text.replace("_", "").lower()
    try:
        if text.endswith("n"):
            return int(text[:-1], 0)
        if text.startswith(("0x", "0o", "0b")):
            return int(text, 0)
        value = float(text)
    except ValueError:
        return _MISSING
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def display_value(value: Any) -> str:
    """Render a literal the way template interpolation would (``true``, ``3``)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def json_literal(node: Any) -> str | None:
    """JSON text for a default value; object/array literals collapse to ``{}``/``[]``."""
    value = literal_value(node)
    if value is not _MISSING:
        return json.dumps(value, ensure_ascii=False)
    if node is not None and node.type == "array":
        return "[]"
    if node is not None and node.type == "object":
        return "{}"
    return None


class BuilderSchemaParser:
    """Parses builder call chains into the unified schema model."""

    def __init__(self, config: BuilderConfig | None = None) -> None:
        self._config = config or BuilderConfig()
        self._root = self._config.root_name
        self._constructors = frozenset(self._config.schema_constructors)
        self._optional_markers = tuple(self._config.optional_markers)
        self._constraints = frozenset(self._config.constraint_methods)

    @property
    def root_name(self) -> str:
        return self._root

    def is_builder_call(self, node: Any) -> bool:
        """True when ``node`` is a call chain rooted at the builder namespace."""
        if node is None or node.type != "call_expression":
            return False
        return decompose(node).is_rooted_at(self._root)

    # ------------------------------------------------------------------
    # Top-level schemas
    # ------------------------------------------------------------------

    def parse_schema(self, node: Any, name: str | None = None) -> SchemaDefinition | None:
        """Parse a top-level ``object`` / ``enum`` / ``array`` builder chain.

        Enums and arrays have no field structure of their own and become a
        single pseudo-field (``value`` or ``items``).
        """
        if not self.is_builder_call(node):
            return None
        chain = decompose(node)
        kind = chain.constructor
        if kind not in self._constructors:
            return None
        ctor = self._constructor_call(node)
        if ctor is None:
            return None

        if kind == "object":
            fields = self._object_fields(node)
        elif kind == "enum":
            union = self._enum_union(ctor)
            fields = (FieldDescriptor(name="value", type_label=union or "enum"),)
        else:
            fields = (FieldDescriptor(name="items", type_label=f"{self._item_label(ctor)}[]"),)

        return SchemaDefinition(
            source_kind="builder",
            fields=fields,
            name=name,
            is_required=not chain.has_method(*self._optional_markers),
        )

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def parse_field(self, name: str, value_node: Any) -> FieldDescriptor | None:
        """Parse one object property value; None unless it is a call expression."""
        if value_node is None or value_node.type != "call_expression":
            return None

        chain = decompose(value_node)
        validations, default = self._collect_validations(value_node)
        type_label, nested = self._resolve_type(chain, value_node)

        return FieldDescriptor(
            name=name,
            type_label=type_label,
            is_optional=chain.has_method(*self._optional_markers),
            validations=tuple(validations),
            default_value=default,
            nested=nested,
        )

    def _collect_validations(self, node: Any) -> tuple[list[str], str | None]:
        """Constraint and default entries of the whole chain, outermost first."""
        validations: list[str] = []
        seen: set[str] = set()
        default: str | None = None

        for call in iter_calls(node):
            method = last_method(call)
            if method is None:
                continue
            args = call_arguments(call)
            entry: str | None = None

            if method in self._constraints:
                if not args:
                    entry = method
                else:
                    value = literal_value(args[0])
                    if value is _MISSING:
                        continue
                    entry = f"{method}: {display_value(value)}"
                    message = self._message(args[1]) if len(args) > 1 else None
                    if message is not None:
                        entry += f', "{message}"'
            elif method == "default" and args:
                literal = json_literal(args[0])
                if literal is None:
                    continue
                entry = f"default: {literal}"
                if default is None:
                    default = literal

            if entry is not None and entry not in seen:
                seen.add(entry)
                validations.append(entry)

        return validations, default

    @staticmethod
    def _message(node: Any) -> str | None:
        """Custom error message: a string literal or ``{ message: "..." }``."""
        if node.type == "string":
            return _decode_string(node)
        if node.type == "object":
            for pair in node.named_children:
                if pair.type != "pair":
                    continue
                key = pair.child_by_field_name("key")
                if node_text(key) == "message" or string_value(key) == "message":
                    value = pair.child_by_field_name("value")
                    if value is not None and value.type == "string":
                        return _decode_string(value)
        return None

    def _resolve_type(
        self, chain: CallChain, node: Any
    ) -> tuple[str, tuple[FieldDescriptor, ...] | None]:
        nested: tuple[FieldDescriptor, ...] | None = None

        if chain.is_rooted_at(self._root):
            kind, kind_index = self._builder_kind(chain)
            ctor = self._constructor_call(node)
            if kind == "enum" and ctor is not None:
                label = self._enum_union(ctor) or "enum"
            elif kind == "array" and ctor is not None:
                label = f"{self._item_label(ctor)}[]"
            elif kind == "object":
                nested = self._object_fields(node) or None
                label = "object"
            else:
                label = PRIMITIVE_LABELS.get(kind, kind)
            suffix = chain.methods[kind_index + 1 :]
        elif chain.root is not None:
            # Chained on another schema (UserSchema.optional())
            label = chain.root
            suffix = chain.methods
        else:
            label = "unknown"
            suffix = chain.methods

        wraps = sum(1 for method in suffix if method == "array")
        if wraps:
            label = self._wrap_item(label) + "[]" * wraps
            nested = None
        return label, nested

    @staticmethod
    def _builder_kind(chain: CallChain) -> tuple[str, int]:
        methods = chain.methods
        index = 0
        while index < len(methods) - 1 and methods[index] in _NAMESPACE_PREFIXES:
            index += 1
        return methods[index], index

    # ------------------------------------------------------------------
    # Constructor helpers
    # ------------------------------------------------------------------

    def _constructor_call(self, node: Any) -> Any:
        """The innermost call of the chain, invoked directly on the root namespace."""
        for call in reversed(iter_calls(node)):
            func = call.child_by_field_name("function")
            if func is None or func.type != "member_expression":
                continue
            obj = func.child_by_field_name("object")
            while obj is not None and obj.type == "member_expression":
                obj = obj.child_by_field_name("object")
            if obj is not None and obj.type == "identifier" and node_text(obj) == self._root:
                return call
        return None

    def _object_fields(self, node: Any) -> tuple[FieldDescriptor, ...]:
        """Fields of ``object({...})`` followed by any ``.extend({...})`` calls."""
        ctor = self._constructor_call(node)
        if ctor is None:
            return ()
        args = call_arguments(ctor)
        fields: dict[str, FieldDescriptor] = {}
        if args and args[0].type == "object":
            self._add_properties(args[0], fields)

        for call in reversed(iter_calls(node)):
            if call is ctor or last_method(call) != "extend":
                continue
            ext_args = call_arguments(call)
            if ext_args and ext_args[0].type == "object":
                self._add_properties(ext_args[0], fields)
        return tuple(fields.values())

    def _add_properties(self, obj: Any, fields: dict[str, FieldDescriptor]) -> None:
        for prop in obj.named_children:
            if prop.type != "pair":
                continue
            key = self._property_key(prop.child_by_field_name("key"))
            if key is None:
                continue
            field = self.parse_field(key, prop.child_by_field_name("value"))
            if field is not None:
                fields[key] = field

    @staticmethod
    def _property_key(key: Any) -> str | None:
        if key is None:
            return None
        if key.type in ("property_identifier", "number"):
            return node_text(key)
        if key.type == "string":
            return _decode_string(key)
        return None

    @staticmethod
    def _enum_union(ctor: Any) -> str:
        args = call_arguments(ctor)
        if not args or args[0].type != "array":
            return ""
        values = [
            _decode_string(element) for element in args[0].named_children if element.type == "string"
        ]
        return " | ".join(f'"{v}"' for v in values)

    def _item_label(self, ctor: Any) -> str:
        args = call_arguments(ctor)
        if not args:
            return "unknown"
        item = args[0]
        if item.type == "identifier":
            return node_text(item)
        if item.type != "call_expression":
            return "unknown"
        label, _ = self._resolve_type(decompose(item), item)
        return self._wrap_item(label)

    @staticmethod
    def _wrap_item(label: str) -> str:
        return f"({label})" if " | " in label else label
