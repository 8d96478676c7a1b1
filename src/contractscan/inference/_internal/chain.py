"""Call-chain decomposition.

Flattens ``z.string().min(3).optional()`` into root ``z`` plus methods
``("string", "min", "optional")``. Only clean identifier / member / call
shapes are followed; anything else (computed access, ``this``, parenthesized
or non-null expressions) truncates the chain. Decomposition never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from contractscan.inference._internal.parsing.treesitter import node_text

_MEMBER_TYPES = frozenset({"member_expression"})
_PROPERTY_TYPES = frozenset({"property_identifier", "identifier"})


@dataclass(frozen=True, slots=True)
class CallChain:
    """Root identifier plus method names, outermost call last."""

    root: str | None
    methods: tuple[str, ...] = ()

    @property
    def parts(self) -> tuple[str, ...]:
        """Root-first list of names (the root is absent when truncated)."""
        if self.root is None:
            return self.methods
        return (self.root, *self.methods)

    @property
    def constructor(self) -> str | None:
        """First method after the root (``object`` in ``z.object(...)``)."""
        if self.root is None or not self.methods:
            return None
        return self.methods[0]

    @property
    def last(self) -> str | None:
        parts = self.parts
        return parts[-1] if parts else None

    def has_method(self, *names: str) -> bool:
        return any(name in self.methods for name in names)

    def is_rooted_at(self, root_name: str) -> bool:
        """True for a builder invocation: rooted at ``root_name``, 2+ parts."""
        return self.root == root_name and len(self.parts) >= 2


def decompose(call: Any) -> CallChain:
    """Decompose a ``call_expression`` node into a CallChain.

    Non-call input yields an empty chain.
    """
    if call is None or call.type != "call_expression":
        return CallChain(root=None)

    methods: list[str] = []
    current = call.child_by_field_name("function")
    root: str | None = None

    while current is not None:
        if current.type in _MEMBER_TYPES:
            prop = current.child_by_field_name("property")
            if prop is not None and prop.type in _PROPERTY_TYPES:
                methods.append(node_text(prop))
            current = current.child_by_field_name("object")
        elif current.type == "call_expression":
            current = current.child_by_field_name("function")
        elif current.type == "identifier":
            root = node_text(current)
            break
        else:
            break

    methods.reverse()
    return CallChain(root=root, methods=tuple(methods))


def last_method(call: Any) -> str | None:
    """Method name invoked by this exact call (``min`` for ``x.min(3)``)."""
    func = call.child_by_field_name("function")
    if func is None or func.type not in _MEMBER_TYPES:
        return None
    prop = func.child_by_field_name("property")
    if prop is None or prop.type not in _PROPERTY_TYPES:
        return None
    return node_text(prop)


def inner_call(call: Any) -> Any:
    """Step one call inward: the call this one was chained on, or None."""
    func = call.child_by_field_name("function")
    if func is None:
        return None
    if func.type in _MEMBER_TYPES:
        target = func.child_by_field_name("object")
    elif func.type == "call_expression":
        target = func
    else:
        return None
    if target is not None and target.type == "call_expression":
        return target
    return None


def iter_calls(call: Any) -> list[Any]:
    """All calls of a chain, outermost first."""
    calls = []
    current = call
    while current is not None and current.type == "call_expression":
        calls.append(current)
        current = inner_call(current)
    return calls


def call_arguments(call: Any) -> list[Any]:
    """Argument expression nodes of a call (comments excluded)."""
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [a for a in args.named_children if a.type != "comment"]
