"""Contract role classification.

Binds the schemas of an API route file to request / response / query roles
from naming conventions. This is a heuristic: it is tuned for plausible
results on typical route handlers, not for exactness.

Keyword priority per schema name is query, then response, then request.
A schema matching no keyword still becomes the request schema when it is
validated in a file that reads an inbound payload (``await req.json()``
piped into ``Schema.parse``) and no keyword claimed the request role.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping

from contractscan.config.models import ClassifierConfig
from contractscan.inference.models import (
    ContractBinding,
    ContractRole,
    SchemaDefinition,
    SchemaMap,
)


class ContractRoleClassifier:
    """Assigns at most one schema to each contract role."""

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        config = config or ClassifierConfig()
        self._keywords: tuple[tuple[ContractRole, tuple[str, ...]], ...] = (
            ("query", tuple(k.lower() for k in config.query_keywords)),
            ("response", tuple(k.lower() for k in config.response_keywords)),
            ("request", tuple(k.lower() for k in config.request_keywords)),
        )
        self._inbound_hints = tuple(config.inbound_hints)

    def role_for(self, name: str) -> ContractRole | None:
        """Role implied by a schema name alone, None if no keyword matches."""
        lowered = name.lower()
        for role, keywords in self._keywords:
            if any(keyword in lowered for keyword in keywords):
                return role
        return None

    def reads_inbound_payload(self, text: str) -> bool:
        return any(hint in text for hint in self._inbound_hints)

    def assign_roles(
        self,
        names: Iterable[str],
        text: str,
        validated_names: Collection[str] = (),
    ) -> dict[ContractRole, str]:
        """Map each role to the first schema name claiming it.

        Args:
            names: Schema names in declaration order.
            text: Raw source text of the route file.
            validated_names: Names seen under a validation call.
        """
        ordered = list(names)
        roles: dict[ContractRole, str] = {}
        unmatched: list[str] = []

        for name in ordered:
            role = self.role_for(name)
            if role is None:
                unmatched.append(name)
            elif role not in roles:
                roles[role] = name

        if "request" not in roles and self.reads_inbound_payload(text):
            fallback = next((n for n in unmatched if n in validated_names), None)
            if fallback is not None:
                roles["request"] = fallback

        return roles

    def classify(
        self,
        schemas: SchemaMap | Mapping[str, SchemaDefinition],
        text: str,
        validated_names: Collection[str] | None = None,
    ) -> ContractBinding:
        """Build the ContractBinding of a route file.

        ``validated_names`` defaults to the names a ``SchemaMap`` recorded
        during extraction.
        """
        if validated_names is None:
            validated_names = schemas.validated_names if isinstance(schemas, SchemaMap) else ()
        lookup = schemas.schemas if isinstance(schemas, SchemaMap) else schemas
        roles = self.assign_roles(lookup.keys(), text, validated_names)

        def pick(role: ContractRole) -> SchemaDefinition | None:
            name = roles.get(role)
            return lookup[name] if name is not None else None

        return ContractBinding(
            request_schema=pick("request"),
            response_schema=pick("response"),
            query_schema=pick("query"),
        )
