"""Unit tests for GraphQL SDL extraction."""

from __future__ import annotations

import pytest
from graphql import parse

from contractscan.inference._internal.adapters.sdl import parse_sdl, type_info

SDL = """
type User {
  id: ID!
  name: String
  email: String!
  age: Int
  score: Float
  active: Boolean!
  posts(first: Int, after: String): [Post!]!
}

input CreateUserInput {
  name: String!
  tags: [String]
  role: Role = MEMBER
}

enum Role {
  ADMIN
  MEMBER
}

type Query {
  users: [User]
}

type Mutation {
  createUser(input: CreateUserInput!): User
}
"""


class TestParseSdl:
    """Definitions extracted from a document."""

    def test_root_types_skipped(self) -> None:
        schema_map = parse_sdl(SDL, "/app/schema.graphql")

        assert schema_map.names() == ["User", "CreateUserInput", "Role"]

    def test_object_fields(self) -> None:
        user = parse_sdl(SDL, "/app/schema.graphql").get("User")

        assert user is not None
        assert user.source_kind == "sdl"
        assert user.get_field("id").type_label == "string"
        assert not user.get_field("id").is_optional
        assert user.get_field("name").is_optional
        assert user.get_field("age").type_label == "number"
        assert user.get_field("score").type_label == "number"
        assert user.get_field("active").type_label == "boolean"

    def test_field_arguments_recorded(self) -> None:
        posts = parse_sdl(SDL, "/app/schema.graphql").get("User").get_field("posts")

        assert posts.type_label == "Post[]"
        assert not posts.is_optional
        assert posts.validations == ("args: 2",)

    def test_input_fields(self) -> None:
        schema = parse_sdl(SDL, "/app/schema.graphql").get("CreateUserInput")

        assert schema.field_names() == ["name", "tags", "role"]
        assert schema.get_field("tags").type_label == "string[]"
        assert schema.get_field("tags").is_optional
        assert schema.get_field("role").type_label == "Role"

    def test_enum_values(self) -> None:
        schema = parse_sdl(SDL, "/app/schema.graphql").get("Role")

        assert schema.field_names() == ["ADMIN", "MEMBER"]
        assert {f.type_label for f in schema.fields} == {"enum"}

    def test_renamed_root_type_skipped(self) -> None:
        sdl = """
        schema { query: RootQuery }
        type RootQuery { me: Account }
        type Account { id: ID! }
        """

        assert parse_sdl(sdl, "/app/schema.graphql").names() == ["Account"]

    def test_syntax_error_yields_empty_map(self) -> None:
        schema_map = parse_sdl("type User {\n  id: ID!\n", "/app/broken.graphql")

        assert len(schema_map) == 0
        assert schema_map.path == "/app/broken.graphql"

    def test_extensions_and_interfaces_ignored(self) -> None:
        sdl = """
        interface Node { id: ID! }
        type Item implements Node { id: ID! }
        extend type Item { label: String }
        """

        schema_map = parse_sdl(sdl, "/app/schema.graphql")

        assert schema_map.names() == ["Item"]
        assert schema_map.get("Item").field_names() == ["id"]


class TestTypeInfo:
    """Type reference labels and optionality."""

    @pytest.mark.parametrize(
        ("type_text", "label", "is_optional"),
        [
            ("String", "string", True),
            ("String!", "string", False),
            ("[Int]", "number[]", True),
            ("[Int!]!", "number[]", False),
            ("[[ID]]", "string[][]", True),
            ("Custom", "Custom", True),
        ],
    )
    def test_labels(self, type_text: str, label: str, is_optional: bool) -> None:
        document = parse(f"type T {{ f: {type_text} }}")
        field_type = document.definitions[0].fields[0].type

        assert type_info(field_type) == (label, is_optional)
