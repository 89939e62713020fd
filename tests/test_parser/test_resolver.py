"""Tests for oaslink.parser.resolver."""

from __future__ import annotations

import pytest

from oaslink.exceptions import RefResolutionError, SpecParseError
from oaslink.parser.resolver import RefResolver, is_reference, resolve_pointer


class TestIsReference:
    def test_ref_object(self) -> None:
        assert is_reference({"$ref": "#/components/responses/User"})

    def test_plain_object(self) -> None:
        assert not is_reference({"description": "OK"})

    def test_non_string_ref(self) -> None:
        assert not is_reference({"$ref": 3})

    def test_non_mapping(self) -> None:
        assert not is_reference("#/components")


# ---------------------------------------------------------------------------
# resolve_pointer
# ---------------------------------------------------------------------------


class TestResolvePointer:
    """Test single-pointer resolution."""

    def test_simple_path(self) -> None:
        root = {"components": {"responses": {"User": {"description": "A user"}}}}
        assert resolve_pointer("#/components/responses/User", root) == {"description": "A user"}

    def test_escaped_segments(self) -> None:
        root = {"paths": {"/users/{id}": {"get": {"operationId": "getUser"}}, "a~b": 1}}
        assert resolve_pointer("#/paths/~1users~1{id}/get", root) == {"operationId": "getUser"}
        assert resolve_pointer("#/paths/a~0b", root) == 1

    def test_array_index(self) -> None:
        root = {"items": [{"name": "first"}, {"name": "second"}]}
        assert resolve_pointer("#/items/1", root) == {"name": "second"}

    def test_missing_key_raises(self) -> None:
        with pytest.raises(RefResolutionError, match="key 'Missing' not found"):
            resolve_pointer("#/components/Missing", {"components": {}})

    def test_invalid_array_index_raises(self) -> None:
        with pytest.raises(RefResolutionError, match="invalid array index"):
            resolve_pointer("#/items/7", {"items": []})

    def test_navigate_into_scalar_raises(self) -> None:
        with pytest.raises(RefResolutionError, match="cannot navigate into str"):
            resolve_pointer("#/title/deeper", {"title": "x"})

    def test_external_ref_raises(self) -> None:
        with pytest.raises(RefResolutionError, match="External \\$ref not supported"):
            resolve_pointer("other.yaml#/components/User", {})

    def test_error_carries_ref_and_document(self) -> None:
        with pytest.raises(RefResolutionError) as exc_info:
            resolve_pointer("#/nope", {}, document="Users")
        assert exc_info.value.ref == "#/nope"
        assert exc_info.value.document == "Users"
        assert "in 'Users'" in str(exc_info.value)

    def test_is_a_spec_parse_error(self) -> None:
        with pytest.raises(SpecParseError):
            resolve_pointer("#/nope", {})


# ---------------------------------------------------------------------------
# RefResolver
# ---------------------------------------------------------------------------


class TestRefResolver:
    """Test the memoising per-document resolver."""

    def test_non_reference_returned_unchanged(self) -> None:
        resolver = RefResolver({})
        value = {"description": "OK"}
        assert resolver.resolve(value) is value

    def test_follows_chain(self) -> None:
        document = {
            "components": {
                "responses": {
                    "Alias": {"$ref": "#/components/responses/User"},
                    "User": {"description": "A user"},
                }
            }
        }
        resolver = RefResolver(document, label="Users")
        resolved = resolver.resolve({"$ref": "#/components/responses/Alias"})
        assert resolved == {"description": "A user"}

    def test_circular_chain_raises(self) -> None:
        document = {
            "components": {
                "responses": {
                    "A": {"$ref": "#/components/responses/B"},
                    "B": {"$ref": "#/components/responses/A"},
                }
            }
        }
        resolver = RefResolver(document, label="Loop")
        with pytest.raises(RefResolutionError, match="Circular \\$ref chain in 'Loop'"):
            resolver.resolve({"$ref": "#/components/responses/A"})

    def test_lookup_is_memoised(self) -> None:
        document = {"components": {"parameters": {"Id": {"name": "id"}}}}
        resolver = RefResolver(document)
        first = resolver.lookup("#/components/parameters/Id")

        document["components"]["parameters"]["Id"] = {"name": "changed"}
        assert resolver.lookup("#/components/parameters/Id") is first

    def test_returns_target_object_not_copy(self) -> None:
        target = {"description": "shared"}
        resolver = RefResolver({"components": {"responses": {"Shared": target}}})
        assert resolver.resolve({"$ref": "#/components/responses/Shared"}) is target

    def test_label_property(self) -> None:
        assert RefResolver({}, label="Users").label == "Users"
        assert RefResolver({}).label is None
