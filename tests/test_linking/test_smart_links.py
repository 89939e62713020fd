"""Tests for oaslink.linking.smart_links."""

from __future__ import annotations

import logging

import pytest

from oaslink.exceptions import RefResolutionError
from oaslink.linking.registry import SpecRegistry
from oaslink.linking.smart_links import (
    extract_document_templates,
    get_endpoint_smart_links,
    get_endpoint_value_type_links,
    resolve_primary_status_code,
    response_value_types,
)
from oaslink.models import HTTPMethod, OperationKey, ResponseValueType


def _key(document: str, path: str, method: str = "get") -> OperationKey:
    return OperationKey(document=document, path=path, method=HTTPMethod(method))


def _doc_with_responses(responses: dict) -> dict:
    return {"paths": {"/x": {"get": {"responses": responses}}}}


# ---------------------------------------------------------------------------
# resolve_primary_status_code
# ---------------------------------------------------------------------------


class TestResolvePrimaryStatusCode:
    def test_single_success_code(self) -> None:
        doc = _doc_with_responses({"201": {}, "400": {}})
        assert resolve_primary_status_code("/x", "get", doc) == "201"

    def test_prefers_200(self) -> None:
        doc = _doc_with_responses({"201": {}, "200": {}, "default": {}})
        assert resolve_primary_status_code("/x", "get", doc) == "200"

    def test_first_declared_without_200(self) -> None:
        doc = _doc_with_responses({"202": {}, "201": {}})
        assert resolve_primary_status_code("/x", "get", doc) == "202"

    def test_range_code(self) -> None:
        doc = _doc_with_responses({"2XX": {}, "4XX": {}})
        assert resolve_primary_status_code("/x", "get", doc) == "2XX"

    def test_integer_codes(self) -> None:
        doc = _doc_with_responses({200: {}})
        assert resolve_primary_status_code("/x", "get", doc) == "200"

    @pytest.mark.parametrize(
        "responses",
        [{"404": {}, "default": {}}, {}, {"20": {}}, {"2000": {}}],
    )
    def test_no_success_code(self, responses) -> None:
        assert resolve_primary_status_code("/x", "get", _doc_with_responses(responses)) is None

    def test_missing_operation(self) -> None:
        assert resolve_primary_status_code("/nope", "get", _doc_with_responses({"200": {}})) is None
        assert resolve_primary_status_code("/x", "post", _doc_with_responses({"200": {}})) is None

    def test_missing_responses(self) -> None:
        assert resolve_primary_status_code("/x", "get", {"paths": {"/x": {"get": {}}}}) is None


# ---------------------------------------------------------------------------
# response_value_types
# ---------------------------------------------------------------------------


class TestResponseValueTypes:
    def test_bare_string(self) -> None:
        assert response_value_types({"x-responseValueType": "UserID"}) == [
            ResponseValueType(value_type="UserID")
        ]

    def test_list_of_objects_and_strings(self) -> None:
        raw = {
            "x-responseValueType": [
                {"x-valueType": "UserID", "x-path": "owner/id"},
                "OrderID",
                {"x-path": "orphan"},
                42,
            ]
        }
        assert response_value_types(raw) == [
            ResponseValueType(value_type="UserID", body_path="owner/id"),
            ResponseValueType(value_type="OrderID"),
        ]

    def test_absent_or_malformed(self) -> None:
        assert response_value_types({}) == []
        assert response_value_types({"x-responseValueType": ""}) == []
        assert response_value_types({"x-responseValueType": {"x-valueType": "A"}}) == []

    def test_body_expression(self) -> None:
        assert ResponseValueType(value_type="A").body_expression() == "$response.body"
        assert ResponseValueType(value_type="A", body_path="id").body_expression() == "$response.body#/id"
        assert ResponseValueType(value_type="A", body_path="/a/b").body_expression() == "$response.body#/a/b"


# ---------------------------------------------------------------------------
# get_endpoint_smart_links
# ---------------------------------------------------------------------------


class TestGetEndpointSmartLinks:
    def test_reads_primary_response_links(self, orders_doc) -> None:
        registry = SpecRegistry.from_documents([orders_doc])
        templates = get_endpoint_smart_links(registry, _key("Orders", "/orders/{id}"))

        assert list(templates) == ["owner"]
        owner = templates["owner"]
        assert owner.origin == _key("Orders", "/orders/{id}")
        assert owner.status_code == "200"
        assert owner.parameters == {"UserID": "$response.body#/userId"}
        assert owner.description == "The user who placed the order"
        assert owner.value_type is None
        assert not owner.is_implicit

    def test_resolves_response_and_link_refs(self, make_document) -> None:
        doc = make_document(
            "Svc",
            {"/x": {"get": {"responses": {"200": {"$ref": "#/components/responses/Ok"}}}}},
            components={
                "responses": {
                    "Ok": {
                        "description": "OK",
                        "x-links": {"next": {"$ref": "#/components/links/Next"}},
                    }
                },
                "links": {
                    "Next": {
                        "x-valueType": "Page",
                        "parameters": {"Cursor": "$response.body#/next"},
                        "requestBody": {"cursor": "$response.body#/next"},
                    }
                },
            },
        )
        registry = SpecRegistry.from_documents([doc])
        next_link = get_endpoint_smart_links(registry, _key("Svc", "/x"))["next"]
        assert next_link.value_type == "Page"
        assert next_link.parameters == {"Cursor": "$response.body#/next"}
        assert next_link.request_body == {"cursor": "$response.body#/next"}

    def test_only_primary_response_scanned(self, make_document) -> None:
        links = {"x-links": {"retry": {"parameters": {"JobID": "$response.body#/id"}}}}
        doc = make_document("Svc", {"/x": {"get": {"responses": {"200": {}, "202": links}}}})
        registry = SpecRegistry.from_documents([doc])
        assert get_endpoint_smart_links(registry, _key("Svc", "/x")) == {}

    def test_custom_status_code_resolver(self, make_document) -> None:
        links = {"x-links": {"retry": {"parameters": {"JobID": "$response.body#/id"}}}}
        doc = make_document("Svc", {"/x": {"get": {"responses": {"200": {}, "202": links}}}})
        registry = SpecRegistry.from_documents([doc])

        templates = get_endpoint_smart_links(
            registry, _key("Svc", "/x"), status_code_resolver=lambda path, method, document: "202"
        )
        assert templates["retry"].status_code == "202"

    def test_no_success_response(self, make_document) -> None:
        doc = make_document("Svc", {"/x": {"get": {"responses": {"404": {"x-links": {"a": {}}}}}}})
        registry = SpecRegistry.from_documents([doc])
        assert get_endpoint_smart_links(registry, _key("Svc", "/x")) == {}

    def test_non_object_link_skipped_with_warning(self, make_document, caplog) -> None:
        doc = make_document(
            "Svc",
            {"/x": {"get": {"responses": {"200": {"x-links": {"bad": "nope", "good": {}}}}}}},
        )
        registry = SpecRegistry.from_documents([doc])
        with caplog.at_level(logging.WARNING, logger="oaslink"):
            templates = get_endpoint_smart_links(registry, _key("Svc", "/x"))
        assert list(templates) == ["good"]
        assert "Smart link 'bad'" in caplog.text

    def test_broken_response_ref_raises(self, make_document) -> None:
        doc = make_document(
            "Svc", {"/x": {"get": {"responses": {"200": {"$ref": "#/components/responses/Gone"}}}}}
        )
        registry = SpecRegistry.from_documents([doc])
        with pytest.raises(RefResolutionError):
            get_endpoint_smart_links(registry, _key("Svc", "/x"))


# ---------------------------------------------------------------------------
# get_endpoint_value_type_links
# ---------------------------------------------------------------------------


class TestGetEndpointValueTypeLinks:
    def test_builds_one_implicit_template_per_response(self, make_document) -> None:
        doc = make_document(
            "Svc",
            {
                "/x": {
                    "post": {
                        "responses": {
                            "201": {
                                "x-responseValueType": [
                                    {"x-valueType": "UserID", "x-path": "id"},
                                    {"x-valueType": "UserID", "x-path": "legacyId"},
                                    "Session",
                                ]
                            },
                            "400": {"description": "no tags"},
                            "409": {"x-responseValueType": "UserID"},
                        }
                    }
                }
            },
        )
        registry = SpecRegistry.from_documents([doc])
        templates = get_endpoint_value_type_links(registry, _key("Svc", "/x", "post"))

        assert [t.status_code for t in templates] == ["201", "409"]
        assert all(t.is_implicit for t in templates)
        assert templates[0].parameters == {
            "UserID": "$response.body#/id",
            "Session": "$response.body",
        }
        assert templates[1].parameters == {"UserID": "$response.body"}

    def test_response_ref_resolved(self, users_doc) -> None:
        registry = SpecRegistry.from_documents([users_doc])
        templates = get_endpoint_value_type_links(registry, _key("Users", "/users/{id}"))
        assert len(templates) == 1
        assert templates[0].parameters == {"UserID": "$response.body#/id"}


# ---------------------------------------------------------------------------
# extract_document_templates
# ---------------------------------------------------------------------------


class TestExtractDocumentTemplates:
    def test_explicit_before_implicit(self, make_document) -> None:
        doc = make_document(
            "Svc",
            {
                "/x": {
                    "get": {
                        "responses": {
                            "200": {
                                "x-links": {"self": {"parameters": {"ItemID": "$response.body#/id"}}},
                                "x-responseValueType": [{"x-valueType": "ItemID", "x-path": "id"}],
                            }
                        }
                    }
                }
            },
        )
        registry = SpecRegistry.from_documents([doc])
        templates = extract_document_templates(registry, "Svc")
        assert [t.name for t in templates] == ["self", None]

    def test_auto_links_disabled(self, users_doc) -> None:
        registry = SpecRegistry.from_documents([users_doc])
        assert extract_document_templates(registry, "Users", auto_links=False) == []
        assert len(extract_document_templates(registry, "Users")) == 1
