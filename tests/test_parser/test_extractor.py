"""Tests for specview.parser.extractor."""

from __future__ import annotations

from typing import Any

import pytest

from specview.models import Severity
from specview.parser.extractor import (
    endpoint_id,
    extract_endpoints,
    kebab_case,
    resolve_content,
    schema_type_name,
)
from specview.parser.resolver import resolve_refs


def _doc(paths: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"openapi": "3.0.3", "info": {"title": "T", "version": "1"}, "paths": paths, **extra}


# ---------------------------------------------------------------------------
# IDs
# ---------------------------------------------------------------------------


class TestEndpointId:
    def test_operation_id_is_kebab_cased(self) -> None:
        assert endpoint_id("get", "/pets", "listPets") == "list-pets"

    def test_acronyms(self) -> None:
        assert endpoint_id("get", "/pets/{id}", "getPetByID") == "get-pet-by-id"

    def test_synthesized_from_method_and_path(self) -> None:
        assert endpoint_id("GET", "/pets/{petId}") == "get--pets-_petId_"

    def test_punctuation_only_operation_id_falls_back(self) -> None:
        assert endpoint_id("post", "/a", "___") == "post--a"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("listPets", "list-pets"),
            ("get_user v2", "get-user-v-2"),
            ("HTTPServer", "http-server"),
            ("already-kebab", "already-kebab"),
        ],
    )
    def test_kebab_case(self, text: str, expected: str) -> None:
        assert kebab_case(text) == expected


# ---------------------------------------------------------------------------
# Whole documents
# ---------------------------------------------------------------------------


class TestExtractDocuments:
    def test_petstore_endpoint_count(self, petstore_30_raw: dict[str, Any]) -> None:
        endpoints, diagnostics = extract_endpoints(resolve_refs(petstore_30_raw))
        assert diagnostics == []
        assert [e.id for e in endpoints] == ["list-pets", "create-pets", "show-pet-by-id", "delete-pet"]

    def test_count_matches_method_keys(self, petstore_30_raw: dict[str, Any]) -> None:
        expected = sum(
            1
            for item in petstore_30_raw["paths"].values()
            for key in item
            if key in {"get", "post", "put", "delete", "patch", "options"}
        )
        endpoints, _ = extract_endpoints(petstore_30_raw)
        assert len(endpoints) == expected

    def test_head_is_not_extracted(self) -> None:
        doc = _doc({"/h": {"head": {"responses": {}}, "get": {"responses": {}}}})
        endpoints, _ = extract_endpoints(doc)
        assert [e.method for e in endpoints] == ["GET"]

    def test_method_order_within_path(self) -> None:
        ops = {m: {"responses": {}} for m in ("options", "patch", "delete", "put", "post", "get")}
        endpoints, _ = extract_endpoints(_doc({"/x": ops}))
        assert [e.method for e in endpoints] == ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]

    @pytest.mark.parametrize("document", [None, "text", {"paths": []}, {"openapi": "3.0.0"}])
    def test_no_paths(self, document: Any) -> None:
        assert extract_endpoints(document) == ([], [])

    def test_paths_only_document(self) -> None:
        assert extract_endpoints({"paths": {}}) == ([], [])

    def test_empty_operation_is_extracted(self) -> None:
        endpoints, diagnostics = extract_endpoints(
            _doc({"/a": {"get": {}, "post": {"responses": {}}}})
        )
        assert [e.method for e in endpoints] == ["GET", "POST"]
        assert endpoints[0].id == "get--a"
        assert endpoints[0].responses == []
        assert diagnostics == []

    def test_null_operation_is_skipped(self) -> None:
        endpoints, diagnostics = extract_endpoints(_doc({"/a": {"get": None, "put": {}}}))
        assert [e.method for e in endpoints] == ["PUT"]
        assert diagnostics == []

    def test_duplicate_ids_are_both_extracted(self) -> None:
        doc = _doc(
            {
                "/a/b": {"get": {"responses": {}}},
                "/a-b": {"get": {"responses": {}}},
                "/x": {"post": {"operationId": "dup"}, "put": {"operationId": "dup"}},
            }
        )
        endpoints, _ = extract_endpoints(doc)
        assert [e.id for e in endpoints] == ["get--a-b", "get--a-b", "dup", "dup"]

    def test_fields(self, petstore_30_raw: dict[str, Any]) -> None:
        endpoints, _ = extract_endpoints(resolve_refs(petstore_30_raw))
        list_pets = endpoints[0]
        assert list_pets.method == "GET"
        assert list_pets.path == "/pets"
        assert list_pets.summary == "List all pets"
        assert list_pets.tags == ["pets"]
        assert [r.status_code for r in list_pets.responses] == ["200", "default"]


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class TestParameters:
    def test_openapi3_schema_param(self, petstore_30_raw: dict[str, Any]) -> None:
        endpoints, _ = extract_endpoints(petstore_30_raw)
        limit = endpoints[0].parameters[0]
        assert limit.name == "limit"
        assert limit.location == "query"
        assert limit.type == "integer"
        assert limit.format == "int32"
        assert limit.required is False
        assert limit.schema_ == {"type": "integer", "format": "int32"}

    def test_swagger_inline_type(self, swagger_20_raw: dict[str, Any]) -> None:
        endpoints, _ = extract_endpoints(swagger_20_raw)
        get_user = next(e for e in endpoints if e.id == "get-user")
        assert get_user.parameters[0].type == "string"
        assert get_user.parameters[0].required is True

    def test_body_param_becomes_request_body(self, swagger_20_raw: dict[str, Any]) -> None:
        endpoints, _ = extract_endpoints(resolve_refs(swagger_20_raw))
        create = next(e for e in endpoints if e.id == "create-user")
        assert create.parameters == []
        assert create.request_body is not None
        assert create.request_body.required is True
        assert create.request_body.content.type == "application/json"
        assert create.request_body.content.schema_["required"] == ["id"]

    def test_openapi31_type_list(self) -> None:
        doc = _doc({"/a": {"get": {"parameters": [
            {"name": "q", "in": "query", "schema": {"type": ["null", "string"]}}
        ], "responses": {}}}})
        endpoints, _ = extract_endpoints(doc)
        assert endpoints[0].parameters[0].type == "string"


class TestRequestBody:
    def test_first_media_type(self, petstore_30_raw: dict[str, Any]) -> None:
        endpoints, _ = extract_endpoints(petstore_30_raw)
        body = endpoints[1].request_body
        assert body.description == "Pet to add"
        assert body.required is True
        assert body.content.type == "application/json"
        assert body.content.schema_ == {"$ref": "#/components/schemas/Pet"}

    def test_no_body(self, petstore_30_raw: dict[str, Any]) -> None:
        endpoints, _ = extract_endpoints(petstore_30_raw)
        assert endpoints[0].request_body is None


class TestResponses:
    def test_object_without_content(self) -> None:
        endpoints, _ = extract_endpoints(_doc({"/a": {"get": {"responses": {"200": {"description": "ok"}}}}}))
        (response,) = endpoints[0].responses
        assert response.status_code == "200"
        assert response.description == "ok"
        assert response.content is None

    def test_string_valued_entry(self) -> None:
        endpoints, _ = extract_endpoints(_doc({"/a": {"get": {"responses": {"404": "Not here"}}}}))
        assert endpoints[0].responses[0].description == "Not here"
        assert endpoints[0].responses[0].content is None

    def test_integer_status_codes_become_strings(self) -> None:
        endpoints, _ = extract_endpoints(_doc({"/a": {"get": {"responses": {200: {"description": "ok"}}}}}))
        assert endpoints[0].responses[0].status_code == "200"

    def test_swagger_response_schema_uses_produces(self, swagger_20_raw: dict[str, Any]) -> None:
        swagger_20_raw["produces"] = ["application/xml"]
        endpoints, _ = extract_endpoints(swagger_20_raw)
        list_users = endpoints[0]
        content = list_users.responses[0].content
        assert content.type == "application/xml"
        assert content.schema_["type"] == "array"


class TestMalformedOperations:
    def test_bad_parameters_warns_and_continues(self) -> None:
        doc = _doc({
            "/bad": {"get": {"parameters": "nope", "responses": {}}},
            "/good": {"get": {"responses": {}}},
        })
        endpoints, diagnostics = extract_endpoints(doc)
        assert [e.path for e in endpoints] == ["/good"]
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == Severity.WARNING
        assert diagnostics[0].path == "paths./bad.get"
        assert diagnostics[0].message == "Invalid parameters in GET /bad"

    def test_bad_responses(self) -> None:
        doc = _doc({"/r": {"post": {"responses": ["200"]}}})
        _, diagnostics = extract_endpoints(doc)
        assert diagnostics[0].message == "Invalid responses in POST /r"

    def test_bad_request_body(self) -> None:
        doc = _doc({"/b": {"put": {"requestBody": "json please", "responses": {}}}})
        _, diagnostics = extract_endpoints(doc)
        assert diagnostics[0].message == "Invalid request body in PUT /b"

    def test_non_object_operation(self) -> None:
        doc = _doc({"/o": {"get": "list things"}})
        endpoints, diagnostics = extract_endpoints(doc)
        assert endpoints == []
        assert diagnostics[0].message == "Error processing endpoint GET /o"


class TestHelpers:
    def test_resolve_content_empty(self) -> None:
        assert resolve_content({}) is None
        assert resolve_content(None) is None

    def test_resolve_content_without_schema(self) -> None:
        content = resolve_content({"text/plain": {}})
        assert content.type == "text/plain"
        assert content.schema_ is None

    @pytest.mark.parametrize(
        "schema, expected",
        [
            ({"type": "string"}, "string"),
            ({"type": ["string", "null"]}, "string"),
            ({"type": ["null"]}, "any"),
            ({"$ref": "#/components/schemas/Pet"}, "Pet"),
            ({"properties": {"a": {}}}, "object"),
            ({"items": {"type": "string"}}, "array"),
            ({}, "any"),
            ("string", "any"),
        ],
    )
    def test_schema_type_name(self, schema: Any, expected: str) -> None:
        assert schema_type_name(schema) == expected
