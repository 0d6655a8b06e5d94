"""Tests for specview.parser.validator."""

from __future__ import annotations

from typing import Any

import pytest

from specview.models import Severity
from specview.parser.validator import spec_version_label, validate_structure


def _errors(diagnostics: list) -> list:
    return [d for d in diagnostics if d.severity == Severity.ERROR]


def _warnings(diagnostics: list) -> list:
    return [d for d in diagnostics if d.severity == Severity.WARNING]


class TestValidDocuments:
    def test_petstore_is_clean(self, petstore_30_raw: dict[str, Any]) -> None:
        assert validate_structure(petstore_30_raw) == []

    def test_swagger_is_clean(self, swagger_20_raw: dict[str, Any]) -> None:
        assert validate_structure(swagger_20_raw) == []

    def test_head_only_path_counts_as_operation(self) -> None:
        doc = {
            "openapi": "3.0.3",
            "info": {"title": "T", "version": "1"},
            "paths": {"/ping": {"head": {"responses": {}}}},
        }
        assert validate_structure(doc) == []


class TestShape:
    @pytest.mark.parametrize("document", [None, {}, "", []])
    def test_empty_document(self, document: Any) -> None:
        diagnostics = validate_structure(document)
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == Severity.ERROR
        assert "empty" in diagnostics[0].message

    def test_non_mapping_document(self) -> None:
        diagnostics = validate_structure(["openapi"])
        assert len(diagnostics) == 1
        assert "must be an object" in diagnostics[0].message


class TestVersion:
    def test_missing_version_identifier(self) -> None:
        diagnostics = validate_structure({"info": {"title": "T", "version": "1"}, "paths": {"/a": {"get": {}}}})
        assert [d.message for d in _errors(diagnostics)] == [
            "Invalid API spec format: Missing OpenAPI/Swagger version identifier"
        ]

    def test_unsupported_openapi_version_warns(self) -> None:
        doc = {"openapi": "3.2.0", "info": {"title": "T", "version": "1"}, "paths": {"/a": {"get": {}}}}
        warnings = _warnings(validate_structure(doc))
        assert len(warnings) == 1
        assert "3.2.0 may not be fully supported" in warnings[0].message

    def test_unsupported_swagger_version_warns(self) -> None:
        doc = {"swagger": "1.2", "info": {"title": "T", "version": "1"}, "paths": {"/a": {"get": {}}}}
        warnings = _warnings(validate_structure(doc))
        assert "Swagger version 1.2" in warnings[0].message

    @pytest.mark.parametrize("version", ["3.0.0", "3.0.1", "3.0.2", "3.0.3", "3.1.0"])
    def test_supported_versions(self, version: str) -> None:
        doc = {"openapi": version, "info": {"title": "T", "version": "1"}, "paths": {"/a": {"get": {}}}}
        assert validate_structure(doc) == []


class TestInfo:
    def test_missing_info_reported_once(self) -> None:
        doc = {"openapi": "3.0.3", "paths": {"/a": {"get": {}}}}
        diagnostics = validate_structure(doc)
        assert [d.message for d in diagnostics] == [
            'Missing required "info" object in specification'
        ]
        assert not any(d.path == "info.title" for d in diagnostics)

    def test_missing_title_and_version(self) -> None:
        doc = {"openapi": "3.0.3", "info": {"description": "x"}, "paths": {"/a": {"get": {}}}}
        errors = _errors(validate_structure(doc))
        assert [d.path for d in errors] == ["info.title", "info.version"]

    def test_non_mapping_info(self) -> None:
        doc = {"openapi": "3.0.3", "info": "Petstore", "paths": {"/a": {"get": {}}}}
        errors = _errors(validate_structure(doc))
        assert [d.path for d in errors] == ["info.title", "info.version"]


class TestPaths:
    def test_empty_paths_warns(self) -> None:
        doc = {"openapi": "3.0.3", "info": {"title": "T", "version": "1"}, "paths": {}}
        warnings = _warnings(validate_structure(doc))
        assert len(warnings) == 1
        assert "no endpoints" in warnings[0].message

    def test_paths_without_operations_warns(self) -> None:
        doc = {
            "openapi": "3.0.3",
            "info": {"title": "T", "version": "1"},
            "paths": {"/a": {"parameters": [], "summary": "s"}},
        }
        warnings = _warnings(validate_structure(doc))
        assert warnings[0].path == "paths"
        assert "no HTTP operations" in warnings[0].message

    def test_paths_only_document(self) -> None:
        diagnostics = validate_structure({"paths": {}})
        messages = [d.message for d in _errors(diagnostics)]
        assert len(messages) >= 2
        assert any("version identifier" in m for m in messages)
        assert any('"info"' in m for m in messages)


class TestVersionLabel:
    def test_openapi(self, petstore_30_raw: dict[str, Any]) -> None:
        assert spec_version_label(petstore_30_raw) == "OpenAPI 3.0.3"

    def test_swagger(self, swagger_20_raw: dict[str, Any]) -> None:
        assert spec_version_label(swagger_20_raw) == "Swagger 2.0"

    def test_unknown(self) -> None:
        assert spec_version_label({"paths": {}}) == "Unknown"
        assert spec_version_label("text") == "Unknown"
