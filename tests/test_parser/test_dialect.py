"""Tests for swaggen.parser.dialect -- detection and Swagger 2.0 conversion."""

from __future__ import annotations

import pytest

from swaggen.parser.dialect import detect_dialect, normalize_document, normalize_schema


class TestDetectDialect:
    @pytest.mark.parametrize(
        ("document", "expected"),
        [
            ({"swagger": "2.0"}, "2.0"),
            ({"openapi": "3.0.3"}, "3.0"),
            ({"openapi": "3.1.0"}, "3.1"),
            ({"openapi": "4.0"}, "unknown"),
            ({}, "unknown"),
        ],
    )
    def test_detect(self, document, expected) -> None:
        assert detect_dialect(document) == expected


class TestOpenAPI3Passthrough:
    def test_copy_is_equal_but_independent(self, pets_document) -> None:
        normalized = normalize_document(pets_document)
        assert normalized == pets_document
        normalized["info"]["title"] = "changed"
        assert pets_document["info"]["title"] != "changed"

    def test_without_schemas(self, store_document) -> None:
        normalized = normalize_document(store_document, include_schemas=False)
        assert "schemas" not in normalized["components"]
        assert normalized["paths"].keys() == store_document["paths"].keys()


class TestSwagger2Conversion:
    @pytest.fixture
    def normalized(self, swagger2_document) -> dict:
        return normalize_document(swagger2_document)

    def test_version_and_servers(self, normalized) -> None:
        assert normalized["openapi"] == "3.0.3"
        assert normalized["servers"] == [{"url": "https://legacy.example.com/v1"}]

    def test_definitions_move_to_components(self, normalized) -> None:
        pet = normalized["components"]["schemas"]["Pet"]
        assert pet["properties"]["category"] == {"$ref": "#/components/schemas/Category"}
        assert "definitions" not in normalized

    def test_query_parameter_gets_schema(self, normalized) -> None:
        param = normalized["paths"]["/pets"]["get"]["parameters"][0]
        assert param == {
            "name": "limit",
            "in": "query",
            "schema": {"type": "integer", "format": "int32"},
        }

    def test_response_schema_moves_under_content(self, normalized) -> None:
        response = normalized["paths"]["/pets"]["get"]["responses"]["200"]
        schema = response["content"]["application/json"]["schema"]
        assert schema["items"] == {"$ref": "#/components/schemas/Pet"}

    def test_body_parameter_becomes_request_body(self, normalized) -> None:
        operation = normalized["paths"]["/pets"]["post"]
        assert "parameters" not in operation
        assert operation["requestBody"]["required"] is True
        assert operation["requestBody"]["content"]["application/json"]["schema"] == {
            "$ref": "#/components/schemas/Pet"
        }

    def test_form_data_becomes_form_request_body(self, normalized) -> None:
        operation = normalized["paths"]["/pets/{petId}/photo"]["post"]
        assert [p["name"] for p in operation["parameters"]] == ["petId"]
        form = operation["requestBody"]["content"]["multipart/form-data"]["schema"]
        assert form["properties"]["file"] == {"type": "string", "format": "binary"}
        assert form["required"] == ["file"]

    def test_input_not_mutated(self, swagger2_document) -> None:
        normalize_document(swagger2_document)
        assert "definitions" in swagger2_document
        assert swagger2_document["paths"]["/pets"]["post"]["parameters"][0]["in"] == "body"

    def test_without_schemas(self, swagger2_document) -> None:
        normalized = normalize_document(swagger2_document, include_schemas=False)
        assert "schemas" not in normalized["components"]


class TestNormalizeSchema:
    def test_swagger2_refs_rewritten(self) -> None:
        schema = {"items": {"$ref": "#/definitions/Pet"}}
        assert normalize_schema(schema, "2.0") == {"items": {"$ref": "#/components/schemas/Pet"}}

    def test_openapi3_schema_copied(self) -> None:
        schema = {"items": {"$ref": "#/components/schemas/Pet"}}
        result = normalize_schema(schema, "3.0")
        assert result == schema
        assert result is not schema
