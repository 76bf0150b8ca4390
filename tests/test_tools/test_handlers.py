"""Tests for swaggen.tools.handlers."""

from __future__ import annotations

import asyncio
import copy
import json
from pathlib import Path

import pytest

from swaggen.cache import DocumentCache
from swaggen.tools.handlers import (
    CacheClearParams,
    ClientParams,
    OptimizedParseParams,
    ParseParams,
    TemplateIdParams,
    TemplateListParams,
    TemplateSaveParams,
    ToolHandlers,
    TypesParams,
    operation_summary,
)

FIXTURES_DIR = Path(__file__).resolve().parents[1] / "fixtures"
URL = "https://api.example.com/openapi.json"


def _fixture(name: str) -> dict:
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def pets_handlers(make_services):
    services = make_services({URL: _fixture("pets_3.0.json")})
    return ToolHandlers(services), services


@pytest.fixture
def store_handlers(make_services):
    services = make_services({URL: _fixture("store_3.0.json")})
    return ToolHandlers(services), services


def _run(coro):
    return asyncio.run(coro)


# ------------------------------------------------------------------ #
# Parameter models
# ------------------------------------------------------------------ #


class TestParams:
    def test_camel_case_names_accepted(self):
        params = OptimizedParseParams.model_validate(
            {"url": URL, "includeSchemas": True, "cacheTTLMinutes": 5, "lazyLoading": True}
        )
        assert params.include_schemas is True
        assert params.cache_ttl_minutes == 5
        assert params.lazy_loading is True

    def test_snake_case_names_accepted(self):
        params = ClientParams(swagger_url=URL, client_type="fetch", group_by="path")
        assert params.client_type.value == "fetch"
        assert params.group_by.value == "path"

    def test_optimized_defaults(self):
        params = OptimizedParseParams(url=URL)
        assert params.skip_validation is True
        assert params.use_cache is True
        assert params.cache_ttl_minutes == 60

    def test_unknown_keys_ignored(self):
        assert ParseParams.model_validate({"url": URL, "bogus": 1}).url == URL


# ------------------------------------------------------------------ #
# parse-swagger
# ------------------------------------------------------------------ #


class TestParseSwagger:
    def test_summary(self, pets_handlers):
        handlers, _ = pets_handlers
        result = _run(handlers.parse_swagger(ParseParams(url=URL)))
        assert result["success"] is True
        assert result["info"]["title"] == "Pets"
        assert result["operationsCount"] == 1
        assert result["operations"] == [
            {
                "operationId": "getPet",
                "method": "get",
                "path": "/pets/{id}",
                "summary": "Get a pet",
                "tags": ["pets"],
            }
        ]
        assert "schemas" not in result
        assert "warnings" not in result

    def test_include_schemas_and_details(self, pets_handlers):
        handlers, _ = pets_handlers
        params = ParseParams(url=URL, include_schemas=True, include_details=True)
        result = _run(handlers.parse_swagger(params))
        assert set(result["schemas"]) == {"Pet"}
        operation = result["operations"][0]
        assert operation["parameters"][0]["name"] == "id"
        assert operation["requestBody"] is None
        assert "200" in operation["responses"]

    def test_non_compliant_document_falls_back_with_warnings(self, make_services):
        document = _fixture("pets_3.0.json")
        del document["info"]["version"]
        handlers = ToolHandlers(make_services({URL: document}))
        result = _run(handlers.parse_swagger(ParseParams(url=URL)))
        assert result["success"] is True
        assert result["warnings"]

    def test_fetch_failure_reported(self, services):
        result = _run(ToolHandlers(services).parse_swagger(ParseParams(url=URL)))
        assert result["success"] is False
        assert "HTTP 404" in result["error"]

    def test_result_is_cached(self, pets_handlers):
        handlers, services = pets_handlers
        _run(handlers.parse_swagger(ParseParams(url=URL)))
        assert services.cache.stats()["memory_entries"] == 1


# ------------------------------------------------------------------ #
# parse-swagger-optimized / lite
# ------------------------------------------------------------------ #


class TestParseSwaggerOptimized:
    def test_progress_reported(self, pets_handlers):
        handlers, _ = pets_handlers
        result = _run(handlers.parse_swagger_optimized(OptimizedParseParams(url=URL)))
        assert result["success"] is True
        assert result["progress"] == 1.0
        assert result["progressMessage"].startswith("Parsed 1 operations")

    def test_filter_tag(self, store_handlers):
        handlers, _ = store_handlers
        params = OptimizedParseParams(url=URL, filter_tag="admin")
        result = _run(handlers.parse_swagger_optimized(params))
        assert [op["operationId"] for op in result["operations"]] == ["deletePet"]
        assert result["operationsCount"] == 1

    def test_path_prefix(self, store_handlers):
        handlers, _ = store_handlers
        params = OptimizedParseParams(url=URL, path_prefix="/store")
        result = _run(handlers.parse_swagger_optimized(params))
        assert [op["operationId"] for op in result["operations"]] == ["getstoreorders"]

    def test_lite_schemas_limited_to_referenced(self, store_handlers):
        handlers, _ = store_handlers
        params = OptimizedParseParams(url=URL, filter_tag="store", include_schemas=True)
        result = _run(handlers.parse_swagger_optimized(params, lite=True))
        assert result["success"] is True
        assert "Order" in result["schemas"]
        assert "NewPet" not in result["schemas"]

    def test_eager_includes_all_schemas(self, store_handlers):
        handlers, _ = store_handlers
        params = OptimizedParseParams(url=URL, filter_tag="store", include_schemas=True)
        result = _run(handlers.parse_swagger_optimized(params))
        assert "NewPet" in result["schemas"]

    def test_no_cache(self, pets_handlers):
        handlers, services = pets_handlers
        params = OptimizedParseParams(url=URL, use_cache=False)
        _run(handlers.parse_swagger_optimized(params))
        assert services.cache.stats()["memory_entries"] == 0

    def test_failure_reports_progress(self, services):
        params = OptimizedParseParams(url=URL)
        result = _run(ToolHandlers(services).parse_swagger_optimized(params))
        assert result["success"] is False
        assert result["progress"] == 1.0
        assert result["progressMessage"].startswith("Parsing failed")


class TestOperationSummary:
    def test_details_omitted(self, load_parser):
        parser = load_parser(_fixture("pets_3.0.json"))
        summary = operation_summary(parser.get_operations()[0], include_details=False)
        assert set(summary) == {"operationId", "method", "path", "summary", "tags"}


# ------------------------------------------------------------------ #
# Generation
# ------------------------------------------------------------------ #


class TestGenerateTypes:
    def test_standard(self, pets_handlers, tmp_path):
        handlers, _ = pets_handlers
        out = tmp_path / "types"
        params = TypesParams(swagger_url=URL, output_dir=str(out))
        result = _run(handlers.generate_types(params))
        assert result["success"] is True
        assert [Path(f).name for f in result["files"]] == ["pet.ts", "index.ts"]
        assert "progressMessage" not in result
        assert "export interface Pet {" in (out / "pet.ts").read_text(encoding="utf-8")

    def test_optimized_reports_progress(self, pets_handlers, tmp_path):
        handlers, _ = pets_handlers
        params = TypesParams.model_validate(
            {"swaggerUrl": URL, "outputDir": str(tmp_path / "types"), "generateIndex": False}
        )
        result = _run(handlers.generate_types(params, optimized=True))
        assert [Path(f).name for f in result["files"]] == ["pet.ts"]
        assert result["progress"] == 1.0
        assert result["progressMessage"] == "Generated 1 type files"

    def test_load_failure(self, services, tmp_path):
        params = TypesParams(swagger_url=URL, output_dir=str(tmp_path / "types"))
        result = _run(ToolHandlers(services).generate_types(params))
        assert result["success"] is False
        assert "HTTP 404" in result["error"]
        assert not (tmp_path / "types").exists()


class TestGenerateClient:
    def test_axios(self, pets_handlers, tmp_path):
        handlers, _ = pets_handlers
        out = tmp_path / "api"
        result = _run(handlers.generate_client(ClientParams(swagger_url=URL, output_dir=str(out))))
        assert result["success"] is True
        assert [Path(f).name for f in result["files"]] == ["pets.ts", "axios-client.ts", "index.ts"]

    def test_fetch_by_camel_case_arguments(self, pets_handlers, tmp_path):
        handlers, _ = pets_handlers
        params = ClientParams.model_validate(
            {"swaggerUrl": URL, "outputDir": str(tmp_path / "api"), "clientType": "fetch"}
        )
        result = _run(handlers.generate_client(params, optimized=True))
        assert [Path(f).name for f in result["files"]] == ["pets.ts", "fetch-client.ts", "index.ts"]
        assert result["progressMessage"] == "Generated 3 client files"

    def test_parser_warnings_carried(self, make_services, tmp_path):
        document = copy.deepcopy(_fixture("pets_3.0.json"))
        document["paths"]["/pets/{id}"]["get"]["parameters"].append({"$ref": "#/missing"})
        handlers = ToolHandlers(make_services({URL: document}))
        params = ClientParams(
            swagger_url=URL,
            output_dir=str(tmp_path / "api"),
            skip_validation=False,
            lazy_loading=False,
        )
        result = _run(handlers.generate_client(params, optimized=True))
        assert result["success"] is True
        assert result["warnings"][0].startswith("Strict validation failed")


# ------------------------------------------------------------------ #
# Templates
# ------------------------------------------------------------------ #


class TestTemplateTools:
    def test_list_all(self, services):
        result = _run(ToolHandlers(services).template_list(TemplateListParams(type="all")))
        assert [t["id"] for t in result["templates"]] == [
            "axios",
            "fetch",
            "react-query",
            "axios-config",
            "fetch-config",
        ]
        assert all("content" not in t for t in result["templates"])

    def test_list_by_type(self, services):
        params = TemplateListParams(type="config-file")
        result = _run(ToolHandlers(services).template_list(params))
        assert [t["id"] for t in result["templates"]] == ["axios-config", "fetch-config"]

    def test_get(self, services):
        result = _run(ToolHandlers(services).template_get(TemplateIdParams(id="fetch")))
        assert result["success"] is True
        assert result["template"]["built_in"] is True
        assert result["template"]["content"]

    def test_get_missing(self, services):
        result = _run(ToolHandlers(services).template_get(TemplateIdParams(id="nope")))
        assert result == {"success": False, "error": "Template not found with ID: nope"}

    def test_save_get_delete(self, services):
        handlers = ToolHandlers(services)
        saved = _run(
            handlers.template_save(
                TemplateSaveParams(
                    id="mine", name="Mine", type="api-client", content="// {{title}}"
                )
            )
        )
        assert saved["success"] is True
        assert saved["template"]["built_in"] is False

        fetched = _run(handlers.template_get(TemplateIdParams(id="mine")))
        assert fetched["template"]["content"] == "// {{title}}"

        deleted = _run(handlers.template_delete(TemplateIdParams(id="mine")))
        assert deleted == {"success": True, "message": "Template with ID: mine has been deleted."}

    def test_save_built_in_id_rejected(self, services):
        params = TemplateSaveParams(id="axios", name="Mine", type="api-client", content="x")
        result = _run(ToolHandlers(services).template_save(params))
        assert result == {
            "success": False,
            "error": "Cannot override built-in template: axios",
        }

    def test_save_path_like_id_rejected(self, services):
        params = TemplateSaveParams(
            id="../../escaped", name="Mine", type="api-client", content="x"
        )
        result = _run(ToolHandlers(services).template_save(params))
        assert result["success"] is False
        assert result["error"].startswith("Invalid template id")
        assert services.templates.get_template("../../escaped") is None

    def test_delete_built_in_refused(self, services):
        result = _run(ToolHandlers(services).template_delete(TemplateIdParams(id="axios")))
        assert result["success"] is False
        assert "built-in" in result["error"]


# ------------------------------------------------------------------ #
# Cache
# ------------------------------------------------------------------ #


class TestCacheClear:
    def test_evict_one(self, pets_handlers):
        handlers, services = pets_handlers
        _run(handlers.parse_swagger(ParseParams(url=URL)))
        result = _run(handlers.cache_clear(CacheClearParams(url=URL)))
        assert result["success"] is True
        assert result["key"] == DocumentCache.make_key(URL, {})
        assert services.cache.stats()["memory_entries"] == 0

    def test_clear_all(self, pets_handlers):
        handlers, services = pets_handlers
        _run(handlers.parse_swagger(ParseParams(url=URL)))
        result = _run(handlers.cache_clear(CacheClearParams()))
        assert result == {"success": True, "message": "Document cache cleared"}
        assert services.cache.stats()["disk_entries"] == 0
