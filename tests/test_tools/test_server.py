"""Tests for the MCP server wiring."""

from __future__ import annotations

import asyncio
import json

from swaggen.tools.handlers import TemplateIdParams, ToolHandlers
from swaggen.tools.server import SERVER_NAME, _call, create_server

TOOL_NAMES = {
    "parse-swagger",
    "parse-swagger-optimized",
    "parse-swagger-lite",
    "generate-typescript-types",
    "generate-typescript-types-optimized",
    "generate-api-client",
    "generate-api-client-optimized",
    "template-list",
    "template-get",
    "template-save",
    "template-delete",
    "file_writer",
    "cache-clear",
}


def _tools(services):
    return {tool.name: tool for tool in asyncio.run(create_server(services).list_tools())}


class TestRegistration:
    def test_server_name(self, services):
        assert create_server(services).name == SERVER_NAME

    def test_all_tools_registered(self, services):
        assert set(_tools(services)) == TOOL_NAMES

    def test_camel_case_arguments(self, services):
        schema = _tools(services)["generate-api-client-optimized"].inputSchema
        assert schema["required"] == ["swaggerUrl"]
        for name in ("outputDir", "clientType", "groupBy", "cacheTTLMinutes", "lazyLoading"):
            assert name in schema["properties"]

    def test_descriptions_present(self, services):
        assert all(tool.description for tool in _tools(services).values())


class TestCall:
    def test_handler_result_as_json(self, services):
        handlers = ToolHandlers(services)
        text = asyncio.run(_call(TemplateIdParams, handlers.template_get, {"id": "axios"}))
        payload = json.loads(text)
        assert payload["success"] is True
        assert payload["template"]["id"] == "axios"

    def test_none_arguments_dropped(self, services):
        handlers = ToolHandlers(services)
        text = asyncio.run(
            _call(TemplateIdParams, handlers.template_get, {"id": "fetch", "extra": None})
        )
        assert json.loads(text)["success"] is True

    def test_invalid_parameters(self, services):
        handlers = ToolHandlers(services)
        payload = json.loads(asyncio.run(_call(TemplateIdParams, handlers.template_get, {})))
        assert payload["success"] is False
        assert payload["error"].startswith("Invalid parameters")

    def test_handler_exception(self):
        async def boom(params):
            raise RuntimeError("kaput")

        payload = json.loads(asyncio.run(_call(TemplateIdParams, boom, {"id": "x"})))
        assert payload == {"success": False, "error": "kaput"}
