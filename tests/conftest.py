"""Shared test fixtures for swaggen.

Provides reusable fixtures for loading document fixtures, isolating the
config/cache/data directories, building :class:`~swaggen.services.Services`
wired to an in-memory HTTP transport, and running CLI commands. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from swaggen.cache import DocumentCache
from swaggen.models import CacheConfig, DocumentReference, GlobalConfig
from swaggen.output import OutputFormat, OutputManager, reset_output, set_output
from swaggen.parser import ApiParser, DocumentFetcher, create_parser
from swaggen.services import Services, create_services
from swaggen.templates.manager import TemplateManager

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict[str, Any]:
    """Load a JSON document from ``tests/fixtures``."""
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


class RecordingTransport(httpx.MockTransport):
    """``httpx.MockTransport`` serving fixed JSON bodies and recording requests.

    Args:
        routes: Maps absolute URLs to a JSON-serialisable body, or to an
            ``httpx.Response`` returned as-is. Unknown URLs answer 404.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        target = self.routes.get(str(request.url))
        if target is None:
            return httpx.Response(404, text="not found")
        if isinstance(target, httpx.Response):
            return target
        return httpx.Response(200, json=target)

    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during a
    test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Raw document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pets_document() -> dict[str, Any]:
    """One path, one schema: the smallest end-to-end document."""
    return load_fixture("pets_3.0.json")


@pytest.fixture
def store_document() -> dict[str, Any]:
    """Several tags, enums, nullable and date fields, shared parameters."""
    return load_fixture("store_3.0.json")


@pytest.fixture
def swagger2_document() -> dict[str, Any]:
    """A Swagger 2.0 document with body and formData parameters."""
    return load_fixture("petstore_2.0.json")


@pytest.fixture
def tree_document() -> dict[str, Any]:
    """An OpenAPI 3.1 document with a self-referencing schema."""
    return load_fixture("tree.json")


@pytest.fixture
def document_file(tmp_path: Path) -> Callable[[dict[str, Any], str], Path]:
    """Write a document into tmp_path and return its path."""

    def write(document: dict[str, Any], name: str = "openapi.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return write


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user config,
    clears all SWAGGEN_* environment variables and changes the working
    directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("swaggen.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["SWAGGEN_CACHE_DIR", "SWAGGEN_CACHE_TTL_MINUTES", "SWAGGEN_TEMPLATES_DIR"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Cache, fetcher and services
# ---------------------------------------------------------------------------


class FakeClock:
    """Settable time source for cache TTL tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_cache(tmp_path: Path, clock: FakeClock) -> DocumentCache:
    cache = DocumentCache(tmp_path / "doc-cache", ttl_seconds=600, clock=clock)
    yield cache
    cache.close()


@pytest.fixture
def make_fetcher(
    document_cache: DocumentCache,
) -> Callable[..., tuple[DocumentFetcher, RecordingTransport]]:
    """Build a fetcher on the shared test cache and the transport it talks to."""

    def build(
        routes: Optional[dict[str, Any]] = None, **kwargs: Any
    ) -> tuple[DocumentFetcher, RecordingTransport]:
        transport = RecordingTransport(routes or {})
        return DocumentFetcher(document_cache, transport=transport, **kwargs), transport

    return build


@pytest.fixture
def load_parser(
    make_fetcher: Callable[..., tuple[DocumentFetcher, RecordingTransport]],
) -> Callable[..., ApiParser]:
    """Serve *document* over the mock transport and return a loaded lenient parser."""

    def load(document: dict[str, Any], lazy: bool = False) -> ApiParser:
        url = "https://api.example.com/openapi.json"
        fetcher, _ = make_fetcher({url: document})
        parser = create_parser(
            DocumentReference(url=url), fetcher, lazy=lazy, strict=False, use_cache=False
        )
        asyncio.run(parser.load())
        return parser

    return load


@pytest.fixture
def make_services(tmp_path: Path) -> Callable[..., Services]:
    """Build :class:`Services` rooted in tmp_path, serving *routes* over HTTP."""
    created: list[Services] = []

    def build(routes: Optional[dict[str, Any]] = None) -> Services:
        config = GlobalConfig(cache=CacheConfig(directory=str(tmp_path / "doc-cache")))
        services = create_services(
            config,
            templates_dir=tmp_path / "templates",
            transport=RecordingTransport(routes or {}),
        )
        created.append(services)
        return services

    yield build
    for services in created:
        services.close()


@pytest.fixture
def services(make_services: Callable[..., Services]) -> Services:
    return make_services()


@pytest.fixture
def template_manager(tmp_path: Path) -> TemplateManager:
    """Template manager with the packaged built-ins and an empty custom dir."""
    return TemplateManager(custom_dir=tmp_path / "custom-templates")


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN output manager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
