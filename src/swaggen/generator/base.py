"""Shared plumbing for the code generators.

Generators take an already-loaded parser, so they never fetch anything
themselves. :class:`BaseGenerator` gives them a name and description plus
the file helpers they share. Writes run on a worker thread so that a
generator does not block other in-flight tool calls.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "index.ts"


class BaseGenerator:
    """Base class of :class:`TypesGenerator` and :class:`ClientGenerator`.

    Args:
        name: Short machine name, e.g. ``"typescript-types-generator"``.
        description: One-line human description.
    """

    def __init__(self, name: str, description: str) -> None:
        self.name = name
        self.description = description

    async def _ensure_directory(self, directory: Path) -> None:
        await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)

    async def _file_exists(self, path: Path) -> bool:
        return await asyncio.to_thread(path.exists)

    async def _write_file(self, path: Path, content: str) -> None:
        await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        logger.info("Generated %s", path)


def index_content(file_stems: list[str]) -> str:
    """Return an ``index.ts`` body re-exporting every module in *file_stems*."""
    return "".join(f"export * from './{stem}';\n" for stem in file_stems)
