"""The ``file_writer`` tool: write or append text to a local file.

A plain pass-through used by agents to place generated code. Text is
written with the requested codec; ``encoding="base64"`` decodes the content
and writes the resulting bytes.
"""

from __future__ import annotations

import asyncio
import base64
import codecs
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import Field

from swaggen.tools.handlers import ToolParams

logger = logging.getLogger(__name__)


class FileWriteParams(ToolParams):
    file_path: str = Field(min_length=1, description="Complete path of the file")
    content: str = Field(description="Content to write")
    create_dirs: bool = Field(default=True, description="Create missing parent directories")
    append: bool = Field(default=False, description="Append instead of overwriting")
    encoding: str = Field(default="utf8", description="Text encoding, or base64")


def _encode(content: str, encoding: str) -> bytes:
    if encoding.lower() == "base64":
        return base64.b64decode(content, validate=True)
    return content.encode(codecs.lookup(encoding).name)


def _timestamp(value: float) -> str:
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()


def _write(params: FileWriteParams) -> dict[str, Any]:
    path = Path(params.file_path)
    data = _encode(params.content, params.encoding)
    if params.create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("ab" if params.append else "wb") as handle:
        handle.write(data)

    stat = path.stat()
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    return {
        "success": True,
        "filePath": params.file_path,
        "size": stat.st_size,
        "created": _timestamp(created),
        "modified": _timestamp(stat.st_mtime),
        "message": f"File {'appended' if params.append else 'written'}: {params.file_path}",
    }


async def write_file(params: FileWriteParams) -> dict[str, Any]:
    """Write *params.content* to *params.file_path*.

    Returns:
        ``{success, filePath, size, created, modified, message}`` or
        ``{success: False, error, filePath}``.
    """
    try:
        result = await asyncio.to_thread(_write, params)
    except (OSError, LookupError, ValueError) as exc:
        logger.error("Writing %s failed: %s", params.file_path, exc)
        return {"success": False, "error": str(exc), "filePath": params.file_path}
    logger.info("%s", result["message"])
    return result
