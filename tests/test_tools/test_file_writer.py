"""Tests for the file_writer tool."""

from __future__ import annotations

import asyncio
import base64

import pytest
from pydantic import ValidationError

from swaggen.tools.file_writer import FileWriteParams, write_file


def _write(**kwargs):
    return asyncio.run(write_file(FileWriteParams(**kwargs)))


class TestWriteFile:
    def test_writes_and_creates_directories(self, tmp_path):
        target = tmp_path / "src" / "api" / "pets.ts"
        result = _write(file_path=str(target), content="export {};\n")
        assert result["success"] is True
        assert result["filePath"] == str(target)
        assert result["size"] == len("export {};\n")
        assert result["message"] == f"File written: {target}"
        assert target.read_text(encoding="utf-8") == "export {};\n"
        assert result["created"].endswith("+00:00")
        assert result["modified"].endswith("+00:00")

    def test_overwrites(self, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("old", encoding="utf-8")
        _write(file_path=str(target), content="new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_append(self, tmp_path):
        target = tmp_path / "a.txt"
        _write(file_path=str(target), content="one\n")
        result = _write(file_path=str(target), content="two\n", append=True)
        assert target.read_text(encoding="utf-8") == "one\ntwo\n"
        assert result["message"].startswith("File appended")
        assert result["size"] == 8

    def test_missing_directory_without_create_dirs(self, tmp_path):
        target = tmp_path / "missing" / "a.txt"
        result = _write(file_path=str(target), content="x", create_dirs=False)
        assert result["success"] is False
        assert result["filePath"] == str(target)
        assert not target.exists()

    def test_base64_content(self, tmp_path):
        target = tmp_path / "blob.bin"
        payload = base64.b64encode(b"\x00\xffdata").decode("ascii")
        result = _write(file_path=str(target), content=payload, encoding="base64")
        assert result["success"] is True
        assert target.read_bytes() == b"\x00\xffdata"

    def test_invalid_base64(self, tmp_path):
        result = _write(file_path=str(tmp_path / "x"), content="not base64!", encoding="base64")
        assert result["success"] is False

    def test_other_codec(self, tmp_path):
        target = tmp_path / "latin.txt"
        _write(file_path=str(target), content="über", encoding="latin-1")
        assert target.read_bytes() == "über".encode("latin-1")

    def test_unknown_codec(self, tmp_path):
        result = _write(file_path=str(tmp_path / "x"), content="x", encoding="klingon")
        assert result["success"] is False
        assert "klingon" in result["error"]


class TestParams:
    def test_camel_case(self):
        params = FileWriteParams.model_validate(
            {"filePath": "/tmp/x", "content": "", "createDirs": False}
        )
        assert params.file_path == "/tmp/x"
        assert params.create_dirs is False
        assert params.encoding == "utf8"

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            FileWriteParams(file_path="", content="x")
