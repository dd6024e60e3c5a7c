"""文件读写工具测试"""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest
import yaml

from uiget.utils.file_io import atomic_write, load_document, load_json, load_yaml, save_document


class TestAtomicWrite:
    def test_bytes_match_content(self, tmp_path: Path) -> None:
        target = tmp_path / "a/b/file.ts"
        atomic_write(target, "line1\r\nline2\n")
        assert target.read_bytes() == b"line1\r\nline2\n"
        assert [p.name for p in target.parent.iterdir()] == ["file.ts"]


class TestLoadYaml:
    def test_missing_returns_empty(self, tmp_path: Path) -> None:
        assert load_yaml(tmp_path / "nope.yml") == {}

    def test_json_is_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "c.json"
        p.write_text('{"$schema": "x", "aliases": {"utils": "$lib/utils"}}', encoding="utf-8")
        assert load_yaml(p)["aliases"]["utils"] == "$lib/utils"

    def test_non_dict_returns_empty(self, tmp_path: Path) -> None:
        p = tmp_path / "list.yml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        assert load_yaml(p) == {}

    def test_invalid_raises(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yml"
        p.write_text("a: [1, 2", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            load_yaml(p)


class TestSaveDocument:
    def test_json_by_suffix(self, tmp_path: Path) -> None:
        p = tmp_path / "uiget.json"
        save_document(p, {"b": 1, "a": "中文"})
        text = p.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert "中文" in text
        assert json.loads(text) == {"b": 1, "a": "中文"}

    def test_yaml_otherwise(self, tmp_path: Path) -> None:
        p = tmp_path / "uiget.yml"
        save_document(p, {"registries": {"default": "https://x/{name}.json"}})
        assert yaml.safe_load(p.read_text(encoding="utf-8")) == {
            "registries": {"default": "https://x/{name}.json"},
        }


class TestLoadJson:
    def test_tabs_allowed(self, tmp_path: Path) -> None:
        p = tmp_path / "components.json"
        p.write_text('{\n\t"style": "default",\n\t"aliases": {\n\t\t"ui": "$lib/components/ui"\n\t}\n}\n', encoding="utf-8")
        assert load_json(p) == {"style": "default", "aliases": {"ui": "$lib/components/ui"}}

    def test_empty_and_missing(self, tmp_path: Path) -> None:
        p = tmp_path / "empty.json"
        p.write_text("  \n", encoding="utf-8")
        assert load_json(p) == {}
        assert load_json(tmp_path / "nope.json") == {}

    def test_invalid_raises_value_error(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.json"
        p.write_text("{", encoding="utf-8")
        with pytest.raises(ValueError):
            load_json(p)

    def test_document_dispatch_by_suffix(self, tmp_path: Path) -> None:
        j = tmp_path / "c.json"
        j.write_text('{\n\t"a": 1\n}', encoding="utf-8")
        y = tmp_path / "c.yaml"
        y.write_text("a: 2\n", encoding="utf-8")
        assert load_document(j) == {"a": 1}
        assert load_document(y) == {"a": 2}


@pytest.mark.skipif(os.name == "nt", reason="需要 POSIX 权限位")
class TestAtomicWriteMode:
    @pytest.fixture(autouse=True)
    def _umask(self):
        old = os.umask(0o027)
        yield
        os.umask(old)

    def test_new_file_uses_umask(self, tmp_path: Path) -> None:
        target = tmp_path / "x.ts"
        atomic_write(target, "x")
        assert stat.S_IMODE(target.stat().st_mode) == 0o640

    def test_existing_mode_preserved(self, tmp_path: Path) -> None:
        target = tmp_path / "run.sh"
        target.write_text("old", encoding="utf-8")
        target.chmod(0o755)
        atomic_write(target, "new")
        assert stat.S_IMODE(target.stat().st_mode) == 0o755
        assert target.read_text(encoding="utf-8") == "new"
