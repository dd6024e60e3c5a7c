"""TypeScript 路径映射测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from uiget.core.component.models import FileEntry
from uiget.core.component.placeholders import PathResolver
from uiget.core.config import ProjectConfig
from uiget.core.exceptions import ConfigError
from uiget.core.tsconfig import TypeScriptPathMap, load_typescript_paths


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestLoad:
    def test_json5_and_wildcards(self, tmp_path: Path) -> None:
        ts = _write(tmp_path / "tsconfig.json", """{
            // SvelteKit 风格
            compilerOptions: {
                paths: {
                    "$lib": ["./src/lib"],
                    "$lib/*": ["./src/lib/*"],
                    "@/*": ["./src/*"],
                },
            },
        }""")
        m = load_typescript_paths(ts, tmp_path)
        assert m.entries == {"$lib": ["src/lib"], "@": ["src"]}

    def test_extends_targets_relative_to_declaring_file(self, tmp_path: Path) -> None:
        _write(tmp_path / ".svelte-kit/tsconfig.json", """{
            "compilerOptions": {"paths": {"$lib": ["../src/lib"], "$lib/*": ["../src/lib/*"], "$app/*": ["../app/*"]}}
        }""")
        ts = _write(tmp_path / "tsconfig.json", '{"extends": "./.svelte-kit/tsconfig.json"}')
        m = load_typescript_paths(ts, tmp_path)
        assert m.entries == {"$lib": ["src/lib"], "$app": ["app"]}

    def test_extends_child_overrides_parent(self, tmp_path: Path) -> None:
        _write(tmp_path / ".svelte-kit/tsconfig.json", """{
            "compilerOptions": {"paths": {"$lib": ["../src/lib"], "$app/*": ["../app/*"]}}
        }""")
        ts = _write(tmp_path / "tsconfig.json", """{
            "extends": "./.svelte-kit/tsconfig.json",
            "compilerOptions": {"paths": {"$lib": ["./lib"]}}
        }""")
        m = load_typescript_paths(ts, tmp_path)
        assert m.entries["$lib"] == ["lib"]
        assert m.entries["$app"] == ["app"]

    def test_inherited_base_url(self, tmp_path: Path) -> None:
        _write(tmp_path / "config/base.json", '{"compilerOptions": {"baseUrl": "../web"}}')
        ts = _write(tmp_path / "tsconfig.json", """{
            "extends": "./config/base.json",
            "compilerOptions": {"paths": {"~/*": ["src/*"]}}
        }""")
        assert load_typescript_paths(ts, tmp_path).entries == {"~": ["web/src"]}

    def test_sveltekit_default_aliases_stay_inside_project(self, tmp_path: Path) -> None:
        _write(tmp_path / ".svelte-kit/tsconfig.json", """{
            "compilerOptions": {"paths": {"$lib": ["../src/lib"], "$lib/*": ["../src/lib/*"]}}
        }""")
        _write(tmp_path / "tsconfig.json", '{"extends": "./.svelte-kit/tsconfig.json"}')
        cfg = ProjectConfig.default()
        resolver = PathResolver(
            cfg.aliases.as_mapping(), ts_paths=cfg.load_ts_paths(tmp_path),
            typescript=True, project_root=tmp_path,
        )
        entry = FileEntry("ui/button/button.svelte", "", "registry:ui")
        assert resolver.resolve_target(entry) == "src/lib/components/ui/button/button.svelte"

    def test_extends_without_suffix(self, tmp_path: Path) -> None:
        _write(tmp_path / "base.json", '{"compilerOptions": {"paths": {"@/*": ["src/*"]}}}')
        ts = _write(tmp_path / "tsconfig.json", '{"extends": "./base"}')
        assert load_typescript_paths(ts, tmp_path).entries == {"@": ["src"]}

    def test_base_url(self, tmp_path: Path) -> None:
        ts = _write(tmp_path / "tsconfig.json", """{
            "compilerOptions": {"baseUrl": "web", "paths": {"~/*": ["src/*"]}}
        }""")
        assert load_typescript_paths(ts, tmp_path).entries == {"~": ["web/src"]}

    def test_cycle(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.json", '{"extends": "./b.json"}')
        ts = _write(tmp_path / "b.json", '{"extends": "./a.json"}')
        with pytest.raises(ConfigError, match="循环"):
            load_typescript_paths(ts, tmp_path)

    def test_package_extends_skipped(self, tmp_path: Path) -> None:
        ts = _write(tmp_path / "tsconfig.json", """{
            "extends": "@tsconfig/svelte/tsconfig.json",
            "compilerOptions": {"paths": {"@/*": ["src/*"]}}
        }""")
        assert load_typescript_paths(ts, tmp_path).entries == {"@": ["src"]}

    def test_invalid_syntax(self, tmp_path: Path) -> None:
        ts = _write(tmp_path / "tsconfig.json", "{ not valid")
        with pytest.raises(ConfigError, match="解析失败"):
            load_typescript_paths(ts, tmp_path)


class TestPathMap:
    def test_longest_prefix_wins(self) -> None:
        m = TypeScriptPathMap({"$lib": ["src/lib"], "$lib/components": ["ui"]})
        assert m.match("$lib/components/button") == ("$lib/components", ["ui"])
        assert m.to_directory("$lib/components/button") == "ui/button"
        assert m.to_directory("$lib/utils") == "src/lib/utils"

    def test_prefix_respects_boundaries(self) -> None:
        m = TypeScriptPathMap({"$lib": ["src/lib"]})
        assert m.match("$library/x") is None
        assert m.to_directory("$library/x") is None

    def test_to_alias(self) -> None:
        m = TypeScriptPathMap({"$lib": ["src/lib"]})
        assert m.to_alias("src/lib/utils") == "$lib/utils"
        assert m.to_alias("./src/lib") == "$lib"
        assert m.to_alias("src/library") is None
