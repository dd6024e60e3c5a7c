"""包管理器检测测试"""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from uiget.core.package_manager import (
    PackageManager,
    detect_package_manager,
    is_version_gte,
    parse_user_agent,
)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    return tmp_path


class TestInstallCommand:
    @pytest.mark.parametrize("pm,cmd,dev_cmd", [
        (PackageManager.NPM, ["npm", "install"], ["npm", "install", "--save-dev"]),
        (PackageManager.YARN_CLASSIC, ["yarn", "add"], ["yarn", "add", "--dev"]),
        (PackageManager.YARN_BERRY, ["yarn", "add"], ["yarn", "add", "--dev"]),
        (PackageManager.PNPM, ["pnpm", "add"], ["pnpm", "add", "--save-dev"]),
        (PackageManager.BUN, ["bun", "add"], ["bun", "add", "--dev"]),
        (PackageManager.UNKNOWN, ["npm", "install"], ["npm", "install", "--save-dev"]),
    ])
    def test_commands(self, pm: PackageManager, cmd: list[str], dev_cmd: list[str]) -> None:
        assert pm.install_command(["x"]) == cmd + ["x"]
        assert pm.install_command(["x"], dev=True) == dev_cmd + ["x"]


class TestUserAgent:
    @pytest.mark.parametrize("ua,expected", [
        ("npm/9.6.7 node/v18.16.0 linux x64", (PackageManager.NPM, "9.6.7")),
        ("yarn/1.22.19 npm/? node/v18.16.0 win32 x64", (PackageManager.YARN_CLASSIC, "1.22.19")),
        ("yarn/3.5.1 npm/? node/v18.16.0 win32 x64", (PackageManager.YARN_BERRY, "3.5.1")),
        ("pnpm/8.15.3 npm/? node/v20.14.0 darwin arm64", (PackageManager.PNPM, "8.15.3")),
        ("bun/1.1.8 darwin x64", (PackageManager.BUN, "1.1.8")),
    ])
    def test_parse(self, ua: str, expected) -> None:
        assert parse_user_agent(ua) == expected

    @pytest.mark.parametrize("ua", ["", "invalid", "deno/1.0"])
    def test_unrecognized(self, ua: str) -> None:
        assert parse_user_agent(ua) is None

    def test_version_compare(self) -> None:
        assert is_version_gte("4.0.0-rc.1", 2)
        assert not is_version_gte("1.22.19", 2)


class TestDetect:
    def test_no_project(self, tmp_path: Path) -> None:
        with patch("uiget.core.package_manager.find_project_root", return_value=None):
            assert detect_package_manager(tmp_path, env={}) is None

    def test_user_agent_wins(self, project: Path) -> None:
        (project / "yarn.lock").write_text("")
        d = detect_package_manager(project, env={"npm_config_user_agent": "pnpm/8.0.0 node/v20"})
        assert d is not None and d.manager == PackageManager.PNPM

    def test_package_manager_field(self, project: Path) -> None:
        (project / "package.json").write_text(json.dumps({"packageManager": "yarn@4.1.0"}))
        d = detect_package_manager(project, env={})
        assert d is not None
        assert d.manager == PackageManager.YARN_BERRY
        assert d.version_hint == "4.1.0"

    def test_yarn_artifacts(self, project: Path) -> None:
        (project / ".pnp.cjs").write_text("")
        assert detect_package_manager(project, env={}).manager == PackageManager.YARN_BERRY

    def test_pnpm_workspace(self, project: Path) -> None:
        (project / "pnpm-workspace.yaml").write_text("packages: []")
        assert detect_package_manager(project, env={}).manager == PackageManager.PNPM

    def test_newest_lockfile(self, project: Path) -> None:
        old = project / "package-lock.json"
        new = project / "bun.lockb"
        old.write_text("")
        new.write_text("")
        os.utime(old, (1_000_000, 1_000_000))
        os.utime(new, (2_000_000, 2_000_000))
        assert detect_package_manager(project, env={}).manager == PackageManager.BUN

    def test_default_npm_from_subdir(self, project: Path) -> None:
        sub = project / "src/lib"
        sub.mkdir(parents=True)
        d = detect_package_manager(sub, env={})
        assert d.manager == PackageManager.NPM
        assert d.project_root == project.resolve()
