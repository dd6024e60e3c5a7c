"""Node 包管理器检测

从起始目录向上查找 package.json 确定项目根，按以下顺序判定包管理器:
1. npm_config_user_agent 环境变量（由 npm/yarn/pnpm/bun 运行脚本时注入）
2. package.json 的 packageManager 字段（yarn >= 2 视为 berry）
3. yarn berry 产物（.pnp.cjs、.yarnrc.yml、.yarn 等）
4. pnpm-workspace.yaml
5. 最近修改的锁文件
6. 默认 npm
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

USER_AGENT_ENV = "npm_config_user_agent"

_PACKAGE_MANAGER_FIELD_RE = re.compile(r"^(?P<name>[a-zA-Z]+)@(?P<ver>[\w.\-+]+)$")

_YARN_ARTIFACTS = (".pnp.cjs", ".pnp.loader.mjs", ".pnp.data.json", ".yarnrc.yml", ".yarn")


class PackageManager(str, Enum):
    NPM = "npm"
    YARN_CLASSIC = "yarn-classic"
    YARN_BERRY = "yarn-berry"
    PNPM = "pnpm"
    BUN = "bun"
    UNKNOWN = "unknown"

    @property
    def executable(self) -> str:
        if self in (PackageManager.YARN_CLASSIC, PackageManager.YARN_BERRY):
            return "yarn"
        if self == PackageManager.UNKNOWN:
            return "npm"
        return self.value

    @property
    def label(self) -> str:
        return {
            PackageManager.YARN_CLASSIC: "yarn (classic)",
            PackageManager.YARN_BERRY: "yarn (berry)",
        }.get(self, self.value)

    def install_command(self, packages: list[str], dev: bool = False) -> list[str]:
        """安装命令 argv"""
        exe = self.executable
        if exe == "npm":
            cmd = ["npm", "install"] + (["--save-dev"] if dev else [])
        elif exe == "pnpm":
            cmd = ["pnpm", "add"] + (["--save-dev"] if dev else [])
        else:
            cmd = [exe, "add"] + (["--dev"] if dev else [])
        return cmd + list(packages)


_LOCKFILES = (
    (PackageManager.YARN_CLASSIC, "yarn.lock"),
    (PackageManager.PNPM, "pnpm-lock.yaml"),
    (PackageManager.NPM, "package-lock.json"),
    (PackageManager.BUN, "bun.lockb"),
)


@dataclass
class Detection:
    manager: PackageManager
    source: str
    project_root: Path
    version_hint: str | None = None


def is_version_gte(version: str, major: int, minor: int = 0, patch: int = 0) -> bool:
    nums = []
    for part in version.split(".")[:3]:
        m = re.match(r"\d+", part)
        nums.append(int(m.group()) if m else 0)
    nums += [0] * (3 - len(nums))
    return tuple(nums) >= (major, minor, patch)


def _from_name(name: str, version: str | None) -> PackageManager | None:
    name = name.lower()
    if name == "yarn":
        if version and is_version_gte(version, 2):
            return PackageManager.YARN_BERRY
        return PackageManager.YARN_CLASSIC
    return {
        "npm": PackageManager.NPM,
        "pnpm": PackageManager.PNPM,
        "bun": PackageManager.BUN,
    }.get(name)


def parse_user_agent(ua: str) -> tuple[PackageManager, str] | None:
    """解析 "pnpm/8.15.3 npm/? node/v20.14.0 darwin arm64" 形式的 user agent"""
    parts = ua.split()
    if not parts or "/" not in parts[0]:
        return None
    name, _, version = parts[0].partition("/")
    if not version:
        return None
    manager = _from_name(name, version)
    return (manager, version) if manager else None


def find_project_root(start: Path) -> Path | None:
    for directory in (start, *start.parents):
        if (directory / "package.json").exists():
            return directory
    return None


def _read_package_manager_field(root: Path) -> tuple[PackageManager, str] | None:
    try:
        data = json.loads((root / "package.json").read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("读取 package.json 失败: %s", e)
        return None
    field_value = data.get("packageManager") if isinstance(data, dict) else None
    if not isinstance(field_value, str):
        return None
    m = _PACKAGE_MANAGER_FIELD_RE.match(field_value.strip())
    if not m:
        return None
    version = m.group("ver")
    return _from_name(m.group("name"), version) or PackageManager.UNKNOWN, version


def _pick_by_lockfile(root: Path) -> tuple[PackageManager, Path] | None:
    found = []
    for pm, name in _LOCKFILES:
        path = root / name
        if path.exists():
            found.append((path.stat().st_mtime, pm, path))
    if not found:
        return None
    _, pm, path = max(found, key=lambda item: item[0])
    return pm, path


def detect_package_manager(
    start_dir: str | Path = ".", env: Mapping[str, str] | None = None,
) -> Detection | None:
    """检测项目使用的包管理器；找不到 package.json 时返回 None"""
    environ = os.environ if env is None else env
    root = find_project_root(Path(start_dir).resolve())
    if root is None:
        logger.info("未找到 package.json: %s", start_dir)
        return None

    ua = environ.get(USER_AGENT_ENV, "")
    parsed = parse_user_agent(ua) if ua else None
    if parsed:
        return Detection(parsed[0], f"user-agent: {ua}", root, parsed[1])

    field_hit = _read_package_manager_field(root)
    if field_hit:
        return Detection(field_hit[0], "package.json packageManager", root, field_hit[1])

    for name in _YARN_ARTIFACTS:
        if (root / name).exists():
            return Detection(PackageManager.YARN_BERRY, f"yarn 产物: {name}", root)

    if (root / "pnpm-workspace.yaml").exists():
        return Detection(PackageManager.PNPM, "pnpm-workspace.yaml", root)

    lock = _pick_by_lockfile(root)
    if lock:
        return Detection(lock[0], f"锁文件: {lock[1].name}", root)

    return Detection(PackageManager.NPM, "默认", root)
