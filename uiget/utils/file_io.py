"""配置文件统一读写工具

集中管理 uiget.json / components.json / YAML 配置的序列化与反序列化。
统一 encoding="utf-8"、空值保护、目录自动创建、原子写入。
.json 文件按 JSON 解析（允许 Tab 缩进），其余按 YAML 解析。
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件最大大小限制 (10MB)
MAX_DOCUMENT_SIZE = 10 * 1024 * 1024

JSON_SUFFIXES = frozenset((".json",))

# os.umask 只能"设置并返回旧值"，读取期间与目录创建互斥
_umask_lock = threading.Lock()


def _current_umask() -> int:
    mask = os.umask(0o022)
    os.umask(mask)
    return mask


def atomic_write(path: Path, content: str) -> None:
    """原子写入文件：先写同目录临时文件再 rename，防止中途崩溃留下半个文件

    使用 newline="" 写入，保证落盘字节与 content 的 UTF-8 编码完全一致。
    已存在的文件保留原权限；新文件按 umask 取 0o666 & ~umask
    （mkstemp 创建的临时文件固定为 0600）。

    异常:
        OSError: 文件写入或移动失败
        PermissionError: 无写入权限
    """
    with _umask_lock:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            mode = stat.S_IMODE(path.stat().st_mode)
        except FileNotFoundError:
            mode = 0o666 & ~_current_umask()
    fd, tmp = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.chmod(tmp, mode)
        os.replace(tmp, str(path))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def _read_checked(p: Path) -> str:
    file_size = p.stat().st_size
    if file_size > MAX_DOCUMENT_SIZE:
        raise ValueError(
            f"配置文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_DOCUMENT_SIZE} 字节"
        )
    return p.read_text(encoding="utf-8")


def _as_dict(result: Any, path: str | Path) -> dict[str, Any]:
    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    返回:
        dict: 解析后的字典。文件不存在、为空、或内容不是字典时返回空字典

    异常:
        yaml.YAMLError: 格式错误
        ValueError: 文件过大（超过 MAX_DOCUMENT_SIZE）
    """
    p = Path(path)
    if not p.exists():
        return {}
    try:
        result = yaml.safe_load(_read_checked(p))
    except yaml.YAMLError as e:
        logger.error("解析配置文件失败: %s, 错误: %s", path, e)
        raise
    return _as_dict(result, path)


def load_json(path: str | Path) -> dict[str, Any]:
    """安全读取 JSON 文件，空值保护同 load_yaml

    异常:
        json.JSONDecodeError: 格式错误（ValueError 子类）
        ValueError: 文件过大
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = _read_checked(p)
    if not text.strip():
        return {}
    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("解析配置文件失败: %s, 错误: %s", path, e)
        raise
    return _as_dict(result, path)


def load_document(path: str | Path) -> dict[str, Any]:
    """按后缀选择格式读取: .json 读 JSON，其余读 YAML"""
    if Path(path).suffix.lower() in JSON_SUFFIXES:
        return load_json(path)
    return load_yaml(path)


def save_yaml(path: str | Path, data: Any) -> None:
    """原子写入 YAML 文件（保持键顺序，允许 Unicode）"""
    content = yaml.dump(
        data, default_flow_style=False,
        allow_unicode=True, sort_keys=False,
    )
    atomic_write(Path(path), content)


def save_json(path: str | Path, data: Any) -> None:
    """原子写入 JSON 文件（两空格缩进，末尾换行）"""
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    atomic_write(Path(path), content)


def save_document(path: str | Path, data: Any) -> None:
    """按后缀选择格式保存: .json 写 JSON，其余写 YAML"""
    p = Path(path)
    try:
        if p.suffix.lower() in JSON_SUFFIXES:
            save_json(p, data)
        else:
            save_yaml(p, data)
    except (PermissionError, OSError) as e:
        logger.error("写入文件失败: %s, 错误: %s", path, e)
        raise
