"""配置加载模块

提供轻量的 YAML 配置加载，用于设定计算的全局默认值：

- 内置默认值之上递归合并多份 YAML（后者覆盖前者）
- 点路径访问（如 ``units.energy``）
- 进程级全局配置 :func:`get_config` / :func:`set_config`

默认配置::

    units:
      energy: eV
      length: Å
    parallel:
      executor: threads
      ntasks: null        # null 表示使用 os.cpu_count()
      max_workers: null
    neighbors:
      skin: 0.0
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "units": {"energy": "eV", "length": "Å"},
    "parallel": {"executor": "threads", "ntasks": None, "max_workers": None},
    "neighbors": {"skin": 0.0},
}


def _deep_update(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_update(out[k], v)
        else:
            out[k] = v
    return out


def _get_by_path(d: dict, path: str, default: Any = None) -> Any:
    cur = d
    for key in path.split("."):
        if not isinstance(cur, dict) or key not in cur:
            return default
        cur = cur[key]
    return cur


@dataclass
class _Resolved:
    data: dict
    sources: list[str]


class ConfigManager:
    """配置管理器

    在内置默认值之上加载并递归合并一组 YAML 配置文件，提供点路径访问。

    Parameters
    ----------
    files : Iterable[str] | None, optional
        需要加载的 YAML 文件列表，后者覆盖前者。
    overrides : dict | None, optional
        最后合并的字典覆盖（优先级最高）。

    Raises
    ------
    FileNotFoundError
        指定的配置文件不存在
    ValueError
        YAML 顶层不是映射
    """

    def __init__(
        self, files: Iterable[str] | None = None, overrides: dict | None = None
    ) -> None:
        self._resolved = self._load_all(files, overrides)

    def _load_all(self, files, overrides) -> _Resolved:
        data: dict[str, Any] = copy.deepcopy(DEFAULTS)
        sources: list[str] = ["<defaults>"]
        for p in files or ():
            path = Path(p)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {path}")
            with open(path, encoding="utf-8") as f:
                ov = yaml.safe_load(f) or {}
            if not isinstance(ov, dict):
                raise ValueError(f"Top level of {path} must be a mapping")
            data = _deep_update(data, ov)
            sources.append(str(path))
        if overrides:
            data = _deep_update(data, overrides)
            sources.append("<overrides>")
        logger.debug(f"Loaded configuration from {sources}")
        return _Resolved(data=data, sources=sources)

    @property
    def data(self) -> dict:
        """获取合并后的配置数据字典。"""
        return self._resolved.data

    @property
    def sources(self) -> list[str]:
        return list(self._resolved.sources)

    def get(self, path: str, default: Any | None = None) -> Any:
        """获取配置值（点路径）

        Parameters
        ----------
        path : str
            点路径键名，例如 ``"parallel.ntasks"``。
        default : Any, optional
            当键不存在时返回的默认值。
        """
        return _get_by_path(self._resolved.data, path, default)


_global_config: ConfigManager | None = None


def get_config() -> ConfigManager:
    """返回进程级全局配置，首次访问时以内置默认值创建。"""
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager()
    return _global_config


def set_config(config: ConfigManager | None) -> None:
    """替换全局配置；传入 ``None`` 恢复内置默认值。"""
    global _global_config
    _global_config = config
