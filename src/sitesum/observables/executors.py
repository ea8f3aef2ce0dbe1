"""执行器模块

可观测量层的并行后端：对序列做 map 或 map-reduce。

- :class:`SequentialExecutor` 在当前线程中顺序执行
- :class:`ThreadedExecutor` 使用 :class:`concurrent.futures.ThreadPoolExecutor`

每次调用都创建并关闭自己的线程池，嵌套使用（集成成员内部再并行）不会互相占用工作线程。
"""

import logging
import math
import os
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


def _reduce_block(fn, block, combine, init):
    acc = init
    for item in block:
        acc = combine(acc, fn(item))
    return acc


class Executor(ABC):
    """执行器基类。"""

    name = "executor"

    @abstractmethod
    def map(self, fn, items) -> list:
        """对每个元素调用 ``fn``，按输入顺序返回结果列表。"""
        raise NotImplementedError

    @abstractmethod
    def map_reduce(self, fn, items, combine, init):
        """计算 ``combine(...combine(init, fn(x0))..., fn(xn))``。

        ``combine`` 必须满足结合律，``init`` 为其单位元；
        并行实现的求和顺序可能不同，结果只在舍入误差范围内一致。
        """
        raise NotImplementedError


class SequentialExecutor(Executor):
    """顺序执行器。"""

    name = "sequential"

    def map(self, fn, items) -> list:
        return [fn(item) for item in items]

    def map_reduce(self, fn, items, combine, init):
        return _reduce_block(fn, items, combine, init)

    def __repr__(self) -> str:
        return "SequentialExecutor()"


class ThreadedExecutor(Executor):
    """线程池执行器。

    Parameters
    ----------
    max_workers : int | None, optional
        线程数，默认 ``os.cpu_count()``。
    basesize : int | None, optional
        map-reduce 时每个任务处理的元素个数；默认把序列均分给各线程。
    """

    name = "threads"

    def __init__(self, max_workers: int | None = None, basesize: int | None = None):
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        if basesize is not None and basesize < 1:
            raise ValueError(f"basesize must be positive, got {basesize}")
        self.max_workers = max_workers or os.cpu_count() or 1
        self.basesize = basesize

    def map(self, fn, items) -> list:
        items = list(items)
        if len(items) <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(items))) as pool:
            return list(pool.map(fn, items))

    def map_reduce(self, fn, items, combine, init):
        items = list(items)
        if not items:
            return init
        size = self.basesize or math.ceil(len(items) / self.max_workers)
        blocks = [items[k : k + size] for k in range(0, len(items), size)]
        logger.debug(f"map_reduce over {len(items)} items in {len(blocks)} blocks")
        partials = self.map(lambda block: _reduce_block(fn, block, combine, init), blocks)
        return _reduce_block(lambda x: x, partials, combine, init)

    def __repr__(self) -> str:
        return f"ThreadedExecutor(max_workers={self.max_workers}, basesize={self.basesize})"


_EXECUTORS = {"threads": ThreadedExecutor, "sequential": SequentialExecutor}


def get_executor(executor=None, max_workers: int | None = None) -> Executor:
    """把执行器名称或实例解析为 :class:`Executor`。

    Raises
    ------
    ValueError
        未知的执行器名称
    """
    if isinstance(executor, Executor):
        return executor
    name = str(executor or "threads").lower()
    if name not in _EXECUTORS:
        raise ValueError(f"Unknown executor '{executor}'; choose from {sorted(_EXECUTORS)}")
    if name == "threads":
        return ThreadedExecutor(max_workers=max_workers)
    return SequentialExecutor()
