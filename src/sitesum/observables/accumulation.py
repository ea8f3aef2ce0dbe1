r"""可观测量累加引擎

把逐原子（位点）势评估归约为体系级可观测量。

能量与单原子能
    对计算域中每个原子独立求位点能，map-reduce 求和；无共享可变状态。

力
    位点 :math:`i` 的评估会同时作用于 :math:`i` 与其全部邻居 :math:`j`：

    .. math::
        \mathbf{f}_j \mathrel{-}= \frac{\partial V_i}{\partial \mathbf{R}_{ij}},\qquad
        \mathbf{f}_i \mathrel{+}= \sum_j \frac{\partial V_i}{\partial \mathbf{R}_{ij}}

    写入目标是任意全局索引。计算域被划分为 ``ntasks`` 个块，每块在一个任务内
    顺序执行，并独占一个全长 (N, 3) 的私有累加器；所有块完成后逐元素相加。
    以 O(ntasks × N) 的临时内存换取无锁、无数据竞争。

维里
    .. math::
        W = -\sum_i \sum_j \frac{\partial V_i}{\partial \mathbf{R}_{ij}} \otimes \mathbf{R}_{ij}

    所有贡献归约到同一个 3×3 矩阵，与总能量一样做 map-reduce。

单体势的力与维里是精确的零，不经过上述流程。
"""

import logging
import operator

import numpy as np

from sitesum.utils.neighbors import NeighborQuery

from .executors import Executor
from .partition import chunks

logger = logging.getLogger(__name__)


class AccumulationEngine:
    """一次计算中的累加引擎。

    Parameters
    ----------
    system : AtomicSystemView
        原子体系（只读）。
    executor : Executor
        能量/维里的 map-reduce 后端，同时用于并行处理力的各个块。
    ntasks : int
        力计算的块数。
    """

    def __init__(self, system, executor: Executor, ntasks: int):
        self.system = system
        self.executor = executor
        self.ntasks = ntasks
        self._numbers = system.get_atomic_numbers()

    # --------- 位点势 ---------
    def site_energy(self, potential, query: NeighborQuery, i: int) -> float:
        _, R, Z = query.neighbors_of(i)
        return float(potential.evaluate(R, Z, self._numbers[i]))

    def site_gradient(self, potential, query: NeighborQuery, i: int):
        """返回 (J, R, dV)，并检查梯度形状。"""
        j, R, Z = query.neighbors_of(i)
        _, dV = potential.evaluate_with_gradient(R, Z, self._numbers[i])
        dV = np.asarray(dV, dtype=np.float64)
        if len(j) == 0 and dV.size == 0:
            dV = dV.reshape(0, 3)
        if dV.shape != (len(j), 3):
            raise ValueError(
                f"{type(potential).__name__} returned gradient of shape {dV.shape} "
                f"for atom {i} with {len(j)} neighbors; expected ({len(j)}, 3)"
            )
        return j, R, dV

    def energy(self, potential, query, domain) -> float:
        return self.executor.map_reduce(
            lambda i: self.site_energy(potential, query, i), domain, operator.add, 0.0
        )

    def atom_energies(self, potential, query, domain) -> np.ndarray:
        values = self.executor.map(lambda i: self.site_energy(potential, query, i), domain)
        return np.array(values, dtype=np.float64)

    def chunk_forces(self, potential, query, chunk) -> np.ndarray:
        """计算一个块的力贡献，写入该块独占的全长累加器。"""
        f = np.zeros((self.system.num_atoms, 3), dtype=np.float64)
        for i in chunk:
            j, _, dV = self.site_gradient(potential, query, i)
            # j 内无重复索引，按数组下标减法不会丢失贡献
            f[j] -= dV
            f[i] += dV.sum(axis=0)
        return f

    def forces(self, potential, query, domain) -> np.ndarray:
        blocks = chunks(domain, self.ntasks)
        logger.debug(
            f"Force accumulation over {len(domain)} atoms in {len(blocks)} chunks"
        )
        buffers = self.executor.map(
            lambda chunk: self.chunk_forces(potential, query, chunk), blocks
        )
        total = np.zeros((self.system.num_atoms, 3), dtype=np.float64)
        for buf in buffers:
            total += buf
        return total

    def site_virial(self, potential, query, i: int) -> np.ndarray:
        _, R, dV = self.site_gradient(potential, query, i)
        return -(dV.T @ R)

    def virial(self, potential, query, domain) -> np.ndarray:
        return self.executor.map_reduce(
            lambda i: self.site_virial(potential, query, i),
            domain,
            operator.add,
            np.zeros((3, 3), dtype=np.float64),
        )

    # --------- 单体势 ---------
    def onebody_energy(self, potential, domain) -> float:
        return float(sum(potential.evaluate(self._numbers[i]) for i in domain))

    def onebody_atom_energies(self, potential, domain) -> np.ndarray:
        return np.array(
            [potential.evaluate(self._numbers[i]) for i in domain], dtype=np.float64
        )

    def zero_forces(self) -> np.ndarray:
        return np.zeros((self.system.num_atoms, 3), dtype=np.float64)

    def zero_virial(self) -> np.ndarray:
        return np.zeros((3, 3), dtype=np.float64)
