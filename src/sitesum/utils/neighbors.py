"""
邻居列表模块

包含 :class:`NeighborList` 用于按截断半径构建原子邻居关系，
以及 :class:`NeighborQuery` 用于只读地查询某个中心原子的局部环境
(邻居索引 J、相对位移 R、邻居物种 Z)。

邻居列表在一次计算中只构建一次，之后被所有并发任务共享只读访问；
局部环境每次查询时重新生成，不做跨调用缓存。
"""

import logging
import math
import time
from typing import NamedTuple

import numpy as np
from numba import jit

from sitesum.errors import MissingNeighborList

logger = logging.getLogger(__name__)


@jit(nopython=True)
def _pair_distance_sq_numba(positions, i, j, lattice, lattice_inv, pbc):
    """原子对 (i, j) 最小镜像距离的平方。"""
    d = np.empty(3)
    for a in range(3):
        d[a] = positions[j, a] - positions[i, a]
    if pbc:
        s = np.empty(3)
        for a in range(3):
            s[a] = (
                d[0] * lattice_inv[0, a]
                + d[1] * lattice_inv[1, a]
                + d[2] * lattice_inv[2, a]
            )
            s[a] -= np.floor(s[a] + 0.5)
        for a in range(3):
            d[a] = s[0] * lattice[0, a] + s[1] * lattice[1, a] + s[2] * lattice[2, a]
    return d[0] * d[0] + d[1] * d[1] + d[2] * d[2]


@jit(nopython=True)
def _count_pairs_numba(positions, lattice, lattice_inv, pbc, cutoff_sq):
    n = positions.shape[0]
    count = 0
    for i in range(n):
        for j in range(i + 1, n):
            if _pair_distance_sq_numba(positions, i, j, lattice, lattice_inv, pbc) < cutoff_sq:
                count += 1
    return count


@jit(nopython=True)
def _fill_pairs_numba(positions, lattice, lattice_inv, pbc, cutoff_sq, npairs):
    n = positions.shape[0]
    pi = np.empty(npairs, dtype=np.int64)
    pj = np.empty(npairs, dtype=np.int64)
    count = 0
    for i in range(n):
        for j in range(i + 1, n):
            if _pair_distance_sq_numba(positions, i, j, lattice, lattice_inv, pbc) < cutoff_sq:
                pi[count] = i
                pj[count] = j
                count += 1
    return pi, pj


class LocalEnvironment(NamedTuple):
    """中心原子的局部环境。

    Attributes
    ----------
    indices : numpy.ndarray
        邻居原子索引 J，形状 (k,)
    displacements : numpy.ndarray
        相对位移 R = x_j - x_i（最小镜像），形状 (k, 3)
    species : numpy.ndarray
        邻居原子序数 Z，形状 (k,)
    """

    indices: np.ndarray
    displacements: np.ndarray
    species: np.ndarray


class NeighborList:
    """
    邻居列表类，用于生成原子的邻居列表

    Parameters
    ----------
    cutoff : float
        截断半径（体系的长度单位）
    skin : float, optional
        皮肤厚度，默认为 0；实际搜索半径为 ``cutoff + skin``
    """

    def __init__(self, cutoff: float, skin: float = 0.0):
        if not isinstance(cutoff, int | float) or not math.isfinite(cutoff) or cutoff <= 0:
            raise ValueError("Cutoff must be a positive finite number")
        if not isinstance(skin, int | float) or not math.isfinite(skin) or skin < 0:
            raise ValueError("Skin must be non-negative")

        self.cutoff = float(cutoff)
        self.skin = float(skin)
        self.cutoff_with_skin = self.cutoff + self.skin
        self.system = None
        self._offsets = None
        self._indices = None
        self._last_build_time = 0.0

        logger.debug(f"Initialized NeighborList with cutoff={cutoff}, skin={skin}")

    @property
    def is_built(self) -> bool:
        return self._offsets is not None

    def _validate_cutoff(self, system) -> None:
        """周期体系下搜索半径不得超过晶胞面间距的一半。"""
        if not system.pbc_enabled:
            return
        half_width = 0.5 * float(np.min(system.perpendicular_widths()))
        if self.cutoff_with_skin > half_width:
            raise ValueError(
                f"Cutoff radius ({self.cutoff_with_skin:.3f}) exceeds half the cell "
                f"width ({half_width:.3f}); minimum image convention does not apply"
            )

    def build(self, system) -> "NeighborList":
        """构建邻居列表

        Parameters
        ----------
        system : AtomicSystemView
            原子体系

        Returns
        -------
        NeighborList
            自身，便于链式调用

        Raises
        ------
        ValueError
            截断半径与晶胞尺寸不兼容
        """
        start_time = time.time()
        self._validate_cutoff(system)

        positions = np.ascontiguousarray(system.get_positions(), dtype=np.float64)
        num_atoms = positions.shape[0]
        if system.pbc_enabled:
            lattice = np.ascontiguousarray(system.lattice_vectors, dtype=np.float64)
            lattice_inv = np.ascontiguousarray(system.lattice_inv, dtype=np.float64)
        else:
            lattice = np.eye(3)
            lattice_inv = np.eye(3)

        cutoff_sq = self.cutoff_with_skin**2
        pbc = bool(system.pbc_enabled)
        npairs = _count_pairs_numba(positions, lattice, lattice_inv, pbc, cutoff_sq)
        pi, pj = _fill_pairs_numba(
            positions, lattice, lattice_inv, pbc, cutoff_sq, npairs
        )

        centers = np.concatenate([pi, pj])
        others = np.concatenate([pj, pi])
        order = np.lexsort((others, centers))
        self._indices = others[order]
        self._offsets = np.zeros(num_atoms + 1, dtype=np.int64)
        np.cumsum(np.bincount(centers, minlength=num_atoms), out=self._offsets[1:])
        self._indices.setflags(write=False)
        self._offsets.setflags(write=False)
        self.system = system
        self._last_build_time = time.time() - start_time

        logger.debug(
            f"Built neighbor list for {num_atoms} atoms ({npairs} pairs) "
            f"in {self._last_build_time:.3f}s"
        )
        return self

    def get_neighbors(self, atom_index: int) -> np.ndarray:
        """
        获取指定原子的邻居索引。

        Parameters
        ----------
        atom_index : int
            原子的索引。

        Returns
        -------
        numpy.ndarray
            邻居原子的索引数组（升序）。
        """
        if not self.is_built:
            raise MissingNeighborList("Neighbor list has not been built")
        return self._indices[self._offsets[atom_index] : self._offsets[atom_index + 1]]

    def get_neighbor_stats(self) -> dict:
        """返回邻居数的统计信息。"""
        if not self.is_built:
            return {}
        counts = np.diff(self._offsets)
        return {
            "min_neighbors": int(counts.min()),
            "max_neighbors": int(counts.max()),
            "avg_neighbors": float(np.mean(counts)),
            "last_build_time": self._last_build_time,
        }


def build_neighbor_list(system, cutoff: float, skin: float = 0.0) -> NeighborList:
    """构建邻居列表，把不可用的截断/体系组合转为 :class:`MissingNeighborList`。"""
    try:
        return NeighborList(cutoff, skin=skin).build(system)
    except ValueError as e:
        raise MissingNeighborList(
            f"No usable neighbor list for cutoff={cutoff}: {e}"
        ) from e


class NeighborQuery:
    """邻居列表的只读适配器。

    Parameters
    ----------
    neighbor_list : NeighborList
        已构建的邻居列表
    system : AtomicSystemView
        构建该列表时所用的体系
    cutoff : float, optional
        查询截断半径，须不大于列表的截断半径；默认使用列表的截断半径。
        小于列表搜索半径时，按 ``r < cutoff`` 过滤邻居。

    Raises
    ------
    MissingNeighborList
        列表未构建、不属于该体系或截断半径不足
    """

    def __init__(self, neighbor_list: NeighborList, system, cutoff: float | None = None):
        if not neighbor_list.is_built:
            raise MissingNeighborList("Neighbor list has not been built")
        if neighbor_list.system is not system:
            raise MissingNeighborList("Neighbor list was built for a different system")
        if cutoff is None:
            cutoff = neighbor_list.cutoff
        if cutoff > neighbor_list.cutoff:
            raise MissingNeighborList(
                f"Neighbor list cutoff {neighbor_list.cutoff} is smaller than "
                f"the requested cutoff {cutoff}"
            )
        self.neighbor_list = neighbor_list
        self.system = system
        self.cutoff = float(cutoff)
        self._filter = self.cutoff < neighbor_list.cutoff_with_skin

    def neighbors_of(self, i: int) -> LocalEnvironment:
        """返回中心原子 ``i`` 的局部环境 (J, R, Z)。"""
        positions = self.system.get_positions()
        j = self.neighbor_list.get_neighbors(i)
        R = self.system.minimum_image_many(positions[j] - positions[i])
        if self._filter and len(j):
            mask = np.einsum("ij,ij->i", R, R) < self.cutoff**2
            j = j[mask]
            R = R[mask]
        Z = self.system.get_atomic_numbers()[j]
        return LocalEnvironment(j, R, Z)
