#!/usr/bin/env python3
"""
SiteSum - 势能基类模块

势模型是一个带标签的联合类型，标签由类属性 ``kind`` 给出：

``PotentialKind.GENERIC``
    位点势 :class:`SitePotential`，输入中心原子的局部环境，输出标量位点能
    （可选地同时给出对每个邻居位移的梯度）。
``PotentialKind.ONE_BODY``
    单体势，只依赖中心原子物种的常数能量，见 :mod:`sitesum.potentials.onebody`。
``PotentialKind.ENSEMBLE``
    势的有序集合，可观测量为各成员之和，见 :mod:`sitesum.potentials.ensemble`。
"""

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np

ALL_PROPERTIES = ("energy", "atom_energies", "forces", "virial")
"""位点势可以提供的全部可观测量。"""


class PotentialKind(Enum):
    GENERIC = "generic"
    ONE_BODY = "one_body"
    ENSEMBLE = "ensemble"


class SitePotential(ABC):
    """位点势的抽象基类。

    总能量写作位点能之和 :math:`E = \\sum_i V_i(\\{\\mathbf{R}_{ij}\\}, \\{Z_j\\}, Z_i)`，
    其中 :math:`\\mathbf{R}_{ij} = \\mathbf{x}_j - \\mathbf{x}_i`。

    Parameters
    ----------
    parameters : dict
        势能参数字典（按具体模型定义）。
    cutoff : float
        截断半径，以 ``cutoff_unit`` （未声明时为长度单位）计。
    energy_unit, length_unit, cutoff_unit : Unit | str | None, optional
        势声明的默认单位；``None`` 表示使用全局默认值。

    Notes
    -----
    - 子类至少实现 :meth:`evaluate` 与 :meth:`evaluate_with_gradient`。
    - 仅能给出能量的模型应把 ``implemented_properties`` 缩减为
      ``("energy", "atom_energies")``。
    """

    kind = PotentialKind.GENERIC
    implemented_properties: tuple[str, ...] = ALL_PROPERTIES

    def __init__(
        self,
        parameters: dict,
        cutoff: float,
        energy_unit=None,
        length_unit=None,
        cutoff_unit=None,
    ):
        if not np.isfinite(cutoff) or cutoff <= 0:
            raise ValueError(f"Cutoff must be positive, got {cutoff}")
        self.parameters = parameters
        self.cutoff = float(cutoff)
        self.energy_unit = energy_unit
        self.length_unit = length_unit
        self.cutoff_unit = cutoff_unit

    def supports(self, observable: str) -> bool:
        return observable in self.implemented_properties

    @abstractmethod
    def evaluate(self, R: np.ndarray, Z: np.ndarray, z0: int) -> float:
        """计算位点能。

        Parameters
        ----------
        R : numpy.ndarray
            邻居相对位移，形状 (k, 3)。
        Z : numpy.ndarray
            邻居原子序数，形状 (k,)。
        z0 : int
            中心原子序数。

        Returns
        -------
        float
            位点能（势的能量单位）。
        """
        raise NotImplementedError

    @abstractmethod
    def evaluate_with_gradient(
        self, R: np.ndarray, Z: np.ndarray, z0: int
    ) -> tuple[float, np.ndarray]:
        """计算位点能及其对每个邻居位移的梯度 :math:`\\partial V_i / \\partial \\mathbf{R}_{ij}`。

        Returns
        -------
        tuple[float, numpy.ndarray]
            位点能与形状 (k, 3) 的梯度数组。
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cutoff={self.cutoff})"
