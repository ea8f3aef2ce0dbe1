#!/usr/bin/env python3
"""
SiteSum - 单体势模块

单体势为每个物种给出一个常数能量偏移（通常是孤立原子参考能），
与几何无关：力与维里恒为精确的零，计算时不需要邻居列表。
"""

import logging

import numpy as np

from sitesum.core.structure import CHEMICAL_SYMBOLS, atomic_number

from .base import PotentialKind

logger = logging.getLogger(__name__)


class OneBodyPotential:
    """单体势。

    Parameters
    ----------
    energies : dict
        物种到常数能量的映射，键可为元素符号或原子序数，
        例如 ``{"Al": -0.25, 29: -0.31}``。
    energy_unit : Unit | str | None, optional
        能量单位；``None`` 表示使用全局默认值。

    Examples
    --------
    >>> V = OneBodyPotential({"Al": -0.25})
    >>> V.evaluate(13)
    -0.25
    """

    kind = PotentialKind.ONE_BODY
    implemented_properties = ("energy", "atom_energies", "forces", "virial")
    length_unit = None
    cutoff_unit = None

    def __init__(self, energies: dict, energy_unit=None):
        self.energies: dict[int, float] = {}
        for key, value in energies.items():
            z = int(key) if isinstance(key, int | np.integer) else atomic_number(str(key))
            self.energies[z] = float(value)
        self.energy_unit = energy_unit
        logger.debug(f"OneBody Potential initialized for species {sorted(self.energies)}.")

    def supports(self, observable: str) -> bool:
        return observable in self.implemented_properties

    def evaluate(self, z0: int) -> float:
        """返回物种 ``z0`` 的常数能量。

        Raises
        ------
        KeyError
            如果该物种没有定义能量
        """
        try:
            return self.energies[int(z0)]
        except KeyError as e:
            symbol = CHEMICAL_SYMBOLS.get(int(z0), str(z0))
            raise KeyError(f"OneBody energy for species '{symbol}' not defined.") from e

    def __repr__(self) -> str:
        return f"OneBodyPotential({self.energies})"
