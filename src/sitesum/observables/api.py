"""可观测量公开接口

所有函数签名一致：``calculate_xxx(potential, system, **options)``，返回带单位的
:class:`~sitesum.core.units.Quantity`。

Kwargs
------
- ``domain``        : 计算的原子子集，默认全部原子
- ``executor``      : 并行后端，:class:`Executor` 实例或 ``"threads"`` / ``"sequential"``
- ``ntasks``        : 力计算划分的任务数，默认 ``os.cpu_count()``
- ``energy_unit``   : 覆盖能量单位
- ``length_unit``   : 覆盖长度单位
- ``cutoff_unit``   : 覆盖截断半径所用的单位
- ``neighbor_list`` : 复用已构建的邻居列表
- ``full_length``   : 单原子能按全局索引返回，计算域外为 NaN

Examples
--------
>>> from sitesum.observables import calculate_energy, calculate_forces
>>> E = calculate_energy(potential, cell)
>>> F = calculate_forces(potential, cell, ntasks=4, energy_unit="kJ/mol")
"""

import logging

from sitesum.core.units import Quantity

from .dispatch import PotentialView, as_potential
from .settings import CalculationSettings

logger = logging.getLogger(__name__)


def _view(potential, system, options) -> PotentialView:
    potential = as_potential(potential)
    settings = CalculationSettings.from_options(potential, system, **options)
    return PotentialView(potential, system, settings)


def _scaled(view: PotentialView, observable: str) -> Quantity:
    return view.settings.units.scale(observable, view.compute(observable))


def calculate_energy(potential, system, **options) -> Quantity:
    """计算计算域内的总势能。"""
    return _scaled(_view(potential, system, options), "energy")


def calculate_atom_energies(potential, system, **options) -> Quantity:
    """计算计算域内每个原子的位点能，顺序与计算域一致。"""
    return _scaled(_view(potential, system, options), "atom_energies")


def calculate_forces(potential, system, **options) -> Quantity:
    """计算力，结果总是覆盖全部原子 (N, 3)。"""
    return _scaled(_view(potential, system, options), "forces")


def calculate_virial(potential, system, **options) -> Quantity:
    """计算 3×3 维里张量。"""
    return _scaled(_view(potential, system, options), "virial")


def _stress_from_virial(view: PotentialView, virial) -> Quantity:
    system = view.system
    if not system.pbc_enabled:
        raise ValueError("Stress is only defined for periodic systems")
    return view.settings.units.scale("stress", -virial / system.volume)


def calculate_stress(potential, system, **options) -> Quantity:
    r"""计算应力 :math:`\sigma = -W / V` （仅周期体系）。

    体积取体系坐标的数值，结果标记为 能量/长度³。

    Raises
    ------
    ValueError
        非周期体系
    """
    view = _view(potential, system, options)
    return _stress_from_virial(view, view.compute("virial"))


def calculate_properties(potential, system, properties, **options) -> dict:
    """一次计算多个可观测量，共享同一个邻居列表。

    Parameters
    ----------
    properties : iterable of str
        ``"energy"``、``"atom_energies"``、``"forces"``、``"virial"``、``"stress"`` 的任意组合。

    Returns
    -------
    dict
        可观测量名到 :class:`Quantity` 的映射。
    """
    view = _view(potential, system, options)
    results = {}
    virial = None
    for name in properties:
        if name == "stress":
            if virial is None:
                virial = view.compute("virial")
            results[name] = _stress_from_virial(view, virial)
            continue
        raw = view.compute(name)
        if name == "virial":
            virial = raw
        results[name] = view.settings.units.scale(name, raw)
    return results


def calculate_energy_forces(potential, system, **options) -> dict:
    return calculate_properties(potential, system, ("energy", "forces"), **options)


def calculate_energy_forces_virial(potential, system, **options) -> dict:
    return calculate_properties(
        potential, system, ("energy", "forces", "virial"), **options
    )


def calculate_forces_virial(potential, system, **options) -> dict:
    return calculate_properties(potential, system, ("forces", "virial"), **options)
