"""单次计算的选项解析

调用方选项优先，其次是势声明的默认值，最后是全局配置
(:func:`sitesum.core.config.get_config`)。
"""

import logging
import os
from dataclasses import dataclass

import numpy as np

from sitesum.core.config import ConfigManager, get_config
from sitesum.core.units import UnitScaler, declared_units
from sitesum.potentials.base import PotentialKind
from sitesum.utils.neighbors import NeighborList

from .executors import Executor, get_executor
from .partition import resolve_domain

logger = logging.getLogger(__name__)

OPTIONS = (
    "domain",
    "executor",
    "ntasks",
    "energy_unit",
    "length_unit",
    "cutoff_unit",
    "neighbor_list",
    "full_length",
)
"""公开接口接受的关键字选项。"""


def potential_declared_units(potential):
    """势声明的 (能量, 长度, 截断) 单位；集成势未声明时取成员共同声明的单位。"""
    energy, length, cutoff = declared_units(potential)
    if getattr(potential, "kind", None) is PotentialKind.ENSEMBLE:
        m_energy, m_length = potential.member_units()
        energy = energy if energy is not None else m_energy
        length = length if length is not None else m_length
    return energy, length, cutoff


@dataclass(frozen=True)
class CalculationSettings:
    """一次计算中生效的全部设置。

    Attributes
    ----------
    domain : numpy.ndarray
        计算域原子索引。
    executor : Executor
        并行后端。
    ntasks : int
        力计算的块数。
    units : UnitScaler
        解析后的单位。
    cutoff_override : object
        调用方给出的截断单位（未给出为 ``None``），用于逐成员解析截断单位。
    neighbor_list : NeighborList | None
        调用方提供的已构建邻居列表。
    full_length : bool
        单原子能是否按全局索引返回全长数组。
    skin : float
        构建邻居列表时的皮肤厚度。
    """

    domain: np.ndarray
    executor: Executor
    ntasks: int
    units: UnitScaler
    cutoff_override: object = None
    neighbor_list: NeighborList | None = None
    full_length: bool = False
    skin: float = 0.0

    @classmethod
    def from_options(
        cls, potential, system, config: ConfigManager | None = None, **options
    ) -> "CalculationSettings":
        """解析调用选项。

        Raises
        ------
        TypeError
            出现未知选项
        ValueError
            计算域或 ntasks 非法
        """
        unknown = sorted(set(options) - set(OPTIONS))
        if unknown:
            raise TypeError(f"Unknown options {unknown}; supported options: {list(OPTIONS)}")
        cfg = config or get_config()

        domain = resolve_domain(options.get("domain"), system.num_atoms)

        executor = options.get("executor")
        if executor is None:
            executor = cfg.get("parallel.executor", "threads")
        executor = get_executor(executor, max_workers=cfg.get("parallel.max_workers"))

        ntasks = options.get("ntasks")
        if ntasks is None:
            ntasks = cfg.get("parallel.ntasks") or os.cpu_count() or 1
        if isinstance(ntasks, bool) or int(ntasks) != ntasks or ntasks < 1:
            raise ValueError(f"ntasks must be a positive integer, got {ntasks}")

        units = UnitScaler.resolve(
            potential_declared_units(potential),
            energy_unit=options.get("energy_unit"),
            length_unit=options.get("length_unit"),
            cutoff_unit=options.get("cutoff_unit"),
            default_energy=cfg.get("units.energy", "eV"),
            default_length=cfg.get("units.length", "Å"),
        )
        settings = cls(
            domain=domain,
            executor=executor,
            ntasks=int(ntasks),
            units=units,
            cutoff_override=options.get("cutoff_unit"),
            neighbor_list=options.get("neighbor_list"),
            full_length=bool(options.get("full_length", False)),
            skin=float(cfg.get("neighbors.skin", 0.0) or 0.0),
        )
        logger.debug(
            f"Calculation settings: {len(domain)} atoms in domain, "
            f"executor={executor!r}, ntasks={settings.ntasks}"
        )
        return settings
