"""势视图：可观测量的分派

每个可观测量只有一个分派点 :meth:`PotentialView._dispatch`，按势的标签选择策略：

``GENERIC``
    必须使用邻居列表，交给 :class:`AccumulationEngine` 的位点势路径。
``ONE_BODY``
    不构建邻居列表，O(N) 的物种查表；力与维里为精确零。
``ENSEMBLE``
    每个成员独立分派，经 :func:`fan_out_join` 并发计算后求和。

邻居列表在一次计算中最多构建一次（按所有位点势成员的最大截断半径），
各位点势通过按自身截断半径过滤的 :class:`NeighborQuery` 只读访问。
"""

import logging
from dataclasses import replace

import numpy as np

from sitesum.core.units import declared_units, resolve_cutoff_unit
from sitesum.errors import UnsupportedObservable
from sitesum.potentials.base import PotentialKind
from sitesum.potentials.ensemble import EnsemblePotential
from sitesum.utils.neighbors import NeighborQuery, build_neighbor_list

from .accumulation import AccumulationEngine
from .ensemble import fan_out_join
from .settings import CalculationSettings

logger = logging.getLogger(__name__)

OBSERVABLES = ("energy", "atom_energies", "forces", "virial")


def as_potential(potential):
    """把普通列表/元组视为未声明单位的集成势。"""
    if isinstance(potential, list | tuple):
        return EnsemblePotential(potential)
    return potential


def potential_kind(potential) -> PotentialKind:
    kind = getattr(potential, "kind", None)
    if not isinstance(kind, PotentialKind):
        raise UnsupportedObservable(
            f"{type(potential).__name__} is not a recognised potential model"
        )
    return kind


def generic_leaves(potential) -> list:
    """势树中的全部位点势（深度优先，保持顺序）。"""
    kind = potential_kind(potential)
    if kind is PotentialKind.GENERIC:
        return [potential]
    if kind is PotentialKind.ENSEMBLE:
        return [leaf for m in potential.members for leaf in generic_leaves(m)]
    return []


def check_supported(potential, observable: str) -> None:
    """检查势（及全部集成成员）是否支持 ``observable``。

    Raises
    ------
    UnsupportedObservable
        任一成员不支持
    """
    kind = potential_kind(potential)
    if kind is PotentialKind.ENSEMBLE:
        for member in potential.members:
            check_supported(member, observable)
        return
    if not potential.supports(observable):
        raise UnsupportedObservable(
            f"{type(potential).__name__} does not support '{observable}'"
        )


class PotentialView:
    """一次计算中势与体系的组合视图。

    Parameters
    ----------
    potential : SitePotential | OneBodyPotential | EnsemblePotential | list
        势模型。
    system : AtomicSystemView
        原子体系。
    settings : CalculationSettings
        解析后的选项。
    """

    def __init__(self, potential, system, settings: CalculationSettings):
        self.potential = as_potential(potential)
        self.system = system
        self.settings = settings
        self.engine = AccumulationEngine(system, settings.executor, settings.ntasks)
        self._neighbor_list = settings.neighbor_list
        self._queries = {}

    def leaf_cutoff(self, leaf) -> float:
        """位点势截断半径，换算到体系的长度单位。

        未声明截断或长度单位的成员沿用整体解析出的截断单位。
        """
        unit = resolve_cutoff_unit(
            declared_units(leaf), self.settings.cutoff_override, self.settings.units.cutoff
        )
        scaler = replace(self.settings.units, cutoff=unit)
        return scaler.convert_cutoff(leaf.cutoff, self.system.length_unit)

    def _prepare_neighbors(self) -> None:
        """为全部位点势准备邻居查询，邻居列表只构建一次。"""
        leaves = generic_leaves(self.potential)
        if not leaves or self._queries:
            return
        cutoffs = {id(leaf): self.leaf_cutoff(leaf) for leaf in leaves}
        if self._neighbor_list is None:
            self._neighbor_list = build_neighbor_list(
                self.system, max(cutoffs.values()), skin=self.settings.skin
            )
        for leaf in leaves:
            self._queries[id(leaf)] = NeighborQuery(
                self._neighbor_list, self.system, cutoff=cutoffs[id(leaf)]
            )

    @property
    def neighbor_list(self):
        return self._neighbor_list

    def compute(self, observable: str):
        """计算裸可观测量（未附加单位）。"""
        if observable not in OBSERVABLES:
            raise UnsupportedObservable(f"Unknown observable '{observable}'")
        check_supported(self.potential, observable)
        self._prepare_neighbors()
        logger.debug(f"Computing {observable} for {self.potential!r}")
        raw = self._dispatch(self.potential, observable)
        if observable == "atom_energies" and self.settings.full_length:
            full = np.full(self.system.num_atoms, np.nan)
            full[self.settings.domain] = raw
            return full
        return raw

    def _dispatch(self, potential, observable: str):
        domain = self.settings.domain
        kind = potential_kind(potential)
        if kind is PotentialKind.GENERIC:
            query = self._queries[id(potential)]
            return getattr(self.engine, observable)(potential, query, domain)
        if kind is PotentialKind.ONE_BODY:
            if observable == "energy":
                return self.engine.onebody_energy(potential, domain)
            if observable == "atom_energies":
                return self.engine.onebody_atom_energies(potential, domain)
            if observable == "forces":
                return self.engine.zero_forces()
            return self.engine.zero_virial()
        return fan_out_join(
            potential.members, lambda member: self._dispatch(member, observable)
        )
