"""
SiteSum - 位点势可观测量累加器

把逐原子的势评估并行归约为体系级可观测量（总能量、单原子能、力、维里、应力），
支持单个势模型、单体势与势的集成，并在接口边界统一处理单位。
"""

__version__ = "1.0.0"

from . import core, observables, potentials, utils
from .errors import MissingNeighborList, SiteSumError, UnitMismatch, UnsupportedObservable
from .observables.api import (
    calculate_atom_energies,
    calculate_energy,
    calculate_energy_forces,
    calculate_energy_forces_virial,
    calculate_forces,
    calculate_forces_virial,
    calculate_properties,
    calculate_stress,
    calculate_virial,
)

__all__ = [
    "core",
    "potentials",
    "observables",
    "utils",
    "SiteSumError",
    "MissingNeighborList",
    "UnsupportedObservable",
    "UnitMismatch",
    "calculate_energy",
    "calculate_atom_energies",
    "calculate_forces",
    "calculate_virial",
    "calculate_stress",
    "calculate_properties",
    "calculate_energy_forces",
    "calculate_energy_forces_virial",
    "calculate_forces_virial",
]
