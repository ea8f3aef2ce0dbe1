#!/usr/bin/env python3
"""
FCC 氩的位点势可观测量示例

构建扰动的 FCC 氩超胞，计算 LJ + Morse + 单体参考能组成的集成势的
能量、力、维里与应力，并比较不同任务数下力的一致性。
"""

import logging
import sys

import numpy as np

from sitesum import calculate_energy_forces_virial, calculate_forces, calculate_stress
from sitesum.core.structure import Atom, Cell
from sitesum.core.units import GPA
from sitesum.potentials import (
    EnsemblePotential,
    LennardJonesPotential,
    MorsePotential,
    OneBodyPotential,
)
from sitesum.utils import to_voigt


def setup_logging(level=logging.INFO) -> None:
    """设置控制台日志"""
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logger = logging.getLogger()
    logger.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)


def build_argon(a: float = 5.26, repetition=(3, 3, 3), rattle: float = 0.05) -> Cell:
    basis = np.array(
        [[0.0, 0.0, 0.0], [0.5, 0.5, 0.0], [0.5, 0.0, 0.5], [0.0, 0.5, 0.5]]
    )
    unit = Cell(a * np.eye(3), [Atom(k, "Ar", a * b) for k, b in enumerate(basis)])
    cell = unit.build_supercell(repetition)
    rng = np.random.default_rng(2024)
    return cell.with_positions(
        cell.get_positions() + rng.normal(scale=rattle, size=(cell.num_atoms, 3))
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)

    cell = build_argon()
    potential = EnsemblePotential(
        [
            LennardJonesPotential(epsilon=0.0103, sigma=3.4, cutoff=7.5, shift=True),
            MorsePotential(D_e=0.002, a=1.3, r0=3.8, cutoff=6.0),
            OneBodyPotential({"Ar": -0.05}),
        ]
    )
    logger.info(f"体系: {cell.num_atoms} 个原子, 体积 {cell.volume:.2f} Å^3")

    results = calculate_energy_forces_virial(potential, cell, ntasks=4)
    logger.info(f"总能量: {results['energy']}")
    logger.info(f"最大力分量: {np.abs(results['forces'].value).max():.6f} eV/Å")
    logger.info(f"维里:\n{results['virial'].value}")

    stress = calculate_stress(potential, cell).to(GPA)
    logger.info(f"应力 (Voigt, GPa): {np.round(to_voigt(stress.value), 4)}")

    reference = calculate_forces(potential, cell, executor="sequential", ntasks=1)
    for ntasks in (2, 8, cell.num_atoms):
        forces = calculate_forces(potential, cell, ntasks=ntasks)
        diff = np.abs(forces.value - reference.value).max()
        logger.info(f"ntasks={ntasks:4d}: 与单任务结果的最大差异 {diff:.2e}")


if __name__ == "__main__":
    main()
