"""
pytest配置文件 - 提供全局fixtures和测试配置
"""

import numpy as np
import pytest

from sitesum.core.config import set_config
from sitesum.core.structure import Atom, Cell
from sitesum.potentials.pair import LennardJonesPotential, MorsePotential

# Ar 的 LJ 参数
EPSILON = 0.0103  # eV
SIGMA = 3.4  # Å
AR_LATTICE = 5.26  # Å，FCC 晶格常数


def make_fcc(symbol, a, repetition, rattle=0.0, seed=0, pbc=True):
    """创建FCC超胞，可选随机扰动原子位置。"""
    basis = np.array(
        [[0.0, 0.0, 0.0], [0.5, 0.5, 0.0], [0.5, 0.0, 0.5], [0.0, 0.5, 0.5]]
    )
    atoms = [Atom(k, symbol, a * b) for k, b in enumerate(basis)]
    cell = Cell(a * np.eye(3), atoms, pbc_enabled=pbc).build_supercell(repetition)
    if rattle:
        rng = np.random.default_rng(seed)
        cell = cell.with_positions(
            cell.get_positions() + rng.normal(scale=rattle, size=(cell.num_atoms, 3))
        )
    return cell


@pytest.fixture
def argon_cell():
    """108 原子的扰动 FCC 氩晶胞（周期性）"""
    return make_fcc("Ar", AR_LATTICE, (3, 3, 3), rattle=0.1, seed=7)


@pytest.fixture
def mixed_cell():
    """Ar/Kr 混合的扰动 FCC 晶胞（周期性，32 原子）"""
    cell = make_fcc("Ar", AR_LATTICE, (2, 2, 2), rattle=0.08, seed=3)
    atoms = [
        Atom(atom.id, "Kr" if k % 3 == 0 else "Ar", atom.position)
        for k, atom in enumerate(cell.atoms)
    ]
    return Cell(cell.lattice_vectors, atoms, pbc_enabled=True)


@pytest.fixture
def cluster():
    """非周期的小团簇，用于有限差分检查"""
    rng = np.random.default_rng(11)
    positions = make_fcc("Ar", AR_LATTICE, (1, 1, 1)).get_positions()
    positions = np.vstack([positions, positions[:3] + [2.6, 2.6, 2.6]])
    positions = positions + rng.normal(scale=0.1, size=positions.shape)
    atoms = [Atom(k, "Ar", p) for k, p in enumerate(positions)]
    return Cell(30.0 * np.eye(3), atoms, pbc_enabled=False)


@pytest.fixture
def two_atoms():
    """间距略大于 sigma 的双原子体系"""
    atoms = [
        Atom(id=1, symbol="Ar", position=np.array([0.0, 0.0, 0.0])),
        Atom(id=2, symbol="Ar", position=np.array([3.8, 0.0, 0.0])),
    ]
    return Cell(np.diag([20.0, 20.0, 20.0]), atoms)


@pytest.fixture
def lj_potential():
    """Ar 的 LJ 位点势，截断 7.5 Å"""
    return LennardJonesPotential(epsilon=EPSILON, sigma=SIGMA, cutoff=7.5)


@pytest.fixture
def morse_potential():
    """截断较短的 Morse 位点势"""
    return MorsePotential(D_e=0.02, a=1.3, r0=3.8, cutoff=6.0)


@pytest.fixture(autouse=True)
def reset_global_config():
    """每个测试前后恢复默认全局配置"""
    set_config(None)
    yield
    set_config(None)


# 全局测试配置
def pytest_configure(config):
    """pytest全局配置"""
    np.seterr(all="raise", under="ignore")
