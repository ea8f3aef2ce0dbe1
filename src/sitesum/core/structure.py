r"""
原子体系结构模块

提供可观测量计算所需的只读原子体系视图 :class:`AtomicSystemView`，
以及其具体实现 :class:`Atom` / :class:`Cell`。

最小镜像约定（行向量记号，晶格矩阵 :math:`\mathbf{L}` 每行为一个基矢）：

.. math::
    \mathbf{s} = \mathbf{d}\,\mathbf{L}^{-1},\qquad
    \mathbf{d}_{\min} = (\mathbf{s} - \operatorname{round}(\mathbf{s}))\,\mathbf{L}

Notes
-----
体系在一次计算中只被读取，不会被修改；所有长度默认单位为埃 (Å)。

Examples
--------
>>> import numpy as np
>>> from sitesum.core.structure import Atom, Cell
>>> a = 4.05
>>> atoms = [Atom(0, "Al", [0, 0, 0]), Atom(1, "Al", [a / 2, a / 2, 0])]
>>> cell = Cell(a * np.eye(3), atoms)
>>> cell.num_atoms
2
"""

import logging
from abc import ABC, abstractmethod

import numpy as np

from sitesum.core.units import ANGSTROM, Unit, get_unit

logger = logging.getLogger(__name__)

ATOMIC_NUMBERS: dict[str, int] = {
    "H": 1, "He": 2, "Li": 3, "Be": 4, "B": 5, "C": 6, "N": 7, "O": 8,
    "F": 9, "Ne": 10, "Na": 11, "Mg": 12, "Al": 13, "Si": 14, "P": 15,
    "S": 16, "Cl": 17, "Ar": 18, "K": 19, "Ca": 20, "Ti": 22, "V": 23,
    "Cr": 24, "Mn": 25, "Fe": 26, "Co": 27, "Ni": 28, "Cu": 29, "Zn": 30,
    "Ga": 31, "Ge": 32, "Kr": 36, "Zr": 40, "Nb": 41, "Mo": 42, "Ag": 47,
    "Sn": 50, "Xe": 54, "Ta": 73, "W": 74, "Pt": 78, "Au": 79, "Pb": 82,
}  # fmt: skip
"""元素符号到原子序数的映射。"""

CHEMICAL_SYMBOLS: dict[int, str] = {z: s for s, z in ATOMIC_NUMBERS.items()}


def atomic_number(symbol: str) -> int:
    """根据元素符号获取原子序数

    Raises
    ------
    KeyError
        如果元素符号不存在
    """
    try:
        return ATOMIC_NUMBERS[symbol]
    except KeyError as e:
        raise KeyError(f"Atomic number for symbol '{symbol}' not found.") from e


class AtomicSystemView(ABC):
    """原子体系的只读能力接口。

    可观测量计算只通过本接口访问体系：原子数、位置、物种、
    最小镜像位移以及晶胞几何。

    Notes
    -----
    周期体系还需提供 ``lattice_vectors``、``lattice_inv``、``volume``
    与 ``perpendicular_widths()``，供邻居列表与应力计算使用。
    """

    length_unit: Unit = ANGSTROM

    @property
    @abstractmethod
    def num_atoms(self) -> int:
        raise NotImplementedError

    @property
    @abstractmethod
    def pbc_enabled(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_positions(self) -> np.ndarray:
        """返回 (N, 3) 笛卡尔坐标。"""
        raise NotImplementedError

    @abstractmethod
    def get_atomic_numbers(self) -> np.ndarray:
        """返回 (N,) 原子序数。"""
        raise NotImplementedError

    @abstractmethod
    def get_symbols(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def minimum_image_many(self, displacements: np.ndarray) -> np.ndarray:
        """对 (k, 3) 位移数组逐行应用最小镜像约定。"""
        raise NotImplementedError

    def __len__(self) -> int:
        return self.num_atoms


class Atom:
    """原子对象

    Parameters
    ----------
    id : int
        原子的唯一标识符
    symbol : str
        元素符号 (如 'Al', 'Cu', 'Si')
    position : array_like
        3D 笛卡尔坐标
    """

    def __init__(self, id: int, symbol: str, position) -> None:
        self.id = id
        self.symbol = symbol
        self.number = atomic_number(symbol)
        self.position = np.array(position, dtype=np.float64)
        if self.position.shape != (3,):
            raise ValueError(f"位置必须是3D向量，当前形状: {self.position.shape}")

    def copy(self) -> "Atom":
        return Atom(id=self.id, symbol=self.symbol, position=self.position.copy())

    def __repr__(self) -> str:
        return f"Atom(id={self.id}, symbol={self.symbol!r}, position={self.position})"


class Cell(AtomicSystemView):
    r"""晶胞对象，管理原子集合和晶格结构

    晶胞体积：

    .. math::
        V = |\mathbf{a}_1 \cdot (\mathbf{a}_2 \times \mathbf{a}_3)|

    Parameters
    ----------
    lattice_vectors : array_like
        3×3晶格矢量矩阵，每行为一个晶格矢量
    atoms : list of Atom
        晶胞中的原子列表
    pbc_enabled : bool, optional
        是否启用周期性边界条件，默认True
    length_unit : Unit | str, optional
        坐标与晶格的长度单位，默认 Å

    Raises
    ------
    ValueError
        原子列表为空、晶格矢量无效或原子 ID 重复
    """

    def __init__(
        self,
        lattice_vectors,
        atoms: list[Atom],
        pbc_enabled: bool = True,
        length_unit: Unit | str = ANGSTROM,
    ) -> None:
        if not atoms:
            raise ValueError("原子列表不能为空")
        if not self._validate_lattice_vectors(lattice_vectors):
            raise ValueError("Invalid lattice vectors")

        self.lattice_vectors = np.array(lattice_vectors, dtype=np.float64)
        self.atoms = list(atoms)
        self._pbc_enabled = bool(pbc_enabled)
        self.length_unit = get_unit(length_unit)
        self.lattice_inv = np.linalg.inv(self.lattice_vectors)

        self._positions = np.array([atom.position for atom in self.atoms])
        self._numbers = np.array([atom.number for atom in self.atoms], dtype=np.int64)
        self._positions.setflags(write=False)
        self._numbers.setflags(write=False)

        self._validate_atoms()
        self._validate_pbc_conditions()

    @staticmethod
    def _validate_lattice_vectors(lattice_vectors) -> bool:
        """检查是否为可逆、体积为正的 3x3 矩阵。"""
        lattice_vectors = np.asarray(lattice_vectors, dtype=np.float64)
        if lattice_vectors.shape != (3, 3):
            return False
        if not np.all(np.isfinite(lattice_vectors)):
            return False
        return np.linalg.det(lattice_vectors) > 0

    def _validate_atoms(self) -> None:
        atom_ids = set()
        for atom in self.atoms:
            if atom.id in atom_ids:
                raise ValueError(f"原子ID {atom.id} 重复")
            atom_ids.add(atom.id)
            if not np.all(np.isfinite(atom.position)):
                raise ValueError(f"原子 {atom.id} 的位置包含无效值")

    def _validate_pbc_conditions(self) -> None:
        """警告间距过小的原子对。"""
        positions = self._positions
        for i in range(self.num_atoms - 1):
            d = self.minimum_image_many(positions[i + 1 :] - positions[i])
            dist = np.linalg.norm(d, axis=1)
            for k in np.flatnonzero(dist < 0.1):
                j = i + 1 + int(k)
                logger.warning(
                    f"Atoms {self.atoms[i].id} and {self.atoms[j].id} are too close: "
                    f"{dist[k]:.3f} {self.length_unit}"
                )

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    @property
    def pbc_enabled(self) -> bool:
        return self._pbc_enabled

    @property
    def volume(self) -> float:
        """晶胞体积。"""
        return float(np.linalg.det(self.lattice_vectors))

    def get_positions(self) -> np.ndarray:
        return self._positions

    def get_atomic_numbers(self) -> np.ndarray:
        return self._numbers

    def get_symbols(self) -> list[str]:
        return [atom.symbol for atom in self.atoms]

    def perpendicular_widths(self) -> np.ndarray:
        r"""三个晶面族的面间距 :math:`V / |\mathbf{a}_j \times \mathbf{a}_k|`。"""
        a1, a2, a3 = self.lattice_vectors
        areas = np.array(
            [
                np.linalg.norm(np.cross(a2, a3)),
                np.linalg.norm(np.cross(a3, a1)),
                np.linalg.norm(np.cross(a1, a2)),
            ]
        )
        return self.volume / areas

    def minimum_image(self, displacement) -> np.ndarray:
        """计算单个位移向量的最小镜像。

        Raises
        ------
        ValueError
            如果位移向量不是3D
        """
        displacement = np.asarray(displacement, dtype=np.float64)
        if displacement.shape != (3,):
            raise ValueError(f"位移向量必须是3D向量，当前形状: {displacement.shape}")
        return self.minimum_image_many(displacement[None, :])[0]

    def minimum_image_many(self, displacements: np.ndarray) -> np.ndarray:
        displacements = np.asarray(displacements, dtype=np.float64)
        if not self._pbc_enabled:
            return displacements
        fractional = displacements @ self.lattice_inv
        fractional -= np.round(fractional)
        return fractional @ self.lattice_vectors

    def build_supercell(self, repetition: tuple) -> "Cell":
        """构建超胞。

        Parameters
        ----------
        repetition : tuple of int
            三个方向上的重复次数 (nx, ny, nz)
        """
        nx, ny, nz = (int(n) for n in repetition)
        if min(nx, ny, nz) < 1:
            raise ValueError(f"Repetition must be positive, got {repetition}")
        new_atoms = []
        atom_id = 0
        for ix in range(nx):
            for iy in range(ny):
                for iz in range(nz):
                    shift = np.array([ix, iy, iz], dtype=np.float64) @ self.lattice_vectors
                    for atom in self.atoms:
                        new_atoms.append(Atom(atom_id, atom.symbol, atom.position + shift))
                        atom_id += 1
        lattice = self.lattice_vectors * np.array([[nx], [ny], [nz]], dtype=np.float64)
        return Cell(lattice, new_atoms, self._pbc_enabled, self.length_unit)

    def with_positions(self, positions) -> "Cell":
        """返回坐标替换后的新晶胞（原晶胞不变）。"""
        positions = np.asarray(positions, dtype=np.float64)
        if positions.shape != (self.num_atoms, 3):
            raise ValueError(
                f"Positions must have shape ({self.num_atoms}, 3), got {positions.shape}"
            )
        atoms = [Atom(a.id, a.symbol, p) for a, p in zip(self.atoms, positions)]
        return Cell(self.lattice_vectors, atoms, self._pbc_enabled, self.length_unit)

    def deformed(self, deformation_matrix) -> "Cell":
        """按形变梯度 F 同时变换晶格与原子坐标，返回新晶胞。"""
        F = np.asarray(deformation_matrix, dtype=np.float64)
        if F.shape != (3, 3):
            raise ValueError(f"Deformation matrix must be 3x3, got {F.shape}")
        atoms = [Atom(a.id, a.symbol, F @ a.position) for a in self.atoms]
        return Cell(self.lattice_vectors @ F.T, atoms, self._pbc_enabled, self.length_unit)
