r"""
SiteSum - 单位模块

提供轻量的单位与带单位量表示，以及每次调用的单位解析器 :class:`UnitScaler`。

内部运算全部使用裸浮点数（势函数声明的单位制），单位仅在公开接口边界处附加：

.. math::
    E = E_{\text{raw}}\,[E],\qquad
    \mathbf{F} = \mathbf{F}_{\text{raw}}\,[E]/[L],\qquad
    W = W_{\text{raw}}\,[E][L]

基准单位为 eV 与 Å，每个单位记录其相对基准单位的换算因子以及
(能量, 长度) 两个量纲指数。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from sitesum.errors import UnitMismatch

logger = logging.getLogger(__name__)

HARTREE_TO_EV: float = 27.211386245988
"""1 Hartree 对应的 eV。"""

RYDBERG_TO_EV: float = 13.605693122994
"""1 Rydberg 对应的 eV。"""

BOHR_TO_ANGSTROM: float = 0.529177210903
"""1 Bohr 对应的 Å。"""

EV_TO_KCAL_MOL: float = 23.06054783061903
"""1 eV 对应的 kcal/mol。"""

EV_TO_KJ_MOL: float = 96.48533212331002
"""1 eV 对应的 kJ/mol。"""

EV_TO_GPA: float = 160.2176634
"""应力单位换算系数：eV/Å³ → GPa。"""


@dataclass(frozen=True)
class Unit:
    """物理单位。

    Parameters
    ----------
    name : str
        单位名称，仅用于显示。
    dims : tuple[int, int]
        (能量, 长度) 量纲指数，例如力为 ``(1, -1)``。
    factor : float
        相对基准单位 eV^a·Å^b 的换算因子。

    Notes
    -----
    ``数值 * Unit`` 得到 :class:`Quantity`，与 ``Quantity(数值, Unit)`` 等价。
    """

    name: str
    dims: tuple[int, int]
    factor: float = 1.0

    # 阻止 numpy 把 ndarray * Unit 展开成逐元素的对象数组
    __array_ufunc__ = None

    @property
    def is_energy(self) -> bool:
        return self.dims == (1, 0)

    @property
    def is_length(self) -> bool:
        return self.dims == (0, 1)

    def compatible(self, other: Unit) -> bool:
        return self.dims == other.dims

    def conversion_factor(self, other: Unit) -> float:
        """返回从本单位换算到 ``other`` 的乘数。"""
        if not self.compatible(other):
            raise UnitMismatch(f"cannot convert {self.name} to {other.name}")
        return self.factor / other.factor

    def __mul__(self, other):
        if isinstance(other, Unit):
            return Unit(
                f"{self.name}*{other.name}",
                (self.dims[0] + other.dims[0], self.dims[1] + other.dims[1]),
                self.factor * other.factor,
            )
        return NotImplemented

    def __rmul__(self, value):
        return Quantity(value, self)

    def __truediv__(self, other):
        if isinstance(other, Unit):
            return Unit(
                f"{self.name}/{other.name}",
                (self.dims[0] - other.dims[0], self.dims[1] - other.dims[1]),
                self.factor / other.factor,
            )
        return NotImplemented

    def __pow__(self, n: int) -> Unit:
        return Unit(
            f"{self.name}^{n}", (self.dims[0] * n, self.dims[1] * n), self.factor**n
        )

    def __str__(self) -> str:
        return self.name


class Quantity:
    """带单位的数值（标量或数组）。

    Parameters
    ----------
    value : float | array_like
        裸数值。
    unit : Unit
        单位。
    """

    __array_ufunc__ = None

    def __init__(self, value, unit: Unit):
        if not isinstance(unit, Unit):
            raise TypeError(f"unit must be a Unit, got {type(unit).__name__}")
        self.value = value if np.isscalar(value) else np.asarray(value)
        self.unit = unit

    @property
    def magnitude(self):
        return self.value

    @property
    def shape(self) -> tuple:
        return np.shape(self.value)

    def to(self, unit: Unit | str) -> Quantity:
        """换算到另一个同量纲单位。"""
        unit = get_unit(unit)
        if unit == self.unit:
            return Quantity(self.value, unit)
        return Quantity(self.value * self.unit.conversion_factor(unit), unit)

    def _coerce(self, other) -> Quantity:
        if not isinstance(other, Quantity):
            raise TypeError(f"cannot combine Quantity with {type(other).__name__}")
        if not self.unit.compatible(other.unit):
            raise UnitMismatch(f"cannot add {other.unit} to {self.unit}")
        return other.to(self.unit)

    def __add__(self, other):
        return Quantity(self.value + self._coerce(other).value, self.unit)

    def __sub__(self, other):
        return Quantity(self.value - self._coerce(other).value, self.unit)

    def __neg__(self):
        return Quantity(-self.value, self.unit)

    def __mul__(self, other):
        if isinstance(other, Unit):
            return Quantity(self.value, self.unit * other)
        if isinstance(other, Quantity):
            return Quantity(self.value * other.value, self.unit * other.unit)
        return Quantity(self.value * other, self.unit)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, Unit):
            return Quantity(self.value, self.unit / other)
        if isinstance(other, Quantity):
            return Quantity(self.value / other.value, self.unit / other.unit)
        return Quantity(self.value / other, self.unit)

    def __len__(self) -> int:
        return len(self.value)

    def __getitem__(self, item) -> Quantity:
        return Quantity(self.value[item], self.unit)

    def __repr__(self) -> str:
        return f"Quantity({self.value!r}, {self.unit.name})"


# 基准单位
EV = Unit("eV", (1, 0), 1.0)
ANGSTROM = Unit("Å", (0, 1), 1.0)

MEV = Unit("meV", (1, 0), 1e-3)
HARTREE = Unit("Hartree", (1, 0), HARTREE_TO_EV)
RYDBERG = Unit("Ry", (1, 0), RYDBERG_TO_EV)
KCAL_PER_MOL = Unit("kcal/mol", (1, 0), 1.0 / EV_TO_KCAL_MOL)
KJ_PER_MOL = Unit("kJ/mol", (1, 0), 1.0 / EV_TO_KJ_MOL)

NANOMETER = Unit("nm", (0, 1), 10.0)
PICOMETER = Unit("pm", (0, 1), 0.01)
BOHR = Unit("bohr", (0, 1), BOHR_TO_ANGSTROM)

GPA = Unit("GPa", (1, -3), 1.0 / EV_TO_GPA)

_UNITS: dict[str, Unit] = {
    "eV": EV,
    "meV": MEV,
    "Hartree": HARTREE,
    "Ha": HARTREE,
    "Ry": RYDBERG,
    "kcal/mol": KCAL_PER_MOL,
    "kJ/mol": KJ_PER_MOL,
    "Å": ANGSTROM,
    "Angstrom": ANGSTROM,
    "A": ANGSTROM,
    "nm": NANOMETER,
    "pm": PICOMETER,
    "bohr": BOHR,
    "Bohr": BOHR,
    "GPa": GPA,
}


def get_unit(unit: Unit | str) -> Unit:
    """按名称查找单位；``Unit`` 实例原样返回。

    Raises
    ------
    KeyError
        未知的单位名称
    """
    if isinstance(unit, Unit):
        return unit
    try:
        return _UNITS[str(unit)]
    except KeyError as e:
        raise KeyError(
            f"Unknown unit '{unit}'; known units: {sorted(_UNITS)}"
        ) from e


def _expect(unit: Unit, dims: tuple[int, int], what: str) -> Unit:
    if unit.dims != dims:
        raise UnitMismatch(f"{what} unit {unit.name} has wrong dimension {unit.dims}")
    return unit


def declared_units(potential) -> tuple[Unit | None, Unit | None, Unit | None]:
    """读取势声明的默认 (能量, 长度, 截断) 单位，未声明者为 ``None``。"""
    out = []
    for attr in ("energy_unit", "length_unit", "cutoff_unit"):
        u = getattr(potential, attr, None)
        out.append(None if u is None else get_unit(u))
    return tuple(out)


def resolve_cutoff_unit(declared, cutoff_unit=None, default: Unit | str = ANGSTROM) -> Unit:
    """解析截断半径所用的单位。

    顺序：调用方的 ``cutoff_unit`` > 势声明的截断单位 > 势声明的长度单位 > ``default``。
    调用方的 ``length_unit`` 只给结果贴标签，从不改变截断半径。

    Raises
    ------
    UnitMismatch
        单位不是长度量纲
    """
    _, d_length, d_cutoff = declared
    for unit in (cutoff_unit, d_cutoff, d_length, default):
        if unit is not None:
            return _expect(get_unit(unit), (0, 1), "cutoff")
    raise ValueError("No cutoff unit available")


@dataclass(frozen=True)
class UnitScaler:
    """一次调用中生效的单位。

    解析顺序：调用显式覆盖 > 势声明的默认值 > 全局默认值。
    截断单位见 :func:`resolve_cutoff_unit`，不受调用方 ``length_unit`` 覆盖的影响。

    Attributes
    ----------
    energy : Unit
    length : Unit
    cutoff : Unit
    """

    energy: Unit
    length: Unit
    cutoff: Unit

    @classmethod
    def resolve(
        cls,
        declared: tuple[Unit | None, Unit | None, Unit | None],
        energy_unit=None,
        length_unit=None,
        cutoff_unit=None,
        default_energy: Unit | str = EV,
        default_length: Unit | str = ANGSTROM,
    ) -> UnitScaler:
        """解析有效单位。

        Parameters
        ----------
        declared : tuple
            势声明的 (能量, 长度, 截断) 单位，见 :func:`declared_units`。
        energy_unit, length_unit, cutoff_unit : Unit | str | None
            调用方的显式覆盖。
        default_energy, default_length : Unit | str
            全局默认值。

        Raises
        ------
        UnitMismatch
            任一单位量纲错误
        """
        d_energy, d_length, d_cutoff = declared

        def pick(override, decl, default):
            if override is not None:
                return get_unit(override)
            if decl is not None:
                return decl
            return get_unit(default)

        energy = _expect(pick(energy_unit, d_energy, default_energy), (1, 0), "energy")
        length = _expect(pick(length_unit, d_length, default_length), (0, 1), "length")
        cutoff = resolve_cutoff_unit(declared, cutoff_unit, default_length)
        logger.debug(
            f"Resolved units: energy={energy}, length={length}, cutoff={cutoff}"
        )
        return cls(energy=energy, length=length, cutoff=cutoff)

    def convert_cutoff(self, radius: float, target: Unit | str) -> float:
        """把截断半径从截断单位换算到邻居列表构建器所用的长度单位。"""
        target = get_unit(target)
        if self.cutoff == target:
            return float(radius)
        return float(radius) * self.cutoff.conversion_factor(target)

    @property
    def force(self) -> Unit:
        return self.energy / self.length

    @property
    def virial(self) -> Unit:
        return self.energy * self.length

    @property
    def stress(self) -> Unit:
        return self.energy / self.length**3

    def scale(self, observable: str, raw) -> Quantity:
        """给裸结果附加单位（仅在公开接口边界调用）。"""
        unit = {
            "energy": self.energy,
            "atom_energies": self.energy,
            "forces": self.force,
            "virial": self.virial,
            "stress": self.stress,
        }[observable]
        return Quantity(raw, unit)
