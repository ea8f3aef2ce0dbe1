#!/usr/bin/env python3
"""
SiteSum - 集成势模块

集成势是若干势模型的有序集合（可混合位点势、单体势甚至嵌套集成），
任一可观测量等于各成员可观测量的逐元素之和。成员必须使用相同的单位制。
"""

import logging

from sitesum.core.units import declared_units
from sitesum.errors import UnitMismatch

from .base import PotentialKind

logger = logging.getLogger(__name__)


class EnsemblePotential:
    """集成势。

    Parameters
    ----------
    members : sequence
        成员势模型，按顺序保存；嵌套的列表或元组同样视为集成势。
    energy_unit, length_unit, cutoff_unit : Unit | str | None, optional
        集成整体声明的默认单位；未声明时取成员共同声明的单位。

    Raises
    ------
    ValueError
        成员列表为空
    UnitMismatch
        成员声明的能量或长度单位不一致，或与集成自身声明的单位不一致
    """

    kind = PotentialKind.ENSEMBLE

    def __init__(self, members, energy_unit=None, length_unit=None, cutoff_unit=None):
        self.members = tuple(
            EnsemblePotential(m) if isinstance(m, list | tuple) else m for m in members
        )
        if not self.members:
            raise ValueError("An ensemble needs at least one member")
        self.energy_unit = energy_unit
        self.length_unit = length_unit
        self.cutoff_unit = cutoff_unit
        self._check_declared_units(check_member_units(self.members))
        logger.debug(f"Ensemble Potential initialized with {len(self.members)} members.")

    def _check_declared_units(self, member_units) -> None:
        """集成自身声明的单位必须与成员声明的单位一致。"""
        own = declared_units(self)[:2]
        for what, unit, member in zip(("energy", "length"), own, member_units):
            if unit is not None and member is not None and unit != member:
                raise UnitMismatch(
                    f"Ensemble declares {what} unit {unit} but its members declare {member}"
                )

    def supports(self, observable: str) -> bool:
        return all(
            getattr(m, "supports", lambda _: False)(observable) for m in self.members
        )

    def member_units(self):
        """成员共同声明的 (能量, 长度) 单位，未声明者为 ``None``。"""
        return check_member_units(self.members)

    def __len__(self) -> int:
        return len(self.members)

    def __iter__(self):
        return iter(self.members)

    def __getitem__(self, item):
        return self.members[item]

    def __repr__(self) -> str:
        return f"EnsemblePotential({list(self.members)!r})"


def check_member_units(members):
    """检查成员声明的能量与长度单位是否一致。

    单体势不声明长度单位，不参与长度单位的比较。

    Returns
    -------
    tuple
        共同声明的 (能量单位, 长度单位)，未声明者为 ``None``。

    Raises
    ------
    UnitMismatch
        成员声明了不同的单位
    """
    common = [None, None]
    for member in members:
        if getattr(member, "kind", None) is PotentialKind.ENSEMBLE:
            declared = list(declared_units(member)[:2])
            inner = check_member_units(member.members)
            declared = [d if d is not None else i for d, i in zip(declared, inner)]
        else:
            declared = list(declared_units(member)[:2])
        for k, unit in enumerate(declared):
            if unit is None:
                continue
            if common[k] is None:
                common[k] = unit
            elif common[k] != unit:
                what = ("energy", "length")[k]
                raise UnitMismatch(
                    f"Ensemble members declare different {what} units: "
                    f"{common[k]} and {unit}"
                )
    return tuple(common)
