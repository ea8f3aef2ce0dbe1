"""
测试位点势基类
"""

import numpy as np
import pytest

from sitesum.potentials.base import ALL_PROPERTIES, PotentialKind, SitePotential


class EnergyOnly(SitePotential):
    implemented_properties = ("energy", "atom_energies")

    def evaluate(self, R, Z, z0):
        return float(len(R))

    def evaluate_with_gradient(self, R, Z, z0):
        raise NotImplementedError


def test_site_potential_is_abstract():
    """
    测试 SitePotential 基类不能被直接实例化。
    """
    with pytest.raises(TypeError, match="Can't instantiate abstract class SitePotential"):
        SitePotential(parameters={}, cutoff=5.0)


def test_default_kind_and_properties():
    pot = EnergyOnly(parameters={}, cutoff=3.0)
    assert pot.kind is PotentialKind.GENERIC
    assert pot.supports("energy")
    assert not pot.supports("forces")
    assert set(ALL_PROPERTIES) == {"energy", "atom_energies", "forces", "virial"}


@pytest.mark.parametrize("cutoff", [0.0, -1.0, np.inf, np.nan])
def test_invalid_cutoff(cutoff):
    with pytest.raises(ValueError):
        EnergyOnly(parameters={}, cutoff=cutoff)


def test_declared_units_default_to_none():
    pot = EnergyOnly(parameters={}, cutoff=3.0)
    assert pot.energy_unit is None
    assert pot.length_unit is None
    assert pot.cutoff_unit is None
