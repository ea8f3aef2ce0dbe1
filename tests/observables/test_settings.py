"""调用选项解析测试"""

import os

import numpy as np
import pytest

from sitesum.core.config import ConfigManager, set_config
from sitesum.core.units import ANGSTROM, EV, KJ_PER_MOL, MEV, NANOMETER
from sitesum.errors import UnitMismatch
from sitesum.observables.executors import SequentialExecutor, ThreadedExecutor
from sitesum.observables.settings import CalculationSettings, potential_declared_units
from sitesum.potentials.ensemble import EnsemblePotential
from sitesum.potentials.onebody import OneBodyPotential
from sitesum.potentials.pair import LennardJonesPotential


def test_defaults(lj_potential, argon_cell):
    s = CalculationSettings.from_options(lj_potential, argon_cell)
    np.testing.assert_array_equal(s.domain, np.arange(argon_cell.num_atoms))
    assert isinstance(s.executor, ThreadedExecutor)
    assert s.ntasks == (os.cpu_count() or 1)
    assert (s.units.energy, s.units.length, s.units.cutoff) == (EV, ANGSTROM, ANGSTROM)
    assert s.neighbor_list is None
    assert not s.full_length


def test_unknown_option(lj_potential, argon_cell):
    with pytest.raises(TypeError, match="Unknown options"):
        CalculationSettings.from_options(lj_potential, argon_cell, ntask=2)


@pytest.mark.parametrize("ntasks", [0, -1, 2.5, True])
def test_invalid_ntasks(lj_potential, argon_cell, ntasks):
    with pytest.raises(ValueError):
        CalculationSettings.from_options(lj_potential, argon_cell, ntasks=ntasks)


def test_override_beats_declared_beats_global(argon_cell):
    pot = LennardJonesPotential(0.01, 3.4, 6.0, energy_unit="meV")
    set_config(ConfigManager(overrides={"units": {"energy": "kJ/mol"}}))
    assert CalculationSettings.from_options(pot, argon_cell).units.energy == MEV
    assert (
        CalculationSettings.from_options(pot, argon_cell, energy_unit="eV").units.energy
        == EV
    )
    bare = LennardJonesPotential(0.01, 3.4, 6.0)
    assert CalculationSettings.from_options(bare, argon_cell).units.energy == KJ_PER_MOL


def test_length_override_does_not_touch_cutoff(lj_potential, argon_cell):
    s = CalculationSettings.from_options(lj_potential, argon_cell, length_unit="nm")
    assert s.units.length == NANOMETER
    assert s.units.cutoff == ANGSTROM
    assert s.cutoff_override is None


def test_cutoff_unit_from_declared_length(argon_cell):
    pot = LennardJonesPotential(0.01, 0.34, 0.6, length_unit="nm")
    s = CalculationSettings.from_options(pot, argon_cell, length_unit="Å")
    assert s.units.length == ANGSTROM
    assert s.units.cutoff == NANOMETER


def test_cutoff_unit_from_global_default_length(lj_potential, argon_cell):
    set_config(ConfigManager(overrides={"units": {"length": "nm"}}))
    s = CalculationSettings.from_options(lj_potential, argon_cell, length_unit="bohr")
    assert s.units.cutoff == NANOMETER


def test_wrong_dimension_override(lj_potential, argon_cell):
    with pytest.raises(UnitMismatch):
        CalculationSettings.from_options(lj_potential, argon_cell, energy_unit="nm")


def test_config_controls_parallel_defaults(lj_potential, argon_cell):
    set_config(
        ConfigManager(overrides={"parallel": {"executor": "sequential", "ntasks": 3}})
    )
    s = CalculationSettings.from_options(lj_potential, argon_cell)
    assert isinstance(s.executor, SequentialExecutor)
    assert s.ntasks == 3


def test_explicit_config_argument(lj_potential, argon_cell):
    cfg = ConfigManager(overrides={"neighbors": {"skin": 0.3}})
    s = CalculationSettings.from_options(lj_potential, argon_cell, config=cfg)
    assert s.skin == pytest.approx(0.3)


def test_ensemble_falls_back_to_member_units():
    ens = EnsemblePotential(
        [
            LennardJonesPotential(0.01, 3.4, 6.0, energy_unit="kJ/mol"),
            OneBodyPotential({"Ar": -0.1}),
        ]
    )
    assert potential_declared_units(ens) == (KJ_PER_MOL, None, None)
    declared = EnsemblePotential(list(ens), energy_unit="kJ/mol", length_unit="nm")
    assert potential_declared_units(declared) == (KJ_PER_MOL, NANOMETER, None)
