#!/usr/bin/env python3
"""单位模块测试"""

import numpy as np
import pytest

from sitesum.core.units import (
    ANGSTROM,
    BOHR,
    EV,
    EV_TO_KJ_MOL,
    HARTREE,
    KJ_PER_MOL,
    NANOMETER,
    Quantity,
    Unit,
    UnitScaler,
    get_unit,
    resolve_cutoff_unit,
)
from sitesum.errors import UnitMismatch


class TestUnit:
    def test_derived_dimensions(self):
        force = EV / ANGSTROM
        assert force.dims == (1, -1)
        assert (EV * ANGSTROM).dims == (1, 1)
        assert (EV / ANGSTROM**3).dims == (1, -3)

    def test_multiplying_number_gives_quantity(self):
        q = 2.0 * EV
        assert isinstance(q, Quantity)
        assert q.value == 2.0
        assert q.unit == EV

    def test_multiplying_array_gives_quantity(self):
        q = np.ones((4, 3)) * (EV / ANGSTROM)
        assert isinstance(q, Quantity)
        assert q.shape == (4, 3)

    def test_lookup_by_name(self):
        assert get_unit("eV") is EV
        assert get_unit("Å") is ANGSTROM
        assert get_unit(HARTREE) is HARTREE
        with pytest.raises(KeyError, match="Unknown unit"):
            get_unit("furlong")

    def test_conversion_factor(self):
        assert KJ_PER_MOL.conversion_factor(EV) == pytest.approx(1.0 / EV_TO_KJ_MOL)
        assert NANOMETER.conversion_factor(ANGSTROM) == 10.0
        with pytest.raises(UnitMismatch):
            EV.conversion_factor(ANGSTROM)


class TestQuantity:
    def test_to_same_dimension(self):
        q = Quantity(1.0, HARTREE).to("eV")
        assert q.value == pytest.approx(27.211386245988)
        assert q.unit == EV

    def test_add_converts_to_left_unit(self):
        total = Quantity(1.0, NANOMETER) + Quantity(5.0, ANGSTROM)
        assert total.unit == NANOMETER
        assert total.value == pytest.approx(1.5)

    def test_add_incompatible_raises(self):
        with pytest.raises(UnitMismatch):
            Quantity(1.0, EV) + Quantity(1.0, ANGSTROM)

    def test_add_plain_number_raises(self):
        with pytest.raises(TypeError):
            Quantity(1.0, EV) + 1.0

    def test_indexing_keeps_unit(self):
        q = Quantity(np.arange(6.0).reshape(2, 3), EV / ANGSTROM)
        row = q[1]
        assert row.unit == EV / ANGSTROM
        np.testing.assert_array_equal(row.value, [3.0, 4.0, 5.0])

    def test_unit_must_be_unit(self):
        with pytest.raises(TypeError):
            Quantity(1.0, "eV")


class TestUnitScaler:
    def test_global_default(self):
        scaler = UnitScaler.resolve((None, None, None))
        assert scaler.energy == EV
        assert scaler.length == ANGSTROM
        assert scaler.cutoff == ANGSTROM

    def test_declared_overrides_global(self):
        scaler = UnitScaler.resolve((HARTREE, BOHR, None))
        assert scaler.energy == HARTREE
        assert scaler.length == BOHR
        # 截断单位跟随长度单位
        assert scaler.cutoff == BOHR

    def test_call_override_wins(self):
        scaler = UnitScaler.resolve(
            (HARTREE, BOHR, None), energy_unit="kJ/mol", cutoff_unit=NANOMETER
        )
        assert scaler.energy == KJ_PER_MOL
        assert scaler.length == BOHR
        assert scaler.cutoff == NANOMETER

    def test_wrong_dimension_raises(self):
        with pytest.raises(UnitMismatch):
            UnitScaler.resolve((None, None, None), energy_unit=ANGSTROM)
        with pytest.raises(UnitMismatch):
            UnitScaler.resolve((None, None, None), cutoff_unit=EV)

    def test_length_override_keeps_cutoff_unit(self):
        scaler = UnitScaler.resolve((None, None, None), length_unit="nm")
        assert scaler.length == NANOMETER
        assert scaler.cutoff == ANGSTROM
        declared = UnitScaler.resolve((None, BOHR, None), length_unit="nm")
        assert declared.cutoff == BOHR

    def test_resolve_cutoff_unit_order(self):
        assert resolve_cutoff_unit((None, BOHR, ANGSTROM), "nm") == NANOMETER
        assert resolve_cutoff_unit((None, BOHR, ANGSTROM)) == ANGSTROM
        assert resolve_cutoff_unit((None, BOHR, None)) == BOHR
        assert resolve_cutoff_unit((None, None, None), default="nm") == NANOMETER
        with pytest.raises(UnitMismatch):
            resolve_cutoff_unit((None, None, None), cutoff_unit=EV)

    def test_convert_cutoff(self):
        scaler = UnitScaler.resolve((None, None, None), cutoff_unit="nm")
        assert scaler.convert_cutoff(0.5, ANGSTROM) == pytest.approx(5.0)
        same = UnitScaler.resolve((None, None, None))
        assert same.convert_cutoff(5.0, ANGSTROM) == 5.0

    def test_scale_tags_units(self):
        scaler = UnitScaler.resolve((None, None, None))
        assert scaler.scale("energy", 1.5).unit == EV
        assert scaler.scale("forces", np.zeros((2, 3))).unit == EV / ANGSTROM
        assert scaler.scale("virial", np.zeros((3, 3))).unit == EV * ANGSTROM
        assert scaler.scale("stress", np.zeros((3, 3))).unit.dims == (1, -3)

    def test_scaling_does_not_change_numbers(self):
        scaler = UnitScaler.resolve((None, None, None), energy_unit="kJ/mol")
        raw = np.array([0.1, -0.2])
        np.testing.assert_array_equal(scaler.scale("atom_energies", raw).value, raw)

    def test_custom_unit(self):
        kev = Unit("keV", (1, 0), 1e3)
        scaler = UnitScaler.resolve((None, None, None), energy_unit=kev)
        assert scaler.scale("energy", 2.0).to(EV).value == 2000.0
