#!/usr/bin/env python3
"""
测试 Lennard-Jones 位点势
"""

import numpy as np
import pytest

from sitesum.potentials.pair import LennardJonesPotential, parse_pair_coeffs

# 定义测试用的LJ势参数
EPSILON = 0.0103  # eV
SIGMA = 3.4  # Angstrom
CUTOFF = 8.5  # Angstrom


@pytest.fixture
def lj_potential():
    """提供一个LennardJonesPotential实例"""
    return LennardJonesPotential(epsilon=EPSILON, sigma=SIGMA, cutoff=CUTOFF)


def lj_pair_energy(r, eps=EPSILON, sigma=SIGMA):
    sr6 = (sigma / r) ** 6
    return 4 * eps * (sr6**2 - sr6)


def random_environment(seed, k=6):
    rng = np.random.default_rng(seed)
    directions = rng.normal(size=(k, 3))
    directions /= np.linalg.norm(directions, axis=1)[:, None]
    radii = rng.uniform(3.2, 6.0, size=k)
    return directions * radii[:, None]


def test_lj_potential_initialization(lj_potential):
    """测试LJ势是否正确初始化"""
    assert lj_potential.parameters["epsilon"] == EPSILON
    assert lj_potential.parameters["sigma"] == SIGMA
    assert lj_potential.cutoff == CUTOFF
    assert lj_potential.supports("virial")


def test_site_energy_is_half_pair_energy(lj_potential):
    """单个邻居时位点能为对能的一半"""
    R = np.array([[3.8, 0.0, 0.0]])
    energy = lj_potential.evaluate(R, np.array([18]), 18)
    assert energy == pytest.approx(0.5 * lj_pair_energy(3.8), rel=1e-12)


def test_empty_environment(lj_potential):
    R = np.zeros((0, 3))
    Z = np.zeros(0, dtype=int)
    assert lj_potential.evaluate(R, Z, 18) == 0.0
    energy, dV = lj_potential.evaluate_with_gradient(R, Z, 18)
    assert energy == 0.0
    assert dV.shape == (0, 3)


def test_gradient_zero_at_minimum(lj_potential):
    """在 r = 2^(1/6) sigma 处梯度为零"""
    r_min = 2 ** (1 / 6) * SIGMA
    _, dV = lj_potential.evaluate_with_gradient(
        np.array([[0.0, r_min, 0.0]]), np.array([18]), 18
    )
    np.testing.assert_allclose(dV, 0.0, atol=1e-12)


def test_gradient_matches_finite_difference(lj_potential):
    R = random_environment(seed=5)
    Z = np.full(len(R), 18)
    energy, dV = lj_potential.evaluate_with_gradient(R, Z, 18)
    assert energy == pytest.approx(lj_potential.evaluate(R, Z, 18), rel=1e-12)

    h = 1e-6
    numeric = np.zeros_like(R)
    for k in range(len(R)):
        for a in range(3):
            Rp = R.copy()
            Rm = R.copy()
            Rp[k, a] += h
            Rm[k, a] -= h
            numeric[k, a] = (
                lj_potential.evaluate(Rp, Z, 18) - lj_potential.evaluate(Rm, Z, 18)
            ) / (2 * h)
    np.testing.assert_allclose(dV, numeric, rtol=1e-5, atol=1e-10)


def test_gradient_points_along_displacement(lj_potential):
    """排斥区梯度与位移反向，吸引区同向"""
    Z = np.array([18])
    _, dV_rep = lj_potential.evaluate_with_gradient(np.array([[3.0, 0, 0]]), Z, 18)
    _, dV_att = lj_potential.evaluate_with_gradient(np.array([[4.5, 0, 0]]), Z, 18)
    assert dV_rep[0, 0] < 0
    assert dV_att[0, 0] > 0


def test_shift_makes_energy_vanish_at_cutoff():
    pot = LennardJonesPotential(EPSILON, SIGMA, cutoff=CUTOFF, shift=True)
    R = np.array([[CUTOFF - 1e-9, 0.0, 0.0]])
    assert pot.evaluate(R, np.array([18]), 18) == pytest.approx(0.0, abs=1e-12)


def test_pair_coeffs_override_per_species():
    pot = LennardJonesPotential(
        EPSILON,
        SIGMA,
        cutoff=CUTOFF,
        pair_coeffs={"Ar-Kr": {"epsilon": 0.0137, "sigma": 3.58}},
    )
    R = np.array([[4.0, 0.0, 0.0], [0.0, 4.0, 0.0]])
    Z = np.array([36, 18])
    expected = 0.5 * (lj_pair_energy(4.0, 0.0137, 3.58) + lj_pair_energy(4.0))
    assert pot.evaluate(R, Z, 18) == pytest.approx(expected, rel=1e-12)
    # 键与顺序无关
    assert pot.evaluate(R[:1], Z[:1], 18) == pytest.approx(
        pot.evaluate(R[:1], np.array([18]), 36), rel=1e-12
    )


class TestParsePairCoeffs:
    def test_symbol_and_tuple_keys(self):
        out = parse_pair_coeffs(
            ("epsilon", "sigma"),
            {"Kr-Ar": {"epsilon": 1, "sigma": 2}, (18, 18): {"epsilon": 3, "sigma": 4}},
        )
        assert out == {
            (18, 36): {"epsilon": 1.0, "sigma": 2.0},
            (18, 18): {"epsilon": 3.0, "sigma": 4.0},
        }

    def test_missing_and_unknown_params(self):
        with pytest.raises(ValueError, match="missing"):
            parse_pair_coeffs(("epsilon", "sigma"), {"Ar-Ar": {"epsilon": 1}})
        with pytest.raises(ValueError, match="unsupported"):
            parse_pair_coeffs(
                ("epsilon", "sigma"), {"Ar-Ar": {"epsilon": 1, "sigma": 2, "rc": 3}}
            )

    def test_conflicting_duplicates(self):
        with pytest.raises(ValueError, match="conflicting"):
            parse_pair_coeffs(
                ("epsilon",), {"Ar-Kr": {"epsilon": 1}, "Kr-Ar": {"epsilon": 2}}
            )

    def test_bad_key(self):
        with pytest.raises(ValueError, match="invalid pair_coeffs key"):
            parse_pair_coeffs(("epsilon",), {"Ar-Kr-Xe": {"epsilon": 1}})
