#!/usr/bin/env python3
r"""
SiteSum - 对势位点模型

把对势 :math:`\phi(r)` 写成位点势的形式，每个原子分得每个对能的一半：

.. math::
    V_i = \frac{1}{2} \sum_{j \ne i} \phi_{Z_i Z_j}(r_{ij}),\qquad
    \frac{\partial V_i}{\partial \mathbf{R}_{ij}}
    = \frac{1}{2}\,\phi'(r_{ij})\,\frac{\mathbf{R}_{ij}}{r_{ij}}

于是中心 i 与邻居 j 上的梯度项大小相等、方向相反，总力严格为零。

Lennard–Jones (12–6)：

.. math::
   \phi(r) = 4\,\varepsilon\Big[\Big(\frac{\sigma}{r}\Big)^{12} - \Big(\frac{\sigma}{r}\Big)^6\Big]

Morse：

.. math::
   \phi(r) = D_e\big[e^{-2a(r-r_0)} - 2\,e^{-a(r-r_0)}\big]

References
----------
- J. E. Jones (1924), Proceedings of the Royal Society A, 106(738), 441–462.
- P. M. Morse (1929), Physical Review, 34, 57–64.
"""

import logging
from abc import abstractmethod

import numpy as np

from sitesum.core.structure import atomic_number

from .base import SitePotential

logger = logging.getLogger(__name__)


def _parse_species(token) -> int:
    if isinstance(token, int | np.integer):
        z = int(token)
    else:
        txt = str(token).strip()
        z = int(txt) if txt.isdigit() else atomic_number(txt)
    if z <= 0:
        raise ValueError(f"Invalid species '{token}'")
    return z


def _parse_pair_key(key) -> tuple[int, int]:
    if isinstance(key, tuple):
        parts = list(key)
    else:
        parts = [p.strip() for p in str(key).split("-")]
    if len(parts) != 2:
        raise ValueError(f"invalid pair_coeffs key '{key}'; expected 'A-B' or (A, B)")
    zi, zj = (_parse_species(p) for p in parts)
    return (min(zi, zj), max(zi, zj))


def parse_pair_coeffs(required: tuple[str, ...], raw) -> dict[tuple[int, int], dict]:
    """解析按物种对给出的参数表。

    Parameters
    ----------
    required : tuple of str
        每个物种对必须给出的参数名。
    raw : dict | None
        形如 ``{"Ar-Ar": {...}, (18, 36): {...}}`` 的映射。

    Returns
    -------
    dict
        以排序后的原子序数对为键的参数表。

    Raises
    ------
    ValueError
        键无法解析、参数缺失/多余，或同一物种对给出冲突的值
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("pair_coeffs must be a mapping")
    out: dict[tuple[int, int], dict[str, float]] = {}
    for k, v in raw.items():
        pair = _parse_pair_key(k)
        if not isinstance(v, dict):
            raise ValueError(f"pair_coeffs[{k!r}] must be a mapping")
        missing = [nm for nm in required if nm not in v]
        unknown = sorted(set(v.keys()) - set(required))
        if missing:
            raise ValueError(f"pair_coeffs[{k!r}] missing required params: {missing}")
        if unknown:
            raise ValueError(
                f"pair_coeffs[{k!r}] has unsupported params: {unknown}; allowed: {list(required)}"
            )
        vals = {nm: float(v[nm]) for nm in required}
        prev = out.get(pair)
        if prev is not None and prev != vals:
            raise ValueError(f"duplicate pair_coeffs for {pair} with conflicting values")
        out[pair] = vals
    return out


class PairSitePotential(SitePotential):
    """对势的位点形式基类。

    子类声明 ``param_names`` 并实现向量化的 :meth:`pair_terms`。

    Parameters
    ----------
    cutoff : float
        截断半径。
    shift : bool, optional
        为真时减去 :math:`\\phi(r_c)`，使能量在截断处连续。
    pair_coeffs : dict, optional
        物种对专属参数，未列出的物种对使用默认参数。
    """

    param_names: tuple[str, ...] = ()

    def __init__(self, defaults: dict, cutoff: float, shift=False, pair_coeffs=None, **units):
        parameters = {nm: float(defaults[nm]) for nm in self.param_names}
        super().__init__(parameters, cutoff, **units)
        self.shift = bool(shift)
        self.pair_coeffs = parse_pair_coeffs(self.param_names, pair_coeffs)

    @abstractmethod
    def pair_terms(self, r: np.ndarray, params: dict) -> tuple[np.ndarray, np.ndarray]:
        """返回 :math:`\\phi(r)` 与 :math:`\\phi'(r)`。"""
        raise NotImplementedError

    def _params_for(self, z0: int, zj: int) -> dict:
        return self.pair_coeffs.get((min(z0, zj), max(z0, zj)), self.parameters)

    def _phi(self, r: np.ndarray, Z: np.ndarray, z0: int):
        phi = np.empty_like(r)
        dphi = np.empty_like(r)
        for zj in np.unique(Z):
            mask = Z == zj
            params = self._params_for(int(z0), int(zj))
            p, dp = self.pair_terms(r[mask], params)
            if self.shift:
                p = p - self.pair_terms(np.array([self.cutoff]), params)[0][0]
            phi[mask] = p
            dphi[mask] = dp
        return phi, dphi

    def evaluate(self, R, Z, z0) -> float:
        if len(R) == 0:
            return 0.0
        r = np.linalg.norm(R, axis=1)
        phi, _ = self._phi(r, np.asarray(Z), z0)
        return 0.5 * float(np.sum(phi))

    def evaluate_with_gradient(self, R, Z, z0):
        R = np.asarray(R, dtype=np.float64).reshape(-1, 3)
        if len(R) == 0:
            return 0.0, np.zeros((0, 3))
        r = np.linalg.norm(R, axis=1)
        phi, dphi = self._phi(r, np.asarray(Z), z0)
        dV = (0.5 * dphi / r)[:, None] * R
        return 0.5 * float(np.sum(phi)), dV


class LennardJonesPotential(PairSitePotential):
    """Lennard–Jones (12–6) 对势的位点实现。

    Parameters
    ----------
    epsilon : float
        势阱深度 epsilon。
    sigma : float
        零势能点对应长度 sigma。
    cutoff : float
        截断距离。
    """

    param_names = ("epsilon", "sigma")

    def __init__(self, epsilon: float, sigma: float, cutoff: float, **kwargs):
        super().__init__({"epsilon": epsilon, "sigma": sigma}, cutoff, **kwargs)
        logger.debug(
            f"Lennard-Jones Potential initialized with epsilon={epsilon}, sigma={sigma}, cutoff={cutoff}."
        )

    def pair_terms(self, r, params):
        eps, sigma = params["epsilon"], params["sigma"]
        sr6 = (sigma / r) ** 6
        sr12 = sr6**2
        phi = 4.0 * eps * (sr12 - sr6)
        dphi = -24.0 * eps * (2.0 * sr12 - sr6) / r
        return phi, dphi


class MorsePotential(PairSitePotential):
    """Morse 对势的位点实现。

    Parameters
    ----------
    D_e : float
        势阱深度。
    a : float
        宽度参数（长度的倒数）。
    r0 : float
        平衡距离。
    cutoff : float
        截断距离。
    """

    param_names = ("D_e", "a", "r0")

    def __init__(self, D_e: float, a: float, r0: float, cutoff: float, **kwargs):
        super().__init__({"D_e": D_e, "a": a, "r0": r0}, cutoff, **kwargs)
        logger.debug(f"Morse Potential initialized with D_e={D_e}, a={a}, r0={r0}.")

    def pair_terms(self, r, params):
        D_e, a, r0 = params["D_e"], params["a"], params["r0"]
        e = np.exp(-a * (r - r0))
        phi = D_e * (e * e - 2.0 * e)
        dphi = -2.0 * a * D_e * (e * e - e)
        return phi, dphi
