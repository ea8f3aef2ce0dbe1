#!/usr/bin/env python3
"""
SiteSum - 势能模块

提供位点势基类、对势位点模型、单体势与集成势。
采用延迟导入模式以避免循环依赖并提高加载性能。
"""

__all__ = [
    "PotentialKind",
    "SitePotential",
    "PairSitePotential",
    "LennardJonesPotential",
    "MorsePotential",
    "OneBodyPotential",
    "EnsemblePotential",
]


def __getattr__(name):
    if name in ("PotentialKind", "SitePotential"):
        from . import base

        return getattr(base, name)
    elif name in ("PairSitePotential", "LennardJonesPotential", "MorsePotential"):
        from . import pair

        return getattr(pair, name)
    elif name == "OneBodyPotential":
        from .onebody import OneBodyPotential

        return OneBodyPotential
    elif name == "EnsemblePotential":
        from .ensemble import EnsemblePotential

        return EnsemblePotential
    else:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
