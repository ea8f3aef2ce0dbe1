"""
可观测量模块

把位点势评估并行归约为总能量、单原子能、力、维里与应力。
"""

__all__ = [
    "calculate_energy",
    "calculate_atom_energies",
    "calculate_forces",
    "calculate_virial",
    "calculate_stress",
    "calculate_properties",
    "calculate_energy_forces",
    "calculate_energy_forces_virial",
    "calculate_forces_virial",
    "SequentialExecutor",
    "ThreadedExecutor",
]


def __getattr__(name):
    if name.startswith("calculate_"):
        from . import api

        if name in api.__dict__:
            return getattr(api, name)
    elif name in ("SequentialExecutor", "ThreadedExecutor"):
        from . import executors

        return getattr(executors, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
