"""
工具模块
"""

__all__ = [
    "NeighborList", "NeighborQuery", "LocalEnvironment", "build_neighbor_list",
    "to_voigt",
]


# 延迟导入避免循环依赖
def __getattr__(name):
    if name in ("NeighborList", "NeighborQuery", "LocalEnvironment", "build_neighbor_list"):
        from . import neighbors
        return getattr(neighbors, name)
    elif name == "to_voigt":
        from .tensors import to_voigt
        return to_voigt
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
