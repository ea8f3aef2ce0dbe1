"""
核心模块 - 基础数据结构、单位与配置管理
"""

__all__ = ["Atom", "Cell", "AtomicSystemView", "ConfigManager", "Unit", "Quantity", "UnitScaler"]


# 延迟导入避免循环依赖
def __getattr__(name):
    if name in ("Atom", "Cell", "AtomicSystemView"):
        from . import structure
        return getattr(structure, name)
    elif name == "ConfigManager":
        from .config import ConfigManager
        return ConfigManager
    elif name in ("Unit", "Quantity", "UnitScaler"):
        from . import units
        return getattr(units, name)
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
