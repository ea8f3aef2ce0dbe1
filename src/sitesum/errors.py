"""
SiteSum - 异常定义

所有库内异常均派生自 :class:`SiteSumError`，便于调用方统一捕获。
空计算域不是错误：此时返回加法单位元形状的结果。
"""


class SiteSumError(Exception):
    """SiteSum 异常基类。"""


class MissingNeighborList(SiteSumError):
    """截断半径与体系的组合无法得到可用的邻居列表。

    例如截断半径非正、非有限，周期体系下超过晶胞垂直宽度的一半，
    或调用方提供的邻居列表截断半径不足。
    """


class UnsupportedObservable(SiteSumError):
    """势（或集成中的某个成员）不支持所请求的可观测量。"""


class UnitMismatch(SiteSumError):
    """单位不兼容：集成成员单位制不一致，或量纲不匹配。"""
