"""
张量工具

提供 3x3 应力/维里张量与 Voigt 表示之间的转换。
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def to_voigt(tensor, tol: float = 1e-8) -> np.ndarray:
    """
    将 3x3 应力（或维里）张量转换为 Voigt 表示的 6 元素向量
    ``(xx, yy, zz, yz, xz, xy)``。

    Parameters
    ----------
    tensor : array_like
        形状为 (3, 3) 的张量。
    tol : float, optional
        对称性检查的容差。非对称分量差异大于此值时记录警告，并使用其对称部分。

    Returns
    -------
    np.ndarray
        形状为 (6,) 的 Voigt 向量。
    """
    tensor = np.asarray(tensor, dtype=np.float64)
    if tensor.shape != (3, 3):
        raise ValueError(f"输入张量必须是 3x3 矩阵，但得到形状 {tensor.shape}")

    if not np.allclose(tensor, tensor.T, atol=tol):
        logger.warning("输入张量不对称。将使用其对称部分进行计算。")
    tensor = 0.5 * (tensor + tensor.T)

    return np.array(
        [
            tensor[0, 0],
            tensor[1, 1],
            tensor[2, 2],
            tensor[1, 2],
            tensor[0, 2],
            tensor[0, 1],
        ]
    )
