"""计算域划分

力计算把计算域划分为 ``ntasks`` 个连续的块，每块由一个并发任务顺序处理。
"""

import numpy as np


def resolve_domain(domain, num_atoms: int) -> np.ndarray:
    """把计算域转换为原子索引数组，``None`` 表示全部原子。

    Raises
    ------
    ValueError
        索引不是整数或超出 ``[0, num_atoms)``
    """
    if domain is None:
        return np.arange(num_atoms, dtype=np.int64)
    if isinstance(domain, range):
        idx = np.arange(domain.start, domain.stop, domain.step, dtype=np.int64)
    else:
        idx = np.asarray(list(domain) if not isinstance(domain, np.ndarray) else domain)
        if idx.size == 0:
            return np.zeros(0, dtype=np.int64)
        if idx.ndim != 1 or not np.issubdtype(idx.dtype, np.integer):
            raise ValueError("Domain must be a one-dimensional sequence of atom indices")
        idx = idx.astype(np.int64)
    if idx.size and (idx.min() < 0 or idx.max() >= num_atoms):
        raise ValueError(
            f"Domain indices must lie in [0, {num_atoms}), got [{idx.min()}, {idx.max()}]"
        )
    return idx


def chunks(domain, ntasks: int) -> list[np.ndarray]:
    """把计算域划分为 ``ntasks`` 个连续块。

    各块大小之差不超过 1，前 ``len(domain) % ntasks`` 块多一个元素；
    ``ntasks`` 大于计算域长度时产生空块。

    Parameters
    ----------
    domain : array_like
        原子索引序列。
    ntasks : int
        块数。

    Returns
    -------
    list of numpy.ndarray
        长度为 ``ntasks`` 的块列表，拼接后等于原计算域。

    Examples
    --------
    >>> [list(c) for c in chunks(range(5), 3)]
    [[0, 1], [2, 3], [4]]
    """
    if int(ntasks) != ntasks or ntasks < 1:
        raise ValueError(f"ntasks must be a positive integer, got {ntasks}")
    domain = np.asarray(domain, dtype=np.int64)
    return np.array_split(domain, int(ntasks))
