"""集成组合器

为每个集成成员启动一个并发任务计算同一可观测量，等待全部任务结束后逐元素求和。
任一成员失败时，在所有兄弟任务结束后重新抛出按成员顺序的第一个异常，
不会返回部分求和结果。
"""

import logging
import operator
from concurrent.futures import ThreadPoolExecutor, wait

logger = logging.getLogger(__name__)


def fan_out_join(members, compute, combine=operator.add):
    """对每个成员并发调用 ``compute`` 并归约结果。

    Parameters
    ----------
    members : sequence
        集成成员。
    compute : callable
        ``compute(member) -> result``。
    combine : callable, optional
        结果的结合运算，默认 ``operator.add`` （标量、数组、矩阵均适用）。

    Returns
    -------
    object
        按成员顺序归约后的结果。

    Raises
    ------
    Exception
        按成员顺序第一个失败任务的异常（所有任务均已结束）
    """
    members = list(members)
    if not members:
        raise ValueError("Cannot combine an empty ensemble")

    with ThreadPoolExecutor(max_workers=len(members)) as pool:
        futures = [pool.submit(compute, member) for member in members]
        wait(futures)

    errors = [(idx, f.exception()) for idx, f in enumerate(futures) if f.exception()]
    for idx, exc in errors:
        logger.error(f"Ensemble member {idx} failed: {exc!r}")
    if errors:
        raise errors[0][1]

    result = futures[0].result()
    for future in futures[1:]:
        result = combine(result, future.result())
    logger.debug(f"Combined results of {len(members)} ensemble members")
    return result
