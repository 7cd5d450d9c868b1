"""
参数估计：根据样本估计四类分布（正态 / 均匀 / 指数 / 泊松）的参数。

估计方法：
- normal: mean = 样本均值，std = 样本标准差（n - 1 口径）；
  若 std 为 0，退回到总体方差开方；
- uniform: "minmax" 取样本最小 / 最大值；"robust" 使用 Q1 - 3·IQR / Q3 + 3·IQR，
  并截断到样本实际范围，降低极端值影响；
- exponential: lambda = 1 / mean（MLE），mean <= 0 时退回 lambda = 1；
- poisson: lambda = mean（MLE），mean <= 0 时退回 lambda = 1。

约定：估计结果中永远不会出现 NaN / Infinity，非有限的中间结果一律退回安全默认值，
保证调用方总能拿到一个（可能置信度较低的）答案。
"""

import math
from statistics import mean, pvariance
from typing import Dict, Sequence, Union

from core.logger import get_logger

from .descriptive import quartiles, sample_std, to_float_list
from .exceptions import InvalidParameter
from .schema import DistributionType, coerce_enum

_logger = get_logger(__name__)

UNIFORM_METHODS = ("minmax", "robust")


def _finite_or(value: float, default: float) -> float:
    return value if math.isfinite(value) else default


def _estimate_normal(data: Sequence[float]) -> Dict[str, float]:
    mu = _finite_or(mean(data), 0.0)
    std = sample_std(data)
    if std <= 0.0:
        # 退回到单独计算的总体方差
        std = math.sqrt(pvariance(data))
    if not math.isfinite(std):
        _logger.warning("正态分布参数估计时样本标准差超出浮点范围，std 退回默认值 1。")
        std = 1.0
    return {"mean": mu, "std": std}


def _estimate_uniform(data: Sequence[float], method: str) -> Dict[str, float]:
    data_sorted = sorted(data)
    low, high = data_sorted[0], data_sorted[-1]
    if method == "minmax":
        return {"a": low, "b": high}

    q1, q3 = quartiles(data_sorted)
    iqr = q3 - q1
    a = _finite_or(max(low, q1 - 3.0 * iqr), low)
    b = _finite_or(min(high, q3 + 3.0 * iqr), high)
    return {"a": a, "b": b}


def _estimate_rate(data: Sequence[float], distribution_type: DistributionType) -> Dict[str, float]:
    mu = mean(data)
    if not math.isfinite(mu) or mu <= 0.0:
        _logger.warning(
            "%s 分布参数估计时样本均值为 %s（<= 0），lambda 退回默认值 1。",
            distribution_type.value,
            mu,
        )
        return {"lambda": 1.0}
    if distribution_type == DistributionType.EXPONENTIAL:
        return {"lambda": _finite_or(1.0 / mu, 1.0)}
    return {"lambda": mu}


def estimate_parameters(
    values: Sequence[float],
    distribution_type: Union[str, DistributionType],
    uniform_method: str = "minmax",
) -> Dict[str, float]:
    """
    根据样本估计指定分布的参数。

    参数：
    - values: 样本序列，至少 1 个元素；
    - distribution_type: "normal" / "uniform" / "exponential" / "poisson"；
    - uniform_method: 均匀分布估计方式，"minmax"（默认）或 "robust"。

    返回：
    - 参数字典，例如：
      * normal → {"mean": 0.02, "std": 0.98}
      * uniform → {"a": 0.0, "b": 1.0}
      * exponential / poisson → {"lambda": 2.0}
    """
    data = to_float_list(values, "values")
    dist = coerce_enum(DistributionType, distribution_type, "distribution_type")
    if uniform_method not in UNIFORM_METHODS:
        raise InvalidParameter(
            f"uniform_method 仅支持 'minmax' 或 'robust'，当前为: {uniform_method}"
        )

    if dist == DistributionType.NORMAL:
        return _estimate_normal(data)
    if dist == DistributionType.UNIFORM:
        return _estimate_uniform(data, uniform_method)
    return _estimate_rate(data, dist)
