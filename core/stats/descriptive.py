import math
from statistics import mean, pvariance, variance
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from core.logger import get_logger

from .exceptions import InsufficientSample, InvalidParameter

_logger = get_logger(__name__)


def to_float_list(values: Iterable[float], name: str) -> List[float]:
    """
    将任意可迭代对象转换为 float 列表，并做基础校验。

    参数：
    - values: 输入序列；
    - name: 参数名称，用于报错信息。

    说明：
    - 返回的是新列表，调用方传入的样本不会被修改；
    - NaN / Infinity 视为非法样本值。
    """
    try:
        data = [float(v) for v in values]
    except TypeError as exc:
        raise InvalidParameter(f"{name} 必须是可迭代的数值序列。") from exc
    except ValueError as exc:
        raise InvalidParameter(f"{name} 中存在无法转换为浮点数的元素。") from exc

    if not data:
        raise InsufficientSample(f"{name} 不能为空。")
    if any(not math.isfinite(v) for v in data):
        raise InvalidParameter(f"{name} 中存在 NaN 或无穷大，请先清洗数据。")
    return data


def _variance_or_inf(func: Callable[[Sequence[float]], float], data: Sequence[float]) -> float:
    """statistics 的方差按精确分数求和，结果超出浮点范围时抛 OverflowError，这里记为 inf。"""
    try:
        return func(data)
    except OverflowError:
        return math.inf


def scaled_deviations(data: Sequence[float]) -> Tuple[List[float], float]:
    """
    返回 ((x - mean) / scale 列表, scale)，scale 为最大绝对离差。

    高阶矩对缩放不变，先缩放再求幂可以避免 1e200 量级的样本在平方 / 四次方时溢出。
    scale 为 0 表示样本全部相同；scale 为 inf 表示离差本身已超出浮点范围。
    """
    m = mean(data)
    deviations = [x - m for x in data]
    scale = max(abs(d) for d in deviations)
    if scale == 0.0 or not math.isfinite(scale):
        return deviations, scale
    return [d / scale for d in deviations], scale


def sample_std(data: Sequence[float]) -> float:
    """
    样本标准差（无偏方差，分母 n - 1）。

    全项目统一使用这一口径：参数估计、Anderson–Darling 标准化、功效分析中
    由样本推断 sigma 时都调用本函数。n < 2 时返回 0.0。
    方差超出浮点范围时改用缩放后的离差计算，标准差本身仍不可表示时返回 inf。
    """
    n = len(data)
    if n < 2:
        return 0.0
    var = _variance_or_inf(variance, data)
    if math.isfinite(var):
        return math.sqrt(var)

    scaled, scale = scaled_deviations(data)
    if not math.isfinite(scale):
        return math.inf
    return scale * math.sqrt(sum(d * d for d in scaled) / (n - 1))


def skewness_kurtosis(data: Sequence[float]) -> Tuple[float, float]:
    """
    矩估计的偏度与（非超额）峰度：skewness = m3 / m2^1.5，kurtosis = m4 / m2²（正态为 3）。

    说明：
    - 样本全部相同时返回 (0.0, 3.0)，即视为与正态无差异，避免除零；
    - 离差超出浮点范围时返回 (NaN, NaN) 并记录警告，由调用方按 NaN 结果处理。
    """
    scaled, scale = scaled_deviations(data)
    if scale == 0.0:
        return 0.0, 3.0
    if not math.isfinite(scale):
        _logger.warning("样本离差超出浮点范围，偏度 / 峰度记为 NaN。")
        return math.nan, math.nan

    n = len(scaled)
    m2 = sum(d ** 2 for d in scaled) / n
    m3 = sum(d ** 3 for d in scaled) / n
    m4 = sum(d ** 4 for d in scaled) / n
    return m3 / m2 ** 1.5, m4 / (m2 * m2)


def quartiles(sorted_data: Sequence[float]) -> Tuple[float, float]:
    """
    取排序后样本的下标 floor(0.25n) 与 floor(0.75n) 作为 Q1 / Q3（不插值）。

    参数：
    - sorted_data: 已升序排序的样本。
    """
    n = len(sorted_data)
    q1 = sorted_data[min(int(math.floor(n * 0.25)), n - 1)]
    q3 = sorted_data[min(int(math.floor(n * 0.75)), n - 1)]
    return q1, q3


def describe_sample(values: Sequence[float]) -> Dict[str, float]:
    """
    计算样本的基础描述统计量，供参数估计与结果展示使用。

    返回字段：
    - n / mean / std（n - 1 口径）/ variance / population_variance；
    - min / max / median / q1 / q3；
    - skewness / kurtosis（矩估计，kurtosis 为非超额峰度，正态约为 3）。
    """
    data = to_float_list(values, "values")
    n = len(data)
    data_sorted = sorted(data)

    if n % 2 == 1:
        median = data_sorted[n // 2]
    else:
        median = 0.5 * (data_sorted[n // 2 - 1] + data_sorted[n // 2])

    q1, q3 = quartiles(data_sorted)
    skewness, kurtosis = skewness_kurtosis(data)

    return {
        "n": n,
        "mean": mean(data),
        "std": sample_std(data),
        "variance": _variance_or_inf(variance, data) if n > 1 else 0.0,
        "population_variance": _variance_or_inf(pvariance, data),
        "min": data_sorted[0],
        "max": data_sorted[-1],
        "median": median,
        "q1": q1,
        "q3": q3,
        "skewness": skewness,
        "kurtosis": kurtosis,
    }


def validate_num_bins(num_bins: int) -> int:
    if isinstance(num_bins, bool) or not isinstance(num_bins, (int, float)) or int(num_bins) != num_bins:
        raise InvalidParameter(f"num_bins 必须为整数，当前为: {num_bins}")
    num_bins = int(num_bins)
    if not 5 <= num_bins <= 50:
        raise InvalidParameter(f"num_bins 必须在 [5, 50] 区间内，当前为: {num_bins}")
    return num_bins


def equal_width_edges(low: float, high: float, num_bins: int) -> List[float]:
    """
    将 [low, high] 等分为 num_bins 个区间，返回 num_bins + 1 个边界。

    low == high（样本全部相同）时，以该值为中心扩展出宽度为 1 的区间，避免零宽度分箱。
    """
    if high <= low:
        low, high = low - 0.5, low + 0.5
    width = (high - low) / num_bins
    edges = [low + i * width for i in range(num_bins)]
    edges.append(high)
    return edges


def bin_index(value: float, edges: Sequence[float]) -> int:
    """
    返回 value 所在分箱的下标。区间左闭右开，最后一个分箱右端闭合；
    超出范围的值归入首 / 末分箱。
    """
    num_bins = len(edges) - 1
    if value < edges[1]:
        return 0
    if value >= edges[-2]:
        return num_bins - 1
    width = (edges[-1] - edges[0]) / num_bins
    idx = int((value - edges[0]) // width)
    # 浮点误差修正
    while idx > 0 and value < edges[idx]:
        idx -= 1
    while idx < num_bins - 1 and value >= edges[idx + 1]:
        idx += 1
    return idx


def histogram_counts(data: Sequence[float], edges: Sequence[float]) -> List[int]:
    counts = [0] * (len(edges) - 1)
    for value in data:
        counts[bin_index(value, edges)] += 1
    return counts


def generate_histogram_data(
    values: Sequence[float],
    num_bins: int = 10,
    value_range: Optional[Tuple[float, float]] = None,
) -> List[Dict[str, float]]:
    """
    将样本按等宽分箱统计频数，返回可直接交给图表组件的列表。

    参数：
    - values: 样本；
    - num_bins: 分箱个数，范围 [5, 50]；
    - value_range: 可选的 (low, high)，默认使用样本的最小值 / 最大值。

    返回：
    - 列表，每个元素形如
      {"name": "0.00-1.00", "lower": 0.0, "upper": 1.0, "count": 3, "frequency": 0.15}；
      frequency 为相对频率，所有分箱的 count 之和等于样本量。
    """
    data = to_float_list(values, "values")
    num_bins = validate_num_bins(num_bins)

    if value_range is None:
        low, high = min(data), max(data)
    else:
        low, high = float(value_range[0]), float(value_range[1])
        if high < low:
            raise InvalidParameter(f"value_range 的上界不能小于下界，当前为: {value_range}")

    edges = equal_width_edges(low, high, num_bins)
    counts = histogram_counts(data, edges)
    n = len(data)

    return [
        {
            "name": f"{edges[i]:.2f}-{edges[i + 1]:.2f}",
            "lower": edges[i],
            "upper": edges[i + 1],
            "count": counts[i],
            "frequency": counts[i] / n,
        }
        for i in range(num_bins)
    ]
