"""
拟合优度（Goodness-of-Fit）检验：Kolmogorov–Smirnov / 卡方 / Anderson–Darling / Jarque–Bera。

设计目标：
- 对外只暴露 execute_gof_test 一个入口，所有参数校验都在入口完成；
- 各检验的数值实现为纯函数，通过 _TEST_RUNNERS 查找表分发，适用性由
  schema.TEST_APPLICABILITY 统一约束；
- 每个结果都满足 is_reject == (p_value < alpha)，且 critical_value 与 statistic
  同一尺度、由同一个 p 值近似反解得到，两种判断口径保持一致。

p 值近似：
- KS: 渐近 Kolmogorov 分布，λ = (√n + 0.12 + 0.11/√n)·D；
- 卡方: 卡方分布右尾，自由度 = 分箱数 - 1 - 估计参数个数；
- AD: D'Agostino & Stephens (1986) 针对均值 / 方差均为估计值的分段公式；
- JB: 自由度为 2 的卡方分布，p = exp(-JB / 2)。
"""

import math
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from core.logger import get_logger

from .descriptive import (
    equal_width_edges,
    histogram_counts,
    skewness_kurtosis,
    to_float_list,
    validate_num_bins,
)
from .distributions import (
    chi2_ppf,
    chi2_sf,
    distribution_cdf,
    kolmogorov_isf,
    kolmogorov_sf,
    normal_cdf,
    normal_sf,
    poisson_cdf,
    solve_increasing,
)
from .estimation import UNIFORM_METHODS, estimate_parameters
from .exceptions import InsufficientSample, InvalidParameter
from .schema import (
    PARAMETER_NAMES,
    DistributionType,
    GoFResult,
    GoFTestType,
    coerce_enum,
    ensure_applicable,
    estimated_param_count,
)

_logger = get_logger(__name__)

MIN_GOF_SAMPLE_SIZE = 5
MIN_EXPECTED_COUNT = 5.0
_LOG_FLOOR = 1e-300


def validate_distribution_params(
    distribution_type: DistributionType,
    params: Mapping[str, float],
) -> Dict[str, float]:
    """
    校验调用方给出的分布参数，返回只包含该分布所需键的 float 字典。

    规则：
    - 必须包含该分布的全部参数名（normal: mean/std；uniform: a/b；exponential/poisson: lambda）；
    - 所有值必须为有限数；
    - std > 0，a < b，lambda > 0。
    """
    cleaned: Dict[str, float] = {}
    for name in PARAMETER_NAMES[distribution_type]:
        if name not in params:
            raise InvalidParameter(
                f"{distribution_type.value} 分布缺少参数 {name}，"
                f"需要：{', '.join(PARAMETER_NAMES[distribution_type])}。"
            )
        try:
            value = float(params[name])
        except (TypeError, ValueError) as exc:
            raise InvalidParameter(f"参数 {name} 无法转换为浮点数：{params[name]!r}") from exc
        if not math.isfinite(value):
            raise InvalidParameter(f"参数 {name} 必须为有限数，当前为: {value}")
        cleaned[name] = value

    if distribution_type == DistributionType.NORMAL and cleaned["std"] <= 0.0:
        raise InvalidParameter(f"正态分布的 std 必须大于 0，当前为: {cleaned['std']}")
    if distribution_type == DistributionType.UNIFORM and cleaned["a"] >= cleaned["b"]:
        raise InvalidParameter(
            f"均匀分布要求 a < b，当前 a={cleaned['a']}, b={cleaned['b']}"
        )
    if distribution_type in (DistributionType.EXPONENTIAL, DistributionType.POISSON):
        if cleaned["lambda"] <= 0.0:
            raise InvalidParameter(f"lambda 必须大于 0，当前为: {cleaned['lambda']}")
    return cleaned


def _build_result(
    test_type: GoFTestType,
    distribution_type: DistributionType,
    statistic: float,
    p_value: float,
    critical_value: Optional[float],
    degrees_of_freedom: Optional[int],
    n: int,
    alpha: float,
    params: Mapping[str, float],
    low_expected_bins: int = 0,
) -> GoFResult:
    if not math.isnan(p_value):
        p_value = max(min(p_value, 1.0), 0.0)
    return GoFResult(
        test_type=test_type,
        distribution_type=distribution_type,
        statistic=statistic,
        p_value=p_value,
        critical_value=critical_value,
        degrees_of_freedom=degrees_of_freedom,
        sample_size=n,
        significance_level=alpha,
        # NaN 比较恒为 False，这里显式视为拒绝
        is_reject=bool(math.isnan(p_value) or p_value < alpha),
        params=dict(params),
        low_expected_bins=low_expected_bins,
    )


# ---------------------------------------------------------------------------
# Kolmogorov–Smirnov
# ---------------------------------------------------------------------------


def _ks_scale(n: int) -> float:
    sqrt_n = math.sqrt(n)
    return sqrt_n + 0.12 + 0.11 / sqrt_n


def _run_kolmogorov_smirnov(
    data: Sequence[float],
    distribution_type: DistributionType,
    alpha: float,
    params: Mapping[str, float],
    num_bins: int,
    estimated_count: int,
) -> GoFResult:
    xs = sorted(data)
    n = len(xs)

    d_plus = 0.0
    d_minus = 0.0
    for i, x in enumerate(xs):
        f = distribution_cdf(distribution_type, x, params)
        d_plus = max(d_plus, (i + 1) / n - f)
        d_minus = max(d_minus, f - i / n)
    statistic = max(min(max(d_plus, d_minus), 1.0), 0.0)

    scale = _ks_scale(n)
    p_value = kolmogorov_sf(scale * statistic)
    critical_value = kolmogorov_isf(alpha) / scale

    return _build_result(
        GoFTestType.KOLMOGOROV_SMIRNOV,
        distribution_type,
        statistic,
        p_value,
        critical_value,
        None,
        n,
        alpha,
        params,
    )


# ---------------------------------------------------------------------------
# 卡方
# ---------------------------------------------------------------------------


def _expected_probabilities_continuous(
    distribution_type: DistributionType,
    edges: Sequence[float],
    params: Mapping[str, float],
) -> List[float]:
    """连续分布各分箱的理论概率；首末分箱分别延伸到 -∞ / +∞，概率之和为 1。"""
    cdf_values = [distribution_cdf(distribution_type, e, params) for e in edges[1:-1]]
    bounds = [0.0] + cdf_values + [1.0]
    return [max(bounds[i + 1] - bounds[i], 0.0) for i in range(len(bounds) - 1)]


def _expected_probabilities_poisson(
    edges: Sequence[float],
    lam: float,
) -> List[float]:
    """
    泊松分布各分箱的理论概率：分箱 [e_i, e_{i+1}) 覆盖整数 ceil(e_i) .. ceil(e_{i+1}) - 1。
    首分箱包含所有更小的整数，末分箱包含所有更大的整数。
    """
    inner = [poisson_cdf(math.ceil(e) - 1, lam) for e in edges[1:-1]]
    bounds = [0.0] + inner + [1.0]
    return [max(bounds[i + 1] - bounds[i], 0.0) for i in range(len(bounds) - 1)]


def _run_chi_square(
    data: Sequence[float],
    distribution_type: DistributionType,
    alpha: float,
    params: Mapping[str, float],
    num_bins: int,
    estimated_count: int,
) -> GoFResult:
    n = len(data)
    low, high = min(data), max(data)

    if distribution_type == DistributionType.POISSON:
        edges = equal_width_edges(low, high + 1.0, num_bins)
        probabilities = _expected_probabilities_poisson(edges, params["lambda"])
    else:
        edges = equal_width_edges(low, high, num_bins)
        probabilities = _expected_probabilities_continuous(distribution_type, edges, params)

    observed = histogram_counts(data, edges)
    expected = [n * p for p in probabilities]

    statistic = 0.0
    low_expected_bins = 0
    for obs, exp in zip(observed, expected):
        if exp < MIN_EXPECTED_COUNT:
            low_expected_bins += 1
        if exp <= 0.0:
            if obs > 0:
                # 理论上不可能出现的观测值，直接判为完全不拟合
                statistic = math.inf
            continue
        statistic += (obs - exp) ** 2 / exp

    if low_expected_bins:
        _logger.warning(
            "卡方检验（%s）有 %d/%d 个分箱的期望频数 < %.0f，结论偏弱，仅供参考。",
            distribution_type.value,
            low_expected_bins,
            num_bins,
            MIN_EXPECTED_COUNT,
        )

    df = num_bins - 1 - estimated_count
    p_value = chi2_sf(statistic, df)
    critical_value = chi2_ppf(1.0 - alpha, df)

    return _build_result(
        GoFTestType.CHI_SQUARE,
        distribution_type,
        statistic,
        p_value,
        critical_value,
        df,
        n,
        alpha,
        params,
        low_expected_bins=low_expected_bins,
    )


# ---------------------------------------------------------------------------
# Anderson–Darling
# ---------------------------------------------------------------------------


# 近似式在 A* = 0.6 处向上跳变（约 0.1169 → 0.1194），下段截断到上段在 0.6 的取值，保证 p 值随 A* 单调不增
_AD_P_AT_0_6 = math.exp(1.2937 - 5.709 * 0.6 + 0.0186 * 0.6 ** 2)


def _anderson_darling_p_value(a_star: float) -> float:
    """D'Agostino & Stephens 分段近似，输入为修正后的 A*。"""
    if a_star < 0.2:
        return 1.0 - math.exp(-13.436 + 101.14 * a_star - 223.73 * a_star ** 2)
    if a_star < 0.34:
        return 1.0 - math.exp(-8.318 + 42.796 * a_star - 59.938 * a_star ** 2)
    if a_star < 0.6:
        return max(math.exp(0.9177 - 4.279 * a_star - 1.38 * a_star ** 2), _AD_P_AT_0_6)
    if a_star < 13.0:
        return math.exp(1.2937 - 5.709 * a_star + 0.0186 * a_star ** 2)
    return 0.0


def _anderson_darling_critical_a_star(alpha: float) -> float:
    """
    反解 p(A*) = alpha 得到 A* 尺度的临界值。

    常用水平下与查表值一致：0.10 → 0.631，0.05 → 0.752，0.025 → 0.873，0.01 → 1.035。
    """
    return solve_increasing(
        lambda a: 1.0 - _anderson_darling_p_value(a), 1.0 - alpha, 0.0, 13.0
    )


def _run_anderson_darling(
    data: Sequence[float],
    distribution_type: DistributionType,
    alpha: float,
    params: Mapping[str, float],
    num_bins: int,
    estimated_count: int,
) -> GoFResult:
    n = len(data)
    mu, std = params["mean"], params["std"]
    z = sorted((x - mu) / std for x in data)

    total = 0.0
    for i in range(n):
        lower = max(normal_cdf(z[i]), _LOG_FLOOR)
        upper = max(normal_sf(z[n - 1 - i]), _LOG_FLOOR)
        total += (2 * i + 1) * (math.log(lower) + math.log(upper))
    a_squared = -n - total / n

    # 均值与标准差由样本估计时的小样本修正
    factor = 1.0 + 0.75 / n + 2.25 / (n * n)
    p_value = _anderson_darling_p_value(a_squared * factor)
    critical_value = _anderson_darling_critical_a_star(alpha) / factor

    return _build_result(
        GoFTestType.ANDERSON_DARLING,
        distribution_type,
        a_squared,
        p_value,
        critical_value,
        None,
        n,
        alpha,
        params,
    )


# ---------------------------------------------------------------------------
# Jarque–Bera
# ---------------------------------------------------------------------------


def _run_jarque_bera(
    data: Sequence[float],
    distribution_type: DistributionType,
    alpha: float,
    params: Mapping[str, float],
    num_bins: int,
    estimated_count: int,
) -> GoFResult:
    n = len(data)
    skewness, kurtosis = skewness_kurtosis(data)
    statistic = n / 6.0 * (skewness ** 2 + (kurtosis - 3.0) ** 2 / 4.0)

    p_value = chi2_sf(statistic, 2)
    critical_value = chi2_ppf(1.0 - alpha, 2)

    return _build_result(
        GoFTestType.JARQUE_BERA,
        distribution_type,
        statistic,
        p_value,
        critical_value,
        2,
        n,
        alpha,
        params,
    )


_Runner = Callable[
    [Sequence[float], DistributionType, float, Mapping[str, float], int, int],
    GoFResult,
]

_TEST_RUNNERS: Dict[GoFTestType, _Runner] = {
    GoFTestType.KOLMOGOROV_SMIRNOV: _run_kolmogorov_smirnov,
    GoFTestType.CHI_SQUARE: _run_chi_square,
    GoFTestType.ANDERSON_DARLING: _run_anderson_darling,
    GoFTestType.JARQUE_BERA: _run_jarque_bera,
}


def execute_gof_test(
    values: Sequence[float],
    test_type: Union[str, GoFTestType],
    distribution_type: Union[str, DistributionType],
    alpha: float = 0.05,
    params: Optional[Mapping[str, float]] = None,
    num_bins: int = 10,
    params_estimated: bool = True,
    uniform_method: str = "minmax",
) -> GoFResult:
    """
    执行一次拟合优度检验。

    参数：
    - values: 样本，至少 5 个有限数值；
    - test_type: "kolmogorov-smirnov" / "chi-square" / "anderson-darling" / "jarque-bera"；
    - distribution_type: "normal" / "uniform" / "exponential" / "poisson"；
    - alpha: 显著性水平，0 < alpha < 1；
    - params: 分布参数；为 None 时由样本估计（estimate_parameters）；
    - num_bins: 卡方检验的分箱个数，范围 [5, 50]；
    - params_estimated: params 是否由样本估计得到。仅影响卡方自由度：
      为 False（用户指定参数）时不扣减估计参数个数；params 为 None 时强制为 True；
    - uniform_method: params 为 None 且分布为 uniform 时的估计方式，"minmax" / "robust"。

    返回：
    - GoFResult。

    异常：
    - InvalidParameter: alpha / num_bins / 分布参数非法，或标签无法识别；
    - InsufficientSample: 样本不足 5 个；
    - UnsupportedCombination: 检验方法不适用于该分布。

    说明：
    - 卡方检验中期望频数 < 5 的分箱不会报错，只记录在 low_expected_bins 并打印警告。
    """
    test = coerce_enum(GoFTestType, test_type, "test_type")
    dist = coerce_enum(DistributionType, distribution_type, "distribution_type")
    if not 0.0 < alpha < 1.0:
        raise InvalidParameter(f"alpha 必须在 (0, 1) 区间内，当前为: {alpha}")
    num_bins = validate_num_bins(num_bins)
    if uniform_method not in UNIFORM_METHODS:
        raise InvalidParameter(
            f"uniform_method 仅支持 'minmax' 或 'robust'，当前为: {uniform_method}"
        )
    ensure_applicable(test, dist)

    data = to_float_list(values, "values")
    if len(data) < MIN_GOF_SAMPLE_SIZE:
        raise InsufficientSample(
            f"拟合优度检验要求样本量至少为 {MIN_GOF_SAMPLE_SIZE}，当前为: {len(data)}"
        )

    if params is None:
        params = estimate_parameters(data, dist, uniform_method=uniform_method)
        params_estimated = True
    cleaned = validate_distribution_params(dist, params)
    estimated_count = estimated_param_count(dist) if params_estimated else 0

    result = _TEST_RUNNERS[test](data, dist, alpha, cleaned, num_bins, estimated_count)
    _logger.debug(
        "%s on %s: statistic=%.6g p=%.6g reject=%s",
        test.value,
        dist.value,
        result.statistic,
        result.p_value,
        result.is_reject,
    )
    return result


def interpret_result(result: GoFResult) -> Dict[str, str]:
    """
    将检验结果转换为可直接展示的结论文字。

    返回：
    - {"conclusion": "拒绝原假设" / "接受原假设", "interpretation": "..."}
    """
    dist = result.distribution_type.value
    if result.is_reject:
        return {
            "conclusion": "拒绝原假设",
            "interpretation": f"在 α = {result.significance_level} 下，数据不服从 {dist} 分布。",
        }
    return {
        "conclusion": "接受原假设",
        "interpretation": f"在 α = {result.significance_level} 下，数据与 {dist} 分布一致。",
    }
