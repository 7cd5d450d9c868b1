"""
分布函数数值工具：正态 / t / 卡方 / 均匀 / 指数 / 泊松 的 CDF，以及正态、t、卡方的分位数。

设计目标：
- 仅依赖标准库 math（erf / erfc / lgamma），不依赖 SciPy；
- 精度满足常用显著性水平（0.01 / 0.05 / 0.10）下临界值的需要，至少 4 位小数；
- 纯函数、无状态；退化参数（std <= 0、lambda <= 0、a >= b、df <= 0、p 不在 (0,1)）
  一律返回 NaN，不抛异常，由上层入口负责参数校验。

数值方法：
- 不完全 Gamma / Beta 函数采用级数 + 连分式（Lentz 算法）；
- 分位数函数通过对 CDF 做二分搜索反解，与 _norm_ppf 的原始做法一致，只是精度更高。
"""

import math
from typing import Callable, Mapping

from .schema import DistributionType

NAN = float("nan")

_EPS = 1e-15
_FPMIN = 1e-300
_MAX_ITER = 500
_SQRT2 = math.sqrt(2.0)


def _is_bad(*values: float) -> bool:
    return any(math.isnan(v) for v in values)


def solve_increasing(
    func: Callable[[float], float],
    target: float,
    low: float,
    high: float,
    iterations: int = 200,
) -> float:
    """
    对单调递增函数 func 反解 func(x) = target。

    说明：
    - 若初始区间不包含解，会向两侧倍增扩展（最多 60 次）；
    - 固定迭代次数，避免容差设置不当导致死循环。
    """
    for _ in range(60):
        if func(low) <= target:
            break
        low = low - (high - low)
    for _ in range(60):
        if func(high) >= target:
            break
        high = high + (high - low)

    for _ in range(iterations):
        mid = 0.5 * (low + high)
        if mid == low or mid == high:
            break
        if func(mid) < target:
            low = mid
        else:
            high = mid
    return 0.5 * (low + high)


# ---------------------------------------------------------------------------
# 正态分布
# ---------------------------------------------------------------------------


def normal_cdf(x: float, mean: float = 0.0, std: float = 1.0) -> float:
    """
    正态分布累积分布函数 Φ((x - mean) / std)。

    说明：
    - 使用 erfc 而不是 1 + erf，左尾极小概率时不会因相消而丢失精度。
    """
    if _is_bad(x, mean, std) or std <= 0.0 or math.isinf(std):
        return NAN
    return 0.5 * math.erfc(-(x - mean) / (std * _SQRT2))


def normal_sf(x: float, mean: float = 0.0, std: float = 1.0) -> float:
    """正态分布生存函数 1 - Φ(x)，右尾精度优于直接相减。"""
    if _is_bad(x, mean, std) or std <= 0.0 or math.isinf(std):
        return NAN
    return 0.5 * math.erfc((x - mean) / (std * _SQRT2))


def normal_ppf(p: float) -> float:
    """
    标准正态分布的分位数函数 Φ⁻¹(p)。

    参数：
    - p: 分位点，0 < p < 1，否则返回 NaN。

    说明：
    - 在 [-10, 10] 上对 normal_cdf 二分搜索；
    - 例如 normal_ppf(0.975) ≈ 1.959964，normal_ppf(0.8) ≈ 0.841621。
    """
    if _is_bad(p) or not 0.0 < p < 1.0:
        return NAN
    return solve_increasing(normal_cdf, p, -10.0, 10.0)


# ---------------------------------------------------------------------------
# 不完全 Gamma / Beta
# ---------------------------------------------------------------------------


def _gamma_series(a: float, x: float) -> float:
    """P(a, x) 的级数展开，适用于 x < a + 1。"""
    ap = a
    delta = total = 1.0 / a
    for _ in range(_MAX_ITER):
        ap += 1.0
        delta *= x / ap
        total += delta
        if abs(delta) < abs(total) * _EPS:
            break
    return total * math.exp(-x + a * math.log(x) - math.lgamma(a))


def _gamma_continued_fraction(a: float, x: float) -> float:
    """Q(a, x) 的连分式展开（Lentz），适用于 x >= a + 1。"""
    b = x + 1.0 - a
    c = 1.0 / _FPMIN
    d = 1.0 / b
    h = d
    for i in range(1, _MAX_ITER):
        an = -i * (i - a)
        b += 2.0
        d = an * d + b
        if abs(d) < _FPMIN:
            d = _FPMIN
        c = b + an / c
        if abs(c) < _FPMIN:
            c = _FPMIN
        d = 1.0 / d
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < _EPS:
            break
    return math.exp(-x + a * math.log(x) - math.lgamma(a)) * h


def regularized_gamma_p(a: float, x: float) -> float:
    """正则化下不完全 Gamma 函数 P(a, x) = γ(a, x) / Γ(a)。"""
    if _is_bad(a, x) or a <= 0.0 or x < 0.0:
        return NAN
    if x == 0.0:
        return 0.0
    if math.isinf(x):
        return 1.0
    if x < a + 1.0:
        return _gamma_series(a, x)
    return 1.0 - _gamma_continued_fraction(a, x)


def regularized_gamma_q(a: float, x: float) -> float:
    """正则化上不完全 Gamma 函数 Q(a, x) = 1 - P(a, x)。"""
    if _is_bad(a, x) or a <= 0.0 or x < 0.0:
        return NAN
    if x == 0.0:
        return 1.0
    if math.isinf(x):
        return 0.0
    if x < a + 1.0:
        return 1.0 - _gamma_series(a, x)
    return _gamma_continued_fraction(a, x)


def _beta_continued_fraction(a: float, b: float, x: float) -> float:
    qab = a + b
    qap = a + 1.0
    qam = a - 1.0
    c = 1.0
    d = 1.0 - qab * x / qap
    if abs(d) < _FPMIN:
        d = _FPMIN
    d = 1.0 / d
    h = d
    for m in range(1, _MAX_ITER):
        m2 = 2 * m
        aa = m * (b - m) * x / ((qam + m2) * (a + m2))
        d = 1.0 + aa * d
        if abs(d) < _FPMIN:
            d = _FPMIN
        c = 1.0 + aa / c
        if abs(c) < _FPMIN:
            c = _FPMIN
        d = 1.0 / d
        h *= d * c

        aa = -(a + m) * (qab + m) * x / ((a + m2) * (qap + m2))
        d = 1.0 + aa * d
        if abs(d) < _FPMIN:
            d = _FPMIN
        c = 1.0 + aa / c
        if abs(c) < _FPMIN:
            c = _FPMIN
        d = 1.0 / d
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < _EPS:
            break
    return h


def regularized_beta(a: float, b: float, x: float) -> float:
    """正则化不完全 Beta 函数 I_x(a, b)。"""
    if _is_bad(a, b, x) or a <= 0.0 or b <= 0.0:
        return NAN
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0
    log_bt = (
        math.lgamma(a + b)
        - math.lgamma(a)
        - math.lgamma(b)
        + a * math.log(x)
        + b * math.log(1.0 - x)
    )
    bt = math.exp(log_bt)
    if x < (a + 1.0) / (a + b + 2.0):
        return bt * _beta_continued_fraction(a, b, x) / a
    return 1.0 - bt * _beta_continued_fraction(b, a, 1.0 - x) / b


# ---------------------------------------------------------------------------
# Student t / 卡方
# ---------------------------------------------------------------------------


def t_cdf(t: float, df: float) -> float:
    """
    Student t 分布的累积分布函数。

    公式：
    - x = df / (df + t²)，tail = 0.5 * I_x(df/2, 1/2)；
    - t >= 0 时 CDF = 1 - tail，否则 CDF = tail。
    """
    if _is_bad(t, df) or df <= 0.0:
        return NAN
    if math.isinf(t):
        return 1.0 if t > 0 else 0.0
    x = df / (df + t * t)
    tail = 0.5 * regularized_beta(0.5 * df, 0.5, x)
    return 1.0 - tail if t >= 0.0 else tail


def t_ppf(p: float, df: float) -> float:
    """Student t 分布分位数，例如 t_ppf(0.975, 10) ≈ 2.228139。"""
    if _is_bad(p, df) or df <= 0.0 or not 0.0 < p < 1.0:
        return NAN
    return solve_increasing(lambda v: t_cdf(v, df), p, -10.0, 10.0)


def chi2_cdf(x: float, df: float) -> float:
    """卡方分布累积分布函数 P(df/2, x/2)。"""
    if _is_bad(x, df) or df <= 0.0:
        return NAN
    if x <= 0.0:
        return 0.0
    return regularized_gamma_p(0.5 * df, 0.5 * x)


def chi2_sf(x: float, df: float) -> float:
    """卡方分布右尾概率（即卡方检验的 p 值）。"""
    if _is_bad(x, df) or df <= 0.0:
        return NAN
    if x <= 0.0:
        return 1.0
    return regularized_gamma_q(0.5 * df, 0.5 * x)


def chi2_ppf(p: float, df: float) -> float:
    """卡方分布分位数，例如 chi2_ppf(0.95, 1) ≈ 3.841459。"""
    if _is_bad(p, df) or df <= 0.0 or not 0.0 < p < 1.0:
        return NAN
    return solve_increasing(lambda v: chi2_cdf(v, df), p, 0.0, max(2.0 * df, 10.0))


# ---------------------------------------------------------------------------
# Kolmogorov 分布（KS 检验的渐近分布）
# ---------------------------------------------------------------------------


def kolmogorov_cdf(lam: float) -> float:
    """
    Kolmogorov 分布的 CDF K(λ)。

    说明：
    - λ < 1.18 时使用 Jacobi theta 形式 √(2π)/λ · Σ exp(-(2k-1)²π²/(8λ²))，收敛快；
    - 否则使用交错级数 1 - 2Σ(-1)^{k-1} exp(-2k²λ²)。
    """
    if _is_bad(lam):
        return NAN
    if lam <= 0.0:
        return 0.0
    if lam < 1.18:
        factor = -(math.pi ** 2) / (8.0 * lam * lam)
        total = 0.0
        for k in range(1, 100):
            term = math.exp((2 * k - 1) ** 2 * factor)
            total += term
            if term < _EPS * total:
                break
        return min(1.0, math.sqrt(2.0 * math.pi) / lam * total)
    total = 0.0
    for k in range(1, 100):
        term = math.exp(-2.0 * k * k * lam * lam)
        total += term if k % 2 == 1 else -term
        if term < _EPS:
            break
    return max(0.0, 1.0 - 2.0 * total)


def kolmogorov_sf(lam: float) -> float:
    """Kolmogorov 分布右尾概率 Q(λ) = 1 - K(λ)。"""
    if _is_bad(lam):
        return NAN
    if lam >= 1.18:
        total = 0.0
        for k in range(1, 100):
            term = math.exp(-2.0 * k * k * lam * lam)
            total += term if k % 2 == 1 else -term
            if term < _EPS:
                break
        return min(1.0, max(0.0, 2.0 * total))
    return 1.0 - kolmogorov_cdf(lam)


def kolmogorov_isf(p: float) -> float:
    """反解 Q(λ) = p，例如 kolmogorov_isf(0.05) ≈ 1.3581。"""
    if _is_bad(p) or not 0.0 < p < 1.0:
        return NAN
    return solve_increasing(kolmogorov_cdf, 1.0 - p, 0.0, 5.0)


# ---------------------------------------------------------------------------
# 均匀 / 指数 / 泊松
# ---------------------------------------------------------------------------


def uniform_cdf(x: float, a: float, b: float) -> float:
    if _is_bad(x, a, b) or a >= b:
        return NAN
    if x <= a:
        return 0.0
    if x >= b:
        return 1.0
    return (x - a) / (b - a)


def exponential_cdf(x: float, lam: float) -> float:
    if _is_bad(x, lam) or lam <= 0.0:
        return NAN
    if x <= 0.0:
        return 0.0
    return -math.expm1(-lam * x)


def poisson_pmf(k: int, lam: float) -> float:
    if _is_bad(lam) or lam <= 0.0:
        return NAN
    if k < 0:
        return 0.0
    return math.exp(k * math.log(lam) - lam - math.lgamma(k + 1.0))


def poisson_cdf(x: float, lam: float) -> float:
    """泊松分布 CDF：P(X <= floor(x)) = Q(floor(x) + 1, λ)。"""
    if _is_bad(x, lam) or lam <= 0.0:
        return NAN
    if x < 0.0:
        return 0.0
    if math.isinf(x):
        return 1.0
    return regularized_gamma_q(math.floor(x) + 1.0, lam)


def _normal_from_params(x: float, params: Mapping[str, float]) -> float:
    return normal_cdf(x, params["mean"], params["std"])


def _uniform_from_params(x: float, params: Mapping[str, float]) -> float:
    return uniform_cdf(x, params["a"], params["b"])


def _exponential_from_params(x: float, params: Mapping[str, float]) -> float:
    return exponential_cdf(x, params["lambda"])


def _poisson_from_params(x: float, params: Mapping[str, float]) -> float:
    return poisson_cdf(x, params["lambda"])


_CDF_BY_DISTRIBUTION = {
    DistributionType.NORMAL: _normal_from_params,
    DistributionType.UNIFORM: _uniform_from_params,
    DistributionType.EXPONENTIAL: _exponential_from_params,
    DistributionType.POISSON: _poisson_from_params,
}


def distribution_cdf(
    distribution_type: DistributionType,
    x: float,
    params: Mapping[str, float],
) -> float:
    """
    按分布标签计算 CDF(x)。

    参数：
    - distribution_type: 分布类型；
    - x: 取值点；
    - params: 参数字典（normal: mean/std；uniform: a/b；exponential/poisson: lambda）。
    """
    return _CDF_BY_DISTRIBUTION[distribution_type](x, params)
