import math
from typing import Callable, Dict, List, Optional, Sequence, Union

from core.logger import get_logger

from .descriptive import sample_std, to_float_list
from .distributions import normal_cdf, normal_ppf, t_cdf, t_ppf
from .exceptions import InvalidEffectSize, InvalidParameter
from .schema import PowerCurvePoint, TailType, coerce_enum

_logger = get_logger(__name__)

# 功效曲线覆盖 mu0 ± 3 个标准误，每个标准误取 10 步，共 61 个点
CURVE_HALF_WIDTH_STEPS = 30
CURVE_STEPS_PER_SE = 10


class PowerAnalysis:
    """
    单样本均值检验的功效函数与样本量计算工具类。

    设计目标：
    - 计算在给定 mu0 / sigma / n / alpha 下，真实均值 mu 处拒绝原假设的概率 K(mu)；
    - 支持方差已知（z 检验）与方差未知（t 检验，自由度 n - 1）两种情形；
    - 支持双侧 / 左侧 / 右侧三种备择假设；
    - 反解达到目标功效 1 - beta 所需的最小样本量。

    数学公式（δ = (mu - mu0) / (sigma / √n)，c 为临界值）：
    - 双侧：K = F(-c_{α/2} - δ) + 1 - F(c_{α/2} - δ)
    - 右侧：K = 1 - F(c_α - δ)
    - 左侧：K = F(-c_α - δ)
    其中 F 为标准正态 CDF（方差已知）或 t_{n-1} 的 CDF（方差未知，位置平移近似）。
    δ = 0 时三种情形的 K 都恰好等于 alpha。
    """

    @staticmethod
    def power_at(
        mu: float,
        mu0: float,
        sigma: float,
        n: int,
        alpha: float = 0.05,
        tail_type: Union[str, TailType] = TailType.TWO,
        variance_known: bool = True,
    ) -> float:
        """
        计算真实均值为 mu 时的功效 K(mu)，结果截断到 [0, 1]。

        参数：
        - mu: 真实均值；
        - mu0: 原假设均值；
        - sigma: 总体标准差（方差未知时为样本标准差的估计值），必须 > 0；
        - n: 样本量，正整数（方差未知时至少为 2）；
        - alpha: 显著性水平，0 < alpha < 1；
        - tail_type: "two-tailed" / "left-tailed" / "right-tailed"；
        - variance_known: True 使用 z 检验，False 使用 t 检验。
        """
        tail = coerce_enum(TailType, tail_type, "tail_type")
        PowerAnalysis._validate_curve_params(sigma, n, alpha, variance_known)
        se = sigma / math.sqrt(n)
        delta = (mu - mu0) / se
        return PowerAnalysis._rejection_probability(delta, alpha, tail, n, variance_known)

    @staticmethod
    def generate_power_curve(
        mu0: float,
        sigma: float,
        n: int,
        alpha: float = 0.05,
        tail_type: Union[str, TailType] = TailType.TWO,
        variance_known: bool = True,
    ) -> List[PowerCurvePoint]:
        """
        生成功效曲线：在 mu0 ± 3·sigma/√n 范围内以 0.1 个标准误为步长取 61 个点。

        返回：
        - PowerCurvePoint 列表，按 mu 升序排列；中间一个点（mu = mu0）的功效等于 alpha。
        """
        tail = coerce_enum(TailType, tail_type, "tail_type")
        PowerAnalysis._validate_curve_params(sigma, n, alpha, variance_known)
        se = sigma / math.sqrt(n)

        curve: List[PowerCurvePoint] = []
        for i in range(-CURVE_HALF_WIDTH_STEPS, CURVE_HALF_WIDTH_STEPS + 1):
            # 用除法而不是累加步长，保证 i = 0 时 mu 恰好等于 mu0
            delta = i / CURVE_STEPS_PER_SE
            power = PowerAnalysis._rejection_probability(delta, alpha, tail, n, variance_known)
            curve.append(PowerCurvePoint(mu=mu0 + delta * se, power=power))
        return curve

    @staticmethod
    def power_curve_from_sample(
        values: Sequence[float],
        mu0: float,
        alpha: float = 0.05,
        tail_type: Union[str, TailType] = TailType.TWO,
        variance_known: bool = True,
        sigma: Optional[float] = None,
    ) -> List[PowerCurvePoint]:
        """
        基于观测样本生成功效曲线：n 取样本量，sigma 未给出时使用样本标准差（n - 1 口径）。

        样本为空时抛出 InsufficientSample；样本全部相同且未给出 sigma 时抛出 InvalidParameter。
        """
        data = to_float_list(values, "values")
        if sigma is None:
            sigma = sample_std(data)
            if sigma <= 0.0:
                raise InvalidParameter("样本标准差为 0，无法由样本推断 sigma，请显式传入 sigma。")
        return PowerAnalysis.generate_power_curve(
            mu0=mu0,
            sigma=sigma,
            n=len(data),
            alpha=alpha,
            tail_type=tail_type,
            variance_known=variance_known,
        )

    @staticmethod
    def required_sample_size(
        mu1: float,
        mu0: float,
        sigma: float,
        alpha: float = 0.05,
        beta: float = 0.2,
        tail_type: Union[str, TailType] = TailType.TWO,
    ) -> int:
        """
        计算在备择均值 mu1 处达到功效 1 - beta 所需的最小样本量（z 检验近似）。

        数学公式：
        - 双侧：n = ((Z_{1-α/2} + Z_{1-β}) · σ / |mu1 - mu0|)²
        - 单侧：n = ((Z_{1-α}   + Z_{1-β}) · σ / |mu1 - mu0|)²
        结果向上取整，至少为 1。

        示例：
        - mu1=1, mu0=0, sigma=1, alpha=0.05, beta=0.2, 双侧 → ((1.96 + 0.84) / 1)² ≈ 7.85 → 8。

        异常：
        - mu1 == mu0 时抛出 InvalidEffectSize。
        """
        tail = coerce_enum(TailType, tail_type, "tail_type")
        PowerAnalysis._validate_sigma(sigma)
        PowerAnalysis._validate_alpha(alpha)
        PowerAnalysis._validate_probability(beta, "beta")

        effect = abs(mu1 - mu0)
        if effect == 0.0:
            raise InvalidEffectSize(
                f"mu1 与 mu0 相等（{mu1}），效应量为 0，无法求解所需样本量。"
            )

        if tail == TailType.TWO:
            z_alpha = -normal_ppf(alpha / 2.0)
        else:
            z_alpha = -normal_ppf(alpha)
        z_power = -normal_ppf(beta)

        n = ((z_alpha + z_power) * sigma / effect) ** 2
        # 先舍去 1e-9 以下的浮点噪声再向上取整
        required = max(1, int(math.ceil(round(n, 9))))
        _logger.debug(
            "required_sample_size: tail=%s alpha=%s beta=%s effect=%s -> n=%s",
            tail.value,
            alpha,
            beta,
            effect,
            required,
        )
        return required

    @staticmethod
    def required_sample_size_for_effect(
        effect_size: float,
        alpha: float = 0.05,
        beta: float = 0.2,
        tail_type: Union[str, TailType] = TailType.TWO,
    ) -> int:
        """
        以标准化效应量（Cohen's d = (mu1 - mu0) / sigma）计算所需样本量。

        等价于 required_sample_size(mu1=d, mu0=0, sigma=1)；effect_size 为 0 时抛出 InvalidEffectSize。
        """
        return PowerAnalysis.required_sample_size(
            mu1=effect_size,
            mu0=0.0,
            sigma=1.0,
            alpha=alpha,
            beta=beta,
            tail_type=tail_type,
        )

    @staticmethod
    def summarize(
        mu0: float,
        sigma: float,
        n: int,
        alpha: float = 0.05,
        tail_type: Union[str, TailType] = TailType.TWO,
        variance_known: bool = True,
        mu1: Optional[float] = None,
        beta: float = 0.2,
    ) -> Dict[str, object]:
        """
        汇总功效分析结果，便于上层直接渲染。

        返回字段：
        - "curve": 功效曲线（PowerCurvePoint 列表）；
        - "alpha_point": 曲线上 mu = mu0 的点（功效应约等于 alpha）；
        - "alpha" / "beta" / "target_power" / "tail_type" / "variance_known" / "n"；
        - 给出 mu1 时额外包含：
          * "mu1"：备择均值；
          * "power_at_mu1"：当前 n 下 mu1 处的功效；
          * "required_n"：达到 1 - beta 所需样本量。
        """
        tail = coerce_enum(TailType, tail_type, "tail_type")
        PowerAnalysis._validate_probability(beta, "beta")
        curve = PowerAnalysis.generate_power_curve(
            mu0=mu0,
            sigma=sigma,
            n=n,
            alpha=alpha,
            tail_type=tail,
            variance_known=variance_known,
        )
        alpha_point = min(curve, key=lambda p: abs(p.mu - mu0))

        summary: Dict[str, object] = {
            "curve": curve,
            "alpha_point": alpha_point,
            "alpha": alpha,
            "beta": beta,
            "target_power": 1.0 - beta,
            "tail_type": tail.value,
            "variance_known": variance_known,
            "n": n,
        }
        if mu1 is not None:
            summary["mu1"] = mu1
            summary["power_at_mu1"] = PowerAnalysis.power_at(
                mu=mu1,
                mu0=mu0,
                sigma=sigma,
                n=n,
                alpha=alpha,
                tail_type=tail,
                variance_known=variance_known,
            )
            summary["required_n"] = PowerAnalysis.required_sample_size(
                mu1=mu1,
                mu0=mu0,
                sigma=sigma,
                alpha=alpha,
                beta=beta,
                tail_type=tail,
            )
        return summary

    @staticmethod
    def _rejection_probability(
        delta: float,
        alpha: float,
        tail: TailType,
        n: int,
        variance_known: bool,
    ) -> float:
        """根据标准化效应 δ 计算拒绝原假设的概率，截断到 [0, 1]。"""
        if variance_known:
            cdf: Callable[[float], float] = normal_cdf
            ppf: Callable[[float], float] = normal_ppf
        else:
            df = n - 1
            cdf = lambda x: t_cdf(x, df)  # noqa: E731
            ppf = lambda p: t_ppf(p, df)  # noqa: E731

        # 临界值取 -F⁻¹(α) 而不是 F⁻¹(1 - α)，上尾概率用 F(δ - c) 代替 1 - F(c - δ)，
        # 两者依赖 F 关于 0 对称；alpha 极小时 1 - α 会被舍入为 1
        if tail == TailType.TWO:
            c = -ppf(alpha / 2.0)
            power = cdf(-c - delta) + cdf(delta - c)
        elif tail == TailType.RIGHT:
            c = -ppf(alpha)
            power = cdf(delta - c)
        else:
            c = -ppf(alpha)
            power = cdf(-c - delta)

        return max(min(power, 1.0), 0.0)

    @staticmethod
    def _validate_curve_params(
        sigma: float,
        n: int,
        alpha: float,
        variance_known: bool,
    ) -> None:
        PowerAnalysis._validate_sigma(sigma)
        PowerAnalysis._validate_alpha(alpha)
        if isinstance(n, bool) or int(n) != n or n <= 0:
            raise InvalidParameter(f"n 必须为正整数，当前为: {n}")
        if not variance_known and n < 2:
            raise InvalidParameter("方差未知（t 检验）时样本量 n 至少为 2，自由度 n - 1 才有意义。")

    @staticmethod
    def _validate_sigma(sigma: float) -> None:
        try:
            value = float(sigma)
        except (TypeError, ValueError) as exc:
            raise InvalidParameter(f"sigma 必须为数值，当前为: {sigma!r}") from exc
        if not math.isfinite(value) or value <= 0.0:
            raise InvalidParameter(f"sigma 必须为大于 0 的有限数，当前为: {sigma}")

    @staticmethod
    def _validate_probability(value: float, name: str) -> None:
        if not 0.0 < value < 1.0:
            raise InvalidParameter(f"{name} 必须在 (0, 1) 区间内，当前为: {value}")

    @staticmethod
    def _validate_alpha(alpha: float) -> None:
        PowerAnalysis._validate_probability(alpha, "alpha")
        # alpha / 2 下溢为 0 时分位数不存在
        if not math.isfinite(normal_ppf(alpha / 2.0)):
            raise InvalidParameter(f"alpha 过小，无法计算临界值，当前为: {alpha}")
