from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from core.stats import DistributionType, GoFTestType

# 各检验方法在综合评分中的权重：AD 对正态尾部最敏感，权重最高；JB 只看偏度 / 峰度，权重最低
DEFAULT_METHOD_WEIGHTS: Dict[GoFTestType, float] = {
    GoFTestType.KOLMOGOROV_SMIRNOV: 1.0,
    GoFTestType.CHI_SQUARE: 0.9,
    GoFTestType.ANDERSON_DARLING: 1.1,
    GoFTestType.JARQUE_BERA: 0.8,
}

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ScoringConfig:
    """
    自动检验的综合评分配置。

    说明：
    - method_weights: 检验方法 → 权重；
    - p_value_bonus: p 值超过 bonus_threshold 时额外加的分数；
    - bonus_threshold: 触发加分的 p 值阈值。

    combined_score = (p_value + bonus) × weight，bonus 仅在 p_value > bonus_threshold 时生效。
    """

    method_weights: Dict[GoFTestType, float] = field(
        default_factory=lambda: dict(DEFAULT_METHOD_WEIGHTS)
    )
    p_value_bonus: float = 0.05
    bonus_threshold: float = 0.1

    def score(self, test_type: GoFTestType, p_value: float) -> float:
        bonus = self.p_value_bonus if p_value > self.bonus_threshold else 0.0
        return (p_value + bonus) * self.method_weights.get(test_type, 1.0)


@dataclass
class AutoTestConfig:
    """
    自动拟合优度检验的整体配置对象。

    说明：
    - alpha: 显著性水平；
    - num_bins: 卡方检验的分箱个数，[5, 50]；
    - uniform_method: 均匀分布参数估计方式，自动检验默认 "robust"；
    - distributions / tests: 参与遍历的分布与检验方法（保持枚举顺序）；
    - scoring: 综合评分配置；
    - value_column: 输入文件中样本所在的列名（脚本使用，可为空）；
    - log_level: 日志级别。
    """

    alpha: float = 0.05
    num_bins: int = 10
    uniform_method: str = "robust"
    distributions: List[DistributionType] = field(
        default_factory=lambda: list(DistributionType)
    )
    tests: List[GoFTestType] = field(default_factory=lambda: list(GoFTestType))
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    value_column: Optional[str] = None
    log_level: str = "INFO"


def _parse_members(raw: Any, enum_cls, label: str) -> List:
    """把 YAML 中的字符串列表解析为枚举列表，并按枚举定义顺序排列。"""
    if raw is None:
        return list(enum_cls)
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ValueError(f"{label} 必须是列表，当前为: {raw!r}")
    allowed = {m.value: m for m in enum_cls}
    picked = set()
    for item in raw:
        if item not in allowed:
            raise ValueError(
                f"{label} 中的取值 {item!r} 非法，仅支持：{', '.join(allowed)}"
            )
        picked.add(allowed[item])
    if not picked:
        raise ValueError(f"{label} 不能为空列表。")
    return [m for m in enum_cls if m in picked]


def _parse_scoring(raw: Mapping[str, Any]) -> ScoringConfig:
    weights = dict(DEFAULT_METHOD_WEIGHTS)
    for key, value in (raw.get("method_weights") or {}).items():
        try:
            test = GoFTestType(key)
        except ValueError as exc:
            raise ValueError(f"scoring.method_weights 中的检验方法 {key!r} 非法。") from exc
        if not isinstance(value, (int, float)) or value <= 0:
            raise ValueError(
                f"scoring.method_weights.{key} 必须为大于 0 的数值，当前为: {value}"
            )
        weights[test] = float(value)

    bonus = raw.get("p_value_bonus", 0.05)
    threshold = raw.get("bonus_threshold", 0.1)
    if not isinstance(bonus, (int, float)) or bonus < 0:
        raise ValueError(f"scoring.p_value_bonus 不能为负数，当前为: {bonus}")
    if not isinstance(threshold, (int, float)) or not 0 <= threshold < 1:
        raise ValueError(f"scoring.bonus_threshold 必须在 [0, 1) 区间内，当前为: {threshold}")

    return ScoringConfig(
        method_weights=weights,
        p_value_bonus=float(bonus),
        bonus_threshold=float(threshold),
    )


def load_autotest_config(raw_config: Optional[Mapping[str, Any]]) -> AutoTestConfig:
    """
    从字典（通常由 YAML 解析而来）构建 AutoTestConfig 对象，并做基础校验与默认值填充。

    期望的配置结构大致为（示例，所有字段均可省略）：

    - data:
        value_column: "value"
    - autotest:
        alpha: 0.05
        num_bins: 10
        uniform_method: "robust"
        distributions: ["normal", "uniform", "exponential", "poisson"]
        tests: ["kolmogorov-smirnov", "chi-square", "anderson-darling", "jarque-bera"]
    - scoring:
        method_weights:
          kolmogorov-smirnov: 1.0
          chi-square: 0.9
        p_value_bonus: 0.05
        bonus_threshold: 0.1
    - logging:
        level: "INFO"

    如果取值非法，将抛出 ValueError，错误信息为中文，方便排查。
    """
    raw_config = raw_config or {}
    data_cfg = raw_config.get("data") or {}
    test_cfg = raw_config.get("autotest") or {}
    scoring_cfg = raw_config.get("scoring") or {}
    logging_cfg = raw_config.get("logging") or {}

    alpha = test_cfg.get("alpha", 0.05)
    num_bins = test_cfg.get("num_bins", 10)
    uniform_method = test_cfg.get("uniform_method", "robust")

    if not isinstance(alpha, (int, float)) or not 0 < alpha < 1:
        raise ValueError(f"autotest.alpha 必须在 (0,1) 区间内，当前为: {alpha}")
    if isinstance(num_bins, bool) or not isinstance(num_bins, int) or not 5 <= num_bins <= 50:
        raise ValueError(f"autotest.num_bins 必须为 [5, 50] 内的整数，当前为: {num_bins}")
    if uniform_method not in {"minmax", "robust"}:
        raise ValueError(
            f"autotest.uniform_method 必须为 'minmax' 或 'robust'，当前为: {uniform_method}"
        )

    distributions = _parse_members(
        test_cfg.get("distributions"), DistributionType, "autotest.distributions"
    )
    tests = _parse_members(test_cfg.get("tests"), GoFTestType, "autotest.tests")

    value_column = data_cfg.get("value_column")
    if value_column is not None and not str(value_column).strip():
        raise ValueError("data.value_column 不能为空字符串。")

    log_level = str(logging_cfg.get("level", "INFO")).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(
            f"logging.level 必须为 {'/'.join(sorted(_LOG_LEVELS))} 之一，当前为: {log_level}"
        )

    return AutoTestConfig(
        alpha=float(alpha),
        num_bins=num_bins,
        uniform_method=uniform_method,
        distributions=distributions,
        tests=tests,
        scoring=_parse_scoring(scoring_cfg),
        value_column=value_column,
        log_level=log_level,
    )
