from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence, Union
import math
import warnings

import pandas as pd

from core.logger import get_logger
from core.stats import (
    AccuracyRecord,
    DistributionType,
    GoFResult,
    GoFTestType,
    InsufficientSample,
    InvalidParameter,
    RankedResult,
    StatsEngineError,
    estimate_parameters,
    execute_gof_test,
    is_applicable,
)
from core.stats.descriptive import to_float_list, validate_num_bins
from core.stats.goodness_of_fit import MIN_GOF_SAMPLE_SIZE
from core.stats.schema import coerce_enum

from .config_schema import AutoTestConfig

_logger = get_logger(__name__)

_GOF_FIELDS = tuple(f.name for f in fields(GoFResult))


@dataclass
class AutoTestReport:
    """
    自动拟合优度检验的汇总结果。

    字段说明：
    - results: 参与排名的结果，按综合得分降序，rank 从 1 开始连续编号；
    - failures: 执行失败的 (分布, 检验) 组合，statistic / p_value 为 NaN，is_reject 为 True；
    - errors: 失败原因，key 为 "分布/检验"；
    - accuracy: 给出已知真实分布时的准确性记录，否则为 None；
    - known_distribution: 已知真实分布（可为空）。
    """

    results: List[RankedResult] = field(default_factory=list)
    failures: List[GoFResult] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    accuracy: Optional[AccuracyRecord] = None
    known_distribution: Optional[DistributionType] = None

    @property
    def recommended(self) -> Optional[RankedResult]:
        """综合得分最高（rank = 1）的结果；没有任何成功结果时为 None。"""
        return self.results[0] if self.results else None

    def to_frame(self) -> pd.DataFrame:
        """
        转换为 DataFrame，每行一个参与排名的结果，便于打印或导出 CSV。

        列：rank / distribution / test / statistic / p_value / critical_value / df /
        is_reject / combined_score / params / is_known_distribution。
        """
        rows: List[Dict[str, Any]] = []
        for item in self.results:
            rows.append(
                {
                    "rank": item.rank,
                    "distribution": item.distribution_type.value,
                    "test": item.test_type.value,
                    "statistic": item.statistic,
                    "p_value": item.p_value,
                    "critical_value": item.critical_value,
                    "df": item.degrees_of_freedom,
                    "is_reject": item.is_reject,
                    "combined_score": item.combined_score,
                    "params": dict(item.params),
                    "is_known_distribution": item.distribution_type == self.known_distribution,
                }
            )
        columns = [
            "rank",
            "distribution",
            "test",
            "statistic",
            "p_value",
            "critical_value",
            "df",
            "is_reject",
            "combined_score",
            "params",
            "is_known_distribution",
        ]
        return pd.DataFrame(rows, columns=columns)


def _failed_result(
    test: GoFTestType,
    dist: DistributionType,
    n: int,
    alpha: float,
) -> GoFResult:
    nan = float("nan")
    return GoFResult(
        test_type=test,
        distribution_type=dist,
        statistic=nan,
        p_value=nan,
        critical_value=None,
        degrees_of_freedom=None,
        sample_size=n,
        significance_level=alpha,
        is_reject=True,
    )


def _rank_results(results: Sequence[GoFResult], config: AutoTestConfig) -> List[RankedResult]:
    """计算综合得分并排名。sorted 是稳定排序，得分相同的结果保持遍历顺序。"""
    scored = [(config.scoring.score(r.test_type, r.p_value), r) for r in results]
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)

    ranked: List[RankedResult] = []
    for position, (score, result) in enumerate(scored, start=1):
        base = {name: getattr(result, name) for name in _GOF_FIELDS}
        ranked.append(RankedResult(**base, combined_score=score, rank=position))
    return ranked


def _accuracy_for(
    ranked: Sequence[RankedResult],
    known: DistributionType,
) -> Optional[AccuracyRecord]:
    best = next((r for r in ranked if r.distribution_type == known), None)
    if best is None:
        return None
    return AccuracyRecord(
        distribution_type=known,
        is_recommended=ranked[0].distribution_type == known,
        rank=best.rank,
        p_value=best.p_value,
    )


def run_auto_test(
    values: Sequence[float],
    alpha: Optional[float] = None,
    num_bins: Optional[int] = None,
    known_distribution: Optional[Union[str, DistributionType]] = None,
    config: Optional[AutoTestConfig] = None,
) -> AutoTestReport:
    """
    对样本遍历所有适用的 (分布, 检验) 组合，按综合得分排序并给出推荐分布。

    参数：
    - values: 样本，至少 5 个元素，否则抛出 InsufficientSample；
    - alpha / num_bins: 显著性水平与卡方分箱数，为 None 时取 config 中的值；
    - known_distribution: 已知真实分布（如模拟数据），用于生成准确性记录；
    - config: AutoTestConfig，为 None 时使用默认配置。

    流程：
    1. 按 normal → uniform → exponential → poisson、KS → 卡方 → AD → JB 的顺序遍历，
       跳过不适用的组合；
    2. 每个组合先估计参数（均匀分布默认使用 robust 估计），再执行检验；
       单个组合的异常会被捕获并记录为失败，不影响其他组合；
    3. 过滤掉 p 值为 NaN 的结果，计算 combined_score = (p + bonus) × weight，
       降序稳定排序后编号。

    返回：
    - AutoTestReport。没有任何组合成功时 results 为空、recommended 为 None。
    """
    config = config or AutoTestConfig()
    alpha = config.alpha if alpha is None else alpha
    num_bins = config.num_bins if num_bins is None else num_bins

    if not 0.0 < alpha < 1.0:
        raise InvalidParameter(f"alpha 必须在 (0, 1) 区间内，当前为: {alpha}")
    num_bins = validate_num_bins(num_bins)

    data = to_float_list(values, "values")
    if len(data) < MIN_GOF_SAMPLE_SIZE:
        raise InsufficientSample(
            f"自动检验要求样本量至少为 {MIN_GOF_SAMPLE_SIZE}，当前为: {len(data)}"
        )
    known = (
        coerce_enum(DistributionType, known_distribution, "known_distribution")
        if known_distribution is not None
        else None
    )

    collected: List[GoFResult] = []
    failures: List[GoFResult] = []
    errors: Dict[str, str] = {}

    for dist in config.distributions:
        for test in config.tests:
            if not is_applicable(test, dist):
                continue
            key = f"{dist.value}/{test.value}"
            try:
                params = estimate_parameters(data, dist, uniform_method=config.uniform_method)
                result = execute_gof_test(
                    data,
                    test,
                    dist,
                    alpha=alpha,
                    params=params,
                    num_bins=num_bins,
                    params_estimated=True,
                )
            except (StatsEngineError, ValueError, ArithmeticError) as exc:
                _logger.warning("自动检验组合 %s 执行失败：%s", key, exc)
                errors[key] = str(exc)
                failures.append(_failed_result(test, dist, len(data), alpha))
                continue

            if math.isnan(result.p_value):
                _logger.warning("自动检验组合 %s 的 p 值为 NaN，不参与排名。", key)
                errors[key] = "p 值为 NaN"
                failures.append(result)
                continue
            collected.append(result)

    ranked = _rank_results(collected, config)
    if not ranked:
        warnings.warn(
            "自动检验中没有任何 (分布, 检验) 组合执行成功，请检查样本是否过小或全部相同。",
            UserWarning,
        )

    accuracy = _accuracy_for(ranked, known) if known is not None else None
    report = AutoTestReport(
        results=ranked,
        failures=failures,
        errors=errors,
        accuracy=accuracy,
        known_distribution=known,
    )
    if report.recommended is not None:
        _logger.info(
            "自动检验完成：成功 %d 个组合，失败 %d 个，推荐 %s（%s，p=%.4g）",
            len(ranked),
            len(failures),
            report.recommended.distribution_type.value,
            report.recommended.test_type.value,
            report.recommended.p_value,
        )
    return report
