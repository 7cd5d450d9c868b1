"""
core.stats: 统计推断底层（分布函数、参数估计、功效分析、拟合优度检验、直方图分箱等）

本模块仅提供通用统计学算法，不包含任何业务逻辑。
"""

from .descriptive import describe_sample, generate_histogram_data
from .estimation import estimate_parameters
from .exceptions import (
    InsufficientSample,
    InvalidEffectSize,
    InvalidParameter,
    StatsEngineError,
    UnsupportedCombination,
)
from .goodness_of_fit import execute_gof_test, interpret_result, validate_distribution_params
from .power_analysis import PowerAnalysis
from .schema import (
    DISTRIBUTION_OPTIONS,
    TEST_APPLICABILITY,
    TEST_METHOD_OPTIONS,
    AccuracyRecord,
    DistributionOption,
    DistributionType,
    GoFResult,
    GoFTestType,
    PowerCurvePoint,
    RankedResult,
    TailType,
    TestMethodOption,
    is_applicable,
    supported_tests,
)

__all__ = [
    "AccuracyRecord",
    "DISTRIBUTION_OPTIONS",
    "DistributionOption",
    "DistributionType",
    "GoFResult",
    "GoFTestType",
    "InsufficientSample",
    "InvalidEffectSize",
    "InvalidParameter",
    "PowerAnalysis",
    "PowerCurvePoint",
    "RankedResult",
    "StatsEngineError",
    "TEST_APPLICABILITY",
    "TEST_METHOD_OPTIONS",
    "TailType",
    "TestMethodOption",
    "UnsupportedCombination",
    "describe_sample",
    "estimate_parameters",
    "execute_gof_test",
    "generate_histogram_data",
    "interpret_result",
    "is_applicable",
    "supported_tests",
    "validate_distribution_params",
]
