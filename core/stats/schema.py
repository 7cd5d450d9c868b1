"""
core.stats.schema: 统计引擎共用的枚举、结果数据结构与元数据目录。

内容：
- DistributionType / GoFTestType / TailType：分布、检验方法、尾部类型的标签；
- TEST_APPLICABILITY：检验方法 → 适用分布的查找表（唯一的适用性来源）；
- GoFResult / RankedResult / PowerCurvePoint / AccuracyRecord：不可变结果对象；
- DISTRIBUTION_OPTIONS / TEST_METHOD_OPTIONS：供上层展示的静态说明信息。
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Type, TypeVar, Union

from .exceptions import InvalidParameter, UnsupportedCombination


class DistributionType(str, Enum):
    NORMAL = "normal"
    UNIFORM = "uniform"
    EXPONENTIAL = "exponential"
    POISSON = "poisson"


class GoFTestType(str, Enum):
    KOLMOGOROV_SMIRNOV = "kolmogorov-smirnov"
    CHI_SQUARE = "chi-square"
    ANDERSON_DARLING = "anderson-darling"
    JARQUE_BERA = "jarque-bera"


class TailType(str, Enum):
    """
    备择假设方向。

    除标准取值外，也接受两类别名：
    - "two" / "left" / "right"；
    - "two-sided" / "smaller" / "larger"（alternative 风格的写法）。
    """

    TWO = "two-tailed"
    LEFT = "left-tailed"
    RIGHT = "right-tailed"

    @classmethod
    def _missing_(cls, value: object) -> Optional["TailType"]:
        aliases = {
            "two": cls.TWO,
            "two-sided": cls.TWO,
            "left": cls.LEFT,
            "smaller": cls.LEFT,
            "right": cls.RIGHT,
            "larger": cls.RIGHT,
        }
        if isinstance(value, str):
            return aliases.get(value.strip().lower())
        return None


E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Union[str, E], name: str) -> E:
    """
    将字符串或枚举值统一转换为指定枚举类型。

    参数：
    - enum_cls: 目标枚举类；
    - value: 输入值（字符串或枚举成员）；
    - name: 参数名称，用于报错信息。
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = " / ".join(repr(m.value) for m in enum_cls)
        raise InvalidParameter(f"{name} 仅支持 {allowed}，当前为: {value!r}") from exc


# 检验方法 → 适用分布。KS 只用于连续分布，AD / JB 只用于正态性检验。
TEST_APPLICABILITY: Dict[GoFTestType, Tuple[DistributionType, ...]] = {
    GoFTestType.KOLMOGOROV_SMIRNOV: (
        DistributionType.NORMAL,
        DistributionType.UNIFORM,
        DistributionType.EXPONENTIAL,
    ),
    GoFTestType.CHI_SQUARE: (
        DistributionType.NORMAL,
        DistributionType.UNIFORM,
        DistributionType.EXPONENTIAL,
        DistributionType.POISSON,
    ),
    GoFTestType.ANDERSON_DARLING: (DistributionType.NORMAL,),
    GoFTestType.JARQUE_BERA: (DistributionType.NORMAL,),
}

PARAMETER_NAMES: Dict[DistributionType, Tuple[str, ...]] = {
    DistributionType.NORMAL: ("mean", "std"),
    DistributionType.UNIFORM: ("a", "b"),
    DistributionType.EXPONENTIAL: ("lambda",),
    DistributionType.POISSON: ("lambda",),
}


def is_applicable(test_type: GoFTestType, distribution_type: DistributionType) -> bool:
    """检验方法是否适用于该分布。"""
    return distribution_type in TEST_APPLICABILITY[test_type]


def supported_tests(distribution_type: DistributionType) -> Tuple[GoFTestType, ...]:
    """按枚举顺序返回某个分布可用的检验方法。"""
    return tuple(t for t in GoFTestType if is_applicable(t, distribution_type))


def ensure_applicable(test_type: GoFTestType, distribution_type: DistributionType) -> None:
    if not is_applicable(test_type, distribution_type):
        allowed = ", ".join(d.value for d in TEST_APPLICABILITY[test_type])
        raise UnsupportedCombination(
            f"检验方法 {test_type.value} 不适用于 {distribution_type.value} 分布，"
            f"仅适用于：{allowed}。"
        )


def estimated_param_count(distribution_type: DistributionType) -> int:
    return len(PARAMETER_NAMES[distribution_type])


@dataclass(frozen=True)
class PowerCurvePoint:
    """功效曲线上的一个点：真实均值 mu 与对应的功效 power ∈ [0, 1]。"""

    mu: float
    power: float


@dataclass(frozen=True)
class GoFResult:
    """
    单次拟合优度检验的结果。

    字段说明：
    - test_type / distribution_type: 检验方法与被检验分布；
    - statistic: 检验统计量；
    - p_value: p 值（近似）；
    - critical_value: 在 significance_level 下的临界值，与 statistic 同一尺度；
    - degrees_of_freedom: 自由度（卡方类检验才有）；
    - sample_size / significance_level: 样本量与显著性水平；
    - is_reject: 是否拒绝原假设，恒等于 p_value < significance_level；
    - params: 实际使用的分布参数；
    - low_expected_bins: 卡方检验中期望频数 < 5 的分箱个数（> 0 说明结论偏弱）。
    """

    test_type: GoFTestType
    distribution_type: DistributionType
    statistic: float
    p_value: float
    critical_value: Optional[float]
    degrees_of_freedom: Optional[int]
    sample_size: int
    significance_level: float
    is_reject: bool
    params: Mapping[str, float] = field(default_factory=dict)
    low_expected_bins: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["test_type"] = self.test_type.value
        data["distribution_type"] = self.distribution_type.value
        data["params"] = dict(self.params)
        return data


@dataclass(frozen=True)
class RankedResult(GoFResult):
    """自动检验中参与排名的结果：在 GoFResult 基础上附加综合得分与名次（1 为最佳）。"""

    combined_score: float = 0.0
    rank: int = 0


@dataclass(frozen=True)
class AccuracyRecord:
    """已知真实分布时的准确性记录：该分布的最佳名次、p 值以及是否被推荐。"""

    distribution_type: DistributionType
    is_recommended: bool
    rank: int
    p_value: float


@dataclass(frozen=True)
class DistributionOption:
    type: DistributionType
    name: str
    description: str
    formula: str

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return PARAMETER_NAMES[self.type]

    @property
    def supported_tests(self) -> Tuple[GoFTestType, ...]:
        return supported_tests(self.type)


@dataclass(frozen=True)
class TestMethodOption:
    type: GoFTestType
    name: str
    description: str
    assumptions: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    limitations: Tuple[str, ...] = ()

    # 避免 pytest 把 Test* 开头的类当作测试用例收集
    __test__ = False

    @property
    def applicable_distributions(self) -> Tuple[DistributionType, ...]:
        return TEST_APPLICABILITY[self.type]


DISTRIBUTION_OPTIONS: Dict[DistributionType, DistributionOption] = {
    DistributionType.NORMAL: DistributionOption(
        type=DistributionType.NORMAL,
        name="Normal Distribution",
        description="Bell-shaped symmetric distribution",
        formula="f(x) = (1/σ√(2π)) * exp(-½((x-μ)/σ)²)",
    ),
    DistributionType.UNIFORM: DistributionOption(
        type=DistributionType.UNIFORM,
        name="Uniform Distribution",
        description="Constant probability over an interval",
        formula="f(x) = 1/(b-a), for a ≤ x ≤ b",
    ),
    DistributionType.EXPONENTIAL: DistributionOption(
        type=DistributionType.EXPONENTIAL,
        name="Exponential Distribution",
        description="Memoryless distribution for waiting times",
        formula="f(x) = λe^(-λx), for x ≥ 0",
    ),
    DistributionType.POISSON: DistributionOption(
        type=DistributionType.POISSON,
        name="Poisson Distribution",
        description="Discrete distribution for counting events",
        formula="P(X=k) = (λ^k * e^(-λ))/k!",
    ),
}

TEST_METHOD_OPTIONS: Dict[GoFTestType, TestMethodOption] = {
    GoFTestType.KOLMOGOROV_SMIRNOV: TestMethodOption(
        type=GoFTestType.KOLMOGOROV_SMIRNOV,
        name="Kolmogorov-Smirnov Test",
        description="Non-parametric test comparing empirical and theoretical CDFs",
        assumptions=(
            "Continuous distribution",
            "Independent observations",
            "No estimated parameters from data (for exact test)",
        ),
        strengths=(
            "Distribution-free (when parameters are known)",
            "Sensitive to differences in distribution shape",
            "Works with small sample sizes",
        ),
        limitations=(
            "Not applicable to discrete distributions",
            "Requires known parameters for exact p-values",
            "Sensitive to parameter estimation",
        ),
    ),
    GoFTestType.CHI_SQUARE: TestMethodOption(
        type=GoFTestType.CHI_SQUARE,
        name="Chi-Square Goodness-of-Fit Test",
        description="Test based on comparing observed vs expected frequencies",
        assumptions=(
            "Independent observations",
            "Expected frequency ≥ 5 in each bin",
            "Categorical or binned continuous data",
        ),
        strengths=(
            "Works with any distribution",
            "Can handle discrete and continuous data",
            "Well-established theory",
        ),
        limitations=(
            "Requires binning for continuous data",
            "Sensitive to bin selection",
            "Less powerful than KS test for some distributions",
        ),
    ),
    GoFTestType.ANDERSON_DARLING: TestMethodOption(
        type=GoFTestType.ANDERSON_DARLING,
        name="Anderson-Darling Test",
        description="Modified KS test with more weight on tails",
        assumptions=(
            "Normal distribution",
            "Continuous distribution",
            "Independent observations",
        ),
        strengths=(
            "More powerful than KS for normal distribution",
            "Better sensitivity in tail regions",
            "Accounts for parameter estimation",
        ),
        limitations=(
            "Primarily for normal distribution",
            "More complex calculation",
            "Less intuitive interpretation",
        ),
    ),
    GoFTestType.JARQUE_BERA: TestMethodOption(
        type=GoFTestType.JARQUE_BERA,
        name="Jarque-Bera Test",
        description="Test based on skewness and kurtosis",
        assumptions=(
            "Independent observations",
            "Sufficient sample size (n > 20)",
        ),
        strengths=(
            "Simple calculation",
            "Based on intuitive measures",
            "Good for large samples",
        ),
        limitations=(
            "Only tests for normality",
            "Less powerful for small samples",
            "Sensitive to outliers",
        ),
    ),
}
