"""
core.stats.exceptions: 统计引擎的异常类型。

约定：
- 所有异常均继承自 ValueError，调用方沿用 `except ValueError` 的写法即可兜住；
- 只在入口处（参数校验）抛出，数值计算内部遇到退化输入时返回 NaN 而不是抛异常。
"""


class StatsEngineError(ValueError):
    """统计引擎异常基类。"""


class InvalidParameter(StatsEngineError):
    """参数取值非法：alpha/beta 不在 (0,1)、sigma <= 0、n <= 0、num_bins 超出 [5,50] 等。"""


class InsufficientSample(StatsEngineError):
    """样本量不足：拟合优度检验要求至少 5 个样本，功效分析要求样本非空。"""


class InvalidEffectSize(StatsEngineError):
    """效应量为 0（mu1 == mu0），无法求解样本量。"""


class UnsupportedCombination(StatsEngineError):
    """检验方法不适用于所选分布（如 Anderson–Darling + 泊松分布）。"""
