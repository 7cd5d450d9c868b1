"""
modules.autotest: 拟合优度自动检验模块。

对外提供：
- load_autotest_config: 从 YAML 字典构建 AutoTestConfig；
- run_auto_test: 遍历 (分布, 检验) 组合，按综合得分排序并给出推荐分布。
"""

from .autotest_engine import AutoTestReport, run_auto_test
from .config_schema import AutoTestConfig, ScoringConfig, load_autotest_config

__all__ = [
    "AutoTestConfig",
    "AutoTestReport",
    "ScoringConfig",
    "load_autotest_config",
    "run_auto_test",
]
