"""
scripts.run_gof_autotest

拟合优度自动检验入口：读取样本文件与配置，遍历 (分布, 检验) 组合，打印排名并给出推荐分布。
对外提供调用函数 run_gof_autotest(data_path, output_path?, config_path?, column?, known_distribution?) -> dict。
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Optional

# 将项目根目录加入 sys.path，保证从命令行直接运行脚本时可以 import modules/core
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from core.logger import configure_logging
from core.stats import describe_sample, interpret_result
from core.utils import DataLoader, load_config
from modules.autotest import load_autotest_config, run_auto_test


def run_gof_autotest(
    data_path: str,
    output_path: Optional[str] = None,
    config_path: Optional[str] = None,
    column: Optional[str] = None,
    known_distribution: Optional[str] = None,
) -> Dict[str, Any]:
    """
    运行自动检验并返回预览信息。

    输入：
    - data_path: 样本文件（CSV/TXT）；
    - output_path: 可选，排名结果 CSV 的保存路径；
    - config_path: 可选，配置 YAML 路径；未传则使用 configs/gof_autotest.yaml；
    - column: 可选，样本列名，优先于配置中的 data.value_column；
    - known_distribution: 可选，已知真实分布（用于模拟数据的准确性核对）。

    输出：
    - 字典，包含 "summary"（描述统计）、"table"（排名 DataFrame）、"recommended"、
      "interpretation"、"accuracy"、"n_failures"、"csv_path"。
    """
    config = load_autotest_config(load_config(config_path))
    configure_logging(config.log_level)

    sample = DataLoader().read_sample(data_path, column=column or config.value_column)
    report = run_auto_test(sample, known_distribution=known_distribution, config=config)
    table = report.to_frame()

    csv_path: Optional[str] = None
    if output_path:
        out_file = Path(output_path)
        out_file.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(out_file, index=False, encoding="utf-8-sig")
        csv_path = str(out_file)

    recommended = report.recommended
    return {
        "summary": describe_sample(sample),
        "table": table,
        "recommended": recommended,
        "interpretation": interpret_result(recommended) if recommended else None,
        "accuracy": report.accuracy,
        "n_failures": len(report.failures),
        "csv_path": csv_path,
    }


def main() -> None:
    """命令行入口：接收样本路径，可选输出路径、列名与已知分布，调用 run_gof_autotest 并打印排名。"""
    if len(sys.argv) < 2:
        print("用法: python scripts/run_gof_autotest.py <样本路径> [输出CSV路径] [列名] [已知分布]")
        print("示例: python scripts/run_gof_autotest.py data/sample.csv")
        print("示例: python scripts/run_gof_autotest.py data/sample.csv outputs/rank.csv value normal")
        sys.exit(1)
    data_path = sys.argv[1]
    output_path = sys.argv[2] if len(sys.argv) > 2 and sys.argv[2].strip() else None
    column = sys.argv[3] if len(sys.argv) > 3 and sys.argv[3].strip() else None
    known = sys.argv[4] if len(sys.argv) > 4 and sys.argv[4].strip() else None

    preview = run_gof_autotest(
        data_path=data_path,
        output_path=output_path,
        column=column,
        known_distribution=known,
    )
    summary = preview["summary"]
    print(
        f"样本量 n={summary['n']}，均值={summary['mean']:.4f}，标准差={summary['std']:.4f}，"
        f"偏度={summary['skewness']:.4f}，峰度={summary['kurtosis']:.4f}"
    )
    print(preview["table"].to_string(index=False))

    recommended = preview["recommended"]
    if recommended is None:
        print("没有任何组合执行成功，无法给出推荐分布。")
    else:
        print(
            f"推荐分布：{recommended.distribution_type.value}"
            f"（{recommended.test_type.value}，p={recommended.p_value:.4f}）"
        )
        print(f"  {preview['interpretation']['interpretation']}")
    if preview["accuracy"] is not None:
        acc = preview["accuracy"]
        print(f"已知分布 {acc.distribution_type.value}：第 {acc.rank} 名，推荐正确={acc.is_recommended}")
    if preview["n_failures"]:
        print(f"执行失败的组合数：{preview['n_failures']}（详见日志）")
    if preview["csv_path"]:
        print(f"排名结果已保存：{preview['csv_path']}")


if __name__ == "__main__":
    main()
