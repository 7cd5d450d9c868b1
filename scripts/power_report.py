# scripts/power_report.py
# 快捷入口：修改下面的变量后运行，打印单样本均值检验的功效曲线与所需样本量

import sys
from pathlib import Path

# 将项目根目录加入 sys.path，保证 from core.xxx 可被解析（无论从何处执行脚本）
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pandas as pd

from core.logger import configure_logging
from core.stats import PowerAnalysis


if __name__ == "__main__":
    # ---------- 只需修改下面的变量 ----------
    MU0 = 0.0             # 原假设均值
    SIGMA = 1.0           # 总体标准差
    N = 30                # 样本量
    ALPHA = 0.05          # 显著性水平
    BETA = 0.2            # 第二类错误概率，目标功效 = 1 - BETA
    TAIL_TYPE = "two-tailed"
    VARIANCE_KNOWN = True
    MU1 = 0.5             # 备择均值，不需要样本量计算时设为 None

    configure_logging("INFO")
    summary = PowerAnalysis.summarize(
        mu0=MU0,
        sigma=SIGMA,
        n=N,
        alpha=ALPHA,
        tail_type=TAIL_TYPE,
        variance_known=VARIANCE_KNOWN,
        mu1=MU1,
        beta=BETA,
    )

    curve = pd.DataFrame([{"mu": p.mu, "power": p.power} for p in summary["curve"]])
    print(curve.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
    print(f"mu0 处功效：{summary['alpha_point'].power:.4f}（alpha = {ALPHA}）")
    if MU1 is not None:
        print(f"mu1 = {MU1} 处功效：{summary['power_at_mu1']:.4f}")
        print(f"达到功效 {summary['target_power']:.2f} 所需样本量：{summary['required_n']}")
