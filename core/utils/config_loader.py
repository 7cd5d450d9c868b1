"""
core.utils.config_loader: 配置文件读取（YAML）。

禁止引用 modules 下的任何内容。
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

# 项目根目录下的 configs/，脚本在未显式传入配置路径时从这里读取默认配置
CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "configs"


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    读取 YAML 文件并返回字典。

    输入：
    - path: 文件路径，可为 str 或 Path。

    输出：
    - 解析得到的字典；文件为空时返回空字典。

    异常：
    - FileNotFoundError: 路径不存在；
    - ValueError: 顶层不是映射（例如整个文件是一个列表）；
    - yaml.YAMLError: 解析失败时由 PyYAML 抛出。
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML 文件不存在：{path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML 文件顶层必须是键值映射：{path}")
    return data


def load_config(
    path: Optional[Union[str, Path]] = None,
    default_name: str = "gof_autotest.yaml",
) -> Dict[str, Any]:
    """
    读取配置：传入 path 时读取该文件，否则读取 configs/<default_name>。

    默认配置文件不存在时返回空字典，由各模块的 load_*_config 填充默认值。
    """
    if path is not None:
        return load_yaml(path)
    default_path = CONFIG_DIR / default_name
    if not default_path.exists():
        return {}
    return load_yaml(default_path)
