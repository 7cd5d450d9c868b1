# core.utils: 通用工具（样本文件读取、配置加载）
# 禁止引用 modules 下的任何内容

from core.utils.config_loader import load_config, load_yaml
from core.utils.file_io import DataLoader

__all__ = ["DataLoader", "load_config", "load_yaml"]
