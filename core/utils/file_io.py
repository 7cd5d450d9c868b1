# core/utils/file_io.py
# 样本文件读取：CSV/TXT 编码回退，抽取单列数值样本

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from core.logger import get_logger

_logger = get_logger(__name__)

_SUPPORTED_SUFFIXES = {".csv", ".txt"}


class DataLoader:
    """
    样本数据加载器：用 pandas 读取 CSV/TXT，并对编码做回退尝试。

    Input:
        encoding_list: 尝试的编码顺序。默认 ["utf-8", "gbk", "gb18030"]。
    Output:
        无（构造器）。read_data() 返回 DataFrame，read_sample() 返回 float 列表。
    """

    def __init__(
        self,
        encoding_list: Optional[List[str]] = None,
    ) -> None:
        self._encoding_list: List[str] = encoding_list or [
            "utf-8",
            "gbk",
            "gb18030",
        ]

    def read_data(
        self,
        file_path: str | Path,
        **kwargs: Any,
    ) -> pd.DataFrame:
        """
        读取 CSV/TXT 为 DataFrame，kwargs 原样透传给 pd.read_csv（如 sep、header）。

        文件不存在时抛出 FileNotFoundError，后缀不支持时抛出 ValueError。
        """
        path = Path(file_path)
        if not path.exists():
            _msg = f"文件不存在，请检查路径：{path.absolute()}"
            _logger.error(_msg)
            raise FileNotFoundError(_msg)

        suffix = path.suffix.lower()
        if suffix not in _SUPPORTED_SUFFIXES:
            raise ValueError(
                f"不支持的文件格式：{suffix}。当前支持：{', '.join(sorted(_SUPPORTED_SUFFIXES))}。"
            )
        return self._read_csv_with_encoding(path, **kwargs)

    def read_sample(
        self,
        file_path: str | Path,
        column: Optional[str] = None,
        **kwargs: Any,
    ) -> List[float]:
        """
        从文件中抽取一列数值作为样本。

        Input:
            file_path: 文件路径；
            column: 样本所在列名。为 None 时要求文件中恰好只有一列数值列。
        Output:
            List[float]: 样本值。空值与无法转换为数值的单元格会被丢弃并记录日志。
        """
        df = self.read_data(file_path, **kwargs)

        if column is None:
            numeric_cols = [c for c in df.columns if pd.api.types.is_numeric_dtype(df[c])]
            if len(numeric_cols) != 1:
                raise ValueError(
                    f"未指定样本列名，且文件中数值列个数为 {len(numeric_cols)}（需要恰好 1 列），"
                    "请通过 column 参数指定。"
                )
            column = numeric_cols[0]
        elif column not in df.columns:
            raise ValueError(
                f"文件中不存在列 {column}，可用列：{', '.join(map(str, df.columns))}"
            )

        series = pd.to_numeric(df[column], errors="coerce")
        dropped = int(series.isna().sum())
        if dropped:
            _logger.warning("列 %s 中有 %d 个空值或非数值单元格，已丢弃。", column, dropped)
        return [float(v) for v in series.dropna().tolist()]

    def _read_csv_with_encoding(
        self,
        path: Path,
        **kwargs: Any,
    ) -> pd.DataFrame:
        # 调用方显式传入的 encoding 先试，再按默认列表回退
        encodings_to_try: List[str] = []
        if "encoding" in kwargs:
            encodings_to_try.append(kwargs.pop("encoding"))
        encodings_to_try.extend(self._encoding_list)

        last_error: Optional[Exception] = None
        for enc in encodings_to_try:
            try:
                return pd.read_csv(path, encoding=enc, **kwargs)
            except UnicodeDecodeError as e:
                last_error = e

        _msg = f"使用编码 {encodings_to_try} 均无法解码文件：{path.absolute()}"
        _logger.error(_msg)
        raise ValueError(_msg) from last_error
