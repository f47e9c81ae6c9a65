from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .codec import BeaconCodec
from .config_manager import ConfigManager
from .models import BeaconRecord


logger = logging.getLogger(__name__)

COLUMNS = [
    "type",
    "proximityUUID",
    "major",
    "minor",
    "namespaceId",
    "instanceId",
    "rssi",
    "accuracy",
    "proximity",
    "txPower",
    "macAddress",
]
INT_COLUMNS = ["major", "minor"]
OPTIONAL_COLUMNS = ["txPower", "macAddress"]


class BeaconStore:
    """信标记录日志（pandas + CSV），按编码后的字典逐行追加，读取时再加载"""

    def __init__(
        self,
        config_manager: Optional[ConfigManager] = None,
        codec: Optional[BeaconCodec] = None,
    ):
        self._config = config_manager or ConfigManager()
        self._codec = codec or BeaconCodec.from_config(self._config)
        self._path: Optional[str] = None
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def path(self) -> str:
        return self._path or self._config.get_record_log_path()

    # ---- Utils ----
    def _normalize_df(self, df: pd.DataFrame) -> pd.DataFrame:
        for col in COLUMNS:
            if col not in df.columns:
                df[col] = ""
        df = df[COLUMNS].astype(str)
        for col in INT_COLUMNS:
            # major/minor 原样解码，需要先转成整数；非法值填 0
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype("int64")
        return df.reset_index(drop=True)

    @staticmethod
    def _row_to_raw(row: Dict[str, Any]) -> Dict[str, Any]:
        raw = {k: v for k, v in row.items() if not (k in OPTIONAL_COLUMNS and v == "")}
        for col in INT_COLUMNS:
            raw[col] = int(raw[col])
        return raw

    def _has_file(self) -> bool:
        return os.path.exists(self.path) and os.path.getsize(self.path) > 0

    def _read_df(self) -> pd.DataFrame:
        if not self._has_file():
            return pd.DataFrame(columns=COLUMNS, dtype=str)
        # 全部按字符串读取，数值由解码器转换
        df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        return self._normalize_df(df)

    # ---- Load/Save ----
    def load(self, record_file_path: Optional[str] = None):
        """指定日志文件并统计已有记录数，记录本身不常驻内存"""
        self._path = record_file_path or self._path
        if not self._has_file():
            logger.info("记录文件不存在，从空日志开始: %s", self.path)
            self._count = 0
            return
        self._count = len(self._read_df())
        logger.info("记录文件已有 %d 条信标记录: %s", self._count, self.path)

    # ---- CRUD ----
    def add(self, records: Iterable[Optional[BeaconRecord]]) -> int:
        """只追加新记录，不重写已有内容"""
        rows = [
            {col: "" if row.get(col) is None else str(row[col]) for col in COLUMNS}
            for row in self._codec.encode_batch(records)
            if row is not None
        ]
        if not rows:
            return 0
        new_df = self._normalize_df(pd.DataFrame(rows, columns=COLUMNS))
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        new_df.to_csv(
            self.path, mode="a", header=not self._has_file(), index=False, encoding="utf-8"
        )
        self._count += len(rows)
        return len(rows)

    def clear(self):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        pd.DataFrame(columns=COLUMNS).to_csv(self.path, index=False, encoding="utf-8")
        self._count = 0

    # ---- Accessors ----
    def raw_rows(self) -> List[Dict[str, Any]]:
        return [self._row_to_raw(row) for row in self._read_df().to_dict(orient="records")]

    def records(self) -> List[BeaconRecord]:
        decoded = self._codec.decode_batch(self.raw_rows())
        return [r for r in decoded if r is not None]

    def unique(self) -> List[BeaconRecord]:
        """按信标身份去重，保留最后一次观测"""
        latest: Dict[BeaconRecord, BeaconRecord] = {}
        for record in self.records():
            latest.pop(record, None)
            latest[record] = record
        return list(latest.values())
