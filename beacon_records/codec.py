from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import BeaconRecord
from .platform import PlatformCapabilities
from .proximity import Proximity, classify, parse_proximity_string, proximity_to_string

if TYPE_CHECKING:
    from .config_manager import ConfigManager


logger = logging.getLogger(__name__)

# 必需字段：原样拷贝，不做类型转换
REQUIRED_FIELDS = ("type", "proximityUUID", "major", "minor", "namespaceId", "instanceId")


class DecodeError(ValueError):
    def __init__(self, field: str, kind: str = "missing"):
        super().__init__(f"{kind} field: {field}")
        self.field = field
        self.kind = kind


@dataclass(frozen=True)
class DecodeResult:
    record: Optional[BeaconRecord] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _to_float(data: Any) -> Optional[float]:
    # 数值或数字字符串转浮点；不接受下划线分隔，溢出或无法解析时为 None
    if isinstance(data, str):
        if "_" in data:
            return None
        try:
            return float(data)
        except ValueError:
            return None
    try:
        return float(data)
    except OverflowError:
        return None


def parse_int(data: Any) -> Optional[int]:
    """数值截断为整数；字符串按十进制解析，失败为 0；其它类型为 None"""
    if isinstance(data, bool):
        return None
    if isinstance(data, (int, float)):
        try:
            return int(data)
        except (ValueError, OverflowError):
            # NaN / Infinity
            return 0
    if isinstance(data, str):
        if "_" in data:
            return 0
        try:
            return int(data.strip(), 10)
        except ValueError:
            return 0
    return None


def parse_double(data: Any) -> float:
    """数值转为浮点；字符串解析失败、溢出或其它类型为 0.0"""
    if isinstance(data, bool) or not isinstance(data, (int, float, str)):
        return 0.0
    value = _to_float(data)
    return 0.0 if value is None else value


def filters_from_config(config_manager: "ConfigManager") -> Tuple[List[str], List[Proximity]]:
    """读取配置中的 MAC/接近程度过滤条件"""
    decode_config = config_manager.get_decode_config()
    mac_filter = [str(mac) for mac in decode_config.get("mac_filter") or []]
    proximity_filter: List[Proximity] = []
    for p in decode_config.get("proximity_filter") or []:
        proximity = parse_proximity_string(p)
        if proximity is Proximity.UNKNOWN and p != Proximity.UNKNOWN.value:
            logger.warning("无法识别的接近程度过滤值 %r，按 unknown 处理", p)
        proximity_filter.append(proximity)
    return mac_filter, proximity_filter


def _accuracy_for_classify(data: Any) -> Optional[float]:
    # 批量解析时无法解析的 accuracy 视为缺失
    if isinstance(data, bool) or not isinstance(data, (int, float, str)):
        return None
    return _to_float(data)


class BeaconCodec:
    """原始字典 <-> BeaconRecord 的编解码"""

    def __init__(self, capabilities: Optional[PlatformCapabilities] = None, strict: bool = False):
        self.capabilities = capabilities or PlatformCapabilities()
        self.strict = strict

    @classmethod
    def from_config(cls, config_manager: "ConfigManager") -> "BeaconCodec":
        return cls(
            capabilities=PlatformCapabilities.from_config(config_manager),
            strict=bool(config_manager.get_decode_config().get("strict", False)),
        )

    # ---------- Decode ----------
    def decode_one(
        self, raw: Mapping[str, Any], explicit_proximity: Optional[Proximity] = None
    ) -> BeaconRecord:
        return self._decode(raw, explicit_proximity, strict=self.strict)

    def try_decode_one(
        self, raw: Mapping[str, Any], explicit_proximity: Optional[Proximity] = None
    ) -> DecodeResult:
        try:
            return DecodeResult(record=self._decode(raw, explicit_proximity, strict=True))
        except DecodeError as e:
            return DecodeResult(error=e)

    def _decode(
        self, raw: Mapping[str, Any], explicit_proximity: Optional[Proximity], strict: bool
    ) -> BeaconRecord:
        missing = [key for key in REQUIRED_FIELDS if key not in raw]
        if missing:
            if strict:
                raise DecodeError(missing[0])
            logger.warning("信标数据缺少必需字段: %s", ", ".join(missing))

        return BeaconRecord(
            type=raw.get("type"),
            proximity_uuid=raw.get("proximityUUID"),
            mac_address=raw.get("macAddress"),
            major=raw.get("major"),
            minor=raw.get("minor"),
            namespace_id=raw.get("namespaceId"),
            instance_id=raw.get("instanceId"),
            rssi=parse_int(raw.get("rssi")),
            tx_power=parse_int(raw.get("txPower")),
            accuracy=parse_double(raw.get("accuracy")),
            resolved_proximity=explicit_proximity or Proximity.UNKNOWN,
            reports_mac_address=self.capabilities.reports_mac_address,
        )

    def decode_batch(
        self,
        raw_items: Any,
        mac_filter: Sequence[str] = (),
        proximity_filter: Sequence[Proximity] = (),
    ) -> List[Optional[BeaconRecord]]:
        """
        批量解析；未通过 MAC/接近程度过滤的条目在对应位置为 None，
        输出长度与输入一致。
        """
        if not isinstance(raw_items, (list, tuple)):
            return []
        if mac_filter is None or proximity_filter is None:
            raise TypeError("mac_filter/proximity_filter 不能为 None，无过滤请传空序列")

        records: List[Optional[BeaconRecord]] = []
        for index, item in enumerate(raw_items):
            if not isinstance(item, Mapping):
                logger.warning("第 %d 条信标数据不是字典: %r", index, item)
                records.append(None)
                continue

            this_proximity = self.resolve_proximity(item)
            mac_ok = not mac_filter or item.get("macAddress") in mac_filter
            proximity_ok = not proximity_filter or this_proximity in proximity_filter
            if mac_ok and proximity_ok:
                records.append(self.decode_one(item, this_proximity))
            else:
                logger.debug("第 %d 条信标被过滤", index)
                records.append(None)
        return records

    @staticmethod
    def resolve_proximity(raw: Mapping[str, Any]) -> Proximity:
        """优先使用 proximity 字段，其次由 accuracy 推导，否则为 unknown"""
        if raw.get("proximity") is not None:
            return parse_proximity_string(raw["proximity"])
        if raw.get("accuracy") is not None:
            return classify(_accuracy_for_classify(raw["accuracy"]))
        return Proximity.UNKNOWN

    # ---------- Encode ----------
    @staticmethod
    def encode(record: BeaconRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": record.type,
            "proximityUUID": record.proximity_uuid,
            "major": record.major,
            "minor": record.minor,
            "namespaceId": record.namespace_id,
            "instanceId": record.instance_id,
            "rssi": record.rssi,
            "accuracy": record.accuracy,
            "proximity": proximity_to_string(record.proximity),
        }
        if record.tx_power is not None:
            data["txPower"] = record.tx_power
        if record.mac_address is not None:
            data["macAddress"] = record.mac_address
        return data

    @classmethod
    def encode_batch(
        cls, records: Iterable[Optional[BeaconRecord]]
    ) -> List[Optional[Dict[str, Any]]]:
        return [cls.encode(r) if r is not None else None for r in records]

    @classmethod
    def to_display_string(cls, record: BeaconRecord) -> str:
        return json.dumps(cls.encode(record), separators=(",", ":"), ensure_ascii=False)
