from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from .proximity import Proximity, classify


class BeaconTechnology(Enum):
    ALTBEACON = "altbeacon"
    EDDYSTONE = "eddystone"
    OTHER = "other"

    @classmethod
    def from_type(cls, beacon_type: Any) -> "BeaconTechnology":
        if beacon_type == cls.ALTBEACON.value:
            return cls.ALTBEACON
        if beacon_type == cls.EDDYSTONE.value:
            return cls.EDDYSTONE
        return cls.OTHER

    @property
    def identity(self) -> Callable[["BeaconRecord"], Tuple[Any, ...]]:
        return _IDENTITY_KEYS[self]


@dataclass(frozen=True)
class ProximityState:
    """接近程度：derived 为 True 表示由 accuracy 推导而来"""

    value: Proximity
    derived: bool = False


@dataclass(frozen=True, eq=False)
class BeaconRecord:
    """
    信标记录（不可变）

    - altbeacon/其它类型以 (proximity_uuid, major, minor) 标识
    - eddystone 以 (namespace_id, instance_id) 标识
    - rssi 缺省时归一为 -1
    - resolved_proximity 缺省时在构造时由 accuracy 推导，之后不再计算
    """

    type: str
    proximity_uuid: str
    mac_address: Optional[str]
    major: int
    minor: int
    namespace_id: str
    instance_id: str
    rssi: Optional[int] = None
    tx_power: Optional[int] = None
    accuracy: float = 0.0
    resolved_proximity: Optional[Proximity] = None
    # 解码时由平台能力注入，不属于记录的值
    reports_mac_address: bool = field(default=False, repr=False)
    _proximity_state: ProximityState = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.rssi is None:
            object.__setattr__(self, "rssi", -1)
        if self.resolved_proximity is not None:
            state = ProximityState(value=self.resolved_proximity)
        else:
            state = ProximityState(value=classify(self.accuracy), derived=True)
        object.__setattr__(self, "_proximity_state", state)

    @property
    def technology(self) -> BeaconTechnology:
        return BeaconTechnology.from_type(self.type)

    @property
    def proximity(self) -> Proximity:
        return self._proximity_state.value

    @property
    def proximity_derived(self) -> bool:
        return self._proximity_state.derived

    def identity_key(self, include_mac: bool = False) -> Tuple[Any, ...]:
        key = self.technology.identity(self)
        if include_mac:
            return key + (self.mac_address,)
        return key

    def matches(self, other: object, reports_mac_address: bool) -> bool:
        """按信标技术判断是否为同一信标；reports_mac_address 为平台能力"""
        if self is other:
            return True
        if not isinstance(other, BeaconRecord) or self.type != other.type:
            return False
        if self.identity_key() != other.identity_key():
            return False

        match self.technology:
            case BeaconTechnology.ALTBEACON | BeaconTechnology.EDDYSTONE:
                return not reports_mac_address or self.mac_address == other.mac_address
            case _:
                return self.mac_address is None or self.mac_address == other.mac_address

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BeaconRecord):
            return NotImplemented
        return self.matches(
            other, reports_mac_address=self.reports_mac_address or other.reports_mac_address
        )

    def __hash__(self) -> int:
        # MAC 存在时总是参与哈希，与平台能力无关
        return hash(self.identity_key(include_mac=self.mac_address is not None))


def _uuid_major_minor(record: BeaconRecord) -> Tuple[Any, ...]:
    return (record.proximity_uuid, record.major, record.minor)


def _namespace_instance(record: BeaconRecord) -> Tuple[Any, ...]:
    return (record.namespace_id, record.instance_id)


_IDENTITY_KEYS = {
    BeaconTechnology.ALTBEACON: _uuid_major_minor,
    BeaconTechnology.EDDYSTONE: _namespace_instance,
    BeaconTechnology.OTHER: _uuid_major_minor,
}
