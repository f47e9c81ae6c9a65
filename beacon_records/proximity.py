from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class Proximity(Enum):
    UNKNOWN = "unknown"
    IMMEDIATE = "immediate"
    NEAR = "near"
    FAR = "far"


# 距离分界（米）
IMMEDIATE_MAX_METERS = 1.0
FAR_MIN_METERS = 10.0


def classify(accuracy: Optional[float]) -> Proximity:
    """
    根据距离估计（米）推导接近程度：
    - None : unknown
    - accuracy <= 1.0 : immediate
    - 1.0 < accuracy < 10.0 : near
    - accuracy >= 10.0 : far

    accuracy == 0.0 归为 immediate，不视为 unknown。
    """
    if accuracy is None:
        return Proximity.UNKNOWN
    if accuracy <= IMMEDIATE_MAX_METERS:
        return Proximity.IMMEDIATE
    if accuracy < FAR_MIN_METERS:
        return Proximity.NEAR
    return Proximity.FAR


def parse_proximity_string(text: Any) -> Proximity:
    """字符串转换为 Proximity，无法识别时返回 unknown"""
    if not isinstance(text, str):
        return Proximity.UNKNOWN
    try:
        return Proximity(text)
    except ValueError:
        return Proximity.UNKNOWN


def proximity_to_string(proximity: Any) -> str:
    if isinstance(proximity, Proximity):
        return proximity.value
    return Proximity.UNKNOWN.value
