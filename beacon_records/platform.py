from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config_manager import ConfigManager


# 能可靠上报 MAC 地址的平台
MAC_REPORTING_PLATFORMS = frozenset({"android"})


@dataclass(frozen=True)
class PlatformCapabilities:
    """宿主平台能力，只读；仅供相等性判断使用"""

    reports_mac_address: bool = False

    @classmethod
    def for_platform(cls, name: str | None) -> "PlatformCapabilities":
        normalized = (name or "").strip().lower()
        return cls(reports_mac_address=normalized in MAC_REPORTING_PLATFORMS)

    @classmethod
    def from_config(cls, config_manager: "ConfigManager") -> "PlatformCapabilities":
        platform_config = config_manager.get_platform_config()
        explicit = platform_config.get("reports_mac_address")
        if explicit is not None:
            return cls(reports_mac_address=bool(explicit))
        return cls.for_platform(platform_config.get("name"))
