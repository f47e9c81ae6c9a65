from __future__ import annotations

import copy
import logging
import os
import yaml

from typing import Callable, Any, List


logger = logging.getLogger(__name__)


def _env_or_default(env_key: str, default: Any, cast: Callable[[str], Any] = str) -> Any:
    v = os.environ.get(env_key)
    if v is not None:
        try:
            return cast(v)
        except Exception:
            return v
    return default


def _as_bool(v: str) -> bool:
    return v.lower() in ("1", "true", "yes")


def _as_list(v: str) -> List[str]:
    return [item.strip() for item in v.split(",") if item.strip()]


DEFAULT_CONFIG_PATH = _env_or_default(
    "BEACON_RECORDS_CONFIG",
    os.path.join(".", "config", "config.yaml"),
)


class ConfigManager:
    """配置管理类，负责读写YAML配置文件"""

    def __init__(self, config_file: str | None = None):
        self.config_file = config_file or DEFAULT_CONFIG_PATH
        self.default_config = {
            "platform": {
                "name": _env_or_default("BEACON_PLATFORM", "android"),
                # null 表示按平台名判断
                "reports_mac_address": _env_or_default("BEACON_REPORTS_MAC", None, _as_bool),
            },
            "decode": {
                "strict": _env_or_default("BEACON_DECODE_STRICT", False, _as_bool),
                "mac_filter": _env_or_default("BEACON_MAC_FILTER", [], _as_list),
                "proximity_filter": _env_or_default("BEACON_PROXIMITY_FILTER", [], _as_list),
            },
            "mqtt": {
                "ip": _env_or_default("BEACON_MQTT_IP", "localhost"),
                "port": _env_or_default("BEACON_MQTT_PORT", 1883, int),
                "uplink_topic": _env_or_default("BEACON_MQTT_UPLINK_TOPIC", "/beacon/records/{deviceId}"),
                "downlink_topic": _env_or_default("BEACON_MQTT_DOWNLINK_TOPIC", "/beacon/ranging/+"),
            },
            "paths": {
                "record_log": _env_or_default(
                    "BEACON_PATH_RECORD_LOG", os.path.join(".", "beacon", "records.csv")
                ),
            },
            "logging": {
                "level": _env_or_default("BEACON_LOG_LEVEL", "INFO"),
            },
        }
        self.load_config()

    def load_config(self) -> None:
        """加载配置文件，如果不存在则创建默认配置"""
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, "r", encoding="utf-8") as f:
                    self.config = yaml.safe_load(f) or {}
                self._merge_default_config()
            else:
                self.config = copy.deepcopy(self.default_config)
                self.save_config()
        except yaml.YAMLError as e:
            logger.warning("配置文件解析失败，使用默认配置: %s", e)
            self.config = copy.deepcopy(self.default_config)
            self.save_config()

    def _merge_default_config(self) -> None:
        def merge_dict(default, current):
            for key, value in default.items():
                if key not in current:
                    current[key] = copy.deepcopy(value)
                elif isinstance(value, dict) and isinstance(current[key], dict):
                    merge_dict(value, current[key])

        merge_dict(self.default_config, self.config)

    def save_config(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.config_file) or ".", exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                yaml.dump(
                    self.config,
                    f,
                    default_flow_style=False,
                    allow_unicode=True,
                    indent=2,
                )
        except OSError as e:
            logger.warning("保存配置文件失败: %s", e)

    # ---------- Accessors ----------
    def get_platform_config(self):
        return self.config["platform"]

    def get_decode_config(self):
        return self.config["decode"]

    def get_mqtt_config(self):
        return self.config["mqtt"]

    def get_paths(self):
        return self.config.get("paths", {})

    def get_record_log_path(self):
        return self.get_paths()["record_log"]

    def get_log_level(self) -> str:
        return str(self.config.get("logging", {}).get("level", "INFO")).upper()

    def set_platform_config(self, name, reports_mac_address=None):
        self.config["platform"]["name"] = name
        self.config["platform"]["reports_mac_address"] = reports_mac_address
        self.save_config()

    def set_decode_config(self, strict=False, mac_filter=None, proximity_filter=None):
        self.config["decode"]["strict"] = strict
        self.config["decode"]["mac_filter"] = list(mac_filter or [])
        self.config["decode"]["proximity_filter"] = list(proximity_filter or [])
        self.save_config()

    def set_mqtt_config(self, ip, port, uplink_topic=None, downlink_topic=None):
        self.config["mqtt"]["ip"] = ip
        self.config["mqtt"]["port"] = port
        if uplink_topic is not None:
            self.config["mqtt"]["uplink_topic"] = uplink_topic
        if downlink_topic is not None:
            self.config["mqtt"]["downlink_topic"] = downlink_topic
        self.save_config()
