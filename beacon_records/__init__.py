"""Beacon Records package.

This package provides:
- Proximity / classify: accuracy-based proximity classification
- BeaconRecord: immutable beacon entity with technology-aware equality
- BeaconCodec: decode/encode of loosely-typed wire maps, batch filtering
- PlatformCapabilities: host platform mac-address reporting flag
- ConfigManager: YAML-based configuration management
- BeaconStore: CSV record log (pandas)
- MQTTBeaconProcessor: MQTT ingestion of ranged beacon arrays
"""

from .proximity import Proximity, classify, parse_proximity_string, proximity_to_string
from .models import BeaconRecord, BeaconTechnology, ProximityState
from .codec import BeaconCodec, DecodeError, DecodeResult, parse_double, parse_int
from .platform import PlatformCapabilities
from .config_manager import ConfigManager
from .beacon_store import BeaconStore
from .mqtt_processor import MQTTBeaconProcessor

__all__ = [
    "Proximity",
    "classify",
    "parse_proximity_string",
    "proximity_to_string",
    "BeaconRecord",
    "BeaconTechnology",
    "ProximityState",
    "BeaconCodec",
    "DecodeError",
    "DecodeResult",
    "parse_double",
    "parse_int",
    "PlatformCapabilities",
    "ConfigManager",
    "BeaconStore",
    "MQTTBeaconProcessor",
]
