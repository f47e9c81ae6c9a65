from __future__ import annotations

import json
import logging
import threading
from typing import List, Optional

import paho.mqtt.client as mqtt
from paho.mqtt.client import MQTTMessage

from .beacon_store import BeaconStore
from .codec import BeaconCodec, filters_from_config
from .config_manager import ConfigManager
from .models import BeaconRecord


logger = logging.getLogger(__name__)


class MQTTBeaconProcessor:
    """接收测距端上报的原始信标数组，解码、过滤、记录并转发"""

    def __init__(self, config_manager: ConfigManager, beacon_store: Optional[BeaconStore] = None):
        self.lock = threading.Lock()
        self.config_manager = config_manager
        self.client: Optional[mqtt.Client] = None

        self.codec = BeaconCodec.from_config(self.config_manager)
        self.mac_filter, self.proximity_filter = filters_from_config(self.config_manager)

        self.beacon_store = beacon_store or BeaconStore(self.config_manager, self.codec)
        self.beacon_store.load()

    # ---------- Core processing ----------
    def process_payload(self, payload: str) -> List[BeaconRecord]:
        raw_items = json.loads(payload)
        decoded = self.codec.decode_batch(raw_items, self.mac_filter, self.proximity_filter)
        records = [r for r in decoded if r is not None]
        logger.info("收到 %d 条信标，通过过滤 %d 条", len(decoded), len(records))
        if records:
            self.beacon_store.add(records)
        return records

    @staticmethod
    def device_id_from_topic(topic: str) -> str:
        return topic.rstrip("/").rsplit("/", 1)[-1]

    # ---------- MQTT ----------
    def start_mqtt_client(self):
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
        self.client.on_connect = self.on_connect
        self.client.on_message = self.on_message
        try:
            mqtt_config = self.config_manager.get_mqtt_config()
            self.client.connect(mqtt_config["ip"], mqtt_config["port"], 60)
            logger.info("连接到MQTT服务器 %s:%s", mqtt_config["ip"], mqtt_config["port"])
            self.client.loop_forever()
        except OSError as e:
            logger.error("MQTT连接错误: %s", e)

    def stop_mqtt_client(self):
        if self.client:
            try:
                self.client.disconnect()
                self.client.loop_stop()
                logger.info("MQTT连接已断开")
            except Exception as e:
                logger.error("断开MQTT连接时出错: %s", e)

    # ---------- MQTT handlers ----------
    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        if not reason_code.is_failure:
            logger.info("成功连接到MQTT服务器")
            mqtt_config = self.config_manager.get_mqtt_config()
            topic = mqtt_config.get("downlink_topic", "/beacon/ranging/+")
            client.subscribe(topic)
            logger.info("已订阅主题: %s", topic)
        else:
            logger.error("连接失败，返回码: %s", reason_code)

    def on_message(self, client, userdata, msg: MQTTMessage):
        try:
            payload = msg.payload.decode("utf-8")
            with self.lock:
                records = self.process_payload(payload)
                if not records:
                    logger.warning("消息无有效信标数据: %s", payload)
                    return
                mqtt_config = self.config_manager.get_mqtt_config()
                topic = mqtt_config.get("uplink_topic", "/beacon/records/{deviceId}")
                device_id = self.device_id_from_topic(msg.topic)
                message = json.dumps(self.codec.encode_batch(records), separators=(",", ":"))
                client.publish(topic.format(deviceId=device_id), message)
        except Exception as e:
            logger.exception("处理消息时出错: %s", e)
