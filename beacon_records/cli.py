from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading

from .codec import BeaconCodec, DecodeError
from .config_manager import ConfigManager
from .mqtt_processor import MQTTBeaconProcessor
from .platform import PlatformCapabilities
from .proximity import Proximity, parse_proximity_string

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | int = logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # 已配置过时 basicConfig 不生效，需单独设置级别
    logging.getLogger().setLevel(level)


def run_mqtt(args):
    config = ConfigManager(args.config)
    setup_logging(config.get_log_level())
    processor = MQTTBeaconProcessor(config)

    t = threading.Thread(target=processor.start_mqtt_client, daemon=True)
    t.start()

    # graceful shutdown
    def handle_sigint(sig, frame):
        processor.stop_mqtt_client()
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)
    signal.signal(signal.SIGTERM, handle_sigint)

    t.join()


def decode_file(args):
    """解析 JSON 数组文件，每行输出一条记录（被过滤的位置输出 null）"""
    config = ConfigManager(args.config)
    setup_logging(config.get_log_level())
    codec = BeaconCodec(
        capabilities=PlatformCapabilities.from_config(config),
        strict=args.strict or bool(config.get_decode_config().get("strict", False)),
    )
    with open(args.file, "r", encoding="utf-8") as f:
        raw_items = json.load(f)

    proximities = [parse_proximity_string(p) for p in args.proximity]
    try:
        records = codec.decode_batch(raw_items, args.mac, proximities)
    except DecodeError as e:
        logger.error("解析失败，缺少必需字段: %s", e.field)
        return 1
    for record in records:
        print(codec.to_display_string(record) if record is not None else "null")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="beacon-records", description="Beacon Records CLI")
    parser.add_argument("--config", default=None, help="配置文件路径，默认读取 ./config/config.yaml 或环境变量 BEACON_RECORDS_CONFIG")
    sub = parser.add_subparsers(dest="cmd")

    p_run = sub.add_parser("run", help="运行 MQTT 信标记录服务")
    p_run.set_defaults(func=run_mqtt)

    p_decode = sub.add_parser("decode", help="解析信标 JSON 数组文件")
    p_decode.add_argument("file", help="JSON 文件路径")
    p_decode.add_argument("--mac", action="append", default=[], help="MAC 地址过滤，可重复")
    p_decode.add_argument(
        "--proximity",
        action="append",
        default=[],
        choices=[p.value for p in Proximity],
        help="接近程度过滤，可重复",
    )
    p_decode.add_argument("--strict", action="store_true", help="缺少必需字段时报错")
    p_decode.set_defaults(func=decode_file)

    args = parser.parse_args(argv)
    # 无子命令时默认启动服务
    if not hasattr(args, "func"):
        return run_mqtt(args)
    return args.func(args)


if __name__ == "__main__":
    main()
