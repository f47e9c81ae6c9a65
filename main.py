"""
入口转发

  - 包名: beacon_records
  - CLI: beacon-records

此文件仅用于兼容 `python main.py` 的运行方式，会转发到 `beacon_records.cli:main`。
"""

from beacon_records.cli import main as _cli_main
from beacon_records.cli import setup_logging as _setup_logging


def main():
    # 确保直接运行也有全局日志输出
    _setup_logging()
    raise SystemExit(_cli_main())


if __name__ == "__main__":  # pragma: no cover
    main()
