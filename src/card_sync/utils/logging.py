"""日志初始化工具。"""

from __future__ import annotations

import logging


def setup_logging(level: int = logging.INFO) -> None:
    """初始化项目日志配置。"""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # aiohttp 的访问日志对同步任务没有价值。
    logging.getLogger("aiohttp").setLevel(max(level, logging.WARNING))
