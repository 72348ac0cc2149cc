"""卡牌目录接口的分页读取。"""

from __future__ import annotations

import logging
from urllib.parse import urlencode

from card_sync.core.config import CatalogConfig
from card_sync.core.models import CatalogEntry, CatalogPage
from card_sync.net.fetcher import Fetcher

LOGGER = logging.getLogger(__name__)


def build_catalog_url(config: CatalogConfig, page: int) -> str:
    query = urlencode({"sort": "public_code", "dir": 1, "page": page, "size": config.page_size})
    return f"{config.api_base_url}/cards?{query}"


async def fetch_catalog_page(fetcher: Fetcher, config: CatalogConfig, page: int) -> CatalogPage:
    """读取目录的一页。"""

    url = build_catalog_url(config, page)
    LOGGER.info("请求目录: %s", url)
    payload = await fetcher.get_json(url, config.timeout)
    catalog_page = CatalogPage.from_api(payload)
    LOGGER.info(
        "已获取第 %d/%d 页 | items=%d | total=%d",
        catalog_page.page,
        catalog_page.pages,
        len(catalog_page.items),
        catalog_page.total,
    )
    return catalog_page


async def collect_cards_by_set(fetcher: Fetcher, config: CatalogConfig) -> dict[str, list[CatalogEntry]]:
    """顺序读取全部分页，并按 set_id 分组；没有 set_id 的记录被忽略。"""

    first = await fetch_catalog_page(fetcher, config, 1)
    grouped: dict[str, list[CatalogEntry]] = {}

    for page_number in range(1, first.pages + 1):
        catalog_page = first if page_number == 1 else await fetch_catalog_page(fetcher, config, page_number)
        for entry in catalog_page.items:
            if not entry.set_id:
                continue
            grouped.setdefault(entry.set_id, []).append(entry)
            LOGGER.debug("卡牌 %s 归入系列 %s", entry.public_code, entry.set_id)

    for set_id, entries in grouped.items():
        LOGGER.info("系列 %s 共 %d 张卡牌", set_id, len(entries))
    return grouped
