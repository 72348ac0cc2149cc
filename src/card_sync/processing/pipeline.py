"""同步流水线：读取目录页、有界并发执行单卡流程并汇总结果。"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from card_sync.core.config import SyncConfig
from card_sync.core.exceptions import ValidationError
from card_sync.core.models import ERROR_UNEXPECTED, CardOutcome, CatalogEntry, SyncResult
from card_sync.core.progress import ProgressUpdate
from card_sync.net.catalog import fetch_catalog_page
from card_sync.net.fetcher import Fetcher, HttpFetcher, open_session
from card_sync.processing.concurrency import map_limit
from card_sync.processing.uploader import AwsCliUploader, Uploader
from card_sync.processing.worker import SyncContext, sync_card

LOGGER = logging.getLogger(__name__)


ProgressCallback = Optional[Callable[[ProgressUpdate], None]]


async def sync_entries(
    entries: Sequence[CatalogEntry],
    context: SyncContext,
    progress_callback: ProgressCallback = None,
) -> SyncResult:
    """在并发上限内同步一批卡牌；单卡异常在此被捕获，不会影响其他卡牌。"""

    result = SyncResult()
    total = len(entries)
    completed = 0
    _emit_progress(progress_callback, completed, total, "开始同步")

    async def run_one(entry: CatalogEntry, index: int) -> CardOutcome:
        nonlocal completed
        try:
            outcome = await sync_card(entry, index, context)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Index [%d] - 未预期的异常: %s", index, entry.public_code)
            outcome = CardOutcome(
                index=index,
                public_code=entry.public_code,
                status=ERROR_UNEXPECTED,
                message=str(exc),
            )
        result.record(outcome)
        completed += 1
        _emit_progress(progress_callback, completed, total, f"{entry.public_code}: {outcome.status}")
        return outcome

    context.config.tmp_dir.mkdir(parents=True, exist_ok=True)
    await map_limit(entries, context.config.concurrency, run_one)

    _emit_progress(progress_callback, total, total, "同步完成")
    return result


async def sync_cards_page(
    config: SyncConfig,
    page: int,
    *,
    fetcher: Optional[Fetcher] = None,
    uploader: Optional[Uploader] = None,
    progress_callback: ProgressCallback = None,
) -> SyncResult:
    """同步目录中指定页的全部卡牌图片。

    未传入 ``fetcher`` 时创建共享的 aiohttp 会话；未传入 ``uploader`` 时使用 aws CLI。
    目录读取失败会直接抛出，单卡失败只体现在结果里。
    """

    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValidationError(f'"page" 必须是 >= 1 的整数，实际为: {page!r}')

    uploader = uploader or AwsCliUploader(config.storage)
    if fetcher is not None:
        return await _sync_page(config, page, fetcher, uploader, progress_callback)

    async with open_session(limit=config.concurrency * 2) as session:
        return await _sync_page(config, page, HttpFetcher(session), uploader, progress_callback)


async def _sync_page(
    config: SyncConfig,
    page: int,
    fetcher: Fetcher,
    uploader: Uploader,
    progress_callback: ProgressCallback,
) -> SyncResult:
    catalog_page = await fetch_catalog_page(fetcher, config.catalog, page)
    context = SyncContext(config=config, fetcher=fetcher, uploader=uploader)
    result = await sync_entries(catalog_page.items, context, progress_callback)
    LOGGER.info(
        "第 %d 页同步完成：上传 %d，已存在 %d，跳过 %d，失败 %d",
        page,
        len(result.uploaded),
        len(result.existing),
        len(result.skipped),
        len(result.failed),
    )
    return result


def _emit_progress(
    callback: ProgressCallback,
    completed: int,
    total: int,
    message: Optional[str] = None,
) -> None:
    if not callback:
        return
    callback(ProgressUpdate(total=total, completed=completed, message=message))
