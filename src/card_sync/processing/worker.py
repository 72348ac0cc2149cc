"""单张卡牌的同步流程：探测 -> 下载 -> 转码 -> 上传 -> 清理。"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from card_sync.core.config import SyncConfig
from card_sync.core.exceptions import CardSyncError, TranscodeError
from card_sync.core.identity import build_object_key, build_public_url, resolve_card_id
from card_sync.core.models import (
    ERROR_DOWNLOAD,
    ERROR_TRANSCODE,
    ERROR_UPLOAD,
    ERROR_WRITE,
    EXISTS,
    SKIP_INVALID_CODE,
    SKIP_MISSING_IMAGE,
    UPLOADED,
    CardOutcome,
    CatalogEntry,
)
from card_sync.net.fetcher import ExistenceStatus, Fetcher
from card_sync.processing.transcode import WEBP_CONTENT_TYPE, WEBP_EXTENSION, transcode_to_webp
from card_sync.processing.uploader import Uploader

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncContext:
    """一次同步任务内所有卡牌共享的协作对象。"""

    config: SyncConfig
    fetcher: Fetcher
    uploader: Uploader


async def sync_card(entry: CatalogEntry, index: int, context: SyncContext) -> CardOutcome:
    """执行单张卡牌的完整同步流程，各阶段失败均转为结果记录。"""

    config = context.config
    card_id = resolve_card_id(entry.public_code)
    if not card_id:
        LOGGER.warning("Index [%d] - 跳过: %s - public_code 缺失或格式异常", index, entry.public_code)
        return CardOutcome(index=index, public_code=entry.public_code, status=SKIP_INVALID_CODE)

    object_key = build_object_key(card_id, prefix=config.object_prefix, extension=WEBP_EXTENSION)

    def outcome(status: str, message: str | None = None) -> CardOutcome:
        return CardOutcome(
            index=index,
            public_code=entry.public_code,
            status=status,
            card_id=card_id,
            object_key=object_key,
            message=message,
        )

    check_url = build_public_url(config.check_base_url, object_key)
    existence = await context.fetcher.head(check_url, config.timeouts.head)
    if existence is ExistenceStatus.EXISTS:
        LOGGER.info("Index [%d] - 已存在: %s", index, card_id)
        return outcome(EXISTS)

    if not entry.image_url:
        LOGGER.warning("Index [%d] - %s 缺少 image_url，跳过", index, card_id)
        return outcome(SKIP_MISSING_IMAGE)

    LOGGER.info("Index [%d] - 下载: %s <- %s", index, card_id, entry.image_url)
    try:
        original = await context.fetcher.get_bytes(entry.image_url, config.timeouts.download)
    except CardSyncError as exc:
        LOGGER.error("Index [%d] - 下载失败: %s: %s", index, card_id, exc)
        return outcome(ERROR_DOWNLOAD, str(exc))

    try:
        webp = await asyncio.to_thread(transcode_to_webp, original, config.webp_quality)
    except TranscodeError as exc:
        LOGGER.error("Index [%d] - 转码失败: %s: %s", index, card_id, exc)
        return outcome(ERROR_TRANSCODE, str(exc))

    temp_path = config.tmp_dir / f"riftbound-{card_id}-{uuid.uuid4()}.{WEBP_EXTENSION}"
    try:
        try:
            await asyncio.to_thread(temp_path.write_bytes, webp)
        except OSError as exc:
            LOGGER.error("Index [%d] - 写入临时文件失败: %s: %s", index, temp_path, exc)
            return outcome(ERROR_WRITE, str(exc))

        LOGGER.info("Index [%d] - 上传: s3://%s/%s", index, config.storage.bucket, object_key)
        try:
            await context.uploader.upload(temp_path, object_key, WEBP_CONTENT_TYPE, config.cache_control)
        except CardSyncError as exc:
            LOGGER.error("Index [%d] - 上传失败: %s: %s", index, card_id, exc)
            return outcome(ERROR_UPLOAD, str(exc))
    finally:
        _remove_quietly(temp_path)

    public_url = build_public_url(config.cdn_base_url, object_key)
    LOGGER.info("Index [%d] - 已上传: %s -> %s", index, card_id, public_url)
    return outcome(UPLOADED, public_url)


def _remove_quietly(path: Path) -> None:
    """尽力删除临时文件，失败只记录 DEBUG 日志。"""

    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        LOGGER.debug("删除临时文件失败 %s: %s", path, exc)
