"""带超时的 HTTP 请求封装（GET / HEAD）。"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Protocol

import aiohttp

from card_sync.core.exceptions import CatalogFormatError, TransportError, UpstreamStatusError

LOGGER = logging.getLogger(__name__)

BODY_PREVIEW_CHARS = 200
USER_AGENT = "card-sync/0.1"


class ExistenceStatus(Enum):
    """HEAD 探测结果；UNKNOWN 由调用方按 MISSING 处理。"""

    EXISTS = "exists"
    MISSING = "missing"
    UNKNOWN = "unknown"


class Fetcher(Protocol):
    def head(self, url: str, timeout: float) -> Awaitable[ExistenceStatus]: ...

    def get_bytes(self, url: str, timeout: float) -> Awaitable[bytes]: ...

    def get_json(self, url: str, timeout: float) -> Awaitable[Any]: ...


@asynccontextmanager
async def open_session(limit: int = 16) -> AsyncIterator[aiohttp.ClientSession]:
    """创建整个同步任务共享的 ClientSession。"""

    connector = aiohttp.TCPConnector(limit=max(limit, 1), ttl_dns_cache=300)
    async with aiohttp.ClientSession(connector=connector, headers={"User-Agent": USER_AGENT}) as session:
        yield session


class HttpFetcher:
    """单次请求级别的超时控制；超时只中止当前请求，不影响其他任务。"""

    def __init__(self, session: aiohttp.ClientSession) -> None:
        self.session = session

    async def get_bytes(self, url: str, timeout: float) -> bytes:
        """GET 请求并返回原始字节，非 2xx 抛出 UpstreamStatusError。"""

        return await self._get(url, timeout)

    async def get_json(self, url: str, timeout: float) -> Any:
        payload = await self._get(url, timeout, headers={"Accept": "application/json"})
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise CatalogFormatError(f"无法解析 JSON 响应: {url}") from exc

    async def head(self, url: str, timeout: float) -> ExistenceStatus:
        """HEAD 探测：200 -> EXISTS，404 -> MISSING，其余一律 UNKNOWN。"""

        try:
            async with self.session.head(
                url, timeout=aiohttp.ClientTimeout(total=timeout), allow_redirects=True
            ) as response:
                status = response.status
        except asyncio.TimeoutError:
            LOGGER.warning("HEAD %s 超时（按不存在处理）", url)
            return ExistenceStatus.UNKNOWN
        except aiohttp.ClientError as exc:
            LOGGER.warning("HEAD %s 失败（按不存在处理）: %s", url, exc)
            return ExistenceStatus.UNKNOWN

        if status == 200:
            return ExistenceStatus.EXISTS
        if status == 404:
            return ExistenceStatus.MISSING

        # 403/5xx 等无法判断是否存在。
        LOGGER.warning("HEAD %s -> %d（按不存在处理）", url, status)
        return ExistenceStatus.UNKNOWN

    async def _get(self, url: str, timeout: float, headers: dict[str, str] | None = None) -> bytes:
        try:
            async with self.session.get(
                url, timeout=aiohttp.ClientTimeout(total=timeout), headers=headers
            ) as response:
                if not 200 <= response.status < 300:
                    body = await _safe_text(response)
                    raise UpstreamStatusError(url, response.status, body[:BODY_PREVIEW_CHARS])
                return await response.read()
        except asyncio.TimeoutError as exc:
            raise TransportError(f"请求超时（{timeout:g}s）: {url}") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"请求失败: {url}: {exc}") from exc


async def _safe_text(response: aiohttp.ClientResponse) -> str:
    try:
        return await response.text(errors="replace")
    except (aiohttp.ClientError, asyncio.TimeoutError):
        return "<unreadable body>"
