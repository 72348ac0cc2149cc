"""HTTP 请求封装测试：使用本地 aiohttp 测试服务器。"""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import test_utils, web

from card_sync.core.exceptions import CatalogFormatError, TransportError, UpstreamStatusError
from card_sync.net.fetcher import ExistenceStatus, HttpFetcher


def _make_app() -> web.Application:
    async def image(request: web.Request) -> web.Response:
        return web.Response(body=b"\x89PNG-bytes", content_type="image/png")

    async def catalog(request: web.Request) -> web.Response:
        return web.json_response({"items": [], "pages": 1})

    async def broken(request: web.Request) -> web.Response:
        return web.Response(status=500, text="upstream exploded " * 50)

    async def not_json(request: web.Request) -> web.Response:
        return web.Response(text="<html>nope</html>", content_type="text/html")

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(2)
        return web.Response(text="late")

    app = web.Application()
    app.router.add_get("/cards/OGN-001.webp", image)
    app.router.add_get("/cards", catalog)
    app.router.add_route("*", "/broken", broken)
    app.router.add_get("/html", not_json)
    app.router.add_route("*", "/slow", slow)
    return app


def _run(scenario):
    async def runner():
        async with test_utils.TestServer(_make_app()) as server:
            async with aiohttp.ClientSession() as session:
                return await scenario(HttpFetcher(session), lambda path: str(server.make_url(path)))

    return asyncio.run(runner())


def test_head_distinguishes_exists_missing_unknown() -> None:
    async def scenario(fetcher: HttpFetcher, url):
        return (
            await fetcher.head(url("/cards/OGN-001.webp"), 5),
            await fetcher.head(url("/cards/OGN-999.webp"), 5),
            await fetcher.head(url("/broken"), 5),
        )

    exists, missing, unknown = _run(scenario)

    assert exists is ExistenceStatus.EXISTS
    assert missing is ExistenceStatus.MISSING
    assert unknown is ExistenceStatus.UNKNOWN


def test_head_timeout_is_unknown() -> None:
    async def scenario(fetcher: HttpFetcher, url):
        return await fetcher.head(url("/slow"), 0.2)

    assert _run(scenario) is ExistenceStatus.UNKNOWN


def test_get_bytes_returns_payload() -> None:
    async def scenario(fetcher: HttpFetcher, url):
        return await fetcher.get_bytes(url("/cards/OGN-001.webp"), 5)

    assert _run(scenario) == b"\x89PNG-bytes"


def test_get_bytes_non_2xx_raises_with_preview() -> None:
    async def scenario(fetcher: HttpFetcher, url):
        return await fetcher.get_bytes(url("/broken"), 5)

    with pytest.raises(UpstreamStatusError) as excinfo:
        _run(scenario)

    assert excinfo.value.status == 500
    assert excinfo.value.body_preview.startswith("upstream exploded")
    assert len(excinfo.value.body_preview) <= 200


def test_get_bytes_timeout_raises_transport_error() -> None:
    async def scenario(fetcher: HttpFetcher, url):
        return await fetcher.get_bytes(url("/slow"), 0.2)

    with pytest.raises(TransportError):
        _run(scenario)


def test_get_json_decodes_and_rejects_non_json() -> None:
    async def ok(fetcher: HttpFetcher, url):
        return await fetcher.get_json(url("/cards"), 5)

    async def bad(fetcher: HttpFetcher, url):
        return await fetcher.get_json(url("/html"), 5)

    assert _run(ok) == {"items": [], "pages": 1}
    with pytest.raises(CatalogFormatError):
        _run(bad)
