# tests/test_http.py
import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from reachout.errors import FetchError
from reachout.fetchers.http import BROWSER_USER_AGENT, HttpFetcher


async def page(request):
    ua = request.headers.get("User-Agent", "")
    return web.Response(text=f"<html><body>{ua}</body></html>", content_type="text/html")


async def api(request):
    return web.json_response({"results": [{"company": {"display_name": "Acme"}}]})


async def missing(request):
    raise web.HTTPNotFound()


async def slow(request):
    await asyncio.sleep(2)
    return web.Response(text="late")


def with_server(check):
    app = web.Application()
    app.router.add_get("/page", page)
    app.router.add_get("/api", api)
    app.router.add_get("/missing", missing)
    app.router.add_get("/slow", slow)

    async def main():
        async with test_utils.TestServer(app) as server:
            async with HttpFetcher(timeout_s=1) as fetcher:
                return await check(fetcher, lambda path: str(server.make_url(path)))

    return asyncio.run(main())


def test_fetch_text_sends_browser_user_agent():
    async def check(fetcher, url):
        return await fetcher.fetch_text(url("/page"))

    assert BROWSER_USER_AGENT in with_server(check)


def test_fetch_json():
    async def check(fetcher, url):
        return await fetcher.fetch_json(url("/api"))

    assert with_server(check) == {"results": [{"company": {"display_name": "Acme"}}]}


def test_error_status_raises_fetch_error():
    async def check(fetcher, url):
        with pytest.raises(FetchError) as info:
            await fetcher.fetch_text(url("/missing"))
        return info.value

    error = with_server(check)
    assert error.status == 404
    assert "HTTP 404" in str(error)


def test_timeout_raises_fetch_error():
    async def check(fetcher, url):
        with pytest.raises(FetchError) as info:
            await fetcher.fetch_text(url("/slow"))
        return info.value

    error = with_server(check)
    assert error.cause is not None
