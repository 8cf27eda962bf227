# tests/test_providers.py
import asyncio
import urllib.parse

import pytest

from reachout.errors import ConfigError, FetchError
from reachout.models import JobListing
from reachout.providers.adzuna import AdzunaSource, parse_listing
from reachout.providers.discovery import (
    WebsiteDiscovery,
    company_query,
    parse_result_links,
    unwrap_result_link,
)

from conftest import FakeFetcher


def results_page(*hrefs):
    links = "".join(f'<div class="result"><a class="result__a" href="{h}">r</a></div>' for h in hrefs)
    return f"<html><body>{links}<a href='https://ads.test'>ad</a></body></html>"


# ----------------------------------------------------------------------
# Website discovery
# ----------------------------------------------------------------------
def test_result_links_keep_order_and_cap():
    html = results_page(*(f"https://site{i}.com" for i in range(8)))
    assert parse_result_links(html, max_results=3) == [
        "https://site0.com",
        "https://site1.com",
        "https://site2.com",
    ]


def test_relative_and_non_http_links_are_dropped():
    html = results_page("/relative", "ftp://files.test", "https://ok.com", "javascript:void(0)")
    assert parse_result_links(html, max_results=5) == ["https://ok.com"]


def test_redirect_links_are_unwrapped():
    target = "https://www.acme.com/about"
    href = "//duckduckgo.com/l/?uddg=" + urllib.parse.quote(target, safe="") + "&rut=abc"
    assert unwrap_result_link(href) == target
    assert parse_result_links(results_page(href)) == [target]


def test_fewer_results_than_requested():
    assert parse_result_links(results_page("https://only.com"), max_results=5) == ["https://only.com"]
    assert parse_result_links("<html><body>blocked</body></html>") == []


def test_company_query():
    assert company_query("  Acme   Ltd ") == "Acme Ltd company website"
    assert company_query("Acme", suffix="careers") == "Acme careers"


def test_search_builds_encoded_url_and_parses():
    discovery = WebsiteDiscovery(fetch_page=None)
    url = discovery.build_search_url("Acme & Sons company website")
    assert url == "https://duckduckgo.com/html?q=Acme%20%26%20Sons%20company%20website"

    fetcher = FakeFetcher({url: results_page("https://acme.com", "https://acme.co.uk")})
    discovery = WebsiteDiscovery(fetcher.fetch_text)
    assert asyncio.run(discovery.search("Acme & Sons company website")) == [
        "https://acme.com",
        "https://acme.co.uk",
    ]


def test_search_failure_returns_empty():
    fetcher = FakeFetcher()  # search page 404s
    discovery = WebsiteDiscovery(fetcher.fetch_text)
    assert asyncio.run(discovery.search("Nobody company website")) == []


# ----------------------------------------------------------------------
# Adzuna listing source
# ----------------------------------------------------------------------
RAW_JOB = {
    "company": {"display_name": "Acme Ltd"},
    "description": "Build things",
    "location": {"display_name": "London, UK"},
    "created": "2024-05-01T10:00:00Z",
}


def test_parse_listing():
    assert parse_listing(RAW_JOB) == JobListing(
        company_name="Acme Ltd",
        job_description="Build things",
        location="London, UK",
        listing_date="2024-05-01T10:00:00Z",
    )


def test_parse_listing_tolerates_missing_fields():
    listing = parse_listing({"description": "No company"})
    assert listing == JobListing(company_name="", job_description="No company", location="", listing_date="")
    assert parse_listing("not a dict") is None


def test_missing_credentials_raise_config_error(monkeypatch):
    monkeypatch.delenv("REACHOUT_ADZUNA_APP_ID", raising=False)
    monkeypatch.delenv("REACHOUT_ADZUNA_APP_KEY", raising=False)
    with pytest.raises(ConfigError):
        AdzunaSource()


def test_credentials_from_env(monkeypatch):
    monkeypatch.setenv("REACHOUT_ADZUNA_APP_ID", "id-1")
    monkeypatch.setenv("REACHOUT_ADZUNA_APP_KEY", "key-1")
    source = AdzunaSource(country="IN", results_per_page=500)
    url = source.page_url(55)
    parsed = urllib.parse.urlsplit(url)
    assert parsed.path == "/v1/api/jobs/in/search/55"
    params = dict(urllib.parse.parse_qsl(parsed.query))
    assert params["app_id"] == "id-1"
    assert params["app_key"] == "key-1"
    assert params["results_per_page"] == "50"
    assert "what" not in params


def test_fetch_page_normalizes_results():
    source = AdzunaSource(app_id="a", app_key="b", what="python")
    url = source.page_url(2)
    fetcher = FakeFetcher(json_pages={url: {"results": [RAW_JOB, 42, dict(RAW_JOB, company={})]}})

    listings = asyncio.run(source.fetch_page(fetcher, 2))

    assert [l.company_name for l in listings] == ["Acme Ltd", ""]
    assert source.stats.collected == 2
    assert source.stats.errors == 1


def test_fetch_page_unexpected_payload_is_empty():
    source = AdzunaSource(app_id="a", app_key="b")
    fetcher = FakeFetcher(json_pages={source.page_url(1): {"error": "quota"}})
    assert asyncio.run(source.fetch_page(fetcher, 1)) == []
    assert source.stats.errors == 1


def test_fetch_page_propagates_fetch_errors():
    source = AdzunaSource(app_id="a", app_key="b")
    fetcher = FakeFetcher(json_pages={source.page_url(1): FetchError(source.page_url(1), status=500)})
    with pytest.raises(FetchError):
        asyncio.run(source.fetch_page(fetcher, 1))


@pytest.mark.live
def test_live_duckduckgo_search():
    from reachout.fetchers.http import HttpFetcher

    async def main():
        async with HttpFetcher() as fetcher:
            return await WebsiteDiscovery(fetcher.fetch_text).search("Python Software Foundation company website")

    results = asyncio.run(main())
    assert all(r.startswith("http") for r in results)
