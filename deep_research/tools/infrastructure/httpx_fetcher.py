"""HttpxUrlFetcher — concurrent URL fetches through a content-extraction proxy."""

import asyncio
import time

import httpx

from deep_research.tools.domain.fetch import (
    UrlFetchBatch,
    UrlFetchMetrics,
    UrlFetchResult,
    format_bytes,
)
from deep_research.tools.domain.observer import ToolObserver

_SEPARATOR = "\n\n---\n\n"


class HttpxUrlFetcher:
    """Fetches every URL of a batch concurrently, one attempt each.

    Each URL is requested as ``{proxy_base_url}{url}`` so that the proxy returns
    the page (or PDF) converted to markdown. A failing URL becomes an
    ``Error fetching ...`` string in its own result slot; the batch never raises.
    """

    def __init__(
        self,
        proxy_base_url: str,
        observer: ToolObserver,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._proxy_base_url = proxy_base_url
        self._observer = observer
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def fetch_urls(self, urls: list[str]) -> UrlFetchBatch:
        if not urls:
            return UrlFetchBatch(combined_text="", results=[])

        if self._client is not None:
            results = await self._fetch_all(client=self._client, urls=urls)
        else:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                results = await self._fetch_all(client=client, urls=urls)

        return UrlFetchBatch(
            combined_text=_SEPARATOR.join(result.content for result in results),
            results=results,
        )

    async def _fetch_all(
        self, client: httpx.AsyncClient, urls: list[str]
    ) -> list[UrlFetchResult]:
        # gather preserves input order, so results line up with urls.
        return list(
            await asyncio.gather(*(self._fetch_one(client=client, url=url) for url in urls))
        )

    async def _fetch_one(self, client: httpx.AsyncClient, url: str) -> UrlFetchResult:
        start = time.monotonic()
        try:
            response = await client.get(f"{self._proxy_base_url}{url}")
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            latency_ms = _elapsed_ms(start)
            reason = str(exc) or type(exc).__name__
            self._observer.url_fetch_failed(url=url, latency_ms=latency_ms, reason=reason)
            return _failed(url=url, reason=reason, latency_ms=latency_ms)

        latency_ms = _elapsed_ms(start)
        if not response.is_success:
            reason = f"{response.status_code} {response.reason_phrase}"
            self._observer.url_fetch_failed(url=url, latency_ms=latency_ms, reason=reason)
            return _failed(url=url, reason=reason, latency_ms=latency_ms)

        body = response.text
        size_bytes = len(response.content)
        self._observer.url_fetch_completed(
            url=url,
            status_code=response.status_code,
            latency_ms=latency_ms,
            size_bytes=size_bytes,
        )
        return UrlFetchResult(
            url=url,
            content=f"# Content from {url}\n\n{body}",
            metrics=UrlFetchMetrics(
                url=url,
                latency_ms=latency_ms,
                size_bytes=size_bytes,
                size_formatted=format_bytes(size_bytes),
            ),
        )


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _failed(url: str, reason: str, latency_ms: int) -> UrlFetchResult:
    return UrlFetchResult(
        url=url,
        content=f"Error fetching {url}: {reason}",
        metrics=UrlFetchMetrics(
            url=url,
            latency_ms=latency_ms,
            size_bytes=0,
            size_formatted=format_bytes(0),
        ),
    )
