from .base import ListingSource
from .indeed import IndeedRssSource
from .remoteok import RemoteOkSource
from .sample import SampleSource

from gigscout.config import Settings
from gigscout.log import get_logger

log = get_logger(__name__)

__all__ = [
    "ListingSource", "IndeedRssSource", "RemoteOkSource", "SampleSource",
    "get_sources",
]


def get_sources(settings: Settings) -> list[ListingSource]:
    common = {"min_relevance": settings.min_relevance, "batch_size": settings.batch_size}
    cfg = settings.sources
    sources: list[ListingSource] = []

    indeed = cfg.get("indeed")
    if indeed and indeed.enabled:
        kwargs = {"feed_url": indeed.url} if indeed.url else {}
        sources.append(IndeedRssSource(
            proxy_url=settings.rss_proxy_url,
            timeout=settings.http_timeout,
            **kwargs,
            **common,
        ))
        log.info("Registered source: Indeed (RSS)")

    remoteok = cfg.get("remoteok")
    if remoteok and remoteok.enabled:
        kwargs = {"api_url": remoteok.url} if remoteok.url else {}
        sources.append(RemoteOkSource(timeout=settings.http_timeout, **kwargs, **common))
        log.info("Registered source: RemoteOK (free, remote jobs)")

    sample = cfg.get("sample")
    if sample is None or sample.enabled:
        sources.append(SampleSource(**common))
        log.info("Registered source: AngelList sample gigs")

    if not sources:
        log.warning("All sources disabled, scrape cycles will find nothing")

    return sources
