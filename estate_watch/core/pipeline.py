import asyncio
import logging
from typing import Callable, Container, Sequence

from estate_watch.models import JobConfig, Listing
from estate_watch.providers.base import Provider

logger = logging.getLogger(__name__)

SeenCheck = Callable[[str], bool] | Container[str]


def _as_predicate(previously_seen: SeenCheck | None) -> Callable[[str], bool]:
    if previously_seen is None:
        return lambda _id: False
    if callable(previously_seen):
        return previously_seen
    return previously_seen.__contains__


class IngestionPipeline:
    """fetch -> normalize -> blacklist -> drop seen -> (enrich) for one job run.

    Nothing here raises for upstream trouble: a failed fetch is an empty
    cycle, a broken item is skipped, a failed detail lookup leaves the
    listing un-enriched.
    """

    def __init__(self, provider: Provider, enrich: bool = True):
        self.provider = provider
        self.enrich = enrich

    async def run(self, job: JobConfig,
                  previously_seen: SeenCheck | None = None) -> list[Listing]:
        if not job.enabled:
            logger.info("Job %s is disabled, skipping", job.key)
            return []

        try:
            raw_items = await self.provider.fetch_listings(job.url)
        except Exception as e:
            logger.error("[%s] fetch failed for job %s: %s", self.provider.id, job.key, e)
            return []
        if not raw_items:
            return []

        listings = self._normalize_all(job, raw_items)
        kept = [li for li in listings if self.provider.filter(li, job.blacklist)]

        seen = _as_predicate(previously_seen)
        new_ones = [li for li in kept if not seen(li.id)]
        logger.info("[%s] job %s: %d fetched, %d kept, %d new",
                    self.provider.id, job.key, len(raw_items), len(kept), len(new_ones))

        if self.enrich and new_ones:
            new_ones = await self.enrich_all(new_ones)
        return new_ones

    def _normalize_all(self, job: JobConfig, raw_items: Sequence) -> list[Listing]:
        out: list[Listing] = []
        ids: set[str] = set()
        for raw in raw_items:
            try:
                listing = self.provider.normalize(raw)
            except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
                logger.warning("[%s] job %s: skipping unparsable item: %r",
                               self.provider.id, job.key, e)
                continue
            if listing.id in ids:
                continue
            ids.add(listing.id)
            out.append(listing)
        return out

    async def enrich_all(self, listings: Sequence[Listing]) -> list[Listing]:
        # gather keeps input order
        return list(await asyncio.gather(*(self._enrich(li) for li in listings)))

    async def _enrich(self, listing: Listing) -> Listing:
        try:
            detail = await self.provider.fetch_detail(listing.native_id)
        except Exception as e:
            logger.warning("[%s] enrichment failed for %s: %s",
                           self.provider.id, listing.native_id, e)
            return listing
        if detail is None:
            return listing
        return listing.enriched(detail)
