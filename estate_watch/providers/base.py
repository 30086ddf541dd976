import hashlib
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Sequence

from estate_watch.models import DetailInfo, Listing

logger = logging.getLogger(__name__)

RawItem = Mapping[str, Any]

NO_TITLE = "NO TITLE FOUND"
NO_ADDRESS = "NO ADDRESS FOUND"


def build_hash(*parts) -> str | None:
    """SHA-256 over the non-empty parts, joined by commas."""
    cleaned = [str(p) for p in parts if p is not None and str(p) != ""]
    if not cleaned:
        return None
    return hashlib.sha256(",".join(cleaned).encode("utf-8")).hexdigest()


def _compile(entry: str) -> re.Pattern:
    try:
        return re.compile(entry, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(entry), re.IGNORECASE)


def is_one_of(text: str | None, patterns: Iterable[str]) -> bool:
    """True when ``text`` contains or matches any entry, ignoring case.

    Entries are taken literally first ("3+ Zimmer"), then as regular expressions.
    """
    if not text:
        return False
    lowered = text.lower()
    return any(p.lower() in lowered or _compile(p).search(text)
               for p in patterns if p)


class Provider(ABC):
    """One listing source: search, detail lookup and mapping to :class:`Listing`."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Short unique provider id, e.g. 'immoscout'."""

    @property
    def name(self) -> str:
        return self.id

    # Appended by whoever builds query URLs to get newest-first results.
    sort_by_date_param: str | None = None

    @abstractmethod
    async def fetch_listings(self, query: str) -> Sequence[RawItem]:
        """Raw search results in source order; empty on any upstream failure."""

    @abstractmethod
    async def fetch_detail(self, native_id: str) -> DetailInfo | None:
        """Enrichment data for one listing, ``None`` on upstream failure."""

    @abstractmethod
    def normalize(self, raw: RawItem) -> Listing:
        """Map a raw item onto a Listing, with its stable id already assigned."""

    def compute_id(self, listing: Listing) -> str | None:
        return build_hash(listing.native_id, listing.price)

    def filter(self, listing: Listing, blacklist: Iterable[str] = ()) -> bool:
        """Keep the listing unless its title hits the blacklist."""
        return not is_one_of(listing.title, blacklist)
