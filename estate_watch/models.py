from dataclasses import dataclass, field, replace
from typing import Any, Mapping


@dataclass(frozen=True)
class Salutation:
    gender: str               # "male" | "female"
    last_name: str


@dataclass(frozen=True)
class Address:
    house_number: str | None = None
    street: str | None = None
    neighbourhood: str | None = None
    suburb: str | None = None
    borough: str | None = None
    city: str | None = None   # city, town or village
    postcode: str | None = None
    country: str | None = None
    country_code: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class DetailInfo:
    native_id: str
    room_count: int | None = None
    suburb: str | None = None
    salutation: Salutation | None = None


@dataclass(frozen=True)
class Listing:
    id: str                   # build_hash(native_id, price), stable across polls
    native_id: str            # id used by the source itself
    source: str               # e.g. "immoscout"
    title: str
    price: str | None
    size: str | None
    link: str
    address: str
    room_count: int | None = None
    suburb: str | None = None
    salutation: Salutation | None = None

    def enriched(self, detail: DetailInfo) -> "Listing":
        """Copy with the non-empty enrichment fields of ``detail`` merged in."""
        changes = {}
        if detail.room_count is not None:
            changes["room_count"] = detail.room_count
        if detail.suburb is not None:
            changes["suburb"] = detail.suburb
        if detail.salutation is not None:
            changes["salutation"] = detail.salutation
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class NotificationChannel:
    id: str                   # adapter id, e.g. "telegram"
    settings: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JobConfig:
    key: str
    url: str                  # already in the provider's query form
    provider: str = "immoscout"
    enabled: bool = True
    blacklist: frozenset[str] = frozenset()
    notification_channels: tuple[NotificationChannel, ...] = ()
