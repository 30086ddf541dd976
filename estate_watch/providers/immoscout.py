"""ImmoScout24 through its (undocumented) mobile API.

Endpoints used:

- ``POST /search/list?<search params>`` with a JSON body
  ``{"supportedResultListTypes": [], "userData": {}}`` returns the result list.
- ``GET /expose/<id>`` returns the details of one listing.

The API only answers requests carrying the app's User-Agent. Search URLs are
expected in mobile form already; translating web search links is done by
the caller.
"""
from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Mapping, Sequence

import requests

from estate_watch.models import DetailInfo, Listing
from estate_watch.providers.base import (NO_ADDRESS, NO_TITLE, Provider,
                                         RawItem, build_hash)
from estate_watch.services.geocoding import GeocodingClient
from estate_watch.utils.salutation import parse_salutation

logger = logging.getLogger(__name__)

MOBILE_API_URL = "https://api.mobile.immobilienscout24.de"
BASE_URL = "https://www.immobilienscout24.de/"

HEADERS = {
    "User-Agent": "ImmoScout24_1410_30_._",
    "Content-Type": "application/json",
    "Accept": "application/json",
}
DETAIL_HEADERS = {**HEADERS, "Accept-Language": "de-DE"}

SEARCH_BODY = {"supportedResultListTypes": [], "userData": {}}

ROOMS_LABEL = "Zimmer"

# "Hauptstr. 1, Mitte (Mitte), Berlin" -> "Hauptstr. 1, Mitte"
_DISTRICT_SUFFIX = re.compile(r"\(.*\),.*$")
_LEADING_INT = re.compile(r"^\s*(\d+)")


def _blank(value) -> bool:
    return value is None or len(value) == 0


def _section(body: Mapping[str, Any], section_type: str) -> Mapping[str, Any] | None:
    sections = body.get("sections")
    if not isinstance(sections, list):
        return None
    for section in sections:
        if isinstance(section, Mapping) and section.get("type") == section_type:
            return section
    return None


def parse_room_count(text) -> int | None:
    if text is None:
        return None
    match = _LEADING_INT.match(str(text))
    return int(match.group(1)) if match else None


class ImmoscoutProvider(Provider):
    sort_by_date_param = "sorting=-firstactivation"

    def __init__(self, session: requests.Session | None = None,
                 geocoder: GeocodingClient | None = None,
                 timeout: float = 60):
        # Reuse a session for keep-alive + connection pooling
        self._session = session or requests.Session()
        self._geocoder = geocoder or GeocodingClient()
        self._timeout = timeout

    @property
    def id(self) -> str:
        return "immoscout"

    @property
    def name(self) -> str:
        return "Immoscout"

    async def fetch_listings(self, query: str) -> Sequence[RawItem]:
        try:
            resp = await asyncio.to_thread(
                self._session.post, query,
                headers=HEADERS, json=SEARCH_BODY, timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("Error fetching listings from ImmoScout mobile API: %s", e)
            return []

        if not resp.ok:
            logger.error("Error fetching listings from ImmoScout mobile API: %s %s",
                         resp.status_code, resp.reason)
            return []

        try:
            data = resp.json()
        except ValueError as e:
            logger.error("ImmoScout search returned malformed JSON: %s", e)
            return []

        if not isinstance(data, Mapping):
            logger.error("ImmoScout search returned unexpected payload %r", type(data))
            return []

        out: list[RawItem] = []
        for result in data.get("resultListItems") or []:
            # ads and hints are mixed into the result list
            if not isinstance(result, Mapping) or result.get("type") != "EXPOSE_RESULT":
                continue
            item = result.get("item")
            if isinstance(item, Mapping):
                out.append(item)
        return out

    def normalize(self, raw: RawItem) -> Listing:
        native_id = str(raw["id"])
        attributes = raw.get("attributes") or []
        price = attributes[0].get("value") if len(attributes) > 0 else None
        size = attributes[1].get("value") if len(attributes) > 1 else None

        title = raw.get("title")
        title = NO_TITLE if _blank(title) else title.replace("NEU", "")

        address = (raw.get("address") or {}).get("line")
        address = NO_ADDRESS if _blank(address) else _DISTRICT_SUFFIX.sub("", address).strip()

        return Listing(
            id=build_hash(native_id, price),
            native_id=native_id,
            source=self.id,
            title=title,
            price=price,
            size=size,
            link=f"{BASE_URL}expose/{native_id}",
            address=address,
        )

    async def fetch_detail(self, native_id: str) -> DetailInfo | None:
        try:
            resp = await asyncio.to_thread(
                self._session.get, f"{MOBILE_API_URL}/expose/{native_id}",
                headers=DETAIL_HEADERS, timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("Error fetching listing %s from ImmoScout mobile API: %s", native_id, e)
            return None

        if not resp.ok:
            logger.error("Error fetching listing %s from ImmoScout mobile API: %s %s",
                         native_id, resp.status_code, resp.reason)
            return None

        try:
            body = resp.json()
        except ValueError as e:
            logger.error("ImmoScout expose %s returned malformed JSON: %s", native_id, e)
            return None
        if not isinstance(body, Mapping):
            return None

        # each field degrades on its own
        try:
            room_count = self._room_count(body)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Room count unreadable for expose %s: %r", native_id, e)
            room_count = None
        try:
            salutation = self._salutation(body)
        except (TypeError, AttributeError) as e:
            logger.warning("Contact unreadable for expose %s: %r", native_id, e)
            salutation = None

        return DetailInfo(
            native_id=native_id,
            room_count=room_count,
            suburb=await self._suburb(native_id, body),
            salutation=salutation,
        )

    def _room_count(self, body: Mapping[str, Any]) -> int | None:
        section = _section(body, "TOP_ATTRIBUTES")
        if section is None:
            return None
        attributes = section.get("attributes")
        if not isinstance(attributes, list):
            return None
        for attr in attributes:
            if isinstance(attr, Mapping) and attr.get("label") == ROOMS_LABEL:
                return parse_room_count(attr.get("text"))
        return None

    async def _suburb(self, native_id: str, body: Mapping[str, Any]) -> str | None:
        try:
            section = _section(body, "MAP")
            location = section.get("location") if section else None
            if not isinstance(location, Mapping):
                return None
            return await self._geocoder.get_suburb(location.get("lat"), location.get("lng"))
        except Exception as e:
            logger.warning("Suburb lookup failed for expose %s: %s", native_id, e)
            return None

    def _salutation(self, body: Mapping[str, Any]):
        try:
            name = body["contact"]["contactData"]["agent"]["name"]
        except (KeyError, TypeError):
            return None
        return parse_salutation(name)
