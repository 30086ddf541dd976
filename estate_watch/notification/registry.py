import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from estate_watch.models import Listing, NotificationChannel

logger = logging.getLogger(__name__)


class NoNotificationAdapterError(RuntimeError):
    """Raised when a registry would start without any channel adapter."""


@dataclass(frozen=True)
class NotificationPayload:
    service_name: str
    new_listings: Sequence[Listing]
    notification_config: Sequence[NotificationChannel]
    job_key: str

    def settings_for(self, channel_id: str) -> Mapping[str, Any]:
        for channel in self.notification_config:
            if channel.id == channel_id:
                return channel.settings
        return {}


@dataclass(frozen=True)
class DispatchResult:
    channel_id: str
    ok: bool
    error: str | None = None


class NotificationAdapter(ABC):
    @property
    @abstractmethod
    def id(self) -> str:
        """Channel id referenced from job configs, e.g. 'telegram'."""

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> None:
        """Deliver the payload; raise on failure."""


class NotificationRegistry:
    """Channel adapters known to this process, fixed once built."""

    def __init__(self, adapters: Iterable[NotificationAdapter]):
        by_id: dict[str, NotificationAdapter] = {}
        for adapter in adapters:
            if adapter.id in by_id:
                raise ValueError(f"Duplicate notification adapter id: {adapter.id}")
            by_id[adapter.id] = adapter
        if not by_id:
            raise NoNotificationAdapterError("Please register at least one notification adapter")
        self._adapters = by_id

    @classmethod
    def builder(cls) -> "NotificationRegistryBuilder":
        return NotificationRegistryBuilder()

    @property
    def ids(self) -> list[str]:
        return list(self._adapters)

    def find(self, channel_id: str) -> NotificationAdapter | None:
        return self._adapters.get(channel_id)

    async def dispatch(self, service_name: str, new_listings: Sequence[Listing],
                       channels: Sequence[NotificationChannel],
                       job_key: str) -> list[DispatchResult]:
        payload = NotificationPayload(
            service_name=service_name,
            new_listings=tuple(new_listings),
            notification_config=tuple(channels),
            job_key=job_key,
        )

        targets: list[NotificationAdapter] = []
        for channel in channels:
            adapter = self.find(channel.id)
            if adapter is None:
                logger.debug("Job %s: no adapter for channel %r, skipping", job_key, channel.id)
                continue
            targets.append(adapter)

        outcomes = await asyncio.gather(
            *(a.send(payload) for a in targets), return_exceptions=True)

        results: list[DispatchResult] = []
        for adapter, outcome in zip(targets, outcomes):
            if isinstance(outcome, BaseException):
                logger.error("Job %s: channel %s failed: %s", job_key, adapter.id, outcome)
                results.append(DispatchResult(adapter.id, ok=False, error=str(outcome)))
            else:
                results.append(DispatchResult(adapter.id, ok=True))
        return results


class NotificationRegistryBuilder:
    def __init__(self):
        self._adapters: list[NotificationAdapter] = []

    def register(self, adapter: NotificationAdapter) -> "NotificationRegistryBuilder":
        self._adapters.append(adapter)
        return self

    def build(self) -> NotificationRegistry:
        return NotificationRegistry(self._adapters)
