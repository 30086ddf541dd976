import logging

from estate_watch.notification.registry import NotificationAdapter, NotificationPayload

logger = logging.getLogger(__name__)


class ConsoleAdapter(NotificationAdapter):
    """Writes new listings to the log. Handy for trying out job configs."""

    @property
    def id(self) -> str:
        return "console"

    async def send(self, payload: NotificationPayload) -> None:
        for li in payload.new_listings:
            logger.info("[%s/%s] %s | %s | %s | %s", payload.service_name, payload.job_key,
                        li.title, li.price, li.address, li.link)
