import logging

from telegram import Bot
from telegram.error import TelegramError

from estate_watch.notification.registry import NotificationAdapter, NotificationPayload
from estate_watch.utils.formatting import build_keyboard, format_caption

logger = logging.getLogger(__name__)


class TelegramAdapter(NotificationAdapter):
    """Sends one HTML message per listing to every chat id configured for the job.

    Channel settings: ``{"id": "telegram", "chatIds": ["123", ...]}``
    (a single ``"chatId"`` is accepted too).
    """

    def __init__(self, bot: Bot):
        self._bot = bot

    @property
    def id(self) -> str:
        return "telegram"

    @staticmethod
    def _chat_ids(settings) -> list[str]:
        ids = settings.get("chatIds") or []
        if settings.get("chatId"):
            ids = [*ids, settings["chatId"]]
        return [str(i) for i in ids]

    @staticmethod
    def _target(chat_id: str) -> int | str:
        # numeric ids for users and groups, "@name" for public channels
        return int(chat_id) if chat_id.lstrip("-").isdigit() else chat_id

    async def send(self, payload: NotificationPayload) -> None:
        chat_ids = self._chat_ids(payload.settings_for(self.id))
        if not chat_ids:
            logger.warning("Job %s: telegram channel has no chat ids", payload.job_key)
            return

        failures = 0
        for li in payload.new_listings:
            caption = format_caption(li, payload.service_name)
            kb = build_keyboard(li, payload.service_name)
            for chat_id in chat_ids:
                try:
                    await self._bot.send_message(
                        chat_id=self._target(chat_id),
                        text=caption,
                        parse_mode="HTML",
                        reply_markup=kb,
                        disable_web_page_preview=True,
                    )
                except TelegramError as e:
                    # keep going for the other chats and listings
                    failures += 1
                    logger.error("Job %s: sending %s to chat %s failed: %s",
                                 payload.job_key, li.native_id, chat_id, e)
        if failures:
            raise TelegramError(f"{failures} telegram message(s) could not be sent")
