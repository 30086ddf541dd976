import pytest
from telegram.error import NetworkError, TelegramError

from estate_watch.models import Listing, NotificationChannel, Salutation
from estate_watch.notification.adapters.telegram import TelegramAdapter
from estate_watch.notification.registry import NotificationPayload
from estate_watch.utils.formatting import build_keyboard, format_caption


class FakeBot:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send_message(self, **kwargs):
        if kwargs["chat_id"] in self.fail_for:
            raise NetworkError("chat unreachable")
        self.sent.append(kwargs)


LISTING = Listing(id="abc", native_id="1", source="immoscout", title="Altbau <3",
                  price="900 €", size="50 m²", link="https://example.org/1",
                  address="Hauptstr. 1", room_count=2, suburb="Mitte",
                  salutation=Salutation("female", "Musterfrau"))


def payload(settings):
    return NotificationPayload(
        service_name="Immoscout",
        new_listings=[LISTING],
        notification_config=[NotificationChannel("telegram", settings)],
        job_key="berlin",
    )


def test_caption_contains_enrichment():
    caption = format_caption(LISTING, "Immoscout")

    assert caption.startswith("<b>900 € · 50 m² · 2 rooms</b> — Immoscout")
    assert "Altbau &lt;3" in caption
    assert "Hauptstr. 1 (Mitte)" in caption
    assert "Frau Musterfrau" in caption


def test_caption_without_enrichment():
    plain = Listing(id="x", native_id="2", source="immoscout", title="NO TITLE FOUND",
                    price=None, size=None, link="https://example.org/2",
                    address="NO ADDRESS FOUND")

    caption = format_caption(plain)

    assert caption.startswith("<b>New listing</b>")
    assert "Contact" not in caption


def test_keyboard_links_to_listing():
    kb = build_keyboard(LISTING, "Immoscout")

    assert kb.inline_keyboard[0][0].url == "https://example.org/1"


@pytest.mark.asyncio
async def test_sends_to_every_configured_chat():
    bot = FakeBot()

    await TelegramAdapter(bot).send(payload({"chatIds": ["1", "2"], "chatId": 3}))

    assert [m["chat_id"] for m in bot.sent] == [1, 2, 3]
    assert bot.sent[0]["parse_mode"] == "HTML"


@pytest.mark.asyncio
async def test_failed_chat_is_reported_after_trying_the_rest():
    bot = FakeBot(fail_for={1})

    with pytest.raises(TelegramError):
        await TelegramAdapter(bot).send(payload({"chatIds": ["1", "2"]}))

    assert [m["chat_id"] for m in bot.sent] == [2]


@pytest.mark.asyncio
async def test_channel_names_are_passed_through():
    bot = FakeBot()

    await TelegramAdapter(bot).send(payload({"chatIds": ["@mychannel", "-100123", "7"]}))

    assert [m["chat_id"] for m in bot.sent] == ["@mychannel", -100123, 7]


@pytest.mark.asyncio
async def test_failing_channel_name_does_not_stop_other_chats():
    bot = FakeBot(fail_for={"@gone"})

    with pytest.raises(TelegramError):
        await TelegramAdapter(bot).send(payload({"chatIds": ["@gone", "2"]}))

    assert [m["chat_id"] for m in bot.sent] == [2]


@pytest.mark.asyncio
async def test_no_chat_ids_is_a_noop():
    bot = FakeBot()

    await TelegramAdapter(bot).send(payload({}))

    assert bot.sent == []
