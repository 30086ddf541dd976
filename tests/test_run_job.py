import pytest

from estate_watch.bot.telegram_bot import run_job
from estate_watch.core.pipeline import IngestionPipeline
from estate_watch.core.storage import load_seen_for, save_seen_for
from estate_watch.models import JobConfig, NotificationChannel
from estate_watch.notification.registry import NotificationAdapter, NotificationRegistry
from estate_watch.providers.base import build_hash
from estate_watch.providers.immoscout import MOBILE_API_URL, ImmoscoutProvider

SEARCH_URL = f"{MOBILE_API_URL}/search/list?geocodes=%2Fde%2Fberlin%2Fberlin"


class Inbox(NotificationAdapter):
    def __init__(self):
        self.payloads = []

    @property
    def id(self):
        return "inbox"

    async def send(self, payload):
        self.payloads.append(payload)


@pytest.fixture
def job():
    return JobConfig(key="berlin", url=SEARCH_URL,
                     notification_channels=(NotificationChannel("inbox"),
                                            NotificationChannel("unknown")))


@pytest.mark.asyncio
async def test_new_listings_are_sent_and_remembered(tmp_path, job, fake_session, fake_response,
                                                    make_expose, make_search_payload, geocoder_for):
    search = make_search_payload(make_expose(1), make_expose(2), make_expose(3))
    provider = ImmoscoutProvider(session=fake_session({SEARCH_URL: fake_response(200, search)}),
                                 geocoder=geocoder_for(fake_session()))
    pipeline = IngestionPipeline(provider, enrich=False)
    inbox = Inbox()
    registry = NotificationRegistry([inbox])
    save_seen_for(job.key, {build_hash("2", "1.200 €")}, tmp_path)

    new = await run_job(job, pipeline, registry, tmp_path)

    assert [li.native_id for li in new] == ["1", "3"]
    assert [li.native_id for li in inbox.payloads[0].new_listings] == ["1", "3"]
    assert inbox.payloads[0].service_name == "Immoscout"
    assert load_seen_for(job.key, tmp_path) == {build_hash(str(n), "1.200 €") for n in (1, 2, 3)}

    # next cycle: nothing new, nothing sent
    assert await run_job(job, pipeline, registry, tmp_path) == []
    assert len(inbox.payloads) == 1


@pytest.mark.asyncio
async def test_failed_search_sends_nothing(tmp_path, job, fake_session, fake_response, geocoder_for):
    provider = ImmoscoutProvider(session=fake_session({SEARCH_URL: fake_response(500)}),
                                 geocoder=geocoder_for(fake_session()))
    inbox = Inbox()

    new = await run_job(job, IngestionPipeline(provider), NotificationRegistry([inbox]), tmp_path)

    assert new == []
    assert inbox.payloads == []
    assert load_seen_for(job.key, tmp_path) == set()


@pytest.mark.asyncio
async def test_enriched_end_to_end(tmp_path, job, fake_session, fake_response,
                                   make_expose, make_search_payload, geocoder_for):
    expose = {
        "sections": [{"type": "TOP_ATTRIBUTES", "attributes": [{"label": "Zimmer", "text": "2"}]}],
        "contact": {"contactData": {"agent": {"name": "Herr Mustermann"}}},
    }
    session = fake_session({
        SEARCH_URL: fake_response(200, make_search_payload(make_expose(9))),
        f"{MOBILE_API_URL}/expose/9": fake_response(200, expose),
    })
    provider = ImmoscoutProvider(session=session, geocoder=geocoder_for(fake_session()))
    inbox = Inbox()

    new = await run_job(job, IngestionPipeline(provider, enrich=True),
                        NotificationRegistry([inbox]), tmp_path)

    assert new[0].room_count == 2
    assert new[0].salutation.last_name == "Mustermann"
    assert new[0].suburb is None
