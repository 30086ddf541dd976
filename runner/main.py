import logging

from telegram.ext import Application

from runner.config import (CHECK_INTERVAL_SECONDS, DATA_DIR, ENRICH_LISTINGS,
                           JOBS_FILE, LOG_LEVEL, TELEGRAM_TOKEN)
from estate_watch.bot.telegram_bot import attach_handlers, schedule_jobs
from estate_watch.core.pipeline import IngestionPipeline
from estate_watch.core.storage import load_jobs
from estate_watch.notification.adapters.console import ConsoleAdapter
from estate_watch.notification.adapters.telegram import TelegramAdapter
from estate_watch.notification.registry import NotificationRegistry
from estate_watch.providers.immoscout import ImmoscoutProvider
from estate_watch.services.geocoding import GeocodingClient

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx (used by PTB) logs every getUpdates request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    # 1) Register providers here
    geocoder = GeocodingClient()
    providers = [
        ImmoscoutProvider(geocoder=geocoder),
    ]
    pipelines = {p.id: IngestionPipeline(p, enrich=ENRICH_LISTINGS) for p in providers}

    # 2) Build bot
    application = Application.builder().token(TELEGRAM_TOKEN).build()

    # 3) Notification channels
    registry = (
        NotificationRegistry.builder()
        .register(TelegramAdapter(application.bot))
        .register(ConsoleAdapter())
        .build()
    )

    # 4) Handlers + scheduled jobs
    jobs = load_jobs(JOBS_FILE)
    attach_handlers(application, jobs, DATA_DIR)
    schedule_jobs(application, jobs, pipelines, registry,
                  interval_seconds=CHECK_INTERVAL_SECONDS, data_dir=DATA_DIR)

    logger.info("Bot running with %d job(s), channels: %s. Ctrl+C to stop.",
                len(jobs), ", ".join(registry.ids))
    application.run_polling(close_loop=False)


if __name__ == "__main__":
    main()
