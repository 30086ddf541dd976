import logging
from pathlib import Path
from typing import Mapping, Sequence

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes

from estate_watch.core.pipeline import IngestionPipeline
from estate_watch.core.storage import DATA_DIR, load_seen_for, save_seen_for
from estate_watch.models import JobConfig, Listing
from estate_watch.notification.registry import NotificationRegistry

logger = logging.getLogger(__name__)


# Handlers
async def start(update: Update, _: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(
        f"Hi! I’ll send new listings as they appear.\n"
        f"Your chat id is {update.effective_chat.id}; add it to a job's "
        f"telegram channel to receive its listings.\n\n"
        "/status — show configured jobs"
    )


def make_status_handler(jobs: Sequence[JobConfig], data_dir: Path = DATA_DIR):
    async def status(update: Update, _: ContextTypes.DEFAULT_TYPE):
        lines = [f"Jobs: {len(jobs)}"]
        for job in jobs:
            state = "on" if job.enabled else "off"
            lines.append(f"• {job.key} ({job.provider}, {state}): "
                         f"{len(load_seen_for(job.key, data_dir))} seen")
        await update.message.reply_text("\n".join(lines))

    return status


# Polling job
async def run_job(job: JobConfig, pipeline: IngestionPipeline,
                  registry: NotificationRegistry,
                  data_dir: Path = DATA_DIR) -> list[Listing]:
    """Run one job: collect its new listings, notify, remember them as seen."""
    seen = load_seen_for(job.key, data_dir)
    new_listings = await pipeline.run(job, seen)
    if not new_listings:
        return []

    await registry.dispatch(pipeline.provider.name, new_listings,
                            job.notification_channels, job.key)

    seen.update(li.id for li in new_listings)
    save_seen_for(job.key, seen, data_dir)
    return new_listings


def attach_handlers(app: Application, jobs: Sequence[JobConfig], data_dir: Path = DATA_DIR):
    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler("status", make_status_handler(jobs, data_dir)))


def schedule_jobs(app: Application, jobs: Sequence[JobConfig],
                  pipelines: Mapping[str, IngestionPipeline],
                  registry: NotificationRegistry, interval_seconds: int,
                  data_dir: Path = DATA_DIR):
    # Use PTB JobQueue (install: pip install "python-telegram-bot[job-queue]")
    async def job_callback(context: ContextTypes.DEFAULT_TYPE):
        job: JobConfig = context.job.data
        try:
            await run_job(job, pipelines[job.provider], registry, data_dir)
        except Exception:
            logger.exception("Job %s failed", job.key)

    for job in jobs:
        if job.provider not in pipelines:
            logger.error("Job %s uses unknown provider %r, not scheduled", job.key, job.provider)
            continue
        app.job_queue.run_repeating(
            job_callback, interval=interval_seconds, first=0, name=job.key, data=job)
