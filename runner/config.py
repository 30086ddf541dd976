import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

TELEGRAM_TOKEN = os.getenv("TELEGRAM_TOKEN")
if not TELEGRAM_TOKEN:
    raise RuntimeError("TELEGRAM_TOKEN not found in .env")

CHECK_INTERVAL_SECONDS = int(os.getenv("CHECK_INTERVAL_SECONDS", "300"))
DATA_DIR = Path(os.getenv("DATA_DIR", "./data"))
JOBS_FILE = Path(os.getenv("JOBS_FILE", str(DATA_DIR / "jobs.json")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENRICH_LISTINGS = os.getenv("ENRICH_LISTINGS", "true").lower() in ("1", "true", "yes")
