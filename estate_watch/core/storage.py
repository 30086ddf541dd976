import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Set

from estate_watch.models import JobConfig, NotificationChannel

logger = logging.getLogger(__name__)

DATA_DIR = Path("./data")
SEEN_DIR_NAME = "seen"


def load_json_set(path: Path) -> Set[str]:
    if not path.exists():
        return set()
    try:
        return set(json.loads(path.read_text(encoding="utf-8")))
    except (ValueError, TypeError) as e:
        logger.warning("Ignoring unreadable seen file %s: %s", path, e)
        return set()


def save_json_set(path: Path, values: Set[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(sorted(values)), encoding="utf-8")


def _seen_path_for(job_key: str, data_dir: Path = DATA_DIR) -> Path:
    safe = re.sub(r"[^\w.-]", "_", job_key)
    return data_dir / SEEN_DIR_NAME / f"{safe}.json"


def load_seen_for(job_key: str, data_dir: Path = DATA_DIR) -> Set[str]:
    return load_json_set(_seen_path_for(job_key, data_dir))


def save_seen_for(job_key: str, ids: Set[str], data_dir: Path = DATA_DIR) -> None:
    save_json_set(_seen_path_for(job_key, data_dir), ids)


def _channel(entry: Mapping[str, Any]) -> NotificationChannel:
    settings = {k: v for k, v in entry.items() if k != "id"}
    return NotificationChannel(id=str(entry["id"]), settings=settings)


def parse_job(entry: Mapping[str, Any]) -> JobConfig:
    blacklist = entry.get("blacklist") if isinstance(entry, Mapping) else None
    if blacklist is not None and not isinstance(blacklist, list):
        raise ValueError(f"Invalid job entry {entry!r}: blacklist must be a list of strings")
    try:
        return JobConfig(
            key=str(entry["key"]),
            url=str(entry["url"]),
            provider=str(entry.get("provider", "immoscout")),
            enabled=bool(entry.get("enabled", True)),
            blacklist=frozenset(str(b) for b in entry.get("blacklist") or []),
            notification_channels=tuple(
                _channel(c) for c in entry.get("notificationChannels") or []),
        )
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Invalid job entry {entry!r}: {e!r}") from e


def load_jobs(path: Path) -> list[JobConfig]:
    if not path.exists():
        logger.warning("Jobs file %s not found, nothing to do", path)
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of jobs")
    return [parse_job(entry) for entry in data]
