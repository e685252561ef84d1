from __future__ import annotations

import logging
from importlib import import_module

from redis import Redis
from rq import Queue, Retry

from better_contacts.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Job name -> dotted path rq workers import.
JOB_PATHS: dict[str, str] = {
    "recompute_scores": "better_contacts.workers.jobs.recompute_scores",
}


class UnknownJobError(ValueError):
    pass


def _job_path(job_name: str) -> str:
    try:
        return JOB_PATHS[job_name]
    except KeyError as exc:
        raise UnknownJobError(f"Unknown job: {job_name}") from exc


def _run_inline(job_path: str, *args, **kwargs) -> None:
    module_name, _, attr = job_path.rpartition(".")
    handler = getattr(import_module(module_name), attr)
    handler(*args, **kwargs)


def _retry_policy(settings: Settings) -> Retry | None:
    if settings.queue_retry_max <= 0:
        return None
    return Retry(max=settings.queue_retry_max, interval=settings.queue_retry_interval_seconds)


def enqueue_job(job_name: str, *args, **kwargs) -> str:
    """Hand a job to rq, or run it in-process when queueing is inline or redis is down."""
    settings = get_settings()
    job_path = _job_path(job_name)
    if settings.queue_mode == "inline":
        _run_inline(job_path, *args, **kwargs)
        return f"inline-{job_name}"

    try:
        queue = Queue(settings.queue_name, connection=Redis.from_url(settings.redis_url))
        job = queue.enqueue(job_path, *args, retry=_retry_policy(settings), **kwargs)
    except Exception:  # pragma: no cover - network failure fallback
        logger.exception("redis_enqueue_failed_falling_back_inline", extra={"job_name": job_name})
        _run_inline(job_path, *args, **kwargs)
        return f"fallback-inline-{job_name}"

    logger.info("enqueued_job", extra={"job_name": job_name, "job_id": job.id, "queue_name": settings.queue_name})
    return job.id
