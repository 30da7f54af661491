"""
Celery application configuration.

Redis is both broker and result backend. The API only enqueues work here;
a separate worker process executes it.
"""

from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "hiring_pipeline_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    timezone="UTC",
    enable_utc=True,

    task_track_started=True,
    # Stage moves are single-row writes; anything slower is stuck
    task_time_limit=60,
    task_soft_time_limit=45,

    result_expires=3600,  # 1 hour

    worker_prefetch_multiplier=1,
)

celery_app.autodiscover_tasks(['app'])
