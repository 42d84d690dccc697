"""Celery application configuration."""
from celery import Celery

from flowhub.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "flowhub",
    broker=settings.broker_url,
    backend=settings.redis_url,
    include=["flowhub.integrations.tasks"],
)

celery_app.conf.update(
    # Task execution
    task_time_limit=settings.celery_task_time_limit,
    task_soft_time_limit=settings.celery_task_soft_time_limit,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Results
    result_expires=3600,
    # Timezone
    timezone="UTC",
    enable_utc=True,
)
