import os

from celery import Celery
from celery.schedules import crontab

redis_url = os.getenv("REDIS_URL", "redis://redis:6379/0")
sweep_hour = int(os.getenv("EXPIRY_SWEEP_HOUR", "1"))

celery_app = Celery(
    "pactflow",
    broker=redis_url,
    backend=redis_url,
    include=["pactflow.workers.expiry_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "expire-overdue-contracts": {
            "task": "pactflow.workers.expiry_tasks.task_expire_overdue_contracts",
            "schedule": crontab(hour=sweep_hour, minute=0),
        },
    },
)
