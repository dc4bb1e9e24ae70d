from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "domain_monitor",
    broker=settings.CELERY_BROKER_URL,
    include=["app.tasks.domain_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "check-due-domains": {
            "task": "check_due_domains",
            "schedule": float(settings.DOMAIN_CHECK_PERIOD_SECONDS),
        },
    },
)
