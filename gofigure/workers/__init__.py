"""
Celery workers module.

Durable task processing for the figurine transform and mesh polling.

Dependencies: celery, gofigure.configs
System role: Background task processing
"""

from celery import Celery
from celery.signals import setup_logging

from gofigure.configs import get_settings
from gofigure.observability.logger import configure_logging

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    "gofigure",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=[
        "gofigure.workers.tasks.transform",
        "gofigure.workers.tasks.mesh_polling",
    ],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    # Ack after execution so a crashed worker's task is redelivered.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_ignore_result=True,
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(level=settings.log_level)
