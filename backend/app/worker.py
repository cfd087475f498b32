"""
Inkpost API: Celery Application
=================================

What:  The Celery app that carries background tasks (the welcome email).
How:   Broker and result backend come from settings. Tasks are acknowledged
       late, so a worker that dies mid-delivery leaves the message on the
       broker to be redelivered after `queue_retry_after` seconds.
Who:   Tasks register with `@celery_app.task`; `inkpost queue-work` starts a
       worker on `settings.queue_name`.

Run a worker directly:
    celery -A app.worker worker -Q default --loglevel=INFO
"""

from celery import Celery

from app.config import settings

celery_app = Celery(
    "inkpost",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.services.welcome_email"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_always_eager=settings.celery_task_always_eager,
    task_default_queue=settings.queue_name,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    broker_transport_options={"visibility_timeout": settings.queue_retry_after},
)
