"""
Celery application factory.
"""

from celery import Celery

celery_app = Celery("policy_records")
celery_app.config_from_object("celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks([
    "app.tasks.ingestion_tasks",
    "app.tasks.scheduler_tasks",
])
