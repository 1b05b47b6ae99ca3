"""
Celery configuration for the policy records backend.

Loaded by `celery_app.config_from_object("celeryconfig")` in app/tasks/__init__.py.
Broker and result-backend URLs come from the same Settings the API uses.
"""

from app.core.config import settings

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = settings.CELERY_BROKER_URL
result_backend = settings.CELERY_RESULT_BACKEND

# ═══════════════════════════════════════════════════════════
#  Serialization: JSON only
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone
# ═══════════════════════════════════════════════════════════

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

# Uploads are deleted after processing, so a redelivered ingestion
# task would find no file.  Acknowledge on receipt.
task_acks_late = False

worker_prefetch_multiplier = 1

task_soft_time_limit = settings.INGESTION_TIMEOUT_SECONDS
task_time_limit = settings.INGESTION_TIMEOUT_SECONDS + 60

# ═══════════════════════════════════════════════════════════
#  Result Expiry
# ═══════════════════════════════════════════════════════════

result_expires = 3600

# ═══════════════════════════════════════════════════════════
#  Worker Settings
# ═══════════════════════════════════════════════════════════

# One upload per child process: a worker never outlives the file it parsed.
worker_max_tasks_per_child = 1

worker_send_task_events = False
task_send_sent_event = False

# ═══════════════════════════════════════════════════════════
#  Task Routes
# ═══════════════════════════════════════════════════════════
#   celery -A app.tasks worker -Q ingestion
#   celery -A app.tasks worker -Q default

task_routes = {
    "app.tasks.ingestion_tasks.*": {"queue": "ingestion"},
    "app.tasks.scheduler_tasks.*": {"queue": "default"},
}

task_default_queue = "default"

# ═══════════════════════════════════════════════════════════
#  Beat Schedule
# ═══════════════════════════════════════════════════════════

beat_schedule = {
    "activate-due-messages": {
        "task": "app.tasks.scheduler_tasks.activate_due_messages",
        "schedule": settings.SCHEDULER_POLL_INTERVAL_SECONDS,
    },
}
