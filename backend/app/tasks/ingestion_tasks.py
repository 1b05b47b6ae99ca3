"""
Celery tasks: file ingestion.

Used when INGESTION_MODE=celery.  The worker must see the same
UPLOAD_DIR as the API process (shared volume).
"""

import structlog

from app.ingestion.service import run_ingestion_sync
from app.tasks import celery_app

logger = structlog.get_logger("tasks.ingestion")


@celery_app.task(bind=True, name="app.tasks.ingestion_tasks.ingest_upload")
def ingest_upload(self, file_path: str, file_name: str) -> dict:
    """Run the ingestion flow for one uploaded file and return its outcome dict."""
    task_log = logger.bind(task_id=self.request.id, file_name=file_name)
    task_log.info("Ingestion task started")

    outcome = run_ingestion_sync(file_path, file_name)

    task_log.info(
        "Ingestion task finished",
        success=outcome["success"],
        rows=outcome["rows"],
        error=outcome["error"],
    )
    return outcome
