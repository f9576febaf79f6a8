"""Celery tasks for data retention."""
import logging

from app.database import SessionLocal
from app.services.retention import build_retention_sweep
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.retention_tasks.run_retention_sweep")
def run_retention_sweep() -> dict:
    """
    Scheduled retention sweep, fired daily by Celery beat.

    Never raises: a failed run is logged and the next scheduled run catches up.

    Returns:
        Dict with status, deleted counts and cutoff
    """
    logger.info("🚀 Starting scheduled retention sweep")

    db = SessionLocal()
    try:
        result = build_retention_sweep(db).run()
        summary = {
            "status": result.status,
            "deleted_count": result.deleted_count,
            "size_enforced_count": result.size_enforced_count,
            "cutoff": result.cutoff.isoformat(),
            "error": result.error,
            "size_enforcement_error": result.size_enforcement_error,
            "notified": result.notified,
        }
        if result.ok:
            logger.info(f"🎉 Retention sweep finished: {summary}")
        else:
            logger.error(f"💥 Retention sweep did not complete: {summary}")
        return summary

    except Exception as e:
        logger.error(f"💥 Retention sweep crashed: {str(e)}", exc_info=True)
        return {"status": "failed", "error": str(e)}

    finally:
        db.close()
