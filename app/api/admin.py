"""Administrative API endpoints."""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_admin
from app.schemas.admin import CleanupResponse
from app.services.retention import RetentionSweep, build_retention_sweep

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

logger = logging.getLogger(__name__)


def get_retention_sweep(db: Session = Depends(get_db)) -> RetentionSweep:
    """Dependency for a sweep bound to the request session."""
    return build_retention_sweep(db)


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    responses={409: {"description": "Sweep already running"}, 500: {"description": "Sweep failed"}},
)
def trigger_cleanup(sweep: RetentionSweep = Depends(get_retention_sweep)):
    """
    Run the retention sweep now.

    Same semantics as the scheduled daily run.
    """
    logger.info("🧹 Manual cleanup triggered")
    result = sweep.run()

    if result.status == "skipped":
        return JSONResponse(status_code=409, content={"error": result.error})
    if not result.ok:
        return JSONResponse(status_code=500, content={"error": result.error})

    return CleanupResponse(
        deleted_count=result.deleted_count,
        cutoff_date=result.cutoff,
        size_enforced_count=result.size_enforced_count,
        size_enforcement_error=result.size_enforcement_error,
    )
