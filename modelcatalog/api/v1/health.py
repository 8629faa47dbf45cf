"""
Health and metrics endpoints.
No authentication required.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from sqlalchemy import func, select, text

from modelcatalog.config import get_settings
from modelcatalog.db.session import is_using_sqlite_fallback
from modelcatalog.dependencies import DbSession
from modelcatalog.models.model_record import ModelRecord
from modelcatalog.services.metrics import get_metrics_collector

router = APIRouter()
settings = get_settings()


async def _count_records(db) -> int | None:
    try:
        result = await db.execute(select(func.count(ModelRecord.id)))
        return result.scalar() or 0
    except Exception:
        return None


@router.get("/health")
async def health_check(db: DbSession):
    """
    Service health check endpoint.

    Returns:
        {"status": "ok"} when the metadata store answers
        {"status": "degraded", "issues": [...]} otherwise
    """
    issues = []
    warnings = []

    if is_using_sqlite_fallback():
        warnings.append("Using SQLite dev fallback - PostgreSQL not configured")

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        issues.append(f"Database: {str(e)}")

    if issues:
        return {
            "status": "degraded",
            "issues": issues,
        }

    response = {
        "status": "ok",
        "database": "sqlite (dev fallback)" if is_using_sqlite_fallback() else "postgresql",
        "storage": settings.STORAGE_BACKEND,
    }

    if warnings:
        response["warnings"] = warnings

    return response


@router.get("/metrics")
async def metrics(db: DbSession):
    """Request, error and reclamation metrics as JSON."""
    metrics_data = get_metrics_collector().get_metrics()
    record_count = await _count_records(db)
    metrics_data["catalog"] = {
        "total_models": record_count if record_count is not None else -1,
    }
    return metrics_data


@router.get("/metrics/prometheus", response_class=PlainTextResponse)
async def metrics_prometheus(db: DbSession):
    """Prometheus text exposition format endpoint."""
    text_output = get_metrics_collector().to_prometheus()

    record_count = await _count_records(db)
    if record_count is not None:
        text_output += "# HELP catalog_models_total Total number of model records\n"
        text_output += "# TYPE catalog_models_total gauge\n"
        text_output += f"catalog_models_total {record_count}\n"

    return PlainTextResponse(
        content=text_output,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
