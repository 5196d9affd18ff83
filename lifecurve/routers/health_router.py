import logging

from fastapi import APIRouter
from sqlalchemy import text

from lifecurve.config import settings
from lifecurve.database.connection import engine
from lifecurve.schemas.health import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """DB 연결까지 확인 - 실패해도 200으로 degraded 상태를 돌려준다"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health check database query failed: {e}")
        return HealthCheckResponse(
            status="degraded", environment=settings.ENVIRONMENT, database="unavailable"
        )
    return HealthCheckResponse(environment=settings.ENVIRONMENT)
