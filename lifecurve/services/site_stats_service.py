import logging
from typing import Optional

from sqlalchemy.orm import Session

from lifecurve.config import Settings, settings as default_settings
from lifecurve.core.exceptions import InternalServerError
from lifecurve.repositories.system_repository import SiteStatsRepository
from lifecurve.schemas.system import SiteStatsResponse

logger = logging.getLogger(__name__)

TOTAL_GENERATED_KEY = "total_generated"


class SiteStatsService:
    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.stats_repo = SiteStatsRepository(db)

    def get_total_generated(self) -> SiteStatsResponse:
        """누적 생성 수 - 조회 실패 시 기본값과 fallback=True"""
        base = self.settings.TOTAL_GENERATED_BASE
        try:
            value = self.stats_repo.get_value(TOTAL_GENERATED_KEY)
        except Exception as e:
            logger.warning(f"Failed to read site stats, using fallback: {str(e)}")
            return SiteStatsResponse(total_generated=base, fallback=True)
        return SiteStatsResponse(total_generated=base if value is None else value)

    def increment_generated(self) -> SiteStatsResponse:
        try:
            value = self.stats_repo.increment(
                TOTAL_GENERATED_KEY, initial=self.settings.TOTAL_GENERATED_BASE
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to increment site stats: {str(e)}")
            raise InternalServerError("更新统计失败")
        return SiteStatsResponse(total_generated=value)
