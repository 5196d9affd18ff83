import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from lifecurve.config import Settings, settings as default_settings
from lifecurve.core.exceptions import ValidationError
from lifecurve.repositories.system_repository import SystemConfigRepository
from lifecurve.schemas.system import SystemConfigValues

logger = logging.getLogger(__name__)

CONFIG_UNLOCK_POINTS = "unlock_points"
CONFIG_OVERVIEW_POINTS = "overview_points"
CONFIG_FREE_LIMIT = "free_limit"

# 정수 설정의 허용 최솟값 (가격은 양수, 무료 한도는 0 이상)
INT_CONFIG_MINIMUMS = {
    CONFIG_UNLOCK_POINTS: 1,
    CONFIG_OVERVIEW_POINTS: 1,
    CONFIG_FREE_LIMIT: 0,
}


def _parse_int(value: object) -> Optional[int]:
    """정수 또는 정수 문자열만 허용 (bool, 소수, 빈 값은 None)"""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class SystemConfigService:
    """system_config 테이블 기반 런타임 설정 (가격/무료 한도)"""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or default_settings
        self.config_repo = SystemConfigRepository(db)

    def _defaults(self) -> Dict[str, str]:
        return {
            CONFIG_UNLOCK_POINTS: str(self.settings.UNLOCK_POINTS),
            CONFIG_OVERVIEW_POINTS: str(self.settings.OVERVIEW_POINTS),
            CONFIG_FREE_LIMIT: str(self.settings.FREE_USAGE_LIMIT),
        }

    def get_all(self) -> Dict[str, str]:
        """기본값 위에 테이블 값을 덮어쓴 전체 설정"""
        merged = self._defaults()
        merged.update(self.config_repo.get_all())
        return merged

    def _int_value(self, values: Dict[str, str], key: str) -> int:
        """저장값이 정수가 아니거나 최솟값 미만이면 기본값 사용"""
        default = int(self._defaults()[key])
        value = _parse_int(values.get(key, default))
        if value is None or value < INT_CONFIG_MINIMUMS[key]:
            logger.warning(f"Invalid system_config value for {key}: {values.get(key)!r}")
            return default
        return value

    def get_values(self) -> SystemConfigValues:
        values = self.get_all()
        return SystemConfigValues(
            unlock_points=self._int_value(values, CONFIG_UNLOCK_POINTS),
            overview_points=self._int_value(values, CONFIG_OVERVIEW_POINTS),
            free_limit=self._int_value(values, CONFIG_FREE_LIMIT),
        )

    def update(self, config: Optional[Dict[str, object]]) -> Dict[str, str]:
        """설정 upsert

        Args:
            config: 키-값 딕셔너리 (값은 문자열로 저장)

        Returns:
            갱신 후 전체 설정
        """
        if not config:
            raise ValidationError("缺少配置数据")
        values = {str(k): str(v) for k, v in config.items()}
        for key, minimum in INT_CONFIG_MINIMUMS.items():
            if key not in values:
                continue
            value = _parse_int(config[key])
            if value is None or value < minimum:
                raise ValidationError(f"{key} 必须是不小于{minimum}的整数")
            values[key] = str(value)
        updated = self.config_repo.upsert_many(values)
        logger.info(f"System config updated: {sorted(values)}")
        merged = self._defaults()
        merged.update(updated)
        return merged
