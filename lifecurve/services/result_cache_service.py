import logging

from sqlalchemy.orm import Session

from lifecurve.core.exceptions import InternalServerError, ValidationError
from lifecurve.repositories.result_cache_repository import ResultCacheRepository
from lifecurve.schemas.result_cache import (
    CacheLookupParams,
    CacheLookupResponse,
    CacheSaveRequest,
    CacheSaveResponse,
)
from lifecurve.utils.cache_utils import generate_result_cache_key

logger = logging.getLogger(__name__)


class ResultCacheService:
    """생성된 곡선 결과 캐시 - 같은 기기/출생 정보/모드/결제 여부면 같은 키"""

    def __init__(self, db: Session):
        self.db = db
        self.cache_repo = ResultCacheRepository(db)

    def lookup(self, params: CacheLookupParams) -> CacheLookupResponse:
        """
        캐시 조회

        Args:
            params: 기기 ID와 출생 정보, 곡선 모드, 결제 여부

        Returns:
            CacheLookupResponse: 미적중이어도 저장에 쓸 cache_key를 돌려준다
        """
        cache_key = generate_result_cache_key(
            device_id=params.device_id,
            name=params.name,
            year=params.year,
            month=params.month,
            day=params.day,
            hour=params.hour,
            gender=params.gender,
            is_lunar=params.is_lunar,
            curve_mode=params.curve_mode.value,
            is_paid=params.is_paid,
        )
        try:
            record = self.cache_repo.get_by_key(cache_key)
        except Exception as e:
            logger.error(f"Result cache lookup failed for {cache_key}: {str(e)}")
            raise InternalServerError("查询缓存失败")

        if record is None:
            return CacheLookupResponse(found=False, cache_key=cache_key)
        logger.debug(f"Result cache hit: {cache_key}")
        return CacheLookupResponse(
            found=True, cache_key=cache_key, result_data=record.result_data
        )

    def save(self, request: CacheSaveRequest) -> CacheSaveResponse:
        if (
            not request.cache_key
            or not request.device_id
            or request.curve_mode is None
            or request.result_data is None
        ):
            raise ValidationError("缺少必要参数")
        try:
            self.cache_repo.upsert(
                cache_key=request.cache_key,
                device_id=request.device_id,
                curve_mode=request.curve_mode.value,
                is_paid=request.is_paid,
                result_data=request.result_data,
                birth_info=request.birth_info,
            )
        except Exception as e:
            logger.error(f"Result cache save failed for {request.cache_key}: {str(e)}")
            raise InternalServerError("保存缓存失败")
        return CacheSaveResponse()

