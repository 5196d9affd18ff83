from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query

from lifecurve.containers import Container
from lifecurve.core.exceptions import ValidationError
from lifecurve.schemas.result_cache import (
    CacheLookupParams,
    CacheLookupResponse,
    CacheSaveRequest,
    CacheSaveResponse,
)
from lifecurve.schemas.usage import CurveMode
from lifecurve.services.result_cache_service import ResultCacheService

router = APIRouter(prefix="/result", tags=["result-cache"])

MISSING_PARAMS = "缺少必要参数"


def _parse_flag(value: Optional[str]) -> bool:
    """"true" 문자열만 참, 생략 시 false"""
    return value == "true"


@router.get("/cache", response_model=CacheLookupResponse, response_model_exclude_none=True)
@inject
async def lookup_result_cache(
    device_id: Optional[str] = Query(None, alias="deviceId"),
    name: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    month: Optional[str] = Query(None),
    day: Optional[str] = Query(None),
    hour: Optional[str] = Query(None),
    gender: Optional[str] = Query(None),
    is_lunar: Optional[str] = Query(None, alias="isLunar"),
    curve_mode: Optional[str] = Query(None, alias="curveMode"),
    is_paid: Optional[str] = Query(None, alias="isPaid"),
    cache_service: ResultCacheService = Depends(
        Provide[Container.services.result_cache_service]
    ),
) -> CacheLookupResponse:
    """
    결과 캐시 조회

    isLunar / isPaid를 제외한 쿼리 파라미터가 필요하며, 하나라도 없으면 400 缺少必要参数.
    두 플래그는 생략하면 false.
    미적중이어도 저장에 사용할 cacheKey를 돌려준다.
    """
    required = (device_id, name, year, month, day, hour, gender, curve_mode)
    if any(value is None or value == "" for value in required):
        raise ValidationError(MISSING_PARAMS)

    try:
        params = CacheLookupParams(
            device_id=device_id,
            name=name,
            year=int(year),
            month=int(month),
            day=int(day),
            hour=int(hour),
            gender=gender,
            is_lunar=_parse_flag(is_lunar),
            curve_mode=CurveMode(curve_mode),
            is_paid=_parse_flag(is_paid),
        )
    except ValueError:
        raise ValidationError(MISSING_PARAMS)

    return cache_service.lookup(params)


@router.post("/cache", response_model=CacheSaveResponse)
@inject
async def save_result_cache(
    request: CacheSaveRequest,
    cache_service: ResultCacheService = Depends(
        Provide[Container.services.result_cache_service]
    ),
) -> CacheSaveResponse:
    """결과 저장 - 같은 cacheKey면 덮어쓴다"""
    return cache_service.save(request)
