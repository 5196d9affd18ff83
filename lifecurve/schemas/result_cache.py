from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel
from lifecurve.schemas.usage import CurveMode


class ResultCacheRecord(BaseModel):
    id: int
    cache_key: str
    device_id: str
    curve_mode: str
    is_paid: bool = False
    result_data: Any = None
    birth_info: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class CacheLookupParams(BaseModel):
    """캐시 키 계산에 필요한 입력값"""

    device_id: str
    name: str
    year: int
    month: int
    day: int
    hour: int
    gender: str
    is_lunar: bool = False
    curve_mode: CurveMode = CurveMode.LIFE
    is_paid: bool = False


class CacheLookupResponse(CamelModel):
    found: bool
    cache_key: str
    result_data: Optional[Any] = None


class CacheSaveRequest(CamelModel):
    cache_key: Optional[str] = Field(None, description="GET 응답으로 받은 캐시 키")
    device_id: Optional[str] = None
    curve_mode: Optional[CurveMode] = None
    is_paid: bool = False
    result_data: Optional[Any] = None
    birth_info: Optional[Dict[str, Any]] = None


class CacheSaveResponse(CamelModel):
    success: bool = True
