from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel


class MasterRecord(BaseModel):
    """masters 레코드"""

    id: str
    name: str
    avatar: Optional[str] = None
    price: int = Field(..., description="가격 (分)")
    word_count: int
    follow_ups: int = 0
    years: Optional[int] = None
    intro: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MasterResponse(CamelModel):
    id: str
    name: str
    avatar: Optional[str] = None
    price: int
    word_count: int
    follow_ups: int = 0
    years: Optional[int] = None
    intro: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MasterListResponse(CamelModel):
    success: bool = True
    masters: List[MasterResponse]


class MasterDetailResponse(CamelModel):
    success: bool = True
    master: MasterResponse


class MasterUpsertRequest(CamelModel):
    """마스터 등록/수정 요청 - price는 元 단위로 입력받아 分으로 저장"""

    name: Optional[str] = None
    avatar: Optional[str] = None
    price: Optional[float] = None
    word_count: Optional[int] = None
    follow_ups: Optional[int] = None
    years: Optional[int] = None
    intro: Optional[str] = None
    tags: Optional[List[str]] = None
    sort_order: Optional[int] = None


class MasterToggleRequest(CamelModel):
    is_active: Any = None


class MasterToggleResponse(CamelModel):
    success: bool = True
    master: MasterResponse
    message: str
