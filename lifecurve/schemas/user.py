from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

from lifecurve.schemas.base import CamelModel


class UserRecord(BaseModel):
    """users 레코드"""

    id: str
    phone: Optional[str] = None
    nickname: Optional[str] = None
    points: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListResponse(CamelModel):
    success: bool = True
    users: List[UserRecord]
    total: int
    page: int
    total_pages: int


class AdminAdjustUserPointsRequest(CamelModel):
    """회원 포인트 조정 - adjustment는 0이 아닌 정수, reason 필수 (서비스에서 검증)"""

    adjustment: Any = None
    reason: Optional[str] = None


class AdminAdjustUserPointsResponse(CamelModel):
    success: bool = True
    user_id: str
    previous_points: int
    new_points: int
    adjustment: int
