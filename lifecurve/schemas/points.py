from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from lifecurve.schemas.base import CamelModel


class DeviceUsageRecord(BaseModel):
    """device_usage 레코드"""

    id: int = Field(..., description="레코드 ID")
    device_id: str = Field(..., description="기기 ID")
    points: int = Field(0, description="현재 포인트 잔액")
    free_used_life: int = Field(0, description="인생 곡선 무료 사용 횟수")
    free_used_wealth: int = Field(0, description="재물 곡선 무료 사용 횟수")
    total_paid: int = Field(0, description="누적 결제 금액 (分)")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PointsLogEntry(BaseModel):
    """포인트 로그 항목"""

    id: int = Field(..., description="로그 ID")
    device_id: Optional[str] = Field(None, description="기기 ID")
    user_id: Optional[str] = Field(None, description="사용자 ID")
    type: str = Field(..., description="recharge | consume")
    points: int = Field(..., description="요청된 변동량")
    balance: int = Field(..., description="변동 후 잔액 스냅샷")
    description: Optional[str] = Field(None, description="변동 사유")
    related_key: Optional[str] = Field(None, description="주문 ID / 卡密 등 출처")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PointsAdjustResult(BaseModel):
    """잔액 변동 결과"""

    device_id: str
    delta: int
    new_balance: int
    log_id: Optional[int] = None


class PointsHistoryResponse(CamelModel):
    success: bool = True
    points: int = Field(0, description="현재 잔액")
    logs: List[PointsLogEntry] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20


class AdminAdjustPointsRequest(CamelModel):
    """관리자 포인트 조정 요청 (points는 부호 있는 변동량)"""

    device_id: str = Field(..., min_length=1, description="기기 ID")
    points: int = Field(..., description="변동량 (음수면 차감)")
    description: Optional[str] = Field(None, max_length=255)


class AdminAdjustPointsResponse(CamelModel):
    success: bool = True
    device_id: str
    new_balance: int


class UserPointsAdjustResult(BaseModel):
    """회원 계정 잔액 변동 결과"""

    user_id: str
    delta: int
    previous_balance: int
    new_balance: int
    log_id: Optional[int] = None
