from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel


class CurveMode(str, Enum):
    LIFE = "life"
    WEALTH = "wealth"


class UsageAction(str, Enum):
    FREE_OVERVIEW = "free_overview"
    PAID_OVERVIEW = "paid_overview"
    DETAILED = "detailed"


class FreeEligibility(BaseModel):
    """무료 사용 가능 여부"""

    allowed: bool
    remaining: int


class UsageCheckResponse(CamelModel):
    success: bool = True
    device_id: Optional[str] = None
    curve_mode: CurveMode = CurveMode.LIFE
    allowed: bool = Field(..., description="무료 사용 가능 여부")
    remaining: int = Field(..., description="남은 무료 횟수")
    free_used: int = 0
    free_remaining: int = 0
    free_limit: int = 3
    points: int = 0
    can_use_free: bool = False
    can_use_paid: bool = False
    can_use_detailed: bool = False
    fallback: bool = False


class UsageConsumeRequest(CamelModel):
    device_id: str = Field("", description="기기 ID")
    action: Optional[str] = Field(None, description="free_overview | paid_overview | detailed")
    curve_mode: CurveMode = CurveMode.LIFE
    birth_info: Optional[Dict[str, Any]] = None
    result_id: Optional[str] = None


class UsageConsumeResponse(CamelModel):
    success: bool = True
    type: str = Field(..., description="free | points")
    free_remaining: Optional[int] = None
    points_used: int = 0
    points: int = Field(..., description="차감 후 잔액")


class UsageLogEntry(BaseModel):
    id: int
    device_id: str
    action: str
    points_cost: int
    curve_mode: str
    birth_info: Optional[Dict[str, Any]] = None
    result_id: Optional[str] = None

    class Config:
        from_attributes = True
