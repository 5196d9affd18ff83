from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel
from lifecurve.schemas.points import PointsLogEntry
from lifecurve.schemas.usage import UsageLogEntry


class AdminLoginRequest(BaseModel):
    password: str = ""


class AdminSessionInfo(BaseModel):
    token: str
    expires_at: datetime


class AdminAuthResponse(CamelModel):
    success: bool = True
    authenticated: bool = True
    expires_at: Optional[datetime] = None


class DeviceSummary(BaseModel):
    """관리자 기기 목록 항목"""

    device_id: str
    points: int = 0
    free_used_life: int = 0
    free_used_wealth: int = 0
    total_paid: int = 0
    total_consumed: int = 0
    total_recharged: Optional[int] = None
    report_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DeviceListResponse(CamelModel):
    success: bool = True
    devices: List[DeviceSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


class DeviceDetailResponse(CamelModel):
    success: bool = True
    device: DeviceSummary
    points_logs: List[PointsLogEntry] = Field(default_factory=list)
    usage_logs: List[UsageLogEntry] = Field(default_factory=list)
