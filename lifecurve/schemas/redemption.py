from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel


class ReportLevel(str, Enum):
    BASIC = "basic"
    FULL = "full"


class RedemptionCodeRecord(BaseModel):
    """redemption_codes 레코드"""

    id: int
    code: str
    points: int = 0
    test_slug: Optional[str] = None
    report_level: str = "basic"
    batch_name: Optional[str] = None
    is_used: bool = False
    used_by: Optional[str] = None
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RedeemRequest(CamelModel):
    key_code: str = Field("", description="卡密 (웹 클라이언트 필드명)")
    code: str = Field("", description="卡密")
    device_id: str = Field("", description="기기 ID")
    test_slug: Optional[str] = Field(None, description="현재 테스트 slug")

    @property
    def raw_code(self) -> str:
        return self.key_code or self.code


class RedeemResponse(CamelModel):
    success: bool = True
    points_added: int
    total_points: int
    message: str


class VerifyCodeRequest(CamelModel):
    code: str = ""
    test_slug: Optional[str] = None


class VerifyCodeResponse(CamelModel):
    success: bool = True
    valid: bool = True
    report_level: str = "basic"
    test_slug: Optional[str] = None
    points: int = 0


class GenerateCodesRequest(CamelModel):
    points: int = Field(0, ge=0, description="코드당 지급 포인트")
    count: int = Field(..., description="생성 개수 (1-10000)")
    test_slug: Optional[str] = None
    report_level: ReportLevel = ReportLevel.BASIC
    batch_name: Optional[str] = None


class GenerateCodesResponse(CamelModel):
    success: bool = True
    count: int
    batch_name: str
    codes: List[str]


class CodeListFilter(BaseModel):
    test_slug: Optional[str] = None
    is_used: Optional[bool] = None
    batch_name: Optional[str] = None


class CodeListResponse(CamelModel):
    success: bool = True
    codes: List[RedemptionCodeRecord]
    total: int
    page: int
    page_size: int
    batches: List[str] = Field(default_factory=list)


class DeleteCodesResponse(CamelModel):
    success: bool = True
    deleted: int
