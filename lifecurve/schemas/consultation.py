from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel


class ConsultationStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class ConsultationRecord(BaseModel):
    """consultations 레코드"""

    id: str
    device_id: str
    master_id: str
    master_name: Optional[str] = None
    price: int = Field(..., description="가격 (分)")
    word_count: Optional[int] = None
    follow_ups: Optional[int] = None
    birth_year: int
    birth_month: int
    birth_day: int
    birth_time: Optional[str] = None
    gender: str
    name: Optional[str] = None
    wechat_id: str
    question: str
    focus_hint: Optional[str] = None
    pay_method: str
    status: str = ConsultationStatus.PENDING.value
    trade_no: Optional[str] = None
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConsultationResponse(CamelModel):
    id: str
    master_id: str
    master_name: Optional[str] = None
    price: int
    word_count: Optional[int] = None
    follow_ups: Optional[int] = None
    birth_year: int
    birth_month: int
    birth_day: int
    birth_time: Optional[str] = None
    gender: str
    name: Optional[str] = None
    wechat_id: str
    question: str
    focus_hint: Optional[str] = None
    pay_method: str
    status: str
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AdminConsultationResponse(ConsultationResponse):
    """관리자 조회용 - 기기 ID와 결제사 거래번호 포함"""

    device_id: str
    trade_no: Optional[str] = None


class CreateConsultationRequest(CamelModel):
    """상담 주문 생성 요청 (필드 검증은 서비스에서 메시지와 함께 수행)"""

    device_id: str = ""
    master_id: Optional[str] = None
    birth_year: Optional[int] = None
    birth_month: Optional[int] = None
    birth_day: Optional[int] = None
    birth_time: Optional[str] = None
    gender: Optional[str] = None
    name: Optional[str] = None
    wechat_id: Optional[str] = None
    question: Optional[str] = None
    pay_method: Optional[str] = None


class CreateConsultationResponse(CamelModel):
    success: bool = True
    consultation_id: str
    amount: int
    pay_method: str
    status: str


class ConsultationDetailResponse(CamelModel):
    success: bool = True
    consultation: ConsultationResponse


class ConsultationStats(CamelModel):
    total: int = 0
    pending: int = 0
    paid: int = 0
    completed: int = 0
    refunded: int = 0
    total_revenue: int = Field(0, description="paid + completed 금액 합계 (分)")


class AdminConsultationListResponse(CamelModel):
    success: bool = True
    consultations: List[AdminConsultationResponse]
    total: int
    page: int
    page_size: int
    stats: Optional[ConsultationStats] = None


class AdminConsultationDetailResponse(CamelModel):
    success: bool = True
    consultation: AdminConsultationResponse


class ConsultationActionRequest(CamelModel):
    action: Optional[str] = Field(None, description="complete | refund")


class ConsultationActionResponse(CamelModel):
    success: bool = True
    consultation: AdminConsultationResponse
    message: str
