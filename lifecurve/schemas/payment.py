from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class PaymentNotification(BaseModel):
    """결제사 콜백에서 추출한 결제 결과"""

    order_id: str = Field(..., description="가맹점 주문번호 (out_trade_no)")
    trade_no: str = Field(..., description="결제사 거래번호")
    trade_state: str = Field(..., description="SUCCESS / TRADE_SUCCESS 등")
    amount: Optional[int] = Field(None, description="결제 금액 (分)")


class GatewayVerifyResult(BaseModel):
    """콜백 검증 결과 - 어댑터는 예외 대신 이 객체를 반환"""

    success: bool
    data: Optional[PaymentNotification] = None
    error: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class ReconcileResult(BaseModel):
    """주문 정산 결과"""

    order_id: str
    transitioned: bool = Field(..., description="이번 호출에서 pending -> paid 전이 여부")
    points_credited: int = 0
    new_balance: Optional[int] = None
