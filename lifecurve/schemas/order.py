from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from lifecurve.schemas.base import CamelModel


class PayMethod(str, Enum):
    WECHAT = "wechat"
    ALIPAY = "alipay"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class OrderRecord(BaseModel):
    """orders 레코드"""

    id: str
    device_id: str
    amount: int = Field(..., description="결제 금액 (分)")
    points: int
    pay_method: str
    status: str = OrderStatus.PENDING.value
    trade_no: Optional[str] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    expire_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RechargeOptionRecord(BaseModel):
    id: int
    price: int = Field(..., description="가격 (分)")
    points: int
    sort_order: int = 0
    is_active: bool = True

    class Config:
        from_attributes = True


class RechargeOptionInput(BaseModel):
    """관리자 충전 옵션 입력 (전체 교체)"""

    price: int = Field(..., gt=0)
    points: int = Field(..., gt=0)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class RechargeOptionsUpdateRequest(BaseModel):
    options: List[RechargeOptionInput] = Field(default_factory=list)


class AdminRechargeOptionsResponse(CamelModel):
    success: bool = True
    options: List[RechargeOptionRecord]


class PublicRechargeOption(CamelModel):
    id: int
    price: int
    points: int


class RechargeOptionsResponse(CamelModel):
    success: bool = True
    options: List[PublicRechargeOption]


class CreateOrderRequest(CamelModel):
    device_id: str = ""
    option_id: Optional[int] = None
    pay_method: Optional[str] = None


class CreateOrderResponse(CamelModel):
    success: bool = True
    order_id: str
    amount: int
    points: int
    pay_method: str
    expire_at: Optional[datetime] = None


class OrderStatusResponse(CamelModel):
    success: bool = True
    order_id: str
    status: str
    points: int
    amount: int


class AdminOrderListResponse(CamelModel):
    success: bool = True
    orders: List[OrderRecord]
    total: int
    page: int
    page_size: int


class OrderStatsResponse(CamelModel):
    success: bool = True
    today_revenue: int = 0
    today_orders: int = 0
    total_revenue: int = 0
    total_orders: int = 0
    paid_orders: int = 0
    total_users: int = 0
    total_refunded: int = 0


class RefundOrderRequest(CamelModel):
    order_id: str = ""


class RefundOrderResponse(CamelModel):
    success: bool = True
    order_id: str
    status: str
    points_deducted: int
    new_balance: int
