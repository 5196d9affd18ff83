from .base import CamelModel, SuccessResponse
from .points import DeviceUsageRecord, PointsLogEntry, PointsAdjustResult
from .usage import CurveMode, UsageAction, FreeEligibility
from .redemption import RedemptionCodeRecord, ReportLevel
from .order import OrderRecord, OrderStatus, PayMethod, RechargeOptionRecord
from .payment import PaymentNotification, GatewayVerifyResult, ReconcileResult
from .master import MasterRecord
