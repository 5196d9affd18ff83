from lifecurve.models.base import Base
from lifecurve.models.device import DeviceUsage, UsageLog
from lifecurve.models.points import PointsLog
from lifecurve.models.redemption import RedemptionCode
from lifecurve.models.order import Order, RechargeOption
from lifecurve.models.result_cache import ResultCache
from lifecurve.models.master import Master
from lifecurve.models.consultation import Consultation
from lifecurve.models.user import UserAccount
from lifecurve.models.system import SystemConfig, SiteStat, AdminSession, AdminLog

__all__ = [
    "Base",
    "DeviceUsage",
    "UsageLog",
    "PointsLog",
    "RedemptionCode",
    "Order",
    "RechargeOption",
    "ResultCache",
    "Master",
    "Consultation",
    "UserAccount",
    "SystemConfig",
    "SiteStat",
    "AdminSession",
    "AdminLog",
]
