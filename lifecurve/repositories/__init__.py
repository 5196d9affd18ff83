# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .device_repository import DeviceRepository, UsageLogRepository
from .points_repository import PointsRepository
from .redemption_repository import RedemptionRepository
from .order_repository import OrderRepository, RechargeOptionRepository
from .result_cache_repository import ResultCacheRepository
from .master_repository import MasterRepository
from .system_repository import SystemConfigRepository, SiteStatsRepository, AdminLogRepository
from .admin_session_repository import AdminSessionRepository

__all__ = [
    "BaseRepository",
    "DeviceRepository",
    "UsageLogRepository",
    "PointsRepository",
    "RedemptionRepository",
    "OrderRepository",
    "RechargeOptionRepository",
    "ResultCacheRepository",
    "MasterRepository",
    "SystemConfigRepository",
    "SiteStatsRepository",
    "AdminLogRepository",
    "AdminSessionRepository",
]
