import hmac
import logging
from typing import Optional

from sqlalchemy.orm import Session

from lifecurve.config import Settings, settings as default_settings
from lifecurve.core.admin_session import SessionStore
from lifecurve.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from lifecurve.repositories.device_repository import DeviceRepository, UsageLogRepository
from lifecurve.repositories.points_repository import PointsRepository
from lifecurve.schemas.admin import (
    AdminSessionInfo,
    DeviceDetailResponse,
    DeviceListResponse,
    DeviceSummary,
)

logger = logging.getLogger(__name__)

DEVICE_LOG_LIMIT = 100


class AdminService:
    """관리자 인증 (비밀번호 -> 세션 쿠키) 및 기기 조회"""

    def __init__(
        self,
        db: Session,
        session_store: SessionStore,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.session_store = session_store
        self.device_repo = DeviceRepository(db)
        self.usage_log_repo = UsageLogRepository(db)
        self.points_repo = PointsRepository(db)

    def _password_matches(self, password: str) -> bool:
        expected = self.settings.ADMIN_PASSWORD
        if not expected or not password:
            return False
        return hmac.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))

    async def login(self, password: str) -> AdminSessionInfo:
        """
        관리자 로그인

        Args:
            password: 관리자 비밀번호 (ADMIN_PASSWORD가 비어 있으면 항상 거부)

        Returns:
            AdminSessionInfo: 쿠키로 내려줄 세션 토큰과 만료 시각
        """
        if not self._password_matches(password):
            logger.warning("Admin login rejected")
            raise AuthenticationError("密码错误")
        session = await self.session_store.create()
        logger.info("Admin session created")
        return session

    async def logout(self, token: Optional[str]) -> None:
        await self.session_store.revoke(token)

    async def verify(self, token: Optional[str]) -> bool:
        return await self.session_store.is_valid(token)

    # ------------------------------------------------------------------
    # 기기 조회
    # ------------------------------------------------------------------

    def list_devices(self, page: int = 1, page_size: int = 20) -> DeviceListResponse:
        page = max(1, page)
        page_size = max(1, min(page_size, 100))
        devices, total = self.device_repo.list_devices(
            limit=page_size, offset=(page - 1) * page_size
        )
        device_ids = [d.device_id for d in devices]
        consumed = self.points_repo.consumed_by_devices(device_ids)
        reports = self.usage_log_repo.count_by_devices(device_ids)

        summaries = [
            DeviceSummary(
                **device.model_dump(exclude={"id"}),
                total_consumed=consumed.get(device.device_id, 0),
                report_count=reports.get(device.device_id, 0),
            )
            for device in devices
        ]
        return DeviceListResponse(
            devices=summaries,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size,
        )

    def get_device_detail(self, device_id: str) -> DeviceDetailResponse:
        if not device_id:
            raise ValidationError("缺少设备ID")
        device = self.device_repo.get_by_device_id(device_id)
        if device is None:
            raise NotFoundError("设备不存在")

        points_logs, _ = self.points_repo.get_history(device_id, limit=DEVICE_LOG_LIMIT)
        usage_logs = self.usage_log_repo.list_recent(device_id, limit=DEVICE_LOG_LIMIT)
        total_consumed, total_recharged = self.points_repo.totals_for_device(device_id)

        return DeviceDetailResponse(
            device=DeviceSummary(
                **device.model_dump(exclude={"id"}),
                total_consumed=total_consumed,
                total_recharged=total_recharged,
                report_count=self.usage_log_repo.count_for_device(device_id),
            ),
            points_logs=points_logs,
            usage_logs=usage_logs,
        )
