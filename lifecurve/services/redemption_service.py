"""
卡密 서비스

사용자:
- redeem: 코드 형식 검증 -> 존재 -> 미사용 -> 테스트 종류 일치 확인 후
  사용 처리와 포인트 지급을 한 트랜잭션으로 수행
- verify: 사용 가능 여부만 확인 (상태 변경 없음)

관리자:
- 배치 생성 / 목록 / 삭제 / CSV 내보내기
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from lifecurve.core.exceptions import (
    BaseAPIException,
    BusinessLogicError,
    CodeAlreadyUsedError,
    InternalServerError,
    NotFoundError,
    ValidationError,
)
from lifecurve.repositories.device_repository import DeviceRepository
from lifecurve.repositories.points_repository import LOG_TYPE_RECHARGE, PointsRepository
from lifecurve.repositories.redemption_repository import RedemptionRepository
from lifecurve.schemas.redemption import (
    CodeListFilter,
    CodeListResponse,
    DeleteCodesResponse,
    GenerateCodesRequest,
    GenerateCodesResponse,
    RedeemResponse,
    RedemptionCodeRecord,
    VerifyCodeResponse,
)
from lifecurve.utils.code_utils import (
    MAX_BATCH_SIZE,
    MIN_BATCH_SIZE,
    generate_unique_codes,
    is_valid_code,
    normalize_code,
)
from lifecurve.utils.csv_utils import build_codes_csv
from lifecurve.utils.timezone_utils import get_local_now

logger = logging.getLogger(__name__)


class RedemptionService:
    def __init__(self, db: Session):
        self.db = db
        self.code_repo = RedemptionRepository(db)
        self.device_repo = DeviceRepository(db)
        self.points_repo = PointsRepository(db)

    def _check_redeemable(
        self, code: str, test_slug: Optional[str]
    ) -> RedemptionCodeRecord:
        """존재 -> 미사용 -> 테스트 종류 순으로 사전 조건 확인"""
        record = self.code_repo.get_by_code(code)
        if record is None:
            raise NotFoundError("卡密不存在")
        if record.is_used:
            raise CodeAlreadyUsedError()
        if record.test_slug and record.test_slug != test_slug:
            raise BusinessLogicError(
                "CODE_TEST_MISMATCH",
                f"此卡密仅适用于{record.test_slug}测试",
                details={"testSlug": record.test_slug},
            )
        return record

    def redeem(
        self, raw_code: str, device_id: str, test_slug: Optional[str] = None
    ) -> RedeemResponse:
        """
        卡密 사용

        Args:
            raw_code: 사용자가 입력한 코드 (대소문자/공백 허용)
            device_id: 기기 ID
            test_slug: 현재 테스트 slug (테스트 전용 코드 검증용)

        Returns:
            RedeemResponse: 지급 포인트와 지급 후 잔액

        Raises:
            ValidationError: 입력 누락 또는 형식 오류
            NotFoundError: 존재하지 않는 코드
            CodeAlreadyUsedError: 이미 사용된 코드 (동시 사용 경합에서 진 경우 포함)
            BusinessLogicError: 다른 테스트 전용 코드
        """
        if not raw_code:
            raise ValidationError("请输入卡密")
        if not device_id:
            raise ValidationError("缺少设备ID")

        code = normalize_code(raw_code)
        if not is_valid_code(code):
            raise ValidationError("卡密格式无效")

        record = self._check_redeemable(code, test_slug)

        try:
            self.device_repo.ensure_device(device_id)
            if not self.code_repo.mark_used(code, device_id, commit=False):
                # 사전 확인 이후 다른 요청이 먼저 사용함
                self.db.rollback()
                raise CodeAlreadyUsedError()

            result = self.points_repo.adjust_balance(
                device_id=device_id,
                delta=record.points,
                description=f"卡密兑换 ({code})",
                log_type=LOG_TYPE_RECHARGE,
                related_key=code,
                commit=True,
            )
        except BaseAPIException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to redeem code {code} for device {device_id}: {str(e)}")
            raise InternalServerError("兑换失败，请重试")

        logger.info(
            f"Code {code} redeemed by {device_id}: +{record.points} -> {result.new_balance}"
        )
        return RedeemResponse(
            points_added=record.points,
            total_points=result.new_balance,
            message=f"恭喜！获得 {record.points} 积分",
        )

    def verify(self, raw_code: str, test_slug: Optional[str] = None) -> VerifyCodeResponse:
        """사용 가능 여부 확인 (읽기 전용)"""
        if not raw_code:
            raise ValidationError("请输入卡密")
        record = self._check_redeemable(normalize_code(raw_code), test_slug)
        return VerifyCodeResponse(
            report_level=record.report_level,
            test_slug=record.test_slug,
            points=record.points,
        )

    # ------------------------------------------------------------------
    # 관리자
    # ------------------------------------------------------------------

    def generate_batch(self, request: GenerateCodesRequest) -> GenerateCodesResponse:
        """
        卡密 배치 생성

        Args:
            request: 포인트, 개수(1-10000), 테스트 slug, 리포트 등급, 배치명

        Returns:
            GenerateCodesResponse: 생성된 코드 목록
        """
        if request.count < MIN_BATCH_SIZE or request.count > MAX_BATCH_SIZE:
            raise ValidationError("生成数量需要在1-10000之间")

        batch_name = request.batch_name or get_local_now().strftime("batch_%Y%m%d%H%M%S")
        try:
            codes = generate_unique_codes(request.count)
            clashes = self.code_repo.find_existing(codes)
            if clashes:
                # 기존 코드와 겹친 만큼만 다시 생성
                kept = [c for c in codes if c not in clashes]
                codes = kept + generate_unique_codes(len(clashes), existing=set(kept) | clashes)

            self.code_repo.bulk_create(
                codes,
                points=request.points,
                report_level=request.report_level.value,
                test_slug=request.test_slug or None,
                batch_name=batch_name,
            )
        except Exception as e:
            logger.error(f"Failed to generate code batch {batch_name}: {str(e)}")
            raise InternalServerError("生成失败，请重试")

        logger.info(f"Generated {len(codes)} codes in batch {batch_name}")
        return GenerateCodesResponse(count=len(codes), batch_name=batch_name, codes=codes)

    def list_codes(
        self, filters: CodeListFilter, page: int = 1, page_size: int = 50
    ) -> CodeListResponse:
        page = max(1, page)
        page_size = max(1, min(page_size, 500))
        codes, total = self.code_repo.list_codes(
            filters, limit=page_size, offset=(page - 1) * page_size
        )
        return CodeListResponse(
            codes=codes,
            total=total,
            page=page,
            page_size=page_size,
            batches=self.code_repo.list_batches(),
        )

    def delete_codes(
        self,
        code_id: Optional[int] = None,
        batch_name: Optional[str] = None,
        delete_unused: bool = False,
    ) -> DeleteCodesResponse:
        """ID 단건 삭제 또는 배치 내 미사용 코드 일괄 삭제"""
        if code_id is not None:
            deleted = 1 if self.code_repo.delete(code_id) else 0
        elif batch_name and delete_unused:
            deleted = self.code_repo.delete_unused_in_batch(batch_name)
        else:
            raise ValidationError("参数错误")
        logger.info(f"Deleted {deleted} codes (id={code_id}, batch={batch_name})")
        return DeleteCodesResponse(deleted=deleted)

    def export_csv(
        self,
        batch_name: Optional[str] = None,
        test_slug: Optional[str] = None,
        only_unused: bool = False,
    ) -> str:
        filters = CodeListFilter(
            batch_name=batch_name,
            test_slug=test_slug,
            is_used=False if only_unused else None,
        )
        codes = self.code_repo.export_codes(filters)
        logger.info(f"Exporting {len(codes)} codes (batch={batch_name}, test={test_slug})")
        return build_codes_csv(codes)
