import base64
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from lifecurve.config import Settings, settings as default_settings
from lifecurve.providers.payment.keys import load_public_key
from lifecurve.schemas.payment import GatewayVerifyResult, PaymentNotification

logger = logging.getLogger(__name__)

TRADE_SUCCESS = "TRADE_SUCCESS"
SIGN_FIELDS = {"sign", "sign_type"}


def build_sign_content(params: Mapping[str, str]) -> str:
    """sign/sign_type과 빈 값을 제외하고 키 정렬 후 k=v&... 로 연결"""
    items = sorted(
        (k, str(v)) for k, v in params.items() if k not in SIGN_FIELDS and str(v) != ""
    )
    return "&".join(f"{k}={v}" for k, v in items)


def _yuan_to_fen(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int((Decimal(value) * 100).quantize(Decimal("1")))
    except InvalidOperation:
        return None


class AlipayGateway:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.app_id = settings.ALIPAY_APP_ID
        self.public_key = settings.ALIPAY_PUBLIC_KEY

    def verify(self, params: Mapping[str, str]) -> bool:
        """RSA2 (SHA256WithRSA) 서명 검증"""
        sign = params.get("sign")
        if not sign or not self.public_key:
            return False
        try:
            key = load_public_key(self.public_key)
            key.verify(
                base64.b64decode(sign),
                build_sign_content(params).encode("utf-8"),
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
            return True
        except Exception as e:
            logger.warning(f"Alipay signature verification failed: {e}")
            return False

    def parse_notification(self, params: Mapping[str, str]) -> GatewayVerifyResult:
        """비동기 알림 폼 파라미터 검증 후 결제 결과 추출"""
        raw: Dict[str, str] = {k: str(v) for k, v in params.items()}
        if not self.verify(raw):
            return GatewayVerifyResult(success=False, error="invalid signature", raw=raw)

        out_trade_no = raw.get("out_trade_no")
        trade_no = raw.get("trade_no")
        trade_status = raw.get("trade_status")
        if not out_trade_no or not trade_no or not trade_status:
            return GatewayVerifyResult(success=False, error="missing fields", raw=raw)

        return GatewayVerifyResult(
            success=True,
            data=PaymentNotification(
                order_id=out_trade_no,
                trade_no=trade_no,
                trade_state=trade_status,
                amount=_yuan_to_fen(raw.get("total_amount")),
            ),
            raw=raw,
        )
