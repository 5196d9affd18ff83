"""
WeChat Pay v3 결제 알림 검증

1. (공개키가 설정된 경우) Wechatpay-* 헤더로 RSA-SHA256 서명 검증
2. event_type == TRANSACTION.SUCCESS 확인
3. resource를 AES-256-GCM으로 복호화 (키 = API v3 key)
4. out_trade_no / trade_state / transaction_id 추출

어떤 실패도 예외로 던지지 않고 GatewayVerifyResult(success=False)로 돌려준다.
"""

import base64
import json
import logging
from typing import Any, Dict, Mapping, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from lifecurve.config import Settings, settings as default_settings
from lifecurve.providers.payment.keys import load_public_key
from lifecurve.schemas.payment import GatewayVerifyResult, PaymentNotification

logger = logging.getLogger(__name__)

EVENT_TRANSACTION_SUCCESS = "TRANSACTION.SUCCESS"
TRADE_STATE_SUCCESS = "SUCCESS"


class WechatPayGateway:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.api_v3_key = settings.WECHAT_API_V3_KEY
        self.platform_public_key = settings.WECHAT_PLATFORM_PUBLIC_KEY
        if not self.platform_public_key:
            logger.warning(
                "WECHAT_PLATFORM_PUBLIC_KEY is empty; WeChat notify signature verification is disabled"
            )

    def verify_signature(
        self, timestamp: str, nonce: str, body: str, signature: str
    ) -> bool:
        """"{timestamp}\\n{nonce}\\n{body}\\n" 에 대한 RSA-SHA256 서명 검증"""
        if not (timestamp and nonce and signature):
            return False
        message = f"{timestamp}\n{nonce}\n{body}\n".encode("utf-8")
        try:
            key = load_public_key(self.platform_public_key)
            key.verify(
                base64.b64decode(signature),
                message,
                padding.PKCS1v15(),
                hashes.SHA256(),
            )
            return True
        except Exception as e:
            logger.warning(f"WeChat signature verification failed: {e}")
            return False

    def decrypt_resource(self, resource: Dict[str, Any]) -> Dict[str, Any]:
        """AES-256-GCM 복호화 (ciphertext 끝 16바이트가 인증 태그)"""
        aesgcm = AESGCM(self.api_v3_key.encode("utf-8"))
        associated_data = resource.get("associated_data") or ""
        plaintext = aesgcm.decrypt(
            resource["nonce"].encode("utf-8"),
            base64.b64decode(resource["ciphertext"]),
            associated_data.encode("utf-8") if associated_data else None,
        )
        return json.loads(plaintext.decode("utf-8"))

    def parse_notification(
        self, headers: Mapping[str, str], body: bytes
    ) -> GatewayVerifyResult:
        """
        결제 알림 파싱 및 검증

        Args:
            headers: 요청 헤더 (Wechatpay-Timestamp / Nonce / Signature / Serial)
            body: 원본 요청 본문

        Returns:
            GatewayVerifyResult: 성공 시 data에 PaymentNotification
        """
        try:
            body_text = body.decode("utf-8")
            payload = json.loads(body_text)
        except Exception:
            return GatewayVerifyResult(success=False, error="invalid json body")
        if not isinstance(payload, dict):
            return GatewayVerifyResult(success=False, error="invalid json body")

        if self.platform_public_key:
            if not self.verify_signature(
                headers.get("Wechatpay-Timestamp", ""),
                headers.get("Wechatpay-Nonce", ""),
                body_text,
                headers.get("Wechatpay-Signature", ""),
            ):
                logger.warning(
                    f"WeChat notify signature rejected (serial={headers.get('Wechatpay-Serial')})"
                )
                return GatewayVerifyResult(success=False, error="invalid signature", raw=payload)

        event_type = payload.get("event_type")
        if event_type != EVENT_TRANSACTION_SUCCESS:
            return GatewayVerifyResult(
                success=False, error=f"unsupported event: {event_type}", raw=payload
            )

        if not self.api_v3_key:
            return GatewayVerifyResult(success=False, error="api v3 key not configured", raw=payload)

        try:
            resource = payload.get("resource") or {}
            transaction = self.decrypt_resource(resource)
        except Exception as e:
            logger.warning(f"WeChat resource decrypt failed: {e}")
            return GatewayVerifyResult(success=False, error="decrypt failed", raw=payload)

        out_trade_no = transaction.get("out_trade_no")
        trade_state = transaction.get("trade_state")
        transaction_id = transaction.get("transaction_id")
        if not out_trade_no or not trade_state or not transaction_id:
            return GatewayVerifyResult(success=False, error="missing fields", raw=transaction)

        amount = (transaction.get("amount") or {}).get("total")
        return GatewayVerifyResult(
            success=True,
            data=PaymentNotification(
                order_id=out_trade_no,
                trade_no=transaction_id,
                trade_state=trade_state,
                amount=amount,
            ),
            raw=transaction,
        )
