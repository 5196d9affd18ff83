import base64
import json
import logging

import pytest
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from lifecurve.config import Settings
from lifecurve.providers.payment.alipay import AlipayGateway, build_sign_content
from lifecurve.providers.payment.keys import normalize_public_key
from lifecurve.providers.payment.wechat import WechatPayGateway

API_V3_KEY = "0123456789abcdef0123456789abcdef"


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _public_pem(private_key) -> str:
    return (
        private_key.public_key()
        .public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )


def _sign(private_key, message: str) -> str:
    signature = private_key.sign(message.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
    return base64.b64encode(signature).decode("utf-8")


def _wechat_body(transaction: dict, event_type: str = "TRANSACTION.SUCCESS") -> bytes:
    nonce = "abcdefghijkl"
    associated_data = "transaction"
    ciphertext = AESGCM(API_V3_KEY.encode("utf-8")).encrypt(
        nonce.encode("utf-8"),
        json.dumps(transaction).encode("utf-8"),
        associated_data.encode("utf-8"),
    )
    payload = {
        "id": "evt-1",
        "event_type": event_type,
        "resource": {
            "algorithm": "AEAD_AES_256_GCM",
            "ciphertext": base64.b64encode(ciphertext).decode("utf-8"),
            "nonce": nonce,
            "associated_data": associated_data,
        },
    }
    return json.dumps(payload).encode("utf-8")


TRANSACTION = {
    "out_trade_no": "ORD_1700000000_abcdef",
    "transaction_id": "4200000001",
    "trade_state": "SUCCESS",
    "amount": {"total": 990},
}


class TestWechatPayGateway:
    """WeChat Pay 알림 검증 테스트"""

    def test_decrypts_notification(self):
        gateway = WechatPayGateway(Settings(WECHAT_API_V3_KEY=API_V3_KEY))

        result = gateway.parse_notification({}, _wechat_body(TRANSACTION))

        assert result.success is True
        assert result.data.order_id == "ORD_1700000000_abcdef"
        assert result.data.trade_no == "4200000001"
        assert result.data.trade_state == "SUCCESS"
        assert result.data.amount == 990

    def test_rejects_other_events(self):
        gateway = WechatPayGateway(Settings(WECHAT_API_V3_KEY=API_V3_KEY))

        result = gateway.parse_notification({}, _wechat_body(TRANSACTION, "REFUND.SUCCESS"))

        assert result.success is False

    def test_rejects_wrong_key(self):
        gateway = WechatPayGateway(Settings(WECHAT_API_V3_KEY="f" * 32))

        result = gateway.parse_notification({}, _wechat_body(TRANSACTION))

        assert result.success is False
        assert result.error == "decrypt failed"

    def test_rejects_invalid_json(self):
        gateway = WechatPayGateway(Settings(WECHAT_API_V3_KEY=API_V3_KEY))

        assert gateway.parse_notification({}, b"not json").success is False

    def test_requires_transaction_fields(self):
        gateway = WechatPayGateway(Settings(WECHAT_API_V3_KEY=API_V3_KEY))
        body = _wechat_body({"out_trade_no": "ORD_1", "trade_state": "SUCCESS"})

        assert gateway.parse_notification({}, body).success is False

    def test_signature_verification(self, rsa_key):
        gateway = WechatPayGateway(
            Settings(WECHAT_API_V3_KEY=API_V3_KEY, WECHAT_PLATFORM_PUBLIC_KEY=_public_pem(rsa_key))
        )
        body = _wechat_body(TRANSACTION)
        headers = {
            "Wechatpay-Timestamp": "1700000000",
            "Wechatpay-Nonce": "nonce-1",
            "Wechatpay-Serial": "serial-1",
        }
        message = f"1700000000\nnonce-1\n{body.decode('utf-8')}\n"

        signed = dict(headers, **{"Wechatpay-Signature": _sign(rsa_key, message)})
        tampered = dict(headers, **{"Wechatpay-Signature": _sign(rsa_key, message + "x")})

        assert gateway.parse_notification(signed, body).success is True
        assert gateway.parse_notification(tampered, body).error == "invalid signature"

    def test_warns_once_when_public_key_missing(self, caplog):
        # Given / When: 공개키 없이 게이트웨이 생성 후 알림 두 건 처리
        with caplog.at_level(logging.WARNING, logger="lifecurve.providers.payment.wechat"):
            gateway = WechatPayGateway(
                Settings(WECHAT_API_V3_KEY=API_V3_KEY, WECHAT_PLATFORM_PUBLIC_KEY="")
            )
            gateway.parse_notification({}, _wechat_body(TRANSACTION))
            gateway.parse_notification({}, _wechat_body(TRANSACTION))

        # Then: 생성 시점에 한 번만 경고
        warnings = [r for r in caplog.records if "signature verification is disabled" in r.message]
        assert len(warnings) == 1

    def test_no_warning_with_public_key(self, rsa_key, caplog):
        with caplog.at_level(logging.WARNING, logger="lifecurve.providers.payment.wechat"):
            WechatPayGateway(
                Settings(WECHAT_API_V3_KEY=API_V3_KEY, WECHAT_PLATFORM_PUBLIC_KEY=_public_pem(rsa_key))
            )

        assert not [r for r in caplog.records if "signature verification" in r.message]


class TestAlipayGateway:
    """Alipay 알림 검증 테스트"""

    def test_sign_content_sorted_without_sign_fields(self):
        params = {"b": "2", "a": "1", "sign": "xx", "sign_type": "RSA2", "empty": ""}

        assert build_sign_content(params) == "a=1&b=2"

    def test_bare_base64_key_is_wrapped(self, rsa_key):
        pem = _public_pem(rsa_key)
        bare = "".join(line for line in pem.splitlines() if "-----" not in line)

        normalized = normalize_public_key(bare)

        assert normalized.startswith("-----BEGIN PUBLIC KEY-----\n")
        assert normalized.strip().endswith("-----END PUBLIC KEY-----")

    def test_verifies_rsa2_signature(self, rsa_key):
        pem = _public_pem(rsa_key)
        bare = "".join(line for line in pem.splitlines() if "-----" not in line)
        gateway = AlipayGateway(Settings(ALIPAY_PUBLIC_KEY=bare))
        params = {
            "out_trade_no": "ORD_1700000000_abcdef",
            "trade_no": "2025010122001",
            "trade_status": "TRADE_SUCCESS",
            "total_amount": "9.90",
            "sign_type": "RSA2",
        }
        params["sign"] = _sign(rsa_key, build_sign_content(params))

        result = gateway.parse_notification(params)

        assert result.success is True
        assert result.data.order_id == "ORD_1700000000_abcdef"
        assert result.data.trade_state == "TRADE_SUCCESS"
        assert result.data.amount == 990

    def test_rejects_tampered_params(self, rsa_key):
        gateway = AlipayGateway(Settings(ALIPAY_PUBLIC_KEY=_public_pem(rsa_key)))
        params = {"out_trade_no": "ORD_1", "trade_no": "t1", "trade_status": "TRADE_SUCCESS"}
        params["sign"] = _sign(rsa_key, build_sign_content(params))
        params["out_trade_no"] = "ORD_2"

        assert gateway.parse_notification(params).success is False
