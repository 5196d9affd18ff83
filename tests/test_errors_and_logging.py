import json
import logging

from lifecurve.core.exceptions import (
    AuthenticationError,
    BusinessLogicError,
    InsufficientBalanceError,
    NotFoundError,
)
from lifecurve.utils.config import JsonFormatter


class TestErrorBody:
    """오류 응답 본문 테스트"""

    def test_default_message(self):
        error = AuthenticationError()

        assert error.status_code == 401
        assert error.to_body() == {
            "success": False,
            "error": {"code": "AUTH_001", "message": "未授权", "details": {}},
        }

    def test_business_error_keeps_code_and_details(self):
        error = BusinessLogicError("NO_FREE_NO_POINTS", "免费次数已用完", details={"current": 3})

        assert error.status_code == 400
        assert error.detail["error"]["code"] == "NO_FREE_NO_POINTS"
        assert error.detail["error"]["details"] == {"current": 3}

    def test_overridden_error_code(self):
        error = InsufficientBalanceError("积分不足，需要50积分", error_code="NO_FREE_NO_POINTS")

        assert error.error_code == "NO_FREE_NO_POINTS"
        assert str(error) == "积分不足，需要50积分"

    def test_not_found(self):
        assert NotFoundError("订单不存在").status_code == 404


class TestJsonFormatter:
    def test_keeps_chinese_text(self):
        record = logging.LogRecord("lifecurve", logging.WARNING, __file__, 1, "卡密已被使用", None, None)

        line = JsonFormatter().format(record)

        payload = json.loads(line)
        assert "卡密已被使用" in line
        assert payload["level"] == "WARNING"
        assert payload["name"] == "lifecurve"
