from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """API 오류 베이스

    응답 본문: {"success": false, "error": {"code", "message", "details"}}
    하위 클래스는 status_code / error_code / default_message만 정의한다.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_001"
    default_message: str = "服务器内部错误"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.error_code = error_code or self.error_code
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(status_code=self.status_code, detail=self.to_body())

    def to_body(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            },
        }

    def __str__(self) -> str:
        return self.message


class AuthenticationError(BaseAPIException):
    """관리자 세션 없음/만료, 비밀번호 불일치"""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTH_001"
    default_message = "未授权"


class AuthorizationError(BaseAPIException):
    """다른 기기의 리소스 접근"""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "AUTH_002"
    default_message = "无权访问"


class ValidationError(BaseAPIException):
    """입력 누락 또는 형식 오류"""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_001"
    default_message = "请求参数无效"


class BusinessLogicError(BaseAPIException):
    """도메인 규칙 위반 - 호출부가 코드를 지정"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, error_code: str, message: str, details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code=error_code)


class NotFoundError(BaseAPIException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND_001"
    default_message = "资源不存在"


class InternalServerError(BaseAPIException):
    pass


class InsufficientBalanceError(BaseAPIException):
    """포인트 부족 (무료 횟수도 없으면 NO_FREE_NO_POINTS 코드로 사용)"""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INSUFFICIENT_POINTS"
    default_message = "积分不足"


class CodeAlreadyUsedError(BaseAPIException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "CODE_USED"
    default_message = "卡密已被使用"
