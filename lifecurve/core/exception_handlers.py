import logging
import traceback
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .exceptions import BaseAPIException, InternalServerError, ValidationError

logger = logging.getLogger("lifecurve")


def _describe(request: Request) -> str:
    client = request.client.host if request.client else "-"
    return f"{request.method} {request.url.path} from {client}"


def _log_by_status(label: str, request: Request, status_code: int, detail: Any) -> None:
    line = f"[{label}] {_describe(request)} -> {status_code}: {detail}"
    if status_code >= 500:
        logger.error(line)
    else:
        logger.warning(line)


def jsonable_errors(errors) -> List[Dict[str, Any]]:
    """pydantic 에러의 ctx 값(예외 객체 등)을 문자열로 바꿔 JSON 직렬화 가능하게"""
    cleaned = []
    for err in errors:
        item = dict(err)
        if "ctx" in item:
            item["ctx"] = {k: str(v) for k, v in item["ctx"].items()}
        item.pop("url", None)
        cleaned.append(item)
    return cleaned


async def handle_base_api_exception(request: Request, exc: BaseAPIException):
    _log_by_status("APIError", request, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def handle_http_exception(request: Request, exc: HTTPException):
    _log_by_status("HTTPException", request, exc.status_code, exc.detail)
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = {
            "success": False,
            "error": {"code": "HTTP_ERROR", "message": str(exc.detail), "details": {}},
        }
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """요청 본문/쿼리 검증 실패는 모두 400 请求参数无效"""
    errors = jsonable_errors(exc.errors())
    _log_by_status("ValidationError", request, 400, errors)
    error = ValidationError(details={"errors": errors})
    return JSONResponse(status_code=error.status_code, content=error.to_body())


async def handle_unexpected_error(request: Request, exc: Exception):
    # 스택 트레이스는 서버 로그에만 남김
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {_describe(request)}\n"
        f"{type(exc).__name__}: {exc}\n{tb_str}"
    )
    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.to_body())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
