import logging
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

# Use the lifecurve logger so it goes to the JSON handler
logger = logging.getLogger("lifecurve")

# 결제 콜백 본문 등 민감한 경로는 쿼리스트링을 로그에 남기지 않음
_QUERY_REDACTED_PATHS = ("/api/pay/alipay/return",)


def _loggable_url(request: Request) -> str:
    if request.url.path.startswith(_QUERY_REDACTED_PATHS):
        return str(request.url.replace(query=""))
    return str(request.url)


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        method = request.method
        url = _loggable_url(request)
        client = request.client.host if request.client else "-"

        logger.info(f"[Request] {method} {url} from {client}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error] {method} {url} from {client}")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        line = f"[Response] {method} {url} from {client} -> {response.status_code} in {duration_ms:.1f}ms"
        if response.status_code >= 500:
            logger.error(line)
        elif response.status_code >= 400:
            logger.warning(line)
        else:
            logger.info(line)
        return response
