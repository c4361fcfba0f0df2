import re
import time
import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# hostname[:port], метки латиница/цифры/дефис
_DOMAIN_RE = re.compile(
    r'^(?=.{1,253}(?::\d{1,5})?$)'
    r'(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)*'
    r'[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?'
    r'(?::\d{1,5})?$'
)


def mask_token(token: Optional[str]) -> str:
    """
    Маскирует токен для логов и сообщений: видны только первые и последние 4 символа.
    """
    if not token:
        return "<empty>"
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}…{token[-4:]}"


def is_valid_domain(domain: str) -> bool:
    if not domain or not isinstance(domain, str):
        return False
    return bool(_DOMAIN_RE.match(domain))


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Базовые заголовки безопасности для всех ответов."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"
        # render.js подключается порталом Bitrix24 с другого домена
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"

        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Ограничение числа запросов с одного IP за окно времени."""

    def __init__(
        self,
        app: ASGIApp,
        calls: int = 100,
        period: int = 900,
        exclude_paths: Optional[List[str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(app)
        self.calls = calls
        self.period = period
        self.exclude_paths = exclude_paths or ["/health"]
        self.clients: Dict[str, List[float]] = {}
        self._clock = clock
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _sweep(self, now: float) -> None:
        # IP без запросов в текущем окне больше не храним
        cutoff = now - self.period
        stale = [ip for ip, hits in self.clients.items() if not hits or hits[-1] <= cutoff]
        for ip in stale:
            del self.clients[ip]
        self._last_sweep = now

    def hit(self, client_ip: str) -> Tuple[bool, int]:
        """
        Учитывает запрос клиента.

        Returns:
            (разрешён ли запрос, остаток запросов либо секунд до Retry-After)
        """
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.period:
                self._sweep(now)

            hits = [ts for ts in self.clients.get(client_ip, []) if ts > now - self.period]
            if len(hits) >= self.calls:
                self.clients[client_ip] = hits
                return False, int(hits[0] + self.period - now) + 1

            hits.append(now)
            self.clients[client_ip] = hits
            return True, self.calls - len(hits)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.calls <= 0 or request.url.path in self.exclude_paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed, value = self.hit(client_ip)

        if not allowed:
            logger.warning(f"Превышен лимит запросов для {client_ip}: {self.calls} за {self.period} сек")
            return PlainTextResponse(
                "Demasiadas solicitudes, inténtalo de nuevo más tarde.",
                status_code=429,
                headers={"Retry-After": str(value)},
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(self.calls)
        response.headers["RateLimit-Remaining"] = str(value)
        return response
