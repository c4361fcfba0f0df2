from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from typing import Optional
import logging

from bitrix.registrar import (
    FieldRegistrar,
    RegistrationApiError,
    RegistrationError,
    RegistrationSuccess,
)
from core.cache import RegistrationCache
from core.config import settings
from core.security import mask_token
from registration import pages

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])

_registrar: Optional[FieldRegistrar] = None


def get_registrar() -> FieldRegistrar:
    """Один регистратор (и один кэш) на процесс."""
    global _registrar
    if _registrar is None:
        _registrar = FieldRegistrar(cache=RegistrationCache())
    return _registrar


def _request_host(request: Request) -> str:
    # Host без порта, как его видит клиент
    return request.url.hostname or request.headers.get("host", "localhost").split(":")[0]


@router.api_route(
    "/",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    response_class=HTMLResponse,
)
def register_field(
    request: Request,
    auth: Optional[str] = None,
    domain: Optional[str] = None,
    registrar: FieldRegistrar = Depends(get_registrar),
):
    """
    Регистрирует тип поля в Bitrix24.

    - без ?auth= показывает инструкцию и ничего не отправляет в Bitrix24
    - пустой токен - 400
    - ошибка API Bitrix24 - 400 с телом ответа
    - сбой сети/таймаут - 500
    """
    host = _request_host(request)

    if auth is None:
        return HTMLResponse(pages.instructions_page(host))

    logger.info(f"Запрос регистрации: domain={domain or registrar.default_domain}, токен {mask_token(auth.strip())}")

    handler_url = f"https://{host}{settings.HANDLER_PATH}"
    try:
        result = registrar.register(domain, auth, handler_url)
    except RegistrationError as e:
        logger.warning(f"Некорректный запрос регистрации: {e}")
        return PlainTextResponse(f"❌ {e}", status_code=400)

    if isinstance(result, RegistrationSuccess):
        if result.cached:
            return HTMLResponse(pages.already_registered_message())
        return HTMLResponse(pages.success_page())

    if isinstance(result, RegistrationApiError):
        return HTMLResponse(pages.api_error_message(result.payload), status_code=400)

    return HTMLResponse(
        pages.transport_error_page(result.message, result.status_code),
        status_code=500,
    )
