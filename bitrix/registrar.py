"""
Регистрация пользовательского типа поля в Bitrix24 (userfieldtype.add).

Методы REST перебираются по порядку из настроек до первого ответа с result=true.
Повторов сверх этого списка нет, пауз между попытками нет.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import requests

from core.cache import RegistrationCache
from core.config import settings
from core.security import is_valid_domain, mask_token

logger = logging.getLogger(__name__)


class RegistrationError(Exception):
    """Базовая ошибка регистрации, возникающая до обращения к Bitrix24."""


class TokenValidationError(RegistrationError, ValueError):
    pass


class DomainValidationError(RegistrationError, ValueError):
    pass


@dataclass
class RegistrationRequest:
    domain: str
    auth_token: str
    handler_url: str
    field_type_id: str
    title: str
    description: str

    def to_payload(self) -> Dict[str, str]:
        return {
            "USER_TYPE_ID": self.field_type_id,
            "HANDLER": self.handler_url,
            "TITLE": self.title,
            "DESCRIPTION": self.description,
        }


@dataclass
class RegistrationSuccess:
    endpoint: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    cached: bool = False


@dataclass
class RegistrationApiError:
    payload: Any
    endpoint: Optional[str] = None


@dataclass
class RegistrationTransportError:
    message: str
    status_code: Optional[int] = None


RegistrationResult = Union[RegistrationSuccess, RegistrationApiError, RegistrationTransportError]


class FieldRegistrar:
    def __init__(
        self,
        cache: Optional[RegistrationCache] = None,
        endpoints: Optional[List[str]] = None,
        timeout: Optional[float] = None,
        default_domain: Optional[str] = None,
    ):
        self.cache = cache
        self.endpoints = list(endpoints) if endpoints is not None else settings.field_type_endpoints
        self.timeout = timeout if timeout is not None else settings.BITRIX_TIMEOUT
        self.default_domain = default_domain or settings.BITRIX_DOMAIN
        if not self.endpoints:
            raise ValueError("Список методов REST для регистрации поля пуст")

    def build_request(self, domain: Optional[str], auth_token: Optional[str], handler_url: str) -> RegistrationRequest:
        """
        Проверяет входные данные и собирает запрос на регистрацию.

        Raises:
            TokenValidationError: токен пустой
            DomainValidationError: домен не похож на имя хоста
        """
        token = (auth_token or "").strip()
        if not token:
            raise TokenValidationError("El token de autenticación no puede estar vacío")

        target = (domain or "").strip() or self.default_domain
        if not is_valid_domain(target):
            raise DomainValidationError(f"Dominio no válido: {target}")

        return RegistrationRequest(
            domain=target,
            auth_token=token,
            handler_url=handler_url,
            field_type_id=settings.FIELD_TYPE_ID,
            title=settings.FIELD_TITLE,
            description=settings.FIELD_DESCRIPTION,
        )

    def register(self, domain: Optional[str], auth_token: Optional[str], handler_url: str) -> RegistrationResult:
        request = self.build_request(domain, auth_token, handler_url)

        if self.cache is not None and self.cache.contains(request.domain, request.auth_token):
            logger.info(f"Тип поля {request.field_type_id} уже зарегистрирован для {request.domain} (кэш)")
            return RegistrationSuccess(cached=True)

        payload = request.to_payload()
        last_api_error: Optional[RegistrationApiError] = None
        last_transport_error: Optional[RegistrationTransportError] = None

        for method in self.endpoints:
            url = f"https://{request.domain}/rest/{method}"
            logger.info(f"Регистрация типа поля: POST {url}, токен {mask_token(request.auth_token)}")

            try:
                res = requests.post(
                    url,
                    json=payload,
                    params={"auth": request.auth_token},
                    timeout=self.timeout,
                )
            except requests.Timeout as e:
                logger.error(f"Timeout при запросе к Bitrix24. URL: {url}, timeout: {self.timeout}s, error: {e}")
                last_transport_error = RegistrationTransportError(message=str(e))
                continue
            except requests.RequestException as e:
                logger.error(f"Ошибка сети при запросе к Bitrix24. URL: {url}, error: {e}")
                last_transport_error = RegistrationTransportError(
                    message=str(e),
                    status_code=getattr(getattr(e, "response", None), "status_code", None),
                )
                continue

            # 4xx от Bitrix24 - это ответ API с описанием ошибки, 5xx - сбой транспорта
            if res.status_code >= 500:
                logger.error(f"Bitrix24 вернул {res.status_code} для {url}")
                last_transport_error = RegistrationTransportError(
                    message=f"Request failed with status code {res.status_code}",
                    status_code=res.status_code,
                )
                continue

            try:
                data = res.json()
            except ValueError:
                logger.warning(f"Ответ Bitrix24 не является JSON ({url}, status {res.status_code})")
                last_api_error = RegistrationApiError(payload=res.text, endpoint=method)
                continue

            logger.info(f"Ответ Bitrix24 ({method}): {data}")

            if isinstance(data, dict) and data.get("result"):
                if self.cache is not None:
                    self.cache.add(request.domain, request.auth_token)
                logger.info(f"✅ Тип поля {request.field_type_id} зарегистрирован на {request.domain} через {method}")
                return RegistrationSuccess(endpoint=method, payload=data)

            last_api_error = RegistrationApiError(payload=data, endpoint=method)

        if last_api_error is not None:
            logger.warning(f"Bitrix24 отклонил регистрацию на {request.domain}: {last_api_error.payload}")
            return last_api_error

        logger.error(f"Все методы регистрации недоступны для {request.domain}: {last_transport_error.message}")
        return last_transport_error
