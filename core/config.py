from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Сервер
    PORT: int = 3000
    HOST: str = "0.0.0.0"
    # development включает логирование каждого запроса (раньше NODE_ENV)
    ENVIRONMENT: str = Field(
        default="development",
        validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV"),
    )
    LOG_LEVEL: str = "INFO"
    APP_VERSION: str = "1.1.0"

    # Bitrix24
    BITRIX_DOMAIN: str = "crm.biplaza.es"  # Портал по умолчанию, если ?domain= не передан
    BITRIX_TIMEOUT: float = 10.0  # Таймаут одной попытки, сек
    # Методы REST через запятую, перебираются по порядку до первого result=true.
    # Пример: BITRIX_FIELD_TYPE_ENDPOINTS=userfieldtype.add,userfieldtype.add.json
    BITRIX_FIELD_TYPE_ENDPOINTS: str = "userfieldtype.add"

    # Описание регистрируемого типа поля
    FIELD_TYPE_ID: str = "archivo_electronico_button"
    FIELD_TITLE: str = "Archivo electrónico"
    FIELD_DESCRIPTION: str = "Botón que abre un enlace personalizado en una nueva ventana"
    FIELD_BUTTON_TEXT: str = "Archivo electrónico"
    HANDLER_PATH: str = "/render.js"

    # Кэш успешных регистраций (домен + токен)
    REGISTRATION_CACHE_TTL: int = 24 * 60 * 60
    REGISTRATION_CACHE_MAX_SIZE: int = 1024

    # Лимит запросов с одного IP: 100 за 15 минут. 0 - отключить.
    RATE_LIMIT_CALLS: int = 100
    RATE_LIMIT_PERIOD: int = 15 * 60

    ALLOWED_ORIGINS: Optional[str] = None  # Через запятую для нескольких доменов

    @property
    def field_type_endpoints(self) -> List[str]:
        return [m.strip() for m in self.BITRIX_FIELD_TYPE_ENDPOINTS.split(",") if m.strip()]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

settings = Settings()
