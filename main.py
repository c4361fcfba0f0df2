import logging
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from registration.router import router as registration_router
from widget.router import router as widget_router
from core.config import Settings, settings
from core.security import RateLimitMiddleware, SecurityHeadersMiddleware

# Настройка логирования
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bitrix24 Archivo Electrónico Field", version=settings.APP_VERSION)

# Обработчик ошибок валидации
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Логируем ошибки валидации запросов"""
    logger.error(f"Ошибка валидации запроса {request.method} {request.url.path}")
    logger.error(f"Ошибки валидации: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors()}
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return PlainTextResponse("Página no encontrada", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=getattr(exc, "headers", None))

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Необработанная ошибка {request.method} {request.url.path}: {exc}", exc_info=exc)
    return PlainTextResponse("Error interno del servidor", status_code=500)

def setup_middleware(app: FastAPI, config: Settings) -> None:
    """
    Подключает middleware. Добавленный последним выполняется первым,
    поэтому заголовки безопасности идут последними и попадают и в ответы 429.
    """
    if config.is_development:
        async def log_requests(request: Request, call_next):
            logger.info(f"{request.method} {request.url.path}")
            return await call_next(request)

        app.add_middleware(BaseHTTPMiddleware, dispatch=log_requests)

    app.add_middleware(
        RateLimitMiddleware,
        calls=config.RATE_LIMIT_CALLS,
        period=config.RATE_LIMIT_PERIOD,
    )

    if config.ALLOWED_ORIGINS:
        allowed_origins = [origin.strip() for origin in config.ALLOWED_ORIGINS.split(",") if origin.strip()]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )

    app.add_middleware(SecurityHeadersMiddleware)

setup_middleware(app, settings)

@app.on_event("startup")
def startup_event():
    logger.info(
        f"Сервер запущен ({settings.ENVIRONMENT}), портал по умолчанию: {settings.BITRIX_DOMAIN}, "
        f"методы регистрации: {settings.field_type_endpoints}"
    )

@app.on_event("shutdown")
def shutdown_event():
    logger.info("Сервер остановлен")

# Роутеры
app.include_router(registration_router)
app.include_router(widget_router)

@app.get("/health")
def health_check():
    """Health check endpoint для мониторинга"""
    return {"status": "UP", "version": settings.APP_VERSION, "environment": settings.ENVIRONMENT}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
