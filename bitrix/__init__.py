# Импортируем для удобства
from .registrar import (
    FieldRegistrar,
    RegistrationRequest,
    RegistrationResult,
    RegistrationSuccess,
    RegistrationApiError,
    RegistrationTransportError,
    RegistrationError,
    TokenValidationError,
    DomainValidationError,
)

__all__ = [
    'FieldRegistrar',
    'RegistrationRequest',
    'RegistrationResult',
    'RegistrationSuccess',
    'RegistrationApiError',
    'RegistrationTransportError',
    'RegistrationError',
    'TokenValidationError',
    'DomainValidationError',
]
