"""
RegimePulse – Domain Exceptions
================================
Excepciones específicas del dominio.

JERARQUÍA:
    DomainError (base)
    ├── DataFetchError         → velas históricas / TF superior no disponibles
    ├── StreamDisconnectError  → el stream de trades se cortó
    └── ValidationError        → parámetros de dominio inválidos

NOTA: la falta de historial (warm-up) NO es un error. Los indicadores
devuelven None y los filtros aplican su default optimista.
Los umbrales de configuración fuera de rango se recortan, nunca se rechazan.
"""

from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
        }


class DataFetchError(DomainError):
    """La descarga de velas falló o devolvió un payload malformado."""

    def __init__(
        self,
        message: str,
        instrument: Optional[str] = None,
        interval: Optional[str] = None,
    ):
        super().__init__(message, code="DATA_FETCH_ERROR")
        self.instrument = instrument
        self.interval = interval


class StreamDisconnectError(DomainError):
    """El stream de trades en vivo se desconectó."""

    def __init__(self, message: str, instrument: Optional[str] = None):
        super().__init__(message, code="STREAM_DISCONNECT")
        self.instrument = instrument


class ValidationError(DomainError):
    """Error de validación general de datos de dominio."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        self.value = value
