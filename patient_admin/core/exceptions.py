"""
Errores de dominio del servicio de búsqueda.

Cada error lleva su `kind`; la capa HTTP lo traduce a status con
`status_code_for`, que cubre todos los tipos.
"""

from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    MISSING_INPUT = "missing_input"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


INTERNAL_ERROR_MESSAGE = "An internal server error occurred"

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MISSING_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(kind: ErrorKind) -> int:
    """Status HTTP correspondiente a un tipo de error."""
    return _STATUS_BY_KIND[kind]


class ServiceError(Exception):
    """Base de los errores que el servicio expone al cliente."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return status_code_for(self.kind)


class MissingInputError(ServiceError):
    """Falta el objeto de entrada requerido (400)."""

    kind = ErrorKind.MISSING_INPUT

    def __init__(self, message: str = "Search criteria is required"):
        super().__init__(message)


class SearchValidationError(ServiceError):
    """Una o más reglas de validación incumplidas (400)."""

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(ServiceError):
    """Búsqueda bien formada sin resultado (404)."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Patient visit not found"):
        super().__init__(message)


class InternalServiceError(ServiceError):
    """Fallo de almacenamiento o infraestructura (500). Nunca expone el detalle."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE):
        super().__init__(message)


class QueryTimeoutError(InternalServiceError):
    """La consulta superó el tiempo máximo y fue abandonada."""
