"""
Validación de criterios de búsqueda.

Función pura: no lanza excepciones, acumula todos los errores para que el
cliente vea todas las violaciones en una sola respuesta.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from patient_admin.config import get_settings
from patient_admin.schemas.patient_visit import SearchCriteria

settings = get_settings()


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, error: str) -> None:
        self.errors.append(error)


def validate_search_criteria(
    criteria: SearchCriteria,
    now: datetime | None = None,
) -> ValidationResult:
    """
    Valida página, tamaño de página, rango de fechas y largo del término.

    Args:
        criteria: Criterios tal como llegaron del cliente.
        now: Instante de referencia para las fechas futuras (por defecto, ahora en UTC).

    Returns:
        ValidationResult con la lista ordenada de errores (vacía si es válido).
    """
    result = ValidationResult()
    now = now or datetime.now(timezone.utc)
    latest_allowed = now + timedelta(days=settings.FUTURE_DATE_TOLERANCE_DAYS)

    # Paginación
    if criteria.page <= 0:
        result.add_error("Page must be greater than 0")

    if criteria.page_size <= 0 or criteria.page_size > settings.MAX_PAGE_SIZE:
        result.add_error(f"PageSize must be between 1 and {settings.MAX_PAGE_SIZE}")

    # Rango de fechas
    if (
        criteria.from_date is not None
        and criteria.to_date is not None
        and criteria.from_date > criteria.to_date
    ):
        result.add_error("FromDate cannot be greater than ToDate")

    if criteria.from_date is not None and criteria.from_date > latest_allowed:
        result.add_error("FromDate cannot be in the future")

    if criteria.to_date is not None and criteria.to_date > latest_allowed:
        result.add_error("ToDate cannot be in the future")

    # Término de búsqueda
    if (
        criteria.search_term
        and len(criteria.search_term.strip()) > settings.MAX_SEARCH_TERM_LENGTH
    ):
        result.add_error(
            f"Search term cannot exceed {settings.MAX_SEARCH_TERM_LENGTH} characters"
        )

    return result
