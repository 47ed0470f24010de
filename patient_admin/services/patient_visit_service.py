"""
Servicio de búsqueda de visitas: validación, saneamiento del término y
delegación al repositorio con tiempo máximo de consulta.

Los errores de validación se lanzan antes de tocar el almacenamiento.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, TypeVar
from uuid import UUID

from patient_admin.config import get_settings
from patient_admin.core.exceptions import (
    MissingInputError,
    QueryTimeoutError,
    SearchValidationError,
)
from patient_admin.repositories.base import PatientVisitRepository
from patient_admin.schemas.patient_visit import (
    HospitalResponse,
    PatientVisitRecord,
    SearchCriteria,
    SearchResultPage,
)
from patient_admin.services.validation import validate_search_criteria

settings = get_settings()
logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bloqueo adicional a las consultas parametrizadas, no un reemplazo.
# Rechaza también apellidos legítimos como O'Brien.
DISALLOWED_TERM_FRAGMENTS: tuple[str, ...] = ("'", "--", ";")

_NIL_UUID = UUID(int=0)


async def _with_timeout(
    operation: str, awaitable: Awaitable[T], timeout: float | None
) -> T:
    """Espera la consulta; al vencer el tiempo la abandona y lanza QueryTimeoutError."""
    limit = settings.QUERY_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError as exc:
        logger.warning(f"Timeout de {limit}s en {operation}")
        raise QueryTimeoutError() from exc


# ── Saneamiento ──────────────────────────────────────


def sanitize_search_term(term: str | None) -> str | None:
    """
    Recorta espacios del término. Un término vacío equivale a no filtrar.
    Lanza SearchValidationError si contiene comilla, doble guion o punto y coma.
    """
    if term is None:
        return None
    cleaned = term.strip()
    if not cleaned:
        return None
    if any(fragment in cleaned for fragment in DISALLOWED_TERM_FRAGMENTS):
        logger.warning("Término de búsqueda rechazado por caracteres no permitidos")
        raise SearchValidationError("Search term contains invalid characters")
    return cleaned


# ── Búsqueda paginada ────────────────────────────────


async def search_patient_visits(
    repository: PatientVisitRepository,
    criteria: SearchCriteria | None,
    *,
    now: datetime | None = None,
    timeout: float | None = None,
) -> SearchResultPage[PatientVisitRecord]:
    """
    Busca visitas con filtros opcionales y paginación.

    Raises:
        MissingInputError: si no se recibieron criterios.
        SearchValidationError: con todos los errores unidos por "; ".
        QueryTimeoutError: si la consulta supera el tiempo máximo.
    """
    if criteria is None:
        raise MissingInputError()

    validation = validate_search_criteria(criteria, now=now)
    if not validation.is_valid:
        raise SearchValidationError(validation.errors)

    criteria = criteria.model_copy(
        update={"search_term": sanitize_search_term(criteria.search_term)}
    )

    page = await _with_timeout(
        "search_patient_visits",
        repository.search_patient_visits(criteria),
        timeout,
    )
    logger.info(
        f"Búsqueda de visitas: página {page.page}/{page.total_pages}, "
        f"{len(page.data)} de {page.total_count} resultados"
    )
    return page


# ── Visita puntual ───────────────────────────────────


async def get_patient_visit(
    repository: PatientVisitRepository,
    patient_id: UUID | None,
    visit_id: UUID | None,
    *,
    timeout: float | None = None,
) -> PatientVisitRecord | None:
    """
    Obtiene una visita por paciente + visita.
    Retorna None si no existe (no es un error de validación).
    """
    if patient_id is None or patient_id == _NIL_UUID:
        raise SearchValidationError("PatientId cannot be empty")
    if visit_id is None or visit_id == _NIL_UUID:
        raise SearchValidationError("VisitId cannot be empty")

    return await _with_timeout(
        "get_patient_visit",
        repository.get_patient_visit(patient_id, visit_id),
        timeout,
    )


# ── Hospitales ───────────────────────────────────────


async def list_hospitals(
    repository: PatientVisitRepository,
    *,
    timeout: float | None = None,
) -> list[HospitalResponse]:
    """Lista todos los hospitales ordenados por nombre, sin paginar."""
    return await _with_timeout(
        "list_hospitals", repository.list_hospitals(), timeout
    )
