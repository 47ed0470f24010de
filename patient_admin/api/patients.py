"""
Endpoints de consulta de visitas de pacientes (solo lectura).
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from patient_admin.config import get_settings
from patient_admin.core.exceptions import (
    InternalServiceError,
    NotFoundError,
    ServiceError,
)
from patient_admin.database import get_db
from patient_admin.repositories.base import PatientVisitRepository
from patient_admin.repositories.sql import SqlPatientVisitRepository
from patient_admin.schemas.patient_visit import (
    ErrorResponse,
    HospitalResponse,
    PatientVisitRecord,
    SearchCriteria,
    SearchResultPage,
)
from patient_admin.services import patient_visit_service

settings = get_settings()
logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_patient_visit_repository(
    db: AsyncSession = Depends(get_db),
) -> PatientVisitRepository:
    """Dependency: repositorio SQL sobre la sesión del request."""
    return SqlPatientVisitRepository(db)


@contextmanager
def _store_failures(operation: str) -> Iterator[None]:
    """Convierte fallos inesperados del almacenamiento en un 500 genérico."""
    try:
        yield
    except ServiceError:
        raise
    except Exception as exc:
        logger.exception(f"Fallo inesperado en {operation}")
        raise InternalServiceError() from exc


@router.get(
    "/visits",
    response_model=SearchResultPage[PatientVisitRecord],
    responses=_ERROR_RESPONSES,
)
async def search_patient_visits(
    search_term: str | None = Query(
        None, alias="searchTerm",
        description="Buscar por nombre, apellido, email u hospital",
    ),
    hospital_id: UUID | None = Query(None, alias="hospitalId", description="Filtrar por hospital"),
    from_date: datetime | None = Query(None, alias="fromDate", description="Desde fecha"),
    to_date: datetime | None = Query(None, alias="toDate", description="Hasta fecha"),
    page: int = Query(1, description="Número de página"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, alias="pageSize",
        description=f"Tamaño de página (máximo {settings.MAX_PAGE_SIZE})",
    ),
    repository: PatientVisitRepository = Depends(get_patient_visit_repository),
):
    """
    Busca visitas de pacientes con filtros opcionales y paginación.
    Ordenado por apellido y nombre.
    """
    criteria = SearchCriteria(
        search_term=search_term,
        hospital_id=hospital_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    with _store_failures("search_patient_visits"):
        return await patient_visit_service.search_patient_visits(repository, criteria)


@router.get(
    "/hospitals",
    response_model=list[HospitalResponse],
    responses={500: {"model": ErrorResponse}},
)
async def list_hospitals(
    repository: PatientVisitRepository = Depends(get_patient_visit_repository),
):
    """Lista todos los hospitales ordenados por nombre."""
    with _store_failures("list_hospitals"):
        return await patient_visit_service.list_hospitals(repository)


@router.get(
    "/{patient_id}/visits/{visit_id}",
    response_model=PatientVisitRecord,
    responses={**_ERROR_RESPONSES, 404: {"model": ErrorResponse}},
)
async def get_patient_visit(
    patient_id: UUID,
    visit_id: UUID,
    repository: PatientVisitRepository = Depends(get_patient_visit_repository),
):
    """Obtiene una visita puntual de un paciente."""
    with _store_failures("get_patient_visit"):
        record = await patient_visit_service.get_patient_visit(
            repository, patient_id, visit_id
        )
    if record is None:
        raise NotFoundError()
    return record
