"""
Repositorio SQL (SQLAlchemy 2.0 async) para la búsqueda de visitas.
"""

from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from patient_admin.models.hospital import Hospital
from patient_admin.models.patient import Patient
from patient_admin.models.patient_hospital_visit import PatientHospitalVisit
from patient_admin.models.visit import Visit
from patient_admin.repositories.base import as_utc
from patient_admin.schemas.patient_visit import (
    HospitalResponse,
    PatientVisitRecord,
    SearchCriteria,
    SearchResultPage,
)
from patient_admin.services.pagination import build_result_page, page_offset

_LIKE_ESCAPE = "\\"


def _like_contains(term: str) -> str:
    """Patrón LIKE '%term%' con los comodines del término escapados."""
    escaped = (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


def _visits_query() -> Select:
    """Join explícito asociación × paciente × hospital × visita (inner joins)."""
    return (
        select(
            Patient.id.label("patient_id"),
            Patient.first_name,
            Patient.last_name,
            Patient.email,
            Hospital.id.label("hospital_id"),
            Hospital.name.label("hospital_name"),
            Visit.id.label("visit_id"),
            Visit.date.label("visit_date"),
        )
        .select_from(PatientHospitalVisit)
        .join(Patient, PatientHospitalVisit.patient_id == Patient.id)
        .join(Hospital, PatientHospitalVisit.hospital_id == Hospital.id)
        .join(Visit, PatientHospitalVisit.visit_id == Visit.id)
    )


def _row_to_record(row) -> PatientVisitRecord:
    return PatientVisitRecord(
        patient_id=row.patient_id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        hospital_id=row.hospital_id,
        hospital_name=row.hospital_name,
        visit_id=row.visit_id,
        visit_date=as_utc(row.visit_date),
    )


def apply_search_filters(query: Select, criteria: SearchCriteria) -> Select:
    """Agrega los predicados presentes en `criteria` (en conjunción)."""
    if criteria.search_term:
        pattern = _like_contains(criteria.search_term.lower())
        query = query.where(
            or_(
                func.lower(Patient.first_name).like(pattern, escape=_LIKE_ESCAPE),
                func.lower(Patient.last_name).like(pattern, escape=_LIKE_ESCAPE),
                func.lower(Patient.email).like(pattern, escape=_LIKE_ESCAPE),
                func.lower(Hospital.name).like(pattern, escape=_LIKE_ESCAPE),
            )
        )

    if criteria.hospital_id is not None:
        query = query.where(Hospital.id == criteria.hospital_id)

    if criteria.from_date is not None:
        query = query.where(Visit.date >= criteria.from_date)

    if criteria.to_date is not None:
        query = query.where(Visit.date <= criteria.to_date)

    return query


class SqlPatientVisitRepository:
    """Implementación sobre una AsyncSession (una por request)."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def search_patient_visits(
        self, criteria: SearchCriteria
    ) -> SearchResultPage[PatientVisitRecord]:
        query = apply_search_filters(_visits_query(), criteria)

        # Count total (antes de paginar)
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        # Página fuera de rango: el offset puede no caber en un BIGINT
        offset = page_offset(criteria.page, criteria.page_size)
        if offset >= total:
            return build_result_page([], total, criteria.page, criteria.page_size)

        # Orden + paginación
        query = query.order_by(
            Patient.last_name, Patient.first_name, Visit.date, Visit.id
        )
        query = query.offset(offset)
        query = query.limit(criteria.page_size)

        result = await self.db.execute(query)
        records = [_row_to_record(row) for row in result.all()]

        return build_result_page(records, total, criteria.page, criteria.page_size)

    async def get_patient_visit(
        self, patient_id: UUID, visit_id: UUID
    ) -> PatientVisitRecord | None:
        query = _visits_query().where(
            Patient.id == patient_id,
            Visit.id == visit_id,
        ).limit(1)
        result = await self.db.execute(query)
        row = result.first()
        if row is None:
            return None
        return _row_to_record(row)

    async def list_hospitals(self) -> list[HospitalResponse]:
        result = await self.db.execute(select(Hospital).order_by(Hospital.name))
        return [HospitalResponse.model_validate(h) for h in result.scalars().all()]
