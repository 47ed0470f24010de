"""
Contrato del repositorio de visitas y utilidades compartidas entre
implementaciones (SQL y en memoria).
"""

from datetime import datetime, timezone
from typing import Protocol
from uuid import UUID

from patient_admin.models.hospital import Hospital
from patient_admin.models.patient import Patient
from patient_admin.models.visit import Visit
from patient_admin.schemas.patient_visit import (
    HospitalResponse,
    PatientVisitRecord,
    SearchCriteria,
    SearchResultPage,
)


class PatientVisitRepository(Protocol):
    """
    Acceso de solo lectura a pacientes, hospitales y visitas.

    Las implementaciones componen el join asociación × paciente × hospital ×
    visita de forma explícita. Toda operación es una corrutina: si la tarea
    que la espera se cancela, la consulta en curso se abandona.
    """

    async def search_patient_visits(
        self, criteria: SearchCriteria
    ) -> SearchResultPage[PatientVisitRecord]:
        """
        Filtra, ordena (apellido, nombre) y pagina las visitas.
        `criteria` ya viene validado y con el término saneado.
        """
        ...

    async def get_patient_visit(
        self, patient_id: UUID, visit_id: UUID
    ) -> PatientVisitRecord | None:
        """Visita exacta de un paciente, o None si no existe la asociación."""
        ...

    async def list_hospitals(self) -> list[HospitalResponse]:
        """Todos los hospitales ordenados por nombre."""
        ...


def as_utc(value: datetime) -> datetime:
    """Algunos motores (SQLite) devuelven datetimes sin zona: se asume UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_record(patient: Patient, hospital: Hospital, visit: Visit) -> PatientVisitRecord:
    return PatientVisitRecord(
        patient_id=patient.id,
        first_name=patient.first_name,
        last_name=patient.last_name,
        email=patient.email,
        hospital_id=hospital.id,
        hospital_name=hospital.name,
        visit_id=visit.id,
        visit_date=as_utc(visit.date),
    )


def record_sort_key(record: PatientVisitRecord) -> tuple:
    """Apellido, nombre; fecha e id de visita solo desempatan."""
    return (record.last_name, record.first_name, record.visit_date, record.visit_id)
