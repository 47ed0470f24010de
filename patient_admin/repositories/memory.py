"""
Repositorio en memoria: misma composición que el repositorio SQL, sobre
diccionarios de instancias de los modelos. Útil para tests y demos.
"""

from typing import Iterable
from uuid import UUID

from patient_admin.models.hospital import Hospital
from patient_admin.models.patient import Patient
from patient_admin.models.patient_hospital_visit import PatientHospitalVisit
from patient_admin.models.visit import Visit
from patient_admin.repositories.base import as_utc, record_sort_key, to_record
from patient_admin.schemas.patient_visit import (
    HospitalResponse,
    PatientVisitRecord,
    SearchCriteria,
    SearchResultPage,
)
from patient_admin.services.pagination import build_result_page, page_offset


def _matches(record: PatientVisitRecord, criteria: SearchCriteria) -> bool:
    if criteria.search_term:
        term = criteria.search_term.lower()
        fields = (
            record.first_name,
            record.last_name,
            record.email,
            record.hospital_name,
        )
        if not any(term in value.lower() for value in fields):
            return False

    if criteria.hospital_id is not None and record.hospital_id != criteria.hospital_id:
        return False

    if criteria.from_date is not None and record.visit_date < as_utc(criteria.from_date):
        return False

    if criteria.to_date is not None and record.visit_date > as_utc(criteria.to_date):
        return False

    return True


class InMemoryPatientVisitRepository:
    def __init__(
        self,
        patients: Iterable[Patient] = (),
        hospitals: Iterable[Hospital] = (),
        visits: Iterable[Visit] = (),
        associations: Iterable[PatientHospitalVisit] = (),
    ) -> None:
        self.patients: dict[UUID, Patient] = {p.id: p for p in patients}
        self.hospitals: dict[UUID, Hospital] = {h.id: h for h in hospitals}
        self.visits: dict[UUID, Visit] = {v.id: v for v in visits}
        self.associations: dict[UUID, PatientHospitalVisit] = {
            a.id: a for a in associations
        }

    def _joined_records(self) -> list[PatientVisitRecord]:
        """Inner join: se descartan asociaciones con ids sin correspondencia."""
        records = []
        for link in self.associations.values():
            patient = self.patients.get(link.patient_id)
            hospital = self.hospitals.get(link.hospital_id)
            visit = self.visits.get(link.visit_id)
            if patient is None or hospital is None or visit is None:
                continue
            records.append(to_record(patient, hospital, visit))
        return records

    async def search_patient_visits(
        self, criteria: SearchCriteria
    ) -> SearchResultPage[PatientVisitRecord]:
        matching = [r for r in self._joined_records() if _matches(r, criteria)]
        matching.sort(key=record_sort_key)

        start = page_offset(criteria.page, criteria.page_size)
        window = matching[start:start + criteria.page_size]
        return build_result_page(window, len(matching), criteria.page, criteria.page_size)

    async def get_patient_visit(
        self, patient_id: UUID, visit_id: UUID
    ) -> PatientVisitRecord | None:
        for record in self._joined_records():
            if record.patient_id == patient_id and record.visit_id == visit_id:
                return record
        return None

    async def list_hospitals(self) -> list[HospitalResponse]:
        hospitals = sorted(self.hospitals.values(), key=lambda h: h.name)
        return [HospitalResponse.model_validate(h) for h in hospitals]
