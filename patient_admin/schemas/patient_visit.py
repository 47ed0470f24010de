"""
Schemas para la búsqueda de visitas de pacientes.
Los nombres JSON van en camelCase para mantener compatibilidad con el frontend.
"""

from datetime import datetime, timezone
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SearchCriteria(CamelModel):
    """
    Filtros y paginación de una búsqueda.
    Los límites (página, tamaño, fechas) se validan en el servicio para
    reportar todas las violaciones juntas.
    """
    search_term: str | None = Field(
        None, description="Texto a buscar en nombre, apellido, email u hospital"
    )
    hospital_id: UUID | None = Field(None, description="Filtrar por hospital")
    from_date: datetime | None = Field(None, description="Visitas desde esta fecha")
    to_date: datetime | None = Field(None, description="Visitas hasta esta fecha")
    page: int = Field(1, description="Número de página (desde 1)")
    page_size: int = Field(10, description="Tamaño de página (1 a 100)")

    @field_validator("from_date", "to_date")
    @classmethod
    def normalize_to_utc(cls, v: datetime | None) -> datetime | None:
        """Las fechas sin zona horaria se interpretan como UTC."""
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class PatientVisitRecord(CamelModel):
    """Proyección desnormalizada paciente + hospital + visita."""
    patient_id: UUID
    first_name: str
    last_name: str
    email: str
    hospital_id: UUID
    hospital_name: str
    visit_id: UUID
    visit_date: datetime


class HospitalResponse(CamelModel):
    id: UUID
    name: str


class SearchResultPage(CamelModel, Generic[T]):
    """Respuesta paginada genérica."""
    data: list[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class ErrorResponse(BaseModel):
    error: str
