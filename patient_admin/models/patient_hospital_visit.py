"""
Modelo PatientHospitalVisit: Tabla de asociación paciente × hospital × visita.

Cada fila vincula exactamente un paciente, un hospital y una visita.
No se declaran relationships de ORM: las consultas hacen los joins de forma
explícita para que la composición sea portable a cualquier almacenamiento.
"""

import uuid

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from patient_admin.database import Base


class PatientHospitalVisit(Base):
    __tablename__ = "patient_hospital_visits"
    __table_args__ = (
        UniqueConstraint("visit_id", name="uq_patient_hospital_visit_visit"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    patient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    hospital_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("hospitals.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    visit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("visits.id", ondelete="CASCADE"),
        nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<PatientHospitalVisit patient={self.patient_id} "
            f"hospital={self.hospital_id} visit={self.visit_id}>"
        )
