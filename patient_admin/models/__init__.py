"""
Modelos SQLAlchemy: exportar todos para que Alembic los detecte.
"""

from patient_admin.models.patient import Patient
from patient_admin.models.hospital import Hospital
from patient_admin.models.visit import Visit
from patient_admin.models.patient_hospital_visit import PatientHospitalVisit

__all__ = [
    "Patient",
    "Hospital",
    "Visit",
    "PatientHospitalVisit",
]
