"""
Router principal de la API.
"""

from fastapi import APIRouter

from patient_admin.api.patients import router as patients_router

api_router = APIRouter()

api_router.include_router(
    patients_router,
    prefix="/patients",
    tags=["Pacientes"],
)
