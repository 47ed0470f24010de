"""
Seed de datos de demostración: hospitales, pacientes y visitas.

Uso:
    python scripts/seed_demo_data.py [cantidad_de_visitas]

Crea los hospitales (por nombre) y los pacientes (por email) que falten, y
agrega visitas nuevas repartidas en los últimos 365 días. La asignación de
visitas usa una semilla fija; los ids y las fechas dependen de cada corrida.
"""

import asyncio
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

from sqlalchemy import select

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from patient_admin.database import async_session_factory  # noqa: E402
from patient_admin.models import (  # noqa: E402
    Hospital,
    Patient,
    PatientHospitalVisit,
    Visit,
)

HOSPITAL_NAMES = [
    "Central Hospital",
    "Northside Medical Center",
    "Riverside Clinic",
    "St. Mary's Hospital",
]

FIRST_NAMES = ["John", "Jane", "Maria", "Ahmed", "Li", "Sofia", "Peter", "Amara"]
LAST_NAMES = ["Doe", "Smith", "Garcia", "Khan", "Wang", "Rossi", "Brown", "Okafor"]


async def seed_demo_data(visit_count: int) -> None:
    rng = random.Random(42)
    now = datetime.now(timezone.utc)

    async with async_session_factory() as db:
        # Hospitales (idempotente por nombre)
        result = await db.execute(select(Hospital))
        hospitals = {h.name: h for h in result.scalars().all()}
        for name in HOSPITAL_NAMES:
            if name not in hospitals:
                hospital = Hospital(id=uuid.uuid4(), name=name)
                db.add(hospital)
                hospitals[name] = hospital

        # Pacientes (idempotente por email)
        result = await db.execute(select(Patient))
        patients_by_email = {p.email: p for p in result.scalars().all()}
        created_patients = 0
        for first_name in FIRST_NAMES:
            for last_name in LAST_NAMES:
                email = f"{first_name}.{last_name}@example.com".lower()
                if email not in patients_by_email:
                    patient = Patient(
                        id=uuid.uuid4(),
                        first_name=first_name,
                        last_name=last_name,
                        email=email,
                    )
                    db.add(patient)
                    patients_by_email[email] = patient
                    created_patients += 1
        patients = sorted(patients_by_email.values(), key=lambda p: p.email)

        hospital_list = sorted(hospitals.values(), key=lambda h: h.name)
        for _ in range(visit_count):
            visit = Visit(
                id=uuid.uuid4(),
                date=now - timedelta(days=rng.randint(0, 365), minutes=rng.randint(0, 600)),
            )
            db.add(visit)
            db.add(
                PatientHospitalVisit(
                    id=uuid.uuid4(),
                    patient_id=rng.choice(patients).id,
                    hospital_id=rng.choice(hospital_list).id,
                    visit_id=visit.id,
                )
            )

        await db.commit()
        print(
            f"Seed completado: {len(hospital_list)} hospitales, "
            f"{len(patients)} pacientes ({created_patients} nuevos), {visit_count} visitas nuevas."
        )


def main():
    visit_count = 200
    if len(sys.argv) > 1:
        try:
            visit_count = int(sys.argv[1])
        except ValueError:
            print(f"ERROR: '{sys.argv[1]}' no es un número válido")
            sys.exit(1)

    asyncio.run(seed_demo_data(visit_count))


if __name__ == "__main__":
    main()
