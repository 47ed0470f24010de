"""
Fixtures compartidas para Pytest.
Configura datos de ejemplo, base de datos de test y clientes HTTP.
"""

import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from patient_admin.api.patients import get_patient_visit_repository
from patient_admin.database import Base
from patient_admin.main import app
from patient_admin.models import Hospital, Patient, PatientHospitalVisit, Visit
from patient_admin.repositories.memory import InMemoryPatientVisitRepository

# ── Engine de test (SQLite async) ────────────────────
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_session_factory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@dataclass
class SampleData:
    """
    Dos hospitales, cinco pacientes y seis visitas asociadas.

    Orden esperado (apellido, nombre, fecha):
    Adams Bob, Doe Alice, Doe John (ene), Doe John (mar), Smith Jane, de Vries Eve.
    """
    central: Hospital
    riverside: Hospital
    john: Patient
    jane: Patient
    alice: Patient
    bob: Patient
    eve: Patient
    visits: dict[str, Visit]
    associations: list[PatientHospitalVisit]
    unlinked_visit: Visit

    @property
    def hospitals(self) -> list[Hospital]:
        return [self.central, self.riverside]

    @property
    def patients(self) -> list[Patient]:
        return [self.john, self.jane, self.alice, self.bob, self.eve]

    @property
    def all_visits(self) -> list[Visit]:
        return [*self.visits.values(), self.unlinked_visit]


def build_sample_data() -> SampleData:
    central = Hospital(id=uuid.uuid4(), name="Central Hospital")
    riverside = Hospital(id=uuid.uuid4(), name="Riverside Clinic")

    john = Patient(id=uuid.uuid4(), first_name="John", last_name="Doe", email="john.doe@test.com")
    jane = Patient(id=uuid.uuid4(), first_name="Jane", last_name="Smith", email="jane.smith@test.com")
    alice = Patient(id=uuid.uuid4(), first_name="Alice", last_name="Doe", email="alice.doe@example.org")
    bob = Patient(id=uuid.uuid4(), first_name="Bob", last_name="Adams", email="bob.adams@example.org")
    eve = Patient(id=uuid.uuid4(), first_name="Eve", last_name="de Vries", email="eve@test.com")

    visits = {
        "john_jan": Visit(id=uuid.uuid4(), date=utc(2024, 1, 10, 9, 0)),
        "john_mar": Visit(id=uuid.uuid4(), date=utc(2024, 3, 5, 14, 30)),
        "jane_feb": Visit(id=uuid.uuid4(), date=utc(2024, 2, 20, 11, 0)),
        "alice_jan": Visit(id=uuid.uuid4(), date=utc(2024, 1, 25, 8, 15)),
        "bob_apr": Visit(id=uuid.uuid4(), date=utc(2024, 4, 1, 16, 45)),
        "eve_feb": Visit(id=uuid.uuid4(), date=utc(2024, 2, 1, 10, 0)),
    }
    links = [
        (john, central, "john_jan"),
        (john, riverside, "john_mar"),
        (jane, central, "jane_feb"),
        (alice, riverside, "alice_jan"),
        (bob, central, "bob_apr"),
        (eve, riverside, "eve_feb"),
    ]
    associations = [
        PatientHospitalVisit(
            id=uuid.uuid4(),
            patient_id=patient.id,
            hospital_id=hospital.id,
            visit_id=visits[key].id,
        )
        for patient, hospital, key in links
    ]

    return SampleData(
        central=central,
        riverside=riverside,
        john=john,
        jane=jane,
        alice=alice,
        bob=bob,
        eve=eve,
        visits=visits,
        associations=associations,
        unlinked_visit=Visit(id=uuid.uuid4(), date=utc(2024, 1, 1, 12, 0)),
    )


@pytest.fixture
def sample_data() -> SampleData:
    return build_sample_data()


@pytest.fixture
def memory_repository(sample_data: SampleData) -> InMemoryPatientVisitRepository:
    return InMemoryPatientVisitRepository(
        patients=sample_data.patients,
        hospitals=sample_data.hospitals,
        visits=sample_data.all_visits,
        associations=sample_data.associations,
    )


# ── Base de datos ────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Crea las tablas, provee una sesión de test y las destruye al final."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with test_session_factory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def seeded_db_session(
    db_session: AsyncSession, sample_data: SampleData
) -> AsyncSession:
    """Sesión con los datos de ejemplo persistidos."""
    db_session.add_all(sample_data.hospitals)
    db_session.add_all(sample_data.patients)
    db_session.add_all(sample_data.all_visits)
    await db_session.flush()
    db_session.add_all(sample_data.associations)
    await db_session.commit()
    return db_session


# ── Cliente HTTP ─────────────────────────────────────


@pytest_asyncio.fixture
async def client(
    memory_repository: InMemoryPatientVisitRepository,
) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP de test con el repositorio en memoria."""
    app.dependency_overrides[get_patient_visit_repository] = lambda: memory_repository

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
