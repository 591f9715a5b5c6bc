# tests/conftest.py

import pytest

from app.jobs.models import Job
from app.vehicles.catalog import MappingVehicleCatalog
from app.vehicles.models import Vehicle
from app.vehicles.resolver import VehicleResolver

from tests.fakes import FIXED_NOW, InMemoryConversationRepository, InMemoryJobRepository


# --- Fixtures ---
@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def make_job():
    """Factory for Job records with sensible defaults."""

    def _make(**overrides) -> Job:
        data = {
            "id": "J1",
            "customer_id": "C1",
            "status": "pending",
            "category": "Brakes",
            "urgency": "medium",
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        data.update(overrides)
        return Job.model_validate(data)

    return _make


@pytest.fixture
def job_repo():
    return InMemoryJobRepository()


@pytest.fixture
def conversation_repo():
    return InMemoryConversationRepository()


@pytest.fixture
def civic():
    return Vehicle(id="1700000000002", make="Honda", model="Civic", year=2015)


@pytest.fixture
def vehicle_catalog(civic):
    return MappingVehicleCatalog([civic])


@pytest.fixture
def vehicle_resolver(vehicle_catalog):
    return VehicleResolver(vehicle_catalog)
