"""Service providers for routes (overridden in tests)."""

from datetime import datetime
from typing import Callable

from fastapi import Depends

from app.core.dependencies import get_clock
from app.conversations.repository import ConversationRepository, MongoConversationRepository
from app.conversations.service import ConversationResolver
from app.jobs.repository import JobRepository, MongoJobRepository
from app.jobs.service import JobStore
from app.vehicles.catalog import MongoVehicleCatalog, VehicleCatalog
from app.vehicles.resolver import VehicleResolver


def get_job_repository() -> JobRepository:
    return MongoJobRepository()


def get_conversation_repository() -> ConversationRepository:
    return MongoConversationRepository()


def get_vehicle_catalog() -> VehicleCatalog:
    return MongoVehicleCatalog()


def get_vehicle_resolver(catalog: VehicleCatalog = Depends(get_vehicle_catalog)) -> VehicleResolver:
    return VehicleResolver(catalog)


def get_job_store(
    repository: JobRepository = Depends(get_job_repository),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> JobStore:
    return JobStore(repository, clock)


def get_conversation_resolver(
    conversations: ConversationRepository = Depends(get_conversation_repository),
    jobs: JobRepository = Depends(get_job_repository),
    vehicles: VehicleResolver = Depends(get_vehicle_resolver),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ConversationResolver:
    return ConversationResolver(conversations, jobs, vehicles, clock)
