"""Vehicle catalog adapters (the registry is owned outside this service)."""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol

from app.core.database import Database
from app.vehicles.models import Vehicle


class VehicleCatalog(Protocol):
    async def lookup(self, vehicle_id: str) -> Optional[Vehicle]:
        ...


class MongoVehicleCatalog:
    """Catalog backed by the `vehicles` collection."""

    @staticmethod
    def _collection():
        return Database.get_collection("vehicles")

    async def lookup(self, vehicle_id: str) -> Optional[Vehicle]:
        doc = await self._collection().find_one({"vehicle_id": vehicle_id})
        if not doc:
            return None
        doc.pop("_id", None)
        return Vehicle.model_validate(doc)


class MappingVehicleCatalog:
    """Catalog over vehicles the caller already holds (e.g. a customer's garage)."""

    def __init__(self, vehicles: Iterable[Vehicle] = ()):
        self._by_id: Dict[str, Vehicle] = {v.id: v for v in vehicles if v.id}

    def add(self, vehicle: Vehicle) -> None:
        if vehicle.id:
            self._by_id[vehicle.id] = vehicle

    async def lookup(self, vehicle_id: str) -> Optional[Vehicle]:
        return self._by_id.get(vehicle_id)
