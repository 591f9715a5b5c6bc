"""Vehicle resolution and display formatting.

Resolution degrades instead of failing: a job whose vehicle cannot be found
still renders, with the original reference as the fallback.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from app.vehicles.catalog import VehicleCatalog
from app.vehicles.models import (
    InlineVehicleRef,
    Vehicle,
    VehicleIdRef,
    VehicleLabelRef,
    VehicleRef,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_LABEL = "Vehicle information not available"

ResolvedVehicle = Union[Vehicle, VehicleIdRef, VehicleLabelRef]


async def resolve_vehicle(
    ref: Optional[VehicleRef], catalog: VehicleCatalog
) -> Optional[ResolvedVehicle]:
    """
    Resolve a vehicle reference against the catalog.

    - inline record -> the record, unchanged
    - id -> the catalog record, or the id ref unchanged when not found
    - label -> the label ref, unchanged
    - None -> None
    """
    match ref:
        case None:
            return None
        case InlineVehicleRef(vehicle=vehicle):
            return vehicle
        case VehicleIdRef(vehicle_id=vehicle_id):
            try:
                found = await catalog.lookup(vehicle_id)
            except Exception as e:
                logger.warning(f"Vehicle catalog lookup failed for {vehicle_id}: {e}")
                found = None
            return found if found is not None else ref
        case VehicleLabelRef():
            return ref
        case _:
            return None


def format_vehicle(resolved: object) -> str:
    """Human-readable vehicle label. Never raises."""
    match resolved:
        case Vehicle(make=make, model=model, year=year):
            text = f"{make or ''} {model or ''}".strip()
            if year:
                text = f"{text} ({year})".strip()
            return text or UNAVAILABLE_LABEL
        case VehicleLabelRef(label=label):
            return label
        case VehicleIdRef():
            return UNAVAILABLE_LABEL
        case _:
            return ""


class VehicleResolver:
    """Resolver bound to a catalog, used by job and conversation services."""

    def __init__(self, catalog: VehicleCatalog):
        self.catalog = catalog

    async def resolve(self, ref: Optional[VehicleRef]) -> Optional[ResolvedVehicle]:
        return await resolve_vehicle(ref, self.catalog)

    async def describe(self, ref: Optional[VehicleRef]) -> str:
        return format_vehicle(await self.resolve(ref))
