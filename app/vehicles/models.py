"""Vehicle records and the tagged vehicle reference stored on jobs."""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError


# Timestamp-style ids generated by the mobile client (Date.now() and longer).
VEHICLE_ID_PATTERN = re.compile(r"^\d{13,}$")
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


class Vehicle(BaseModel):
    """A vehicle as held by the external catalog (or embedded in legacy jobs)."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "vehicle_id", "vehicleId"))
    make: str
    model: str
    year: Optional[int] = None
    type: Optional[str] = None  # car | truck | motorcycle | other
    engine_type: Optional[str] = Field(None, validation_alias=AliasChoices("engine_type", "engineType"))
    trim: Optional[str] = None
    color: Optional[str] = None
    license_plate: Optional[str] = Field(None, validation_alias=AliasChoices("license_plate", "licensePlate"))
    vin: Optional[str] = None
    mileage: Optional[int] = None


class InlineVehicleRef(BaseModel):
    """Job carries the full vehicle record."""
    kind: Literal["inline"] = "inline"
    vehicle: Vehicle


class VehicleIdRef(BaseModel):
    """Job carries only the catalog identifier."""
    kind: Literal["id"] = "id"
    vehicle_id: str


class VehicleLabelRef(BaseModel):
    """Legacy free-text description, e.g. "2015 Honda Civic"."""
    kind: Literal["label"] = "label"
    label: str


VehicleRef = Annotated[
    Union[InlineVehicleRef, VehicleIdRef, VehicleLabelRef],
    Field(discriminator="kind"),
]

_vehicle_ref_adapter = TypeAdapter(VehicleRef)


def _inline_from_mapping(raw: dict) -> InlineVehicleRef:
    try:
        vehicle = Vehicle.model_validate(raw)
    except ValidationError:
        # Keep what identifies the vehicle when descriptive fields are malformed.
        ident = raw.get("id") or raw.get("vehicle_id") or raw.get("vehicleId")
        vehicle = Vehicle(
            id=str(ident) if ident else None,
            make=str(raw["make"]),
            model=str(raw["model"]),
        )
    return InlineVehicleRef(vehicle=vehicle)


def parse_vehicle_ref(raw: Any) -> Optional[VehicleRef]:
    """
    Convert a stored vehicle value into a VehicleRef.

    Stored jobs hold several shapes:
    - the tagged form written by this service ({"kind": ...})
    - an inline record carrying make and model
    - a record carrying only an id
    - a timestamp-style or UUID identifier string
    - a free-text label

    Anything else (None, empty, unknown shape) yields None.
    """
    if raw is None:
        return None

    if isinstance(raw, (InlineVehicleRef, VehicleIdRef, VehicleLabelRef)):
        return raw

    if isinstance(raw, Vehicle):
        return InlineVehicleRef(vehicle=raw)

    if isinstance(raw, dict):
        if "kind" in raw:
            try:
                return _vehicle_ref_adapter.validate_python(raw)
            except ValidationError:
                return None
        if raw.get("make") and raw.get("model"):
            return _inline_from_mapping(raw)
        ident = raw.get("id") or raw.get("vehicle_id") or raw.get("vehicleId")
        if ident:
            return VehicleIdRef(vehicle_id=str(ident))
        return None

    if isinstance(raw, int) and not isinstance(raw, bool):
        raw = str(raw)

    if isinstance(raw, str):
        value = raw.strip()
        if not value:
            return None
        if VEHICLE_ID_PATTERN.match(value) or UUID_PATTERN.match(value):
            return VehicleIdRef(vehicle_id=value)
        return VehicleLabelRef(label=value)

    return None


def dump_vehicle_ref(ref: Optional[VehicleRef]) -> Optional[dict]:
    """Tagged document form used when writing jobs."""
    if ref is None:
        return None
    return ref.model_dump(exclude_none=True)
