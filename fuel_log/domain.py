from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Tuple


CARGO_CHOICES = [
    ("diesel", "Diesel"),
    ("petrol", "Petrol"),
    ("diesel_plus", "Diesel Plus"),
    ("petrol_plus", "Petrol Plus"),
    ("kerosene", "Kerosene"),
    ("gas_oil", "Gas Oil"),
]
CARGO_TYPES = [value for value, _ in CARGO_CHOICES]
DEFAULT_CARGO_TYPE = "diesel"

DEFAULT_COMPARTMENT_COUNT = 6
DEFAULT_MAX_PER_COMPARTMENT_LITERS = 7200

CLOCK_REGEX = r"^([01]\d|2[0-3]):[0-5]\d$"


def uid() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Driver:
    id: str
    name: str

    def as_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class Truck:
    id: str
    plate: str

    def as_dict(self) -> dict:
        return {"id": self.id, "plate": self.plate}


@dataclass(frozen=True)
class Trailer:
    id: str
    plate: str
    compartment_count: int = DEFAULT_COMPARTMENT_COUNT
    max_per_compartment_liters: int = DEFAULT_MAX_PER_COMPARTMENT_LITERS

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "plate": self.plate,
            "compartmentCount": self.compartment_count,
            "maxPerCompartmentLiters": self.max_per_compartment_liters,
        }


@dataclass(frozen=True)
class Cargo:
    id: str
    cargo_type: str
    liters: float
    compartment: int

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "cargoType": self.cargo_type,
            "liters": self.liters,
            "compartment": self.compartment,
        }


@dataclass(frozen=True)
class DeliveryDrop:
    id: str
    customer_name: str = ""
    delivery_address: str = ""
    cargos: Tuple[Cargo, ...] = ()

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "deliveryAddress": self.delivery_address,
            "cargos": [cargo.as_dict() for cargo in self.cargos],
        }


@dataclass(frozen=True)
class Job:
    id: str
    job_number: str
    customer_account: str = ""
    drops: Tuple[DeliveryDrop, ...] = ()

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "jobNumber": self.job_number,
            "customerAccount": self.customer_account,
            "drops": [drop.as_dict() for drop in self.drops],
        }


@dataclass(frozen=True)
class WorkLog:
    """One calendar day of work. ``date`` (ISO ``YYYY-MM-DD``) is the natural key."""

    id: str
    date: str
    driver_id: Optional[str] = None
    truck_id: Optional[str] = None
    trailer_id: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    jobs: Tuple[Job, ...] = ()
    notes: Optional[str] = None

    def as_dict(self) -> dict:
        data = {"id": self.id, "date": self.date}
        optional = [
            ("driverId", self.driver_id),
            ("truckId", self.truck_id),
            ("trailerId", self.trailer_id),
            ("startTime", self.start_time),
            ("endTime", self.end_time),
        ]
        data.update({key: value for key, value in optional if value is not None})
        data["jobs"] = [job.as_dict() for job in self.jobs]
        if self.notes is not None:
            data["notes"] = self.notes
        return data


@dataclass(frozen=True)
class AppState:
    drivers: Tuple[Driver, ...] = ()
    trucks: Tuple[Truck, ...] = ()
    trailers: Tuple[Trailer, ...] = ()
    work_logs: Tuple[WorkLog, ...] = ()

    def as_dict(self) -> dict:
        return {
            "drivers": [driver.as_dict() for driver in self.drivers],
            "trucks": [truck.as_dict() for truck in self.trucks],
            "trailers": [trailer.as_dict() for trailer in self.trailers],
            "workLogs": [log.as_dict() for log in self.work_logs],
        }
