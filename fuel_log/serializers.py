from rest_framework import serializers

from .compartments import CompartmentAllocator
from .domain import (
    CARGO_CHOICES,
    CLOCK_REGEX,
    DEFAULT_CARGO_TYPE,
    DEFAULT_COMPARTMENT_COUNT,
    DEFAULT_MAX_PER_COMPARTMENT_LITERS,
    Cargo,
    DeliveryDrop,
    Job,
    WorkLog,
    uid,
)
from .duration import log_duration
from .store import total_liters


class DriverSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    name = serializers.CharField(max_length=120)


class TruckSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    plate = serializers.CharField(max_length=40)


class TrailerSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    plate = serializers.CharField(max_length=40)
    compartmentCount = serializers.IntegerField(
        source="compartment_count", min_value=1, default=DEFAULT_COMPARTMENT_COUNT
    )
    maxPerCompartmentLiters = serializers.IntegerField(
        source="max_per_compartment_liters", min_value=1, default=DEFAULT_MAX_PER_COMPARTMENT_LITERS
    )


class CargoSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    cargoType = serializers.ChoiceField(source="cargo_type", choices=CARGO_CHOICES, default=DEFAULT_CARGO_TYPE)
    liters = serializers.FloatField(min_value=0, default=0)
    compartment = serializers.IntegerField(min_value=1)


class DeliveryDropSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    customerName = serializers.CharField(source="customer_name", max_length=255, allow_blank=True, default="")
    deliveryAddress = serializers.CharField(
        source="delivery_address", max_length=255, allow_blank=True, default=""
    )
    cargos = CargoSerializer(many=True, required=False)


class JobSerializer(serializers.Serializer):
    id = serializers.CharField(required=False)
    jobNumber = serializers.CharField(source="job_number", max_length=64, allow_blank=True, required=False)
    customerAccount = serializers.CharField(
        source="customer_account", max_length=255, allow_blank=True, default=""
    )
    drops = DeliveryDropSerializer(many=True, required=False)


class WorkLogSerializer(serializers.Serializer):
    """
    A day's log. Rendering needs ``trailers`` in the serializer context to
    work out the per-compartment totals.
    """

    id = serializers.CharField(required=False)
    date = serializers.CharField(read_only=True)
    driverId = serializers.CharField(source="driver_id", required=False, allow_null=True, allow_blank=True)
    truckId = serializers.CharField(source="truck_id", required=False, allow_null=True, allow_blank=True)
    trailerId = serializers.CharField(source="trailer_id", required=False, allow_null=True, allow_blank=True)
    startTime = serializers.RegexField(
        CLOCK_REGEX, source="start_time", required=False, allow_null=True, allow_blank=True
    )
    endTime = serializers.RegexField(CLOCK_REGEX, source="end_time", required=False, allow_null=True, allow_blank=True)
    jobs = JobSerializer(many=True, required=False)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    duration = serializers.SerializerMethodField()
    totalLiters = serializers.SerializerMethodField()
    compartmentTotals = serializers.SerializerMethodField()

    def get_duration(self, log: WorkLog):
        duration = log_duration(log)
        return {"minutes": duration.minutes, "label": duration.label}

    def get_totalLiters(self, log: WorkLog):
        return total_liters(log)

    def get_compartmentTotals(self, log: WorkLog):
        allocator = CompartmentAllocator.for_log(log, self.context.get("trailers", ()))
        return allocator.compartment_totals(log)


class CompartmentOptionSerializer(serializers.Serializer):
    compartment = serializers.IntegerField()
    selectable = serializers.BooleanField()


class CargoTypeSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()


def cargo_from_data(data: dict, position: int) -> Cargo:
    return Cargo(
        id=data.get("id") or uid(),
        cargo_type=data.get("cargo_type", DEFAULT_CARGO_TYPE),
        liters=data.get("liters", 0),
        compartment=data.get("compartment", position),
    )


def drop_from_data(data: dict) -> DeliveryDrop:
    return DeliveryDrop(
        id=data.get("id") or uid(),
        customer_name=data.get("customer_name", ""),
        delivery_address=data.get("delivery_address", ""),
        cargos=tuple(cargo_from_data(cargo, i + 1) for i, cargo in enumerate(data.get("cargos", []))),
    )


def job_from_data(data: dict, position: int) -> Job:
    return Job(
        id=data.get("id") or uid(),
        job_number=data.get("job_number") or f"JOB-{position}",
        customer_account=data.get("customer_account", ""),
        drops=tuple(drop_from_data(drop) for drop in data.get("drops", [])),
    )


def work_log_from_data(data: dict, date: str) -> WorkLog:
    """Build the log sent with a full upsert; the URL decides the date."""
    return WorkLog(
        id=data.get("id") or uid(),
        date=date,
        driver_id=data.get("driver_id"),
        truck_id=data.get("truck_id"),
        trailer_id=data.get("trailer_id"),
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        jobs=tuple(job_from_data(job, i + 1) for i, job in enumerate(data.get("jobs", []))),
        notes=data.get("notes"),
    )
