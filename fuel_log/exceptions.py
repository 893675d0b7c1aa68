from rest_framework import exceptions
from rest_framework.views import exception_handler as drf_exception_handler


class FuelLogError(Exception):
    pass


class EntityNotFound(FuelLogError, LookupError):
    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} {key} not found")
        self.kind = kind
        self.key = key


class AllocationError(FuelLogError, ValueError):
    field = "non_field_errors"


class CompartmentUnavailable(AllocationError):
    field = "compartment"

    def __init__(self, compartment: int, reason: str):
        super().__init__(f"Compartment {compartment} is {reason}")
        self.compartment = compartment
        self.reason = reason


class TooManyDrops(AllocationError):
    field = "drops"

    def __init__(self, drops: int, compartment_count: int):
        super().__init__(f"{drops} drops do not fit a trailer with {compartment_count} compartments")
        self.drops = drops
        self.compartment_count = compartment_count


def exception_handler(exc, context):
    """Translate store errors into API errors before DRF renders them."""
    if isinstance(exc, EntityNotFound):
        exc = exceptions.NotFound(str(exc))
    elif isinstance(exc, AllocationError):
        exc = exceptions.ValidationError({exc.field: [str(exc)]})
    return drf_exception_handler(exc, context)
