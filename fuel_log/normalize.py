"""
Load-time normalization of the persisted snapshot.

Snapshots written before drops were split into cargos stored every drop with
a single ``cargoType``/``liters``/``compartment`` on the drop itself. Such a
drop is recognised by the absence of a ``cargos`` field and lifted into a
drop holding exactly one cargo. Everything else is decoded as the current
shape, with defaults filled in for missing fields.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

from .domain import (
    CARGO_TYPES,
    CLOCK_REGEX,
    DEFAULT_CARGO_TYPE,
    DEFAULT_COMPARTMENT_COUNT,
    DEFAULT_MAX_PER_COMPARTMENT_LITERS,
    AppState,
    Cargo,
    DeliveryDrop,
    Driver,
    Job,
    Trailer,
    Truck,
    WorkLog,
    uid,
)

logger = logging.getLogger(__name__)

RawState = Union[str, bytes, Mapping[str, Any], None]

CLOCK_PATTERN = re.compile(CLOCK_REGEX)


def default_drivers():
    return (Driver(id=uid(), name="Primary Driver"),)


def default_trucks():
    return (Truck(id=uid(), plate="TRK-001"),)


def default_trailers():
    return (
        Trailer(
            id=uid(),
            plate="TRL-001",
            compartment_count=DEFAULT_COMPARTMENT_COUNT,
            max_per_compartment_liters=DEFAULT_MAX_PER_COMPARTMENT_LITERS,
        ),
    )


def default_state() -> AppState:
    return AppState(
        drivers=default_drivers(),
        trucks=default_trucks(),
        trailers=default_trailers(),
        work_logs=(),
    )


def _items(value: Any) -> List[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _text(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _number(value: Any, default=0):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _positive_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 1:
        return default
    return int(value)


def _liters(value: Any):
    return max(_number(value), 0)


def _positive_number(value: Any, default):
    number = _number(value, default)
    return number if number > 0 else default


def _canonical_date(value: Any) -> Optional[str]:
    """``YYYY-MM-DD`` for any parseable year-month-day string, else ``None``."""
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        return None


def _clock(value: Any, name: str, day: str) -> Optional[str]:
    if value is None or value == "":
        return value
    if isinstance(value, str) and CLOCK_PATTERN.fullmatch(value):
        return value
    logger.warning("Discarding stored %s %r of the %s work log: not HH:MM", name, value, day)
    return None


def _cargo_type(value: Any) -> str:
    return value if value in CARGO_TYPES else DEFAULT_CARGO_TYPE


def _decode_cargo(raw: Mapping[str, Any], position: int) -> Cargo:
    return Cargo(
        id=_text(raw.get("id")) or uid(),
        cargo_type=_cargo_type(raw.get("cargoType")),
        liters=_liters(raw.get("liters")),
        compartment=_positive_int(raw.get("compartment"), position),
    )


def _decode_legacy_cargo(raw_drop: Mapping[str, Any], position: int) -> Cargo:
    return Cargo(
        id=uid(),
        cargo_type=_cargo_type(raw_drop.get("cargoType")),
        liters=_liters(raw_drop.get("liters")),
        compartment=_positive_int(raw_drop.get("compartment"), position),
    )


def _decode_drop(raw: Mapping[str, Any], position: int, customer_account: str) -> DeliveryDrop:
    if "cargos" in raw:
        cargos = tuple(
            _decode_cargo(cargo, index + 1) for index, cargo in enumerate(_items(raw["cargos"]))
        )
        customer_name = _text(raw.get("customerName"))
    else:
        cargos = (_decode_legacy_cargo(raw, position),)
        customer_name = (
            _text(raw.get("customerName"))
            or _text(raw.get("customerAccount"))
            or customer_account
        )
    return DeliveryDrop(
        id=_text(raw.get("id")) or uid(),
        customer_name=customer_name,
        delivery_address=_text(raw.get("deliveryAddress")),
        cargos=cargos,
    )


def _decode_job(raw: Mapping[str, Any], position: int) -> Job:
    customer_account = _text(raw.get("customerAccount"))
    drops = tuple(
        _decode_drop(drop, index + 1, customer_account)
        for index, drop in enumerate(_items(raw.get("drops")))
    )
    return Job(
        id=_text(raw.get("id")) or uid(),
        job_number=_text(raw.get("jobNumber")) or f"JOB-{position}",
        customer_account=customer_account,
        drops=drops,
    )


def _decode_work_log(raw: Mapping[str, Any], day: str) -> WorkLog:
    return WorkLog(
        id=_text(raw.get("id")) or uid(),
        date=day,
        driver_id=_optional_text(raw.get("driverId")),
        truck_id=_optional_text(raw.get("truckId")),
        trailer_id=_optional_text(raw.get("trailerId")),
        start_time=_clock(raw.get("startTime"), "start time", day),
        end_time=_clock(raw.get("endTime"), "end time", day),
        jobs=tuple(_decode_job(job, index + 1) for index, job in enumerate(_items(raw.get("jobs")))),
        notes=_optional_text(raw.get("notes")),
    )


def _decode_work_logs(value: Any):
    by_date = {}
    for raw in _items(value):
        day = _canonical_date(raw.get("date"))
        if day is None:
            logger.warning(
                "Dropping stored work log with missing or invalid date %r: id=%r", raw.get("date"), raw.get("id")
            )
            continue
        log = _decode_work_log(raw, day)
        if log.date in by_date:
            logger.warning("Stored snapshot holds more than one work log for %s; keeping the last", log.date)
        by_date[log.date] = log
    return tuple(by_date.values())


def _decode_drivers(value: Any):
    return tuple(
        Driver(id=_text(raw.get("id")) or uid(), name=_text(raw.get("name"))) for raw in _items(value)
    )


def _decode_trucks(value: Any):
    return tuple(
        Truck(id=_text(raw.get("id")) or uid(), plate=_text(raw.get("plate"))) for raw in _items(value)
    )


def _decode_trailers(value: Any):
    return tuple(
        Trailer(
            id=_text(raw.get("id")) or uid(),
            plate=_text(raw.get("plate")),
            compartment_count=_positive_int(raw.get("compartmentCount"), DEFAULT_COMPARTMENT_COUNT),
            max_per_compartment_liters=_positive_number(
                raw.get("maxPerCompartmentLiters"), DEFAULT_MAX_PER_COMPARTMENT_LITERS
            ),
        )
        for raw in _items(value)
    )


def decode_raw(raw: RawState) -> Mapping[str, Any]:
    """Decode stored text into a mapping, raising ``ValueError`` when it is not a JSON object."""
    if isinstance(raw, Mapping):
        return raw
    try:
        parsed = json.loads(raw)
    except TypeError as exc:
        raise ValueError(str(exc)) from exc
    if not isinstance(parsed, Mapping):
        raise ValueError(f"top level is {type(parsed).__name__}, not an object")
    return parsed


def parse_raw(raw: RawState) -> Optional[Mapping[str, Any]]:
    try:
        return decode_raw(raw)
    except ValueError:
        return None


def normalize(raw: RawState) -> AppState:
    """
    Bring a stored snapshot into the current ``AppState`` shape.

    Nothing stored, or a snapshot that is not a JSON object at all, gives the
    default state. Empty reference collections are replaced by the default
    driver, truck and trailer. Work log dates are rewritten as ``YYYY-MM-DD``;
    a log whose date cannot be read is dropped and a clock time that is not
    ``HH:MM`` is cleared.
    """
    if raw is None or raw == "" or raw == b"":
        return default_state()

    try:
        parsed = decode_raw(raw)
    except ValueError as exc:
        logger.warning("Could not parse saved state: %s", exc)
        return default_state()

    return AppState(
        drivers=_decode_drivers(parsed.get("drivers")) or default_drivers(),
        trucks=_decode_trucks(parsed.get("trucks")) or default_trucks(),
        trailers=_decode_trailers(parsed.get("trailers")) or default_trailers(),
        work_logs=_decode_work_logs(parsed.get("workLogs")),
    )
