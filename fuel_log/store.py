"""
Immutable updates over ``AppState``.

Every function here takes the current state and returns a new one; nothing is
mutated in place. Edits the compartment allocator refuses (a drop or cargo
with no free compartment left) hand back the very same state object, so
``new is old`` tells the caller nothing changed.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from .compartments import CompartmentAllocator
from .domain import (
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
from .exceptions import CompartmentUnavailable, EntityNotFound

logger = logging.getLogger(__name__)

WORK_LOG_FIELDS = {"driver_id", "truck_id", "trailer_id", "start_time", "end_time", "notes"}
JOB_FIELDS = {"job_number", "customer_account"}
DROP_FIELDS = {"customer_name", "delivery_address"}
CARGO_FIELDS = {"cargo_type", "liters", "compartment"}


def _only(fields: dict, allowed: set, kind: str) -> dict:
    unknown = set(fields) - allowed
    if unknown:
        raise TypeError(f"Unknown {kind} field(s): {', '.join(sorted(unknown))}")
    return fields


# Work logs

def find_work_log(state: AppState, date: str) -> Optional[WorkLog]:
    for log in state.work_logs:
        if log.date == date:
            return log
    return None


def get_work_log(state: AppState, date: str) -> WorkLog:
    log = find_work_log(state, date)
    if log is None:
        raise EntityNotFound("Work log", date)
    return log


def upsert_work_log(state: AppState, log: WorkLog) -> AppState:
    """Store ``log`` as the one log for its date, replacing any other."""
    work_logs = list(state.work_logs)
    for index, existing in enumerate(work_logs):
        if existing.date == log.date:
            work_logs[index] = log
            break
    else:
        work_logs.append(log)
    return replace(state, work_logs=tuple(work_logs))


def ensure_work_log(state: AppState, date: str) -> AppState:
    if find_work_log(state, date) is not None:
        return state
    return upsert_work_log(state, WorkLog(id=uid(), date=date, jobs=()))


def update_work_log(state: AppState, date: str, **fields) -> AppState:
    log = get_work_log(state, date)
    return upsert_work_log(state, replace(log, **_only(fields, WORK_LOG_FIELDS, "work log")))


def logged_dates(state: AppState, year: int, month: int) -> List[str]:
    prefix = f"{year:04d}-{month:02d}-"
    return sorted(log.date for log in state.work_logs if log.date.startswith(prefix))


def total_liters(log: WorkLog) -> float:
    return sum(cargo.liters for job in log.jobs for drop in job.drops for cargo in drop.cargos)


def allocator_for(state: AppState, log: WorkLog) -> CompartmentAllocator:
    return CompartmentAllocator.for_log(log, state.trailers)


# Reference data

def add_driver(state: AppState, name: str) -> Tuple[AppState, Driver]:
    driver = Driver(id=uid(), name=name)
    return replace(state, drivers=state.drivers + (driver,)), driver


def add_truck(state: AppState, plate: str) -> Tuple[AppState, Truck]:
    truck = Truck(id=uid(), plate=plate)
    return replace(state, trucks=state.trucks + (truck,)), truck


def add_trailer(
    state: AppState,
    plate: str,
    compartment_count: int = DEFAULT_COMPARTMENT_COUNT,
    max_per_compartment_liters: int = DEFAULT_MAX_PER_COMPARTMENT_LITERS,
) -> Tuple[AppState, Trailer]:
    trailer = Trailer(
        id=uid(),
        plate=plate,
        compartment_count=compartment_count,
        max_per_compartment_liters=max_per_compartment_liters,
    )
    return replace(state, trailers=state.trailers + (trailer,)), trailer


# Jobs

def get_job(log: WorkLog, job_id: str) -> Job:
    for job in log.jobs:
        if job.id == job_id:
            return job
    raise EntityNotFound("Job", job_id)


def _change_job(state: AppState, date: str, job_id: str, change: Callable[[Job], Job]) -> AppState:
    log = get_work_log(state, date)
    job = get_job(log, job_id)
    updated = change(job)
    if updated is job:
        return state
    jobs = tuple(updated if j.id == job_id else j for j in log.jobs)
    return upsert_work_log(state, replace(log, jobs=jobs))


def add_job(state: AppState, date: str, job_number: Optional[str] = None, customer_account: str = "") -> Tuple[AppState, Job]:
    log = get_work_log(state, date)
    job = Job(
        id=uid(),
        job_number=job_number or f"JOB-{len(log.jobs) + 1}",
        customer_account=customer_account,
        drops=(),
    )
    return upsert_work_log(state, replace(log, jobs=log.jobs + (job,))), job


def update_job(state: AppState, date: str, job_id: str, **fields) -> AppState:
    _only(fields, JOB_FIELDS, "job")
    return _change_job(state, date, job_id, lambda job: replace(job, **fields))


def remove_job(state: AppState, date: str, job_id: str) -> AppState:
    log = get_work_log(state, date)
    get_job(log, job_id)
    jobs = tuple(job for job in log.jobs if job.id != job_id)
    return upsert_work_log(state, replace(log, jobs=jobs))


# Drops

def get_drop(job: Job, drop_id: str) -> DeliveryDrop:
    for drop in job.drops:
        if drop.id == drop_id:
            return drop
    raise EntityNotFound("Drop", drop_id)


def _change_drop(job: Job, drop_id: str, change: Callable[[DeliveryDrop], DeliveryDrop]) -> Job:
    drop = get_drop(job, drop_id)
    updated = change(drop)
    if updated is drop:
        return job
    return replace(job, drops=tuple(updated if d.id == drop_id else d for d in job.drops))


def add_drop(
    state: AppState, date: str, job_id: str, customer_name: Optional[str] = None, delivery_address: str = ""
) -> Tuple[AppState, Optional[DeliveryDrop]]:
    """Append a drop to the job; ``(state, None)`` when the trailer is full."""
    log = get_work_log(state, date)
    job = get_job(log, job_id)
    if not allocator_for(state, log).can_add_drop(job):
        logger.debug("Refusing drop for job %s on %s: no free compartment", job_id, date)
        return state, None

    drop = DeliveryDrop(
        id=uid(),
        customer_name=job.customer_account if customer_name is None else customer_name,
        delivery_address=delivery_address,
        cargos=(),
    )
    return _change_job(state, date, job_id, lambda j: replace(j, drops=j.drops + (drop,))), drop


def update_drop(state: AppState, date: str, job_id: str, drop_id: str, **fields) -> AppState:
    _only(fields, DROP_FIELDS, "drop")
    return _change_job(
        state, date, job_id, lambda job: _change_drop(job, drop_id, lambda drop: replace(drop, **fields))
    )


def remove_drop(state: AppState, date: str, job_id: str, drop_id: str) -> AppState:
    def change(job: Job) -> Job:
        get_drop(job, drop_id)
        return replace(job, drops=tuple(drop for drop in job.drops if drop.id != drop_id))

    return _change_job(state, date, job_id, change)


# Cargos

def get_cargo(drop: DeliveryDrop, cargo_id: str) -> Cargo:
    for cargo in drop.cargos:
        if cargo.id == cargo_id:
            return cargo
    raise EntityNotFound("Cargo", cargo_id)


def add_cargo(state: AppState, date: str, job_id: str, drop_id: str) -> Tuple[AppState, Optional[Cargo]]:
    """Add a diesel cargo in the first free compartment; ``(state, None)`` when none is free."""
    log = get_work_log(state, date)
    job = get_job(log, job_id)
    get_drop(job, drop_id)
    compartment = allocator_for(state, log).next_free_compartment(job)
    if compartment is None:
        logger.debug("Refusing cargo for drop %s on %s: all compartments used", drop_id, date)
        return state, None

    cargo = Cargo(id=uid(), cargo_type=DEFAULT_CARGO_TYPE, liters=0, compartment=compartment)
    new_state = _change_job(
        state,
        date,
        job_id,
        lambda j: _change_drop(j, drop_id, lambda d: replace(d, cargos=d.cargos + (cargo,))),
    )
    return new_state, cargo


def update_cargo(state: AppState, date: str, job_id: str, drop_id: str, cargo_id: str, **fields) -> AppState:
    _only(fields, CARGO_FIELDS, "cargo")
    log = get_work_log(state, date)
    job = get_job(log, job_id)
    get_cargo(get_drop(job, drop_id), cargo_id)

    compartment = fields.get("compartment")
    if compartment is not None:
        allocator = allocator_for(state, log)
        if compartment not in allocator.compartments:
            raise CompartmentUnavailable(compartment, f"outside 1..{allocator.compartment_count}")
        if not allocator.is_compartment_selectable(job, compartment, cargo_id):
            raise CompartmentUnavailable(compartment, "already used in this job")

    def change_drop(drop: DeliveryDrop) -> DeliveryDrop:
        cargos = tuple(replace(c, **fields) if c.id == cargo_id else c for c in drop.cargos)
        return replace(drop, cargos=cargos)

    return _change_job(state, date, job_id, lambda j: _change_drop(j, drop_id, change_drop))


def remove_cargo(state: AppState, date: str, job_id: str, drop_id: str, cargo_id: str) -> AppState:
    def change_drop(drop: DeliveryDrop) -> DeliveryDrop:
        get_cargo(drop, cargo_id)
        return replace(drop, cargos=tuple(c for c in drop.cargos if c.id != cargo_id))

    return _change_job(state, date, job_id, lambda j: _change_drop(j, drop_id, change_drop))
