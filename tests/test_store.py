import pytest

from fuel_log import store
from fuel_log.domain import AppState, Trailer, WorkLog
from fuel_log.exceptions import CompartmentUnavailable, EntityNotFound
from fuel_log.normalize import default_state

DAY = "2024-03-04"


@pytest.fixture
def state():
    return store.ensure_work_log(default_state(), DAY)


def test_upsert_keeps_one_log_per_date():
    state = AppState()
    state = store.upsert_work_log(state, WorkLog(id="first", date=DAY, notes="one"))
    state = store.upsert_work_log(state, WorkLog(id="second", date=DAY, notes="two"))
    (log,) = state.work_logs
    assert (log.id, log.notes) == ("second", "two")


def test_upsert_appends_new_dates():
    state = store.upsert_work_log(AppState(), WorkLog(id="a", date="2024-01-01"))
    state = store.upsert_work_log(state, WorkLog(id="b", date="2024-01-02"))
    assert [log.date for log in state.work_logs] == ["2024-01-01", "2024-01-02"]


def test_ensure_work_log_creates_blank_once(state):
    log = store.get_work_log(state, DAY)
    assert log.jobs == () and log.start_time is None
    assert store.ensure_work_log(state, DAY) is state


def test_update_work_log_header(state):
    state = store.update_work_log(state, DAY, start_time="22:00", end_time="02:00", notes="night run")
    log = store.get_work_log(state, DAY)
    assert (log.start_time, log.end_time, log.notes) == ("22:00", "02:00", "night run")
    with pytest.raises(TypeError):
        store.update_work_log(state, DAY, jobs=())


def test_reference_data_is_appended_without_touching_old_state():
    before = default_state()
    after, driver = store.add_driver(before, "Alex")
    assert after.drivers[-1] == driver and driver.name == "Alex"
    assert len(before.drivers) == 1
    after, trailer = store.add_trailer(after, "TR-2")
    assert (trailer.compartment_count, trailer.max_per_compartment_liters) == (6, 7200)
    after, truck = store.add_truck(after, "TK-3")
    assert after.trucks[-1].plate == "TK-3"


def test_jobs_are_numbered_by_count(state):
    state, first = store.add_job(state, DAY)
    state, second = store.add_job(state, DAY, customer_account="ACME")
    assert (first.job_number, second.job_number) == ("JOB-1", "JOB-2")
    assert second.customer_account == "ACME"


def test_new_drop_takes_job_customer(state):
    state, job = store.add_job(state, DAY, customer_account="ACME")
    state, drop = store.add_drop(state, DAY, job.id)
    assert drop.customer_name == "ACME"


def test_full_trailer_scenario(state):
    state = store.update_work_log(state, DAY, trailer_id=state.trailers[0].id)
    state, job = store.add_job(state, DAY)
    for expected in range(1, 7):
        state, drop = store.add_drop(state, DAY, job.id)
        state, cargo = store.add_cargo(state, DAY, job.id, drop.id)
        assert cargo.compartment == expected

    refused, drop = store.add_drop(state, DAY, job.id)
    assert drop is None and refused is state
    log = store.get_work_log(state, DAY)
    job = store.get_job(log, job.id)
    assert len(job.drops) == 6

    third = job.drops[2]
    state = store.remove_cargo(state, DAY, job.id, third.id, third.cargos[0].id)
    log = store.get_work_log(state, DAY)
    allocator = store.allocator_for(state, log)
    assert allocator.next_free_compartment(store.get_job(log, job.id)) == 3


def test_add_cargo_refused_when_full():
    state = AppState(trailers=(Trailer(id="small", plate="S", compartment_count=1),))
    state = store.ensure_work_log(state, DAY)
    state, job = store.add_job(state, DAY)
    state, drop = store.add_drop(state, DAY, job.id)
    state, cargo = store.add_cargo(state, DAY, job.id, drop.id)
    assert cargo.compartment == 1
    refused, cargo = store.add_cargo(state, DAY, job.id, drop.id)
    assert cargo is None and refused is state


def test_update_cargo_guards_compartments(state):
    state, job = store.add_job(state, DAY)
    state, first = store.add_drop(state, DAY, job.id)
    state, a = store.add_cargo(state, DAY, job.id, first.id)
    state, second = store.add_drop(state, DAY, job.id)
    state, b = store.add_cargo(state, DAY, job.id, second.id)

    with pytest.raises(CompartmentUnavailable):
        store.update_cargo(state, DAY, job.id, second.id, b.id, compartment=a.compartment)
    with pytest.raises(CompartmentUnavailable):
        store.update_cargo(state, DAY, job.id, second.id, b.id, compartment=7)

    state = store.update_cargo(state, DAY, job.id, second.id, b.id, compartment=b.compartment, liters=1500)
    state = store.update_cargo(state, DAY, job.id, second.id, b.id, compartment=5, cargo_type="gas_oil")
    cargo = store.get_cargo(store.get_drop(store.get_job(store.get_work_log(state, DAY), job.id), second.id), b.id)
    assert (cargo.compartment, cargo.liters, cargo.cargo_type) == (5, 1500, "gas_oil")


def test_removing_job_cascades(state):
    state, job = store.add_job(state, DAY)
    state, drop = store.add_drop(state, DAY, job.id)
    state, _ = store.add_cargo(state, DAY, job.id, drop.id)
    state = store.remove_job(state, DAY, job.id)
    assert store.get_work_log(state, DAY).jobs == ()


def test_update_and_remove_drop(state):
    state, job = store.add_job(state, DAY)
    state, drop = store.add_drop(state, DAY, job.id)
    state = store.update_drop(state, DAY, job.id, drop.id, delivery_address="Depot 4")
    assert store.get_job(store.get_work_log(state, DAY), job.id).drops[0].delivery_address == "Depot 4"
    state = store.remove_drop(state, DAY, job.id, drop.id)
    assert store.get_job(store.get_work_log(state, DAY), job.id).drops == ()


def test_unknown_ids_raise(state):
    with pytest.raises(EntityNotFound):
        store.get_work_log(state, "1999-01-01")
    with pytest.raises(EntityNotFound):
        store.remove_job(state, DAY, "nope")
    state, job = store.add_job(state, DAY)
    with pytest.raises(EntityNotFound):
        store.add_cargo(state, DAY, job.id, "nope")


def test_totals_and_calendar(state):
    state, job = store.add_job(state, DAY)
    state, drop = store.add_drop(state, DAY, job.id)
    state, cargo = store.add_cargo(state, DAY, job.id, drop.id)
    state = store.update_cargo(state, DAY, job.id, drop.id, cargo.id, liters=2500)
    assert store.total_liters(store.get_work_log(state, DAY)) == 2500

    state = store.ensure_work_log(state, "2024-03-01")
    state = store.ensure_work_log(state, "2024-04-01")
    assert store.logged_dates(state, 2024, 3) == ["2024-03-01", DAY]
