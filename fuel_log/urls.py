from django.urls import include, path, register_converter
from rest_framework.routers import DefaultRouter

from .converters import IsoDateConverter
from .views import (
    CalendarMonthView,
    CargoDetailView,
    CargoListView,
    CargoTypeView,
    DriverViewSet,
    DropDetailView,
    DropListView,
    JobCompartmentsView,
    JobDetailView,
    JobListView,
    StateView,
    TrailerViewSet,
    TruckViewSet,
    WorkLogDetailView,
    WorkLogListView,
)

register_converter(IsoDateConverter, "isodate")

router = DefaultRouter()
router.register(r"drivers", DriverViewSet, basename="driver")
router.register(r"trucks", TruckViewSet, basename="truck")
router.register(r"trailers", TrailerViewSet, basename="trailer")

job = "work-logs/<isodate:date>/jobs/<str:job_id>/"
drop = job + "drops/<str:drop_id>/"

urlpatterns = [
    path("", include(router.urls)),
    path("state/", StateView.as_view(), name="state"),
    path("cargo-types/", CargoTypeView.as_view(), name="cargo-types"),
    path("calendar/<int:year>/<int:month>/", CalendarMonthView.as_view(), name="calendar-month"),
    path("work-logs/", WorkLogListView.as_view(), name="worklog-list"),
    path("work-logs/<isodate:date>/", WorkLogDetailView.as_view(), name="worklog-detail"),
    path("work-logs/<isodate:date>/jobs/", JobListView.as_view(), name="job-list"),
    path(job, JobDetailView.as_view(), name="job-detail"),
    path(job + "compartments/", JobCompartmentsView.as_view(), name="job-compartments"),
    path(job + "drops/", DropListView.as_view(), name="drop-list"),
    path(drop, DropDetailView.as_view(), name="drop-detail"),
    path(drop + "cargos/", CargoListView.as_view(), name="cargo-list"),
    path(drop + "cargos/<str:cargo_id>/", CargoDetailView.as_view(), name="cargo-detail"),
]
