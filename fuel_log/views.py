from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import store
from .domain import CARGO_CHOICES
from .duration import format_minutes, total_minutes
from .normalize import parse_raw
from .serializers import (
    CargoSerializer,
    CargoTypeSerializer,
    CompartmentOptionSerializer,
    DeliveryDropSerializer,
    DriverSerializer,
    JobSerializer,
    TrailerSerializer,
    TruckSerializer,
    WorkLogSerializer,
    work_log_from_data,
)
from .storage import load_state, replace_state, update_state


def render_log(state, log):
    return WorkLogSerializer(log, context={"trailers": state.trailers}).data


def render_job(state, date, job_id):
    return JobSerializer(store.get_job(store.get_work_log(state, date), job_id)).data


class StateView(APIView):
    """The whole snapshot, as the browser app persists it."""

    def get(self, request):
        return Response(load_state().as_dict())

    def put(self, request):
        if parse_raw(request.data) is None:
            raise ValidationError({"non_field_errors": ["Expected a JSON object holding the app state."]})
        return Response(replace_state(request.data).as_dict())


class ReferenceViewSet(viewsets.ViewSet):
    """Append-only reference data: list and quick-add."""

    collection = None
    serializer_class = None

    def add(self, state, validated_data):
        raise NotImplementedError

    def list(self, request):
        state = load_state()
        return Response(self.serializer_class(getattr(state, self.collection), many=True).data)

    def create(self, request):
        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        _, created = update_state(lambda state: self.add(state, serializer.validated_data))
        return Response(self.serializer_class(created).data, status=status.HTTP_201_CREATED)


class DriverViewSet(ReferenceViewSet):
    collection = "drivers"
    serializer_class = DriverSerializer

    def add(self, state, validated_data):
        return store.add_driver(state, validated_data["name"])


class TruckViewSet(ReferenceViewSet):
    collection = "trucks"
    serializer_class = TruckSerializer

    def add(self, state, validated_data):
        return store.add_truck(state, validated_data["plate"])


class TrailerViewSet(ReferenceViewSet):
    collection = "trailers"
    serializer_class = TrailerSerializer

    def add(self, state, validated_data):
        return store.add_trailer(state, **validated_data)


class CargoTypeView(APIView):
    def get(self, request):
        choices = [{"value": value, "label": label} for value, label in CARGO_CHOICES]
        return Response(CargoTypeSerializer(choices, many=True).data)


class WorkLogListView(APIView):
    def get(self, request):
        state = load_state()
        logs = sorted(state.work_logs, key=lambda log: log.date)
        month = request.query_params.get("month")
        if month:
            logs = [log for log in logs if log.date.startswith(f"{month}-")]
        minutes = total_minutes(logs)
        return Response(
            {
                "workLogs": [render_log(state, log) for log in logs],
                "totalMinutes": minutes,
                "totalLabel": format_minutes(minutes),
            }
        )


class WorkLogDetailView(APIView):
    def get(self, request, date):
        state, _ = update_state(lambda s: store.ensure_work_log(s, date))
        return Response(render_log(state, store.get_work_log(state, date)))

    def put(self, request, date):
        serializer = WorkLogSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        log = work_log_from_data(serializer.validated_data, date)

        def change(state):
            new_state = store.upsert_work_log(state, log)
            allocator = store.allocator_for(new_state, log)
            for job in log.jobs:
                allocator.check_job(job)
            return new_state

        state, _ = update_state(change)
        return Response(render_log(state, log))

    def patch(self, request, date):
        serializer = WorkLogSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = {k: v for k, v in serializer.validated_data.items() if k in store.WORK_LOG_FIELDS}
        state, _ = update_state(lambda s: store.update_work_log(store.ensure_work_log(s, date), date, **fields))
        return Response(render_log(state, store.get_work_log(state, date)))


class JobListView(APIView):
    def post(self, request, date):
        serializer = JobSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        _, job = update_state(
            lambda s: store.add_job(
                s, date, job_number=data.get("job_number"), customer_account=data.get("customer_account", "")
            )
        )
        return Response(JobSerializer(job).data, status=status.HTTP_201_CREATED)


class JobDetailView(APIView):
    def patch(self, request, date, job_id):
        serializer = JobSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = {k: v for k, v in serializer.validated_data.items() if k in store.JOB_FIELDS}
        state, _ = update_state(lambda s: store.update_job(s, date, job_id, **fields))
        return Response(render_job(state, date, job_id))

    def delete(self, request, date, job_id):
        update_state(lambda s: store.remove_job(s, date, job_id))
        return Response(status=status.HTTP_204_NO_CONTENT)


class JobCompartmentsView(APIView):
    """What the compartment pickers of a job may offer."""

    def get(self, request, date, job_id):
        state = load_state()
        log = store.get_work_log(state, date)
        job = store.get_job(log, job_id)
        allocator = store.allocator_for(state, log)
        options = [
            {"compartment": compartment, "selectable": selectable}
            for compartment, selectable in allocator.options(job, request.query_params.get("cargo"))
        ]
        return Response(
            {
                "compartmentCount": allocator.compartment_count,
                "used": sorted(allocator.used_compartments(job)),
                "remaining": allocator.remaining_count(job),
                "canAddDrop": allocator.can_add_drop(job),
                "nextFreeCompartment": allocator.next_free_compartment(job),
                "options": CompartmentOptionSerializer(options, many=True).data,
            }
        )


class DropListView(APIView):
    def post(self, request, date, job_id):
        serializer = DeliveryDropSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        state, drop = update_state(
            lambda s: store.add_drop(
                s,
                date,
                job_id,
                customer_name=data.get("customer_name"),
                delivery_address=data.get("delivery_address", ""),
            )
        )
        code = status.HTTP_201_CREATED if drop is not None else status.HTTP_200_OK
        return Response(render_job(state, date, job_id), status=code)


class DropDetailView(APIView):
    def patch(self, request, date, job_id, drop_id):
        serializer = DeliveryDropSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = {k: v for k, v in serializer.validated_data.items() if k in store.DROP_FIELDS}
        state, _ = update_state(lambda s: store.update_drop(s, date, job_id, drop_id, **fields))
        return Response(render_job(state, date, job_id))

    def delete(self, request, date, job_id, drop_id):
        state, _ = update_state(lambda s: store.remove_drop(s, date, job_id, drop_id))
        return Response(render_job(state, date, job_id))


class CargoListView(APIView):
    def post(self, request, date, job_id, drop_id):
        state, cargo = update_state(lambda s: store.add_cargo(s, date, job_id, drop_id))
        code = status.HTTP_201_CREATED if cargo is not None else status.HTTP_200_OK
        return Response(render_job(state, date, job_id), status=code)


class CargoDetailView(APIView):
    def patch(self, request, date, job_id, drop_id, cargo_id):
        serializer = CargoSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fields = {k: v for k, v in serializer.validated_data.items() if k in store.CARGO_FIELDS}
        state, _ = update_state(lambda s: store.update_cargo(s, date, job_id, drop_id, cargo_id, **fields))
        return Response(render_job(state, date, job_id))

    def delete(self, request, date, job_id, drop_id, cargo_id):
        state, _ = update_state(lambda s: store.remove_cargo(s, date, job_id, drop_id, cargo_id))
        return Response(render_job(state, date, job_id))


class CalendarMonthView(APIView):
    def get(self, request, year, month):
        if not 1 <= month <= 12:
            raise ValidationError({"month": ["Month must be between 1 and 12."]})
        return Response({"year": year, "month": month, "loggedDates": store.logged_dates(load_state(), year, month)})
