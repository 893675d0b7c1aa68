import json

from rest_framework import status
from rest_framework.test import APITestCase

from fuel_log.models import StateSnapshot
from fuel_log.storage import state_key

DAY = "2024-01-01"
LOG_URL = f"/api/work-logs/{DAY}/"


class StateApiTests(APITestCase):
    def test_first_read_stores_default_state(self):
        first = self.client.get("/api/state/").data
        second = self.client.get("/api/state/").data
        self.assertEqual(first, second)
        self.assertEqual(first["drivers"][0]["name"], "Primary Driver")
        self.assertEqual(first["trailers"][0]["compartmentCount"], 6)
        self.assertTrue(StateSnapshot.objects.filter(key=state_key()).exists())

    def test_corrupt_snapshot_is_replaced_by_default(self):
        StateSnapshot.objects.create(key=state_key(), blob="{not json")
        with self.assertLogs("fuel_log.normalize", level="WARNING"):
            response = self.client.get("/api/state/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["workLogs"], [])
        json.loads(StateSnapshot.objects.get(key=state_key()).blob)

    def test_import_legacy_snapshot(self):
        legacy = {
            "workLogs": [
                {
                    "id": "log1",
                    "date": DAY,
                    "jobs": [{"id": "job1", "drops": [{"id": "d1", "cargoType": "diesel", "liters": 500, "compartment": 2}]}],
                }
            ]
        }
        response = self.client.put("/api/state/", legacy, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        cargo = response.data["workLogs"][0]["jobs"][0]["drops"][0]["cargos"][0]
        self.assertEqual((cargo["cargoType"], cargo["liters"], cargo["compartment"]), ("diesel", 500, 2))
        self.assertEqual(response.data["workLogs"][0]["jobs"][0]["jobNumber"], "JOB-1")

        stored = json.loads(StateSnapshot.objects.get(key=state_key()).blob)
        self.assertIn("cargos", stored["workLogs"][0]["jobs"][0]["drops"][0])

    def test_import_rejects_non_object(self):
        response = self.client.put("/api/state/", [1, 2], format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_imported_loose_date_keeps_one_log_per_day(self):
        self.client.put("/api/state/", {"workLogs": [{"id": "old", "date": "2024-1-5"}]}, format="json")
        response = self.client.get("/api/work-logs/2024-01-05/")
        self.assertEqual(response.data["id"], "old")
        logs = self.client.get("/api/state/").data["workLogs"]
        self.assertEqual([(log["id"], log["date"]) for log in logs], [("old", "2024-01-05")])
        calendar = self.client.get("/api/calendar/2024/1/").data
        self.assertEqual(calendar["loggedDates"], ["2024-01-05"])

    def test_imported_bad_clock_time_still_lists(self):
        blob = {"workLogs": [{"date": DAY, "startTime": "06:00:00", "endTime": "14:00"}]}
        self.client.put("/api/state/", blob, format="json")
        response = self.client.get("/api/work-logs/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        (log,) = response.data["workLogs"]
        self.assertIsNone(log["startTime"])
        self.assertEqual(log["duration"], {"minutes": 0, "label": "—"})
        self.assertEqual(response.data["totalMinutes"], 0)


class ReferenceDataApiTests(APITestCase):
    def test_quick_add_driver(self):
        response = self.client.post("/api/drivers/", {"name": "Alex"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        names = [d["name"] for d in self.client.get("/api/drivers/").data]
        self.assertEqual(names, ["Primary Driver", "Alex"])

    def test_quick_add_truck(self):
        response = self.client.post("/api/trucks/", {"plate": "KX-01"}, format="json")
        self.assertEqual(response.data["plate"], "KX-01")
        self.assertEqual(len(self.client.get("/api/trucks/").data), 2)

    def test_trailer_defaults_and_validation(self):
        response = self.client.post("/api/trailers/", {"plate": "TR-2"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["compartmentCount"], 6)
        self.assertEqual(response.data["maxPerCompartmentLiters"], 7200)

        response = self.client.post("/api/trailers/", {"plate": "TR-3", "compartmentCount": 0}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cargo_types(self):
        values = [c["value"] for c in self.client.get("/api/cargo-types/").data]
        self.assertEqual(values, ["diesel", "petrol", "diesel_plus", "petrol_plus", "kerosene", "gas_oil"])


class WorkLogApiTests(APITestCase):
    def test_opening_a_date_creates_blank_log(self):
        response = self.client.get(LOG_URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["date"], DAY)
        self.assertEqual(response.data["jobs"], [])
        self.assertEqual(response.data["duration"], {"minutes": 0, "label": "—"})
        log_id = response.data["id"]
        self.assertEqual(self.client.get(LOG_URL).data["id"], log_id)

    def test_overnight_shift_duration(self):
        response = self.client.patch(LOG_URL, {"startTime": "22:00", "endTime": "02:00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["duration"], {"minutes": 240, "label": "4h 00m"})

        listing = self.client.get("/api/work-logs/", {"month": "2024-01"}).data
        self.assertEqual(listing["totalMinutes"], 240)
        self.assertEqual(listing["totalLabel"], "4h 00m")
        self.assertEqual(self.client.get("/api/work-logs/", {"month": "2024-02"}).data["workLogs"], [])

    def test_bad_clock_time_rejected(self):
        response = self.client.patch(LOG_URL, {"startTime": "25:00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_impossible_date_not_found(self):
        self.assertEqual(self.client.get("/api/work-logs/2024-02-30/").status_code, status.HTTP_404_NOT_FOUND)

    def test_put_upserts_by_date(self):
        self.client.get(LOG_URL)
        body = {
            "id": "replacement",
            "notes": "second",
            "jobs": [{"jobNumber": "A-1", "drops": [{"customerName": "Shop", "cargos": [{"compartment": 3, "liters": 900}]}]}],
        }
        response = self.client.put(LOG_URL, body, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["totalLiters"], 900)
        self.assertEqual(response.data["compartmentTotals"], [0, 0, 900, 0, 0, 0])

        logs = self.client.get("/api/state/").data["workLogs"]
        self.assertEqual([(log["id"], log["notes"]) for log in logs], [("replacement", "second")])

    def test_put_with_shared_compartment_rejected(self):
        body = {
            "jobs": [
                {"drops": [{"cargos": [{"compartment": 1}]}, {"cargos": [{"compartment": 1}]}]},
            ]
        }
        response = self.client.put(LOG_URL, body, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("compartment", response.data)
        self.assertEqual(self.client.get("/api/state/").data["workLogs"], [])

    def test_calendar_month(self):
        self.client.get(LOG_URL)
        self.client.get("/api/work-logs/2024-01-15/")
        self.client.get("/api/work-logs/2024-02-01/")
        response = self.client.get("/api/calendar/2024/1/")
        self.assertEqual(response.data["loggedDates"], [DAY, "2024-01-15"])
        self.assertEqual(self.client.get("/api/calendar/2024/13/").status_code, status.HTTP_400_BAD_REQUEST)


class JobApiTests(APITestCase):
    def setUp(self):
        trailer = self.client.post("/api/trailers/", {"plate": "TWO", "compartmentCount": 2}, format="json").data
        self.client.patch(LOG_URL, {"trailerId": trailer["id"]}, format="json")
        self.job = self.client.post(f"{LOG_URL}jobs/", {"customerAccount": "ACME"}, format="json").data
        self.job_url = f"{LOG_URL}jobs/{self.job['id']}/"

    def add_drop(self):
        return self.client.post(f"{self.job_url}drops/", {}, format="json")

    def add_cargo(self, drop_id):
        return self.client.post(f"{self.job_url}drops/{drop_id}/cargos/", {}, format="json")

    def test_job_created_with_number(self):
        self.assertEqual(self.job["jobNumber"], "JOB-1")
        self.assertEqual(self.job["customerAccount"], "ACME")

    def test_edit_and_remove_job(self):
        response = self.client.patch(self.job_url, {"jobNumber": "J-77"}, format="json")
        self.assertEqual(response.data["jobNumber"], "J-77")
        self.assertEqual(self.client.delete(self.job_url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self.client.get(LOG_URL).data["jobs"], [])

    def test_unknown_job_is_not_found(self):
        response = self.client.post(f"{LOG_URL}jobs/missing/drops/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_drops_and_cargos_fill_the_trailer(self):
        response = self.add_drop()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        first = response.data["drops"][0]
        self.assertEqual(first["customerName"], "ACME")

        response = self.add_cargo(first["id"])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["drops"][0]["cargos"][0]["compartment"], 1)

        second = self.add_drop().data["drops"][1]
        self.add_cargo(second["id"])

        response = self.add_drop()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["drops"]), 2)
        response = self.add_cargo(second["id"])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["drops"][1]["cargos"]), 1)

        compartments = self.client.get(f"{self.job_url}compartments/").data
        self.assertEqual(compartments["used"], [1, 2])
        self.assertFalse(compartments["canAddDrop"])
        self.assertIsNone(compartments["nextFreeCompartment"])

    def test_cargo_edit_respects_compartments(self):
        drop = self.add_drop().data["drops"][0]
        cargo_a = self.add_cargo(drop["id"]).data["drops"][0]["cargos"][0]
        cargo_b = self.add_cargo(drop["id"]).data["drops"][0]["cargos"][1]
        cargo_url = f"{self.job_url}drops/{drop['id']}/cargos/{cargo_b['id']}/"

        response = self.client.patch(cargo_url, {"compartment": cargo_a["compartment"]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("compartment", response.data)

        response = self.client.patch(cargo_url, {"liters": -5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(cargo_url, {"cargoType": "petrol", "liters": 3000}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["drops"][0]["cargos"][1]["cargoType"], "petrol")

        options = self.client.get(f"{self.job_url}compartments/", {"cargo": cargo_b["id"]}).data["options"]
        self.assertEqual(options, [{"compartment": 1, "selectable": False}, {"compartment": 2, "selectable": True}])

        response = self.client.delete(cargo_url)
        self.assertEqual(len(response.data["drops"][0]["cargos"]), 1)
        self.assertEqual(self.client.get(f"{self.job_url}compartments/").data["nextFreeCompartment"], 2)

    def test_edit_and_remove_drop(self):
        drop = self.add_drop().data["drops"][0]
        drop_url = f"{self.job_url}drops/{drop['id']}/"
        response = self.client.patch(drop_url, {"deliveryAddress": "Depot 4"}, format="json")
        self.assertEqual(response.data["drops"][0]["deliveryAddress"], "Depot 4")
        response = self.client.delete(drop_url)
        self.assertEqual(response.data["drops"], [])
