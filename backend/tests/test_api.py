"""
HTTP-level tests. The app runs on in-memory stores and a fake model client.
"""

import random

from fastapi.testclient import TestClient
from openai import OpenAIError

from app.api.dependencies import assemble_services
from app.core.errors import PersistenceError
from app.main import create_app
from app.services.stores import InMemoryPrescriptionStore, InMemoryUserStore

from conftest import DOCTORS

SYMPTOMS = "Itchy red patches on both elbows for a month"


def onboard(client, uid, role, name):
    response = client.post("/users", json={"uid": uid, "name": name, "role": role, "email": f"{uid}@example.com"})
    assert response.status_code == 200
    return response.json()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "running" in response.json()["message"]


def test_doctors_listing_is_stable(client):
    first = client.get("/doctors")
    second = client.get("/doctors")

    assert first.status_code == 200
    assert first.content == second.content
    assert [d["sl_no"] for d in first.json()] == [1, 2, 3]
    assert len(first.json()) == len(DOCTORS)


def test_doctor_match_requires_user(client):
    response = client.post("/doctor-match", json={"description": SYMPTOMS})
    assert response.status_code == 401
    assert response.json() == {"error": "User not authenticated."}


def test_doctor_match_rejects_short_description(client, users):
    response = client.post("/doctor-match", json={"description": "rash", "userId": "p1"})
    assert response.status_code == 400
    assert "min 20 characters" in response.json()["error"]
    assert "p1" not in users.users


def test_doctor_match_success_consumes_quota(client, model_client, users):
    model_client.queue({"selectedDoctorName": "Dr. Arjun Rao", "reason": "Dermatologist", "matchQuality": 8})

    response = client.post("/doctor-match", json={"description": SYMPTOMS, "userId": "p1"})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Dr. Arjun Rao"
    assert body["matchType"] == "AI Selected"
    assert body["matchAccuracy"] == "80%"
    assert body["email"] == "arjun.rao@example.com"
    assert users.users["p1"]["searchCount"] == 1


def test_doctor_match_fallback_still_counts(client, model_client, users):
    model_client.queue(OpenAIError("down"))
    response = client.post("/doctor-match", json={"description": SYMPTOMS, "userId": "p1"})

    assert response.status_code == 200
    assert response.json()["matchType"] == "Random Selection"
    assert response.json()["matchAccuracy"] == "50%"
    assert users.users["p1"]["searchCount"] == 1


def test_doctor_match_limit(client, model_client, users):
    users.users["p1"] = {"searchCount": 3}
    response = client.post("/doctor-match", json={"description": SYMPTOMS, "userId": "p1"})

    assert response.status_code == 429
    assert response.json() == {"error": "You have reached your maximum search limit.", "limitReached": True}
    assert model_client.completions.calls == []


def test_doctor_match_empty_catalog(client, catalog):
    catalog.doctors = []
    response = client.post("/doctor-match", json={"description": SYMPTOMS, "userId": "p1"})
    assert response.status_code == 500
    assert response.json()["error"] == "No doctors found in the database."


DIET_REQUEST = {
    "userId": "p1",
    "height": 170,
    "weight": 72,
    "age": 41,
    "lifestyle": "sedentary",
    "cuisinePreferences": "South Indian",
    "foodPreference": "Vegetarian",
    "specialConditions": "",
    "hasDiabetes": True,
    "hasBloodPressure": False,
    "hasThyroid": False,
}


def test_diet_plan_success_saves_profile(client, model_client, users):
    model_client.queue(
        {"meals": [
            {"meal_time": "Breakfast", "food_items": "Idli, sambar", "calories": 300},
            {"meal_time": "Dinner", "food_items": "Ragi dosa, curd", "calories": 400},
        ]}
    )
    response = client.post("/diet-plan", json=DIET_REQUEST)

    assert response.status_code == 200
    assert len(response.json()["meals"]) == 2
    assert users.users["p1"]["dietPlanCount"] == 1
    assert users.users["p1"]["dietInfo"]["foodPreference"] == "Vegetarian"

    info = client.get("/users/p1/diet-info")
    assert info.json()["hasDiabetes"] is True


def test_diet_plan_failure_is_not_counted(client, model_client, users):
    model_client.queue("I cannot help with that.")
    response = client.post("/diet-plan", json=DIET_REQUEST)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate diet plan."}
    assert "p1" not in users.users


def test_diet_plan_limit(client, users):
    users.users["p1"] = {"dietPlanCount": 3}
    response = client.post("/diet-plan", json=DIET_REQUEST)
    assert response.status_code == 429
    assert response.json()["limitReached"] is True


def test_diet_plan_invalid_profile(client):
    response = client.post("/diet-plan", json={**DIET_REQUEST, "height": -1})
    assert response.status_code == 400


def test_diet_plan_checks_user_before_profile(client, model_client):
    response = client.post("/diet-plan", json={"height": "tall"})

    assert response.status_code == 401
    assert response.json() == {"error": "User not authenticated."}
    assert model_client.completions.calls == []


class FailingCounterStore(InMemoryUserStore):
    async def increment(self, uid, field, extra=None):
        raise PersistenceError("Database operation failed")


class UnreachableUserStore(InMemoryUserStore):
    async def get(self, uid):
        raise PersistenceError("Database operation failed")


def client_with_users(users, test_settings, catalog, model_client):
    services = assemble_services(
        test_settings, users, catalog, InMemoryPrescriptionStore(), model_client,
        rng=random.Random(7),
    )
    return TestClient(create_app(services))


def test_diet_plan_commit_failure_saves_nothing(test_settings, catalog, model_client):
    users = FailingCounterStore()
    model_client.queue(
        {"meals": [{"meal_time": "Lunch", "food_items": "Rice, dal", "calories": 500}]}
    )
    with client_with_users(users, test_settings, catalog, model_client) as c:
        response = c.post("/diet-plan", json=DIET_REQUEST)

    assert response.status_code == 500
    assert response.json() == {"error": "Database operation failed"}
    assert "p1" not in users.users


def test_database_outage_is_reported_as_500(test_settings, catalog, model_client):
    with client_with_users(UnreachableUserStore(), test_settings, catalog, model_client) as c:
        response = c.post("/doctor-match", json={"description": SYMPTOMS, "userId": "p1"})

    assert response.status_code == 500
    assert response.json() == {"error": "Database operation failed"}
    assert model_client.completions.calls == []


def test_prescription_scan(client, model_client, users):
    model_client.queue({"patientName": None, "medications": [{"name": "Cetirizine", "dosage": "10mg", "frequency": "At night"}]})
    response = client.post(
        "/prescription-scan",
        files={"image": ("rx.png", b"\x89PNG fake", "image/png")},
        data={"userId": "p1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["patientName"] == "Not available"
    assert body["medications"][0]["name"] == "Cetirizine"
    assert body["medications"][0]["sideEffects"] == ""
    assert users.users["p1"]["prescriptionScanCount"] == 1


def test_prescription_scan_requires_user(client):
    response = client.post("/prescription-scan", files={"image": ("rx.png", b"data", "image/png")})
    assert response.status_code == 401


def test_prescription_scan_failure(client, model_client, users):
    model_client.queue(OpenAIError("timeout"))
    response = client.post(
        "/prescription-scan",
        files={"image": ("rx.png", b"data", "image/png")},
        data={"userId": "p1"},
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to scan prescription."}
    assert "p1" not in users.users


def test_prescription_scan_rejects_non_images(client):
    response = client.post(
        "/prescription-scan",
        files={"image": ("rx.pdf", b"%PDF-1.7", "application/pdf")},
        data={"userId": "p1"},
    )
    assert response.status_code == 400


def test_user_onboarding_and_quota(client):
    user = onboard(client, "p1", "patient", "Asha")
    assert user["role"] == "patient"
    assert user["searchCount"] == 0

    fetched = client.get("/users/p1").json()
    assert fetched["name"] == "Asha"

    quota = client.get("/users/p1/quota").json()
    assert quota["doctor_search"] == {"used": 0, "limit": 3, "remaining": 3}


def test_unknown_user_is_404(client):
    response = client.get("/users/ghost")
    assert response.status_code == 404


def test_onboarding_rejects_unknown_role(client):
    response = client.post("/users", json={"uid": "x", "name": "X", "role": "admin"})
    assert response.status_code == 400


def test_patients_lists_only_patients(client):
    onboard(client, "d1", "doctor", "Dr. Nair")
    onboard(client, "p1", "patient", "Asha")
    onboard(client, "p2", "patient", "Bilal")

    uids = [u["uid"] for u in client.get("/patients").json()]
    assert uids == ["p1", "p2"]


def test_write_and_list_prescriptions(client):
    onboard(client, "d1", "doctor", "Dr. Nair")
    onboard(client, "p1", "patient", "Asha")

    response = client.post(
        "/prescriptions",
        json={
            "doctorId": "d1",
            "patientId": "p1",
            "diseaseDetails": "Seasonal allergic rhinitis",
            "medications": "Cetirizine 10mg at night for 5 days",
            "labTests": "",
        },
    )
    assert response.status_code == 200
    created = response.json()
    assert created["doctorName"] == "Dr. Nair"
    assert created["patientName"] == "Asha"
    assert created["id"]

    for params in ({"patientId": "p1"}, {"doctorId": "d1"}):
        listed = client.get("/prescriptions", params=params).json()
        assert [p["id"] for p in listed] == [created["id"]]


def test_only_doctors_write_prescriptions(client):
    onboard(client, "p1", "patient", "Asha")
    onboard(client, "p2", "patient", "Bilal")
    response = client.post(
        "/prescriptions",
        json={"doctorId": "p1", "patientId": "p2", "diseaseDetails": "x", "medications": "y"},
    )
    assert response.status_code == 401


def test_prescription_listing_needs_one_filter(client):
    assert client.get("/prescriptions").status_code == 400


def test_email_without_recipients(client):
    response = client.post("/email", json={"recipients": []})
    assert response.status_code == 400
    assert response.json() == {"error": "Recipients array is required"}


def test_email_without_provider_config(client):
    response = client.post("/email", json={"recipients": [{"email": "a@example.com"}]})
    assert response.status_code == 500


def test_openapi_advertises_no_auth_scheme(client):
    schema = client.get("/openapi.json").json()

    assert "securitySchemes" not in schema.get("components", {})
    for path, operations in schema["paths"].items():
        for method, operation in operations.items():
            assert "security" not in operation, f"{method.upper()} {path}"
