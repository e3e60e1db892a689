from datetime import date

import pytest

from academy.models.fee import BillingCycle
from academy.services.billing import billing_period_label


@pytest.mark.parametrize(
    ("cycle", "expected"),
    [
        (BillingCycle.monthly, "October 2026"),
        (BillingCycle.quarterly, "Q4 2026"),
        (BillingCycle.annually, "2026"),
    ],
)
def test_billing_period_label(cycle, expected):
    assert billing_period_label(cycle, date(2026, 10, 19)) == expected


def _fee_setup(client, headers):
    course = client.post("/api/admin/courses", json={"name": "Kathak"}, headers=headers).json()
    structure = client.post(
        "/api/admin/feestructures",
        json={"course_id": course["id"], "amount": 1500, "currency": "INR", "billing_cycle": "Monthly"},
        headers=headers,
    )
    assert structure.status_code == 201
    student = client.post(
        "/api/admin/users",
        json={"name": "Anu", "email": "anu@example.com", "role": "Student", "courses": ["Kathak", "Bharatanatyam"]},
        headers=headers,
    ).json()
    client.post(
        "/api/admin/users",
        json={"name": "Bala", "email": "bala@example.com", "role": "Student", "courses": ["Kathak"], "status": "Inactive"},
        headers=headers,
    )
    return course, structure.json(), student


def test_one_fee_structure_per_course(client, admin_headers):
    course, _, _ = _fee_setup(client, admin_headers)
    duplicate = client.post(
        "/api/admin/feestructures",
        json={"course_id": course["id"], "amount": 900, "currency": "USD", "billing_cycle": "Annually"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409


def test_generate_invoices_once_per_period(client, admin_headers):
    _, structure, student = _fee_setup(client, admin_headers)

    first = client.post("/api/admin/invoices/generate", json={"issue_date": "2026-10-01"}, headers=admin_headers)
    assert first.status_code == 200
    body = first.json()
    assert body["created"] == 1
    assert body["skipped"] == 0
    invoice = body["invoices"][0]
    assert invoice["student_id"] == student["id"]
    assert invoice["fee_structure_id"] == structure["id"]
    assert invoice["billing_period"] == "October 2026"
    assert invoice["due_date"] == "2026-10-16"
    assert invoice["status"] == "Pending"

    again = client.post("/api/admin/invoices/generate", json={"issue_date": "2026-10-20"}, headers=admin_headers).json()
    assert again["created"] == 0
    assert again["skipped"] == 1

    token = client.post("/api/auth/login", json={"email": "anu@example.com", "password": "password123"}).json()
    inbox = client.get("/api/notifications", headers={"Authorization": f"Bearer {token['access_token']}"}).json()
    assert [item["notification_type"] for item in inbox] == ["billing"]


def test_overdue_and_payment(client, admin_headers):
    _fee_setup(client, admin_headers)
    invoice = client.post(
        "/api/admin/invoices/generate", json={"issue_date": "2020-01-05"}, headers=admin_headers
    ).json()["invoices"][0]

    overdue = client.get("/api/admin/invoices", params={"status": "Overdue"}, headers=admin_headers).json()
    assert [item["id"] for item in overdue] == [invoice["id"]]

    paid = client.put(
        f"/api/admin/invoices/{invoice['id']}/pay",
        json={"payment_method": "UPI", "payment_date": "2020-01-10", "reference_number": "UPI-42"},
        headers=admin_headers,
    )
    assert paid.status_code == 200
    assert paid.json()["status"] == "Paid"
    assert paid.json()["payment_details"]["reference_number"] == "UPI-42"

    twice = client.put(
        f"/api/admin/invoices/{invoice['id']}/pay",
        json={"payment_method": "Cash", "payment_date": "2020-01-11"},
        headers=admin_headers,
    )
    assert twice.status_code == 409

    token = client.post("/api/auth/login", json={"email": "anu@example.com", "password": "password123"}).json()
    mine = client.get("/api/invoices", headers={"Authorization": f"Bearer {token['access_token']}"}).json()
    assert [item["status"] for item in mine] == ["Paid"]
