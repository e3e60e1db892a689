def test_course_crud_keeps_names_in_step(client, admin_headers):
    course = client.post("/api/admin/courses", json={"name": " Kathak "}, headers=admin_headers)
    assert course.status_code == 201
    course_id = course.json()["id"]
    assert course.json()["name"] == "Kathak"

    duplicate = client.post("/api/admin/courses", json={"name": "Kathak"}, headers=admin_headers)
    assert duplicate.status_code == 409

    client.post(
        "/api/admin/feestructures",
        json={"course_id": course_id, "amount": 1200, "currency": "INR", "billing_cycle": "Quarterly"},
        headers=admin_headers,
    )
    batch = client.post(
        "/api/admin/batches",
        json={"name": "Kathak K1", "course_id": course_id},
        headers=admin_headers,
    ).json()

    renamed = client.put(f"/api/admin/courses/{course_id}", json={"name": "Kathak Classical"}, headers=admin_headers)
    assert renamed.status_code == 200

    batches = client.get("/api/admin/batches", headers=admin_headers).json()
    assert batches[0]["course_name"] == "Kathak Classical"
    structures = client.get("/api/admin/feestructures", headers=admin_headers).json()
    assert structures[0]["course_name"] == "Kathak Classical"

    assert client.get("/api/courses").json()[0]["name"] == "Kathak Classical"

    blocked = client.delete(f"/api/admin/courses/{course_id}", headers=admin_headers)
    assert blocked.status_code == 409

    client.delete(f"/api/admin/batches/{batch['id']}", headers=admin_headers)
    assert client.delete(f"/api/admin/courses/{course_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/courses").json() == []


def test_location_crud(client, admin_headers):
    created = client.post(
        "/api/admin/locations",
        json={"name": "Main Studio", "address": "12 Temple Street"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    location_id = created.json()["id"]

    assert client.post(
        "/api/admin/locations",
        json={"name": "Main Studio", "address": "Elsewhere"},
        headers=admin_headers,
    ).status_code == 409

    updated = client.put(
        f"/api/admin/locations/{location_id}",
        json={"address": "14 Temple Street"},
        headers=admin_headers,
    )
    assert updated.json()["address"] == "14 Temple Street"
    assert [item["name"] for item in client.get("/api/locations").json()] == ["Main Studio"]

    assert client.delete(f"/api/admin/locations/{location_id}", headers=admin_headers).status_code == 200
    assert client.get("/api/locations").json() == []


def test_course_rename_reaches_students_teachers_and_schedules(client, admin_headers):
    course = client.post("/api/admin/courses", json={"name": "Drawing"}, headers=admin_headers).json()
    teacher = client.post(
        "/api/admin/users",
        json={"name": "Meera", "email": "meera@example.com", "role": "Teacher", "course_expertise": ["Drawing"]},
        headers=admin_headers,
    ).json()
    student = client.post(
        "/api/admin/users",
        json={
            "name": "Anu",
            "email": "anu@example.com",
            "role": "Student",
            "courses": ["Drawing"],
            "schedules": [{"course": "Drawing", "timing": "Monday 09:00 - 10:00", "teacher_id": teacher["id"]}],
        },
        headers=admin_headers,
    ).json()
    batch = client.post(
        "/api/admin/batches",
        json={"name": "Drawing D1", "course_id": course["id"]},
        headers=admin_headers,
    ).json()
    selection = {"mode": "group", "selection": {"course_ids": [course["id"]]}}

    before = client.post("/api/admin/recipients/resolve", json=selection, headers=admin_headers).json()
    assert before["count"] == 2

    client.put(f"/api/admin/courses/{course['id']}", json={"name": "Sketching"}, headers=admin_headers)

    after = client.post("/api/admin/recipients/resolve", json=selection, headers=admin_headers).json()
    assert sorted(after["user_ids"]) == sorted([student["id"], teacher["id"]])

    renamed = client.get(f"/api/admin/users/{student['id']}", headers=admin_headers).json()
    assert renamed["courses"] == ["Sketching"]
    assert renamed["schedules"][0]["course"] == "Sketching"
    assert renamed["schedules"][0]["teacher_id"] == teacher["id"]
    expert = client.get(f"/api/admin/users/{teacher['id']}", headers=admin_headers).json()
    assert expert["course_expertise"] == ["Sketching"]

    candidates = client.get(f"/api/admin/batches/{batch['id']}/candidates", headers=admin_headers).json()
    assert [item["student_id"] for item in candidates] == [student["id"]]

    staffed = client.put(
        f"/api/admin/batches/{batch['id']}",
        json={"teacher_id": teacher["id"]},
        headers=admin_headers,
    )
    assert staffed.status_code == 200, staffed.text
