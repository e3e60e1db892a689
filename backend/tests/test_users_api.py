MON_9 = "Monday 09:00 - 10:00"
MON_10 = "Monday 10:00 - 11:00"


def create_user(client, headers, payload):
    response = client.post("/api/admin/users", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_admin_creates_student_with_default_password(client, admin_headers):
    student = create_user(
        client,
        admin_headers,
        {
            "name": "Anu",
            "email": "anu@example.com",
            "role": "Student",
            "courses": ["Bharatanatyam"],
            "schedules": [{"course": "Bharatanatyam", "timing": MON_9}],
            "course_expertise": ["ignored"],
        },
    )
    assert student["schedules"] == [{"course": "Bharatanatyam", "timing": MON_9, "teacher_id": None}]
    assert student["course_expertise"] == []

    login = client.post("/api/auth/login", json={"email": "anu@example.com", "password": "password123"})
    assert login.status_code == 200


def test_student_schedule_cannot_reuse_a_slot(client, admin_headers):
    response = client.post(
        "/api/admin/users",
        json={
            "name": "Bala",
            "email": "bala@example.com",
            "role": "Student",
            "courses": ["Bharatanatyam", "Kathak"],
            "schedules": [
                {"course": "Bharatanatyam", "timing": MON_9},
                {"course": "Kathak", "timing": MON_9},
            ],
        },
        headers=admin_headers,
    )
    assert response.status_code == 422


def test_user_update_refuses_teacher_double_booking(client, admin_headers):
    teacher = create_user(
        client,
        admin_headers,
        {"name": "Lakshmi", "email": "lakshmi@example.com", "role": "Teacher", "course_expertise": ["Bharatanatyam"]},
    )
    create_user(
        client,
        admin_headers,
        {
            "name": "Anu",
            "email": "anu@example.com",
            "role": "Student",
            "courses": ["Bharatanatyam"],
            "schedules": [{"course": "Bharatanatyam", "timing": MON_9, "teacher_id": teacher["id"]}],
        },
    )
    bala = create_user(
        client,
        admin_headers,
        {"name": "Bala", "email": "bala@example.com", "role": "Student", "courses": ["Bharatanatyam"]},
    )

    clash = client.put(
        f"/api/admin/users/{bala['id']}",
        json={"schedules": [{"course": "Bharatanatyam", "timing": MON_9, "teacher_id": teacher["id"]}]},
        headers=admin_headers,
    )
    assert clash.status_code == 409
    body = clash.json()
    assert body["details"]["conflicts"][0]["student_name"] == "Anu"

    ok = client.put(
        f"/api/admin/users/{bala['id']}",
        json={"schedules": [{"course": "Bharatanatyam", "timing": MON_10, "teacher_id": teacher["id"]}]},
        headers=admin_headers,
    )
    assert ok.status_code == 200
    assert ok.json()["schedules"][0]["teacher_id"] == teacher["id"]


def test_dropping_a_course_drops_its_schedule(client, admin_headers):
    student = create_user(
        client,
        admin_headers,
        {
            "name": "Chitra",
            "email": "chitra@example.com",
            "role": "Student",
            "courses": ["Bharatanatyam", "Kathak"],
            "schedules": [
                {"course": "Bharatanatyam", "timing": MON_9},
                {"course": "Kathak", "timing": MON_10},
            ],
        },
    )

    response = client.put(
        f"/api/admin/users/{student['id']}",
        json={"courses": ["Kathak"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["schedules"] == [{"course": "Kathak", "timing": MON_10, "teacher_id": None}]


def test_trash_restore_and_permanent_delete(client, admin_headers):
    student = create_user(
        client,
        admin_headers,
        {"name": "Deepa", "email": "deepa@example.com", "role": "Student", "courses": ["Kathak"]},
    )
    user_id = student["id"]

    early = client.delete(f"/api/admin/users/{user_id}/permanent", headers=admin_headers)
    assert early.status_code == 409

    assert client.delete(f"/api/admin/users/{user_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/users/{user_id}", headers=admin_headers).status_code == 404
    trash = client.get("/api/admin/trash", headers=admin_headers).json()
    assert [item["id"] for item in trash] == [user_id]

    restored = client.put(f"/api/admin/trash/{user_id}/restore", headers=admin_headers)
    assert restored.status_code == 200
    assert client.get("/api/admin/trash", headers=admin_headers).json() == []

    client.delete(f"/api/admin/users/{user_id}", headers=admin_headers)
    gone = client.delete(f"/api/admin/users/{user_id}/permanent", headers=admin_headers)
    assert gone.status_code == 200
    assert client.get("/api/admin/trash", headers=admin_headers).json() == []


def test_admin_cannot_trash_themselves(client, admin_headers):
    me = client.get("/api/auth/me", headers=admin_headers).json()
    response = client.delete(f"/api/admin/users/{me['id']}", headers=admin_headers)
    assert response.status_code == 400


def test_user_listing_filters_by_role(client, admin_headers):
    create_user(client, admin_headers, {"name": "Lakshmi", "email": "l@example.com", "role": "Teacher"})
    create_user(client, admin_headers, {"name": "Anu", "email": "a@example.com", "role": "Student"})

    everyone = client.get("/api/admin/users", headers=admin_headers).json()
    assert [user["name"] for user in everyone] == ["Anu", "Lakshmi"]

    teachers = client.get("/api/admin/users", params={"role": "Teacher"}, headers=admin_headers).json()
    assert [user["name"] for user in teachers] == ["Lakshmi"]


def test_admin_stats(client, admin_headers):
    create_user(
        client,
        admin_headers,
        {"name": "Anu", "email": "a@example.com", "role": "Student", "class_preference": "Online"},
    )
    create_user(
        client,
        admin_headers,
        {"name": "Bala", "email": "b@example.com", "role": "Student", "status": "Inactive", "class_preference": "Hybrid"},
    )
    create_user(client, admin_headers, {"name": "Lakshmi", "email": "l@example.com", "role": "Teacher"})

    stats = client.get("/api/admin/stats", headers=admin_headers).json()
    assert stats["total_students"] == 2
    assert stats["active_students"] == 1
    assert stats["total_teachers"] == 1
    assert stats["online_preference"] == 1
    assert stats["hybrid_preference"] == 1
    assert stats["offline_preference"] == 0


def test_profile_update_keeps_role_fields(client, admin_headers):
    create_user(client, admin_headers, {"name": "Esha", "email": "esha@example.com", "role": "Student"})
    token = client.post(
        "/api/auth/login", json={"email": "esha@example.com", "password": "password123"}
    ).json()["access_token"]

    response = client.put(
        "/api/profile",
        json={"city": "Chennai", "name": "Esha R", "role": "Admin"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["city"] == "Chennai"
    assert body["name"] == "Esha R"
    assert body["role"] == "Student"
