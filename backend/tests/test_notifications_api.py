from academy.services import notifications as notification_service


def create_user(client, headers, payload):
    response = client.post("/api/admin/users", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def login_headers(client, email, password="password123"):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _people(client, headers):
    course = client.post("/api/admin/courses", json={"name": "Kathak"}, headers=headers).json()
    teacher = create_user(
        client,
        headers,
        {"name": "Ravi", "email": "ravi@example.com", "role": "Teacher", "course_expertise": ["Kathak"]},
    )
    anu = create_user(
        client,
        headers,
        {"name": "Anu", "email": "anu@example.com", "role": "Student", "courses": ["Kathak"]},
    )
    bala = create_user(
        client,
        headers,
        {"name": "Bala", "email": "bala@example.com", "role": "Student", "courses": ["Bharatanatyam"]},
    )
    return course, teacher, anu, bala


def test_resolve_recipients_by_mode(client, admin_headers):
    course, teacher, anu, bala = _people(client, admin_headers)

    group = client.post(
        "/api/admin/recipients/resolve",
        json={"mode": "group", "selection": {"course_ids": [course["id"]]}},
        headers=admin_headers,
    ).json()
    assert set(group["user_ids"]) == {teacher["id"], anu["id"]}
    assert group["count"] == 2

    everyone = client.post(
        "/api/admin/recipients/resolve",
        json={"mode": "broadcast", "selection": {"broadcast": "everyone"}},
        headers=admin_headers,
    ).json()
    assert set(everyone["user_ids"]) == {teacher["id"], anu["id"], bala["id"]}

    individual = client.post(
        "/api/admin/recipients/resolve",
        json={"mode": "individual", "selection": {"student_ids": [bala["id"], bala["id"]]}},
        headers=admin_headers,
    ).json()
    assert individual == {"user_ids": [bala["id"]], "count": 1}


def test_admin_notification_requires_recipients(client, admin_headers):
    response = client.post(
        "/api/admin/notifications",
        json={"user_ids": [], "subject": "Holiday", "message": "Closed on Friday."},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Please select at least one recipient."


def test_admin_notification_reaches_inbox_and_can_be_read(client, admin_headers):
    _, _, anu, bala = _people(client, admin_headers)

    response = client.post(
        "/api/admin/notifications",
        json={"user_ids": [anu["id"], bala["id"], anu["id"]], "subject": "Holiday", "message": "Closed on Friday."},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "notified": 2, "emailed": 0}

    anu_headers = login_headers(client, "anu@example.com")
    inbox = client.get("/api/notifications", headers=anu_headers).json()
    assert [(item["title"], item["is_read"]) for item in inbox] == [("Holiday", False)]

    read = client.put(f"/api/notifications/{inbox[0]['id']}/read", headers=anu_headers)
    assert read.status_code == 200
    assert read.json()["is_read"]

    bala_headers = login_headers(client, "bala@example.com")
    assert client.put(f"/api/notifications/{inbox[0]['id']}/read", headers=bala_headers).status_code == 404
    assert client.post("/api/notifications/read-all", headers=bala_headers).json() == {"updated": 1}
    assert client.get("/api/notifications", params={"is_read": False}, headers=bala_headers).json() == []


def test_admin_notification_can_email(client, admin_headers, monkeypatch):
    _, _, anu, _ = _people(client, admin_headers)
    sent = []
    monkeypatch.setattr(
        notification_service,
        "send_email",
        lambda **kwargs: sent.append(kwargs),
    )

    response = client.post(
        "/api/admin/notifications",
        json={"user_ids": [anu["id"]], "subject": "Fees", "message": "Due soon.", "send_email": True},
        headers=admin_headers,
    )
    assert response.json()["emailed"] == 1
    assert sent[0]["to_email"] == "anu@example.com"
    assert sent[0]["text_content"].startswith("Dear Anu,")


def test_content_send_records_recipients_and_uses_default_message(client, admin_headers, monkeypatch):
    _, teacher, anu, bala = _people(client, admin_headers)
    monkeypatch.setattr(notification_service, "send_email", lambda **kwargs: None)
    notice = client.post(
        "/api/admin/notices",
        json={"title": "Annual Day", "content": "Rehearsals start next week."},
        headers=admin_headers,
    ).json()

    anu_headers = login_headers(client, "anu@example.com")
    assert client.get("/api/notices", headers=anu_headers).json() == []

    response = client.post(
        "/api/admin/content/send",
        json={"content_id": notice["id"], "content_type": "Notice", "user_ids": [anu["id"], teacher["id"]]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Notification sent to 2 recipient(s)."
    assert body["emailed"] == 2
    assert body["whatsapp_sent"] == 0

    inbox = client.get("/api/notifications", headers=anu_headers).json()
    assert inbox[0]["title"] == "Notice: Annual Day"
    assert inbox[0]["message"] == (
        'A new notice has been posted: "Annual Day". Please log in to your dashboard to view the details.'
    )
    assert inbox[0]["link"] == f"/content/Notice/{notice['id']}"
    assert inbox[0]["notification_type"] == "content"

    assert [item["id"] for item in client.get("/api/notices", headers=anu_headers).json()] == [notice["id"]]
    bala_headers = login_headers(client, "bala@example.com")
    assert client.get("/api/notices", headers=bala_headers).json() == []


def test_content_send_validation(client, admin_headers):
    empty = client.post(
        "/api/admin/content/send",
        json={"content_id": "missing", "content_type": "Event", "user_ids": []},
        headers=admin_headers,
    )
    assert empty.status_code == 400

    missing = client.post(
        "/api/admin/content/send",
        json={"content_id": "missing", "content_type": "Event", "user_ids": ["someone"], "send_email": False},
        headers=admin_headers,
    )
    assert missing.status_code == 404


def test_notification_websocket_handshake(client, admin_headers):
    _, _, anu, _ = _people(client, admin_headers)
    token = login_headers(client, "anu@example.com")["Authorization"].split(" ", 1)[1]

    with client.websocket_connect(f"/api/notifications/ws?token={token}") as websocket:
        assert websocket.receive_json() == {"event": "connected", "user_id": anu["id"]}
        websocket.send_text("ping")
        assert websocket.receive_json() == {"event": "pong"}
