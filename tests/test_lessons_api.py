import pytest
from fastapi.testclient import TestClient

from backend.erp.db.base import Base
from backend.erp.db.session import engine
from backend.erp.main import app

LESSON_DATE = "2025-08-20"


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def setup_center(client: TestClient, token: str) -> dict:
    room_a = client.post("/facilities", json={"name": "Room A", "capacity": 12}, headers=auth(token)).json()["id"]
    room_b = client.post("/facilities", json={"name": "Room B"}, headers=auth(token)).json()["id"]
    class_id = client.post(
        "/classes", json={"class_name": "GS12", "facility_id": room_a}, headers=auth(token)
    ).json()["id"]
    teacher_1 = client.post(
        "/employees", json={"full_name": "Nguyen Van A", "position": "Teacher"}, headers=auth(token)
    ).json()["id"]
    teacher_2 = client.post(
        "/employees", json={"full_name": "Tran Thi B", "position": "Teacher"}, headers=auth(token)
    ).json()["id"]
    assistant = client.post(
        "/employees", json={"full_name": "Le Van C", "position": "Teaching Assistant"}, headers=auth(token)
    ).json()["id"]
    return {
        "class_id": class_id,
        "teacher_1": teacher_1,
        "teacher_2": teacher_2,
        "assistant": assistant,
        "room_a": room_a,
        "room_b": room_b,
    }


def session(teacher_id: int, start: str, end: str, **extra) -> dict:
    return {"subject_type": "TSI", "teacher_id": teacher_id, "start_time": start, "end_time": end, **extra}


def lesson_payload(class_id: int, sessions: list, day: str = LESSON_DATE, name: str = "GS12.U8.L101", tz=None) -> dict:
    payload = {"name": name, "class_id": class_id, "scheduled_date": day, "sessions": sessions}
    if tz is not None:
        payload["timezone"] = tz
    return payload


def create_lesson(client: TestClient, token: str, payload: dict):
    return client.post("/lessons", json=payload, headers=auth(token))


def test_create_lesson_stores_sessions_as_instants():
    client = TestClient(app)
    token = register_and_login(client, "lesson1@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(
        client,
        token,
        lesson_payload(
            ids["class_id"],
            [session(ids["teacher_1"], "10:00", "10:45", assistant_id=ids["assistant"], room_id=ids["room_a"])],
        ),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["timezone"] == "Asia/Ho_Chi_Minh"
    assert data["scheduled_date"] == LESSON_DATE
    created = data["sessions"][0]
    assert created["start_at"].startswith("2025-08-20T10:00:00")
    assert created["start_at"].endswith("+07:00")
    assert created["local_start_time"] == "10:00:00"
    assert created["local_end_time"] == "10:45:00"
    assert created["duration_minutes"] == 45
    assert created["assistant_id"] == ids["assistant"]


def test_overlapping_teacher_booking_returns_409():
    client = TestClient(app)
    token = register_and_login(client, "lesson2@example.com", "secret")
    ids = setup_center(client, token)
    first = create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))
    assert first.status_code == 201

    resp = create_lesson(
        client,
        token,
        lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:30", "11:15")], name="GS12.U8.L102"),
    )
    assert resp.status_code == 409
    detail = resp.json()["detail"]
    assert "10:00-10:45" in detail["message"]
    conflict = detail["conflicts"][0]
    assert conflict["resource_role"] == "teacher"
    assert conflict["resource_id"] == ids["teacher_1"]
    assert conflict["conflicting_start"] == "2025-08-20T10:00:00+07:00"
    assert conflict["within_batch"] is False

    listing = client.get("/lessons", params={"lesson_date": LESSON_DATE}, headers=auth(token))
    assert len(listing.json()) == 1


def test_touching_and_later_bookings_are_accepted():
    client = TestClient(app)
    token = register_and_login(client, "lesson3@example.com", "secret")
    ids = setup_center(client, token)
    create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))

    touching = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:45", "11:30")], name="L2")
    )
    assert touching.status_code == 201
    later = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "13:00", "13:45")], name="L3")
    )
    assert later.status_code == 201


def test_different_teachers_can_share_a_time_slot():
    client = TestClient(app)
    token = register_and_login(client, "lesson4@example.com", "secret")
    ids = setup_center(client, token)
    create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))

    resp = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_2"], "10:00", "10:45")], name="L2")
    )
    assert resp.status_code == 201


def test_room_double_booking_returns_409():
    client = TestClient(app)
    token = register_and_login(client, "lesson5@example.com", "secret")
    ids = setup_center(client, token)
    create_lesson(
        client,
        token,
        lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45", room_id=ids["room_b"])]),
    )

    resp = create_lesson(
        client,
        token,
        lesson_payload(
            ids["class_id"], [session(ids["teacher_2"], "10:15", "11:00", room_id=ids["room_b"])], name="L2"
        ),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["conflicts"][0]["resource_role"] == "room"


def test_sessions_in_one_request_cannot_double_book_a_teacher():
    client = TestClient(app)
    token = register_and_login(client, "lesson6@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(
        client,
        token,
        lesson_payload(
            ids["class_id"],
            [session(ids["teacher_1"], "10:00", "10:45"), session(ids["teacher_1"], "10:30", "11:15")],
        ),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"]["conflicts"][0]["within_batch"] is True
    assert client.get("/lessons", headers=auth(token)).json() == []


def test_same_time_on_another_day_is_accepted():
    client = TestClient(app)
    token = register_and_login(client, "lesson7@example.com", "secret")
    ids = setup_center(client, token)
    create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))

    resp = create_lesson(
        client,
        token,
        lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")], day="2025-08-21"),
    )
    assert resp.status_code == 201


def test_conflicts_compare_absolute_instants_across_zones():
    client = TestClient(app)
    token = register_and_login(client, "lesson8@example.com", "secret")
    ids = setup_center(client, token)
    # 10:00-10:45 in Ho Chi Minh City is 03:00-03:45 UTC
    create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))

    resp = create_lesson(
        client,
        token,
        lesson_payload(ids["class_id"], [session(ids["teacher_1"], "03:30", "04:00")], name="L2", tz="UTC"),
    )
    assert resp.status_code == 409
    # Display uses the zone of the request that hit the conflict
    assert "03:00-03:45" in resp.json()["detail"]["message"]


def test_zero_duration_session_is_rejected():
    client = TestClient(app)
    token = register_and_login(client, "lesson9@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:00")]))
    assert resp.status_code == 400


def test_unknown_teacher_or_class_is_rejected():
    client = TestClient(app)
    token = register_and_login(client, "lesson10@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(client, token, lesson_payload(ids["class_id"], [session(9999, "10:00", "10:45")]))
    assert resp.status_code == 400
    assert "teacher" in resp.json()["detail"]

    resp = create_lesson(client, token, lesson_payload(9999, [session(ids["teacher_1"], "10:00", "10:45")]))
    assert resp.status_code == 400


def test_other_centers_staff_cannot_be_booked():
    client = TestClient(app)
    token_a = register_and_login(client, "lesson11a@example.com", "secret")
    token_b = register_and_login(client, "lesson11b@example.com", "secret")
    ids_a = setup_center(client, token_a)
    ids_b = setup_center(client, token_b)

    resp = create_lesson(client, token_b, lesson_payload(ids_b["class_id"], [session(ids_a["teacher_1"], "10:00", "10:45")]))
    assert resp.status_code == 400


def test_invalid_timezone_falls_back_to_default():
    client = TestClient(app)
    token = register_and_login(client, "lesson12@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(
        client,
        token,
        lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")], tz="Mars/Olympus"),
    )
    assert resp.status_code == 201
    assert resp.json()["timezone"] == "Asia/Ho_Chi_Minh"


def test_update_lesson_does_not_conflict_with_itself():
    client = TestClient(app)
    token = register_and_login(client, "lesson13@example.com", "secret")
    ids = setup_center(client, token)
    lesson = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")])
    ).json()

    resp = client.put(
        f"/lessons/{lesson['id']}",
        json=lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:15", "11:00")]),
        headers=auth(token),
    )
    assert resp.status_code == 200
    assert resp.json()["sessions"][0]["local_start_time"] == "10:15:00"
    assert len(resp.json()["sessions"]) == 1


def test_update_lesson_into_another_lessons_slot_returns_409():
    client = TestClient(app)
    token = register_and_login(client, "lesson14@example.com", "secret")
    ids = setup_center(client, token)
    create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))
    second = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "13:00", "13:45")], name="L2")
    ).json()

    resp = client.put(
        f"/lessons/{second['id']}",
        json=lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:30", "11:15")], name="L2"),
        headers=auth(token),
    )
    assert resp.status_code == 409
    unchanged = client.get(f"/lessons/{second['id']}", headers=auth(token)).json()
    assert unchanged["sessions"][0]["local_start_time"] == "13:00:00"


def test_check_conflicts_is_a_dry_run():
    client = TestClient(app)
    token = register_and_login(client, "lesson15@example.com", "secret")
    ids = setup_center(client, token)
    create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")]))

    free = client.post(
        "/lessons/check-conflicts",
        json=lesson_payload(ids["class_id"], [session(ids["teacher_1"], "11:00", "11:45")]),
        headers=auth(token),
    )
    assert free.status_code == 200
    assert free.json()["conflict"] is False

    busy = client.post(
        "/lessons/check-conflicts",
        json=lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:30", "11:15")]),
        headers=auth(token),
    )
    assert busy.status_code == 409
    assert len(client.get("/lessons", headers=auth(token)).json()) == 1


def test_list_filters_and_delete():
    client = TestClient(app)
    token = register_and_login(client, "lesson16@example.com", "secret")
    ids = setup_center(client, token)
    first = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")])
    ).json()
    create_lesson(
        client,
        token,
        lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")], day="2025-08-22", name="L2"),
    )

    week = client.get(
        "/lessons", params={"start_date": "2025-08-18", "end_date": "2025-08-24"}, headers=auth(token)
    ).json()
    assert [lesson["scheduled_date"] for lesson in week] == ["2025-08-20", "2025-08-22"]

    bad_range = client.get(
        "/lessons", params={"start_date": "2025-08-24", "end_date": "2025-08-18"}, headers=auth(token)
    )
    assert bad_range.status_code == 400

    resp = client.delete(f"/lessons/{first['id']}", headers=auth(token))
    assert resp.status_code == 200
    assert client.get(f"/lessons/{first['id']}", headers=auth(token)).status_code == 404

    # The freed slot can be booked again
    again = create_lesson(
        client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], "10:00", "10:45")], name="L3")
    )
    assert again.status_code == 201


def test_lessons_are_scoped_to_their_center():
    client = TestClient(app)
    token_a = register_and_login(client, "lesson17a@example.com", "secret")
    token_b = register_and_login(client, "lesson17b@example.com", "secret")
    ids_a = setup_center(client, token_a)
    ids_b = setup_center(client, token_b)
    lesson = create_lesson(
        client, token_a, lesson_payload(ids_a["class_id"], [session(ids_a["teacher_1"], "10:00", "10:45")])
    ).json()

    assert client.get(f"/lessons/{lesson['id']}", headers=auth(token_b)).status_code == 404
    assert client.get("/lessons", headers=auth(token_b)).json() == []
    # Center B's own teacher is free at the same time
    resp = create_lesson(
        client, token_b, lesson_payload(ids_b["class_id"], [session(ids_b["teacher_1"], "10:00", "10:45")])
    )
    assert resp.status_code == 201


@pytest.mark.parametrize("start", ["10:00:00Z", "10:00:00+00:00", "17:00:00+07:00"])
def test_session_times_with_offset_are_rejected(start):
    client = TestClient(app)
    token = register_and_login(client, "lesson18@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(client, token, lesson_payload(ids["class_id"], [session(ids["teacher_1"], start, "18:00")]))
    assert resp.status_code == 400
    assert client.get("/lessons", headers=auth(token)).json() == []


def test_lesson_requires_at_least_one_session():
    client = TestClient(app)
    token = register_and_login(client, "lesson19@example.com", "secret")
    ids = setup_center(client, token)

    resp = create_lesson(client, token, lesson_payload(ids["class_id"], []))
    assert resp.status_code == 422
