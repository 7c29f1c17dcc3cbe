"""End-to-end flows through the HTTP surface (TestClient, sqlite store)."""

import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, FlakyStore, parent_form, student_form, teacher_form
from weeclass.core.constants import MESSAGES
from weeclass.core.errors import RecordNotFound, StorePermissionError, StoreQueryError
from weeclass.db.store import MemoryRecordStore
from weeclass.main import create_app


def _workspace(client, headers, role="student"):
    response = client.post(f"/admin/workspace/tab/{role}", headers=headers)
    assert response.status_code == 200
    return response.json()


def _teacher_headers(client, code="2580"):
    response = client.post("/teachers/access", json={"code": code})
    assert response.status_code == 200
    return {"X-Teacher-Access": response.json()["access_token"]}


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    body = client.get("/health").json()
    assert body["store"] == "connected"
    assert body["demo_mode"] is False


def test_student_request_lifecycle(client, admin_headers):
    response = client.post("/students/apply", json=student_form())
    assert response.status_code == 201
    assert response.json()["status"] == "접수대기"
    assert response.json()["message"] == MESSAGES["SUBMITTED"]
    record_id = response.json()["id"]

    rows = _workspace(client, admin_headers)["rows"]
    assert [(r["id"], r["subject_name"], r["status"]) for r in rows] == [(record_id, "김철수", "접수대기")]
    assert rows[0]["summary"] == "친구 문제"

    detail = client.get(f"/admin/records/{record_id}", headers=admin_headers).json()["detail"]
    assert detail["title"] == "김철수 - 학생 상담 신청서"
    assert detail["fields"][0] == {"key": "name", "label": "이름", "value": "김철수"}

    state = client.post(
        f"/admin/records/{record_id}/status", json={"status": "상담완료"}, headers=admin_headers
    ).json()
    assert state["rows"][0]["status"] == "상담완료"
    assert state["detail"]["status"] == "상담완료"

    # persisted: a fresh load shows the new status
    assert _workspace(client, admin_headers)["rows"][0]["status"] == "상담완료"

    first = client.post(f"/admin/records/{record_id}/delete", headers=admin_headers).json()
    assert first["deleted"] is False
    assert first["confirm_required"] is True
    assert first["workspace"]["pending_delete_id"] == record_id

    second = client.post(f"/admin/records/{record_id}/delete", headers=admin_headers).json()
    assert second["deleted"] is True
    assert second["workspace"]["rows"] == []

    assert _workspace(client, admin_headers)["rows"] == []


def test_missing_fields_are_reported(client, admin_headers):
    response = client.post("/students/apply", json={"name": "김철수"})
    assert response.status_code == 422
    assert response.json()["missing_fields"] == ["학년/반", "상담 신청 이유"]
    assert _workspace(client, admin_headers)["rows"] == []


def test_invalid_confidentiality_combination(client):
    response = client.post(
        "/students/apply", json=student_form(confidentiality=["부모님", "알리고 싶지 않음"])
    )
    assert response.status_code == 422


def test_parent_request(client, admin_headers):
    response = client.post("/parents/apply", json=parent_form(relation="아빠"))
    assert response.status_code == 201

    rows = _workspace(client, admin_headers, "parent")["rows"]
    assert [r["subject_name"] for r in rows] == ["박민수"]
    assert _workspace(client, admin_headers, "student")["rows"] == []


def test_teacher_form_is_locked_behind_access_code(client, admin_headers):
    response = client.post("/teachers/access", json={"code": "0000"})
    assert response.status_code == 403
    assert response.json()["detail"] == MESSAGES["WRONG_TEACHER_CODE"]

    assert client.post("/teachers/apply", json=teacher_form()).status_code == 403
    assert client.post(
        "/teachers/apply", json=teacher_form(), headers={"X-Teacher-Access": "garbage"}
    ).status_code == 403
    assert _workspace(client, admin_headers, "teacher")["rows"] == []

    response = client.post("/teachers/apply", json=teacher_form(), headers=_teacher_headers(client))
    assert response.status_code == 201
    assert [r["subject_name"] for r in _workspace(client, admin_headers, "teacher")["rows"]] == ["최동욱"]


def test_admin_requires_session(client):
    response = client.get("/admin/workspace")
    assert response.status_code == 401
    assert response.headers["location"] == "/admin/login"

    response = client.get("/admin/workspace", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_login_and_logout(client, admin_headers):
    assert client.post("/auth/login", json={"email": "counselor@school.kr", "password": "x"}).status_code == 401

    session = client.get("/auth/session", headers=admin_headers).json()
    assert session["authenticated"] is True

    assert client.post("/auth/logout", headers=admin_headers).status_code == 204
    assert client.get("/auth/session", headers=admin_headers).json()["authenticated"] is False
    assert client.get("/admin/workspace", headers=admin_headers).status_code == 401


def test_selection_and_bulk_delete(client, admin_headers):
    for name in ("가", "나", "다"):
        client.post("/students/apply", json=student_form(name=name))
    rows = _workspace(client, admin_headers)["rows"]
    assert [r["subject_name"] for r in rows] == ["다", "나", "가"]

    state = client.post("/admin/selection/all", json={"checked": True}, headers=admin_headers).json()
    assert state["all_selected"] is True
    state = client.post(f"/admin/selection/{rows[0]['id']}", headers=admin_headers).json()
    assert len(state["selected_ids"]) == 2
    assert state["all_selected"] is False

    # confirm without a request does nothing
    result = client.post("/admin/bulk-delete/confirm", headers=admin_headers).json()
    assert result["executed"] is False

    state = client.post("/admin/bulk-delete/request", headers=admin_headers).json()
    assert state["bulk_state"] == "confirm_pending"
    result = client.post("/admin/bulk-delete/confirm", headers=admin_headers).json()

    assert result["executed"] is True
    assert sorted(result["deleted"]) == sorted(r["id"] for r in rows[1:])
    assert result["failed"] == []
    assert [r["subject_name"] for r in result["workspace"]["rows"]] == ["다"]
    assert result["workspace"]["selected_ids"] == []
    assert [r["subject_name"] for r in _workspace(client, admin_headers)["rows"]] == ["다"]


def test_sort_endpoint(client, admin_headers):
    for name in ("가", "나"):
        client.post("/students/apply", json=student_form(name=name))
    _workspace(client, admin_headers)

    state = client.post(
        "/admin/workspace/sort", json={"key": "created_at", "descending": False}, headers=admin_headers
    ).json()
    assert [r["subject_name"] for r in state["rows"]] == ["가", "나"]


def test_export_endpoint(client, admin_headers):
    record_id = client.post("/students/apply", json=student_form()).json()["id"]
    _workspace(client, admin_headers)

    response = client.get(f"/admin/records/{record_id}/export", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert "filename*=UTF-8''" in response.headers["content-disposition"]
    assert response.content[:2] == b"PK"

    assert client.get("/admin/records/unknown/export", headers=admin_headers).status_code == 404


def test_teacher_password_setting(client, admin_headers):
    assert client.get("/admin/settings/teacher-password", headers=admin_headers).json() == {"password": "2580"}

    response = client.put("/admin/settings/teacher-password", json={"password": " 7777 "}, headers=admin_headers)
    assert response.json() == {"password": "7777"}

    assert client.post("/teachers/access", json={"code": "2580"}).status_code == 403
    assert client.post("/teachers/access", json={"code": "7777"}).status_code == 200

    response = client.put("/admin/settings/teacher-password", json={"password": "  "}, headers=admin_headers)
    assert response.status_code == 422


def test_notification_setting(client, admin_headers):
    assert client.get("/admin/settings/notifications", headers=admin_headers).json() == {
        "webhook_url": "",
        "is_enabled": False,
    }
    response = client.put(
        "/admin/settings/notifications",
        json={"webhook_url": " https://hook.example/1 ", "is_enabled": True},
        headers=admin_headers,
    )
    assert response.json() == {"webhook_url": "https://hook.example/1", "is_enabled": True}
    assert client.get("/admin/settings/notifications", headers=admin_headers).json()["is_enabled"] is True


@pytest.fixture
def demo_client(demo_settings):
    with TestClient(create_app(demo_settings)) as test_client:
        yield test_client


def test_demo_mode(demo_client, demo_settings):
    assert demo_client.get("/health").json()["store"] == "demo (in-memory)"

    response = demo_client.post("/students/apply", json=student_form())
    assert response.status_code == 503
    assert response.json()["detail"] == MESSAGES["DEMO_MODE"]

    login = demo_client.post(
        "/auth/login", json={"email": demo_settings.DEMO_ADMIN_EMAIL, "password": demo_settings.DEMO_PASSWORD}
    ).json()
    assert login["demo_mode"] is True
    headers = {"Authorization": f"Bearer {login['token']}"}

    state = _workspace(demo_client, headers)
    assert state["demo_mode"] is True
    assert [r["id"] for r in state["rows"]] == ["demo-s-1", "demo-s-2"]

    response = demo_client.put(
        "/admin/settings/notifications", json={"webhook_url": "https://x", "is_enabled": True}, headers=headers
    )
    assert response.status_code == 503


def test_confidentiality_checkbox_rule(client):
    response = client.post(
        "/students/confidentiality",
        json={"current": ["부모님", "담임 선생님"], "option": "알리고 싶지 않음", "checked": True},
    )
    assert response.json() == {"confidentiality": ["알리고 싶지 않음"]}

    response = client.post(
        "/students/confidentiality",
        json={"current": ["알리고 싶지 않음"], "option": "부모님", "checked": True},
    )
    assert response.json() == {"confidentiality": ["부모님"]}

    assert client.post(
        "/students/confidentiality", json={"option": "친구", "checked": True}
    ).status_code == 422


def test_omitted_confidentiality_reaches_store_normalized(client, admin_headers):
    record_id = client.post("/students/apply", json=student_form()).json()["id"]
    _workspace(client, admin_headers)
    detail = client.get(f"/admin/records/{record_id}", headers=admin_headers).json()["detail"]
    values = {f["key"]: f["value"] for f in detail["fields"]}
    assert values["confidentiality"] == "알리고 싶지 않음"


@pytest.fixture
def flaky_app(settings):
    store = FlakyStore(MemoryRecordStore())
    with TestClient(create_app(settings, store=store)) as test_client:
        login = test_client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
        headers = {"Authorization": f"Bearer {login.json()['token']}"}
        yield test_client, store, headers


def test_permission_denied_on_list_shows_banner(flaky_app):
    test_client, store, headers = flaky_app
    store.fail_list = StorePermissionError("permission denied for table counseling_records")

    state = test_client.get("/admin/workspace", headers=headers).json()

    assert state["rows"] == []
    assert state["banner"] == MESSAGES["PERMISSION_DENIED"]


def test_missing_index_on_list_shows_banner(flaky_app):
    test_client, store, headers = flaky_app
    store.fail_list = StoreQueryError("no index on created_at")

    state = _workspace(test_client, headers, "parent")

    assert state["rows"] == []
    assert state["banner"] == MESSAGES["INDEX_MISSING"]


def test_store_errors_on_submit_map_to_http(flaky_app):
    test_client, store, _headers = flaky_app

    store.fail_create = StorePermissionError("permission denied")
    response = test_client.post("/students/apply", json=student_form())
    assert response.status_code == 403
    assert response.json()["detail"] == MESSAGES["PERMISSION_DENIED"]

    # a write-path query failure is not reported as a missing index
    store.fail_create = StoreQueryError("could not connect to server")
    response = test_client.post("/parents/apply", json=parent_form())
    assert response.status_code == 500
    assert response.json()["detail"] == MESSAGES["STORE_FAILED"]

    store.fail_create = RecordNotFound("counseling_student", "gone")
    assert test_client.post("/students/apply", json=student_form()).status_code == 404


def test_permission_denied_status_change_rolls_back(flaky_app):
    test_client, store, headers = flaky_app
    record_id = test_client.post("/students/apply", json=student_form()).json()["id"]
    _workspace(test_client, headers)

    store.error = StorePermissionError("permission denied")
    store.fail_update = True
    state = test_client.post(
        f"/admin/records/{record_id}/status", json={"status": "상담완료"}, headers=headers
    ).json()

    assert state["rows"][0]["status"] == "접수대기"
    assert state["banner"] == MESSAGES["PERMISSION_DENIED"]
