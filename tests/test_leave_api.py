from datetime import date, timedelta

import pytest
from fastapi import status


def _next_week():
    """Monday to Friday of a week safely in the future."""
    today = date.today()
    monday = today + timedelta(days=14 - today.weekday())
    return monday, monday + timedelta(days=4)


def _headers(user):
    return {"X-User-Id": str(user.id)}


def _create_leave_request(client, user, **overrides):
    start, end = _next_week()
    payload = {"leave_type": "annual", "start_date": start.isoformat(), "end_date": end.isoformat(), "reason": "Rest"}
    payload.update(overrides)
    return client.post("/api/leave/requests", headers=_headers(user), json=payload)


@pytest.fixture
def pending_id(client, policy, staff_user):
    response = _create_leave_request(client, staff_user)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]["id"]


def test_create_leave_request(client, policy, staff_user):
    response = _create_leave_request(client, staff_user)

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["leave_type"] == "annual"
    assert data["total_days"] == 5


def test_missing_user_header_is_unauthorized(client):
    response = client.get("/api/leave/balance")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["success"] is False


def test_malformed_user_header_is_unauthorized(client):
    response = client.get("/api/leave/balance", headers={"X-User-Id": "sam"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_missing_fields_fail_validation(client, staff_user):
    response = client.post("/api/leave/requests", headers=_headers(staff_user), json={"leave_type": "annual"})
    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"start_date", "end_date"} <= fields


def test_domain_errors_carry_kind_and_status(client, policy, staff_user, pending_id):
    overlap = _create_leave_request(client, staff_user)
    assert overlap.status_code == status.HTTP_409_CONFLICT
    assert overlap.json()["errors"][0]["kind"] == "OverlappingRequest"

    bad_type = _create_leave_request(client, staff_user, leave_type="vacation")
    assert bad_type.status_code == status.HTTP_400_BAD_REQUEST
    assert bad_type.json()["errors"][0]["code"] == "INVALID_LEAVE_TYPE"


def test_manager_approval_updates_balance(client, staff_user, hr_user, pending_id, email):
    response = client.post(f"/api/leave/requests/{pending_id}/approve", headers=_headers(hr_user))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["status"] == "approved"
    assert response.json()["data"]["approved_by"] == hr_user.id

    balance = client.get("/api/leave/balance", headers=_headers(staff_user)).json()["data"]
    assert balance["annual"] == {"total": 20, "used": 5, "remaining": 15}
    assert email.templates() == ["leave_request_notification", "leave_approved"]


def test_staff_cannot_approve(client, staff_user, pending_id):
    response = client.post(f"/api/leave/requests/{pending_id}/approve", headers=_headers(staff_user))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["errors"][0]["kind"] == "NotApprover"


def test_reject_with_reason(client, hr_user, pending_id):
    response = client.post(
        f"/api/leave/requests/{pending_id}/reject",
        headers=_headers(hr_user),
        json={"rejection_reason": "Busy season"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["status"] == "rejected"
    assert response.json()["data"]["rejection_reason"] == "Busy season"


def test_edit_and_delete(client, staff_user, pending_id):
    start, _ = _next_week()
    response = client.put(
        f"/api/leave/requests/{pending_id}",
        headers=_headers(staff_user),
        json={"leave_type": "sick", "start_date": start.isoformat(), "end_date": (start + timedelta(days=1)).isoformat()},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["data"]["total_days"] == 2

    deleted = client.delete(f"/api/leave/requests/{pending_id}", headers=_headers(staff_user))
    assert deleted.status_code == status.HTTP_200_OK

    missing = client.delete(f"/api/leave/requests/{pending_id}", headers=_headers(staff_user))
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_list_requests_scopes_to_caller(client, hr_user, staff_user, pending_id):
    own = client.get("/api/leave/requests", headers=_headers(staff_user)).json()
    assert [r["id"] for r in own] == [pending_id]
    assert own[0]["first_name"] == "Sam"

    assert client.get("/api/leave/requests", headers=_headers(hr_user)).json() == []

    everyone = client.get("/api/leave/requests", params={"all_users": True, "status": "pending"}, headers=_headers(hr_user)).json()
    assert [r["id"] for r in everyone] == [pending_id]


def test_calculate_days(client, policy):
    response = client.post("/api/leave/calculate-days", json={"start_date": "2024-01-01", "end_date": "2024-01-07"})
    assert response.json() == {"success": True, "data": 5}

    reversed_range = client.post("/api/leave/calculate-days", json={"start_date": "2024-01-07", "end_date": "2024-01-01"})
    assert reversed_range.status_code == status.HTTP_400_BAD_REQUEST
    assert reversed_range.json()["errors"][0]["kind"] == "InvalidRange"


def test_calendar_view(client, staff_user, hr_user, pending_id):
    client.post(f"/api/leave/requests/{pending_id}/approve", headers=_headers(hr_user))
    start, _ = _next_week()

    response = client.get("/api/leave/calendar", params={"year": start.year, "month": start.month}, headers=_headers(hr_user))

    assert response.status_code == status.HTTP_200_OK
    assert [entry["request_id"] for entry in response.json()] == [pending_id]
    assert response.json()[0]["full_name"] == "Sam Staff"


def test_dashboard_stats(client, hr_user, pending_id):
    response = client.get("/api/leave/stats", headers=_headers(hr_user))

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["pending_requests"] == 1
    assert response.json()["total_requests"] == 1


def test_staff_cannot_list_everyone(client, staff_user, make_user, pending_id):
    colleague = make_user(email="colleague@example.com")
    _create_leave_request(client, colleague)

    response = client.get("/api/leave/requests", params={"all_users": True}, headers=_headers(staff_user))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["errors"][0]["kind"] == "NotApprover"
    assert "colleague@example.com" not in response.text


def test_staff_cannot_read_dashboard_stats(client, staff_user):
    response = client.get("/api/leave/stats", headers=_headers(staff_user))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["errors"][0]["kind"] == "NotApprover"
