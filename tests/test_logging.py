import json
import logging

from leavedesk.core.logging import CustomJsonFormatter, acting_user_var, request_id_var


def _format(record):
    formatter = CustomJsonFormatter("%(timestamp) %(level) %(name) %(message)")
    return json.loads(formatter.format(record))


def test_correlation_id_and_leave_request_id_both_survive():
    record = logging.makeLogRecord({
        "name": "leavedesk.services.leave_workflow",
        "levelname": "INFO",
        "levelno": logging.INFO,
        "msg": "Leave request approved",
        "leave_request_id": 42,
    })
    token = request_id_var.set("corr-abc")
    user_token = acting_user_var.set("7")
    try:
        payload = _format(record)
    finally:
        acting_user_var.reset(user_token)
        request_id_var.reset(token)

    assert payload["message"] == "Leave request approved"
    assert payload["leave_request_id"] == 42
    assert payload["request_id"] == "corr-abc"
    assert payload["acting_user_id"] == "7"
    assert payload["level"] == "INFO"
    assert payload["timestamp"]


def test_no_correlation_id_outside_a_request():
    record = logging.makeLogRecord({"name": "leavedesk", "levelname": "WARNING", "msg": "hello"})
    payload = _format(record)
    assert "request_id" not in payload
    assert "acting_user_id" not in payload


def test_workflow_logs_name_the_leave_request(service, staff_user, hr_user, caplog):
    caplog.set_level(logging.INFO, logger="leavedesk.services.leave_workflow")
    submitted = service.submit(staff_user.id, "annual", "2024-01-01", "2024-01-05")
    service.approve(submitted.data.id, hr_user.id)

    transitions = [r for r in caplog.records if r.getMessage() in ("Leave request submitted", "Leave request approved")]
    assert [r.leave_request_id for r in transitions] == [submitted.data.id, submitted.data.id]
