from app.core.exceptions import (
    AppError,
    InsufficientDataError,
    NoEligibleAssignmentError,
    PersistenceError,
    RunCancelledError,
    SchedulerError,
)


def test_scheduler_error_structure():
    err = SchedulerError("Test error", details={"foo": "bar"})
    assert err.message == "Test error"
    assert err.details == {"foo": "bar"}
    assert err.status_code == 400
    assert isinstance(err, AppError)


def test_insufficient_data_lists_missing_entities():
    err = InsufficientDataError(["faculty", "rooms"])
    assert isinstance(err, SchedulerError)
    assert err.status_code == 422
    assert err.details == {"missing": ["faculty", "rooms"]}
    assert "no faculty, rooms configured" in err.message


def test_no_eligible_assignment_carries_session():
    err = NoEligibleAssignmentError("cs-lab", 2, "no lab room")
    assert err.reason == "no lab room"
    assert err.details["session_number"] == 2


def test_runtime_errors_have_status_codes():
    assert PersistenceError("down").status_code == 503
    assert RunCancelledError("r1").details == {"run_id": "r1"}
