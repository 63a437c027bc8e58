import pytest

from ride_dispatch.core.exceptions import (
    DispatchError,
    DriverUnavailable,
    InvalidOneTimeCode,
    InvalidTransition,
    NotFoundError,
    PermanentError,
    RideNotFound,
    RideUnavailable,
    StateError,
    StorageError,
    TransientError,
    ValidationError,
)


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "error,parents",
        [
            (StorageError("db down"), (TransientError, DispatchError)),
            (ValidationError("bad"), (PermanentError, DispatchError)),
            (RideNotFound("r1"), (NotFoundError, PermanentError)),
            (InvalidTransition("r1", "requested", "started"), (StateError, PermanentError)),
            (RideUnavailable("r1", "assigned"), (StateError,)),
            (DriverUnavailable("d1", "busy"), (StateError,)),
            (InvalidOneTimeCode("r1"), (StateError,)),
        ],
    )
    def test_classification(self, error, parents):
        for parent in parents:
            assert isinstance(error, parent)

    def test_transient_and_permanent_are_disjoint(self):
        assert not isinstance(StorageError("x"), PermanentError)
        assert not isinstance(ValidationError("x"), TransientError)


class TestErrorDetails:
    def test_invalid_transition_reports_states(self):
        error = InvalidTransition("r1", "completed", "cancelled")

        assert error.kind == "InvalidTransition"
        assert error.current_state == "completed"
        assert error.requested_state == "cancelled"
        assert error.details == {
            "ride_id": "r1",
            "current_state": "completed",
            "requested_state": "cancelled",
        }
        assert "completed" in str(error)

    def test_ride_unavailable_current_state(self):
        assert RideUnavailable("r1").current_state is None
        assert RideUnavailable("r1", "assigned").details["current_state"] == "assigned"

    def test_wrong_code_keeps_assigned_state(self):
        error = InvalidOneTimeCode("r1")

        assert error.current_state == "assigned"
        assert error.details["ride_id"] == "r1"

    def test_details_default_empty(self):
        error = DispatchError("boom")

        assert error.details == {}
        assert error.message == "boom"
