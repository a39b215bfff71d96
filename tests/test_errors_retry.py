import pytest

from identity_sync.client.base import ManagementAPIError, is_not_found
from identity_sync.utils.errors import (
    AggregateError,
    CredentialError,
    ErrorCategory,
    ErrorContext,
    NotFoundError,
    PermissionDeniedError,
    ReconcileError,
    RemoteFatalError,
    RemoteTransientError,
    ValidationConflict,
    error_handler,
)
from identity_sync.utils.retry import (
    NonRetryableError,
    PollTimeoutError,
    RetryableError,
    RetryStrategy,
    is_transient,
)


@pytest.mark.parametrize("status, expected", [
    (400, RemoteFatalError),
    (401, CredentialError),
    (403, PermissionDeniedError),
    (404, NotFoundError),
    (409, RemoteFatalError),
    (429, RemoteTransientError),
    (500, RemoteTransientError),
    (503, RemoteTransientError),
    (418, RemoteFatalError),
])
def test_api_errors_are_categorized_by_status(status, expected):
    cause = ManagementAPIError(status, "remote says no", "some_code")

    error = error_handler.handle_exception(cause, ErrorContext(resource_type="role", resource_id="rol_1"))

    assert type(error) is expected
    assert error.message == "remote says no"
    assert error.context.status_code == status
    assert error.context.error_code == "some_code"
    assert error.cause is cause


def test_network_and_unknown_errors():
    assert isinstance(error_handler.handle_exception(ConnectionError("reset")), RemoteTransientError)
    assert isinstance(error_handler.handle_exception(TimeoutError("slow")), RemoteTransientError)

    error = error_handler.handle_exception(ValueError("boom"))
    assert type(error) is ReconcileError
    assert error.category == ErrorCategory.UNKNOWN


def test_wrapped_errors_pass_through_and_gain_context():
    original = ValidationConflict("password and email cannot change together")

    error = error_handler.handle_exception(original, ErrorContext(resource_type="user", operation='update'))

    assert error is original
    assert error.context.operation == 'update'


def test_error_string_names_the_resource():
    error = NotFoundError(
        "The role does not exist",
        context=ErrorContext(resource_type="role", resource_id="rol_1", operation='read'),
    )

    assert str(error) == "role.rol_1 (read): The role does not exist"
    assert "Resource: role.rol_1" in error.to_user_message()
    assert str(NotFoundError("gone")) == "gone"


def test_aggregate_error_collects_and_flattens():
    result = AggregateError()
    assert result.error_or_none() is None

    result.append(None)
    result.append(ValidationConflict("first"))
    result.append(AggregateError([ValidationConflict("second"), ValidationConflict("third")]))

    assert result.error_or_none() is result
    assert len(result) == 3
    assert [error.message for error in result] == ["first", "second", "third"]
    assert str(result) == "3 errors occurred:\n\t* first\n\t* second\n\t* third"
    assert str(AggregateError([ValidationConflict("only")])) == "1 error occurred:\n\t* only"


def test_is_not_found():
    assert is_not_found(ManagementAPIError(404, "missing"))
    assert not is_not_found(ManagementAPIError(400, "bad"))
    assert not is_not_found(KeyError("missing"))


class TestRetryStrategy:

    def test_should_retry(self):
        strategy = RetryStrategy(max_retries=2)

        assert strategy.should_retry(ManagementAPIError(429, "slow down"), 0)
        assert strategy.should_retry(ManagementAPIError(502, "bad gateway"), 1)
        assert strategy.should_retry(ConnectionError("reset"), 0)
        assert not strategy.should_retry(ManagementAPIError(400, "bad"), 0)
        assert not strategy.should_retry(ValueError("bug"), 0)
        assert not strategy.should_retry(ManagementAPIError(429, "slow down"), 2)

    def test_delay_is_exponential_and_capped(self):
        strategy = RetryStrategy(base_delay=1.0, max_delay=5.0, jitter=False)

        assert [strategy.get_delay(attempt) for attempt in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_jitter_adds_at_most_ten_percent(self):
        strategy = RetryStrategy(base_delay=10.0)

        for _ in range(20):
            delay = strategy.get_delay(0)
            assert 10.0 <= delay <= 11.0

    def test_execute_with_retry_recovers(self, retry, clock):
        outcomes = [ConnectionError("reset"), "ok"]

        def flaky():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert retry.execute_with_retry(flaky) == "ok"
        assert clock.sleeps == [1.0]

    def test_execute_with_retry_raises_last_error(self, retry, clock):
        calls = []

        def always_busy():
            calls.append(1)
            raise ManagementAPIError(429, f"busy {len(calls)}")

        with pytest.raises(ManagementAPIError, match="busy 3"):
            retry.execute_with_retry(always_busy)

        assert len(calls) == 3
        assert clock.sleeps == [1.0, 2.0]

    def test_only_rate_limits_server_errors_and_network_failures_are_transient(self):
        assert is_transient(ManagementAPIError(429, "slow down"))
        assert is_transient(ManagementAPIError(500, "oops"))
        assert is_transient(ManagementAPIError(504, "gateway timeout"))
        assert is_transient(TimeoutError("slow"))
        assert not is_transient(ManagementAPIError(400, "bad"))
        assert not is_transient(ManagementAPIError(409, "exists"))
        assert not is_transient(KeyError("status"))


class TestPoll:

    def test_returns_first_success(self, retry, clock):
        states = ["pending", "pending", "done"]

        def attempt():
            state = states.pop(0)
            if state != "done":
                raise RetryableError(state)
            return state

        assert retry.poll(attempt, timeout=60) == "done"
        assert clock.sleeps == [1.0, 2.0]

    def test_non_retryable_raises_cause(self, retry, clock):
        cause = ManagementAPIError(404, "missing")

        def attempt():
            raise NonRetryableError(cause)

        with pytest.raises(ManagementAPIError) as exc_info:
            retry.poll(attempt, timeout=60)

        assert exc_info.value is cause
        assert clock.sleeps == []

    def test_unexpected_errors_propagate(self, retry):
        def attempt():
            raise KeyError("status")

        with pytest.raises(KeyError):
            retry.poll(attempt, timeout=60)

    def test_budget_is_never_overslept(self, retry, clock):
        def attempt():
            raise RetryableError("still pending")

        with pytest.raises(PollTimeoutError) as exc_info:
            retry.poll(attempt, timeout=5)

        assert clock.sleeps == [1.0, 2.0, 2.0]
        assert clock.now == 5.0
        assert str(exc_info.value) == "timeout while waiting for state to become ready (5s), last error: still pending"
