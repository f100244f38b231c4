"""Unit tests for error classification and retry with backoff"""

import pytest
from lending_gateway.domain.exceptions import ErrorKind, GENERIC_RETRY_MESSAGE, LendingError, validation_error
from lending_gateway.domain.resilience import ResilientExecutor, classify_error, is_retryable, with_retry


class Operation:
    """Callable that fails with the queued errors before returning a value"""

    def __init__(self, *errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def test_classify_error():
    """Test errors map onto the taxonomy"""
    assert classify_error(validation_error("bad")) == ErrorKind.VALIDATION
    assert classify_error(ConnectionError()) == ErrorKind.NETWORK
    assert classify_error(TimeoutError()) == ErrorKind.NETWORK
    assert classify_error(RuntimeError()) == ErrorKind.SERVER


def test_is_retryable():
    """Test only transient kinds are retryable"""
    assert is_retryable(ConnectionError()) is True
    assert is_retryable(RuntimeError()) is True
    assert is_retryable(validation_error("bad")) is False
    assert is_retryable(LendingError("denied", ErrorKind.AUTH)) is False
    assert is_retryable(LendingError("constraint", ErrorKind.SERVER, retryable=False)) is False


def test_user_message_hides_transient_details():
    """Test only validation and auth reasons are shown to users"""
    assert validation_error("Insufficient points").user_message == "Insufficient points"
    assert LendingError("pool exhausted", ErrorKind.NETWORK).user_message == GENERIC_RETRY_MESSAGE


async def test_success_on_first_attempt(sleep):
    """Test no retries when the operation succeeds"""
    operation = Operation()

    assert await with_retry(operation, sleep=sleep) == "ok"
    assert operation.calls == 1
    assert sleep.delays == []


async def test_validation_error_not_retried(sleep):
    """Test VALIDATION failures are raised after a single call"""
    operation = Operation(validation_error("Insufficient points"))

    with pytest.raises(LendingError) as exc_info:
        await with_retry(operation, sleep=sleep)

    assert exc_info.value.kind == ErrorKind.VALIDATION
    assert operation.calls == 1
    assert sleep.delays == []


async def test_auth_error_not_retried(sleep):
    """Test AUTH failures are raised after a single call"""
    operation = Operation(LendingError("denied", ErrorKind.AUTH))

    with pytest.raises(LendingError) as exc_info:
        await with_retry(operation, sleep=sleep)

    assert exc_info.value.kind == ErrorKind.AUTH
    assert operation.calls == 1


async def test_non_retryable_server_error_not_retried(sleep):
    """Test SERVER errors flagged non-retryable pass straight through"""
    operation = Operation(LendingError("constraint", ErrorKind.SERVER, retryable=False))

    with pytest.raises(LendingError) as exc_info:
        await with_retry(operation, sleep=sleep)

    assert exc_info.value.message == "constraint"
    assert operation.calls == 1


async def test_network_errors_then_success(sleep):
    """Test two transient failures then success: 3 calls, backoff 1s then 2s"""
    operation = Operation(ConnectionError(), LendingError("timeout", ErrorKind.NETWORK))

    assert await with_retry(operation, sleep=sleep) == "ok"
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


async def test_retries_exhausted(sleep):
    """Test persistent failure: 4 calls, backoff 1s/2s/4s, then a NETWORK error"""
    operation = Operation(*[ConnectionError("down") for _ in range(10)])

    with pytest.raises(LendingError) as exc_info:
        await with_retry(operation, sleep=sleep)

    error = exc_info.value
    assert operation.calls == 4
    assert sleep.delays == [1.0, 2.0, 4.0]
    assert error.kind == ErrorKind.NETWORK
    assert error.user_message == GENERIC_RETRY_MESSAGE
    assert isinstance(error.__cause__, ConnectionError)


async def test_exhausted_server_error_reports_last_kind(sleep):
    """Test exhausted SERVER retries surface as NETWORK with the underlying kind in details"""
    operation = Operation(*[RuntimeError("boom") for _ in range(4)])

    with pytest.raises(LendingError) as exc_info:
        await with_retry(operation, sleep=sleep)

    assert exc_info.value.kind == ErrorKind.NETWORK
    assert exc_info.value.details == {"last_error_kind": "SERVER"}


async def test_executor_uses_configured_policy(sleep):
    """Test the executor applies its own retry count and initial delay"""
    executor = ResilientExecutor(max_retries=1, initial_delay=0.5, sleep=sleep)
    operation = Operation(ConnectionError(), ConnectionError())

    with pytest.raises(LendingError):
        await executor.run(operation)

    assert operation.calls == 2
    assert sleep.delays == [0.5]


async def test_retry_hook_receives_error_kinds(sleep):
    """Test the retry hook sees the kind of every retried failure"""
    seen = []
    executor = ResilientExecutor(sleep=sleep, on_retry=seen.append)
    operation = Operation(ConnectionError(), RuntimeError())

    assert await executor.run(operation) == "ok"
    assert seen == [ErrorKind.NETWORK, ErrorKind.SERVER]
