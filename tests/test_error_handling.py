"""Tests for bounded retry execution."""

import pickle

import pytest

from script_helpers.error_handling import (
    NO_RESULT,
    RetryPolicy,
    invoke_with_error_handling,
    run_with_policy,
)
from script_helpers.errors import OperationFailedError


class _Flaky:
    """Fails ``failures`` times before returning ``result``."""

    def __init__(self, failures, result="done"):
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return self.result


def _lines(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_success_returns_result_after_one_call():
    calls = []

    def work():
        calls.append(1)
        return 2 + 2

    assert invoke_with_error_handling(work, "SimpleSum", max_retries=1) == 4
    assert len(calls) == 1


def test_result_is_passed_through_unchanged():
    payload = {"rows": [1, 2]}

    assert invoke_with_error_handling(lambda: payload, "Passthrough") is payload


def test_none_result_is_not_confused_with_sentinel():
    assert invoke_with_error_handling(lambda: None, "ReturnsNone") is None


def test_failure_raises_after_single_attempt():
    work = _Flaky(failures=10)

    with pytest.raises(OperationFailedError) as excinfo:
        invoke_with_error_handling(work, "Fail", max_retries=1)

    assert work.calls == 1
    assert excinfo.value.operation_name == "Fail"
    assert excinfo.value.attempts == 1
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert str(excinfo.value) == "Fail failed after 1 attempt: failure 1"


def test_continue_on_error_returns_sentinel_after_all_attempts():
    work = _Flaky(failures=10)

    result = invoke_with_error_handling(work, "Fail", max_retries=3, continue_on_error=True)

    assert result is NO_RESULT
    assert work.calls == 3


def test_retries_until_success():
    work = _Flaky(failures=2, result="ok")

    assert invoke_with_error_handling(work, "Eventually", max_retries=3) == "ok"
    assert work.calls == 3


def test_exhausted_retries_report_attempt_count():
    work = _Flaky(failures=10)

    with pytest.raises(OperationFailedError) as excinfo:
        invoke_with_error_handling(work, "Copy", max_retries=4)

    assert work.calls == 4
    assert "after 4 attempts" in str(excinfo.value)
    assert str(excinfo.value.cause) == "failure 4"


@pytest.mark.parametrize("max_retries", [0, 1])
def test_zero_or_one_means_single_attempt(max_retries):
    work = _Flaky(failures=10)

    assert invoke_with_error_handling(work, "Once", max_retries=max_retries, continue_on_error=True) is NO_RESULT
    assert work.calls == 1


def test_keyboard_interrupt_is_not_retried():
    calls = []

    def work():
        calls.append(1)
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        invoke_with_error_handling(work, "Interrupted", max_retries=5, continue_on_error=True)
    assert len(calls) == 1


def test_attempts_are_logged(script_logger, log_path):
    work = _Flaky(failures=10)

    invoke_with_error_handling(work, "Logged", max_retries=2, continue_on_error=True, logger=script_logger)

    lines = _lines(log_path)
    assert len(lines) == 3
    assert " | WARNING  | " in lines[0] and "Logged attempt 1/2 failed: RuntimeError: failure 1" in lines[0]
    assert "Logged attempt 2/2 failed" in lines[1]
    assert " | ERROR    | " in lines[2] and "Logged failed after 2 attempt(s); continuing" in lines[2]


def test_success_writes_no_log_lines(script_logger, log_path):
    invoke_with_error_handling(lambda: 1, "Quiet", logger=script_logger)

    assert _lines(log_path) == []


def test_backoff_doubles_and_is_capped():
    policy = RetryPolicy(max_retries=5, retry_delay_seconds=1.5, max_delay_seconds=4.0)
    delays = []

    result = run_with_policy(policy, _Flaky(failures=4), "Backoff", sleep=delays.append)

    assert result == "done"
    assert delays == [1.5, 3.0, 4.0, 4.0]


def test_no_delay_by_default():
    delays = []

    run_with_policy(RetryPolicy(max_retries=3), _Flaky(failures=2), "NoDelay", sleep=delays.append)

    assert delays == []


@pytest.mark.parametrize(
    "kwargs",
    [{"max_retries": -1}, {"max_retries": True}, {"retry_delay_seconds": -0.5}, {"max_delay_seconds": -1}],
)
def test_policy_rejects_invalid_values(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_policy_from_configuration():
    policy = RetryPolicy.from_configuration(
        {"max_retries": 4, "continue_on_error": True, "retry_delay_seconds": 0.25}
    )

    assert policy == RetryPolicy(max_retries=4, continue_on_error=True, retry_delay_seconds=0.25)


def test_policy_from_configuration_ignores_invalid_values():
    policy = RetryPolicy.from_configuration(
        {"max_retries": "lots", "continue_on_error": "yes", "retry_delay_seconds": -3}
    )

    assert policy == RetryPolicy()


def test_sentinel_is_falsy_singleton():
    assert not NO_RESULT
    assert repr(NO_RESULT) == "NO_RESULT"
    assert pickle.loads(pickle.dumps(NO_RESULT)) is NO_RESULT


def test_long_retry_runs_keep_delay_capped(script_logger):
    policy = RetryPolicy(max_retries=1100, continue_on_error=True, retry_delay_seconds=0.001)
    work = _Flaky(failures=2000)
    delays = []

    result = run_with_policy(policy, work, "LongRun", logger=script_logger, sleep=delays.append)

    assert result is NO_RESULT
    assert work.calls == 1100
    assert len(delays) == 1099
    assert max(delays) == policy.max_delay_seconds


def test_delay_for_large_attempt_numbers():
    policy = RetryPolicy(retry_delay_seconds=0.5)

    assert policy.delay_for(5000) == policy.max_delay_seconds
    assert policy.delay_for(0) == 0.5
