"""Tests for TimeoutGuard and GuardedOperationRunner."""

from __future__ import annotations

import threading
import time

from error_classifier import classified
from errors import TIMEOUT, UNKNOWN, USER_REJECTED, ProviderError
from models import OperationKind, OperationOutcome
from timeout_guard import (
    DEFAULT_DEADLINES_MS,
    DEFAULT_TIMEOUT_MS,
    GuardedOperationRunner,
    TimeoutGuard,
)


def test_default_deadlines() -> None:
    assert DEFAULT_DEADLINES_MS[OperationKind.ETH_TRANSFER] == 30000
    assert DEFAULT_DEADLINES_MS[OperationKind.ERC20_TRANSFER] == 30000
    assert DEFAULT_DEADLINES_MS[OperationKind.SIGN_MESSAGE] == 20000
    assert DEFAULT_DEADLINES_MS[OperationKind.SIGN_TYPED_DATA] == 20000
    assert DEFAULT_TIMEOUT_MS == 60000


def test_success_before_deadline() -> None:
    runner = GuardedOperationRunner()
    outcome = runner.run(lambda: "0xabc", deadline_ms=1000)
    assert outcome.ok is True
    assert outcome.payload == "0xabc"


def test_success_returns_without_waiting_for_deadline() -> None:
    runner = GuardedOperationRunner()
    started = time.monotonic()
    runner.run(lambda: "0xabc", deadline_ms=5000)
    assert time.monotonic() - started < 1.0


def test_failure_is_classified() -> None:
    def operation() -> str:
        raise ProviderError("boom", code=4001)

    outcome = GuardedOperationRunner().run(operation, deadline_ms=1000)
    assert outcome.ok is False
    assert outcome.error is not None
    assert outcome.error.kind == USER_REJECTED


def test_never_settling_operation_times_out() -> None:
    release = threading.Event()

    def operation() -> str:
        release.wait()
        return "0xlate"

    started = time.monotonic()
    outcome = GuardedOperationRunner().run(operation, deadline_ms=50)
    release.set()

    assert time.monotonic() - started < 1.0
    assert outcome.error is not None
    assert outcome.error.kind == TIMEOUT


def test_late_result_is_discarded() -> None:
    finished = threading.Event()

    def operation() -> str:
        time.sleep(0.15)
        finished.set()
        return "0xlate"

    guard = GuardedOperationRunner().launch(operation, deadline_ms=50)
    outcome = guard.wait()
    assert finished.wait(timeout=2.0)
    time.sleep(0.05)

    assert outcome.error is not None
    assert outcome.error.kind == TIMEOUT
    assert guard.outcome is outcome


def test_settle_is_honored_once() -> None:
    guard = TimeoutGuard(deadline_ms=1000)
    first = OperationOutcome.success("0x1")
    assert guard.settle(first) is True
    assert guard.settle(OperationOutcome.success("0x2")) is False
    assert guard.settle(OperationOutcome.failure(classified(UNKNOWN))) is False
    assert guard.settled is True
    assert guard.wait() is first


def test_force_settle_releases_waiter() -> None:
    release = threading.Event()

    def operation() -> str:
        release.wait()
        return "0xlate"

    guard = GuardedOperationRunner().launch(operation, deadline_ms=5000)
    threading.Timer(0.05, lambda: guard.settle(OperationOutcome.failure(classified(USER_REJECTED)))).start()

    started = time.monotonic()
    outcome = guard.wait()
    release.set()

    assert time.monotonic() - started < 1.0
    assert outcome.error is not None
    assert outcome.error.kind == USER_REJECTED


def test_custom_classifier_is_used() -> None:
    calls: list[Exception] = []

    def classify(exc: Exception):  # noqa: ANN202
        calls.append(exc)
        return classified(UNKNOWN)

    def operation() -> str:
        raise RuntimeError("x")

    outcome = GuardedOperationRunner(classify=classify).run(operation, deadline_ms=1000)
    assert outcome.error == classified(UNKNOWN)
    assert len(calls) == 1


def test_unsettled_guard_settles_itself_as_timeout() -> None:
    guard = TimeoutGuard(deadline_ms=10)

    outcome = guard.wait()

    assert outcome.error == classified(TIMEOUT)
    assert guard.outcome is outcome
    assert guard.settle(OperationOutcome.success("0xlate")) is False
