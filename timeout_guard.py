"""Deadline-bounded execution of a single wallet provider call."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from error_classifier import classify_error, is_user_rejection, timeout_error
from models import ClassifiedError, OperationKind, OperationOutcome

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 60000

DEFAULT_DEADLINES_MS = {
    OperationKind.ETH_TRANSFER: 30000,
    OperationKind.ERC20_TRANSFER: 30000,
    OperationKind.SIGN_MESSAGE: 20000,
    OperationKind.SIGN_TYPED_DATA: 20000,
}

Operation = Callable[[], str]
Classifier = Callable[[Any], ClassifiedError]


class TimeoutGuard:
    """Settlement point for one in-flight operation.

    Exactly one of provider result, deadline or explicit force-settle is
    honored; every later attempt is a no-op.
    """

    def __init__(self, deadline_ms: int) -> None:
        self.deadline_ms = deadline_ms
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._outcome: Optional[OperationOutcome] = None

    @property
    def settled(self) -> bool:
        return self._done.is_set()

    @property
    def outcome(self) -> Optional[OperationOutcome]:
        return self._outcome

    def settle(self, outcome: OperationOutcome) -> bool:
        with self._lock:
            if self._outcome is not None:
                return False
            self._outcome = outcome
        self._done.set()
        return True

    def wait(self) -> OperationOutcome:
        """Block until settled, settling as a timeout once the deadline passes."""
        if not self._done.wait(timeout=self.deadline_ms / 1000.0):
            if self.settle(OperationOutcome.failure(timeout_error())):
                logger.warning("operation timed out after %d ms", self.deadline_ms)
        outcome = self._outcome
        if outcome is None:
            raise RuntimeError("guard released without an outcome")
        return outcome


class GuardedOperationRunner:
    def __init__(self, classify: Classifier = classify_error) -> None:
        self._classify = classify

    def launch(self, operation: Operation, deadline_ms: int) -> TimeoutGuard:
        guard = TimeoutGuard(deadline_ms)
        worker = threading.Thread(
            target=self._execute,
            args=(operation, guard),
            name="wallet-operation",
            daemon=True,
        )
        worker.start()
        return guard

    def run(self, operation: Operation, deadline_ms: int) -> OperationOutcome:
        return self.launch(operation, deadline_ms).wait()

    def _execute(self, operation: Operation, guard: TimeoutGuard) -> None:
        # The provider call cannot be aborted; a late outcome is dropped.
        try:
            payload = operation()
        except Exception as exc:
            error = self._classify(exc)
            if is_user_rejection(error):
                logger.info("user rejection detected, releasing guard: %s", exc)
            else:
                logger.info("operation failed (%s): %s", error.kind, exc)
            if not guard.settle(OperationOutcome.failure(error)):
                logger.warning("discarding late failure (%s)", error.kind)
            return

        if not guard.settle(OperationOutcome.success(payload)):
            logger.warning("discarding late result %s", payload)
