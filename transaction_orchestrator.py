"""State-machine based transaction orchestration."""

from __future__ import annotations

import logging
import threading
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Callable, Mapping, Optional

from error_classifier import classified, is_user_rejection
from errors import FIELDS_MISSING_MESSAGE, UNAUTHORIZED, USER_REJECTED, ProviderError
from interfaces import NotificationSink, WalletProvider
from models import (
    ClassifiedError,
    OperationKind,
    OperationOutcome,
    OperationRequest,
    OperationState,
    Severity,
)
from timeout_guard import (
    DEFAULT_DEADLINES_MS,
    DEFAULT_TIMEOUT_MS,
    GuardedOperationRunner,
    Operation,
    TimeoutGuard,
)

logger = logging.getLogger(__name__)

StateCallback = Callable[[OperationState, OperationState], None]

TOKEN_DECIMALS = 18
VALIDATION_DURATION_MS = 3000
ERROR_DURATION_MS = 4000

ERC20_TRANSFER_ABI: dict[str, Any] = {
    "name": "transfer",
    "type": "function",
    "stateMutability": "nonpayable",
    "inputs": [
        {"name": "to", "type": "address"},
        {"name": "amount", "type": "uint256"},
    ],
    "outputs": [{"name": "", "type": "bool"}],
}

TYPED_DATA_DOMAIN: dict[str, Any] = {
    "name": "Wallet Ops Demo",
    "version": "1",
    "chainId": 1,
    "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
}

TYPED_DATA_TYPES: dict[str, list[dict[str, str]]] = {
    "Person": [
        {"name": "name", "type": "string"},
        {"name": "wallet", "type": "address"},
    ],
}

TYPED_DATA_PRIMARY_TYPE = "Person"
TYPED_DATA_NAME = "Wallet Ops User"

SUCCESS_NOTICES = {
    OperationKind.ETH_TRANSFER: ("ETH transfer submitted successfully!", 4000),
    OperationKind.ERC20_TRANSFER: ("ERC20 transfer submitted successfully!", 4000),
    OperationKind.SIGN_MESSAGE: ("Message signed successfully!", 3000),
    OperationKind.SIGN_TYPED_DATA: ("Typed data signed successfully!", 3000),
}


def parse_units(amount: str, decimals: int) -> int:
    """Scale a decimal string such as ``"0.01"`` to integer minor units."""
    try:
        value = Decimal(amount.strip())
    except (InvalidOperation, AttributeError):
        raise ValueError("amount is not a decimal number") from None
    if not value.is_finite() or value < 0:
        raise ValueError("amount must be a non-negative number")
    with localcontext() as ctx:
        ctx.prec = 100
        scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount has more than {decimals} decimal places")
    return int(scaled)


class TransactionOrchestrator:
    def __init__(
        self,
        provider: WalletProvider,
        notifier: NotificationSink,
        runner: Optional[GuardedOperationRunner] = None,
        deadlines_ms: Optional[Mapping[OperationKind, int]] = None,
        request: Optional[OperationRequest] = None,
        on_state_change: Optional[StateCallback] = None,
    ) -> None:
        self._provider = provider
        self._notifier = notifier
        self._runner = runner or GuardedOperationRunner()
        self._deadlines_ms = dict(DEFAULT_DEADLINES_MS if deadlines_ms is None else deadlines_ms)
        self._on_state_change = on_state_change

        self._lock = threading.RLock()
        self._state = OperationState.IDLE
        self._kind: Optional[OperationKind] = None
        self._guard: Optional[TimeoutGuard] = None
        self._episode = 0
        self._last_error: Optional[ClassifiedError] = None
        self._last_payload = ""
        self.request = request or OperationRequest()

    @property
    def state(self) -> OperationState:
        return self._state

    @property
    def kind(self) -> Optional[OperationKind]:
        return self._kind

    @property
    def last_error(self) -> Optional[ClassifiedError]:
        return self._last_error

    @property
    def last_payload(self) -> str:
        return self._last_payload

    def deadline_for(self, kind: OperationKind) -> int:
        return self._deadlines_ms.get(kind, DEFAULT_TIMEOUT_MS)

    def start(self, label: Optional[str], request: Optional[OperationRequest] = None) -> OperationState:
        """Run one operation to settlement and return the resulting state.

        Blocks until the operation settles, so UI callers should invoke it
        from a worker thread. Calling it while an operation is pending is a
        no-op.
        """
        kind = OperationKind.from_label(label)
        with self._lock:
            if self._state == OperationState.PENDING:
                logger.debug("start(%s) ignored: episode %d pending", kind.value, self._episode)
                return self._state
            self._transition(OperationState.IDLE)
            if request is not None:
                self.request = request

            account = self._connected_account()
            if account is None:
                self._kind = kind
                self._fail(classified(UNAUTHORIZED))
                return self._state

            if not self.request.is_complete_for(kind):
                self._notify(FIELDS_MISSING_MESSAGE, Severity.WARNING, VALIDATION_DURATION_MS)
                return self._state

            self._episode += 1
            self._kind = kind
            self._last_error = None
            self._last_payload = ""
            operation = self._build_operation(kind, self.request, account)
            deadline_ms = self.deadline_for(kind)
            self._transition(OperationState.PENDING)
            logger.info("episode %d: %s started (deadline %d ms)", self._episode, kind.value, deadline_ms)
            guard = self._runner.launch(operation, deadline_ms)
            self._guard = guard
            episode = self._episode

        outcome = guard.wait()

        with self._lock:
            self._guard = None
            self._settle(kind, episode, outcome)
            return self._state

    def cancel(self) -> bool:
        """Force the pending operation to settle as cancelled by the user."""
        with self._lock:
            guard = self._guard
        if guard is None:
            return False
        return guard.settle(OperationOutcome.failure(classified(USER_REJECTED)))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _connected_account(self) -> Optional[str]:
        try:
            if not self._provider.is_session_connected():
                return None
            return self._provider.current_account_address() or None
        except Exception as exc:
            logger.warning("session check failed: %s", exc)
            return None

    def _build_operation(self, kind: OperationKind, request: OperationRequest, account: str) -> Operation:
        provider = self._provider
        recipient = request.recipient.strip()
        amount = request.amount.strip()
        token_address = request.token_address.strip()
        message = request.message

        if kind == OperationKind.ERC20_TRANSFER:
            def operation() -> str:
                value = parse_units(amount, TOKEN_DECIMALS)
                return provider.invoke_contract_write(token_address, ERC20_TRANSFER_ABI, [recipient, value])

        elif kind == OperationKind.SIGN_MESSAGE:
            def operation() -> str:
                return _require_signature(provider.sign_plain_message(message))

        elif kind == OperationKind.SIGN_TYPED_DATA:
            value = {"name": TYPED_DATA_NAME, "wallet": account}

            def operation() -> str:
                return _require_signature(
                    provider.sign_structured_data(
                        dict(TYPED_DATA_DOMAIN),
                        TYPED_DATA_TYPES,
                        TYPED_DATA_PRIMARY_TYPE,
                        value,
                    )
                )

        else:
            def operation() -> str:
                return provider.send_native_transfer(recipient, parse_units(amount, TOKEN_DECIMALS))

        return operation

    def _settle(self, kind: OperationKind, episode: int, outcome: OperationOutcome) -> None:
        error = outcome.error
        if error is None:
            self._last_payload = outcome.payload
            self._transition(OperationState.COMPLETED)
            logger.info("episode %d: %s completed: %s", episode, kind.value, outcome.payload)
            self.request.reset_for(kind)
            message, duration_ms = SUCCESS_NOTICES[kind]
            self._notify(message, Severity.SUCCESS, duration_ms)
            return

        if is_user_rejection(error):
            logger.info("episode %d: %s cancelled by user", episode, kind.value)
        else:
            logger.info("episode %d: %s failed: %s", episode, kind.value, error.kind)
        self._fail(error)

    def _fail(self, error: ClassifiedError) -> None:
        self._last_error = error
        self._transition(OperationState.FAILED)
        self._notify(error.message, error.severity, ERROR_DURATION_MS)

    def _notify(self, message: str, severity: Severity, duration_ms: int) -> None:
        try:
            self._notifier.notify(message, severity, duration_ms)
        except Exception:
            logger.exception("notification sink failed")

    def _transition(self, to_state: OperationState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("state %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)


def _require_signature(signature: Optional[str]) -> str:
    if not signature:
        raise ProviderError("No signature received from wallet")
    return signature
