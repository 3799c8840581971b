"""Centralized classification of wallet provider failures.

Every provider failure, whatever its shape, is mapped onto one of the codes
in ``errors``. Numeric EIP-1193 codes win over message text; message text is
matched case-insensitively in a fixed order so that a failure carrying several
signals always lands on the same kind.

The input is deliberately loose. Recognised shapes:

- a dict with ``code`` / ``message`` keys
- any object with ``code`` / ``message`` attributes (``ProviderError``,
  wallet SDK errors)
- a web3 RPC error exposing ``rpc_response["error"]``
- an exception whose first argument is a ``{"code", "message"}`` dict
- any of the above reached through ``__cause__``
"""

from __future__ import annotations

from typing import Any, Optional

from errors import (
    DISCONNECTED,
    ERROR_MESSAGES,
    GAS_ESTIMATION_FAILED,
    INSUFFICIENT_BALANCE,
    INVALID_ADDRESS,
    NETWORK_DISCONNECTED,
    NETWORK_ERROR,
    TIMEOUT,
    UNAUTHORIZED,
    UNKNOWN,
    UNSUPPORTED_OPERATION,
    USER_REJECTED,
    WARNING_CODES,
)
from models import ClassifiedError, Severity

CODE_KINDS = {
    4001: USER_REJECTED,
    4100: UNAUTHORIZED,
    4200: UNSUPPORTED_OPERATION,
    4900: DISCONNECTED,
    4901: NETWORK_DISCONNECTED,
}

# Order matters: first matching group wins.
MESSAGE_PATTERNS: list[tuple[str, tuple[str, ...]]] = [
    (USER_REJECTED, ("user rejected", "user denied", "cancelled", "rejected", "denied")),
    (INSUFFICIENT_BALANCE, ("insufficient funds", "insufficient balance")),
    (GAS_ESTIMATION_FAILED, ("gas",)),
    (INVALID_ADDRESS, ("invalid address",)),
    (NETWORK_ERROR, ("network", "connection")),
]

_MAX_CAUSE_DEPTH = 5


def classified(kind: str) -> ClassifiedError:
    """Build the canonical ClassifiedError for an error code."""
    severity = Severity.WARNING if kind in WARNING_CODES else Severity.ERROR
    return ClassifiedError(
        kind=kind,
        message=ERROR_MESSAGES.get(kind, ERROR_MESSAGES[UNKNOWN]),
        severity=severity,
    )


def timeout_error() -> ClassifiedError:
    return classified(TIMEOUT)


def is_user_rejection(error: Optional[ClassifiedError]) -> bool:
    return error is not None and error.kind == USER_REJECTED


def _as_code(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _payload_of(raw: Any) -> Optional[dict]:
    """Return the dict carrying code/message for ``raw``, if there is one."""
    if isinstance(raw, dict):
        return raw
    rpc_response = getattr(raw, "rpc_response", None)
    if isinstance(rpc_response, dict) and isinstance(rpc_response.get("error"), dict):
        return rpc_response["error"]
    args = getattr(raw, "args", None)
    if isinstance(raw, BaseException) and args and isinstance(args[0], dict):
        return args[0]
    return None


def _extract(raw: Any) -> tuple[Optional[int], str]:
    payload = _payload_of(raw)
    if payload is not None:
        code = _as_code(payload.get("code"))
        message = payload.get("message")
    else:
        code = _as_code(getattr(raw, "code", None))
        message = getattr(raw, "message", None)
    if not isinstance(message, str) or not message:
        message = "" if raw is None else str(raw)
    return code, message


def _signals(raw: Any) -> tuple[Optional[int], str]:
    """Collect the first known wallet code and all message text along the cause chain."""
    code: Optional[int] = None
    messages: list[str] = []
    current = raw
    depth = 0
    while current is not None and depth < _MAX_CAUSE_DEPTH:
        current_code, message = _extract(current)
        if code is None and current_code in CODE_KINDS:
            code = current_code
        if message:
            messages.append(message)
        current = getattr(current, "__cause__", None) or getattr(current, "cause", None)
        depth += 1
    return code, "\n".join(messages)


def _contains_any(haystack: str, needles: tuple[str, ...]) -> bool:
    return any(n in haystack for n in needles)


def classify_error(raw: Any) -> ClassifiedError:
    """Classify a provider failure into a stable ClassifiedError.

    Never raises and never returns provider text; unmatched failures are
    reported as UNKNOWN with a retry-oriented message.
    """
    code, message = _signals(raw)

    # 1) Numeric wallet codes
    if code in CODE_KINDS:
        return classified(CODE_KINDS[code])

    # 2) Message text
    low = message.lower()
    for kind, needles in MESSAGE_PATTERNS:
        if _contains_any(low, needles):
            return classified(kind)

    # 3) Fallback
    return classified(UNKNOWN)
