"""Shared error codes and user-facing messages."""

from __future__ import annotations

USER_REJECTED = "USER_REJECTED"
UNAUTHORIZED = "UNAUTHORIZED"
UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
DISCONNECTED = "DISCONNECTED"
NETWORK_DISCONNECTED = "NETWORK_DISCONNECTED"
INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
GAS_ESTIMATION_FAILED = "GAS_ESTIMATION_FAILED"
INVALID_ADDRESS = "INVALID_ADDRESS"
NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT = "TIMEOUT"
UNKNOWN = "UNKNOWN"

ERROR_MESSAGES = {
    USER_REJECTED: "Transaction cancelled in wallet",
    UNAUTHORIZED: "Wallet not connected",
    UNSUPPORTED_OPERATION: "Unsupported operation",
    DISCONNECTED: "Wallet disconnected",
    NETWORK_DISCONNECTED: "Network disconnected",
    INSUFFICIENT_BALANCE: "Insufficient balance for transaction",
    GAS_ESTIMATION_FAILED: "Gas estimation failed. Please try again.",
    INVALID_ADDRESS: "Invalid address format",
    NETWORK_ERROR: "Network connection error",
    TIMEOUT: "Operation timed out. Please try again.",
    UNKNOWN: "Transaction failed. Please try again.",
}

# Only a user cancelling in the wallet is shown as a warning.
WARNING_CODES = frozenset({USER_REJECTED})

FIELDS_MISSING_MESSAGE = "Please fill in all fields"


class ProviderError(Exception):
    """Failure raised by a wallet provider, optionally with an EIP-1193 code."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
