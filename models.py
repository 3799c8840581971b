"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OperationState(str, Enum):
    IDLE = "IDLE"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Severity(str, Enum):
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class ProviderType(str, Enum):
    NODE = "node"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ProviderType":
        for member in cls:
            if member.value == (value or "").lower():
                return member
        return cls.NODE


class OperationKind(str, Enum):
    ETH_TRANSFER = "eth-transfer"
    ERC20_TRANSFER = "erc20-transfer"
    SIGN_MESSAGE = "sign-message"
    SIGN_TYPED_DATA = "sign-typed-data"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "OperationKind":
        """Resolve a request label, falling back to ETH transfer when unknown."""
        key = (label or "").lower()
        for member in cls:
            if member.value == key:
                return member
        return cls.ETH_TRANSFER

    @property
    def title(self) -> str:
        return _KIND_INFO[self][0]

    @property
    def description(self) -> str:
        return _KIND_INFO[self][1]


_KIND_INFO = {
    OperationKind.ETH_TRANSFER: ("ETH Transfer", "Send native ETH to any address"),
    OperationKind.ERC20_TRANSFER: ("ERC20 Transfer", "Transfer ERC20 tokens"),
    OperationKind.SIGN_MESSAGE: ("Sign Message", "Sign plain text messages"),
    OperationKind.SIGN_TYPED_DATA: ("Sign Typed Data", "EIP-712 structured data signatures"),
}

_REQUIRED_FIELDS = {
    OperationKind.ETH_TRANSFER: ("recipient", "amount"),
    OperationKind.ERC20_TRANSFER: ("token_address", "recipient", "amount"),
    OperationKind.SIGN_MESSAGE: ("message",),
    OperationKind.SIGN_TYPED_DATA: (),
}


@dataclass
class OperationRequest:
    recipient: str = ""
    amount: str = ""
    token_address: str = ""
    message: str = ""

    @staticmethod
    def required_fields(kind: OperationKind) -> tuple[str, ...]:
        return _REQUIRED_FIELDS[kind]

    def is_complete_for(self, kind: OperationKind) -> bool:
        return all(getattr(self, name).strip() for name in self.required_fields(kind))

    def reset_for(self, kind: OperationKind) -> None:
        for name in self.required_fields(kind):
            setattr(self, name, "")


@dataclass(frozen=True)
class ClassifiedError:
    kind: str
    message: str
    severity: Severity = Severity.ERROR


@dataclass
class OperationOutcome:
    payload: str = ""
    error: Optional[ClassifiedError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, payload: str) -> "OperationOutcome":
        return cls(payload=payload)

    @classmethod
    def failure(cls, error: ClassifiedError) -> "OperationOutcome":
        return cls(error=error)
