"""Protocol interfaces used by TransactionOrchestrator."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from models import Severity


class CapabilityProvider(Protocol):
    def send_native_transfer(self, to: str, value_minor_units: int) -> str: ...

    def invoke_contract_write(
        self,
        contract: str,
        abi_function: dict[str, Any],
        args: Sequence[Any],
    ) -> str: ...

    def sign_plain_message(self, text: str) -> str: ...

    def sign_structured_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        value: dict[str, Any],
    ) -> str: ...


class AccountSource(Protocol):
    def current_account_address(self) -> Optional[str]: ...

    def is_session_connected(self) -> bool: ...


class WalletProvider(CapabilityProvider, AccountSource, Protocol):
    pass


class NotificationSink(Protocol):
    def notify(self, message: str, severity: Severity, duration_ms: int) -> None: ...


class ConfigStore(Protocol):
    def get_provider_type(self) -> str: ...

    def set_provider_type(self, provider_type: str) -> None: ...

    def get_rpc_url(self) -> str: ...

    def set_rpc_url(self, rpc_url: str) -> None: ...

    def get_chain_id(self) -> int: ...

    def set_chain_id(self, chain_id: int) -> None: ...
