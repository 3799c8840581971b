"""Runtime switch between the two wallet backends."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional, Sequence

from interfaces import AccountSource, ConfigStore, WalletProvider
from models import ProviderType

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[], WalletProvider]


class ProviderSelector:
    """Pass-through WalletProvider delegating to the selected backend.

    The selection is read from and persisted to the config store; backends
    are built lazily and rebuilt after a switch.
    """

    def __init__(self, config_store: ConfigStore, factories: Mapping[ProviderType, ProviderFactory]) -> None:
        self._config_store = config_store
        self._factories = dict(factories)
        self._lock = threading.Lock()
        self._provider_type = ProviderType.parse(config_store.get_provider_type())
        self._current: Optional[WalletProvider] = None

    @property
    def provider_type(self) -> ProviderType:
        return self._provider_type

    def set_provider_type(self, provider_type: ProviderType) -> None:
        with self._lock:
            if provider_type not in self._factories:
                raise ValueError(f"no backend registered for {provider_type.value}")
            if provider_type != self._provider_type:
                logger.info("switching provider %s -> %s", self._provider_type.value, provider_type.value)
            self._provider_type = provider_type
            self._current = None
        self._config_store.set_provider_type(provider_type.value)

    def invalidate(self) -> None:
        """Drop the cached backend so the next call rebuilds it (e.g. new RPC URL)."""
        with self._lock:
            self._current = None

    def current(self) -> WalletProvider:
        with self._lock:
            if self._current is None:
                self._current = self._factories[self._provider_type]()
            return self._current

    # ------------------------------------------------------------------
    # WalletProvider
    # ------------------------------------------------------------------

    def current_account_address(self) -> Optional[str]:
        return self.current().current_account_address()

    def is_session_connected(self) -> bool:
        return self.current().is_session_connected()

    def send_native_transfer(self, to: str, value_minor_units: int) -> str:
        return self.current().send_native_transfer(to, value_minor_units)

    def invoke_contract_write(
        self,
        contract: str,
        abi_function: dict[str, Any],
        args: Sequence[Any],
    ) -> str:
        return self.current().invoke_contract_write(contract, abi_function, args)

    def sign_plain_message(self, text: str) -> str:
        return self.current().sign_plain_message(text)

    def sign_structured_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        value: dict[str, Any],
    ) -> str:
        return self.current().sign_structured_data(domain, types, primary_type, value)


class AccountLookup:
    """Resolve the current account on a worker thread.

    The node backend answers over JSON-RPC, so callers on a UI thread read
    the cached ``address`` and get ``on_result`` once a lookup finishes.
    Only the latest ``refresh()`` may publish; earlier lookups are dropped.
    """

    def __init__(self, source: AccountSource, on_result: Callable[[Optional[str]], None]) -> None:
        self._source = source
        self._on_result = on_result
        self._lock = threading.Lock()
        self._generation = 0
        self._address: Optional[str] = None

    @property
    def address(self) -> Optional[str]:
        return self._address

    def refresh(self, forget: bool = False) -> threading.Thread:
        with self._lock:
            self._generation += 1
            generation = self._generation
            if forget:
                self._address = None
        worker = threading.Thread(
            target=self._lookup,
            args=(generation,),
            name="account-lookup",
            daemon=True,
        )
        worker.start()
        return worker

    def _lookup(self, generation: int) -> None:
        address = self._source.current_account_address()
        with self._lock:
            if generation != self._generation:
                logger.debug("dropping superseded account lookup %d", generation)
                return
            self._address = address
        self._on_result(address)
