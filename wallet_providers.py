"""Wallet capability providers backed by web3.py and eth-account.

Two interchangeable backends implement the same ``WalletProvider`` surface:

``NodeWalletProvider`` talks JSON-RPC to a node or wallet that manages the
account itself (``eth_sendTransaction``, ``eth_sign``, ``eth_signTypedData``),
so the wallet owns the confirmation step. ``LocalAccountProvider`` holds an
eth-account key, signs messages locally, and sends transactions through
web3.py's sign-and-send-raw middleware.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, Sequence

from errors import ProviderError

try:
    from web3 import Web3
except Exception:  # pragma: no cover
    Web3 = None  # type: ignore

try:
    from web3.middleware import SignAndSendRawMiddlewareBuilder
except Exception:  # pragma: no cover
    SignAndSendRawMiddlewareBuilder = None  # type: ignore

try:
    from eth_account import Account
    from eth_account.messages import encode_defunct, encode_typed_data
except Exception:  # pragma: no cover
    Account = None  # type: ignore
    encode_defunct = None  # type: ignore
    encode_typed_data = None  # type: ignore

logger = logging.getLogger(__name__)

PRIVATE_KEY_ENV = "WALLET_PRIVATE_KEY"
NOT_CONNECTED_CODE = 4100

_DOMAIN_FIELD_TYPES = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)


def _to_hex(value: Any) -> str:
    if isinstance(value, str):
        return value if value.startswith("0x") else f"0x{value}"
    return "0x" + bytes(value).hex()


def checksum_address(address: str) -> str:
    """Validate and checksum an address, raising an 'invalid address' error."""
    if Web3 is None:
        raise ProviderError("web3 is not installed")
    if not isinstance(address, str) or not Web3.is_address(address.strip()):
        logger.info("rejected address %r", address)
        raise ProviderError("invalid address")
    return Web3.to_checksum_address(address.strip())


def typed_data_message(
    domain: dict[str, Any],
    types: dict[str, list[dict[str, str]]],
    primary_type: str,
    value: dict[str, Any],
) -> dict[str, Any]:
    """Assemble a full EIP-712 message, deriving EIP712Domain from the domain keys."""
    domain_type = [{"name": name, "type": kind} for name, kind in _DOMAIN_FIELD_TYPES if name in domain]
    return {
        "types": {"EIP712Domain": domain_type, **types},
        "primaryType": primary_type,
        "domain": domain,
        "message": value,
    }


class _Web3Backend:
    def __init__(self, rpc_url: str, request_timeout_s: float = 30.0) -> None:
        self._rpc_url = rpc_url
        self._request_timeout_s = request_timeout_s
        self._web3: Any = None

    @property
    def web3(self) -> Any:
        if Web3 is None:
            raise ProviderError("web3 is not installed")
        if self._web3 is None:
            web3 = Web3(
                Web3.HTTPProvider(
                    self._rpc_url,
                    request_kwargs={"timeout": self._request_timeout_s},
                )
            )
            self._configure(web3)
            self._web3 = web3
        return self._web3

    def _configure(self, web3: Any) -> None:
        pass

    def current_account_address(self) -> Optional[str]:
        raise NotImplementedError

    def _require_account(self) -> str:
        account = self.current_account_address()
        if not account:
            raise ProviderError("Wallet not connected", code=NOT_CONNECTED_CODE)
        return account

    def send_native_transfer(self, to: str, value_minor_units: int) -> str:
        sender = self._require_account()
        tx = {"from": sender, "to": checksum_address(to), "value": value_minor_units}
        logger.debug("eth_sendTransaction %s", tx)
        return _to_hex(self.web3.eth.send_transaction(tx))

    def invoke_contract_write(
        self,
        contract: str,
        abi_function: dict[str, Any],
        args: Sequence[Any],
    ) -> str:
        sender = self._require_account()
        instance = self.web3.eth.contract(address=checksum_address(contract), abi=[abi_function])
        inputs = abi_function.get("inputs", [])
        call_args = [
            checksum_address(arg) if i < len(inputs) and inputs[i].get("type") == "address" else arg
            for i, arg in enumerate(args)
        ]
        function = getattr(instance.functions, abi_function["name"])
        logger.debug("contract write %s.%s%s", contract, abi_function["name"], tuple(call_args))
        return _to_hex(function(*call_args).transact({"from": sender}))


class NodeWalletProvider(_Web3Backend):
    """Provider whose accounts and signing live behind the RPC endpoint."""

    def current_account_address(self) -> Optional[str]:
        try:
            accounts = self.web3.eth.accounts
        except Exception as exc:
            logger.warning("could not read accounts from %s: %s", self._rpc_url, exc)
            return None
        return str(accounts[0]) if accounts else None

    def is_session_connected(self) -> bool:
        try:
            if not self.web3.is_connected():
                return False
        except ProviderError as exc:
            logger.warning("node wallet unavailable: %s", exc)
            return False
        return self.current_account_address() is not None

    def sign_plain_message(self, text: str) -> str:
        sender = self._require_account()
        return _to_hex(self.web3.eth.sign(sender, text=text))

    def sign_structured_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        value: dict[str, Any],
    ) -> str:
        sender = self._require_account()
        message = typed_data_message(domain, types, primary_type, value)
        return _to_hex(self.web3.eth.sign_typed_data(sender, message))


class LocalAccountProvider(_Web3Backend):
    """Provider that signs with a private key held in this process."""

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str] = None,
        request_timeout_s: float = 30.0,
    ) -> None:
        super().__init__(rpc_url, request_timeout_s)
        self._private_key = private_key or os.getenv(PRIVATE_KEY_ENV, "")
        self._account: Any = None

    @property
    def account(self) -> Any:
        if self._account is None:
            if Account is None:
                raise ProviderError("eth-account is not installed")
            if not self._private_key:
                raise ProviderError("No private key configured", code=NOT_CONNECTED_CODE)
            try:
                self._account = Account.from_key(self._private_key)
            except ValueError as exc:
                raise ProviderError(f"private key is malformed: {exc}", code=NOT_CONNECTED_CODE) from exc
        return self._account

    def current_account_address(self) -> Optional[str]:
        try:
            return str(self.account.address)
        except ProviderError as exc:
            logger.debug("local account unavailable: %s", exc)
            return None

    def is_session_connected(self) -> bool:
        return self.current_account_address() is not None

    def _configure(self, web3: Any) -> None:
        if SignAndSendRawMiddlewareBuilder is None:
            raise ProviderError("web3 sign-and-send middleware is not available")
        web3.middleware_onion.inject(SignAndSendRawMiddlewareBuilder.build(self.account), layer=0)
        web3.eth.default_account = self.account.address

    def sign_plain_message(self, text: str) -> str:
        signed = self.account.sign_message(encode_defunct(text=text))
        return _to_hex(signed.signature)

    def sign_structured_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        value: dict[str, Any],
    ) -> str:
        message = typed_data_message(domain, types, primary_type, value)
        signed = self.account.sign_message(encode_typed_data(full_message=message))
        return _to_hex(signed.signature)
