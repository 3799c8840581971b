"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

DEFAULT_PROVIDER_TYPE = "node"
DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_CHAIN_ID = 1


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "wallet_ops" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_provider_type(self) -> str:
        data = self._read_all()
        return str(data.get("provider_type", DEFAULT_PROVIDER_TYPE))

    def set_provider_type(self, provider_type: str) -> None:
        data = self._read_all()
        data["provider_type"] = provider_type
        self._write_all(data)

    def get_rpc_url(self) -> str:
        data = self._read_all()
        return str(data.get("rpc_url", DEFAULT_RPC_URL))

    def set_rpc_url(self, rpc_url: str) -> None:
        data = self._read_all()
        data["rpc_url"] = rpc_url
        self._write_all(data)

    def get_chain_id(self) -> int:
        data = self._read_all()
        try:
            return int(data.get("chain_id", DEFAULT_CHAIN_ID))
        except (TypeError, ValueError):
            return DEFAULT_CHAIN_ID

    def set_chain_id(self, chain_id: int) -> None:
        data = self._read_all()
        data["chain_id"] = int(chain_id)
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
