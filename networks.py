"""Display helpers for chains and accounts."""

from __future__ import annotations

from typing import Optional

NETWORK_NAMES = {
    1: "Ethereum",
    11155111: "Sepolia",
    137: "Polygon",
    42161: "Arbitrum",
    10: "Optimism",
}


def network_name(chain_id: Optional[int]) -> str:
    if chain_id is None:
        return "Unknown network"
    return NETWORK_NAMES.get(chain_id, f"Chain {chain_id}")


def short_address(address: Optional[str]) -> str:
    """Shorten ``0x1234567890...abcd`` style addresses for display."""
    if not address:
        return "Not connected"
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
