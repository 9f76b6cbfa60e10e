"""Ledger access - web3 client and escrow contract operations."""

from src.escrow.chain.client import (
    UNKNOWN_EVENT_NAME,
    LedgerClient,
    LedgerEvent,
    TxResult,
    get_ledger_client,
)
from src.escrow.chain.escrow import EscrowController, validate_split_percent
from src.escrow.chain.hashing import normalize_sha256
from src.escrow.chain.payload import normalize_event_args, normalize_event_value

__all__ = [
    "UNKNOWN_EVENT_NAME",
    "EscrowController",
    "LedgerClient",
    "LedgerEvent",
    "TxResult",
    "get_ledger_client",
    "normalize_event_args",
    "normalize_event_value",
    "normalize_sha256",
    "validate_split_percent",
]
