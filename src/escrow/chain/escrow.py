"""Typed operations against a deployed escrow contract."""

import json
from decimal import Decimal
from typing import Any

from src.escrow.chain.artifact import load_escrow_abi, load_escrow_bytecode
from src.escrow.chain.client import LedgerClient, LedgerEvent, TxResult
from src.escrow.chain.hashing import normalize_sha256
from src.escrow.core.exceptions import ValidationError
from src.escrow.core.logging import get_logger

logger = get_logger(__name__)


def validate_split_percent(client_percent: Any) -> int:
    """Return the client share as an int in [0, 100].

    Raises:
        ValidationError: not an integer or out of range
    """
    if isinstance(client_percent, bool) or not isinstance(client_percent, int):
        raise ValidationError("Client percent must be a whole number between 0 and 100.")
    if not 0 <= client_percent <= 100:
        raise ValidationError("Client percent must be between 0 and 100.")
    return client_percent


def build_draft_proof_payload(action: str, draft_hash: str, previous_hash: str | None) -> bytes:
    """Encode the proof document carried in a draft-proof transaction."""
    document = {
        "kind": "draft-proof",
        "action": action,
        "draftHash": draft_hash,
        "previousHash": previous_hash,
    }
    return json.dumps(document, separators=(",", ":")).encode("utf-8")


class EscrowController:
    """Escrow contract operations. Each call blocks until confirmation."""

    def __init__(self, client: LedgerClient, abi: list[dict[str, Any]] | None = None):
        self.client = client
        self.abi = abi or load_escrow_abi()

    async def deploy_escrow(
        self,
        client_address: str,
        company_address: str,
        admin_private_key: str,
        deposit_amount: Decimal,
        balance_amount: Decimal,
    ) -> tuple[str, TxResult]:
        """Deploy a new escrow. The signing admin becomes the contract admin."""
        admin = self.client.account(admin_private_key)
        address, result = await self.client.deploy_contract(
            admin_private_key,
            self.abi,
            load_escrow_bytecode(),
            self.client.checksum(client_address),
            self.client.checksum(company_address),
            admin.address,
            self.client.to_wei(deposit_amount),
            self.client.to_wei(balance_amount),
        )
        logger.info("Escrow deployed", escrow_address=address, tx_hash=result.tx_hash)
        return address, result

    async def fund_deposit(self, address: str, payer_key: str, amount: Decimal) -> TxResult:
        return await self.client.call_contract(
            payer_key, address, self.abi, "fundDeposit", value=self.client.to_wei(amount)
        )

    async def fund_balance(self, address: str, payer_key: str, amount: Decimal) -> TxResult:
        return await self.client.call_contract(
            payer_key, address, self.abi, "fundBalance", value=self.client.to_wei(amount)
        )

    async def record_deposit_fiat(self, address: str, admin_key: str) -> TxResult:
        """Mark the deposit as paid off-ledger in the contract's bookkeeping."""
        return await self.client.call_contract(admin_key, address, self.abi, "recordDepositFiat")

    async def record_balance_fiat(self, address: str, admin_key: str) -> TxResult:
        return await self.client.call_contract(admin_key, address, self.abi, "recordBalanceFiat")

    async def release(self, address: str, admin_key: str) -> TxResult:
        return await self.client.call_contract(admin_key, address, self.abi, "releaseToCompany")

    async def refund(self, address: str, admin_key: str) -> TxResult:
        return await self.client.call_contract(admin_key, address, self.abi, "refundToClient")

    async def split(self, address: str, admin_key: str, client_percent: int) -> TxResult:
        """Split the escrow; the beneficiary receives 100 - client_percent."""
        client_percent = validate_split_percent(client_percent)
        return await self.client.call_contract(
            admin_key, address, self.abi, "splitPayout", client_percent
        )

    async def pause(self, address: str, admin_key: str) -> TxResult:
        return await self.client.call_contract(admin_key, address, self.abi, "pause")

    async def unpause(self, address: str, admin_key: str) -> TxResult:
        return await self.client.call_contract(admin_key, address, self.abi, "unpause")

    async def anchor_draft_proof(
        self,
        address: str,
        actor_key: str,
        action: str,
        draft_hash: str,
        previous_hash: str | None = None,
    ) -> TxResult:
        """Timestamp a document revision with a zero-value transaction to the escrow.

        Hashes are validated before anything touches the network.
        """
        normalized = normalize_sha256(draft_hash, "draft hash")
        normalized_previous = (
            normalize_sha256(previous_hash, "previous hash") if previous_hash else None
        )
        payload = build_draft_proof_payload(action, normalized, normalized_previous)
        result = await self.client.send_value(actor_key, address, value=0, data=payload)
        logger.info(
            "Draft proof anchored",
            escrow_address=address,
            tx_hash=result.tx_hash,
            draft_hash=normalized,
        )
        return result

    async def get_events(self, address: str) -> list[LedgerEvent]:
        """Every event from genesis to the current head."""
        return await self.client.get_events(address, self.abi, from_block=0)
