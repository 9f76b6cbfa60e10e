"""Async JSON-RPC ledger client built on web3.py.

Every write blocks until the transaction is mined or the confirmation
timeout elapses. A timeout is reported as LedgerConfirmationTimeout with the
submitted hash: the transaction may still be mined later, so callers must
never treat it as success.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import (
    ContractLogicError,
    LogTopicError,
    MismatchedABI,
    TimeExhausted,
)

from src.escrow.core.config import Settings, get_settings
from src.escrow.core.exceptions import (
    LedgerConfirmationTimeout,
    LedgerError,
    LedgerRevertedError,
)
from src.escrow.core.logging import get_logger

logger = get_logger(__name__)

# Name recorded for logs that match no event in the ABI
UNKNOWN_EVENT_NAME = "Event"


@dataclass(frozen=True)
class TxResult:
    """A confirmed, successful transaction."""

    tx_hash: str
    receipt: Mapping[str, Any]

    @property
    def block_number(self) -> int | None:
        return self.receipt.get("blockNumber")


@dataclass(frozen=True)
class LedgerEvent:
    """A log emitted by a contract, decoded against its ABI when possible."""

    name: str
    tx_hash: str
    block_number: int | None
    args: Mapping[str, Any] | None


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return AsyncWeb3.to_hex(value)
    return str(value)


class LedgerClient:
    """Thin async wrapper over AsyncWeb3 with sign-send-confirm semantics."""

    def __init__(
        self,
        rpc_url: str,
        chain_id: int,
        confirmation_timeout: float = 120,
        poll_interval: float = 1.0,
        w3: AsyncWeb3 | None = None,
    ):
        self.chain_id = chain_id
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(rpc_url))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LedgerClient":
        settings = settings or get_settings()
        return cls(
            rpc_url=settings.chain_rpc_url,
            chain_id=settings.chain_id,
            confirmation_timeout=settings.ledger_confirmation_timeout_seconds,
            poll_interval=settings.ledger_poll_interval_seconds,
        )

    @staticmethod
    def account(private_key: str) -> LocalAccount:
        return Account.from_key(private_key)

    @staticmethod
    def to_wei(amount: Decimal | str) -> int:
        return int(AsyncWeb3.to_wei(Decimal(str(amount)), "ether"))

    @staticmethod
    def checksum(address: str) -> str:
        return str(AsyncWeb3.to_checksum_address(address))

    # Reads

    async def get_block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    async def get_balance(self, address: str) -> int:
        """Balance in wei."""
        return int(await self.w3.eth.get_balance(self.checksum(address)))

    async def get_events(
        self,
        address: str,
        abi: Sequence[Mapping[str, Any]],
        from_block: int = 0,
        to_block: int | None = None,
    ) -> list[LedgerEvent]:
        """All logs emitted by a contract over a block range, decoded where possible."""
        if to_block is None:
            to_block = await self.get_block_number()

        checksum_address = self.checksum(address)
        contract = self.w3.eth.contract(address=checksum_address, abi=abi)
        event_names = [entry["name"] for entry in abi if entry.get("type") == "event"]

        logs = await self.w3.eth.get_logs(
            {"address": checksum_address, "fromBlock": from_block, "toBlock": to_block}
        )

        events: list[LedgerEvent] = []
        for log in logs:
            tx_hash = _hex(log["transactionHash"])
            block_number = log.get("blockNumber")
            decoded = None
            for name in event_names:
                try:
                    decoded = getattr(contract.events, name)().process_log(log)
                    break
                except (MismatchedABI, LogTopicError):
                    continue

            if decoded is None:
                events.append(LedgerEvent(UNKNOWN_EVENT_NAME, tx_hash, block_number, None))
            else:
                events.append(
                    LedgerEvent(decoded["event"], tx_hash, block_number, dict(decoded["args"]))
                )
        return events

    # Writes

    async def call_contract(
        self,
        private_key: str,
        address: str,
        abi: Sequence[Mapping[str, Any]],
        function_name: str,
        *args: Any,
        value: int = 0,
    ) -> TxResult:
        """Invoke a state-changing contract function and wait for confirmation."""
        account = self.account(private_key)
        contract = self.w3.eth.contract(address=self.checksum(address), abi=abi)
        function = getattr(contract.functions, function_name)(*args)

        try:
            tx = await function.build_transaction(
                {
                    "from": account.address,
                    "value": value,
                    "nonce": await self.w3.eth.get_transaction_count(account.address, "pending"),
                    "chainId": self.chain_id,
                }
            )
        except ContractLogicError as e:
            # Reverted during gas estimation, nothing was submitted
            raise LedgerRevertedError(f"{function_name} reverted: {e}") from e
        except Exception as e:
            raise LedgerError(f"Failed to build {function_name} transaction: {e}") from e

        return await self._sign_and_send(account, tx, label=function_name)

    async def deploy_contract(
        self,
        private_key: str,
        abi: Sequence[Mapping[str, Any]],
        bytecode: str,
        *constructor_args: Any,
    ) -> tuple[str, TxResult]:
        """Deploy a contract. Returns (contract address, result)."""
        account = self.account(private_key)
        factory = self.w3.eth.contract(abi=abi, bytecode=bytecode)

        try:
            tx = await factory.constructor(*constructor_args).build_transaction(
                {
                    "from": account.address,
                    "nonce": await self.w3.eth.get_transaction_count(account.address, "pending"),
                    "chainId": self.chain_id,
                }
            )
        except ContractLogicError as e:
            raise LedgerRevertedError(f"Contract deployment reverted: {e}") from e
        except Exception as e:
            raise LedgerError(f"Failed to build deployment transaction: {e}") from e

        result = await self._sign_and_send(account, tx, label="deploy")
        address = result.receipt.get("contractAddress")
        if not address:
            raise LedgerError("Deployment receipt has no contract address.", tx_hash=result.tx_hash)
        return self.checksum(address), result

    async def send_value(
        self,
        private_key: str,
        to: str,
        value: int = 0,
        data: bytes = b"",
    ) -> TxResult:
        """Send a plain transaction carrying base currency and/or data."""
        account = self.account(private_key)
        try:
            tx: dict[str, Any] = {
                "from": account.address,
                "to": self.checksum(to),
                "value": value,
                "data": AsyncWeb3.to_hex(data) if data else "0x",
                "nonce": await self.w3.eth.get_transaction_count(account.address, "pending"),
                "chainId": self.chain_id,
            }
            tx["gas"] = await self.w3.eth.estimate_gas(tx)  # type: ignore[arg-type]
            tx["gasPrice"] = await self.w3.eth.gas_price
        except ContractLogicError as e:
            raise LedgerRevertedError(f"Transaction reverted: {e}") from e
        except Exception as e:
            raise LedgerError(f"Failed to build transaction: {e}") from e

        return await self._sign_and_send(account, tx, label="transfer")

    async def _sign_and_send(
        self, account: LocalAccount, tx: Mapping[str, Any], label: str
    ) -> TxResult:
        signed = account.sign_transaction(tx)  # type: ignore[arg-type]
        try:
            raw_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise LedgerError(f"Failed to submit {label} transaction: {e}") from e

        tx_hash = _hex(raw_hash)
        logger.info("Ledger transaction submitted", tx_hash=tx_hash, operation=label)

        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                raw_hash,
                timeout=self.confirmation_timeout,
                poll_latency=self.poll_interval,
            )
        except TimeExhausted as e:
            logger.warning(
                "Ledger confirmation timed out",
                tx_hash=tx_hash,
                operation=label,
                timeout=self.confirmation_timeout,
            )
            raise LedgerConfirmationTimeout(
                f"{label} transaction submitted but not confirmed within "
                f"{self.confirmation_timeout}s; outcome unknown.",
                tx_hash=tx_hash,
            ) from e
        except Exception as e:
            raise LedgerError(f"Failed to confirm {label} transaction: {e}", tx_hash=tx_hash) from e

        if receipt["status"] != 1:
            logger.warning("Ledger transaction reverted", tx_hash=tx_hash, operation=label)
            raise LedgerRevertedError(f"{label} transaction reverted.", tx_hash=tx_hash)

        logger.info(
            "Ledger transaction confirmed",
            tx_hash=tx_hash,
            operation=label,
            block_number=receipt.get("blockNumber"),
        )
        return TxResult(tx_hash=tx_hash, receipt=receipt)


_client: LedgerClient | None = None


def get_ledger_client() -> LedgerClient:
    """Get or create the process-wide ledger client."""
    global _client
    if _client is None:
        _client = LedgerClient.from_settings()
    return _client
