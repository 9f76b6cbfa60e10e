"""Custodial per-user wallets."""

from uuid import UUID

from eth_account import Account
from sqlalchemy.ext.asyncio import AsyncSession
from web3 import AsyncWeb3

from src.escrow.chain import LedgerClient
from src.escrow.core.background import BackgroundTasks, background_tasks
from src.escrow.core.config import get_settings
from src.escrow.core.exceptions import ConfigurationError, NotFoundError
from src.escrow.core.logging import get_logger
from src.escrow.models import User
from src.escrow.repositories import UserRepository

logger = get_logger(__name__)


class WalletService:
    """Creates wallets lazily and keeps them funded for gas.

    Top-up failures are logged and never reach the caller.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        session: AsyncSession,
        client: LedgerClient,
        tasks: BackgroundTasks = background_tasks,
    ):
        self.user_repo = user_repo
        self.session = session
        self.client = client
        self.tasks = tasks

    async def ensure_wallet(self, user_id: UUID, for_signing: bool = False) -> User:
        """Return the user with a wallet, creating one on first use.

        With for_signing the gas top-up is awaited so the wallet can pay for
        the transaction that follows; otherwise it runs in the background.
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")

        if not (user.wallet_address and user.wallet_private_key):
            account = Account.create()
            user = await self.user_repo.set_wallet_if_absent(
                user, account.address, AsyncWeb3.to_hex(account.key)
            )
            await self.session.commit()
            if user.wallet_address == account.address:
                logger.info(
                    "Custodial wallet created", user_id=str(user.id), address=account.address
                )

        if user.wallet_address:
            if for_signing:
                await self.top_up_if_low(user.wallet_address)
            else:
                self.schedule_top_up(user.wallet_address)
        return user

    def schedule_top_up(self, address: str) -> None:
        self.tasks.spawn(self.top_up_if_low(address), name=f"wallet-top-up:{address}")

    async def top_up_if_low(self, address: str) -> str | None:
        """Send the top-up amount if the balance is under the minimum.

        Returns the funding tx hash, or None when no top-up happened.
        Best-effort: every failure is logged and swallowed.
        """
        settings = get_settings()
        try:
            balance = await self.client.get_balance(address)
            if balance >= self.client.to_wei(settings.min_wallet_balance_eth):
                return None

            funder_key = settings.chain_funder_private_key
            if not funder_key:
                raise ConfigurationError("CHAIN_FUNDER_PRIVATE_KEY is not set.")

            result = await self.client.send_value(
                funder_key, address, value=self.client.to_wei(settings.wallet_top_up_eth)
            )
            logger.info(
                "Wallet topped up",
                address=address,
                amount_eth=str(settings.wallet_top_up_eth),
                tx_hash=result.tx_hash,
            )
            return result.tx_hash
        except Exception as e:
            logger.warning("Wallet top-up failed", address=address, error=str(e))
            return None
