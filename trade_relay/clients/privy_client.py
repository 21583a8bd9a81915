"""
Privy REST client for custody wallets.
Provisions one wallet per (Telegram user, chain) and signs through
server-side wallet RPC, so private keys never leave Privy.
"""

import base64
from dataclasses import dataclass
from typing import Optional

import aiohttp

from ..errors import AdapterUnavailable
from ..models import ChainType
from ..utils.logger import get_logger

logger = get_logger("privy")


@dataclass
class Wallet:
    """Custody wallet handle."""
    wallet_id: str
    address: str
    chain_type: ChainType


class PrivyClient:
    """
    Async client for the Privy wallet API.

    Wallet references handed to the order store are Privy wallet ids.
    """

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        auth_key_id: str,
        api_url: str = "https://api.privy.io"
    ):
        """
        Initialize Privy client.

        Args:
            app_id: Privy application id
            app_secret: Privy application secret
            auth_key_id: Authorization key registered as wallet signer
            api_url: Privy API base URL
        """
        self.app_id = app_id
        self.auth_key_id = auth_key_id
        self.api_url = api_url
        self._auth = base64.b64encode(f"{app_id}:{app_secret}".encode()).decode()
        self._session: Optional[aiohttp.ClientSession] = None

        # (telegram user id, chain) -> wallet
        self._wallets: dict[tuple[str, ChainType], Wallet] = {}
        self._wallets_by_id: dict[str, Wallet] = {}

    async def initialize(self) -> None:
        """Initialize HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Basic {self._auth}",
                    "privy-app-id": self.app_id,
                    "Content-Type": "application/json"
                },
                timeout=aiohttp.ClientTimeout(total=15)
            )
        logger.info("Privy client initialized")

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: Optional[dict] = None,
        allow_404: bool = False
    ) -> Optional[dict]:
        """Make HTTP request to the Privy API."""
        if not self._session:
            await self.initialize()

        url = f"{self.api_url}{endpoint}"

        try:
            async with self._session.request(method, url, json=payload) as response:
                if allow_404 and response.status == 404:
                    return None
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Privy API request failed: {e}", extra={"endpoint": endpoint})
            raise

    async def get_or_create_wallet(self, telegram_user_id: str, chain_type: ChainType) -> Wallet:
        """
        Return the user's Privy wallet for a chain, creating user and
        wallet on first use.
        """
        key = (str(telegram_user_id), chain_type)
        if key in self._wallets:
            return self._wallets[key]

        user = await self._get_user_by_telegram_id(str(telegram_user_id))
        if user is None:
            logger.info("Creating new Privy user", extra={"telegram_user_id": telegram_user_id})
            user = await self._request(
                "POST",
                "/v1/users",
                {
                    "linked_accounts": [
                        {"type": "telegram", "telegram_user_id": str(telegram_user_id)}
                    ]
                }
            )

        wallet = self._find_linked_wallet(user, chain_type)
        if wallet is None:
            logger.info(
                f"Creating new {chain_type.value} wallet",
                extra={"telegram_user_id": telegram_user_id}
            )
            data = await self._request(
                "POST",
                "/v1/wallets",
                {
                    "chain_type": chain_type.value,
                    "owner": {"user_id": user["id"]},
                    "additional_signers": [{"signer_id": self.auth_key_id}]
                }
            )
            wallet = Wallet(
                wallet_id=data["id"],
                address=data["address"],
                chain_type=chain_type
            )
            logger.info(f"Created {chain_type.value} wallet", extra={"wallet_id": wallet.wallet_id})

        self._wallets[key] = wallet
        self._wallets_by_id[wallet.wallet_id] = wallet
        return wallet

    async def get_wallet(self, wallet_id: str) -> Wallet:
        """Look up a wallet by id."""
        if wallet_id in self._wallets_by_id:
            return self._wallets_by_id[wallet_id]

        data = await self._request("GET", f"/v1/wallets/{wallet_id}")
        wallet = Wallet(
            wallet_id=data["id"],
            address=data["address"],
            chain_type=ChainType(data.get("chain_type", "ethereum"))
        )
        self._wallets_by_id[wallet_id] = wallet
        return wallet

    async def sign_typed_data(self, wallet_id: str, typed_data: dict) -> str:
        """Sign EIP-712 typed data with an Ethereum custody wallet."""
        data = await self._rpc(
            wallet_id,
            {"method": "eth_signTypedData_v4", "params": {"typed_data": typed_data}}
        )
        return data["signature"]

    async def sign_solana_transaction(self, wallet_id: str, transaction: str) -> str:
        """Sign a base64 Solana transaction; returns the signed base64 transaction."""
        data = await self._rpc(
            wallet_id,
            {
                "method": "signTransaction",
                "params": {"transaction": transaction, "encoding": "base64"}
            }
        )
        return data["signed_transaction"]

    async def _rpc(self, wallet_id: str, body: dict) -> dict:
        try:
            result = await self._request("POST", f"/v1/wallets/{wallet_id}/rpc", body)
        except aiohttp.ClientError as e:
            raise AdapterUnavailable("privy", f"{body['method']} failed: {e}")
        if not result or "data" not in result:
            raise AdapterUnavailable("privy", f"{body['method']} returned no data")
        return result["data"]

    async def _get_user_by_telegram_id(self, telegram_user_id: str) -> Optional[dict]:
        return await self._request(
            "POST",
            "/v1/users/telegram/telegram_user_id",
            {"telegram_user_id": telegram_user_id},
            allow_404=True
        )

    @staticmethod
    def _find_linked_wallet(user: dict, chain_type: ChainType) -> Optional[Wallet]:
        for account in user.get("linked_accounts", []):
            if (
                account.get("type") == "wallet"
                and account.get("wallet_client_type") == "privy"
                and account.get("chain_type") == chain_type.value
                and account.get("id")
            ):
                return Wallet(
                    wallet_id=account["id"],
                    address=account["address"],
                    chain_type=chain_type
                )
        return None
