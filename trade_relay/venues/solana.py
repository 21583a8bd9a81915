"""
Solana spot venue: Jupiter Ultra swaps against USDC, signed by the user's
Privy custody wallet.
"""

from decimal import Decimal
from typing import Optional

from ..clients.jupiter_client import JupiterClient, USDC_DECIMALS, USDC_MINT
from ..clients.privy_client import PrivyClient
from ..models import Platform, TradeAction
from ..utils.logger import get_logger
from ..utils.numbers import from_base_units, to_base_units
from .base import ExecutionResult, VenueAdapter

logger = get_logger("venues.solana")


class SolanaVenue(VenueAdapter):
    """
    Spot swaps through Jupiter.

    Amounts are in units of the traded token. A buy spends
    amount × price USDC; a sell swaps amount tokens into USDC.
    """

    platform = Platform.SOLANA

    def __init__(
        self,
        jupiter: JupiterClient,
        privy: PrivyClient,
        simulation_mode: bool = True
    ):
        super().__init__(simulation_mode=simulation_mode)
        self.jupiter = jupiter
        self.privy = privy

    async def initialize(self) -> None:
        await self.jupiter.initialize()

    async def close(self) -> None:
        await self.jupiter.close()

    async def get_price(self, asset: str) -> Optional[Decimal]:
        token = await self.jupiter.search_token(asset)
        if token is None:
            return None
        return token.usd_price

    async def _submit(
        self,
        action: TradeAction,
        amount: Decimal,
        asset: str,
        wallet_reference: str
    ) -> ExecutionResult:
        token = await self.jupiter.search_token(asset)
        if token is None:
            return ExecutionResult.failed(f"Unknown Solana token: {asset}")
        if token.mint == USDC_MINT:
            return ExecutionResult.failed("USDC is the quote currency and cannot be traded directly")

        wallet = await self.privy.get_wallet(wallet_reference)

        if action is TradeAction.BUY:
            if not token.usd_price:
                return ExecutionResult.failed(f"No price for {asset}, cannot size USDC input")
            input_mint, output_mint = USDC_MINT, token.mint
            in_amount = to_base_units(amount * token.usd_price, USDC_DECIMALS, round_up=True)
        else:
            input_mint, output_mint = token.mint, USDC_MINT
            in_amount = to_base_units(amount, token.decimals)

        if in_amount <= 0:
            return ExecutionResult.failed("Trade amount too small")

        order = await self.jupiter.get_order(input_mint, output_mint, in_amount, wallet.address)
        if not order.transaction:
            return ExecutionResult.failed(
                "Jupiter returned no transaction (insufficient balance or no route)"
            )

        signed = await self.privy.sign_solana_transaction(wallet.wallet_id, order.transaction)
        execution = await self.jupiter.execute(signed, order.request_id)
        if not execution.success:
            return ExecutionResult.failed(execution.error or "Swap failed")

        in_raw = execution.input_amount or order.in_amount
        out_raw = execution.output_amount or order.out_amount
        if action is TradeAction.BUY:
            usdc = from_base_units(in_raw, USDC_DECIMALS)
            tokens = from_base_units(out_raw, token.decimals)
        else:
            tokens = from_base_units(in_raw, token.decimals)
            usdc = from_base_units(out_raw, USDC_DECIMALS)

        executed_price = usdc / tokens if tokens else None

        logger.info(
            "Jupiter swap executed",
            extra={
                "signature": execution.signature,
                "action": action.value,
                "asset": token.symbol,
                "executed_price": str(executed_price)
            }
        )
        return ExecutionResult.filled(executed_price, execution.signature)
