"""
Chat reply rendering for the command router and the order monitor.
"""

from decimal import Decimal
from typing import Optional

from .clients.gamma_client import Market
from .clients.jupiter_client import TokenInfo
from .orders.models import LimitOrder, OrderStatus
from .utils.numbers import format_price

STATUS_EMOJI = {
    OrderStatus.ACTIVE: "🔄",
    OrderStatus.EXECUTED: "✅",
    OrderStatus.CANCELLED: "❌",
}

LIMIT_USAGE = (
    "Usage: /limit <platform> <action> <amount> <asset> <price>\n\n"
    "Platforms: {platforms}\n"
    "Actions: buy, sell\n\n"
    "Examples:\n"
    "/limit solana buy 0.01 SOL 200\n"
    "/limit hyperliquid buy 1 BTC 95000\n\n"
    "⚠️ Limit orders monitor prices and execute automatically when conditions are met."
)

TRADE_USAGE = (
    "Usage: /trade <platform> <action> <amount> <asset>\n\n"
    "Platforms: {platforms}\n"
    "Actions: buy, sell\n\n"
    "Examples:\n"
    "/trade solana buy 0.01 SOL\n"
    "/trade hyperliquid buy 0.001 BTC\n"
    "/trade polymarket buy 50 Will BTC hit 200k?"
)

TOKENINFO_USAGE = (
    "Usage: /tokeninfo <query>\n\n"
    "Examples:\n"
    "/tokeninfo SOL\n"
    "/tokeninfo bonk\n"
    "/tokeninfo EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v\n\n"
    "💡 Search by symbol, name, or mint address"
)

HELP = """🤖 Sniffy Trading Bot

🏠 Setup:
• /start - Create wallets
• /wallet - View addresses
• /createwallet <chain> - Create a solana or ethereum wallet

💰 Trading:
• /trade <platform> <action> <amount> <asset>
• /price <platform> <asset>
• /markets - Top Polymarket markets
• /tokeninfo <token> - Solana token info

🎯 Limit Orders:
• /limit <platform> <action> <amount> <asset> <price>
• /orders - View your limit orders
• /cancel <order_id> - Cancel limit order

📊 Bot:
• /status - Bot status
• /help - This message"""


def order_line(order: LimitOrder) -> str:
    """One-line summary used in listings."""
    return (
        f"#{order.id}: {STATUS_EMOJI[order.status]} {order.action.value.upper()} "
        f"{order.amount} {order.asset} @ ${format_price(order.target_price)}\n"
        f"   Platform: {order.platform.value} | Status: {order.status.value}"
    )


def order_created(order: LimitOrder, interval_seconds: float) -> str:
    return (
        f"✅ Limit Order Created!\n\n"
        f"📋 Order #{order.id}:\n"
        f"• {order.action.value.upper()} {order.amount} {order.asset} when price "
        f"{order.comparator} ${format_price(order.target_price)}\n"
        f"• Platform: {order.platform.value}\n"
        f"• Status: 🔄 Active\n\n"
        f"💡 Price will be checked every {interval_seconds:g} seconds.\n\n"
        f"Use /orders to view all your limit orders.\n"
        f"Use /cancel {order.id} to cancel this order."
    )


def order_list(orders: list[LimitOrder]) -> str:
    if not orders:
        return (
            "📋 Your Limit Orders:\n\n"
            "❌ No limit orders found.\n\n"
            "Create one with: /limit <platform> <action> <amount> <asset> <price>"
        )
    lines = ["📋 Your Limit Orders:", ""]
    for order in orders:
        lines.append(order_line(order))
        lines.append("")
    lines.append("💡 /cancel <order_id> - Cancel order")
    return "\n".join(lines)


def order_cancelled(order: LimitOrder) -> str:
    return (
        f"✅ Order Cancelled!\n\n"
        f"📋 Order #{order.id}:\n"
        f"• {order.action.value.upper()} {order.amount} {order.asset} "
        f"@ ${format_price(order.target_price)}\n"
        f"• Status: ❌ Cancelled"
    )


def order_executed(order: LimitOrder) -> str:
    reference = f"\n• Reference: {order.execution_reference}" if order.execution_reference else ""
    return (
        f"🚀 Limit Order Executed!\n\n"
        f"✅ Order #{order.id} Filled:\n"
        f"• {order.action.value.upper()} {order.amount} {order.asset}\n"
        f"• Target: ${format_price(order.target_price)}\n"
        f"• Executed: ${format_price(order.executed_price)}\n"
        f"• Platform: {order.platform.value}"
        f"{reference}"
    )


def order_filled_after_cancel(
    order: LimitOrder,
    executed_price: Optional[Decimal],
    reference: Optional[str]
) -> str:
    return (
        f"⚠️ Order #{order.id} was cancelled while its trade was already being submitted.\n\n"
        f"The venue reported a fill: {order.action.value.upper()} {order.amount} {order.asset} "
        f"at ${format_price(executed_price)} (reference: {reference or 'n/a'}).\n"
        f"Check your balance on {order.platform.value}."
    )


def order_retrying(order: LimitOrder, attempts: int, error: Optional[str]) -> str:
    return (
        f"⚠️ Order #{order.id} triggered but could not be executed after {attempts} attempts.\n\n"
        f"Last error: {error or 'unknown'}\n\n"
        f"The order stays active and will keep retrying. Use /cancel {order.id} to stop it."
    )


def trade_result(
    platform: str,
    action: str,
    amount: Decimal,
    asset: str,
    executed_price: Optional[Decimal],
    reference: Optional[str],
    simulated: bool
) -> str:
    prefix = "🧪 [SIMULATION] " if simulated else ""
    return (
        f"{prefix}✅ Executed {action} {amount} {asset} on {platform}\n"
        f"• Price: ${format_price(executed_price)}\n"
        f"• Reference: {reference or 'n/a'}"
    )


def price_quote(platform: str, asset: str, price: Optional[Decimal]) -> str:
    if price is None:
        return f"❌ No price available for {asset} on {platform}."
    return f"💲 {asset} on {platform}: ${format_price(price)}"


def wallets(addresses: dict[str, str]) -> str:
    lines = ["💰 Your Wallets:", ""]
    for chain, address in addresses.items():
        lines.append(f"🔗 {chain.capitalize()}: {address}")
    return "\n".join(lines)


def welcome(addresses: dict[str, str]) -> str:
    return (
        "🎉 Welcome to Sniffy Trading Bot!\n\n"
        + wallets(addresses)
        + "\n\n🚀 Try /trade, /limit or /help"
    )


def markets(items: list[Market]) -> str:
    if not items:
        return "📈 No open Polymarket markets right now."
    lines = ["📈 Top Polymarket Markets:", ""]
    for index, market in enumerate(items, start=1):
        token = market.get_yes_token()
        price = token.price if token else None
        cents = f"{(price * 100).quantize(Decimal('0.1'))}¢" if price is not None else "n/a"
        lines.append(f"{index}. {market.question}")
        lines.append(f"   {token.outcome if token else 'Yes'}: {cents}")
        lines.append("")
    lines.append("Use /trade polymarket buy <shares> <question> to trade")
    return "\n".join(lines)


def token_info(query: str, token: Optional[TokenInfo]) -> str:
    if token is None:
        return (
            f"❌ No tokens found for \"{query}\"\n\n"
            "Try a different keyword or the mint address directly."
        )
    return (
        f"🪙 Token Information:\n\n"
        f"📝 Name: {token.name}\n"
        f"🪪 Symbol: {token.symbol}\n"
        f"📍 Mint: {token.mint}\n"
        f"📊 Decimals: {token.decimals}\n"
        f"💰 Price: ${format_price(token.usd_price)}\n\n"
        f"💡 Use: /trade solana buy 0.01 {token.symbol}"
    )


def status(
    venues: list[str],
    limit_platforms: list[str],
    interval_seconds: float,
    stats: dict
) -> str:
    lines = ["✅ Bot Status: Online", "", "🔗 Venues:"]
    lines.extend(f"• {venue} ✅" for venue in venues)
    lines.append("")
    lines.append(f"🎯 Limit orders: {', '.join(limit_platforms)}")
    lines.append(f"• Checked every {interval_seconds:g} seconds")
    if stats:
        lines.append(f"• Active orders: {stats.get('active_orders', 0)}")
        lines.append(f"• Executed: {stats.get('orders_executed', 0)}")
        lines.append(f"• Monitor cycles: {stats.get('cycles_run', 0)}")
    else:
        lines.append("• Monitor not running")
    return "\n".join(lines)
