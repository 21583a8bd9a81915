"""
Sniffy trade relay

Chat-driven trading relay: Telegram users trade on Solana (Jupiter),
Hyperliquid and Polymarket through Privy custody wallets, and park limit
orders that a background monitor executes when the price condition holds.

Entry point: python -m trade_relay.main

Key Modules:
- trade_relay.orders: Order store and limit order monitor
- trade_relay.venues: Venue adapters and the venue registry
- trade_relay.clients: HTTP clients (Telegram, Privy, Jupiter, Hyperliquid, Polymarket)
- trade_relay.bot: Chat command router
"""
